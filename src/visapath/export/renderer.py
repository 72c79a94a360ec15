"""Checklist and journey report renderer for JSON and PDF export."""

from __future__ import annotations

from visapath.export.models import ChecklistPacket, JourneyReport


def _text(value: object) -> str:
    """Core PDF fonts only cover latin-1."""
    return str(value).encode("latin-1", "replace").decode("latin-1")


def _para(pdf, value: object) -> None:
    pdf.multi_cell(0, 6, _text(value), new_x="LMARGIN", new_y="NEXT")


def _heading(pdf, title: str) -> None:
    pdf.set_font("Helvetica", "B", 12)
    pdf.cell(0, 10, _text(title), new_x="LMARGIN", new_y="NEXT")
    pdf.set_font("Helvetica", "", 10)


class ReportRenderer:
    """Renders personalized checklists and journey reports."""

    def render_journey_json(self, report: JourneyReport) -> str:
        return report.model_dump_json(indent=2, by_alias=True)

    def render_checklist_pdf(self, packet: ChecklistPacket) -> bytes:
        """Render a personalized visa checklist as a PDF document using fpdf2."""
        from fpdf import FPDF

        visa = packet.visa_type
        pdf = FPDF()
        pdf.add_page()
        pdf.set_auto_page_break(auto=True, margin=15)

        pdf.set_font("Helvetica", "B", 16)
        pdf.cell(0, 10, _text(visa.name), new_x="LMARGIN", new_y="NEXT")

        pdf.set_font("Helvetica", "", 10)
        pdf.cell(
            0, 8,
            f"Route: {visa.origin_country} to {visa.destination_country}",
            new_x="LMARGIN", new_y="NEXT",
        )
        if visa.processing_time:
            pdf.cell(
                0, 8,
                _text(f"Processing time: {visa.processing_time.display}"),
                new_x="LMARGIN", new_y="NEXT",
            )
        pdf.ln(5)

        if visa.overview or visa.description:
            pdf.set_font("Helvetica", "I", 10)
            _para(pdf, visa.overview or visa.description)
            pdf.ln(5)

        if packet.fee_estimate is not None:
            estimate = packet.fee_estimate
            _heading(pdf, "Estimated Fees")
            for item in estimate.line_items:
                pdf.cell(
                    0, 7,
                    _text(f"  {item.name}: {estimate.currency} {item.amount:.2f}"),
                    new_x="LMARGIN", new_y="NEXT",
                )
            pdf.set_font("Helvetica", "B", 10)
            pdf.cell(
                0, 8,
                f"Total: {estimate.currency} {estimate.total:.2f}",
                new_x="LMARGIN", new_y="NEXT",
            )
            pdf.ln(3)

        if packet.steps:
            _heading(pdf, "Application Steps")
            for step in packet.steps:
                marker = " *" if step.is_personalized else ""
                _para(pdf, f"{step.step_number}. {step.title}{marker}")
                if step.estimated_time:
                    pdf.cell(0, 6, _text(f"    Time: {step.estimated_time}"), new_x="LMARGIN", new_y="NEXT")
            pdf.ln(3)

        if packet.documents:
            _heading(pdf, "Required Documents")
            for doc in packet.documents:
                label = "Required" if doc.is_required else "Optional"
                marker = " *" if doc.is_personalized else ""
                _para(pdf, f"[ ] {doc.name} ({label}){marker}")
            pdf.ln(3)

        if any(item.is_personalized for item in [*packet.steps, *packet.documents]):
            pdf.set_font("Helvetica", "I", 9)
            pdf.cell(0, 6, "* Included because of your answers", new_x="LMARGIN", new_y="NEXT")

        if visa.official_links:
            _heading(pdf, "Official Links")
            for link in visa.official_links:
                _para(pdf, f"{link.title}: {link.url}")

        return bytes(pdf.output())

    def render_journey_pdf(self, report: JourneyReport) -> bytes:
        """Render a journey progress report as a PDF document."""
        from fpdf import FPDF

        journey = report.journey
        metrics = journey.progress_metrics
        pdf = FPDF()
        pdf.add_page()
        pdf.set_auto_page_break(auto=True, margin=15)

        pdf.set_font("Helvetica", "B", 16)
        pdf.cell(0, 10, "Journey Progress Report", new_x="LMARGIN", new_y="NEXT")

        pdf.set_font("Helvetica", "", 10)
        pdf.cell(0, 8, f"Journey ID: {journey.id}", new_x="LMARGIN", new_y="NEXT")
        pdf.cell(0, 8, _text(f"Visa: {report.visa_type_name}"), new_x="LMARGIN", new_y="NEXT")
        pdf.cell(
            0, 8,
            f"Route: {journey.origin_country} to {journey.destination_country}",
            new_x="LMARGIN", new_y="NEXT",
        )
        pdf.cell(0, 8, f"Status: {journey.status.value}", new_x="LMARGIN", new_y="NEXT")
        pdf.cell(
            0, 8,
            f"Started: {journey.timestamps.journey_started.isoformat()}",
            new_x="LMARGIN", new_y="NEXT",
        )
        pdf.ln(5)

        _heading(pdf, "Progress")
        pdf.cell(0, 7, f"  Completion: {metrics.completion_percentage}%", new_x="LMARGIN", new_y="NEXT")
        pdf.cell(
            0, 7,
            f"  Steps: {metrics.completed_steps} of {metrics.total_steps}",
            new_x="LMARGIN", new_y="NEXT",
        )
        pdf.cell(
            0, 7,
            f"  Checklist: {metrics.completed_checklist_items} of {metrics.total_checklist_items}",
            new_x="LMARGIN", new_y="NEXT",
        )
        pdf.ln(3)

        if report.steps:
            _heading(pdf, "Steps")
            for step in report.steps:
                mark = "[x]" if step.completed else "[ ]"
                _para(pdf, f"{mark} {step.title}")
            pdf.ln(3)

        if journey.checklist:
            _heading(pdf, "Checklist")
            for item, done in journey.checklist.items():
                mark = "[x]" if done else "[ ]"
                _para(pdf, f"{mark} {item}")
            pdf.ln(3)

        if journey.notes:
            _heading(pdf, "Notes")
            for note in journey.notes:
                pdf.set_font("Helvetica", "I", 9)
                pdf.cell(
                    0, 6,
                    _text(f"{note.author}, {note.created_at:%Y-%m-%d %H:%M}"),
                    new_x="LMARGIN", new_y="NEXT",
                )
                pdf.set_font("Helvetica", "", 10)
                _para(pdf, note.content)

        return bytes(pdf.output())
