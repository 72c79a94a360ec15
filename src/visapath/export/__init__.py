"""PDF and JSON rendering of checklists and journey reports."""

from visapath.export.models import ChecklistPacket, JourneyReport
from visapath.export.renderer import ReportRenderer

__all__ = ["ChecklistPacket", "JourneyReport", "ReportRenderer"]
