"""Export data models."""

from __future__ import annotations

from typing import Any

from pydantic import Field

from visapath.catalog.fees import FeeEstimate
from visapath.catalog.models import Document, Step, VisaType
from visapath.core.types import CamelModel
from visapath.journeys.models import Journey


class ChecklistPacket(CamelModel):
    """A visa type personalized for one set of answers, ready for export."""

    visa_type: VisaType
    documents: list[Document] = Field(default_factory=list)
    steps: list[Step] = Field(default_factory=list)
    fee_estimate: FeeEstimate | None = None
    answers: dict[str, Any] = Field(default_factory=dict)


class StepState(CamelModel):
    id: str
    title: str
    completed: bool = False


class JourneyReport(CamelModel):
    """A journey plus the catalog titles needed to describe it."""

    journey: Journey
    visa_type_name: str = ""
    steps: list[StepState] = Field(default_factory=list)

    @classmethod
    def build(cls, journey: Journey, visa_type: VisaType | None = None) -> JourneyReport:
        """Pair journey step state with catalog titles where the catalog knows them."""
        titles = {s.id: s.title for s in visa_type.steps} if visa_type else {}
        steps = [
            StepState(id=step_id, title=titles.get(step_id, step_id), completed=done)
            for step_id, done in journey.step_completion.items()
        ]
        return cls(
            journey=journey,
            visa_type_name=visa_type.name if visa_type else journey.visa_type,
            steps=steps,
        )
