"""Personalized requirements view for one visa type and one set of answers."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import Field

from visapath.catalog.fees import FeeEstimate, estimate_fees
from visapath.catalog.models import Document, Step, VisaType
from visapath.catalog.personalizer import group_by_category, personalize_documents, personalize_steps
from visapath.core.types import CamelModel


class Requirements(CamelModel):
    visa_type_id: str
    documents: list[Document] = Field(default_factory=list)
    documents_by_category: dict[str, list[Document]] = Field(default_factory=dict)
    steps: list[Step] = Field(default_factory=list)
    fee_estimate: FeeEstimate
    personalized: bool = False


def build_requirements(visa_type: VisaType, answers: Mapping[str, Any]) -> Requirements:
    documents = personalize_documents(visa_type.documents, answers)
    return Requirements(
        visa_type_id=visa_type.id,
        documents=documents,
        documents_by_category=group_by_category(documents),
        steps=personalize_steps(visa_type.steps, answers),
        fee_estimate=estimate_fees(visa_type.fees, answers, visa_type.id),
        personalized=bool(answers),
    )
