"""Visa catalog data models: countries, visa types, documents, steps, fees."""

from __future__ import annotations

from typing import Any

from pydantic import Field, model_validator

from visapath.core.types import CamelModel, VisaCategory


class Condition(CamelModel):
    """Single-clause inclusion rule evaluated against personalization answers.

    Accepts either ``{"field": "hasATAS", "value": True}`` or the shorthand
    single-key mapping ``{"hasATAS": True}``.
    """

    field: str
    value: Any = True

    @model_validator(mode="before")
    @classmethod
    def _expand_shorthand(cls, data: Any) -> Any:
        if isinstance(data, dict) and "field" not in data and len(data) == 1:
            field, value = next(iter(data.items()))
            return {"field": field, "value": value}
        return data


class Country(CamelModel):
    code: str
    name: str
    flag: str = ""
    region: str = ""
    is_origin_country: bool = False
    is_destination_country: bool = False
    is_active: bool = True
    display_order: int = 0


class Document(CamelModel):
    """A document the applicant must (or may) provide."""

    id: str
    name: str
    description: str = ""
    is_required: bool = True
    category: str = "personal"
    validity_period: str = ""
    format: str = ""
    condition: Condition | None = None
    is_personalized: bool = False


class Step(CamelModel):
    """One step in the application process, ordered by ``step_number``."""

    id: str
    step_number: int
    title: str
    description: str = ""
    action: str = ""
    evidence: str = ""
    estimated_time: str = ""
    condition: Condition | None = None
    is_personalized: bool = False


class Money(CamelModel):
    amount: float
    currency: str = "GBP"


class AdditionalFee(CamelModel):
    name: str
    amount: float
    currency: str = "GBP"
    description: str = ""
    is_optional: bool = False
    condition: Condition | None = None


class FeeSchedule(CamelModel):
    visa_fee: Money
    additional_fees: list[AdditionalFee] = Field(default_factory=list)


class ProcessingTime(CamelModel):
    min: int
    max: int
    unit: str = "days"
    note: str = ""

    @property
    def display(self) -> str:
        if self.min == self.max:
            return f"{self.min} {self.unit}"
        return f"{self.min}-{self.max} {self.unit}"


class CustomQuestion(CamelModel):
    """A catalog-declared personalization question."""

    id: str
    question: str
    type: str = "boolean"
    options: list[str] = Field(default_factory=list)
    impact: str = ""


class OfficialLink(CamelModel):
    title: str
    url: str
    description: str = ""
    category: str = "guidelines"


class VisaType(CamelModel):
    """A visa type for one origin/destination route."""

    name: str
    code: str
    category: VisaCategory
    origin_country: str
    destination_country: str
    description: str = ""
    overview: str = ""
    eligibility: list[str] = Field(default_factory=list)
    processing_time: ProcessingTime | None = None
    fees: FeeSchedule
    documents: list[Document] = Field(default_factory=list)
    steps: list[Step] = Field(default_factory=list)
    custom_questions: list[CustomQuestion] = Field(default_factory=list)
    official_links: list[OfficialLink] = Field(default_factory=list)
    common_mistakes: list[str] = Field(default_factory=list)
    status: str = "active"
    display_order: int = 0
    popularity: int = 0
    tags: list[str] = Field(default_factory=list)

    @property
    def id(self) -> str:
        return visa_type_id(self.origin_country, self.destination_country, self.code)

    @property
    def route_key(self) -> str:
        return f"{self.origin_country}-{self.destination_country}"

    def question(self, question_id: str) -> CustomQuestion | None:
        for q in self.custom_questions:
            if q.id == question_id:
                return q
        return None


def visa_type_id(origin: str, destination: str, code: str) -> str:
    """Canonical catalog id: ``ORIGIN-DESTINATION-CODE`` in upper case."""
    return f"{origin}-{destination}-{code}".upper()


class RouteSupport(CamelModel):
    """Whether an origin/destination pair is served by the catalog."""

    is_supported: bool
    origin: Country | None = None
    destination: Country | None = None
    visa_type_ids: list[str] = Field(default_factory=list)


class CountryStats(CamelModel):
    total_countries: int = 0
    active_countries: int = 0
    origin_countries: int = 0
    destination_countries: int = 0
    by_region: dict[str, int] = Field(default_factory=dict)


class VisaTypeStats(CamelModel):
    total_visa_types: int = 0
    active_visa_types: int = 0
    average_processing_days: float | None = None
    by_category: dict[str, int] = Field(default_factory=dict)
    by_route: dict[str, int] = Field(default_factory=dict)
