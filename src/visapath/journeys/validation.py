"""Boundary validation for personalization answers and journey inputs.

Known answers are typed by ``PersonalizationUpdate``. Extra keys are the
catalog's custom questions: when the visa type declares the question, the
answer is checked against the question type; otherwise it passes through.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from visapath.catalog.models import VisaType
from visapath.core.errors import ValidationError

CAS_DATE_FORMAT = "%d/%m/%Y"
_CAS_DATE_PATTERN = re.compile(r"\d{2}/\d{2}/\d{4}")
_EMAIL_PATTERN = re.compile(r"[a-zA-Z0-9._%+\-]+@[a-zA-Z0-9.\-]+\.[a-zA-Z]{2,}")
_COUNTRY_CODE_PATTERN = re.compile(r"[A-Za-z]{2}")

# Registry of answer validators keyed by custom question type:
# name -> callable(value, options) -> error message or None.
VALIDATORS: dict[str, Any] = {}


def register(name: str):
    """Decorator to register an answer validator."""
    def decorator(fn):
        VALIDATORS[name] = fn
        return fn
    return decorator


def is_cas_date(value: str) -> bool:
    """True for a real calendar date written as DD/MM/YYYY."""
    if not _CAS_DATE_PATTERN.fullmatch(value):
        return False
    try:
        datetime.strptime(value, CAS_DATE_FORMAT)
    except ValueError:
        return False
    return True


@register("boolean")
def validate_boolean(value: Any, **_kwargs: Any) -> str | None:
    if not isinstance(value, bool):
        return "must be true or false"
    return None


@register("date")
def validate_date(value: Any, **_kwargs: Any) -> str | None:
    if value in (None, ""):
        return None
    if not isinstance(value, str) or not is_cas_date(value):
        return "must be a date in DD/MM/YYYY format"
    return None


@register("select")
def validate_select(value: Any, options: list[str] | None = None, **_kwargs: Any) -> str | None:
    if value in (None, ""):
        return None
    if options and value not in options:
        return f"must be one of {options}"
    return None


@register("text")
def validate_text(value: Any, **_kwargs: Any) -> str | None:
    if value is not None and not isinstance(value, str):
        return "must be text"
    return None


class PersonalizationUpdate(BaseModel):
    """Typed view of the well-known personalization answers.

    Field aliases are the answer keys the catalog conditions refer to.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    has_cas: bool | None = Field(default=None, alias="hasCAS")
    cas_date: str | None = Field(default=None, alias="casDate")
    has_atas: bool | None = Field(default=None, alias="hasATAS")
    requires_tb_test: bool | None = Field(default=None, alias="requiresTBTest")
    study_location: Literal["london", "outside_london", ""] | None = Field(
        default=None, alias="studyLocation"
    )
    course_level: Literal["undergraduate", "postgraduate", "phd", "other", ""] | None = Field(
        default=None, alias="courseLevel"
    )
    has_dependent: bool | None = Field(default=None, alias="hasDependent")
    financial_situation: Literal["fully_funded", "partial_funding", "self_funded", ""] | None = (
        Field(default=None, alias="financialSituation")
    )
    previous_visa_refusal: bool | None = Field(default=None, alias="previousVisaRefusal")
    special_circumstances: list[
        Literal["medical_condition", "criminal_record", "immigration_history", "name_change", "other"]
    ] | None = Field(default=None, alias="specialCircumstances")

    @field_validator("cas_date")
    @classmethod
    def _check_cas_date(cls, value: str | None) -> str | None:
        if value and not is_cas_date(value):
            raise ValueError("CAS date must be in DD/MM/YYYY format")
        return value


def parse_personalization(
    raw: Mapping[str, Any], visa_type: VisaType | None = None
) -> dict[str, Any]:
    """Validate a partial personalization update.

    Returns only the keys the caller sent, keyed by answer id.

    Raises:
        ValidationError: If a known answer or a declared custom question is malformed.
    """
    try:
        update = PersonalizationUpdate.model_validate(dict(raw))
    except PydanticValidationError as exc:
        raise ValidationError(_format_errors(exc)) from exc

    answers = update.model_dump(by_alias=True, exclude_unset=True)

    if visa_type is not None:
        errors: list[str] = []
        for key in (update.model_extra or {}):
            question = visa_type.question(key)
            if question is None:
                continue
            validator = VALIDATORS.get(question.type)
            if validator is None:
                continue
            message = validator(answers[key], options=question.options)
            if message:
                errors.append(f"{key} {message}")
        if errors:
            raise ValidationError("Invalid personalization data: " + "; ".join(errors))

    return answers


def _format_errors(exc: PydanticValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err["loc"])
        msg = err["msg"].removeprefix("Value error, ")
        parts.append(f"{loc}: {msg}" if loc else msg)
    return "Invalid personalization data: " + "; ".join(parts)


def normalize_email(email: str | None) -> str:
    """Lower-case and strip an email address.

    Raises:
        ValidationError: If the address is empty or malformed.
    """
    if email is None or not email.strip():
        raise ValidationError("Email is required")
    cleaned = email.strip().lower()
    if not _EMAIL_PATTERN.fullmatch(cleaned):
        raise ValidationError(f"Invalid email address: {email!r}")
    return cleaned


def normalize_country_code(code: str | None, label: str = "Country") -> str:
    if not code or not _COUNTRY_CODE_PATTERN.fullmatch(code.strip()):
        raise ValidationError(f"{label} must be a 2-letter country code")
    return code.strip().upper()
