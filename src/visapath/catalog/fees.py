"""Deterministic visa fee estimation driven by personalization answers."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any

from pydantic import Field

from visapath.catalog.conditions import evaluate
from visapath.catalog.models import AdditionalFee, FeeSchedule
from visapath.core.types import CamelModel


class FeeLineItem(CamelModel):
    """A single line item in a fee estimate."""

    name: str
    amount: float
    description: str = ""


class FeeEstimate(CamelModel):
    """Fee estimate for one visa type and set of answers."""

    visa_type_id: str | None = None
    currency: str = "GBP"
    line_items: list[FeeLineItem] = Field(default_factory=list)
    total: float = 0.0
    computed_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def model_post_init(self, __context: Any) -> None:
        if self.total == 0.0 and self.line_items:
            self.total = round(sum(item.amount for item in self.line_items), 2)


def fee_applies(fee: AdditionalFee, answers: Mapping[str, Any]) -> bool:
    """A conditional fee applies iff its condition holds.

    An unconditional fee applies unless it is optional; optional extras such
    as priority processing must be selected through a condition.
    """
    if fee.condition is None:
        return not fee.is_optional
    return evaluate(fee.condition, answers)


def estimate_fees(
    fees: FeeSchedule,
    answers: Mapping[str, Any],
    visa_type_id: str | None = None,
) -> FeeEstimate:
    """Base visa fee plus every additional fee that applies to ``answers``."""
    items = [FeeLineItem(name="Visa fee", amount=fees.visa_fee.amount)]
    for fee in fees.additional_fees:
        if fee_applies(fee, answers):
            items.append(FeeLineItem(
                name=fee.name,
                amount=fee.amount,
                description=fee.description,
            ))

    return FeeEstimate(
        visa_type_id=visa_type_id,
        currency=fees.visa_fee.currency,
        line_items=items,
    )


def total_fee(fees: FeeSchedule, answers: Mapping[str, Any]) -> float:
    return estimate_fees(fees, answers).total
