"""Tests for fee estimation."""

from __future__ import annotations

from visapath.catalog.fees import estimate_fees, fee_applies, total_fee
from visapath.catalog.models import AdditionalFee, Condition, FeeSchedule, Money


def _schedule(*fees: AdditionalFee) -> FeeSchedule:
    return FeeSchedule(visa_fee=Money(amount=524), additional_fees=list(fees))


IHS = AdditionalFee(name="IHS", amount=776, condition=Condition(field="hasCAS", value=True))
PRIORITY = AdditionalFee(
    name="Priority", amount=500, is_optional=True,
    condition=Condition(field="priorityService", value=True),
)


def test_conditional_fees():
    assert total_fee(_schedule(IHS, PRIORITY), {"hasCAS": True}) == 1300


def test_optional_fee_selected_by_condition():
    assert total_fee(_schedule(IHS, PRIORITY), {"hasCAS": True, "priorityService": True}) == 1800


def test_base_fee_only():
    assert total_fee(_schedule(IHS, PRIORITY), {}) == 524


def test_unconditional_fee_counts():
    brp = AdditionalFee(name="BRP", amount=19)
    assert fee_applies(brp, {})
    assert total_fee(_schedule(brp), {}) == 543


def test_unconditional_optional_fee_excluded():
    extra = AdditionalFee(name="Courier", amount=30, is_optional=True)
    assert not fee_applies(extra, {})


def test_estimate_line_items():
    estimate = estimate_fees(_schedule(IHS, PRIORITY), {"hasCAS": True}, "IN-GB-STUDENT")
    assert [item.name for item in estimate.line_items] == ["Visa fee", "IHS"]
    assert estimate.total == 1300
    assert estimate.currency == "GBP"
    assert estimate.visa_type_id == "IN-GB-STUDENT"
