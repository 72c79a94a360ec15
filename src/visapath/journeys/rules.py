"""Declarative rules coupling personalization answers to step completion."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from pydantic import BaseModel, Field

from visapath.catalog.conditions import evaluate
from visapath.catalog.models import Condition


class AutoCompletionRule(BaseModel):
    """When ``trigger`` holds, mark ``complete_steps`` done.

    ``timestamp`` names the JourneyTimestamps field stamped when the rule fires.
    """

    name: str
    trigger: Condition
    complete_steps: list[str] = Field(default_factory=list)
    timestamp: str | None = None

    def matches(self, answers: Mapping[str, Any]) -> bool:
        return evaluate(self.trigger, answers)


DEFAULT_RULES: tuple[AutoCompletionRule, ...] = (
    AutoCompletionRule(
        name="cas_received",
        trigger=Condition(field="hasCAS", value=True),
        complete_steps=["unconditional-offer", "cas"],
        timestamp="cas_auto_completed",
    ),
)


def matching_rules(
    rules: Sequence[AutoCompletionRule], answers: Mapping[str, Any]
) -> list[AutoCompletionRule]:
    return [rule for rule in rules if rule.matches(answers)]
