"""Completion metrics derived from step and checklist maps."""

from __future__ import annotations

import math
from collections.abc import Mapping

from visapath.journeys.models import ProgressMetrics


def completion_percentage(completed: int, total: int) -> int:
    """Percentage rounded half-up to an integer, 0 when ``total`` is 0."""
    if total <= 0:
        return 0
    pct = math.floor(100 * completed / total + 0.5)
    return max(0, min(100, pct))


def recompute(
    step_completion: Mapping[str, bool], checklist: Mapping[str, bool]
) -> ProgressMetrics:
    """Derive metrics from the cardinality of each map.

    The item universe is whatever keys the client has touched, not the
    catalog's step count.
    """
    total_steps = len(step_completion)
    completed_steps = sum(1 for done in step_completion.values() if done is True)
    total_items = len(checklist)
    completed_items = sum(1 for done in checklist.values() if done is True)

    return ProgressMetrics(
        total_steps=total_steps,
        completed_steps=completed_steps,
        total_checklist_items=total_items,
        completed_checklist_items=completed_items,
        completion_percentage=completion_percentage(
            completed_steps + completed_items, total_steps + total_items
        ),
    )
