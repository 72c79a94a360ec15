"""Filters a visa type's document and step catalogs for one applicant."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any, TypeVar

from visapath.catalog.conditions import evaluate
from visapath.catalog.models import Document, Step

ItemT = TypeVar("ItemT", Document, Step)


def personalize(items: Sequence[ItemT], answers: Mapping[str, Any]) -> list[ItemT]:
    """Keep the items whose condition holds, preserving catalog order.

    Returned items are copies tagged with ``is_personalized`` (True when the
    item carried a condition). The input catalog is never mutated.
    """
    return [
        item.model_copy(update={"is_personalized": item.condition is not None}, deep=True)
        for item in items
        if evaluate(item.condition, answers)
    ]


def personalize_documents(
    documents: Sequence[Document], answers: Mapping[str, Any]
) -> list[Document]:
    return personalize(documents, answers)


def personalize_steps(steps: Sequence[Step], answers: Mapping[str, Any]) -> list[Step]:
    """Filter steps, then order them by ``step_number``."""
    return sorted(personalize(steps, answers), key=lambda s: s.step_number)


def group_by_category(documents: Sequence[Document]) -> dict[str, list[Document]]:
    grouped: dict[str, list[Document]] = {}
    for doc in documents:
        grouped.setdefault(doc.category, []).append(doc)
    return grouped
