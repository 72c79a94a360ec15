"""Evaluation of single-clause conditions against personalization answers."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from visapath.catalog.models import Condition

_MISSING = object()


def evaluate(condition: Condition | None, answers: Mapping[str, Any]) -> bool:
    """Return True if ``condition`` holds for ``answers``.

    - No condition: always True.
    - ``value`` True/False: the answer's truthiness must match.
    - Any other ``value``: the answer must be present and strictly equal
      (``1`` never matches ``True`` and ``"1"`` never matches ``1``).

    Missing answers are treated as absent, never as an error.
    """
    if condition is None:
        return True

    actual = answers.get(condition.field, _MISSING)
    expected = condition.value

    if expected is True:
        return actual is not _MISSING and bool(actual)
    if expected is False:
        return actual is _MISSING or not bool(actual)

    if actual is _MISSING:
        return False
    if isinstance(actual, bool) != isinstance(expected, bool):
        return False
    if actual != expected:
        return False
    return type(actual) is type(expected) or _both_numeric(actual, expected)


def _both_numeric(a: Any, b: Any) -> bool:
    return isinstance(a, (int, float)) and isinstance(b, (int, float))
