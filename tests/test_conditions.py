"""Tests for the condition evaluator."""

from __future__ import annotations

import pytest

from visapath.catalog.conditions import evaluate
from visapath.catalog.models import Condition


def cond(field: str, value) -> Condition:
    return Condition(field=field, value=value)


class TestTruthTable:
    def test_true_condition_present(self):
        assert evaluate(cond("hasCAS", True), {"hasCAS": True}) is True

    def test_true_condition_absent(self):
        assert evaluate(cond("hasCAS", True), {}) is False

    def test_string_match(self):
        assert evaluate(cond("studyLocation", "london"), {"studyLocation": "london"}) is True

    def test_no_condition_always_holds(self):
        assert evaluate(None, {}) is True

    def test_string_mismatch(self):
        assert evaluate(cond("studyLocation", "london"), {"studyLocation": "outside_london"}) is False

    def test_string_missing(self):
        assert evaluate(cond("studyLocation", "london"), {}) is False


class TestTruthiness:
    @pytest.mark.parametrize("answer", [True, 1, "yes", ["x"]])
    def test_truthy_answers_satisfy_true(self, answer):
        assert evaluate(cond("flag", True), {"flag": answer})

    @pytest.mark.parametrize("answer", [False, 0, "", None, []])
    def test_falsy_answers_fail_true(self, answer):
        assert not evaluate(cond("flag", True), {"flag": answer})

    def test_false_condition_holds_when_absent(self):
        assert evaluate(cond("previousVisaRefusal", False), {})

    def test_false_condition_holds_when_falsy(self):
        assert evaluate(cond("previousVisaRefusal", False), {"previousVisaRefusal": False})

    def test_false_condition_fails_when_truthy(self):
        assert not evaluate(cond("previousVisaRefusal", False), {"previousVisaRefusal": True})


class TestStrictEquality:
    def test_string_never_matches_number(self):
        assert not evaluate(cond("level", 1), {"level": "1"})

    def test_bool_never_matches_int(self):
        assert not evaluate(cond("count", 1), {"count": True})

    def test_int_matches_equal_float(self):
        assert evaluate(cond("years", 2), {"years": 2.0})

    def test_unrelated_answers_ignored(self):
        assert evaluate(cond("hasATAS", True), {"hasATAS": True, "hasCAS": False})


class TestConditionParsing:
    def test_shorthand_mapping(self):
        condition = Condition.model_validate({"hasCAS": True})
        assert condition.field == "hasCAS"
        assert condition.value is True

    def test_explicit_mapping(self):
        condition = Condition.model_validate({"field": "studyLocation", "value": "london"})
        assert condition.field == "studyLocation"
        assert condition.value == "london"

    def test_value_defaults_to_true(self):
        assert Condition.model_validate({"field": "hasATAS"}).value is True
