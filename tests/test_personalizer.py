"""Tests for document/step personalization and requirements."""

from __future__ import annotations

from visapath.catalog.models import Condition, Document, Step
from visapath.catalog.personalizer import (
    group_by_category,
    personalize,
    personalize_documents,
    personalize_steps,
)
from visapath.catalog.requirements import build_requirements

DOCUMENTS = [
    Document(id="passport", name="Passport", category="identity"),
    Document(
        id="atas", name="ATAS Certificate", category="academic", is_required=False,
        condition=Condition(field="hasATAS", value=True),
    ),
    Document(id="cas", name="CAS", category="academic"),
    Document(
        id="tb", name="TB Certificate", category="medical",
        condition=Condition(field="requiresTBTest", value=True),
    ),
]

STEPS = [
    Step(id="apply", step_number=3, title="Apply"),
    Step(id="offer", step_number=1, title="Offer"),
    Step(
        id="atas", step_number=2, title="ATAS",
        condition=Condition(field="hasATAS", value=True),
    ),
]


def test_unconditional_items_always_included():
    result = personalize_documents(DOCUMENTS, {})
    assert [d.id for d in result] == ["passport", "cas"]
    assert all(not d.is_personalized for d in result)


def test_conditional_items_included_and_tagged():
    result = personalize_documents(DOCUMENTS, {"hasATAS": True})
    assert [d.id for d in result] == ["passport", "atas", "cas"]
    tagged = {d.id: d.is_personalized for d in result}
    assert tagged == {"passport": False, "atas": True, "cas": False}


def test_document_order_follows_catalog():
    result = personalize_documents(DOCUMENTS, {"hasATAS": True, "requiresTBTest": True})
    assert [d.id for d in result] == ["passport", "atas", "cas", "tb"]


def test_steps_sorted_by_step_number():
    result = personalize_steps(STEPS, {"hasATAS": True})
    assert [s.id for s in result] == ["offer", "atas", "apply"]


def test_deterministic_and_idempotent():
    answers = {"hasATAS": True}
    first = personalize(DOCUMENTS, answers)
    second = personalize(DOCUMENTS, answers)
    assert first == second


def test_catalog_not_mutated():
    personalize(DOCUMENTS, {"hasATAS": True})
    assert all(not d.is_personalized for d in DOCUMENTS)


def test_group_by_category():
    grouped = group_by_category(personalize_documents(DOCUMENTS, {"hasATAS": True}))
    assert list(grouped) == ["identity", "academic"]
    assert [d.id for d in grouped["academic"]] == ["atas", "cas"]


def test_build_requirements(catalog):
    visa_type = catalog.get_visa_type("IN-GB-STUDENT")
    requirements = build_requirements(visa_type, {"hasATAS": True, "priorityService": True})

    doc_ids = [d.id for d in requirements.documents]
    assert "atas-certificate" in doc_ids
    assert "tb-certificate" not in doc_ids
    assert [s.step_number for s in requirements.steps] == sorted(
        s.step_number for s in requirements.steps
    )
    assert "atas" in [s.id for s in requirements.steps]
    assert requirements.fee_estimate.total == 524 + 776 + 500 + 19
    assert requirements.personalized is True


def test_build_requirements_without_answers(catalog):
    visa_type = catalog.get_visa_type("IN-GB-STUDENT")
    requirements = build_requirements(visa_type, {})
    assert requirements.personalized is False
    assert all(not d.is_personalized for d in requirements.documents)
    assert requirements.fee_estimate.total == 1319
