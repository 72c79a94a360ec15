"""Visa catalog: reference data plus condition-driven personalization."""

from visapath.catalog.conditions import evaluate
from visapath.catalog.fees import FeeEstimate, estimate_fees, total_fee
from visapath.catalog.personalizer import personalize, personalize_documents, personalize_steps
from visapath.catalog.requirements import Requirements, build_requirements
from visapath.catalog.store import VisaCatalog

__all__ = [
    "FeeEstimate",
    "Requirements",
    "VisaCatalog",
    "build_requirements",
    "estimate_fees",
    "evaluate",
    "personalize",
    "personalize_documents",
    "personalize_steps",
    "total_fee",
]
