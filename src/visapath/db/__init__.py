"""Database layer for VisaPath: SQLAlchemy 2.0 async."""

from __future__ import annotations

from visapath.db.base import Base
from visapath.db.engine import DatabaseManager

__all__ = ["Base", "DatabaseManager"]
