"""VisaPath: visa application guidance backend."""

__version__ = "0.1.0"
