"""Material stock ledger service."""

__version__ = "1.0.0"
