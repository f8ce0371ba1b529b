"""Character resource ledger and advancement engine."""

__version__ = "0.1.0"
