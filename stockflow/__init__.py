"""Stock ledger, reservations and order lifecycle service."""

__version__ = "0.1.0"
