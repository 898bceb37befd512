"""
Database models
"""
from leave_ledger.models.document import Document
from leave_ledger.models.ledger_transaction import LedgerTransaction

__all__ = [
    "Document",
    "LedgerTransaction",
]
