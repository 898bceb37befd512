"""
Ledger transaction model: one row per balance movement
"""
from sqlalchemy import Column, DateTime, Integer, Numeric, String, Text
from sqlalchemy.sql import func
from leave_ledger.db.base import Base


class LedgerTransaction(Base):
    """Audit trail: approve deduct, edit adjust, cancel refund, manual adjust."""
    __tablename__ = "ledger_transactions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(64), nullable=False, index=True)
    request_id = Column(String(64), nullable=True, index=True)
    bucket = Column(String(10), nullable=False)  # annual | off
    delta = Column(Numeric(6, 2), nullable=False)  # + for credit, - for deduct
    action = Column(String(30), nullable=False)
    remarks = Column(Text, nullable=True)
    actor_id = Column(String(64), nullable=True)
    actor_name = Column(String(255), nullable=True)
    action_at = Column(DateTime(timezone=True), server_default=func.current_timestamp(), nullable=False)
