"""
Document model: one row per JSON collection
"""
from sqlalchemy import Column, DateTime, Integer, String, JSON
from sqlalchemy.sql import func
from leave_ledger.db.base import Base


class Document(Base):
    """
    A whole JSON collection (leave requests, users, holidays, ...) stored under
    a key. ``version`` is bumped on every write and checked before writing.
    """
    __tablename__ = "documents"

    key = Column(String(64), primary_key=True)
    body = Column(JSON, nullable=False)
    version = Column(Integer, nullable=False, default=0)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.current_timestamp(),
        onupdate=func.current_timestamp(),
        nullable=False,
    )
