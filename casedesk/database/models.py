"""
SQLAlchemy models for casedesk.

Every shared, concurrently edited entity carries an integer ``version``
column that starts at 0 and is bumped exactly once per committed write.
Writes to those entities go through the version ledger, never through
plain attribute assignment.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Uuid,
)
from sqlalchemy.orm import Mapped, relationship

from casedesk.database.base import Base


def generate_uuid() -> uuid.UUID:
    """
    Generate a new UUID for use as default.

    Returns:
        A new UUID4 instance
    """
    return uuid.uuid4()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    """Staff member acting on records (lawyer, assistant, sale, admin)."""

    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=generate_uuid)
    name = Column(String(200), nullable=False)
    email = Column(String(320), nullable=True, unique=True)
    role = Column(String(50), nullable=False, default="lawyer")
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)


class Case(Base):
    """A case file shared between the staff assigned to it."""

    __tablename__ = "cases"

    id = Column(Uuid, primary_key=True, default=generate_uuid)
    case_type = Column(String(50), nullable=False)  # work_injury, personal_injury, other
    case_level = Column(String(10), nullable=False)  # A, B, C
    status = Column(String(20), nullable=False, default="open", index=True)  # open, closed, void
    closed_reason = Column(Text, nullable=True)
    void_reason = Column(Text, nullable=True)

    department = Column(String(100), nullable=True)
    province = Column(String(100), nullable=True)
    city = Column(String(100), nullable=True)
    data_source = Column(String(200), nullable=True)

    # Amounts are kept as decimal strings
    target_amount = Column(String(50), nullable=True)
    agency_fee_estimate = Column(String(50), nullable=True)
    sales_commission = Column(String(50), nullable=True)
    handling_fee = Column(String(50), nullable=True)

    has_contract = Column(Boolean, nullable=True)
    contract_date = Column(Date, nullable=True)
    clue_date = Column(Date, nullable=True)
    entry_date = Column(Date, nullable=True)
    next_follow_up_at = Column(DateTime(timezone=True), nullable=True)

    assigned_sale_id = Column(Uuid, ForeignKey("users.id"), nullable=True)
    assigned_lawyer_id = Column(Uuid, ForeignKey("users.id"), nullable=True, index=True)
    assigned_assistant_id = Column(Uuid, ForeignKey("users.id"), nullable=True)

    remark = Column(Text, nullable=True)
    insurance_types = Column(JSON, nullable=True)

    # Nested collections edited as a whole from their own form sections
    participants = Column(JSON, nullable=True)
    hearings = Column(JSON, nullable=True)
    collections = Column(JSON, nullable=True)
    timeline = Column(JSON, nullable=True)

    # Optimistic concurrency
    version = Column(Integer, default=0, nullable=False)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    created_by_id = Column(Uuid, ForeignKey("users.id"), nullable=True)
    updated_by_id = Column(Uuid, ForeignKey("users.id"), nullable=True)
    updated_by: Mapped[Optional["User"]] = relationship(foreign_keys=[updated_by_id])


class Client(Base):
    """A client (person or organization) that cases are opened for."""

    __tablename__ = "clients"

    id = Column(Uuid, primary_key=True, default=generate_uuid)
    name = Column(String(300), nullable=False, index=True)
    entity_type = Column(String(20), nullable=False, default="personal")  # personal, organization
    id_number = Column(String(100), nullable=True)
    phone = Column(String(50), nullable=True)
    address = Column(Text, nullable=True)
    remark = Column(Text, nullable=True)

    version = Column(Integer, default=0, nullable=False)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_by_id = Column(Uuid, ForeignKey("users.id"), nullable=True)
    updated_by: Mapped[Optional["User"]] = relationship(foreign_keys=[updated_by_id])


class ChangeLog(Base):
    """What changed in one committed write of a versioned entity."""

    __tablename__ = "change_logs"

    id = Column(Uuid, primary_key=True, default=generate_uuid)
    entity_type = Column(String(50), nullable=False)
    entity_id = Column(Uuid, nullable=False)
    version = Column(Integer, nullable=False)
    action = Column(String(20), nullable=False)  # create, update, merge
    actor_id = Column(Uuid, ForeignKey("users.id"), nullable=True)
    actor_name = Column(String(200), nullable=True)
    actor_role = Column(String(50), nullable=True)
    # [{"field", "label", "previous_value", "current_value"}]
    changes = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    __table_args__ = (
        Index("ix_change_logs_entity", "entity_type", "entity_id", "version"),
    )
