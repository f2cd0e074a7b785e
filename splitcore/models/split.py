"""Split model"""
import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import (JSON, Boolean, CheckConstraint, Column, DateTime, Enum,
                        ForeignKey, Integer, Numeric, String, UniqueConstraint)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from splitcore.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SplitMethod(str, enum.Enum):
    """How a split's total is divided among participants"""
    EQUAL = "equal"
    AMOUNT = "amount"
    PERCENTAGE = "percentage"
    SHARES = "shares"


class SplitStatus(str, enum.Enum):
    """Lifecycle status of a split"""
    DRAFT = "draft"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PaymentStatus(str, enum.Enum):
    """Settlement status of one member allocation"""
    PENDING = "pending"
    PARTIAL = "partial"
    PAID = "paid"


class ActivityType(str, enum.Enum):
    """Kinds of entries in a split's activity log"""
    CREATED = "created"
    MODIFIED = "modified"
    ACTIVATED = "activated"
    PAYMENT_MADE = "payment_made"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class SplitKind(str, enum.Enum):
    """Top-level split or a subsplit of another expense"""
    SPLIT = "split"
    SUBSPLIT = "subsplit"


class Split(Base):
    """Split model for one shared expense and its allocation"""

    __tablename__ = "splits"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    group_id = Column(String(64), nullable=True, index=True)
    title = Column(String(200), nullable=False)
    description = Column(String(1000), nullable=True)
    split_type = Column(Enum(SplitKind), default=SplitKind.SPLIT, nullable=False)
    base_amount = Column(Numeric(12, 2), nullable=False)
    tax_percentage = Column(Numeric(7, 4), default=0, nullable=False)
    # Exact for a 2 place base and 4 place tax rate; only owed amounts are rounded
    tax_amount = Column(Numeric(20, 8), default=0, nullable=False)
    total_amount = Column(Numeric(20, 8), default=0, nullable=False)
    split_method = Column(Enum(SplitMethod), default=SplitMethod.EQUAL, nullable=False)
    split_status = Column(Enum(SplitStatus), default=SplitStatus.DRAFT, nullable=False, index=True)
    created_by_id = Column(String(64), nullable=True, index=True)
    created_by_name = Column(String(255), nullable=True)
    settlement_date = Column(DateTime(timezone=True), nullable=True)
    settlement_notes = Column(String(500), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    version = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    __table_args__ = (
        CheckConstraint('base_amount >= 0', name='check_base_amount_non_negative'),
        CheckConstraint('tax_percentage >= 0 AND tax_percentage <= 100', name='check_tax_percentage_range'),
    )

    __mapper_args__ = {"version_id_col": version}

    # Relationships
    allocations = relationship(
        "MemberAllocation",
        back_populates="split",
        cascade="all, delete-orphan",
        order_by="MemberAllocation.position",
    )
    activities = relationship(
        "SplitActivity",
        back_populates="split",
        cascade="all, delete-orphan",
        order_by="SplitActivity.created_at",
    )

    def __repr__(self) -> str:
        return f"<Split(id={self.id}, title={self.title}, total_amount={self.total_amount}, status={self.split_status})>"


class MemberAllocation(Base):
    """One member's stake in a split"""

    __tablename__ = "member_allocations"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    split_id = Column(UUID(as_uuid=True), ForeignKey("splits.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)
    member_id = Column(String(64), nullable=False, index=True)
    member_name = Column(String(255), nullable=False)
    is_participating = Column(Boolean, default=True, nullable=False)
    split_amount = Column(Numeric(12, 2), nullable=True)
    split_percentage = Column(Numeric(7, 4), nullable=True)
    split_shares = Column(Numeric(12, 4), nullable=True)
    owed_amount = Column(Numeric(12, 2), default=0, nullable=False)
    payment_status = Column(Enum(PaymentStatus), default=PaymentStatus.PENDING, nullable=False)
    paid_amount = Column(Numeric(12, 2), default=0, nullable=False)
    paid_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        UniqueConstraint('split_id', 'member_id', name='uq_split_member'),
        CheckConstraint('owed_amount >= 0', name='check_owed_amount_non_negative'),
        CheckConstraint('paid_amount >= 0', name='check_paid_amount_non_negative'),
        CheckConstraint(
            'split_percentage IS NULL OR (split_percentage >= 0 AND split_percentage <= 100)',
            name='check_split_percentage_range'
        ),
    )

    split = relationship("Split", back_populates="allocations")

    def __repr__(self) -> str:
        return f"<MemberAllocation(split_id={self.split_id}, member_id={self.member_id}, owed={self.owed_amount}, paid={self.paid_amount})>"


class SplitActivity(Base):
    """Append-only activity log entry of a split"""

    __tablename__ = "split_activities"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    split_id = Column(UUID(as_uuid=True), ForeignKey("splits.id", ondelete="CASCADE"), nullable=False, index=True)
    activity_type = Column(Enum(ActivityType), nullable=False)
    description = Column(String(500), nullable=False)
    performed_by_id = Column(String(64), nullable=True)
    performed_by_name = Column(String(255), nullable=True)
    activity_data = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    split = relationship("Split", back_populates="activities")

    def __repr__(self) -> str:
        return f"<SplitActivity(split_id={self.split_id}, type={self.activity_type})>"
