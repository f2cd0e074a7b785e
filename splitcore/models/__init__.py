"""SQLAlchemy models"""
from splitcore.models.split import (ActivityType, MemberAllocation,
                                    PaymentStatus, Split, SplitActivity,
                                    SplitKind, SplitMethod, SplitStatus)

__all__ = [
    "Split",
    "MemberAllocation",
    "SplitActivity",
    "SplitMethod",
    "SplitStatus",
    "PaymentStatus",
    "ActivityType",
    "SplitKind",
]
