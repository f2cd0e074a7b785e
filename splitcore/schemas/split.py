"""Split schemas"""

from datetime import datetime
from decimal import Decimal
from typing import Annotated, Any, Dict, List, Literal, Optional, Union
from uuid import UUID, uuid4

from pydantic import BaseModel, Field, field_validator, model_validator

from splitcore.models.split import (ActivityType, PaymentStatus, SplitKind,
                                    SplitMethod, SplitStatus, utcnow)
from splitcore.schemas.common import PaginationMeta
from splitcore.utils.decimal_utils import (round_decimal, sum_decimals,
                                         to_decimal)


def _convert_to_decimal(v):
    """Convert numeric values to Decimal"""
    if v is None:
        return v
    return to_decimal(v)


def tag_split_values(data: Any) -> Any:
    """
    Tag untagged split values with the split's method.

    Legacy payloads carry ``{"amount", "percentage", "shares"}`` on every
    member; the split method decides which one is meant. Values that already
    carry a ``method`` are left alone.
    """
    if not isinstance(data, dict):
        return data

    method = data.get("split_method")
    allocations = data.get("allocations")
    if method is None or not allocations:
        return data

    method = SplitMethod(method).value
    tagged = []
    for allocation in allocations:
        if isinstance(allocation, dict):
            value = allocation.get("split_value")
            if value is None:
                allocation = {**allocation, "split_value": {"method": method}}
            elif isinstance(value, dict) and "method" not in value:
                allocation = {**allocation, "split_value": {**value, "method": method}}
        tagged.append(allocation)

    return {**data, "allocations": tagged}


class Actor(BaseModel):
    """Member performing an operation"""

    member_id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)


class EqualSplitValue(BaseModel):
    """Equal split carries no per-member input"""

    method: Literal["equal"] = "equal"


class AmountSplitValue(BaseModel):
    """Fixed amount owed by the member"""

    method: Literal["amount"] = "amount"
    amount: Optional[Decimal] = Field(default=None, ge=0)

    @field_validator("amount", mode="before")
    @classmethod
    def convert_amount(cls, v):
        """Convert amount to Decimal"""
        return _convert_to_decimal(v)


class PercentageSplitValue(BaseModel):
    """Member's percentage of the total"""

    method: Literal["percentage"] = "percentage"
    percentage: Optional[Decimal] = Field(default=None, ge=0, le=100)

    @field_validator("percentage", mode="before")
    @classmethod
    def convert_percentage(cls, v):
        """Convert percentage to Decimal"""
        return _convert_to_decimal(v)


class SharesSplitValue(BaseModel):
    """Member's number of shares; absent or zero counts as one share"""

    method: Literal["shares"] = "shares"
    shares: Optional[Decimal] = Field(default=None, ge=0)

    @field_validator("shares", mode="before")
    @classmethod
    def convert_shares(cls, v):
        """Convert shares to Decimal"""
        return _convert_to_decimal(v)


SplitValue = Annotated[
    Union[EqualSplitValue, AmountSplitValue, PercentageSplitValue, SharesSplitValue],
    Field(discriminator="method"),
]


class AllocationInput(BaseModel):
    """Input schema for a member's split value"""

    member_id: str = Field(..., min_length=1)
    member_name: str = Field(..., min_length=1)
    is_participating: bool = True
    split_value: SplitValue


class AllocationState(AllocationInput):
    """Member allocation with computed and settlement fields"""

    owed_amount: Decimal = Decimal("0")
    payment_status: PaymentStatus = PaymentStatus.PENDING
    paid_amount: Decimal = Field(default=Decimal("0"), ge=0)
    paid_at: Optional[datetime] = None

    @field_validator("owed_amount", "paid_amount", mode="before")
    @classmethod
    def convert_amounts(cls, v):
        """Convert amounts to Decimal"""
        return _convert_to_decimal(v)

    @property
    def remaining_amount(self) -> Decimal:
        return self.owed_amount - self.paid_amount


class ActivityEntry(BaseModel):
    """Activity log entry"""

    activity_type: ActivityType
    description: str
    performed_by: Optional[Actor] = None
    activity_data: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=utcnow)


class SplitBase(BaseModel):
    """Base split schema"""

    group_id: Optional[str] = None
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, max_length=1000)
    split_type: SplitKind = SplitKind.SPLIT
    # Range checks happen in the allocation engine so they surface as InvalidAmount
    base_amount: Decimal
    tax_percentage: Decimal = Decimal("0")
    split_method: SplitMethod = SplitMethod.EQUAL

    @model_validator(mode="before")
    @classmethod
    def tag_legacy_split_values(cls, data: Any) -> Any:
        return tag_split_values(data)

    @field_validator("base_amount", "tax_percentage", mode="before")
    @classmethod
    def convert_amounts(cls, v):
        """Convert base amount and tax percentage to Decimal"""
        return _convert_to_decimal(v)

    @model_validator(mode="after")
    def check_allocations(self):
        """Members are unique and every split value is of the split's method"""
        allocations = getattr(self, "allocations", [])
        member_ids = [allocation.member_id for allocation in allocations]
        if len(member_ids) != len(set(member_ids)):
            raise ValueError("Each member can appear only once in a split")

        for allocation in allocations:
            if allocation.split_value.method != self.split_method.value:
                raise ValueError(
                    f"Split value for member {allocation.member_id} is "
                    f"'{allocation.split_value.method}', expected '{self.split_method.value}'"
                )
        return self


class SplitDraft(SplitBase):
    """Schema for creating a split"""

    allocations: List[AllocationInput] = Field(default_factory=list)
    split_status: SplitStatus = SplitStatus.ACTIVE

    @field_validator("split_status")
    @classmethod
    def validate_initial_status(cls, v: SplitStatus) -> SplitStatus:
        """A split starts as draft or active"""
        if v not in (SplitStatus.DRAFT, SplitStatus.ACTIVE):
            raise ValueError(f"A split cannot be created as {v.value}")
        return v


class SplitUpdate(BaseModel):
    """
    Schema for updating a split.

    Untagged split values are tagged with ``split_method`` from the same
    payload, so a legacy-shaped ``allocations`` list needs ``split_method``
    alongside it.
    """

    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, max_length=1000)
    base_amount: Optional[Decimal] = None
    tax_percentage: Optional[Decimal] = None
    split_method: Optional[SplitMethod] = None
    allocations: Optional[List[AllocationInput]] = None
    settlement_notes: Optional[str] = Field(default=None, max_length=500)

    @model_validator(mode="before")
    @classmethod
    def tag_legacy_split_values(cls, data: Any) -> Any:
        return tag_split_values(data)

    @field_validator("base_amount", "tax_percentage", mode="before")
    @classmethod
    def convert_amounts(cls, v):
        """Convert base amount and tax percentage to Decimal"""
        return _convert_to_decimal(v)


class SplitState(SplitBase):
    """Split aggregate: inputs, computed allocation, settlement and history"""

    id: UUID = Field(default_factory=uuid4)
    tax_amount: Decimal = Decimal("0")
    total_amount: Decimal = Decimal("0")
    split_status: SplitStatus = SplitStatus.DRAFT
    allocations: List[AllocationState] = Field(default_factory=list)
    activities: List[ActivityEntry] = Field(default_factory=list)
    created_by: Optional[Actor] = None
    settlement_date: Optional[datetime] = None
    settlement_notes: Optional[str] = Field(default=None, max_length=500)
    is_active: bool = True
    version: int = 0
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @field_validator("tax_amount", "total_amount", mode="before")
    @classmethod
    def convert_totals(cls, v):
        """Convert computed totals to Decimal"""
        return _convert_to_decimal(v)

    @property
    def is_mutable(self) -> bool:
        return self.split_status in (SplitStatus.DRAFT, SplitStatus.ACTIVE)

    @property
    def participating_allocations(self) -> List[AllocationState]:
        return [allocation for allocation in self.allocations if allocation.is_participating]

    @property
    def participating_members_count(self) -> int:
        return len(self.participating_allocations)

    @property
    def total_owed_amount(self) -> Decimal:
        return sum_decimals([a.owed_amount for a in self.participating_allocations])

    @property
    def total_paid_amount(self) -> Decimal:
        return sum_decimals([a.paid_amount for a in self.allocations])

    @property
    def completion_percentage(self) -> int:
        """Paid share of the owed total as a whole percentage"""
        total_owed = self.total_owed_amount
        if total_owed <= 0:
            return 0
        return int(round_decimal(self.total_paid_amount / total_owed * 100, 0))

    def get_allocation(self, member_id: str) -> Optional[AllocationState]:
        for allocation in self.allocations:
            if allocation.member_id == member_id:
                return allocation
        return None


class SplitListResponse(BaseModel):
    """Response schema for a page of splits"""

    items: List[SplitState]
    pagination: PaginationMeta
