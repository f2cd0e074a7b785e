"""Settlement state machine"""
import logging
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from splitcore.config import get_settings
from splitcore.core.exceptions import (InvalidAmountError,
                                       InvalidPaymentAmountError,
                                       InvalidStatusTransitionError,
                                       MemberNotFoundError,
                                       SplitNotMutableError)
from splitcore.models.split import (ActivityType, PaymentStatus, SplitStatus,
                                    utcnow)
from splitcore.schemas.split import ActivityEntry, Actor, SplitState
from splitcore.utils.decimal_utils import exceeds_precision, to_decimal

logger = logging.getLogger(__name__)


class SettlementService:
    """Applies payments and status transitions to a split"""

    @staticmethod
    def derive_payment_status(paid_amount: Decimal, owed_amount: Decimal) -> PaymentStatus:
        if paid_amount >= owed_amount and paid_amount > 0:
            return PaymentStatus.PAID
        if paid_amount > 0:
            return PaymentStatus.PARTIAL
        return PaymentStatus.PENDING

    @staticmethod
    def ensure_mutable(split: SplitState) -> None:
        """
        Raises:
            SplitNotMutableError: If the split is completed or cancelled
        """
        if not split.is_mutable:
            raise SplitNotMutableError(split.split_status.value)

    @staticmethod
    def parse_payment_amount(amount: Any, remaining_amount: Decimal) -> Decimal:
        """
        Convert a payment amount and check it against the remaining balance.

        Args:
            amount: Raw payment amount (Decimal, int, float or str)
            remaining_amount: Member's outstanding balance

        Returns:
            Payment amount as Decimal

        Raises:
            InvalidPaymentAmountError: If amount is not a finite number, is not
                positive, exceeds the remaining balance or has more decimal
                places than amounts are kept with
        """
        try:
            value = to_decimal(amount)
        except (InvalidOperation, ValueError, TypeError) as e:
            raise InvalidPaymentAmountError(amount, remaining_amount) from e

        if value is None or not value.is_finite():
            raise InvalidPaymentAmountError(amount, remaining_amount)
        if value <= 0 or value > remaining_amount:
            raise InvalidPaymentAmountError(value, remaining_amount)
        if exceeds_precision(value, get_settings().amount_precision):
            raise InvalidPaymentAmountError(value, remaining_amount)
        return value

    @staticmethod
    def refresh_payment_statuses(split: SplitState) -> None:
        """
        Re-derive every member's payment status after owed amounts changed.

        Mutates the given split.

        Raises:
            InvalidAmountError: If a member has already paid more than they now owe
        """
        for allocation in split.allocations:
            if allocation.paid_amount > allocation.owed_amount:
                raise InvalidAmountError(
                    f"Member {allocation.member_id} has already paid {allocation.paid_amount}, "
                    f"more than the new owed amount {allocation.owed_amount}",
                    details={
                        "member_id": allocation.member_id,
                        "paid_amount": str(allocation.paid_amount),
                        "owed_amount": str(allocation.owed_amount),
                    }
                )
            allocation.payment_status = SettlementService.derive_payment_status(
                allocation.paid_amount, allocation.owed_amount
            )

    @staticmethod
    def apply_payment(
        split: SplitState,
        member_id: str,
        amount: Any,
        actor: Actor,
        paid_at: Optional[datetime] = None
    ) -> SplitState:
        """
        Record a payment against one member's allocation.

        Args:
            split: Split being settled
            member_id: Member whose allocation is paid
            amount: Payment amount
            actor: Member recording the payment
            paid_at: Payment time (defaults to now)

        Returns:
            New SplitState with the payment applied and, when it was the last
            outstanding payment of an active split, marked completed

        Raises:
            SplitNotMutableError: If the split is completed or cancelled
            MemberNotFoundError: If member has no allocation in the split
            InvalidPaymentAmountError: If amount is not a positive finite number
                within the remaining balance and the amount precision
        """
        SettlementService.ensure_mutable(split)
        now = paid_at or utcnow()

        updated = split.model_copy(deep=True)
        allocation = updated.get_allocation(member_id)
        if allocation is None:
            raise MemberNotFoundError(member_id)

        remaining_amount = allocation.remaining_amount
        try:
            amount = SettlementService.parse_payment_amount(amount, remaining_amount)
        except InvalidPaymentAmountError:
            logger.warning(
                "Rejected payment of %s for member %s on split %s (remaining %s)",
                amount, member_id, split.id, remaining_amount
            )
            raise

        allocation.paid_amount += amount
        allocation.paid_at = now
        allocation.payment_status = SettlementService.derive_payment_status(
            allocation.paid_amount, allocation.owed_amount
        )

        updated.activities.append(ActivityEntry(
            activity_type=ActivityType.PAYMENT_MADE,
            description=f"Payment of {amount} made by {actor.name}",
            performed_by=actor,
            activity_data={"amount": str(amount), "member_id": member_id},
            created_at=now,
        ))
        updated.updated_at = now

        logger.info(
            "Recorded payment of %s for member %s on split %s (%s)",
            amount, member_id, split.id, allocation.payment_status.value
        )

        SettlementService.check_completion(updated, actor, now)
        return updated

    @staticmethod
    def check_completion(split: SplitState, actor: Optional[Actor] = None, now: Optional[datetime] = None) -> bool:
        """
        Complete an active split once every participant has paid.

        Mutates the given split. Calling it on a split that is not active is a
        no-op.

        Returns:
            True if the split moved to completed
        """
        if split.split_status != SplitStatus.ACTIVE:
            return False

        participants = split.participating_allocations
        if not participants:
            return False
        if not all(a.payment_status == PaymentStatus.PAID for a in participants):
            return False

        now = now or utcnow()
        split.split_status = SplitStatus.COMPLETED
        split.settlement_date = now
        split.activities.append(ActivityEntry(
            activity_type=ActivityType.COMPLETED,
            description="Split completed - all payments received",
            performed_by=actor,
            created_at=now,
        ))

        logger.info("Split %s completed", split.id)
        return True

    @staticmethod
    def cancel(split: SplitState, actor: Actor, now: Optional[datetime] = None) -> SplitState:
        """
        Cancel (soft-delete) a draft or active split.

        Raises:
            SplitNotMutableError: If the split is already completed or cancelled
        """
        SettlementService.ensure_mutable(split)
        now = now or utcnow()

        cancelled = split.model_copy(deep=True)
        cancelled.split_status = SplitStatus.CANCELLED
        cancelled.is_active = False
        cancelled.updated_at = now
        cancelled.activities.append(ActivityEntry(
            activity_type=ActivityType.CANCELLED,
            description=f'Split "{split.title}" cancelled',
            performed_by=actor,
            created_at=now,
        ))

        logger.info("Split %s cancelled by %s", split.id, actor.member_id)
        return cancelled

    @staticmethod
    def activate(split: SplitState, actor: Actor, now: Optional[datetime] = None) -> SplitState:
        """
        Move a draft split to active.

        Raises:
            SplitNotMutableError: If the split is completed or cancelled
            InvalidStatusTransitionError: If the split is already active
        """
        SettlementService.ensure_mutable(split)
        if split.split_status != SplitStatus.DRAFT:
            raise InvalidStatusTransitionError(split.split_status.value, SplitStatus.ACTIVE.value)

        now = now or utcnow()
        activated = split.model_copy(deep=True)
        activated.split_status = SplitStatus.ACTIVE
        activated.updated_at = now
        activated.activities.append(ActivityEntry(
            activity_type=ActivityType.ACTIVATED,
            description=f'Split "{split.title}" activated',
            performed_by=actor,
            created_at=now,
        ))

        # Payments recorded while in draft may already cover everything
        SettlementService.check_completion(activated, actor, now)
        return activated
