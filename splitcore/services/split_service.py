"""Split business logic"""
import logging
import math
from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from splitcore.core.exceptions import NotFoundError
from splitcore.models.split import ActivityType, SplitStatus, utcnow
from splitcore.repositories.split_repository import SplitRepository
from splitcore.schemas.common import PaginationMeta
from splitcore.schemas.split import (ActivityEntry, Actor, SplitDraft,
                                     SplitListResponse, SplitState,
                                     SplitUpdate)
from splitcore.services.allocation_service import AllocationService
from splitcore.services.settlement_service import SettlementService

logger = logging.getLogger(__name__)


class SplitService:
    """Service for split operations"""

    @staticmethod
    def build_split(draft: SplitDraft, actor: Actor, now: Optional[datetime] = None) -> SplitState:
        """
        Create a split state from a draft and compute its allocation.

        Args:
            draft: Split creation data
            actor: Member creating the split
            now: Creation time (defaults to now)

        Returns:
            New SplitState with owed amounts and a created activity
        """
        now = now or utcnow()
        split = SplitState.model_validate({
            **draft.model_dump(),
            "created_by": actor,
            "created_at": now,
            "updated_at": now,
        })
        split = AllocationService.compute_allocation(split)

        split.activities.append(ActivityEntry(
            activity_type=ActivityType.CREATED,
            description=f'Split "{split.title}" created',
            performed_by=actor,
            created_at=now,
        ))
        return split

    @staticmethod
    def apply_update(
        split: SplitState,
        update: SplitUpdate,
        actor: Actor,
        now: Optional[datetime] = None
    ) -> SplitState:
        """
        Apply changed fields to a split and recompute its allocation in full.

        When allocations are replaced, payments already recorded for a member
        are carried over by member_id. When only the split method changes, each
        member's split value is re-tagged with the new method. Payment statuses are
        re-derived from the new owed amounts.

        Args:
            split: Current split
            update: Fields to change
            actor: Member making the change
            now: Modification time (defaults to now)

        Returns:
            New SplitState with recomputed owed amounts and a modified activity

        Raises:
            SplitNotMutableError: If the split is completed or cancelled
            InvalidAmountError, InvalidSplitPercentagesError, InvalidSplitSharesError:
                If the new inputs cannot be allocated, or a member has already
                paid more than they would now owe
        """
        SettlementService.ensure_mutable(split)
        now = now or utcnow()
        values = update.model_dump()
        changes = {
            field: values[field]
            for field in update.model_fields_set
            if values[field] is not None or field in ("description", "settlement_notes")
        }
        data = split.model_dump()
        method = changes.get("split_method", split.split_method)

        if "allocations" in changes:
            previous = {a.member_id: a for a in split.allocations}
            allocations = []
            for allocation in changes["allocations"]:
                paid = previous.get(allocation["member_id"])
                if paid is not None:
                    allocation.update(
                        paid_amount=paid.paid_amount,
                        payment_status=paid.payment_status,
                        paid_at=paid.paid_at,
                    )
                allocations.append(allocation)
            changes["allocations"] = allocations
        else:
            for allocation in data["allocations"]:
                allocation["split_value"]["method"] = method.value

        data.update(changes)
        data["updated_at"] = now
        updated = AllocationService.compute_allocation(SplitState.model_validate(data))
        SettlementService.refresh_payment_statuses(updated)

        updated.activities.append(ActivityEntry(
            activity_type=ActivityType.MODIFIED,
            description=f'Split "{updated.title}" updated',
            performed_by=actor,
            activity_data={"fields": sorted(update.model_fields_set)},
            created_at=now,
        ))

        # Lowering what members owe can settle the split
        SettlementService.check_completion(updated, actor, now)
        return updated

    @staticmethod
    async def get_split(split_id: UUID, db: AsyncSession) -> SplitState:
        """
        Get a split.

        Raises:
            NotFoundError: If split not found
        """
        split = await SplitRepository.get_by_id(db, split_id)
        if split is None:
            raise NotFoundError("Split not found")
        return split

    @staticmethod
    async def create_split(draft: SplitDraft, actor: Actor, db: AsyncSession) -> SplitState:
        """
        Create and store a new split.

        Args:
            draft: Split creation data
            actor: Member creating the split
            db: Database session

        Returns:
            Stored split
        """
        split = SplitService.build_split(draft, actor)
        created = await SplitRepository.create(db, split)
        await db.commit()

        logger.info("Split %s created by %s (%s)", created.id, actor.member_id, created.split_method.value)
        return created

    @staticmethod
    async def update_split(
        split_id: UUID,
        update: SplitUpdate,
        actor: Actor,
        db: AsyncSession
    ) -> SplitState:
        """
        Update a stored split and recompute its allocation.

        Raises:
            NotFoundError: If split not found
            StaleSplitError: If the split changed concurrently
        """
        split = await SplitService.get_split(split_id, db)
        updated = SplitService.apply_update(split, update, actor)
        saved = await SplitRepository.save(db, updated)
        await db.commit()

        logger.info("Split %s updated by %s", split_id, actor.member_id)
        return saved

    @staticmethod
    async def record_payment(
        split_id: UUID,
        member_id: str,
        amount: Any,
        actor: Actor,
        db: AsyncSession
    ) -> SplitState:
        """
        Apply a payment to a stored split.

        Raises:
            NotFoundError: If split not found
            MemberNotFoundError: If member has no allocation in the split
            InvalidPaymentAmountError: If amount is not a positive finite number
                within the remaining balance and the amount precision
            StaleSplitError: If another payment was stored since the split was loaded
        """
        split = await SplitService.get_split(split_id, db)
        updated = SettlementService.apply_payment(split, member_id, amount, actor)
        saved = await SplitRepository.save(db, updated)
        await db.commit()
        return saved

    @staticmethod
    async def cancel_split(split_id: UUID, actor: Actor, db: AsyncSession) -> SplitState:
        """
        Cancel a stored split.

        Raises:
            NotFoundError: If split not found
            SplitNotMutableError: If the split is already completed or cancelled
        """
        split = await SplitService.get_split(split_id, db)
        cancelled = SettlementService.cancel(split, actor)
        saved = await SplitRepository.save(db, cancelled)
        await db.commit()
        return saved

    @staticmethod
    async def activate_split(split_id: UUID, actor: Actor, db: AsyncSession) -> SplitState:
        """
        Move a stored draft split to active.

        Raises:
            NotFoundError: If split not found
            InvalidStatusTransitionError: If the split is not a draft
        """
        split = await SplitService.get_split(split_id, db)
        activated = SettlementService.activate(split, actor)
        saved = await SplitRepository.save(db, activated)
        await db.commit()
        return saved

    @staticmethod
    def _page(items, total_count: int, page: int, page_size: int) -> SplitListResponse:
        return SplitListResponse(
            items=items,
            pagination=PaginationMeta(
                page=page,
                page_size=page_size,
                total_items=total_count,
                total_pages=math.ceil(total_count / page_size) if page_size else 0,
            ),
        )

    @staticmethod
    async def list_group_splits(
        group_id: str,
        db: AsyncSession,
        status: Optional[SplitStatus] = None,
        page: int = 1,
        page_size: int = 10
    ) -> SplitListResponse:
        """
        Get a page of a group's splits.

        Args:
            group_id: Group reference
            db: Database session
            status: Optional status filter
            page: Page number (1-indexed)
            page_size: Items per page

        Returns:
            Page of splits with pagination metadata
        """
        skip = (page - 1) * page_size
        splits = await SplitRepository.list_by_group(db, group_id, status=status, skip=skip, limit=page_size)
        total_count = await SplitRepository.count_by_group(db, group_id, status=status)
        return SplitService._page(splits, total_count, page, page_size)

    @staticmethod
    async def list_member_splits(
        member_id: str,
        db: AsyncSession,
        status: Optional[SplitStatus] = None,
        page: int = 1,
        page_size: int = 10
    ) -> SplitListResponse:
        """
        Get a page of splits a member participates in.

        Args:
            member_id: Member reference
            db: Database session
            status: Optional status filter
            page: Page number (1-indexed)
            page_size: Items per page

        Returns:
            Page of splits with pagination metadata
        """
        skip = (page - 1) * page_size
        splits = await SplitRepository.list_by_member(db, member_id, status=status, skip=skip, limit=page_size)
        total_count = await SplitRepository.count_by_member(db, member_id, status=status)
        return SplitService._page(splits, total_count, page, page_size)
