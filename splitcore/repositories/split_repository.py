"""Split data access"""

import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy import and_, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from sqlalchemy.orm.exc import StaleDataError

from splitcore.core.exceptions import DatabaseError, StaleSplitError
from splitcore.models.split import (MemberAllocation, Split, SplitActivity,
                                    SplitStatus)
from splitcore.schemas.split import (ActivityEntry, Actor, AllocationState,
                                     SplitState)

logger = logging.getLogger(__name__)


class SplitRepository:
    """Repository for Split database operations"""

    @staticmethod
    def to_state(split: Split) -> SplitState:
        """
        Build the domain state from a loaded split row.

        Args:
            split: Split with allocations and activities loaded

        Returns:
            SplitState
        """
        created_by = None
        if split.created_by_id:
            created_by = Actor(member_id=split.created_by_id, name=split.created_by_name or split.created_by_id)

        allocations = [
            {
                "member_id": row.member_id,
                "member_name": row.member_name,
                "is_participating": row.is_participating,
                "split_value": {
                    "method": split.split_method.value,
                    "amount": row.split_amount,
                    "percentage": row.split_percentage,
                    "shares": row.split_shares,
                },
                "owed_amount": row.owed_amount,
                "payment_status": row.payment_status,
                "paid_amount": row.paid_amount,
                "paid_at": row.paid_at,
            }
            for row in split.allocations
        ]

        activities = [
            ActivityEntry(
                activity_type=row.activity_type,
                description=row.description,
                performed_by=(
                    Actor(member_id=row.performed_by_id, name=row.performed_by_name or row.performed_by_id)
                    if row.performed_by_id else None
                ),
                activity_data=row.activity_data or {},
                created_at=row.created_at,
            )
            for row in split.activities
        ]

        return SplitState.model_validate({
            "id": split.id,
            "group_id": split.group_id,
            "title": split.title,
            "description": split.description,
            "split_type": split.split_type,
            "base_amount": split.base_amount,
            "tax_percentage": split.tax_percentage,
            "tax_amount": split.tax_amount,
            "total_amount": split.total_amount,
            "split_method": split.split_method,
            "split_status": split.split_status,
            "allocations": allocations,
            "activities": activities,
            "created_by": created_by,
            "settlement_date": split.settlement_date,
            "settlement_notes": split.settlement_notes,
            "is_active": split.is_active,
            "version": split.version or 0,
            "created_at": split.created_at,
            "updated_at": split.updated_at,
        })

    @staticmethod
    def _fill_allocation_row(
        row: MemberAllocation, position: int, allocation: AllocationState
    ) -> MemberAllocation:
        value = allocation.split_value
        row.position = position
        row.member_id = allocation.member_id
        row.member_name = allocation.member_name
        row.is_participating = allocation.is_participating
        row.split_amount = getattr(value, "amount", None)
        row.split_percentage = getattr(value, "percentage", None)
        row.split_shares = getattr(value, "shares", None)
        row.owed_amount = allocation.owed_amount
        row.payment_status = allocation.payment_status
        row.paid_amount = allocation.paid_amount
        row.paid_at = allocation.paid_at
        return row

    @staticmethod
    def _activity_row(entry: ActivityEntry) -> SplitActivity:
        return SplitActivity(
            activity_type=entry.activity_type,
            description=entry.description,
            performed_by_id=entry.performed_by.member_id if entry.performed_by else None,
            performed_by_name=entry.performed_by.name if entry.performed_by else None,
            activity_data=entry.activity_data,
            created_at=entry.created_at,
        )

    @staticmethod
    def apply_state(split: Split, state: SplitState) -> Split:
        """
        Copy a split state onto a row, replacing the allocation list in full.

        Activities are append-only: entries beyond the ones already stored
        are added.

        Args:
            split: Split row (new or loaded with relationships)
            state: Domain state to store

        Returns:
            The same row
        """
        split.group_id = state.group_id
        split.title = state.title
        split.description = state.description
        split.split_type = state.split_type
        split.base_amount = state.base_amount
        split.tax_percentage = state.tax_percentage
        split.tax_amount = state.tax_amount
        split.total_amount = state.total_amount
        split.split_method = state.split_method
        split.split_status = state.split_status
        split.created_by_id = state.created_by.member_id if state.created_by else None
        split.created_by_name = state.created_by.name if state.created_by else None
        split.settlement_date = state.settlement_date
        split.settlement_notes = state.settlement_notes
        split.is_active = state.is_active
        split.created_at = state.created_at
        split.updated_at = state.updated_at

        # Rows are updated in place by member so (split_id, member_id) stays unique
        existing = {row.member_id: row for row in split.allocations}
        split.allocations = [
            SplitRepository._fill_allocation_row(
                existing.get(allocation.member_id) or MemberAllocation(), position, allocation
            )
            for position, allocation in enumerate(state.allocations)
        ]

        stored = len(split.activities)
        for entry in state.activities[stored:]:
            split.activities.append(SplitRepository._activity_row(entry))

        return split

    @staticmethod
    async def _get_row(db: AsyncSession, split_id: UUID) -> Optional[Split]:
        result = await db.execute(
            select(Split)
            .where(Split.id == split_id)
            .options(selectinload(Split.allocations), selectinload(Split.activities))
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def create(db: AsyncSession, state: SplitState) -> SplitState:
        """
        Insert a new split.

        Args:
            db: Database session
            state: Split state to store

        Returns:
            Stored split state with its version
        """
        split = Split(id=state.id, allocations=[], activities=[])
        SplitRepository.apply_state(split, state)

        try:
            db.add(split)
            await db.flush()
        except SQLAlchemyError as e:
            raise DatabaseError("Failed to create split", details=str(e)) from e

        return state.model_copy(update={"version": split.version})

    @staticmethod
    async def get_by_id(db: AsyncSession, split_id: UUID) -> Optional[SplitState]:
        """
        Get split by ID.

        Args:
            db: Database session
            split_id: Split UUID

        Returns:
            SplitState if found, None otherwise
        """
        split = await SplitRepository._get_row(db, split_id)
        if split is None:
            return None
        return SplitRepository.to_state(split)

    @staticmethod
    async def save(db: AsyncSession, state: SplitState) -> SplitState:
        """
        Replace a stored split with the given state.

        The state's version must match the stored version; the flush bumps it.

        Args:
            db: Database session
            state: Split state loaded earlier and then changed

        Returns:
            Stored split state with its new version

        Raises:
            StaleSplitError: If the split changed since the state was loaded
            DatabaseError: If the split no longer exists or the write fails
        """
        split = await SplitRepository._get_row(db, state.id)
        if split is None:
            raise DatabaseError(f"Split {state.id} no longer exists")

        if split.version != state.version:
            logger.warning(
                "Stale write to split %s (stored version %s, given %s)",
                state.id, split.version, state.version
            )
            raise StaleSplitError(state.id, state.version)

        SplitRepository.apply_state(split, state)

        try:
            await db.flush()
        except StaleDataError as e:
            logger.warning("Concurrent write to split %s detected on flush", state.id)
            raise StaleSplitError(state.id, state.version) from e
        except SQLAlchemyError as e:
            raise DatabaseError("Failed to save split", details=str(e)) from e

        return state.model_copy(update={"version": split.version})

    @staticmethod
    def _group_query(group_id: str, status: Optional[SplitStatus]):
        query = select(Split).where(and_(Split.group_id == group_id, Split.is_active.is_(True)))
        if status:
            query = query.where(Split.split_status == status)
        return query

    @staticmethod
    def _member_query(member_id: str, status: Optional[SplitStatus]):
        # Member must be participating in the split
        member_subquery = select(MemberAllocation.split_id).where(
            and_(
                MemberAllocation.member_id == member_id,
                MemberAllocation.is_participating.is_(True),
            )
        )
        query = select(Split).where(and_(Split.id.in_(member_subquery), Split.is_active.is_(True)))
        if status:
            query = query.where(Split.split_status == status)
        return query

    @staticmethod
    async def _list(db: AsyncSession, query, skip: int, limit: int) -> List[SplitState]:
        query = (
            query.order_by(Split.created_at.desc())
            .offset(skip)
            .limit(limit)
            .options(selectinload(Split.allocations), selectinload(Split.activities))
        )
        result = await db.execute(query)
        return [SplitRepository.to_state(split) for split in result.scalars().all()]

    @staticmethod
    async def _count(db: AsyncSession, query) -> int:
        result = await db.execute(select(func.count()).select_from(query.subquery()))
        return result.scalar_one()

    @staticmethod
    async def list_by_group(
        db: AsyncSession,
        group_id: str,
        status: Optional[SplitStatus] = None,
        skip: int = 0,
        limit: int = 10,
    ) -> List[SplitState]:
        """
        Get a group's active (not cancelled) splits, most recent first.

        Args:
            db: Database session
            group_id: Group reference
            status: Optional status filter
            skip: Number of records to skip
            limit: Maximum number of records to return

        Returns:
            List of split states
        """
        return await SplitRepository._list(
            db, SplitRepository._group_query(group_id, status), skip, limit
        )

    @staticmethod
    async def count_by_group(db: AsyncSession, group_id: str, status: Optional[SplitStatus] = None) -> int:
        return await SplitRepository._count(db, SplitRepository._group_query(group_id, status))

    @staticmethod
    async def list_by_member(
        db: AsyncSession,
        member_id: str,
        status: Optional[SplitStatus] = None,
        skip: int = 0,
        limit: int = 10,
    ) -> List[SplitState]:
        """
        Get splits a member participates in, most recent first.

        Args:
            db: Database session
            member_id: Member reference
            status: Optional status filter
            skip: Number of records to skip
            limit: Maximum number of records to return

        Returns:
            List of split states
        """
        return await SplitRepository._list(
            db, SplitRepository._member_query(member_id, status), skip, limit
        )

    @staticmethod
    async def count_by_member(db: AsyncSession, member_id: str, status: Optional[SplitStatus] = None) -> int:
        return await SplitRepository._count(db, SplitRepository._member_query(member_id, status))
