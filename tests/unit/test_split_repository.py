"""Unit tests for split data access"""

from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

import pytest
from sqlalchemy.orm.exc import StaleDataError

from splitcore.core.exceptions import DatabaseError, StaleSplitError
from splitcore.models.split import (MemberAllocation, PaymentStatus, Split,
                                    SplitMethod)
from splitcore.repositories.split_repository import SplitRepository
from splitcore.services.allocation_service import AllocationService
from splitcore.services.settlement_service import SettlementService


@pytest.fixture
def shares_split(make_split, alice):
    """Computed shares split with one payment"""
    split = AllocationService.compute_allocation(make_split(
        base_amount="90",
        split_method=SplitMethod.SHARES,
        members=[("alice", {"shares": 2}), ("bob", {})],
    ))
    split.created_by = alice
    return SettlementService.apply_payment(split, "bob", Decimal("10"), alice)


def stored_row(state, version=1):
    row = Split(id=state.id, allocations=[], activities=[])
    SplitRepository.apply_state(row, state)
    row.version = version
    return row


class TestStateMapping:
    """Test mapping between split rows and split state"""

    def test_apply_state_fills_rows(self, shares_split):
        """Test allocations keep their order and raw split values"""
        row = stored_row(shares_split)

        assert [a.member_id for a in row.allocations] == ["alice", "bob"]
        assert [a.position for a in row.allocations] == [0, 1]
        assert row.allocations[0].split_shares == Decimal("2")
        assert row.allocations[1].split_shares is None
        assert row.allocations[0].split_amount is None
        assert row.allocations[1].payment_status == PaymentStatus.PARTIAL
        assert row.created_by_id == "alice"
        assert len(row.activities) == 1

    def test_to_state_restores_split(self, shares_split):
        """Test a stored row reads back as the same split"""
        restored = SplitRepository.to_state(stored_row(shares_split, version=3))

        assert restored.version == 3
        assert restored.model_dump(exclude={"version"}) == shares_split.model_dump(exclude={"version"})

    def test_apply_state_updates_rows_in_place(self, shares_split, alice):
        """Test existing member rows are reused and only new activities appended"""
        row = stored_row(shares_split)
        bob_row = row.allocations[1]

        paid = SettlementService.apply_payment(shares_split, "bob", Decimal("20"), alice)
        SplitRepository.apply_state(row, paid)

        assert row.allocations[1] is bob_row
        assert bob_row.paid_amount == Decimal("30")
        assert len(row.activities) == 2

    def test_apply_state_drops_removed_members(self, shares_split):
        """Test members missing from the state are removed"""
        row = stored_row(shares_split)
        shortened = shares_split.model_copy(deep=True)
        shortened.allocations = shortened.allocations[:1]

        SplitRepository.apply_state(row, shortened)

        assert [a.member_id for a in row.allocations] == ["alice"]
        assert isinstance(row.allocations[0], MemberAllocation)


class TestSave:
    """Test optimistic-version save"""

    @pytest.mark.asyncio
    async def test_save_bumps_version(self, shares_split, mock_db):
        """Test the returned state carries the row's version after flush"""
        row = stored_row(shares_split, version=1)
        state = shares_split.model_copy(update={"version": 1})

        async def flush():
            row.version = 2

        mock_db.flush = AsyncMock(side_effect=flush)

        with patch.object(SplitRepository, "_get_row", AsyncMock(return_value=row)):
            saved = await SplitRepository.save(mock_db, state)

        assert saved.version == 2

    @pytest.mark.asyncio
    async def test_save_stale_version(self, shares_split, mock_db):
        """Test a state loaded before another write is rejected"""
        row = stored_row(shares_split, version=4)
        state = shares_split.model_copy(update={"version": 3})

        with patch.object(SplitRepository, "_get_row", AsyncMock(return_value=row)):
            with pytest.raises(StaleSplitError):
                await SplitRepository.save(mock_db, state)

        mock_db.flush.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_save_concurrent_flush(self, shares_split, mock_db):
        """Test a version conflict detected on flush"""
        row = stored_row(shares_split, version=1)
        state = shares_split.model_copy(update={"version": 1})
        mock_db.flush = AsyncMock(side_effect=StaleDataError("version mismatch"))

        with patch.object(SplitRepository, "_get_row", AsyncMock(return_value=row)):
            with pytest.raises(StaleSplitError) as exc_info:
                await SplitRepository.save(mock_db, state)

        assert exc_info.value.status_code == 409

    @pytest.mark.asyncio
    async def test_save_missing_split(self, shares_split, mock_db):
        """Test saving a split that no longer exists"""
        with patch.object(SplitRepository, "_get_row", AsyncMock(return_value=None)):
            with pytest.raises(DatabaseError):
                await SplitRepository.save(mock_db, shares_split)


class TestCreateAndGet:
    """Test create and get_by_id"""

    @pytest.mark.asyncio
    async def test_create_adds_row(self, shares_split):
        """Test create adds the split row and returns its version"""
        db = AsyncMock()
        db.add = MagicMock()

        async def flush():
            db.add.call_args.args[0].version = 1

        db.flush = AsyncMock(side_effect=flush)

        created = await SplitRepository.create(db, shares_split)

        row = db.add.call_args.args[0]
        assert isinstance(row, Split)
        assert row.id == shares_split.id
        assert created.version == 1

    @pytest.mark.asyncio
    async def test_get_by_id_missing(self, mock_db):
        """Test missing split returns None"""
        with patch.object(SplitRepository, "_get_row", AsyncMock(return_value=None)):
            assert await SplitRepository.get_by_id(mock_db, uuid4()) is None
