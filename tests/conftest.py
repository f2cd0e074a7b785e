"""Pytest fixtures and configuration"""

from datetime import datetime, timezone
from typing import Callable, List, Optional
from unittest.mock import AsyncMock

import pytest

from splitcore.config import get_settings
from splitcore.models.split import SplitMethod, SplitStatus
from splitcore.schemas.split import Actor, SplitState


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Make every test read settings fresh from the environment"""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def fixed_now() -> datetime:
    """A fixed point in time for timestamps"""
    return datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def alice() -> Actor:
    """Member creating splits and recording payments"""
    return Actor(member_id="alice", name="Alice")


@pytest.fixture
def bob() -> Actor:
    """Second member"""
    return Actor(member_id="bob", name="Bob")


@pytest.fixture
def make_split(fixed_now) -> Callable[..., SplitState]:
    """
    Factory for split states.

    Allocations are given as (member_id, split_value) pairs; split_value is
    a legacy-shaped dict and gets tagged with the split method.
    """

    def _make(
        base_amount="100.00",
        tax_percentage="0",
        split_method: SplitMethod = SplitMethod.EQUAL,
        members: Optional[List[tuple]] = None,
        split_status: SplitStatus = SplitStatus.ACTIVE,
        non_participating: Optional[List[str]] = None,
    ) -> SplitState:
        members = members if members is not None else [("alice", {}), ("bob", {})]
        non_participating = non_participating or []
        return SplitState.model_validate({
            "group_id": "group-1",
            "title": "Dinner",
            "base_amount": base_amount,
            "tax_percentage": tax_percentage,
            "split_method": split_method,
            "split_status": split_status,
            "allocations": [
                {
                    "member_id": member_id,
                    "member_name": member_id.title(),
                    "is_participating": member_id not in non_participating,
                    "split_value": split_value,
                }
                for member_id, split_value in members
            ],
            "created_at": fixed_now,
            "updated_at": fixed_now,
        })

    return _make


@pytest.fixture
def mock_db():
    """Create mock database session"""
    return AsyncMock()
