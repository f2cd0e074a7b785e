"""Test split calculations"""

from decimal import Decimal

import pytest

from splitcore.core.exceptions import (InvalidSplitPercentagesError,
                                       InvalidSplitSharesError)
from splitcore.models.split import SplitMethod
from splitcore.services.split_strategies import (
    AmountSplitStrategy,
    EqualSplitStrategy,
    PercentageSplitStrategy,
    SharesSplitStrategy,
    get_split_strategy,
)


class TestGetSplitStrategy:
    """Test get_split_strategy factory function"""

    def test_get_equal_strategy(self):
        """Test getting equal split strategy"""
        assert isinstance(get_split_strategy(SplitMethod.EQUAL), EqualSplitStrategy)

    def test_get_amount_strategy(self):
        """Test getting fixed amount split strategy"""
        assert isinstance(get_split_strategy(SplitMethod.AMOUNT), AmountSplitStrategy)

    def test_get_percentage_strategy_with_tolerance(self):
        """Test percentage strategy receives the configured tolerance"""
        strategy = get_split_strategy(SplitMethod.PERCENTAGE, Decimal("0.5"))
        assert isinstance(strategy, PercentageSplitStrategy)
        assert strategy.tolerance == Decimal("0.5")

    def test_get_shares_strategy(self):
        """Test getting shares split strategy"""
        assert isinstance(get_split_strategy(SplitMethod.SHARES), SharesSplitStrategy)

    def test_lookup_by_plain_string(self):
        """Test method values work as well as enum members"""
        assert isinstance(get_split_strategy("shares"), SharesSplitStrategy)


class TestEqualSplitStrategy:
    """Test equal split strategy"""

    @pytest.fixture
    def strategy(self):
        return EqualSplitStrategy()

    def test_equal_split_two_participants(self, strategy):
        """Test equal split with 2 participants"""
        splits = strategy.calculate_splits(
            Decimal("100.00"), [{"member_id": "a"}, {"member_id": "b"}]
        )

        assert [s.amount_owed for s in splits] == [Decimal("50.00"), Decimal("50.00")]

    def test_equal_split_three_participants_keeps_drift(self, strategy):
        """Test 100 / 3 rounds each share and leaves the missing cent unassigned"""
        splits = strategy.calculate_splits(
            Decimal("100"), [{"member_id": "a"}, {"member_id": "b"}, {"member_id": "c"}]
        )

        assert [s.amount_owed for s in splits] == [Decimal("33.33")] * 3
        assert sum(s.amount_owed for s in splits) == Decimal("99.99")

    def test_equal_split_rounds_half_up(self, strategy):
        """Test half cents round up"""
        splits = strategy.calculate_splits(
            Decimal("0.05"), [{"member_id": "a"}, {"member_id": "b"}]
        )

        assert splits[0].amount_owed == Decimal("0.03")

    def test_equal_split_zero_participants(self, strategy):
        """Test equal split with no participants returns empty list"""
        assert strategy.calculate_splits(Decimal("100.00"), []) == []


class TestAmountSplitStrategy:
    """Test fixed amount split strategy"""

    @pytest.fixture
    def strategy(self):
        return AmountSplitStrategy()

    def test_amounts_taken_verbatim(self, strategy):
        """Test amounts are used as given, even when they don't sum to the total"""
        splits = strategy.calculate_splits(
            Decimal("150.00"),
            [
                {"member_id": "a", "amount": Decimal("50")},
                {"member_id": "b", "amount": Decimal("70")},
            ],
        )

        assert splits[0].amount_owed == Decimal("50.00")
        assert splits[1].amount_owed == Decimal("70.00")

    def test_amounts_rounded_to_cents(self, strategy):
        """Test sub-cent amounts are rounded"""
        splits = strategy.calculate_splits(
            Decimal("10"), [{"member_id": "a", "amount": Decimal("3.335")}]
        )

        assert splits[0].amount_owed == Decimal("3.34")


class TestPercentageSplitStrategy:
    """Test percentage split strategy"""

    @pytest.fixture
    def strategy(self):
        return PercentageSplitStrategy()

    def test_percentage_split_valid(self, strategy):
        """Test percentage split with valid percentages"""
        splits = strategy.calculate_splits(
            Decimal("1000.00"),
            [
                {"member_id": "a", "percentage": Decimal("60")},
                {"member_id": "b", "percentage": Decimal("40")},
            ],
        )

        assert splits[0].amount_owed == Decimal("600.00")
        assert splits[1].amount_owed == Decimal("400.00")

    def test_percentage_split_no_rounding_adjustment(self, strategy):
        """Test each share is rounded independently"""
        splits = strategy.calculate_splits(
            Decimal("10.00"),
            [
                {"member_id": "a", "percentage": Decimal("33.33")},
                {"member_id": "b", "percentage": Decimal("33.33")},
                {"member_id": "c", "percentage": Decimal("33.34")},
            ],
        )

        assert [s.amount_owed for s in splits] == [
            Decimal("3.33"), Decimal("3.33"), Decimal("3.33")
        ]

    @pytest.mark.parametrize("second", [Decimal("49"), Decimal("51")])
    def test_percentage_split_invalid_total(self, strategy, second):
        """Test sums of 99 and 101 are rejected"""
        participants = [
            {"member_id": "a", "percentage": Decimal("50")},
            {"member_id": "b", "percentage": second},
        ]

        with pytest.raises(InvalidSplitPercentagesError, match="must add up to 100"):
            strategy.calculate_splits(Decimal("100.00"), participants)

    def test_percentage_split_within_tolerance(self, strategy):
        """Test a sum off by exactly 0.01 is accepted"""
        splits = strategy.calculate_splits(
            Decimal("100.00"),
            [
                {"member_id": "a", "percentage": Decimal("50")},
                {"member_id": "b", "percentage": Decimal("49.99")},
            ],
        )

        assert splits[1].amount_owed == Decimal("49.99")

    def test_percentage_error_carries_total(self, strategy):
        """Test the error reports the wrong sum"""
        with pytest.raises(InvalidSplitPercentagesError) as exc_info:
            strategy.validate([{"member_id": "a", "percentage": Decimal("90")}])

        assert exc_info.value.total_percentage == Decimal("90")
        assert exc_info.value.status_code == 400
        assert exc_info.value.error_type == "InvalidSplitPercentages"


class TestSharesSplitStrategy:
    """Test shares split strategy"""

    @pytest.fixture
    def strategy(self):
        return SharesSplitStrategy()

    def test_shares_split_proportional(self, strategy):
        """Test shares {1, 1, 2} of 100 give 25, 25, 50"""
        splits = strategy.calculate_splits(
            Decimal("100"),
            [
                {"member_id": "a", "shares": Decimal("1")},
                {"member_id": "b", "shares": Decimal("1")},
                {"member_id": "c", "shares": Decimal("2")},
            ],
        )

        assert [s.amount_owed for s in splits] == [
            Decimal("25.00"), Decimal("25.00"), Decimal("50.00")
        ]

    def test_shares_split_zero_total_rejected(self, strategy):
        """Test total shares of zero is rejected"""
        participants = [
            {"member_id": "a", "shares": Decimal("0")},
            {"member_id": "b", "shares": Decimal("0")},
        ]

        with pytest.raises(InvalidSplitSharesError):
            strategy.calculate_splits(Decimal("100"), participants)

    def test_shares_split_no_participants(self, strategy):
        """Test no participants returns empty list"""
        assert strategy.calculate_splits(Decimal("100"), []) == []
