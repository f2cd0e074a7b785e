"""Split calculation strategies"""

from decimal import Decimal

from splitcore.core.exceptions import ValidationError
from splitcore.models.split import SplitMethod
from splitcore.services.split_strategies.amount_split import \
    AmountSplitStrategy
from splitcore.services.split_strategies.base import (BaseSplitStrategy,
                                                      ParticipantSplit)
from splitcore.services.split_strategies.equal_split import EqualSplitStrategy
from splitcore.services.split_strategies.percentage_split import \
    PercentageSplitStrategy
from splitcore.services.split_strategies.shares_split import \
    SharesSplitStrategy


def get_split_strategy(
    split_method: SplitMethod,
    percentage_tolerance: Decimal = Decimal("0.01"),
) -> BaseSplitStrategy:
    """
    Get appropriate split strategy based on split method.

    Args:
        split_method: How the total is divided (EQUAL, AMOUNT, PERCENTAGE or SHARES)
        percentage_tolerance: Allowed distance of the percentage sum from 100

    Returns:
        Instance of appropriate strategy

    Raises:
        ValidationError: If split_method is not recognized
    """
    strategies = {
        SplitMethod.EQUAL: EqualSplitStrategy(),
        SplitMethod.AMOUNT: AmountSplitStrategy(),
        SplitMethod.PERCENTAGE: PercentageSplitStrategy(tolerance=percentage_tolerance),
        SplitMethod.SHARES: SharesSplitStrategy(),
    }

    strategy = strategies.get(split_method)
    if strategy is None:
        raise ValidationError(f"Unknown split method: {split_method}")

    return strategy


__all__ = [
    "BaseSplitStrategy",
    "ParticipantSplit",
    "EqualSplitStrategy",
    "AmountSplitStrategy",
    "PercentageSplitStrategy",
    "SharesSplitStrategy",
    "get_split_strategy",
]
