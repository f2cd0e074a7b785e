"""Percentage split strategy"""

from decimal import Decimal
from typing import List

from splitcore.core.exceptions import InvalidSplitPercentagesError
from splitcore.services.split_strategies.base import (BaseSplitStrategy,
                                                      ParticipantSplit)
from splitcore.utils.decimal_utils import round_decimal, sum_decimals


class PercentageSplitStrategy(BaseSplitStrategy):
    """Strategy for splitting the total by percentage"""

    def __init__(self, tolerance: Decimal = Decimal("0.01")):
        self.tolerance = tolerance

    def validate(self, participant_data: List[dict]) -> None:
        """
        Validate percentages sum to 100.

        Raises:
            InvalidSplitPercentagesError: If the sum is off by more than the tolerance
        """
        total_percentage = sum_decimals([p["percentage"] for p in participant_data])

        if abs(total_percentage - Decimal("100")) > self.tolerance:
            raise InvalidSplitPercentagesError(total_percentage)

    def calculate_splits(
        self,
        total_amount: Decimal,
        participant_data: List[dict],
        decimal_places: int = 2,
    ) -> List[ParticipantSplit]:
        """
        Calculate percentage-based split for participants.

        Args:
            total_amount: Tax-inclusive total amount
            participant_data: List of dicts with member_id and percentage
            decimal_places: Precision of the owed amounts

        Returns:
            List of ParticipantSplit with calculated amounts

        Raises:
            InvalidSplitPercentagesError: If percentages don't sum to 100
        """
        if not participant_data:
            return []

        self.validate(participant_data)

        splits = []
        for participant in participant_data:
            amount = (total_amount * participant["percentage"]) / Decimal("100")
            splits.append(
                ParticipantSplit(
                    member_id=participant["member_id"],
                    amount_owed=round_decimal(amount, decimal_places),
                )
            )

        return splits
