"""Shares split strategy"""

from decimal import Decimal
from typing import List

from splitcore.core.exceptions import InvalidSplitSharesError
from splitcore.services.split_strategies.base import (BaseSplitStrategy,
                                                      ParticipantSplit)
from splitcore.utils.decimal_utils import round_decimal, sum_decimals


class SharesSplitStrategy(BaseSplitStrategy):
    """Strategy for splitting the total in proportion to shares"""

    def validate(self, participant_data: List[dict]) -> None:
        total_shares = sum_decimals([p["shares"] for p in participant_data])

        if total_shares <= 0:
            raise InvalidSplitSharesError(total_shares)

    def calculate_splits(
        self,
        total_amount: Decimal,
        participant_data: List[dict],
        decimal_places: int = 2,
    ) -> List[ParticipantSplit]:
        """
        Calculate each participant's proportional amount.

        Args:
            total_amount: Tax-inclusive total amount
            participant_data: List of dicts with member_id and shares
            decimal_places: Precision of the owed amounts

        Returns:
            List of ParticipantSplit with calculated amounts

        Raises:
            InvalidSplitSharesError: If total shares is not positive
        """
        if not participant_data:
            return []

        self.validate(participant_data)
        total_shares = sum_decimals([p["shares"] for p in participant_data])

        return [
            ParticipantSplit(
                member_id=participant["member_id"],
                amount_owed=round_decimal(
                    total_amount * participant["shares"] / total_shares, decimal_places
                ),
            )
            for participant in participant_data
        ]
