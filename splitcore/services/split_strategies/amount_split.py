"""Fixed amount split strategy"""
from decimal import Decimal
from typing import List

from splitcore.services.split_strategies.base import BaseSplitStrategy, ParticipantSplit
from splitcore.utils.decimal_utils import round_decimal


class AmountSplitStrategy(BaseSplitStrategy):
    """Strategy where each participant owes an amount given up front"""

    def calculate_splits(
        self,
        total_amount: Decimal,
        participant_data: List[dict],
        decimal_places: int = 2,
    ) -> List[ParticipantSplit]:
        """
        Use the specified amounts verbatim.

        The amounts are not checked against total_amount.

        Args:
            total_amount: Tax-inclusive total amount (unused)
            participant_data: List of dicts with member_id and amount

        Returns:
            List of ParticipantSplit with the specified amounts
        """
        return [
            ParticipantSplit(
                member_id=participant['member_id'],
                amount_owed=round_decimal(participant['amount'], decimal_places)
            )
            for participant in participant_data
        ]
