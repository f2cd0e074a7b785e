"""Equal split strategy"""

from decimal import Decimal
from typing import List

from splitcore.services.split_strategies.base import (BaseSplitStrategy,
                                                      ParticipantSplit)
from splitcore.utils.decimal_utils import round_decimal


class EqualSplitStrategy(BaseSplitStrategy):
    """Strategy for splitting the total equally among participants"""

    def calculate_splits(
        self,
        total_amount: Decimal,
        participant_data: List[dict],
        decimal_places: int = 2,
    ) -> List[ParticipantSplit]:
        """
        Calculate equal split for all participants.

        Args:
            total_amount: Tax-inclusive total amount
            participant_data: List of participant rows (member_id)
            decimal_places: Precision of the owed amounts

        Returns:
            List of ParticipantSplit with equal amounts
        """
        num_participants = len(participant_data)

        if num_participants == 0:
            return []

        amount_each = round_decimal(total_amount / num_participants, decimal_places)

        return [
            ParticipantSplit(member_id=participant["member_id"], amount_owed=amount_each)
            for participant in participant_data
        ]
