"""Base strategy interface"""

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import List

from pydantic import BaseModel


class ParticipantSplit(BaseModel):
    """Result of split calculation for a participant"""

    member_id: str
    amount_owed: Decimal


class BaseSplitStrategy(ABC):
    """Base class for split strategies"""

    def validate(self, participant_data: List[dict]) -> None:
        """
        Check cross-member constraints before anything is calculated.

        Args:
            participant_data: Normalized participant rows

        Raises:
            ValidationError: If the inputs cannot be allocated
        """

    @abstractmethod
    def calculate_splits(
        self,
        total_amount: Decimal,
        participant_data: List[dict],
        decimal_places: int = 2,
    ) -> List[ParticipantSplit]:
        """
        Calculate split amounts for participants.

        Each amount is rounded on its own; the rounding remainder is not
        redistributed, so the sum may drift from total_amount by up to half a
        cent per participant.

        Args:
            total_amount: Tax-inclusive total amount
            participant_data: Normalized participant rows (member_id plus the
                method's input field)
            decimal_places: Precision of the owed amounts

        Returns:
            List of ParticipantSplit objects with member_id and amount_owed
        """
        pass
