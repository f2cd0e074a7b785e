"""Allocation engine"""
import logging
from decimal import Decimal
from typing import List, Tuple

from splitcore.config import get_settings
from splitcore.core.exceptions import InvalidAmountError, SplitNotMutableError
from splitcore.models.split import SplitMethod
from splitcore.schemas.split import AllocationState, SplitState
from splitcore.services.split_strategies import get_split_strategy
from splitcore.utils.decimal_utils import exceeds_precision, to_decimal

logger = logging.getLogger(__name__)

# Tax rates, member percentages and shares are stored with 4 decimal places
RATE_PRECISION = 4


class AllocationService:
    """Computes tax, totals and owed amounts of a split"""

    @staticmethod
    def validate_amounts(base_amount: Decimal, tax_percentage: Decimal, decimal_places: int = 2) -> None:
        """
        Validate the split's governing amounts.

        Args:
            base_amount: Pre-tax cost
            tax_percentage: Tax rate in percent
            decimal_places: Allowed decimal places of the base amount

        Raises:
            InvalidAmountError: If base_amount is negative or too precise, or
                tax_percentage is outside [0, 100] or too precise
        """
        if base_amount < 0:
            raise InvalidAmountError(
                f"Base amount cannot be negative, got {base_amount}",
                details={"base_amount": str(base_amount)}
            )

        if tax_percentage < 0 or tax_percentage > 100:
            raise InvalidAmountError(
                f"Tax percentage must be between 0 and 100, got {tax_percentage}",
                details={"tax_percentage": str(tax_percentage)}
            )

        if exceeds_precision(base_amount, decimal_places):
            raise InvalidAmountError(
                f"Base amount can have at most {decimal_places} decimal places, got {base_amount}",
                details={"base_amount": str(base_amount)}
            )

        if exceeds_precision(tax_percentage, RATE_PRECISION):
            raise InvalidAmountError(
                f"Tax percentage can have at most {RATE_PRECISION} decimal places, got {tax_percentage}",
                details={"tax_percentage": str(tax_percentage)}
            )

    @staticmethod
    def validate_split_values(
        split_method: SplitMethod, allocations: List[AllocationState], decimal_places: int = 2
    ) -> None:
        """
        Check every member's split value fits the stored precision.

        Amounts allow decimal_places, percentages and shares 4 places.

        Raises:
            InvalidAmountError: If a member's value is too precise
        """
        field, places = {
            SplitMethod.AMOUNT: ("amount", decimal_places),
            SplitMethod.PERCENTAGE: ("percentage", RATE_PRECISION),
            SplitMethod.SHARES: ("shares", RATE_PRECISION),
        }.get(split_method, (None, None))
        if field is None:
            return

        for allocation in allocations:
            value = getattr(allocation.split_value, field, None)
            if value is not None and exceeds_precision(value, places):
                raise InvalidAmountError(
                    f"Split {field} of member {allocation.member_id} can have at most "
                    f"{places} decimal places, got {value}",
                    details={"member_id": allocation.member_id, field: str(value)}
                )

    @staticmethod
    def calculate_totals(base_amount: Decimal, tax_percentage: Decimal) -> Tuple[Decimal, Decimal]:
        """
        Calculate tax and tax-inclusive total at full precision.

        Args:
            base_amount: Pre-tax cost
            tax_percentage: Tax rate in percent

        Returns:
            Tuple of (tax_amount, total_amount)
        """
        base_amount = to_decimal(base_amount)
        tax_amount = base_amount * to_decimal(tax_percentage) / Decimal("100")
        return tax_amount, base_amount + tax_amount

    @staticmethod
    def normalize_split_values(
        split_method: SplitMethod, participants: List[AllocationState]
    ) -> List[dict]:
        """
        Turn participants' split values into plain rows with defaults applied.

        Absent amounts and percentages count as 0; absent or zero shares count
        as one share.

        Args:
            split_method: Split method of the split
            participants: Participating allocations

        Returns:
            One dict per participant with member_id and the method's input
        """
        rows = []
        for allocation in participants:
            value = allocation.split_value
            row = {"member_id": allocation.member_id}

            if split_method == SplitMethod.AMOUNT:
                row["amount"] = value.amount or Decimal("0")
            elif split_method == SplitMethod.PERCENTAGE:
                row["percentage"] = value.percentage or Decimal("0")
            elif split_method == SplitMethod.SHARES:
                row["shares"] = value.shares or Decimal("1")

            rows.append(row)

        return rows

    @staticmethod
    def compute_allocation(split: SplitState) -> SplitState:
        """
        Compute tax, total and every member's owed amount.

        Works on a copy: on any error the given split is left untouched, and
        calling it again on the same input gives the same result.

        Args:
            split: Split with base amount, tax percentage, method and split values

        Returns:
            New SplitState with tax_amount, total_amount and owed amounts set

        Raises:
            SplitNotMutableError: If the split is completed or cancelled
            InvalidAmountError: If base amount, tax percentage or a split value
                is out of range or too precise
            InvalidSplitPercentagesError: If percentages don't sum to 100
            InvalidSplitSharesError: If total shares is not positive
        """
        if not split.is_mutable:
            raise SplitNotMutableError(split.split_status.value)

        settings = get_settings()
        AllocationService.validate_amounts(
            split.base_amount, split.tax_percentage, settings.amount_precision
        )
        AllocationService.validate_split_values(
            split.split_method, split.allocations, settings.amount_precision
        )

        tax_amount, total_amount = AllocationService.calculate_totals(
            split.base_amount, split.tax_percentage
        )

        participants = split.participating_allocations
        rows = AllocationService.normalize_split_values(split.split_method, participants)
        strategy = get_split_strategy(split.split_method, settings.percentage_tolerance)
        # Percentages must add up whenever the split has members, even if none participate
        if split.split_method == SplitMethod.PERCENTAGE and split.allocations:
            strategy.validate(rows)
        calculated_splits = strategy.calculate_splits(
            total_amount, rows, settings.amount_precision
        )
        owed_by_member = {s.member_id: s.amount_owed for s in calculated_splits}

        computed = split.model_copy(deep=True)
        computed.tax_amount = tax_amount
        computed.total_amount = total_amount
        for allocation in computed.allocations:
            if allocation.is_participating:
                allocation.owed_amount = owed_by_member[allocation.member_id]
            else:
                allocation.owed_amount = Decimal("0")

        logger.debug(
            "Allocated split %s (%s) total=%s across %d participants",
            split.id, split.split_method.value, total_amount, len(participants)
        )
        return computed
