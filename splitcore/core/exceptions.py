"""Custom exception classes"""
from decimal import Decimal
from typing import Any, Optional


class AppException(Exception):
    """Base exception for application errors"""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        error_type: str = "AppError",
        details: Optional[Any] = None
    ):
        self.message = message
        self.status_code = status_code
        self.error_type = error_type
        self.details = details
        super().__init__(self.message)


class ValidationError(AppException):
    """Validation error exception"""

    def __init__(
        self,
        message: str,
        details: Optional[Any] = None,
        error_type: str = "ValidationError"
    ):
        super().__init__(
            message=message,
            status_code=400,
            error_type=error_type,
            details=details
        )


class NotFoundError(AppException):
    """Resource not found exception"""

    def __init__(
        self,
        message: str = "Resource not found",
        details: Optional[Any] = None,
        error_type: str = "NotFoundError"
    ):
        super().__init__(
            message=message,
            status_code=404,
            error_type=error_type,
            details=details
        )


class ConflictError(AppException):
    """Resource state conflict exception"""

    def __init__(
        self,
        message: str = "Resource state conflict",
        details: Optional[Any] = None,
        error_type: str = "ConflictError"
    ):
        super().__init__(
            message=message,
            status_code=409,
            error_type=error_type,
            details=details
        )


class DatabaseError(AppException):
    """Database operation error exception"""

    def __init__(self, message: str = "Database error occurred", details: Optional[Any] = None):
        super().__init__(
            message=message,
            status_code=500,
            error_type="DatabaseError",
            details=details
        )


class InvalidAmountError(ValidationError):
    """Negative base amount or tax percentage outside [0, 100]"""

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message, details=details, error_type="InvalidAmount")


class InvalidSplitPercentagesError(ValidationError):
    """Participating percentages don't add up to 100"""

    def __init__(self, total_percentage: Decimal):
        self.total_percentage = total_percentage
        super().__init__(
            f"Split percentages must add up to 100%, got {total_percentage}%",
            details={"total_percentage": str(total_percentage)},
            error_type="InvalidSplitPercentages"
        )


class InvalidSplitSharesError(ValidationError):
    """Total shares of participating members is not positive"""

    def __init__(self, total_shares: Decimal):
        self.total_shares = total_shares
        super().__init__(
            f"Total split shares must be positive, got {total_shares}",
            details={"total_shares": str(total_shares)},
            error_type="InvalidSplitShares"
        )


class InvalidPaymentAmountError(ValidationError):
    """Payment is not positive or exceeds the remaining balance"""

    def __init__(self, amount: Decimal, remaining_amount: Decimal):
        self.amount = amount
        self.min_amount = Decimal("0")
        self.max_amount = remaining_amount
        super().__init__(
            f"Invalid payment amount {amount}. Must be between 0 and {remaining_amount}",
            details={
                "amount": str(amount),
                "min_amount": str(self.min_amount),
                "max_amount": str(remaining_amount),
            },
            error_type="InvalidPaymentAmount"
        )


class MemberNotFoundError(NotFoundError):
    """Payment references a member with no allocation in the split"""

    def __init__(self, member_id: str):
        self.member_id = member_id
        super().__init__(
            f"Member {member_id} not found in this split",
            details={"member_id": member_id},
            error_type="MemberNotFound"
        )


class SplitNotMutableError(ConflictError):
    """Mutation attempted on a completed or cancelled split"""

    def __init__(self, split_status: str):
        self.split_status = split_status
        super().__init__(
            f"Split is {split_status} and can no longer be modified",
            details={"split_status": split_status},
            error_type="SplitNotMutable"
        )


class InvalidStatusTransitionError(ConflictError):
    """Requested split status change is not allowed from the current status"""

    def __init__(self, from_status: str, to_status: str):
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(
            f"Cannot move split from {from_status} to {to_status}",
            details={"from_status": from_status, "to_status": to_status},
            error_type="InvalidStatusTransition"
        )


class StaleSplitError(ConflictError):
    """Split was changed by another writer since it was loaded"""

    def __init__(self, split_id: Any, expected_version: Optional[int] = None):
        self.split_id = split_id
        self.expected_version = expected_version
        super().__init__(
            f"Split {split_id} was modified concurrently, reload and retry",
            details={"split_id": str(split_id), "expected_version": expected_version},
            error_type="StaleSplit"
        )
