from typing import Any, Optional

from fastapi import status


class ServiceError(Exception):
    """Base exception for service layer errors."""

    def __init__(self, message: str, status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class CalculationError(ServiceError):
    """Base exception for the payment calculator."""


class ConfigurationError(CalculationError):
    """Invalid or absent payment plan selection."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status.HTTP_400_BAD_REQUEST)


class ValidationError(CalculationError):
    """Out-of-range, missing or malformed calculator input. Carries the offending field and value."""

    def __init__(self, field: str, value: Any, reason: Optional[str] = None) -> None:
        message = f"Invalid {field}: {value!r}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message, status.HTTP_422_UNPROCESSABLE_ENTITY)
        self.field = field
        self.value = value
        self.reason = reason


class ArithmeticConsistencyError(CalculationError):
    """Internal invariant violation: amounts do not reconcile."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status.HTTP_500_INTERNAL_SERVER_ERROR)
