"""
Domain errors raised by the service layer.

Each carries the HTTP status the API should answer with; mingree.main renders
them as {"error": message, **extra}.
"""
from decimal import Decimal
from typing import Any, Dict, Optional


class MingreeError(Exception):
    status_code = 400

    def __init__(self, message: str, status_code: Optional[int] = None, **extra: Any):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.extra: Dict[str, Any] = extra


class NotFound(MingreeError):
    status_code = 404


class ValidationFailed(MingreeError):
    status_code = 400


class Conflict(MingreeError):
    status_code = 400


class Forbidden(MingreeError):
    status_code = 403


class SubscriptionRequired(Forbidden):
    def __init__(self, message: str = "Subscription required"):
        super().__init__(message)


class NoSpotsAvailable(MingreeError):
    def __init__(self, message: str = "No spots available"):
        super().__init__(message)


class InsufficientBalance(MingreeError):
    def __init__(self, required: Decimal, available: Decimal, message: str = "Insufficient balance"):
        super().__init__(message, required=float(required), available=float(available))
        self.required = required
        self.available = available
