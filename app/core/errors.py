"""
Error taxonomy shared by the stores, the money movement engine and the API.

Every failure carries a stable machine-readable ``code`` plus a human-readable
message. The HTTP layer renders them as ``{"code": ..., "detail": ...}``.
"""

from fastapi import status


class ServiceError(Exception):
    code = "error"
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Request failed"

    def __init__(self, message: str | None = None):
        self.message = message or self.message
        super().__init__(self.message)


class ValidationFailed(ServiceError):
    code = "invalid_request"
    message = "Invalid input"


class InvalidAmount(ServiceError):
    code = "invalid_amount"
    message = "Amount must be a positive integer number of cents"


class InvalidQuantity(ServiceError):
    code = "invalid_quantity"
    message = "Quantity must be a positive integer"


class InvalidTransfer(ServiceError):
    code = "invalid_transfer"
    message = "Transfer between these accounts is not allowed"


class InsufficientFunds(ServiceError):
    code = "insufficient_funds"
    message = "Insufficient balance"


class OutOfStock(ServiceError):
    code = "out_of_stock"
    message = "Not enough stock available"


class NotFound(ServiceError):
    code = "not_found"
    status_code = status.HTTP_404_NOT_FOUND
    message = "Resource not found"


class Unauthenticated(ServiceError):
    code = "unauthenticated"
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Not authenticated"


class Forbidden(ServiceError):
    code = "forbidden"
    status_code = status.HTTP_403_FORBIDDEN
    message = "Not allowed"


class Conflict(ServiceError):
    """Lock contention or serialization failure; the same request may be retried."""

    code = "conflict"
    status_code = status.HTTP_409_CONFLICT
    message = "The resource is busy, please retry"


class UserExists(Conflict):
    code = "user_exists"
    message = "User already exists"


class RateLimited(ServiceError):
    code = "rate_limited"
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    message = "Rate limit exceeded. Try again later."


class StorageFault(ServiceError):
    code = "storage_fault"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = "Internal error, please try again later"
