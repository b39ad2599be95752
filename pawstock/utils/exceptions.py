"""Custom exceptions for the PawStock inventory client"""

from typing import Optional


class PawStockError(Exception):
    """Base exception for PawStock"""
    pass


class AuthFailure(PawStockError):
    """Login failed. Bad credentials and network errors look the same to the caller."""

    GENERIC_MESSAGE = "Invalid username or password. Please try again."

    def __init__(self, message: str = GENERIC_MESSAGE):
        super().__init__(message)


class MissingCredential(PawStockError):
    """No session token available for an authenticated call"""

    def __init__(self, message: str = "No active session. Please log in again."):
        super().__init__(message)


class ValidationFailure(PawStockError):
    """Client-side field check failed before submission"""

    def __init__(self, message: str, field: Optional[str] = None):
        self.field = field
        super().__init__(message)


class RemoteFailure(PawStockError):
    """Non-2xx response (or transport error) from the inventory API"""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        operation: Optional[str] = None,
    ):
        self.status_code = status_code
        self.operation = operation
        super().__init__(message)


class NotFound(PawStockError):
    """Product id absent from the current snapshot"""
    pass


class MutationInFlight(PawStockError):
    """A stock adjustment for this product is still pending"""

    def __init__(self, product_id: str):
        self.product_id = product_id
        super().__init__(f"Stock update already in progress for product {product_id}")


class StorageError(PawStockError):
    """Client storage could not be written"""
    pass


class ConfigError(PawStockError):
    """Configuration error"""
    pass
