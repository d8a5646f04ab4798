"""
Cart-related exceptions.
"""

from .base import StorefrontException


class CartException(StorefrontException):
    """Base exception for cart-related errors."""
    pass


class EmptyCartException(CartException):
    """Raised when trying to checkout with empty cart."""

    def __init__(self, session_id: str):
        super().__init__(
            f"Cart is empty for session {session_id}",
            details={'session_id': session_id}
        )
        self.session_id = session_id


class InvalidCartQuantityException(CartException):
    """Raised when a cart mutation carries a quantity the reducer refuses."""

    def __init__(self, product_id: str, quantity, reason: str):
        super().__init__(
            f"Invalid quantity {quantity!r} for product {product_id}: {reason}",
            details={'product_id': product_id, 'quantity': quantity, 'reason': reason}
        )
        self.product_id = product_id
        self.quantity = quantity
        self.reason = reason


class CartStoreUnavailableException(CartException):
    """Raised by a backing store adapter when its read or write fails."""

    def __init__(self, store: str, operation: str, reason: str):
        super().__init__(
            f"Cart store '{store}' unavailable during {operation}: {reason}",
            details={'store': store, 'operation': operation, 'reason': reason}
        )
        self.store = store
        self.operation = operation
        self.reason = reason


class MalformedCartSnapshotException(CartException):
    """Raised when a persisted guest cart snapshot cannot be decoded."""

    def __init__(self, key: str, reason: str):
        super().__init__(
            f"Malformed cart snapshot under key {key}: {reason}",
            details={'key': key, 'reason': reason}
        )
        self.key = key
        self.reason = reason
