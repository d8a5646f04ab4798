"""
Order-related exceptions.
"""

from .base import StorefrontException


class OrderException(StorefrontException):
    """Base exception for order-related errors."""
    pass


class OrderCreationException(OrderException):
    """Raised when a checkout step writing the order or its items fails."""

    def __init__(self, order_number: str, step: str, reason: str):
        super().__init__(
            f"Could not create order {order_number} ({step}): {reason}",
            details={'order_number': order_number, 'step': step, 'reason': reason}
        )
        self.order_number = order_number
        self.step = step
        self.reason = reason


class OrderUpdateException(OrderException):
    """Raised when a stored order cannot be updated."""

    def __init__(self, order_number: str, reason: str):
        super().__init__(
            f"Could not update order {order_number}: {reason}",
            details={'order_number': order_number, 'reason': reason}
        )
        self.order_number = order_number
        self.reason = reason


class OrderNotFoundException(OrderException):
    """Raised when order is not found in database."""

    def __init__(self, order_number: str):
        super().__init__(
            f"Order {order_number} not found",
            details={'order_number': order_number}
        )
        self.order_number = order_number
