"""
Payment-related exceptions.
"""

from .base import StorefrontException


class PaymentException(StorefrontException):
    """Base exception for payment-related errors."""
    pass


class PaymentIntentException(PaymentException):
    """Raised when the payment processor refuses to create a payment intent."""

    def __init__(self, order_number: str, amount: int, reason: str):
        super().__init__(
            f"Payment intent creation failed for order {order_number} (amount {amount}): {reason}",
            details={'order_number': order_number, 'amount': amount, 'reason': reason}
        )
        self.order_number = order_number
        self.amount = amount
        self.reason = reason


class InvalidPaymentAmountException(PaymentException):
    """Raised when the amount to charge is not positive."""

    def __init__(self, amount: float, currency: str):
        super().__init__(
            f"Invalid payment amount: {amount} {currency}",
            details={'amount': amount, 'currency': currency}
        )
        self.amount = amount
        self.currency = currency


class PaymentLookupException(PaymentException):
    """Raised when the payment processor cannot report the state of a payment intent."""

    def __init__(self, order_number: str, reason: str):
        super().__init__(
            f"Could not look up payment of order {order_number}: {reason}",
            details={'order_number': order_number, 'reason': reason}
        )
        self.order_number = order_number
        self.reason = reason


class PaymentNotCompletedException(PaymentException):
    """Raised when an order is confirmed before its payment has succeeded."""

    def __init__(self, order_number: str, intent_status: str | None):
        super().__init__(
            f"Payment of order {order_number} has not succeeded (status: {intent_status or 'no payment intent'})",
            details={'order_number': order_number, 'intent_status': intent_status}
        )
        self.order_number = order_number
        self.intent_status = intent_status
