"""
Custom exceptions for the storefront.

This module provides a hierarchy of custom exceptions for consistent error handling
throughout the application.

Exception Hierarchy:
--------------------
StorefrontException (base)
├── CartException
│   ├── EmptyCartException
│   ├── InvalidCartQuantityException
│   ├── CartStoreUnavailableException
│   └── MalformedCartSnapshotException
├── OrderException
│   ├── OrderCreationException
│   ├── OrderUpdateException
│   └── OrderNotFoundException
├── PaymentException
│   ├── PaymentIntentException
│   ├── PaymentLookupException
│   ├── PaymentNotCompletedException
│   └── InvalidPaymentAmountException
└── SessionException
    ├── MissingSessionException
    └── NotSignedInException

Usage:
------
Services raise specific exceptions:
    raise InvalidCartQuantityException(product_id="p-1", quantity=0, reason="must be positive")

The web layer catches them and maps them to HTTP errors:
    try:
        cart = cart_session.store.add(product, quantity)
    except InvalidCartQuantityException as e:
        raise HTTPException(status_code=422, detail=str(e))
"""

from .base import StorefrontException
from .cart import (
    CartException,
    EmptyCartException,
    InvalidCartQuantityException,
    CartStoreUnavailableException,
    MalformedCartSnapshotException
)
from .order import OrderException, OrderCreationException, OrderUpdateException, OrderNotFoundException
from .payment import (
    PaymentException,
    PaymentIntentException,
    PaymentLookupException,
    PaymentNotCompletedException,
    InvalidPaymentAmountException
)
from .session import SessionException, MissingSessionException, NotSignedInException

__all__ = [
    # Base
    'StorefrontException',

    # Cart
    'CartException',
    'EmptyCartException',
    'InvalidCartQuantityException',
    'CartStoreUnavailableException',
    'MalformedCartSnapshotException',

    # Order
    'OrderException',
    'OrderCreationException',
    'OrderUpdateException',
    'OrderNotFoundException',

    # Payment
    'PaymentException',
    'PaymentIntentException',
    'PaymentLookupException',
    'PaymentNotCompletedException',
    'InvalidPaymentAmountException',

    # Session
    'SessionException',
    'MissingSessionException',
    'NotSignedInException',
]
