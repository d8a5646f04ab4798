"""
Models Package

This file ensures all SQLAlchemy models are imported and registered,
which is required for relationships to work correctly.
"""

from models.base import Base
from models.user_cart import UserCart
from models.order import Order
from models.orderItem import OrderItem

__all__ = [
    'Base',
    'UserCart',
    'Order',
    'OrderItem',
]
