from enum import Enum


class OrderStatus(str, Enum):
    PENDING = "pending"        # Order row created, waiting for payment
    PAID = "paid"              # Payment confirmed by the processor
    SHIPPED = "shipped"
    CANCELLED = "cancelled"
