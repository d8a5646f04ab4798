from datetime import datetime

from pydantic import BaseModel
from sqlalchemy import Column, Integer, Float, DateTime, String, func, CheckConstraint, Enum as SQLEnum
from sqlalchemy.orm import relationship

from enums.order_status import OrderStatus
from enums.payment_method import PaymentMethod
from enums.payment_status import PaymentStatus
from models.base import Base
from models.orderItem import OrderItemDTO


def _enum_values(enum_cls) -> list[str]:
    # stored as the lowercase values ("pending", "card"), not the member names
    return [member.value for member in enum_cls]


class Order(Base):
    __tablename__ = 'orders'

    id = Column(Integer, primary_key=True, unique=True)
    order_number = Column(String(64), nullable=False, unique=True)
    user_id = Column(String(64), nullable=True)  # NULL for guest checkouts
    email = Column(String, nullable=False)
    status = Column(SQLEnum(OrderStatus, values_callable=_enum_values), nullable=False, default=OrderStatus.PENDING)

    customer_name = Column(String, nullable=False)
    customer_email = Column(String, nullable=False)
    customer_phone = Column(String, nullable=True)

    subtotal = Column(Float, nullable=False)
    shipping_cost = Column(Float, nullable=False, default=0.0)
    total = Column(Float, nullable=False)

    payment_method = Column(SQLEnum(PaymentMethod, values_callable=_enum_values), nullable=False)
    payment_status = Column(SQLEnum(PaymentStatus, values_callable=_enum_values), nullable=False, default=PaymentStatus.PENDING)
    payment_intent_id = Column(String(64), nullable=True)  # Stripe PaymentIntent id, set once created

    # Shipping address
    shipping_first_name = Column(String, nullable=False)
    shipping_last_name = Column(String, nullable=False)
    shipping_address_line1 = Column(String, nullable=False)
    shipping_postal_code = Column(String, nullable=False)
    shipping_city = Column(String, nullable=False)
    shipping_country = Column(String, nullable=False)

    created_at = Column(DateTime, default=func.now())
    paid_at = Column(DateTime, nullable=True)

    items = relationship('OrderItem', back_populates='order', cascade='all, delete-orphan')

    __table_args__ = (
        CheckConstraint('total > 0', name='check_order_total_positive'),
        CheckConstraint('shipping_cost >= 0', name='check_order_shipping_cost_non_negative'),
    )


class OrderDTO(BaseModel):
    id: int | None = None
    order_number: str | None = None
    user_id: str | None = None
    email: str | None = None
    status: OrderStatus | None = None
    customer_name: str | None = None
    customer_email: str | None = None
    customer_phone: str | None = None
    subtotal: float | None = None
    shipping_cost: float | None = 0.0
    total: float | None = None
    payment_method: PaymentMethod | None = None
    payment_status: PaymentStatus | None = None
    payment_intent_id: str | None = None
    shipping_first_name: str | None = None
    shipping_last_name: str | None = None
    shipping_address_line1: str | None = None
    shipping_postal_code: str | None = None
    shipping_city: str | None = None
    shipping_country: str | None = None
    created_at: datetime | None = None
    paid_at: datetime | None = None


class OrderDetailDTO(OrderDTO):
    items: list[OrderItemDTO] = []
