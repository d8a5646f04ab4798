# one row per (user, product): the remote cart of an authenticated user. Product
# columns are a snapshot taken at add time so the cart renders without a catalog join.
from datetime import datetime

from pydantic import BaseModel
from sqlalchemy import Column, Integer, String, Float, Boolean, DateTime, Text, func, CheckConstraint, \
    UniqueConstraint, Index

from models.base import Base


class UserCart(Base):
    __tablename__ = "user_carts"

    id = Column(Integer, primary_key=True)
    user_id = Column(String(64), nullable=False)
    product_id = Column(String(64), nullable=False)
    quantity = Column(Integer, nullable=False, default=1)

    # Denormalized product snapshot
    product_name = Column(String, nullable=True)
    product_slug = Column(String, nullable=True)
    product_description = Column(Text, nullable=True)
    product_price = Column(Float, nullable=True)
    product_compare_at_price = Column(Float, nullable=True)
    product_image = Column(String, nullable=True)
    product_category = Column(String, nullable=True)
    product_in_stock = Column(Boolean, nullable=True)

    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    __table_args__ = (
        CheckConstraint('quantity > 0', name='check_user_cart_quantity_positive'),
        UniqueConstraint('user_id', 'product_id', name='uq_user_carts_user_product'),
        Index('ix_user_carts_user_id', 'user_id'),
    )


class UserCartDTO(BaseModel):
    id: int | None = None
    user_id: str | None = None
    product_id: str | None = None
    quantity: int | None = None
    product_name: str | None = None
    product_slug: str | None = None
    product_description: str | None = None
    product_price: float | None = None
    product_compare_at_price: float | None = None
    product_image: str | None = None
    product_category: str | None = None
    product_in_stock: bool | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
