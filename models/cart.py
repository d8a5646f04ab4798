# in-memory cart held by a CartStore. Lines are mirrored into exactly one backing
# store at a time (guest key-value snapshot or the user_carts table).
from typing import Any

from pydantic import BaseModel, Field

from enums.cart_action_type import CartActionType
from enums.cart_write_operation import CartWriteOperation
from models.product import ProductDTO


class CartLineDTO(BaseModel):
    product: ProductDTO
    quantity: int = Field(..., gt=0)

    @property
    def line_total(self) -> float:
        return self.product.price * self.quantity


class CartDTO(BaseModel):
    items: list[CartLineDTO] = Field(default_factory=list)
    total: float = 0.0

    def find(self, product_id: str) -> CartLineDTO | None:
        for line in self.items:
            if line.product.id == product_id:
                return line
        return None


class CartActionDTO(BaseModel):
    kind: CartActionType
    product: ProductDTO | None = None
    product_id: str | None = None
    # validated by CartReducer
    quantity: Any = None

    @property
    def target_product_id(self) -> str | None:
        if self.product is not None:
            return self.product.id
        return self.product_id


class CartWriteDTO(BaseModel):
    operation: CartWriteOperation
    owner_id: str  # user id for remote writes, guest session id for local writes
    product_id: str | None = None
    line: CartLineDTO | None = None
    cart: CartDTO | None = None
