from pydantic import BaseModel, Field

from enums.payment_method import PaymentMethod


class CustomerDTO(BaseModel):
    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=3)
    phone: str | None = None
    address: str = Field(..., min_length=1)
    zip_code: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


class PaymentIntentDTO(BaseModel):
    id: str | None = None
    client_secret: str
    amount: int
    currency: str


class CheckoutResultDTO(BaseModel):
    order_id: int
    order_number: str
    client_secret: str
    payment_method: PaymentMethod
    subtotal: float
    shipping_cost: float
    total: float
