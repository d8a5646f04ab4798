# product snapshot: the denormalized copy of catalog fields that travels with a cart
# line. It is captured when the line is added and never refreshed from the catalog,
# so the cart shows the price the visitor saw at add time.
from pydantic import BaseModel, Field


class ProductDTO(BaseModel):
    id: str
    name: str
    slug: str = ""
    description: str = ""
    price: float = Field(..., ge=0)
    original_price: float | None = None
    image: str = ""
    images: list[str] | None = None
    category: str = ""
    brand: str = ""
    in_stock: bool = True

    @property
    def primary_image(self) -> str:
        if self.image:
            return self.image
        if self.images:
            return self.images[0]
        return ""
