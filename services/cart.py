from typing import Iterable

from enums.cart_action_type import CartActionType
from exceptions.cart import InvalidCartQuantityException
from models.cart import CartDTO, CartLineDTO, CartActionDTO
from models.product import ProductDTO
from services.pricing import PricingService


def _is_integer(value) -> bool:
    # bool is an int subclass; True must not sneak in as quantity 1
    return isinstance(value, int) and not isinstance(value, bool)


class CartReducer:
    """
    In-memory cart transitions.

    Every method takes the current CartDTO and returns a new one; the input is
    never mutated. The total is recomputed on every transition, so a cart with
    a stale total is never observable.
    """

    @staticmethod
    def empty() -> CartDTO:
        return CartDTO(items=[], total=0.0)

    @staticmethod
    def from_lines(lines: Iterable[CartLineDTO]) -> CartDTO:
        items = [line.model_copy(deep=True) for line in lines]
        return CartDTO(items=items, total=PricingService.calculate_total(items))

    @staticmethod
    def add(cart: CartDTO, product: ProductDTO, quantity: int = 1) -> CartDTO:
        """
        Add quantity units of product.

        An existing line for the same product id is incremented; otherwise a new
        line is appended carrying the given product snapshot.

        Raises:
            InvalidCartQuantityException: quantity is not a positive integer
        """
        if not _is_integer(quantity):
            raise InvalidCartQuantityException(product.id, quantity, "quantity must be an integer")
        if quantity <= 0:
            raise InvalidCartQuantityException(product.id, quantity, "quantity must be positive")

        items: list[CartLineDTO] = []
        found = False
        for line in cart.items:
            if line.product.id == product.id:
                items.append(CartLineDTO(product=line.product, quantity=line.quantity + quantity))
                found = True
            else:
                items.append(line)
        if not found:
            items.append(CartLineDTO(product=product, quantity=quantity))
        return CartReducer.from_lines(items)

    @staticmethod
    def remove(cart: CartDTO, product_id: str) -> CartDTO:
        """Drop the line for product_id. Removing an absent product is a no-op."""
        items = [line for line in cart.items if line.product.id != product_id]
        return CartReducer.from_lines(items)

    @staticmethod
    def set_quantity(cart: CartDTO, product_id: str, quantity: int) -> CartDTO:
        """
        Replace the quantity of an existing line.

        A quantity of zero or below is the same as remove(product_id).
        Setting the quantity of a product that is not in the cart changes nothing.

        Raises:
            InvalidCartQuantityException: quantity is not an integer
        """
        if not _is_integer(quantity):
            raise InvalidCartQuantityException(product_id, quantity, "quantity must be an integer")
        if quantity <= 0:
            return CartReducer.remove(cart, product_id)

        items = [
            CartLineDTO(product=line.product, quantity=quantity) if line.product.id == product_id else line
            for line in cart.items
        ]
        return CartReducer.from_lines(items)

    @staticmethod
    def clear(cart: CartDTO | None = None) -> CartDTO:
        return CartReducer.empty()

    @staticmethod
    def reduce(cart: CartDTO, action: CartActionDTO) -> CartDTO:
        """Apply one action; the single entry point CartStore uses."""
        match action.kind:
            case CartActionType.ADD:
                quantity = 1 if action.quantity is None else action.quantity
                return CartReducer.add(cart, action.product, quantity)
            case CartActionType.REMOVE:
                return CartReducer.remove(cart, action.target_product_id)
            case CartActionType.SET_QUANTITY:
                return CartReducer.set_quantity(cart, action.target_product_id, action.quantity)
            case CartActionType.CLEAR:
                return CartReducer.clear(cart)
        raise ValueError(f"Unknown cart action: {action.kind}")

    @staticmethod
    def merge(base: CartDTO, incoming: CartDTO) -> CartDTO:
        """
        Sum incoming lines into base by product id.

        Quantities of products present in both carts are added up; the snapshot
        already in base wins. Products only in incoming are appended.
        """
        merged = base
        for line in incoming.items:
            existing = merged.find(line.product.id)
            product = existing.product if existing is not None else line.product
            merged = CartReducer.add(merged, product, line.quantity)
        return merged
