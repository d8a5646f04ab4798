from typing import Callable

from enums.cart_action_type import CartActionType
from models.cart import CartDTO, CartActionDTO
from models.product import ProductDTO
from services.cart import CartReducer
from services.pricing import PricingService

# listener(action, previous_cart, next_cart)
TransitionListener = Callable[[CartActionDTO, CartDTO, CartDTO], None]


class CartStore:
    """
    The cart of one browser session.

    Consumers get this object by reference; every user mutation goes through
    dispatch() and therefore through CartReducer. Subscribers are told about
    each transition after the new state is in place.
    """

    def __init__(self, cart: CartDTO | None = None):
        self._cart = cart if cart is not None else CartReducer.empty()
        self._listeners: list[TransitionListener] = []

    @property
    def cart(self) -> CartDTO:
        return self._cart

    @property
    def item_count(self) -> int:
        return PricingService.item_count(self._cart.items)

    def subscribe(self, listener: TransitionListener) -> None:
        self._listeners.append(listener)

    def dispatch(self, action: CartActionDTO) -> CartDTO:
        previous = self._cart
        self._cart = CartReducer.reduce(previous, action)
        for listener in list(self._listeners):
            listener(action, previous, self._cart)
        return self._cart

    def hydrate(self, cart: CartDTO) -> None:
        """Swap in a cart loaded from a backing store. Subscribers are not notified."""
        self._cart = CartReducer.from_lines(cart.items)

    def add(self, product: ProductDTO, quantity: int = 1) -> CartDTO:
        return self.dispatch(CartActionDTO(kind=CartActionType.ADD, product=product, quantity=quantity))

    def remove(self, product_id: str) -> CartDTO:
        return self.dispatch(CartActionDTO(kind=CartActionType.REMOVE, product_id=product_id))

    def set_quantity(self, product_id: str, quantity: int) -> CartDTO:
        return self.dispatch(CartActionDTO(kind=CartActionType.SET_QUANTITY, product_id=product_id, quantity=quantity))

    def clear(self) -> CartDTO:
        return self.dispatch(CartActionDTO(kind=CartActionType.CLEAR))
