"""
API router for the storefront cart and session identity.

Every request names its browser session in the X-Session-Id header; the
session's cart lives in the CartSessionRegistry stored on app.state.
Mutations answer with the new cart immediately, the backing store write
happens in the background.
"""

import logging
import uuid
from datetime import datetime

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status
from pydantic import BaseModel, Field

from exceptions.cart import InvalidCartQuantityException
from exceptions.session import MissingSessionException
from models.cart import CartDTO
from models.product import ProductDTO
from services.cart_session import CartSession, CartSessionRegistry
from services.pricing import PricingService

logger = logging.getLogger(__name__)

SESSION_HEADER = "X-Session-Id"

api_router = APIRouter(prefix="/api", tags=["api"])


def generate_correlation_id() -> str:
    """Generate unique correlation ID for request tracing."""
    return f"{datetime.now().strftime('%Y%m%d-%H%M%S')}-{uuid.uuid4().hex[:8]}"


class AddItemPayload(BaseModel):
    product: ProductDTO
    quantity: int = 1


class SetQuantityPayload(BaseModel):
    quantity: int


class LoginPayload(BaseModel):
    user_id: str = Field(..., min_length=1, max_length=64)


def get_registry(request: Request) -> CartSessionRegistry:
    return request.app.state.cart_sessions


async def get_cart_session(
    x_session_id: str | None = Header(None),
    registry: CartSessionRegistry = Depends(get_registry)
) -> CartSession:
    if not x_session_id:
        raise MissingSessionException(SESSION_HEADER)
    return await registry.get(x_session_id)


def cart_view(cart_session: CartSession) -> dict:
    cart: CartDTO = cart_session.cart
    return {
        "items": [line.model_dump() for line in cart.items],
        "total": cart.total,
        "item_count": PricingService.item_count(cart.items),
        "user_id": cart_session.user_id,
    }


def _invalid_quantity(correlation_id: str, e: InvalidCartQuantityException) -> HTTPException:
    logger.warning(f"[{correlation_id}] {e}")
    return HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=e.message)


@api_router.get("/cart")
async def get_cart(cart_session: CartSession = Depends(get_cart_session)):
    return cart_view(cart_session)


@api_router.post("/cart/items")
async def add_item(payload: AddItemPayload, cart_session: CartSession = Depends(get_cart_session)):
    """
    Add a product snapshot to the cart, or increase its quantity when already present.

    Returns:
        200: cart view
        400: missing X-Session-Id header
        422: quantity is not a positive integer
    """
    correlation_id = generate_correlation_id()
    try:
        cart_session.store.add(payload.product, payload.quantity)
    except InvalidCartQuantityException as e:
        raise _invalid_quantity(correlation_id, e)
    logger.info(
        f"[{correlation_id}] Added {payload.quantity} x {payload.product.id} "
        f"to cart of session {cart_session.session_id}"
    )
    return cart_view(cart_session)


@api_router.patch("/cart/items/{product_id}")
async def set_item_quantity(product_id: str, payload: SetQuantityPayload,
                            cart_session: CartSession = Depends(get_cart_session)):
    """Set the quantity of a line; zero or less removes it."""
    correlation_id = generate_correlation_id()
    try:
        cart_session.store.set_quantity(product_id, payload.quantity)
    except InvalidCartQuantityException as e:
        raise _invalid_quantity(correlation_id, e)
    return cart_view(cart_session)


@api_router.delete("/cart/items/{product_id}")
async def remove_item(product_id: str, cart_session: CartSession = Depends(get_cart_session)):
    cart_session.store.remove(product_id)
    return cart_view(cart_session)


@api_router.delete("/cart")
async def clear_cart(cart_session: CartSession = Depends(get_cart_session)):
    cart_session.store.clear()
    return cart_view(cart_session)


@api_router.post("/session/login")
async def login(payload: LoginPayload, cart_session: CartSession = Depends(get_cart_session)):
    """
    Record the user id issued by the identity provider for this session.

    The cart is reloaded from the user's stored cart before the response is sent;
    what happens to the guest cart depends on CART_LOGIN_MERGE_POLICY.
    """
    correlation_id = generate_correlation_id()
    await cart_session.sign_in(payload.user_id)
    logger.info(f"[{correlation_id}] Session {cart_session.session_id} signed in as {payload.user_id}")
    return cart_view(cart_session)


@api_router.post("/session/logout")
async def logout(cart_session: CartSession = Depends(get_cart_session)):
    correlation_id = generate_correlation_id()
    await cart_session.sign_out()
    logger.info(f"[{correlation_id}] Session {cart_session.session_id} signed out")
    return cart_view(cart_session)
