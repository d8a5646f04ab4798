"""
Order history and order confirmation lookups.

Order numbers are looked up for the session's current user; guest orders
are reachable by their number alone.
"""

import logging

from fastapi import APIRouter, Depends, Request

from exceptions.session import NotSignedInException
from services.cart_session import CartSession
from services.order import OrderService
from web.api_router import get_cart_session

logger = logging.getLogger(__name__)

order_router = APIRouter(prefix="/api", tags=["orders"])


def get_order_service(request: Request) -> OrderService:
    return request.app.state.order_service


@order_router.get("/orders")
async def list_orders(
    cart_session: CartSession = Depends(get_cart_session),
    order_service: OrderService = Depends(get_order_service)
):
    """
    Orders of the signed-in user, newest first.

    Returns:
        200: list of orders (without items)
        401: the session is not signed in
    """
    if cart_session.user_id is None:
        raise NotSignedInException(cart_session.session_id)
    orders = await order_service.get_orders(cart_session.user_id)
    return [order.model_dump(mode="json") for order in orders]


@order_router.get("/orders/{order_number}")
async def get_order(
    order_number: str,
    cart_session: CartSession = Depends(get_cart_session),
    order_service: OrderService = Depends(get_order_service)
):
    order = await order_service.get_order(order_number, cart_session.user_id)
    return order.model_dump(mode="json")
