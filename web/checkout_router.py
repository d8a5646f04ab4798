import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from pydantic import BaseModel

from enums.payment_method import PaymentMethod
from exceptions.cart import EmptyCartException
from exceptions.order import OrderCreationException
from exceptions.payment import PaymentException
from models.customer import CustomerDTO
from services.cart_session import CartSession
from services.checkout import CheckoutService
from web.api_router import cart_view, get_cart_session, generate_correlation_id

logger = logging.getLogger(__name__)

checkout_router = APIRouter(prefix="/api", tags=["checkout"])


class CheckoutPayload(BaseModel):
    customer: CustomerDTO
    payment_method: PaymentMethod = PaymentMethod.CARD


def get_checkout_service(request: Request) -> CheckoutService:
    return request.app.state.checkout_service


@checkout_router.post("/checkout")
async def checkout(
    payload: CheckoutPayload,
    cart_session: CartSession = Depends(get_cart_session),
    checkout_service: CheckoutService = Depends(get_checkout_service)
):
    """
    Create the order for the session's cart and a payment intent for its total.

    Returns:
        200: {order_id, order_number, client_secret, payment_method, subtotal, shipping_cost, total}
        400: missing X-Session-Id header
        409: cart is empty
        502: order could not be stored or Stripe refused the payment intent
    """
    correlation_id = generate_correlation_id()
    logger.info(f"[{correlation_id}] Checkout for session {cart_session.session_id}")
    try:
        result = await checkout_service.checkout(cart_session, payload.customer, payload.payment_method)
    except EmptyCartException as e:
        logger.warning(f"[{correlation_id}] {e}")
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.message)
    except (OrderCreationException, PaymentException) as e:
        logger.error(f"[{correlation_id}] Checkout failed: {e}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=e.message)

    logger.info(f"[{correlation_id}] ✅ Order {result.order_number} created")
    return result.model_dump(mode="json")


@checkout_router.post("/checkout/{order_number}/confirm")
async def confirm_checkout(
    order_number: str,
    cart_session: CartSession = Depends(get_cart_session),
    checkout_service: CheckoutService = Depends(get_checkout_service)
):
    """
    Called by the browser once Stripe reports the payment as done.

    Returns:
        200: {order, cart}; the ordered lines are no longer in the cart
        404: unknown order
        409: the payment intent has not succeeded
        502: Stripe could not be asked or the order could not be updated
    """
    correlation_id = generate_correlation_id()
    logger.info(f"[{correlation_id}] Confirming order {order_number} for session {cart_session.session_id}")
    order = await checkout_service.confirm(cart_session, order_number)
    return {"order": order.model_dump(mode="json"), "cart": cart_view(cart_session)}
