import logging
import secrets
import string
import time
from datetime import datetime
from typing import Callable

from sqlalchemy.exc import SQLAlchemyError

import config
from db import get_db_session, session_commit
from enums.order_status import OrderStatus
from enums.payment_method import PaymentMethod
from enums.payment_status import PaymentStatus
from exceptions.cart import EmptyCartException
from exceptions.order import OrderCreationException, OrderUpdateException
from exceptions.payment import PaymentNotCompletedException
from models.cart import CartDTO
from models.customer import CustomerDTO, CheckoutResultDTO
from models.order import OrderDTO, OrderDetailDTO
from models.orderItem import OrderItemDTO
from repositories.order import OrderRepository
from repositories.orderItem import OrderItemRepository
from services.cart_session import CartSession
from services.order import OrderService
from services.payment import PaymentService
from services.pricing import PricingService

logger = logging.getLogger(__name__)

_ORDER_SUFFIX_ALPHABET = string.digits + string.ascii_uppercase


def generate_order_number() -> str:
    """ORD-<epoch milliseconds>-<9 random base36 characters>, e.g. ORD-1735689600000-K3F9Q2ZLA."""
    suffix = "".join(secrets.choice(_ORDER_SUFFIX_ALPHABET) for _ in range(9))
    return f"ORD-{int(time.time() * 1000)}-{suffix}"


class CheckoutService:
    """
    Turns the cart of a session into an order plus a Stripe payment intent.

    checkout() steps run strictly in order and the first failure aborts the flow:
    1. order row and order item rows (one transaction)
    2. payment intent, whose id is stored on the order

    The cart is left as it is: the browser still has to confirm the payment.
    confirm() asks Stripe whether the intent succeeded, marks the order paid and
    takes the ordered quantities out of the cart. Lines added after checkout
    stay in the cart.
    """

    def __init__(self, session_factory: Callable = get_db_session, order_service: OrderService | None = None):
        self.session_factory = session_factory
        self.order_service = order_service or OrderService(session_factory)

    async def checkout(self, cart_session: CartSession, customer: CustomerDTO,
                       payment_method: PaymentMethod) -> CheckoutResultDTO:
        cart = cart_session.cart
        if not cart.items:
            raise EmptyCartException(cart_session.session_id)

        subtotal = PricingService.calculate_total(cart.items)
        shipping_cost = PricingService.calculate_shipping(subtotal)
        total = PricingService.add_amounts(subtotal, shipping_cost)
        order_number = generate_order_number()
        logger.info(
            f"[Checkout] Creating order {order_number} for session {cart_session.session_id}: "
            f"subtotal={subtotal}, shipping={shipping_cost}, total={total}"
        )

        order = OrderDTO(
            order_number=order_number,
            user_id=cart_session.user_id,
            email=customer.email,
            status=OrderStatus.PENDING,
            customer_name=customer.full_name,
            customer_email=customer.email,
            customer_phone=customer.phone,
            subtotal=subtotal,
            shipping_cost=shipping_cost,
            total=total,
            payment_method=payment_method,
            payment_status=PaymentStatus.PENDING,
            shipping_first_name=customer.first_name,
            shipping_last_name=customer.last_name,
            shipping_address_line1=customer.address,
            shipping_postal_code=customer.zip_code,
            shipping_city=customer.city,
            shipping_country=config.SHIPPING_COUNTRY
        )
        order = await self._save_order(order, cart)

        intent = await PaymentService.create_payment_intent(total, order_number, customer.email)
        await self._save_payment_intent(order, intent.id)
        logger.info(f"[Checkout] Order {order_number} awaiting payment, cart of session {cart_session.session_id} kept")

        return CheckoutResultDTO(
            order_id=order.id,
            order_number=order_number,
            client_secret=intent.client_secret,
            payment_method=payment_method,
            subtotal=subtotal,
            shipping_cost=shipping_cost,
            total=total
        )

    async def _save_order(self, order: OrderDTO, cart: CartDTO) -> OrderDTO:
        step = "order"
        try:
            async with self.session_factory() as session:
                order = await OrderRepository.create(order, session)
                step = "order_items"
                await OrderItemRepository.create_many(
                    [OrderItemDTO(
                        order_id=order.id,
                        product_id=line.product.id,
                        product_name=line.product.name,
                        unit_price=line.product.price,
                        quantity=line.quantity,
                        total_price=PricingService.calculate_total([line])
                    ) for line in cart.items],
                    session
                )
                await session_commit(session)
        except SQLAlchemyError as e:
            logger.error(f"[Checkout] Failed at step '{step}' for order {order.order_number}: {e}")
            raise OrderCreationException(order.order_number, step, str(e)) from e
        return order

    async def _save_payment_intent(self, order: OrderDTO, payment_intent_id: str) -> None:
        try:
            async with self.session_factory() as session:
                await OrderRepository.update_payment_intent(order.id, payment_intent_id, session)
                await session_commit(session)
        except SQLAlchemyError as e:
            logger.error(f"[Checkout] Could not store intent {payment_intent_id} on order {order.order_number}: {e}")
            raise OrderCreationException(order.order_number, "payment_intent", str(e)) from e

    async def confirm(self, cart_session: CartSession, order_number: str) -> OrderDetailDTO:
        """
        Record a succeeded payment and remove the ordered lines from the cart.

        Confirming an order that is already paid returns it unchanged and leaves
        the cart alone.

        Raises:
            OrderNotFoundException: unknown order, or one that belongs to another user
            PaymentNotCompletedException: Stripe does not report the intent as succeeded
            PaymentLookupException: Stripe could not be asked
            OrderUpdateException: the paid state could not be stored
        """
        order = await self.order_service.get_order(order_number, cart_session.user_id)
        if order.payment_status == PaymentStatus.SUCCEEDED:
            logger.info(f"[Checkout] Order {order_number} already confirmed")
            return order
        if order.payment_intent_id is None:
            raise PaymentNotCompletedException(order_number, None)

        intent_status = await PaymentService.get_payment_intent_status(order.payment_intent_id, order_number)
        if intent_status != "succeeded":
            logger.warning(f"[Checkout] Order {order_number} not confirmed, payment intent is {intent_status}")
            raise PaymentNotCompletedException(order_number, intent_status)

        paid_at = datetime.now()
        try:
            async with self.session_factory() as session:
                marked = await OrderRepository.update_payment_confirmation(order.id, paid_at, session)
                await session_commit(session)
        except SQLAlchemyError as e:
            logger.error(f"[Checkout] Could not mark order {order_number} paid: {e}")
            raise OrderUpdateException(order_number, str(e)) from e

        if marked:
            self._remove_ordered_lines(cart_session, order)
            logger.info(f"[Checkout] ✅ Order {order_number} paid, ordered lines removed from session "
                        f"{cart_session.session_id}")
        return order.model_copy(update={
            "status": OrderStatus.PAID,
            "payment_status": PaymentStatus.SUCCEEDED,
            "paid_at": paid_at
        })

    @staticmethod
    def _remove_ordered_lines(cart_session: CartSession, order: OrderDetailDTO) -> None:
        # only the ordered quantity goes; units added after checkout stay
        for item in order.items:
            line = cart_session.cart.find(item.product_id)
            if line is not None:
                cart_session.store.set_quantity(item.product_id, line.quantity - item.quantity)
