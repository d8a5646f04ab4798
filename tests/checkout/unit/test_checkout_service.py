"""
CheckoutService Unit Tests

Order rows go to in-memory SQLite, Stripe is mocked.

Run with:
    pytest tests/checkout/unit/test_checkout_service.py -v
"""

import asyncio
import re
from contextlib import asynccontextmanager
from unittest.mock import patch

import pytest
import stripe
from sqlalchemy.exc import OperationalError

from enums.order_status import OrderStatus
from enums.payment_method import PaymentMethod
from enums.payment_status import PaymentStatus
from exceptions.cart import EmptyCartException
from exceptions.order import OrderCreationException, OrderNotFoundException
from exceptions.payment import PaymentIntentException, PaymentLookupException, PaymentNotCompletedException
from models.customer import CustomerDTO
from repositories.order import OrderRepository
from repositories.orderItem import OrderItemRepository
from services.cart_session import CartSessionRegistry
from services.checkout import CheckoutService, generate_order_number
from services.local_cart_store import LocalCartStore, RedisDeviceStorage
from services.payment import PaymentService
from services.remote_cart_store import RemoteCartStore

STRIPE_CREATE = "services.payment.stripe.PaymentIntent.create"
STRIPE_RETRIEVE = "services.payment.stripe.PaymentIntent.retrieve"
INTENT = {"id": "pi_1", "client_secret": "pi_1_secret_xyz"}


@pytest.fixture
def customer():
    return CustomerDTO(
        first_name="Kari",
        last_name="Nordmann",
        email="kari@example.no",
        phone="+47 912 34 567",
        address="Storgata 1",
        zip_code="0155",
        city="Oslo"
    )


@pytest.fixture
def registry(redis_client, session_factory):
    return CartSessionRegistry(LocalCartStore(RedisDeviceStorage(redis_client)), RemoteCartStore(session_factory))


@pytest.fixture
def checkout_service(session_factory):
    return CheckoutService(session_factory)


class TestOrderNumber:
    """Test generate_order_number()"""

    def test_format(self):
        assert re.fullmatch(r"ORD-\d{13}-[0-9A-Z]{9}", generate_order_number())

    def test_unique(self):
        assert len({generate_order_number() for _ in range(100)}) == 100


class TestCheckout:
    """Test CheckoutService.checkout()"""

    @pytest.mark.asyncio
    async def test_empty_cart_rejected(self, registry, checkout_service, customer):
        cart_session = await registry.get("sess-1")

        with pytest.raises(EmptyCartException):
            await checkout_service.checkout(cart_session, customer, PaymentMethod.CARD)

    @pytest.mark.asyncio
    async def test_creates_order_items_and_intent_and_keeps_cart(
            self, registry, checkout_service, customer, session_factory, product_factory):
        cart_session = await registry.get("sess-1")
        cart_session.store.add(product_factory("A", price=100.0), 2)
        cart_session.store.add(product_factory("B", price=50.0), 1)

        with patch(STRIPE_CREATE, return_value={"id": "pi_1", "client_secret": "pi_1_secret_xyz"}) as create:
            result = await checkout_service.checkout(cart_session, customer, PaymentMethod.VIPPS)

        # 250 kr is below the free-shipping threshold
        assert result.subtotal == 250.0
        assert result.shipping_cost == 79.0
        assert result.total == 329.0
        assert result.client_secret == "pi_1_secret_xyz"
        assert create.call_args.kwargs["amount"] == 32900
        assert create.call_args.kwargs["metadata"] == {"orderId": result.order_number,
                                                      "customerEmail": "kari@example.no"}
        # cleared only once the payment is confirmed
        assert [line.product.id for line in cart_session.cart.items] == ["A", "B"]

        async with session_factory() as session:
            order = await OrderRepository.get_by_order_number(result.order_number, session)
            items = await OrderItemRepository.get_by_order_id(order.id, session)

        assert order.status == OrderStatus.PENDING
        assert order.payment_status == PaymentStatus.PENDING
        assert order.payment_method == PaymentMethod.VIPPS
        assert order.payment_intent_id == "pi_1"
        assert order.customer_name == "Kari Nordmann"
        assert order.shipping_country == "Norge"
        assert order.user_id is None
        assert [(item.product_id, item.quantity, item.total_price) for item in items] == [
            ("A", 2, 200.0), ("B", 1, 50.0)
        ]

    @pytest.mark.asyncio
    async def test_free_shipping_from_threshold(self, registry, checkout_service, customer, product_factory):
        cart_session = await registry.get("sess-1")
        cart_session.store.add(product_factory("A", price=250.0), 2)

        with patch(STRIPE_CREATE, return_value={"id": "pi_1", "client_secret": "pi_1_secret_xyz"}) as create:
            result = await checkout_service.checkout(cart_session, customer, PaymentMethod.CARD)

        assert result.shipping_cost == 0.0
        assert result.total == 500.0
        assert create.call_args.kwargs["amount"] == 50000

    @pytest.mark.asyncio
    async def test_authenticated_order_carries_user_id(self, registry, checkout_service, customer,
                                                       session_factory, product_factory):
        cart_session = await registry.get("sess-1")
        await cart_session.sign_in("user-1")
        cart_session.store.add(product_factory("A", price=600.0), 1)

        with patch(STRIPE_CREATE, return_value={"id": "pi_1", "client_secret": "pi_1_secret_xyz"}):
            result = await checkout_service.checkout(cart_session, customer, PaymentMethod.CARD)
        await cart_session.coordinator.write_queue.drain()

        async with session_factory() as session:
            order = await OrderRepository.get_by_order_number(result.order_number, session)
        assert order.user_id == "user-1"
        assert len((await registry.remote_store.load("user-1")).items) == 1

    @pytest.mark.asyncio
    async def test_payment_failure_keeps_cart(self, registry, checkout_service, customer, session_factory,
                                              product_factory):
        cart_session = await registry.get("sess-1")
        cart_session.store.add(product_factory("A", price=100.0), 1)
        error = stripe.APIConnectionError("Could not connect to Stripe")

        with patch(STRIPE_CREATE, side_effect=error):
            with pytest.raises(PaymentIntentException):
                await checkout_service.checkout(cart_session, customer, PaymentMethod.CARD)

        assert [line.product.id for line in cart_session.cart.items] == ["A"]

    @pytest.mark.asyncio
    async def test_order_failure_skips_payment_and_keeps_cart(self, registry, customer, product_factory):
        @asynccontextmanager
        async def broken_session():
            raise OperationalError("INSERT INTO orders", {}, Exception("disk I/O error"))
            yield

        cart_session = await registry.get("sess-1")
        cart_session.store.add(product_factory("A", price=100.0), 1)

        with patch(STRIPE_CREATE) as create:
            with pytest.raises(OrderCreationException) as exc_info:
                await CheckoutService(broken_session).checkout(cart_session, customer, PaymentMethod.CARD)

        assert exc_info.value.step == "order"
        create.assert_not_called()
        assert len(cart_session.cart.items) == 1


def _quantities(cart) -> list[tuple[str, int]]:
    return [(line.product.id, line.quantity) for line in cart.items]


class TestConfirm:
    """Test CheckoutService.confirm()"""

    async def _checkout(self, checkout_service, cart_session, customer):
        with patch(STRIPE_CREATE, return_value=INTENT):
            return await checkout_service.checkout(cart_session, customer, PaymentMethod.CARD)

    @pytest.mark.asyncio
    async def test_succeeded_payment_marks_order_paid_and_removes_ordered_lines(
            self, registry, checkout_service, customer, session_factory, product_factory):
        cart_session = await registry.get("sess-1")
        cart_session.store.add(product_factory("A", price=100.0), 2)
        result = await self._checkout(checkout_service, cart_session, customer)
        # added after checkout, not part of the order
        cart_session.store.add(product_factory("A", price=100.0), 1)
        cart_session.store.add(product_factory("B", price=50.0), 1)

        with patch(STRIPE_RETRIEVE, return_value={"id": "pi_1", "status": "succeeded"}) as retrieve:
            order = await checkout_service.confirm(cart_session, result.order_number)

        retrieve.assert_called_once_with("pi_1")
        assert order.status == OrderStatus.PAID
        assert order.payment_status == PaymentStatus.SUCCEEDED
        assert [(item.product_id, item.quantity) for item in order.items] == [("A", 2)]
        assert _quantities(cart_session.cart) == [("A", 1), ("B", 1)]

        async with session_factory() as session:
            stored = await OrderRepository.get_by_order_number(result.order_number, session)
        assert stored.status == OrderStatus.PAID
        assert stored.paid_at is not None

    @pytest.mark.asyncio
    async def test_lines_added_while_checkout_awaits_stripe_survive_confirmation(
            self, registry, checkout_service, customer, product_factory):
        cart_session = await registry.get("sess-1")
        cart_session.store.add(product_factory("A", price=100.0), 1)
        gate = asyncio.Event()
        create_intent = PaymentService.create_payment_intent

        async def slow_intent(*args, **kwargs):
            await gate.wait()
            return await create_intent(*args, **kwargs)

        with patch(STRIPE_CREATE, return_value=INTENT), \
                patch.object(PaymentService, "create_payment_intent", side_effect=slow_intent):
            checkout = asyncio.create_task(checkout_service.checkout(cart_session, customer, PaymentMethod.CARD))
            await asyncio.sleep(0.05)
            cart_session.store.add(product_factory("B", price=50.0), 1)
            gate.set()
            result = await checkout

        assert _quantities(cart_session.cart) == [("A", 1), ("B", 1)]

        with patch(STRIPE_RETRIEVE, return_value={"id": "pi_1", "status": "succeeded"}):
            await checkout_service.confirm(cart_session, result.order_number)

        assert _quantities(cart_session.cart) == [("B", 1)]

    @pytest.mark.asyncio
    async def test_unfinished_payment_keeps_cart_and_pending_order(
            self, registry, checkout_service, customer, session_factory, product_factory):
        cart_session = await registry.get("sess-1")
        cart_session.store.add(product_factory("A", price=100.0), 1)
        result = await self._checkout(checkout_service, cart_session, customer)

        with patch(STRIPE_RETRIEVE, return_value={"id": "pi_1", "status": "requires_payment_method"}):
            with pytest.raises(PaymentNotCompletedException) as exc_info:
                await checkout_service.confirm(cart_session, result.order_number)

        assert exc_info.value.intent_status == "requires_payment_method"
        assert _quantities(cart_session.cart) == [("A", 1)]
        async with session_factory() as session:
            stored = await OrderRepository.get_by_order_number(result.order_number, session)
        assert stored.status == OrderStatus.PENDING

    @pytest.mark.asyncio
    async def test_second_confirmation_leaves_cart_alone(self, registry, checkout_service, customer,
                                                         product_factory):
        cart_session = await registry.get("sess-1")
        cart_session.store.add(product_factory("A", price=100.0), 1)
        result = await self._checkout(checkout_service, cart_session, customer)

        with patch(STRIPE_RETRIEVE, return_value={"id": "pi_1", "status": "succeeded"}) as retrieve:
            await checkout_service.confirm(cart_session, result.order_number)
            cart_session.store.add(product_factory("A", price=100.0), 1)
            order = await checkout_service.confirm(cart_session, result.order_number)

        assert retrieve.call_count == 1
        assert order.status == OrderStatus.PAID
        assert _quantities(cart_session.cart) == [("A", 1)]

    @pytest.mark.asyncio
    async def test_order_of_another_user_is_not_found(self, registry, checkout_service, customer, product_factory):
        owner = await registry.get("sess-1")
        await owner.sign_in("user-1")
        owner.store.add(product_factory("A", price=100.0), 1)
        result = await self._checkout(checkout_service, owner, customer)
        other = await registry.get("sess-2")
        await other.sign_in("user-2")

        with patch(STRIPE_RETRIEVE) as retrieve:
            with pytest.raises(OrderNotFoundException):
                await checkout_service.confirm(other, result.order_number)

        retrieve.assert_not_called()

    @pytest.mark.asyncio
    async def test_stripe_lookup_failure(self, registry, checkout_service, customer, product_factory):
        cart_session = await registry.get("sess-1")
        cart_session.store.add(product_factory("A", price=100.0), 1)
        result = await self._checkout(checkout_service, cart_session, customer)

        with patch(STRIPE_RETRIEVE, side_effect=stripe.APIConnectionError("Could not connect to Stripe")):
            with pytest.raises(PaymentLookupException):
                await checkout_service.confirm(cart_session, result.order_number)

        assert _quantities(cart_session.cart) == [("A", 1)]
