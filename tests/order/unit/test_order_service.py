"""
OrderService Unit Tests

Uses in-memory SQLite database for testing.

Run with:
    pytest tests/order/unit/test_order_service.py -v
"""

import pytest

from db import session_commit
from enums.order_status import OrderStatus
from enums.payment_method import PaymentMethod
from enums.payment_status import PaymentStatus
from exceptions.order import OrderNotFoundException
from models.order import OrderDTO
from models.orderItem import OrderItemDTO
from repositories.order import OrderRepository
from repositories.orderItem import OrderItemRepository
from services.order import OrderService


@pytest.fixture
def order_service(session_factory):
    return OrderService(session_factory)


@pytest.fixture
def place_order(session_factory):
    async def _place(order_number: str, user_id: str | None = None, items: list[tuple[str, int]] = ()):
        async with session_factory() as session:
            order = await OrderRepository.create(OrderDTO(
                order_number=order_number,
                user_id=user_id,
                email="kari@example.no",
                status=OrderStatus.PENDING,
                customer_name="Kari Nordmann",
                customer_email="kari@example.no",
                subtotal=100.0,
                shipping_cost=79.0,
                total=179.0,
                payment_method=PaymentMethod.CARD,
                payment_status=PaymentStatus.PENDING,
                shipping_first_name="Kari",
                shipping_last_name="Nordmann",
                shipping_address_line1="Storgata 1",
                shipping_postal_code="0155",
                shipping_city="Oslo",
                shipping_country="Norge"
            ), session)
            await OrderItemRepository.create_many([
                OrderItemDTO(order_id=order.id, product_id=product_id, product_name=f"Product {product_id}",
                             unit_price=50.0, quantity=quantity, total_price=50.0 * quantity)
                for product_id, quantity in items
            ], session)
            await session_commit(session)
        return order

    return _place


class TestOrderService:
    """Test order history and single order lookups"""

    @pytest.mark.asyncio
    async def test_get_orders_returns_only_users_orders_newest_first(self, order_service, place_order):
        await place_order("ORD-1", user_id="user-1")
        await place_order("ORD-2", user_id="user-2")
        await place_order("ORD-3", user_id="user-1")
        await place_order("ORD-4")

        orders = await order_service.get_orders("user-1")

        assert [order.order_number for order in orders] == ["ORD-3", "ORD-1"]

    @pytest.mark.asyncio
    async def test_get_order_includes_items(self, order_service, place_order):
        await place_order("ORD-1", user_id="user-1", items=[("a", 1), ("b", 2)])

        order = await order_service.get_order("ORD-1", "user-1")

        assert order.total == 179.0
        assert [(item.product_id, item.quantity) for item in order.items] == [("a", 1), ("b", 2)]

    @pytest.mark.asyncio
    async def test_guest_order_is_reachable_by_number(self, order_service, place_order):
        await place_order("ORD-1", items=[("a", 1)])

        assert (await order_service.get_order("ORD-1", None)).order_number == "ORD-1"
        assert (await order_service.get_order("ORD-1", "user-9")).order_number == "ORD-1"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("user_id", [None, "user-2"])
    async def test_order_of_another_user_is_not_found(self, order_service, place_order, user_id):
        await place_order("ORD-1", user_id="user-1")

        with pytest.raises(OrderNotFoundException):
            await order_service.get_order("ORD-1", user_id)

    @pytest.mark.asyncio
    async def test_unknown_order(self, order_service):
        with pytest.raises(OrderNotFoundException) as exc_info:
            await order_service.get_order("ORD-missing", "user-1")

        assert exc_info.value.order_number == "ORD-missing"
