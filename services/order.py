import logging
from typing import Callable

from db import get_db_session
from exceptions.order import OrderNotFoundException
from models.order import OrderDTO, OrderDetailDTO
from repositories.order import OrderRepository
from repositories.orderItem import OrderItemRepository

logger = logging.getLogger(__name__)


class OrderService:
    """
    Read access to placed orders.

    An order placed while signed in belongs to that user; a guest order is
    reachable by whoever holds its order number.
    """

    def __init__(self, session_factory: Callable = get_db_session):
        self.session_factory = session_factory

    async def get_orders(self, user_id: str) -> list[OrderDTO]:
        """Orders of a signed-in user, newest first."""
        async with self.session_factory() as session:
            return await OrderRepository.get_by_user_id(user_id, session)

    async def get_order(self, order_number: str, user_id: str | None) -> OrderDetailDTO:
        """
        Raises:
            OrderNotFoundException: no such order, or it belongs to another user
        """
        async with self.session_factory() as session:
            order = await OrderRepository.get_by_order_number(order_number, session)
            if order is None or (order.user_id is not None and order.user_id != user_id):
                logger.warning(f"[Order] Order {order_number} not found for user {user_id}")
                raise OrderNotFoundException(order_number)
            items = await OrderItemRepository.get_by_order_id(order.id, session)
        return OrderDetailDTO(**order.model_dump(), items=items)
