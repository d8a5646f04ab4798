from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from db import session_execute, session_flush, session_refresh
from enums.order_status import OrderStatus
from enums.payment_status import PaymentStatus
from models.order import Order, OrderDTO


class OrderRepository:
    @staticmethod
    async def create(order_dto: OrderDTO, session: AsyncSession) -> OrderDTO:
        order = Order(**order_dto.model_dump(exclude_none=True, exclude={'id', 'created_at'}))
        session.add(order)
        await session_flush(session)
        await session_refresh(session, order)
        return OrderDTO.model_validate(order, from_attributes=True)

    @staticmethod
    async def get_by_order_number(order_number: str, session: AsyncSession) -> OrderDTO | None:
        stmt = select(Order).where(Order.order_number == order_number)
        order = await session_execute(stmt, session)
        order = order.scalar()
        if order is not None:
            return OrderDTO.model_validate(order, from_attributes=True)
        else:
            return None

    @staticmethod
    async def get_by_user_id(user_id: str, session: AsyncSession) -> list[OrderDTO]:
        stmt = select(Order).where(Order.user_id == user_id).order_by(Order.created_at.desc(), Order.id.desc())
        orders = await session_execute(stmt, session)
        return [OrderDTO.model_validate(order, from_attributes=True) for order in orders.scalars().all()]

    @staticmethod
    async def update_payment_intent(order_id: int, payment_intent_id: str, session: AsyncSession) -> None:
        stmt = update(Order).where(Order.id == order_id).values(payment_intent_id=payment_intent_id)
        await session_execute(stmt, session)

    @staticmethod
    async def update_payment_confirmation(order_id: int, paid_at: datetime, session: AsyncSession) -> bool:
        """Mark the order paid. Returns False when it already was."""
        stmt = update(Order).where(
            Order.id == order_id,
            Order.payment_status != PaymentStatus.SUCCEEDED
        ).values(
            status=OrderStatus.PAID,
            payment_status=PaymentStatus.SUCCEEDED,
            paid_at=paid_at
        )
        result = await session_execute(stmt, session)
        return result.rowcount == 1
