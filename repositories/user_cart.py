from sqlalchemy import select, update, delete
from sqlalchemy.ext.asyncio import AsyncSession

from db import session_execute, session_flush, session_refresh
from models.user_cart import UserCart, UserCartDTO


class UserCartRepository:
    """Rows of the user_carts table, addressed by (user_id, product_id)."""

    @staticmethod
    async def get_by_user_id(user_id: str, session: AsyncSession) -> list[UserCartDTO]:
        stmt = select(UserCart).where(UserCart.user_id == user_id).order_by(UserCart.id)
        rows = await session_execute(stmt, session)
        return [UserCartDTO.model_validate(row, from_attributes=True) for row in rows.scalars().all()]

    @staticmethod
    async def create(user_cart_dto: UserCartDTO, session: AsyncSession) -> UserCartDTO:
        user_cart = UserCart(**user_cart_dto.model_dump(exclude_none=True, exclude={'id', 'created_at', 'updated_at'}))
        session.add(user_cart)
        await session_flush(session)
        await session_refresh(session, user_cart)
        return UserCartDTO.model_validate(user_cart, from_attributes=True)

    @staticmethod
    async def create_many(user_cart_dtos: list[UserCartDTO], session: AsyncSession) -> None:
        for user_cart_dto in user_cart_dtos:
            session.add(UserCart(**user_cart_dto.model_dump(exclude_none=True, exclude={'id', 'created_at', 'updated_at'})))
        await session_flush(session)

    @staticmethod
    async def update_quantity(user_id: str, product_id: str, quantity: int, session: AsyncSession) -> int:
        """Returns the number of rows touched (0 when the line is not stored)."""
        stmt = update(UserCart).where(
            UserCart.user_id == user_id,
            UserCart.product_id == product_id
        ).values(quantity=quantity)
        result = await session_execute(stmt, session)
        return result.rowcount

    @staticmethod
    async def upsert(user_cart_dto: UserCartDTO, session: AsyncSession) -> None:
        """
        Insert the line, or set the stored quantity when (user, product) already exists.

        The stored snapshot of an existing row is kept; the cart reflects the price
        captured when the product was first added.
        """
        updated = await UserCartRepository.update_quantity(
            user_cart_dto.user_id, user_cart_dto.product_id, user_cart_dto.quantity, session
        )
        if updated == 0:
            await UserCartRepository.create(user_cart_dto, session)

    @staticmethod
    async def delete_by_key(user_id: str, product_id: str, session: AsyncSession) -> None:
        stmt = delete(UserCart).where(UserCart.user_id == user_id, UserCart.product_id == product_id)
        await session_execute(stmt, session)

    @staticmethod
    async def delete_all_by_user_id(user_id: str, session: AsyncSession) -> None:
        stmt = delete(UserCart).where(UserCart.user_id == user_id)
        await session_execute(stmt, session)
