import logging
from typing import Callable

from sqlalchemy.exc import SQLAlchemyError

from db import get_db_session, session_commit
from exceptions.cart import CartStoreUnavailableException
from models.cart import CartDTO, CartLineDTO
from models.product import ProductDTO
from models.user_cart import UserCartDTO
from repositories.user_cart import UserCartRepository
from services.cart import CartReducer

logger = logging.getLogger(__name__)


def line_to_row(user_id: str, line: CartLineDTO) -> UserCartDTO:
    product = line.product
    return UserCartDTO(
        user_id=user_id,
        product_id=product.id,
        quantity=line.quantity,
        product_name=product.name,
        product_slug=product.slug,
        product_description=product.description,
        product_price=product.price,
        product_compare_at_price=product.original_price,
        product_image=product.primary_image,
        product_category=product.category,
        product_in_stock=product.in_stock
    )


def row_to_line(row: UserCartDTO) -> CartLineDTO:
    """
    Rebuild a cart line from the snapshot columns of a user_carts row.

    Rows written before a column existed may carry NULLs; in-stock then
    defaults to True and text fields to "".
    """
    image = row.product_image or ""
    product = ProductDTO(
        id=row.product_id,
        name=row.product_name or "",
        slug=row.product_slug or "",
        description=row.product_description or "",
        price=row.product_price or 0.0,
        original_price=row.product_compare_at_price,
        image=image,
        images=[image] if image else [],
        category=row.product_category or "",
        brand=row.product_category or "",
        in_stock=row.product_in_stock if row.product_in_stock is not None else True
    )
    return CartLineDTO(product=product, quantity=row.quantity)


class RemoteCartStore:
    """Authenticated user's cart in the user_carts table."""

    name = "remote"

    def __init__(self, session_factory: Callable = get_db_session):
        self.session_factory = session_factory

    async def load(self, user_id: str) -> CartDTO:
        """
        Raises:
            CartStoreUnavailableException: the database query failed
        """
        try:
            async with self.session_factory() as session:
                rows = await UserCartRepository.get_by_user_id(user_id, session)
        except SQLAlchemyError as e:
            raise CartStoreUnavailableException(self.name, "select", str(e)) from e
        return CartReducer.from_lines(row_to_line(row) for row in rows)

    async def upsert_line(self, user_id: str, line: CartLineDTO) -> None:
        await self._write("upsert", lambda session: UserCartRepository.upsert(line_to_row(user_id, line), session))

    async def delete_line(self, user_id: str, product_id: str) -> None:
        await self._write("delete", lambda session: UserCartRepository.delete_by_key(user_id, product_id, session))

    async def clear(self, user_id: str) -> None:
        await self._write("clear", lambda session: UserCartRepository.delete_all_by_user_id(user_id, session))

    async def replace(self, user_id: str, cart: CartDTO) -> None:
        """
        Delete every row of the user, then insert the given lines.

        Both statements share one session but the delete is flushed first;
        a crash in between can leave the remote cart empty.
        """
        async def _replace(session):
            await UserCartRepository.delete_all_by_user_id(user_id, session)
            await UserCartRepository.create_many([line_to_row(user_id, line) for line in cart.items], session)

        await self._write("replace", _replace)

    async def _write(self, operation: str, action) -> None:
        try:
            async with self.session_factory() as session:
                await action(session)
                await session_commit(session)
        except SQLAlchemyError as e:
            raise CartStoreUnavailableException(self.name, operation, str(e)) from e
        logger.debug(f"[RemoteCart] {operation} committed")
