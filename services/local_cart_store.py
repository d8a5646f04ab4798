import json
import logging

from pydantic import ValidationError
from redis.asyncio import Redis
from redis.exceptions import RedisError

from exceptions.cart import CartStoreUnavailableException, MalformedCartSnapshotException
from models.cart import CartDTO
from services.cart import CartReducer

logger = logging.getLogger(__name__)


class RedisDeviceStorage:
    """
    Key-value "device" storage for guest carts.

    Mirrors the browser storage contract: read(key) -> str | None, write(key, str).
    Values expire after ttl_seconds so abandoned guest carts do not pile up.
    """

    def __init__(self, redis: Redis, ttl_seconds: int | None = None):
        self.redis = redis
        self.ttl_seconds = ttl_seconds

    async def read(self, key: str) -> str | None:
        value = await self.redis.get(key)
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return value

    async def write(self, key: str, value: str) -> None:
        await self.redis.set(key, value, ex=self.ttl_seconds)

    async def delete(self, key: str) -> None:
        await self.redis.delete(key)


class LocalCartStore:
    """Guest cart persisted as one JSON snapshot per guest session."""

    name = "local"
    KEY_PREFIX = "cart:"

    def __init__(self, storage: RedisDeviceStorage):
        self.storage = storage

    @classmethod
    def key_for(cls, guest_id: str) -> str:
        return f"{cls.KEY_PREFIX}{guest_id}"

    async def load(self, guest_id: str) -> CartDTO:
        """
        Read the guest snapshot.

        The stored total is ignored and recomputed from the lines.

        Raises:
            CartStoreUnavailableException: storage could not be reached
            MalformedCartSnapshotException: stored value is not a valid cart
        """
        key = self.key_for(guest_id)
        try:
            raw = await self.storage.read(key)
        except RedisError as e:
            raise CartStoreUnavailableException(self.name, "read", str(e)) from e

        if raw is None:
            return CartReducer.empty()

        try:
            snapshot = CartDTO.model_validate(json.loads(raw))
        except (json.JSONDecodeError, ValidationError, TypeError) as e:
            raise MalformedCartSnapshotException(key, str(e).splitlines()[0]) from e
        return CartReducer.from_lines(snapshot.items)

    async def save(self, guest_id: str, cart: CartDTO) -> None:
        """Serialize the whole cart under the guest key."""
        try:
            await self.storage.write(self.key_for(guest_id), cart.model_dump_json())
        except RedisError as e:
            raise CartStoreUnavailableException(self.name, "write", str(e)) from e

    async def discard(self, guest_id: str) -> None:
        try:
            await self.storage.delete(self.key_for(guest_id))
        except RedisError as e:
            raise CartStoreUnavailableException(self.name, "delete", str(e)) from e
