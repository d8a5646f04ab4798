import asyncio
import logging
import time
from typing import Callable

import config
from enums.cart_merge_policy import CartMergePolicy
from models.cart import CartDTO
from services.cart_store import CartStore
from services.cart_sync import CartSyncCoordinator
from services.identity import IdentityProvider
from services.local_cart_store import LocalCartStore
from services.remote_cart_store import RemoteCartStore

logger = logging.getLogger(__name__)


class CartSession:
    """Identity, cart store and sync coordinator of one browser session."""

    def __init__(self, session_id: str, identity: IdentityProvider, store: CartStore,
                 coordinator: CartSyncCoordinator):
        self.session_id = session_id
        self.identity = identity
        self.store = store
        self.coordinator = coordinator

    @property
    def user_id(self) -> str | None:
        return self.identity.current_user_id

    @property
    def cart(self) -> CartDTO:
        return self.store.cart

    async def sign_in(self, user_id: str) -> CartDTO:
        await self.identity.sign_in(user_id)
        return self.store.cart

    async def sign_out(self) -> CartDTO:
        await self.identity.sign_out()
        return self.store.cart


class CartSessionRegistry:
    """
    Browser session id -> CartSession.

    A session is created on first use and starts in the guest state with the
    guest snapshot loaded. Sessions not used for idle_ttl_seconds are stopped
    and dropped whenever a new session is created; a later request for the same
    id starts over from the backing stores.
    """

    def __init__(self, local_store: LocalCartStore, remote_store: RemoteCartStore,
                 merge_policy: CartMergePolicy | None = None, idle_ttl_seconds: float | None = None,
                 clock: Callable[[], float] = time.monotonic):
        self.local_store = local_store
        self.remote_store = remote_store
        self.merge_policy = merge_policy
        self.idle_ttl_seconds = (idle_ttl_seconds if idle_ttl_seconds is not None
                                 else config.CART_SESSION_IDLE_TTL_MINUTES * 60)
        self.clock = clock
        self._sessions: dict[str, CartSession] = {}
        self._last_used: dict[str, float] = {}
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions

    async def get(self, session_id: str) -> CartSession:
        cart_session = self._sessions.get(session_id)
        if cart_session is not None:
            self._last_used[session_id] = self.clock()
            return cart_session

        async with self._lock:
            await self._evict_idle()
            cart_session = self._sessions.get(session_id)
            if cart_session is None:
                cart_session = await self._create(session_id)
                self._sessions[session_id] = cart_session
            self._last_used[session_id] = self.clock()
            return cart_session

    async def _create(self, session_id: str) -> CartSession:
        identity = IdentityProvider()
        store = CartStore()
        coordinator = CartSyncCoordinator(
            session_id=session_id,
            identity=identity,
            cart_store=store,
            local_store=self.local_store,
            remote_store=self.remote_store,
            merge_policy=self.merge_policy
        )
        await coordinator.start()
        logger.debug(f"[CartSession] Started session {session_id}")
        return CartSession(session_id, identity, store, coordinator)

    async def _evict_idle(self) -> None:
        deadline = self.clock() - self.idle_ttl_seconds
        idle = [session_id for session_id, last_used in self._last_used.items() if last_used <= deadline]
        for session_id in idle:
            cart_session = self._sessions.pop(session_id)
            del self._last_used[session_id]
            await cart_session.coordinator.stop()
        if idle:
            logger.info(f"[CartSession] Evicted {len(idle)} idle session(s), {len(self._sessions)} left")

    async def drain_all(self) -> None:
        """Wait for the pending writes of every session."""
        await asyncio.gather(*(cart_session.coordinator.write_queue.drain()
                               for cart_session in self._sessions.values()))

    async def close(self) -> None:
        """Stop every coordinator after its pending writes are sent."""
        await self.drain_all()
        for cart_session in list(self._sessions.values()):
            await cart_session.coordinator.stop()
        logger.info(f"[CartSession] Closed {len(self._sessions)} session(s)")
        self._sessions.clear()
        self._last_used.clear()
