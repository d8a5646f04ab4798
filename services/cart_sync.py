"""
Cart synchronisation between the in-memory cart and its backing stores.

Exactly one store is authoritative at a time:
- Guest (no user id): the guest snapshot in key-value storage
- Authenticated: the user's rows in the user_carts table

Reads happen before the cart is shown (start, login, logout). Writes are
fire-and-forget: they are queued and sent one at a time in the background, a
failed write is logged and dropped, and the caller never waits for it.
"""

import asyncio
import logging

import config
from enums.cart_action_type import CartActionType
from enums.cart_merge_policy import CartMergePolicy
from enums.cart_write_operation import CartWriteOperation
from exceptions.cart import CartStoreUnavailableException, MalformedCartSnapshotException
from models.cart import CartDTO, CartActionDTO, CartWriteDTO
from services.cart import CartReducer
from services.cart_store import CartStore
from services.identity import IdentityProvider
from services.local_cart_store import LocalCartStore
from services.remote_cart_store import RemoteCartStore

logger = logging.getLogger(__name__)


class CartWriteQueue:
    """
    Sequential write queue of one browser session.

    One write is in flight at a time, in submission order. A write that is still
    queued is dropped when a later write for the same store, owner and product
    arrives, and a whole-cart write (clear, replace, snapshot, discard) drops
    every queued write of that store and owner. Writes carry absolute state, so
    dropping a superseded write never loses an increment.
    """

    def __init__(self, local_store: LocalCartStore, remote_store: RemoteCartStore, label: str = ""):
        self.local_store = local_store
        self.remote_store = remote_store
        self.label = label
        self._pending: list[CartWriteDTO] = []
        self._worker: asyncio.Task | None = None

    @property
    def pending(self) -> int:
        return len(self._pending)

    def submit(self, write: CartWriteDTO) -> None:
        kept: list[CartWriteDTO] = []
        slot = None
        for queued in self._pending:
            if self._supersedes(write, queued):
                if slot is None:
                    slot = len(kept)
                continue
            kept.append(queued)

        if slot is None:
            kept.append(write)
        else:
            logger.debug(f"[CartSync:{self.label}] {write.operation.value} superseded "
                         f"{len(self._pending) - len(kept)} queued write(s)")
            if write.operation.replaces_whole_cart:
                kept.append(write)
            else:
                # a line write takes the place of the one it replaces, so rows keep insertion order
                kept.insert(slot, write)
        self._pending = kept
        if self._worker is None or self._worker.done():
            self._worker = asyncio.get_running_loop().create_task(self._run())

    async def drain(self) -> None:
        """Wait until every submitted write has been sent (or has failed)."""
        while self._worker is not None and not self._worker.done():
            await asyncio.shield(self._worker)

    @staticmethod
    def _supersedes(new: CartWriteDTO, queued: CartWriteDTO) -> bool:
        if new.operation.is_local != queued.operation.is_local or new.owner_id != queued.owner_id:
            return False
        if new.operation.replaces_whole_cart:
            return True
        if queued.operation.replaces_whole_cart:
            return False
        return new.product_id == queued.product_id

    async def _run(self) -> None:
        while self._pending:
            write = self._pending.pop(0)
            try:
                await self._send(write)
            except CartStoreUnavailableException as e:
                logger.error(f"[CartSync:{self.label}] {write.operation.value} write dropped: {e}")
            except Exception as e:
                logger.error(f"[CartSync:{self.label}] Unexpected error in {write.operation.value} write: {e}",
                             exc_info=True)

    async def _send(self, write: CartWriteDTO) -> None:
        match write.operation:
            case CartWriteOperation.UPSERT:
                await self.remote_store.upsert_line(write.owner_id, write.line)
            case CartWriteOperation.DELETE:
                await self.remote_store.delete_line(write.owner_id, write.product_id)
            case CartWriteOperation.CLEAR:
                await self.remote_store.clear(write.owner_id)
            case CartWriteOperation.REPLACE:
                await self.remote_store.replace(write.owner_id, write.cart)
            case CartWriteOperation.SNAPSHOT:
                await self.local_store.save(write.owner_id, write.cart)
            case CartWriteOperation.DISCARD:
                await self.local_store.discard(write.owner_id)


class CartSyncCoordinator:
    """
    Keeps one CartStore in step with whichever backing store is authoritative.

    States: Guest+Local and Auth+Remote.
    - start, and any change of user id: discard the in-memory cart and reload
      from the store that is now authoritative.
    - login (guest -> user): with the MERGE policy the guest lines are summed
      into the user's cart by product id and written back; with DISCARD they
      are dropped. When the user's cart cannot be read at login, no whole-cart
      write is issued; the guest lines are upserted line by line instead.
    - every reducer transition: queue the matching write for the active store.
    """

    def __init__(
        self,
        session_id: str,
        identity: IdentityProvider,
        cart_store: CartStore,
        local_store: LocalCartStore,
        remote_store: RemoteCartStore,
        merge_policy: CartMergePolicy | None = None,
        write_queue: CartWriteQueue | None = None
    ):
        self.session_id = session_id
        self.identity = identity
        self.cart_store = cart_store
        self.local_store = local_store
        self.remote_store = remote_store
        self.merge_policy = merge_policy or config.CART_LOGIN_MERGE_POLICY
        self.write_queue = write_queue or CartWriteQueue(local_store, remote_store, label=session_id)
        self._unsubscribe_identity = None

    async def start(self) -> CartDTO:
        if self._unsubscribe_identity is None:
            self.cart_store.subscribe(self._on_transition)
            self._unsubscribe_identity = self.identity.subscribe(self._on_identity_changed)
        return await self.reload()

    async def stop(self) -> None:
        if self._unsubscribe_identity is not None:
            self._unsubscribe_identity()
            self._unsubscribe_identity = None
        await self.write_queue.drain()

    async def reload(self) -> CartDTO:
        """Replace the in-memory cart with the content of the active store."""
        await self._reload()
        return self.cart_store.cart

    async def _reload(self) -> bool:
        """Returns False when the active store could not be read and the cart fell back to empty."""
        # Queued writes land first so the read sees them
        await self.write_queue.drain()
        user_id = self.identity.current_user_id
        if user_id is None:
            cart, loaded = await self._read(self.local_store, self.session_id)
        else:
            cart, loaded = await self._read(self.remote_store, user_id)
        self.cart_store.hydrate(cart)
        return loaded

    async def _read(self, store: LocalCartStore | RemoteCartStore, owner_id: str) -> tuple[CartDTO, bool]:
        try:
            return await store.load(owner_id), True
        except MalformedCartSnapshotException as e:
            logger.warning(f"[CartSync:{self.session_id}] Ignoring malformed {store.name} cart: {e}")
        except CartStoreUnavailableException as e:
            logger.error(f"[CartSync:{self.session_id}] Falling back to empty cart: {e}")
        return CartReducer.empty(), False

    async def _on_identity_changed(self, previous: str | None, current: str | None) -> None:
        guest_cart = self.cart_store.cart if previous is None else None
        loaded = await self._reload()
        if previous is None and current is not None and guest_cart.items:
            if loaded or self.merge_policy == CartMergePolicy.DISCARD:
                self._resolve_guest_cart(current, guest_cart)
            else:
                self._keep_guest_lines(current, guest_cart)

    def _keep_guest_lines(self, user_id: str, guest_cart: CartDTO) -> None:
        """
        The user's stored cart could not be read: nothing is known about its rows.

        The guest lines become the in-memory cart and are upserted one by one, so
        stored rows of other products survive. The guest snapshot is kept.
        """
        self.cart_store.hydrate(guest_cart)
        for line in guest_cart.items:
            self.write_queue.submit(CartWriteDTO(operation=CartWriteOperation.UPSERT, owner_id=user_id,
                                                 product_id=line.product.id, line=line))
        logger.warning(
            f"[CartSync:{self.session_id}] Cart of user {user_id} unreadable, "
            f"upserting {len(guest_cart.items)} guest line(s) without merge"
        )

    def _resolve_guest_cart(self, user_id: str, guest_cart: CartDTO) -> None:
        if self.merge_policy == CartMergePolicy.DISCARD:
            logger.warning(
                f"[CartSync:{self.session_id}] Discarding guest cart with {len(guest_cart.items)} line(s) "
                f"on login of user {user_id}"
            )
            return

        merged = CartReducer.merge(self.cart_store.cart, guest_cart)
        self.cart_store.hydrate(merged)
        self.write_queue.submit(CartWriteDTO(operation=CartWriteOperation.REPLACE, owner_id=user_id, cart=merged))
        self.write_queue.submit(CartWriteDTO(operation=CartWriteOperation.DISCARD, owner_id=self.session_id))
        logger.info(
            f"[CartSync:{self.session_id}] Merged {len(guest_cart.items)} guest line(s) into cart of user {user_id}"
        )

    def _on_transition(self, action: CartActionDTO, previous: CartDTO, cart: CartDTO) -> None:
        user_id = self.identity.current_user_id
        if user_id is None:
            write = CartWriteDTO(operation=CartWriteOperation.SNAPSHOT, owner_id=self.session_id, cart=cart)
        else:
            write = self._remote_write_for(user_id, action, cart)
        if write is not None:
            self.write_queue.submit(write)

    @staticmethod
    def _remote_write_for(user_id: str, action: CartActionDTO, cart: CartDTO) -> CartWriteDTO | None:
        if action.kind == CartActionType.CLEAR:
            return CartWriteDTO(operation=CartWriteOperation.CLEAR, owner_id=user_id)

        product_id = action.target_product_id
        line = cart.find(product_id)
        if line is not None:
            return CartWriteDTO(operation=CartWriteOperation.UPSERT, owner_id=user_id, product_id=product_id, line=line)
        if action.kind == CartActionType.SET_QUANTITY and action.quantity > 0:
            # quantity change for a product the cart does not hold
            return None
        return CartWriteDTO(operation=CartWriteOperation.DELETE, owner_id=user_id, product_id=product_id)
