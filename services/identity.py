import logging
from typing import Awaitable, Callable

logger = logging.getLogger(__name__)

# listener(previous_user_id, current_user_id)
IdentityListener = Callable[[str | None, str | None], Awaitable[None]]


class IdentityProvider:
    """
    Current user of one browser session plus change notifications.

    Authentication itself happens at the hosted identity service; this object
    only holds the resulting user id (None for guests) and tells subscribers
    when it changes.
    """

    def __init__(self, user_id: str | None = None):
        self._user_id = user_id
        self._listeners: list[IdentityListener] = []

    @property
    def current_user_id(self) -> str | None:
        return self._user_id

    @property
    def is_authenticated(self) -> bool:
        return self._user_id is not None

    def subscribe(self, listener: IdentityListener) -> Callable[[], None]:
        """Register listener; returns a callable that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def sign_in(self, user_id: str) -> None:
        if not user_id:
            raise ValueError("user_id must not be empty")
        await self._set(user_id)

    async def sign_out(self) -> None:
        await self._set(None)

    async def _set(self, user_id: str | None) -> None:
        previous = self._user_id
        if previous == user_id:
            return
        self._user_id = user_id
        logger.info(f"[Identity] {'guest' if previous is None else previous} -> {'guest' if user_id is None else user_id}")
        for listener in list(self._listeners):
            await listener(previous, user_id)
