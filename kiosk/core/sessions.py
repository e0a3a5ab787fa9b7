"""
core/sessions.py – KioskSession + SessionRegistry.

A session is created explicitly on the first cart interaction and carries
the identity every flow works for. It owns one cart and at most one
mounted flow; mounting a new flow is navigation and unmounts the old one.
"""
import logging
from dataclasses import dataclass, field
from typing import Optional, TypeVar
from uuid import uuid4

from .cart import Cart, CartStorage
from .flows.base import Flow

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Flow)


@dataclass
class KioskSession:
    id: str
    cart: Cart
    flow: Optional[Flow] = field(default=None)

    async def navigate(self, flow: F) -> F:
        """Unmount the current screen and mount `flow` in its place."""
        self.leave()
        await flow.mount()
        self.flow = flow
        return flow

    def leave(self) -> None:
        if self.flow is not None:
            self.flow.unmount()
            self.flow = None

    def active(self, flow_type: type[F]) -> F:
        """The mounted flow if it is a `flow_type`; KeyError otherwise."""
        if isinstance(self.flow, flow_type) and self.flow.mounted:
            return self.flow
        raise KeyError(f"No {flow_type.name} screen open for session {self.id}")


class SessionRegistry:
    """In-memory index of live sessions; carts survive restarts through CartStorage."""

    def __init__(self, storage: CartStorage) -> None:
        self._storage = storage
        self._sessions: dict[str, KioskSession] = {}

    def create(self) -> KioskSession:
        session_id = uuid4().hex
        session = KioskSession(id=session_id, cart=Cart(session_id, self._storage))
        self._sessions[session_id] = session
        logger.info("[Sessions] created %s", session_id)
        return session

    def get(self, session_id: str) -> KioskSession:
        if session_id not in self._sessions:
            if not self._storage.exists(session_id):
                raise KeyError(f"Unknown session: {session_id}")
            # Session from before a restart: bring its saved cart back
            self._sessions[session_id] = KioskSession(id=session_id, cart=Cart(session_id, self._storage))
        return self._sessions[session_id]

    def close(self, session_id: str) -> None:
        session = self._sessions.pop(session_id, None)
        if session is not None:
            session.leave()

    def close_all(self) -> None:
        for session_id in list(self._sessions):
            self.close(session_id)
