"""
core/flows/base.py – Flow base class.

A flow is one kiosk screen's state machine. While mounted it listens to the
StatusChannel; reactions to a tap run as background tasks so the channel
writer (the card reader) is never held up. Unmounting stops listening and
discards the outcome of any task still running; the task itself is allowed
to finish so store effects are never half-applied.
"""
import asyncio
import logging
from typing import Any, Callable, Coroutine, Optional

from pydantic import BaseModel

from ..errors import InvalidTransitionError
from ..status import StatusChannel, Subscription
from ...models import StatusRecord

logger = logging.getLogger(__name__)

# Listeners get each new view, then None once the screen is unmounted
ChangeListener = Callable[[Optional[BaseModel]], None]


class Flow:
    name = "flow"
    initial_state = ""

    def __init__(self, session_id: str, channel: StatusChannel) -> None:
        self.session_id = session_id
        self.state = self.initial_state
        self._channel = channel
        self._subscription: Optional[Subscription] = None
        self._tasks: set[asyncio.Task] = set()
        self._listeners: list[ChangeListener] = []

    # ── Lifecycle ──────────────────────────────────────────────────────────────

    @property
    def mounted(self) -> bool:
        return self._subscription is not None

    async def mount(self) -> None:
        self.state = self.initial_state
        self._subscription = self._channel.subscribe(self._on_status)
        logger.info("[%s] mounted for session %s", self.name, self.session_id)

    def unmount(self) -> None:
        if self._subscription is not None:
            self._subscription.close()
            self._subscription = None
            logger.info("[%s] unmounted for session %s", self.name, self.session_id)
            self._notify(None)

    async def settle(self) -> None:
        """Wait until no tap reaction is in flight."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    # ── Observers ──────────────────────────────────────────────────────────────

    def add_listener(self, listener: ChangeListener) -> Callable[[], None]:
        """Register `listener` for every view change; returns a remover."""
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)
        return remove

    def view(self) -> BaseModel:
        raise NotImplementedError

    # ── Subclass hooks ─────────────────────────────────────────────────────────

    def on_tap(self, tag_id: str) -> None:
        """Called for each pushed non-empty tag while mounted."""

    # ── Helpers ────────────────────────────────────────────────────────────────

    def _on_status(self, record: StatusRecord) -> None:
        if self.mounted and record.tag_id:
            self.on_tap(record.tag_id)

    def _transition(self, state: str, **fields: Any) -> None:
        """Apply a state change unless the screen has gone away."""
        if not self.mounted:
            logger.info("[%s] discarding '%s' for unmounted session %s", self.name, state, self.session_id)
            return
        for key, value in fields.items():
            setattr(self, key, value)
        self.state = state
        self._notify(self.view())

    def _notify(self, view: Optional[BaseModel]) -> None:
        for listener in list(self._listeners):
            try:
                listener(view)
            except Exception:
                logger.exception("[%s] listener failed", self.name)

    def _require(self, action: str, *states: str) -> None:
        if self.state not in states:
            raise InvalidTransitionError(self.name, self.state, action)

    def _spawn(self, coro: Coroutine) -> asyncio.Task:
        task = asyncio.get_event_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task
