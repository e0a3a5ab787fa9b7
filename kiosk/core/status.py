"""
core/status.py – StatusChannel class.

The shared `status/ui` record: the RFID reader writes the last tapped tag,
flows read it, clear it and mark registration outcomes. Every write is
persisted first, then pushed to all subscribers in write order.

A flow acting on a tap must `claim()` it first. Claiming is a
compare-and-clear in one transaction, so a tap is consumed by exactly one
flow and is never replayed into a screen mounted later.
"""
import asyncio
import logging
from typing import Callable, Optional

from sqlalchemy import update

from ..db.models import STATUS_ROW_ID, Status
from ..db.session import db_session
from ..models import StatusRecord

logger = logging.getLogger(__name__)

StatusCallback = Callable[[StatusRecord], None]

_UNSET = object()


class Subscription:
    """Handle returned by `StatusChannel.subscribe`; `close()` stops delivery."""

    def __init__(self, channel: "StatusChannel", callback: StatusCallback) -> None:
        self._channel = channel
        self._callback = callback

    def close(self) -> None:
        self._channel._unsubscribe(self._callback)


class StatusChannel:
    """Single-slot mailbox between the card reader and the active flow."""

    def __init__(self, database_url: str) -> None:
        self._url = database_url
        self._subscribers: list[StatusCallback] = []
        self._lock: Optional[asyncio.Lock] = None

    # ── Public: Subscription ───────────────────────────────────────────────────

    def subscribe(self, callback: StatusCallback) -> Subscription:
        self._subscribers.append(callback)
        return Subscription(self, callback)

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    # ── Public: Read / Write ───────────────────────────────────────────────────

    async def read(self) -> StatusRecord:
        return await asyncio.get_event_loop().run_in_executor(None, self._fetch)

    async def write(self, tag_id=_UNSET, message=_UNSET) -> StatusRecord:
        """Last-write-wins update of the given fields; an empty tag means cleared."""
        fields: dict = {}
        if tag_id is not _UNSET:
            fields["tag_id"] = tag_id or None
        if message is not _UNSET:
            fields["message"] = message or ""
        async with self._get_lock():
            record = await asyncio.get_event_loop().run_in_executor(None, self._store, fields)
            self._publish(record)
        return record

    async def clear(self) -> StatusRecord:
        """Drop any pending tag and reset the message."""
        return await self.write(tag_id=None, message="")

    async def claim(self, tag_id: str) -> bool:
        """Consume `tag_id` if it is still the pending tap. True for the one winner only."""
        async with self._get_lock():
            claimed = await asyncio.get_event_loop().run_in_executor(None, self._compare_and_clear, tag_id)
            if claimed:
                self._publish(StatusRecord(**claimed))
        if claimed:
            logger.info("[Status] tap %s claimed", tag_id)
        return bool(claimed)

    # ── Private ────────────────────────────────────────────────────────────────

    def _get_lock(self) -> asyncio.Lock:
        if self._lock is None:
            self._lock = asyncio.Lock()
        return self._lock

    def _publish(self, record: StatusRecord) -> None:
        for callback in list(self._subscribers):
            try:
                callback(record)
            except Exception:
                logger.exception("Status subscriber %r failed", callback)

    def _unsubscribe(self, callback: StatusCallback) -> None:
        if callback in self._subscribers:
            self._subscribers.remove(callback)

    def _fetch(self) -> StatusRecord:
        with db_session(self._url) as session:
            row = self._get_row(session)
            return StatusRecord(tag_id=row.tag_id, message=row.message or "")

    def _store(self, fields: dict) -> StatusRecord:
        with db_session(self._url) as session:
            row = self._get_row(session)
            for key, value in fields.items():
                setattr(row, key, value)
            session.flush()
            return StatusRecord(tag_id=row.tag_id, message=row.message or "")

    def _compare_and_clear(self, tag_id: str) -> Optional[dict]:
        with db_session(self._url) as session:
            self._get_row(session)
            result = session.execute(
                update(Status)
                .where(Status.id == STATUS_ROW_ID, Status.tag_id == tag_id)
                .values(tag_id=None)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                return None
            row = session.get(Status, STATUS_ROW_ID, populate_existing=True)
            return {"tag_id": row.tag_id, "message": row.message or ""}

    @staticmethod
    def _get_row(session) -> Status:
        row = session.get(Status, STATUS_ROW_ID)
        if row is None:
            row = Status(id=STATUS_ROW_ID, tag_id=None, message="")
            session.add(row)
            session.flush()
        return row
