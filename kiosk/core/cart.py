"""
core/cart.py – Cart reducer + on-device persistence.

The reducer functions are pure: they take the current item list and return
a new one. `Cart` holds the state for one kiosk session and writes it to
`CartStorage` after every change. Storage problems never reach the caller;
a missing or corrupted file simply means an empty cart.
"""
import logging
import re
from pathlib import Path
from typing import Optional

from pydantic import TypeAdapter, ValidationError

from ..models import CartItem, MenuItem

logger = logging.getLogger(__name__)

STORAGE_KEY = "canteen-cart"

_SESSION_ID_RE = re.compile(r"[A-Za-z0-9_-]{1,64}")

_file_adapter = TypeAdapter(dict[str, list[CartItem]])


# ── Reducer ────────────────────────────────────────────────────────────────────

def add_item(items: list[CartItem], item: MenuItem) -> list[CartItem]:
    if any(i.id == item.id for i in items):
        return [
            i.model_copy(update={"quantity": i.quantity + 1}) if i.id == item.id else i
            for i in items
        ]
    return [*items, CartItem(**item.model_dump(), quantity=1)]


def remove_item(items: list[CartItem], item_id: str) -> list[CartItem]:
    return [i for i in items if i.id != item_id]


def set_quantity(items: list[CartItem], item_id: str, quantity: int) -> list[CartItem]:
    if quantity <= 0:
        return remove_item(items, item_id)
    return [i.model_copy(update={"quantity": quantity}) if i.id == item_id else i for i in items]


def cart_total(items: list[CartItem]) -> float:
    return sum(i.price * i.quantity for i in items)


def cart_item_count(items: list[CartItem]) -> int:
    return sum(i.quantity for i in items)


# ── Storage ────────────────────────────────────────────────────────────────────

class CartStorage:
    """One JSON file per kiosk session, cart stored under STORAGE_KEY."""

    def __init__(self, cart_dir: str | Path) -> None:
        self._dir = Path(cart_dir)

    def load(self, session_id: str) -> list[CartItem]:
        path = self._path(session_id)
        if not path.exists():
            return []
        try:
            return _file_adapter.validate_json(path.read_bytes()).get(STORAGE_KEY, [])
        except (OSError, ValidationError) as e:
            logger.warning("Failed to parse cart for session %s: %s", session_id, e)
            return []

    def save(self, session_id: str, items: list[CartItem]) -> None:
        try:
            self._dir.mkdir(parents=True, exist_ok=True)
            self._path(session_id).write_bytes(_file_adapter.dump_json({STORAGE_KEY: items}))
        except OSError as e:
            logger.warning("Failed to save cart for session %s: %s", session_id, e)

    def exists(self, session_id: str) -> bool:
        return bool(_SESSION_ID_RE.fullmatch(session_id)) and self._path(session_id).exists()

    def delete(self, session_id: str) -> None:
        self._path(session_id).unlink(missing_ok=True)

    def _path(self, session_id: str) -> Path:
        if not _SESSION_ID_RE.fullmatch(session_id):
            raise ValueError(f"Invalid session id: {session_id!r}")
        return self._dir / f"{session_id}.json"


# ── Cart ───────────────────────────────────────────────────────────────────────

class Cart:
    """Cart state for one session; every mutation is persisted."""

    def __init__(self, session_id: str, storage: Optional[CartStorage] = None) -> None:
        self.session_id = session_id
        self._storage = storage
        self._items: list[CartItem] = storage.load(session_id) if storage else []

    @property
    def items(self) -> list[CartItem]:
        return list(self._items)

    @property
    def total(self) -> float:
        return cart_total(self._items)

    @property
    def item_count(self) -> int:
        return cart_item_count(self._items)

    def is_empty(self) -> bool:
        return not self._items

    def add(self, item: MenuItem) -> None:
        self._commit(add_item(self._items, item))

    def remove(self, item_id: str) -> None:
        self._commit(remove_item(self._items, item_id))

    def set_quantity(self, item_id: str, quantity: int) -> None:
        self._commit(set_quantity(self._items, item_id, quantity))

    def clear(self) -> None:
        self._commit([])

    def _commit(self, items: list[CartItem]) -> None:
        self._items = items
        if self._storage:
            self._storage.save(self.session_id, items)
