"""
handlers/cart_handler.py – CartHandler class.
Responsibility: sessions + cart operations for the menu screen.
"""
from ..core.catalog import Catalog
from ..core.sessions import KioskSession, SessionRegistry
from ..models import AddToCartResponse, CartView


class CartHandler:
    """Handles /sessions and /cart endpoints."""

    def __init__(self, sessions: SessionRegistry, catalog: Catalog) -> None:
        self._sessions = sessions
        self._catalog = catalog

    def create_session(self) -> str:
        return self._sessions.create().id

    def view(self, session_id: str) -> CartView:
        return self._view(self._sessions.get(session_id))

    def add(self, session_id: str, menu_item_id: str) -> AddToCartResponse:
        session = self._sessions.get(session_id)
        item = self._catalog.get(menu_item_id)
        session.cart.add(item)
        return AddToCartResponse(
            **self._view(session).model_dump(),
            message=f"{item.name} has been added to your order.",
        )

    def set_quantity(self, session_id: str, item_id: str, quantity: int) -> CartView:
        session = self._sessions.get(session_id)
        self._ensure_in_cart(session, item_id)
        session.cart.set_quantity(item_id, quantity)
        return self._view(session)

    def remove(self, session_id: str, item_id: str) -> CartView:
        session = self._sessions.get(session_id)
        self._ensure_in_cart(session, item_id)
        session.cart.remove(item_id)
        return self._view(session)

    def clear(self, session_id: str) -> CartView:
        session = self._sessions.get(session_id)
        session.cart.clear()
        return self._view(session)

    @staticmethod
    def _ensure_in_cart(session: KioskSession, item_id: str) -> None:
        if not any(i.id == item_id for i in session.cart.items):
            raise KeyError(f"Item id={item_id} is not in the cart")

    @staticmethod
    def _view(session: KioskSession) -> CartView:
        cart = session.cart
        return CartView(session_id=session.id, items=cart.items, total=cart.total, item_count=cart.item_count)
