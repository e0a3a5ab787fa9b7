"""
handlers/checkout_handler.py – CheckoutHandler class.
Responsibility: open/close the checkout screen of a session and drive retry.
"""
import logging

from ..core.flows.checkout import CheckoutFlow
from ..core.ledger import Ledger
from ..core.sessions import SessionRegistry
from ..core.status import StatusChannel
from ..models import CheckoutView

logger = logging.getLogger(__name__)


class CheckoutHandler:
    """Handles /checkout endpoints."""

    def __init__(self, sessions: SessionRegistry, ledger: Ledger, channel: StatusChannel) -> None:
        self._sessions = sessions
        self._ledger = ledger
        self._channel = channel

    async def start(self, session_id: str) -> CheckoutView:
        """Mount the checkout screen. EmptyCartError when there is nothing to pay for."""
        session = self._sessions.get(session_id)
        flow = await session.navigate(CheckoutFlow(session.id, session.cart, self._ledger, self._channel))
        logger.info("[Checkout] %s waiting for tap, total=%.2f", session_id, session.cart.total)
        return flow.view()

    def view(self, session_id: str) -> CheckoutView:
        return self._sessions.get(session_id).active(CheckoutFlow).view()

    async def retry(self, session_id: str) -> CheckoutView:
        flow = self._sessions.get(session_id).active(CheckoutFlow)
        await flow.retry()
        return flow.view()

    def leave(self, session_id: str) -> None:
        session = self._sessions.get(session_id)
        session.active(CheckoutFlow)
        session.leave()
