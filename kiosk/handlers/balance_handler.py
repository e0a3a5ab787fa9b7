"""
handlers/balance_handler.py – BalanceHandler class.
"""
from ..core.flows.balance import BalanceFlow
from ..core.ledger import Ledger
from ..core.sessions import SessionRegistry
from ..core.status import StatusChannel
from ..models import BalanceView, OrderRecord


class BalanceHandler:
    """Handles /balance endpoints and order history lookups."""

    def __init__(self, sessions: SessionRegistry, ledger: Ledger, channel: StatusChannel) -> None:
        self._sessions = sessions
        self._ledger = ledger
        self._channel = channel

    async def start(self, session_id: str) -> BalanceView:
        session = self._sessions.get(session_id)
        flow = await session.navigate(BalanceFlow(session.id, self._ledger, self._channel))
        return flow.view()

    def view(self, session_id: str) -> BalanceView:
        return self._sessions.get(session_id).active(BalanceFlow).view()

    def leave(self, session_id: str) -> None:
        session = self._sessions.get(session_id)
        session.active(BalanceFlow)
        session.leave()

    async def orders(self, tag_id: str, limit: int) -> list[OrderRecord]:
        if await self._ledger.get_profile(tag_id) is None:
            raise KeyError(f"Card {tag_id} is not registered")
        return await self._ledger.orders_for(tag_id, limit)
