"""
handlers/register_handler.py – RegisterHandler class.
Responsibility: registration screen lifecycle (form submit, retry, finish).
"""
from ..core.flows.register import RegistrationFlow
from ..core.ledger import Ledger
from ..core.sessions import SessionRegistry
from ..core.status import StatusChannel
from ..models import RegisterView, RegistrationForm


class RegisterHandler:
    """Handles /register endpoints."""

    def __init__(self, sessions: SessionRegistry, ledger: Ledger, channel: StatusChannel) -> None:
        self._sessions = sessions
        self._ledger = ledger
        self._channel = channel

    async def start(self, session_id: str) -> RegisterView:
        session = self._sessions.get(session_id)
        flow = await session.navigate(RegistrationFlow(session.id, self._ledger, self._channel))
        return flow.view()

    def view(self, session_id: str) -> RegisterView:
        return self._flow(session_id).view()

    async def submit(self, session_id: str, form: RegistrationForm) -> RegisterView:
        flow = self._flow(session_id)
        await flow.submit(form)
        return flow.view()

    async def retry(self, session_id: str) -> RegisterView:
        flow = self._flow(session_id)
        await flow.retry()
        return flow.view()

    async def finish(self, session_id: str) -> None:
        session = self._sessions.get(session_id)
        await session.active(RegistrationFlow).finish()
        session.leave()

    def leave(self, session_id: str) -> None:
        session = self._sessions.get(session_id)
        session.active(RegistrationFlow)
        session.leave()

    def _flow(self, session_id: str) -> RegistrationFlow:
        return self._sessions.get(session_id).active(RegistrationFlow)
