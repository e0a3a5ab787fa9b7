"""
core/flows/register.py – RegistrationFlow class.

form → tapping → submitting → success | error, and error → form on retry.
Form data is collected first; the card is bound on the next tap. Both
uniqueness checks and the insert happen in one ledger transaction.

A tap arriving while submitting or after success is ignored and left
on the channel unclaimed.
"""
import logging
from typing import Optional

from ..errors import GENERIC_FAILURE, KioskError
from ..ledger import Ledger
from ..status import StatusChannel
from .base import Flow
from ...models import RegisterView, RegistrationForm

logger = logging.getLogger(__name__)


class RegistrationFlow(Flow):
    name = "register"
    initial_state = "form"

    def __init__(self, session_id: str, ledger: Ledger, channel: StatusChannel) -> None:
        super().__init__(session_id, channel)
        self._ledger = ledger
        self.form: Optional[RegistrationForm] = None
        self.tag_id: Optional[str] = None
        self.error = ""

    def view(self) -> RegisterView:
        return RegisterView(
            session_id=self.session_id,
            state=self.state,
            name=self.form.name if self.form else "",
            phone_number=self.form.phone_number if self.form else "",
            tag_id=self.tag_id,
            error=self.error,
        )

    # ── Transitions ────────────────────────────────────────────────────────────

    async def submit(self, form: RegistrationForm) -> None:
        """form → tapping. Stale reader state is wiped before waiting for the card."""
        self._require("submit", "form")
        await self._channel.clear()
        self._transition("tapping", form=form, error="", tag_id=None)

    def on_tap(self, tag_id: str) -> None:
        if self.state != "tapping":
            return
        self._transition("submitting", tag_id=tag_id)
        self._spawn(self._bind(tag_id))

    async def retry(self) -> None:
        """error → form, keeping what was typed."""
        self._require("retry", "error")
        await self._channel.clear()
        self._transition("form", error="", tag_id=None)

    async def finish(self) -> None:
        self._require("finish", "success")
        await self._channel.clear()
        self.unmount()

    # ── Private ────────────────────────────────────────────────────────────────

    async def _bind(self, tag_id: str) -> None:
        form = self.form
        try:
            if not await self._channel.claim(tag_id):
                self._transition("tapping", tag_id=None)
                return
            await self._ledger.register(tag_id, form.name, form.phone_number)
        except KioskError as e:
            logger.info("[register] card %s refused: %s", tag_id, e)
            await self._mark("unregistered")
            self._transition("error", error=str(e))
            return
        except Exception as e:
            logger.error("Registration failed: %s", e)
            await self._mark("unregistered")
            self._transition("error", error=GENERIC_FAILURE)
            return
        await self._mark("registered")
        self._transition("success")

    async def _mark(self, message: str) -> None:
        try:
            await self._channel.write(message=message)
        except Exception as e:
            logger.warning("[register] could not set status message '%s': %s", message, e)
