"""
core/flows/balance.py – BalanceFlow class.
prompt → loading → balance | notFound. Read-only on profiles.
"""
import logging
from numbers import Real
from typing import Optional

from ..ledger import Ledger
from ..status import StatusChannel
from .base import Flow
from ...models import BalanceView, UserProfile

logger = logging.getLogger(__name__)


class BalanceFlow(Flow):
    name = "balance"
    initial_state = "prompt"

    def __init__(self, session_id: str, ledger: Ledger, channel: StatusChannel) -> None:
        super().__init__(session_id, channel)
        self._ledger = ledger
        self.tag_id: Optional[str] = None
        self.profile_name: Optional[str] = None
        self.balance: Optional[str] = None

    def view(self) -> BalanceView:
        return BalanceView(
            session_id=self.session_id,
            state=self.state,
            tag_id=self.tag_id,
            name=self.profile_name,
            balance=self.balance,
        )

    def on_tap(self, tag_id: str) -> None:
        if self.state == "loading":
            return
        self._transition("loading", tag_id=tag_id, profile_name=None, balance=None)
        self._spawn(self._lookup(tag_id))

    async def _lookup(self, tag_id: str) -> None:
        try:
            if not await self._channel.claim(tag_id):
                self._transition("prompt", tag_id=None)
                return
            profile = await self._ledger.get_profile(tag_id)
        except Exception as e:
            logger.error("Balance lookup failed for %s: %s", tag_id, e)
            profile = None
        if not self.is_well_formed(profile):
            self._transition("notFound")
            return
        self._transition("balance", profile_name=profile.name, balance=f"{profile.credit_balance:.2f}")

    @staticmethod
    def is_well_formed(profile: Optional[UserProfile]) -> bool:
        return (
            profile is not None
            and isinstance(profile.name, str) and bool(profile.name.strip())
            and isinstance(profile.credit_balance, Real) and not isinstance(profile.credit_balance, bool)
        )
