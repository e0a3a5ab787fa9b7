"""
core/flows/checkout.py – CheckoutFlow class.

pending_tap → processing → success | error, and error → pending_tap on retry.
A tap is claimed, then the cart is paid for in one ledger transaction.
"""
import logging
from typing import Optional

from ..cart import Cart
from ..errors import GENERIC_FAILURE, EmptyCartError, KioskError
from ..ledger import Ledger
from ..status import StatusChannel
from .base import Flow
from ...models import CheckoutView

logger = logging.getLogger(__name__)


class CheckoutFlow(Flow):
    name = "checkout"
    initial_state = "pending_tap"

    def __init__(self, session_id: str, cart: Cart, ledger: Ledger, channel: StatusChannel) -> None:
        super().__init__(session_id, channel)
        self._cart = cart
        self._ledger = ledger
        self.error = ""
        self.order_id: Optional[str] = None
        self.new_balance: Optional[float] = None
        self.paid_total: Optional[float] = None
        self.paid_count: Optional[int] = None

    async def mount(self) -> None:
        if self._cart.is_empty():
            raise EmptyCartError()
        self.error, self.order_id, self.new_balance = "", None, None
        self.paid_total, self.paid_count = None, None
        await super().mount()

    def view(self) -> CheckoutView:
        # After payment the cart is empty; show what was charged instead
        paid = self.paid_total is not None
        return CheckoutView(
            session_id=self.session_id,
            state=self.state,
            total=self.paid_total if paid else self._cart.total,
            item_count=self.paid_count if paid else self._cart.item_count,
            error=self.error,
            order_id=self.order_id,
            new_balance=self.new_balance,
        )

    # ── Transitions ────────────────────────────────────────────────────────────

    def on_tap(self, tag_id: str) -> None:
        if self.state != "pending_tap":
            return
        self._transition("processing")
        self._spawn(self._pay(tag_id))

    async def retry(self) -> None:
        """error → pending_tap; the next payment needs a fresh tap."""
        self._require("retry", "error")
        await self._channel.clear()
        self._transition("pending_tap", error="")

    # ── Private ────────────────────────────────────────────────────────────────

    async def _pay(self, tag_id: str) -> None:
        try:
            if not await self._channel.claim(tag_id):
                logger.info("[checkout] tap %s already taken, still waiting", tag_id)
                self._transition("pending_tap")
                return
            receipt = await self._ledger.pay(tag_id, self._cart.items)
        except KioskError as e:
            logger.info("[checkout] payment refused for %s: %s", tag_id, e)
            self._transition("error", error=str(e))
            return
        except Exception as e:
            logger.error("Payment failed: %s", e)
            self._transition("error", error=GENERIC_FAILURE)
            return
        # The order is committed: the cart goes whether or not the screen is still up
        self._cart.clear()
        self._transition(
            "success",
            order_id=receipt.order.id,
            new_balance=receipt.new_balance,
            paid_total=receipt.order.total_amount,
            paid_count=receipt.order.item_count,
        )
