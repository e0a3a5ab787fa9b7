"""
core/ledger.py – Ledger class.
Owns every read/write of `users` and `orders`.

Each public operation is one `db_session` (one transaction). Blocking ORM
calls run in the default executor so the event loop keeps serving taps.
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import Optional
from uuid import uuid4

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError

from ..db.models import Order, User, utcnow
from ..db.session import db_session
from ..models import CartItem, OrderRecord, UserProfile
from .cart import cart_item_count, cart_total
from .errors import (
    CardAlreadyLinkedError,
    DuplicatePhoneError,
    EmptyCartError,
    InsufficientFundsError,
    NotRegisteredError,
)

logger = logging.getLogger(__name__)


@dataclass
class PaymentResult:
    order: OrderRecord
    new_balance: float


class Ledger:
    """Balance deduction, order log and card registration against the store."""

    def __init__(self, database_url: str, currency: str = "Rs.") -> None:
        self._url = database_url
        self._currency = currency

    # ── Public: Checkout ───────────────────────────────────────────────────────

    async def pay(self, tag_id: str, items: list[CartItem]) -> PaymentResult:
        """Deduct the cart total from the card's balance and log the order, atomically."""
        return await asyncio.get_event_loop().run_in_executor(
            None, self._do_pay, tag_id, list(items)
        )

    def _do_pay(self, tag_id: str, items: list[CartItem]) -> PaymentResult:
        if not items:
            raise EmptyCartError()
        total = cart_total(items)
        now = utcnow()
        with db_session(self._url) as session:
            user = session.get(User, tag_id)
            if user is None:
                raise NotRegisteredError(tag_id)

            # Conditional decrement: the balance check and the write are one statement
            result = session.execute(
                update(User)
                .where(User.tag_id == tag_id, User.credit_balance >= total)
                .values(credit_balance=User.credit_balance - total, last_transaction=now)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                session.refresh(user)
                raise InsufficientFundsError(user.credit_balance or 0.0, total, self._currency)

            order = Order(
                id=uuid4().hex,
                user_id=tag_id,
                order_date=now,
                total_amount=total,
                item_count=cart_item_count(items),
                order_items=[
                    {"menuItemId": i.id, "name": i.name, "quantity": i.quantity, "price": i.price}
                    for i in items
                ],
                status="completed",
            )
            session.add(order)
            session.flush()
            session.refresh(user)
            receipt = PaymentResult(OrderRecord.model_validate(order), user.credit_balance)
        logger.info("[Ledger] paid %.2f from %s → order %s", total, tag_id, receipt.order.id)
        return receipt

    # ── Public: Registration ───────────────────────────────────────────────────

    async def register(self, tag_id: str, name: str, phone_number: str) -> UserProfile:
        """Create a zero-balance profile; phone and card must both be unused."""
        return await asyncio.get_event_loop().run_in_executor(
            None, self._do_register, tag_id, name, phone_number
        )

    def _do_register(self, tag_id: str, name: str, phone_number: str) -> UserProfile:
        try:
            with db_session(self._url) as session:
                if session.query(User.tag_id).filter(User.phone_number == phone_number).first():
                    raise DuplicatePhoneError(phone_number)
                if session.get(User, tag_id) is not None:
                    raise CardAlreadyLinkedError(tag_id)
                user = User(
                    tag_id=tag_id,
                    name=name,
                    phone_number=phone_number,
                    credit_balance=0.0,
                    created_at=utcnow(),
                )
                session.add(user)
                session.flush()
                profile = UserProfile.model_validate(user)
        except IntegrityError:
            # Lost a race against a concurrent registration; report which key collided
            logger.warning("[Ledger] unique violation registering %s", tag_id)
            if self._phone_taken(phone_number):
                raise DuplicatePhoneError(phone_number) from None
            raise CardAlreadyLinkedError(tag_id) from None
        logger.info("[Ledger] registered card %s", tag_id)
        return profile

    # ── Public: Reads ──────────────────────────────────────────────────────────

    async def get_profile(self, tag_id: str) -> Optional[UserProfile]:
        return await asyncio.get_event_loop().run_in_executor(None, self._fetch_profile, tag_id)

    async def orders_for(self, tag_id: str, limit: int = 20) -> list[OrderRecord]:
        """Most recent orders first."""
        return await asyncio.get_event_loop().run_in_executor(
            None, self._fetch_orders, tag_id, limit
        )

    # ── Private: ORM helpers ───────────────────────────────────────────────────

    def _fetch_profile(self, tag_id: str) -> Optional[UserProfile]:
        with db_session(self._url) as session:
            user = session.get(User, tag_id)
            return UserProfile.model_validate(user) if user else None

    def _fetch_orders(self, tag_id: str, limit: int) -> list[OrderRecord]:
        with db_session(self._url) as session:
            rows = (
                session.query(Order)
                .filter(Order.user_id == tag_id)
                .order_by(Order.order_date.desc())
                .limit(limit)
                .all()
            )
            return [OrderRecord.model_validate(r) for r in rows]

    def _phone_taken(self, phone_number: str) -> bool:
        with db_session(self._url) as session:
            return session.query(User.tag_id).filter(User.phone_number == phone_number).first() is not None
