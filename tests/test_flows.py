"""
tests/test_flows.py – Checkout / Registration / Balance state machines.
Taps are simulated by writing the tag to the StatusChannel, as the reader does.
"""
import pytest

from kiosk.core.cart import Cart
from kiosk.core.errors import EmptyCartError, InvalidTransitionError
from kiosk.core.flows.balance import BalanceFlow
from kiosk.core.flows.checkout import CheckoutFlow
from kiosk.core.flows.register import RegistrationFlow
from kiosk.db.models import User
from kiosk.db.session import db_session
from kiosk.models import RegistrationForm, UserProfile
from conftest import balance_of, make_item, order_count, seed_user


async def tap(channel, flow, tag_id: str) -> None:
    await channel.write(tag_id=tag_id)
    await flow.settle()


# ── Checkout ───────────────────────────────────────────────────────────────────

class TestCheckout:
    @pytest.mark.asyncio
    async def test_insufficient_funds_scenario(self, ledger, channel, db_url, two_bun_cart):
        """balance 150, cart 2 × 100 → error, balance 150, cart keeps 2 items."""
        seed_user(db_url, "X", balance=150.0)
        flow = CheckoutFlow("s1", two_bun_cart, ledger, channel)
        await flow.mount()
        await tap(channel, flow, "X")
        assert flow.state == "error"
        assert "Insufficient funds" in flow.error
        assert "150.00" in flow.error
        assert balance_of(db_url, "X") == 150.0
        assert two_bun_cart.item_count == 2
        assert order_count(db_url) == 0

    @pytest.mark.asyncio
    async def test_success_scenario(self, ledger, channel, db_url, two_bun_cart):
        """balance 300, cart 2 × 100 → success, balance 100, one order of 200, cart empty."""
        seed_user(db_url, "X", balance=300.0)
        flow = CheckoutFlow("s1", two_bun_cart, ledger, channel)
        await flow.mount()
        await tap(channel, flow, "X")
        assert flow.state == "success"
        assert flow.new_balance == 100.0
        assert balance_of(db_url, "X") == 100.0
        orders = await ledger.orders_for("X")
        assert len(orders) == 1
        assert orders[0].total_amount == 200.0
        assert orders[0].id == flow.order_id
        assert two_bun_cart.is_empty()
        assert flow.view().total == 200.0
        assert flow.view().item_count == 2

    @pytest.mark.asyncio
    async def test_unregistered_card(self, ledger, channel, two_bun_cart):
        flow = CheckoutFlow("s1", two_bun_cart, ledger, channel)
        await flow.mount()
        await tap(channel, flow, "ghost")
        assert flow.state == "error"
        assert flow.error == "Card not registered. Please register your card."
        assert two_bun_cart.item_count == 2

    @pytest.mark.asyncio
    async def test_empty_cart_cannot_mount(self, ledger, channel):
        flow = CheckoutFlow("s1", Cart("s1"), ledger, channel)
        with pytest.raises(EmptyCartError):
            await flow.mount()
        assert not flow.mounted

    @pytest.mark.asyncio
    async def test_tap_consumed_from_channel(self, ledger, channel, db_url, two_bun_cart):
        seed_user(db_url, "X", balance=300.0)
        flow = CheckoutFlow("s1", two_bun_cart, ledger, channel)
        await flow.mount()
        await tap(channel, flow, "X")
        assert (await channel.read()).tag_id is None

    @pytest.mark.asyncio
    async def test_stale_tap_at_mount_is_ignored(self, ledger, channel, db_url, two_bun_cart):
        seed_user(db_url, "X", balance=300.0)
        await channel.write(tag_id="X")
        flow = CheckoutFlow("s1", two_bun_cart, ledger, channel)
        await flow.mount()
        await flow.settle()
        assert flow.state == "pending_tap"
        assert balance_of(db_url, "X") == 300.0

    @pytest.mark.asyncio
    async def test_storage_failure_gives_generic_message(self, ledger, channel, two_bun_cart, monkeypatch):
        def broken(*_):
            raise RuntimeError("disk on fire")
        monkeypatch.setattr(ledger, "_do_pay", broken)
        flow = CheckoutFlow("s1", two_bun_cart, ledger, channel)
        await flow.mount()
        await tap(channel, flow, "X")
        assert flow.state == "error"
        assert flow.error == "An unexpected error occurred."
        assert two_bun_cart.item_count == 2

    @pytest.mark.asyncio
    async def test_claim_failure_is_recoverable(self, ledger, channel, db_url, two_bun_cart, monkeypatch):
        seed_user(db_url, "X", balance=300.0)
        def broken(*_):
            raise RuntimeError("status row locked")
        monkeypatch.setattr(channel, "_compare_and_clear", broken)
        flow = CheckoutFlow("s1", two_bun_cart, ledger, channel)
        await flow.mount()
        await tap(channel, flow, "X")
        assert flow.state == "error"
        assert flow.error == "An unexpected error occurred."
        assert balance_of(db_url, "X") == 300.0

        monkeypatch.undo()
        await flow.retry()
        await tap(channel, flow, "X")
        assert flow.state == "success"

    @pytest.mark.asyncio
    async def test_retry_needs_fresh_tap(self, ledger, channel, db_url, two_bun_cart):
        seed_user(db_url, "X", balance=150.0)
        flow = CheckoutFlow("s1", two_bun_cart, ledger, channel)
        await flow.mount()
        await tap(channel, flow, "X")
        assert flow.state == "error"

        await flow.retry()
        assert flow.state == "pending_tap"
        assert flow.error == ""
        assert (await channel.read()).tag_id is None

        with db_session(db_url) as session:
            session.get(User, "X").credit_balance = 500.0
        await tap(channel, flow, "X")
        assert flow.state == "success"
        assert balance_of(db_url, "X") == 300.0

    @pytest.mark.asyncio
    async def test_retry_only_from_error(self, ledger, channel, two_bun_cart):
        flow = CheckoutFlow("s1", two_bun_cart, ledger, channel)
        await flow.mount()
        with pytest.raises(InvalidTransitionError):
            await flow.retry()

    @pytest.mark.asyncio
    async def test_taps_ignored_after_result(self, ledger, channel, db_url, two_bun_cart):
        seed_user(db_url, "X", balance=1000.0)
        flow = CheckoutFlow("s1", two_bun_cart, ledger, channel)
        await flow.mount()
        await tap(channel, flow, "X")
        await tap(channel, flow, "X")
        assert order_count(db_url) == 1
        assert balance_of(db_url, "X") == 800.0

    @pytest.mark.asyncio
    async def test_one_tap_pays_once_across_screens(self, ledger, channel, db_url):
        seed_user(db_url, "X", balance=1000.0)
        carts = [Cart("a"), Cart("b")]
        for cart in carts:
            cart.add(make_item())
        flows = [CheckoutFlow(c.session_id, c, ledger, channel) for c in carts]
        for flow in flows:
            await flow.mount()
        await channel.write(tag_id="X")
        for flow in flows:
            await flow.settle()
        assert sorted(f.state for f in flows) == ["pending_tap", "success"]
        assert order_count(db_url) == 1
        assert balance_of(db_url, "X") == 900.0

    @pytest.mark.asyncio
    async def test_unmount_mid_payment_keeps_store_effects(self, ledger, channel, db_url, two_bun_cart):
        seed_user(db_url, "X", balance=300.0)
        flow = CheckoutFlow("s1", two_bun_cart, ledger, channel)
        await flow.mount()
        await channel.write(tag_id="X")
        assert flow.state == "processing"
        flow.unmount()
        await flow.settle()
        assert flow.state == "processing"
        assert balance_of(db_url, "X") == 100.0
        assert two_bun_cart.is_empty()

    @pytest.mark.asyncio
    async def test_unmounted_flow_ignores_taps(self, ledger, channel, db_url, two_bun_cart):
        seed_user(db_url, "X", balance=300.0)
        flow = CheckoutFlow("s1", two_bun_cart, ledger, channel)
        await flow.mount()
        flow.unmount()
        await tap(channel, flow, "X")
        assert flow.state == "pending_tap"
        assert balance_of(db_url, "X") == 300.0

    @pytest.mark.asyncio
    async def test_listeners_see_each_transition(self, ledger, channel, db_url, two_bun_cart):
        seed_user(db_url, "X", balance=300.0)
        flow = CheckoutFlow("s1", two_bun_cart, ledger, channel)
        seen = []
        flow.add_listener(lambda view: seen.append(view.state))
        await flow.mount()
        await tap(channel, flow, "X")
        assert seen == ["processing", "success"]

    @pytest.mark.asyncio
    async def test_unmount_tells_listeners(self, ledger, channel, two_bun_cart):
        flow = CheckoutFlow("s1", two_bun_cart, ledger, channel)
        seen = []
        flow.add_listener(seen.append)
        await flow.mount()
        flow.unmount()
        flow.unmount()
        assert seen == [None]


# ── Registration ───────────────────────────────────────────────────────────────

FORM = RegistrationForm(name="Jo", phone_number="1234567890")


class TestRegistration:
    @pytest.mark.asyncio
    async def test_happy_path(self, ledger, channel):
        flow = RegistrationFlow("s1", ledger, channel)
        await flow.mount()
        assert flow.state == "form"

        await flow.submit(FORM)
        assert flow.state == "tapping"

        await tap(channel, flow, "NEW1")
        assert flow.state == "success"
        profile = await ledger.get_profile("NEW1")
        assert (profile.name, profile.phone_number, profile.credit_balance) == ("Jo", "1234567890", 0)
        assert (await channel.read()).message == "registered"

    @pytest.mark.asyncio
    async def test_submit_clears_stale_tag(self, ledger, channel):
        await channel.write(tag_id="OLD", message="registered")
        flow = RegistrationFlow("s1", ledger, channel)
        await flow.mount()
        await flow.submit(FORM)
        record = await channel.read()
        assert record.tag_id is None
        assert record.message == ""
        assert flow.state == "tapping"

    @pytest.mark.asyncio
    async def test_tap_before_submit_ignored(self, ledger, channel):
        flow = RegistrationFlow("s1", ledger, channel)
        await flow.mount()
        await tap(channel, flow, "NEW1")
        assert flow.state == "form"
        assert await ledger.get_profile("NEW1") is None

    @pytest.mark.asyncio
    async def test_card_already_linked(self, ledger, channel, db_url):
        """tap 'X' when a profile for 'X' exists → 'already linked', profile untouched."""
        seed_user(db_url, "X", name="Nimal", phone="0771234567", balance=75.0)
        flow = RegistrationFlow("s1", ledger, channel)
        await flow.mount()
        await flow.submit(FORM)
        await tap(channel, flow, "X")
        assert flow.state == "error"
        assert "already linked" in flow.error
        profile = await ledger.get_profile("X")
        assert (profile.name, profile.phone_number, profile.credit_balance) == ("Nimal", "0771234567", 75.0)
        assert (await channel.read()).message == "unregistered"

    @pytest.mark.asyncio
    async def test_duplicate_phone(self, ledger, channel, db_url):
        seed_user(db_url, "OTHER", phone="1234567890")
        flow = RegistrationFlow("s1", ledger, channel)
        await flow.mount()
        await flow.submit(FORM)
        await tap(channel, flow, "NEW1")
        assert flow.state == "error"
        assert "phone number is already registered" in flow.error
        assert await ledger.get_profile("NEW1") is None

    @pytest.mark.asyncio
    async def test_claim_failure_goes_to_error(self, ledger, channel, monkeypatch):
        def broken(*_):
            raise RuntimeError("status row locked")
        monkeypatch.setattr(channel, "_compare_and_clear", broken)
        flow = RegistrationFlow("s1", ledger, channel)
        await flow.mount()
        await flow.submit(FORM)
        await tap(channel, flow, "NEW1")
        assert flow.state == "error"
        assert flow.error == "An unexpected error occurred."
        assert (await channel.read()).message == "unregistered"
        assert await ledger.get_profile("NEW1") is None

        await flow.retry()
        assert flow.state == "form"

    @pytest.mark.asyncio
    async def test_retry_returns_to_form(self, ledger, channel, db_url):
        seed_user(db_url, "X")
        flow = RegistrationFlow("s1", ledger, channel)
        await flow.mount()
        await flow.submit(FORM)
        await tap(channel, flow, "X")
        await flow.retry()
        assert flow.state == "form"
        assert flow.error == ""
        assert (await channel.read()).message == ""

    @pytest.mark.asyncio
    async def test_second_tap_after_success_ignored(self, ledger, channel):
        flow = RegistrationFlow("s1", ledger, channel)
        await flow.mount()
        await flow.submit(FORM)
        await tap(channel, flow, "NEW1")
        await tap(channel, flow, "NEW2")
        assert flow.state == "success"
        assert flow.tag_id == "NEW1"
        assert await ledger.get_profile("NEW2") is None
        assert (await channel.read()).tag_id == "NEW2"

    @pytest.mark.asyncio
    async def test_finish_clears_and_unmounts(self, ledger, channel):
        flow = RegistrationFlow("s1", ledger, channel)
        await flow.mount()
        await flow.submit(FORM)
        await tap(channel, flow, "NEW1")
        await flow.finish()
        assert not flow.mounted
        assert (await channel.read()).message == ""

    @pytest.mark.asyncio
    async def test_finish_only_after_success(self, ledger, channel):
        flow = RegistrationFlow("s1", ledger, channel)
        await flow.mount()
        with pytest.raises(InvalidTransitionError):
            await flow.finish()

    @pytest.mark.asyncio
    async def test_submit_only_from_form(self, ledger, channel):
        flow = RegistrationFlow("s1", ledger, channel)
        await flow.mount()
        await flow.submit(FORM)
        with pytest.raises(InvalidTransitionError):
            await flow.submit(FORM)


class TestRegistrationForm:
    def test_two_char_name_is_valid(self):
        assert RegistrationForm(name="Jo", phone_number="1234567890").name == "Jo"

    @pytest.mark.parametrize("name", ["", "J", "  J  "])
    def test_short_name_rejected(self, name):
        with pytest.raises(ValueError, match="at least 2 characters"):
            RegistrationForm(name=name, phone_number="1234567890")

    @pytest.mark.parametrize("phone", ["123456789", "12345678901", "12345abcde", "", "٠١٢٣٤٥٦٧٨٩"])
    def test_phone_must_be_ten_digits(self, phone):
        with pytest.raises(ValueError, match="10-digit"):
            RegistrationForm(name="Jo", phone_number=phone)


# ── Balance ────────────────────────────────────────────────────────────────────

class TestBalance:
    @pytest.mark.asyncio
    async def test_prompt_until_tap(self, ledger, channel):
        flow = BalanceFlow("s1", ledger, channel)
        await flow.mount()
        assert flow.state == "prompt"
        assert flow.view().balance is None

    @pytest.mark.asyncio
    async def test_shows_two_decimal_balance(self, ledger, channel, db_url):
        seed_user(db_url, "X", name="Nimal", balance=250.5)
        flow = BalanceFlow("s1", ledger, channel)
        await flow.mount()
        await tap(channel, flow, "X")
        view = flow.view()
        assert view.state == "balance"
        assert view.balance == "250.50"
        assert view.name == "Nimal"
        assert balance_of(db_url, "X") == 250.5

    @pytest.mark.asyncio
    async def test_unknown_card_not_found(self, ledger, channel):
        flow = BalanceFlow("s1", ledger, channel)
        await flow.mount()
        await tap(channel, flow, "ghost")
        assert flow.state == "notFound"

    @pytest.mark.asyncio
    async def test_claim_failure_not_found(self, ledger, channel, db_url, monkeypatch):
        seed_user(db_url, "X", balance=10.0)
        def broken(*_):
            raise RuntimeError("status row locked")
        monkeypatch.setattr(channel, "_compare_and_clear", broken)
        flow = BalanceFlow("s1", ledger, channel)
        await flow.mount()
        await tap(channel, flow, "X")
        assert flow.state == "notFound"

    @pytest.mark.asyncio
    async def test_new_tap_rereads(self, ledger, channel, db_url):
        seed_user(db_url, "A", phone="1111111111", balance=10.0)
        seed_user(db_url, "B", phone="2222222222", balance=20.0)
        flow = BalanceFlow("s1", ledger, channel)
        await flow.mount()
        await tap(channel, flow, "A")
        await tap(channel, flow, "B")
        assert flow.view().balance == "20.00"

    @pytest.mark.asyncio
    async def test_stale_tap_at_mount_ignored(self, ledger, channel, db_url):
        seed_user(db_url, "X", balance=10.0)
        await channel.write(tag_id="X")
        flow = BalanceFlow("s1", ledger, channel)
        await flow.mount()
        assert flow.state == "prompt"

    def test_well_formed_profile(self):
        good = UserProfile(tag_id="X", name="Nimal", phone_number="1", credit_balance=0.0)
        assert BalanceFlow.is_well_formed(good)
        assert not BalanceFlow.is_well_formed(None)
        assert not BalanceFlow.is_well_formed(good.model_copy(update={"name": "  "}))
