"""tests/conftest.py – shared fixtures for all tests."""
import pytest

from kiosk.config import Settings
from kiosk.core.cart import Cart, CartStorage
from kiosk.core.catalog import Catalog
from kiosk.core.ledger import Ledger
from kiosk.core.status import StatusChannel
from kiosk.db.models import Order, User, utcnow
from kiosk.db.session import db_session, init_schema
from kiosk.models import MenuItem


def make_item(**kw) -> MenuItem:
    defaults = dict(
        id="1", name="Cream bun", description="A soft bun filled with cream.",
        price=100.0, image_url="/cream-bun.jpg", image_hint="cream bun",
    )
    defaults.update(kw)
    return MenuItem(**defaults)


def seed_user(db_url: str, tag_id: str, name: str = "Nimal", phone: str = "0771234567",
              balance: float = 0.0) -> None:
    with db_session(db_url) as session:
        session.add(User(tag_id=tag_id, name=name, phone_number=phone,
                         credit_balance=balance, created_at=utcnow()))


def balance_of(db_url: str, tag_id: str) -> float:
    with db_session(db_url) as session:
        return session.get(User, tag_id).credit_balance


def order_count(db_url: str) -> int:
    with db_session(db_url) as session:
        return session.query(Order).count()


# ── Global: reset engine cache between tests ───────────────────────────────────

@pytest.fixture(autouse=True)
def clear_engine_cache():
    """Drop cached SQLAlchemy engines so each test gets its own database file."""
    from kiosk.db import session as sess_module
    yield
    for engine in sess_module._engines.values():
        engine.dispose()
    sess_module._engines.clear()
    sess_module._session_factories.clear()


# ── Store fixtures ─────────────────────────────────────────────────────────────

@pytest.fixture
def db_url(tmp_path) -> str:
    url = f"sqlite:///{tmp_path / 'kiosk.db'}"
    init_schema(url)
    return url


@pytest.fixture
def ledger(db_url) -> Ledger:
    return Ledger(db_url)


@pytest.fixture
def channel(db_url) -> StatusChannel:
    return StatusChannel(db_url)


@pytest.fixture
def storage(tmp_path) -> CartStorage:
    return CartStorage(tmp_path / "carts")


@pytest.fixture
def two_bun_cart() -> Cart:
    """cart = [{price 100, qty 2}]"""
    cart = Cart("s1")
    cart.add(make_item())
    cart.add(make_item())
    return cart


# ── API stack: real services on a temp database, patched into deps ───────────

@pytest.fixture
def stack(tmp_path, monkeypatch):
    from kiosk import deps
    from kiosk.core.sessions import SessionRegistry
    from kiosk.handlers.balance_handler import BalanceHandler
    from kiosk.handlers.cart_handler import CartHandler
    from kiosk.handlers.checkout_handler import CheckoutHandler
    from kiosk.handlers.register_handler import RegisterHandler
    from kiosk.handlers.stream_handler import StreamHandler

    settings = Settings(
        database_url=f"sqlite:///{tmp_path / 'api.db'}",
        cart_dir=str(tmp_path / "carts"),
        currency="Rs.",
    )
    init_schema(settings.database_url)
    catalog  = Catalog()
    ledger   = Ledger(settings.database_url)
    channel  = StatusChannel(settings.database_url)
    sessions = SessionRegistry(CartStorage(settings.cart_dir))

    monkeypatch.setattr(deps, "_settings", settings)
    monkeypatch.setattr(deps, "_catalog", catalog)
    monkeypatch.setattr(deps, "_ledger", ledger)
    monkeypatch.setattr(deps, "_channel", channel)
    monkeypatch.setattr(deps, "_sessions", sessions)
    monkeypatch.setattr(deps, "_cart", CartHandler(sessions, catalog))
    monkeypatch.setattr(deps, "_checkout", CheckoutHandler(sessions, ledger, channel))
    monkeypatch.setattr(deps, "_register", RegisterHandler(sessions, ledger, channel))
    monkeypatch.setattr(deps, "_balance", BalanceHandler(sessions, ledger, channel))
    monkeypatch.setattr(deps, "_stream", StreamHandler(sessions, channel))
    return settings
