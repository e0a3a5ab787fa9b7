"""
deps.py – Dependency Injection: singleton service instances.
Built once at import; routes reach them through the getters below.
"""
from .config import Settings, load_settings
from .core.cart import CartStorage
from .core.catalog import Catalog
from .core.ledger import Ledger
from .core.sessions import SessionRegistry
from .core.status import StatusChannel
from .handlers.balance_handler import BalanceHandler
from .handlers.cart_handler import CartHandler
from .handlers.checkout_handler import CheckoutHandler
from .handlers.register_handler import RegisterHandler
from .handlers.stream_handler import StreamHandler

# ── Core singletons ────────────────────────────────────────────────────────────

_settings = load_settings()
_catalog  = Catalog()
_ledger   = Ledger(_settings.database_url, currency=_settings.currency)
_channel  = StatusChannel(_settings.database_url)
_sessions = SessionRegistry(CartStorage(_settings.cart_dir))

# ── Handler singletons ─────────────────────────────────────────────────────────

_cart     = CartHandler(_sessions, _catalog)
_checkout = CheckoutHandler(_sessions, _ledger, _channel)
_register = RegisterHandler(_sessions, _ledger, _channel)
_balance  = BalanceHandler(_sessions, _ledger, _channel)
_stream   = StreamHandler(_sessions, _channel)


# ── Getters (used by routes) ───────────────────────────────────────────────────

def get_settings()         -> Settings:         return _settings
def get_catalog()          -> Catalog:          return _catalog
def get_ledger()           -> Ledger:           return _ledger
def get_channel()          -> StatusChannel:    return _channel
def get_sessions()         -> SessionRegistry:  return _sessions
def get_cart_handler()     -> CartHandler:      return _cart
def get_checkout_handler() -> CheckoutHandler:  return _checkout
def get_register_handler() -> RegisterHandler:  return _register
def get_balance_handler()  -> BalanceHandler:   return _balance
def get_stream_handler()   -> StreamHandler:    return _stream
