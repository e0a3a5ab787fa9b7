"""
models.py – Pydantic schemas for catalog, cart, store records and flow views.
"""
import re
from datetime import datetime
from typing import Literal, Optional, List

from pydantic import BaseModel, ConfigDict, Field, field_validator


StatusMessage = Literal["", "registered", "unregistered"]
CheckoutState = Literal["pending_tap", "processing", "success", "error"]
RegisterState = Literal["form", "tapping", "submitting", "success", "error"]
BalanceState  = Literal["prompt", "loading", "balance", "notFound"]

PHONE_RE = re.compile(r"\d{10}", re.ASCII)


# ── Catalog / Cart ─────────────────────────────────────────────────────────────

class MenuItem(BaseModel):
    id: str
    name: str
    description: str = ""
    price: float = Field(..., ge=0)
    image_url: str = ""
    image_hint: str = ""


class CartItem(MenuItem):
    quantity: int = Field(default=1, ge=1)


class CartView(BaseModel):
    session_id: str
    items: List[CartItem]
    total: float
    item_count: int


class AddToCartRequest(BaseModel):
    menu_item_id: str = Field(..., min_length=1)


class SetQuantityRequest(BaseModel):
    quantity: int = Field(..., description="≤ 0 removes the item")


class AddToCartResponse(CartView):
    message: str


# ── Store records ──────────────────────────────────────────────────────────────

class OrderLine(BaseModel):
    menuItemId: str
    name: str
    quantity: int = Field(..., ge=1)
    price: float


class OrderRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    order_date: datetime
    total_amount: float
    item_count: int
    order_items: List[OrderLine]
    status: str = "completed"


class UserProfile(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    tag_id: str
    name: str
    phone_number: str
    credit_balance: float = 0.0
    last_transaction: Optional[datetime] = None
    created_at: Optional[datetime] = None


class StatusRecord(BaseModel):
    tag_id: Optional[str] = None
    message: StatusMessage = ""


class StatusWrite(BaseModel):
    tag_id: Optional[str] = Field(default=None, description="Tag read by the RFID reader")
    message: Optional[StatusMessage] = None


# ── Registration form ─────────────────────────────────────────────────────────

class RegistrationForm(BaseModel):
    name: str = Field(..., description="Card holder name")
    phone_number: str = Field(..., description="10-digit phone number")

    @field_validator("name")
    @classmethod
    def _name_min_length(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 2:
            raise ValueError("Name must be at least 2 characters.")
        return v

    @field_validator("phone_number")
    @classmethod
    def _phone_ten_digits(cls, v: str) -> str:
        if not PHONE_RE.fullmatch(v):
            raise ValueError("Please enter a valid 10-digit phone number.")
        return v


# ── Flow views ─────────────────────────────────────────────────────────────────

class SessionResponse(BaseModel):
    session_id: str


class CheckoutView(BaseModel):
    session_id: str
    state: CheckoutState
    total: float
    item_count: int
    error: str = ""
    order_id: Optional[str] = None
    new_balance: Optional[float] = None


class RegisterView(BaseModel):
    session_id: str
    state: RegisterState
    name: str = ""
    phone_number: str = ""
    tag_id: Optional[str] = None
    error: str = ""


class BalanceView(BaseModel):
    session_id: str
    state: BalanceState
    tag_id: Optional[str] = None
    name: Optional[str] = None
    balance: Optional[str] = Field(default=None, description="Balance formatted to 2 decimals")


class HealthResponse(BaseModel):
    status: str
    time: str
    database: str
