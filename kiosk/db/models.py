"""
kiosk/db/models.py – SQLAlchemy ORM models for the kiosk store.

Three collections: `users` (keyed by card tag), `orders` (append-only log)
and `status` (single shared row `ui`).
"""
from datetime import datetime, timezone

from sqlalchemy import JSON, Column, DateTime, Float, Integer, String
from sqlalchemy.orm import DeclarativeBase


STATUS_ROW_ID = "ui"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class User(Base):
    __tablename__ = "users"

    tag_id           = Column(String,   primary_key=True)
    name             = Column(String,   nullable=False)
    phone_number     = Column(String,   nullable=False, unique=True)
    credit_balance   = Column(Float,    nullable=False, default=0.0)
    last_transaction = Column(DateTime(timezone=True), nullable=True)
    created_at       = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    def __repr__(self) -> str:
        return f"<User tag_id={self.tag_id!r} balance={self.credit_balance}>"


class Order(Base):
    __tablename__ = "orders"

    id           = Column(String,  primary_key=True)
    user_id      = Column(String,  nullable=False, index=True)
    order_date   = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    total_amount = Column(Float,   nullable=False)
    item_count   = Column(Integer, nullable=False)
    order_items  = Column(JSON,    nullable=False, default=list)
    status       = Column(String,  nullable=False, default="completed")

    def __repr__(self) -> str:
        return f"<Order id={self.id!r} user_id={self.user_id!r} total={self.total_amount}>"


class Status(Base):
    __tablename__ = "status"

    id      = Column(String, primary_key=True, default=STATUS_ROW_ID)
    tag_id  = Column(String, nullable=True)
    message = Column(String, nullable=False, default="")

    def __repr__(self) -> str:
        return f"<Status tag_id={self.tag_id!r} message={self.message!r}>"
