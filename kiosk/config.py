"""
config.py – Runtime settings read from the environment (.env supported).
"""
import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()


@dataclass(frozen=True)
class Settings:
    database_url: str
    cart_dir: str
    currency: str


def load_settings() -> Settings:
    return Settings(
        database_url=os.getenv("DATABASE_URL", "sqlite:///./data/kiosk.db"),
        cart_dir=os.getenv("CART_DIR", "./data/carts"),
        currency=os.getenv("CURRENCY", "Rs."),
    )
