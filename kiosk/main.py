"""
main.py – FastAPI app entry point (slim wire-up only).
Connects routes and lifespan. No business logic here.
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .db.session import init_schema
from .deps import get_sessions, get_settings
from .routes import balance, cart, checkout, menu, register, status, system

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("🚀 Preparing store tables…")
    init_schema(get_settings().database_url)
    logger.info("✅ Ready.")
    yield
    get_sessions().close_all()
    logger.info("Shutdown.")


app = FastAPI(
    title="Canteen Kiosk API",
    description="Tablet ordering and RFID-card payment kiosk for the college canteen.",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])

app.include_router(system.router)
app.include_router(menu.router)
app.include_router(cart.router)
app.include_router(checkout.router)
app.include_router(register.router)
app.include_router(balance.router)
app.include_router(status.router)
