"""routes/system.py – /health"""
from datetime import datetime

from fastapi import APIRouter
from sqlalchemy.engine import make_url

from ..deps import get_settings
from ..models import HealthResponse

router = APIRouter(tags=["System"])


@router.get("/health", response_model=HealthResponse)
async def health():
    backend = make_url(get_settings().database_url).get_backend_name()
    return HealthResponse(status="ok", time=datetime.now().isoformat(), database=backend)
