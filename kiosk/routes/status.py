"""routes/status.py – GET/PUT /status/ui, WS /ws/status, WS /ws/flow/{session_id}"""
from fastapi import APIRouter, HTTPException, WebSocket

from ..deps import get_channel, get_stream_handler
from ..models import StatusRecord, StatusWrite

router = APIRouter(tags=["Status"])


@router.get("/status/ui", response_model=StatusRecord)
async def read_status():
    try:
        return await get_channel().read()
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.put("/status/ui", response_model=StatusRecord)
async def write_status(req: StatusWrite):
    """Written by the card reader; only the fields sent are changed."""
    try:
        return await get_channel().write(**req.model_dump(exclude_unset=True))
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.websocket("/ws/status")
async def ws_status(websocket: WebSocket):
    await get_stream_handler().handle_status_ws(websocket)


@router.websocket("/ws/flow/{session_id}")
async def ws_flow(websocket: WebSocket, session_id: str):
    await get_stream_handler().handle_flow_ws(websocket, session_id)
