"""routes/balance.py – Balance screen + order history."""
from fastapi import APIRouter, HTTPException, Query

from ..deps import get_balance_handler
from ..models import BalanceView, OrderRecord

router = APIRouter(tags=["Balance"])


@router.post("/balance/{session_id}", response_model=BalanceView)
async def open_balance(session_id: str):
    try:
        return await get_balance_handler().start(session_id)
    except KeyError as e:
        raise HTTPException(status_code=404, detail=e.args[0])


@router.get("/balance/{session_id}", response_model=BalanceView)
async def balance_state(session_id: str):
    try:
        return get_balance_handler().view(session_id)
    except KeyError as e:
        raise HTTPException(status_code=404, detail=e.args[0])


@router.delete("/balance/{session_id}", status_code=204)
async def leave_balance(session_id: str):
    try:
        get_balance_handler().leave(session_id)
    except KeyError as e:
        raise HTTPException(status_code=404, detail=e.args[0])


@router.get("/users/{tag_id}/orders", response_model=list[OrderRecord])
async def order_history(tag_id: str, limit: int = Query(default=20, ge=1, le=100)):
    """Most recent orders paid with this card."""
    try:
        return await get_balance_handler().orders(tag_id, limit)
    except KeyError as e:
        raise HTTPException(status_code=404, detail=e.args[0])
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))
