"""routes/checkout.py – Checkout screen.

  POST   /checkout/{session_id}        → open screen, wait for a tap
  GET    /checkout/{session_id}        → current state
  POST   /checkout/{session_id}/retry  → error → pending_tap
  DELETE /checkout/{session_id}        → leave the screen
"""
from fastapi import APIRouter, HTTPException

from ..core.errors import EmptyCartError, KioskError
from ..deps import get_checkout_handler
from ..models import CheckoutView

router = APIRouter(prefix="/checkout", tags=["Checkout"])


@router.post("/{session_id}", response_model=CheckoutView)
async def open_checkout(session_id: str):
    try:
        return await get_checkout_handler().start(session_id)
    except KeyError as e:
        raise HTTPException(status_code=404, detail=e.args[0])
    except EmptyCartError as e:
        raise HTTPException(status_code=409, detail={"message": str(e), "redirect": "/"})
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/{session_id}", response_model=CheckoutView)
async def checkout_state(session_id: str):
    try:
        return get_checkout_handler().view(session_id)
    except KeyError as e:
        raise HTTPException(status_code=404, detail=e.args[0])


@router.post("/{session_id}/retry", response_model=CheckoutView)
async def retry_checkout(session_id: str):
    try:
        return await get_checkout_handler().retry(session_id)
    except KeyError as e:
        raise HTTPException(status_code=404, detail=e.args[0])
    except KioskError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.delete("/{session_id}", status_code=204)
async def leave_checkout(session_id: str):
    try:
        get_checkout_handler().leave(session_id)
    except KeyError as e:
        raise HTTPException(status_code=404, detail=e.args[0])
