"""routes/register.py – Card registration screen.

  POST   /register/{session_id}          → open screen (form state)
  GET    /register/{session_id}          → current state
  POST   /register/{session_id}/submit   → validate name + phone, wait for tap
  POST   /register/{session_id}/retry    → error → form
  POST   /register/{session_id}/finish   → success → back to menu
  DELETE /register/{session_id}          → leave the screen
"""
from fastapi import APIRouter, HTTPException

from ..core.errors import KioskError
from ..deps import get_register_handler
from ..models import RegisterView, RegistrationForm

router = APIRouter(prefix="/register", tags=["Register"])


@router.post("/{session_id}", response_model=RegisterView)
async def open_register(session_id: str):
    try:
        return await get_register_handler().start(session_id)
    except KeyError as e:
        raise HTTPException(status_code=404, detail=e.args[0])


@router.get("/{session_id}", response_model=RegisterView)
async def register_state(session_id: str):
    try:
        return get_register_handler().view(session_id)
    except KeyError as e:
        raise HTTPException(status_code=404, detail=e.args[0])


@router.post("/{session_id}/submit", response_model=RegisterView)
async def submit_form(session_id: str, form: RegistrationForm):
    """Field errors come back as 422 before anything touches the store."""
    try:
        return await get_register_handler().submit(session_id, form)
    except KeyError as e:
        raise HTTPException(status_code=404, detail=e.args[0])
    except KioskError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/{session_id}/retry", response_model=RegisterView)
async def retry_register(session_id: str):
    try:
        return await get_register_handler().retry(session_id)
    except KeyError as e:
        raise HTTPException(status_code=404, detail=e.args[0])
    except KioskError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/{session_id}/finish")
async def finish_register(session_id: str):
    try:
        await get_register_handler().finish(session_id)
        return {"redirect": "/"}
    except KeyError as e:
        raise HTTPException(status_code=404, detail=e.args[0])
    except KioskError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.delete("/{session_id}", status_code=204)
async def leave_register(session_id: str):
    try:
        get_register_handler().leave(session_id)
    except KeyError as e:
        raise HTTPException(status_code=404, detail=e.args[0])
