"""routes/cart.py – Kiosk sessions and the cart.

  POST   /sessions                         → new kiosk session
  GET    /cart/{session_id}                → cart contents + totals
  DELETE /cart/{session_id}                → empty the cart
  POST   /cart/{session_id}/items          → add one of a menu item
  PUT    /cart/{session_id}/items/{id}     → set quantity (≤ 0 removes)
  DELETE /cart/{session_id}/items/{id}     → remove an item
"""
from fastapi import APIRouter, HTTPException

from ..deps import get_cart_handler
from ..models import AddToCartRequest, AddToCartResponse, CartView, SessionResponse, SetQuantityRequest

router = APIRouter(tags=["Cart"])


@router.post("/sessions", response_model=SessionResponse, status_code=201)
async def create_session():
    return SessionResponse(session_id=get_cart_handler().create_session())


@router.get("/cart/{session_id}", response_model=CartView)
async def view_cart(session_id: str):
    try:
        return get_cart_handler().view(session_id)
    except KeyError as e:
        raise HTTPException(status_code=404, detail=e.args[0])


@router.delete("/cart/{session_id}", response_model=CartView)
async def clear_cart(session_id: str):
    try:
        return get_cart_handler().clear(session_id)
    except KeyError as e:
        raise HTTPException(status_code=404, detail=e.args[0])


@router.post("/cart/{session_id}/items", response_model=AddToCartResponse)
async def add_to_cart(session_id: str, req: AddToCartRequest):
    try:
        return get_cart_handler().add(session_id, req.menu_item_id)
    except KeyError as e:
        raise HTTPException(status_code=404, detail=e.args[0])


@router.put("/cart/{session_id}/items/{item_id}", response_model=CartView)
async def set_quantity(session_id: str, item_id: str, req: SetQuantityRequest):
    try:
        return get_cart_handler().set_quantity(session_id, item_id, req.quantity)
    except KeyError as e:
        raise HTTPException(status_code=404, detail=e.args[0])


@router.delete("/cart/{session_id}/items/{item_id}", response_model=CartView)
async def remove_from_cart(session_id: str, item_id: str):
    try:
        return get_cart_handler().remove(session_id, item_id)
    except KeyError as e:
        raise HTTPException(status_code=404, detail=e.args[0])
