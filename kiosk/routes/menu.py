"""routes/menu.py – GET /menu, GET /menu/{item_id}"""
from fastapi import APIRouter, HTTPException

from ..deps import get_catalog
from ..models import MenuItem

router = APIRouter(prefix="/menu", tags=["Menu"])


@router.get("", response_model=list[MenuItem])
async def menu():
    return get_catalog().all()


@router.get("/{item_id}", response_model=MenuItem)
async def menu_item(item_id: str):
    try:
        return get_catalog().get(item_id)
    except KeyError as e:
        raise HTTPException(status_code=404, detail=e.args[0])
