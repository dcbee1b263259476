from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict
from sqlalchemy.orm import Session

from core.auth import get_current_user_uid
from core.database import get_db
from utils.items import (
    create_item,
    delete_item,
    get_item_by_slug,
    get_item_with_stats,
    list_items,
    update_item,
)
from utils.validation import validate_create_item, validate_update_item

router = APIRouter(prefix="/items", tags=["items"])


class CreateItemRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str
    slug: Optional[str] = None
    description: Optional[str] = None
    modelUrl: str
    usdzUrl: Optional[str] = None
    thumbnailUrl: Optional[str] = None


class UpdateItemRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = None
    slug: Optional[str] = None
    description: Optional[str] = None
    modelUrl: Optional[str] = None
    usdzUrl: Optional[str] = None
    thumbnailUrl: Optional[str] = None


@router.post("")
async def create(
    data: CreateItemRequest,
    uid: str = Depends(get_current_user_uid),
    db: Session = Depends(get_db),
):
    payload = data.model_dump()
    validate_create_item(payload).raise_for_errors()
    item = create_item(db, uid, payload)
    return JSONResponse(item.to_dict(), status_code=201)


@router.get("")
async def list_all(uid: str = Depends(get_current_user_uid), db: Session = Depends(get_db)):
    """All items of the current merchant, newest first"""
    return list_items(db, uid)


@router.get("/slug/{slug}")
async def find_by_slug(slug: str, db: Session = Depends(get_db)):
    """Public lookup used by the AR viewer page"""
    return get_item_by_slug(db, slug).to_dict()


@router.get("/{item_id}")
async def find_by_id(
    item_id: str,
    uid: str = Depends(get_current_user_uid),
    db: Session = Depends(get_db),
):
    return get_item_with_stats(db, item_id, uid)


@router.patch("/{item_id}")
async def update(
    item_id: str,
    data: UpdateItemRequest,
    uid: str = Depends(get_current_user_uid),
    db: Session = Depends(get_db),
):
    payload = data.model_dump(exclude_unset=True)
    validate_update_item(payload).raise_for_errors()
    return update_item(db, item_id, uid, payload).to_dict()


@router.delete("/{item_id}")
async def delete(
    item_id: str,
    uid: str = Depends(get_current_user_uid),
    db: Session = Depends(get_db),
):
    return delete_item(db, item_id, uid)
