"""
Item management: merchant-owned products with their AR slug
"""
from typing import Any, Callable, Dict

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from core.config import logger, SLUG_INSERT_RETRIES
from core.database import is_unique_violation
from core.errors import ConflictError, ForbiddenError, NotFoundError
from models.item import Item
from models.scan_event import ScanEvent
from utils.slugs import ensure_unique_slug, slugify

DEFAULT_SLUG = "item"

# request field -> column
_UPDATABLE_FIELDS = {
    "name": "name",
    "description": "description",
    "modelUrl": "model_url",
    "usdzUrl": "usdz_url",
    "thumbnailUrl": "thumbnail_url",
}


def _commit_with_slug_retry(db: Session, item: Item, base_slug: str, apply_changes: Callable[[], None]) -> None:
    """
    Apply changes, resolve the slug and commit. A concurrent insert can take
    the slug between probe and commit; roll back and resolve again.
    """
    for attempt in range(SLUG_INSERT_RETRIES + 1):
        apply_changes()
        item.slug = ensure_unique_slug(db, base_slug, exclude_id=item.id)
        if item not in db:
            db.add(item)
        try:
            db.commit()
            return
        except IntegrityError as ex:
            db.rollback()
            if not is_unique_violation(ex):
                raise
            logger.warning(f"Slug '{item.slug}' taken during commit (attempt {attempt + 1})")
    raise ConflictError(f'Slug "{base_slug}" is already in use')


def create_item(db: Session, merchant_id: str, data: Dict[str, Any]) -> Item:
    base_slug = data.get("slug") or slugify(data["name"]) or DEFAULT_SLUG
    item = Item(merchant_id=merchant_id)

    def apply_changes():
        item.name = data["name"]
        item.description = data.get("description")
        item.model_url = data["modelUrl"]
        item.usdz_url = data.get("usdzUrl")
        item.thumbnail_url = data.get("thumbnailUrl")

    _commit_with_slug_retry(db, item, base_slug, apply_changes)
    db.refresh(item)
    logger.info(f"Item created: id={item.id} slug={item.slug} merchant={merchant_id}")
    return item


def _scan_counts(db: Session, item_ids: list) -> Dict[str, int]:
    if not item_ids:
        return {}
    rows = db.query(ScanEvent.item_id, func.count(ScanEvent.id)).filter(
        ScanEvent.item_id.in_(item_ids)
    ).group_by(ScanEvent.item_id).all()
    return {item_id: count for item_id, count in rows}


def list_items(db: Session, merchant_id: str) -> dict:
    items = db.query(Item).filter(Item.merchant_id == merchant_id).order_by(Item.created_at.desc()).all()
    counts = _scan_counts(db, [i.id for i in items])
    return {
        "items": [{**i.to_dict(), "totalScans": counts.get(i.id, 0)} for i in items],
        "total": len(items),
    }


def get_item(db: Session, item_id: str) -> Item:
    item = db.query(Item).filter(Item.id == item_id).first()
    if not item:
        raise NotFoundError(f'Item with id "{item_id}" not found')
    return item


def get_item_by_slug(db: Session, slug: str) -> Item:
    item = db.query(Item).filter(Item.slug == slug).first()
    if not item:
        raise NotFoundError(f'Item with slug "{slug}" not found')
    return item


def get_owned_item(db: Session, item_id: str, merchant_id: str) -> Item:
    """Item endpoints report a foreign item as Forbidden (analytics masks it as NotFound)."""
    item = get_item(db, item_id)
    if item.merchant_id != merchant_id:
        raise ForbiddenError("You do not have access to this item")
    return item


def get_item_with_stats(db: Session, item_id: str, merchant_id: str) -> dict:
    item = get_owned_item(db, item_id, merchant_id)
    total_scans = db.query(func.count(ScanEvent.id)).filter(ScanEvent.item_id == item.id).scalar() or 0
    unique_scans = db.query(func.count(func.distinct(ScanEvent.session_id))).filter(
        ScanEvent.item_id == item.id
    ).scalar() or 0
    return {
        **item.to_dict(),
        "totalScans": total_scans,
        "uniqueScans": unique_scans,
    }


def update_item(db: Session, item_id: str, merchant_id: str, data: Dict[str, Any]) -> Item:
    """Apply only the fields present in `data`."""
    item = get_owned_item(db, item_id, merchant_id)

    def apply_changes():
        for field, column in _UPDATABLE_FIELDS.items():
            if field in data:
                setattr(item, column, data[field])

    base_slug = data.get("slug")
    if base_slug:
        _commit_with_slug_retry(db, item, base_slug, apply_changes)
    else:
        apply_changes()
        db.commit()
    db.refresh(item)
    return item


def delete_item(db: Session, item_id: str, merchant_id: str) -> dict:
    item = get_owned_item(db, item_id, merchant_id)
    db.delete(item)
    db.commit()
    logger.info(f"Item deleted: id={item_id} merchant={merchant_id}")
    return {"message": "Item deleted successfully"}
