"""
Scan recording for the public AR viewer
The viewer records one event on mount, then re-sends the growing duration on a timer and on teardown.
"""
from typing import Optional

from sqlalchemy.orm import Session

from core.config import logger
from core.errors import NotFoundError
from models.item import Item
from models.scan_event import ScanEvent


def record_scan(
    db: Session,
    item_id: str,
    device_type: str,
    session_id: str,
    user_agent: Optional[str] = None,
) -> ScanEvent:
    item = db.query(Item.id).filter(Item.id == item_id).first()
    if not item:
        raise NotFoundError(f'Item with id "{item_id}" not found')

    event = ScanEvent(
        item_id=item_id,
        device_type=(device_type or "").lower(),
        session_id=session_id,
        user_agent=user_agent,
        duration=0,
    )
    db.add(event)
    db.commit()
    db.refresh(event)
    logger.info(f"Scan recorded: item={item_id} device={event.device_type}")
    return event


def update_duration(db: Session, scan_event_id: str, duration: int) -> ScanEvent:
    """Overwrite the stored duration; repeated calls are last-write-wins."""
    event = db.query(ScanEvent).filter(ScanEvent.id == scan_event_id).first()
    if not event:
        raise NotFoundError("Scan event not found")

    event.duration = duration
    db.commit()
    db.refresh(event)
    return event
