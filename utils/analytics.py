"""
Scan analytics aggregation
Per-item and per-merchant statistics computed on read from raw scan events
"""
import math
from collections import Counter
from datetime import date, datetime, timedelta
from typing import Iterable, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from core.errors import NotFoundError
from models.item import Item
from models.scan_event import ScanEvent

DAILY_WINDOW_DAYS = 30
RECENT_WINDOW_DAYS = 7
TOP_ITEMS_LIMIT = 5


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def summarize_scans(events: Iterable) -> dict:
    """
    Reduce scan events (anything with session_id, duration, device_type) to totals.
    Events still at duration 0 are left out of the average.
    """
    events = list(events)
    durations = [e.duration for e in events if (e.duration or 0) > 0]
    avg_duration = _round_half_up(sum(durations) / len(durations)) if durations else 0

    device_breakdown = Counter((e.device_type or "unknown") for e in events)

    return {
        "totalScans": len(events),
        "uniqueScans": len({e.session_id for e in events}),
        "avgDuration": avg_duration,
        "deviceBreakdown": dict(device_breakdown),
    }


def build_daily_series(timestamps: Iterable[datetime], today: date, days: int = DAILY_WINDOW_DAYS) -> List[dict]:
    """One {date, count} entry per day for the `days` days ending at `today`, oldest first."""
    start = today - timedelta(days=days - 1)
    counts = {start + timedelta(days=i): 0 for i in range(days)}
    for ts in timestamps:
        day = ts.date()
        if day in counts:
            counts[day] += 1
    return [{"date": d.isoformat(), "count": counts[d]} for d in sorted(counts)]


def rank_top_items(items: List[dict], limit: int = TOP_ITEMS_LIMIT) -> List[dict]:
    # sorted() is stable, so equal counts keep the listing order
    return sorted(items, key=lambda i: i["scans"], reverse=True)[:limit]


def get_item_analytics(db: Session, item_id: str, merchant_id: str, now: Optional[datetime] = None) -> dict:
    item = db.query(Item.id, Item.merchant_id).filter(Item.id == item_id).first()
    # Foreign items look exactly like missing ones
    if not item or item.merchant_id != merchant_id:
        raise NotFoundError("Item not found")

    events = db.query(
        ScanEvent.device_type,
        ScanEvent.session_id,
        ScanEvent.duration,
        ScanEvent.created_at,
    ).filter(ScanEvent.item_id == item_id).all()

    now = now or datetime.utcnow()
    return {
        "itemId": item_id,
        **summarize_scans(events),
        "dailyScans": build_daily_series((e.created_at for e in events), now.date()),
    }


def get_merchant_overview(db: Session, merchant_id: str, now: Optional[datetime] = None) -> dict:
    rows = db.query(
        Item.id,
        Item.name,
        Item.slug,
        func.count(ScanEvent.id).label("scans"),
    ).outerjoin(
        ScanEvent, ScanEvent.item_id == Item.id
    ).filter(
        Item.merchant_id == merchant_id
    ).group_by(
        Item.id, Item.name, Item.slug, Item.created_at
    ).order_by(Item.created_at.desc()).all()

    items = [
        {"id": r.id, "name": r.name, "slug": r.slug, "scans": int(r.scans or 0)}
        for r in rows
    ]

    now = now or datetime.utcnow()
    cutoff = now - timedelta(days=RECENT_WINDOW_DAYS)
    recent_scans = db.query(func.count(ScanEvent.id)).join(
        Item, ScanEvent.item_id == Item.id
    ).filter(
        Item.merchant_id == merchant_id,
        ScanEvent.created_at >= cutoff,
    ).scalar() or 0

    return {
        "totalItems": len(items),
        "totalScans": sum(i["scans"] for i in items),
        "recentScans": recent_scans,
        "topItems": rank_top_items(items),
    }
