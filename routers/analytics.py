"""
Analytics Router
Public scan tracking for the AR viewer and merchant dashboard reports
"""
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict
from sqlalchemy.orm import Session

from core.auth import get_current_user_uid
from core.database import get_db
from utils.analytics import get_item_analytics, get_merchant_overview
from utils.rate_limit import rate_limited, scan_throttle
from utils.scans import record_scan, update_duration
from utils.validation import validate_record_scan, validate_scan_duration

router = APIRouter(prefix="/analytics", tags=["analytics"])


# ============ Pydantic Models ============

class RecordScan(BaseModel):
    model_config = ConfigDict(extra="forbid")

    itemId: str
    deviceType: str
    sessionId: str
    userAgent: Optional[str] = None


class UpdateScanDuration(BaseModel):
    model_config = ConfigDict(extra="forbid")

    scanEventId: str
    duration: int


# ============ Public Tracking Endpoints ============

@router.post("/scan", dependencies=[Depends(rate_limited(scan_throttle, "scan"))])
async def track_scan(data: RecordScan, db: Session = Depends(get_db)):
    """Record a scan event (called by the AR viewer on mount)"""
    payload = data.model_dump()
    validate_record_scan(payload).raise_for_errors()

    event = record_scan(
        db,
        item_id=data.itemId,
        device_type=data.deviceType,
        session_id=data.sessionId,
        user_agent=data.userAgent,
    )
    return JSONResponse(event.to_dict(), status_code=201)


@router.patch("/scan/duration", dependencies=[Depends(rate_limited(scan_throttle, "scan"))])
async def track_scan_duration(data: UpdateScanDuration, db: Session = Depends(get_db)):
    """Overwrite the viewing duration of a scan (heartbeat from the AR viewer)"""
    validate_scan_duration(data.model_dump()).raise_for_errors()

    event = update_duration(db, data.scanEventId, data.duration)
    return event.to_dict()


# ============ Merchant Dashboard Endpoints ============

@router.get("/items/{item_id}")
async def item_analytics(
    item_id: str,
    uid: str = Depends(get_current_user_uid),
    db: Session = Depends(get_db),
):
    """Get analytics for a specific item"""
    return get_item_analytics(db, item_id, uid)


@router.get("/overview")
async def merchant_overview(
    uid: str = Depends(get_current_user_uid),
    db: Session = Depends(get_db),
):
    """Get analytics overview across the merchant's items"""
    return get_merchant_overview(db, uid)
