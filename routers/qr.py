from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from sqlalchemy.orm import Session

from core.auth import get_current_user_uid
from core.database import get_db
from utils.items import get_owned_item
from utils.qr import (
    DEFAULT_ERROR_CORRECTION,
    DEFAULT_SIZE,
    generate_data_url,
    generate_png,
    generate_svg,
    get_ar_url,
)
from utils.validation import validate_qr_options

router = APIRouter(prefix="/qr", tags=["qr"])


def _qr_options(
    format: Optional[str] = Query(None),
    size: Optional[int] = Query(None),
    errorCorrectionLevel: Optional[str] = Query(None),
) -> dict:
    options = {"format": format, "size": size, "errorCorrectionLevel": errorCorrectionLevel}
    validate_qr_options(options).raise_for_errors()
    return {
        "format": format or "png",
        "size": size or DEFAULT_SIZE,
        "error_correction": errorCorrectionLevel or DEFAULT_ERROR_CORRECTION,
    }


@router.get("/items/{item_id}")
async def download_qr(
    item_id: str,
    uid: str = Depends(get_current_user_uid),
    options: dict = Depends(_qr_options),
    db: Session = Depends(get_db),
):
    """QR code for an item's AR page as a PNG or SVG attachment"""
    item = get_owned_item(db, item_id, uid)

    if options["format"] == "svg":
        svg = generate_svg(item.slug, error_correction=options["error_correction"])
        return Response(
            content=svg,
            media_type="image/svg+xml",
            headers={"Content-Disposition": f'attachment; filename="{item.slug}-qr.svg"'},
        )

    png = generate_png(item.slug, size=options["size"], error_correction=options["error_correction"])
    return Response(
        content=png,
        media_type="image/png",
        headers={"Content-Disposition": f'attachment; filename="{item.slug}-qr.png"'},
    )


@router.get("/items/{item_id}/preview")
async def preview_qr(
    item_id: str,
    uid: str = Depends(get_current_user_uid),
    options: dict = Depends(_qr_options),
    db: Session = Depends(get_db),
):
    item = get_owned_item(db, item_id, uid)
    return {
        "dataUrl": generate_data_url(item.slug, size=options["size"], error_correction=options["error_correction"]),
        "arUrl": get_ar_url(item.slug),
    }
