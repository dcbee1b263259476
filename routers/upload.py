import posixpath
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from pydantic import BaseModel, ConfigDict

from core.auth import get_current_user_uid
from core.config import logger
from core.errors import BadRequestError, ForbiddenError
from utils.storage import delete_file, get_presigned_upload_url, upload_file
from utils.validation import validate_file_type, validate_presigned_request

router = APIRouter(prefix="/upload", tags=["upload"])


class PresignedUrlRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    fileName: str
    fileType: str
    contentType: Optional[str] = None


@router.post("/presigned-url")
async def presigned_url(data: PresignedUrlRequest, uid: str = Depends(get_current_user_uid)):
    """Presigned PUT URL for uploading a model or thumbnail straight to the bucket"""
    validate_presigned_request(data.model_dump()).raise_for_errors()
    return get_presigned_upload_url(uid, data.fileName, data.fileType, data.contentType)


@router.post("/direct")
async def upload_direct(
    file: Optional[UploadFile] = File(None),
    fileType: str = Form(...),
    uid: str = Depends(get_current_user_uid),
):
    """Upload a file through the server"""
    if file is None:
        raise BadRequestError("File is required")
    ok, error = validate_file_type(fileType)
    if not ok:
        raise BadRequestError(error)

    data = await file.read()
    return upload_file(uid, file.filename or "file", fileType, data, file.content_type)


@router.delete("/{key:path}")
async def remove_file(key: str, uid: str = Depends(get_current_user_uid)):
    # keys are namespaced by merchant id
    if ".." in key.split("/") or not posixpath.normpath(key).startswith(f"{uid}/"):
        raise ForbiddenError("You do not have access to this file")
    if not delete_file(key):
        logger.warning(f"File not deleted: {key}")
    return {"message": "File deleted successfully"}
