import os
import re
import uuid
from typing import Optional
from urllib.parse import urlparse

from botocore.exceptions import BotoCoreError, ClientError

from core.config import s3_client, R2_BUCKET_NAME, STORAGE_PUBLIC_URL, STATIC_DIR, logger
from core.errors import BadRequestError

PRESIGN_EXPIRES_IN = 3600

_MB = 1024 * 1024

MAX_SIZES = {
    "glb": 15 * _MB,
    "usdz": 15 * _MB,
    "thumbnail": 2 * _MB,
}

ALLOWED_CONTENT_TYPES = {
    "glb": ("model/gltf-binary", "application/octet-stream"),
    "usdz": ("model/vnd.usdz+zip", "application/octet-stream"),
    "thumbnail": ("image/webp", "image/png", "image/jpeg"),
}

DEFAULT_CONTENT_TYPES = {
    "glb": "model/gltf-binary",
    "usdz": "model/vnd.usdz+zip",
    "thumbnail": "image/webp",
}


def resolve_content_type(file_type: str, provided: Optional[str] = None) -> str:
    """Use the caller's content type when it is allowed for the file type, else the default."""
    if provided and provided in ALLOWED_CONTENT_TYPES[file_type]:
        return provided
    return DEFAULT_CONTENT_TYPES[file_type]


def get_max_size(file_type: str) -> int:
    return MAX_SIZES[file_type]


def generate_key(merchant_id: str, file_type: str, file_name: str) -> str:
    sanitized = re.sub(r'[^a-zA-Z0-9.-]', '_', file_name or "file")
    folder = "thumbnails" if file_type == "thumbnail" else "models"
    return f"{merchant_id}/{folder}/{uuid.uuid4()}-{sanitized}"


def public_url_for(key: str) -> str:
    return f"{STORAGE_PUBLIC_URL}/{key}"


def get_presigned_upload_url(merchant_id: str, file_name: str, file_type: str, content_type: Optional[str] = None) -> dict:
    if not s3_client:
        raise RuntimeError("Object storage is not configured")

    key = generate_key(merchant_id, file_type, file_name)
    upload_url = s3_client.generate_presigned_url(
        "put_object",
        Params={
            "Bucket": R2_BUCKET_NAME,
            "Key": key,
            "ContentType": resolve_content_type(file_type, content_type),
        },
        ExpiresIn=PRESIGN_EXPIRES_IN,
    )
    return {
        "uploadUrl": upload_url,
        "publicUrl": public_url_for(key),
        "key": key,
        "expiresIn": PRESIGN_EXPIRES_IN,
    }


def upload_file(merchant_id: str, file_name: str, file_type: str, data: bytes, content_type: Optional[str] = None) -> dict:
    """Upload through the server (avoids browser CORS issues with the bucket)."""
    max_size = get_max_size(file_type)
    if len(data) > max_size:
        raise BadRequestError(f"File size exceeds the limit of {max_size // _MB}MB")

    key = generate_key(merchant_id, file_type, file_name)
    resolved_type = resolve_content_type(file_type, content_type)

    if not s3_client:
        local_path = os.path.join(STATIC_DIR, key)
        os.makedirs(os.path.dirname(local_path), exist_ok=True)
        with open(local_path, "wb") as f:
            f.write(data)
        logger.info(f"Saved locally: {local_path}")
        return {"publicUrl": f"/static/{key}", "key": key}

    s3_client.put_object(Bucket=R2_BUCKET_NAME, Key=key, Body=data, ContentType=resolved_type)
    logger.info(f"Uploaded to R2: {key} ({len(data)} bytes)")
    return {"publicUrl": public_url_for(key), "key": key}


def delete_file(key: str) -> bool:
    """Best effort: a failed delete is logged and reported, never raised."""
    try:
        if s3_client:
            s3_client.delete_object(Bucket=R2_BUCKET_NAME, Key=key)
            return True
        local_path = os.path.abspath(os.path.join(STATIC_DIR, key))
        if local_path.startswith(STATIC_DIR + os.sep) and os.path.isfile(local_path):
            os.remove(local_path)
            return True
        return False
    except (BotoCoreError, ClientError, OSError) as ex:
        logger.warning(f"delete_file failed for {key}: {ex}")
        return False


def extract_key_from_url(url: str) -> Optional[str]:
    try:
        path = urlparse(url).path
    except ValueError:
        return None
    if not path:
        return None
    path = path.lstrip("/")
    if path.startswith("static/"):
        path = path[len("static/"):]
    return path or None
