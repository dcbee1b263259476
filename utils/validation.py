"""
Validation utilities for request payloads
Each validator returns a ValidationResult that routers check before calling business logic
"""
import re
from typing import Any, Dict, NamedTuple, Optional, Tuple
from urllib.parse import urlparse

from core.errors import BadRequestError
from utils.slugs import is_valid_slug

EMAIL_PATTERN = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')

FILE_TYPES = ("glb", "usdz", "thumbnail")
QR_FORMATS = ("png", "svg")
QR_ERROR_LEVELS = ("L", "M", "Q", "H")


class ValidationResult(NamedTuple):
    ok: bool
    errors: Dict[str, str]

    def raise_for_errors(self) -> None:
        if not self.ok:
            raise BadRequestError("Validation failed", fields=self.errors)


def _result(errors: Dict[str, str]) -> ValidationResult:
    return ValidationResult(ok=not errors, errors=errors)


def validate_length(value: Any, min_len: int = 0, max_len: Optional[int] = None) -> Tuple[bool, str]:
    if not isinstance(value, str):
        return False, "Must be a string"
    if len(value) < min_len:
        return False, f"Must be at least {min_len} characters"
    if max_len is not None and len(value) > max_len:
        return False, f"Must be at most {max_len} characters"
    return True, ""


def validate_email(email: Any) -> Tuple[bool, str]:
    """
    Validate email address format.
    Returns (is_valid, error_message).
    """
    if not isinstance(email, str) or not email.strip():
        return False, "Email is required"
    if not EMAIL_PATTERN.match(email.strip().lower()):
        return False, "Invalid email format"
    return True, ""


def validate_url(url: Any) -> Tuple[bool, str]:
    if not isinstance(url, str) or not url.strip():
        return False, "Must be a valid URL"
    parsed = urlparse(url.strip())
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        return False, "Must be a valid URL"
    return True, ""


def validate_slug(slug: Any) -> Tuple[bool, str]:
    ok, error = validate_length(slug, 2, 100)
    if not ok:
        return ok, error
    if not is_valid_slug(slug):
        return False, "Slug must be lowercase and contain only letters, numbers, and hyphens"
    return True, ""


def _check(errors: Dict[str, str], field: str, outcome: Tuple[bool, str]) -> None:
    ok, error = outcome
    if not ok:
        errors[field] = error


# ============ Auth ============

def validate_register(data: Dict[str, Any]) -> ValidationResult:
    errors: Dict[str, str] = {}
    _check(errors, "fullName", validate_length(data.get("fullName"), 2, 100))
    _check(errors, "email", validate_email(data.get("email")))
    _check(errors, "password", validate_length(data.get("password"), 6))
    return _result(errors)


def validate_login(data: Dict[str, Any]) -> ValidationResult:
    errors: Dict[str, str] = {}
    _check(errors, "email", validate_email(data.get("email")))
    _check(errors, "password", validate_length(data.get("password"), 1))
    return _result(errors)


# ============ Items ============

def _validate_item_fields(data: Dict[str, Any], errors: Dict[str, str]) -> None:
    if "name" in data:
        _check(errors, "name", validate_length(data["name"], 2, 100))
    if data.get("slug") is not None:
        _check(errors, "slug", validate_slug(data["slug"]))
    if data.get("description") is not None:
        _check(errors, "description", validate_length(data["description"], 0, 500))
    if "modelUrl" in data:
        _check(errors, "modelUrl", validate_url(data["modelUrl"]))
    for field in ("usdzUrl", "thumbnailUrl"):
        if data.get(field) is not None:
            _check(errors, field, validate_url(data[field]))


def validate_create_item(data: Dict[str, Any]) -> ValidationResult:
    errors: Dict[str, str] = {}
    if data.get("name") is None:
        errors["name"] = "Name is required"
    if data.get("modelUrl") is None:
        errors["modelUrl"] = "Model URL is required"
    _validate_item_fields({k: v for k, v in data.items() if k not in errors}, errors)
    return _result(errors)


def validate_update_item(data: Dict[str, Any]) -> ValidationResult:
    """Only fields present in the payload are checked."""
    errors: Dict[str, str] = {}
    for field in ("name", "modelUrl"):
        if field in data and data[field] is None:
            errors[field] = "Cannot be null"
    _validate_item_fields({k: v for k, v in data.items() if k not in errors}, errors)
    return _result(errors)


# ============ Analytics ============

def validate_record_scan(data: Dict[str, Any]) -> ValidationResult:
    errors: Dict[str, str] = {}
    _check(errors, "itemId", validate_length(data.get("itemId"), 1))
    _check(errors, "deviceType", validate_length(data.get("deviceType"), 0, 50))
    _check(errors, "sessionId", validate_length(data.get("sessionId"), 0, 100))
    if data.get("userAgent") is not None:
        _check(errors, "userAgent", validate_length(data["userAgent"], 0, 500))
    return _result(errors)


def validate_scan_duration(data: Dict[str, Any]) -> ValidationResult:
    errors: Dict[str, str] = {}
    _check(errors, "scanEventId", validate_length(data.get("scanEventId"), 1))
    duration = data.get("duration")
    if not isinstance(duration, int) or isinstance(duration, bool):
        errors["duration"] = "Duration must be an integer"
    elif duration < 0:
        errors["duration"] = "Duration must not be negative"
    return _result(errors)


# ============ QR / Upload ============

def validate_qr_options(data: Dict[str, Any]) -> ValidationResult:
    errors: Dict[str, str] = {}
    fmt = data.get("format")
    if fmt is not None and fmt not in QR_FORMATS:
        errors["format"] = "Format must be png or svg"
    size = data.get("size")
    if size is not None and (not isinstance(size, int) or size < 100 or size > 1000):
        errors["size"] = "Size must be an integer between 100 and 1000"
    level = data.get("errorCorrectionLevel")
    if level is not None and level not in QR_ERROR_LEVELS:
        errors["errorCorrectionLevel"] = "Error correction level must be one of L, M, Q, H"
    return _result(errors)


def validate_file_type(file_type: Any) -> Tuple[bool, str]:
    if file_type not in FILE_TYPES:
        return False, "Invalid file type. Must be glb, usdz, or thumbnail"
    return True, ""


def validate_presigned_request(data: Dict[str, Any]) -> ValidationResult:
    errors: Dict[str, str] = {}
    _check(errors, "fileName", validate_length(data.get("fileName"), 1, 255))
    _check(errors, "fileType", validate_file_type(data.get("fileType")))
    if data.get("contentType") is not None:
        _check(errors, "contentType", validate_length(data["contentType"], 1, 255))
    return _result(errors)
