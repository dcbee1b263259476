"""
Slug generation and uniqueness resolution for public AR links
"""
import re
import secrets
from typing import Optional

from sqlalchemy.orm import Session

from core.config import logger, SLUG_MAX_ATTEMPTS
from models.item import Item

SLUG_MAX_LENGTH = 100

_NON_ALNUM = re.compile(r'[^a-z0-9]+')
SLUG_PATTERN = re.compile(r'^[a-z0-9]+(?:-[a-z0-9]+)*$')


def slugify(text: str) -> str:
    """Convert text to a URL-friendly slug"""
    slug = _NON_ALNUM.sub('-', (text or '').lower())
    return slug.strip('-')[:SLUG_MAX_LENGTH].rstrip('-')


def is_valid_slug(slug: str) -> bool:
    return bool(slug) and SLUG_PATTERN.match(slug) is not None


def _with_suffix(slug: str, suffix: str) -> str:
    # keep the result within the column length
    base = slug[:SLUG_MAX_LENGTH - len(suffix)].rstrip('-')
    return f"{base}{suffix}"


def _slug_taken(db: Session, slug: str, exclude_id: Optional[str]) -> bool:
    existing = db.query(Item.id).filter(Item.slug == slug).first()
    return existing is not None and existing.id != exclude_id


def ensure_unique_slug(db: Session, slug: str, exclude_id: Optional[str] = None) -> str:
    """
    Return `slug` or the first free `slug-N` (N from 1).
    The item with `exclude_id` does not count as a collision, so an item keeps its own slug on update.
    After SLUG_MAX_ATTEMPTS numbered suffixes a random suffix is used instead.
    """
    candidate = slug
    counter = 1
    while _slug_taken(db, candidate, exclude_id):
        if counter > SLUG_MAX_ATTEMPTS:
            candidate = _with_suffix(slug, f"-{secrets.token_hex(3)}")
            logger.warning(f"Slug '{slug}' exhausted numbered suffixes, trying {candidate}")
            continue
        candidate = _with_suffix(slug, f"-{counter}")
        counter += 1
    return candidate
