"""General-purpose utility helpers."""
import re
import uuid
from datetime import datetime, timezone

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def utc_now() -> datetime:
    """Return current UTC datetime."""
    return datetime.now(timezone.utc)


def as_utc(value: datetime | None) -> datetime | None:
    """Attach UTC to naive datetimes (SQLite drops tzinfo on round-trip)."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def slugify(text: str) -> str:
    """Convert text to URL-friendly slug."""
    text = text.lower().strip()
    text = re.sub(r"[^\w\s-]", "", text)
    text = re.sub(r"[\s_]+", "-", text)
    text = re.sub(r"-+", "-", text)
    return text.strip("-")


def parse_bool(value) -> bool | None:
    """Parse a query-string style boolean; None when unrecognized."""
    if isinstance(value, bool):
        return value
    if value is None:
        return None
    text = str(value).strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    return None


def parse_uuid(value) -> uuid.UUID | None:
    """Safely parse a UUID; None when the value is not one."""
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (ValueError, TypeError, AttributeError):
        return None


def storage_url(ref: str | None, base_url: str) -> str | None:
    """Resolve a blob reference to an absolute URL."""
    if not ref:
        return None
    if ref.startswith(("http://", "https://")):
        return ref
    return f"{base_url.rstrip('/')}/storage/{ref.lstrip('/')}"


def clean_tags(tags: list[str] | None) -> list[str] | None:
    """Trim tags, drop blanks and duplicates, keep first-seen order."""
    if tags is None:
        return None
    cleaned: list[str] = []
    for tag in tags:
        tag = tag.strip()
        if tag and tag not in cleaned:
            cleaned.append(tag)
    return cleaned
