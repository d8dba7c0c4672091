"""
In-memory storage for import reports awaiting operator review.

Reports expire after settings.preview_ttl_minutes. Single process only;
nothing here is persisted.
"""
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

from config import settings
from models.product_import import ImportReport

_previews: dict[str, tuple[datetime, ImportReport]] = {}


def store_preview(report: ImportReport, ttl_minutes: Optional[int] = None) -> str:
    """Store an import report, return its preview_id."""
    preview_id = str(uuid.uuid4())
    ttl = ttl_minutes if ttl_minutes is not None else settings.preview_ttl_minutes
    _previews[preview_id] = (_now() + timedelta(minutes=ttl), report)
    _cleanup_expired()
    return preview_id


def retrieve_preview(preview_id: str) -> Optional[ImportReport]:
    """Report for preview_id. None if expired or unknown."""
    entry = _previews.get(preview_id)
    if entry is None:
        return None
    expires_at, report = entry
    if _now() > expires_at:
        del _previews[preview_id]
        return None
    return report


def delete_preview(preview_id: str) -> bool:
    """Discard a preview. True if it existed."""
    return _previews.pop(preview_id, None) is not None


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _cleanup_expired() -> None:
    now = _now()
    expired = [k for k, (exp, _) in _previews.items() if now > exp]
    for k in expired:
        del _previews[k]
