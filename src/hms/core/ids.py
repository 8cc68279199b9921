from __future__ import annotations

from datetime import UTC, datetime
from uuid import uuid4


def now_utc() -> datetime:
    return datetime.now(UTC)


def run_id(prefix: str, at: datetime | None = None) -> str:
    """Sortable batch id: ``<prefix>_<UTC timestamp>_<random suffix>``."""
    stamp = (at or now_utc()).strftime("%Y%m%dT%H%M%S")
    return f"{prefix}_{stamp}_{uuid4().hex[:8]}"
