"""
UTC DateTime Utilities for DocScan.

All timestamps produced by the service (analysis results, learning events,
rule records) are timezone-aware UTC.
"""

from datetime import date, datetime, timezone


def utc_now() -> datetime:
    """
    Get current UTC time as timezone-aware datetime.

    Example:
        from app.core.utc import utc_now

        created_at = utc_now()  # 2025-12-08 03:00:00+00:00
    """
    return datetime.now(timezone.utc)


def utc_now_iso() -> str:
    """
    Get current UTC time as ISO 8601 string with Z suffix.

    Returns format: "2025-12-08T03:00:00.123456Z"
    """
    return utc_now().isoformat().replace("+00:00", "Z")


def utc_today() -> date:
    """Today's date in UTC - the reference point for document age checks."""
    return utc_now().date()

