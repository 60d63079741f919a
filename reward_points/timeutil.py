from datetime import datetime, timezone


def utcnow() -> datetime:
    # Naive UTC timestamps, matching the TIMESTAMP (without time zone) columns.
    return datetime.now(timezone.utc).replace(tzinfo=None)


def period_key_for(moment: datetime) -> str:
    """Budget period key for a moment, e.g. ``2026-10``."""
    return f"{moment.year:04d}-{moment.month:02d}"


def shift_period_key(period_key: str, months: int) -> str:
    year, month = (int(part) for part in period_key.split("-"))
    index = year * 12 + (month - 1) + months
    return f"{index // 12:04d}-{index % 12 + 1:02d}"
