from datetime import datetime, timezone

def parse_iso(s: str) -> datetime:
    """Parses an ISO 8601 string, handling 'Z' for UTC."""
    s = s.strip()
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
    return datetime.fromisoformat(s)

def to_utc(dt: datetime) -> datetime:
    """Treats naive datetimes as UTC and converts aware ones to UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)

def db_utc_naive(dt: datetime) -> datetime:
    """Reservation columns hold naive UTC."""
    return to_utc(dt).replace(tzinfo=None)

def utcnow_naive() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)

def api_iso_z(dt: datetime | None) -> str | None:
    """Formats a datetime into an ISO 8601 string ending in 'Z' for API responses."""
    if dt is None:
        return None
    return to_utc(dt).replace(microsecond=0).isoformat().replace("+00:00", "Z")
