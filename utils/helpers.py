from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP


def utcnow():
    """Naive UTC timestamp, matching how DateTime columns are stored."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_datetime(value):
    """Parse an ISO-8601 string from a request payload into a naive UTC datetime."""
    if value in (None, ""):
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        try:
            parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
        except ValueError:
            raise ValueError(f"Invalid date: {value!r}")
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def percentage(correct, total):
    """Whole-number percentage, rounding halves up (12.5 -> 13)."""
    if not total:
        return 0
    value = Decimal(100 * correct) / Decimal(total)
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
