"""Template filters shipped with Quire."""

from datetime import date, datetime, timezone

INVALID_DATE = 'Invalid Date'

DATE_FORMATS = ['%Y-%m-%dT%H:%M:%S', '%Y-%m-%d', '%b %d, %Y']


def parse_date(value):
    """Parse a date value, returning None when it cannot be understood."""
    if isinstance(value, datetime):
        return value
    elif isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    elif isinstance(value, bool):
        return None
    elif isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    elif isinstance(value, str):
        text = value.strip()
        # fromisoformat only learned the 'Z' suffix in 3.11
        if text.endswith('Z'):
            text = text[:-1] + '+00:00'
        try:
            return datetime.fromisoformat(text)
        except ValueError:
            pass
        for fmt in DATE_FORMATS:
            try:
                return datetime.strptime(text, fmt)
            except ValueError:
                continue
    return None


def readable_date(value):
    """
    Format a date for display using the host's locale date representation.

    Timezone-aware values are shown in local time; naive values are taken
    as already local.
    """
    date_obj = parse_date(value)
    if date_obj is None:
        return INVALID_DATE
    if date_obj.tzinfo is not None:
        date_obj = date_obj.astimezone()
    return date_obj.strftime('%x')
