import re
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

# ISO date, MM/DD/YYYY or M/D/YY[YY], ISO datetime
ISO_DATE = re.compile(r'^(\d{4})-(\d{2})-(\d{2})$')
US_DATE = re.compile(r'^(\d{1,2})/(\d{1,2})/(\d{2}|\d{4})$')
ISO_DATETIME = re.compile(
    r'^(\d{4})-(\d{2})-(\d{2})[T ](\d{2}):(\d{2})(?::(\d{2})(?:\.(\d{1,9}))?)?'
    r'(Z|[+-]\d{2}:?\d{2})?$'
)

MONTH_NAMES = frozenset([
    'january', 'february', 'march', 'april', 'may', 'june', 'july',
    'august', 'september', 'october', 'november', 'december',
    'jan', 'feb', 'mar', 'apr', 'jun', 'jul', 'aug', 'sep', 'oct', 'nov', 'dec',
])


def _two_digit_year(year: int) -> int:
    # Same pivot as strptime's %y
    return 2000 + year if year < 69 else 1900 + year


def _offset(text: Optional[str]) -> Optional[timezone]:
    if not text:
        return None
    if text == 'Z':
        return timezone.utc
    sign = 1 if text[0] == '+' else -1
    digits = text[1:].replace(':', '')
    return timezone(sign * timedelta(hours=int(digits[:2]), minutes=int(digits[2:])))


def parse_date(value: Any) -> Optional[datetime]:
    """
    Parse a text cell into a datetime if it matches one of the accepted
    literal patterns and names a real calendar date.

    Timezone-aware values are normalised to naive UTC so they can be
    compared with naive ones.
    """
    if not isinstance(value, str):
        return None
    text = value.strip()

    try:
        match = ISO_DATE.match(text)
        if match:
            year, month, day = (int(g) for g in match.groups())
            return datetime(year, month, day)

        match = US_DATE.match(text)
        if match:
            month, day, year = (int(g) for g in match.groups())
            if len(match.group(3)) == 2:
                year = _two_digit_year(year)
            return datetime(year, month, day)

        match = ISO_DATETIME.match(text)
        if match:
            year, month, day, hour, minute = (int(g) for g in match.groups()[:5])
            second = int(match.group(6) or 0)
            fraction = match.group(7) or ''
            microsecond = int(fraction[:6].ljust(6, '0')) if fraction else 0
            parsed = datetime(year, month, day, hour, minute, second, microsecond,
                              tzinfo=_offset(match.group(8)))
            if parsed.tzinfo is not None:
                parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
            return parsed
    except ValueError:
        # Matched the shape but not a real date, e.g. 2024-02-30
        return None

    return None


def is_date_literal(value: Any) -> bool:
    return parse_date(value) is not None


def is_month_name(value: Any) -> bool:
    return isinstance(value, str) and value.strip().lower() in MONTH_NAMES
