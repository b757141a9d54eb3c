from datetime import datetime, date
import math
import re

_weight_split_re = re.compile(r'[\s,;]+')


def parse_number(raw):
    """
    Lenient numeric parsing for free-text entry fields.
    Finite numbers pass through untouched. Strings accept comma or dot decimals.
    Blank, None, garbage, NaN or infinity gives 0 (forms rely on blank -> 0).
    """
    if raw is None or isinstance(raw, bool):
        return 0
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float):
        return raw if math.isfinite(raw) else 0
    text = str(raw).strip()
    if not text:
        return 0
    try:
        val = float(text.replace(',', '.'))
    except (ValueError, TypeError):
        return 0
    if not math.isfinite(val):
        return 0
    return val


def parse_weight_list(text):
    """
    Split the weighing calculator's free text ("1850 1900, 1875;1920") into floats.
    Unparseable tokens come back as NaN so the caller can count what was dropped.
    """
    if text is None:
        return []
    if isinstance(text, (list, tuple)):
        tokens = text
    else:
        tokens = [t for t in _weight_split_re.split(str(text).strip()) if t]

    values = []
    for t in tokens:
        if isinstance(t, (int, float)) and not isinstance(t, bool):
            values.append(float(t))
            continue
        try:
            values.append(float(str(t)))
        except (ValueError, TypeError):
            values.append(float('nan'))
    return values


def round_safe(val, digits=2):
    if val is None: return 0.0
    try:
        return round(float(val), digits)
    except (ValueError, TypeError):
        return 0.0


def safe_div(num, den, multiplier=100.0):
    if den and den > 0:
        return (num / den) * multiplier
    return 0.0


def to_date(value):
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if not text:
        return None
    # Accept full ISO timestamps as stored by the database ("2024-01-08T00:00:00+07:00")
    return datetime.fromisoformat(text[:10]).date()


def _as_datetime(value):
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    return datetime.fromisoformat(str(value).strip())


def age_in_days(start_date, on_date, entry_age_days=0):
    """
    Age of a flock on `on_date`: whole days since `start_date` plus the age it
    arrived with. The day offset is rounded half-up, not truncated, so
    timestamps a few hours apart (timezone shifts) still land on the right day.
    """
    start = _as_datetime(start_date)
    on = _as_datetime(on_date)
    if (start.tzinfo is None) != (on.tzinfo is None):
        start = start.replace(tzinfo=None)
        on = on.replace(tzinfo=None)
    delta_days = (on - start).total_seconds() / 86400.0
    return int(math.floor(delta_days + 0.5)) + int(parse_number(entry_age_days))


def age_in_weeks(age_days):
    return int(math.floor(age_days / 7))


def iso_week_key(d):
    """(ISO year, ISO week). 2024-12-31 falls in week 1 of 2025."""
    d = to_date(d)
    isocal = d.isocalendar()
    return (isocal[0], isocal[1])


def iso_week_label(key):
    year, week = key
    return f"{year}-W{week:02d}"


def in_range(d, date_range):
    """Inclusive filter on an optional (start, end) pair; either end may be None."""
    if not date_range:
        return True
    start, end = date_range
    d = to_date(d)
    start = to_date(start)
    end = to_date(end)
    if start and d < start: return False
    if end and d > end: return False
    return True
