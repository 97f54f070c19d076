"""Calendar-day helpers shared by the feed, calendar and statistics code."""
import calendar
import math
from datetime import date, datetime, timedelta, timezone
from typing import Optional, Tuple, Union

WEEKDAY_NAMES = ["일", "월", "화", "수", "목", "금", "토"]  # Sunday first

DateLike = Union[str, date, datetime]


def today() -> date:
    return date.today()


def parse_date(value: DateLike) -> date:
    """Accepts ``YYYY-MM-DD``, full ISO timestamps, ``date`` or ``datetime``."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = value.strip()
    if len(text) == 10:
        return date.fromisoformat(text)
    return parse_timestamp(text).date()


def parse_timestamp(value: Union[str, datetime]) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def is_leap_year(year: int) -> bool:
    return calendar.isleap(year)


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def days_in_year(year: int) -> int:
    return 366 if is_leap_year(year) else 365


def first_weekday(year: int, month: int) -> int:
    """Weekday of the 1st with Sunday = 0."""
    return (date(year, month, 1).weekday() + 1) % 7


def month_bounds(year: int, month: int) -> Tuple[date, date]:
    return date(year, month, 1), date(year, month, days_in_month(year, month))


def subtract_months(value: date, months: int) -> date:
    """Calendar month arithmetic; the day is clamped to the target month's length."""
    index = value.year * 12 + (value.month - 1) - months
    year, month = divmod(index, 12)
    month += 1
    return date(year, month, min(value.day, days_in_month(year, month)))


def days_between(start: date, end: date) -> int:
    return (end - start).days


def js_round(value: float) -> int:
    """Half-up rounding, so 12.5 -> 13 rather than Python's banker's 12."""
    return int(math.floor(value + 0.5))


def format_month_day(value: date) -> str:
    return f"{value.month}월 {value.day}일"


def format_year_month(year: int, month: int) -> str:
    return f"{year}년 {month}월"


def format_relative_date(value: DateLike, reference: Optional[date] = None) -> str:
    day = parse_date(value)
    reference = reference or today()
    if day == reference:
        return "오늘"
    if day == reference - timedelta(days=1):
        return "어제"
    return f"{day.year}년 {day.month}월 {day.day}일 {WEEKDAY_NAMES[(day.weekday() + 1) % 7]}"


def format_relative_time(value: Union[str, datetime], now: Optional[datetime] = None) -> str:
    """Minutes/hours ago within 24h, otherwise ``YYYY-MM-DD HH:mm``."""
    moment = parse_timestamp(value)
    if now is None:
        now = datetime.now(timezone.utc) if moment.tzinfo else datetime.now()
    elapsed = now - moment
    hours = int(elapsed.total_seconds() // 3600)
    if hours < 24:
        minutes = int(elapsed.total_seconds() // 60)
        if minutes < 1:
            return "방금 전"
        if minutes < 60:
            return f"{minutes}분 전"
        return f"{hours}시간 전"
    return moment.strftime("%Y-%m-%d %H:%M")
