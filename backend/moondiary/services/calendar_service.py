"""Calendar grid and period navigation for the calendar, feed filter and stats views."""
from dataclasses import dataclass, replace
from datetime import date
from typing import Dict, List, Optional, Sequence

from ..config import YEAR_PICKER_SPAN
from ..core import dates
from ..models.diary import MOOD_MAPPINGS, CalendarCell, CalendarMonth, DiaryEntry
from ..models.stats import Period
from .stats_service import period_label


@dataclass(frozen=True)
class PeriodCursor:
    """Selected period plus the year/month it points at."""

    period: Period
    year: int
    month: int

    @classmethod
    def current(cls, period: Period = Period.MONTH, today: Optional[date] = None) -> "PeriodCursor":
        today = today or dates.today()
        return cls(period=period, year=today.year, month=today.month)

    def previous(self) -> "PeriodCursor":
        if self.period == Period.MONTH:
            if self.month == 1:
                return replace(self, year=self.year - 1, month=12)
            return replace(self, month=self.month - 1)
        if self.period == Period.YEAR:
            return replace(self, year=self.year - 1)
        return self

    def next(self) -> "PeriodCursor":
        if self.period == Period.MONTH:
            if self.month == 12:
                return replace(self, year=self.year + 1, month=1)
            return replace(self, month=self.month + 1)
        if self.period == Period.YEAR:
            return replace(self, year=self.year + 1)
        return self

    def with_period(self, period: Period, today: Optional[date] = None) -> "PeriodCursor":
        # Switching to month view jumps back to the current month; the others keep the selection
        if period == Period.MONTH:
            return PeriodCursor.current(Period.MONTH, today)
        return replace(self, period=period)

    def label(self) -> str:
        return period_label(self.period, self.year, self.month)


def year_options(today: Optional[date] = None) -> List[int]:
    current_year = (today or dates.today()).year
    return list(range(current_year - YEAR_PICKER_SPAN, current_year + YEAR_PICKER_SPAN + 1))


def month_grid(year: int, month: int) -> List[Optional[int]]:
    """Day numbers laid out Sunday-first, with None padding before the 1st."""
    padding: List[Optional[int]] = [None] * dates.first_weekday(year, month)
    return padding + list(range(1, dates.days_in_month(year, month) + 1))


def calendar_month(
    entries: Sequence[DiaryEntry],
    year: int,
    month: int,
    today: Optional[date] = None,
) -> CalendarMonth:
    today = today or dates.today()
    by_date: Dict[date, DiaryEntry] = {}
    for entry in entries:
        # One emoji per day: the last entry returned for a date wins
        by_date[entry.date] = entry

    cells = []
    for day in month_grid(year, month):
        if day is None:
            cells.append(CalendarCell())
            continue
        current = date(year, month, day)
        entry = by_date.get(current)
        cells.append(
            CalendarCell(
                day=day,
                date=current,
                emoji=MOOD_MAPPINGS[entry.mood].emoji if entry else None,
                entry_id=entry.id if entry else None,
                is_today=current == today,
            )
        )

    return CalendarMonth(
        year=year,
        month=month,
        label=dates.format_year_month(year, month),
        weekdays=list(dates.WEEKDAY_NAMES),
        cells=cells,
    )
