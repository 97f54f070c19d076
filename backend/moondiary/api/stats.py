import logging
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query

from ..core import dates
from ..core.errors import MoonDiaryError
from ..models.stats import Period, PeriodCursorResponse, PeriodStats
from ..models.user import User
from ..services.calendar_service import PeriodCursor, year_options
from ..services.diary_service import DiaryService
from ..services.stats_service import build_period_stats
from .auth import get_current_user
from .diary import get_diary_service
from .errors import to_http_exception

router = APIRouter()
logger = logging.getLogger(__name__)


def _cursor(period: Period, year: Optional[int], month: Optional[int]) -> PeriodCursor:
    today = dates.today()
    return PeriodCursor(period=period, year=year or today.year, month=month or today.month)


def _cursor_response(cursor: PeriodCursor) -> PeriodCursorResponse:
    return PeriodCursorResponse(
        period=cursor.period,
        year=cursor.year,
        month=cursor.month,
        label=cursor.label(),
        year_options=year_options(),
    )


@router.get("", response_model=PeriodStats)
def get_stats(
    period: Period = Period.MONTH,
    year: Optional[int] = Query(None, ge=1, le=9999),
    month: Optional[int] = Query(None, ge=1, le=12),
    current_user: User = Depends(get_current_user),
    diary_service: DiaryService = Depends(get_diary_service),
):
    cursor = _cursor(period, year, month)
    try:
        entries = diary_service.get_all_entries(current_user.id)
    except MoonDiaryError as e:
        raise to_http_exception(e)
    return build_period_stats(entries, cursor.period, cursor.year, cursor.month)


@router.get("/navigate", response_model=PeriodCursorResponse)
def navigate_period(
    period: Period = Period.MONTH,
    year: Optional[int] = Query(None, ge=1, le=9999),
    month: Optional[int] = Query(None, ge=1, le=12),
    direction: Optional[Literal["prev", "next"]] = None,
    current_user: User = Depends(get_current_user),
):
    """Previous/next period for the stats header. Without a direction this is a period switch."""
    cursor = _cursor(period, year, month)
    if direction == "prev":
        cursor = cursor.previous()
    elif direction == "next":
        cursor = cursor.next()
    else:
        cursor = cursor.with_period(period)
    return _cursor_response(cursor)
