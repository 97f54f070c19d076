from datetime import date
from typing import List, Optional
import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ..config import FEED_PAGE_SIZE
from ..core import dates
from ..core.db import create_user_client
from ..core.errors import MoonDiaryError
from ..models.diary import (
    MOOD_MAPPINGS,
    CalendarMonth,
    DiaryCreate,
    DiaryEntry,
    DiaryUpdate,
    FeedItem,
    FeedPage,
    MoodMapping,
)
from ..models.user import User
from ..services.calendar_service import calendar_month
from ..services.diary_service import (
    DiaryService,
    filter_by_month,
    paginate,
    pick_random_past_entry,
    sort_entries,
)
from ..services.media_service import MediaService
from .auth import get_current_user
from .errors import to_http_exception

router = APIRouter()
moods_router = APIRouter()
logger = logging.getLogger(__name__)


def get_diary_service(current_user: User = Depends(get_current_user)) -> DiaryService:
    client = create_user_client(current_user.access_token)
    return DiaryService(client, MediaService(client))


def to_feed_item(entry: DiaryEntry) -> FeedItem:
    mapping = MOOD_MAPPINGS[entry.mood]
    return FeedItem(
        **entry.model_dump(),
        mood_emoji=mapping.emoji,
        mood_name=mapping.name,
        date_label=dates.format_relative_date(entry.date),
        time_label=dates.format_relative_time(entry.created_at) if entry.created_at else None,
    )


@moods_router.get("", response_model=List[MoodMapping])
def list_moods():
    return list(MOOD_MAPPINGS.values())


# MARK: - Feed and lookups
@router.get("", response_model=FeedPage)
def get_feed(
    month: Optional[date] = Query(None, description="Any day of the month to filter by (YYYY-MM-DD)"),
    page: int = Query(0, ge=0),
    page_size: int = Query(FEED_PAGE_SIZE, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    diary_service: DiaryService = Depends(get_diary_service),
):
    try:
        entries = sort_entries(diary_service.get_all_entries(current_user.id))
    except MoonDiaryError as e:
        raise to_http_exception(e)

    visible, has_more = paginate(filter_by_month(entries, month), page, page_size)
    logger.info(f"[FEED] user_id={current_user.id} month={month} page={page} -> {len(visible)} entries")
    return FeedPage(entries=[to_feed_item(e) for e in visible], page=page, has_more=has_more)


@router.get("/random", response_model=Optional[FeedItem])
def get_random_entry(
    current_user: User = Depends(get_current_user),
    diary_service: DiaryService = Depends(get_diary_service),
):
    """A random entry from before today; null when there is none yet."""
    try:
        entries = diary_service.get_all_entries(current_user.id)
    except MoonDiaryError as e:
        raise to_http_exception(e)
    entry = pick_random_past_entry(entries)
    return to_feed_item(entry) if entry else None


@router.get("/calendar", response_model=CalendarMonth)
def get_calendar(
    year: Optional[int] = Query(None, ge=1, le=9999),
    month: Optional[int] = Query(None, ge=1, le=12),
    current_user: User = Depends(get_current_user),
    diary_service: DiaryService = Depends(get_diary_service),
):
    today = dates.today()
    year = year or today.year
    month = month or today.month
    start, end = dates.month_bounds(year, month)
    try:
        entries = diary_service.get_entries_by_range(current_user.id, start, end)
    except MoonDiaryError as e:
        raise to_http_exception(e)
    return calendar_month(entries, year, month, today)


@router.get("/range", response_model=List[DiaryEntry])
def get_entries_by_range(
    start: date,
    end: date,
    current_user: User = Depends(get_current_user),
    diary_service: DiaryService = Depends(get_diary_service),
):
    if start > end:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="시작일은 종료일보다 늦을 수 없습니다.")
    try:
        return diary_service.get_entries_by_range(current_user.id, start, end)
    except MoonDiaryError as e:
        raise to_http_exception(e)


@router.get("/by-date/{day}", response_model=List[FeedItem])
def get_entries_by_date(
    day: date,
    current_user: User = Depends(get_current_user),
    diary_service: DiaryService = Depends(get_diary_service),
):
    try:
        entries = diary_service.get_entries_by_date(current_user.id, day)
    except MoonDiaryError as e:
        raise to_http_exception(e)
    return [to_feed_item(e) for e in entries]


# MARK: - CRUD
@router.post("", response_model=DiaryEntry, status_code=status.HTTP_201_CREATED)
def create_entry(
    entry: DiaryCreate,
    current_user: User = Depends(get_current_user),
    diary_service: DiaryService = Depends(get_diary_service),
):
    logger.info(f"[DIARY] create request: user_id={current_user.id}, date={entry.date}, mood={entry.mood.value}")
    try:
        return diary_service.insert_entry(current_user.id, entry)
    except MoonDiaryError as e:
        raise to_http_exception(e)


@router.get("/{entry_id}", response_model=FeedItem)
def get_entry(
    entry_id: str,
    current_user: User = Depends(get_current_user),
    diary_service: DiaryService = Depends(get_diary_service),
):
    try:
        entry = diary_service.get_entry_by_id(current_user.id, entry_id)
    except MoonDiaryError as e:
        raise to_http_exception(e)
    if entry is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="일기를 찾을 수 없습니다.")
    return to_feed_item(entry)


@router.put("/{entry_id}", response_model=DiaryEntry)
def update_entry(
    entry_id: str,
    changes: DiaryUpdate,
    current_user: User = Depends(get_current_user),
    diary_service: DiaryService = Depends(get_diary_service),
):
    try:
        previous = diary_service.get_entry_by_id(current_user.id, entry_id)
        if previous is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="일기를 찾을 수 없습니다.")

        updated = diary_service.update_entry(current_user.id, entry_id, changes)
        if updated is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="일기를 찾을 수 없습니다.")
    except HTTPException:
        raise
    except MoonDiaryError as e:
        raise to_http_exception(e)

    # Media dropped in the editor is removed from storage once the update is saved
    if "media_urls" in changes.model_fields_set:
        kept = set(updated.media_urls or [])
        for url in previous.media_urls or []:
            if url not in kept:
                diary_service.media.remove_from_entry(url)
    return updated


@router.delete("/{entry_id}")
def delete_entry(
    entry_id: str,
    current_user: User = Depends(get_current_user),
    diary_service: DiaryService = Depends(get_diary_service),
):
    try:
        deleted = diary_service.delete_entry(current_user.id, entry_id)
    except MoonDiaryError as e:
        raise to_http_exception(e)
    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="일기를 찾을 수 없습니다.")
    return {"ok": True}
