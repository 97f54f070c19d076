"""
Diary entry store.

Thin adapter over the ``diary_entries`` table. Every query is filtered by the
owning user; row-level security in Supabase is what actually enforces it.
"""
import logging
import random
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional, Sequence, Tuple

from supabase import Client

from ..config import DIARY_TABLE, FEED_PAGE_SIZE
from ..core import dates
from ..core.errors import (
    SESSION_EXPIRED_MESSAGE,
    AuthError,
    DiaryStoreError,
    DuplicateEntryError,
    MoonDiaryError,
    ValidationError,
    is_session_expired,
)
from ..models.diary import DiaryCreate, DiaryEntry, DiaryUpdate
from .media_service import MediaService

logger = logging.getLogger(__name__)

UNIQUE_VIOLATION_CODE = "23505"
NO_ROWS_CODE = "PGRST116"


def _is_unique_violation(error: Exception) -> bool:
    if getattr(error, "code", None) == UNIQUE_VIOLATION_CODE:
        return True
    message = str(getattr(error, "message", None) or error)
    return "duplicate key" in message or "unique constraint" in message


def _store_error(error: Exception, message: str) -> MoonDiaryError:
    if is_session_expired(error):
        return AuthError(SESSION_EXPIRED_MESSAGE)
    return DiaryStoreError(message)


def _to_entry(row: Dict[str, Any]) -> DiaryEntry:
    return DiaryEntry.model_validate(row)


class DiaryService:
    def __init__(self, client: Client, media: Optional[MediaService] = None):
        self.client = client
        self.media = media or MediaService(client)

    def _table(self):
        return self.client.table(DIARY_TABLE)

    def insert_entry(self, user_id: str, entry: DiaryCreate) -> DiaryEntry:
        data = entry.model_dump(mode="json", exclude_none=True)
        data["user_id"] = user_id
        try:
            response = self._table().insert(data).execute()
        except Exception as e:
            logger.error(f"[DIARY] ❌ insert failed: user_id={user_id}, date={entry.date}, error={e}")
            if _is_unique_violation(e):
                raise DuplicateEntryError(
                    f"이미 {entry.date.isoformat()}에 일기가 존재합니다. 수정 모드로 변경하거나 다른 날짜를 선택해주세요."
                )
            raise _store_error(e, f"일기 저장 실패: {getattr(e, 'message', None) or e}")

        if not response.data:
            logger.error(f"[DIARY] ❌ insert returned no data: user_id={user_id}")
            raise DiaryStoreError("일기 저장 실패: 저장된 데이터가 반환되지 않았습니다.")

        created = _to_entry(response.data[0])
        logger.info(f"[DIARY] ✅ created: id={created.id}, user_id={user_id}, date={created.date}")
        return created

    def update_entry(self, user_id: str, entry_id: str, changes: DiaryUpdate) -> Optional[DiaryEntry]:
        data = changes.model_dump(mode="json", exclude_unset=True)
        if "mood" in data and data["mood"] is None:
            raise ValidationError("기분을 선택해주세요.")
        data["updated_at"] = datetime.now(timezone.utc).isoformat()
        try:
            response = self._table().update(data).eq("id", entry_id).eq("user_id", user_id).execute()
        except Exception as e:
            logger.error(f"[DIARY] ❌ update failed: id={entry_id}, error={e}")
            raise _store_error(e, "수정 중 오류가 발생했습니다.")

        if not response.data:
            logger.warning(f"[DIARY] ⚠️ update matched no rows: id={entry_id}, user_id={user_id}")
            return None
        logger.info(f"[DIARY] ✅ updated: id={entry_id}, fields={list(data.keys())}")
        return _to_entry(response.data[0])

    def get_entry_by_id(self, user_id: str, entry_id: str) -> Optional[DiaryEntry]:
        try:
            response = (
                self._table()
                .select("*")
                .eq("id", entry_id)
                .eq("user_id", user_id)
                .limit(1)
                .execute()
            )
        except Exception as e:
            if getattr(e, "code", None) == NO_ROWS_CODE:
                return None
            logger.error(f"[DIARY] ❌ fetch by id failed: id={entry_id}, error={e}")
            raise _store_error(e, "일기를 불러오는 중 오류가 발생했습니다.")
        if not response.data:
            return None
        return _to_entry(response.data[0])

    def get_entries_by_date(self, user_id: str, day: date) -> List[DiaryEntry]:
        try:
            response = (
                self._table()
                .select("*")
                .eq("user_id", user_id)
                .eq("date", day.isoformat())
                .order("created_at", desc=True)
                .execute()
            )
        except Exception as e:
            logger.error(f"[DIARY] ❌ fetch by date failed: date={day}, error={e}")
            raise _store_error(e, "일기를 불러오는 중 오류가 발생했습니다.")
        return [_to_entry(row) for row in response.data or []]

    def get_entries_by_range(self, user_id: str, start: date, end: date) -> List[DiaryEntry]:
        try:
            response = (
                self._table()
                .select("*")
                .eq("user_id", user_id)
                .gte("date", start.isoformat())
                .lte("date", end.isoformat())
                .order("date")
                .execute()
            )
        except Exception as e:
            logger.error(f"[DIARY] ❌ fetch by range failed: {start}~{end}, error={e}")
            raise _store_error(e, "일기를 불러오는 중 오류가 발생했습니다.")
        return [_to_entry(row) for row in response.data or []]

    def get_all_entries(self, user_id: str) -> List[DiaryEntry]:
        """Unordered; callers sort with ``sort_entries``."""
        try:
            response = self._table().select("*").eq("user_id", user_id).execute()
        except Exception as e:
            logger.error(f"[DIARY] ❌ fetch all failed: user_id={user_id}, error={e}")
            raise _store_error(e, "일기를 불러오는 중 오류가 발생했습니다.")
        entries = [_to_entry(row) for row in response.data or []]
        logger.info(f"[DIARY] 📖 loaded {len(entries)} entries for user_id={user_id}")
        return entries

    def delete_entry(self, user_id: str, entry_id: str) -> bool:
        """Deletes the row and, best effort, its media. False if there was no such entry."""
        entry = self.get_entry_by_id(user_id, entry_id)
        if entry is None:
            return False

        for url in entry.media_urls or []:
            self.media.delete_file(url)

        try:
            self._table().delete().eq("id", entry_id).eq("user_id", user_id).execute()
        except Exception as e:
            logger.error(f"[DIARY] ❌ delete failed: id={entry_id}, error={e}")
            raise _store_error(e, "삭제 중 오류가 발생했습니다.")
        logger.info(f"[DIARY] 🗑️ deleted: id={entry_id}, media={len(entry.media_urls or [])}")
        return True


def sort_entries(entries: Sequence[DiaryEntry]) -> List[DiaryEntry]:
    """Newest date first; same-day entries newest ``created_at`` first."""
    by_created = sorted(
        entries,
        key=lambda e: e.created_at.timestamp() if e.created_at else 0.0,
        reverse=True,
    )
    # Second, stable pass on date keeps the created_at order within a day
    return sorted(by_created, key=lambda e: e.date, reverse=True)


def filter_by_month(entries: Sequence[DiaryEntry], month_start: Optional[date]) -> List[DiaryEntry]:
    if month_start is None:
        return list(entries)
    return [e for e in entries if e.date.year == month_start.year and e.date.month == month_start.month]


def paginate(
    entries: Sequence[DiaryEntry],
    page: int,
    page_size: int = FEED_PAGE_SIZE,
) -> Tuple[List[DiaryEntry], bool]:
    start = page * page_size
    end = start + page_size
    return list(entries[start:end]), end < len(entries)


def pick_random_past_entry(
    entries: Sequence[DiaryEntry],
    today: Optional[date] = None,
    rng: Optional[random.Random] = None,
) -> Optional[DiaryEntry]:
    """A random entry from before today, or None if there is none."""
    today = today or dates.today()
    past = [e for e in entries if e.date < today]
    if not past:
        return None
    return (rng or random).choice(past)
