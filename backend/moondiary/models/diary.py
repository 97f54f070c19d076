import datetime as dt
from enum import Enum
from typing import Annotated, Dict, List, Optional

from pydantic import AfterValidator, BaseModel, Field


class MoonPhase(str, Enum):
    """A mood, drawn as a phase of the moon."""

    NEW = "new"
    WAXING = "waxing"
    FULL = "full"
    WANING = "waning"


class MoodMapping(BaseModel):
    phase: MoonPhase
    emoji: str
    name: str
    description: str


MOOD_MAPPINGS: Dict[MoonPhase, MoodMapping] = {
    MoonPhase.NEW: MoodMapping(phase=MoonPhase.NEW, emoji="🌑", name="신월", description="우울/무기력"),
    MoonPhase.WAXING: MoodMapping(phase=MoonPhase.WAXING, emoji="🌓", name="상현달", description="집중/성취"),
    MoonPhase.FULL: MoodMapping(phase=MoonPhase.FULL, emoji="🌕", name="보름달", description="기쁨/에너지 충만"),
    MoonPhase.WANING: MoodMapping(phase=MoonPhase.WANING, emoji="🌗", name="하현달", description="평온/안정"),
}

POSITIVE_PHASES = frozenset({MoonPhase.FULL, MoonPhase.WAXING})
NEGATIVE_PHASES = frozenset({MoonPhase.NEW})
NEUTRAL_PHASES = frozenset({MoonPhase.WANING})


def _clean_note(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def _clean_media(value: Optional[List[str]]) -> Optional[List[str]]:
    return value or None


NoteText = Annotated[Optional[str], AfterValidator(_clean_note)]
MediaUrls = Annotated[Optional[List[str]], AfterValidator(_clean_media)]


class DiaryEntry(BaseModel):
    """One row of ``diary_entries``."""

    id: Optional[str] = None
    user_id: Optional[str] = None
    date: dt.date
    mood: MoonPhase
    note: Optional[str] = None
    media_urls: Optional[List[str]] = None
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None


class DiaryCreate(BaseModel):
    date: dt.date = Field(default_factory=dt.date.today)
    mood: MoonPhase = MoonPhase.FULL
    note: NoteText = None
    media_urls: MediaUrls = None


class DiaryUpdate(BaseModel):
    mood: Optional[MoonPhase] = None
    note: NoteText = None
    media_urls: MediaUrls = None


class FeedItem(DiaryEntry):
    """Entry plus the display fields the feed and detail views render."""

    mood_emoji: str
    mood_name: str
    date_label: str
    time_label: Optional[str] = None


class FeedPage(BaseModel):
    entries: List[FeedItem]
    page: int
    has_more: bool


class CalendarCell(BaseModel):
    day: Optional[int] = None
    date: Optional[dt.date] = None
    emoji: Optional[str] = None
    entry_id: Optional[str] = None
    is_today: bool = False


class CalendarMonth(BaseModel):
    year: int
    month: int
    label: str
    weekdays: List[str]
    cells: List[CalendarCell]
