from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel

from .diary import MoonPhase


class Period(str, Enum):
    MONTH = "month"
    YEAR = "year"
    ALL = "all"


class MoodBalance(str, Enum):
    BALANCED = "balanced"
    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"


class RecentTrend(str, Enum):
    IMPROVING = "improving"
    DECLINING = "declining"
    STABLE = "stable"
    INSUFFICIENT = "insufficient"


class StatAnalysis(BaseModel):
    summary: str
    insights: List[str]
    dominant_mood: Optional[MoonPhase] = None
    mood_balance: MoodBalance
    recent_trend: RecentTrend


class ActivityBucket(BaseModel):
    key: str
    label: str
    count: int


class DailyMood(BaseModel):
    date: str
    mood: MoonPhase
    date_label: str
    entry_id: Optional[str] = None


class PeriodStats(BaseModel):
    period: Period
    year: int
    month: int
    label: str
    total_entries: int
    mood_counts: Dict[str, int]
    activity: List[ActivityBucket]
    record_rate: int
    daily_moods: List[DailyMood]
    analysis: StatAnalysis


class PeriodCursorResponse(BaseModel):
    period: Period
    year: int
    month: int
    label: str
    year_options: List[int]
