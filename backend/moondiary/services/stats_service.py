"""
Mood statistics.

Pure functions over a user's entries: counts per moon phase, activity buckets
for a period, the record rate, and a short written analysis. The analysis
thresholds live in ``config`` and are heuristics, not statistics.
"""
import logging
from collections import Counter
from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional, Sequence

from ..config import (
    FREQUENCY_MIN_ENTRIES,
    FREQUENCY_REGULAR_PER_WEEK,
    FREQUENCY_STEADY_PER_WEEK,
    FULL_MOON_RATIO_THRESHOLD,
    NEGATIVE_RATIO_THRESHOLD,
    NEUTRAL_RATIO_THRESHOLD,
    POSITIVE_RATIO_THRESHOLD,
    SHORT_SUMMARY_MAX_ENTRIES,
    TRAILING_MONTHS,
    TREND_DELTA_THRESHOLD,
    TREND_WINDOW_DAYS,
)
from ..core import dates
from ..models.diary import (
    MOOD_MAPPINGS,
    NEGATIVE_PHASES,
    NEUTRAL_PHASES,
    POSITIVE_PHASES,
    DiaryEntry,
    MoonPhase,
)
from ..models.stats import (
    ActivityBucket,
    DailyMood,
    MoodBalance,
    Period,
    PeriodStats,
    RecentTrend,
    StatAnalysis,
)

logger = logging.getLogger(__name__)

EMPTY_SUMMARY = "아직 기록된 일기가 없습니다. 첫 일기를 작성해보세요! 🌙"

SHORT_SUMMARY = "{name}({emoji}) 감정이 {percent}%로 가장 많이 기록되었습니다. 더 많은 일기를 작성하면 더 정확한 분석을 제공할 수 있어요!"
PATTERN_SUMMARY = "당신의 감정 패턴을 분석한 결과, {name}({emoji})이 {percent}%로 가장 많이 기록되었습니다."

BALANCE_INSIGHTS = {
    MoodBalance.POSITIVE: "긍정적인 감정(보름달, 상현달)이 {percent}%로 높은 편입니다. 에너지 넘치는 하루들이 많으시네요! 🌟",
    MoodBalance.NEGATIVE: "신월 감정이 {percent}%로 높습니다. 힘든 순간들도 소중한 기록이에요. 지금의 감정을 충분히 인정하고 보살피세요. 💙",
    MoodBalance.NEUTRAL: "평온한 감정(하현달)이 {percent}%로 많은 편입니다. 안정적인 일상 속에서 평화롭게 지내고 계시네요. 😌",
    MoodBalance.BALANCED: "감정 분포가 비교적 균형 잡혀 있습니다. 다양한 감정을 경험하며 풍부한 하루를 보내고 계시네요. ✨",
}

TREND_INSIGHTS = {
    RecentTrend.IMPROVING: "최근 2주간 긍정적인 감정이 증가하고 있습니다. 좋은 변화가 느껴지네요! 🌈",
    RecentTrend.DECLINING: "최근 2주간 감정 변화가 있었습니다. 충분한 휴식과 자기 관리를 권해드려요. 💭",
    RecentTrend.STABLE: "최근 감정 패턴이 안정적으로 유지되고 있습니다.",
}

STEADY_FREQUENCY_INSIGHT = "주당 평균 {per_week}회의 기록으로 꾸준히 감정을 기록하고 계시네요! 📝"
REGULAR_FREQUENCY_INSIGHT = "주당 평균 {per_week}회 정도 기록하고 있습니다. 꾸준함이 답이에요! 💪"
FULL_MOON_INSIGHT = "보름달 감정이 {percent}%로 높습니다. 에너지가 넘치는 당신이 멋져요! ⭐"

PERIOD_LABEL_ALL = "전체 기록"


def count_moods(entries: Iterable[DiaryEntry]) -> Dict[MoonPhase, int]:
    """Every phase is present, so the values always sum to ``len(entries)``."""
    counts = {phase: 0 for phase in MoonPhase}
    for entry in entries:
        counts[entry.mood] += 1
    return counts


def filter_by_period(
    entries: Iterable[DiaryEntry],
    period: Period,
    year: int,
    month: int,
) -> List[DiaryEntry]:
    if period == Period.YEAR:
        return [e for e in entries if e.date.year == year]
    if period == Period.MONTH:
        return [e for e in entries if e.date.year == year and e.date.month == month]
    return list(entries)


def period_label(period: Period, year: int, month: int) -> str:
    if period == Period.ALL:
        return PERIOD_LABEL_ALL
    if period == Period.YEAR:
        return f"{year}년"
    return dates.format_year_month(year, month)


def activity_series(
    entries: Iterable[DiaryEntry],
    period: Period,
    year: int,
    month: int,
    today: Optional[date] = None,
) -> List[ActivityBucket]:
    """
    Entries per time bucket, oldest first. Only buckets with entries are returned.

    - month: one bucket per day of the selected month
    - year:  one bucket per month of the selected year
    - all:   one bucket per month over the trailing twelve months
    """
    today = today or dates.today()
    if period == Period.MONTH:
        start, end = dates.month_bounds(year, month)
    elif period == Period.YEAR:
        start, end = date(year, 1, 1), date(year, 12, 31)
    else:
        start, end = dates.subtract_months(today, TRAILING_MONTHS), today

    counter: Counter = Counter()
    for entry in entries:
        if not start <= entry.date <= end:
            continue
        if period == Period.MONTH:
            counter[entry.date.isoformat()] += 1
        else:
            counter[entry.date.strftime("%Y-%m")] += 1

    buckets = []
    for key in sorted(counter):
        if period == Period.MONTH:
            label = dates.format_month_day(date.fromisoformat(key))
        else:
            bucket_year, bucket_month = (int(part) for part in key.split("-"))
            label = dates.format_year_month(bucket_year, bucket_month)
        buckets.append(ActivityBucket(key=key, label=label, count=counter[key]))
    return buckets


def record_rate(
    entry_count: int,
    period: Period,
    year: int,
    month: int,
    first_entry_date: Optional[date] = None,
    today: Optional[date] = None,
) -> int:
    """Percentage of days in the period that have an entry (entries / days, rounded)."""
    if entry_count <= 0:
        return 0
    if period == Period.MONTH:
        return dates.js_round(entry_count / dates.days_in_month(year, month) * 100)
    if period == Period.YEAR:
        return dates.js_round(entry_count / dates.days_in_year(year) * 100)
    if first_entry_date is None:
        return 0
    days_since_first = dates.days_between(first_entry_date, today or dates.today())
    if days_since_first <= 0:
        return 0
    return dates.js_round(entry_count / days_since_first * 100)


def daily_moods(entries: Sequence[DiaryEntry]) -> List[DailyMood]:
    # sorted() is stable, so same-day entries keep their store order
    ordered = sorted(entries, key=lambda e: e.date)
    return [
        DailyMood(
            date=entry.date.isoformat(),
            mood=entry.mood,
            date_label=dates.format_month_day(entry.date),
            entry_id=entry.id,
        )
        for entry in ordered
    ]


def _positive_ratio(entries: Sequence[DiaryEntry]) -> float:
    return sum(1 for e in entries if e.mood in POSITIVE_PHASES) / len(entries)


def mood_balance(counts: Dict[MoonPhase, int], total: int) -> MoodBalance:
    negative_ratio = sum(counts[p] for p in NEGATIVE_PHASES) / total
    positive_ratio = sum(counts[p] for p in POSITIVE_PHASES) / total
    neutral_ratio = sum(counts[p] for p in NEUTRAL_PHASES) / total

    if negative_ratio > NEGATIVE_RATIO_THRESHOLD:
        return MoodBalance.NEGATIVE
    if positive_ratio > POSITIVE_RATIO_THRESHOLD:
        return MoodBalance.POSITIVE
    if neutral_ratio > NEUTRAL_RATIO_THRESHOLD:
        return MoodBalance.NEUTRAL
    return MoodBalance.BALANCED


def recent_trend(entries: Sequence[DiaryEntry], today: Optional[date] = None) -> RecentTrend:
    """Positive-mood share of the last two weeks against everything before."""
    boundary = (today or dates.today()) - timedelta(days=TREND_WINDOW_DAYS)
    recent = [e for e in entries if e.date > boundary]
    older = [e for e in entries if e.date <= boundary]

    if not recent:
        return RecentTrend.INSUFFICIENT
    if not older:
        return RecentTrend.STABLE

    recent_ratio = _positive_ratio(recent)
    older_ratio = _positive_ratio(older)
    if recent_ratio > older_ratio + TREND_DELTA_THRESHOLD:
        return RecentTrend.IMPROVING
    if recent_ratio < older_ratio - TREND_DELTA_THRESHOLD:
        return RecentTrend.DECLINING
    return RecentTrend.STABLE


def dominant_mood(counts: Dict[MoonPhase, int]) -> MoonPhase:
    # First phase with the highest count wins ties (new, waxing, full, waning)
    best = MoonPhase.NEW
    for phase in MoonPhase:
        if counts[phase] > counts[best]:
            best = phase
    return best


def entries_per_week(entries: Sequence[DiaryEntry], today: Optional[date] = None) -> Optional[float]:
    """Average entries per week since the first entry, or None if it was today."""
    first = min(e.date for e in entries)
    days_since_first = dates.days_between(first, today or dates.today())
    if days_since_first <= 0:
        return None
    return round(len(entries) / max(days_since_first / 7, 1), 1)


def analyze_stats(entries: Sequence[DiaryEntry], today: Optional[date] = None) -> StatAnalysis:
    """Summary line plus insights for a set of entries."""
    if not entries:
        return StatAnalysis(
            summary=EMPTY_SUMMARY,
            insights=[],
            dominant_mood=None,
            mood_balance=MoodBalance.BALANCED,
            recent_trend=RecentTrend.INSUFFICIENT,
        )

    total = len(entries)
    counts = count_moods(entries)
    dominant = dominant_mood(counts)
    mapping = MOOD_MAPPINGS[dominant]
    dominant_percent = dates.js_round(counts[dominant] / total * 100)

    template = SHORT_SUMMARY if total < SHORT_SUMMARY_MAX_ENTRIES else PATTERN_SUMMARY
    summary = template.format(name=mapping.name, emoji=mapping.emoji, percent=dominant_percent)

    balance = mood_balance(counts, total)
    balance_phases = {
        MoodBalance.POSITIVE: POSITIVE_PHASES,
        MoodBalance.NEGATIVE: NEGATIVE_PHASES,
        MoodBalance.NEUTRAL: NEUTRAL_PHASES,
    }
    insights = []
    if balance in balance_phases:
        share = sum(counts[p] for p in balance_phases[balance]) / total
        insights.append(BALANCE_INSIGHTS[balance].format(percent=dates.js_round(share * 100)))
    else:
        insights.append(BALANCE_INSIGHTS[balance])

    trend = recent_trend(entries, today)
    if trend in TREND_INSIGHTS:
        insights.append(TREND_INSIGHTS[trend])

    if total >= FREQUENCY_MIN_ENTRIES:
        per_week = entries_per_week(entries, today)
        if per_week is not None and per_week >= FREQUENCY_STEADY_PER_WEEK:
            insights.append(STEADY_FREQUENCY_INSIGHT.format(per_week=f"{per_week:.1f}"))
        elif per_week is not None and per_week >= FREQUENCY_REGULAR_PER_WEEK:
            insights.append(REGULAR_FREQUENCY_INSIGHT.format(per_week=f"{per_week:.1f}"))

    full_moon = counts[MoonPhase.FULL]
    if full_moon > total * FULL_MOON_RATIO_THRESHOLD:
        insights.append(FULL_MOON_INSIGHT.format(percent=dates.js_round(full_moon / total * 100)))

    return StatAnalysis(
        summary=summary,
        insights=insights,
        dominant_mood=dominant,
        mood_balance=balance,
        recent_trend=trend,
    )


def build_period_stats(
    all_entries: Sequence[DiaryEntry],
    period: Period,
    year: int,
    month: int,
    today: Optional[date] = None,
) -> PeriodStats:
    """Everything the statistics screen shows for one period."""
    today = today or dates.today()
    filtered = filter_by_period(all_entries, period, year, month)
    counts = count_moods(filtered)
    first_entry_date = min((e.date for e in all_entries), default=None)

    logger.info(
        f"[STATS] 📊 period={period.value} year={year} month={month} "
        f"entries={len(filtered)}/{len(all_entries)}"
    )

    return PeriodStats(
        period=period,
        year=year,
        month=month,
        label=period_label(period, year, month),
        total_entries=len(filtered),
        mood_counts={phase.value: count for phase, count in counts.items()},
        activity=activity_series(filtered, period, year, month, today),
        record_rate=record_rate(len(filtered), period, year, month, first_entry_date, today),
        daily_moods=daily_moods(filtered) if period == Period.MONTH else [],
        analysis=analyze_stats(filtered, today),
    )
