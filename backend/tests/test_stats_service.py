"""
Statistics: counts, record rate, activity buckets and the written analysis.

Run: python -m pytest tests/test_stats_service.py -v
"""
from datetime import date, timedelta

from moondiary.core import dates
from moondiary.models.diary import MoonPhase
from moondiary.models.stats import MoodBalance, Period, RecentTrend
from moondiary.services import stats_service
from moondiary.services.stats_service import (
    EMPTY_SUMMARY,
    activity_series,
    analyze_stats,
    build_period_stats,
    count_moods,
    dominant_mood,
    mood_balance,
    record_rate,
    recent_trend,
)

from conftest import make_entry

TODAY = date(2024, 6, 30)


def _run(start: date, moods):
    return [make_entry(start + timedelta(days=i), mood) for i, mood in enumerate(moods)]


class TestCounts:
    def test_counts_sum_to_entry_count(self):
        entries = _run(date(2024, 3, 1), [MoonPhase.FULL, MoonPhase.NEW, MoonPhase.FULL, MoonPhase.WANING, MoonPhase.WAXING])
        counts = count_moods(entries)
        assert sum(counts.values()) == len(entries)
        assert counts[MoonPhase.FULL] == 2

    def test_every_phase_present_when_empty(self):
        assert count_moods([]) == {phase: 0 for phase in MoonPhase}

    def test_dominant_tie_goes_to_earlier_phase(self):
        counts = {MoonPhase.NEW: 0, MoonPhase.WAXING: 2, MoonPhase.FULL: 2, MoonPhase.WANING: 1}
        assert dominant_mood(counts) == MoonPhase.WAXING


class TestRecordRate:
    def test_month_uses_days_in_month(self):
        assert record_rate(14, Period.MONTH, 2024, 2) == 48  # 14 / 29
        assert record_rate(14, Period.MONTH, 2023, 2) == 50  # 14 / 28
        assert record_rate(31, Period.MONTH, 2024, 1) == 100

    def test_year_uses_leap_year_length(self):
        assert dates.days_in_year(2024) == 366
        assert dates.days_in_year(2023) == 365
        assert record_rate(183, Period.YEAR, 2024, 1) == 50

    def test_all_counts_days_since_first_entry(self):
        assert record_rate(5, Period.ALL, 2024, 6, first_entry_date=date(2024, 6, 1), today=date(2024, 6, 11)) == 50

    def test_all_is_zero_when_first_entry_is_today(self):
        assert record_rate(1, Period.ALL, 2024, 6, first_entry_date=TODAY, today=TODAY) == 0

    def test_zero_entries(self):
        assert record_rate(0, Period.MONTH, 2024, 6) == 0

    def test_half_rounds_up(self):
        assert dates.js_round(12.5) == 13
        assert dates.js_round(0.5) == 1
        assert dates.js_round(12.49) == 12


class TestActivity:
    def test_month_buckets_by_day(self):
        entries = [
            make_entry("2024-03-05", entry_id="a"),
            make_entry("2024-03-05", entry_id="b"),
            make_entry("2024-03-10"),
            make_entry("2024-04-01"),
        ]
        buckets = activity_series(entries, Period.MONTH, 2024, 3, TODAY)
        assert [(b.key, b.label, b.count) for b in buckets] == [
            ("2024-03-05", "3월 5일", 2),
            ("2024-03-10", "3월 10일", 1),
        ]

    def test_year_buckets_by_month_in_order(self):
        entries = [make_entry("2024-11-02"), make_entry("2024-02-14"), make_entry("2024-02-20")]
        buckets = activity_series(entries, Period.YEAR, 2024, 1, TODAY)
        assert [b.key for b in buckets] == ["2024-02", "2024-11"]
        assert buckets[0].count == 2

    def test_all_covers_trailing_twelve_months(self):
        entries = [make_entry("2023-06-10"), make_entry("2024-01-05"), make_entry("2023-12-01")]
        buckets = activity_series(entries, Period.ALL, 2024, 6, date(2024, 6, 15))
        assert [b.label for b in buckets] == ["2023년 12월", "2024년 1월"]


class TestBalance:
    def test_negative_share_of_exactly_forty_percent_is_not_negative(self):
        counts = {MoonPhase.NEW: 2, MoonPhase.WAXING: 0, MoonPhase.FULL: 2, MoonPhase.WANING: 1}
        assert mood_balance(counts, 5) == MoodBalance.BALANCED

    def test_negative_share_above_forty_percent(self):
        counts = {MoonPhase.NEW: 3, MoonPhase.WAXING: 0, MoonPhase.FULL: 2, MoonPhase.WANING: 2}
        assert mood_balance(counts, 7) == MoodBalance.NEGATIVE

    def test_positive_needs_more_than_half(self):
        counts = {MoonPhase.NEW: 0, MoonPhase.WAXING: 1, MoonPhase.FULL: 2, MoonPhase.WANING: 2}
        assert mood_balance(counts, 5) == MoodBalance.POSITIVE

    def test_neutral(self):
        counts = {MoonPhase.NEW: 1, MoonPhase.WAXING: 1, MoonPhase.FULL: 0, MoonPhase.WANING: 3}
        assert mood_balance(counts, 5) == MoodBalance.NEUTRAL


class TestTrend:
    def test_improving(self):
        entries = _run(date(2024, 6, 1), [MoonPhase.NEW] * 4) + _run(date(2024, 6, 20), [MoonPhase.FULL] * 4)
        assert recent_trend(entries, TODAY) == RecentTrend.IMPROVING

    def test_declining(self):
        entries = _run(date(2024, 6, 1), [MoonPhase.FULL] * 4) + _run(date(2024, 6, 20), [MoonPhase.NEW] * 4)
        assert recent_trend(entries, TODAY) == RecentTrend.DECLINING

    def test_boundary_day_counts_as_older(self):
        # 2024-06-16 is exactly 14 days before TODAY
        entries = [make_entry("2024-06-16", MoonPhase.NEW)]
        assert recent_trend(entries, TODAY) == RecentTrend.INSUFFICIENT

    def test_only_recent_is_stable(self):
        assert recent_trend(_run(date(2024, 6, 25), [MoonPhase.NEW]), TODAY) == RecentTrend.STABLE


class TestAnalysis:
    def test_empty_returns_placeholder(self):
        analysis = analyze_stats([], TODAY)
        assert analysis.summary == EMPTY_SUMMARY
        assert analysis.insights == []
        assert analysis.dominant_mood is None

    def test_short_summary_below_five_entries(self):
        analysis = analyze_stats(_run(date(2024, 6, 25), [MoonPhase.FULL] * 3), TODAY)
        assert analysis.summary.startswith("보름달(🌕) 감정이 100%로")
        assert "더 많은 일기" in analysis.summary

    def test_half_full_half_new_is_negative_not_positive(self):
        entries = _run(date(2024, 6, 21), [MoonPhase.FULL] * 5 + [MoonPhase.NEW] * 5)
        analysis = analyze_stats(entries, TODAY)

        assert analysis.mood_balance == MoodBalance.NEGATIVE
        assert analysis.dominant_mood == MoonPhase.NEW
        assert analysis.summary.startswith("당신의 감정 패턴을 분석한 결과")
        assert any(i.startswith("신월 감정이 50%") for i in analysis.insights)
        assert not any(i.startswith("긍정적인 감정") for i in analysis.insights)
        assert stats_service.FULL_MOON_INSIGHT.format(percent=50) in analysis.insights

    def test_forty_percent_new_moon_gets_no_negative_insight(self):
        entries = _run(date(2024, 6, 21), [MoonPhase.NEW] * 2 + [MoonPhase.FULL] * 2 + [MoonPhase.WANING])
        analysis = analyze_stats(entries, TODAY)

        assert analysis.mood_balance == MoodBalance.BALANCED
        assert stats_service.BALANCE_INSIGHTS[MoodBalance.BALANCED] in analysis.insights
        assert not any(i.startswith("신월 감정이") for i in analysis.insights)

    def test_frequency_insight_needs_ten_entries(self):
        few = _run(date(2024, 6, 22), [MoonPhase.WANING] * 9)
        assert not any("주당 평균" in i for i in analyze_stats(few, TODAY).insights)

        many = _run(date(2024, 6, 21), [MoonPhase.WANING] * 10)
        # 10 entries over 9 days -> 7.8 per week
        assert stats_service.STEADY_FREQUENCY_INSIGHT.format(per_week="7.8") in analyze_stats(many, TODAY).insights


class TestPeriodStats:
    def test_month_period(self):
        entries = [
            make_entry("2024-06-03", MoonPhase.WANING),
            make_entry("2024-06-01", MoonPhase.FULL),
            make_entry("2024-05-31", MoonPhase.NEW),
        ]
        stats = build_period_stats(entries, Period.MONTH, 2024, 6, TODAY)

        assert stats.label == "2024년 6월"
        assert stats.total_entries == 2
        assert stats.mood_counts == {"new": 0, "waxing": 0, "full": 1, "waning": 1}
        assert stats.record_rate == 7  # 2 / 30
        assert [d.date for d in stats.daily_moods] == ["2024-06-01", "2024-06-03"]

    def test_year_period_has_no_daily_moods(self):
        stats = build_period_stats([make_entry("2024-02-01")], Period.YEAR, 2024, 6, TODAY)
        assert stats.label == "2024년"
        assert stats.daily_moods == []

    def test_empty(self):
        stats = build_period_stats([], Period.ALL, 2024, 6, TODAY)
        assert stats.label == "전체 기록"
        assert stats.total_entries == 0
        assert sum(stats.mood_counts.values()) == 0
        assert stats.activity == []
        assert stats.record_rate == 0
        assert stats.analysis.summary == EMPTY_SUMMARY
