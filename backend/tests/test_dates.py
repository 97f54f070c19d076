from datetime import date, datetime, timedelta, timezone

from moondiary.core import dates


class TestDates:
    def test_relative_date(self):
        today = date(2024, 6, 10)
        assert dates.format_relative_date("2024-06-10", today) == "오늘"
        assert dates.format_relative_date(date(2024, 6, 9), today) == "어제"
        assert dates.format_relative_date("2024-06-02", today) == "2024년 6월 2일 일"

    def test_relative_time(self):
        now = datetime(2024, 6, 10, 12, 0, tzinfo=timezone.utc)
        assert dates.format_relative_time(now - timedelta(seconds=30), now) == "방금 전"
        assert dates.format_relative_time(now - timedelta(minutes=5), now) == "5분 전"
        assert dates.format_relative_time("2024-06-10T09:00:00Z", now) == "3시간 전"
        assert dates.format_relative_time("2024-06-08T09:30:00+00:00", now) == "2024-06-08 09:30"

    def test_subtract_months_clamps_day(self):
        assert dates.subtract_months(date(2024, 3, 31), 1) == date(2024, 2, 29)
        assert dates.subtract_months(date(2024, 1, 15), 12) == date(2023, 1, 15)

    def test_parse_date_accepts_timestamps(self):
        assert dates.parse_date("2024-06-10T23:10:00+00:00") == date(2024, 6, 10)
