"""
Unit Tests for trend and weather correlation analysis
"""
from datetime import timedelta

import pytest

from dermair.core.analytics import TrendAnalyzer, correlation_percentage
from dermair.core.base import PollenCount, WeatherSnapshot


@pytest.fixture
def analyzer() -> TrendAnalyzer:
    return TrendAnalyzer()


class TestEmptyInput:
    def test_empty_logs_are_zeroed(self, analyzer, as_of):
        report = analyzer.analyze([], window_days=30, as_of=as_of)

        assert report.weekly_trends == []
        assert report.weather_correlations.to_dict() == {
            "temperature": 0, "humidity": 0, "uv": 0, "pollen": 0,
        }
        assert report.overview.total_days == 0
        assert report.overview.medication_usage_rate == 0
        assert report.recent_activity == []

    def test_invalid_window(self, analyzer):
        with pytest.raises(ValueError):
            analyzer.analyze([], window_days=0)


class TestWeeklyBuckets:
    def test_thirteen_days_with_gap(self, analyzer, make_log, as_of):
        # 6 logs in the latest week, a 3-day gap, then 4 logs in the week before
        logs = [make_log(d) for d in (0, 1, 2, 3, 4, 5)] + [make_log(d) for d in (9, 10, 11, 12)]
        assert len(logs) == 10

        report = analyzer.analyze(logs, window_days=30, as_of=as_of)

        assert [w.week for w in report.weekly_trends] == [2, 1]
        assert [w.log_count for w in report.weekly_trends] == [4, 6]
        assert report.weekly_trends[0].week_start < report.weekly_trends[1].week_start

    def test_bucket_boundaries(self, analyzer, make_log, as_of):
        report = analyzer.analyze([make_log(6), make_log(7)], window_days=14, as_of=as_of)

        newest = report.weekly_trends[-1]
        assert newest.week_end == as_of
        assert newest.week_start == as_of - timedelta(days=6)
        assert [w.log_count for w in report.weekly_trends] == [1, 1]

    def test_bucket_count_capped_at_four(self, analyzer, make_log, as_of):
        logs = [make_log(d) for d in range(0, 60, 3)]
        report = analyzer.analyze(logs, window_days=60, as_of=as_of)
        assert len(report.weekly_trends) == 4

    def test_short_window_uses_one_bucket(self, analyzer, make_log, as_of):
        report = analyzer.analyze([make_log(d) for d in range(5)], window_days=5, as_of=as_of)
        assert len(report.weekly_trends) == 1

    def test_bucket_averages(self, analyzer, make_log, as_of):
        logs = [make_log(0, itch=4, redness=1, medication=True), make_log(1, itch=1, redness=2)]
        week = analyzer.analyze(logs, window_days=7, as_of=as_of).weekly_trends[0]
        assert week.avg_itch == pytest.approx(2.5)
        assert week.avg_redness == pytest.approx(1.5)
        assert week.medication_days == 1


class TestOverview:
    def test_window_filter(self, analyzer, make_log, as_of):
        logs = [make_log(0), make_log(29), make_log(30), make_log(-1)]
        report = analyzer.analyze(logs, window_days=30, as_of=as_of)
        assert report.overview.total_days == 2

    def test_aggregates(self, analyzer, make_log, as_of):
        logs = [
            make_log(0, itch=3, redness=1, medication=True),
            make_log(1, itch=2, redness=2),
            make_log(2, itch=1, redness=0),
        ]
        overview = analyzer.analyze(logs, window_days=30, as_of=as_of).overview

        assert overview.avg_itch == pytest.approx(2.0)
        assert overview.avg_redness == pytest.approx(1.0)
        assert overview.medication_days == 1
        assert overview.medication_usage_rate == 33

    def test_recent_activity_newest_first(self, analyzer, make_log, as_of):
        logs = [make_log(d) for d in range(14)]
        recent = analyzer.analyze(list(reversed(logs)), window_days=30, as_of=as_of).recent_activity
        assert len(recent) == 10
        assert recent[0].date == as_of
        assert [log.date for log in recent] == sorted((log.date for log in recent), reverse=True)


class TestWeatherCorrelations:
    def test_correlation_math(self, analyzer, make_log, as_of):
        hot = WeatherSnapshot(temperature=30, humidity=50)
        hot_humid = WeatherSnapshot(temperature=30, humidity=85, uv_index=8,
                                    pollen_count=PollenCount(overall=7))
        logs = [
            make_log(0, itch=4, redness=2, weather=hot_humid),   # high symptom
            make_log(1, itch=4, redness=1, weather=hot),         # high symptom
            make_log(2, itch=1, redness=1, weather=hot),
            make_log(3, itch=5, redness=3, weather=None),        # no weather: ignored
        ]
        correlations = analyzer.analyze(logs, window_days=30, as_of=as_of).weather_correlations

        assert correlations.temperature == 67
        assert correlations.humidity == 100
        assert correlations.uv == 100
        assert correlations.pollen == 100

    def test_threshold_is_strict(self, analyzer, make_log, as_of):
        at_threshold = WeatherSnapshot(temperature=25, humidity=70, uv_index=6,
                                       pollen_count=PollenCount(overall=6))
        report = analyzer.analyze([make_log(0, itch=5, redness=3, weather=at_threshold)],
                                  window_days=7, as_of=as_of)
        assert report.weather_correlations.to_dict() == {
            "temperature": 0, "humidity": 0, "uv": 0, "pollen": 0,
        }

    @pytest.mark.parametrize("high,exposed,expected", [(0, 0, 0), (1, 3, 33), (2, 3, 67), (3, 3, 100)])
    def test_percentage(self, high, exposed, expected):
        assert correlation_percentage(high, exposed) == expected


def test_report_serialization(analyzer, make_log, as_of):
    data = analyzer.analyze([make_log(0)], window_days=7, as_of=as_of).to_dict()
    assert data["as_of"] == as_of.isoformat()
    assert set(data) == {"window_days", "as_of", "overview", "weekly_trends",
                         "weather_correlations", "recent_activity"}
    assert data["recent_activity"][0]["id"].startswith("log-")
