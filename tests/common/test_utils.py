from datetime import datetime, timedelta, timezone

import pytest

from readiness.common.utils import age_of, env_str, format_duration, parse_duration, parse_iso_ts


class TestParseDuration:
    @pytest.mark.parametrize(
        "value, expected",
        [
            ("90s", timedelta(seconds=90)),
            ("30m", timedelta(minutes=30)),
            ("24h", timedelta(hours=24)),
            ("7d", timedelta(days=7)),
            ("1w", timedelta(weeks=1)),
            ("1.5h", timedelta(minutes=90)),
            ("45", timedelta(seconds=45)),
            (3600, timedelta(hours=1)),
            (timedelta(minutes=2), timedelta(minutes=2)),
        ],
    )
    def test_valid(self, value, expected):
        assert parse_duration(value) == expected

    @pytest.mark.parametrize("value", ["", "soon", "-1h", "1y", True, None])
    def test_invalid(self, value):
        with pytest.raises(ValueError):
            parse_duration(value)


@pytest.mark.parametrize(
    "delta, text",
    [
        (timedelta(0), "0s"),
        (timedelta(seconds=-5), "0s"),
        (timedelta(minutes=45), "45m"),
        (timedelta(hours=26), "1d2h"),
        (timedelta(days=1, seconds=61), "1d1m1s"),
    ],
)
def test_format_duration(delta, text):
    assert format_duration(delta) == text


class TestParseIsoTs:
    def test_zulu(self):
        assert parse_iso_ts("2026-03-02T12:00:00Z") == datetime(2026, 3, 2, 12, tzinfo=timezone.utc)

    def test_offset_converted_to_utc(self):
        assert parse_iso_ts("2026-03-02T14:00:00+02:00") == datetime(2026, 3, 2, 12, tzinfo=timezone.utc)

    def test_naive_is_utc(self):
        assert parse_iso_ts(datetime(2026, 3, 2, 12)).tzinfo is timezone.utc

    def test_epoch_millis(self):
        assert parse_iso_ts(1772452800000) == datetime(2026, 3, 2, 12, tzinfo=timezone.utc)

    @pytest.mark.parametrize("value", [None, "", "yesterday"])
    def test_unparsable(self, value):
        assert parse_iso_ts(value) is None


def test_age_of_clamps_future_to_zero():
    now = datetime(2026, 3, 2, 12, tzinfo=timezone.utc)
    assert age_of(now + timedelta(minutes=1), now) == timedelta(0)
    assert age_of(now - timedelta(minutes=1), now) == timedelta(minutes=1)
    assert age_of(None, now) is None


def test_env_str(monkeypatch):
    monkeypatch.setenv("JENKINS_TOKEN", "t0k")
    assert env_str("JENKINS_TOKEN") == "t0k"
    assert env_str("") == ""
    assert env_str("READINESS_UNSET_VAR", "fallback") == "fallback"
