from __future__ import annotations

from datetime import time

import pytest

from trade_journal.analytics.timeframes import (
    AlignmentStatus,
    TradingSession,
    calculate_r_multiple,
    classify_timeframe,
    detect_session,
    ensure_utc,
    format_r_multiple,
    get_timeframe_alignment,
    normalize_timeframe,
    validate_alignment,
)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("M15", "15m"), ("h4", "4H"), ("D1", "Daily"), ("Weekly", "Weekly"), ("45M", "45m"), ("", "")],
)
def test_normalize_timeframe(raw, expected) -> None:
    assert normalize_timeframe(raw) == expected


def test_alignment_map() -> None:
    assert get_timeframe_alignment("Daily", "4H").status is AlignmentStatus.aligned
    re_aligned = get_timeframe_alignment("H4", "M15")
    assert re_aligned.status is AlignmentStatus.re_aligned
    assert re_aligned.label == "ST + RE Aligned"
    assert not re_aligned.is_warning


def test_unknown_pair_is_an_alert() -> None:
    result = get_timeframe_alignment("5m", "Daily")
    assert result.status is AlignmentStatus.plus_alert
    assert result.is_warning


@pytest.mark.parametrize(
    ("analysis", "entry", "valid", "classification"),
    [
        ("4H", "5m", True, "Top-Down Analysis"),
        ("4H", "15m", False, "LTF Only"),
        ("1H", "4H", False, "Invalid"),
        ("1H", "H1", False, "Same TF"),
        ("Daily", "foo", False, "Invalid"),
        (None, "5m", False, "Invalid"),
    ],
)
def test_validate_alignment(analysis, entry, valid, classification) -> None:
    result = validate_alignment(analysis, entry)
    assert result.valid is valid
    assert result.classification == classification


def test_ltf_only_reports_recommended_entry() -> None:
    result = validate_alignment("Daily", "1H")
    assert result.recommended_entry_tf == "15m"
    assert result.message == "Entry TF too high. Maximum: 15m"


def test_classify_timeframe() -> None:
    assert classify_timeframe("Daily") == "HTF"
    assert classify_timeframe("H4") == "HTF"
    assert classify_timeframe("15m") == "LTF"


@pytest.mark.parametrize(
    ("entry_time", "session"),
    [
        ("10:00", TradingSession.overlap),
        ("06:00", TradingSession.london),
        ("03:00", TradingSession.tokyo),
        ("17:00", TradingSession.new_york),
        ("20:00", TradingSession.sydney),
        (time(10, 30), TradingSession.overlap),
        (None, TradingSession.off_hours),
        ("", TradingSession.off_hours),
    ],
)
def test_detect_session(entry_time, session) -> None:
    assert detect_session(entry_time) is session


def test_detect_session_with_utc_offset() -> None:
    assert detect_session("13:00", tz_offset_hours=0) is TradingSession.overlap


def test_r_multiple_long() -> None:
    r = calculate_r_multiple(100.0, 110.0, 95.0, "Long")
    assert r == 2.0
    assert format_r_multiple(r) == "+2.00R"


def test_r_multiple_short() -> None:
    assert calculate_r_multiple(100.0, 97.5, 105.0, "Short") == 0.5
    assert format_r_multiple(calculate_r_multiple(100.0, 102.5, 105.0, "Short")) == "-0.50R"


def test_r_multiple_rounds_halves_up() -> None:
    assert calculate_r_multiple(100.0, 101.0, 92.0, "Long") == 0.13
    assert calculate_r_multiple(100.0, 99.0, 108.0, "Short") == 0.13


def test_r_multiple_requires_positive_risk() -> None:
    assert calculate_r_multiple(100.0, 110.0, 100.0, "Long") is None
    assert calculate_r_multiple(100.0, 110.0, None, "Long") is None
    assert format_r_multiple(None) == "-"


def test_ensure_utc() -> None:
    assert ensure_utc("2024-01-01T10:00:00") == "2024-01-01T10:00:00Z"
    assert ensure_utc("2024-01-01T10:00:00+02:00") == "2024-01-01T10:00:00+02:00"
    assert ensure_utc("2024-01-01") == "2024-01-01"
