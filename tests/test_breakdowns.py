from __future__ import annotations

from datetime import date, time

import pytest

from trade_journal.analytics.breakdowns import (
    NO_LOSS_PROFIT_FACTOR,
    author_stats,
    calculate_tag_metrics,
    gross_profit_factor,
    monthly_metrics,
    parse_tags,
    report_metrics,
    tag_metrics_for_strategy,
    timeframe_metrics,
    unique_tags,
    weekday_performance,
)
from trade_journal.analytics.types import TradeRecord


def _t(day: date, pnl: float, outcome: str, **kw) -> TradeRecord:
    return TradeRecord("EURUSD", "Long", 1.1, 1.0, day, outcome=outcome, pnl=pnl, **kw)


TRADES = [
    _t(date(2024, 1, 1), 30.0, "win", tags="breakout, london", tf_analysis="4H", strategy="ORB"),
    _t(date(2024, 1, 2), -10.0, "loss", tags="breakout", tf_analysis="4H", strategy="ORB"),
    _t(date(2024, 2, 5), 0.0, "breakeven", tags="london", strategy="Fade"),
]


def test_parse_tags() -> None:
    assert parse_tags(" a, b ,,c") == ["a", "b", "c"]
    assert parse_tags(None) == []
    assert unique_tags(TRADES) == ["breakout", "london"]


def test_gross_profit_factor() -> None:
    assert gross_profit_factor(TRADES) == 3.0
    assert gross_profit_factor(TRADES[:1]) == NO_LOSS_PROFIT_FACTOR
    assert gross_profit_factor([]) == 0.0


def test_tag_metrics_sorted_by_count() -> None:
    tags = calculate_tag_metrics(TRADES)
    assert [m.key for m in tags] == ["breakout", "london"]
    london = tags[1]
    assert london.total_trades == 2
    assert london.breakeven == 1
    # Grouped win rate counts breakeven trades in the denominator.
    assert london.win_rate == 50.0


def test_tag_metrics_for_strategy() -> None:
    assert [m.key for m in tag_metrics_for_strategy(TRADES, "Fade")] == ["london"]


def test_timeframe_metrics_labels_missing_values() -> None:
    groups = timeframe_metrics(TRADES)
    assert [(g.key, g.total_trades) for g in groups] == [("4H", 2), ("Undefined", 1)]


def test_monthly_metrics() -> None:
    months = monthly_metrics(TRADES)
    assert [m["month"] for m in months] == ["2024-01", "2024-02"]
    assert months[0]["label"] == "January 2024"
    assert months[0]["win_rate"] == 50.0
    assert months[1]["win_rate"] == 0.0


def test_weekday_performance_covers_every_day() -> None:
    days = weekday_performance(TRADES)
    assert len(days) == 7
    monday = days[0]
    assert monday["weekday"] == "Monday"
    # 2024-01-01 and 2024-02-05 are both Mondays.
    assert monday["trades"] == 2
    assert monday["pnl"] == 30.0


def test_report_metrics() -> None:
    report = report_metrics(TRADES)
    assert report["best_trade"] == 30.0
    assert report["worst_trade"] == -10.0
    assert report["total_pnl"] == 20.0


def test_author_stats_empty() -> None:
    assert author_stats([]) is None


def test_author_stats() -> None:
    trades = [
        _t(
            date(2024, 1, 1),
            20.0,
            "win",
            stop_loss=1.0,
            exit_price=1.3,
            entry_time=time(10, 0),
            exit_date=date(2024, 1, 1),
            exit_time=time(11, 0),
        ),
        _t(date(2024, 1, 2), -10.0, "loss"),
    ]
    stats = author_stats(trades)
    assert stats is not None
    assert stats["total_trades"] == 2
    assert stats["win_rate"] == 50.0
    assert stats["profit_factor"] == 2.0
    assert stats["net_pnl"] == 10.0
    assert stats["avg_rr"] == pytest.approx(2.0)
    assert stats["avg_duration"] == "1h"
    assert stats["preferred_symbol"] == "EURUSD"
    assert stats["preferred_session"] == "London-NY Overlap"
