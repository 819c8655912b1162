from __future__ import annotations

from datetime import date, time

import pytest

from trade_journal.analytics.metrics import (
    TradeFilters,
    calculate_average_hold_time,
    calculate_calmar_ratio,
    calculate_sharpe_ratio,
    calculate_streaks,
    calculate_trade_metrics,
    calculate_trade_pnl,
    determine_outcome,
    filter_trades,
    format_duration,
    format_time_minutes,
    group_trades_by_day,
    max_drawdown,
    trade_duration_minutes,
)
from trade_journal.analytics.types import TradeRecord


def _trade(day: int, pnl: float | None, outcome: str, **kw) -> TradeRecord:
    return TradeRecord(
        symbol=kw.pop("symbol", "EURUSD"),
        direction=kw.pop("direction", "Long"),
        entry_price=kw.pop("entry_price", 1.1),
        lot=kw.pop("lot", 1.0),
        entry_date=date(2024, 1, day),
        pnl=pnl,
        outcome=outcome,
        exit_price=kw.pop("exit_price", None if outcome == "pending" else 1.2),
        **kw,
    )


@pytest.fixture
def sample() -> list[TradeRecord]:
    return [
        _trade(1, 10.0, "win"),
        _trade(2, -5.0, "loss", direction="Short"),
        _trade(3, 20.0, "win"),
        _trade(4, None, "pending"),
    ]


def test_trade_pnl_long_and_short() -> None:
    long = TradeRecord("NQ", "Long", 100.0, 2.0, date(2024, 1, 1), exit_price=110.0)
    short = TradeRecord("NQ", "Short", 100.0, 2.0, date(2024, 1, 1), exit_price=110.0)
    assert calculate_trade_pnl(long) == 20.0
    assert calculate_trade_pnl(short) == -20.0
    assert calculate_trade_pnl(long, multiplier=5) == 100.0


def test_trade_pnl_without_exit_is_zero() -> None:
    open_trade = TradeRecord("NQ", "Long", 100.0, 1.0, date(2024, 1, 1))
    assert calculate_trade_pnl(open_trade) == 0.0


@pytest.mark.parametrize(
    ("exit_price", "pnl", "expected"),
    [(None, None, "pending"), (1.2, 5.0, "win"), (1.2, -1.0, "loss"), (1.2, 0.0, "breakeven")],
)
def test_determine_outcome(exit_price, pnl, expected) -> None:
    assert determine_outcome(exit_price, pnl) == expected


def test_trade_metrics(sample) -> None:
    m = calculate_trade_metrics(sample)
    assert m.total_trades == 4
    assert (m.wins, m.losses, m.pending) == (2, 1, 1)
    assert m.win_rate == pytest.approx(200 / 3)
    assert m.total_pnl == 25.0
    assert m.avg_win == 15.0
    assert m.avg_loss == 5.0
    assert m.profit_factor == pytest.approx(6.0)
    assert m.max_drawdown == 5.0


def test_metrics_of_empty_list() -> None:
    m = calculate_trade_metrics([])
    assert m.total_trades == 0
    assert m.win_rate == 0.0
    assert m.profit_factor == 0.0


def test_max_drawdown_peak_starts_at_zero() -> None:
    assert max_drawdown([-10.0, 5.0]) == 10.0
    assert max_drawdown([10.0, -4.0, 20.0, -30.0]) == 30.0


def test_filter_trades(sample) -> None:
    assert len(filter_trades(sample, TradeFilters(direction="Short"))) == 1
    assert len(filter_trades(sample, TradeFilters(outcome="win"))) == 2
    ranged = filter_trades(sample, TradeFilters(date_from=date(2024, 1, 2), date_to=date(2024, 1, 3)))
    assert [t.entry_date.day for t in ranged] == [2, 3]


def test_group_by_day(sample) -> None:
    groups = group_trades_by_day(sample)
    assert list(groups) == ["2024-01-01", "2024-01-02", "2024-01-03", "2024-01-04"]


def test_streaks_skip_breakeven() -> None:
    trades = [
        _trade(1, 1.0, "win"),
        _trade(2, 1.0, "win"),
        _trade(3, 0.0, "breakeven"),
        _trade(4, 1.0, "win"),
        _trade(5, -1.0, "loss"),
    ]
    streaks = calculate_streaks(trades)
    assert streaks.max_win_streak == 3
    assert streaks.max_loss_streak == 1
    assert streaks.to_dict()["current_streak"] == {"type": "loss", "count": 1}


def test_streaks_empty() -> None:
    assert calculate_streaks([]).to_dict()["current_streak"] == {"type": "none", "count": 0}


def test_sharpe_needs_two_trades() -> None:
    assert calculate_sharpe_ratio([_trade(1, 10.0, "win")]) == 0.0


def test_sharpe_positive_for_growing_equity() -> None:
    trades = [_trade(1, 10.0, "win"), _trade(2, 10.0, "win"), _trade(3, 10.0, "win")]
    assert calculate_sharpe_ratio(trades) > 0


def test_calmar_ratio() -> None:
    trades = [_trade(1, 100.0, "win"), _trade(2, -50.0, "loss")]
    # 5% return over a 50/1100 drawdown.
    assert calculate_calmar_ratio(trades, 1000.0) == pytest.approx(0.05 / (50 / 1100))
    assert calculate_calmar_ratio(trades, 0.0) == 0.0


def test_hold_times_and_duration() -> None:
    win = _trade(1, 5.0, "win", entry_time=time(9, 0), exit_date=date(2024, 1, 1), exit_time=time(10, 30))
    loss = _trade(2, -5.0, "loss", entry_time=time(9, 0), exit_date=date(2024, 1, 2), exit_time=time(9, 30))
    open_trade = _trade(3, None, "pending", entry_time=time(9, 0))

    holds = calculate_average_hold_time([win, loss, open_trade])
    assert holds.avg_winner_minutes == 90.0
    assert holds.avg_loser_minutes == 30.0
    assert holds.avg_all_minutes == 60.0
    assert trade_duration_minutes(win) == 90
    assert trade_duration_minutes(open_trade) == 0


@pytest.mark.parametrize(
    ("minutes", "expected"),
    [(45, "45m"), (90, "1h 30m"), (1500, "1d 1h")],
)
def test_format_duration(minutes, expected) -> None:
    assert format_duration(minutes) == expected


def test_format_time_minutes() -> None:
    assert format_time_minutes(12.4) == "12m"
    assert format_time_minutes(120.0) == "2h"
    assert format_time_minutes(135.0) == "2h 15m"
