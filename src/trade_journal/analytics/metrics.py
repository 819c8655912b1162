"""
trade_journal.analytics.metrics

Core trade metrics.

Responsibilities:
- Per-trade pnl / outcome derivation.
- Aggregate metrics (win rate, profit factor, drawdown) and grouping helpers.
- Risk-adjusted ratios (Sharpe, Calmar), hold times and streaks.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence
from dataclasses import asdict, dataclass
from datetime import date, datetime, time
from typing import Any, Literal

from trade_journal.analytics.types import TradeLike

TRADING_DAYS_PER_YEAR = 252


@dataclass(frozen=True, slots=True)
class TradeFilters:
    account_id: Any = None
    symbol: str | None = None
    direction: str | None = None
    outcome: str | None = None
    date_from: date | None = None
    date_to: date | None = None


@dataclass(frozen=True, slots=True)
class TradeMetrics:
    total_trades: int
    wins: int
    losses: int
    breakeven: int
    pending: int
    win_rate: float
    total_pnl: float
    avg_win: float
    avg_loss: float
    profit_factor: float
    max_drawdown: float

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class HoldTimes:
    avg_winner_minutes: float
    avg_loser_minutes: float
    avg_all_minutes: float
    winner_count: int
    loser_count: int

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class Streaks:
    max_win_streak: int
    max_loss_streak: int
    current_type: Literal["win", "loss", "none"]
    current_count: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "max_win_streak": self.max_win_streak,
            "max_loss_streak": self.max_loss_streak,
            "current_streak": {"type": self.current_type, "count": self.current_count},
        }


def _pnl(trade: TradeLike) -> float:
    return trade.pnl or 0.0


def _by_entry_date(trades: Iterable[TradeLike]) -> list[TradeLike]:
    # Stable: trades on the same day keep their incoming order.
    return sorted(trades, key=lambda t: t.entry_date)


def calculate_trade_pnl(trade: TradeLike, multiplier: float = 1.0) -> float:
    if not trade.exit_price:
        return 0.0
    if trade.direction == "Long":
        points = trade.exit_price - trade.entry_price
    else:
        points = trade.entry_price - trade.exit_price
    return points * trade.lot * multiplier


def determine_outcome(exit_price: float | None, pnl: float | None) -> str:
    if not exit_price:
        return "pending"
    value = pnl or 0.0
    if value > 0:
        return "win"
    if value < 0:
        return "loss"
    return "breakeven"


def filter_trades(trades: Iterable[TradeLike], filters: TradeFilters) -> list[TradeLike]:
    out: list[TradeLike] = []
    for t in trades:
        if filters.account_id is not None and t.account_id != filters.account_id:
            continue
        if filters.symbol and t.symbol != filters.symbol:
            continue
        if filters.direction and t.direction != filters.direction:
            continue
        if filters.outcome and t.outcome != filters.outcome:
            continue
        if filters.date_from and t.entry_date < filters.date_from:
            continue
        if filters.date_to and t.entry_date > filters.date_to:
            continue
        out.append(t)
    return out


def max_drawdown(pnls: Iterable[float]) -> float:
    """
    Largest peak-to-trough fall of cumulative pnl; the peak starts at 0.
    """

    peak = 0.0
    running = 0.0
    worst = 0.0
    for value in pnls:
        running += value
        peak = max(peak, running)
        worst = max(worst, peak - running)
    return worst


def calculate_trade_metrics(trades: Sequence[TradeLike]) -> TradeMetrics:
    winners = [t for t in trades if t.outcome == "win"]
    losers = [t for t in trades if t.outcome == "loss"]
    wins, losses = len(winners), len(losers)

    decided = wins + losses
    win_rate = wins / decided * 100 if decided else 0.0

    avg_win = sum(_pnl(t) for t in winners) / wins if wins else 0.0
    avg_loss = abs(sum(_pnl(t) for t in losers) / losses) if losses else 0.0
    profit_factor = (avg_win * wins) / (avg_loss * losses) if avg_loss > 0 else 0.0

    return TradeMetrics(
        total_trades=len(trades),
        wins=wins,
        losses=losses,
        breakeven=sum(1 for t in trades if t.outcome == "breakeven"),
        pending=sum(1 for t in trades if t.outcome == "pending"),
        win_rate=win_rate,
        total_pnl=sum(_pnl(t) for t in trades),
        avg_win=avg_win,
        avg_loss=avg_loss,
        profit_factor=profit_factor,
        max_drawdown=max_drawdown(_pnl(t) for t in trades),
    )


def group_trades_by_day(trades: Iterable[TradeLike]) -> dict[str, list[TradeLike]]:
    groups: dict[str, list[TradeLike]] = {}
    for t in trades:
        groups.setdefault(t.entry_date.isoformat(), []).append(t)
    return groups


def _entry_dt(trade: TradeLike) -> datetime:
    return datetime.combine(trade.entry_date, trade.entry_time or time(0, 0))


def _exit_dt(trade: TradeLike) -> datetime | None:
    if trade.exit_date is None or trade.exit_time is None:
        return None
    return datetime.combine(trade.exit_date, trade.exit_time)


def _duration_minutes(trade: TradeLike) -> float:
    exit_at = _exit_dt(trade)
    if exit_at is None:
        return 0.0
    return (exit_at - _entry_dt(trade)).total_seconds() / 60


def trade_duration_minutes(trade: TradeLike) -> int:
    return math.floor(_duration_minutes(trade))


def format_duration(minutes: int) -> str:
    if minutes < 60:
        return f"{minutes}m"
    hours, mins = divmod(minutes, 60)
    if hours < 24:
        return f"{hours}h {mins}m"
    days, rem_hours = divmod(hours, 24)
    return f"{days}d {rem_hours}h"


def calculate_sharpe_ratio(trades: Sequence[TradeLike], risk_free_rate: float = 0.02) -> float:
    """
    Annualised Sharpe ratio over per-trade equity returns.

    Equity starts at 0; a step is only counted when the previous equity is non-zero,
    so the first trade never yields a return.
    """

    if len(trades) < 2:
        return 0.0

    returns: list[float] = []
    equity = 0.0
    for index, trade in enumerate(_by_entry_date(trades)):
        prev = equity
        equity += _pnl(trade)
        if index > 0 and prev != 0:
            returns.append((equity - prev) / abs(prev))

    if not returns:
        return 0.0

    mean = sum(returns) / len(returns)
    std = math.sqrt(sum((r - mean) ** 2 for r in returns) / len(returns))
    if std == 0:
        return 0.0

    daily_rf = risk_free_rate / TRADING_DAYS_PER_YEAR
    return (mean - daily_rf) / std * math.sqrt(TRADING_DAYS_PER_YEAR)


def _max_drawdown_fraction(trades: Sequence[TradeLike], initial_balance: float) -> float:
    peak = initial_balance
    equity = initial_balance
    worst = 0.0
    for trade in _by_entry_date(trades):
        equity += _pnl(trade)
        peak = max(peak, equity)
        dd = (peak - equity) / peak if peak > 0 else 0.0
        worst = max(worst, dd)
    return worst


def calculate_calmar_ratio(
    trades: Sequence[TradeLike], initial_balance: float, period_days: int = 365
) -> float:
    if not trades or initial_balance == 0:
        return 0.0
    total_return = sum(_pnl(t) for t in trades) / initial_balance
    annualized = total_return * (365 / period_days)
    dd = _max_drawdown_fraction(trades, initial_balance)
    if dd == 0:
        return 0.0
    return annualized / dd


def calculate_average_hold_time(trades: Iterable[TradeLike]) -> HoldTimes:
    closed = [t for t in trades if _exit_dt(t) is not None]
    winners = [t for t in closed if t.outcome == "win"]
    losers = [t for t in closed if t.outcome == "loss"]

    def _avg(items: list[TradeLike]) -> float:
        return sum(_duration_minutes(t) for t in items) / len(items) if items else 0.0

    return HoldTimes(
        avg_winner_minutes=_avg(winners),
        avg_loser_minutes=_avg(losers),
        avg_all_minutes=_avg(closed),
        winner_count=len(winners),
        loser_count=len(losers),
    )


def calculate_streaks(trades: Iterable[TradeLike]) -> Streaks:
    max_win = max_loss = 0
    cur_win = cur_loss = 0
    for trade in _by_entry_date(trades):
        # Breakeven and pending trades are skipped entirely.
        if trade.outcome == "win":
            cur_win += 1
            cur_loss = 0
            max_win = max(max_win, cur_win)
        elif trade.outcome == "loss":
            cur_loss += 1
            cur_win = 0
            max_loss = max(max_loss, cur_loss)

    if cur_win:
        return Streaks(max_win, max_loss, "win", cur_win)
    if cur_loss:
        return Streaks(max_win, max_loss, "loss", cur_loss)
    return Streaks(max_win, max_loss, "none", 0)


def format_time_minutes(minutes: float) -> str:
    if minutes < 60:
        return f"{math.floor(minutes + 0.5)}m"
    hours = math.floor(minutes / 60)
    mins = math.floor(minutes % 60 + 0.5)
    if mins == 0:
        return f"{hours}h"
    return f"{hours}h {mins}m"


def best_and_worst(trades: Iterable[TradeLike]) -> tuple[float, float]:
    pnls = [_pnl(t) for t in trades]
    if not pnls:
        return 0.0, 0.0
    return max(pnls), min(pnls)


# --- Module Notes -----------------------------------------------------------
# Win rate excludes breakeven/pending trades from the denominator here; the grouped
# breakdowns in `analytics.breakdowns` divide by all trades in the group instead.
