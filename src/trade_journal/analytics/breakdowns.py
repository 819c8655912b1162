"""
trade_journal.analytics.breakdowns

Grouped analytics for dashboards, reports and community playbooks.

Responsibilities:
- Tag parsing and per-tag performance.
- Per-timeframe, per-month and per-weekday groupings.
- Report summary and shared-playbook author stats.
"""

from __future__ import annotations

import calendar
from collections import Counter
from collections.abc import Iterable, Sequence
from dataclasses import asdict, dataclass
from typing import Any, Literal

from trade_journal.analytics.metrics import (
    _duration_minutes,
    _exit_dt,
    best_and_worst,
    calculate_streaks,
    calculate_trade_metrics,
    format_time_minutes,
)
from trade_journal.analytics.timeframes import detect_session
from trade_journal.analytics.types import TradeLike

UNDEFINED_TIMEFRAME = "Undefined"
# Profit factor shown for groups that have wins but no losses.
NO_LOSS_PROFIT_FACTOR = 999.0


@dataclass(frozen=True, slots=True)
class GroupMetrics:
    key: str
    total_trades: int
    wins: int
    losses: int
    breakeven: int
    win_rate: float
    net_pnl: float
    avg_pnl: float
    profit_factor: float

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def parse_tags(tags: str | None) -> list[str]:
    if not tags:
        return []
    return [t.strip() for t in tags.split(",") if t.strip()]


def unique_tags(trades: Iterable[TradeLike]) -> list[str]:
    found: set[str] = set()
    for t in trades:
        found.update(parse_tags(t.tags))
    return sorted(found)


def gross_profit_factor(trades: Iterable[TradeLike]) -> float:
    gross_win = 0.0
    gross_loss = 0.0
    for t in trades:
        if t.outcome == "win":
            gross_win += t.pnl or 0.0
        elif t.outcome == "loss":
            gross_loss += t.pnl or 0.0
    gross_loss = abs(gross_loss)
    if gross_loss > 0:
        return gross_win / gross_loss
    return NO_LOSS_PROFIT_FACTOR if gross_win > 0 else 0.0


def _group_metrics(key: str, trades: Sequence[TradeLike]) -> GroupMetrics:
    total = len(trades)
    wins = sum(1 for t in trades if t.outcome == "win")
    net = sum(t.pnl or 0.0 for t in trades)
    return GroupMetrics(
        key=key,
        total_trades=total,
        wins=wins,
        losses=sum(1 for t in trades if t.outcome == "loss"),
        breakeven=sum(1 for t in trades if t.outcome == "breakeven"),
        # Grouped win rate divides by every trade in the group.
        win_rate=wins / total * 100 if total else 0.0,
        net_pnl=net,
        avg_pnl=net / total if total else 0.0,
        profit_factor=gross_profit_factor(trades),
    )


def _by_count(groups: dict[str, list[TradeLike]]) -> list[GroupMetrics]:
    metrics = [_group_metrics(key, items) for key, items in groups.items()]
    metrics.sort(key=lambda m: m.total_trades, reverse=True)
    return metrics


def calculate_tag_metrics(trades: Iterable[TradeLike]) -> list[GroupMetrics]:
    groups: dict[str, list[TradeLike]] = {}
    for t in trades:
        for tag in parse_tags(t.tags):
            groups.setdefault(tag, []).append(t)
    return _by_count(groups)


def tag_metrics_for_strategy(trades: Iterable[TradeLike], strategy: str) -> list[GroupMetrics]:
    return calculate_tag_metrics(t for t in trades if t.strategy == strategy)


def timeframe_metrics(
    trades: Iterable[TradeLike], field: Literal["tf_analysis", "tf_entry"] = "tf_analysis"
) -> list[GroupMetrics]:
    groups: dict[str, list[TradeLike]] = {}
    for t in trades:
        groups.setdefault(getattr(t, field) or UNDEFINED_TIMEFRAME, []).append(t)
    return _by_count(groups)


def _decided_win_rate(trades: Sequence[TradeLike]) -> float:
    wins = sum(1 for t in trades if t.outcome == "win")
    losses = sum(1 for t in trades if t.outcome == "loss")
    return wins / (wins + losses) * 100 if wins + losses else 0.0


def monthly_metrics(trades: Iterable[TradeLike]) -> list[dict[str, Any]]:
    groups: dict[str, list[TradeLike]] = {}
    for t in trades:
        groups.setdefault(t.entry_date.strftime("%Y-%m"), []).append(t)

    out: list[dict[str, Any]] = []
    for key in sorted(groups):
        items = groups[key]
        year, month = (int(p) for p in key.split("-"))
        out.append(
            {
                "month": key,
                "label": f"{calendar.month_name[month]} {year}",
                "trades": len(items),
                "wins": sum(1 for t in items if t.outcome == "win"),
                "losses": sum(1 for t in items if t.outcome == "loss"),
                "pnl": sum(t.pnl or 0.0 for t in items),
                "win_rate": _decided_win_rate(items),
            }
        )
    return out


def weekday_performance(trades: Iterable[TradeLike]) -> list[dict[str, Any]]:
    buckets: dict[int, list[TradeLike]] = {day: [] for day in range(7)}
    for t in trades:
        buckets[t.entry_date.weekday()].append(t)
    return [
        {
            "weekday": calendar.day_name[day],
            "trades": len(items),
            "pnl": sum(t.pnl or 0.0 for t in items),
            "win_rate": _decided_win_rate(items),
        }
        for day, items in buckets.items()
    ]


def report_metrics(trades: Sequence[TradeLike]) -> dict[str, Any]:
    m = calculate_trade_metrics(trades)
    best, worst = best_and_worst(trades)
    return {
        "total_trades": m.total_trades,
        "win_rate": m.win_rate,
        "profit_factor": m.profit_factor,
        "total_pnl": m.total_pnl,
        "best_trade": best,
        "worst_trade": worst,
    }


def _reward_to_risk(trade: TradeLike) -> float | None:
    if not trade.entry_price or not trade.stop_loss or not trade.exit_price:
        return None
    risk = abs(trade.entry_price - trade.stop_loss)
    if risk <= 0:
        return None
    return abs(trade.exit_price - trade.entry_price) / risk


def _most_common(values: Iterable[str]) -> str | None:
    counts = Counter(v for v in values if v)
    if not counts:
        return None
    return counts.most_common(1)[0][0]


def author_stats(trades: Sequence[TradeLike]) -> dict[str, Any] | None:
    """
    Track record of a playbook author over trades tagged with the playbook strategy.

    Returns None when there are no trades.
    """

    if not trades:
        return None

    total = len(trades)
    wins = sum(1 for t in trades if t.outcome == "win")

    ratios = [r for r in (_reward_to_risk(t) for t in trades) if r is not None]
    durations = [
        d
        for d in (_duration_minutes(t) for t in trades if t.entry_time and _exit_dt(t))
        if d > 0
    ]
    avg_minutes = sum(durations) / len(durations) if durations else 0.0

    return {
        "total_trades": total,
        "win_rate": wins / total * 100,
        "profit_factor": gross_profit_factor(trades),
        "net_pnl": sum(t.pnl or 0.0 for t in trades),
        "avg_rr": sum(ratios) / len(ratios) if ratios else 0.0,
        "max_win_streak": calculate_streaks(trades).max_win_streak,
        "avg_duration": format_time_minutes(avg_minutes),
        "preferred_symbol": _most_common(t.symbol for t in trades),
        "preferred_session": _most_common(
            detect_session(t.entry_time).value for t in trades if t.entry_time
        ),
    }
