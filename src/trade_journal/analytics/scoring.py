"""
trade_journal.analytics.scoring

Composite performance score (0..100) with a letter grade.

Responsibilities:
- Map individual metrics onto 0..100 sub-scores through band tables.
- Combine sub-scores with fixed weights and grade the result.
- Provide radar-chart data for the dashboard.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import asdict, dataclass
from typing import Any

from trade_journal.analytics.metrics import TradeMetrics
from trade_journal.analytics.types import TradeLike

WEIGHTS: dict[str, float] = {
    "win_rate": 0.15,
    "profit_factor": 0.25,
    "avg_win_loss_ratio": 0.20,
    "recovery_factor": 0.10,
    "max_drawdown": 0.20,
    "consistency": 0.10,
}

# (lower bound, interpolation upper bound, score at lower, score at upper)
_RATIO_BANDS: tuple[tuple[float, float, float, float], ...] = (
    (2.4, 2.59, 90, 99),
    (2.2, 2.39, 80, 89),
    (2.0, 2.19, 70, 79),
    (1.9, 1.99, 60, 69),
    (1.8, 1.89, 50, 59),
)
_RECOVERY_BANDS: tuple[tuple[float, float, float, float], ...] = (
    (3.0, 3.49, 70, 89),
    (2.5, 2.99, 60, 69),
    (2.0, 2.49, 50, 59),
    (1.5, 1.99, 30, 49),
    (1.0, 1.49, 1, 29),
)

_GRADES: tuple[tuple[float, str, str, str], ...] = (
    (90, "S", "#a855f7", "Elite"),
    (80, "A", "#22c55e", "Excellent"),
    (70, "B", "#84cc16", "Good"),
    (60, "C", "#eab308", "Average"),
    (50, "D", "#f97316", "Below Average"),
)
_GRADE_F = ("F", "#ef4444", "Needs Improvement")


@dataclass(frozen=True, slots=True)
class ScoreBreakdown:
    win_rate: float
    profit_factor: float
    avg_win_loss_ratio: float
    recovery_factor: float
    max_drawdown: float
    consistency: float


@dataclass(frozen=True, slots=True)
class PerformanceScore:
    score: float
    metrics: ScoreBreakdown
    grade: str
    grade_color: str
    description: str

    def to_dict(self) -> dict[str, Any]:
        out = asdict(self)
        out["radar"] = radar_data(self.metrics)
        return out


def _clamp(value: float, lo: float = 0.0, hi: float = 100.0) -> float:
    return max(lo, min(hi, value))


def _interpolate(value: float, x0: float, x1: float, y0: float, y1: float) -> float:
    if value <= x0:
        return y0
    if value >= x1:
        return y1
    return y0 + (value - x0) * (y1 - y0) / (x1 - x0)


def _banded(value: float, bands: Sequence[tuple[float, float, float, float]], below: float) -> float:
    for x0, x1, y0, y1 in bands:
        if value >= x0:
            return _interpolate(value, x0, x1, y0, y1)
    return below


def win_rate_score(win_rate: float) -> float:
    # 60% win rate or better earns the full score.
    return _clamp(win_rate / 60 * 100)


def profit_factor_score(profit_factor: float) -> float:
    if profit_factor >= 2.6:
        return 100.0
    return _banded(profit_factor, _RATIO_BANDS, 20.0)


def avg_win_loss_score(avg_win: float, avg_loss: float) -> float:
    if avg_loss == 0:
        return 100.0 if avg_win > 0 else 50.0
    ratio = avg_win / avg_loss
    if ratio >= 2.6:
        return 100.0
    return _banded(ratio, _RATIO_BANDS, 20.0)


def recovery_factor_score(total_pnl: float, max_drawdown: float) -> float:
    if max_drawdown == 0:
        return 100.0 if total_pnl > 0 else 50.0
    recovery = total_pnl / max_drawdown
    if recovery >= 3.5:
        return 100.0
    return _banded(recovery, _RECOVERY_BANDS, 0.0)


def max_drawdown_score(max_drawdown: float, initial_balance: float) -> float:
    if initial_balance <= 0:
        return 50.0
    return _clamp(100 - max_drawdown / initial_balance * 100)


def consistency_score(trades: Sequence[TradeLike]) -> float:
    """
    100 minus the daily-pnl standard deviation as a percentage of total profit.

    Days are keyed by exit date, falling back to entry date for open trades.
    """

    if len(trades) < 2:
        return 50.0

    daily: dict[Any, float] = {}
    for t in trades:
        day = t.exit_date or t.entry_date
        daily[day] = daily.get(day, 0.0) + (t.pnl or 0.0)

    values = list(daily.values())
    total = sum(values)
    if total <= 0:
        return 0.0

    mean = total / len(values)
    std = math.sqrt(sum((v - mean) ** 2 for v in values) / len(values))
    return _clamp(100 - std / total * 100)


def grade_for(score: float) -> tuple[str, str, str]:
    for threshold, grade, color, description in _GRADES:
        if score >= threshold:
            return grade, color, description
    return _GRADE_F


def calculate_performance_score(
    trades: Sequence[TradeLike], metrics: TradeMetrics, initial_balance: float
) -> PerformanceScore:
    breakdown = ScoreBreakdown(
        win_rate=_clamp(win_rate_score(metrics.win_rate)),
        profit_factor=_clamp(profit_factor_score(metrics.profit_factor)),
        avg_win_loss_ratio=_clamp(avg_win_loss_score(metrics.avg_win, metrics.avg_loss)),
        recovery_factor=_clamp(recovery_factor_score(metrics.total_pnl, metrics.max_drawdown)),
        max_drawdown=_clamp(max_drawdown_score(metrics.max_drawdown, initial_balance)),
        consistency=_clamp(consistency_score(trades)),
    )
    raw = sum(getattr(breakdown, name) * weight for name, weight in WEIGHTS.items())
    score = math.floor(_clamp(raw) * 10 + 0.5) / 10
    grade, color, description = grade_for(score)
    return PerformanceScore(
        score=score,
        metrics=breakdown,
        grade=grade,
        grade_color=color,
        description=description,
    )


def radar_data(breakdown: ScoreBreakdown) -> list[dict[str, Any]]:
    return [
        {"metric": "Win %", "value": breakdown.win_rate, "full_mark": 100},
        {"metric": "Profit Factor", "value": breakdown.profit_factor, "full_mark": 100},
        {"metric": "Avg W/L", "value": breakdown.avg_win_loss_ratio, "full_mark": 100},
        {"metric": "Recovery", "value": breakdown.recovery_factor, "full_mark": 100},
        {"metric": "Max DD", "value": breakdown.max_drawdown, "full_mark": 100},
        {"metric": "Consistency", "value": breakdown.consistency, "full_mark": 100},
    ]
