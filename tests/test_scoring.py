from __future__ import annotations

from datetime import date

import pytest

from trade_journal.analytics.metrics import TradeMetrics
from trade_journal.analytics.scoring import (
    avg_win_loss_score,
    calculate_performance_score,
    consistency_score,
    grade_for,
    max_drawdown_score,
    profit_factor_score,
    recovery_factor_score,
    win_rate_score,
)
from trade_journal.analytics.types import TradeRecord


def _metrics(**kw) -> TradeMetrics:
    base = dict(
        total_trades=1,
        wins=1,
        losses=0,
        breakeven=0,
        pending=0,
        win_rate=60.0,
        total_pnl=50.0,
        avg_win=30.0,
        avg_loss=10.0,
        profit_factor=3.0,
        max_drawdown=0.0,
    )
    base.update(kw)
    return TradeMetrics(**base)


def test_win_rate_score_caps_at_sixty_percent() -> None:
    assert win_rate_score(30.0) == 50.0
    assert win_rate_score(90.0) == 100.0


@pytest.mark.parametrize(("pf", "expected"), [(2.6, 100.0), (2.0, 70.0), (1.0, 20.0)])
def test_profit_factor_bands(pf, expected) -> None:
    assert profit_factor_score(pf) == pytest.approx(expected)


def test_avg_win_loss_without_losses() -> None:
    assert avg_win_loss_score(10.0, 0.0) == 100.0
    assert avg_win_loss_score(0.0, 0.0) == 50.0


def test_recovery_factor() -> None:
    assert recovery_factor_score(100.0, 0.0) == 100.0
    assert recovery_factor_score(0.0, 0.0) == 50.0
    assert recovery_factor_score(10.0, 10.0) == 1.0
    assert recovery_factor_score(-10.0, 10.0) == 0.0


def test_drawdown_score_relative_to_balance() -> None:
    assert max_drawdown_score(100.0, 1000.0) == 90.0
    assert max_drawdown_score(100.0, 0.0) == 50.0


def test_consistency_needs_two_trades() -> None:
    one = [TradeRecord("ES", "Long", 1.0, 1.0, date(2024, 1, 1), outcome="win", pnl=5.0)]
    assert consistency_score(one) == 50.0


def test_consistency_even_days_is_perfect() -> None:
    trades = [
        TradeRecord("ES", "Long", 1.0, 1.0, date(2024, 1, day), outcome="win", pnl=5.0)
        for day in (1, 2)
    ]
    assert consistency_score(trades) == 100.0


@pytest.mark.parametrize(
    ("score", "grade"),
    [(95, "S"), (80, "A"), (72.5, "B"), (60, "C"), (55, "D"), (45, "F")],
)
def test_grades(score, grade) -> None:
    assert grade_for(score)[0] == grade


def test_performance_score_weights() -> None:
    trades = [TradeRecord("ES", "Long", 1.0, 1.0, date(2024, 1, 1), outcome="win", pnl=50.0)]
    result = calculate_performance_score(trades, _metrics(), 1000.0)
    # 15 + 25 + 20 + 10 + 20 + (50 * 0.10)
    assert result.score == 95.0
    assert result.grade == "S"
    assert result.description == "Elite"
    payload = result.to_dict()
    assert len(payload["radar"]) == 6
    assert payload["metrics"]["consistency"] == 50.0
