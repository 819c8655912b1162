from __future__ import annotations

from datetime import date

import pytest

from trade_journal.analytics.tax import (
    TaxCostsConfig,
    calculate_monthly_tax,
    calculate_tax_year,
    enrich_trades_with_costs,
    generate_darf,
    identify_day_trades,
)
from trade_journal.analytics.types import TradeRecord


def _day_trade(day: date, pnl: float) -> TradeRecord:
    return TradeRecord(
        "WIN", "Long", 100.0, 1.0, day, outcome="win" if pnl > 0 else "loss", pnl=pnl,
        exit_price=101.0, exit_date=day,
    )


def test_identify_day_trades() -> None:
    swing = TradeRecord("WIN", "Long", 100.0, 1.0, date(2024, 1, 2), exit_date=date(2024, 1, 3), exit_price=1.0)
    open_trade = TradeRecord("WIN", "Long", 100.0, 1.0, date(2024, 1, 2))
    day = _day_trade(date(2024, 1, 2), 10.0)
    assert identify_day_trades([swing, open_trade, day]) == [day]


def test_costs_and_withholding() -> None:
    config = TaxCostsConfig(brokerage_fee=10.0, taxes_pct=10.0)
    [taxable] = enrich_trades_with_costs([_day_trade(date(2024, 1, 10), 1000.0)], config)
    assert taxable.taxes == 1.0
    assert taxable.costs == 11.0
    assert taxable.irrf == pytest.approx(10.0)
    assert taxable.net_result == 989.0


def test_monthly_tax_credits_withholding() -> None:
    config = TaxCostsConfig(brokerage_fee=10.0, taxes_pct=10.0)
    taxable = enrich_trades_with_costs([_day_trade(date(2024, 1, 10), 1000.0)], config)
    calc = calculate_monthly_tax("2024-01", taxable, 0.0)
    assert calc.taxable_basis == 989.0
    assert calc.tax_due == pytest.approx(989.0 * 0.20 - 10.0)


def test_losses_carry_forward() -> None:
    trades = [_day_trade(date(2024, 2, 5), -500.0), _day_trade(date(2024, 3, 5), 300.0)]
    months = calculate_tax_year(trades, 2024, TaxCostsConfig())
    assert len(months) == 12
    feb, mar, apr = months[1], months[2], months[3]
    assert feb["accumulated_loss"] == 500.0
    assert mar["accumulated_loss"] == 200.0
    assert mar["tax_due"] == 0.0
    assert apr["accumulated_loss"] == 200.0


def test_opening_loss_absorbs_profit() -> None:
    months = calculate_tax_year([_day_trade(date(2024, 1, 5), 100.0)], 2024, TaxCostsConfig(), opening_loss=40.0)
    assert months[0]["taxable_basis"] == 60.0
    assert months[0]["accumulated_loss"] == 0.0


@pytest.mark.parametrize(
    ("month", "due"),
    [
        ("2024-01", date(2024, 2, 29)),
        ("2024-05", date(2024, 6, 28)),
        ("2024-12", date(2025, 1, 31)),
    ],
)
def test_darf_due_date(month, due) -> None:
    calc = calculate_monthly_tax(month, [], 0.0)
    darf = generate_darf(calc)
    assert darf.code == "6015"
    assert darf.due_date == due
    assert darf.amount == 0.0
