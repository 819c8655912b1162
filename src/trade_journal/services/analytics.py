"""
trade_journal.services.analytics

Dashboard and tax report assembly over persisted trades.

Responsibilities:
- Load a user's trades for one account (or all accounts).
- Compose the pure analytics functions into a single dashboard payload.
- Run the yearly day-trade tax estimate.
"""

from __future__ import annotations

import uuid
from collections.abc import Sequence
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from trade_journal.analytics.breakdowns import (
    calculate_tag_metrics,
    monthly_metrics,
    report_metrics,
    timeframe_metrics,
    weekday_performance,
)
from trade_journal.analytics.metrics import (
    calculate_average_hold_time,
    calculate_calmar_ratio,
    calculate_sharpe_ratio,
    calculate_streaks,
    calculate_trade_metrics,
)
from trade_journal.analytics.scoring import calculate_performance_score, radar_data
from trade_journal.analytics.tax import TaxCostsConfig, calculate_tax_year
from trade_journal.analytics.types import TradeLike
from trade_journal.auth.models import CurrentUser
from trade_journal.db.models import Account
from trade_journal.db.repositories.accounts import AccountRepo
from trade_journal.db.repositories.trades import TradeRepo
from trade_journal.errors import NotFoundError


def build_dashboard(
    trades: Sequence[TradeLike], *, initial_balance: float, risk_free_rate: float
) -> dict[str, Any]:
    metrics = calculate_trade_metrics(trades)
    score = calculate_performance_score(trades, metrics, initial_balance)
    return {
        "metrics": metrics.to_dict(),
        "streaks": calculate_streaks(trades).to_dict(),
        "sharpe_ratio": calculate_sharpe_ratio(trades, risk_free_rate),
        "calmar_ratio": calculate_calmar_ratio(trades, initial_balance),
        "hold_times": calculate_average_hold_time(trades).to_dict(),
        "score": score.to_dict(),
        "radar": radar_data(score.metrics),
        "report": report_metrics(trades),
        "monthly": monthly_metrics(trades),
        "weekday": weekday_performance(trades),
        "tags": [m.to_dict() for m in calculate_tag_metrics(trades)],
        "timeframes": {
            "analysis": [m.to_dict() for m in timeframe_metrics(trades, "tf_analysis")],
            "entry": [m.to_dict() for m in timeframe_metrics(trades, "tf_entry")],
        },
    }


class AnalyticsService:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session
        self._accounts = AccountRepo(session)
        self._trades = TradeRepo(session)

    async def _scope(
        self, user: CurrentUser, account_id: uuid.UUID | None
    ) -> tuple[list[Account], list[Any]]:
        if account_id is not None:
            account = await self._accounts.get(account_id)
            if account is None or account.user_id != user.id:
                raise NotFoundError("Account not found")
            accounts = [account]
        else:
            accounts = await self._accounts.list_for_user(user.id)
        trades = await self._trades.list(
            user_id=user.id, account_ids=[a.id for a in accounts], newest_first=False
        )
        return accounts, trades

    async def dashboard(
        self, user: CurrentUser, *, account_id: uuid.UUID | None = None, risk_free_rate: float
    ) -> dict[str, Any]:
        accounts, trades = await self._scope(user, account_id)
        # Calmar and the drawdown score use the combined starting capital.
        initial = sum(a.initial_balance for a in accounts)
        return build_dashboard(trades, initial_balance=initial, risk_free_rate=risk_free_rate)

    async def tax_report(
        self,
        user: CurrentUser,
        *,
        year: int,
        config: TaxCostsConfig,
        account_id: uuid.UUID | None = None,
        opening_loss: float = 0.0,
    ) -> dict[str, Any]:
        _, trades = await self._scope(user, account_id)
        months = calculate_tax_year(trades, year, config, opening_loss=opening_loss)
        return {
            "year": year,
            "months": months,
            "total_tax_due": sum(m["darf"]["amount"] for m in months),
            "closing_loss": months[-1]["accumulated_loss"],
        }
