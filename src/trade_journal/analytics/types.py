"""
trade_journal.analytics.types

Structural types shared by the analytics modules.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import date, time
from typing import Protocol


class TradeLike(Protocol):
    """
    Read-only view of a trade; satisfied by `db.models.Trade` and `TradeRecord`.
    """

    account_id: uuid.UUID | None
    symbol: str
    direction: str
    entry_price: float
    stop_loss: float | None
    exit_price: float | None
    lot: float
    entry_date: date
    entry_time: time | None
    exit_date: date | None
    exit_time: time | None
    pnl: float | None
    outcome: str
    tags: str | None
    strategy: str | None
    tf_analysis: str | None
    tf_entry: str | None


@dataclass(slots=True)
class TradeRecord:
    symbol: str
    direction: str
    entry_price: float
    lot: float
    entry_date: date
    outcome: str = "pending"
    pnl: float | None = None
    exit_price: float | None = None
    stop_loss: float | None = None
    entry_time: time | None = None
    exit_date: date | None = None
    exit_time: time | None = None
    tags: str | None = None
    strategy: str | None = None
    tf_analysis: str | None = None
    tf_entry: str | None = None
    commission: float = 0.0
    swap: float = 0.0
    account_id: uuid.UUID | None = None
