"""
trade_journal.api.schemas

Response models shared by several routers.

Responsibilities:
- Serialize ORM rows (via `from_attributes`) into stable JSON shapes.
"""

from __future__ import annotations

import uuid
import datetime as dt
from datetime import date, datetime, time
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class _Orm(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class UserOut(_Orm):
    id: uuid.UUID
    email: str
    name: str | None
    role: str
    status: str
    approved_at: datetime | None = None
    last_login_at: datetime | None = None
    created_at: datetime | None = None


class AccountOut(_Orm):
    id: uuid.UUID
    name: str
    currency: str
    initial_balance: float
    current_balance: float
    leverage: str
    max_drawdown: float
    created_at: datetime


class TradeOut(_Orm):
    id: uuid.UUID
    account_id: uuid.UUID
    symbol: str
    direction: str
    entry_price: float
    stop_loss: float | None
    take_profit: float | None
    exit_price: float | None
    lot: float
    commission: float
    swap: float
    tf_analysis: str | None
    tf_entry: str | None
    tags: str | None
    strategy: str | None
    setup: str | None
    notes: str | None
    entry_date: date
    entry_time: time | None
    exit_date: date | None
    exit_time: time | None
    pnl: float | None
    outcome: str
    created_at: datetime


class JournalImageOut(_Orm):
    id: uuid.UUID
    url: str
    path: str
    timeframe: str
    display_order: int


class JournalEntryOut(_Orm):
    id: uuid.UUID
    account_id: uuid.UUID
    date: dt.date
    title: str
    asset: str | None
    trade_id: uuid.UUID | None
    trade_ids: list[uuid.UUID] = Field(default_factory=list)
    emotion: str | None
    analysis: str | None
    notes: str | None
    images: list[JournalImageOut] = Field(default_factory=list)
    created_at: datetime


class RoutineOut(_Orm):
    id: uuid.UUID
    account_id: uuid.UUID
    date: dt.date
    aerobic: bool
    diet: bool
    reading: bool
    meditation: bool
    pre_market: bool
    prayer: bool
    updated_at: datetime


class PlaybookOut(_Orm):
    id: uuid.UUID
    account_id: uuid.UUID | None
    name: str
    description: str | None
    icon: str
    color: str
    rule_groups: list[dict[str, Any]]
    created_at: datetime


class InviteOut(_Orm):
    id: uuid.UUID
    mentor_id: uuid.UUID
    mentor_email: str
    mentee_id: uuid.UUID | None
    mentee_email: str
    permission: str
    status: str
    invite_token: uuid.UUID
    created_at: datetime
    accepted_at: datetime | None
    expires_at: datetime


class PermissionOut(_Orm):
    id: uuid.UUID
    invite_id: uuid.UUID
    account_id: uuid.UUID
    can_view_trades: bool
    can_view_journal: bool
    can_view_routines: bool


class ReviewOut(_Orm):
    id: uuid.UUID
    mentor_id: uuid.UUID
    mentee_id: uuid.UUID
    trade_id: uuid.UUID | None
    journal_entry_id: uuid.UUID | None
    review_type: str
    content: str
    rating: int | None
    is_read: bool
    created_at: datetime
    updated_at: datetime


class IssueOut(BaseModel):
    field: str
    message: str
    code: str
