"""
trade_journal.services.trades

Trade lifecycle and trade comments.

Responsibilities:
- Validate trade input, derive pnl/outcome and persist trades.
- Keep the owning account's balance in sync after every write.
- Owner/mentor-scoped trade comments.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import date
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from trade_journal.analytics.metrics import calculate_trade_pnl, determine_outcome
from trade_journal.analytics.timeframes import calculate_r_multiple
from trade_journal.analytics.types import TradeRecord
from trade_journal.auth.models import CurrentUser
from trade_journal.db.models import MentorPermission, Trade, TradeComment
from trade_journal.db.repositories.accounts import AccountRepo
from trade_journal.db.repositories.mentor import MentorRepo
from trade_journal.db.repositories.trades import CommentRepo, TradeRepo
from trade_journal.errors import NotFoundError, PermissionDeniedError, ValidationFailedError
from trade_journal.observability.logging import get_logger, short_id
from trade_journal.permission_cache import MentorPermissionCache
from trade_journal.services.accounts import SettingsService
from trade_journal.services.mentor import MentorService
from trade_journal.validation import ValidationIssue, validate_trade

log = get_logger(__name__)

_TRADE_FIELDS = (
    "account_id",
    "symbol",
    "direction",
    "entry_price",
    "stop_loss",
    "take_profit",
    "exit_price",
    "lot",
    "commission",
    "swap",
    "tf_analysis",
    "tf_entry",
    "tags",
    "strategy",
    "setup",
    "notes",
    "entry_date",
    "entry_time",
    "exit_date",
    "exit_time",
)


@dataclass(frozen=True, slots=True)
class TradeWriteResult:
    trade: Trade
    warnings: list[ValidationIssue]


@dataclass(frozen=True, slots=True)
class TradePage:
    items: list[Trade]
    total: int
    limit: int
    offset: int


def _raise_if_invalid(values: dict[str, Any]) -> list[ValidationIssue]:
    result = validate_trade(values)
    if not result.is_valid:
        raise ValidationFailedError(
            "Trade validation failed", errors=[e.to_dict() for e in result.errors]
        )
    return result.warnings


class TradeService:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session
        self._repo = TradeRepo(session)
        self._accounts = AccountRepo(session)
        self._settings = SettingsService(session)

    async def _owned_account(self, user: CurrentUser, account_id: uuid.UUID) -> None:
        account = await self._accounts.get(account_id)
        if account is None or account.user_id != user.id:
            raise NotFoundError("Account not found")

    async def get_owned(self, user: CurrentUser, trade_id: uuid.UUID) -> Trade:
        trade = await self._repo.get(trade_id)
        if trade is None or trade.user_id != user.id:
            raise NotFoundError("Trade not found")
        return trade

    async def _derive_pnl(
        self, user_id: uuid.UUID, values: dict[str, Any], pnl_override: float | None
    ) -> tuple[float | None, str]:
        exit_price = values.get("exit_price")
        if not exit_price:
            return None, determine_outcome(None, None)
        if pnl_override is not None:
            pnl = float(pnl_override)
        else:
            multiplier = await self._settings.multiplier_for(user_id, values["symbol"])
            record = TradeRecord(
                symbol=values["symbol"],
                direction=str(values["direction"]),
                entry_price=float(values["entry_price"]),
                lot=float(values["lot"]),
                entry_date=values["entry_date"],
                exit_price=float(exit_price),
            )
            pnl = (
                calculate_trade_pnl(record, multiplier)
                + float(values.get("commission") or 0.0)
                + float(values.get("swap") or 0.0)
            )
        return pnl, determine_outcome(exit_price, pnl)

    async def create(
        self, user: CurrentUser, data: dict[str, Any], *, pnl_override: float | None = None
    ) -> TradeWriteResult:
        values = {k: data.get(k) for k in _TRADE_FIELDS}
        warnings = _raise_if_invalid(values)
        await self._owned_account(user, values["account_id"])

        pnl, outcome = await self._derive_pnl(user.id, values, pnl_override)
        values["commission"] = values.get("commission") or 0.0
        values["swap"] = values.get("swap") or 0.0
        values["symbol"] = values["symbol"].strip().upper()
        trade = await self._repo.create(user_id=user.id, pnl=pnl, outcome=outcome, **values)
        await self._accounts.refresh_balance(trade.account_id)
        await self._session.commit()
        log.info("trade_created", trade_id=str(trade.id), outcome=outcome)
        return TradeWriteResult(trade=trade, warnings=warnings)

    async def update(
        self,
        user: CurrentUser,
        trade_id: uuid.UUID,
        changes: dict[str, Any],
        *,
        pnl_override: float | None = None,
    ) -> TradeWriteResult:
        trade = await self.get_owned(user, trade_id)
        previous_account = trade.account_id
        values = {k: getattr(trade, k) for k in _TRADE_FIELDS}
        values.update({k: v for k, v in changes.items() if k in _TRADE_FIELDS})
        warnings = _raise_if_invalid(values)
        if values["account_id"] != previous_account:
            await self._owned_account(user, values["account_id"])

        pnl, outcome = await self._derive_pnl(user.id, values, pnl_override)
        values["symbol"] = str(values["symbol"]).strip().upper()
        for key, value in values.items():
            setattr(trade, key, value)
        trade.pnl = pnl
        trade.outcome = outcome
        await self._session.flush()

        await self._accounts.refresh_balance(trade.account_id)
        if previous_account != trade.account_id:
            await self._accounts.refresh_balance(previous_account)
        await self._session.commit()
        return TradeWriteResult(trade=trade, warnings=warnings)

    async def delete(self, user: CurrentUser, trade_id: uuid.UUID) -> None:
        trade = await self.get_owned(user, trade_id)
        account_id = trade.account_id
        await self._repo.delete(trade)
        await self._accounts.refresh_balance(account_id)
        await self._session.commit()

    async def list(
        self,
        user: CurrentUser,
        *,
        account_id: uuid.UUID | None = None,
        symbol: str | None = None,
        direction: str | None = None,
        outcome: str | None = None,
        date_from: date | None = None,
        date_to: date | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> TradePage:
        filters: dict[str, Any] = {
            "user_id": user.id,
            "account_ids": [account_id] if account_id is not None else None,
            "symbol": symbol.upper() if symbol else None,
            "direction": direction,
            "outcome": outcome,
            "date_from": date_from,
            "date_to": date_to,
        }
        items = await self._repo.list(limit=limit, offset=offset, **filters)
        total = await self._repo.count(**filters)
        return TradePage(items=items, total=total, limit=limit, offset=offset)

    async def r_multiple(self, user: CurrentUser, trade_id: uuid.UUID) -> float | None:
        trade = await self.get_owned(user, trade_id)
        return calculate_r_multiple(trade.entry_price, trade.exit_price, trade.stop_loss, trade.direction)


class CommentService:
    def __init__(self, session: AsyncSession, *, cache: MentorPermissionCache) -> None:
        self._session = session
        self._repo = CommentRepo(session)
        self._trades = TradeRepo(session)
        self._mentor = MentorRepo(session)
        self._access = MentorService(session, cache=cache)

    async def _trade_for(self, user: CurrentUser, trade_id: uuid.UUID, *, to_write: bool) -> Trade:
        trade = await self._trades.get(trade_id)
        if trade is None:
            raise NotFoundError("Trade not found")
        if trade.user_id == user.id:
            return trade
        invite = await self._mentor.accepted_between(user.id, trade.user_id)
        # Trades on accounts the mentee has not shared are invisible.
        if invite is None or not await self._access.can_view_trade(user, trade):
            raise NotFoundError("Trade not found")
        if to_write and invite.permission != MentorPermission.comment:
            raise PermissionDeniedError("Mentor does not have comment permission")
        return trade

    async def add(self, user: CurrentUser, trade_id: uuid.UUID, content: str) -> TradeComment:
        trade = await self._trade_for(user, trade_id, to_write=True)
        comment = await self._repo.create(trade_id=trade.id, user_id=user.id, content=content.strip())
        await self._session.commit()
        log.info("comment_added", trade_id=short_id(trade.id), by_owner=trade.user_id == user.id)
        return comment

    async def list(self, user: CurrentUser, trade_id: uuid.UUID) -> list[TradeComment]:
        trade = await self._trade_for(user, trade_id, to_write=False)
        return await self._repo.list_for_trade(trade.id)

    async def delete(self, user: CurrentUser, comment_id: uuid.UUID) -> None:
        comment = await self._repo.get(comment_id)
        if comment is None:
            raise NotFoundError("Comment not found")
        trade = await self._trades.get(comment.trade_id)
        is_trade_owner = trade is not None and trade.user_id == user.id
        if comment.user_id != user.id and not is_trade_owner:
            raise PermissionDeniedError("Only the author or the trade owner can delete a comment")
        await self._repo.delete(comment)
        await self._session.commit()
