"""
trade_journal.api.routers.analytics

Analytics, tax report and data export.

Responsibilities:
- Dashboard analytics for one account or all accounts.
- Stateless helpers: timeframe alignment and session detection.
- Yearly day-trade tax report and full JSON export.
"""

from __future__ import annotations

import uuid
from datetime import date
from typing import Any

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from trade_journal.analytics.tax import TaxCostsConfig
from trade_journal.analytics.timeframes import (
    classify_timeframe,
    detect_session,
    recommended_entry_timeframe,
    validate_alignment,
)
from trade_journal.api.deps import audit_service, db_session, settings_dep
from trade_journal.auth.deps import get_current_user
from trade_journal.auth.models import CurrentUser
from trade_journal.services.analytics import AnalyticsService
from trade_journal.services.audit import AuditService
from trade_journal.services.export import ExportService
from trade_journal.settings import Settings

router = APIRouter(prefix="/v1", tags=["analytics"])


class TaxRequest(BaseModel):
    year: int = Field(default_factory=lambda: date.today().year, ge=2000, le=2100)
    account_id: uuid.UUID | None = None
    brokerage_fee: float = Field(default=0.0, ge=0)
    exchange_fee_pct: float = Field(default=0.0, ge=0)
    taxes_pct: float = Field(default=0.0, ge=0)
    opening_loss: float = Field(default=0.0, ge=0)


@router.get("/analytics/dashboard")
async def dashboard(
    account_id: uuid.UUID | None = None,
    user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(db_session),
    settings: Settings = Depends(settings_dep),
) -> dict[str, Any]:
    return await AnalyticsService(session).dashboard(
        user, account_id=account_id, risk_free_rate=settings.risk_free_rate
    )


@router.get("/analytics/timeframe-alignment")
async def timeframe_alignment(
    analysis_tf: str = Query(min_length=1, max_length=16),
    entry_tf: str | None = Query(default=None, max_length=16),
    user: CurrentUser = Depends(get_current_user),
) -> dict[str, Any]:
    result = validate_alignment(analysis_tf, entry_tf)
    return {
        **result.to_dict(),
        "analysis_classification": classify_timeframe(analysis_tf),
        "recommended": recommended_entry_timeframe(analysis_tf),
    }


@router.get("/analytics/session")
async def trading_session(
    entry_time: str = Query(min_length=1, max_length=32),
    tz_offset_hours: int = Query(default=-3, ge=-12, le=14),
    user: CurrentUser = Depends(get_current_user),
) -> dict[str, str]:
    return {"session": detect_session(entry_time, tz_offset_hours).value}


@router.post("/analytics/tax")
async def tax_report(
    body: TaxRequest,
    user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(db_session),
) -> dict[str, Any]:
    config = TaxCostsConfig(
        brokerage_fee=body.brokerage_fee,
        exchange_fee_pct=body.exchange_fee_pct,
        taxes_pct=body.taxes_pct,
    )
    return await AnalyticsService(session).tax_report(
        user, year=body.year, config=config, account_id=body.account_id, opening_loss=body.opening_loss
    )


@router.get("/export")
async def export_data(
    user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(db_session),
    audit: AuditService = Depends(audit_service),
) -> dict[str, Any]:
    return await ExportService(session, audit=audit).export_all(user)
