"""
trade_journal.db.models

Persistence schema for the trade journal.

Responsibilities:
- Define ORM models for:
  - users, accounts and per-user settings
  - trades, trade comments
  - journal entries (+ image metadata, linked trades, pro/contra arguments), shared journal links
  - daily routines
  - mental (emotional state) entries, per-emotion profiles
  - playbooks, community shares, stars, leaderboard opt-in
  - laboratory experiments (+ images, linked trades) and recaps
  - mentor invites, per-account mentor permissions, mentor reviews
  - AuditLog: append-only audit trail
"""

from __future__ import annotations

import datetime as dt
import enum
import uuid
from datetime import UTC, date, datetime, time
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    Date,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
    Time,
    UniqueConstraint,
)
from sqlalchemy import Uuid as SAUuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from trade_journal.db.base import Base


def _utcnow() -> datetime:
    # Naive UTC timestamps; SQLite has no tz-aware column type.
    return datetime.now(tz=UTC).replace(tzinfo=None)


def _enum(cls: type[enum.Enum]) -> Enum:
    # Persist enum *values* ("Long", "A-Game") rather than member names.
    return Enum(
        cls,
        values_callable=lambda members: [m.value for m in members],
        native_enum=False,
        validate_strings=True,
    )


class UserRole(enum.StrEnum):
    admin = "admin"
    user = "user"
    guest = "guest"
    mentor = "mentor"


class UserStatus(enum.StrEnum):
    pending = "pending"
    approved = "approved"
    suspended = "suspended"
    banned = "banned"


class TradeDirection(enum.StrEnum):
    long = "Long"
    short = "Short"


class TradeOutcome(enum.StrEnum):
    win = "win"
    loss = "loss"
    breakeven = "breakeven"
    pending = "pending"


class MentorPermission(enum.StrEnum):
    view = "view"
    comment = "comment"


class InviteStatus(enum.StrEnum):
    pending = "pending"
    accepted = "accepted"
    rejected = "rejected"
    revoked = "revoked"


class ReviewType(enum.StrEnum):
    correction = "correction"
    comment = "comment"
    suggestion = "suggestion"


class MentalZone(enum.StrEnum):
    a_game = "A-Game"
    b_game = "B-Game"
    c_game = "C-Game"


class MentalSource(enum.StrEnum):
    grid = "grid"
    wizard = "wizard"


class ArgumentSide(enum.StrEnum):
    pro = "pro"
    contra = "contra"


class EmotionType(enum.StrEnum):
    fear = "fear"
    greed = "greed"
    fomo = "fomo"
    tilt = "tilt"
    revenge = "revenge"
    hesitation = "hesitation"
    overconfidence = "overconfidence"


class ExperimentStatus(enum.StrEnum):
    open = "open"
    testing = "testing"
    validated = "validated"
    invalidated = "invalidated"


class RecapType(enum.StrEnum):
    daily = "daily"
    weekly = "weekly"


def _uuid_pk() -> Mapped[uuid.UUID]:
    return mapped_column(SAUuid(as_uuid=True), primary_key=True, default=uuid.uuid4)


def _user_fk(*, nullable: bool = False, ondelete: str = "CASCADE") -> Mapped[Any]:
    return mapped_column(
        SAUuid(as_uuid=True),
        ForeignKey("users.id", ondelete=ondelete),
        nullable=nullable,
        index=True,
    )


class User(Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = _uuid_pk()
    email: Mapped[str] = mapped_column(String(320), nullable=False, unique=True)
    name: Mapped[str | None] = mapped_column(String(256), nullable=True)
    role: Mapped[UserRole] = mapped_column(_enum(UserRole), nullable=False, default=UserRole.user)
    status: Mapped[UserStatus] = mapped_column(
        _enum(UserStatus), nullable=False, default=UserStatus.pending, index=True
    )
    approved_at: Mapped[datetime | None] = mapped_column(nullable=True)
    approved_by: Mapped[uuid.UUID | None] = mapped_column(SAUuid(as_uuid=True), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    last_login_at: Mapped[datetime | None] = mapped_column(nullable=True)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow, onupdate=_utcnow)


class Account(Base):
    __tablename__ = "accounts"

    id: Mapped[uuid.UUID] = _uuid_pk()
    user_id: Mapped[uuid.UUID] = _user_fk()
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    currency: Mapped[str] = mapped_column(String(8), nullable=False, default="USD")
    initial_balance: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    current_balance: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    leverage: Mapped[str] = mapped_column(String(16), nullable=False, default="1:100")
    max_drawdown: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow, onupdate=_utcnow)


class UserSettings(Base):
    __tablename__ = "user_settings"

    user_id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    currencies: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    leverages: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    # symbol -> contract multiplier used for pnl computation
    assets: Mapped[dict[str, float]] = mapped_column(JSON, nullable=False, default=dict)
    strategies: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    setups: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow, onupdate=_utcnow)


class Trade(Base):
    __tablename__ = "trades"

    id: Mapped[uuid.UUID] = _uuid_pk()
    user_id: Mapped[uuid.UUID] = _user_fk()
    account_id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False
    )

    symbol: Mapped[str] = mapped_column(String(32), nullable=False)
    direction: Mapped[TradeDirection] = mapped_column(_enum(TradeDirection), nullable=False)
    entry_price: Mapped[float] = mapped_column(Float, nullable=False)
    stop_loss: Mapped[float | None] = mapped_column(Float, nullable=True)
    take_profit: Mapped[float | None] = mapped_column(Float, nullable=True)
    exit_price: Mapped[float | None] = mapped_column(Float, nullable=True)
    lot: Mapped[float] = mapped_column(Float, nullable=False)
    commission: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    swap: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)

    tf_analysis: Mapped[str | None] = mapped_column(String(16), nullable=True)
    tf_entry: Mapped[str | None] = mapped_column(String(16), nullable=True)
    tags: Mapped[str | None] = mapped_column(Text, nullable=True)
    strategy: Mapped[str | None] = mapped_column(String(128), nullable=True, index=True)
    setup: Mapped[str | None] = mapped_column(String(128), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    entry_date: Mapped[date] = mapped_column(Date, nullable=False)
    entry_time: Mapped[time | None] = mapped_column(Time, nullable=True)
    exit_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    exit_time: Mapped[time | None] = mapped_column(Time, nullable=True)

    pnl: Mapped[float | None] = mapped_column(Float, nullable=True)
    outcome: Mapped[TradeOutcome] = mapped_column(
        _enum(TradeOutcome), nullable=False, default=TradeOutcome.pending
    )

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow, onupdate=_utcnow)

    __table_args__ = (
        Index("ix_trades_account_entry", "account_id", "entry_date"),
        Index("ix_trades_user_entry", "user_id", "entry_date"),
    )


class TradeComment(Base):
    __tablename__ = "trade_comments"

    id: Mapped[uuid.UUID] = _uuid_pk()
    trade_id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), ForeignKey("trades.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[uuid.UUID] = _user_fk()
    content: Mapped[str] = mapped_column(Text, nullable=False)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow, index=True)
    updated_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow, onupdate=_utcnow)


def _link_table(name: str, owner_column: str, owner_table: str) -> Table:
    return Table(
        name,
        Base.metadata,
        Column(
            owner_column,
            SAUuid(as_uuid=True),
            ForeignKey(f"{owner_table}.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        Column(
            "trade_id",
            SAUuid(as_uuid=True),
            ForeignKey("trades.id", ondelete="CASCADE"),
            primary_key=True,
            index=True,
        ),
    )


# Extra trades referenced by a journal entry, next to its primary `trade_id`.
journal_entry_trades = _link_table("journal_entry_trades", "journal_entry_id", "journal_entries")
lab_recap_trades = _link_table("lab_recap_trades", "recap_id", "lab_recaps")


class JournalEntry(Base):
    __tablename__ = "journal_entries"

    id: Mapped[uuid.UUID] = _uuid_pk()
    user_id: Mapped[uuid.UUID] = _user_fk()
    account_id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False
    )
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    title: Mapped[str] = mapped_column(String(256), nullable=False)
    asset: Mapped[str | None] = mapped_column(String(32), nullable=True)
    trade_id: Mapped[uuid.UUID | None] = mapped_column(
        SAUuid(as_uuid=True), ForeignKey("trades.id", ondelete="SET NULL"), nullable=True
    )
    emotion: Mapped[str | None] = mapped_column(String(64), nullable=True)
    analysis: Mapped[str | None] = mapped_column(Text, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow, onupdate=_utcnow)

    images: Mapped[list[JournalImage]] = relationship(
        back_populates="journal_entry",
        cascade="all, delete-orphan",
        order_by="JournalImage.display_order",
        lazy="selectin",
    )
    linked_trades: Mapped[list[Trade]] = relationship(secondary=journal_entry_trades, lazy="selectin")

    __table_args__ = (Index("ix_journal_user_date", "user_id", "date"),)

    @property
    def trade_ids(self) -> list[uuid.UUID]:
        return [t.id for t in self.linked_trades]


class JournalImage(Base):
    __tablename__ = "journal_images"

    id: Mapped[uuid.UUID] = _uuid_pk()
    journal_entry_id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True),
        ForeignKey("journal_entries.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    url: Mapped[str] = mapped_column(String(1024), nullable=False)
    path: Mapped[str] = mapped_column(String(1024), nullable=False)
    timeframe: Mapped[str] = mapped_column(String(16), nullable=False, default="")
    display_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow)

    journal_entry: Mapped[JournalEntry] = relationship(back_populates="images")


class SharedJournal(Base):
    __tablename__ = "shared_journals"

    id: Mapped[uuid.UUID] = _uuid_pk()
    journal_entry_id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True),
        ForeignKey("journal_entries.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[uuid.UUID] = _user_fk()
    share_token: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), nullable=False, unique=True, default=uuid.uuid4
    )
    expires_at: Mapped[datetime] = mapped_column(nullable=False)
    view_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow)


class TradeArgument(Base):
    """
    One pro/contra argument weighed before (or after) taking a journaled trade.
    """

    __tablename__ = "trade_arguments"

    id: Mapped[uuid.UUID] = _uuid_pk()
    journal_entry_id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True),
        ForeignKey("journal_entries.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    side: Mapped[ArgumentSide] = mapped_column(_enum(ArgumentSide), nullable=False)
    argument: Mapped[str] = mapped_column(Text, nullable=False)
    weight: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow)


class DailyRoutine(Base):
    __tablename__ = "daily_routines"

    id: Mapped[uuid.UUID] = _uuid_pk()
    user_id: Mapped[uuid.UUID] = _user_fk()
    account_id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False
    )
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    aerobic: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    diet: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    reading: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    meditation: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    pre_market: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    prayer: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow, onupdate=_utcnow)

    __table_args__ = (UniqueConstraint("account_id", "date"),)


class MentalEntry(Base):
    __tablename__ = "mental_entries"

    id: Mapped[uuid.UUID] = _uuid_pk()
    user_id: Mapped[uuid.UUID] = _user_fk()
    trigger_event: Mapped[str | None] = mapped_column(Text, nullable=True)
    emotion: Mapped[str | None] = mapped_column(String(64), nullable=True)
    behavior: Mapped[str | None] = mapped_column(Text, nullable=True)
    mistake: Mapped[str | None] = mapped_column(Text, nullable=True)
    correction: Mapped[str | None] = mapped_column(Text, nullable=True)
    zone_detected: Mapped[MentalZone | None] = mapped_column(_enum(MentalZone), nullable=True)
    source: Mapped[MentalSource] = mapped_column(
        _enum(MentalSource), nullable=False, default=MentalSource.grid
    )

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow, index=True)


class EmotionalProfile(Base):
    __tablename__ = "emotional_profiles"

    id: Mapped[uuid.UUID] = _uuid_pk()
    user_id: Mapped[uuid.UUID] = _user_fk()
    emotion_type: Mapped[EmotionType] = mapped_column(_enum(EmotionType), nullable=False)
    first_sign: Mapped[str | None] = mapped_column(Text, nullable=True)
    corrective_actions: Mapped[str | None] = mapped_column(Text, nullable=True)
    injecting_logic: Mapped[str | None] = mapped_column(Text, nullable=True)
    # level label -> description, e.g. {"1": "irritated", "5": "revenge trading"}
    anger_levels: Mapped[dict[str, str]] = mapped_column(JSON, nullable=False, default=dict)
    technical_changes: Mapped[dict[str, str]] = mapped_column(JSON, nullable=False, default=dict)
    triggers: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    history: Mapped[str | None] = mapped_column(Text, nullable=True)
    occurrence_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_occurrence: Mapped[datetime | None] = mapped_column(nullable=True)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow, onupdate=_utcnow)

    __table_args__ = (UniqueConstraint("user_id", "emotion_type"),)


class Playbook(Base):
    __tablename__ = "playbooks"

    id: Mapped[uuid.UUID] = _uuid_pk()
    user_id: Mapped[uuid.UUID] = _user_fk()
    account_id: Mapped[uuid.UUID | None] = mapped_column(
        SAUuid(as_uuid=True), ForeignKey("accounts.id", ondelete="SET NULL"), nullable=True
    )
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    icon: Mapped[str] = mapped_column(String(32), nullable=False, default="book")
    color: Mapped[str] = mapped_column(String(16), nullable=False, default="#22c55e")
    # [{"id": str, "name": str, "rules": [str, ...]}, ...]
    rule_groups: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow, onupdate=_utcnow)


class SharedPlaybook(Base):
    __tablename__ = "shared_playbooks"

    id: Mapped[uuid.UUID] = _uuid_pk()
    playbook_id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True),
        ForeignKey("playbooks.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    user_id: Mapped[uuid.UUID] = _user_fk()
    is_public: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    stars: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    downloads: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow, onupdate=_utcnow)

    playbook: Mapped[Playbook] = relationship(lazy="joined")


class PlaybookStar(Base):
    __tablename__ = "playbook_stars"

    id: Mapped[uuid.UUID] = _uuid_pk()
    shared_playbook_id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True),
        ForeignKey("shared_playbooks.id", ondelete="CASCADE"),
        nullable=False,
    )
    user_id: Mapped[uuid.UUID] = _user_fk()

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow)

    __table_args__ = (UniqueConstraint("shared_playbook_id", "user_id"),)


class LeaderboardOptIn(Base):
    __tablename__ = "leaderboard_opt_in"

    user_id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    display_name: Mapped[str] = mapped_column(String(64), nullable=False)
    show_win_rate: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    show_profit_factor: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    show_total_trades: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    # PnL is sensitive; opt-in only.
    show_pnl: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow, onupdate=_utcnow)


class LabExperiment(Base):
    __tablename__ = "lab_experiments"

    id: Mapped[uuid.UUID] = _uuid_pk()
    user_id: Mapped[uuid.UUID] = _user_fk()
    title: Mapped[str] = mapped_column(String(256), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    experiment_type: Mapped[str | None] = mapped_column(String(64), nullable=True)
    status: Mapped[ExperimentStatus] = mapped_column(
        _enum(ExperimentStatus), nullable=False, default=ExperimentStatus.open
    )
    category: Mapped[str | None] = mapped_column(String(64), nullable=True)
    expected_win_rate: Mapped[float | None] = mapped_column(Float, nullable=True)
    expected_risk_reward: Mapped[float | None] = mapped_column(Float, nullable=True)
    promoted_to_playbook: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow, onupdate=_utcnow)

    images: Mapped[list[LabExperimentImage]] = relationship(
        cascade="all, delete-orphan",
        order_by="LabExperimentImage.uploaded_at",
        lazy="selectin",
    )


class LabExperimentImage(Base):
    __tablename__ = "lab_experiment_images"

    id: Mapped[uuid.UUID] = _uuid_pk()
    experiment_id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True),
        ForeignKey("lab_experiments.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    image_url: Mapped[str] = mapped_column(String(1024), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    uploaded_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow)


class LabExperimentTrade(Base):
    __tablename__ = "lab_experiment_trades"

    id: Mapped[uuid.UUID] = _uuid_pk()
    experiment_id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True),
        ForeignKey("lab_experiments.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    trade_id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), ForeignKey("trades.id", ondelete="CASCADE"), nullable=False
    )
    category: Mapped[ArgumentSide] = mapped_column(
        _enum(ArgumentSide), nullable=False, default=ArgumentSide.pro
    )

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow)

    trade: Mapped[Trade] = relationship(lazy="joined")

    __table_args__ = (UniqueConstraint("experiment_id", "trade_id"),)


class LabRecap(Base):
    __tablename__ = "lab_recaps"

    id: Mapped[uuid.UUID] = _uuid_pk()
    user_id: Mapped[uuid.UUID] = _user_fk()
    title: Mapped[str] = mapped_column(String(256), nullable=False)
    trade_id: Mapped[uuid.UUID | None] = mapped_column(
        SAUuid(as_uuid=True), ForeignKey("trades.id", ondelete="SET NULL"), nullable=True
    )
    what_worked: Mapped[str | None] = mapped_column(Text, nullable=True)
    what_failed: Mapped[str | None] = mapped_column(Text, nullable=True)
    emotional_state: Mapped[str | None] = mapped_column(Text, nullable=True)
    lessons_learned: Mapped[str | None] = mapped_column(Text, nullable=True)
    images: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    review_type: Mapped[RecapType] = mapped_column(_enum(RecapType), nullable=False, default=RecapType.daily)
    week_start_date: Mapped[dt.date | None] = mapped_column(Date, nullable=True)
    week_end_date: Mapped[dt.date | None] = mapped_column(Date, nullable=True)
    # Free-form pointer to what the recap reviews, e.g. ("journal", "<entry id>").
    linked_type: Mapped[str | None] = mapped_column(String(32), nullable=True)
    linked_id: Mapped[str | None] = mapped_column(String(64), nullable=True)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow, index=True)
    updated_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow, onupdate=_utcnow)

    linked_trades: Mapped[list[Trade]] = relationship(secondary=lab_recap_trades, lazy="selectin")

    @property
    def trade_ids(self) -> list[uuid.UUID]:
        return [t.id for t in self.linked_trades]


class MentorInvite(Base):
    __tablename__ = "mentor_invites"

    id: Mapped[uuid.UUID] = _uuid_pk()
    mentor_id: Mapped[uuid.UUID] = _user_fk()
    mentor_email: Mapped[str] = mapped_column(String(320), nullable=False)
    mentee_id: Mapped[uuid.UUID | None] = _user_fk(nullable=True, ondelete="SET NULL")
    mentee_email: Mapped[str] = mapped_column(String(320), nullable=False, index=True)
    permission: Mapped[MentorPermission] = mapped_column(
        _enum(MentorPermission), nullable=False, default=MentorPermission.view
    )
    status: Mapped[InviteStatus] = mapped_column(
        _enum(InviteStatus), nullable=False, default=InviteStatus.pending, index=True
    )
    invite_token: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), nullable=False, unique=True, default=uuid.uuid4
    )

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow)
    accepted_at: Mapped[datetime | None] = mapped_column(nullable=True)
    expires_at: Mapped[datetime] = mapped_column(nullable=False)

    account_permissions: Mapped[list[MentorAccountPermission]] = relationship(
        back_populates="invite", cascade="all, delete-orphan"
    )


class MentorAccountPermission(Base):
    __tablename__ = "mentor_account_permissions"

    id: Mapped[uuid.UUID] = _uuid_pk()
    invite_id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True),
        ForeignKey("mentor_invites.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    account_id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False
    )
    can_view_trades: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    can_view_journal: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    can_view_routines: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow, onupdate=_utcnow)

    invite: Mapped[MentorInvite] = relationship(back_populates="account_permissions")

    __table_args__ = (UniqueConstraint("invite_id", "account_id"),)


class MentorReview(Base):
    __tablename__ = "mentor_reviews"

    id: Mapped[uuid.UUID] = _uuid_pk()
    mentor_id: Mapped[uuid.UUID] = _user_fk()
    mentee_id: Mapped[uuid.UUID] = _user_fk()
    trade_id: Mapped[uuid.UUID | None] = mapped_column(
        SAUuid(as_uuid=True), ForeignKey("trades.id", ondelete="CASCADE"), nullable=True, index=True
    )
    journal_entry_id: Mapped[uuid.UUID | None] = mapped_column(
        SAUuid(as_uuid=True), ForeignKey("journal_entries.id", ondelete="SET NULL"), nullable=True
    )
    review_type: Mapped[ReviewType] = mapped_column(_enum(ReviewType), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    rating: Mapped[int | None] = mapped_column(Integer, nullable=True)
    is_read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, index=True)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow, onupdate=_utcnow)

    __table_args__ = (
        CheckConstraint("rating IS NULL OR (rating >= 1 AND rating <= 5)", name="rating_range"),
    )


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id: Mapped[uuid.UUID] = _uuid_pk()
    # Actor ids are kept as plain values so rows survive user deletion.
    user_id: Mapped[uuid.UUID] = mapped_column(SAUuid(as_uuid=True), nullable=False, index=True)
    actor_email: Mapped[str | None] = mapped_column(String(320), nullable=True)

    action: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    resource_type: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    resource_id: Mapped[str] = mapped_column(String(64), nullable=False)

    target_user_id: Mapped[uuid.UUID | None] = mapped_column(
        SAUuid(as_uuid=True), nullable=True, index=True
    )
    target_user_email: Mapped[str | None] = mapped_column(String(320), nullable=True)
    target_user_name: Mapped[str | None] = mapped_column(String(256), nullable=True)

    old_values: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    new_values: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)

    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    session_id: Mapped[str | None] = mapped_column(String(128), nullable=True)
    ip_address: Mapped[str | None] = mapped_column(String(64), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(String(512), nullable=True)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow, index=True)


# --- Module Notes -----------------------------------------------------------
# JSON columns (settings lists, rule groups, audit values) keep schemas flexible;
# validation happens at the API boundary with Pydantic models.
