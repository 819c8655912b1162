"""
trade_journal.analytics.timeframes

Timeframe alignment, trading sessions and R-multiples.

Responsibilities:
- Normalise broker-style timeframe labels (H4, M15, D1...) to one vocabulary.
- Classify analysis/entry timeframe pairs (3-state alignment + top-down validation).
- Detect the trading session of an entry time.
- Compute and format R-multiples.
"""

from __future__ import annotations

import enum
import math
import re
from dataclasses import asdict, dataclass
from datetime import time
from typing import Any


class AlignmentStatus(enum.StrEnum):
    aligned = "ST_ALIGNED"
    re_aligned = "ST_RE_ALIGNED"
    plus_alert = "ST_RE_PLUS_ALERT"


class TradingSession(enum.StrEnum):
    tokyo = "Tokyo"
    london = "London"
    new_york = "New York"
    overlap = "London-NY Overlap"
    sydney = "Sydney"
    off_hours = "Off-Hours"


_LABELS: dict[AlignmentStatus, str] = {
    AlignmentStatus.aligned: "ST Aligned",
    AlignmentStatus.re_aligned: "ST + RE Aligned",
    AlignmentStatus.plus_alert: "ST + RE + …",
}

_NORMALIZATIONS: dict[str, str] = {
    "H4": "4H",
    "H1": "1H",
    "4H": "4H",
    "1H": "1H",
    "M15": "15m",
    "M5": "5m",
    "M1": "1m",
    "M30": "30m",
    "M3": "3m",
    "15M": "15m",
    "5M": "5m",
    "1M": "1m",
    "30M": "30m",
    "3M": "3m",
    "D": "Daily",
    "D1": "Daily",
    "DAILY": "Daily",
    "W": "Weekly",
    "W1": "Weekly",
    "WEEKLY": "Weekly",
    "MN": "Monthly",
    "MONTHLY": "Monthly",
}

_MINUTES_RE = re.compile(r"^\d+m$", re.IGNORECASE)

_A, _R, _P = AlignmentStatus.aligned, AlignmentStatus.re_aligned, AlignmentStatus.plus_alert
_HTF_LOWER = {"1H": _P, "15m": _P, "5m": _P, "1m": _P}

# Context (PD array) timeframe -> entry timeframe -> status.
_ALIGNMENT_MAP: dict[str, dict[str, AlignmentStatus]] = {
    "Monthly": {"Daily": _A, "4H": _R, **_HTF_LOWER},
    "Weekly": {"Daily": _A, "4H": _R, **_HTF_LOWER},
    "Daily": {"4H": _A, "1H": _R, "15m": _P, "5m": _P, "1m": _P},
    "4H": {"1H": _A, "15m": _R, "5m": _P, "1m": _P},
    "1H": {"15m": _A, "5m": _R, "1m": _P},
    "15m": {"5m": _A, "1m": _R},
    "5m": {"1m": _A},
}

# Analysis timeframe -> highest entry timeframe that still counts as top-down.
_RECOMMENDED_ENTRY: dict[str, str] = {
    "Monthly": "4H",
    "Weekly": "1H",
    "Daily": "15m",
    "4H": "5m",
    "1H": "1m",
    "15m": "1m",
}

_HIERARCHY: dict[str, int] = {
    "1m": 1,
    "3m": 2,
    "5m": 3,
    "15m": 4,
    "30m": 5,
    "1H": 6,
    "4H": 7,
    "Daily": 8,
    "Weekly": 9,
    "Monthly": 10,
}
_HTF_MIN_RANK = _HIERARCHY["4H"]


@dataclass(frozen=True, slots=True)
class TimeframeAlignment:
    status: AlignmentStatus
    label: str
    is_warning: bool

    def to_dict(self) -> dict[str, Any]:
        return {"status": self.status.value, "label": self.label, "is_warning": self.is_warning}


@dataclass(frozen=True, slots=True)
class AlignmentResult:
    valid: bool
    classification: str
    message: str
    recommended_entry_tf: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def normalize_timeframe(tf: str | None) -> str | None:
    if not tf:
        return tf
    trimmed = tf.strip()
    upper = trimmed.upper()
    if trimmed in _NORMALIZATIONS:
        return _NORMALIZATIONS[trimmed]
    if upper in _NORMALIZATIONS:
        return _NORMALIZATIONS[upper]
    if trimmed in ("Daily", "Weekly", "Monthly"):
        return trimmed
    if _MINUTES_RE.match(trimmed):
        return trimmed.lower()
    return tf


def get_timeframe_alignment(pd_array_tf: str, entry_tf: str) -> TimeframeAlignment:
    htf = normalize_timeframe(pd_array_tf) or ""
    ltf = normalize_timeframe(entry_tf) or ""
    status = _ALIGNMENT_MAP.get(htf, {}).get(ltf, AlignmentStatus.plus_alert)
    return TimeframeAlignment(
        status=status,
        label=_LABELS[status],
        is_warning=status is AlignmentStatus.plus_alert,
    )


def _rank(tf: str | None) -> int | None:
    return _HIERARCHY.get(normalize_timeframe(tf) or "")


def classify_timeframe(tf: str) -> str:
    rank = _rank(tf)
    if rank is None:
        return "LTF"
    return "HTF" if rank >= _HTF_MIN_RANK else "LTF"


def recommended_entry_timeframe(analysis_tf: str) -> str:
    return _RECOMMENDED_ENTRY.get(normalize_timeframe(analysis_tf) or "", "5m")


def validate_alignment(analysis_tf: str | None, entry_tf: str | None) -> AlignmentResult:
    """
    Check that the entry timeframe sits below (and close enough to) the analysis one.
    """

    if not analysis_tf or not entry_tf:
        return AlignmentResult(False, "Invalid", "Timeframes are not defined", "")

    analysis_rank = _rank(analysis_tf)
    entry_rank = _rank(entry_tf)
    recommended = recommended_entry_timeframe(analysis_tf)

    if analysis_rank is None or entry_rank is None:
        return AlignmentResult(False, "Invalid", "Unrecognised timeframe", recommended)
    if analysis_rank == entry_rank:
        return AlignmentResult(
            False, "Same TF", "Use different timeframes for analysis and entry", recommended
        )
    if entry_rank >= analysis_rank:
        return AlignmentResult(
            False, "Invalid", f"Entry TF must be lower than {analysis_tf}", recommended
        )
    if entry_rank <= _HIERARCHY[recommended]:
        return AlignmentResult(
            True,
            "Top-Down Analysis",
            f"Aligned: {analysis_tf} -> {entry_tf}",
            recommended,
        )
    return AlignmentResult(
        False, "LTF Only", f"Entry TF too high. Maximum: {recommended}", recommended
    )


def _hour_of(value: time | str | None) -> int | None:
    if value is None or value == "":
        return None
    if isinstance(value, time):
        return value.hour
    try:
        return int(str(value).split(":")[0])
    except ValueError:
        return None


def detect_session(entry_time: time | str | None, tz_offset_hours: int = -3) -> TradingSession:
    """
    Map a local entry time to a trading session (session windows are in UTC).
    """

    hour = _hour_of(entry_time)
    if hour is None:
        return TradingSession.off_hours

    utc_hour = (hour - tz_offset_hours) % 24

    # Ordered by priority; the overlap wins over both of its parent sessions.
    if 12 <= utc_hour < 16:
        return TradingSession.overlap
    if 12 <= utc_hour < 21:
        return TradingSession.new_york
    if 7 <= utc_hour < 16:
        return TradingSession.london
    if 0 <= utc_hour < 9:
        return TradingSession.tokyo
    if utc_hour >= 21 or utc_hour < 6:
        return TradingSession.sydney
    return TradingSession.off_hours


def calculate_r_multiple(
    entry_price: float | None,
    exit_price: float | None,
    stop_loss: float | None,
    direction: str,
) -> float | None:
    if not entry_price or not exit_price or not stop_loss:
        return None
    if direction == "Long":
        risk = entry_price - stop_loss
        profit = exit_price - entry_price
    else:
        risk = stop_loss - entry_price
        profit = entry_price - exit_price
    if risk <= 0:
        return None
    # Halves round up, so 0.125 becomes 0.13.
    return math.floor(profit / risk * 100 + 0.5) / 100


def format_r_multiple(r_multiple: float | None) -> str:
    if r_multiple is None:
        return "-"
    sign = "+" if r_multiple >= 0 else ""
    return f"{sign}{r_multiple:.2f}R"


_TZ_SUFFIX_RE = re.compile(r"[+-]\d{2}:\d{2}$")


def ensure_utc(value: str) -> str:
    if not value or value.endswith("Z") or _TZ_SUFFIX_RE.search(value):
        return value
    if "T" in value:
        return value + "Z"
    return value
