"""
trade_journal.validation

Business-rule validation for trade input.

Responsibilities:
- Validate required fields, dates, prices and lot size of a trade.
- Separate blocking errors from non-blocking warnings (stop/target placement).
- Offer per-field checks for live form validation.

Pydantic handles shape and types at the API boundary; these rules cover what a
schema cannot express (cross-field ordering, configurable ranges).
"""

from __future__ import annotations

import enum
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import Any


class IssueCode(enum.StrEnum):
    required = "REQUIRED"
    invalid_format = "INVALID_FORMAT"
    out_of_range = "OUT_OF_RANGE"
    invalid_date = "INVALID_DATE"
    date_sequence = "DATE_SEQUENCE"
    invalid_price = "INVALID_PRICE"
    invalid_quantity = "INVALID_QUANTITY"
    warning = "WARNING"


REQUIRED_FIELDS: tuple[str, ...] = ("symbol", "direction", "entry_price", "lot", "entry_date")

FIELD_LABELS: dict[str, str] = {
    "direction": "Direction",
    "entry_price": "Entry price",
    "exit_price": "Exit price",
    "stop_loss": "Stop loss",
    "take_profit": "Take profit",
    "lot": "Lot",
    "entry_date": "Entry date",
    "entry_time": "Entry time",
    "exit_date": "Exit date",
    "exit_time": "Exit time",
    "symbol": "Symbol",
}

DATE_SEQUENCE_MESSAGE = "Exit date/time must be equal to or after the entry"


@dataclass(frozen=True, slots=True)
class ValidationConfig:
    min_year: int = 2000
    max_year: int | None = None
    max_lot_size: float = 1000

    @property
    def effective_max_year(self) -> int:
        return self.max_year if self.max_year is not None else date.today().year + 1


@dataclass(frozen=True, slots=True)
class ValidationIssue:
    field: str
    message: str
    code: IssueCode

    @property
    def is_warning(self) -> bool:
        return self.code is IssueCode.warning

    def to_dict(self) -> dict[str, Any]:
        return {"field": self.field, "message": self.message, "code": self.code.value}


@dataclass(slots=True)
class ValidationResult:
    errors: list[ValidationIssue] = field(default_factory=list)
    warnings: list[ValidationIssue] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def to_dict(self) -> dict[str, Any]:
        return {
            "is_valid": self.is_valid,
            "errors": [e.to_dict() for e in self.errors],
            "warnings": [w.to_dict() for w in self.warnings],
        }


DEFAULT_CONFIG = ValidationConfig()


def _label(name: str) -> str:
    return FIELD_LABELS.get(name, name)


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == "")


def _parse_number(value: Any) -> float | None:
    if _blank(value) or isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        return float(value)
    try:
        return float(str(value).strip())
    except ValueError:
        return None


def _parse_datetime(day: Any, at: Any) -> datetime | None:
    try:
        d = day if isinstance(day, date) else date.fromisoformat(str(day).strip())
        if _blank(at):
            t = time(0, 0)
        else:
            t = at if isinstance(at, time) else time.fromisoformat(str(at).strip())
    except ValueError:
        return None
    return datetime.combine(d, t)


def _same_day(a: Any, b: Any) -> bool:
    return str(a).strip()[:10] == str(b).strip()[:10]


def validate_dates(
    entry_date: Any,
    entry_time: Any,
    exit_date: Any,
    exit_time: Any,
    config: ValidationConfig = DEFAULT_CONFIG,
) -> list[ValidationIssue]:
    issues: list[ValidationIssue] = []
    lo, hi = config.min_year, config.effective_max_year

    if _blank(entry_date):
        return [ValidationIssue("entry_date", f"{_label('entry_date')} is required", IssueCode.required)]

    entry_at = _parse_datetime(entry_date, entry_time)
    if entry_at is None:
        return [
            ValidationIssue("entry_date", f"{_label('entry_date')} is not a valid date", IssueCode.invalid_date)
        ]

    if not lo <= entry_at.year <= hi:
        issues.append(
            ValidationIssue(
                "entry_date",
                f"{_label('entry_date')} must be between {lo} and {hi}",
                IssueCode.out_of_range,
            )
        )

    if _blank(exit_date):
        return issues

    exit_at = _parse_datetime(exit_date, exit_time)
    if exit_at is None:
        issues.append(
            ValidationIssue("exit_date", f"{_label('exit_date')} is not a valid date", IssueCode.invalid_date)
        )
        return issues

    if not lo <= exit_at.year <= hi:
        issues.append(
            ValidationIssue(
                "exit_date",
                f"{_label('exit_date')} must be between {lo} and {hi}",
                IssueCode.out_of_range,
            )
        )
    if exit_at < entry_at:
        issues.append(ValidationIssue("exit_date", DATE_SEQUENCE_MESSAGE, IssueCode.date_sequence))
        # Same calendar day: the offending value is the time.
        if _same_day(exit_date, entry_date):
            issues.append(ValidationIssue("exit_time", DATE_SEQUENCE_MESSAGE, IssueCode.date_sequence))
    return issues


def _check_price(name: str, raw: Any, errors: list[ValidationIssue]) -> float | None:
    if _blank(raw):
        return None
    value = _parse_number(raw)
    if value is None:
        errors.append(
            ValidationIssue(name, f"{_label(name)} must be a valid number", IssueCode.invalid_format)
        )
        return None
    if value <= 0:
        errors.append(
            ValidationIssue(name, f"{_label(name)} must be greater than zero", IssueCode.invalid_price)
        )
    return value


def validate_prices(
    entry_price: Any,
    exit_price: Any,
    stop_loss: Any,
    take_profit: Any,
    direction: Any,
) -> tuple[list[ValidationIssue], list[ValidationIssue]]:
    errors: list[ValidationIssue] = []
    warnings: list[ValidationIssue] = []

    entry = _check_price("entry_price", entry_price, errors)
    _check_price("exit_price", exit_price, errors)
    sl = _check_price("stop_loss", stop_loss, errors)
    tp = _check_price("take_profit", take_profit, errors)

    if entry is None or entry <= 0:
        return errors, warnings

    sl = sl if sl is not None and sl > 0 else None
    tp = tp if tp is not None and tp > 0 else None
    if direction == "Long":
        if sl is not None and sl >= entry:
            warnings.append(
                ValidationIssue("stop_loss", "Stop loss is above the entry price (Long)", IssueCode.warning)
            )
        if tp is not None and tp <= entry:
            warnings.append(
                ValidationIssue("take_profit", "Take profit is below the entry price (Long)", IssueCode.warning)
            )
    elif direction == "Short":
        if sl is not None and sl <= entry:
            warnings.append(
                ValidationIssue("stop_loss", "Stop loss is below the entry price (Short)", IssueCode.warning)
            )
        if tp is not None and tp >= entry:
            warnings.append(
                ValidationIssue("take_profit", "Take profit is above the entry price (Short)", IssueCode.warning)
            )
    return errors, warnings


def validate_quantity(lot: Any, config: ValidationConfig = DEFAULT_CONFIG) -> list[ValidationIssue]:
    if _blank(lot):
        return [ValidationIssue("lot", f"{_label('lot')} is required", IssueCode.required)]
    value = _parse_number(lot)
    if value is None:
        return [ValidationIssue("lot", f"{_label('lot')} must be a valid number", IssueCode.invalid_format)]
    if value <= 0:
        return [ValidationIssue("lot", "Lot must be greater than zero", IssueCode.invalid_quantity)]
    if value > config.max_lot_size:
        return [
            ValidationIssue(
                "lot",
                f"{_label('lot')} must be between 0 and {config.max_lot_size:g}",
                IssueCode.out_of_range,
            )
        ]
    return []


def validate_required(values: Mapping[str, Any]) -> list[ValidationIssue]:
    return [
        ValidationIssue(name, f"{_label(name)} is required", IssueCode.required)
        for name in REQUIRED_FIELDS
        if _blank(values.get(name)) or values.get(name) == 0
    ]


def validate_field(
    name: str,
    value: Any,
    values: Mapping[str, Any] | None = None,
    config: ValidationConfig = DEFAULT_CONFIG,
) -> list[ValidationIssue]:
    if name in ("entry_date", "entry_time", "exit_date", "exit_time"):
        if values is None:
            return []
        issues = validate_dates(
            values.get("entry_date"),
            values.get("entry_time"),
            values.get("exit_date"),
            values.get("exit_time"),
            config,
        )
        return [i for i in issues if i.field == name]
    if name in ("entry_price", "exit_price", "stop_loss", "take_profit"):
        if values is None:
            return []
        errors, warnings = validate_prices(
            values.get("entry_price"),
            values.get("exit_price"),
            values.get("stop_loss"),
            values.get("take_profit"),
            values.get("direction"),
        )
        return [i for i in [*errors, *warnings] if i.field == name]
    if name == "lot":
        return validate_quantity(value, config)
    if name in ("symbol", "direction") and _blank(value):
        return [ValidationIssue(name, f"{_label(name)} is required", IssueCode.required)]
    return []


def validate_trade(values: Mapping[str, Any], config: ValidationConfig = DEFAULT_CONFIG) -> ValidationResult:
    """
    Run every rule; errors are de-duplicated on (field, code), first occurrence wins.
    """

    errors: list[ValidationIssue] = [*validate_required(values)]
    errors += validate_dates(
        values.get("entry_date"),
        values.get("entry_time"),
        values.get("exit_date"),
        values.get("exit_time"),
        config,
    )
    price_errors, warnings = validate_prices(
        values.get("entry_price"),
        values.get("exit_price"),
        values.get("stop_loss"),
        values.get("take_profit"),
        values.get("direction"),
    )
    errors += price_errors
    errors += validate_quantity(values.get("lot"), config)

    seen: set[tuple[str, IssueCode]] = set()
    unique: list[ValidationIssue] = []
    for issue in errors:
        key = (issue.field, issue.code)
        if key not in seen:
            seen.add(key)
            unique.append(issue)

    return ValidationResult(errors=unique, warnings=warnings)
