from __future__ import annotations

from trade_journal.validation import (
    DATE_SEQUENCE_MESSAGE,
    IssueCode,
    ValidationConfig,
    validate_field,
    validate_trade,
)


def _valid(**overrides) -> dict:
    values = {
        "symbol": "EURUSD",
        "direction": "Long",
        "entry_price": "1.10",
        "lot": 1,
        "entry_date": "2024-03-01",
        "entry_time": "10:00",
    }
    values.update(overrides)
    return values


def _codes(issues) -> set[tuple[str, str]]:
    return {(i.field, i.code.value) for i in issues}


def test_valid_trade() -> None:
    result = validate_trade(_valid(exit_price=1.2, exit_date="2024-03-01", exit_time="11:00"))
    assert result.is_valid
    assert result.to_dict() == {"is_valid": True, "errors": [], "warnings": []}


def test_missing_required_fields() -> None:
    result = validate_trade({})
    assert ("symbol", "REQUIRED") in _codes(result.errors)
    assert ("entry_date", "REQUIRED") in _codes(result.errors)
    # Required issues are de-duplicated per field.
    assert sum(1 for e in result.errors if e.field == "lot") == 1


def test_exit_before_entry_same_day_flags_time() -> None:
    result = validate_trade(_valid(exit_date="2024-03-01", exit_time="09:00"))
    assert ("exit_date", "DATE_SEQUENCE") in _codes(result.errors)
    assert ("exit_time", "DATE_SEQUENCE") in _codes(result.errors)
    assert result.errors[-1].message == DATE_SEQUENCE_MESSAGE


def test_exit_before_entry_on_earlier_day() -> None:
    result = validate_trade(_valid(exit_date="2024-02-28"))
    assert _codes(result.errors) == {("exit_date", "DATE_SEQUENCE")}


def test_year_range() -> None:
    config = ValidationConfig(min_year=2010, max_year=2030)
    result = validate_trade(_valid(entry_date="2005-01-01"), config)
    assert ("entry_date", "OUT_OF_RANGE") in _codes(result.errors)


def test_invalid_date() -> None:
    result = validate_trade(_valid(entry_date="2024-13-45"))
    assert ("entry_date", "INVALID_DATE") in _codes(result.errors)


def test_prices() -> None:
    result = validate_trade(_valid(entry_price="abc", stop_loss=-1))
    assert ("entry_price", "INVALID_FORMAT") in _codes(result.errors)
    assert ("stop_loss", "INVALID_PRICE") in _codes(result.errors)


def test_stop_placement_is_a_warning() -> None:
    result = validate_trade(_valid(stop_loss=1.2, take_profit=1.0))
    assert result.is_valid
    assert _codes(result.warnings) == {("stop_loss", "WARNING"), ("take_profit", "WARNING")}
    assert all(w.is_warning for w in result.warnings)


def test_short_warnings() -> None:
    result = validate_trade(_valid(direction="Short", stop_loss=1.0, take_profit=1.2))
    assert {w.field for w in result.warnings} == {"stop_loss", "take_profit"}


def test_lot_limits() -> None:
    assert _codes(validate_trade(_valid(lot=5000)).errors) == {("lot", "OUT_OF_RANGE")}
    zero = validate_trade(_valid(lot=0))
    assert ("lot", "INVALID_QUANTITY") in _codes(zero.errors)


def test_validate_single_field() -> None:
    assert validate_field("lot", "abc")[0].code is IssueCode.invalid_format
    assert validate_field("symbol", "  ")[0].code is IssueCode.required
    assert validate_field("notes", "anything") == []


def test_validate_field_with_context() -> None:
    values = _valid(exit_date="2024-03-01", exit_time="09:00")
    issues = validate_field("exit_time", "09:00", values)
    assert [i.field for i in issues] == ["exit_time"]
    assert validate_field("exit_time", "09:00") == []
