"""Bulk import of risk rows into scored risk drafts."""

import re
from collections.abc import Iterable
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from risk_dashboard.config import get_settings
from risk_dashboard.ingestion.loaders import RowTuple, load_buffer, load_data
from risk_dashboard.ingestion.schemas import ImportResult, RiskDraft, RiskInput, RiskStatus
from risk_dashboard.logging import get_logger
from risk_dashboard.scoring.engine import build_risk_item, validate_risk_input

logger = get_logger(__name__)

# Normalized header -> RiskInput field
HEADER_ALIASES: dict[str, str] = {
    "description": "description",
    "riskdescription": "description",
    "risk": "description",
    "riskname": "description",
    "title": "description",
    "probability": "probability",
    "likelihood": "probability",
    "prob": "probability",
    "impact": "impact",
    "consequence": "impact",
    "mitigationeffectiveness": "mitigation_effectiveness",
    "effectiveness": "mitigation_effectiveness",
    "mitigation": "mitigation_effectiveness",
    "owner": "owner",
    "riskowner": "owner",
    "category": "category",
    "riskcategory": "category",
    "status": "status",
    "notes": "notes",
    "mitigationplan": "notes",
    "comments": "comments",
    "lessonslearned": "comments",
    "commentslessonslearned": "comments",
    "completiondate": "completion_date",
    "completedon": "completion_date",
}

STATUS_ALIASES: dict[str, RiskStatus] = {
    "open": RiskStatus.OPEN,
    "new": RiskStatus.OPEN,
    "inprogress": RiskStatus.IN_PROGRESS,
    "ongoing": RiskStatus.IN_PROGRESS,
    "mitigated": RiskStatus.MITIGATED,
    "closed": RiskStatus.CLOSED,
    "done": RiskStatus.CLOSED,
}


def normalize_header(header: str) -> str:
    """Reduce a column header to lowercase alphanumerics."""
    return re.sub(r"[^a-z0-9]", "", header.lower())


def map_columns(record: dict[str, Any]) -> dict[str, Any]:
    """Rename known spreadsheet columns to risk fields, dropping the rest.

    The first column that maps to a field wins.
    """
    mapped: dict[str, Any] = {}
    for header, value in record.items():
        field = HEADER_ALIASES.get(normalize_header(header))
        if field and field not in mapped:
            mapped[field] = value
    return mapped


def parse_rating(value: Any, label: str) -> int:
    """Parse a 1-9 style rating cell into an integer.

    Raises:
        ValueError: If the cell is blank, not numeric or not a whole number
    """
    if value is None:
        raise ValueError(f"{label} is required")

    try:
        number = float(str(value).strip())
    except ValueError:
        raise ValueError(f"{label} must be a number, got {value!r}") from None

    if not number.is_integer():
        raise ValueError(f"{label} must be a whole number, got {value!r}")

    return int(number)


def parse_effectiveness(value: Any, as_percent: bool = False) -> float | None:
    """Parse an effectiveness cell as a fraction.

    ``"30%"`` is always read as a percentage. Bare numbers are fractions
    unless ``as_percent`` is set.

    Raises:
        ValueError: If the cell is not numeric
    """
    if value is None:
        return None

    text = str(value).strip()
    percent = as_percent
    if text.endswith("%"):
        text = text[:-1].strip()
        percent = True

    try:
        number = float(text)
    except ValueError:
        raise ValueError(f"Mitigation effectiveness must be a number, got {value!r}") from None

    return number / 100 if percent else number


def parse_status(value: Any) -> RiskStatus | None:
    """Parse a status cell, tolerating case, spacing and separators.

    Raises:
        ValueError: If the status is not recognised
    """
    if value is None:
        return None

    status = STATUS_ALIASES.get(normalize_header(str(value)))
    if status is None:
        allowed = ", ".join(s.value for s in RiskStatus)
        raise ValueError(f"Unknown status {value!r} (expected one of: {allowed})")
    return status


def parse_completion_date(value: Any) -> date | None:
    """Parse a completion date cell (date, datetime or ISO string).

    Raises:
        ValueError: If the string is not an ISO date
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    text = str(value).strip()
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        raise ValueError(f"Completion date must be YYYY-MM-DD, got {value!r}") from None


def parse_risk_input(
    record: dict[str, Any],
    row_number: int | None = None,
    effectiveness_as_percent: bool | None = None,
) -> tuple[RiskInput | None, str | None]:
    """Parse an import row into raw risk fields.

    Every problem in the row is reported together.

    Args:
        record: Row as read by a loader
        row_number: Source row for error reporting
        effectiveness_as_percent: Read bare effectiveness numbers as percentages

    Returns:
        Tuple of (RiskInput or None, error_message or None)
    """
    if effectiveness_as_percent is None:
        effectiveness_as_percent = get_settings().import_.effectiveness_as_percent

    fields = map_columns(record)
    values: dict[str, Any] = {}
    problems: list[str] = []

    description = fields.get("description")
    if description is None or not str(description).strip():
        problems.append("Description is required")
    else:
        values["description"] = str(description).strip()

    parsers = [
        ("probability", lambda v: parse_rating(v, "Probability")),
        ("impact", lambda v: parse_rating(v, "Impact")),
        ("mitigation_effectiveness", lambda v: parse_effectiveness(v, effectiveness_as_percent)),
        ("status", parse_status),
        ("completion_date", parse_completion_date),
    ]
    for field, parser in parsers:
        try:
            values[field] = parser(fields.get(field))
        except ValueError as e:
            problems.append(str(e))

    for field in ("owner", "category", "notes", "comments"):
        if fields.get(field) is not None:
            values[field] = str(fields[field])

    if problems:
        return (None, _row_error(row_number, "; ".join(problems)))

    try:
        return (RiskInput(**values), None)
    except ValidationError as e:
        logger.warning("risk_row_validation_failed", row=row_number, error=str(e))
        return (None, _row_error(row_number, str(e)))


def _row_error(row_number: int | None, message: str) -> str:
    if row_number is None:
        return message
    return f"Row {row_number}: {message}"


def import_risks(
    rows: Iterable[RowTuple],
    now: datetime | None = None,
    reject_out_of_range: bool | None = None,
    max_rows: int | None = None,
) -> ImportResult:
    """Build scored risks from loader rows, collecting per-row errors.

    Malformed rows never abort the import; valid rows are still built.

    Args:
        rows: (row_number, record, load_error) tuples from a loader
        now: Timestamp for every imported risk; defaults to the current UTC time
        reject_out_of_range: Drop rows failing range validation instead of
            importing them with a warning. Defaults to config value.
        max_rows: Stop after this many rows. Defaults to config value.

    Returns:
        Import result with built drafts and error strings
    """
    settings = get_settings().import_
    if reject_out_of_range is None:
        reject_out_of_range = settings.reject_out_of_range
    if max_rows is None:
        max_rows = settings.max_rows

    stamp = now or datetime.now(timezone.utc)
    risks: list[RiskDraft] = []
    errors: list[str] = []
    rejected = 0
    rows_read = 0
    truncated = False

    logger.info("import_started", reject_out_of_range=reject_out_of_range)

    for row_number, record, load_error in rows:
        if rows_read >= max_rows:
            errors.append(f"Import stopped after {max_rows} rows")
            truncated = True
            logger.warning("import_truncated", max_rows=max_rows)
            break
        rows_read += 1

        if load_error:
            errors.append(_row_error(row_number, load_error))
            rejected += 1
            continue

        if record is None:
            continue

        raw, parse_error = parse_risk_input(record, row_number=row_number)
        if parse_error or raw is None:
            errors.append(parse_error or _row_error(row_number, "Unreadable row"))
            rejected += 1
            continue

        violations = validate_risk_input(raw)
        if violations:
            message = _row_error(row_number, "; ".join(violations))
            if reject_out_of_range:
                errors.append(message)
                rejected += 1
                continue
            errors.append(f"{message} (imported anyway)")

        risks.append(build_risk_item(raw, now=stamp))

    result = ImportResult(
        success=bool(risks) and rejected == 0 and not truncated,
        risks=risks,
        errors=errors,
        rows_read=rows_read,
    )

    logger.info(
        "import_completed",
        rows_read=rows_read,
        imported=len(risks),
        rejected=rejected,
        truncated=truncated,
    )

    return result


def import_file(path: str | Path, **kwargs: Any) -> ImportResult:
    """Import risks from a CSV, JSON, JSONL or Excel file."""
    return import_risks(load_data(path), **kwargs)


def import_upload(data: bytes, filename: str, **kwargs: Any) -> ImportResult:
    """Import risks from an uploaded file's bytes."""
    return import_risks(load_buffer(data, filename), **kwargs)
