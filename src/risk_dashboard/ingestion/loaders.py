"""Row loaders for CSV, JSON Lines and Excel risk registers."""

import csv
import io
import json
import math
from pathlib import Path
from typing import Any, Generator, IO

import pandas as pd

from risk_dashboard.logging import get_logger

logger = get_logger(__name__)

RowTuple = tuple[int, dict[str, Any] | None, str | None]

JSON_SUFFIXES = [".jsonl", ".ndjson", ".json"]
CSV_SUFFIXES = [".csv"]
EXCEL_SUFFIXES = [".xlsx", ".xls"]
SUPPORTED_SUFFIXES = JSON_SUFFIXES + CSV_SUFFIXES + EXCEL_SUFFIXES


def _clean_cell(value: Any) -> Any:
    """Map spreadsheet blanks (NaN, NaT, empty strings) to None."""
    if value is None:
        return None
    if isinstance(value, float) and math.isnan(value):
        return None
    if value is pd.NaT:
        return None
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


def _clean_record(record: dict[Any, Any]) -> dict[str, Any]:
    return {
        str(key).strip(): _clean_cell(value)
        for key, value in record.items()
        if key is not None and str(key).strip()
    }


def _iter_jsonl(
    stream: IO[str],
    skip_errors: bool,
) -> Generator[RowTuple, None, None]:
    for line_num, line in enumerate(stream, start=1):
        line = line.strip()
        if not line:
            continue

        try:
            record = json.loads(line)
        except json.JSONDecodeError as e:
            if skip_errors:
                yield (line_num, None, f"JSON decode error: {e}")
                continue
            raise

        if not isinstance(record, dict):
            if skip_errors:
                yield (line_num, None, "JSON record must be an object")
                continue
            raise ValueError(f"Line {line_num}: JSON record must be an object")

        yield (line_num, _clean_record(record), None)


def _iter_json_array(
    records: Any,
    skip_errors: bool,
) -> Generator[RowTuple, None, None]:
    if isinstance(records, dict):
        records = records.get("risks", [records])
    if not isinstance(records, list):
        records = [records]

    for index, record in enumerate(records, start=1):
        if isinstance(record, dict):
            yield (index, _clean_record(record), None)
        elif skip_errors:
            yield (index, None, "JSON record must be an object")
        else:
            raise ValueError(f"Record {index}: JSON record must be an object")


def _iter_json_text(
    text: str,
    skip_errors: bool,
) -> Generator[RowTuple, None, None]:
    """Read a JSON array, a {"risks": [...]} document, or JSON Lines."""
    stripped = text.lstrip()

    if stripped.startswith("[") or stripped.startswith("{"):
        try:
            document = json.loads(stripped)
        except json.JSONDecodeError as e:
            if stripped.startswith("["):
                if skip_errors:
                    yield (1, None, f"JSON decode error: {e}")
                    return
                raise
        else:
            yield from _iter_json_array(document, skip_errors)
            return

    # One object per line
    yield from _iter_jsonl(io.StringIO(text), skip_errors)


def _iter_csv(
    stream: IO[str],
    skip_errors: bool,
) -> Generator[RowTuple, None, None]:
    reader = csv.DictReader(stream)

    for row in reader:
        # Line on which the record ends; blank lines are skipped by the reader
        line_num = reader.line_num

        # DictReader stores overflow cells under a None key
        if None in row:
            message = "CSV row has more cells than the header"
            if skip_errors:
                yield (line_num, None, message)
                continue
            raise ValueError(f"Line {line_num}: {message}")

        record = _clean_record(row)
        if not any(v is not None for v in record.values()):
            continue

        yield (line_num, record, None)


def _iter_dataframe(df: pd.DataFrame) -> Generator[RowTuple, None, None]:
    df = df.dropna(how="all")

    for index, row in df.iterrows():
        # Spreadsheet row numbers: header is row 1
        yield (int(index) + 2, _clean_record(row.to_dict()), None)


def load_jsonl(
    file_path: str | Path,
    skip_errors: bool = True,
) -> Generator[RowTuple, None, None]:
    """Load records from a JSONL file.

    Args:
        file_path: Path to JSONL file
        skip_errors: If True, yield error info instead of raising

    Yields:
        Tuples of (line_number, record_dict or None, error_message or None)
    """
    file_path = Path(file_path)
    logger.info("loading_jsonl", path=str(file_path))

    with open(file_path, "r", encoding="utf-8") as f:
        yield from _iter_jsonl(f, skip_errors)


def load_json(
    file_path: str | Path,
    skip_errors: bool = True,
) -> Generator[RowTuple, None, None]:
    """Load records from a JSON file holding an array, a {"risks": [...]}
    document, or JSON Lines."""
    file_path = Path(file_path)
    logger.info("loading_json", path=str(file_path))

    yield from _iter_json_text(file_path.read_text(encoding="utf-8"), skip_errors)


def load_csv(
    file_path: str | Path,
    skip_errors: bool = True,
) -> Generator[RowTuple, None, None]:
    """Load records from a CSV file.

    Args:
        file_path: Path to CSV file
        skip_errors: If True, yield error info instead of raising

    Yields:
        Tuples of (line_number, record_dict or None, error_message or None)
    """
    file_path = Path(file_path)
    logger.info("loading_csv", path=str(file_path))

    with open(file_path, "r", encoding="utf-8-sig", newline="") as f:
        yield from _iter_csv(f, skip_errors)


def load_excel(
    file_path: str | Path | IO[bytes],
    sheet_name: str | int = 0,
) -> Generator[RowTuple, None, None]:
    """Load records from the first (or named) sheet of an Excel workbook.

    Args:
        file_path: Path or binary stream of the workbook
        sheet_name: Sheet to read

    Yields:
        Tuples of (row_number, record_dict, None)
    """
    logger.info("loading_excel", path=str(getattr(file_path, "name", file_path)))

    df = pd.read_excel(file_path, sheet_name=sheet_name, dtype=object)
    yield from _iter_dataframe(df)


def load_data(
    file_path: str | Path,
    skip_errors: bool = True,
) -> Generator[RowTuple, None, None]:
    """Load records from a data file (auto-detect format).

    Args:
        file_path: Path to data file (CSV, JSON, JSONL or Excel)
        skip_errors: If True, yield error info instead of raising

    Yields:
        Tuples of (row_number, record_dict or None, error_message or None)
    """
    file_path = Path(file_path)
    suffix = file_path.suffix.lower()

    if suffix in [".jsonl", ".ndjson"]:
        yield from load_jsonl(file_path, skip_errors)
    elif suffix == ".json":
        yield from load_json(file_path, skip_errors)
    elif suffix in CSV_SUFFIXES:
        yield from load_csv(file_path, skip_errors)
    elif suffix in EXCEL_SUFFIXES:
        yield from load_excel(file_path)
    else:
        raise ValueError(f"Unsupported file format: {suffix}")


def load_buffer(
    data: bytes,
    filename: str,
    skip_errors: bool = True,
) -> Generator[RowTuple, None, None]:
    """Load records from an uploaded file's bytes, using its name for the format.

    Args:
        data: Raw file content
        filename: Original file name
        skip_errors: If True, yield error info instead of raising

    Yields:
        Tuples of (row_number, record_dict or None, error_message or None)
    """
    suffix = Path(filename).suffix.lower()
    logger.info("loading_upload", filename=filename, size=len(data))

    if suffix in EXCEL_SUFFIXES:
        yield from load_excel(io.BytesIO(data))
        return

    if suffix not in SUPPORTED_SUFFIXES:
        raise ValueError(f"Unsupported file format: {suffix}")

    text = data.decode("utf-8-sig", errors="replace")

    if suffix in CSV_SUFFIXES:
        yield from _iter_csv(io.StringIO(text, newline=""), skip_errors)
    elif suffix == ".json":
        yield from _iter_json_text(text, skip_errors)
    else:
        yield from _iter_jsonl(io.StringIO(text), skip_errors)
