"""Loads spreadsheet and CSV files into column names and row records."""
import csv
import io
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, BinaryIO, Iterable, List, Optional, Sequence, Union
from zipfile import BadZipFile

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from formfill.domain.exceptions import TabularSourceError
from formfill.domain.models import Column, RowData
from formfill.logger import get_logger
from formfill.utils.text import is_blank

logger = get_logger(__name__)

Source = Union[str, Path, BinaryIO]
SPREADSHEET_SUFFIXES = (".xlsx", ".xlsm")
CSV_SUFFIXES = (".csv", ".txt")


@dataclass
class TabularData:
    """Parsed dataset: ordered column names and blank-filtered rows."""
    columns: List[str]
    rows: List[RowData] = field(default_factory=list)
    sheet_name: Optional[str] = None

    @property
    def row_count(self) -> int:
        return len(self.rows)

    def column(self, name: str) -> Column:
        if name not in self.columns:
            raise KeyError(name)
        return Column(name=name, values=tuple(row.get(name, "") for row in self.rows))

    def sample(self, size: int = 10) -> List[RowData]:
        return self.rows[:size]


def _header_names(raw: Sequence[Any]) -> List[str]:
    """Header row to unique column names (blank -> __EMPTY, duplicates -> Name_1)."""
    names: List[str] = []
    used = set()
    for value in raw:
        base = "__EMPTY" if is_blank(value) else str(value).strip()
        name, suffix = base, 0
        while name in used:
            suffix += 1
            name = f"{base}_{suffix}"
        used.add(name)
        names.append(name)
    return names


def _cell_value(value: Any) -> Any:
    if value is None:
        return ""
    if isinstance(value, datetime) and value.time() == datetime.min.time():
        return value.date()
    return value


def _build(raw_rows: Iterable[Sequence[Any]], sheet_name: Optional[str]) -> TabularData:
    raw_rows = iter(raw_rows)
    header = next(raw_rows, None)
    if header is None:
        return TabularData(columns=[], rows=[], sheet_name=sheet_name)

    columns = _header_names(header)
    rows: List[RowData] = []
    for raw in raw_rows:
        values = list(raw)[: len(columns)]
        values += [""] * (len(columns) - len(values))
        row = {column: _cell_value(value) for column, value in zip(columns, values)}
        if any(not is_blank(value) for value in row.values()):
            rows.append(row)
    return TabularData(columns=columns, rows=rows, sheet_name=sheet_name)


def _suffix(source: Source, filename: Optional[str]) -> str:
    name = filename or (str(source) if isinstance(source, (str, Path)) else getattr(source, "name", ""))
    return Path(str(name)).suffix.lower()


def list_sheets(source: Source) -> List[str]:
    """Sheet names of a workbook."""
    try:
        workbook = load_workbook(source, read_only=True)
    except (InvalidFileException, BadZipFile, OSError, KeyError, ValueError) as e:
        raise TabularSourceError(f"Cannot open workbook: {e}")
    try:
        return list(workbook.sheetnames)
    finally:
        workbook.close()


def _load_workbook_rows(source: Source, sheet: Optional[str]) -> TabularData:
    try:
        workbook = load_workbook(source, read_only=True, data_only=True)
    except (InvalidFileException, BadZipFile, OSError, KeyError, ValueError) as e:
        raise TabularSourceError(f"Cannot open workbook: {e}")
    try:
        if sheet is not None and sheet not in workbook.sheetnames:
            raise TabularSourceError(f"Sheet '{sheet}' not found; available: {', '.join(workbook.sheetnames)}")
        worksheet = workbook[sheet] if sheet is not None else workbook.worksheets[0]
        return _build(worksheet.iter_rows(values_only=True), worksheet.title)
    finally:
        workbook.close()


def _load_csv_rows(source: Source) -> TabularData:
    try:
        if isinstance(source, (str, Path)):
            with open(source, "r", encoding="utf-8-sig", newline="") as f:
                return _build(csv.reader(f), None)
        text = io.TextIOWrapper(source, encoding="utf-8-sig", newline="")
        return _build(csv.reader(text), None)
    except (OSError, UnicodeDecodeError, csv.Error) as e:
        raise TabularSourceError(f"Cannot read CSV: {e}")


def load_tabular(source: Source, filename: Optional[str] = None, sheet: Optional[str] = None) -> TabularData:
    """Load a .xlsx or .csv source into a TabularData.

    `filename` names the format when `source` is a file object.
    """
    suffix = _suffix(source, filename)
    if suffix in SPREADSHEET_SUFFIXES:
        data = _load_workbook_rows(source, sheet)
    elif suffix in CSV_SUFFIXES:
        data = _load_csv_rows(source)
    else:
        raise TabularSourceError(f"Unsupported file type '{suffix or '?'}' (expected .xlsx or .csv)")

    logger.info("Loaded %d rows x %d columns", data.row_count, len(data.columns))
    return data
