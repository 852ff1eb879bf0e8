"""Simple data type sniffing from sample column values."""
import re
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Sequence

from formfill.services.validator import EMAIL_RE, is_absolute_url
from formfill.utils.dates import as_number, parse_date
from formfill.utils.text import is_blank, to_text

PHONE_RE = re.compile(r"^\+?\d[\d\s\-()]{6,}$")


class DataType(str, Enum):
    TEXT = "text"
    EMAIL = "email"
    PHONE = "phone"
    NUMBER = "number"
    DATE = "date"
    URL = "url"


# first rule that holds for every sampled value wins
_RULES = (
    (DataType.EMAIL, lambda v: bool(EMAIL_RE.match(to_text(v)))),
    (DataType.NUMBER, lambda v: as_number(v) is not None),
    (DataType.DATE, lambda v: parse_date(v) is not None),
    (DataType.PHONE, lambda v: bool(PHONE_RE.match(to_text(v)))),
    (DataType.URL, lambda v: is_absolute_url(to_text(v).strip())),
)


def infer_column_type(values: Iterable[Any]) -> DataType:
    """Infer the data type shared by all non-blank values."""
    samples = [value for value in values if not is_blank(value)]
    if not samples:
        return DataType.TEXT
    for data_type, rule in _RULES:
        if all(rule(value) for value in samples):
            return data_type
    return DataType.TEXT


def infer_column_types(
    columns: Sequence[str],
    rows: Sequence[Mapping[str, Any]],
    sample_size: int = 10,
) -> Dict[str, DataType]:
    """Infer a DataType per column from the first `sample_size` rows."""
    sample: List[Mapping[str, Any]] = list(rows[:sample_size])
    return {
        column: infer_column_type(row.get(column) for row in sample)
        for column in columns
    }
