"""String normalization and similarity primitives used by the matcher."""
import re
from datetime import date, datetime
from typing import Any, List

_CAMEL_RE = re.compile(r"([a-z0-9])([A-Z])")
_SEPARATOR_RE = re.compile(r"[_\-.]+")
_SPACE_RE = re.compile(r"\s+")


def normalize(value: Any) -> str:
    """Lowercase, split camelCase and turn `_`, `-`, `.` runs into single spaces."""
    if value is None:
        return ""
    text = _CAMEL_RE.sub(r"\1 \2", str(value))
    text = _SEPARATOR_RE.sub(" ", text).lower()
    return _SPACE_RE.sub(" ", text).strip()


def tokenize(value: Any) -> List[str]:
    """Split a normalized string into words."""
    return [token for token in normalize(value).split(" ") if token]


def levenshtein(a: str, b: str) -> int:
    """Edit distance with unit cost insert, delete and substitute."""
    if not a or not b:
        return max(len(a or ""), len(b or ""))
    previous = list(range(len(b) + 1))
    for i, char_a in enumerate(a, start=1):
        current = [i]
        for j, char_b in enumerate(b, start=1):
            cost = 0 if char_a == char_b else 1
            current.append(min(previous[j] + 1, current[j - 1] + 1, previous[j - 1] + cost))
        previous = current
    return previous[-1]


def edit_similarity(a: Any, b: Any) -> float:
    """1 - levenshtein / longest length, over normalized strings."""
    na, nb = normalize(a), normalize(b)
    if na == nb:
        return 1.0
    if not na or not nb:
        return 0.0
    return 1.0 - levenshtein(na, nb) / max(len(na), len(nb))


def token_overlap(a: Any, b: Any) -> float:
    """Share of tokens in common, relative to the longer token list."""
    tokens_a = tokenize(a)
    tokens_b = tokenize(b)
    if not tokens_a or not tokens_b:
        return 0.0
    set_b = set(tokens_b)
    matches = sum(1 for token in tokens_a if token in set_b)
    return matches / max(len(tokens_a), len(tokens_b))


def similarity(a: Any, b: Any) -> float:
    """Best of edit similarity and token overlap; 0 when either side is missing."""
    if not a or not b:
        return 0.0
    return max(edit_similarity(a, b), token_overlap(a, b))


def is_blank(value: Any) -> bool:
    """True for None and for values that are empty after trimming."""
    return value is None or str(value).strip() == ""


def to_text(value: Any) -> str:
    """Render a cell or coerced value the way a text input would hold it."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)
