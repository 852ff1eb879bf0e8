"""Merges auto-matched, manual and saved-profile mappings."""
from dataclasses import replace
from typing import Any, Dict, Mapping, Optional, Sequence

from formfill.domain.models import (
    ConfidenceLevel,
    MappingEntry,
    MappingSource,
    TargetField,
)
from formfill.utils.dates import as_number

DEFAULT_PROFILE_CONFIDENCE = 0.9


def merge_mappings(
    auto: Optional[Mapping[str, MappingEntry]],
    manual: Optional[Mapping[str, Optional[str]]],
    fields: Sequence[TargetField],
) -> Dict[str, MappingEntry]:
    """Overlay manual selections on an auto mapping.

    An empty selector unmaps the column. A manual selector that another
    column currently holds is taken away from that column.
    """
    result: Dict[str, MappingEntry] = {
        column: replace(entry, source=MappingSource.AUTO)
        for column, entry in (auto or {}).items()
    }
    by_selector = {field.selector: field for field in fields}

    for column, selector in (manual or {}).items():
        if not selector:
            result.pop(column, None)
            continue
        for other, entry in list(result.items()):
            if other != column and entry.selector == selector:
                del result[other]
        result[column] = MappingEntry(
            field=by_selector.get(selector),
            selector=selector,
            confidence=1.0,
            level=ConfidenceLevel.HIGH,
            source=MappingSource.MANUAL,
        )
    return result


def _saved_selector(info: Any) -> Optional[str]:
    selector = info.get("selector") if isinstance(info, Mapping) else info
    return selector if isinstance(selector, str) and selector else None


def _saved_confidence(info: Any) -> float:
    confidence = as_number(info.get("confidence")) if isinstance(info, Mapping) else None
    if confidence is None or not 0 < confidence <= 1:
        return DEFAULT_PROFILE_CONFIDENCE
    return confidence


def apply_profile(
    saved: Optional[Mapping[str, Any]],
    fields: Sequence[TargetField],
) -> Dict[str, MappingEntry]:
    """Rebuild a saved mapping against the fields available now.

    Entries whose selector no longer exists, or is not a string, are dropped
    silently. A missing or unusable confidence becomes 0.9.
    """
    result: Dict[str, MappingEntry] = {}
    by_selector = {field.selector: field for field in fields}
    used = set()

    for column, info in (saved or {}).items():
        selector = _saved_selector(info)
        if selector not in by_selector or selector in used:
            continue
        result[column] = MappingEntry(
            field=by_selector[selector],
            selector=selector,
            confidence=_saved_confidence(info),
            level=ConfidenceLevel.HIGH,
            source=MappingSource.PROFILE,
        )
        used.add(selector)
    return result


def to_serializable(mapping: Mapping[str, MappingEntry]) -> Dict[str, Dict[str, Any]]:
    """Strip field descriptors so the mapping can be persisted."""
    return {
        column: {
            "selector": entry.selector,
            "confidence": entry.confidence,
            "level": entry.level.value,
        }
        for column, entry in mapping.items()
    }
