"""Multi-factor weighted matching of data columns to target fields."""
from typing import Dict, List, Mapping, Optional, Sequence, Tuple, Union

from formfill.config import MatchingConfig, config
from formfill.domain.models import (
    ConfidenceLevel,
    MappingEntry,
    MappingSource,
    TargetField,
)
from formfill.logger import get_logger
from formfill.services.type_inference import DataType
from formfill.utils.synonyms import SynonymTable
from formfill.utils.text import similarity

logger = get_logger(__name__)

# inferred column data type -> compatible field types
TYPE_COMPATIBILITY: Dict[str, Tuple[str, ...]] = {
    DataType.EMAIL.value: ("email",),
    DataType.PHONE.value: ("tel",),
    DataType.NUMBER.value: ("number", "range"),
    DataType.DATE.value: ("date", "datetime", "datetime-local"),
    DataType.URL.value: ("url",),
    DataType.TEXT.value: ("text", "textarea", "password"),
}

ColumnType = Union[DataType, str, None]


def _type_name(column_type: ColumnType) -> Optional[str]:
    if column_type is None:
        return None
    if isinstance(column_type, DataType):
        return column_type.value
    return str(column_type).lower()


class Matcher:
    """Scores (column, field) pairs and greedily assigns columns to fields."""

    def __init__(self, synonyms: Optional[SynonymTable] = None, matching_config: Optional[MatchingConfig] = None):
        self.config = matching_config or config.matching
        if synonyms is None:
            synonyms = (
                SynonymTable.from_json(self.config.synonyms_file)
                if self.config.synonyms_file
                else SynonymTable.default()
            )
        self.synonyms = synonyms

    def name_score(self, column: str, field: TargetField) -> float:
        return max(similarity(column, field.name), similarity(column, field.id))

    def label_score(self, column: str, field: TargetField) -> float:
        if not field.label:
            return 0.0
        return similarity(column, field.label)

    def attribute_score(self, column: str, field: TargetField) -> float:
        attributes = [field.aria_label, field.placeholder, field.title]
        if field.data_attrs:
            attributes.extend(str(value) for value in field.data_attrs.values())
        return max((similarity(column, attr) for attr in attributes if attr), default=0.0)

    def synonym_score(self, column: str, field: TargetField) -> float:
        candidates = [field.name, field.id, field.label, field.aria_label, field.placeholder]
        for candidate in candidates:
            if candidate and self.synonyms.are_synonyms(column, candidate):
                return 1.0
        return 0.0

    def type_score(self, column_type: ColumnType, field: TargetField) -> float:
        type_name = _type_name(column_type)
        if not type_name:
            return 0.0
        return 1.0 if field.field_type in TYPE_COMPATIBILITY.get(type_name, ()) else 0.0

    def score_breakdown(self, column: str, field: TargetField, column_type: ColumnType = None) -> Dict[str, float]:
        """Per-factor scores plus the weighted, clamped total."""
        cfg = self.config
        factors = {
            "name": self.name_score(column, field),
            "label": self.label_score(column, field),
            "attribute": self.attribute_score(column, field),
            "synonym": self.synonym_score(column, field),
            "type": self.type_score(column_type, field),
        }
        total = (
            factors["name"] * cfg.name_weight
            + factors["label"] * cfg.label_weight
            + factors["attribute"] * cfg.attribute_weight
            + factors["synonym"] * cfg.synonym_weight
            + factors["type"] * cfg.type_weight
        )
        factors["total"] = min(total, 1.0)
        return factors

    def score(self, column: str, field: TargetField, column_type: ColumnType = None) -> float:
        """Match score between a column name and a field, in [0, 1]."""
        return self.score_breakdown(column, field, column_type)["total"]

    def confidence_level(self, score: float) -> ConfidenceLevel:
        if score >= self.config.high_threshold:
            return ConfidenceLevel.HIGH
        if score >= self.config.medium_threshold:
            return ConfidenceLevel.MEDIUM
        if score >= self.config.low_threshold:
            return ConfidenceLevel.LOW
        return ConfidenceLevel.NONE

    def auto_map(
        self,
        columns: Sequence[str],
        fields: Sequence[TargetField],
        column_types: Optional[Mapping[str, ColumnType]] = None,
    ) -> Dict[str, MappingEntry]:
        """Assign each column to at most one field, best scores first.

        Greedy, not a maximum-weight matching: pairs are visited in descending
        score order and ties keep column-then-field order.
        """
        column_types = column_types or {}
        pairs: List[Tuple[str, TargetField, float]] = [
            (column, field, self.score(column, field, column_types.get(column)))
            for column in columns
            for field in fields
        ]
        pairs.sort(key=lambda pair: pair[2], reverse=True)

        mapping: Dict[str, MappingEntry] = {}
        used_selectors = set()
        for column, field, score in pairs:
            if column in mapping or field.selector in used_selectors:
                continue
            if score < self.config.low_threshold:
                break
            mapping[column] = MappingEntry(
                field=field,
                selector=field.selector,
                confidence=score,
                level=self.confidence_level(score),
                source=MappingSource.AUTO,
            )
            used_selectors.add(field.selector)

        logger.info("Auto-mapped %d/%d columns to %d fields", len(mapping), len(columns), len(fields))
        return mapping
