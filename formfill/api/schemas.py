"""Request and response bodies of the HTTP API."""
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from formfill.domain.models import FieldOption, FillOptions, MappingEntry, TargetField


class FieldOptionIn(BaseModel):
    value: str
    text: str = ""
    selected: bool = False


class TargetFieldIn(BaseModel):
    """Field descriptor as produced by a field detector."""
    model_config = ConfigDict(populate_by_name=True)

    selector: str
    type: str = "text"
    name: str = ""
    id: str = ""
    label: str = ""
    placeholder: str = ""
    aria_label: str = Field("", alias="ariaLabel")
    title: str = ""
    value: str = ""
    required: bool = False
    options: Optional[List[FieldOptionIn]] = None
    min: Optional[Union[float, str]] = None
    max: Optional[Union[float, str]] = None
    data_attrs: Optional[Dict[str, str]] = Field(None, alias="dataAttrs")

    def to_domain(self) -> TargetField:
        return TargetField(
            selector=self.selector,
            type=self.type,
            name=self.name,
            id=self.id,
            label=self.label,
            placeholder=self.placeholder,
            aria_label=self.aria_label,
            title=self.title,
            value=self.value,
            required=self.required,
            options=[FieldOption(o.value, o.text, o.selected) for o in self.options]
            if self.options is not None
            else None,
            min=self.min,
            max=self.max,
            data_attrs=self.data_attrs,
        )


class MappingEntryOut(BaseModel):
    selector: str
    confidence: float
    level: str
    source: str
    field_label: Optional[str] = None
    breakdown: Optional[Dict[str, float]] = None

    @classmethod
    def from_entry(cls, entry: MappingEntry, breakdown: Optional[Dict[str, float]] = None) -> "MappingEntryOut":
        return cls(
            selector=entry.selector,
            confidence=round(entry.confidence, 4),
            level=entry.level.value,
            source=entry.source.value,
            field_label=entry.field.display_label if entry.field is not None else None,
            breakdown={name: round(score, 4) for name, score in breakdown.items()} if breakdown else None,
        )


class MatchRequest(BaseModel):
    columns: List[str]
    fields: List[TargetFieldIn]
    column_types: Optional[Dict[str, str]] = None
    rows: Optional[List[Dict[str, Any]]] = None
    manual: Dict[str, Optional[str]] = Field(default_factory=dict)


class MatchResponse(BaseModel):
    mapping: Dict[str, MappingEntryOut]
    unmapped: List[str]
    column_types: Dict[str, str]


class ProfileApplyRequest(BaseModel):
    fields: List[TargetFieldIn]
    saved: Optional[Dict[str, Any]] = None
    url: Optional[str] = None


class SettingsIn(BaseModel):
    """Partial settings update; omitted keys keep their saved value."""
    delay: Optional[int] = Field(default=None, ge=0, le=10_000)
    skip_filled: Optional[bool] = None
    stop_on_error: Optional[bool] = None
    highlight_fields: Optional[bool] = None
    enable_logging: Optional[bool] = None

    def to_store(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)


class ProfileIn(BaseModel):
    mapping: Dict[str, Any]
    settings: SettingsIn = Field(default_factory=SettingsIn)


class ValidateRequest(BaseModel):
    value: Any = None
    field: TargetFieldIn


class ValidationOut(BaseModel):
    valid: bool
    value: Any = None
    error: Optional[str] = None
    kind: Optional[str] = None


class FillOptionsIn(BaseModel):
    skip_filled: bool = False
    stop_on_error: bool = True
    highlight_fields: bool = False
    delay_ms: int = Field(0, ge=0, le=10_000)

    def to_domain(self) -> FillOptions:
        return FillOptions(
            skip_filled=self.skip_filled,
            stop_on_error=self.stop_on_error,
            highlight_fields=self.highlight_fields,
            delay_ms=self.delay_ms,
        )


class PreviewRequest(BaseModel):
    mapping: Dict[str, Optional[str]]
    fields: List[TargetFieldIn]
    row: Dict[str, Any]


class FillRequest(BaseModel):
    mapping: Dict[str, Optional[str]]
    fields: List[TargetFieldIn]
    rows: List[Dict[str, Any]]
    options: FillOptionsIn = Field(default_factory=FillOptionsIn)
