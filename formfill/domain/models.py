"""Domain models for form filler application."""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class ConfidenceLevel(str, Enum):
    """Discretized match score bucket."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    NONE = "none"


class MappingSource(str, Enum):
    """Where a mapping entry came from."""
    AUTO = "auto"
    MANUAL = "manual"
    PROFILE = "profile"


class ErrorKind(str, Enum):
    """Kinds of validation and fill failures."""
    REQUIRED_EMPTY = "RequiredEmpty"
    INVALID_FORMAT = "InvalidFormat"
    INVALID_LENGTH = "InvalidLength"
    NOT_A_NUMBER = "NotANumber"
    BELOW_MINIMUM = "BelowMinimum"
    ABOVE_MAXIMUM = "AboveMaximum"
    NOT_IN_OPTIONS = "NotInOptions"
    TARGET_NOT_FOUND = "TargetNotFound"
    WRITE_FAILED = "WriteFailed"
    ABORTED = "Aborted"


class BatchStatus(str, Enum):
    """Terminal state of a batch fill."""
    COMPLETED = "completed"
    STOPPED = "stopped"
    ABORTED = "aborted"


@dataclass(frozen=True)
class Column:
    """A named series of values from the source dataset."""
    name: str
    values: tuple = ()


@dataclass(frozen=True)
class FieldOption:
    """One entry of an enumerable field (select options)."""
    value: str
    text: str = ""
    selected: bool = False


@dataclass(frozen=True)
class TargetField:
    """Descriptor of a fillable destination."""
    selector: str
    type: str = "text"
    name: str = ""
    id: str = ""
    label: str = ""
    placeholder: str = ""
    aria_label: str = ""
    title: str = ""
    value: str = ""
    required: bool = False
    options: Optional[List[FieldOption]] = None
    min: Optional[Any] = None
    max: Optional[Any] = None
    data_attrs: Optional[Dict[str, str]] = None

    @property
    def field_type(self) -> str:
        return (self.type or "text").lower()

    @property
    def display_label(self) -> str:
        return self.label or self.name or self.selector


@dataclass(frozen=True)
class MappingEntry:
    """Assignment of one column to a target field."""
    field: Optional[TargetField]
    selector: str
    confidence: float
    level: ConfidenceLevel
    source: MappingSource = MappingSource.AUTO


Mapping = Dict[str, MappingEntry]
RowData = Dict[str, Any]


@dataclass
class ValidationResult:
    """Decision for one (value, field) pair, with the coerced value when valid."""
    valid: bool
    value: Any = None
    error: Optional[str] = None
    kind: Optional[ErrorKind] = None

    @classmethod
    def ok(cls, value: Any) -> "ValidationResult":
        return cls(valid=True, value=value)

    @classmethod
    def fail(cls, kind: ErrorKind, error: str) -> "ValidationResult":
        return cls(valid=False, error=error, kind=kind)


@dataclass
class FillOptions:
    """Per-call fill behavior."""
    skip_filled: bool = False
    stop_on_error: bool = True
    highlight_fields: bool = True
    delay_ms: int = 500


@dataclass
class TargetElement:
    """A resolved target, as handed out by a FormTarget."""
    selector: str
    type: str = "text"
    name: str = ""
    value: str = ""
    checked: bool = False
    label: str = ""
    handle: Any = None


@dataclass
class FieldFillResult:
    """Outcome of filling a single field."""
    success: bool
    skipped: bool = False
    value: Any = None
    error: Optional[str] = None
    kind: Optional[ErrorKind] = None


@dataclass
class FillError:
    """An attributable per-field failure."""
    column: str
    selector: str
    error: str
    kind: Optional[ErrorKind] = None


@dataclass
class FillResult:
    """Result of filling one row."""
    filled: int = 0
    skipped: int = 0
    errors: List[FillError] = field(default_factory=list)
    success: bool = True


@dataclass
class RowResult:
    """A FillResult tagged with its row index, or an abort marker."""
    row: int
    success: bool = False
    filled: int = 0
    skipped: int = 0
    errors: List[FillError] = field(default_factory=list)
    aborted: bool = False

    @classmethod
    def from_fill(cls, row: int, result: FillResult) -> "RowResult":
        return cls(
            row=row,
            success=result.success,
            filled=result.filled,
            skipped=result.skipped,
            errors=list(result.errors),
        )


@dataclass
class BatchResult:
    """Aggregate result of a batch fill."""
    total_filled: int = 0
    total_errors: int = 0
    results: List[RowResult] = field(default_factory=list)
    status: BatchStatus = BatchStatus.COMPLETED

    @property
    def aborted(self) -> bool:
        return self.status is BatchStatus.ABORTED


@dataclass
class ProgressEvent:
    """Emitted after each processed row of a batch."""
    current: int
    total: int
    result: FillResult


@dataclass
class PreviewEntry:
    """Projected outcome for one mapped column."""
    column: str
    selector: str
    field_label: str
    current_value: str
    new_value: Any
    valid: bool
    error: Optional[str] = None


@dataclass
class PreviewWarning:
    column: str
    error: str


@dataclass
class PreviewResult:
    """Dry-run result for one row."""
    entries: List[PreviewEntry] = field(default_factory=list)
    warnings: List[PreviewWarning] = field(default_factory=list)
