"""Service for filling form targets with validated row data."""
import threading
from typing import Any, Callable, Mapping, Optional, Sequence

from formfill.domain.models import (
    BatchResult,
    BatchStatus,
    ErrorKind,
    FieldFillResult,
    FillError,
    FillOptions,
    FillResult,
    MappingEntry,
    PreviewEntry,
    PreviewResult,
    PreviewWarning,
    ProgressEvent,
    RowData,
    RowResult,
    TargetElement,
    TargetField,
)
from formfill.logger import get_logger
from formfill.services.validator import validate
from formfill.targets.base import FormTarget, Indicator, NullIndicator
from formfill.utils.text import is_blank, to_text

logger = get_logger(__name__)

TRUTHY_TOKENS = {"true", "yes", "1", "on", "x", "✓"}

ProgressCallback = Callable[[ProgressEvent], None]


class CancellationToken:
    """Cooperative abort flag shared between a batch and whoever stops it."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def wait(self, seconds: float) -> bool:
        """Sleep up to `seconds`; returns True early if cancelled meanwhile."""
        return self._event.wait(seconds)


class FormFiller:
    """Service for filling a form target with data rows.

    One batch at a time per instance; the caller must not start a second
    batch (or edit the mapping in use) while one is running.
    """

    def __init__(self, target: FormTarget, indicator: Optional[Indicator] = None):
        self.target = target
        self.indicator = indicator or NullIndicator()
        self._active_token: Optional[CancellationToken] = None

    def _is_filled(self, element: TargetElement, field_type: str) -> bool:
        if field_type == "checkbox":
            return element.checked
        if field_type == "radio":
            return any(radio.checked for radio in self.target.radio_group(element))
        return not is_blank(element.value)

    def _write_checkbox(self, element: TargetElement, value: Any) -> None:
        should_check = to_text(value).strip().lower() in TRUTHY_TOKENS
        if element.checked != should_check:
            self.target.set_checked(element, should_check)

    def _write_radio(self, element: TargetElement, value: Any) -> bool:
        if is_blank(value):
            return True
        wanted = to_text(value).strip().lower()
        for radio in self.target.radio_group(element):
            if radio.value.lower() == wanted or radio.label.strip().lower() == wanted:
                self.target.set_checked(radio, True)
                return True
        return False

    def _mark(self, element: TargetElement, success: bool, options: FillOptions) -> None:
        if options.highlight_fields:
            self.indicator.mark(element, success)

    def fill_field(
        self,
        selector: str,
        raw_value: Any,
        field: Optional[TargetField] = None,
        options: Optional[FillOptions] = None,
    ) -> FieldFillResult:
        """Validate and write one value into the element behind `selector`."""
        options = options or FillOptions()
        field = field or TargetField(selector=selector)

        element = self.target.resolve(selector)
        if element is None:
            return FieldFillResult(
                success=False,
                error=f"Element not found: {selector}",
                kind=ErrorKind.TARGET_NOT_FOUND,
            )

        field_type = field.field_type
        if options.skip_filled and self._is_filled(element, field_type):
            return FieldFillResult(success=True, skipped=True)

        validation = validate(raw_value, field)
        if not validation.valid:
            self._mark(element, False, options)
            return FieldFillResult(success=False, error=validation.error, kind=validation.kind)

        value = validation.value
        try:
            if field_type == "checkbox":
                self._write_checkbox(element, value)
            elif field_type == "radio":
                if not self._write_radio(element, value):
                    self._mark(element, False, options)
                    return FieldFillResult(
                        success=False,
                        error=f'"{value}" matches no option of radio group {element.name or selector}',
                        kind=ErrorKind.NOT_IN_OPTIONS,
                    )
            else:
                self.target.set_value(element, "" if value is None else value)
        except Exception as e:
            logger.warning("Writing %s failed: %s", selector, e)
            self._mark(element, False, options)
            return FieldFillResult(
                success=False,
                error=f"Error filling '{selector}': {e}",
                kind=ErrorKind.WRITE_FAILED,
            )

        logger.debug("Filled %s with %r", selector, value)
        self._mark(element, True, options)
        return FieldFillResult(success=True, value=value)

    def fill_row(
        self,
        mapping: Mapping[str, MappingEntry],
        row: RowData,
        options: Optional[FillOptions] = None,
    ) -> FillResult:
        """Fill every mapped field for one data row."""
        options = options or FillOptions()
        result = FillResult()

        for column, entry in mapping.items():
            if entry is None or not entry.selector:
                continue
            outcome = self.fill_field(entry.selector, row.get(column), entry.field, options)

            if outcome.skipped:
                result.skipped += 1
            elif outcome.success:
                result.filled += 1
            else:
                logger.warning("Column '%s' -> %s: %s", column, entry.selector, outcome.error)
                result.errors.append(
                    FillError(column=column, selector=entry.selector, error=outcome.error, kind=outcome.kind)
                )
                if options.stop_on_error:
                    result.success = False
                    return result

        result.success = not result.errors
        return result

    def fill_batch(
        self,
        mapping: Mapping[str, MappingEntry],
        rows: Sequence[RowData],
        options: Optional[FillOptions] = None,
        on_progress: Optional[ProgressCallback] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> BatchResult:
        """Fill rows one after another, pausing `options.delay_ms` between them.

        Cancellation is checked before each row; a row already started runs
        to completion. A cancelled batch ends with an aborted marker entry.
        """
        options = options or FillOptions()
        token = cancel_token or CancellationToken()
        self._active_token = token
        batch = BatchResult()
        total = len(rows)
        logger.info("Batch fill started: %d rows, %d mapped columns", total, len(mapping))

        try:
            for index, row in enumerate(rows):
                if token.cancelled:
                    batch.results.append(RowResult(row=index, aborted=True))
                    batch.status = BatchStatus.ABORTED
                    break

                result = self.fill_row(mapping, row, options)
                batch.results.append(RowResult.from_fill(index, result))
                batch.total_filled += result.filled
                batch.total_errors += len(result.errors)

                if on_progress is not None:
                    on_progress(ProgressEvent(current=index + 1, total=total, result=result))

                if not result.success and options.stop_on_error:
                    batch.status = BatchStatus.STOPPED
                    break

                if options.delay_ms > 0 and index < total - 1:
                    token.wait(options.delay_ms / 1000.0)
        finally:
            self._active_token = None

        logger.info(
            "Batch fill %s: %d rows processed, %d fields filled, %d errors",
            batch.status.value,
            sum(1 for r in batch.results if not r.aborted),
            batch.total_filled,
            batch.total_errors,
        )
        return batch

    def stop(self) -> None:
        """Cancel the running batch, if any, and clear highlights."""
        if self._active_token is not None:
            self._active_token.cancel()
        self.indicator.clear()

    def preview(self, mapping: Mapping[str, MappingEntry], row: RowData) -> PreviewResult:
        """Report what fill_row would write, without writing."""
        result = PreviewResult()

        for column, entry in mapping.items():
            if entry is None or not entry.selector:
                continue
            field = entry.field or TargetField(selector=entry.selector)
            value = row.get(column)
            element = self.target.resolve(entry.selector)
            validation = validate(value, field)

            result.entries.append(
                PreviewEntry(
                    column=column,
                    selector=entry.selector,
                    field_label=field.display_label,
                    current_value=element.value if element is not None else "",
                    new_value=validation.value if validation.valid else value,
                    valid=validation.valid,
                    error=validation.error,
                )
            )
            if element is None:
                result.warnings.append(PreviewWarning(column=column, error=f"Element not found: {entry.selector}"))
            if not validation.valid:
                result.warnings.append(PreviewWarning(column=column, error=validation.error))

        return result
