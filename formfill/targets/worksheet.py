"""Worksheet-backed form target: fields are empty cells next to labels."""
from copy import copy
from typing import Any, Dict, List, Optional, Set

from openpyxl.cell.cell import MergedCell
from openpyxl.styles import PatternFill
from openpyxl.worksheet.worksheet import Worksheet

from formfill.domain.models import TargetElement, TargetField
from formfill.targets.base import FormTarget, Indicator
from formfill.utils.cell_helpers import (
    build_merged_map,
    cell_text,
    get_writable_cell,
    is_cell_empty,
    is_top_left_of_merged,
    merged_range_containing,
    top_left,
)
from formfill.utils.label_detector import clean_label, guess_field_type, looks_like_label
from formfill.config import config

CHECK_MARKS = {"x", "✓", "☑", "true", "yes"}
SUCCESS_FILL = PatternFill(fill_type="solid", start_color="FFC6EFCE", end_color="FFC6EFCE")
FAILURE_FILL = PatternFill(fill_type="solid", start_color="FFFFC7CE", end_color="FFFFC7CE")

# Right, Below, Left
_DIRECTIONS = [(0, 1), (1, 0), (0, -1)]


class WorksheetFormTarget(FormTarget):
    """Form target over an openpyxl worksheet.

    Selectors are cell coordinates ("B2") or merged ranges ("B2:D2"); values
    go into the top-left cell of a merged range.
    """

    def __init__(self, worksheet: Worksheet):
        self.worksheet = worksheet
        self.merged_map = build_merged_map(worksheet)

    def resolve(self, selector: str) -> Optional[TargetElement]:
        try:
            cell = get_writable_cell(selector, self.worksheet, self.merged_map)
        except (ValueError, TypeError, KeyError):
            return None
        text = cell_text(cell)
        return TargetElement(
            selector=selector,
            value=text,
            checked=text.strip().lower() in CHECK_MARKS,
            handle=cell,
        )

    def set_value(self, element: TargetElement, value: Any) -> None:
        element.handle.value = value
        element.value = cell_text(element.handle)

    def set_checked(self, element: TargetElement, checked: bool) -> None:
        element.handle.value = "X" if checked else None
        element.checked = checked
        element.value = cell_text(element.handle)

    def _find_field_cell(self, label_cell) -> Optional[str]:
        """Find the empty cell (or merged range) a label points at."""
        for row_offset, col_offset in _DIRECTIONS:
            row = label_cell.row + row_offset
            column = label_cell.column + col_offset
            if row < 1 or column < 1:
                continue

            merged_range = merged_range_containing(row, column, self.merged_map)
            if merged_range is not None:
                if is_cell_empty(self.worksheet[self.merged_map[merged_range]]):
                    return merged_range
                continue

            if is_cell_empty(self.worksheet.cell(row=row, column=column)):
                return self.worksheet.cell(row=row, column=column).coordinate
        return None

    def detect_fields(self) -> List[TargetField]:
        """Detect label cells and the input cells they describe."""
        cfg = config.label_detection
        found: Dict[str, str] = {}
        labels_by_target: Dict[str, str] = {}
        seen: Set[str] = set()

        for row in self.worksheet.iter_rows():
            for cell in row:
                if isinstance(cell, MergedCell) or not isinstance(cell.value, str):
                    continue
                if is_top_left_of_merged(cell.coordinate, self.merged_map):
                    continue

                label = cell.value.strip()
                if not looks_like_label(label, cfg):
                    continue

                if cell.column > 1 and not label.endswith(":"):
                    left = self.worksheet.cell(row=cell.row, column=cell.column - 1)
                    if len(cell_text(left).strip()) > cfg.min_left_cell_text_length:
                        continue

                target = self._find_field_cell(cell)
                if target is None:
                    continue

                anchor = top_left(target)
                if anchor in seen:
                    existing = labels_by_target[anchor]
                    # a colon label beats a keyword-only label for the same cell
                    if not (label.endswith(":") and not existing.endswith(":")):
                        continue
                    del found[existing]

                if label not in found:
                    found[label] = target
                    labels_by_target[anchor] = label
                    seen.add(anchor)

        return [
            TargetField(
                selector=target,
                type=guess_field_type(label),
                name=clean_label(label),
                label=clean_label(label),
                required="*" in label,
            )
            for label, target in found.items()
        ]


class WorksheetHighlighter(Indicator):
    """Colors filled cells green and rejected cells red; `clear` restores them."""

    def __init__(self):
        self._original_fills: Dict[int, Any] = {}
        self._cells: Dict[int, Any] = {}

    def mark(self, element: TargetElement, success: bool) -> None:
        cell = element.handle
        if cell is None:
            return
        key = id(cell)
        if key not in self._original_fills:
            self._original_fills[key] = copy(cell.fill)
            self._cells[key] = cell
        cell.fill = copy(SUCCESS_FILL if success else FAILURE_FILL)

    def clear(self) -> None:
        for key, cell in self._cells.items():
            cell.fill = self._original_fills[key]
        self._original_fills.clear()
        self._cells.clear()
