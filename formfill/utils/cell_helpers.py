"""Utility functions for worksheet cell operations."""
from openpyxl.cell.cell import MergedCell, Cell
from openpyxl.utils import range_boundaries
from openpyxl.worksheet.worksheet import Worksheet
from typing import Dict, Optional

from formfill.utils.text import to_text


def build_merged_map(ws: Worksheet) -> Dict[str, str]:
    """Map each merged range to its top-left coordinate."""
    return {
        merged_range.coord: merged_range.coord.split(":")[0]
        for merged_range in ws.merged_cells.ranges
    }


def top_left(coordinate: str) -> str:
    return coordinate.split(":")[0]


def is_top_left_of_merged(cell_coord: str, merged_map: Dict[str, str]) -> bool:
    return cell_coord in merged_map.values()


def merged_range_containing(row: int, column: int, merged_map: Dict[str, str]) -> Optional[str]:
    """The merged range covering a cell position, if any."""
    for merged_range in merged_map:
        min_col, min_row, max_col, max_row = range_boundaries(merged_range)
        if min_row <= row <= max_row and min_col <= column <= max_col:
            return merged_range
    return None


def is_cell_empty(cell: Cell) -> bool:
    """Check if a cell is empty or contains only whitespace."""
    if isinstance(cell, MergedCell):
        return True
    value = cell.value
    return value is None or (isinstance(value, str) and value.strip() == "")


def cell_text(cell: Cell) -> str:
    """Cell value as text; merged (non top-left) cells read as empty."""
    if isinstance(cell, MergedCell):
        return ""
    return to_text(cell.value)


def get_writable_cell(target_coord: str, ws: Worksheet, merged_map: Dict[str, str]) -> Cell:
    """Get the cell that actually holds the value for a coordinate or merged range.

    Raises ValueError for anything that is not a cell coordinate or range.
    """
    if ":" in target_coord:
        min_col, min_row, _, _ = range_boundaries(target_coord)
        return ws.cell(row=min_row, column=min_col)

    cell = ws[target_coord]
    if not isinstance(cell, (Cell, MergedCell)):
        raise ValueError(f"{target_coord!r} is not a single cell")
    if isinstance(cell, MergedCell):
        merged_range = merged_range_containing(cell.row, cell.column, merged_map)
        if merged_range is not None:
            return ws[merged_map[merged_range]]
    return cell
