"""CLI entry point for form filler application."""
import argparse
import sys
import shutil
from pathlib import Path
from typing import List, Optional

from openpyxl import load_workbook

from formfill.config import config
from formfill.domain.exceptions import FormFillerError
from formfill.services.form_filler import FormFiller
from formfill.services.matcher import Matcher
from formfill.services.type_inference import infer_column_types
from formfill.sources.tabular import load_tabular
from formfill.storage.profiles import ProfileStore
from formfill.targets.base import NullIndicator
from formfill.targets.worksheet import WorksheetFormTarget, WorksheetHighlighter


def main(data_file: str, form_file: str, output_file: str = None, row_index: int = 0, sheet: Optional[str] = None):
    """Main CLI function."""
    for path in (data_file, form_file):
        if not Path(path).exists():
            print(f"Error: Input file '{path}' not found.")
            sys.exit(1)

    form_path = Path(form_file)
    if output_file is None:
        output_file = form_path.stem + "_output" + form_path.suffix

    try:
        print(f"Loading data file: {data_file}")
        data = load_tabular(data_file, sheet=sheet)
        print(f"Rows: {data.row_count}  Columns: {', '.join(data.columns)}")
        if not 0 <= row_index < data.row_count:
            print(f"Error: row {row_index} out of range (0..{data.row_count - 1}).")
            sys.exit(1)

        print(f"Copying form file: {form_file} -> {output_file}")
        shutil.copy(form_file, output_file)

        print(f"Loading workbook: {output_file}")
        workbook = load_workbook(output_file)
        target = WorksheetFormTarget(workbook.active)

        print("\n=== Detecting form fields ===")
        fields = target.detect_fields()
        print(f"Total fields detected: {len(fields)}")
        if not fields:
            print("No fields found in the worksheet. Exiting.")
            return

        print("\nDetected fields:")
        for field in fields:
            print(f"  '{field.label}' -> {field.selector} ({field.field_type})")

        print("\n=== Matching columns to fields ===")
        column_types = infer_column_types(data.columns, data.rows, config.matching.type_sample_size)
        matcher = Matcher()
        mapping = matcher.auto_map(data.columns, fields, column_types)
        for column, entry in mapping.items():
            print(f"  '{column}' -> {entry.selector} [{entry.level.value} {entry.confidence:.2f}]")
            breakdown = matcher.score_breakdown(column, entry.field, column_types.get(column))
            print("      " + "  ".join(f"{name} {score:.2f}" for name, score in breakdown.items() if name != "total"))
        unmapped = [column for column in data.columns if column not in mapping]
        if unmapped:
            print(f"  Unmapped columns: {', '.join(unmapped)}")

        print(f"\n=== Filling row {row_index} ===")
        store = ProfileStore(config.storage.profiles_path)
        store.apply_logging()
        options = store.fill_options()
        indicator = WorksheetHighlighter() if options.highlight_fields else NullIndicator()
        fill_result = FormFiller(target, indicator).fill_row(mapping, data.rows[row_index], options)

        print(f"\nSummary:")
        print(f"  Fields filled: {fill_result.filled}")
        print(f"  Fields skipped: {fill_result.skipped}")

        if fill_result.errors:
            print(f"\nErrors encountered:")
            for error in fill_result.errors:
                print(f"  - {error.column} -> {error.selector}: {error.error}")

        print(f"\nSaving Excel file: {output_file}")
        workbook.save(output_file)
        print(f"✓ Excel file saved as: {output_file}")

    except FormFillerError as e:
        print(f"Error: {e}")
        sys.exit(1)
    except Exception as e:
        print(f"Unexpected error: {e}")
        import traceback
        traceback.print_exc()
        sys.exit(1)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="run_cli.py",
        description="Fill one data row into a copy of a spreadsheet form.",
    )
    parser.add_argument("data_file", help="Data file (.xlsx, .xlsm or .csv); the first row holds column names.")
    parser.add_argument("form_file", help="Form workbook (.xlsx) with labelled input cells.")
    parser.add_argument(
        "output_file",
        nargs="?",
        default=None,
        help="Where to write the filled form (default: <form>_output.xlsx).",
    )
    parser.add_argument("--row", type=int, default=0, help="Zero-based data row to fill (default: 0).")
    parser.add_argument("--sheet", default=None, help="Data sheet name (default: first sheet).")
    return parser


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    return build_parser().parse_args(argv)


def run(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)
    main(args.data_file, args.form_file, args.output_file, args.row, args.sheet)


if __name__ == "__main__":
    run()
