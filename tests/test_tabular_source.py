"""
Tests for loading spreadsheet and CSV data files.
"""
from datetime import date, datetime
from io import BytesIO

import pytest
from openpyxl import Workbook

from formfill.domain.exceptions import TabularSourceError
from formfill.sources.tabular import list_sheets, load_tabular


def _create_data_workbook(path) -> None:
    wb = Workbook()
    ws = wb.active
    ws.title = "People"
    ws.append(["Name", "Email", None, "Name", "Born"])
    ws.append(["Ada", "ada@example.com", "x", "Lovelace", datetime(1985, 12, 10)])
    ws.append([None, None, None, None, None])
    ws.append(["Bob", "bob@example.com", None, None, datetime(1990, 1, 2, 13, 30)])
    other = wb.create_sheet("Other")
    other.append(["Code"])
    other.append([7])
    wb.save(path)


class TestWorkbook:

    def test_columns_are_unique(self, tmp_path):
        path = tmp_path / "data.xlsx"
        _create_data_workbook(path)

        data = load_tabular(path)

        assert data.columns == ["Name", "Email", "__EMPTY", "Name_1", "Born"]
        assert data.sheet_name == "People"

    def test_blank_rows_are_dropped(self, tmp_path):
        path = tmp_path / "data.xlsx"
        _create_data_workbook(path)

        data = load_tabular(path)

        assert data.row_count == 2
        assert [row["Name"] for row in data.rows] == ["Ada", "Bob"]
        assert data.rows[1]["Name_1"] == ""

    def test_midnight_datetimes_become_dates(self, tmp_path):
        path = tmp_path / "data.xlsx"
        _create_data_workbook(path)

        data = load_tabular(path)

        assert data.rows[0]["Born"] == date(1985, 12, 10)
        assert data.rows[1]["Born"] == datetime(1990, 1, 2, 13, 30)

    def test_select_sheet(self, tmp_path):
        path = tmp_path / "data.xlsx"
        _create_data_workbook(path)

        assert list_sheets(path) == ["People", "Other"]
        data = load_tabular(path, sheet="Other")
        assert data.columns == ["Code"]
        assert data.rows == [{"Code": 7}]

    def test_missing_sheet(self, tmp_path):
        path = tmp_path / "data.xlsx"
        _create_data_workbook(path)
        with pytest.raises(TabularSourceError, match="Sheet 'Nope' not found"):
            load_tabular(path, sheet="Nope")

    def test_column_and_sample(self, tmp_path):
        path = tmp_path / "data.xlsx"
        _create_data_workbook(path)
        data = load_tabular(path)

        column = data.column("Email")
        assert column.name == "Email"
        assert column.values == ("ada@example.com", "bob@example.com")
        assert data.sample(1) == data.rows[:1]
        with pytest.raises(KeyError):
            data.column("Missing")

    def test_file_object_with_filename(self, tmp_path):
        path = tmp_path / "data.xlsx"
        _create_data_workbook(path)

        data = load_tabular(BytesIO(path.read_bytes()), filename="upload.xlsx")
        assert data.row_count == 2

    def test_corrupt_workbook(self, tmp_path):
        path = tmp_path / "broken.xlsx"
        path.write_text("not a zip", encoding="utf-8")
        with pytest.raises(TabularSourceError):
            load_tabular(path)


class TestCsv:

    def test_bom_and_blank_rows(self, tmp_path):
        path = tmp_path / "data.csv"
        path.write_bytes("\ufeffName,Email\nAda,ada@example.com\n,\nBob,bob@example.com\n".encode("utf-8"))

        data = load_tabular(path)

        assert data.columns == ["Name", "Email"]
        assert data.rows == [
            {"Name": "Ada", "Email": "ada@example.com"},
            {"Name": "Bob", "Email": "bob@example.com"},
        ]
        assert data.sheet_name is None

    def test_short_rows_are_padded(self, tmp_path):
        path = tmp_path / "data.csv"
        path.write_text("A,B,C\n1\n", encoding="utf-8")

        assert load_tabular(path).rows == [{"A": "1", "B": "", "C": ""}]

    def test_file_object(self):
        data = load_tabular(BytesIO(b"Name\nAda\n"), filename="upload.csv")
        assert data.rows == [{"Name": "Ada"}]

    def test_header_only(self, tmp_path):
        path = tmp_path / "data.csv"
        path.write_text("Name,Email\n", encoding="utf-8")
        data = load_tabular(path)
        assert data.columns == ["Name", "Email"]
        assert data.rows == []

    def test_empty_file(self, tmp_path):
        path = tmp_path / "data.csv"
        path.write_text("", encoding="utf-8")
        assert load_tabular(path).columns == []


def test_unsupported_type(tmp_path):
    path = tmp_path / "data.json"
    path.write_text("{}", encoding="utf-8")
    with pytest.raises(TabularSourceError, match="Unsupported file type"):
        load_tabular(path)


def test_missing_file(tmp_path):
    with pytest.raises(TabularSourceError):
        load_tabular(tmp_path / "missing.csv")
