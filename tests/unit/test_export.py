"""core.export 单元测试：CSV 文本/文件、工作表名、门店清单工作簿。"""

from __future__ import annotations

from pathlib import Path

import openpyxl
import pytest

from core.csv_parser import parse_csv
from core.export import ExportError, sheet_title, to_csv_text, write_csv, write_store_lists_workbook
from domain.catalog import CodeRecord, StoreList, StoreListRetailer


class TestCsvText:
    def test_empty_raises(self) -> None:
        with pytest.raises(ExportError, match="No data to export."):
            to_csv_text([])

    def test_quoting(self) -> None:
        text = to_csv_text([{"name": 'Say "hi"', "brands": "A, B", "n": 3, "none": None}])
        assert text.splitlines() == ["name,brands,n,none", '"Say ""hi""","A, B",3,']

    def test_models_use_aliases(self) -> None:
        record = CodeRecord(category="Water", code="101", code_type="Standard", country="US")
        header = to_csv_text([record]).splitlines()[0]
        assert header == "category,code,codeType,country,department,customer"

    def test_parser_reads_export_back(self) -> None:
        rows = [
            {"name": "Water, still", "notes": 'multi\nline "quoted"'},
            {"name": "Pizza", "notes": ""},
        ]
        result = parse_csv(to_csv_text(rows))
        assert result.rows == rows
        assert result.dropped == []

    def test_parser_keeps_surrounding_whitespace(self) -> None:
        rows = [
            {"a": "line1\n", "b": " x, y", "c": "  padded  "},
            {"a": "\r\nlead", "b": 'q" ', "c": "plain"},
        ]
        text = to_csv_text(rows)
        assert text.splitlines()[-1].endswith(",plain")
        assert parse_csv(text).rows == rows

    def test_write_csv_creates_parent(self, tmp_path: Path) -> None:
        path = write_csv(tmp_path / "out" / "codes.csv", [{"a": 1}])
        assert path.read_text(encoding="utf-8") == "a\n1"


def test_sheet_title() -> None:
    assert sheet_title("Grocery: Core/West") == "Grocery- Core-West"
    assert len(sheet_title("x" * 40)) == 31
    assert sheet_title("[]") == "--"
    assert sheet_title("   ") == "Sheet"


class TestStoreListsWorkbook:
    def test_one_sheet_per_list_with_total(self, tmp_path: Path) -> None:
        lists = [
            StoreList(
                name="Grocery Core",
                country="US",
                retailers=[
                    StoreListRetailer(retailer="Walmart", monthly_quota=20),
                    StoreListRetailer(retailer="Kroger", monthly_quota=12),
                ],
            ),
            StoreList(name="Club", country="US", retailers=[]),
        ]
        path = write_store_lists_workbook(tmp_path / "lists.xlsx", lists)

        wb = openpyxl.load_workbook(path)
        assert wb.sheetnames == ["Grocery Core", "Club"]
        ws = wb["Grocery Core"]
        values = [tuple(c.value for c in row) for row in ws.iter_rows()]
        assert values == [
            ("Retailer", "Monthly Quota"),
            ("Walmart", 20),
            ("Kroger", 12),
            ("Total", 32),
        ]
        assert ws.cell(row=4, column=1).font.bold
        assert [tuple(c.value for c in row) for row in wb["Club"].iter_rows()] == [
            ("Retailer", "Monthly Quota"),
            ("Total", 0),
        ]

    def test_nothing_selected(self, tmp_path: Path) -> None:
        with pytest.raises(ExportError, match="No store lists selected."):
            write_store_lists_workbook(tmp_path / "lists.xlsx", [])
