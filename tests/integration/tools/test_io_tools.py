"""Integration tests — workbook metadata and CSV import / export."""

from __future__ import annotations

import csv
from pathlib import Path
from typing import Any

import openpyxl
import pytest
from openpyxl.workbook.defined_name import DefinedName

from excel_bridge.exceptions import WorkbookError, WorkbookNotFoundError
from excel_bridge.tools import ToolRegistry


async def call(registry: ToolRegistry, name: str, **arguments: Any) -> dict[str, Any]:
    return await registry.resolve(name).handler(arguments)


@pytest.fixture
def csv_path(tmp_path: Path) -> Path:
    path = tmp_path / "people.csv"
    path.write_text("id,name,score,code\n1,Ann,9.5,007\n2,Ben,7,010\n", encoding="utf-8")
    return path


@pytest.mark.integration
class TestWorkbookMetadata:
    async def test_metadata(self, registry: ToolRegistry, wb_path: Path) -> None:
        result = await call(registry, "workbook-metadata", filepath=str(wb_path))
        assert result["file_name"] == "test.xlsx"
        assert result["file_size"] > 0
        assert result["worksheets"] == 1
        assert result["sheet_names"] == ["Sheet1"]
        assert result["sheets"] == [{"name": "Sheet1", "dimensions": "A1:C5", "max_row": 5, "max_column": 3}]
        assert result["named_ranges"] == []

    async def test_named_ranges_listed(self, registry: ToolRegistry, wb_path: Path) -> None:
        wb = openpyxl.load_workbook(wb_path)
        wb.defined_names.add(DefinedName("Totals", attr_text="Sheet1!$C$2:$C$5"))
        wb.save(wb_path)
        result = await call(registry, "workbook-metadata", filepath=str(wb_path))
        assert {"name": "Totals", "value": "Sheet1!$C$2:$C$5", "scope": "workbook"} in result["named_ranges"]

    async def test_missing_workbook(self, registry: ToolRegistry, tmp_path: Path) -> None:
        with pytest.raises(WorkbookNotFoundError):
            await call(registry, "workbook-metadata", filepath=str(tmp_path / "none.xlsx"))


@pytest.mark.integration
class TestCsvImport:
    async def test_import_into_new_workbook(self, registry: ToolRegistry, csv_path: Path, new_path: Path) -> None:
        result = await call(registry, "io-import-csv", csv_path=str(csv_path), excel_path=str(new_path), sheet_name="People")
        assert result == {"success": True, "sheet_name": "People", "rows_imported": 3, "columns_imported": 4}

        ws = openpyxl.load_workbook(new_path)["People"]
        assert [c.value for c in ws[1]] == ["id", "name", "score", "code"]
        assert ws["A1"].font.bold is True
        assert [c.value for c in ws[2]] == [1, "Ann", 9.5, "007"]
        assert ws["A2"].font.bold is False

    async def test_import_into_existing_workbook(self, registry: ToolRegistry, csv_path: Path, wb_path: Path) -> None:
        await call(registry, "io-import-csv", csv_path=str(csv_path), excel_path=str(wb_path), sheet_name="Imported")
        wb = openpyxl.load_workbook(wb_path)
        assert wb.sheetnames == ["Sheet1", "Imported"]
        assert wb["Sheet1"]["A1"].value == "Name"

    async def test_without_header_types_first_row(self, registry: ToolRegistry, tmp_path: Path, new_path: Path) -> None:
        source = tmp_path / "nums.csv"
        source.write_text("1;2\n3;4\n", encoding="utf-8")
        await call(
            registry, "io-import-csv", csv_path=str(source), excel_path=str(new_path), has_header=False, delimiter=";"
        )
        ws = openpyxl.load_workbook(new_path)["Sheet1"]
        assert ws["A1"].value == 1
        assert ws["B2"].value == 4

    async def test_missing_csv(self, registry: ToolRegistry, tmp_path: Path, new_path: Path) -> None:
        with pytest.raises(WorkbookError, match="CSV file not found"):
            await call(registry, "io-import-csv", csv_path=str(tmp_path / "nope.csv"), excel_path=str(new_path))


@pytest.mark.integration
class TestCsvExport:
    async def test_export(self, registry: ToolRegistry, wb_path: Path, tmp_path: Path) -> None:
        target = tmp_path / "export" / "out.csv"
        result = await call(registry, "io-export-csv", excel_path=str(wb_path), sheet_name="Sheet1", csv_path=str(target))
        assert result["success"] is True
        assert result["rows_written"] == 5
        with target.open(newline="", encoding="utf-8") as f:
            rows = list(csv.reader(f))
        assert rows[0] == ["Name", "Region", "Sales"]
        assert rows[2] == ["Bob", "South", "250"]

    async def test_export_then_import_round_trip(
        self, registry: ToolRegistry, wb_path: Path, tmp_path: Path, new_path: Path
    ) -> None:
        target = tmp_path / "round.csv"
        await call(registry, "io-export-csv", excel_path=str(wb_path), sheet_name="Sheet1", csv_path=str(target))
        await call(registry, "io-import-csv", csv_path=str(target), excel_path=str(new_path))
        result = await call(registry, "data-read", filepath=str(new_path), sheet_name="Sheet1")
        assert result["data"][1] == ["Alice", "North", 100]

    async def test_blank_cells_export_empty(self, registry: ToolRegistry, wb_path: Path, tmp_path: Path) -> None:
        await call(registry, "cell-write", filepath=str(wb_path), sheet_name="Sheet1", cell="B3", value=None)
        target = tmp_path / "blank.csv"
        await call(registry, "io-export-csv", excel_path=str(wb_path), sheet_name="Sheet1", csv_path=str(target))
        with target.open(newline="", encoding="utf-8") as f:
            rows = list(csv.reader(f))
        assert rows[2] == ["Bob", "", "250"]
