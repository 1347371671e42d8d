"""Integration tests — formulas, sorting, filtering and structural edits."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import openpyxl
import pytest

from excel_bridge.exceptions import InvalidParamsError, ToolExecutionError, WorkbookError
from excel_bridge.tools import ToolRegistry


async def call(registry: ToolRegistry, name: str, /, **arguments: Any) -> dict[str, Any]:
    return await registry.resolve(name).handler(arguments)


def column(path: Path, letter: str, sheet: str = "Sheet1") -> list[Any]:
    ws = openpyxl.load_workbook(path)[sheet]
    return [c.value for c in ws[letter]]


@pytest.mark.integration
class TestFormulaApply:
    async def test_prefixes_equals(self, registry: ToolRegistry, wb_path: Path) -> None:
        result = await call(
            registry, "formula-apply", filepath=str(wb_path), sheet_name="Sheet1", cell="c6", formula="SUM(C2:C5)"
        )
        assert result == {"success": True, "cell": "C6", "formula": "=SUM(C2:C5)"}
        assert openpyxl.load_workbook(wb_path)["Sheet1"]["C6"].value == "=SUM(C2:C5)"

    async def test_keeps_existing_prefix(self, registry: ToolRegistry, wb_path: Path) -> None:
        result = await call(
            registry, "formula-apply", filepath=str(wb_path), sheet_name="Sheet1", cell="D2", formula="=C2*2"
        )
        assert result["formula"] == "=C2*2"


@pytest.mark.integration
class TestDataSort:
    async def test_single_key_with_header(self, registry: ToolRegistry, wb_path: Path) -> None:
        result = await call(
            registry,
            "data-sort",
            filepath=str(wb_path),
            sheet_name="Sheet1",
            range="A1:C5",
            sort_by=[{"column_index": 2}],
            has_header=True,
        )
        assert result == {"success": True, "rows_sorted": 4}
        assert column(wb_path, "A") == ["Name", "Dan", "Carol", "Alice", "Bob"]
        assert column(wb_path, "C") == ["Sales", 30, 75, 100, 250]

    async def test_multiple_keys(self, registry: ToolRegistry, wb_path: Path) -> None:
        await call(
            registry,
            "data-sort",
            filepath=str(wb_path),
            sheet_name="Sheet1",
            range="A2:C5",
            sort_by=[{"column_index": 1, "ascending": True}, {"column_index": 2}],
            ascending=False,
        )
        assert column(wb_path, "A") == ["Name", "Alice", "Carol", "Bob", "Dan"]

    async def test_column_index_out_of_range(self, registry: ToolRegistry, wb_path: Path) -> None:
        with pytest.raises(ToolExecutionError, match="outside the range"):
            await call(
                registry, "data-sort", filepath=str(wb_path), sheet_name="Sheet1", range="A1:C5",
                sort_by=[{"column_index": 5}],
            )

    async def test_sort_by_required(self, registry: ToolRegistry, wb_path: Path) -> None:
        with pytest.raises(InvalidParamsError, match="sort_by"):
            await call(registry, "data-sort", filepath=str(wb_path), sheet_name="Sheet1", range="A1:C5", sort_by=[])


@pytest.mark.integration
class TestDataFilter:
    async def test_hides_non_matching_rows(self, registry: ToolRegistry, wb_path: Path) -> None:
        result = await call(
            registry,
            "data-filter",
            filepath=str(wb_path),
            sheet_name="Sheet1",
            range="A1:C5",
            filters={"Region": "North"},
        )
        assert result == {"success": True, "range": "A1:C5", "rows_hidden": 2}

        ws = openpyxl.load_workbook(wb_path)["Sheet1"]
        assert ws.auto_filter.ref == "A1:C5"
        assert ws.row_dimensions[3].hidden is True
        assert ws.row_dimensions[5].hidden is True
        assert not ws.row_dimensions[2].hidden

    async def test_values_compare_as_text(self, registry: ToolRegistry, wb_path: Path) -> None:
        result = await call(
            registry, "data-filter", filepath=str(wb_path), sheet_name="Sheet1", range="A1:C5",
            filters={"2": [100, 250]},
        )
        assert result["rows_hidden"] == 2

    async def test_without_criteria_only_sets_ref(self, registry: ToolRegistry, wb_path: Path) -> None:
        result = await call(registry, "data-filter", filepath=str(wb_path), sheet_name="Sheet1", range="A1:C5")
        assert result["rows_hidden"] == 0
        assert openpyxl.load_workbook(wb_path)["Sheet1"].auto_filter.ref == "A1:C5"

    async def test_unknown_column(self, registry: ToolRegistry, wb_path: Path) -> None:
        with pytest.raises(ToolExecutionError, match="outside the filtered range"):
            await call(
                registry, "data-filter", filepath=str(wb_path), sheet_name="Sheet1", range="A1:C5",
                filters={"ZZ": 1},
            )


@pytest.mark.integration
class TestFindReplace:
    async def test_substring_ignores_case(self, registry: ToolRegistry, wb_path: Path) -> None:
        result = await call(
            registry, "find-replace", filepath=str(wb_path), sheet_name="Sheet1", find_text="north", replace_text="N"
        )
        assert result == {"success": True, "replacements": 2}
        assert column(wb_path, "B") == ["Region", "N", "South", "N", "South"]

    async def test_match_case(self, registry: ToolRegistry, wb_path: Path) -> None:
        result = await call(
            registry, "find-replace", filepath=str(wb_path), sheet_name="Sheet1",
            find_text="north", replace_text="N", match_case=True,
        )
        assert result["replacements"] == 0

    async def test_entire_cell_matches_numbers_by_text(self, registry: ToolRegistry, wb_path: Path) -> None:
        result = await call(
            registry, "find-replace", filepath=str(wb_path), sheet_name="Sheet1",
            find_text="100", replace_text="hundred", match_entire_cell=True,
        )
        assert result["replacements"] == 1
        assert openpyxl.load_workbook(wb_path)["Sheet1"]["C2"].value == "hundred"

    async def test_limited_to_range(self, registry: ToolRegistry, wb_path: Path) -> None:
        result = await call(
            registry, "find-replace", filepath=str(wb_path), sheet_name="Sheet1",
            find_text="o", replace_text="0", range="A2:A5",
        )
        # Bob, Carol
        assert result["replacements"] == 2
        assert column(wb_path, "B")[2] == "South"


@pytest.mark.integration
class TestMergeAndNames:
    async def test_merge_then_unmerge(self, registry: ToolRegistry, wb_path: Path) -> None:
        result = await call(registry, "range-merge", filepath=str(wb_path), sheet_name="Sheet1", range="a7:c7")
        assert result == {"success": True, "range": "A7:C7"}
        ws = openpyxl.load_workbook(wb_path)["Sheet1"]
        assert [r.coord for r in ws.merged_cells.ranges] == ["A7:C7"]

        result = await call(registry, "range-unmerge", filepath=str(wb_path), sheet_name="Sheet1", range="B7")
        assert result == {"success": True, "unmerged": ["A7:C7"]}
        assert not openpyxl.load_workbook(wb_path)["Sheet1"].merged_cells.ranges

    async def test_unmerge_without_merged_cells(self, registry: ToolRegistry, wb_path: Path) -> None:
        result = await call(registry, "range-unmerge", filepath=str(wb_path), sheet_name="Sheet1", range="A1:C5")
        assert result["unmerged"] == []

    async def test_named_range(self, registry: ToolRegistry, wb_path: Path) -> None:
        result = await call(
            registry, "named-range-create", filepath=str(wb_path), name="SalesData", sheet_name="Sheet1", range="A2:C5"
        )
        assert result == {"success": True, "name": "SalesData", "refers_to": "'Sheet1'!$A$2:$C$5"}
        wb = openpyxl.load_workbook(wb_path)
        assert wb.defined_names["SalesData"].attr_text == "'Sheet1'!$A$2:$C$5"

    async def test_duplicate_named_range(self, registry: ToolRegistry, wb_path: Path) -> None:
        args = {"filepath": str(wb_path), "name": "SalesData", "sheet_name": "Sheet1", "range": "A2:C5"}
        await call(registry, "named-range-create", **args)
        with pytest.raises(WorkbookError, match="already exists"):
            await call(registry, "named-range-create", **args)

    async def test_invalid_name(self, registry: ToolRegistry, wb_path: Path) -> None:
        with pytest.raises(InvalidParamsError, match="name"):
            await call(
                registry, "named-range-create", filepath=str(wb_path), name="1st range", sheet_name="Sheet1",
                range="A1",
            )


@pytest.mark.integration
class TestRowsAndColumns:
    async def test_insert_rows(self, registry: ToolRegistry, wb_path: Path) -> None:
        result = await call(
            registry, "rows-insert", filepath=str(wb_path), sheet_name="Sheet1", position=2, count=2
        )
        assert result == {"success": True, "position": 2, "count": 2}
        assert column(wb_path, "A") == ["Name", None, None, "Alice", "Bob", "Carol", "Dan"]

    async def test_delete_rows_defaults_to_one(self, registry: ToolRegistry, wb_path: Path) -> None:
        result = await call(registry, "rows-delete", filepath=str(wb_path), sheet_name="Sheet1", position=2)
        assert result["count"] == 1
        assert column(wb_path, "A") == ["Name", "Bob", "Carol", "Dan"]

    async def test_insert_and_delete_columns(self, registry: ToolRegistry, wb_path: Path) -> None:
        await call(registry, "columns-insert", filepath=str(wb_path), sheet_name="Sheet1", position=1)
        assert openpyxl.load_workbook(wb_path)["Sheet1"]["B1"].value == "Name"

        await call(registry, "columns-delete", filepath=str(wb_path), sheet_name="Sheet1", position=1, count=2)
        ws = openpyxl.load_workbook(wb_path)["Sheet1"]
        assert [ws["A1"].value, ws["B1"].value] == ["Region", "Sales"]

    async def test_position_must_be_positive(self, registry: ToolRegistry, wb_path: Path) -> None:
        with pytest.raises(InvalidParamsError, match="position"):
            await call(registry, "rows-insert", filepath=str(wb_path), sheet_name="Sheet1", position=0)
