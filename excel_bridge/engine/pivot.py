"""Pivot summaries computed from a source range.

openpyxl can preserve pivot tables it reads but cannot build a pivot cache
from scratch, so ``pivot-create`` writes a static summary instead: one row per
distinct combination of row fields, one column per combination of column
fields and value aggregate, plus grand totals.

The first row of the source range holds the field names.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any

AGGREGATES = ("sum", "count", "average", "max", "min")

GRAND_TOTAL = "Grand Total"


def _numbers(values: Iterable[Any]) -> list[float]:
    return [v for v in values if isinstance(v, (int, float)) and not isinstance(v, bool)]


def _sum(values: list[Any]) -> Any:
    return sum(_numbers(values))


def _count(values: list[Any]) -> Any:
    return sum(1 for v in values if v is not None and v != "")


def _average(values: list[Any]) -> Any:
    nums = _numbers(values)
    return sum(nums) / len(nums) if nums else None


def _max(values: list[Any]) -> Any:
    nums = _numbers(values)
    return max(nums) if nums else None


def _min(values: list[Any]) -> Any:
    nums = _numbers(values)
    return min(nums) if nums else None


_FUNCTIONS: dict[str, Callable[[list[Any]], Any]] = {
    "sum": _sum,
    "count": _count,
    "average": _average,
    "max": _max,
    "min": _min,
}


@dataclass(frozen=True)
class ValueField:
    field: str
    function: str = "sum"

    @property
    def label(self) -> str:
        return f"{self.function.capitalize()} of {self.field}"

    def aggregate(self, records: list[dict[str, Any]]) -> Any:
        fn = _FUNCTIONS.get(self.function.lower(), _sum)
        return fn([r.get(self.field) for r in records])


@dataclass
class PivotSummary:
    """Rectangular block of values ready to be written to a sheet."""

    rows: list[list[Any]] = field(default_factory=list)

    @property
    def height(self) -> int:
        return len(self.rows)

    @property
    def width(self) -> int:
        return max((len(r) for r in self.rows), default=0)


def _sort_key(key: tuple[Any, ...]) -> tuple[Any, ...]:
    # Numbers before text, blanks last.  Mixed types never compare directly.
    parts: list[tuple[int, Any]] = []
    for v in key:
        if v is None or v == "":
            parts.append((2, ""))
        elif isinstance(v, (int, float)) and not isinstance(v, bool):
            parts.append((0, v))
        else:
            parts.append((1, str(v).lower()))
    return tuple(parts)


def _label(value: Any) -> Any:
    return "(blank)" if value is None or value == "" else value


def records_from_rows(rows: Sequence[Sequence[Any]]) -> tuple[list[str], list[dict[str, Any]]]:
    """Split a header row off *rows* and return ``(headers, records)``."""
    if not rows:
        raise ValueError("Source range is empty")
    headers = [str(h) if h is not None else "" for h in rows[0]]
    records = [dict(zip(headers, row)) for row in rows[1:]]
    return headers, records


def build_pivot(
    headers: Sequence[str],
    records: list[dict[str, Any]],
    rows: Sequence[str],
    columns: Sequence[str] = (),
    values: Sequence[ValueField] = (),
    filters: Sequence[str] = (),
) -> PivotSummary:
    """Aggregate *records* into a :class:`PivotSummary`.

    Raises:
        KeyError: A referenced field is not one of *headers*.
    """
    for name in [*rows, *columns, *(v.field for v in values), *filters]:
        if name not in headers:
            raise KeyError(f"Pivot field '{name}' not found in source headers {list(headers)}")

    value_fields = list(values) or [ValueField(field=rows[0], function="count")]

    def group(keys: Sequence[str]) -> dict[tuple[Any, ...], list[dict[str, Any]]]:
        groups: dict[tuple[Any, ...], list[dict[str, Any]]] = {}
        for record in records:
            groups.setdefault(tuple(record.get(k) for k in keys), []).append(record)
        return dict(sorted(groups.items(), key=lambda item: _sort_key(item[0])))

    summary = PivotSummary()

    # Report filters sit above the table, as Excel lays out page fields.
    for name in filters:
        summary.rows.append([name, "(All)"])
    if filters:
        summary.rows.append([])

    row_groups = group(rows)
    col_keys = list(group(columns).keys()) if columns else []

    header: list[Any] = list(rows)
    if col_keys:
        for col_key in col_keys:
            col_label = " / ".join(str(_label(v)) for v in col_key)
            for vf in value_fields:
                header.append(col_label if len(value_fields) == 1 else f"{col_label} - {vf.label}")
        for vf in value_fields:
            header.append(GRAND_TOTAL if len(value_fields) == 1 else f"Total {vf.label}")
    else:
        header.extend(vf.label for vf in value_fields)
    summary.rows.append(header)

    def cells_for(group_records: list[dict[str, Any]]) -> list[Any]:
        cells: list[Any] = []
        if col_keys:
            for col_key in col_keys:
                matching = [
                    r for r in group_records if tuple(r.get(c) for c in columns) == col_key
                ]
                for vf in value_fields:
                    cells.append(vf.aggregate(matching) if matching else None)
        cells.extend(vf.aggregate(group_records) for vf in value_fields)
        return cells

    for row_key, group_records in row_groups.items():
        summary.rows.append([_label(v) for v in row_key] + cells_for(group_records))

    total_row: list[Any] = [GRAND_TOTAL] + [None] * (len(rows) - 1)
    summary.rows.append(total_row + cells_for(records))
    return summary
