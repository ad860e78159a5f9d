"""导出：通用记录列表 -> CSV 文本/文件；标准门店清单 -> Excel（每个清单一个工作表）。"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any, Mapping, Sequence

import openpyxl  # type: ignore[import-untyped]
from openpyxl.styles import Font  # type: ignore[import-untyped]
from pydantic import BaseModel

from domain.catalog import StoreList

SHEET_NAME_MAX = 31
STORE_LIST_HEADERS = ("Retailer", "Monthly Quota")
TOTAL_LABEL = "Total"

# Excel 工作表名不允许的字符
_INVALID_SHEET_CHARS = re.compile(r"[\[\]:*?/\\]")


class ExportError(ValueError):
    """无可导出数据等导出前置条件不满足。"""


def _as_mapping(row: Mapping[str, Any] | BaseModel) -> Mapping[str, Any]:
    if isinstance(row, BaseModel):
        return row.model_dump(by_alias=True, mode="json")
    return row


def _csv_field(value: Any) -> str:
    text = "" if value is None else str(value)
    # 首尾空白也加引号，解析时才能原样保留
    if any(c in text for c in (",", "\n", "\r", '"')) or text != text.strip():
        return '"' + text.replace('"', '""') + '"'
    return text


def to_csv_text(rows: Sequence[Mapping[str, Any] | BaseModel]) -> str:
    """表头取首条记录的字段；含逗号、换行、引号或首尾空白的值加引号，并将引号加倍。"""
    if not rows:
        raise ExportError("No data to export.")
    records = [_as_mapping(r) for r in rows]
    headers = list(records[0].keys())
    lines = [",".join(_csv_field(h) for h in headers)]
    lines.extend(",".join(_csv_field(r.get(h)) for h in headers) for r in records)
    return "\n".join(lines)


def write_csv(path: Path, rows: Sequence[Mapping[str, Any] | BaseModel]) -> Path:
    """写入 UTF-8 CSV，父目录自动创建。"""
    text = to_csv_text(rows)
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def sheet_title(name: str, max_length: int = SHEET_NAME_MAX) -> str:
    """清单名 -> 合法工作表名：替换非法字符并截断。"""
    title = _INVALID_SHEET_CHARS.sub("-", name).strip() or "Sheet"
    return title[:max_length]


def write_store_lists_workbook(
    path: Path,
    store_lists: Sequence[StoreList],
    *,
    max_title_length: int = SHEET_NAME_MAX,
) -> Path:
    """每个清单一个工作表：Retailer / Monthly Quota，末行为合计（加粗）。"""
    if not store_lists:
        raise ExportError("No store lists selected.")
    wb = openpyxl.Workbook()
    default_ws = wb.active
    bold = Font(bold=True)
    for store_list in store_lists:
        ws = wb.create_sheet(title=sheet_title(store_list.name, max_title_length))
        for col, h in enumerate(STORE_LIST_HEADERS, start=1):
            ws.cell(row=1, column=col, value=h).font = bold
        for row_idx, r in enumerate(store_list.retailers, start=2):
            ws.cell(row=row_idx, column=1, value=r.retailer)
            ws.cell(row=row_idx, column=2, value=r.monthly_quota)
        total_row = len(store_list.retailers) + 2
        ws.cell(row=total_row, column=1, value=TOTAL_LABEL).font = bold
        ws.cell(row=total_row, column=2, value=store_list.total_monthly).font = bold
    if default_ws is not None:
        wb.remove(default_ws)
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    wb.save(path)
    return path
