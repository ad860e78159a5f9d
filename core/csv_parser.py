"""CSV 解析：按引号切分逻辑记录、单行字段解析、以表头驱动的行映射。

所有值保持为字符串，数值转换由使用方通过 to_int 尽力完成。
"""

from __future__ import annotations

import logging

from pydantic import BaseModel, Field

from domain.catalog import to_int

logger = logging.getLogger(__name__)

QUOTE = '"'
DELIMITER = ","

__all__ = [
    "CsvParseResult",
    "parse_csv",
    "parse_csv_generic",
    "parse_csv_line",
    "split_csv_records",
    "to_int",
]


class CsvParseResult(BaseModel):
    """解析结果：表头、保留的行、被丢弃的记录序号（1 起，表头为第 1 条）。"""

    headers: list[str] = Field(default_factory=list)
    rows: list[dict[str, str]] = Field(default_factory=list)
    dropped: list[int] = Field(default_factory=list)


def split_csv_records(text: str) -> list[str]:
    """
    将原始文本切分为逻辑记录：遇换行切分，但引号内的换行属于字段内容。
    去掉空白记录；行尾的 \\r 交给字段 strip 处理。
    """
    records: list[str] = []
    current: list[str] = []
    in_quotes = False
    for ch in text:
        if ch == QUOTE:
            # "" 转义会连续翻转两次，状态不变
            in_quotes = not in_quotes
        if ch == "\n" and not in_quotes:
            records.append("".join(current))
            current = []
            continue
        current.append(ch)
    records.append("".join(current))
    return [r for r in records if r.strip()]


def _finish_field(chars: list[str], quoted_from: int | None, quoted_to: int | None) -> str:
    """只去掉引号外的首尾空白，引号内的内容原样保留。"""
    text = "".join(chars)
    if quoted_from is None:
        return text.strip()
    end = len(text) if quoted_to is None else quoted_to
    return text[:quoted_from].lstrip() + text[quoted_from:end] + text[end:].rstrip()


def parse_csv_line(line: str) -> list[str]:
    """
    解析单条记录为字段列表：支持引号包裹的逗号/换行，"" 表示字面引号。
    字段去掉引号外的首尾空白（含行尾 \\r），引号内的空白与换行保留。
    """
    result: list[str] = []
    current: list[str] = []
    # 当前字段中引号内容在 current 中的起止位置
    quoted_from: int | None = None
    quoted_to: int | None = None
    in_quotes = False
    i = 0
    n = len(line)
    while i < n:
        ch = line[i]
        if ch == QUOTE:
            if in_quotes and i + 1 < n and line[i + 1] == QUOTE:
                current.append(QUOTE)
                i += 1
            elif in_quotes:
                in_quotes = False
                quoted_to = len(current)
            else:
                in_quotes = True
                if quoted_from is None:
                    quoted_from = len(current)
        elif ch == DELIMITER and not in_quotes:
            result.append(_finish_field(current, quoted_from, quoted_to))
            current = []
            quoted_from = quoted_to = None
        else:
            current.append(ch)
        i += 1
    result.append(_finish_field(current, quoted_from, quoted_to))
    return result


def parse_csv(text: str) -> CsvParseResult:
    """
    首条非空记录为表头；字段数少于 len(headers) - 1 的记录丢弃（容忍末尾缺一列），
    丢弃的记录序号记入 dropped 并打一条 warning。
    """
    records = split_csv_records(text)
    if not records:
        return CsvParseResult()

    headers = parse_csv_line(records[0])
    min_fields = len(headers) - 1
    rows: list[dict[str, str]] = []
    dropped: list[int] = []
    for record_no, record in enumerate(records[1:], start=2):
        values = parse_csv_line(record)
        if len(values) < min_fields:
            dropped.append(record_no)
            continue
        rows.append({h: (values[i] if i < len(values) else "") for i, h in enumerate(headers)})

    if dropped:
        logger.warning("CSV 中 %d 条记录字段数不足已跳过，记录序号: %s", len(dropped), dropped)
    return CsvParseResult(headers=headers, rows=rows, dropped=dropped)


def parse_csv_generic(text: str) -> list[dict[str, str]]:
    """只返回行映射列表（字段名 -> 字符串值）。"""
    return parse_csv(text).rows
