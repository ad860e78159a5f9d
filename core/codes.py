"""
主编码目录：由标准品类行与自定义编码组装编码记录，支持搜索/国家筛选与重复编码检测。

重复检测为纯函数，不修改入参，可在每次展示时重新计算。
"""

from __future__ import annotations

import re
from collections import Counter
from functools import cmp_to_key
from typing import Iterable

from domain.catalog import CategoryRow, CodeRecord, CustomCategoryCode, DuplicateGroup

from .grouping import locale_key

STANDARD = "Standard"
CUSTOM = "Custom"
PLACEHOLDER_CUSTOMER = "--"

_LEADING_INT = re.compile(r"^\s*[+-]?\d+")


def build_code_records(
    category_rows: Iterable[CategoryRow],
    custom_codes: Iterable[CustomCategoryCode],
) -> list[CodeRecord]:
    """标准编码（每个品类行一条，带国家）+ 自定义编码（无国家），按品类名排序。"""
    standard = [
        CodeRecord(
            category=row.name,
            code=row.number,
            code_type=STANDARD,
            country=row.country,
            department=row.department,
            customer=PLACEHOLDER_CUSTOMER,
        )
        for row in category_rows
        if row.number.strip()
    ]
    custom = [
        CodeRecord(
            category=c.category,
            code=c.category_code,
            code_type=CUSTOM,
            country="",
            department="",
            customer=c.customer or PLACEHOLDER_CUSTOMER,
        )
        for c in custom_codes
        if c.category_code.strip()
    ]
    return sorted(standard + custom, key=lambda r: locale_key(r.category))


def list_code_countries(records: Iterable[CodeRecord]) -> list[str]:
    """国家下拉选项：去空、去重、排序。"""
    return sorted({r.country.strip() for r in records if r.country and r.country.strip()})


def filter_code_records(
    records: Iterable[CodeRecord],
    search: str = "",
    country: str = "",
) -> list[CodeRecord]:
    """国家精确匹配；search 非空时在所有字段中做不区分大小写的子串匹配。"""
    q = search.strip().lower()
    result: list[CodeRecord] = []
    for r in records:
        if country and r.country != country:
            continue
        if q and not any(
            q in field.lower()
            for field in (r.category, r.code, r.code_type, r.country, r.department, r.customer)
        ):
            continue
        result.append(r)
    return result


def _parse_int(code: str) -> int | None:
    m = _LEADING_INT.match(code)
    return int(m.group(0)) if m else None


def compare_codes(a: str, b: str) -> int:
    """两者都能解析为整数时按数值比较，否则按字符串比较（逐对判断）。"""
    na, nb = _parse_int(a), _parse_int(b)
    if na is not None and nb is not None:
        return (na > nb) - (na < nb)
    ka, kb = locale_key(a), locale_key(b)
    return (ka > kb) - (ka < kb)


def _has_repeat_within_country(entries: list[CodeRecord]) -> bool:
    # 空国家也是一个桶：无国家的记录（自定义编码）合在一起计数
    counts = Counter((e.country or "").strip().lower() for e in entries)
    return any(v > 1 for v in counts.values())


def find_duplicate_groups(
    records: Iterable[CodeRecord],
    ignore_unique_per_country: bool = True,
) -> list[DuplicateGroup]:
    """
    按去空白后的编码分组，保留 2 条及以上的组。
    ignore_unique_per_country 为 True 时，仅保留同一国家内（或无国家记录之间）重复出现的组；
    每个国家各出现一次的组视为正常而被过滤。
    """
    buckets: dict[str, list[CodeRecord]] = {}
    for r in records:
        key = r.code.strip()
        if not key:
            continue
        buckets.setdefault(key, []).append(r)

    groups = [
        DuplicateGroup(code=code, entries=entries)
        for code, entries in buckets.items()
        if len(entries) >= 2
    ]
    if ignore_unique_per_country:
        groups = [g for g in groups if _has_repeat_within_country(g.entries)]

    groups.sort(key=cmp_to_key(lambda a, b: compare_codes(a.code, b.code)))
    return groups
