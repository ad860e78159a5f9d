"""
行到实体的归并：多国品类行合并为统一品类、门店清单按「名称 + 国家」分组、
加购零售商与自定义编码行的校验转换。
"""

from __future__ import annotations

import logging
import uuid
from typing import Any, Iterable, Mapping

from pydantic import ValidationError

from domain.catalog import (
    Booster,
    Category,
    CategoryRow,
    CustomCategoryCode,
    StoreList,
    StoreListRetailer,
)

logger = logging.getLogger(__name__)

DESCRIPTION_SEP = " | "
BRAND_SEP = ", "
NUMBER_SEP = ", "


def locale_key(text: str) -> tuple[str, str]:
    """近似 localeCompare 的排序键：先按 casefold；仅大小写不同时小写在前（"a" < "A"）。"""
    return (text.casefold(), text.swapcase())


def _unique(values: Iterable[str]) -> list[str]:
    return list(dict.fromkeys(values))


def merge_descriptions(descriptions: Iterable[str]) -> str:
    """去空、去重后以 ' | ' 拼接；只剩一个时原样返回。"""
    unique = _unique(d for d in descriptions if d and d.strip())
    if not unique:
        return ""
    if len(unique) == 1:
        return unique[0]
    return DESCRIPTION_SEP.join(unique)


def merge_example_brands(brands: Iterable[str]) -> str:
    """每个字符串按逗号拆分、去空白，保序去重后以 ', ' 拼接。"""
    merged: list[str] = []
    for brand_str in brands:
        if not brand_str or not brand_str.strip():
            continue
        merged.extend(b.strip() for b in brand_str.split(",") if b.strip())
    return BRAND_SEP.join(_unique(merged))


def _to_category_row(row: CategoryRow | Mapping[str, Any]) -> CategoryRow | None:
    if isinstance(row, CategoryRow):
        return row
    try:
        return CategoryRow.model_validate(dict(row))
    except ValidationError as e:
        logger.warning("品类行校验失败，已跳过: %s", e)
        return None


def _seed_category(row: CategoryRow) -> Category:
    return Category(
        id=row.id or row.name.lower(),
        name=row.name,
        countries=[row.country] if row.country else [],
        department=row.department,
        sub_department=row.sub_department,
        description=row.description,
        example_brands=row.example_brands,
        notes=row.notes,
        number=row.number,
        premium=row.premium,
    )


def _merge_into(existing: Category, row: CategoryRow) -> None:
    if row.country and row.country not in existing.countries:
        existing.countries.append(row.country)

    existing.description = merge_descriptions([existing.description, row.description])

    brands = [b.strip() for b in existing.example_brands.split(",")] + [row.example_brands]
    existing.example_brands = merge_example_brands(b for b in brands if b)

    # 只填空缺，不覆盖：先出现的非空值生效
    if row.department and not existing.department:
        existing.department = row.department
    if row.sub_department and not existing.sub_department:
        existing.sub_department = row.sub_department
    if row.notes and not existing.notes:
        existing.notes = row.notes

    if row.number and existing.number != row.number:
        if not existing.number:
            existing.number = row.number
        elif row.number not in existing.number:
            existing.number = f"{existing.number}{NUMBER_SEP}{row.number}"
    # premium 不参与合并，保留首行的值


def group_categories(rows: Iterable[CategoryRow | Mapping[str, Any]]) -> list[Category]:
    """
    按小写名称合并品类行：每个名称一条，countries 保持首次出现顺序且不重复。
    department / subDepartment / notes 为「首个非空值生效」，结果依赖输入顺序。
    返回按名称排序的品类列表。
    """
    merged: dict[str, Category] = {}
    for raw in rows:
        row = _to_category_row(raw)
        if row is None or not row.name:
            continue
        key = row.name.lower()
        existing = merged.get(key)
        if existing is None:
            merged[key] = _seed_category(row)
        else:
            _merge_into(existing, row)
    return sorted(merged.values(), key=lambda c: locale_key(c.name))


def group_store_lists(rows: Iterable[Mapping[str, Any]]) -> list[StoreList]:
    """一行一个零售商；按「名称::国家」分组为门店清单，名称与国家均必填。"""
    lists: dict[str, StoreList] = {}
    for row in rows:
        name = str(row.get("name") or "").strip()
        country = str(row.get("country") or "").strip()
        if not name or not country:
            continue
        retailer_name = str(row.get("retailer") or "").strip()
        retailer = StoreListRetailer(
            id=row.get("id") or f"{name}-{retailer_name}-{uuid.uuid4().hex[:8]}",
            retailer=retailer_name,
            weekly_quota=row.get("weeklyQuota"),
            monthly_quota=row.get("monthlyQuota"),
        )
        key = f"{name}::{country}"
        if key in lists:
            lists[key].retailers.append(retailer)
        else:
            lists[key] = StoreList(name=name, country=country, retailers=[retailer])
    return sorted(lists.values(), key=lambda sl: locale_key(sl.name))


def parse_boosters(rows: Iterable[Mapping[str, Any]]) -> list[Booster]:
    """名称与国家均非空的行转为 Booster，缺 ID 时生成。"""
    boosters: list[Booster] = []
    for row in rows:
        name = str(row.get("name") or "").strip()
        country = str(row.get("country") or "").strip()
        if not name or not country:
            continue
        boosters.append(
            Booster(
                id=str(row.get("id") or "").strip() or f"booster-{name}-{uuid.uuid4().hex[:8]}",
                name=name,
                country=country,
            )
        )
    return sorted(boosters, key=lambda b: locale_key(b.name))


def parse_custom_codes(rows: Iterable[Mapping[str, Any]]) -> list[CustomCategoryCode]:
    """仅保留 categoryCode 非空的行。"""
    codes = [CustomCategoryCode.model_validate(dict(row)) for row in rows]
    return [c for c in codes if c.category_code]


def category_rows_to_docs(rows: Iterable[Mapping[str, Any]]) -> list[dict[str, Any]]:
    """CSV 品类行 -> 文档库文档（每行一个文档，不合并），跳过无名称行。"""
    docs: list[dict[str, Any]] = []
    for raw in rows:
        row = _to_category_row(raw)
        if row is None or not row.name:
            continue
        docs.append(row.model_dump(by_alias=True, exclude={"id"}))
    return docs
