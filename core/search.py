"""浏览页的自由文本筛选：不区分大小写的子串匹配，空查询返回全部。"""

from __future__ import annotations

from typing import Iterable, Sequence

from domain.catalog import AuthorizedUser, Category, CustomCategoryCode, StoreList
from domain.order import SubmittedOrder


def _query(search: str) -> str:
    return search.strip().lower()


def _any_contains(q: str, fields: Iterable[str]) -> bool:
    return any(q in (f or "").lower() for f in fields)


def search_categories(categories: Sequence[Category], search: str) -> list[Category]:
    """匹配名称、部门、子部门、示例品牌、描述或任一国家。"""
    q = _query(search)
    if not q:
        return list(categories)
    return [
        c
        for c in categories
        if _any_contains(q, (c.name, c.department, c.sub_department, c.example_brands, c.description, *c.countries))
    ]


def search_store_lists(store_lists: Sequence[StoreList], search: str) -> list[StoreList]:
    """匹配清单名称、国家或清单内任一零售商。"""
    q = _query(search)
    if not q:
        return list(store_lists)
    return [
        sl
        for sl in store_lists
        if _any_contains(q, (sl.name, sl.country)) or _any_contains(q, (r.retailer for r in sl.retailers))
    ]


def search_custom_codes(codes: Sequence[CustomCategoryCode], search: str) -> list[CustomCategoryCode]:
    q = _query(search)
    if not q:
        return list(codes)
    return [
        c for c in codes if _any_contains(q, (c.category_code, c.customer, c.category, c.submitted_by, c.job_ids))
    ]


def search_users(users: Sequence[AuthorizedUser], search: str) -> list[AuthorizedUser]:
    q = _query(search)
    if not q:
        return list(users)
    return [u for u in users if _any_contains(q, (u.name, u.email))]


def search_submitted_orders(orders: Sequence[SubmittedOrder], search: str) -> list[SubmittedOrder]:
    """匹配提交人姓名/邮箱，或任一订单行的品类、零售商、国家。"""
    q = _query(search)
    if not q:
        return list(orders)
    return [
        o
        for o in orders
        if _any_contains(q, (o.submitted_by, o.submitted_by_email))
        or any(_any_contains(q, (e.category, e.retailer, e.country)) for e in o.entries)
    ]
