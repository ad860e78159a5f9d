"""命令行输出：对齐的纯文本表格与各浏览视图的行格式化。"""

from __future__ import annotations

from typing import Any, Sequence

from core.orders import category_rollup
from domain.catalog import Category, DuplicateGroup, StoreList
from domain.order import OrderEntry, RollupRow, SubmittedOrder


def format_table(headers: Sequence[str], rows: Sequence[Sequence[Any]]) -> str:
    """按列宽对齐输出；空行集合只输出表头。"""
    cells = [[str(h) for h in headers]] + [["" if v is None else str(v) for v in row] for row in rows]
    widths = [max(len(r[i]) if i < len(r) else 0 for r in cells) for i in range(len(headers))]
    lines = []
    for idx, row in enumerate(cells):
        lines.append("  ".join(row[i].ljust(widths[i]) if i < len(row) else "" for i in range(len(headers))).rstrip())
        if idx == 0:
            lines.append("  ".join("-" * w for w in widths))
    return "\n".join(lines)


def format_categories(categories: Sequence[Category]) -> str:
    rows = [
        (
            ("* " if c.premium else "") + c.name,
            c.department,
            c.sub_department,
            ", ".join(c.countries),
            c.number,
        )
        for c in categories
    ]
    return format_table(("Category", "Department", "Sub-Department", "Countries", "Code"), rows)


def format_store_list(store_list: StoreList) -> str:
    rows = [(r.retailer, r.weekly_quota, r.monthly_quota) for r in store_list.retailers]
    rows.append(("Total", store_list.total_weekly, store_list.total_monthly))
    title = f"{store_list.name} [{store_list.country}] - {len(store_list.retailers)} Retailers"
    if store_list.id:
        title += f" (id: {store_list.id})"
    return f"{title}\n{format_table(('Retailer', 'Weekly', 'Monthly'), rows)}"


def format_duplicate_groups(groups: Sequence[DuplicateGroup]) -> str:
    if not groups:
        return "No duplicate codes found."
    blocks = []
    for g in groups:
        rows = [(e.category, e.code_type, e.country or e.customer or "--") for e in g.entries]
        blocks.append(f"Duplicate Code: {g.code}\n{format_table(('Category', 'Code Type', 'Country/Customer'), rows)}")
    return "\n\n".join(blocks)


def format_order_entries(entries: Sequence[OrderEntry]) -> str:
    if not entries:
        return "No orders submitted yet."
    rows = [
        (
            e.category,
            e.country,
            e.retailer,
            e.type,
            e.store_list_name or "-",
            e.monthly_quota if e.monthly_quota is not None else "-",
            e.start_date.isoformat(),
            e.end_date.isoformat(),
            e.id[:8],
        )
        for e in entries
    ]
    return format_table(("Category", "Country", "Retailer", "Type", "Store List", "Monthly", "Start", "End", "ID"), rows)


def format_rollup(rollup: Sequence[RollupRow]) -> str:
    rows = [(r.label, r.standard, r.booster, f"{r.monthly_total} per month") for r in rollup]
    return format_table(("Category", "Standard", "Booster", "Monthly Total"), rows)


def format_submitted_orders(orders: Sequence[SubmittedOrder]) -> str:
    """每份订单：提交人、时间、状态，以及按品类的汇总。"""
    if not orders:
        return "No submitted orders found."
    blocks = []
    for o in orders:
        title = (
            f"{o.submitted_by} <{o.submitted_by_email}>  {o.submitted_at:%b %d, %Y %H:%M}  "
            f"[{o.status.capitalize()}]  {len(o.entries)} entries  ({o.id})"
        )
        blocks.append(f"{title}\n{format_rollup(category_rollup(o.entries))}")
    return "\n\n".join(blocks)
