"""
下单流程：由品类选择生成「品类 × 国家」配置、校验、生成订单行、汇总，以及本地订单快照。
"""

from __future__ import annotations

import json
import logging
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Sequence

from pydantic import TypeAdapter, ValidationError

from domain.catalog import Booster, Category, StoreList
from domain.order import CategoryConfig, CategorySelection, OrderEntry, RollupRow, SubmittedOrder, SummaryRow

from .store import SUBMITTED_ORDERS, JsonDocumentStore, NotAuthorizedError, is_authorized

logger = logging.getLogger(__name__)

_ENTRIES = TypeAdapter(list[OrderEntry])


class OrderValidationError(ValueError):
    """配置未通过校验，不生成任何订单行。"""

    def __init__(self, warnings: list[str]) -> None:
        super().__init__("; ".join(warnings))
        self.warnings = warnings


def build_configs(
    categories: Sequence[Category],
    selections: Sequence[CategorySelection],
) -> list[CategoryConfig]:
    """每个选中品类的每个选中国家生成一份空配置，顺序与品类列表一致。"""
    by_id = {s.category_id: s for s in selections}
    configs: list[CategoryConfig] = []
    for cat in categories:
        selection = by_id.get(cat.id)
        if selection is None:
            continue
        countries = selection.countries or cat.countries
        for country in cat.countries:
            if country in countries:
                configs.append(CategoryConfig(category_id=cat.id, category_name=cat.name, country=country))
    return configs


def _needs_selection(config: CategoryConfig) -> bool:
    return not config.selected_store_lists and not config.selected_boosters and not config.proceed_without_list


def validation_warnings(configs: Iterable[CategoryConfig]) -> list[str]:
    """需要门店清单或加购零售商（除非勾选无清单继续）；需要完整采集周期且开始不晚于结束。"""
    warnings: list[str] = []
    for config in configs:
        if _needs_selection(config):
            warnings.append(f"{config.label} needs a store list or booster selection.")
        if config.start_date is None or config.end_date is None:
            warnings.append(f"{config.label} needs a collection period.")
        elif config.start_date > config.end_date:
            warnings.append(f"{config.label}: start date must be before end date.")
    return warnings


def count_needing_attention(configs: Iterable[CategoryConfig]) -> int:
    return sum(
        1 for c in configs if _needs_selection(c) or c.start_date is None or c.end_date is None
    )


def _find_list(store_lists: Sequence[StoreList], name: str, country: str) -> StoreList | None:
    return next((sl for sl in store_lists if sl.name == name and sl.country == country), None)


def _find_booster(boosters_by_id: dict[str, Booster], booster_id: str, country: str) -> Booster | None:
    """加购零售商只对所属国家的配置生效。"""
    booster = boosters_by_id.get(booster_id)
    if booster is None or booster.country != country:
        return None
    return booster


def build_order_entries(
    configs: Sequence[CategoryConfig],
    store_lists: Sequence[StoreList],
    boosters: Sequence[Booster],
) -> list[OrderEntry]:
    """
    校验通过后生成订单行：每个选中清单的每个零售商一行（standard），每个选中加购零售商一行（booster）。
    清单按名称 + 国家匹配，加购零售商按 ID 匹配且须属于配置所在国家；不匹配的直接跳过并记录 warning。

    Raises:
        OrderValidationError: 任一配置未通过校验。
    """
    warnings = validation_warnings(configs)
    if warnings:
        raise OrderValidationError(warnings)

    boosters_by_id = {b.id: b for b in boosters}
    entries: list[OrderEntry] = []
    for config in configs:
        start, end = config.start_date, config.end_date
        if start is None or end is None:
            continue
        common = {
            "category": config.category_name,
            "country": config.country,
            "start_date": start,
            "end_date": end,
            "collection_notes": config.collection_notes,
        }
        for list_name in config.selected_store_lists:
            store_list = _find_list(store_lists, list_name, config.country)
            if store_list is None:
                logger.warning("未找到门店清单 %s (%s)，已跳过", list_name, config.country)
                continue
            for r in store_list.retailers:
                entries.append(
                    OrderEntry(
                        id=uuid.uuid4().hex,
                        retailer=r.retailer,
                        type="standard",
                        store_list_name=list_name,
                        weekly_quota=r.weekly_quota,
                        monthly_quota=r.monthly_quota,
                        **common,
                    )
                )
        for booster_id in config.selected_boosters:
            booster = _find_booster(boosters_by_id, booster_id, config.country)
            if booster is None:
                logger.warning("未找到 %s 的加购零售商 %s，已跳过", config.country, booster_id)
                continue
            entries.append(OrderEntry(id=uuid.uuid4().hex, retailer=booster.name, type="booster", **common))
    return entries


def apply_to_all(configs: Sequence[CategoryConfig], source_index: int) -> list[CategoryConfig]:
    """将 source_index 的选择与周期复制到全部配置，返回新列表。"""
    source = configs[source_index]

    def shared() -> dict:
        # model_copy 不会复制 update 中的值，每份配置各用一份新列表
        return {
            "selected_store_lists": list(source.selected_store_lists),
            "selected_boosters": list(source.selected_boosters),
            "start_date": source.start_date,
            "end_date": source.end_date,
            "collection_notes": source.collection_notes,
            "proceed_without_list": source.proceed_without_list,
        }

    return [c.model_copy(update=shared(), deep=True) for c in configs]


def clear_selection(configs: Sequence[CategoryConfig], index: int) -> list[CategoryConfig]:
    cleared = {
        "selected_store_lists": [],
        "selected_boosters": [],
        "start_date": None,
        "end_date": None,
        "collection_notes": "",
        "proceed_without_list": False,
    }
    return [c.model_copy(update=cleared, deep=True) if i == index else c for i, c in enumerate(configs)]


def selection_summary(
    configs: Iterable[CategoryConfig],
    store_lists: Sequence[StoreList],
    boosters: Sequence[Booster],
) -> list[SummaryRow]:
    """汇总所选清单的零售商（带配额）与加购零售商（配额为 0）。"""
    boosters_by_id = {b.id: b for b in boosters}
    rows: list[SummaryRow] = []
    for config in configs:
        for list_name in config.selected_store_lists:
            store_list = _find_list(store_lists, list_name, config.country)
            if store_list is None:
                continue
            rows.extend(
                SummaryRow(
                    retailer=r.retailer,
                    type="Standard",
                    weekly_quota=r.weekly_quota,
                    monthly_quota=r.monthly_quota,
                )
                for r in store_list.retailers
            )
        for booster_id in config.selected_boosters:
            booster = _find_booster(boosters_by_id, booster_id, config.country)
            if booster is not None:
                rows.append(SummaryRow(retailer=booster.name, type="Booster"))
    return rows


def category_rollup(entries: Iterable[OrderEntry]) -> list[RollupRow]:
    """按「品类 (国家)」统计 standard / booster 行数与月配额合计，保持首次出现顺序。"""
    rollup: dict[str, RollupRow] = {}
    for e in entries:
        label = f"{e.category} ({e.country})"
        row = rollup.setdefault(label, RollupRow(label=label))
        if e.type == "standard":
            row.standard += 1
        else:
            row.booster += 1
        row.monthly_total += e.monthly_quota or 0
    return list(rollup.values())


class OrderSnapshot:
    """进行中订单的本地快照：JSON 数组，日期以 ISO 字符串保存，读取时还原为 date。"""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def load(self) -> list[OrderEntry]:
        """读取快照；文件不存在返回空列表，内容损坏时记录错误并返回空列表。"""
        if not self.path.exists():
            return []
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8") or "[]")
            return _ENTRIES.validate_python(raw)
        except (json.JSONDecodeError, ValidationError, OSError) as e:
            logger.error("读取订单快照失败 %s: %s", self.path, e)
            return []

    def save(self, entries: Sequence[OrderEntry]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        data = _ENTRIES.dump_python(list(entries), mode="json", by_alias=True)
        self.path.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")

    def append(self, entries: Sequence[OrderEntry]) -> list[OrderEntry]:
        combined = self.load() + list(entries)
        self.save(combined)
        return combined

    def remove(self, entry_id: str) -> bool:
        entries = self.load()
        remaining = [e for e in entries if e.id != entry_id]
        if len(remaining) == len(entries):
            return False
        self.save(remaining)
        return True

    def clear(self) -> None:
        self.save([])


# ----- 正式提交 -----


def submit_order(
    store: JsonDocumentStore,
    snapshot: OrderSnapshot,
    submitted_by: str,
    submitted_by_email: str,
) -> SubmittedOrder:
    """
    将本地快照中的全部订单行作为一份订单写入 submittedOrders，成功后清空快照。

    Raises:
        ValueError: 快照为空，或提交人姓名/邮箱缺失。
        StoreError: 写入失败（快照保留）。
    """
    entries = snapshot.load()
    if not entries:
        raise ValueError("No order entries to submit.")
    if not submitted_by.strip() or not submitted_by_email.strip():
        raise ValueError("提交人姓名和邮箱均为必填项")
    order = SubmittedOrder(
        submitted_by=submitted_by.strip(),
        submitted_by_email=submitted_by_email.strip().lower(),
        submitted_at=datetime.now(timezone.utc),
        entries=entries,
    )
    doc = order.model_dump(by_alias=True, mode="json", exclude={"id"})
    order.id = store.add(SUBMITTED_ORDERS, doc)
    snapshot.clear()
    logger.info("订单 %s 已提交：%d 行，提交人 %s", order.id, len(entries), order.submitted_by_email)
    return order


def delete_submitted_order(store: JsonDocumentStore, order_id: str, email: str) -> None:
    """仅授权用户可删除已提交订单。"""
    if not is_authorized(store, email):
        raise NotAuthorizedError(f"{email or '(empty)'} 无权删除已提交订单")
    store.delete(SUBMITTED_ORDERS, order_id)
    logger.info("已提交订单 %s 已被 %s 删除", order_id, email)
