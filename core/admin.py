"""
目录参考数据维护：品类、标准门店清单（含清单内零售商）、加购零售商、自定义编码的增删改。

- 写入前用对应领域模型校验并规范化（去空白、配额 to_int），必填项缺失抛 ValueError。
- 每次写入后使对应的目录缓存失效，下一次读取重新从文档库加载。
- 文档不存在时由文档库抛 DocumentNotFoundError。
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Mapping

from pydantic import BaseModel

from domain.catalog import Booster, CategoryRow, CustomCategoryCode, StoreList, StoreListRetailer

from .catalog import Catalog
from .store import BOOSTERS, CATEGORIES, CUSTOM_CODES, STORE_LISTS, JsonDocumentStore

logger = logging.getLogger(__name__)


def _doc(model: BaseModel) -> dict[str, Any]:
    return model.model_dump(by_alias=True, exclude={"id"})


def _merge(current: Mapping[str, Any], changes: Mapping[str, Any], model: type[BaseModel]) -> dict[str, Any]:
    """把 snake_case 或 camelCase 的改动合并到现有文档（以别名为键）。"""
    aliases = {name: (field.alias or name) for name, field in model.model_fields.items()}
    merged = dict(current)
    for key, value in changes.items():
        if key == "id":
            continue
        merged[aliases.get(key, key)] = value
    return merged


class CatalogAdmin:
    """维护操作入口；catalog 为 None 时只写文档库（不涉及缓存）。"""

    def __init__(self, store: JsonDocumentStore, catalog: Catalog | None = None) -> None:
        self.store = store
        self.catalog = catalog

    def _invalidate(self, pick: Callable[[Catalog], Callable[[], None]]) -> None:
        if self.catalog is not None:
            pick(self.catalog)()

    # ----- 品类 -----

    def add_category(self, fields: Mapping[str, Any]) -> str:
        """新增一行品类（品类 × 国家）；名称必填。"""
        row = CategoryRow.model_validate(dict(fields))
        if not row.name:
            raise ValueError("Name is required")
        doc_id = self.store.add(CATEGORIES, _doc(row))
        self._invalidate(lambda c: c.invalidate_categories)
        logger.info("新增品类 %s (%s): %s", row.name, row.country, doc_id)
        return doc_id

    def update_category(self, doc_id: str, changes: Mapping[str, Any]) -> CategoryRow:
        current = self.store.get(CATEGORIES, doc_id)
        row = CategoryRow.model_validate(_merge(current, changes, CategoryRow))
        if not row.name:
            raise ValueError("Name is required")
        self.store.update(CATEGORIES, doc_id, _doc(row))
        self._invalidate(lambda c: c.invalidate_categories)
        return row

    def delete_category(self, doc_id: str) -> None:
        self.store.delete(CATEGORIES, doc_id)
        self._invalidate(lambda c: c.invalidate_categories)

    # ----- 标准门店清单 -----

    def _store_list(self, list_id: str) -> StoreList:
        doc = self.store.get(STORE_LISTS, list_id)
        doc["retailers"] = doc.get("retailers") or []
        return StoreList.model_validate(doc)

    def _save_retailers(self, list_id: str, retailers: list[StoreListRetailer]) -> None:
        self.store.update(STORE_LISTS, list_id, {"retailers": [r.model_dump(by_alias=True) for r in retailers]})
        self._invalidate(lambda c: c.invalidate_store_lists)

    def add_store_list(self, name: str, country: str) -> str:
        """新增空清单；名称与国家必填。"""
        name, country = (name or "").strip(), (country or "").strip()
        if not name or not country:
            raise ValueError("Name and Country are required")
        doc_id = self.store.add(STORE_LISTS, _doc(StoreList(name=name, country=country)))
        self._invalidate(lambda c: c.invalidate_store_lists)
        logger.info("新增门店清单 %s::%s: %s", name, country, doc_id)
        return doc_id

    def delete_store_list(self, list_id: str) -> None:
        """删除清单及其全部零售商。"""
        self.store.delete(STORE_LISTS, list_id)
        self._invalidate(lambda c: c.invalidate_store_lists)

    def add_retailer(
        self, list_id: str, retailer: str, weekly_quota: Any = 0, monthly_quota: Any = 0
    ) -> StoreListRetailer:
        """在清单末尾追加零售商；零售商名称必填，配额尽力转为整数。"""
        store_list = self._store_list(list_id)
        name = (retailer or "").strip()
        if not name:
            raise ValueError("Retailer name is required")
        new = StoreListRetailer(
            id=f"{store_list.name}-{name}-{uuid.uuid4().hex[:8]}",
            retailer=name,
            weekly_quota=weekly_quota,
            monthly_quota=monthly_quota,
        )
        self._save_retailers(list_id, [*store_list.retailers, new])
        return new

    def update_retailer(self, list_id: str, index: int, changes: Mapping[str, Any]) -> StoreListRetailer:
        """按位置（0 起）修改清单内零售商。"""
        store_list = self._store_list(list_id)
        if not 0 <= index < len(store_list.retailers):
            raise ValueError(f"Retailer #{index + 1} not found in {store_list.key}")
        current = store_list.retailers[index]
        updated = StoreListRetailer.model_validate(
            _merge(current.model_dump(by_alias=True), changes, StoreListRetailer)
        )
        if not updated.retailer:
            raise ValueError("Retailer name is required")
        retailers = list(store_list.retailers)
        retailers[index] = updated
        self._save_retailers(list_id, retailers)
        return updated

    def remove_retailer(self, list_id: str, index: int) -> StoreListRetailer:
        store_list = self._store_list(list_id)
        if not 0 <= index < len(store_list.retailers):
            raise ValueError(f"Retailer #{index + 1} not found in {store_list.key}")
        removed = store_list.retailers[index]
        self._save_retailers(list_id, [r for i, r in enumerate(store_list.retailers) if i != index])
        return removed

    # ----- 加购零售商 -----

    @staticmethod
    def _booster(fields: Mapping[str, Any]) -> Booster:
        name = str(fields.get("name") or "").strip()
        country = str(fields.get("country") or "").strip()
        if not name or not country:
            raise ValueError("Name and Country are required")
        return Booster(name=name, country=country)

    def add_booster(self, name: str, country: str) -> str:
        doc_id = self.store.add(BOOSTERS, _doc(self._booster({"name": name, "country": country})))
        self._invalidate(lambda c: c.invalidate_boosters)
        return doc_id

    def update_booster(self, doc_id: str, changes: Mapping[str, Any]) -> Booster:
        booster = self._booster(_merge(self.store.get(BOOSTERS, doc_id), changes, Booster))
        self.store.update(BOOSTERS, doc_id, _doc(booster))
        self._invalidate(lambda c: c.invalidate_boosters)
        return booster

    def delete_booster(self, doc_id: str) -> None:
        self.store.delete(BOOSTERS, doc_id)
        self._invalidate(lambda c: c.invalidate_boosters)

    # ----- 自定义编码（不进目录缓存，编码目录每次现算） -----

    def add_custom_code(self, fields: Mapping[str, Any]) -> str:
        """categoryCode 必填；codeType 缺省 Custom，timestamp 缺省为当前 UTC 时间。"""
        code = CustomCategoryCode.model_validate(dict(fields))
        if not code.category_code:
            raise ValueError("Category Code is required")
        if not code.timestamp:
            code.timestamp = datetime.now(timezone.utc).isoformat()
        return self.store.add(CUSTOM_CODES, _doc(code))

    def update_custom_code(self, doc_id: str, changes: Mapping[str, Any]) -> CustomCategoryCode:
        current = self.store.get(CUSTOM_CODES, doc_id)
        code = CustomCategoryCode.model_validate(_merge(current, changes, CustomCategoryCode))
        if not code.category_code:
            raise ValueError("Category Code is required")
        self.store.update(CUSTOM_CODES, doc_id, _doc(code))
        return code

    def delete_custom_code(self, doc_id: str) -> None:
        self.store.delete(CUSTOM_CODES, doc_id)
