"""
目录服务：品类、标准门店清单、加购零售商三个数据集，各自一个 DatasetCache。

数据源顺序：文档库集合 -> CSV 兜底资源。品类无论来源都经 group_categories 合并。
"""

from __future__ import annotations

import logging
from pathlib import Path

from domain.catalog import Booster, Category, CategoryRow, StoreList
from models.schemas import DataSection

from .cache import DatasetCache, Source
from .csv_parser import parse_csv_generic
from .grouping import group_categories, group_store_lists, locale_key, parse_boosters
from .store import JsonDocumentStore, fetch_boosters, fetch_category_rows, fetch_store_lists

logger = logging.getLogger(__name__)


def read_csv_resource(path: Path) -> str:
    """读取 CSV 资源文本（兼容 BOM）；文件不存在抛 FileNotFoundError。"""
    if not path.exists():
        raise FileNotFoundError(f"CSV 资源不存在: {path}")
    return path.read_text(encoding="utf-8-sig")


class Catalog:
    """启动时构造一次；invalidate_* 后下一次 load_* 重新读取文档库。"""

    def __init__(
        self,
        store: JsonDocumentStore,
        csv_dir: str | Path,
        data: DataSection | None = None,
    ) -> None:
        self.store = store
        self.csv_dir = Path(csv_dir)
        self.data = data or DataSection()

        self.categories: DatasetCache[Category] = DatasetCache(
            "categories",
            [
                Source("store:categories", self._categories_from_store),
                Source(f"csv:{self.data.categories_csv}", self._categories_from_csv),
            ],
        )
        self.store_lists: DatasetCache[StoreList] = DatasetCache(
            "storeLists",
            [
                Source("store:storeLists", self._store_lists_from_store),
                Source(f"csv:{self.data.store_lists_csv}", self._store_lists_from_csv),
            ],
        )
        self.boosters: DatasetCache[Booster] = DatasetCache(
            "boosters",
            [
                Source("store:boosters", self._boosters_from_store),
                Source(f"csv:{self.data.boosters_csv}", self._boosters_from_csv),
            ],
        )

    # ----- 数据源 -----

    def _csv_rows(self, filename: str) -> list[dict[str, str]]:
        return parse_csv_generic(read_csv_resource(self.csv_dir / filename))

    def _categories_from_store(self) -> list[Category]:
        return group_categories(fetch_category_rows(self.store))

    def _categories_from_csv(self) -> list[Category]:
        rows = [CategoryRow.model_validate(r) for r in self._csv_rows(self.data.categories_csv)]
        return group_categories(rows)

    def _store_lists_from_store(self) -> list[StoreList]:
        return sorted(fetch_store_lists(self.store), key=lambda sl: locale_key(sl.name))

    def _store_lists_from_csv(self) -> list[StoreList]:
        return group_store_lists(self._csv_rows(self.data.store_lists_csv))

    def _boosters_from_store(self) -> list[Booster]:
        return sorted(fetch_boosters(self.store), key=lambda b: locale_key(b.name))

    def _boosters_from_csv(self) -> list[Booster]:
        return parse_boosters(self._csv_rows(self.data.boosters_csv))

    # ----- 对外接口 -----

    def load_categories(self) -> list[Category]:
        return self.categories.load()

    def load_store_lists(self) -> list[StoreList]:
        return self.store_lists.load()

    def load_boosters(self) -> list[Booster]:
        return self.boosters.load()

    def invalidate_categories(self) -> None:
        self.categories.invalidate()

    def invalidate_store_lists(self) -> None:
        self.store_lists.invalidate()

    def invalidate_boosters(self) -> None:
        self.boosters.invalidate()

    def invalidate_all(self) -> None:
        for cache in (self.categories, self.store_lists, self.boosters):
            cache.invalidate()
        logger.info("目录缓存已全部失效")
