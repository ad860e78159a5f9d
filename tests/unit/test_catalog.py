"""core.catalog 单元测试：文档库优先、CSV 兜底、缓存失效。"""

from __future__ import annotations

from pathlib import Path

import pytest

from core.cache import SourceStatus
from core.catalog import Catalog, read_csv_resource
from core.store import BOOSTERS, CATEGORIES, JsonDocumentStore


class TestCsvFallback:
    def test_categories_grouped_from_csv(self, store: JsonDocumentStore, csv_dir: Path) -> None:
        catalog = Catalog(store, csv_dir)
        categories = catalog.load_categories()
        assert [c.name for c in categories] == ["Bottled Water", "Frozen Pizza"]
        water = categories[0]
        assert water.countries == ["US", "CA"]
        assert water.number == "101, 102"
        assert water.example_brands == "Aquafina, Dasani, Eska"
        assert water.description == "Still water | Sparkling water"
        assert water.premium is False
        assert catalog.categories.last_results[0].status is SourceStatus.EMPTY

    def test_store_lists_grouped_by_name_and_country(self, store: JsonDocumentStore, csv_dir: Path) -> None:
        lists = Catalog(store, csv_dir).load_store_lists()
        assert [sl.key for sl in lists] == ["Grocery Core::US", "Grocery Core::CA"]
        assert lists[0].total_monthly == 32
        assert lists[0].total_weekly == 8

    def test_boosters_from_csv(self, store: JsonDocumentStore, csv_dir: Path) -> None:
        boosters = Catalog(store, csv_dir).load_boosters()
        assert [(b.id, b.name) for b in boosters] == [("b1", "Costco"), ("b2", "Metro")]

    def test_everything_missing_returns_empty(self, store: JsonDocumentStore, tmp_path: Path) -> None:
        catalog = Catalog(store, tmp_path / "nowhere")
        assert catalog.load_categories() == []
        assert catalog.load_store_lists() == []
        assert catalog.load_boosters() == []


class TestStorePreferred:
    def test_store_data_wins(self, store: JsonDocumentStore, csv_dir: Path) -> None:
        store.add(BOOSTERS, {"name": "Lidl", "country": "US"})
        assert [b.name for b in Catalog(store, csv_dir).load_boosters()] == ["Lidl"]

    def test_store_category_rows_are_grouped(self, store: JsonDocumentStore, csv_dir: Path) -> None:
        store.add(CATEGORIES, {"name": "Yogurt", "country": "US", "number": "300"})
        store.add(CATEGORIES, {"name": "yogurt", "country": "MX", "number": "301"})
        (yogurt,) = Catalog(store, csv_dir).load_categories()
        assert yogurt.countries == ["US", "MX"]
        assert yogurt.number == "300, 301"

    def test_invalidate_rereads_store(self, store: JsonDocumentStore, csv_dir: Path) -> None:
        store.add(BOOSTERS, {"name": "Lidl", "country": "US"})
        catalog = Catalog(store, csv_dir)
        assert len(catalog.load_boosters()) == 1

        store.add(BOOSTERS, {"name": "Aldi", "country": "US"})
        assert len(catalog.load_boosters()) == 1

        catalog.invalidate_boosters()
        assert [b.name for b in catalog.load_boosters()] == ["Aldi", "Lidl"]

    def test_invalidate_all(self, store: JsonDocumentStore, csv_dir: Path) -> None:
        catalog = Catalog(store, csv_dir)
        catalog.load_categories()
        catalog.load_boosters()
        catalog.invalidate_all()
        assert not catalog.categories.is_loaded
        assert not catalog.boosters.is_loaded


def test_read_csv_resource_strips_bom(tmp_path: Path) -> None:
    path = tmp_path / "x.csv"
    path.write_bytes("\ufeffname\nA\n".encode("utf-8"))
    assert read_csv_resource(path).startswith("name")
    with pytest.raises(FileNotFoundError):
        read_csv_resource(tmp_path / "missing.csv")
