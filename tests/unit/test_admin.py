"""core.admin 单元测试：品类、门店清单与零售商、加购零售商、自定义编码的维护及缓存失效。"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from core.admin import CatalogAdmin
from core.catalog import Catalog
from core.store import (
    BOOSTERS,
    CATEGORIES,
    CUSTOM_CODES,
    STORE_LISTS,
    DocumentNotFoundError,
    JsonDocumentStore,
    fetch_custom_codes,
)


@pytest.fixture
def catalog() -> MagicMock:
    return MagicMock(spec=Catalog)


@pytest.fixture
def admin(store: JsonDocumentStore, catalog: MagicMock) -> CatalogAdmin:
    return CatalogAdmin(store, catalog)


class TestCategories:
    def test_add_update_delete(self, admin: CatalogAdmin, store: JsonDocumentStore, catalog: MagicMock) -> None:
        doc_id = admin.add_category({"name": "  Oat Milk ", "country": "US", "premium": "TRUE", "subDepartment": "Dairy"})
        doc = store.get(CATEGORIES, doc_id)
        assert (doc["name"], doc["premium"], doc["subDepartment"]) == ("Oat Milk", True, "Dairy")

        row = admin.update_category(doc_id, {"number": "301", "sub_department": "Plant"})
        assert (row.name, row.number, row.sub_department) == ("Oat Milk", "301", "Plant")
        assert store.get(CATEGORIES, doc_id)["subDepartment"] == "Plant"

        admin.delete_category(doc_id)
        assert store.fetch(CATEGORIES) == []
        assert catalog.invalidate_categories.call_count == 3

    def test_name_required(self, admin: CatalogAdmin, store: JsonDocumentStore, catalog: MagicMock) -> None:
        with pytest.raises(ValueError, match="Name is required"):
            admin.add_category({"name": "   ", "country": "US"})
        doc_id = admin.add_category({"name": "Tea"})
        with pytest.raises(ValueError, match="Name is required"):
            admin.update_category(doc_id, {"name": ""})
        assert store.get(CATEGORIES, doc_id)["name"] == "Tea"
        catalog.invalidate_categories.assert_called_once()

    def test_missing_document(self, admin: CatalogAdmin) -> None:
        with pytest.raises(DocumentNotFoundError):
            admin.update_category("nope", {"name": "X"})
        with pytest.raises(DocumentNotFoundError):
            admin.delete_category("nope")


class TestStoreLists:
    def test_list_and_retailers(self, admin: CatalogAdmin, store: JsonDocumentStore, catalog: MagicMock) -> None:
        list_id = admin.add_store_list(" Club ", " US ")
        assert store.get(STORE_LISTS, list_id)["retailers"] == []

        first = admin.add_retailer(list_id, " Costco ", "5", "20abc")
        admin.add_retailer(list_id, "Sam's Club", "x")
        assert (first.retailer, first.weekly_quota, first.monthly_quota) == ("Costco", 5, 20)
        assert first.id.startswith("Club-Costco-")

        updated = admin.update_retailer(list_id, 1, {"monthlyQuota": "8"})
        assert (updated.retailer, updated.weekly_quota, updated.monthly_quota) == ("Sam's Club", 0, 8)

        removed = admin.remove_retailer(list_id, 0)
        assert removed.retailer == "Costco"
        retailers = store.get(STORE_LISTS, list_id)["retailers"]
        assert [(r["retailer"], r["monthlyQuota"]) for r in retailers] == [("Sam's Club", 8)]

        admin.delete_store_list(list_id)
        assert store.fetch(STORE_LISTS) == []
        assert catalog.invalidate_store_lists.call_count == 6

    @pytest.mark.parametrize("name, country", [("", "US"), ("Club", "  ")])
    def test_name_and_country_required(self, admin: CatalogAdmin, name: str, country: str) -> None:
        with pytest.raises(ValueError, match="Name and Country are required"):
            admin.add_store_list(name, country)

    def test_retailer_validation(self, admin: CatalogAdmin) -> None:
        list_id = admin.add_store_list("Club", "US")
        with pytest.raises(ValueError, match="Retailer name is required"):
            admin.add_retailer(list_id, "  ")
        admin.add_retailer(list_id, "Costco")
        with pytest.raises(ValueError, match="Retailer name is required"):
            admin.update_retailer(list_id, 0, {"retailer": ""})
        with pytest.raises(ValueError, match="#3"):
            admin.remove_retailer(list_id, 2)
        with pytest.raises(ValueError):
            admin.update_retailer(list_id, -1, {"retailer": "X"})


class TestBoosters:
    def test_add_update_delete(self, admin: CatalogAdmin, store: JsonDocumentStore, catalog: MagicMock) -> None:
        doc_id = admin.add_booster(" Costco ", "US")
        assert store.get(BOOSTERS, doc_id)["name"] == "Costco"
        booster = admin.update_booster(doc_id, {"country": " CA "})
        assert (booster.name, booster.country) == ("Costco", "CA")
        admin.delete_booster(doc_id)
        assert store.fetch(BOOSTERS) == []
        assert catalog.invalidate_boosters.call_count == 3

    def test_name_and_country_required(self, admin: CatalogAdmin) -> None:
        with pytest.raises(ValueError, match="Name and Country are required"):
            admin.add_booster("Costco", "")
        doc_id = admin.add_booster("Costco", "US")
        with pytest.raises(ValueError, match="Name and Country are required"):
            admin.update_booster(doc_id, {"name": " "})


class TestCustomCodes:
    def test_defaults(self, admin: CatalogAdmin, store: JsonDocumentStore) -> None:
        doc_id = admin.add_custom_code({"categoryCode": " 900 ", "customer": " Northwind ", "codeType": ""})
        doc = store.get(CUSTOM_CODES, doc_id)
        assert (doc["categoryCode"], doc["customer"], doc["codeType"]) == ("900", "Northwind", "Custom")
        assert datetime.fromisoformat(doc["timestamp"]).tzinfo is not None

    def test_given_timestamp_kept(self, admin: CatalogAdmin, store: JsonDocumentStore) -> None:
        doc_id = admin.add_custom_code({"category_code": "901", "timestamp": "2026-01-01"})
        assert store.get(CUSTOM_CODES, doc_id)["timestamp"] == "2026-01-01"

    def test_update_and_delete(self, admin: CatalogAdmin, store: JsonDocumentStore, catalog: MagicMock) -> None:
        doc_id = admin.add_custom_code({"categoryCode": "900", "jobIds": "J-1"})
        code = admin.update_custom_code(doc_id, {"job_ids": "J-1, J-2"})
        assert (code.category_code, code.job_ids) == ("900", "J-1, J-2")
        with pytest.raises(ValueError, match="Category Code is required"):
            admin.update_custom_code(doc_id, {"categoryCode": " "})
        admin.delete_custom_code(doc_id)
        assert fetch_custom_codes(store) == []
        assert catalog.method_calls == []

    def test_code_required(self, admin: CatalogAdmin) -> None:
        with pytest.raises(ValueError, match="Category Code is required"):
            admin.add_custom_code({"customer": "Northwind"})


def test_writes_reach_catalog_loads(store: JsonDocumentStore, tmp_path: Path) -> None:
    catalog = Catalog(store, tmp_path / "no-csv")
    admin = CatalogAdmin(store, catalog)
    admin.add_booster("Costco", "US")
    assert [b.name for b in catalog.load_boosters()] == ["Costco"]
    admin.add_booster("Metro", "CA")
    assert [b.name for b in catalog.load_boosters()] == ["Costco", "Metro"]


def test_without_catalog(store: JsonDocumentStore) -> None:
    doc_id = CatalogAdmin(store).add_category({"name": "Tea"})
    assert store.get(CATEGORIES, doc_id)["name"] == "Tea"
