"""
目录核心：CSV 解析、品类归并、编码目录与重复检测、数据集缓存、文档库、目录维护、下单与导出。
"""

from .admin import CatalogAdmin
from .cache import DatasetCache, Source, SourceResult, SourceStatus
from .catalog import Catalog
from .codes import build_code_records, filter_code_records, find_duplicate_groups, list_code_countries
from .csv_parser import parse_csv, parse_csv_generic, parse_csv_line, split_csv_records
from .grouping import group_categories, group_store_lists, parse_boosters, parse_custom_codes
from .store import DocumentNotFoundError, JsonDocumentStore, StoreError

__all__ = [
    "Catalog",
    "CatalogAdmin",
    "DatasetCache",
    "DocumentNotFoundError",
    "JsonDocumentStore",
    "Source",
    "SourceResult",
    "SourceStatus",
    "StoreError",
    "build_code_records",
    "filter_code_records",
    "find_duplicate_groups",
    "group_categories",
    "group_store_lists",
    "list_code_countries",
    "parse_boosters",
    "parse_csv",
    "parse_csv_generic",
    "parse_csv_line",
    "parse_custom_codes",
    "split_csv_records",
]
