"""从 CSV 资源初始化文档库；集合已有数据时跳过（force=True 时仍写入）。"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable

from pydantic import BaseModel, Field

from models.schemas import DataSection

from .catalog import read_csv_resource
from .csv_parser import parse_csv_generic
from .grouping import category_rows_to_docs, group_store_lists, parse_boosters, parse_custom_codes
from .store import BOOSTERS, CATEGORIES, CUSTOM_CODES, STORE_LISTS, JsonDocumentStore

logger = logging.getLogger(__name__)


class SeedResult(BaseModel):
    """各集合写入条数与是否因已有数据被跳过。"""

    written: dict[str, int] = Field(default_factory=dict)
    skipped: dict[str, bool] = Field(default_factory=dict)


def _store_list_docs(rows: list[dict[str, str]]) -> list[dict]:
    return [sl.model_dump(by_alias=True, exclude={"id"}) for sl in group_store_lists(rows)]


def _booster_docs(rows: list[dict[str, str]]) -> list[dict]:
    return [b.model_dump(by_alias=True, exclude={"id"}) for b in parse_boosters(rows)]


def _custom_code_docs(rows: list[dict[str, str]]) -> list[dict]:
    return [c.model_dump(by_alias=True, exclude={"id"}) for c in parse_custom_codes(rows)]


def seed_store_from_csv(
    store: JsonDocumentStore,
    csv_dir: str | Path,
    *,
    force: bool = False,
    data: DataSection | None = None,
) -> SeedResult:
    """依次处理品类、门店清单、加购零售商、自定义编码；CSV 缺失时记为 0 条。"""
    data = data or DataSection()
    csv_dir = Path(csv_dir)
    plan: list[tuple[str, str, Callable[[list[dict[str, str]]], list[dict]]]] = [
        (CATEGORIES, data.categories_csv, category_rows_to_docs),
        (STORE_LISTS, data.store_lists_csv, _store_list_docs),
        (BOOSTERS, data.boosters_csv, _booster_docs),
        (CUSTOM_CODES, data.custom_codes_csv, _custom_code_docs),
    ]
    result = SeedResult()
    for collection, filename, to_docs in plan:
        result.written[collection] = 0
        result.skipped[collection] = False
        if store.fetch(collection) and not force:
            result.skipped[collection] = True
            logger.info("集合 %s 已有数据，跳过初始化", collection)
            continue
        try:
            text = read_csv_resource(csv_dir / filename)
        except (FileNotFoundError, OSError) as e:
            logger.warning("跳过 %s：%s", collection, e)
            continue
        docs = to_docs(parse_csv_generic(text))
        result.written[collection] = store.batch_write(collection, docs)
        logger.info("集合 %s 写入 %d 条", collection, result.written[collection])
    return result
