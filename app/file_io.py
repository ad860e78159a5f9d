"""文件读写：从 YAML 读取下单请求（品类选择与每个国家的配置）。"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Sequence

import yaml
from pydantic import ValidationError

from domain.catalog import Booster, Category
from domain.order import CategoryConfig, CategorySelection
from core.orders import build_configs

logger = logging.getLogger(__name__)


def _load_yaml_list(path: Path, key: str) -> list[dict[str, Any]]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except (yaml.YAMLError, OSError) as e:
        raise RuntimeError(f"无法读取下单文件 {path}: {e}") from e
    items = data.get(key) if isinstance(data, dict) else None
    if not isinstance(items, list):
        raise RuntimeError(f"下单文件缺少列表「{key}」: {path}")
    return items


def _boosters_for(ids: list[Any], country: str, booster_country: dict[str, str] | None) -> list[str]:
    ids = [str(i).strip() for i in ids]
    if booster_country is None:
        return ids
    kept = [i for i in ids if booster_country.get(i) == country]
    for i in ids:
        if i not in kept:
            logger.warning("加购零售商 %s 不属于 %s，已从该国家配置中移除", i, country)
    return kept


def read_order_request(
    path: Path,
    categories: list[Category],
    boosters: Sequence[Booster] | None = None,
) -> list[CategoryConfig]:
    """
    读取下单 YAML：orders 列表，每项包含 category（名称或 ID）、可选 countries，
    以及 storeLists / boosters / startDate / endDate / collectionNotes / proceedWithoutList。
    按品类选择生成配置后，将每项的选择填入对应「品类 × 国家」配置。
    给出 boosters 时，每个国家只保留属于该国家的加购零售商 ID。
    """
    booster_country = {b.id: b.country for b in boosters} if boosters is not None else None
    path = Path(path)
    if not path.exists():
        raise RuntimeError(f"文件不存在: {path}")
    items = _load_yaml_list(path, "orders")

    by_key = {c.id: c for c in categories}
    by_key.update({c.name.lower(): c for c in categories})
    selections: list[CategorySelection] = []
    settings: dict[str, dict[str, Any]] = {}
    for item in items:
        if not isinstance(item, dict):
            raise RuntimeError(f"下单条目格式错误: {item!r}")
        ref = str(item.get("category") or "").strip()
        category = by_key.get(ref) or by_key.get(ref.lower())
        if category is None:
            raise RuntimeError(f"未知品类: {ref}")
        countries = [str(c).strip() for c in item.get("countries") or category.countries]
        selections.append(CategorySelection(category_id=category.id, countries=countries))
        for country in countries:
            settings[f"{category.id}::{country}"] = {
                "selectedStoreLists": item.get("storeLists") or [],
                "selectedBoosters": _boosters_for(item.get("boosters") or [], country, booster_country),
                "startDate": item.get("startDate") or None,
                "endDate": item.get("endDate") or None,
                "collectionNotes": item.get("collectionNotes") or "",
                "proceedWithoutList": bool(item.get("proceedWithoutList", False)),
            }

    configs = build_configs(categories, selections)
    try:
        return [
            CategoryConfig.model_validate({**c.model_dump(by_alias=True), **settings.get(c.key, {})})
            for c in configs
        ]
    except ValidationError as e:
        raise RuntimeError(f"下单文件字段无效: {e}") from e
