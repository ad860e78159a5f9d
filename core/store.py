"""
文档库：每个集合一个 JSON 文件（<root>/<collection>.json，内容为文档数组）。

提供通用增删改查与分批写入；读取结果为普通字段映射，另有按实体类型转换的 fetch_* 辅助函数。
"""

from __future__ import annotations

import json
import logging
import threading
import uuid
from pathlib import Path
from typing import Any, Iterable

from pydantic import ValidationError
from tqdm import tqdm  # type: ignore[import-untyped]

from domain.catalog import AuthorizedUser, Booster, CategoryRow, CustomCategoryCode, StoreList
from domain.order import SubmittedOrder

logger = logging.getLogger(__name__)

CATEGORIES = "categories"
STORE_LISTS = "storeLists"
BOOSTERS = "boosters"
AUTHORIZED_USERS = "authorizedUsers"
CUSTOM_CODES = "customCategoryCodes"
SUBMITTED_ORDERS = "submittedOrders"

COLLECTIONS = (CATEGORIES, STORE_LISTS, BOOSTERS, AUTHORIZED_USERS, CUSTOM_CODES, SUBMITTED_ORDERS)

# 分批写入的单批上限
BATCH_SIZE = 450


class StoreError(RuntimeError):
    """文档库读写失败。"""


class DocumentNotFoundError(StoreError):
    """更新/删除的文档不存在。"""


class NotAuthorizedError(StoreError):
    """操作需要授权用户。"""


class JsonDocumentStore:
    """基于目录的 JSON 文档库；同一进程内的写操作串行化。"""

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)
        self._lock = threading.RLock()

    def _path(self, collection: str) -> Path:
        if collection not in COLLECTIONS:
            raise StoreError(f"未知集合: {collection}")
        return self.root / f"{collection}.json"

    def _read(self, collection: str) -> list[dict[str, Any]]:
        path = self._path(collection)
        if not path.exists():
            return []
        try:
            data = json.loads(path.read_text(encoding="utf-8") or "[]")
        except (json.JSONDecodeError, OSError) as e:
            raise StoreError(f"读取集合 {collection} 失败: {e}") from e
        if not isinstance(data, list):
            raise StoreError(f"集合 {collection} 格式错误：应为数组")
        return [d for d in data if isinstance(d, dict)]

    def _write(self, collection: str, docs: list[dict[str, Any]]) -> None:
        path = self._path(collection)
        tmp = path.with_suffix(".json.tmp")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(json.dumps(docs, ensure_ascii=False, indent=2), encoding="utf-8")
            tmp.replace(path)
        except OSError as e:
            raise StoreError(f"写入集合 {collection} 失败: {e}") from e

    # ----- 通用操作 -----

    def fetch(self, collection: str) -> list[dict[str, Any]]:
        """返回集合内全部文档（含 id）。"""
        with self._lock:
            return self._read(collection)

    def get(self, collection: str, doc_id: str) -> dict[str, Any]:
        """按 id 读取单个文档；不存在时抛 DocumentNotFoundError。"""
        for doc in self.fetch(collection):
            if doc.get("id") == doc_id:
                return doc
        raise DocumentNotFoundError(f"{collection} 中不存在文档 {doc_id}")

    def add(self, collection: str, data: dict[str, Any]) -> str:
        """新增文档，返回生成的 id；data 中的 id 会被忽略。"""
        doc_id = uuid.uuid4().hex
        with self._lock:
            docs = self._read(collection)
            docs.append({**{k: v for k, v in data.items() if k != "id"}, "id": doc_id})
            self._write(collection, docs)
        return doc_id

    def update(self, collection: str, doc_id: str, data: dict[str, Any]) -> None:
        """部分更新：仅覆盖 data 中给出的字段。"""
        with self._lock:
            docs = self._read(collection)
            for doc in docs:
                if doc.get("id") == doc_id:
                    doc.update({k: v for k, v in data.items() if k != "id"})
                    break
            else:
                raise DocumentNotFoundError(f"{collection} 中不存在文档 {doc_id}")
            self._write(collection, docs)

    def delete(self, collection: str, doc_id: str) -> None:
        with self._lock:
            docs = self._read(collection)
            remaining = [d for d in docs if d.get("id") != doc_id]
            if len(remaining) == len(docs):
                raise DocumentNotFoundError(f"{collection} 中不存在文档 {doc_id}")
            self._write(collection, remaining)

    def batch_write(
        self,
        collection: str,
        docs: Iterable[dict[str, Any]],
        chunk_size: int = BATCH_SIZE,
    ) -> int:
        """分批追加文档（每批一次落盘），返回写入条数。"""
        pending = list(docs)
        written = 0
        with self._lock:
            existing = self._read(collection)
            for start in tqdm(range(0, len(pending), chunk_size), desc=f"写入 {collection}", unit="批"):
                chunk = pending[start : start + chunk_size]
                existing.extend({**{k: v for k, v in d.items() if k != "id"}, "id": uuid.uuid4().hex} for d in chunk)
                self._write(collection, existing)
                written += len(chunk)
        return written

    def query_equal(self, collection: str, field: str, value: Any) -> list[dict[str, Any]]:
        """等值查询：field == value 的文档。"""
        return [d for d in self.fetch(collection) if d.get(field) == value]


# ----- 按实体类型读取 -----


def _validate_all(model: type, docs: list[dict[str, Any]], collection: str) -> list:
    result = []
    for doc in docs:
        try:
            result.append(model.model_validate(doc))
        except ValidationError as e:
            logger.warning("%s 文档 %s 校验失败，已跳过: %s", collection, doc.get("id", ""), e)
    return result


def fetch_category_rows(store: JsonDocumentStore) -> list[CategoryRow]:
    return _validate_all(CategoryRow, store.fetch(CATEGORIES), CATEGORIES)


def fetch_store_lists(store: JsonDocumentStore) -> list[StoreList]:
    docs = store.fetch(STORE_LISTS)
    for doc in docs:
        doc.setdefault("name", "")
        doc.setdefault("country", "")
        doc["retailers"] = doc.get("retailers") or []
    return _validate_all(StoreList, docs, STORE_LISTS)


def fetch_boosters(store: JsonDocumentStore) -> list[Booster]:
    return _validate_all(Booster, store.fetch(BOOSTERS), BOOSTERS)


def fetch_custom_codes(store: JsonDocumentStore) -> list[CustomCategoryCode]:
    return _validate_all(CustomCategoryCode, store.fetch(CUSTOM_CODES), CUSTOM_CODES)


def fetch_authorized_users(store: JsonDocumentStore) -> list[AuthorizedUser]:
    return _validate_all(AuthorizedUser, store.fetch(AUTHORIZED_USERS), AUTHORIZED_USERS)


def fetch_submitted_orders(store: JsonDocumentStore) -> list[SubmittedOrder]:
    """已提交订单，最新提交在前。"""
    orders: list[SubmittedOrder] = _validate_all(SubmittedOrder, store.fetch(SUBMITTED_ORDERS), SUBMITTED_ORDERS)
    return sorted(orders, key=lambda o: o.submitted_at, reverse=True)


# ----- 授权用户 -----


def is_authorized(store: JsonDocumentStore, email: str) -> bool:
    """邮箱（转小写）是否在授权用户集合中；读取失败按未授权处理。"""
    if not email or not email.strip():
        return False
    try:
        return bool(store.query_equal(AUTHORIZED_USERS, "email", email.strip().lower()))
    except StoreError as e:
        logger.error("校验授权失败: %s", e)
        return False


def add_authorized_user(store: JsonDocumentStore, name: str, email: str) -> str:
    """新增授权用户，姓名与邮箱必填；邮箱以小写保存。"""
    user = AuthorizedUser(name=name, email=email)
    if not user.name or not user.email:
        raise ValueError("姓名和邮箱均为必填项")
    return store.add(AUTHORIZED_USERS, user.model_dump(by_alias=True, exclude={"id"}))
