"""
参考数据缓存：按顺序尝试多个数据源（文档库优先、CSV 兜底），首个成功且非空的结果被缓存。

- 每个数据集一个 DatasetCache 实例，生命周期由调用方持有，测试可各自构造。
- invalidate() 清空缓存，下次 load() 重新从首个数据源获取。
- 全部数据源失败或为空时返回空列表，不向调用方抛异常。
"""

from __future__ import annotations

import logging
import threading
from enum import Enum
from typing import Callable, Generic, Sequence, TypeVar

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SourceStatus(str, Enum):
    SUCCESS = "success"
    EMPTY = "empty"
    ERROR = "error"


class SourceResult(BaseModel):
    """单个数据源的一次获取结果。"""

    source: str = Field(default="", description="数据源名称")
    status: SourceStatus
    items: list = Field(default_factory=list)
    error: str = Field(default="", description="失败原因，仅 status=error 时有值")

    model_config = ConfigDict(arbitrary_types_allowed=True)

    @classmethod
    def success(cls, source: str, items: list) -> SourceResult:
        return cls(source=source, status=SourceStatus.SUCCESS, items=list(items))

    @classmethod
    def empty(cls, source: str) -> SourceResult:
        return cls(source=source, status=SourceStatus.EMPTY)

    @classmethod
    def failure(cls, source: str, error: str) -> SourceResult:
        return cls(source=source, status=SourceStatus.ERROR, error=error)

    @property
    def ok(self) -> bool:
        return self.status is SourceStatus.SUCCESS


class Source(Generic[T]):
    """命名数据源：fetch() 返回记录列表，可抛异常。"""

    __slots__ = ("name", "fetch")

    def __init__(self, name: str, fetch: Callable[[], list[T]]) -> None:
        self.name = name
        self.fetch = fetch

    def run(self) -> SourceResult:
        """执行 fetch 并转为 SourceResult；异常记为 error 并打 warning。"""
        try:
            items = self.fetch()
        except Exception as e:
            logger.warning("数据源 %s 获取失败: %s", self.name, e)
            return SourceResult.failure(self.name, str(e))
        if not items:
            logger.info("数据源 %s 无数据", self.name)
            return SourceResult.empty(self.name)
        return SourceResult.success(self.name, items)


class DatasetCache(Generic[T]):
    """单个数据集的记忆化缓存；首次加载加锁，避免并发调用重复获取。"""

    def __init__(self, name: str, sources: Sequence[Source[T]]) -> None:
        self.name = name
        self.sources = list(sources)
        self._value: list[T] | None = None
        self._lock = threading.Lock()
        self.last_results: list[SourceResult] = []

    @property
    def cached(self) -> list[T]:
        """当前缓存内容（同步读取，未加载时为空列表）。"""
        return list(self._value) if self._value is not None else []

    @property
    def is_loaded(self) -> bool:
        return self._value is not None

    def load(self) -> list[T]:
        """返回缓存；未缓存时按顺序尝试数据源。"""
        if self._value is not None:
            return list(self._value)
        with self._lock:
            if self._value is not None:
                return list(self._value)
            self.last_results = []
            for source in self.sources:
                result = source.run()
                self.last_results.append(result)
                if result.ok:
                    self._value = list(result.items)
                    logger.info("%s 已从 %s 加载 %d 条", self.name, source.name, len(self._value))
                    return list(self._value)
            logger.error("%s 所有数据源均不可用，返回空列表", self.name)
            return []

    def invalidate(self) -> None:
        """清空缓存，下次 load() 重新获取。"""
        with self._lock:
            self._value = None
        logger.debug("%s 缓存已失效", self.name)
