"""core.cache 单元测试：数据源顺序、结果类型、记忆化与失效。"""

from __future__ import annotations

import threading
from unittest.mock import MagicMock

from core.cache import DatasetCache, Source, SourceStatus


def _boom() -> list[str]:
    raise ConnectionError("store unavailable")


class TestSource:
    def test_success(self) -> None:
        result = Source("s", lambda: ["a"]).run()
        assert result.status is SourceStatus.SUCCESS
        assert result.items == ["a"]
        assert result.ok

    def test_empty(self) -> None:
        result = Source("s", lambda: []).run()
        assert result.status is SourceStatus.EMPTY
        assert not result.ok

    def test_error(self) -> None:
        result = Source("s", _boom).run()
        assert result.status is SourceStatus.ERROR
        assert "store unavailable" in result.error


class TestDatasetCache:
    def test_primary_used_and_memoized(self) -> None:
        primary = MagicMock(return_value=["p"])
        fallback = MagicMock(return_value=["f"])
        cache = DatasetCache("d", [Source("primary", primary), Source("fallback", fallback)])

        assert cache.load() == ["p"]
        assert cache.load() == ["p"]
        primary.assert_called_once()
        fallback.assert_not_called()

    def test_fallback_on_error_or_empty(self) -> None:
        fallback = MagicMock(return_value=["f"])
        cache = DatasetCache("d", [Source("primary", _boom), Source("fallback", fallback)])
        assert cache.load() == ["f"]
        assert [r.status for r in cache.last_results] == [SourceStatus.ERROR, SourceStatus.SUCCESS]

        cache = DatasetCache("d", [Source("primary", lambda: []), Source("fallback", fallback)])
        assert cache.load() == ["f"]

    def test_total_failure_returns_empty_and_retries_later(self) -> None:
        primary = MagicMock(side_effect=[RuntimeError("down"), ["p"]])
        cache = DatasetCache("d", [Source("primary", primary), Source("fallback", _boom)])
        assert cache.load() == []
        assert not cache.is_loaded
        assert cache.load() == ["p"]
        assert primary.call_count == 2

    def test_invalidate_refetches_primary(self) -> None:
        primary = MagicMock(side_effect=[["v1"], ["v2"]])
        cache = DatasetCache("d", [Source("primary", primary)])
        assert cache.load() == ["v1"]
        cache.invalidate()
        assert cache.cached == []
        assert cache.load() == ["v2"]
        assert primary.call_count == 2

    def test_returned_list_is_a_copy(self) -> None:
        cache = DatasetCache("d", [Source("primary", lambda: ["a"])])
        first = cache.load()
        first.append("b")
        assert cache.load() == ["a"]

    def test_instances_independent(self) -> None:
        a = DatasetCache("a", [Source("s", lambda: ["a"])])
        b = DatasetCache("b", [Source("s", lambda: ["b"])])
        assert a.load() == ["a"]
        assert b.load() == ["b"]
        a.invalidate()
        assert b.cached == ["b"]

    def test_concurrent_first_load_fetches_once(self) -> None:
        calls: list[int] = []
        gate = threading.Event()

        def slow() -> list[int]:
            calls.append(1)
            gate.wait(timeout=1)
            return [1]

        cache = DatasetCache("d", [Source("slow", slow)])
        results: list[list[int]] = []
        threads = [threading.Thread(target=lambda: results.append(cache.load())) for _ in range(5)]
        for t in threads:
            t.start()
        gate.set()
        for t in threads:
            t.join()
        assert len(calls) == 1
        assert results == [[1]] * 5
