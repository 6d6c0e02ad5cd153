"""
Unit tests for content.py - one-shot content loading.
"""
import json
import threading

import pytest

from conftest import ROUTES, TOOL_DATA
from lakeplan.content import ContentCache, file_fetcher
from lakeplan.schemas import FishingToolData, GuidedRouteData


class CountingFetcher:
    def __init__(self, files):
        self.files = files
        self.calls = []

    def __call__(self, path):
        self.calls.append(path)
        if path not in self.files:
            raise FileNotFoundError(path)
        return self.files[path]


@pytest.fixture
def fetcher():
    return CountingFetcher({
        "fishing/tool.json": json.dumps(TOOL_DATA),
        "fishing/routes.json": json.dumps(ROUTES),
        "fishing/broken.json": json.dumps({"sets": []}),
    })


class TestContentCache:
    def test_load_once(self, fetcher):
        cache = ContentCache(fetcher)
        first = cache.load_tool_data("fishing/tool.json")
        second = cache.load_tool_data("fishing/tool.json")
        assert first.ok and second.ok
        assert second.data is first.data
        assert fetcher.calls == ["fishing/tool.json"]

    def test_cache_is_per_model(self, fetcher):
        cache = ContentCache(fetcher)
        assert cache.load_tool_data("fishing/tool.json").ok
        state = cache.load_guided_routes("fishing/tool.json")
        assert isinstance(state.data, GuidedRouteData)
        assert state.data.options == []
        assert isinstance(cache.cached("fishing/tool.json", FishingToolData), FishingToolData)
        assert fetcher.calls == ["fishing/tool.json", "fishing/tool.json"]

    def test_routes(self, fetcher):
        state = ContentCache(fetcher).load_guided_routes("fishing/routes.json")
        assert state.ok
        assert [option.option_id for option in state.data.options] == ["standard", "gold"]

    def test_missing_file_is_reported_not_cached(self, fetcher):
        cache = ContentCache(fetcher)
        state = cache.load_tool_data("fishing/missing.json")
        assert state.status == "error"
        assert "fishing/missing.json" in state.error
        cache.load_tool_data("fishing/missing.json")
        assert fetcher.calls.count("fishing/missing.json") == 2

    def test_invalid_content(self, fetcher):
        state = ContentCache(fetcher).load_tool_data("fishing/broken.json")
        assert not state.ok
        assert state.data is None

    def test_concurrent_callers_share_one_load(self):
        release = threading.Event()
        calls = []

        def slow_fetch(path):
            calls.append(path)
            release.wait(timeout=5)
            return json.dumps(TOOL_DATA)

        cache = ContentCache(slow_fetch)
        results = []
        threads = [
            threading.Thread(target=lambda: results.append(cache.load("fishing/tool.json", FishingToolData)))
            for _ in range(4)
        ]
        for thread in threads:
            thread.start()
        release.set()
        for thread in threads:
            thread.join(timeout=5)

        assert calls == ["fishing/tool.json"]
        assert len(results) == 4
        assert all(state.ok for state in results)

    def test_clear(self, fetcher):
        cache = ContentCache(fetcher)
        cache.load_tool_data("fishing/tool.json")
        cache.clear()
        assert cache.cached("fishing/tool.json", FishingToolData) is None
        cache.load_tool_data("fishing/tool.json")
        assert len(fetcher.calls) == 2


class TestFileFetcher:
    def test_reads_relative_to_root(self, tmp_path):
        (tmp_path / "fishing").mkdir()
        (tmp_path / "fishing" / "tool.json").write_text(json.dumps(TOOL_DATA), encoding="utf-8")
        state = ContentCache(file_fetcher(tmp_path)).load_tool_data("fishing/tool.json")
        assert state.ok
        assert state.data.last_lake_id == "lake_3"

    def test_content_root_from_env(self, monkeypatch, tmp_path):
        monkeypatch.setenv("CONTENT_ROOT", str(tmp_path))
        (tmp_path / "a.json").write_text("{}", encoding="utf-8")
        assert file_fetcher()("a.json") == "{}"
