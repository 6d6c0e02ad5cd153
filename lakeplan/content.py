"""
Static content loading.

Fishing tool data and guided routes are JSON files published with the
companion app. A ContentCache loads each path at most once per model: concurrent
callers share the in-flight load, and later callers get the cached
model. Failed loads are reported, not cached, so the next reload
retries.
"""

from __future__ import annotations

from concurrent.futures import Future
from dataclasses import dataclass
import json
import logging
import os
from pathlib import Path
import threading
from typing import Callable, Generic, Literal, Optional, Type, TypeVar

from dotenv import load_dotenv
from pydantic import BaseModel, ValidationError

from lakeplan.schemas import FishingToolData, GuidedRouteData


load_dotenv()

log = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

Fetcher = Callable[[str], str]


@dataclass(frozen=True)
class LoadState(Generic[M]):
    status: Literal["ready", "error"]
    data: Optional[M] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == "ready"


def get_content_root() -> Path:
    """Directory holding static JSON content (CONTENT_ROOT, default ./content)."""
    return Path(os.getenv("CONTENT_ROOT", "content"))


def file_fetcher(root: Optional[Path] = None) -> Fetcher:
    """Fetcher that reads paths relative to a content directory."""
    base = root or get_content_root()

    def fetch(path: str) -> str:
        return (base / path).read_text(encoding="utf-8")

    return fetch


class ContentCache:
    """
    One-shot loader for static content, keyed by path and model.

    Args:
        fetcher: Callable returning the raw text for a path
    """

    def __init__(self, fetcher: Optional[Fetcher] = None):
        self.fetcher = fetcher or file_fetcher()
        self._cache: dict[tuple[str, type], BaseModel] = {}
        self._in_flight: dict[tuple[str, type], Future] = {}
        self._lock = threading.Lock()

    def cached(self, path: str, model: Type[M]) -> Optional[M]:
        return self._cache.get((path, model))

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()

    def load(self, path: str, model: Type[M]) -> LoadState[M]:
        """
        Load and validate the JSON at path.

        Returns:
            LoadState with status "ready" and the model, or "error" and a message
        """
        key = (path, model)
        with self._lock:
            if key in self._cache:
                return LoadState(status="ready", data=self._cache[key])
            future = self._in_flight.get(key)
            owner = future is None
            if owner:
                future = Future()
                self._in_flight[key] = future

        if not owner:
            return future.result()

        state: LoadState[M]
        try:
            raw = self.fetcher(path)
            data = model.model_validate(json.loads(raw))
        except (OSError, json.JSONDecodeError, ValidationError) as exc:
            log.warning("Failed to load content %s: %s", path, exc)
            state = LoadState(status="error", error=f"Failed to load {path}: {exc}")
        except Exception as exc:
            with self._lock:
                self._in_flight.pop(key, None)
            future.set_exception(exc)
            raise
        else:
            with self._lock:
                self._cache[key] = data
            state = LoadState(status="ready", data=data)

        with self._lock:
            self._in_flight.pop(key, None)
        future.set_result(state)
        return state

    def load_tool_data(self, path: str) -> LoadState[FishingToolData]:
        return self.load(path, FishingToolData)

    def load_guided_routes(self, path: str) -> LoadState[GuidedRouteData]:
        return self.load(path, GuidedRouteData)
