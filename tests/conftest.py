from __future__ import annotations

import base64
import itertools
from typing import List, Optional, Tuple

import pytest

from config.settings import Settings
from ecoshield.core.memory import SessionLog
from ecoshield.core.storage import InMemoryStore


class FakeModel:
    """Records prompts and replies with canned text, or raises if told to."""

    def __init__(self, reply: str = "Mostly PET plastic; recycle in the blue bin.", error: Optional[Exception] = None):
        self.reply = reply
        self.error = error
        self.calls: List[Tuple[str, Optional[str]]] = []

    def generate(self, prompt: str, image: Optional[str] = None) -> str:
        self.calls.append((prompt, image))
        if self.error is not None:
            raise self.error
        return self.reply


class FakeSearchTool:
    def __init__(self, results='[{"title": "Green Scrap", "link": "https://example.com", "snippet": "Open daily"}]', error=None):
        self.results = results
        self.error = error
        self.queries: List[str] = []

    def invoke(self, input: str, **kwargs):
        self.queries.append(input)
        if self.error is not None:
            raise self.error
        return self.results


class FailingStore(InMemoryStore):
    """Lets the first ``ok_sets`` writes through, then fails like a full disk."""

    def __init__(self, ok_sets: int = 0):
        super().__init__()
        self.ok_sets = ok_sets
        self.sets = 0

    def set(self, key: str, value: str) -> None:
        self.sets += 1
        if self.sets > self.ok_sets:
            raise OSError("disk full")
        super().set(key, value)


def make_data_uri(size: int, mime: str = "image/jpeg") -> str:
    return f"data:{mime};base64," + base64.b64encode(b"\xff" * size).decode("ascii")


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def clock():
    counter = itertools.count(1_700_000_000_000)
    return lambda: next(counter)


@pytest.fixture
def session_log(store, clock) -> SessionLog:
    return SessionLog(store, clock=clock)


@pytest.fixture
def fake_model() -> FakeModel:
    return FakeModel()


@pytest.fixture
def fake_search() -> FakeSearchTool:
    return FakeSearchTool()


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        google_api_key=None,
        cors_allow_origins=["*"],
        search_api_url="http://proxy.test",
        data_dir=tmp_path / "data",
    )
