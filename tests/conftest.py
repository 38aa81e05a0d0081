# tests/conftest.py
import json
import os
import sys
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

# Ensure repository root is on PYTHONPATH for tests
repo_root = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
if repo_root not in sys.path:
    sys.path.insert(0, repo_root)

from storytime.common import ChatResult, ImageResult  # noqa: E402
from storytime.library import InMemoryLibraryStore, SqlLibraryStore  # noqa: E402
from storytime.pipeline import BedtimeStoryOrchestrator, IllustrationResult  # noqa: E402
from storytime.story_generation import GeneratedStory  # noqa: E402

STORY_REPLY = {
    "title": "The Lantern in the Clearing",
    "content": (
        "Once upon a time, in a misty forest clearing, a fox found a lantern.\n\n"
        "The owl and the bear helped the fox carry it home, and the forest glowed.\n\n"
        "The End"
    ),
    "moral": "Sharing the load makes every path lighter.",
    "suggestedTitles": ["The Glowing Path", "Three Friends and a Light"],
}


class FakeCompletion:
    """Records every call and replies with a canned text or raises."""

    def __init__(self, reply: Any = None, error: Exception | None = None) -> None:
        if reply is None:
            reply = STORY_REPLY
        self.reply = reply if isinstance(reply, str) else json.dumps(reply)
        self.error = error
        self.calls: list[dict[str, Any]] = []

    def __call__(self, **kwargs: Any) -> ChatResult:
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return ChatResult(text=self.reply, raw=None)


class FakeImage:
    def __init__(self, url: str = "https://images.example/lantern.png", error: Exception | None = None) -> None:
        self.url = url
        self.error = error
        self.calls: list[dict[str, Any]] = []

    def __call__(self, **kwargs: Any) -> ImageResult:
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return ImageResult(url=self.url, raw=None)


class FakeProvider:
    """In-process content provider with switchable failures."""

    def __init__(
        self,
        *,
        story: GeneratedStory | None = None,
        story_error: Exception | None = None,
        illustration_url: str = "https://images.example/lantern.png",
        illustration_error: Exception | None = None,
        characters: list[str] | None = None,
        suggestion_error: Exception | None = None,
    ) -> None:
        self.story = story or GeneratedStory.from_mapping(STORY_REPLY)
        self.story_error = story_error
        self.illustration_url = illustration_url
        self.illustration_error = illustration_error
        self.characters = characters if characters is not None else ["A sleepy otter", "A kind robot"]
        self.suggestion_error = suggestion_error
        self.specs: list[Any] = []
        self.illustration_calls: list[dict[str, Any]] = []

    def generate_story(self, spec: Any) -> GeneratedStory:
        self.specs.append(spec)
        if self.story_error is not None:
            raise self.story_error
        return self.story

    def generate_illustration(self, title, characters, setting, age, *, style=None) -> IllustrationResult:
        self.illustration_calls.append(
            {"title": title, "characters": tuple(characters), "setting": setting, "age": age, "style": style}
        )
        if self.illustration_error is not None:
            raise self.illustration_error
        return IllustrationResult(url=self.illustration_url)

    def suggest_characters(self, count: int) -> list[str]:
        if self.suggestion_error is not None:
            raise self.suggestion_error
        return list(self.characters)


class TickingClock:
    """Returns a strictly increasing UTC timestamp on every call."""

    def __init__(self, start: datetime | None = None) -> None:
        self.current = start or datetime(2024, 3, 14, 19, 30, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        value = self.current
        self.current = self.current + timedelta(minutes=1)
        return value


@pytest.fixture
def story_request() -> dict[str, Any]:
    return {
        "characters": ["Fox", "Owl", "Bear"],
        "setting": "A misty forest clearing",
        "age": 5,
        "storyLength": "5min",
    }


@pytest.fixture
def memory_store() -> InMemoryLibraryStore:
    return InMemoryLibraryStore()


@pytest.fixture
def sql_store(tmp_path):
    store = SqlLibraryStore(f"sqlite:///{tmp_path / 'library.db'}")
    store.create_schema()
    yield store
    store.close()


@pytest.fixture(params=["memory", "sql"])
def library_store(request, tmp_path):
    """Every store backend, so behaviour is checked against both."""
    if request.param == "memory":
        yield InMemoryLibraryStore()
        return

    store = SqlLibraryStore(f"sqlite:///{tmp_path / 'library.db'}")
    store.create_schema()
    yield store
    store.close()


@pytest.fixture
def clock() -> TickingClock:
    return TickingClock()


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def orchestrator(provider, memory_store, clock) -> BedtimeStoryOrchestrator:
    return BedtimeStoryOrchestrator(provider=provider, store=memory_store, clock=clock)
