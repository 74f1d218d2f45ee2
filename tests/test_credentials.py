from __future__ import annotations

from pathlib import Path

import pytest

from conftest import MemoryStore
from transcript_harvester.repositories.database import Database
from transcript_harvester.repositories.state_repository import StateRepository
from transcript_harvester.services.credentials import YOUTUBE_API_KEY_STATE_KEY, ApiKeyConfig


def test_state_repository_round_trip(tmp_path: Path) -> None:
    db = Database(tmp_path / "nested" / "state.db")
    db.initialize()
    repository = StateRepository(db)

    assert repository.get_value("missing") is None
    repository.set_value("youtube_api_key", "first")
    repository.set_value("youtube_api_key", "second")
    assert repository.get_value("youtube_api_key") == "second"

    repository.delete_value("youtube_api_key")
    assert repository.get_value("youtube_api_key") is None


def test_api_key_persists_across_instances(tmp_path: Path) -> None:
    db = Database(tmp_path / "state.db")
    db.initialize()

    ApiKeyConfig(StateRepository(db)).set_api_key("  stored-key  ")

    reloaded = ApiKeyConfig(StateRepository(db))
    assert reloaded.get_api_key() == "stored-key"
    assert reloaded.has_api_key()


def test_seed_value_only_applies_when_store_is_empty() -> None:
    empty = ApiKeyConfig(MemoryStore(), seed_value="env-key")
    assert empty.get_api_key() == "env-key"

    populated = ApiKeyConfig(
        MemoryStore({YOUTUBE_API_KEY_STATE_KEY: "stored-key"}),
        seed_value="env-key",
    )
    assert populated.get_api_key() == "stored-key"


def test_store_is_read_lazily_once() -> None:
    store = MemoryStore()
    config = ApiKeyConfig(store)

    store.set_value(YOUTUBE_API_KEY_STATE_KEY, "late-key")
    assert config.get_api_key() == "late-key"

    store.set_value(YOUTUBE_API_KEY_STATE_KEY, "changed-behind-our-back")
    assert config.get_api_key() == "late-key"


def test_clear_removes_key_and_ignores_seed() -> None:
    store = MemoryStore()
    config = ApiKeyConfig(store, seed_value="env-key")
    config.set_api_key("stored-key")

    config.clear_api_key()

    assert config.get_api_key() is None
    assert not config.has_api_key()
    assert YOUTUBE_API_KEY_STATE_KEY not in store.values


@pytest.mark.parametrize("bad_key", ["", "   "])
def test_set_api_key_rejects_blank_values(bad_key: str) -> None:
    config = ApiKeyConfig(MemoryStore())
    with pytest.raises(ValueError, match="must not be empty"):
        config.set_api_key(bad_key)
    assert config.get_api_key() is None
