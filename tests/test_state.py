"""Tests for session state and persistence adapters."""

import json

import pytest

from stageflow.core import ResearchStage, StateKeys
from stageflow.state import (
    FilePersistenceAdapter,
    MemoryPersistenceAdapter,
    SessionState,
    SQLitePersistenceAdapter,
    StateManager,
    create_persistence_adapter,
    sanitize_session_id,
)


def test_set_get_round_trip():
    session = SessionState("s1")
    session.set("hypothesis", {"h1": "sleep improves recall"})
    assert session.get("hypothesis") == {"h1": "sleep improves recall"}
    assert session.has("hypothesis")
    assert session.delete("hypothesis")
    assert not session.delete("hypothesis")


def test_clear_temp_keeps_persistent_key():
    session = SessionState("s1")
    session.set("draft", "persistent")
    session.set(StateKeys.temp("draft"), "scratch")

    assert session.get("temp:draft") == "scratch"
    session.clear_temp()

    assert not session.has("temp:draft")
    assert session.get("draft") == "persistent"


def test_temp_keys_are_not_serialized():
    session = SessionState("s1")
    session.set("temp:scratch", 1)
    session.set("kept", 2)
    assert session.serialize().data == {"kept": 2}


@pytest.mark.asyncio
async def test_file_adapter_round_trip(tmp_path):
    """A fresh adapter on the same directory loads what another saved."""
    manager = StateManager(FilePersistenceAdapter(tmp_path))
    session = await manager.create_session("study-42")
    session.research_topic = "sleep and memory"
    session.current_stage = ResearchStage.DATA_ANALYSIS
    session.set("analysis_results", {"p": 0.03, "groups": ["a", "b"]})
    await manager.persist("study-42")

    reloaded = await FilePersistenceAdapter(tmp_path).load("study-42")

    assert reloaded.session_id == "study-42"
    assert reloaded.research_topic == "sleep and memory"
    assert reloaded.current_stage == ResearchStage.DATA_ANALYSIS
    assert reloaded.data == {"analysis_results": {"p": 0.03, "groups": ["a", "b"]}}

    document = json.loads((tmp_path / "sessions" / "study-42.json").read_text(encoding="utf-8"))
    assert set(document) == {"sessionId", "currentStage", "researchTopic", "data", "timestamp"}


@pytest.mark.asyncio
async def test_file_adapter_missing_session_is_none(tmp_path):
    assert await FilePersistenceAdapter(tmp_path).load("never-saved") is None


@pytest.mark.asyncio
async def test_file_adapter_sanitizes_traversal(tmp_path):
    data_dir = tmp_path / "data"
    adapter = FilePersistenceAdapter(data_dir)
    manager = StateManager(adapter)
    await manager.create_session("../../escape")
    await manager.persist("../../escape")

    written = list((data_dir / "sessions").iterdir())
    assert [p.name for p in written] == ["______escape.json"]
    assert not (tmp_path / "escape.json").exists()
    assert sanitize_session_id("../../escape") == "______escape"
    assert await adapter.list() == ["______escape"]


@pytest.mark.asyncio
async def test_state_manager_resumes_persisted_session():
    adapter = MemoryPersistenceAdapter()
    first = StateManager(adapter)
    session = await first.create_session("resume-me")
    session.set("research_idea", "idea")
    session.current_stage = ResearchStage.LITERATURE_SEARCH
    await first.persist("resume-me")

    resumed = await StateManager(adapter).create_session("resume-me")

    assert resumed.get("research_idea") == "idea"
    assert resumed.current_stage == ResearchStage.LITERATURE_SEARCH


@pytest.mark.asyncio
async def test_state_manager_delete_and_list():
    manager = StateManager()
    await manager.create_session("a")
    await manager.persist("a")
    assert await manager.list_sessions() == ["a"]

    await manager.delete_session("a")
    assert await manager.list_sessions() == []
    assert manager.get_session("a") is None


@pytest.mark.asyncio
async def test_sqlite_adapter_round_trip():
    adapter = SQLitePersistenceAdapter(":memory:")
    await adapter.initialize()
    try:
        manager = StateManager(adapter)
        session = await manager.create_session("db-session")
        session.set("paper_draft", "Introduction ...")
        await manager.persist("db-session")

        loaded = await adapter.load("db-session")
        assert loaded.data == {"paper_draft": "Introduction ..."}
        assert await adapter.list() == ["db-session"]

        await adapter.delete("db-session")
        assert await adapter.load("db-session") is None
    finally:
        await adapter.close()


def test_factory_selects_adapter(tmp_path, monkeypatch):
    monkeypatch.setenv("STAGEFLOW_PERSISTENCE", "memory")
    assert isinstance(create_persistence_adapter(), MemoryPersistenceAdapter)

    adapter = create_persistence_adapter("file", data_dir=str(tmp_path))
    assert isinstance(adapter, FilePersistenceAdapter)
    assert adapter.sessions_dir == tmp_path / "sessions"

    with pytest.raises(ValueError):
        create_persistence_adapter("redis")
