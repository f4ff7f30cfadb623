"""Tests for sidecars and the metadata store."""

import json
from datetime import UTC, datetime
from pathlib import Path

import pytest

from threadpress.models import PageMeta
from threadpress.storage.meta import (
    MetadataStore,
    SidecarError,
    delete_thread_output,
    read_sidecar,
    write_sidecar,
)
from threadpress.storage.paths import is_safe_thread_id, local_thread_ids, sidecar_path


def _meta(thread_id: str, day: int = 1) -> PageMeta:
    return PageMeta(
        thread_id=thread_id,
        title=f"Thread {thread_id}",
        created_at=datetime(2025, 1, day, 8, 0, tzinfo=UTC),
        excerpt="Привет, world",
        page_rel_path=f"threads/{thread_id}/index.html",
    )


def test_sidecar_round_trip(tmp_path: Path) -> None:
    """A written sidecar reads back to the same metadata."""
    path = write_sidecar(tmp_path, _meta("1"))

    assert path == tmp_path / "threads" / "1" / "meta.json"
    assert "Привет" in path.read_text(encoding="utf-8")
    assert read_sidecar(path) == _meta("1")


def test_read_sidecar_rejects_bad_files(tmp_path: Path) -> None:
    """Broken JSON, wrong shapes and missing fields raise SidecarError."""
    path = tmp_path / "meta.json"

    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(SidecarError):
        read_sidecar(path)

    path.write_text("[]", encoding="utf-8")
    with pytest.raises(SidecarError, match="JSON object"):
        read_sidecar(path)

    path.write_text(json.dumps({"threadId": "1"}), encoding="utf-8")
    with pytest.raises(SidecarError, match="invalid field"):
        read_sidecar(path)

    with pytest.raises(SidecarError):
        read_sidecar(tmp_path / "nope.json")


def test_store_load_skips_corrupt_sidecars(tmp_path: Path, log_messages: list[str]) -> None:
    """Unreadable sidecars are logged and skipped; directories without one are ignored."""
    write_sidecar(tmp_path, _meta("1", day=1))
    write_sidecar(tmp_path, _meta("2", day=2))
    sidecar_path(tmp_path, "3").parent.mkdir(parents=True)
    sidecar_path(tmp_path, "3").write_text("garbage", encoding="utf-8")
    (tmp_path / "threads" / "4").mkdir()

    store = MetadataStore(tmp_path)

    assert store.load() == 2
    assert [m.thread_id for m in store.items()] == ["2", "1"]
    assert "3" not in store
    assert any(line.startswith("WARNING Skipping unreadable sidecar") for line in log_messages)


def test_store_put_replaces_and_remove_is_idempotent(tmp_path: Path) -> None:
    """Re-publishing replaces the entry; removing twice is harmless."""
    store = MetadataStore(tmp_path)
    store.put(_meta("1"))
    updated = _meta("1")
    updated.title = "Renamed"
    store.put(updated)

    assert len(store) == 1
    assert store.get("1") == updated
    assert store.remove("1") == updated
    assert store.remove("1") is None
    assert len(store) == 0


def test_delete_thread_output_removes_page_and_assets(tmp_path: Path) -> None:
    """Deleting a thread removes its page dir and asset namespace only."""
    write_sidecar(tmp_path, _meta("1"))
    (tmp_path / "assets" / "1").mkdir(parents=True)
    (tmp_path / "assets" / "1" / "a.png").write_bytes(b"x")
    (tmp_path / "assets" / "avatars").mkdir()

    delete_thread_output(tmp_path, "1")
    delete_thread_output(tmp_path, "1")

    assert not (tmp_path / "threads" / "1").exists()
    assert not (tmp_path / "assets" / "1").exists()
    assert (tmp_path / "assets" / "avatars").exists()
    assert local_thread_ids(tmp_path) == []


@pytest.mark.parametrize("thread_id", ["", ".", "..", "1/../2", "..\\1"])
def test_delete_thread_output_ignores_unsafe_ids(
    tmp_path: Path, thread_id: str, log_messages: list[str]
) -> None:
    """Ids that are not a single path segment never delete anything."""
    write_sidecar(tmp_path, _meta("1"))
    (tmp_path / "assets" / "1").mkdir(parents=True)

    assert delete_thread_output(tmp_path, thread_id) is False

    assert (tmp_path / "threads" / "1" / "meta.json").exists()
    assert (tmp_path / "assets" / "1").exists()
    assert any(line.startswith("WARNING Refusing to delete") for line in log_messages)


def test_is_safe_thread_id() -> None:
    assert is_safe_thread_id("1234567890")
    assert not is_safe_thread_id("")
    assert not is_safe_thread_id("..")
    assert not is_safe_thread_id("a/b")
