"""Per-thread JSON sidecars and the in-memory page index built from them."""

import json
import shutil
from pathlib import Path

from loguru import logger

from threadpress.models import PageMeta
from threadpress.storage.paths import (
    THREADS_DIR_NAME,
    is_safe_thread_id,
    local_thread_ids,
    sidecar_path,
    thread_assets_dir,
    thread_output_dir,
)


class SidecarError(ValueError):
    """Raised when a sidecar file cannot be read or parsed."""


def write_sidecar(output_dir: Path, meta: PageMeta) -> Path:
    """Write meta.json for a thread, replacing any previous one."""
    path = sidecar_path(output_dir, meta.thread_id)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(meta.to_dict(), indent=2, ensure_ascii=False), encoding="utf-8")
    return path


def read_sidecar(path: Path) -> PageMeta:
    """Read a sidecar file.

    Raises:
        SidecarError: If the file is missing, not JSON, or lacks fields.
    """
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        raise SidecarError(f"{path}: {e}") from e
    if not isinstance(data, dict):
        raise SidecarError(f"{path}: expected a JSON object")
    try:
        return PageMeta.from_dict(data)
    except (KeyError, ValueError) as e:
        raise SidecarError(f"{path}: invalid field {e}") from e


def delete_thread_output(output_dir: Path, thread_id: str) -> bool:
    """Delete a thread's page directory and asset namespace, if present.

    Returns:
        False without touching the disk if the id is not a safe path segment.
    """
    if not is_safe_thread_id(thread_id):
        logger.warning("Refusing to delete output for invalid thread id: {!r}", thread_id)
        return False
    shutil.rmtree(thread_output_dir(output_dir, thread_id), ignore_errors=True)
    shutil.rmtree(thread_assets_dir(output_dir, thread_id), ignore_errors=True)
    return True


class MetadataStore:
    """Process-wide index of published thread pages.

    Mutated only by generate and remove; rehydrated at startup from the
    sidecars on disk instead of replaying chat history.
    """

    def __init__(self, output_dir: Path) -> None:
        self._output_dir = output_dir
        self._items: dict[str, PageMeta] = {}

    @property
    def output_dir(self) -> Path:
        return self._output_dir

    def load(self) -> int:
        """Rebuild the index from sidecars, skipping unreadable ones.

        Returns:
            The number of entries loaded.
        """
        self._items.clear()
        threads_dir = self._output_dir / THREADS_DIR_NAME
        for thread_id in local_thread_ids(self._output_dir):
            path = threads_dir / thread_id / "meta.json"
            if not path.exists():
                continue
            try:
                meta = read_sidecar(path)
            except SidecarError as e:
                logger.warning("Skipping unreadable sidecar: {}", e)
                continue
            self._items[meta.thread_id] = meta
        return len(self._items)

    def put(self, meta: PageMeta) -> None:
        self._items[meta.thread_id] = meta

    def remove(self, thread_id: str) -> PageMeta | None:
        if not is_safe_thread_id(thread_id):
            logger.warning("Ignoring invalid thread id: {!r}", thread_id)
            return None
        return self._items.pop(thread_id, None)

    def get(self, thread_id: str) -> PageMeta | None:
        return self._items.get(thread_id)

    def items(self) -> list[PageMeta]:
        """All entries, newest first."""
        return sorted(self._items.values(), key=lambda m: m.created_at, reverse=True)

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, thread_id: object) -> bool:
        return thread_id in self._items
