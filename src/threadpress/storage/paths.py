"""Output layout: where pages, sidecars and assets live."""

from pathlib import Path

THREADS_DIR_NAME = "threads"
PAGE_FILE_NAME = "index.html"
SIDECAR_FILE_NAME = "meta.json"


def is_safe_thread_id(thread_id: str) -> bool:
    """True if the id can be used as a single path segment."""
    return bool(thread_id) and thread_id not in (".", "..") and not any(
        sep in thread_id for sep in ("/", "\\", "\0")
    )


def thread_page_rel_path(thread_id: str) -> str:
    """Output-relative page path, always with forward slashes."""
    return f"{THREADS_DIR_NAME}/{thread_id}/{PAGE_FILE_NAME}"


def thread_output_dir(output_dir: Path, thread_id: str) -> Path:
    return output_dir / THREADS_DIR_NAME / thread_id


def thread_assets_dir(output_dir: Path, thread_id: str) -> Path:
    return output_dir / "assets" / thread_id


def sidecar_path(output_dir: Path, thread_id: str) -> Path:
    return thread_output_dir(output_dir, thread_id) / SIDECAR_FILE_NAME


def local_thread_ids(output_dir: Path) -> list[str]:
    """Ids of threads that have an output directory, sorted."""
    threads_dir = output_dir / THREADS_DIR_NAME
    if not threads_dir.is_dir():
        return []
    return sorted(entry.name for entry in threads_dir.iterdir() if entry.is_dir())
