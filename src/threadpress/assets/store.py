"""URL-keyed download cache scoped to one page build."""

from collections import defaultdict
from pathlib import Path

import httpx
from loguru import logger

from threadpress.assets.download import DownloadError, download_once
from threadpress.assets.files import sanitize_filename

ASSETS_DIR_NAME = "assets"


class AssetStore:
    """Download each distinct URL at most once per build pass.

    Successful downloads are remembered as URL -> relative path. Failures
    are not remembered, so a later reference to the same URL makes one more
    attempt.
    """

    def __init__(self, client: httpx.AsyncClient, assets_root: Path) -> None:
        """Initialize store writing under assets_root (usually OUTPUT/assets)."""
        self._client = client
        self._assets_root = assets_root
        self._downloaded: dict[str, str] = {}
        self._written: defaultdict[str, set[str]] = defaultdict(set)

    @property
    def assets_root(self) -> Path:
        return self._assets_root

    async def acquire(self, url: str, namespace: str, file_name: str) -> str | None:
        """Return the output-relative path of a local copy of url, or None.

        Args:
            url: Remote URL of the asset.
            namespace: Directory under assets/ (a thread id, "avatars",
                "emojis", "roles" or "tags").
            file_name: File name to store the asset under.

        Returns:
            A forward-slash path like "assets/emojis/emoji-1.png", or None
            when the download failed. Callers fall back to the remote URL
            or drop the decoration.
        """
        existing = self._downloaded.get(url)
        if existing:
            return existing

        safe_name = sanitize_filename(file_name)
        dest_path = self._assets_root / namespace / safe_name
        try:
            await download_once(self._client, url, dest_path)
        except DownloadError as e:
            logger.warning("Asset download failed: {} ({})", url, e.reason)
            return None

        rel_path = f"{ASSETS_DIR_NAME}/{namespace}/{safe_name}"
        self._downloaded[url] = rel_path
        self._written[namespace].add(safe_name)
        return rel_path

    def written_files(self, namespace: str) -> set[str]:
        """File names written into namespace during this pass."""
        return set(self._written.get(namespace, set()))

    def prune(self, namespace: str) -> list[str]:
        """Delete files in namespace that this pass did not write.

        Returns:
            The names of deleted files.
        """
        namespace_dir = self._assets_root / namespace
        if not namespace_dir.is_dir():
            return []
        keep = self._written.get(namespace, set())
        removed: list[str] = []
        for path in sorted(namespace_dir.iterdir()):
            if path.is_file() and path.name not in keep:
                path.unlink()
                removed.append(path.name)
        if removed:
            logger.info("Pruned {} stale assets from {}", len(removed), namespace)
        return removed
