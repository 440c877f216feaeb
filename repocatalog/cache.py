from __future__ import annotations

import json
from pathlib import Path

from loguru import logger

from repocatalog.models import CacheEntry


class DiskCache:
    """One JSON file per repository under ``<root>/<owner>/<repo>.json``.

    Files are read and written without locking; two syncs sharing a cache
    directory are not supported.
    """

    def __init__(self, root: Path | str) -> None:
        self.root = Path(root)

    def path_for(self, owner: str, repo: str) -> Path:
        return self.root / owner / f"{repo}.json"

    def read(self, owner: str, repo: str) -> CacheEntry | None:
        """Return the cached entry, or ``None`` when missing or unreadable."""
        path = self.path_for(owner, repo)
        if not path.exists():
            return None
        try:
            return CacheEntry.from_dict(json.loads(path.read_text(encoding="utf-8")))
        except (OSError, ValueError, KeyError, TypeError) as exc:
            logger.warning("Ignoring unreadable cache file {}: {}", path, exc)
            return None

    def write(self, owner: str, repo: str, entry: CacheEntry) -> None:
        path = self.path_for(owner, repo)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(
            json.dumps(entry.to_dict(), indent=2, ensure_ascii=False), encoding="utf-8"
        )
