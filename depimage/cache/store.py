"""Order cache persistence: one text file per runtime version.

Layout::

    <root>/
      3.11.txt     # one dependency token per line, in install order
      3.12.txt

Writes go to a staging file in the same directory followed by an atomic
rename, so readers never observe a partially written cache.
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Protocol

from depimage.errors import CacheError
from depimage.logging import get_logger
from depimage.types import OrderCache

log = get_logger(__name__)


class OrderStore(Protocol):
    def load(self, runtime_version: str) -> OrderCache: ...

    def save(self, cache: OrderCache) -> Path | None: ...

    def clear(self, runtime_version: str) -> bool: ...


def _umask() -> int:
    # mkstemp files are 0600; cache files get the umask a plain open() would apply
    mask = os.umask(0)
    os.umask(mask)
    return mask


def _check_key(runtime_version: str) -> str:
    key = runtime_version.strip()
    if not key or "/" in key or "\\" in key or ".." in key:
        raise CacheError(f"Invalid runtime version for cache key: {runtime_version!r}")
    return key


class FileOrderStore:
    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)

    def path_for(self, runtime_version: str) -> Path:
        return self.root / f"{_check_key(runtime_version)}.txt"

    def load(self, runtime_version: str) -> OrderCache:
        path = self.path_for(runtime_version)
        if not path.exists():
            log.info("no order cache", extra={"runtime": runtime_version, "path": str(path)})
            return OrderCache(runtime_version=runtime_version)
        try:
            lines = path.read_text(encoding="utf-8").splitlines()
        except OSError as e:
            raise CacheError(f"Cannot read order cache '{path}': {e}") from e
        entries = [line.strip() for line in lines if line.strip()]
        log.info(
            "order cache loaded",
            extra={"runtime": runtime_version, "path": str(path), "entries": len(entries)},
        )
        return OrderCache(runtime_version=runtime_version, entries=entries)

    def save(self, cache: OrderCache) -> Path:
        path = self.path_for(cache.runtime_version)
        body = "".join(f"{token}\n" for token in cache.entries)
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=f".{path.stem}-", suffix=".tmp", dir=self.root)
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as out:
                    out.write(body)
                os.chmod(tmp_name, 0o666 & ~_umask())
                os.replace(tmp_name, path)
            finally:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
        except OSError as e:
            raise CacheError(f"Cannot write order cache '{path}': {e}") from e
        log.info(
            "order cache written",
            extra={"runtime": cache.runtime_version, "path": str(path), "entries": len(cache.entries)},
        )
        return path

    def clear(self, runtime_version: str) -> bool:
        path = self.path_for(runtime_version)
        if not path.exists():
            return False
        path.unlink()
        return True

    def versions(self) -> list[str]:
        if not self.root.is_dir():
            return []
        return sorted(p.stem for p in self.root.glob("*.txt"))
