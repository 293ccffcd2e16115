from __future__ import annotations

from pathlib import Path

import pytest

from depimage.types import OrderCache

FIXTURES = Path(__file__).resolve().parent.parent / "fixtures"


class MemoryOrderStore:
    """In-memory OrderStore used in place of the file store."""

    def __init__(self, initial: dict[str, list[str]] | None = None) -> None:
        self.data: dict[str, list[str]] = {k: list(v) for k, v in (initial or {}).items()}
        self.saves = 0

    def load(self, runtime_version: str) -> OrderCache:
        return OrderCache(
            runtime_version=runtime_version, entries=list(self.data.get(runtime_version, []))
        )

    def save(self, cache: OrderCache) -> None:
        self.saves += 1
        self.data[cache.runtime_version] = list(cache.entries)

    def clear(self, runtime_version: str) -> bool:
        return self.data.pop(runtime_version, None) is not None


@pytest.fixture
def example_depfile() -> Path:
    return FIXTURES / "example-app.txt"


@pytest.fixture
def write_depfile(tmp_path: Path):
    def _write(name: str, version: str, *lines: str) -> Path:
        path = tmp_path / name
        body = "\n".join([f"python_version=={version}", *lines]) + "\n"
        path.write_text(body, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def memory_store():
    return MemoryOrderStore
