"""Dependency file reader.

Format:
- first line: ``python_version==<version>``
- then one token per line (``name`` or ``name==version``); blank lines and
  ``#`` comments are skipped.
"""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

from depimage.config import VERSION_PREFIX
from depimage.errors import DepfileError
from depimage.types import DependencySpec


def parse_lines(lines: Iterable[str], source: Path | None = None) -> DependencySpec:
    where = f"'{source}'" if source else "dependency list"
    it = iter(lines)
    first = next(it, None)
    if first is None or not first.strip().startswith(VERSION_PREFIX):
        raise DepfileError(f"The first line of {where} must start with '{VERSION_PREFIX}'.")

    version = first.strip()[len(VERSION_PREFIX) :].strip()
    if not version:
        raise DepfileError(f"Empty Python version in {where}.")

    entries: list[str] = []
    for raw in it:
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        entries.append(line)
    return DependencySpec(runtime_version=version, entries=entries, source=source)


def read_depfile(path: Path) -> DependencySpec:
    if not path.is_file():
        raise DepfileError(f"Dependencies file '{path}' does not exist or cannot be read.")
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise DepfileError(f"Dependencies file '{path}' cannot be read: {e}") from e
    return parse_lines(text.splitlines(), source=path)
