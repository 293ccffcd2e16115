"""Image name derivation from the dependency file name."""

from __future__ import annotations

import re
from pathlib import Path

_INVALID = re.compile(r"[^a-z0-9._-]+")


def image_name_for(path: Path) -> str:
    """``deps/My App.txt`` -> ``my-app``. Docker repository names must be lowercase."""
    name = Path(path).name
    if name.endswith(".txt"):
        name = name[: -len(".txt")]
    name = _INVALID.sub("-", name.lower()).strip("-.")
    return name or "depimage"
