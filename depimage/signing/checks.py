"""Integrity helpers for saved image tarballs.

``docker save`` output gets a ``<tar>.sha256`` sidecar holding the hex digest,
so a tar moved to another host can be checked with ``depimage verify``.
"""

from __future__ import annotations

import hashlib
from pathlib import Path

_CHUNK = 1024 * 1024


def sha256(path: Path) -> str:
    """Return the hex SHA-256 of *path*."""
    h = hashlib.sha256()
    with open(path, "rb") as f:
        while chunk := f.read(_CHUNK):
            h.update(chunk)
    return h.hexdigest()


def verify_sha256(path: Path, expected: str) -> str:
    """Return the digest of *path*, or raise ValueError if it differs from *expected*.

    *expected* may be plain hex or ``sha256:<hex>``, in any case.
    """
    want = expected.strip().removeprefix("sha256:").lower()
    got = sha256(path)
    if got != want:
        raise ValueError(f"SHA-256 mismatch for {path.name}: got {got}, expected {want}")
    return got


def write_sidecar(path: Path) -> Path:
    sidecar = path.with_name(path.name + ".sha256")
    sidecar.write_text(sha256(path), encoding="utf-8")
    return sidecar
