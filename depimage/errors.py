"""Exception hierarchy shared by the CLI and the build pipeline."""

from __future__ import annotations


class DepimageError(Exception):
    """Base class for errors reported to the invoker."""


class DepfileError(DepimageError):
    pass


class CacheError(DepimageError):
    pass


class ImageBuildError(DepimageError):
    def __init__(self, message: str, returncode: int | None = None) -> None:
        super().__init__(message)
        self.returncode = returncode
