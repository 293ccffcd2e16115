"""Shared Pydantic models."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field


class DependencySpec(BaseModel):
    runtime_version: str
    entries: list[str] = Field(default_factory=list)
    source: Path | None = None


class OrderCache(BaseModel):
    runtime_version: str
    entries: list[str] = Field(default_factory=list)


class ReconciledPlan(BaseModel):
    """Result of merging a request against a cached order.

    Attributes
    ----------
    new_order: list[str]
        Order to persist as the next cache.
    steps: list[str]
        Install steps, one layer each. Always equal to ``new_order``.
    known: list[str]
        Requested entries that were already cached, in cache order.
    new: list[str]
        Requested entries absent from the cache, in request order.
    dropped: list[str]
        Cached entries that are no longer requested.
    duplicates: list[str]
        Repeated request tokens that were discarded.
    """

    new_order: list[str] = Field(default_factory=list)
    steps: list[str] = Field(default_factory=list)
    known: list[str] = Field(default_factory=list)
    new: list[str] = Field(default_factory=list)
    dropped: list[str] = Field(default_factory=list)
    duplicates: list[str] = Field(default_factory=list)

    def as_pair(self) -> tuple[list[str], list[str]]:
        return list(self.new_order), list(self.steps)
