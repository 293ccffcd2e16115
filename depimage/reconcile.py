"""Dependency order reconciliation.

Merges a freshly requested dependency list against the order recorded by the
previous build for the same runtime version. Known entries keep their cached
relative order and new entries are appended in request order, so the prefix of
install layers stays byte-identical between runs whenever possible.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from depimage.logging import get_logger
from depimage.types import ReconciledPlan

log = get_logger(__name__)


def _dedupe(requested: Iterable[str]) -> tuple[list[str], list[str]]:
    seen: set[str] = set()
    unique: list[str] = []
    extras: list[str] = []
    for token in requested:
        if token in seen:
            extras.append(token)
            continue
        seen.add(token)
        unique.append(token)
    return unique, extras


def reconcile(cached_order: Sequence[str], requested: Iterable[str]) -> ReconciledPlan:
    """Return the reconciled plan for *requested* given *cached_order*.

    Pure and total: never raises for any two string sequences.
    """
    positions: dict[str, int] = {}
    for index, token in enumerate(cached_order):
        positions.setdefault(token, index)

    unique, duplicates = _dedupe(requested)
    for token in duplicates:
        log.warning("duplicate dependency ignored", extra={"token": token})

    slots: list[str | None] = [None] * len(cached_order)
    new: list[str] = []
    for token in unique:
        index = positions.get(token)
        if index is None:
            new.append(token)
        else:
            slots[index] = token

    known = [token for token in slots if token is not None]
    wanted = set(unique)
    dropped = [token for token in positions if token not in wanted]

    order = known + new
    return ReconciledPlan(
        new_order=order,
        steps=list(order),
        known=known,
        new=new,
        dropped=dropped,
        duplicates=duplicates,
    )
