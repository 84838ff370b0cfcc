"""Helpers for deterministic ordering and serialisation."""

from __future__ import annotations

from typing import Callable, Hashable, Iterable, TypeVar

T = TypeVar("T")


def stable_sorted(items: Iterable[T], key: Callable[[T], object]) -> list[T]:
    return sorted(items, key=key)


def first_seen(items: Iterable[T], key: Callable[[T], Hashable]) -> tuple[list[T], list[T]]:
    """Keep the first item for each key in traversal order; return (kept, dropped)."""
    seen: set = set()
    kept: list[T] = []
    dropped: list[T] = []
    for item in items:
        k = key(item)
        if k in seen:
            dropped.append(item)
            continue
        seen.add(k)
        kept.append(item)
    return kept, dropped
