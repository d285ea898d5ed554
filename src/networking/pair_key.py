"""Canonical ordering of an unordered pair of profile identifiers."""

from __future__ import annotations


def canonical_pair(x: str, y: str) -> tuple[str, str]:
    """Return ``(x, y)`` if ``x < y`` else ``(y, x)``.

    Every storage path maps a pair to its row through this function, so
    ``(A, B)`` and ``(B, A)`` always land on the same record.  Equal inputs
    come back as ``(x, x)``; callers must not persist them.
    """
    if x < y:
        return x, y
    return y, x
