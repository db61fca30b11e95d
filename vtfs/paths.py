"""Canonical path handling.

Every path that reaches the store goes through :func:`normalize` first, so
``"a//b/./c/.."``, ``"/a/b"`` and ``"a/b/"`` all address the same entry.
None of these functions touch storage or raise; invalid paths simply fail the
store lookup that follows.
"""

from __future__ import annotations

import posixpath

from .base import ROOT_PATH


def normalize(raw: str | bytes | None) -> str:
    """Normalize a raw path into canonical absolute form.

    Args:
        raw: Path as given by a client (relative or absolute, may contain
            ``.``, ``..`` and repeated separators).

    Returns:
        Absolute path starting with ``/`` and without a trailing separator.
        Empty input maps to ``/``; ``..`` never climbs above root.
    """
    if raw is None:
        return ROOT_PATH
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8", errors="replace")
    raw = raw.lstrip("/")
    if not raw:
        return ROOT_PATH
    return posixpath.normpath(ROOT_PATH + raw)


def parent_of(path: str) -> str:
    """Canonical path of the directory containing ``path``. Root is its own parent."""
    if path == ROOT_PATH:
        return ROOT_PATH
    return posixpath.dirname(path) or ROOT_PATH


def leaf_name(path: str) -> str:
    """Final segment of a canonical path (``""`` for root)."""
    return posixpath.basename(path)
