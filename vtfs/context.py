"""Context variables shared by the entry stores.

Stores use these to scope transactions to the calling thread or task and to
let callers batch persistence.
"""

import contextvars
from contextlib import contextmanager
from typing import Iterator

# Internal flag controlling whether stores defer commits to their backing mapping.
_defer_commits: contextvars.ContextVar[bool] = contextvars.ContextVar(
    "vtfs_defer_commits", default=False
)


def commits_deferred() -> bool:
    """True inside a :func:`defer_commits` block."""
    return _defer_commits.get()


@contextmanager
def defer_commits() -> Iterator[None]:
    """Suppress per-operation commits to a MappingEntryStore's backing mapping.

    MappingEntryStore accepts any ``MutableMapping[str, bytes]`` as its state.
    If the mapping also has a ``commit()`` method (e.g. ``SqliteDict``),
    the store calls it at the end of each engine operation so changes are
    persisted immediately.

    Inside this context manager those automatic commits are suppressed,
    letting you batch many operations and commit once at the end.

    Example::

        with defer_commits():
            for i in range(1000):
                engine.create(f"/f{i}", "file", 0o644)
        state.commit()
    """
    token = _defer_commits.set(True)
    try:
        yield
    finally:
        _defer_commits.reset(token)
