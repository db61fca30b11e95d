"""SQLAlchemy-backed entry store.

One row per path in the ``entries`` table. Hard links are separate rows that
share an ``ino``; the ``ino`` and ``parent_path`` columns are indexed for the
secondary lookups the engine needs.
"""

from __future__ import annotations

import contextvars
import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager, nullcontext

import sqlalchemy as sa
import sqlalchemy.orm as orm
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import StaticPool

from .base import Entry, EntryKind
from .errors import StoreError

logger = logging.getLogger(__name__)


class Base(orm.DeclarativeBase):
    pass


class EntryRecord(Base):
    """Row for one filesystem path. Mirrors :class:`vtfs.base.Entry`."""

    __tablename__ = "entries"

    path: orm.Mapped[str] = orm.mapped_column(sa.String(1024), primary_key=True)
    ino: orm.Mapped[int] = orm.mapped_column(sa.BigInteger, index=True)
    kind: orm.Mapped[str] = orm.mapped_column(sa.String(8))
    mode: orm.Mapped[int] = orm.mapped_column(sa.Integer, default=0o777)
    nlink: orm.Mapped[int] = orm.mapped_column(sa.Integer, default=1)
    size: orm.Mapped[int] = orm.mapped_column(sa.BigInteger, default=0)
    content: orm.Mapped[bytes | None] = orm.mapped_column(sa.LargeBinary, nullable=True)
    atime: orm.Mapped[float] = orm.mapped_column(sa.Float)
    mtime: orm.Mapped[float] = orm.mapped_column(sa.Float)
    ctime: orm.Mapped[float] = orm.mapped_column(sa.Float)
    # Null only for the root entry.
    parent_path: orm.Mapped[str | None] = orm.mapped_column(
        sa.String(1024), index=True, nullable=True
    )

    def __repr__(self):
        return f"<EntryRecord {self.path} ({self.ino})>"

    @classmethod
    def from_entry(cls, entry: Entry) -> "EntryRecord":
        return cls(
            path=entry.path,
            ino=entry.ino,
            kind=entry.kind.value,
            mode=entry.mode,
            nlink=entry.nlink,
            size=entry.size,
            content=entry.content,
            atime=entry.atime,
            mtime=entry.mtime,
            ctime=entry.ctime,
            parent_path=entry.parent_path,
        )

    def to_entry(self) -> Entry:
        return Entry(
            path=self.path,
            ino=self.ino,
            kind=EntryKind(self.kind),
            mode=self.mode,
            nlink=self.nlink,
            size=self.size,
            content=self.content,
            atime=self.atime,
            mtime=self.mtime,
            ctime=self.ctime,
            parent_path=self.parent_path,
        )


def create_db_engine(url: str, echo: bool = False) -> sa.Engine:
    """Create a SQLAlchemy engine suitable for concurrent engine calls.

    In-memory SQLite gets a single shared connection so every thread sees the
    same database.
    """
    sa_url = sa.make_url(url)
    if sa_url.get_backend_name() == "sqlite" and sa_url.database in (None, "", ":memory:"):
        return sa.create_engine(
            sa_url,
            echo=echo,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
    return sa.create_engine(sa_url, echo=echo)


class SQLEntryStore:
    """Entry store persisted through SQLAlchemy.

    Operations inside :meth:`transaction` share one session bound to the
    current context and commit together; outside a transaction each call runs
    in its own short-lived session. Database errors surface as ``StoreError``.

    Example:
        >>> import vtfs
        >>> store = vtfs.SQLEntryStore("sqlite:///vtfs.db")
        >>> engine = vtfs.FileSystemEngine(store)
    """

    def __init__(self, db: str | sa.Engine = "sqlite://", echo: bool = False):
        """Open the store and create the ``entries`` table if missing.

        Args:
            db: Database URL or an existing SQLAlchemy engine.
            echo: Log emitted SQL (only used when ``db`` is a URL).
        """
        self._db = create_db_engine(db, echo=echo) if isinstance(db, str) else db
        self._sessionmaker = orm.sessionmaker(self._db, expire_on_commit=False)
        # Sessions on a StaticPool share one connection, so they must not overlap.
        self._serial = (
            threading.RLock() if isinstance(self._db.pool, StaticPool) else nullcontext()
        )
        self._session: contextvars.ContextVar[orm.Session | None] = (
            contextvars.ContextVar(f"vtfs_sql_session_{id(self)}", default=None)
        )
        try:
            Base.metadata.create_all(self._db)
        except SQLAlchemyError as e:
            raise StoreError(f"Cannot initialize entry table: {e}") from e
        logger.info("Opened SQL entry store at %s", self._db.url)

    @property
    def db(self) -> sa.Engine:
        return self._db

    @contextmanager
    def _scope(self) -> Iterator[orm.Session]:
        """Yield the session bound by an open transaction, or a fresh one."""
        session = self._session.get()
        if session is not None:
            try:
                yield session
            except SQLAlchemyError as e:
                raise StoreError(str(e)) from e
            return

        try:
            with self._serial, self._sessionmaker.begin() as session:
                yield session
        except SQLAlchemyError as e:
            raise StoreError(str(e)) from e

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """Run the enclosed operations in one database transaction.

        Nested transactions join the outermost one. The transaction commits
        when the block exits cleanly and rolls back if it raises.
        """
        if self._session.get() is not None:
            yield
            return

        try:
            with self._serial, self._sessionmaker.begin() as session:
                token = self._session.set(session)
                try:
                    yield
                finally:
                    self._session.reset(token)
        except SQLAlchemyError as e:
            raise StoreError(f"Transaction failed: {e}") from e

    def get(self, path: str) -> Entry | None:
        with self._scope() as session:
            record = session.get(EntryRecord, path)
            return record.to_entry() if record is not None else None

    def put(self, entry: Entry) -> None:
        with self._scope() as session:
            session.merge(EntryRecord.from_entry(entry))
            session.flush()

    def delete(self, path: str) -> None:
        with self._scope() as session:
            record = session.get(EntryRecord, path)
            if record is not None:
                session.delete(record)
                session.flush()

    def children(self, parent_path: str) -> list[Entry]:
        stmt = (
            sa.select(EntryRecord)
            .where(EntryRecord.parent_path == parent_path)
            .order_by(EntryRecord.path)
        )
        with self._scope() as session:
            return [r.to_entry() for r in session.scalars(stmt)]

    def by_ino(self, ino: int) -> list[Entry]:
        stmt = (
            sa.select(EntryRecord)
            .where(EntryRecord.ino == ino)
            .order_by(EntryRecord.path)
        )
        with self._scope() as session:
            return [r.to_entry() for r in session.scalars(stmt)]

    def max_ino(self) -> int | None:
        with self._scope() as session:
            return session.scalar(sa.select(sa.func.max(EntryRecord.ino)))
