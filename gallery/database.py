import os
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from sqlalchemy import event, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import SQLModel, create_engine
from starlette.concurrency import run_in_threadpool

from .exceptions import StoreError
from .models import PictureRecord  # noqa: F401  registers the pictures table

logger = logging.getLogger(__name__)

Params = Optional[Mapping[str, Any]]


@dataclass
class RunResult:
    last_insert_id: Optional[int]
    rows_affected: int
    returned: List[Dict[str, Any]] = field(default_factory=list)


@dataclass
class Statement:
    query: str
    params: Dict[str, Any] = field(default_factory=dict)


def _set_sqlite_pragmas(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys = ON")
    cursor.execute("PRAGMA journal_mode = WAL")
    cursor.close()


class RecordStore:
    """File-backed SQLite store with awaitable accessors.

    Every call runs on the threadpool so the event loop is never blocked by
    SQLite. Writers are serialized by SQLite itself (WAL: one writer, many
    readers); nothing here adds locking.
    """

    def __init__(self, db_path: str, echo: bool = False) -> None:
        self.db_path = db_path
        self.echo = echo
        self.engine: Optional[Engine] = None

    @property
    def is_initialized(self) -> bool:
        return self.engine is not None

    async def initialize(self) -> None:
        await run_in_threadpool(self._initialize)

    def _initialize(self) -> None:
        db_dir = os.path.dirname(os.path.abspath(self.db_path))
        try:
            os.makedirs(db_dir, exist_ok=True)
        except OSError as e:
            raise StoreError(f"Cannot create database directory {db_dir}: {e}") from e

        try:
            engine = create_engine(
                f"sqlite:///{self.db_path}",
                echo=self.echo,
                connect_args={"check_same_thread": False},
            )
            event.listen(engine, "connect", _set_sqlite_pragmas)
            SQLModel.metadata.create_all(engine)
        except SQLAlchemyError as e:
            logger.error(f"Error opening database {self.db_path}: {e}")
            raise StoreError(f"Failed to initialize database: {e}") from e

        self.engine = engine
        logger.info(f"Connected to SQLite database: {self.db_path}")

    async def close(self) -> None:
        if self.engine is None:
            return
        await run_in_threadpool(self.engine.dispose)
        self.engine = None
        logger.info("Database connection closed")

    async def all(self, query: str, params: Params = None) -> List[Dict[str, Any]]:
        return await run_in_threadpool(self._guarded, self._all, query, params)

    async def get(self, query: str, params: Params = None) -> Optional[Dict[str, Any]]:
        return await run_in_threadpool(self._guarded, self._get, query, params)

    async def run(self, query: str, params: Params = None) -> RunResult:
        return await run_in_threadpool(self._guarded, self._run, query, params)

    async def transaction(self, statements: Sequence[Statement]) -> List[RunResult]:
        """Run all statements atomically; one failure rolls back the batch."""
        return await run_in_threadpool(self._guarded, self._transaction, statements)

    def _guarded(self, fn: Callable, *args):
        if self.engine is None:
            raise StoreError("Database not initialized. Call initialize() first.")
        try:
            return fn(*args)
        except SQLAlchemyError as e:
            logger.error(f"Database query error: {e}", exc_info=True)
            raise StoreError(f"Database query failed: {e}") from e

    def _all(self, query: str, params: Params) -> List[Dict[str, Any]]:
        with self.engine.connect() as conn:
            result = conn.execute(text(query), dict(params or {}))
            return [dict(row) for row in result.mappings().all()]

    def _get(self, query: str, params: Params) -> Optional[Dict[str, Any]]:
        with self.engine.connect() as conn:
            row = conn.execute(text(query), dict(params or {})).mappings().first()
            return dict(row) if row is not None else None

    def _run(self, query: str, params: Params) -> RunResult:
        with self.engine.begin() as conn:
            return self._to_run_result(conn.execute(text(query), dict(params or {})))

    def _transaction(self, statements: Sequence[Statement]) -> List[RunResult]:
        results: List[RunResult] = []
        with self.engine.begin() as conn:
            for statement in statements:
                result = conn.execute(text(statement.query), dict(statement.params))
                results.append(self._to_run_result(result))
        return results

    @staticmethod
    def _to_run_result(result) -> RunResult:
        # RETURNING rows must be consumed before the transaction commits
        if result.returns_rows:
            returned = [dict(row) for row in result.mappings().all()]
            return RunResult(result.lastrowid, len(returned), returned)
        return RunResult(result.lastrowid, result.rowcount, [])
