"""Transaction-scoped protocol state store.

State is keyed by ``(transaction_id, step, field)``. All access goes
through :meth:`StateStore.transaction`, which

- holds a per-transaction lock, so two validations of the *same*
  transaction are serialized while different transactions proceed in
  parallel, and
- runs every read and write inside one atomic unit: staged writes for
  the in-memory backend, a single SQL transaction for SQLite.

Values must be JSON-serializable; sets are stored as sorted arrays.
"""

from __future__ import annotations

import json
import logging
import threading
from abc import ABC, abstractmethod
from contextlib import AbstractContextManager, contextmanager
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any

from sqlalchemy import delete, select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert

from tripcheck.infrastructure.database.engine import init_database
from tripcheck.infrastructure.database.schema import protocol_state

if TYPE_CHECKING:
    from collections.abc import Iterator

    from sqlalchemy import Connection
    from sqlalchemy.engine import Engine

logger = logging.getLogger(__name__)

StateKey = tuple[str, str, str]


def _encode_default(value: Any) -> Any:
    if isinstance(value, (set, frozenset)):
        return sorted(value, key=str)
    msg = f"Object of type {type(value).__name__} is not JSON serializable"
    raise TypeError(msg)


def encode_value(value: Any) -> str:
    """Serialize a state value to JSON text."""
    return json.dumps(value, default=_encode_default, sort_keys=True)


def decode_value(raw: str) -> Any:
    return json.loads(raw)


# ---------------------------------------------------------------------------
# Per-transaction locking
# ---------------------------------------------------------------------------


class _TransactionLocks:
    """Re-entrant lock per transaction id, dropped once nobody holds or waits."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._entries: dict[str, list[Any]] = {}  # id -> [RLock, holders]

    @contextmanager
    def hold(self, transaction_id: str) -> Iterator[None]:
        with self._guard:
            entry = self._entries.setdefault(transaction_id, [threading.RLock(), 0])
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._guard:
                entry[1] -= 1
                if entry[1] == 0:
                    self._entries.pop(transaction_id, None)

    def active(self) -> int:
        """Number of transaction ids currently held or awaited."""
        with self._guard:
            return len(self._entries)


# ---------------------------------------------------------------------------
# Sessions: one atomic unit of reads and writes
# ---------------------------------------------------------------------------


class StateSession(ABC):
    """Backend-specific access within one atomic unit."""

    @abstractmethod
    def read(self, key: StateKey) -> str | None:
        """Return the JSON text at *key*, or None."""

    @abstractmethod
    def write(self, key: StateKey, raw: str) -> None: ...

    @abstractmethod
    def rows(self, transaction_id: str) -> dict[tuple[str, str], str]:
        """All ``(step, field) -> JSON`` rows of a transaction."""

    @abstractmethod
    def purge(self, transaction_id: str) -> int:
        """Delete every row of a transaction; returns rows removed."""


class TransactionState:
    """State view bound to one transaction id, yielded by ``transaction()``."""

    def __init__(self, transaction_id: str, session: StateSession) -> None:
        self.transaction_id = transaction_id
        self._session = session

    def get(self, step: str, field: str, default: Any = None) -> Any:
        raw = self._session.read((self.transaction_id, str(step), str(field)))
        if raw is None:
            return default
        return decode_value(raw)

    def set(self, step: str, field: str, value: Any) -> None:
        self._session.write((self.transaction_id, str(step), str(field)), encode_value(value))

    def snapshot(self) -> dict[str, dict[str, Any]]:
        """Everything recorded for the transaction, as ``{step: {field: value}}``."""
        out: dict[str, dict[str, Any]] = {}
        for (step, field), raw in sorted(self._session.rows(self.transaction_id).items()):
            out.setdefault(step, {})[field] = decode_value(raw)
        return out

    def clear(self) -> int:
        return self._session.purge(self.transaction_id)


# ---------------------------------------------------------------------------
# StateStore
# ---------------------------------------------------------------------------


class StateStore(ABC):
    """Abstract transaction-scoped key/value store."""

    def __init__(self) -> None:
        self._locks = _TransactionLocks()

    @abstractmethod
    def _session(self) -> AbstractContextManager[StateSession]:
        """Open one atomic unit; commit on clean exit, discard on error."""

    @abstractmethod
    def transactions(self) -> list[str]:
        """Ids of all transactions with recorded state."""

    @contextmanager
    def transaction(self, transaction_id: str) -> Iterator[TransactionState]:
        """Exclusive, atomic access to one transaction's state."""
        if not transaction_id:
            msg = "transaction_id must be a non-empty string"
            raise ValueError(msg)
        with self._locks.hold(transaction_id), self._session() as session:
            yield TransactionState(transaction_id, session)

    def get(self, transaction_id: str, step: str, field: str, default: Any = None) -> Any:
        with self.transaction(transaction_id) as state:
            return state.get(step, field, default)

    def set(self, transaction_id: str, step: str, field: str, value: Any) -> None:
        with self.transaction(transaction_id) as state:
            state.set(step, field, value)

    def close(self) -> None:
        """Release backend resources."""


class _MemorySession(StateSession):
    def __init__(self, data: dict[StateKey, str], mutex: threading.Lock) -> None:
        self._data = data
        self._mutex = mutex
        self._staged: dict[StateKey, str | None] = {}  # None marks a delete

    def read(self, key: StateKey) -> str | None:
        if key in self._staged:
            return self._staged[key]
        return self._data.get(key)

    def write(self, key: StateKey, raw: str) -> None:
        self._staged[key] = raw

    def rows(self, transaction_id: str) -> dict[tuple[str, str], str]:
        with self._mutex:
            merged = {k: v for k, v in self._data.items() if k[0] == transaction_id}
        merged.update({k: v for k, v in self._staged.items() if k[0] == transaction_id})
        return {(k[1], k[2]): v for k, v in merged.items() if v is not None}

    def purge(self, transaction_id: str) -> int:
        existing = self.rows(transaction_id)
        for step, field in existing:
            self._staged[(transaction_id, step, field)] = None
        return len(existing)

    def commit(self) -> None:
        for key, raw in self._staged.items():
            if raw is None:
                self._data.pop(key, None)
            else:
                self._data[key] = raw
        self._staged.clear()


class MemoryStateStore(StateStore):
    """Process-local store; writes become visible when the unit commits."""

    def __init__(self) -> None:
        super().__init__()
        self._data: dict[StateKey, str] = {}
        self._mutex = threading.Lock()

    @contextmanager
    def _session(self) -> Iterator[StateSession]:
        session = _MemorySession(self._data, self._mutex)
        yield session
        with self._mutex:
            session.commit()

    def transactions(self) -> list[str]:
        with self._mutex:
            return sorted({key[0] for key in self._data})


class _SqlSession(StateSession):
    def __init__(self, conn: Connection) -> None:
        self._conn = conn

    def read(self, key: StateKey) -> str | None:
        txn, step, field = key
        row = self._conn.execute(
            select(protocol_state.c.value).where(
                protocol_state.c.transaction_id == txn,
                protocol_state.c.step == step,
                protocol_state.c.field == field,
            )
        ).first()
        return None if row is None else row.value

    def write(self, key: StateKey, raw: str) -> None:
        txn, step, field = key
        updated = datetime.now(UTC).isoformat()
        stmt = sqlite_insert(protocol_state).values(
            transaction_id=txn, step=step, field=field, value=raw, updated=updated
        )
        self._conn.execute(
            stmt.on_conflict_do_update(
                index_elements=["transaction_id", "step", "field"],
                set_={"value": raw, "updated": updated},
            )
        )

    def rows(self, transaction_id: str) -> dict[tuple[str, str], str]:
        result = self._conn.execute(
            select(protocol_state.c.step, protocol_state.c.field, protocol_state.c.value).where(
                protocol_state.c.transaction_id == transaction_id
            )
        )
        return {(row.step, row.field): row.value for row in result}

    def purge(self, transaction_id: str) -> int:
        result = self._conn.execute(
            delete(protocol_state).where(protocol_state.c.transaction_id == transaction_id)
        )
        return result.rowcount


class SqliteStateStore(StateStore):
    """SQLite-backed store; one SQL transaction per unit of access."""

    def __init__(self, db_path: Path) -> None:
        super().__init__()
        self.db_path = db_path
        self._engine: Engine = init_database(db_path)
        logger.debug("State database ready at %s", db_path)

    @property
    def engine(self) -> Engine:
        return self._engine

    @contextmanager
    def _session(self) -> Iterator[StateSession]:
        with self._engine.begin() as conn:
            yield _SqlSession(conn)

    def transactions(self) -> list[str]:
        with self._engine.connect() as conn:
            conn.execution_options(tripcheck_begin="DEFERRED")
            rows = conn.execute(select(protocol_state.c.transaction_id).distinct())
            return sorted(row.transaction_id for row in rows)

    def close(self) -> None:
        self._engine.dispose()
