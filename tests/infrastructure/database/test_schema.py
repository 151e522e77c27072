"""Tests for the state database schema."""

import pytest
from sqlalchemy import create_engine, insert, inspect
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError

from tripcheck.infrastructure.database.schema import metadata, protocol_state


def _in_memory_engine() -> Engine:
    """Create an in-memory SQLite engine for testing."""
    engine = create_engine("sqlite:///:memory:")
    metadata.create_all(engine)
    return engine


def _row(**overrides: str) -> dict[str, str]:
    row = {
        "transaction_id": "t-1",
        "step": "select",
        "field": "provider_id",
        "value": '"P1"',
        "updated": "2023-12-09T14:50:00+00:00",
    }
    row.update(overrides)
    return row


class TestSchemaCreation:
    def test_table_created(self) -> None:
        assert inspect(_in_memory_engine()).get_table_names() == ["protocol_state"]

    def test_columns(self) -> None:
        columns = {c["name"] for c in inspect(_in_memory_engine()).get_columns("protocol_state")}
        assert columns == {"transaction_id", "step", "field", "value", "updated"}

    def test_transaction_index(self) -> None:
        indexes = inspect(_in_memory_engine()).get_indexes("protocol_state")
        assert any(ix["column_names"] == ["transaction_id"] for ix in indexes)


class TestConstraints:
    def test_key_is_unique(self) -> None:
        engine = _in_memory_engine()
        with engine.begin() as conn:
            conn.execute(insert(protocol_state).values(**_row()))
        with pytest.raises(IntegrityError), engine.begin() as conn:
            conn.execute(insert(protocol_state).values(**_row(value='"P2"')))

    def test_same_field_in_other_step(self) -> None:
        engine = _in_memory_engine()
        with engine.begin() as conn:
            conn.execute(insert(protocol_state).values(**_row()))
            conn.execute(insert(protocol_state).values(**_row(step="on_search")))
            assert len(conn.execute(protocol_state.select()).fetchall()) == 2
