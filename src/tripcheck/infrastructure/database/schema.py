"""SQLAlchemy Core table definitions for the tripcheck state database.

One row per ``(transaction_id, step, field)``. Values are JSON text so a
step can publish any structured record (id sets are stored as sorted
arrays).
"""

from __future__ import annotations

from sqlalchemy import Column, Index, MetaData, PrimaryKeyConstraint, Table, Text

metadata = MetaData()

protocol_state = Table(
    "protocol_state",
    metadata,
    Column("transaction_id", Text, nullable=False),
    Column("step", Text, nullable=False),
    Column("field", Text, nullable=False),
    Column("value", Text, nullable=False),  # JSON
    Column("updated", Text, nullable=False),
    PrimaryKeyConstraint("transaction_id", "step", "field"),
)

Index("ix_protocol_state_txn", protocol_state.c.transaction_id)
