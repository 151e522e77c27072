"""BaseService — abstract foundation for all tripcheck services.

Every service receives a :class:`StateStore` at construction time.
Services own their transaction boundaries via
``self._store.transaction(transaction_id)``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from tripcheck.infrastructure.store import StateStore


class BaseService:
    """Abstract base for all service-layer classes.

    Usage::

        class RecordService(BaseService):
            def record(self, step: str, payload: dict) -> ServiceResult:
                with self._store.transaction(txn_id) as state:
                    ...
    """

    def __init__(self, store: StateStore) -> None:
        self._store = store
