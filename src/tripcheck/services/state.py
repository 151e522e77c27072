"""StateService — inspect and discard recorded transaction state."""

from __future__ import annotations

import logging

from tripcheck.services.base import BaseService
from tripcheck.services.result import ServiceError, ServiceResult

logger = logging.getLogger(__name__)


class StateService(BaseService):
    """Read-only views and cleanup over the state store."""

    def list_transactions(self) -> ServiceResult:
        transactions = self._store.transactions()
        return ServiceResult(
            ok=True,
            op="state_list",
            data={"transactions": transactions, "count": len(transactions)},
        )

    def show(self, transaction_id: str) -> ServiceResult:
        """Everything recorded for *transaction_id*, grouped by step."""
        if not transaction_id:
            return ServiceResult(
                ok=False,
                op="state_show",
                error=ServiceError(code="NO_TRANSACTION", message="transaction id is required"),
            )
        with self._store.transaction(transaction_id) as state:
            snapshot = state.snapshot()
        if not snapshot:
            return ServiceResult(
                ok=False,
                op="state_show",
                error=ServiceError(
                    code="NOT_FOUND",
                    message=f"No state recorded for transaction '{transaction_id}'",
                    detail={"transaction_id": transaction_id},
                ),
            )
        return ServiceResult(
            ok=True,
            op="state_show",
            data={"transaction_id": transaction_id, "steps": snapshot},
        )

    def clear(self, transaction_id: str) -> ServiceResult:
        """Delete every value recorded for *transaction_id*."""
        if not transaction_id:
            return ServiceResult(
                ok=False,
                op="state_clear",
                error=ServiceError(code="NO_TRANSACTION", message="transaction id is required"),
            )
        with self._store.transaction(transaction_id) as state:
            removed = state.clear()
        logger.info("Cleared %d value(s) for transaction %s", removed, transaction_id)
        return ServiceResult(
            ok=True,
            op="state_clear",
            data={"transaction_id": transaction_id, "removed": removed},
        )
