"""
Explicit transaction handle owned by the caller.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Sequence

from ..core.errors import AdapterTransactionError
from ..utils import get_logger

if TYPE_CHECKING:
    from ..adapters.base import DatabaseAdapter, ExecutionContext


class Transaction:
    """
    Wraps begin/commit/rollback on an adapter.

    Statements executed through the handle share one transaction boundary.
    Only the owner decides the outcome: ``transact_within_tx`` and friends
    execute through it but never commit or roll back.
    """

    def __init__(self, adapter: "DatabaseAdapter") -> None:
        self.adapter = adapter
        self._active = False
        self._finished = False
        self.logger = get_logger("persistence.transaction")

    @property
    def active(self) -> bool:
        return self._active

    def begin(self) -> "Transaction":
        if self._active:
            raise AdapterTransactionError("Transaction already started.")
        if self._finished:
            raise AdapterTransactionError("Transaction handles cannot be reused.")
        self.adapter.begin()
        self._active = True
        self.logger.debug("Transaction started on %s", self.adapter.dialect.name)
        return self

    def commit(self) -> None:
        self._require_active("commit")
        try:
            self.adapter.commit()
        finally:
            self._close()

    def rollback(self) -> None:
        self._require_active("roll back")
        try:
            self.adapter.rollback()
        finally:
            self._close()

    def execute(self, ctx: "ExecutionContext", sql: str, params: Sequence[Any] = ()) -> Any:
        self._require_active("execute in")
        return self.adapter.execute(ctx, sql, params)

    def __enter__(self) -> "Transaction":
        if not self._active:
            self.begin()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if not self._active:
            return
        if exc_type is not None:
            self.rollback()
        else:
            self.commit()

    def _require_active(self, action: str) -> None:
        if not self._active:
            raise AdapterTransactionError(f"No active transaction to {action}.")

    def _close(self) -> None:
        self._active = False
        self._finished = True
