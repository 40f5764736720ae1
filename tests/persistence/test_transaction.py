import pytest

from restable.adapters import AdapterTransactionError, ExecutionContext
from restable.persistence import Transaction


class RecordingAdapter:
    class dialect:
        name = "recording"

    def __init__(self):
        self.calls = []

    def begin(self):
        self.calls.append("begin")

    def commit(self):
        self.calls.append("commit")

    def rollback(self):
        self.calls.append("rollback")

    def execute(self, ctx, sql, params=()):
        self.calls.append(("execute", sql, tuple(params)))


def test_context_manager_commits_on_success():
    adapter = RecordingAdapter()
    with Transaction(adapter) as tx:
        tx.execute(ExecutionContext(), "SELECT 1")
    assert adapter.calls == ["begin", ("execute", "SELECT 1", ()), "commit"]
    assert not tx.active


def test_context_manager_rolls_back_on_error():
    adapter = RecordingAdapter()
    with pytest.raises(RuntimeError):
        with Transaction(adapter):
            raise RuntimeError("boom")
    assert adapter.calls == ["begin", "rollback"]


def test_handles_cannot_be_reused():
    adapter = RecordingAdapter()
    tx = Transaction(adapter).begin()
    with pytest.raises(AdapterTransactionError):
        tx.begin()
    tx.commit()
    with pytest.raises(AdapterTransactionError):
        tx.begin()


def test_operations_require_an_active_transaction():
    tx = Transaction(RecordingAdapter())
    with pytest.raises(AdapterTransactionError):
        tx.commit()
    with pytest.raises(AdapterTransactionError):
        tx.rollback()
    with pytest.raises(AdapterTransactionError):
        tx.execute(ExecutionContext(), "SELECT 1")
