from datetime import datetime, timezone
from types import SimpleNamespace

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

from cardapio.core.errors import NotFoundError, PersistenceError, StoreTimeoutError
from cardapio.services.order_lifecycle import get_order
from cardapio.services.store import as_utc, order_to_record, store_operation


def _statement_timeout() -> OperationalError:
    return OperationalError("SELECT 1", {}, Exception("canceling statement due to statement timeout"))


class FakeQuery:
    def __init__(self, result=None, error=None):
        self._result = result
        self._error = error

    def options(self, *_args, **_kwargs):
        return self

    def filter(self, *_args, **_kwargs):
        return self

    def first(self):
        if self._error is not None:
            raise self._error
        return self._result


class FakeDb:
    def __init__(self, result=None, error=None):
        self._query = FakeQuery(result=result, error=error)

    def query(self, *_models):
        return self._query


def test_statement_timeout_becomes_retryable_error():
    with pytest.raises(StoreTimeoutError) as exc:
        with store_operation("get_order", order_id="abc"):
            raise _statement_timeout()

    assert exc.value.retryable is True
    assert exc.value.message == "Tempo de espera esgotado. Tente novamente."


def test_pool_timeout_becomes_retryable_error():
    with pytest.raises(StoreTimeoutError):
        with store_operation("list_orders"):
            raise PoolTimeoutError("QueuePool limit of size 5 overflow 10 reached")


def test_other_store_failures_become_generic_persistence_errors(caplog):
    with pytest.raises(PersistenceError) as exc:
        with store_operation("submit_order", customer_phone="11987654321"):
            raise IntegrityError("INSERT", {}, Exception("constraint failed: orders.secret_column"))

    assert exc.value.operation == "submit_order"
    assert "secret_column" not in exc.value.message
    assert "operation=submit_order" in caplog.text
    assert "11987654321" in caplog.text


def test_lookup_timeout_is_distinct_from_not_found():
    with pytest.raises(StoreTimeoutError):
        get_order(FakeDb(error=_statement_timeout()), "abc")

    with pytest.raises(NotFoundError):
        get_order(FakeDb(result=None), "abc")


def test_unmappable_rows_become_persistence_errors():
    with pytest.raises(PersistenceError) as exc:
        order_to_record(SimpleNamespace(id="abc"))
    assert exc.value.operation == "map_order"

    with pytest.raises(PersistenceError):
        order_to_record(SimpleNamespace(id="abc", created_at=None, updated_at=None))


def test_as_utc_normalizes_naive_and_aware_values():
    naive = datetime(2026, 10, 17, 12, 0)
    aware = datetime(2026, 10, 17, 9, 0, tzinfo=timezone.utc)

    assert as_utc(naive) == datetime(2026, 10, 17, 12, 0, tzinfo=timezone.utc)
    assert as_utc(aware) == aware
    assert as_utc(None) is None
