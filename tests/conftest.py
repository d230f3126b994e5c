"""Common test fixtures."""
# pylint: disable=redefined-outer-name,too-many-arguments,too-many-positional-arguments
import re
from datetime import datetime
from decimal import Decimal

import pytest

from pgshift.core.cancellation import CancellationToken
from pgshift.core.progress import ProgressChannel
from pgshift.database.base import DatabaseHandle
from pgshift.models.schema import ColumnInfo, TableRef, TableSchema

_LIMIT_RE = re.compile(r"LIMIT (\d+)(?: OFFSET (\d+))?")


class FakeHandle(DatabaseHandle):
    """In-memory DatabaseHandle.

    Serves paginated SELECTs from `rows` (keyset when `key_columns` is set,
    offset otherwise), answers other queries from `responses` keyed by a
    query fragment, and records every statement.
    """

    def __init__(self, rows=None, key_columns=("id",), responses=None,
                 failures=None, fetchval_result=None):
        self.key_columns = tuple(key_columns)
        rows = list(rows or [])
        if self.key_columns:
            rows.sort(key=self._key)
        self.rows = rows
        self.responses = responses or {}
        self.failures = failures or {}
        self.fetchval_result = fetchval_result
        self.fetched = []
        self.executed = []
        self.batch_sizes = []
        self.closed = False

    def _key(self, row):
        return tuple(row[k] for k in self.key_columns)

    def _maybe_fail(self, query):
        for fragment, error in self.failures.items():
            if fragment in query:
                raise error

    async def fetch(self, query, *args):
        self._maybe_fail(query)
        self.fetched.append((query, args))
        for fragment, rows in self.responses.items():
            if fragment in query:
                return rows

        match = _LIMIT_RE.search(query)
        if not match:
            return []
        limit, offset = int(match.group(1)), int(match.group(2) or 0)
        rows = self.rows
        if args:
            rows = [r for r in rows if self._key(r) > tuple(args)]
        batch = rows[offset:offset + limit]
        self.batch_sizes.append(len(batch))
        return batch

    async def fetchval(self, query, *args):
        self._maybe_fail(query)
        self.fetched.append((query, args))
        return self.fetchval_result

    async def execute(self, query, *args):
        self._maybe_fail(query)
        self.executed.append((query, args))
        return "OK"

    async def close(self):
        self.closed = True

    @property
    def statements(self):
        return [q for q, _ in self.executed]

    @property
    def inserts(self):
        return [q for q in self.statements if q.startswith("INSERT INTO")]

    @property
    def batch_fetches(self):
        return [(q, a) for q, a in self.fetched if "LIMIT" in q]


@pytest.fixture
def fake_handle_factory():
    """Factory to create FakeHandle instances."""
    return FakeHandle


@pytest.fixture
def column_factory():
    """Factory to create ColumnInfo instances for testing."""
    def _make_column(
        name="id",
        data_type="integer",
        is_nullable=True,
        column_default=None,
        ordinal_position=1
    ):
        return ColumnInfo(
            name=name,
            data_type=data_type,
            is_nullable=is_nullable,
            column_default=column_default,
            ordinal_position=ordinal_position
        )
    return _make_column


@pytest.fixture
def table_factory(column_factory):
    """Factory to create TableSchema instances for testing."""
    def _make_table(
        schema_name="public",
        table_name="orders",
        columns=None,
        primary_key_columns=None
    ):
        if columns is None:
            columns = [
                column_factory("id", "integer", False,
                               "nextval('orders_id_seq'::regclass)", 1),
                column_factory("customer", "text", False, None, 2),
                column_factory("total", "numeric", True, None, 3),
                column_factory("created_at", "timestamp without time zone", True, None, 4),
            ]
        if primary_key_columns is None:
            primary_key_columns = ["id"]
        return TableSchema(
            schema_name=schema_name,
            table_name=table_name,
            columns=columns,
            primary_key_columns=primary_key_columns
        )
    return _make_table


@pytest.fixture
def order_rows():
    """Factory producing source rows matching the default orders table."""
    def _make_rows(count, start=1):
        return [
            {
                "id": i,
                "customer": f"customer-{i}",
                "total": Decimal("9.99"),
                "created_at": datetime(2024, 1, 1, 12, 0, 0),
            }
            for i in range(start, start + count)
        ]
    return _make_rows


@pytest.fixture
def orders_ref():
    return TableRef(schema="public", name="orders")


@pytest.fixture
def token():
    return CancellationToken()


@pytest.fixture
def progress_recorder():
    """ProgressChannel plus the list of events it received."""
    channel = ProgressChannel()
    events = []
    channel.subscribe(lambda _event, progress: events.append(progress))
    return channel, events
