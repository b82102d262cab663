# ems_api/query.py
"""
Fluent query surface used by the views.

    res = get_query_client().from_("departments").select("*").order("name").execute()
    if res.error: ...

Every chain resolves to a QueryResult(data, error, count). Nothing is
validated, retried or cached here; whatever the data client reports is
handed back untouched in ``error``.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

from flask import current_app

from ems_api.backend import APIResponse, BackendError, DataClient


@dataclass
class QueryResult:
    data: Any = None
    error: BackendError | None = None
    count: int | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _resolve(run: Callable[[], APIResponse]) -> QueryResult:
    try:
        resp = run()
    except BackendError as e:
        return QueryResult(error=e)
    return QueryResult(data=resp.data, count=resp.count)


class FilterChain:
    def __init__(self, request):
        self._request = request

    def eq(self, column, value):
        self._request.eq(column, value)
        return self

    def neq(self, column, value):
        self._request.neq(column, value)
        return self

    def gt(self, column, value):
        self._request.gt(column, value)
        return self

    def gte(self, column, value):
        self._request.gte(column, value)
        return self

    def lt(self, column, value):
        self._request.lt(column, value)
        return self

    def lte(self, column, value):
        self._request.lte(column, value)
        return self

    def ilike(self, column, pattern):
        self._request.ilike(column, pattern)
        return self

    def in_(self, column, values):
        self._request.in_(column, values)
        return self

    def order(self, column, desc=False):
        self._request.order(column, desc=desc)
        return self

    def limit(self, n):
        self._request.limit(n)
        return self

    def execute(self) -> QueryResult:
        return _resolve(self._request.execute)

    def single(self) -> QueryResult:
        return _resolve(self._request.single().execute)

    def maybe_single(self) -> QueryResult:
        return _resolve(self._request.maybe_single().execute)


class TableQuery:
    def __init__(self, client: DataClient, table: str):
        self._client = client
        self._table = table

    def select(self, query="*", count=None, head=False) -> FilterChain:
        return FilterChain(self._client.table(self._table).select(query, count=count, head=head))

    def insert(self, values) -> FilterChain:
        return FilterChain(self._client.table(self._table).insert(values))

    def update(self, values) -> FilterChain:
        return FilterChain(self._client.table(self._table).update(values))

    def upsert(self, values, on_conflict=None) -> FilterChain:
        return FilterChain(self._client.table(self._table).upsert(values, on_conflict=on_conflict))

    def delete(self) -> FilterChain:
        return FilterChain(self._client.table(self._table).delete())


class QueryClient:
    def __init__(self, client: DataClient):
        self._client = client

    def from_(self, table: str) -> TableQuery:
        return TableQuery(self._client, table)

    def rpc(self, fn: str, params: dict | None = None) -> QueryResult:
        return _resolve(self._client.rpc(fn, params).execute)


def get_query_client() -> QueryClient:
    return QueryClient(current_app.extensions["ems_data"])
