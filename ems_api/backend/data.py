# ems_api/backend/data.py
"""
Table-oriented data client over the SQLAlchemy models.

Mirrors the request surface of a hosted REST-over-Postgres service:

    client.table("employees") \
        .select("*, profiles(first_name, last_name), departments(name)") \
        .eq("status", "active") \
        .order("created_at", desc=True) \
        .execute()

Requests raise BackendError; they never return partial results. Rows come
back as plain dicts (dates/times ISO formatted, numerics as float).
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time
from decimal import Decimal, InvalidOperation
from typing import Any

import sqlalchemy as sa
from sqlalchemy import inspect
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ems_api.extensions import db

log = logging.getLogger(__name__)

EXPOSED_TABLES = ("profiles", "departments", "employees", "attendance", "leave_requests", "payroll")


class BackendError(Exception):
    """Error reported by the data service, shaped like a PostgREST error body."""

    def __init__(self, message, code=None, details=None, hint=None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details
        self.hint = hint

    def to_dict(self):
        return {"message": self.message, "code": self.code, "details": self.details, "hint": self.hint}


@dataclass
class APIResponse:
    data: Any = None
    count: int | None = None


# ---------- select grammar ----------

@dataclass
class Embed:
    name: str
    relation: str
    hint: str | None
    selection: "Selection"


@dataclass
class Selection:
    star: bool = False
    columns: list[str] = field(default_factory=list)
    embeds: list[Embed] = field(default_factory=list)


def _split_top(raw: str) -> list[str]:
    parts, depth, buf = [], 0, []
    for ch in raw:
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
            if depth < 0:
                raise BackendError(f"failed to parse select parameter ({raw})", code="PGRST100")
        if ch == "," and depth == 0:
            parts.append("".join(buf))
            buf = []
            continue
        buf.append(ch)
    if depth != 0:
        raise BackendError(f"failed to parse select parameter ({raw})", code="PGRST100")
    parts.append("".join(buf))
    return [p for p in parts if p]


def parse_select(raw: str | None) -> Selection:
    """
    Parse "col, alias:relation!hint(col, nested(col))" into a Selection tree.
    Whitespace is insignificant.
    """
    raw = "".join((raw or "*").split()) or "*"
    sel = Selection()
    for item in _split_top(raw):
        if item == "*":
            sel.star = True
        elif "(" in item:
            if not item.endswith(")"):
                raise BackendError(f"failed to parse select parameter ({raw})", code="PGRST100")
            head, inner = item[:-1].split("(", 1)
            alias = None
            if ":" in head:
                alias, head = head.split(":", 1)
            hint = None
            if "!" in head:
                head, hint = head.split("!", 1)
            sel.embeds.append(Embed(alias or head, head, hint, parse_select(inner or "*")))
        else:
            sel.columns.append(item)
    return sel


# ---------- model helpers ----------

def _models() -> dict[str, type]:
    out = {}
    for m in db.Model.registry.mappers:
        cls = m.class_
        name = getattr(cls, "__tablename__", None)
        if name in EXPOSED_TABLES:
            out[name] = cls
    return out


def _model_for(table: str):
    model = _models().get(table)
    if model is None:
        raise BackendError(f'relation "public.{table}" does not exist', code="42P01")
    return model


def _column_names(model) -> list[str]:
    return [c.key for c in inspect(model).column_attrs]


def _column(model, name: str):
    if name not in _column_names(model):
        raise BackendError(f"column {model.__tablename__}.{name} does not exist", code="42703")
    return inspect(model).columns[name]


def _resolve_relation(model, relation: str, hint: str | None = None):
    embeds = getattr(model, "__embeds__", {})
    key = embeds.get(hint) if hint else None
    key = key or embeds.get(relation)
    if key is None:
        raise BackendError(
            f"Could not find a relationship between '{model.__tablename__}' and '{relation}'",
            code="PGRST200",
        )
    prop = inspect(model).relationships[key]
    return key, prop.mapper.class_


def _validate(model, sel: Selection):
    for c in sel.columns:
        _column(model, c)
    for emb in sel.embeds:
        _, target = _resolve_relation(model, emb.relation, emb.hint)
        _validate(target, emb.selection)


def _coerce(column, value):
    if value is None:
        return None
    t = column.type
    try:
        if isinstance(t, sa.DateTime):
            if isinstance(value, datetime):
                return value
            return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
        if isinstance(t, sa.Date):
            if isinstance(value, datetime):
                return value.date()
            return value if isinstance(value, date) else date.fromisoformat(str(value)[:10])
        if isinstance(t, sa.Time):
            return value if isinstance(value, time) else time.fromisoformat(str(value))
        if isinstance(t, sa.Numeric):
            return value if isinstance(value, Decimal) else Decimal(str(value))
        if isinstance(t, sa.Integer):
            if isinstance(value, bool):
                raise ValueError(value)
            return int(value)
    except (ValueError, TypeError, InvalidOperation):
        raise BackendError(f'invalid input syntax for type {t}: "{value}"', code="22P02")
    return value


def _jsonable(v):
    if isinstance(v, (datetime, date, time)):
        return v.isoformat()
    if isinstance(v, Decimal):
        return float(v)
    return v


def _serialize(obj, model, sel: Selection):
    if obj is None:
        return None
    cols = _column_names(model) if sel.star or not (sel.columns or sel.embeds) else sel.columns
    row = {c: _jsonable(getattr(obj, c)) for c in cols}
    for emb in sel.embeds:
        key, target = _resolve_relation(model, emb.relation, emb.hint)
        val = getattr(obj, key)
        if isinstance(val, (list, tuple)):
            row[emb.name] = [_serialize(v, target, emb.selection) for v in val]
        else:
            row[emb.name] = _serialize(val, target, emb.selection)
    return row


def _integrity_error(e: IntegrityError) -> BackendError:
    text = str(getattr(e, "orig", e))
    low = text.lower()
    if "unique" in low or "duplicate key" in low:
        code = "23505"
    elif "foreign key" in low:
        code = "23503"
    elif "not null" in low or "not-null" in low or "null value" in low:
        code = "23502"
    elif "check" in low:
        code = "23514"
    else:
        code = "23000"
    return BackendError(text, code=code)


# ---------- requests ----------

_OPS = {
    "eq":    lambda col, v: col == v,
    "neq":   lambda col, v: col != v,
    "gt":    lambda col, v: col > v,
    "gte":   lambda col, v: col >= v,
    "lt":    lambda col, v: col < v,
    "lte":   lambda col, v: col <= v,
    "like":  lambda col, v: col.like(v),
    "ilike": lambda col, v: col.ilike(v),
    "in":    lambda col, v: col.in_(v),
    "is":    lambda col, v: col.is_(v),
}


class RequestBuilder:
    """One request against one table. Built fluently, run by execute()."""

    def __init__(self, table: str):
        self.table = table
        self._method = "select"
        self._columns = "*"
        self._count = None
        self._head = False
        self._values = None
        self._on_conflict = None
        self._filters: list[tuple[str, str, Any]] = []
        self._orders: list[tuple[str, bool]] = []
        self._limit = None
        self._single = None

    # --- verbs ---
    def select(self, columns="*", count=None, head=False):
        # after a mutation verb this only narrows the returned representation
        self._columns = columns
        self._count = count
        self._head = head
        return self

    def insert(self, values):
        self._method, self._values = "insert", values
        return self

    def update(self, values):
        self._method, self._values = "update", values
        return self

    def upsert(self, values, on_conflict=None):
        self._method, self._values, self._on_conflict = "upsert", values, on_conflict
        return self

    def delete(self):
        self._method = "delete"
        return self

    # --- filters / modifiers ---
    def _filter(self, column, op, value):
        self._filters.append((column, op, value))
        return self

    def eq(self, column, value): return self._filter(column, "eq", value)
    def neq(self, column, value): return self._filter(column, "neq", value)
    def gt(self, column, value): return self._filter(column, "gt", value)
    def gte(self, column, value): return self._filter(column, "gte", value)
    def lt(self, column, value): return self._filter(column, "lt", value)
    def lte(self, column, value): return self._filter(column, "lte", value)
    def like(self, column, pattern): return self._filter(column, "like", pattern)
    def ilike(self, column, pattern): return self._filter(column, "ilike", pattern)
    def in_(self, column, values): return self._filter(column, "in", list(values))
    def is_(self, column, value): return self._filter(column, "is", value)

    def order(self, column, desc=False):
        self._orders.append((column, desc))
        return self

    def limit(self, n: int):
        self._limit = n
        return self

    def single(self):
        self._single = "single"
        return self

    def maybe_single(self):
        self._single = "maybe"
        return self

    # --- execution ---
    def execute(self) -> APIResponse:
        model = _model_for(self.table)
        run = getattr(self, f"_run_{self._method}")
        try:
            return run(model)
        except BackendError:
            db.session.rollback()
            raise
        except IntegrityError as e:
            db.session.rollback()
            raise _integrity_error(e) from e
        except SQLAlchemyError as e:
            db.session.rollback()
            log.warning("data request on %s failed: %s", self.table, e)
            raise BackendError(str(e), code="XX000") from e

    def _base_query(self, model):
        q = model.query
        joined = {}
        for column, op, value in self._filters:
            target, name = model, column
            if "." in column:
                rel, name = column.split(".", 1)
                key, target = _resolve_relation(model, rel)
                if key not in joined:
                    q = q.join(getattr(model, key))
                    joined[key] = target
            col = _column(target, name)
            attr = getattr(target, name)
            if op == "in":
                value = [_coerce(col, v) for v in value]
            elif op not in ("like", "ilike", "is"):
                value = _coerce(col, value)
            q = q.filter(_OPS[op](attr, value))
        return q

    def _shape(self, data: list, count=None) -> APIResponse:
        if self._single is None:
            return APIResponse(data=data, count=count)
        if len(data) == 1:
            return APIResponse(data=data[0], count=count)
        if not data and self._single == "maybe":
            return APIResponse(data=None, count=count)
        raise BackendError(
            "JSON object requested, multiple (or no) rows returned",
            code="PGRST116",
            details=f"The result contains {len(data)} rows",
        )

    def _selection(self, model) -> Selection:
        sel = parse_select(self._columns)
        _validate(model, sel)
        return sel

    def _coerce_values(self, model, values: dict) -> dict:
        if not isinstance(values, dict):
            raise BackendError("payload must be an object or a list of objects", code="PGRST102")
        out = {}
        for k, v in values.items():
            if k not in _column_names(model):
                raise BackendError(
                    f"Could not find the '{k}' column of '{model.__tablename__}' in the schema cache",
                    code="PGRST204",
                )
            out[k] = _coerce(inspect(model).columns[k], v)
        return out

    def _rows(self, model) -> list[dict]:
        values = self._values if isinstance(self._values, list) else [self._values]
        return [self._coerce_values(model, v) for v in values]

    def _require_filters(self, verb):
        if not self._filters:
            raise BackendError(f"{verb} requires a WHERE clause", code="21000")

    def _run_select(self, model):
        sel = self._selection(model)
        q = self._base_query(model)
        count = q.order_by(None).count() if self._count else None
        if self._head:
            return APIResponse(data=None, count=count)
        for column, desc in self._orders:
            attr = getattr(model, _column(model, column).key)
            q = q.order_by(attr.desc() if desc else attr.asc())
        if self._limit is not None:
            q = q.limit(self._limit)
        data = [_serialize(r, model, sel) for r in q.all()]
        return self._shape(data, count)

    def _run_insert(self, model):
        sel = self._selection(model)
        objs = [model(**row) for row in self._rows(model)]
        db.session.add_all(objs)
        db.session.commit()
        return self._shape([_serialize(o, model, sel) for o in objs])

    def _run_update(self, model):
        self._require_filters("UPDATE")
        sel = self._selection(model)
        values = self._coerce_values(model, self._values)
        objs = self._base_query(model).all()
        for o in objs:
            for k, v in values.items():
                setattr(o, k, v)
        db.session.commit()
        return self._shape([_serialize(o, model, sel) for o in objs])

    def _run_delete(self, model):
        self._require_filters("DELETE")
        sel = self._selection(model)
        objs = self._base_query(model).all()
        data = [_serialize(o, model, sel) for o in objs]
        for o in objs:
            db.session.delete(o)
        db.session.commit()
        return self._shape(data)

    def _run_upsert(self, model):
        sel = self._selection(model)
        rows = self._rows(model)
        pk = [c.key for c in inspect(model).primary_key]
        conflict = [c.strip() for c in self._on_conflict.split(",")] if self._on_conflict else pk
        for c in conflict:
            _column(model, c)
        for row in rows:
            missing = [c for c in conflict if c not in row]
            if missing:
                raise BackendError(f"upsert row is missing conflict column(s) {missing}", code="PGRST102")

        dialect = db.session.get_bind().dialect.name
        if dialect in ("postgresql", "sqlite"):
            insert = pg_insert if dialect == "postgresql" else sqlite_insert
            stmt = insert(model.__table__).values(rows)
            update_cols = sorted({k for row in rows for k in row} - set(conflict))
            if update_cols:
                stmt = stmt.on_conflict_do_update(
                    index_elements=conflict,
                    set_={c: stmt.excluded[c] for c in update_cols},
                )
            else:
                stmt = stmt.on_conflict_do_nothing(index_elements=conflict)
            db.session.execute(stmt)
        else:
            for row in rows:
                obj = model.query.filter_by(**{c: row[c] for c in conflict}).one_or_none()
                if obj is None:
                    db.session.add(model(**row))
                else:
                    for k, v in row.items():
                        setattr(obj, k, v)
        db.session.commit()

        out = []
        for row in rows:
            obj = (model.query.filter_by(**{c: row[c] for c in conflict})
                   .populate_existing().one_or_none())
            out.append(_serialize(obj, model, sel))
        return self._shape(out)


# ---------- remote procedures ----------

_PROCEDURES: dict[str, Any] = {}


def register_procedure(name: str):
    def deco(fn):
        _PROCEDURES[name] = fn
        return fn
    return deco


class RpcRequest:
    def __init__(self, name: str, params: dict | None):
        self.name = name
        self.params = params or {}

    def execute(self) -> APIResponse:
        fn = _PROCEDURES.get(self.name)
        if fn is None:
            raise BackendError(f"Could not find the function public.{self.name}", code="PGRST202")
        try:
            return APIResponse(data=fn(**self.params))
        except TypeError as e:
            raise BackendError(
                f"Could not find the function public.{self.name} with the given parameters",
                code="PGRST202",
                details=str(e),
            ) from e
        except SQLAlchemyError as e:
            db.session.rollback()
            raise BackendError(str(e), code="XX000") from e


class DataClient:
    """Entry point of the data boundary."""

    def table(self, name: str) -> RequestBuilder:
        return RequestBuilder(name)

    from_ = table

    def rpc(self, name: str, params: dict | None = None) -> RpcRequest:
        return RpcRequest(name, params)
