"""Natural-key persistence helpers used by the provisioner.

All helpers work inside the caller's session/transaction and never commit;
``upsert`` flushes so generated identifiers are available to the next step.
"""
from __future__ import annotations
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence
from sqlalchemy import delete, insert, select, tuple_, UniqueConstraint
from sqlalchemy.dialects import postgresql, sqlite


def upsert(session, model, match: Mapping[str, Any], update: Mapping[str, Any], create: Optional[Mapping[str, Any]] = None):
    """Create the row matching ``match`` or update it in place.

    ``create`` defaults to ``update``; ``match`` values are always part of the
    created row. Returns the (flushed) instance.
    """
    obj = session.execute(select(model).filter_by(**match)).scalar_one_or_none()
    if obj is None:
        values = dict(update if create is None else create)
        values.update(match)
        obj = model(**values)
        session.add(obj)
    else:
        for field, value in update.items():
            setattr(obj, field, value)
    session.flush()
    return obj


def delete_many(session, model, **filters) -> int:
    stmt = delete(model)
    for field, value in filters.items():
        stmt = stmt.where(getattr(model, field) == value)
    result = session.execute(stmt, execution_options={'synchronize_session': False})
    return result.rowcount or 0


def unique_columns(model) -> List[str]:
    """Column names of the first multi-column unique constraint (or the first unique column)."""
    table = model.__table__
    for constraint in table.constraints:
        if isinstance(constraint, UniqueConstraint):
            return [c.name for c in constraint.columns]
    for column in table.columns:
        if column.unique:
            return [column.name]
    return []


def _existing_keys(session, model, key_cols: Sequence[str], rows: Sequence[Dict[str, Any]]):
    columns = [getattr(model, c) for c in key_cols]
    wanted = {tuple(r[c] for c in key_cols) for r in rows}
    if len(columns) == 1:
        found = session.execute(select(columns[0]).where(columns[0].in_([k[0] for k in wanted]))).scalars()
        return {(v,) for v in found}
    found = session.execute(select(*columns).where(tuple_(*columns).in_(list(wanted))))
    return {tuple(r) for r in found}


def create_many(session, model, rows: Iterable[Mapping[str, Any]], skip_duplicates: bool = True) -> int:
    """Bulk insert ``rows``; with ``skip_duplicates`` rows violating a unique key are left out.

    Returns the number of rows handed to the database (for ON CONFLICT dialects
    the count of rows actually written is not reported reliably).
    """
    rows = [dict(r) for r in rows]
    if not rows:
        return 0
    if not skip_duplicates:
        session.execute(insert(model.__table__), rows)
        return len(rows)
    dialect = session.get_bind().dialect.name
    if dialect in ('sqlite', 'postgresql'):
        dialect_mod = sqlite if dialect == 'sqlite' else postgresql
        stmt = dialect_mod.insert(model.__table__).on_conflict_do_nothing()
        session.execute(stmt, rows)
        return len(rows)
    key_cols = unique_columns(model)
    if key_cols:
        existing = _existing_keys(session, model, key_cols, rows)
        fresh, seen = [], set(existing)
        for r in rows:
            key = tuple(r[c] for c in key_cols)
            if key not in seen:
                seen.add(key)
                fresh.append(r)
        rows = fresh
    if rows:
        session.execute(insert(model.__table__), rows)
    return len(rows)

__all__ = ['upsert', 'delete_many', 'create_many', 'unique_columns']
