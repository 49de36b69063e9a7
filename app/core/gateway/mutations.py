from typing import Any, Dict, Mapping, NamedTuple, Optional

from app.core.gateway.coercion import coerce_value
from app.core.gateway.identifiers import validate_identifier


class Statement(NamedTuple):
    """SQL text plus the named parameters it references."""

    sql: str
    params: Dict[str, Any]


def strip_id(payload: Mapping[str, Any]) -> Dict[str, Any]:
    """Copy a row payload without its `id` key; ids are never set from the body."""
    return {column: value for column, value in payload.items() if column != "id"}


def _bind_columns(payload: Mapping[str, Any]) -> Dict[str, Any]:
    # Bind names are the column names themselves, so every column is
    # validated before it can reach the SQL text
    params = {}
    for column, value in payload.items():
        validate_identifier(column, "column")
        params[column] = coerce_value(value)
    return params


def build_insert(table: str, payload: Mapping[str, Any]) -> Statement:
    """
    Build an INSERT that returns the generated primary key.

    Columns follow the payload's iteration order. An empty payload inserts a
    row of column defaults.

    Example:
        build_insert("minerals", {"name": "Gold", "price": "12.5"})
        -> INSERT INTO minerals (name, price) VALUES (:name, :price) RETURNING id
           {"name": "Gold", "price": 12.5}
    """
    validate_identifier(table)
    params = _bind_columns(payload)

    if not params:
        return Statement(f"INSERT INTO {table} DEFAULT VALUES RETURNING id", {})

    columns = ", ".join(params)
    placeholders = ", ".join(f":{column}" for column in params)
    sql = f"INSERT INTO {table} ({columns}) VALUES ({placeholders}) RETURNING id"
    return Statement(sql, params)


def build_update(
    table: str, row_id: int, payload: Mapping[str, Any]
) -> Optional[Statement]:
    """
    Build an UPDATE of one row by id, or None when there is nothing to set.

    The payload is expected to be stripped of `id` already (see strip_id).
    """
    validate_identifier(table)
    params = _bind_columns(payload)

    if not params:
        return None

    set_clause = ", ".join(f"{column} = :{column}" for column in params)
    params["id"] = row_id
    return Statement(f"UPDATE {table} SET {set_clause} WHERE id = :id", params)


def build_exists(table: str, row_id: int) -> Statement:
    validate_identifier(table)
    return Statement(f"SELECT COUNT(*) FROM {table} WHERE id = :id", {"id": row_id})
