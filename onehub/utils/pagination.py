"""
Keyset (cursor) pagination helpers.

Cursors are opaque base64 tokens wrapping {"id": ..., "sort_value": ...}.
Pages are ordered by (sort column, id) so ties never skip or repeat rows.
"""

import base64
import json
from datetime import datetime

from sqlalchemy import and_, or_
from sqlalchemy.orm import Query


class InvalidCursor(ValueError):
    pass


def encode_cursor(row_id: str, sort_value) -> str:
    if isinstance(sort_value, datetime):
        sort_value = sort_value.isoformat()
    payload = json.dumps({"id": row_id, "sort_value": sort_value}, separators=(",", ":"))
    return base64.urlsafe_b64encode(payload.encode("utf-8")).decode("ascii")


def decode_cursor(token: str) -> dict:
    """Decode a cursor token. Raises InvalidCursor if it can't be read."""
    try:
        data = json.loads(base64.urlsafe_b64decode(token.encode("ascii")).decode("utf-8"))
    except (ValueError, UnicodeError) as e:
        raise InvalidCursor("Invalid cursor token") from e
    if not isinstance(data, dict) or "id" not in data or "sort_value" not in data:
        raise InvalidCursor("Invalid cursor token")
    return data


def apply_keyset(query: Query, sort_expr, id_column, cursor: dict | None, descending: bool) -> Query:
    """Order by (sort_expr, id) and, with a cursor, start after it."""
    if cursor is not None:
        value, last_id = cursor["sort_value"], cursor["id"]
        if descending:
            query = query.filter(
                or_(sort_expr < value, and_(sort_expr == value, id_column < last_id))
            )
        else:
            query = query.filter(
                or_(sort_expr > value, and_(sort_expr == value, id_column > last_id))
            )

    if descending:
        return query.order_by(sort_expr.desc(), id_column.desc())
    return query.order_by(sort_expr.asc(), id_column.asc())


def fetch_page(query: Query, page_size: int) -> tuple[list, bool]:
    """Fetch page_size + 1 rows to learn whether another page exists."""
    rows = query.limit(page_size + 1).all()
    return rows[:page_size], len(rows) > page_size
