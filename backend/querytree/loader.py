"""Parse raw query repository payloads. Uses orjson for faster JSON parsing."""

from typing import Any, Union

import orjson

from .models import QueryTree


def parse_query_tree(raw: Union[bytes, str, dict, QueryTree, Any]) -> QueryTree:
    """
    Accept bytes/str JSON, a decoded dict, or a QueryTree.
    Raises ValueError for undecodable JSON; pydantic ValidationError for bad shape.
    """
    if isinstance(raw, QueryTree):
        return raw
    data = raw
    if isinstance(raw, (bytes, bytearray, str)):
        try:
            data = orjson.loads(raw)
        except orjson.JSONDecodeError:
            raise ValueError("Invalid query tree format")
    if not isinstance(data, dict):
        raise ValueError("Invalid query tree format")
    # A bare tree node (no envelope) is accepted as the root.
    if "root" not in data and "events" not in data and "id" in data:
        data = {"root": data}
    return QueryTree.model_validate(data)
