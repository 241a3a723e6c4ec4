"""
Module 01 - Schemas & Serialization
File: canonical.py

Byte-stable JSON for pass.json and manifest.json.

Both files are digested and the manifest is signed, so the same input has
to yield the same bytes every time. Output is compact, UTF-8 (no \\u
escapes) and keeps the caller's member order; nothing here sorts keys.
"""

import json
import math
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Iterable

from pydantic import BaseModel

from .errors import CanonicalizationException

COMPACT_JSON_SEPARATORS: tuple[str, str] = (",", ":")

_SCALARS = (bool, int, str)


def ensure_utc(dt: datetime) -> datetime:
    """Attach UTC to naive datetimes and convert aware ones to UTC."""
    return dt.replace(tzinfo=timezone.utc) if dt.tzinfo is None else dt.astimezone(timezone.utc)


def format_datetime_canonical(dt: datetime) -> str:
    """``2026-01-27T21:35:00Z``; microseconds appear only when non-zero."""
    pattern = "%Y-%m-%dT%H:%M:%S.%fZ" if dt.microsecond else "%Y-%m-%dT%H:%M:%SZ"
    return ensure_utc(dt).strftime(pattern)


def _child(path: str, key: Any) -> str:
    return f"{path}.{key}" if path else str(key)


def canonicalize_value(value: Any, path: str = "") -> Any:
    """
    Reduce ``value`` to plain JSON types.

    Mappings keep their order and lose None members. Tuples become lists,
    datetimes become UTC strings, enums collapse to their value and
    pydantic models are dumped by alias without None fields.

    Raises:
        CanonicalizationException: NaN, infinity, or an unsupported type;
            ``details["path"]`` locates the offending value.
    """
    if value is None or isinstance(value, _SCALARS):
        return value
    if isinstance(value, float):
        if not math.isfinite(value):
            raise CanonicalizationException(
                f"Non-finite float value encountered: {value}",
                details={"path": path, "value": str(value)},
            )
        return value
    if isinstance(value, datetime):
        return format_datetime_canonical(value)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, BaseModel):
        return canonicalize_value(value.model_dump(mode="json", by_alias=True, exclude_none=True), path)
    if isinstance(value, dict):
        return {k: canonicalize_value(v, _child(path, k)) for k, v in value.items() if v is not None}
    if isinstance(value, (list, tuple)):
        return [canonicalize_value(item, f"{path}[{i}]") for i, item in enumerate(value)]

    kind = type(value).__name__
    raise CanonicalizationException(
        f"Cannot canonicalize value of type {kind}",
        details={"path": path, "type": kind},
    )


def dumps_compact(obj: Any) -> str:
    """
    >>> dumps_compact({"b": 2, "a": 1})
    '{"b":2,"a":1}'
    """
    plain = canonicalize_value(obj)
    try:
        return json.dumps(plain, separators=COMPACT_JSON_SEPARATORS, ensure_ascii=False, allow_nan=False)
    except (TypeError, ValueError) as e:
        raise CanonicalizationException(
            f"Failed to serialize to JSON: {e}",
            details={"type": type(obj).__name__, "error": str(e)},
        ) from e


def dumps_ordered(pairs: Iterable[tuple[str, Any]]) -> str:
    """
    Write ``pairs`` as one JSON object, members in iteration order.

    The manifest goes through here so its member order is whatever order
    the entries were packaged in, independent of dict behaviour.

    >>> dumps_ordered([("pass.json", "ab"), ("logo.png", "cd")])
    '{"pass.json":"ab","logo.png":"cd"}'
    """
    seen: set[str] = set()
    members = []
    for key, value in pairs:
        if not isinstance(key, str):
            raise CanonicalizationException("JSON object keys must be strings", details={"key": repr(key)})
        if key in seen:
            raise CanonicalizationException(f"Duplicate key in ordered object: {key}", details={"key": key})
        seen.add(key)
        members.append(json.dumps(key, ensure_ascii=False) + ":" + dumps_compact(value))
    return "{%s}" % ",".join(members)


def loads_canonical(json_str: str | bytes) -> Any:
    return json.loads(json_str)
