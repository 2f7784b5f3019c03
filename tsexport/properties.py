# tsexport/properties.py
"""
Property serialization for container nodes.

Two modes are supported:
- ``json``: the whole bag becomes one ``properties`` entry holding indented JSON
- ``flat``: one entry per top-level key; text values are kept as-is, anything
  else is rendered as compact JSON

Key order follows the insertion order of the bag, so identical input always
yields identical output. A missing bag yields no entries at all.
"""
from __future__ import annotations

import json
from typing import Any, Mapping

PROPERTIES_KEY = "properties"
PROPERTY_MODES = ("json", "flat")


def _default(value: Any):
    # numpy scalars and arrays
    if hasattr(value, "tolist"):
        return value.tolist()
    if hasattr(value, "isoformat"):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def to_json(value: Any, indent: int | None = 2) -> str:
    separators = None if indent is not None else (",", ":")
    return json.dumps(value, indent=indent, separators=separators,
                      ensure_ascii=False, default=_default)


def serialize_properties(properties: Mapping[str, Any] | None,
                         mode: str = "json") -> list[tuple[str, str]]:
    """Flatten a property bag into ``(key, value)`` text pairs."""
    if properties is None:
        return []

    if mode == "json":
        return [(PROPERTIES_KEY, to_json(dict(properties)))]

    if mode == "flat":
        entries = []
        for key, value in properties.items():
            text = value if isinstance(value, str) else to_json(value, indent=None)
            entries.append((str(key), text))
        return entries

    raise ValueError(f"mode must be one of {PROPERTY_MODES}, got {mode!r}")


def deserialize_properties(entries: list[tuple[str, str]],
                           mode: str = "json") -> dict[str, Any] | None:
    """Inverse of :func:`serialize_properties` for reading files back."""
    if not entries:
        return None

    if mode == "json":
        values = dict(entries)
        if PROPERTIES_KEY not in values:
            return None
        return json.loads(values[PROPERTIES_KEY])

    # flat entries stay text, non-text values cannot be told apart from strings
    return dict(entries)
