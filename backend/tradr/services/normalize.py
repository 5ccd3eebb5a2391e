"""Helpers for reading Yahoo Fantasy API JSON.

Yahoo wraps most resources in arrays where element 0 is the "real" object,
or where element 0 is itself an array of partial fragments that together
form the object. Sub-resources (roster, stats, standings) move between
array slots from one response to the next, so parsers look them up through
a list of candidate paths rather than a fixed index.

Everything here is pure and never raises on malformed input: absence is
returned as None.
"""

import math
from collections.abc import Iterator
from typing import Any

# =============================================================================
# Node Normalization
# =============================================================================


def merge_fragments(fragments: list[Any]) -> dict[str, Any]:
    """Merge the dict members of a fragment array into one dict.

    Later fragments overwrite earlier ones on key collision. Non-dict members
    (Yahoo sometimes emits empty lists between fragments) are ignored.
    """
    merged: dict[str, Any] = {}
    for fragment in fragments:
        if isinstance(fragment, dict):
            merged.update(fragment)
    return merged


def normalize_node(node: Any) -> dict[str, Any] | None:
    """Collapse a Yahoo node into a single dict.

    Args:
        node: A raw JSON fragment. Either a dict, an array whose element 0 is
            the data dict, or an array whose element 0 is an array of partial
            dicts to merge.

    Returns:
        The data dict, or None when the node holds no object.
    """
    if isinstance(node, dict):
        return node
    if not isinstance(node, list) or not node:
        return None

    first = node[0]
    if isinstance(first, list):
        return merge_fragments(first)
    if isinstance(first, dict):
        return first
    return None


# =============================================================================
# Path Lookup
# =============================================================================


def _step(current: Any, segment: str) -> Any:
    """Resolve one path segment, treating digit segments as list indices."""
    if isinstance(current, list):
        if not segment.isdigit():
            return None
        index = int(segment)
        return current[index] if index < len(current) else None
    if isinstance(current, dict):
        # Yahoo collections are dicts keyed "0", "1", ... so digits are tried as keys too
        return current.get(segment)
    return None


def get_path(root: Any, path: str) -> Any:
    """Resolve a dotted path against root, returning None if any segment is missing."""
    current = root
    for segment in path.split("."):
        if current is None:
            return None
        current = _step(current, segment)
    return current


def find_first_path(root: Any, candidate_paths: list[str]) -> Any:
    """Return the first non-None value among several dotted paths.

    Args:
        root: Object to search.
        candidate_paths: Dotted paths tried in order, e.g.
            ["team.1.roster", "team.0.roster", "team.roster"].

    Returns:
        The first resolved value, or None if no path resolves.
    """
    for path in candidate_paths:
        value = get_path(root, path)
        if value is not None:
            return value
    return None


# =============================================================================
# Collections and Fragments
# =============================================================================


def indexed_values(node: Any) -> Iterator[Any]:
    """Yield the members of a Yahoo collection.

    Collections arrive either as lists or as dicts keyed "0".."n" plus a
    "count" entry. Scalars (including the count) are skipped.
    """
    if isinstance(node, list):
        items = node
    elif isinstance(node, dict):
        items = [value for key, value in node.items() if key != "count"]
    else:
        return
    for item in items:
        if isinstance(item, (dict, list)):
            yield item


def find_fragment(fragments: Any, key: str) -> Any:
    """Return the value of key from the first dict in fragments that carries it.

    Searches a flat list and one level of nested lists, which covers both
    ``[ {..}, {"ownership": ..} ]`` and ``[[{..}, {..}], {"ownership": ..}]``.
    """
    if isinstance(fragments, dict):
        return fragments.get(key)
    if not isinstance(fragments, list):
        return None
    for item in fragments:
        if isinstance(item, dict) and key in item:
            return item[key]
        if isinstance(item, list):
            found = find_fragment(item, key)
            if found is not None:
                return found
    return None


# =============================================================================
# Scalar Coercion
# =============================================================================

_MISSING_MARKERS = {"", "-", "--", "N/A"}


def safe_float(val: Any, default: float | None = None) -> float | None:
    """Convert an API value to float, returning default for blanks, garbage and nan/inf."""
    if val is None or isinstance(val, bool):
        return default
    if isinstance(val, str):
        val = val.strip()
        if val in _MISSING_MARKERS:
            return default
    try:
        number = float(val)
    except (ValueError, TypeError, OverflowError):
        return default
    if not math.isfinite(number):
        return default
    return number


def safe_int(val: Any, default: int | None = None) -> int | None:
    """Convert an API value to int, returning default for blanks and garbage."""
    number = safe_float(val)
    if number is None:
        return default
    return int(number)
