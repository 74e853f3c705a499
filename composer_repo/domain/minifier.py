"""
Composer metadata minification.

A minified version list keeps the first record whole; every later record
only carries the keys that differ from the record before it, plus
``"__unset"`` markers for keys the previous record had and this one lacks.
"""

from __future__ import annotations

from typing import Any, Dict, List

UNSET = "__unset"


def _same(left: Any, right: Any) -> bool:
    # 1 == True and 1 == 1.0 in Python, but they serialize differently.
    if type(left) is not type(right):
        return False
    if isinstance(left, dict):
        return left.keys() == right.keys() and all(_same(left[k], right[k]) for k in left)
    if isinstance(left, list):
        return len(left) == len(right) and all(_same(a, b) for a, b in zip(left, right))
    return left == right


def _diff(previous: Dict[str, Any], current: Dict[str, Any]) -> Dict[str, Any]:
    delta = {
        key: value
        for key, value in current.items()
        if key not in previous or not _same(previous[key], value)
    }
    for key in previous:
        if key not in current:
            delta[key] = UNSET
    return delta


def minify(versions: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    minified: List[Dict[str, Any]] = []
    previous = None
    for version in versions:
        if previous is None:
            minified.append(dict(version))
        else:
            minified.append(_diff(previous, version))
        previous = version
    return minified


def expand(versions: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Rebuild the full version records from a minified list."""
    expanded: List[Dict[str, Any]] = []
    current: Dict[str, Any] = {}
    for index, delta in enumerate(versions):
        if index == 0:
            current = dict(delta)
        else:
            current = dict(current)
            for key, value in delta.items():
                if value == UNSET:
                    current.pop(key, None)
                else:
                    current[key] = value
        expanded.append(current)
    return expanded
