"""Deep merge used to layer configuration sources.

Arrays follow override semantics so a project file can either replace the
bundled pattern lists or extend them:
  - Default: replace array entirely
  - First element "+": append the remaining items to the existing array
  - First element "=": explicit replace (same as default)
"""
from __future__ import annotations

from typing import Any, Dict, List


def deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge dictionaries without mutating inputs.

    Example:
        >>> deep_merge({"verbose": False, "exclude_patterns": []}, {"verbose": True})
        {'verbose': True, 'exclude_patterns': []}
    """
    result: Dict[str, Any] = dict(base)
    for key, value in (override or {}).items():
        if key in result:
            if isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = deep_merge(result[key], value)
            elif isinstance(result[key], list) and isinstance(value, list):
                result[key] = merge_arrays(result[key], value)
            else:
                result[key] = value
        else:
            result[key] = merge_arrays([], value) if isinstance(value, list) else value
    return result


def merge_arrays(base: List[Any], override: List[Any]) -> List[Any]:
    """Merge arrays with override semantics.

    Example:
        >>> merge_arrays(["**/*.html"], ["**/*.svg"])
        ['**/*.svg']
        >>> merge_arrays(["**/*.html"], ["+", "**/*.svg"])
        ['**/*.html', '**/*.svg']
        >>> merge_arrays(["**/*.html"], ["="])
        []
    """
    if not override:
        return list(override)
    first = override[0]
    if first == "+":
        return [*base, *override[1:]]
    if first == "=":
        return list(override[1:])
    return list(override)


__all__ = ["deep_merge", "merge_arrays"]
