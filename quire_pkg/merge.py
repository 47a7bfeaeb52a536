"""
Template data merging for Quire.

Data reaches a template from several scopes (global data files, directory
data files, front matter). Scopes are combined lowest priority first, either
shallowly (a later scope replaces whole top-level keys) or deeply.
"""

import copy
from typing import Any, Dict, Iterable, Optional


def deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """
    Merge override into a copy of base.

    Nested dicts are merged key by key, lists are concatenated with the
    items of base first, and any other value in override replaces the one
    in base. Neither argument is modified.
    """
    merged = copy.deepcopy(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = deep_merge(current, value)
        elif isinstance(current, list) and isinstance(value, list):
            merged[key] = current + copy.deepcopy(value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def merge_data(scopes: Iterable[Optional[Dict[str, Any]]], deep: bool = False) -> Dict[str, Any]:
    """
    Fold data scopes into a single dict.

    Args:
        scopes: Data dicts ordered from lowest to highest priority. None
            entries are skipped.
        deep: Use deep_merge instead of replacing top-level keys.

    Returns:
        A new dict; the scopes are left untouched.
    """
    result: Dict[str, Any] = {}
    for scope in scopes:
        if scope is None:
            continue
        if not isinstance(scope, dict):
            raise TypeError(f"Data scope must be a dict, got {type(scope).__name__}")
        if deep:
            result = deep_merge(result, scope)
        else:
            result.update(copy.deepcopy(scope))
    return result
