"""Patch merging and structural comparison of models.

Fixes describe their edits as nested dicts mirroring the model shape.
Dict values aimed at a nested dataclass merge key by key, every other
value (scalars, lists, plain dicts) replaces the field wholesale.
"""

import copy
import json
from dataclasses import fields, is_dataclass, replace
from typing import Any

from nginx_confgen.model.config import NginxConfig, model_to_dict

Patch = dict[str, Any]


def deep_merge(model: NginxConfig, patch: Patch) -> NginxConfig:
    """Return a new model with ``patch`` merged in. ``model`` is not touched.

    Raises:
        ValueError: If the patch names a field the model does not have,
            or a merged value breaks a model invariant.
    """
    return _merge(copy.deepcopy(model), patch)


def _merge(obj: Any, patch: Patch) -> Any:
    known = {f.name for f in fields(obj)}
    changes: dict[str, Any] = {}
    for key, value in patch.items():
        if key not in known:
            raise ValueError(f"Unknown field {type(obj).__name__}.{key}")
        current = getattr(obj, key)
        if isinstance(value, dict) and is_dataclass(current):
            changes[key] = _merge(current, value)
        else:
            changes[key] = copy.deepcopy(value)
    # replace() goes through __init__, so invariants are checked again
    return replace(obj, **changes)


def signature(model: NginxConfig) -> str:
    """Canonical serialized form, equal for structurally equal models."""
    return json.dumps(model_to_dict(model), sort_keys=True)


def same_model(left: NginxConfig, right: NginxConfig) -> bool:
    return signature(left) == signature(right)
