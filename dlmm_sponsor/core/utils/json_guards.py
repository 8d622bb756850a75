from __future__ import annotations

from collections.abc import Mapping
from typing import TypeGuard


def is_json_mapping(value: object) -> TypeGuard[Mapping[str, object]]:
    return isinstance(value, Mapping) and all(isinstance(key, str) for key in value)
