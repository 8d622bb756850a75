from __future__ import annotations

from dlmm_sponsor.core.types import JsonObject


def api_error(error: str, **fields: object) -> JsonObject:
    payload: JsonObject = {"error": error}
    for key, value in fields.items():
        if value is not None:
            payload[key] = value  # type: ignore[assignment]
    return payload
