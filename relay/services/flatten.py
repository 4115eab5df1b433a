from typing import Any, Dict, Mapping

SEPARATOR = "."


def flatten_payload(payload: Any, prefix: str = "") -> Dict[str, Any]:
    """
    Flatten a nested JSON-like structure into dotted paths.

    Only mappings are descended into. Lists, None and other scalars are
    kept as leaf values at their current path:

        {"a": {"b": 1}, "c": [1, 2], "d": None}
        -> {"a.b": 1, "c": [1, 2], "d": None}
    """
    result: Dict[str, Any] = {}
    if isinstance(payload, Mapping):
        _flatten_into(payload, prefix, result)
    return result


def _flatten_into(obj: Mapping, prefix: str, result: Dict[str, Any]) -> None:
    for key, value in obj.items():
        path = f"{prefix}{SEPARATOR}{key}" if prefix else str(key)
        if isinstance(value, Mapping):
            _flatten_into(value, path, result)
        else:
            result[path] = value
