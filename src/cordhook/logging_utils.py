from __future__ import annotations

import json
import logging
from typing import Any


def _render(value: Any) -> Any:
    if isinstance(value, BaseException):
        return {"type": type(value).__name__, "message": str(value)}
    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_render(item) for item in value]
    if isinstance(value, dict):
        return {str(key): _render(item) for key, item in value.items()}
    return str(value)


def log_event(
    logger: logging.Logger,
    level: int,
    event: str,
    **fields: Any,
) -> None:
    """Emit one structured log line: a JSON object keyed by ``event``."""
    if not logger.isEnabledFor(level):
        return
    payload: dict[str, Any] = {"event": event}
    for key, value in fields.items():
        if key == "exc":
            payload["error"] = _render(value)
            continue
        payload[key] = _render(value)
    exc = fields.get("exc")
    exc_info = None
    if isinstance(exc, BaseException) and level >= logging.ERROR:
        exc_info = (type(exc), exc, exc.__traceback__)
    logger.log(level, json.dumps(payload, default=str), exc_info=exc_info)
