"""Structured JSON event logging shared by figtag components."""

from __future__ import annotations

import json
import logging
from typing import Any


def get_logger(area: str) -> logging.Logger:
    return logging.getLogger(f"figtag.{area}")


def log_event(logger: logging.Logger, level: int, event: str, **fields: Any) -> None:
    """Emit one event as a single compact JSON object."""

    if not logger.isEnabledFor(level):
        return
    payload = {"event": event, **fields}
    logger.log(level, dump_json(payload))


def dump_json(payload: dict[str, Any]) -> str:
    return json.dumps(payload, ensure_ascii=False, sort_keys=True, separators=(",", ":"))
