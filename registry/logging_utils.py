"""
Structured logging helpers for registry scraping workflows.
"""

from __future__ import annotations

import json
import logging
from typing import Any

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def configure_logging(*, verbose: bool = False) -> None:
    """
    Route ``registry.*`` events to stderr; third-party chatter stays at WARNING.
    """

    logging.basicConfig(level=logging.WARNING, format=LOG_FORMAT)
    logging.getLogger("registry").setLevel(logging.DEBUG if verbose else logging.INFO)
    for noisy in ("httpx", "httpcore", "openai"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def log_event(
    logger: logging.Logger,
    level: int,
    event: str,
    **fields: Any,
) -> None:
    """
    Emit one structured log line as compact JSON.

    Values that are not JSON-native (datetimes, enums, exceptions) are
    rendered with ``str`` so a log call can never fail on its payload.
    """

    if not logger.isEnabledFor(level):
        return
    payload = {"event": event, **fields}
    logger.log(level, json.dumps(payload, default=str, sort_keys=True))
