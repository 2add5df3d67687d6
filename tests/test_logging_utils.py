from __future__ import annotations

import json
import logging
from datetime import datetime, timezone

from registry.logging_utils import log_event


def test_log_event_emits_sorted_json(caplog) -> None:
    logger = logging.getLogger("registry.tests")

    with caplog.at_level(logging.INFO, logger="registry.tests"):
        log_event(
            logger,
            logging.INFO,
            "search_completed",
            source="fl",
            entities=3,
            scraped_at=datetime(2026, 10, 17, tzinfo=timezone.utc),
        )

    assert len(caplog.records) == 1
    message = caplog.records[0].getMessage()
    assert json.loads(message) == {
        "event": "search_completed",
        "source": "fl",
        "entities": 3,
        "scraped_at": "2026-10-17 00:00:00+00:00",
    }
    assert message.index('"entities"') < message.index('"event"')


def test_log_event_skips_disabled_levels(caplog) -> None:
    logger = logging.getLogger("registry.tests.quiet")

    with caplog.at_level(logging.WARNING, logger="registry.tests.quiet"):
        log_event(logger, logging.DEBUG, "rate_limit_wait", wait_seconds=1.5)

    assert caplog.records == []
