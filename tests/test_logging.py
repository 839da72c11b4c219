import io
import json
import logging

import pytest

from cashoffer.common.config import CommonSettings
from cashoffer.common.logging import bind_claim, claim_id_ctx, configure_logging, logger
from cashoffer.common.startup import effective_config


@pytest.fixture
def captured():
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    stream = io.StringIO()
    configure_logging(level="INFO", stream=stream)
    yield stream
    root.handlers = saved_handlers
    root.setLevel(saved_level)


def test_records_are_json_with_bound_claim_id(captured):
    with bind_claim("c-42"):
        logger.info("claim approved")
    logger.info("outside")

    first, second = [json.loads(line) for line in captured.getvalue().splitlines()]
    assert first["message"] == "claim approved"
    assert first["level"] == "INFO"
    assert first["claim_id"] == "c-42"
    assert second["claim_id"] == ""
    assert claim_id_ctx.get() == ""


def test_effective_config_masks_secrets():
    cfg = CommonSettings(postgres_dsn="postgresql://u:pw@db/claims", api_key="hunter2", offer_visit_threshold=75)

    shown = effective_config(cfg, ["postgres_dsn", "api_key", "offer_visit_threshold"])

    assert shown == {"postgres_dsn": "<redacted>", "api_key": "<redacted>", "offer_visit_threshold": 75}
