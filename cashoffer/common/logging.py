"""JSON logs carrying trace, claim and browser-profile correlation ids."""

import logging
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator, TextIO

from pythonjsonlogger.json import JsonFormatter

from cashoffer.common.config import settings


trace_id_ctx: ContextVar[str] = ContextVar("trace_id", default="")
claim_id_ctx: ContextVar[str] = ContextVar("claim_id", default="")
profile_id_ctx: ContextVar[str] = ContextVar("profile_id", default="")

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(service_name)s %(trace_id)s %(claim_id)s %(profile_id)s %(message)s"


class ContextFilter(logging.Filter):
    """Stamp the current correlation ids onto each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.service_name = settings.service_name
        record.trace_id = trace_id_ctx.get()
        record.claim_id = claim_id_ctx.get()
        record.profile_id = profile_id_ctx.get()
        return True


@contextmanager
def bind_claim(claim_id: str) -> Iterator[None]:
    """Attach `claim_id` to every record logged inside the block."""

    token = claim_id_ctx.set(claim_id)
    try:
        yield
    finally:
        claim_id_ctx.reset(token)


def configure_logging(level: str | None = None, stream: TextIO | None = None) -> None:
    """Replace root handlers with a single JSON handler. Safe to call more than once."""

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.addFilter(ContextFilter())
    handler.setFormatter(JsonFormatter(LOG_FORMAT, rename_fields={"levelname": "level", "asctime": "ts"}))

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(level or settings.log_level)


logger = logging.getLogger("cashoffer")
