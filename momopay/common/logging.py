"""Structured JSON logging with workflow context fields and secret redaction."""

import logging
import re
import sys
from contextvars import ContextVar
from uuid import uuid4

from pythonjsonlogger.json import JsonFormatter

from momopay.common.config import settings


trace_id_ctx: ContextVar[str] = ContextVar("trace_id", default="")
run_id_ctx: ContextVar[str] = ContextVar("run_id", default="")
reference_id_ctx: ContextVar[str] = ContextVar("reference_id", default="")

_SECRET_PATTERNS = (
    re.compile(r"\b(Basic|Bearer)\s+[A-Za-z0-9._~+/=-]+"),
    re.compile(r"\b(api_?key|access_token)([\"']?\s*[=:]\s*)([\"']?)[^\s,\"'}]+", re.IGNORECASE),
)


def redact_secrets(text: str) -> str:
    """Mask HTTP credentials and key/token pairs inside free-form text."""

    text = _SECRET_PATTERNS[0].sub(r"\1 <redacted>", text)
    return _SECRET_PATTERNS[1].sub(r"\1\2\3<redacted>", text)


class ContextFilter(logging.Filter):
    """Inject service and correlation identifiers into every log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.service_name = settings.service_name
        record.trace_id = trace_id_ctx.get()
        record.run_id = run_id_ctx.get()
        record.reference_id = reference_id_ctx.get()
        return True


class SecretRedactionFilter(logging.Filter):
    """Rewrite the rendered message so credentials never reach a handler."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = redact_secrets(message)
        if redacted != message:
            record.msg = redacted
            record.args = ()
        return True


def configure_logging() -> None:
    """Configure root logger once per process."""

    handler = logging.StreamHandler(sys.stdout)
    context_filter = ContextFilter()
    redaction_filter = SecretRedactionFilter()
    handler.addFilter(context_filter)
    handler.addFilter(redaction_filter)
    formatter = JsonFormatter(
        "%(asctime)s %(levelname)s %(service_name)s %(trace_id)s %(run_id)s %(reference_id)s %(message)s"
    )
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(settings.log_level)
    root.addFilter(context_filter)


logger = logging.getLogger("momopay")
logger.addFilter(SecretRedactionFilter())


def bind_trace_id(correlation_id: str | None) -> str:
    """Use the caller's correlation id for this request, or mint one."""

    trace_id = correlation_id or str(uuid4())
    trace_id_ctx.set(trace_id)
    return trace_id
