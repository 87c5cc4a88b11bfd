import logging
import sys

import structlog
from fastapi import Request
from structlog.stdlib import ProcessorFormatter

# Request-scoped keys copied from contextvars onto every event
CONTEXT_KEYS = ("request_id", "caller_id", "ip_address", "method", "path")
REDACTED_KEYS = frozenset({"authorization", "token", "jwt", "secret", "password"})


def get_client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        # First hop is the original client
        return forwarded.split(",")[0].strip()
    if request.client and request.client.host:
        return request.client.host
    return "127.0.0.1"


def add_request_info(
    logger: structlog.BoundLogger, method_name: str, event_dict: dict
) -> dict:
    context_vars = structlog.contextvars.get_contextvars()
    for key in CONTEXT_KEYS:
        value = context_vars.get(key)
        if value:
            event_dict.setdefault(key, value)
    return event_dict


def redact_credentials(
    logger: structlog.BoundLogger, method_name: str, event_dict: dict
) -> dict:
    """Mask credential-like fields before rendering."""
    for key in event_dict.keys() & REDACTED_KEYS:
        event_dict[key] = "***"
    return event_dict


def _shared_processors() -> list:
    return [
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        add_request_info,
        redact_credentials,
        structlog.processors.UnicodeDecoder(),
    ]


def _build_formatter(is_production: bool) -> ProcessorFormatter:
    if is_production:
        renderer = structlog.processors.JSONRenderer(sort_keys=False)
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True, pad_event=8)
    return ProcessorFormatter(processor=renderer)


def setup_logging(is_production: bool = False, debug: bool = False):
    """Route structlog and stdlib logging through one stdout handler.

    Production renders one JSON object per line; development uses the
    colored console renderer.
    """
    log_level = logging.DEBUG if debug else logging.INFO

    structlog.configure(
        processors=[
            *_shared_processors(),
            ProcessorFormatter.wrap_for_formatter,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(_build_formatter(is_production))

    root_logger = logging.getLogger()
    root_logger.handlers = [handler]
    root_logger.setLevel(log_level)

    # uvicorn access logs are replaced by the request logging middleware
    for name in ("uvicorn", "uvicorn.access"):
        logging.getLogger(name).handlers = []
    # SQL echo is controlled by DATABASE_ECHO
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

    return structlog.get_logger("orgkeeper")


def get_logger(name: str | None = None) -> structlog.BoundLogger:
    """Get a logger instance with optional name."""
    return structlog.get_logger(name)
