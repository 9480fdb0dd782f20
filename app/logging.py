import logging
import sys
import structlog
from app.core.config import settings

# Submissions are anonymous: these never reach a log line, whoever binds them
REDACTED_KEYS = frozenset({
    "client_ip", "ip", "x_forwarded_for",
    "lat", "lon", "latitude", "longitude", "ip_latitude", "ip_longitude",
    "text",
})

def drop_identifying_keys(logger, method_name, event_dict):
    """structlog processor removing client addresses, raw coordinates and text."""
    for key in REDACTED_KEYS.intersection(event_dict):
        del event_dict[key]
    return event_dict

def configure_logging():
    """
    Configures structlog to intercept standard library logs and render
    JSON in production or coloured console output in development.
    """
    is_local = settings.ENV.lower() == "development"

    shared_processors = [
        structlog.contextvars.merge_contextvars,
        drop_identifying_keys,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.CallsiteParameterAdder(
            {
                structlog.processors.CallsiteParameter.FILENAME,
                structlog.processors.CallsiteParameter.FUNC_NAME,
                structlog.processors.CallsiteParameter.LINENO,
            }
        ),
    ]

    if is_local:
        processors = shared_processors + [
            structlog.dev.ConsoleRenderer()
        ]
    else:
        processors = shared_processors + [
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer()
        ]

    structlog.configure(
        processors=processors,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=logging.INFO)

    # uvicorn installs its own handlers; drop them so its records go through the root logger
    for _log in ["uvicorn", "uvicorn.error", "uvicorn.access"]:
        logger = logging.getLogger(_log)
        logger.handlers = []
        logger.propagate = True
