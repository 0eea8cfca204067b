import logging
import sys
from typing import Any, Dict, Optional

import structlog

# httpx logs every request at INFO; a consolidation pass makes 24 of them
NOISY_LOGGERS = ("httpx", "httpcore")


def _service_tagger(service: str, env: Optional[str]):
    def tag(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
        event_dict.setdefault("service", service)
        if env:
            event_dict.setdefault("env", env)
        return event_dict

    return tag


def init_logging(
    log_level: str = "INFO",
    service: str = "balloon_platform",
    env: Optional[str] = None,
) -> structlog.BoundLogger:
    """Configure stdlib and structlog output on stdout.

    Events are JSON lines tagged with ``service`` (and ``env`` when given);
    at DEBUG they use the console renderer and upstream HTTP logs are kept.
    """
    level = getattr(logging, log_level.upper(), logging.INFO)
    debug = level <= logging.DEBUG

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(level if debug else max(level, logging.WARNING))

    renderer = structlog.dev.ConsoleRenderer() if debug else structlog.processors.JSONRenderer()
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.add_log_level,
            _service_tagger(service, env),
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.make_filtering_bound_logger(level),
        cache_logger_on_first_use=True,
    )

    return structlog.get_logger(service)
