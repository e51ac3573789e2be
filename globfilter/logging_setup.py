import logging
import sys
from typing import IO, Optional
import structlog

LOGGER_NAME = "globfilter"

# -v count -> level name; anything above the last entry is debug.
_VERBOSITY_LEVELS = ("warning", "info", "debug")


def level_for_verbosity(verbosity: int) -> str:
    return _VERBOSITY_LEVELS[max(0, min(verbosity, len(_VERBOSITY_LEVELS) - 1))]


def _renderer(force_json_logs: bool, stream: IO[str]):
    if force_json_logs:
        return structlog.processors.JSONRenderer()
    isatty = getattr(stream, "isatty", None)
    return structlog.dev.ConsoleRenderer(colors=bool(isatty and isatty()))


def configure_logging(log_level_str: str = "warning", force_json_logs: bool = False, stream: Optional[IO[str]] = None):
    """
    Route structlog events from `globfilter.*` loggers to `stream` (stderr by default).

    Safe to call more than once: the handler is replaced, not added. Records do
    not propagate to the root logger, so library users keep their own setup.
    """
    log_level = getattr(logging, log_level_str.upper(), logging.WARNING)
    target = stream if stream is not None else sys.stderr

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(target)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=_renderer(force_json_logs, target),
            foreign_pre_chain=[structlog.stdlib.add_log_level],
        )
    )

    package_logger = logging.getLogger(LOGGER_NAME)
    package_logger.handlers.clear()
    package_logger.addHandler(handler)
    package_logger.setLevel(log_level)
    package_logger.propagate = False

    structlog.get_logger(__name__).info("logging_configured", level=log_level_str, json=force_json_logs)
