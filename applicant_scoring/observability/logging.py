"""
structlog configuration for the scoring pipeline.

Services log through ``structlog.get_logger`` with keyword fields;
repositories and clients use stdlib ``logging`` with %-style arguments.
Both end up on stdout: JSON lines in production (or when LOG_FORMAT=json),
a readable console format otherwise.
"""

import logging
import sys

import structlog
from structlog.types import Processor

from applicant_scoring.config.settings import get_settings

# Third-party loggers that emit a line per request at INFO
QUIET_LOGGERS = ("httpx", "httpcore", "openai", "asyncio", "asyncpg")


def _use_json() -> bool:
    settings = get_settings()
    if settings.log_format == "auto":
        return settings.is_production
    return settings.log_format == "json"


def _processors(json_output: bool) -> list[Processor]:
    chain: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]
    if json_output:
        chain += [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        chain.append(structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()))
    return chain


def setup_logging(level: str | None = None) -> None:
    """
    Configure structlog and the root stdlib logger.

    Args:
        level: Overrides settings.log_level, e.g. "DEBUG" for --debug.

    Usage:
        setup_logging()
        structlog.get_logger(__name__).info("Score generated", candidate_id=42)
    """
    level_name = (level or get_settings().log_level).upper()

    structlog.configure(
        processors=_processors(_use_json()),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(message)s", stream=sys.stdout)
    logging.getLogger().setLevel(level_name)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def bind_context(**fields) -> None:
    """Attach fields to every log line emitted by the current task."""
    structlog.contextvars.bind_contextvars(**fields)
