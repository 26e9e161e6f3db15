# -*- coding: utf-8 -*-
"""Logging for the indexer: structlog over stdlib handlers, optionally shipped to Logfire.

Every event carries the chain id and the (masked) marketplace contract, so lines
from several indexers sharing a sink stay attributable. Scan loops bind
chunk_start/chunk_end; those are folded into a single block_range field.
"""

from __future__ import annotations

import logging
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from typing import TYPE_CHECKING, Any

import logfire
import structlog
from structlog.types import EventDict, Processor

from marketplace_indexer.config import Settings, get_settings
from marketplace_indexer.utils.validation import mask_address

if TYPE_CHECKING:
    from marketplace_indexer.config.config import LoggingSettings

LOG_LEVEL_TO_LOGFIRE: dict[str, str] = {
    "DEBUG": "debug",
    "INFO": "info",
    "WARNING": "warn",
    "ERROR": "error",
    "CRITICAL": "fatal",
}

# SQL echo, aiosqlite and the telegram HTTP client are chatty at INFO
_NOISY_LOGGERS = ("aiosqlite", "sqlalchemy.engine", "httpx", "httpcore")


def indexer_context(settings: Settings) -> Processor:
    """Processor adding logger name, service identity and indexed contract to each event."""
    app = settings.app
    static: dict[str, Any] = {
        "app_name": app.app_name,
        "environment": app.environment,
        "chain_id": settings.chain.chain_id,
    }
    if app.service_name:
        static["service_name"] = app.service_name
    if app.service_version:
        static["service_version"] = app.service_version
    if settings.chain.contract_address:
        static["contract"] = mask_address(settings.chain.contract_address)

    def _add(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
        stdlib_logger = getattr(logger, "_logger", None)
        event_dict["logger"] = (
            getattr(stdlib_logger, "name", None) or getattr(logger, "name", "") or ""
        )
        for key, value in static.items():
            event_dict.setdefault(key, value)
        return event_dict

    return _add


def add_block_range(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Replace bound chunk_start/chunk_end with block_range="start-end"."""
    if "chunk_start" in event_dict and "chunk_end" in event_dict:
        start = event_dict.pop("chunk_start")
        end = event_dict.pop("chunk_end")
        event_dict.setdefault("block_range", f"{start}-{end}")
    return event_dict


def _level(name: str) -> int:
    return getattr(logging, name.upper(), logging.INFO)


def _build_handlers(logging_settings: LoggingSettings) -> list[logging.Handler]:
    handlers: list[logging.Handler] = []
    if logging_settings.log_to_console:
        console = logging.StreamHandler()
        console.setLevel(_level(logging_settings.console_level))
        handlers.append(console)
    if logging_settings.log_to_file:
        path = Path(logging_settings.log_file_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        rotating = TimedRotatingFileHandler(
            path,
            when=logging_settings.log_file_when,
            interval=logging_settings.log_file_interval,
            backupCount=logging_settings.log_file_backup_count,
            encoding="utf-8",
            utc=logging_settings.log_file_utc,
        )
        rotating.setLevel(_level(logging_settings.file_level))
        handlers.append(rotating)
    for handler in handlers:
        handler.setFormatter(logging.Formatter("%(message)s"))
    return handlers


def _configure_logfire(settings: Settings) -> None:
    app = settings.app
    logfire.configure(
        token=settings.logging.logfire_token,
        service_name=app.service_name or app.app_name,
        service_version=app.service_version,
        min_level=LOG_LEVEL_TO_LOGFIRE.get(settings.logging.logfire_level, "info"),  # type: ignore[arg-type]
        environment=app.environment,
    )


def build_processors(settings: Settings) -> list[Processor]:
    """structlog chain: context and block range first, Logfire, then the renderer."""
    logging_settings = settings.logging
    processors: list[Processor] = [
        structlog.stdlib.filter_by_level,
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        indexer_context(settings),
        add_block_range,
    ]
    if logging_settings.logfire_enabled:
        processors.append(logfire.StructlogProcessor())  # type: ignore[arg-type]
    if logging_settings.log_to_console or logging_settings.log_to_file:
        # A log file is always JSON so it can be shipped as-is.
        if logging_settings.log_to_file or logging_settings.json_format:
            processors.append(structlog.processors.JSONRenderer())
        else:
            processors.append(structlog.dev.ConsoleRenderer())
    return processors


def configure_logging(settings: Settings | None = None) -> None:
    """Configure stdlib handlers, Logfire (when enabled) and structlog."""
    settings = settings or get_settings()
    handlers = _build_handlers(settings.logging)
    if handlers:
        logging.basicConfig(
            level=min(h.level for h in handlers), handlers=handlers, force=True
        )
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    if settings.logging.logfire_enabled:
        _configure_logfire(settings)

    structlog.configure(
        processors=build_processors(settings),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
