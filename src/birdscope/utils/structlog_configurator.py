"""Structlog-based logging configuration for BirdScope.

This module provides structured logging configuration using structlog.
Library modules keep logging through ``logging.getLogger(__name__)``; once
configured, those records are rendered by structlog alongside structlog
loggers.

Supports different deployment targets:
- Docker: Uses stdout with JSON output
- Development: Configurable JSON or human-readable output
- Interactive (CLI): Human-readable colored output on stderr
"""

import logging
import os
import sys
from collections.abc import Callable
from importlib.metadata import PackageNotFoundError, version
from typing import Any

import structlog

from birdscope.config.models import BirdScopeConfig


def is_docker_environment() -> bool:
    """Check if running in a Docker container."""
    return os.path.exists("/.dockerenv") or os.environ.get("DOCKER_CONTAINER") == "true"


def get_package_version() -> str:
    """Get the installed package version, or 'unknown' when running from a checkout."""
    try:
        return version("birdscope")
    except PackageNotFoundError:
        return "unknown"


def get_deployment_environment() -> str:
    """Get deployment environment with 'cli' fallback."""
    if is_docker_environment():
        return "docker"
    elif os.environ.get("BIRDSCOPE_ENV") == "development":
        return "development"
    else:
        return "cli"


def _add_static_context(extra_fields: dict[str, str]) -> Callable:
    """Processor to add static context fields to all log entries."""

    def processor(
        logger: structlog.BoundLogger, method_name: str, event_dict: dict[str, Any]
    ) -> dict[str, Any]:
        event_dict.update(extra_fields)
        return event_dict

    return processor


def _get_environment_config() -> tuple[bool, bool]:
    """Detect deployment environment and return configuration flags."""
    is_docker = is_docker_environment()
    is_development = os.environ.get("BIRDSCOPE_ENV", "production") == "development"
    return is_docker, is_development


def _shared_processors(config: BirdScopeConfig) -> list:
    """Build processors applied to both structlog and stdlib log records."""
    extra_fields = {
        "service": "birdscope",
        "version": get_package_version(),
        "deployment": get_deployment_environment(),
        **config.logging.extra_fields,  # Allow config to override/add fields
    }

    processors = [
        structlog.contextvars.merge_contextvars,
        _add_static_context(extra_fields),
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="ISO"),
    ]

    if config.logging.include_caller:
        processors.append(structlog.processors.CallsiteParameterAdder())

    return processors


def _select_renderer(config: BirdScopeConfig, is_docker: bool, is_development: bool) -> Any:  # noqa: ANN401
    """Pick JSON or console rendering based on config and environment."""
    use_json = config.logging.json_logs
    if use_json is None:
        # Auto-detect: JSON inside containers, human-readable elsewhere
        use_json = is_docker

    if is_development:
        dev_json_logs = os.environ.get("BIRDSCOPE_JSON_LOGS", "false").lower() == "true"
        if dev_json_logs:
            use_json = True

    if use_json:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())


def _configure_handlers(config: BirdScopeConfig, renderer: Any, shared: list) -> None:  # noqa: ANN401
    """Route stdlib logging records through the structlog renderer."""
    root_logger = logging.getLogger()
    log_level = getattr(logging, config.logging.level.upper(), logging.INFO)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    root_logger.setLevel(log_level)

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=[
            structlog.stdlib.add_logger_name,
            structlog.stdlib.ExtraAdder(),
            *shared,
        ],
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(log_level)
    handler.setFormatter(formatter)
    root_logger.addHandler(handler)

    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(max(log_level, logging.WARNING))


def configure_structlog(config: BirdScopeConfig) -> None:
    """Configure structlog-based logging system.

    Args:
        config: The BirdScopeConfig instance containing logging settings.
    """
    is_docker, is_development = _get_environment_config()
    shared = _shared_processors(config)
    renderer = _select_renderer(config, is_docker, is_development)

    structlog.configure(
        processors=[*shared, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, config.logging.level.upper(), logging.INFO)
        ),
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    _configure_handlers(config, renderer, shared)

    logger = structlog.get_logger(__name__)
    logger.debug(
        "Structured logging configured",
        version=get_package_version(),
        log_level=config.logging.level,
        environment=get_deployment_environment(),
        json_output=config.logging.json_logs,
    )
