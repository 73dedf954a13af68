"""
core/logger_setup.py - Provides a reusable logging configuration setup with robust handling.
This module centralizes logging configuration and exposes a setup_logging() function
that can be used in both production and testing environments.
"""

from __future__ import annotations

import collections
import contextvars
import copy
import logging
import logging.config
import os
import platform
import socket
import warnings
from collections.abc import Mapping
from typing import Any

from pythonjsonlogger import json as jsonlogger  # noqa: F401 – referenced by dictConfig below

# ----------  contextual metadata  ----------
_ctx_service: contextvars.ContextVar[str] = contextvars.ContextVar("service", default="deckhand")
_ctx_hostname: contextvars.ContextVar[str] = contextvars.ContextVar("hostname", default="unknown")
_ctx_container_id: contextvars.ContextVar[str] = contextvars.ContextVar("container_id", default="-")
_ctx_platform: contextvars.ContextVar[str] = contextvars.ContextVar("platform", default="bare")
_ctx_region: contextvars.ContextVar[str] = contextvars.ContextVar("region", default="unknown")


def bind_log_context(*, service: str | None = None, platform_name: str | None = None) -> None:
    """Bind the running command and detected hosting platform to the logging context."""
    if service is not None:
        _ctx_service.set(service)
    if platform_name is not None:
        _ctx_platform.set(platform_name)


def bind_deployment_context(
    *,
    hostname: str | None = None,
    container_id: str | None = None,
    region: str | None = None,
    context: dict[str, str] | None = None,
) -> None:
    """Bind host metadata to the logging context.

    Should be called once at startup. If context is provided its values win
    over the keyword arguments.
    """
    if context is not None:
        _ctx_hostname.set(context.get("hostname", "unknown"))
        _ctx_container_id.set(context.get("container_id", "-"))
        _ctx_region.set(context.get("region", "unknown"))
        return
    if hostname is not None:
        _ctx_hostname.set(hostname)
    if container_id is not None:
        _ctx_container_id.set(container_id)
    if region is not None:
        _ctx_region.set(region)


def auto_detect_deployment_context(environ: Mapping[str, str] | None = None) -> dict[str, str]:
    """Detect hostname, container id and region from the environment and system info."""
    env = os.environ if environ is None else environ
    context = {}

    try:
        context["hostname"] = socket.getfqdn() or platform.node()
    except Exception:
        context["hostname"] = "unknown"

    # Heroku dynos have no HOSTNAME container id but do expose DYNO
    context["container_id"] = env.get("HOSTNAME") or env.get("DYNO") or "-"

    context["region"] = (
        env.get("RAILWAY_REPLICA_REGION")  # Railway
        or env.get("RENDER_REGION")  # Render
        or env.get("FLY_REGION")  # Fly.io
        or env.get("AWS_REGION")  # AWS
        or "unknown"
    )
    return context


class _ContextFilter(logging.Filter):
    """Adds service, platform and host metadata fields to every LogRecord."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.service = _ctx_service.get()
        record.platform = _ctx_platform.get()
        record.hostname = _ctx_hostname.get()
        record.container_id = _ctx_container_id.get()
        record.region = _ctx_region.get()
        return True


def merge_dicts(base: dict[str, Any], overrides: dict[str, Any]) -> dict[str, Any]:
    """
    Recursively merge *overrides* into *base*.

    * For nested dicts, values are merged depth-first.
    * If the types at the same key differ, the override value wins and a
      `warnings.warn()` is emitted.

    Returns the modified *base* for convenience so callers can write
    `cfg = merge_dicts(cfg, overrides)`.
    """
    for key, value in overrides.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            merge_dicts(base[key], value)
        else:
            if key in base and not isinstance(base[key], type(value)):
                warnings.warn(
                    f"Type mismatch for key '{key}': "
                    f"{type(base[key]).__name__} vs {type(value).__name__}. "
                    "Using override value."
                )
            base[key] = value
    return base


DEFAULT_LOGGING_CONFIG: dict[str, Any] = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        # Human-friendly for interactive runs (`LOG_FORMAT=pretty`)
        "rich": {"datefmt": "%Y-%m-%d %H:%M:%S"},
        # Machine-friendly for platform log drains (`LOG_FORMAT=json`, default)
        "json": {
            "()": "pythonjsonlogger.json.JsonFormatter",
            "fmt": "%(asctime)s %(levelname)s %(service)s %(platform)s %(hostname)s %(container_id)s %(region)s %(name)s %(message)s",
            "datefmt": "%Y-%m-%dT%H:%M:%S%z",
        },
        "default": {"format": "%(asctime)s [%(levelname)s] %(message)s"},
    },
    "filters": {
        "dedupe": {"()": "deckhand.core.logger_setup._DuplicateFilter"},
        "context": {"()": "deckhand.core.logger_setup._ContextFilter"},
    },
    "handlers": {
        # Container logs of the bot are streamed to stdout too; keep ours on stderr.
        "stderr": {
            "class": "logging.StreamHandler",
            "formatter": "json",
            "filters": ["dedupe", "context"],
            "stream": "ext://sys.stderr",
        },
        "rich": {
            "class": "rich.logging.RichHandler",
            "formatter": "rich",
            "filters": ["dedupe", "context"],
            "markup": False,
            "show_path": False,
            "rich_tracebacks": True,
        },
    },
    "root": {"handlers": ["stderr"], "level": "INFO"},
}


# Suppress duplicate log entries in quick succession (same message & traceback)
class _DuplicateFilter(logging.Filter):
    """Drops a (msg, exc_text) record already seen among the last *window* records."""

    def __init__(self, window: int = 20) -> None:
        super().__init__()
        self._recent: collections.deque[tuple[str, str]] = collections.deque(maxlen=window)

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: D401
        key = (record.getMessage(), getattr(record, "exc_text", "") or "")
        if key in self._recent:
            return False
        self._recent.append(key)
        return True


_CONFIGURED: bool = False


def setup_logging(config_overrides: dict[str, Any] | None = None, *, force: bool = False) -> None:
    """
    setup_logging - Configures logging using a centralized configuration.

    Args:
        config_overrides (dict, optional): A dictionary with logging configuration overrides.
        force (bool): Reconfigure even if logging was already set up.

    Returns:
        None
    """
    global _CONFIGURED
    if _CONFIGURED and not force:
        return  # already configured – avoid duplicate handlers

    config = copy.deepcopy(DEFAULT_LOGGING_CONFIG)

    # Honour LOG_LEVEL env variable (e.g. DEBUG, INFO, WARNING)
    env_level = os.getenv("LOG_LEVEL")
    if env_level:
        config.setdefault("root", {})["level"] = env_level.upper()
    if config_overrides:
        merge_dicts(config, config_overrides)

    log_format = os.getenv("LOG_FORMAT", "json").lower()
    if log_format == "pretty":
        config["root"]["handlers"] = ["rich"]
    if os.getenv("LOG_TO_FILE"):
        log_file = os.getenv("LOG_FILE_PATH", "logs/deckhand.log")
        log_dir = os.path.dirname(log_file)

        add_file_handler = True
        if log_dir:
            try:
                os.makedirs(log_dir, exist_ok=True)
            except OSError as e:
                warnings.warn(f"Cannot create log directory {log_dir}: {e}. File logging disabled.")
                add_file_handler = False

        if add_file_handler:
            config["handlers"]["file"] = {
                "class": "logging.handlers.RotatingFileHandler",
                "filename": log_file,
                "maxBytes": 20_000_000,
                "backupCount": 3,
                "formatter": "json",
                "filters": ["dedupe", "context"],
            }
            config["root"]["handlers"].append("file")

    # Check for empty or missing handlers in overall config or in the root logger.
    if not config.get("handlers") or not config.get("root", {}).get("handlers"):
        warnings.warn("Logging configuration missing handlers; using fallback console handler.")
        config["handlers"] = {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "default",
            },
        }
        config.setdefault("root", {})["handlers"] = ["console"]

    logging.config.dictConfig(config)
    _CONFIGURED = True


# End of core/logger_setup.py
