from __future__ import annotations

"""Logging set-up for the MJML toolkit.

:func:`setup_logging` applies ``logging.yml`` (packaged defaults merged with
user overrides by :class:`~mjml_toolkit.config.ConfigManager`). Two
environment variables adjust it at start-up:

- ``MJML_TOOLKIT_LOG_DIR``: directory of the rotating log file (``logs``).
- ``MJML_TOOLKIT_DEBUG_MODULES``: comma separated logger names raised to
  DEBUG; ``editing`` stands for the tree editing service logger.
"""

import copy
import logging
import logging.config
import os
from typing import Any, Dict, List

from mjml_toolkit.config import ConfigManager

__all__ = ["setup_logging", "EDITING_LOGGER"]

EDITING_LOGGER = "mjml_toolkit.core.services.tree_editing_service"

_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging() -> None:
    """Configure logging from config files, or a console-only fallback."""
    config = copy.deepcopy(ConfigManager().get_logging_config())
    try:
        if not config.get("version"):
            raise ValueError("logging.yml has no 'version' key")
        file_handler = (config.get("handlers") or {}).get("file")
        if file_handler is not None:
            log_dir = os.environ.get("MJML_TOOLKIT_LOG_DIR", "logs")
            os.makedirs(log_dir, exist_ok=True)
            file_handler["filename"] = os.path.join(log_dir, "mjml_toolkit.log")
        logging.config.dictConfig(config)
    except (ValueError, TypeError, AttributeError, ImportError, OSError) as exc:
        # dictConfig reports bad handler/formatter definitions as ValueError
        logging.config.dictConfig(_minimal_config())
        logging.getLogger(__name__).warning("Using console logging, config rejected: %s", exc)

    for name in _debug_targets():
        _enable_debug(name)


def _minimal_config() -> Dict[str, Any]:
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {"simple": {"format": _FORMAT}},
        "handlers": {
            "console": {"class": "logging.StreamHandler", "formatter": "simple", "level": "WARNING"},
        },
        "root": {"level": "INFO", "handlers": ["console"]},
        "loggers": {
            EDITING_LOGGER: {"handlers": ["console"], "level": "INFO", "propagate": False},
        },
    }


def _debug_targets() -> List[str]:
    raw = os.environ.get("MJML_TOOLKIT_DEBUG_MODULES", "")
    names = [name.strip() for name in raw.split(",") if name.strip()]
    return [EDITING_LOGGER if name == "editing" else name for name in names]


def _enable_debug(name: str) -> None:
    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG)
    # Handlers from the config are INFO or higher; add one that lets DEBUG out
    if not any(handler.level <= logging.DEBUG for handler in logger.handlers):
        handler = logging.StreamHandler()
        handler.setLevel(logging.DEBUG)
        handler.setFormatter(logging.Formatter(_FORMAT))
        logger.addHandler(handler)
    logger.debug("Debug logging enabled for '%s'", name)
