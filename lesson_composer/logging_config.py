from __future__ import annotations

"""Central logging configuration for the lesson composer.

Import and call :func:`setup_logging` at application start-up.
"""

import logging
import logging.config
import os

from lesson_composer.config import ConfigManager

__all__ = ["setup_logging"]

_MUTATION_LOGGERS = (
    "lesson_composer.core.services.document_editing_service",
    "lesson_composer.ui.controllers.drag_session_coordinator",
)


def setup_logging() -> None:
    """Configure logging for the application using configuration from YAML files."""
    log_dir = os.environ.get("LESSON_LOG_DIR", "logs")
    os.makedirs(log_dir, exist_ok=True)
    log_file = os.path.join(log_dir, "app.log")

    try:
        logging_config = ConfigManager().get_logging_config()

        if logging_config and isinstance(logging_config, dict) and logging_config.get("version"):
            # Copy so the cached config keeps the packaged filename
            logging_config = dict(logging_config)
            handlers = {name: dict(spec) for name, spec in (logging_config.get("handlers") or {}).items()}
            if "file" in handlers:
                handlers["file"]["filename"] = log_file
            logging_config["handlers"] = handlers

            logging.config.dictConfig(logging_config)
            logging.info("===== Logging initialised from config files =====")
        else:
            _setup_minimal_logging()
    except (ValueError, TypeError, AttributeError, ImportError, OSError) as exc:
        print(f"Error loading logging config: {exc}")
        _setup_minimal_logging()

    _apply_debug_overrides()


def _setup_minimal_logging() -> None:
    """Set up minimal console-only logging when config is unavailable."""
    minimal_config = {
        'version': 1,
        'disable_existing_loggers': False,
        'formatters': {
            'simple': {
                'format': '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            },
        },
        'handlers': {
            'console': {
                'class': 'logging.StreamHandler',
                'formatter': 'simple',
                'level': 'INFO',
            },
        },
        'root': {
            'level': 'INFO',
            'handlers': ['console'],
        },
        # Keep the mutation loggers addressable so the env overrides still apply
        'loggers': {
            name: {'handlers': ['console'], 'level': 'INFO', 'propagate': False}
            for name in _MUTATION_LOGGERS
        },
    }

    logging.config.dictConfig(minimal_config)
    logging.error("===== Logging initialised with minimal fallback (config error) =====")


def _apply_debug_overrides() -> None:
    """Apply environment-driven module-specific debug overrides.

    Supports:
    - LESSON_DEBUG_MUTATIONS=true  -> DEBUG for the editing service and drag coordinator
    - LESSON_DEBUG_MODULES=comma,separated,logger,names -> DEBUG for listed loggers
    """
    debug_mutations = os.environ.get('LESSON_DEBUG_MUTATIONS', '').strip().lower() in {'1', 'true', 'yes', 'on'}
    extra_modules = os.environ.get('LESSON_DEBUG_MODULES', '').strip()
    targets = []
    if debug_mutations:
        targets.extend(_MUTATION_LOGGERS)
    if extra_modules:
        targets.extend([m.strip() for m in extra_modules.split(',') if m.strip()])
    if not targets:
        return
    for name in targets:
        logger = logging.getLogger(name)
        logger.setLevel(logging.DEBUG)
        # Ensure at least one handler emits DEBUG for this logger
        has_debug_handler = any(h.level <= logging.DEBUG for h in logger.handlers)
        if not has_debug_handler:
            h = logging.StreamHandler()
            h.setLevel(logging.DEBUG)
            h.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
            logger.addHandler(h)
        logger.info("Debug override active for logger '%s'", name)
