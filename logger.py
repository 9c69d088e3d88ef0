"""Structured logging infrastructure with verbosity levels and per-engine log files."""

import logging
import logging.handlers
from typing import Any, Dict, Optional

import colorlog

from models import EngineConfig

ROOT_LOGGER_NAME = 'jspwiki_migrator'
DEFAULT_LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DEFAULT_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


LEVEL_COLORS = {
    'DEBUG': 'cyan',
    'INFO': 'green',
    'WARNING': 'yellow',
    'ERROR': 'red',
    'CRITICAL': 'red,bg_white',
}


def resolve_log_level(verbosity: int = 0, level: Optional[str] = None) -> int:
    """
    Pick the log level: an explicit level name wins over the -v count.

    Raises:
        ValueError: If ``level`` is not a standard level name
    """
    if not level:
        return {0: logging.WARNING, 1: logging.INFO}.get(verbosity, logging.DEBUG)

    name = level.upper()
    if name not in LEVEL_COLORS:
        raise ValueError(f"Invalid log level '{level}'. Must be one of: {sorted(LEVEL_COLORS)}")
    return getattr(logging, name)


def setup_logging(
    verbosity: int = 0,
    log_file: Optional[str] = None,
    log_format: Optional[str] = None,
    date_format: Optional[str] = None,
    level: Optional[str] = None
) -> logging.Logger:
    """
    Configure the ``jspwiki_migrator`` logger hierarchy for a CLI run.

    Console output is colored; ``log_file`` adds a rotating plain-text copy.
    Per-engine diagnostics are routed separately by :func:`attach_engine_log`.

    Args:
        verbosity: Number of -v flags (0=WARNING, 1=INFO, 2+=DEBUG)
        log_file: Optional rotating log file
        log_format: Optional format string replacing DEFAULT_LOG_FORMAT
        date_format: Optional date format replacing DEFAULT_DATE_FORMAT
        level: Optional level name overriding ``verbosity``

    Returns:
        The root migrator logger
    """
    log_level = resolve_log_level(verbosity, level)
    log_format = log_format or DEFAULT_LOG_FORMAT
    date_format = date_format or DEFAULT_DATE_FORMAT

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(log_level)
    logger.propagate = False
    logger.handlers.clear()

    console = logging.StreamHandler()
    console.setLevel(log_level)
    console.setFormatter(colorlog.ColoredFormatter(
        fmt='%(log_color)s' + log_format,
        datefmt=date_format,
        log_colors=LEVEL_COLORS
    ))
    logger.addHandler(console)

    if log_file:
        try:
            file_handler = _rotating_file_handler(log_file, log_format, date_format)
        except OSError as e:
            logger.warning(f"Cannot log to {log_file}: {e}")
        else:
            file_handler.setLevel(log_level)
            logger.addHandler(file_handler)
            logger.info(f"Logging to file: {log_file}")

    logger.debug(f"Log level: {logging.getLevelName(log_level)}")
    return logger


def engine_logger(config: EngineConfig) -> logging.Logger:
    """Logger receiving the diagnostics of the engine described by ``config``."""
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.engine.{config.dialect.value}")


def attach_engine_log(config: EngineConfig) -> logging.Logger:
    """
    Route an engine's diagnostics to the file at ``config.log_path``.

    The parent directory must already exist. Attaching twice for the same
    path is a no-op.

    Args:
        config: Engine configuration providing dialect and log path

    Returns:
        The engine logger
    """
    logger = engine_logger(config)
    log_path = str(config.log_path)

    for handler in logger.handlers:
        if isinstance(handler, logging.FileHandler) and handler.baseFilename == log_path:
            return logger

    handler = _rotating_file_handler(log_path, DEFAULT_LOG_FORMAT, DEFAULT_DATE_FORMAT)
    handler.setLevel(logging.DEBUG)
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)
    return logger


def detach_engine_log(config: EngineConfig) -> None:
    """Close and remove the file handlers added by :func:`attach_engine_log`."""
    logger = engine_logger(config)
    for handler in list(logger.handlers):
        if isinstance(handler, logging.FileHandler):
            logger.removeHandler(handler)
            handler.close()


def _rotating_file_handler(path: str, log_format: str, date_format: str) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        path,
        maxBytes=10 * 1024 * 1024,  # 10MB
        backupCount=5,
        encoding='utf-8'
    )
    handler.setFormatter(logging.Formatter(fmt=log_format, datefmt=date_format))
    return handler


def log_section(title: str) -> None:
    """
    Log a decorative section header.

    Args:
        title: Section title to display
    """
    logger = logging.getLogger(ROOT_LOGGER_NAME)

    separator = "=" * 60
    logger.info("")
    logger.info(separator)
    logger.info(f"  {title.upper()}")
    logger.info(separator)
    logger.info("")


def log_config(config: Dict[str, Any]) -> None:
    """
    Log the effective configuration for debugging.

    Args:
        config: Configuration dictionary to log
    """
    logger = logging.getLogger(ROOT_LOGGER_NAME)

    log_section("Configuration")

    migration = config.get('migration', {})
    logger.info(f"Source Directory: {migration.get('source_directory', 'Not Set')}")
    logger.info(f"Target Directory: {migration.get('target_directory', 'Not Set')}")
    logger.info(f"Language: {migration.get('language', 'Not Set')}")
    logger.info(f"Source Dialect: {migration.get('source_dialect', 'jspwiki')}")
    logger.info(f"Target Dialect: {migration.get('target_dialect', 'markdown')}")
    logger.info(f"Clean Target: {migration.get('clean_target', False)}")
    logger.info(f"Dry Run: {migration.get('dry_run', False)}")
    logger.info(f"Verify Attachments: {migration.get('verify_attachments', True)}")

    logger.info("")

    engine = config.get('engine', {})
    logger.info(f"Work Directory: {engine.get('work_directory', './target')}")
    logger.info(f"Cache Enabled: {engine.get('cache_enabled', False)}")
    logger.info(f"Parser Override: {engine.get('parser_override') or 'Not Set'}")


def log_engine_config(config: EngineConfig, role: str) -> None:
    """Log the JSPWiki-style properties of an engine configuration at DEBUG level."""
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    for key, value in config.properties().items():
        logger.debug(f"[{role}] {key} = {value}")


__all__ = [
    'setup_logging',
    'resolve_log_level',
    'engine_logger',
    'attach_engine_log',
    'detach_engine_log',
    'log_section',
    'log_config',
    'log_engine_config'
]
