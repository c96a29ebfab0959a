"""
Logging for the timelinegen package.

Everything logs below the ``timelinegen`` logger. The console shows warnings by default;
the log file always receives full debug detail.

Environment:
    TIMELINEGEN_LOG_LEVEL  console level name (DEBUG, INFO, ...)
    TIMELINEGEN_DEBUG      1/true/yes for debug output with logger names
    TIMELINEGEN_LOG_DIR    directory for the log file
    TIMELINEGEN_LOG_FILE   log file name inside that directory, or an absolute path
"""
import logging
import os
import sys
from pathlib import Path
from typing import Optional, Union

ROOT_LOGGER = 'timelinegen'
DEFAULT_LOG_DIR = Path.home() / ".local" / "share" / "timelinegen" / "logs"
DEFAULT_LOG_FILE = "timelinegen.log"

FILE_FORMAT = '[%(asctime)s] %(levelname)-8s [%(name)s:%(funcName)s:%(lineno)d] %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

def _debug_requested() -> bool:
    return os.getenv('TIMELINEGEN_DEBUG', '').lower() in ('1', 'true', 'yes')

def console_level() -> int:
    """Console level from the environment; WARNING unless asked otherwise."""
    if _debug_requested():
        return logging.DEBUG
    env_level = os.getenv('TIMELINEGEN_LOG_LEVEL', '').upper()
    level = logging.getLevelName(env_level) if env_level else logging.WARNING
    return level if isinstance(level, int) else logging.WARNING

def log_file_path() -> Path:
    log_dir = Path(os.getenv('TIMELINEGEN_LOG_DIR', '') or DEFAULT_LOG_DIR)
    # An absolute TIMELINEGEN_LOG_FILE replaces the directory as well.
    return log_dir / (os.getenv('TIMELINEGEN_LOG_FILE', '') or DEFAULT_LOG_FILE)

def _replace_handlers(logger: logging.Logger):
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

def setup_logging(level: Optional[int] = None, log_file: Union[Path, str, None] = None) -> logging.Logger:
    """
    Configure the ``timelinegen`` logger.

    Args:
        level: Console level; defaults to the environment setting.
        log_file: File for the detailed log; defaults to ``log_file_path()``.

    Returns:
        The package logger.
    """
    level = console_level() if level is None else level
    log_file = Path(log_file) if log_file else log_file_path()
    verbose = level <= logging.DEBUG

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(logging.Formatter(
        '%(levelname)-8s [%(name)s] %(message)s' if verbose else '%(levelname)s: %(message)s'
    ))
    console_handler.setLevel(level)

    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(logging.DEBUG)  # Logger accepts all, handlers filter
    _replace_handlers(logger)
    logger.addHandler(console_handler)

    try:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding='utf-8')
    except OSError as e:
        logger.warning(f"File logging disabled, cannot write {log_file}: {e}")
    else:
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT, DATE_FORMAT))
        file_handler.setLevel(logging.DEBUG)
        logger.addHandler(file_handler)

    logger.propagate = False
    return logger

# Initialize logging when package is imported
setup_logging()

def get_logger(name: str = None):
    """Get a logger instance for a specific module."""
    if name:
        return logging.getLogger(f'{ROOT_LOGGER}.{name}')
    return logging.getLogger(ROOT_LOGGER)
