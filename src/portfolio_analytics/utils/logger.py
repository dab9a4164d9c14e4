"""
Logging
=======
Logger factory for the analytics engine.

The engine is used as a library, so module loggers only print warnings
and above to the console and never write files unless asked to.
Handlers are attached per module logger; records still propagate, so an
embedding application (or pytest's caplog) sees them too.
"""

import logging
import sys
from pathlib import Path
from datetime import datetime
import functools
import time


LOG_FORMAT = '%(asctime)s | %(levelname)-8s | %(name)-20s | %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

DEFAULT_CONFIG = {
    'console_level': logging.WARNING,
    'file_level': logging.DEBUG,
    'log_dir': 'logs',
    'enable_file_logging': False,
}


# ================================================================================
# FORMATTER
# ================================================================================

class ColoredFormatter(logging.Formatter):
    """Console formatter that colors the level name with ANSI codes."""

    COLORS = {
        'DEBUG': '\033[36m',
        'INFO': '\033[32m',
        'WARNING': '\033[33m',
        'ERROR': '\033[31m',
        'CRITICAL': '\033[35m',
    }
    RESET = '\033[0m'

    def format(self, record):
        color = self.COLORS.get(record.levelname)
        if color is None:
            return super().format(record)
        # The record is shared with every other handler
        colored = logging.makeLogRecord(record.__dict__)
        colored.levelname = f"{color}{record.levelname}{self.RESET}"
        return super().format(colored)


# ================================================================================
# LOGGER SETUP
# ================================================================================

def setup_logger(
    name: str,
    console_level: int = DEFAULT_CONFIG['console_level'],
    file_level: int = DEFAULT_CONFIG['file_level'],
    log_dir: str = DEFAULT_CONFIG['log_dir'],
    enable_file_logging: bool = DEFAULT_CONFIG['enable_file_logging']
) -> logging.Logger:
    """
    Configure and return a named logger.

    Calling it again for the same name replaces the handlers instead of
    stacking duplicates.

    Args:
        name: Logger name (usually the module's __name__)
        console_level: Minimum level written to stdout
        file_level: Minimum level written to the log file
        log_dir: Directory for daily log files
        enable_file_logging: Also write to <log_dir>/<name>_<YYYYMMDD>.log

    Returns:
        The configured logger
    """
    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG)
    logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(ColoredFormatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
    logger.addHandler(console_handler)

    if enable_file_logging:
        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)
        stamp = datetime.now().strftime('%Y%m%d')
        file_handler = logging.FileHandler(
            log_path / f"{name.replace('.', '_')}_{stamp}.log", encoding='utf-8'
        )
        file_handler.setLevel(file_level)
        file_handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
        logger.addHandler(file_handler)

    return logger


def get_logger(module_name: str) -> logging.Logger:
    """Module logger with the engine defaults (console warnings, no file)."""
    return setup_logger(module_name)


# ================================================================================
# TIMING
# ================================================================================

def log_performance(logger: logging.Logger):
    """
    Decorator that logs how long a call took.

    Successful calls are logged at INFO, failures at ERROR before the
    exception is re-raised unchanged.

    Usage:
        @log_performance(logger)
        def analyze_portfolio(self, today):
            ...
    """
    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            started = time.perf_counter()
            logger.debug(f"Starting {func.__name__}")
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                logger.error(f"Failed {func.__name__} after {time.perf_counter() - started:.3f}s: {e}")
                raise
            logger.info(f"Completed {func.__name__} in {time.perf_counter() - started:.3f}s")
            return result

        return wrapper
    return decorator
