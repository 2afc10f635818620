"""Logging setup shared by the analyzers, CLI and API."""
import logging
from typing import Optional

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logger(name: str, log_level: Optional[str] = None, log_file: Optional[str] = None) -> logging.Logger:
    """Return a named logger with a stream handler and an optional file handler.

    Args:
        name: Logger name, e.g. ``analyzer.ProgramFlowAnalyzer``
        log_level: Level name; defaults to the configured FLOWGUARD_LOG_LEVEL
        log_file: Optional path of a log file to append to

    Returns:
        The configured logger
    """
    if log_level is None or log_file is None:
        from ..config import settings
        log_level = log_level or settings.LOG_LEVEL
        log_file = log_file or settings.LOG_FILE

    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    # Handlers are attached once per logger name
    if not logger.handlers:
        formatter = logging.Formatter(LOG_FORMAT)
        stream_handler = logging.StreamHandler()
        stream_handler.setFormatter(formatter)
        logger.addHandler(stream_handler)
        if log_file:
            file_handler = logging.FileHandler(log_file)
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)

    return logger
