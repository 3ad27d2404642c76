import logging
from typing import Optional

ROOT_LOGGER = "detect_marker"
LOG_FORMAT = "%(asctime)s %(levelname)s [%(source)s] %(message)s"


class SourceNameFilter(logging.Filter):
    def __init__(self, source_name: str):
        super().__init__()
        self.source_name = source_name

    def filter(self, record: logging.LogRecord) -> bool:
        record.source = self.source_name
        return True


def setup_logger(source_name: str, level: int | str = logging.INFO) -> logging.Logger:
    """Configure the package logger once; module loggers propagate to it."""
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(level.upper() if isinstance(level, str) else level)

    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler.addFilter(SourceNameFilter(source_name))
        logger.addHandler(handler)

    return logger


def add_file_handler(logger: logging.Logger, source_name: str, log_path: str) -> Optional[logging.Handler]:
    handler = logging.FileHandler(log_path)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler.addFilter(SourceNameFilter(source_name))
    logger.addHandler(handler)
    return handler
