import logging
import os
from logging.handlers import RotatingFileHandler

LOG_FORMAT = "%(asctime)s %(name)s %(levelname)s: %(message)s"


def configure_logging(log_file: str = "structure_search.log",
                      level: int = logging.INFO,
                      *,
                      logger_name: str | None = None) -> logging.Logger:
    """
    Attach a rotating file handler to `logger_name` (root logger by default).

    Calling it twice for the same file is a no-op, so every search run can
    request logging without stacking handlers.
    """
    logger = logging.getLogger(logger_name)
    logger.setLevel(level)

    path = os.path.abspath(log_file)
    if not any(isinstance(h, RotatingFileHandler) and h.baseFilename == path
               for h in logger.handlers):
        handler = RotatingFileHandler(
            log_file,
            maxBytes=1024*1024,
            backupCount=3,
            mode="a",
        )
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        handler.setLevel(level)
        logger.addHandler(handler)

    return logger
