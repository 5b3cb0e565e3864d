import logging
from typing import Optional

from .settings import LoggingSettings


def setup_logging(cfg: LoggingSettings, *, log_file: Optional[str] = None) -> logging.Logger:
    """
    Sets up root logging based on the provided configuration.
    """
    logging.basicConfig(level=cfg.level, format=cfg.format)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter(cfg.format))
        logging.getLogger().addHandler(file_handler)

    return logging.getLogger("song_detection")
