"""
Logging setup for the MCP demo.
Console output always, plus an optional daily log file that keeps a few days of history.
"""

import logging
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from typing import Optional

from mcpdemo.config import Settings, settings as default_settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_FILE_NAME = "mcpdemo.log"


class MinimumLevelFilter(logging.Filter):
    """Drop records below a level (debug chatter stays out of the log file)"""

    def __init__(self, level: int):
        super().__init__()
        self.level = level

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno >= self.level


def get_log_file_path(config: Optional[Settings] = None) -> Path:
    """Path of the current log file"""
    config = config or default_settings
    return Path(config.log_dir) / LOG_FILE_NAME


def configure_logging(config: Optional[Settings] = None) -> logging.Logger:
    """
    Configure the root logger for the application.

    Safe to call more than once: handlers installed by a previous call are replaced.
    """
    config = config or default_settings
    level = logging.DEBUG if config.debug else logging.INFO

    root = logging.getLogger()
    root.setLevel(level)

    for handler in list(root.handlers):
        if getattr(handler, "_mcpdemo_handler", False):
            root.removeHandler(handler)
            handler.close()

    formatter = logging.Formatter(LOG_FORMAT)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    console_handler.setLevel(level)
    console_handler._mcpdemo_handler = True
    root.addHandler(console_handler)

    if config.log_to_file:
        log_path = get_log_file_path(config)
        try:
            log_path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = TimedRotatingFileHandler(
                log_path,
                when="midnight",
                backupCount=max(config.log_retention_days, 0),
                encoding="utf-8",
                utc=True,
            )
            file_handler.setFormatter(formatter)
            file_handler.addFilter(MinimumLevelFilter(logging.INFO))
            file_handler._mcpdemo_handler = True
            root.addHandler(file_handler)
        except OSError as e:
            root.warning(f"File logging disabled, cannot open {log_path}: {e}")

    return root
