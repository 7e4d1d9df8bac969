"""Logging with mode/task context and CI-friendly formatting."""

import logging
import sys
from datetime import datetime
from typing import Optional

ROOT_LOGGER = "prodmill"


class ProdmillLogFormatter(logging.Formatter):
    """Formatter that prefixes records with the active mode and task id."""

    LEVEL_COLORS = {
        "DEBUG": "\033[36m",      # Cyan
        "INFO": "\033[32m",       # Green
        "WARNING": "\033[33m",    # Yellow
        "ERROR": "\033[31m",      # Red
        "CRITICAL": "\033[35m",   # Magenta
    }

    def __init__(self, use_colors: bool = True):
        super().__init__()
        self.use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")

        mode_context = f"[{record.mode}] " if getattr(record, "mode", None) else ""
        task_context = f"[{record.task_id}] " if getattr(record, "task_id", None) else ""

        if self.use_colors:
            level_color = self.LEVEL_COLORS.get(record.levelname, "")
            reset = "\033[0m"
        else:
            level_color = ""
            reset = ""

        message = (
            f"{timestamp} {level_color}{record.levelname:8s}{reset} "
            f"{mode_context}{task_context}{record.getMessage()}"
        )
        if record.exc_info:
            message += "\n" + self.formatException(record.exc_info)
        return message


class ContextLogger(logging.LoggerAdapter):
    """Logger adapter that adds mode and task context to all log messages."""

    def __init__(self, logger: logging.Logger, mode: Optional[str] = None):
        super().__init__(logger, {})
        self.mode = mode
        self.task_id: Optional[str] = None

    def set_task(self, task_id: Optional[str]) -> None:
        self.task_id = task_id

    def process(self, msg, kwargs):
        extra = kwargs.get("extra", {})
        if self.mode:
            extra.setdefault("mode", self.mode)
        if self.task_id:
            extra.setdefault("task_id", self.task_id)
        kwargs["extra"] = extra
        return msg, kwargs


def get_context_logger(name: str, mode: Optional[str] = None) -> ContextLogger:
    return ContextLogger(logging.getLogger(name), mode)


def setup_logging(log_level: str = "INFO", use_colors: Optional[bool] = None) -> logging.Logger:
    """
    Configure the ``prodmill`` logger hierarchy.

    Args:
        log_level: Logging level name (DEBUG, INFO, WARNING, ERROR)
        use_colors: Force ANSI colours on/off; defaults to whether stderr is a TTY

    Returns:
        The configured package logger
    """
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(getattr(logging, log_level.upper()))

    # Close existing handlers before clearing (repeat invocations in one process)
    for handler in logger.handlers[:]:
        handler.close()
        logger.removeHandler(handler)

    if use_colors is None:
        use_colors = hasattr(sys.stderr, "isatty") and sys.stderr.isatty()

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(ProdmillLogFormatter(use_colors=use_colors))
    logger.addHandler(handler)
    logger.propagate = False
    return logger
