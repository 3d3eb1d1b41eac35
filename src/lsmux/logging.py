from __future__ import annotations

import json
import logging
import pathlib
import sys
import threading
from typing import Optional, Union

_COLORS = {
    "grey": "\033[90m",
    "green": "\033[92m",
    "cyan": "\033[96m",
    "blue": "\033[94m",
    "yellow": "\033[93m",
    "red": "\033[91m",
    "white": "\033[97m",
    "bright_purple": "\033[38;5;165m",
    "bold": "\033[1m",
    "reset": "\033[0m",
}

# LogRecord attributes that are not user-supplied extra= fields
_RESERVED_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__
) | {"message", "asctime", "short_name", "thread_id"}


def _short_name(name: str) -> str:
    if not name:
        return "unknown"
    if name == "__main__":
        return "main"
    if ".backends." in name:
        return f"backend({name.split('.')[-1]})"
    return name.split(".")[-1]


class _ColoredFormatter(logging.Formatter):
    """Console formatter with per-level colors and short logger names."""

    def __init__(self, use_colors: bool = True, show_details: bool = False) -> None:
        super().__init__()
        colors = _COLORS if use_colors else {k: "" for k in _COLORS}

        detail_info = ""
        if show_details:
            detail_info = (
                f"{colors['green']}[TID:{colors['white']}%(thread_id)s"
                f"{colors['green']} PID:{colors['white']}%(process)d"
                f"{colors['green']}]{colors['reset']} "
            )

        separator = " │ "
        base_format = (
            f"{colors['grey']}%(asctime)s.%(msecs)03d{colors['reset']}"
            f"{separator}{detail_info}{{level_color}}%(levelname)s{colors['reset']}"
            f"{separator}{colors['bright_purple']}[%(short_name)s]{colors['reset']}"
            f"{separator}%(message)s"
        )

        level_colors = {
            logging.DEBUG: colors["cyan"],
            logging.INFO: colors["blue"],
            logging.WARNING: colors["yellow"],
            logging.ERROR: colors["red"],
            logging.CRITICAL: colors["red"] + colors["bold"],
        }
        self.level_formatters = {
            level: logging.Formatter(
                base_format.format(level_color=color), datefmt="%Y-%m-%d %H:%M:%S"
            )
            for level, color in level_colors.items()
        }

    def format(self, record: logging.LogRecord) -> str:
        record.short_name = _short_name(record.name)
        formatter = self.level_formatters.get(
            record.levelno, self.level_formatters[logging.INFO]
        )
        return formatter.format(record)


class _StructuredFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS:
                log_data[key] = value

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


class StructuredLogger:
    """Logger wrapper whose level methods accept structured fields as kwargs.

    ``log.info("backend selected", backend="jedi")`` passes ``backend`` through
    ``extra=`` so the JSON handler records it as its own key.
    """

    def __init__(self, logger: logging.Logger):
        self._logger = logger

    def _log(self, level: int, message: str, **kwargs) -> None:
        if kwargs:
            self._logger.log(level, message, extra=kwargs)
        else:
            self._logger.log(level, message)

    def debug(self, message: str, **kwargs):
        self._log(logging.DEBUG, message, **kwargs)

    def info(self, message: str, **kwargs):
        self._log(logging.INFO, message, **kwargs)

    def warning(self, message: str, **kwargs):
        self._log(logging.WARNING, message, **kwargs)

    def error(self, message: str, **kwargs):
        self._log(logging.ERROR, message, **kwargs)

    def critical(self, message: str, **kwargs):
        self._log(logging.CRITICAL, message, **kwargs)

    def __getattr__(self, name):
        return getattr(self._logger, name)


def _thread_info_filter(record: logging.LogRecord) -> bool:
    record.thread_id = threading.get_native_id()
    return True


def init_default_logger(
    log_level: Union[int, str] = logging.INFO,
    *,
    output_file: Optional[Union[str, pathlib.Path]] = None,
    file_log_level: Optional[Union[int, str]] = None,
    use_colors: bool = True,
    show_details: bool = False,
    clear_handlers: bool = False,
    logger_name: Optional[str] = None,
    structured_logging: bool = False,
    structured_file: Optional[Union[str, pathlib.Path]] = None,
) -> logging.Logger:
    """Setup and configure logging for lsmux and the application embedding it.

    Args:
        log_level: Base logging level for console output.
        output_file: Path to log file. If provided, file logging is enabled.
        file_log_level: Logging level for file output. Defaults to log_level.
        use_colors: Enable colored console output.
        show_details: Include thread/process info in log messages.
        clear_handlers: Remove existing handlers from the logger first.
        logger_name: Name for the logger. If None, configures the root logger.
        structured_logging: Enable JSON structured logging to file.
        structured_file: Custom path for structured JSON log file.

    Returns:
        Configured logger instance.
    """
    logger = logging.getLogger(logger_name) if logger_name else logging.getLogger()

    if clear_handlers:
        logger.handlers.clear()

    file_level = log_level if file_log_level is None else file_log_level

    def _add(handler: logging.Handler, formatter: logging.Formatter, level) -> None:
        handler.setFormatter(formatter)
        handler.setLevel(level)
        if show_details:
            handler.addFilter(_thread_info_filter)
        logger.addHandler(handler)

    _add(
        logging.StreamHandler(sys.stdout),
        _ColoredFormatter(use_colors=use_colors, show_details=show_details),
        log_level,
    )

    if output_file is not None:
        file_path = pathlib.Path(output_file)
        file_path.parent.mkdir(parents=True, exist_ok=True)
        _add(
            logging.FileHandler(file_path),
            _ColoredFormatter(use_colors=False, show_details=show_details),
            file_level,
        )

    if structured_logging:
        if structured_file is None:
            if output_file is not None:
                structured_file = pathlib.Path(output_file).with_suffix(".json")
            else:
                structured_file = "lsmux.logs.json"
        struct_path = pathlib.Path(structured_file)
        struct_path.parent.mkdir(parents=True, exist_ok=True)
        _add(logging.FileHandler(struct_path), _StructuredFormatter(), file_level)

    logger.setLevel(logging.NOTSET)
    logging.captureWarnings(True)

    logger.info(
        "Logger configured - Console: %s, File: %s, Structured: %s",
        logging.getLevelName(log_level) if isinstance(log_level, int) else log_level,
        output_file or "disabled",
        str(structured_file) if structured_logging else "disabled",
    )

    return logger


def get_structured_logger(
    name: Optional[str] = None, level: Union[int, str] = logging.INFO
) -> StructuredLogger:
    """Get a structured logger, configuring JSON output if it has no handlers."""
    base_logger = logging.getLogger(name)
    if not base_logger.handlers:
        init_default_logger(level, logger_name=name, structured_logging=True)
        base_logger = logging.getLogger(name)

    return StructuredLogger(base_logger)


def get_logger(
    name: Optional[str] = None, level: Union[int, str] = logging.INFO
) -> logging.Logger:
    """Quick logger setup for simple use cases."""
    if not logging.getLogger().handlers:
        init_default_logger(level, logger_name=name)
    return logging.getLogger(name)
