"""Multi-level logger with templated console output and buffered file output.

This package provides a configurable logger built around named levels. Each
level renders its messages through a small template language, styles them for
the terminal, sends them to a named output sink and publishes an event that
listeners (including the optional file writer) can subscribe to.

Key Features:
    - Case-sensitive, user-defined levels, each with its own prefix, color,
      sink, template and optional dedicated log file
    - Templates with style chains: ``{{prefix.blue.bold}}``, ``{{date.gray:HH:mm:ss}}``
    - printf-style interpolation of log arguments (``%s``, ``%d``, ``%j``...)
    - Per-level listeners (``on``, ``once``, ``off``), scoped to each logger
    - Buffered file output with size-based rotation (numbered or gzipped
      archives) and age-based retention
    - TOML-based configuration with sensible defaults
    - Graceful shutdown draining the buffers, optionally hooked to interpreter exit

Basic Usage:
    ```python
    from quill_log import configure_logger

    quill = (
        configure_logger()
        .with_format("[{{level.gray}}] {{date.gray:HH:mm:ss}} {{msg}}")
        .with_level("Info", color="white", sink="info", prefix="INFO")
        .with_level("Error", color="red.bold", sink="error", prefix="ERROR",
                    files="logs/errors")
        .with_files("logs", retention_days=14)
        .with_exit_hook()
        .build()
    )

    quill.log("Info", "hello %s!", "world")
    quill.on("Error", lambda level, message, params, timestamp, formatted: ...)
    quill.log("Debug", "x")  # raises InvalidLogLevelError
    ```

Configuration:
    The logger can be configured from a TOML file with the following structure:

    ```toml
    [logger]
    format = "[{{prefix}}] {{date:HH:mm:ss}} {{msg}}"
    debug = false
    colors = true

    [logger.levels.Info]
    color = "white"
    sink = "info"
    prefix = "INFO"

    [logger.levels.Error]
    color = "red.bold"
    sink = "error"
    prefix = "ERROR"
    files = { name = "error-{{date:YYYY-MM-DD}}.log", log_directory = "logs/errors" }

    [logger.files]
    log_directory = "logs"
    buffer_size = 100        # lines
    flush_interval = 5.0     # seconds
    max_file_size = 5242880  # 5MiB
    retention_days = 7
    compress = false
    ```

    All sections and fields are optional except each level's ``color`` and ``sink``.

Implementation Notes:
    - Styles are rendered with rich; unknown style names raise when used
    - Console sinks rely on colorama for ANSI support on Windows
    - Dates use moment-style patterns, formatted with arrow in local time
    - File lines are ANSI-stripped; file errors are reported through structlog
      (or an ``on_file_error`` callback) and never raised from ``log``
    - A level's own file target wins entirely over the shared ``[logger.files]`` target
"""

from .config import FileOptions, FileTarget, LevelConfig, LoggerOptions
from .errors import (
    InvalidDateFormatError,
    InvalidLogLevelError,
    InvalidSinkError,
    InvalidStyleError,
    InvalidThisContextError,
    LogFileError,
    LoggerError,
    LoggerShutdownError,
)
from .events import EventBus, LogEvent, LogListener
from .factory import LoggerBuilder, configure_logger, create_logger
from .formatting import FormatContext, FormatResolver
from .levels import LevelRegistry
from .logger import QuillLogger
from .sinks import SinkRegistry
from .styles import RichStyleApplier, StyleApplier
from .writer import BufferedFileWriter, WriterState

__all__ = [
    "BufferedFileWriter",
    "EventBus",
    "FileOptions",
    "FileTarget",
    "FormatContext",
    "FormatResolver",
    "InvalidDateFormatError",
    "InvalidLogLevelError",
    "InvalidSinkError",
    "InvalidStyleError",
    "InvalidThisContextError",
    "LevelConfig",
    "LevelRegistry",
    "LogEvent",
    "LogFileError",
    "LogListener",
    "LoggerBuilder",
    "LoggerError",
    "LoggerOptions",
    "LoggerShutdownError",
    "QuillLogger",
    "RichStyleApplier",
    "SinkRegistry",
    "StyleApplier",
    "WriterState",
    "configure_logger",
    "create_logger",
]
