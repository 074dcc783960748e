"""Exception types raised by the logger.

Every error raised by this package derives from `LoggerError`, so callers can
catch the whole family at once. Formatting and level errors are raised to the
caller of `QuillLogger.log`; file errors are normally reported through the
writer's error channel instead (see `BufferedFileWriter`).
"""

from pathlib import Path


class LoggerError(Exception):
    """Base class for all logger errors."""


class InvalidLogLevelError(LoggerError):
    """Raised when logging to a level that is not registered.

    Attributes:
        level: The level name that was requested
    """

    def __init__(self, level: str) -> None:
        self.level = level
        super().__init__(f"{level} is not a valid log level")


class InvalidDateFormatError(LoggerError):
    """Raised when a date placeholder cannot be formatted.

    Attributes:
        pattern: The date pattern that was rejected
    """

    def __init__(self, pattern: str | None) -> None:
        self.pattern = pattern
        super().__init__(f"Invalid date format: {pattern or 'unknown'}")


class InvalidStyleError(LoggerError):
    """Raised when a style chain names an unknown style.

    Attributes:
        style: The style name that could not be applied
    """

    def __init__(self, style: str) -> None:
        self.style = style
        super().__init__(f"Invalid style: {style}")


class InvalidSinkError(LoggerError):
    """Raised when a level refers to an output sink that does not exist.

    Attributes:
        sink: The sink name that could not be resolved
    """

    def __init__(self, sink: str) -> None:
        self.sink = sink
        super().__init__(f"Invalid sink: {sink}")


class LogFileError(LoggerError):
    """Raised or reported when a log file operation fails.

    The underlying `OSError` is chained as ``__cause__``.

    Attributes:
        path:       File or directory the operation targeted
        operation:  Short name of the failed operation (append, rotate, ...)
    """

    def __init__(self, path: Path, operation: str, error: OSError) -> None:
        self.path = path
        self.operation = operation
        super().__init__(f"Failed at log file: {error} ({operation} {path})")


class LoggerShutdownError(LoggerError):
    """Raised when the logger or its writer is used after shutdown."""

    def __init__(self) -> None:
        super().__init__("Logger was shut down")


class InvalidThisContextError(LoggerError, TypeError):
    """Raised when a logger method is called without a logger instance.

    This happens when the unbound function is called with something other
    than a `QuillLogger` as its first argument, e.g. ``QuillLogger.log("Info", "x")``.
    """

    def __init__(self, received: object) -> None:
        self.received = received
        super().__init__(
            "The log method was called without a QuillLogger instance "
            f"(got {type(received).__name__}). Call it on the instance, "
            "e.g. `logger.log(...)`, or bind it with `functools.partial`."
        )
