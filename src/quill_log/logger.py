"""The logger orchestrating levels, templates, sinks, events and file output."""

import atexit
import threading
import time
from collections.abc import Mapping
from typing import Any

import structlog

from .config import LoggerOptions
from .errors import InvalidThisContextError, LoggerShutdownError
from .events import EventBus, LogEvent, LogListener
from .formatting import DateFormatter, FormatContext, FormatResolver, format_now, interpolate
from .levels import LevelRegistry
from .sinks import Sink, SinkRegistry
from .styles import RichStyleApplier, StyleApplier, apply_chain
from .writer import BufferedFileWriter, ErrorHandler

logger = structlog.get_logger(__name__)


class QuillLogger:
    """Multi-level logger with templated console output and buffered file output.

    Example:
        ```python
        quill = QuillLogger(LoggerOptions(
            format="[{{level.gray}}] {{date.gray:HH:mm:ss}} {{msg}}",
            levels={
                "Log": LevelConfig(color="white", sink="log", prefix="INFO"),
                "Error": LevelConfig(
                    color="red",
                    sink="error",
                    prefix="ERROR",
                    format="{{prefix.bold}} {{date:HH:mm:ss}}: {{msg}}",
                ),
            },
        ))

        quill.log("Log", "hello %s!", "world")  # [Log] 00:00:00 hello world!
        quill.log("Debug", "debugging")         # InvalidLogLevelError
        ```

    Args:
        options:            Levels, templates and file output settings
        sinks:              Extra or replacement output sinks by name
        styles:             Style applier; defaults to rich, honoring ``options.colors``
        date_formatter:     Formats ``date`` placeholders (moment-style patterns)
        on_file_error:      Receives file errors of the writer
        start_timers:       Start the writer's periodic flush, rotation and cleanup
    """

    def __init__(
            self,
            options: LoggerOptions | None = None,
            sinks: Mapping[str, Sink] | None = None,
            styles: StyleApplier | None = None,
            date_formatter: DateFormatter = format_now,
            on_file_error: ErrorHandler | None = None,
            start_timers: bool = True,
    ) -> None:
        self.options = options or LoggerOptions()
        self.levels = LevelRegistry(self.options.levels, self.options.format)
        self.sinks = SinkRegistry(sinks)
        self.styles = styles or RichStyleApplier(colors=self.options.colors)
        self.resolver = FormatResolver(self.styles, date_formatter, debug=self.options.debug)
        self.events = EventBus()

        self._closed = False
        self._close_lock = threading.Lock()
        self._exit_hook_registered = False
        self._file_subscriptions: list[tuple[str, LogListener]] = []
        self.file_writer: BufferedFileWriter | None = None

        if self.options.file_output_enabled:
            routes = self.levels.file_routes(self.options.files)
            self.file_writer = BufferedFileWriter(
                routes,
                self.options.files,
                date_formatter=date_formatter,
                on_error=on_file_error,
                start_timers=start_timers,
            )
            for level in routes:
                listener = self.events.subscribe(level, self._forward_to_file)
                self._file_subscriptions.append((level, listener))

    @property
    def closed(self) -> bool:
        return self._closed

    def log(self, level: str, message: Any = "", *optional_params: Any) -> None:
        """Log a message at `level`.

        The message is interpolated with `optional_params` (``%s``, ``%d``,
        ``%j``...), rendered with the level's template, styled with the
        level's color and passed to the level's sink. A `LogEvent` is then
        published to the level's listeners.

        Args:
            level:              Registered level name (case-sensitive)
            message:            Message or printf-style template
            optional_params:    Values for the message's tokens

        Raises:
            InvalidThisContextError:    If called without a logger instance
            LoggerShutdownError:        If the logger has been shut down
            InvalidLogLevelError:       If `level` is not registered
            InvalidSinkError:           If the level's sink does not exist
            InvalidStyleError:          If a template or color names an unknown style
            InvalidDateFormatError:     If a date placeholder cannot be formatted
        """
        if not isinstance(self, QuillLogger):
            raise InvalidThisContextError(self)
        if self._closed:
            raise LoggerShutdownError

        config = self.levels.require(level)
        sink = self.sinks.resolve(config.sink)

        context = FormatContext(
            level=level,
            message=interpolate(message, optional_params),
            prefix=config.prefix,
        )
        formatted_message = self.resolver.resolve(self.levels.template_for(level), context)
        sink(apply_chain(self.styles, formatted_message, config.color))

        event = LogEvent(level, message, optional_params, time.time(), formatted_message)
        self.events.publish(level, event)

    def on(self, level: str, listener: LogListener) -> LogListener:
        """Call `listener` for every message logged at `level`.

        Returns:
            The listener, usable as a handle for `off`
        """
        return self.events.subscribe(level, listener)

    def once(self, level: str, listener: LogListener) -> LogListener:
        """Call `listener` for the next message logged at `level` only.

        Returns:
            The listener, usable as a handle for `off`
        """
        return self.events.subscribe_once(level, listener)

    def off(self, level: str, listener: LogListener) -> None:
        """Stop calling `listener` for messages logged at `level`."""
        self.events.unsubscribe(level, listener)

    def register_exit_hook(self) -> None:
        """Shut the logger down when the interpreter exits."""
        if not self._exit_hook_registered:
            atexit.register(self.shutdown)
            self._exit_hook_registered = True

    def shutdown(self) -> None:
        """Flush and close file output; further `log` calls raise.

        Listeners forwarding to the file writer are removed before the
        writer is shut down. Calling it again has no effect.
        """
        with self._close_lock:
            if self._closed:
                return
            self._closed = True

        for level, listener in self._file_subscriptions:
            self.events.unsubscribe(level, listener)
        self._file_subscriptions.clear()

        if self.file_writer is not None:
            self.file_writer.shutdown()

        if self._exit_hook_registered:
            atexit.unregister(self.shutdown)
            self._exit_hook_registered = False
        logger.debug("Logger shut down")

    def _forward_to_file(
            self,
            level: str,
            _message: Any,
            _optional_params: tuple[Any, ...],
            _timestamp: float,
            formatted_message: str,
    ) -> None:
        if self.file_writer is not None:
            self.file_writer.write(level, formatted_message)
