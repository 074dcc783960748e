"""Factory module for configuring and creating quill loggers.

This module provides the main interface for setting up a logger from a TOML
file and/or code, through a fluent builder. Every built logger is independent:
it owns its level table, event bus and file writer.
"""

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

from .config import FileOptions, FileTarget, LevelConfig, LoggerOptions
from .formatting import DateFormatter, format_now
from .logger import QuillLogger
from .sinks import Sink
from .styles import StyleApplier
from .writer import ErrorHandler


@dataclass
class LoggerBuilder:
    """Builder for logger configuration.

    Provides a fluent interface on top of an immutable `LoggerOptions`. Levels
    added with `with_level` replace the base table the first time one is added,
    so a TOML level table and code-defined levels are not merged by accident
    unless the builder starts from the TOML table.

    Attributes:
        _options:           Base options from TOML or defaults
        _sinks:             Output sinks to register on the logger
        _styles:            Custom style applier, if any
        _date_formatter:    Formatter for ``date`` placeholders
        _on_file_error:     Receiver of file errors, if any
        _exit_hook:         Register the logger's shutdown with atexit
        _levels:            Levels added through the builder
        _merge_levels:      Add builder levels to the base table instead of replacing it
    """

    _options: LoggerOptions
    _sinks: dict[str, Sink] = field(default_factory=dict)
    _styles: StyleApplier | None = None
    _date_formatter: DateFormatter = format_now
    _on_file_error: ErrorHandler | None = None
    _exit_hook: bool = False
    _levels: dict[str, LevelConfig] = field(default_factory=dict)
    _merge_levels: bool = False

    def with_format(self, template: str) -> "LoggerBuilder":
        """Set the template used by levels without their own format.

        Args:
            template: Template such as ``"[{{prefix}}] {{date:HH:mm:ss}} {{msg}}"``

        Returns:
            Self for method chaining
        """
        self._options = replace(self._options, format=template)
        return self

    def with_level(
            self,
            name: str,
            color: str,
            sink: str,
            prefix: str = "",
            format: str | None = None,
            files: str | Path | FileTarget | None = None,
    ) -> "LoggerBuilder":
        """Add a level.

        Args:
            name:   Level name (case-sensitive)
            color:  Style chain applied to the rendered line
            sink:   Name of the output sink
            prefix: Value of the ``{{prefix}}`` placeholder
            format: Template overriding the logger-wide template
            files:  Dedicated log directory or file target for this level

        Returns:
            Self for method chaining
        """
        if files is not None and not isinstance(files, FileTarget):
            files = FileTarget(Path(files))

        self._levels[name] = LevelConfig(
            color=color,
            sink=sink,
            prefix=prefix,
            format=format,
            files=files,
        )
        return self

    def with_base_levels(self) -> "LoggerBuilder":
        """Keep the base level table and add builder levels on top of it.

        Returns:
            Self for method chaining
        """
        self._merge_levels = True
        return self

    def with_files(self, log_directory: str | Path | None = None, **options: Any) -> "LoggerBuilder":
        """Enable buffered file output.

        If a directory is provided, it can be either relative or absolute.
        Relative paths are resolved from the current working directory when
        files are written. Other keyword arguments override `FileOptions`
        fields (``buffer_size``, ``flush_interval``, ``max_file_size``, ...).

        Args:
            log_directory:  Directory of the shared log file. If provided, it
                            overrides any directory from the configuration file.
            **options:      FileOptions fields to override

        Returns:
            Self for method chaining
        """
        files = self._options.files or FileOptions()
        if log_directory is not None:
            files = files.with_directory(Path(log_directory))
        if options:
            files = replace(files, **options)

        self._options = replace(self._options, files=files)
        return self

    def with_sink(self, name: str, sink: Sink) -> "LoggerBuilder":
        """Register an output sink, replacing a console sink of the same name.

        Returns:
            Self for method chaining
        """
        self._sinks[name] = sink
        return self

    def with_styles(self, styles: StyleApplier) -> "LoggerBuilder":
        """Use a custom style applier.

        Returns:
            Self for method chaining
        """
        self._styles = styles
        return self

    def with_colors(self, enabled: bool = True) -> "LoggerBuilder":
        """Enable or disable ANSI styling of console output.

        Returns:
            Self for method chaining
        """
        self._options = replace(self._options, colors=enabled)
        return self

    def with_debug(self, enabled: bool = True) -> "LoggerBuilder":
        """Report every resolved placeholder at debug level.

        Returns:
            Self for method chaining
        """
        self._options = replace(self._options, debug=enabled)
        return self

    def with_date_formatter(self, date_formatter: DateFormatter) -> "LoggerBuilder":
        """Use a custom formatter for ``date`` placeholders.

        Returns:
            Self for method chaining
        """
        self._date_formatter = date_formatter
        return self

    def with_file_error_handler(self, on_error: ErrorHandler) -> "LoggerBuilder":
        """Receive file errors instead of having them logged.

        Returns:
            Self for method chaining
        """
        self._on_file_error = on_error
        return self

    def with_exit_hook(self) -> "LoggerBuilder":
        """Shut the built logger down when the interpreter exits.

        Returns:
            Self for method chaining
        """
        self._exit_hook = True
        return self

    def build(self, start_timers: bool = True) -> QuillLogger:
        """Build the logger.

        The build process:
        1. Combines the base options with the levels added through the builder
        2. Validates the resulting options
        3. Creates the logger, and its file writer if file output is enabled
        4. Registers the exit hook if requested

        Args:
            start_timers: Start the file writer's periodic timers

        Returns:
            Configured QuillLogger instance
        """
        options = self._options
        if self._levels:
            levels = {**options.levels, **self._levels} if self._merge_levels else self._levels
            options = replace(options, levels=levels)

        quill = QuillLogger(
            options,
            sinks=self._sinks,
            styles=self._styles,
            date_formatter=self._date_formatter,
            on_file_error=self._on_file_error,
            start_timers=start_timers,
        )
        if self._exit_hook:
            quill.register_exit_hook()
        return quill


def configure_logger(config_path: str | Path | None = None) -> LoggerBuilder:
    """Start configuring a logger.

    If no configuration path is provided, the builder starts from the default
    options. The returned builder allows further customization before the
    logger is built.

    Args:
        config_path: Optional path to a TOML config file

    Returns:
        LoggerBuilder instance for method chaining
    """
    options = (
        LoggerOptions.from_toml(Path(config_path))
        if config_path is not None
        else LoggerOptions()
    )
    builder = LoggerBuilder(options)
    if config_path is not None:
        builder.with_base_levels()
    return builder


def create_logger(options: LoggerOptions | None = None, **kwargs: Any) -> QuillLogger:
    """Create a logger directly from options.

    Args:
        options:    Logger options; defaults are used if None
        **kwargs:   Forwarded to `QuillLogger` (sinks, styles, ...)

    Returns:
        QuillLogger instance
    """
    return QuillLogger(options, **kwargs)
