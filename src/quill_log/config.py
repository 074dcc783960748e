"""Configuration handling for the quill logger.

This module provides the configuration classes and TOML parsing for the logger.
It defines the schema and validation rules for levels, the console template and
the optional buffered file output.
"""

import os
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path
from types import MappingProxyType
from typing import Any, Final

import tomllib

from .formatting import DEFAULT_FORMAT

DEFAULT_FILE_NAME: Final = "{{date:YYYY-MM-DD}}.log"
DEFAULT_MAX_FILE_SIZE: Final = 5 * 1024 * 1024  # 5MiB
SECONDS_PER_DAY: Final = 24 * 60 * 60


@dataclass(frozen=True, slots=True)
class FileTarget:
    """Where a stream of log lines is written.

    Attributes:
        log_directory:  Directory holding the log files
        name:           File name template, resolved against the current time
    """

    log_directory: Path
    name: str = DEFAULT_FILE_NAME

    def __post_init__(self) -> None:
        """Validate configuration values after initialization.

        Raises:
            ValueError: If the file name template is empty
        """
        object.__setattr__(self, "log_directory", Path(self.log_directory))
        if not self.name:
            msg = "File name template cannot be empty"
            raise ValueError(msg)


@dataclass(frozen=True, slots=True)
class FileOptions:
    """Configuration for the buffered file writer.

    Attributes:
        log_directory:      Directory of the shared log file; None disables the
                            shared stream (only per-level targets are written)
        log_name:           File name template of the shared log file
        buffer_size:        Number of lines buffered before an immediate flush
        flush_interval:     Seconds between periodic flushes and rotation checks
        max_file_size:      Size in bytes at which the current file is rotated
        retention_days:     Age in days after which log files are deleted
        compress:           Gzip rotated files instead of renaming them
        cleanup_interval:   Seconds between retention sweeps (default: one day)
        encoding:           Character encoding of the log files
    """

    log_directory: Path | None = None
    log_name: str | None = None
    buffer_size: int = 100
    flush_interval: float = 5.0
    max_file_size: int = DEFAULT_MAX_FILE_SIZE
    retention_days: float = 7
    compress: bool = False
    cleanup_interval: float = SECONDS_PER_DAY
    encoding: str = "utf-8"

    def __post_init__(self) -> None:
        """Validate configuration values after initialization.

        Raises:
            ValueError: If a size, interval or age is not positive
        """
        if self.log_directory is not None:
            object.__setattr__(self, "log_directory", Path(self.log_directory))

        if self.buffer_size <= 0:
            msg = "buffer_size must be a positive integer (lines)"
            raise ValueError(msg)

        if self.flush_interval <= 0 or self.cleanup_interval <= 0:
            msg = "flush_interval and cleanup_interval must be positive (seconds)"
            raise ValueError(msg)

        if self.max_file_size <= 0:
            msg = "max_file_size must be a positive integer (bytes)"
            raise ValueError(msg)

        if self.retention_days <= 0:
            msg = "retention_days must be positive (days)"
            raise ValueError(msg)

    @property
    def target(self) -> FileTarget | None:
        """The shared file target, or None when no shared directory is set."""
        if self.log_directory is None:
            return None
        return FileTarget(self.log_directory, self.log_name or DEFAULT_FILE_NAME)

    def with_directory(self, log_directory: Path) -> "FileOptions":
        """Create a new instance writing the shared stream to `log_directory`.

        Args:
            log_directory: New log directory

        Returns:
            New FileOptions instance with the updated directory
        """
        self._validate_directory(Path(log_directory))
        return replace(self, log_directory=Path(log_directory))

    @staticmethod
    def _validate_directory(path: Path) -> None:
        """Validate a log directory.

        Args:
            path: Directory to validate

        Raises:
            ValueError: If the directory exists but is not writable
        """
        resolved_path = Path.cwd() / path if not path.is_absolute() else path
        if not resolved_path.exists() or os.access(resolved_path, os.W_OK):
            return
        msg = f"Log directory is not writable: {resolved_path}"
        raise ValueError(msg)


@dataclass(frozen=True, slots=True)
class LevelConfig:
    """Display and routing settings of a single log level.

    Attributes:
        color:  Style chain applied to the rendered line (e.g. "red.bold")
        sink:   Name of the output sink receiving the styled line
        prefix: Literal value of the ``{{prefix}}`` placeholder
        format: Template overriding the logger-wide template
        files:  Dedicated file target; takes precedence over the shared one
    """

    color: str
    sink: str
    prefix: str = ""
    format: str | None = None
    files: FileTarget | None = None

    def __post_init__(self) -> None:
        """Validate configuration values after initialization.

        Raises:
            ValueError: If the sink name is empty
        """
        if not self.sink:
            msg = "sink cannot be empty"
            raise ValueError(msg)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "LevelConfig":
        """Create a LevelConfig from a plain mapping (e.g. a TOML table).

        Args:
            data: Mapping with ``color``, ``sink`` and optional keys

        Returns:
            Configured LevelConfig instance

        Raises:
            KeyError: If ``color`` or ``sink`` is missing
        """
        files = data.get("files")
        return cls(
            color=data["color"],
            sink=data["sink"],
            prefix=data.get("prefix", ""),
            format=data.get("format"),
            files=FileTarget(
                log_directory=Path(files["log_directory"]),
                name=files.get("name", DEFAULT_FILE_NAME),
            ) if files else None,
        )


DEFAULT_LEVELS: Final[Mapping[str, LevelConfig]] = MappingProxyType({
    "Info": LevelConfig(color="white", sink="info", prefix="INFO"),
})


@dataclass(frozen=True, slots=True)
class LoggerOptions:
    """Complete logger configuration.

    Attributes:
        format: Template used by levels without their own ``format``
        debug:  Report every resolved placeholder at debug level
        colors: Emit ANSI styles on console output
        levels: Level table, keyed by case-sensitive level name
        files:  Buffered file output settings; None disables file output
                unless a level declares its own target
    """

    format: str = DEFAULT_FORMAT
    debug: bool = False
    colors: bool = True
    levels: Mapping[str, LevelConfig] = field(default_factory=lambda: DEFAULT_LEVELS)
    files: FileOptions | None = None

    def __post_init__(self) -> None:
        """Validate configuration values after initialization.

        Raises:
            ValueError: If the level table is empty or holds invalid entries
        """
        if not self.levels:
            msg = "At least one log level must be configured"
            raise ValueError(msg)

        for name, level in self.levels.items():
            if not name or not isinstance(name, str):
                msg = f"Invalid level name: {name!r}"
                raise ValueError(msg)
            if not isinstance(level, LevelConfig):
                msg = f"Level {name!r} must be a LevelConfig, got {type(level).__name__}"
                raise ValueError(msg)

        object.__setattr__(self, "levels", MappingProxyType(dict(self.levels)))

    @property
    def file_output_enabled(self) -> bool:
        """Whether any level is routed to a file."""
        if self.files is not None and self.files.log_directory is not None:
            return True
        return any(level.files is not None for level in self.levels.values())

    @classmethod
    def from_toml(cls, config_path: Path) -> "LoggerOptions":
        """Create a LoggerOptions instance from a TOML configuration file.

        Args:
            config_path: Path to the TOML configuration file

        Returns:
            Configured LoggerOptions instance

        Raises:
            ValueError: If required configuration keys are missing or if values are invalid
        """
        try:
            config_data = cls._load_toml(config_path)
            return cls._parse_config(config_data)

        except KeyError as e:
            msg = f"Missing required configuration key: {e.args[0]}"
            raise ValueError(msg) from e

        except (TypeError, ValueError) as e:
            msg = f"Invalid value in configuration file: {e!s}"
            raise ValueError(msg) from e

    @classmethod
    def _load_toml(cls, config_path: Path) -> dict:
        """Load and parse the TOML configuration file.

        Args:
            config_path: Path to the TOML configuration file

        Returns:
            Parsed configuration dictionary

        Raises:
            FileNotFoundError:  If the configuration file doesn't exist
            ValueError:         If the TOML file is malformed
        """
        try:
            with config_path.open("rb") as f:
                return tomllib.load(f)

        except FileNotFoundError as e:
            msg = f"Configuration file not found: {config_path}"
            raise FileNotFoundError(msg) from e

        except tomllib.TOMLDecodeError as e:
            msg = f"Failed to parse TOML file {config_path}: {e}"
            raise ValueError(msg) from e

    @classmethod
    def _parse_config(cls, config_data: dict) -> "LoggerOptions":
        """Parse the configuration dictionary into a LoggerOptions instance.

        Args:
            config_data: Dictionary containing the configuration data

        Returns:
            Configured LoggerOptions instance
        """
        logger_config = config_data["logger"]
        levels = logger_config.get("levels")

        return cls(
            format=logger_config.get("format", DEFAULT_FORMAT),
            debug=bool(logger_config.get("debug", False)),
            colors=bool(logger_config.get("colors", True)),
            levels=cls._create_levels(levels) if levels else DEFAULT_LEVELS,
            files=cls._create_file_options(logger_config.get("files")),
        )

    @staticmethod
    def _create_levels(levels_config: dict) -> dict[str, LevelConfig]:
        """Create the level table from the configuration dictionary.

        Args:
            levels_config: Dictionary of level name to level table

        Returns:
            Level table in the order the levels appear in the TOML
        """
        return {
            name: LevelConfig.from_mapping(level)
            for name, level in levels_config.items()
        }

    @staticmethod
    def _create_file_options(file_config: dict | None) -> FileOptions | None:
        """Create FileOptions from the configuration dictionary.

        Args:
            file_config: Dictionary containing file output configuration

        Returns:
            Configured FileOptions instance, or None if no file table is present
        """
        if file_config is None:
            return None

        defaults = FileOptions()
        log_directory = file_config.get("log_directory")
        return FileOptions(
            log_directory=Path(log_directory) if log_directory else None,
            log_name=file_config.get("log_name"),
            buffer_size=int(file_config.get("buffer_size", defaults.buffer_size)),
            flush_interval=float(file_config.get("flush_interval", defaults.flush_interval)),
            max_file_size=int(file_config.get("max_file_size", defaults.max_file_size)),
            retention_days=float(file_config.get("retention_days", defaults.retention_days)),
            compress=bool(file_config.get("compress", defaults.compress)),
            cleanup_interval=float(file_config.get("cleanup_interval", defaults.cleanup_interval)),
            encoding=file_config.get("encoding", defaults.encoding),
        )
