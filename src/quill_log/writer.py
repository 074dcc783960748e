"""Buffered, rotating log file output.

This module provides the writer behind file logging. Lines are collected in
memory per output stream and appended to disk in batches, either when a
stream's buffer fills up or on a periodic flush. The same cadence drives a
size-based rotation check, and a slower timer deletes files past their
retention age.

Threading model:
    - `write` runs on the caller's thread and never touches the disk
    - every disk operation (append, rotation, sweep) runs on one I/O worker
      thread, so they are applied in submission order and never interleave
    - each stream's buffer and current path are guarded by the stream's lock
    - daemon timer threads only submit work to the I/O worker

Failures while appending, rotating or sweeping are reported through the error
channel (an ``on_error`` callback, or a structlog error event) and never stop
the writer. Lines whose append failed are put back into the buffer for the next
flush. Only a directory that cannot be created at construction is fatal.
"""

import enum
import gzip
import json
import re
import shutil
import stat
import threading
import time
from collections.abc import Callable, Iterable, Mapping
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Final

import structlog

from .config import SECONDS_PER_DAY, FileOptions, FileTarget
from .errors import InvalidLogLevelError, LogFileError, LoggerShutdownError
from .formatting import DateFormatter, FormatContext, FormatResolver, format_now
from .styles import RichStyleApplier

ANSI_ESCAPE: Final = re.compile(r"\x1b\[[0-?]*[ -/]*[@-~]")

ErrorHandler = Callable[[LogFileError], None]

logger = structlog.get_logger(__name__)


def strip_ansi(text: str) -> str:
    """Remove ANSI control sequences (colors, bold, underline, ...)."""
    return ANSI_ESCAPE.sub("", text)


class WriterState(enum.Enum):
    """Lifecycle of a writer. Shutdown is terminal."""

    ACTIVE = "active"
    SHUTTING_DOWN = "shutting_down"
    SHUTDOWN = "shutdown"


class RepeatingTimer(threading.Thread):
    """Daemon thread calling `function` every `interval` seconds until cancelled."""

    def __init__(self, interval: float, function: Callable[[], Any], name: str) -> None:
        super().__init__(name=name, daemon=True)
        self.interval = interval
        self.function = function
        self._cancelled = threading.Event()

    def run(self) -> None:
        while not self._cancelled.wait(self.interval):
            self.function()

    def cancel(self) -> None:
        self._cancelled.set()


@dataclass(slots=True, eq=False)
class OutputStream:
    """Buffer and current file of one file target.

    Attributes:
        name:           Level the file name template is resolved for (the
                        first level routed to this target)
        target:         Directory and file name template
        current_path:   File that flushed lines are appended to
        buffer:         Lines waiting to be flushed, oldest first
        lock:           Guards `buffer` and `current_path`
    """

    name: str
    target: FileTarget
    current_path: Path
    buffer: list[str] = field(default_factory=list)
    lock: threading.Lock = field(default_factory=threading.Lock)

    def drain(self) -> list[str]:
        """Take every buffered line, leaving the buffer empty."""
        with self.lock:
            lines, self.buffer = self.buffer, []
        return lines

    def restore(self, lines: list[str]) -> None:
        """Put lines back at the head of the buffer."""
        with self.lock:
            self.buffer[:0] = lines


class BufferedFileWriter:
    """Writes log lines to rotating files through in-memory buffers.

    One stream is kept per distinct file target: levels sharing the global
    target share a stream, and levels with their own target get their own.

    Args:
        routes:         Level name to the file target its lines go to
        options:        Buffering, rotation and retention settings
        date_formatter: Formats the ``date`` placeholders of file name templates
        on_error:       Receives file errors; defaults to a structlog error event
        start_timers:   Start the periodic flush, rotation and cleanup timers

    Raises:
        LogFileError: If a log directory cannot be created
    """

    def __init__(
            self,
            routes: Mapping[str, FileTarget],
            options: FileOptions | None = None,
            date_formatter: DateFormatter = format_now,
            on_error: ErrorHandler | None = None,
            start_timers: bool = True,
    ) -> None:
        self.options = options or FileOptions()
        self.on_error = on_error
        self._resolver = FormatResolver(RichStyleApplier(colors=False), date_formatter)

        self._streams: dict[FileTarget, OutputStream] = {}
        self._routes: dict[str, OutputStream] = {}
        for level, target in routes.items():
            if (stream := self._streams.get(target)) is None:
                stream = self._open_stream(level, target)
                self._streams[target] = stream
            self._routes[level] = stream

        self._state = WriterState.ACTIVE
        self._state_lock = threading.Lock()
        self._io = ThreadPoolExecutor(max_workers=1, thread_name_prefix="quill-log-io")
        self._timers: list[RepeatingTimer] = []
        if start_timers:
            self._start_timers()

    @property
    def state(self) -> WriterState:
        return self._state

    @property
    def levels(self) -> tuple[str, ...]:
        """Levels routed to a file."""
        return tuple(self._routes)

    @property
    def streams(self) -> tuple[OutputStream, ...]:
        return tuple(self._streams.values())

    def current_path(self, level: str) -> Path:
        stream = self._stream_for(level)
        with stream.lock:
            return stream.current_path

    def pending(self, level: str) -> tuple[str, ...]:
        """Lines of `level`'s stream that have not been flushed yet."""
        stream = self._stream_for(level)
        with stream.lock:
            return tuple(stream.buffer)

    def write(self, level: str, line: str, *params: Any) -> None:
        """Buffer a line for `level`.

        ANSI sequences are stripped and extra parameters are appended as JSON.
        When the stream's buffer reaches ``buffer_size`` it is drained at once
        and the append is handed to the I/O worker without waiting for it.
        Levels that are not routed to a file are ignored.

        Args:
            level:  Level name
            line:   Rendered log line
            params: Extra values appended to the line

        Raises:
            LoggerShutdownError: If the writer has been shut down
        """
        self._ensure_active()
        stream = self._routes.get(level)
        if stream is None:
            return

        text = strip_ansi(line)
        if params:
            text = " ".join([text, "\n".join(json.dumps(p, default=str, ensure_ascii=False) for p in params)])

        with stream.lock:
            stream.buffer.append(text)
            if len(stream.buffer) < self.options.buffer_size:
                return
            lines, stream.buffer = stream.buffer, []

        self._submit_append(stream, lines)

    def flush(self, level: str | None = None, wait: bool = True) -> None:
        """Append buffered lines to disk.

        Args:
            level:  Only flush the stream of this level; all streams if None
            wait:   Block until this and every earlier disk operation is done

        Raises:
            InvalidLogLevelError:   If `level` is not routed to a file
            LoggerShutdownError:    If the writer has been shut down
        """
        self._ensure_active()
        for stream in self._select(level):
            if (lines := stream.drain()) and not self._submit_append(stream, lines):
                raise LoggerShutdownError

        if wait:
            self._submit(lambda: None).result()

    def rotate(self, level: str | None = None) -> list[Path]:
        """Run a rotation check now and wait for it.

        Args:
            level: Only check the stream of this level; all streams if None

        Returns:
            Paths of the archived files

        Raises:
            InvalidLogLevelError:   If `level` is not routed to a file
            LoggerShutdownError:    If the writer has been shut down
        """
        self._ensure_active()
        return self._submit(self._rotate_streams, self._select(level)).result()

    def sweep(self) -> list[Path]:
        """Delete expired log files now and wait for it.

        Returns:
            Paths of the deleted files

        Raises:
            LoggerShutdownError: If the writer has been shut down
        """
        self._ensure_active()
        return self._submit(self._sweep).result()

    def shutdown(self) -> None:
        """Stop the timers and the I/O worker, then drain every buffer.

        Appends already handed to the worker complete first. The remaining
        lines are appended on the calling thread, so this also works from an
        exit hook, after the interpreter has stopped accepting new futures.
        Calling it again has no effect.
        """
        with self._state_lock:
            if self._state is not WriterState.ACTIVE:
                return
            self._state = WriterState.SHUTTING_DOWN

        for timer in self._timers:
            timer.cancel()
        for timer in self._timers:
            timer.join()
        self._timers.clear()

        self._io.shutdown(wait=True)
        for stream in self._streams.values():
            if lines := stream.drain():
                self._append(stream, lines)

        with self._state_lock:
            self._state = WriterState.SHUTDOWN
        logger.debug("File writer shut down", streams=len(self._streams))

    def _open_stream(self, level: str, target: FileTarget) -> OutputStream:
        directory = target.log_directory
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise LogFileError(directory, "mkdir", e) from e

        return OutputStream(name=level, target=target, current_path=self._new_path(level, target))

    def _new_path(self, level: str, target: FileTarget) -> Path:
        name = self._resolver.resolve(target.name, FormatContext(level=level))
        return target.log_directory / name

    def _start_timers(self) -> None:
        self._timers = [
            RepeatingTimer(self.options.flush_interval, self._on_flush_tick, "quill-log-flush"),
            RepeatingTimer(self.options.flush_interval, self._on_rotate_tick, "quill-log-rotate"),
            RepeatingTimer(self.options.cleanup_interval, self._on_cleanup_tick, "quill-log-cleanup"),
        ]
        for timer in self._timers:
            timer.start()

    def _on_flush_tick(self) -> None:
        for stream in self._streams.values():
            if (lines := stream.drain()) and not self._submit_append(stream, lines):
                return

    def _on_rotate_tick(self) -> None:
        try:
            self._io.submit(self._rotate_streams, list(self._streams.values()))
        except RuntimeError:
            logger.debug("Skipped rotation check, I/O worker stopped")

    def _on_cleanup_tick(self) -> None:
        try:
            self._io.submit(self._sweep)
        except RuntimeError:
            logger.debug("Skipped retention sweep, I/O worker stopped")

    def _submit_append(self, stream: OutputStream, lines: list[str]) -> bool:
        """Hand drained lines to the I/O worker.

        Returns:
            False if the worker no longer accepts work; the lines are back in
            the buffer for `shutdown` to append
        """
        try:
            self._io.submit(self._append, stream, lines)
        except RuntimeError:
            stream.restore(lines)
            return False
        return True

    def _append(self, stream: OutputStream, lines: list[str]) -> None:
        with stream.lock:
            path = stream.current_path

        try:
            with path.open("a", encoding=self.options.encoding) as f:
                f.write("\n".join(lines) + "\n")
        except OSError as e:
            stream.restore(lines)
            self._report(path, "append", e)

    def _rotate_streams(self, streams: Iterable[OutputStream]) -> list[Path]:
        archived = []
        for stream in streams:
            if (archive := self._rotate(stream)) is not None:
                archived.append(archive)
        return archived

    def _rotate(self, stream: OutputStream) -> Path | None:
        with stream.lock:
            path = stream.current_path

        try:
            size = path.stat().st_size
        except FileNotFoundError:
            return None
        except OSError as e:
            self._report(path, "stat", e)
            return None

        if size < self.options.max_file_size:
            return None

        try:
            archive = self._archive(path)
        except OSError as e:
            self._report(path, "rotate", e)
            return None

        with stream.lock:
            stream.current_path = self._new_path(stream.name, stream.target)
        logger.info("Rotated log file", path=str(path), archive=str(archive), size=size)
        return archive

    def _archive(self, path: Path) -> Path:
        """Move `path` aside under a suffix one above the highest archived one."""
        archived = re.compile(rf"{re.escape(path.name)}\.(\d+)(?:\.gz)?")
        index = 1 + max(
            (int(match.group(1)) for sibling in path.parent.iterdir()
             if (match := archived.fullmatch(sibling.name))),
            default=0,
        )
        renamed = path.with_name(f"{path.name}.{index}")
        compressed = path.with_name(f"{path.name}.{index}.gz")

        if not self.options.compress:
            path.rename(renamed)
            return renamed

        with path.open("rb") as src, gzip.open(compressed, "wb") as dst:
            shutil.copyfileobj(src, dst)
        path.unlink()
        return compressed

    def _sweep(self) -> list[Path]:
        cutoff = time.time() - self.options.retention_days * SECONDS_PER_DAY
        directories = sorted({stream.target.log_directory for stream in self._streams.values()})

        deleted = []
        for directory in directories:
            try:
                entries = sorted(directory.iterdir())
            except OSError as e:
                self._report(directory, "scan", e)
                continue

            for path in entries:
                try:
                    info = path.stat()
                    if not stat.S_ISREG(info.st_mode) or info.st_mtime >= cutoff:
                        continue
                    path.unlink()
                except FileNotFoundError:
                    continue
                except OSError as e:
                    self._report(path, "delete", e)
                    continue
                deleted.append(path)

        if deleted:
            logger.info("Deleted expired log files", count=len(deleted))
        return deleted

    def _report(self, path: Path, operation: str, error: OSError) -> None:
        file_error = LogFileError(path, operation, error)
        file_error.__cause__ = error

        if self.on_error is not None:
            try:
                self.on_error(file_error)
                return
            except Exception:
                logger.exception("Log file error handler failed", handler=repr(self.on_error))
        logger.error(
            "Log file operation failed",
            path=str(path),
            operation=operation,
            exc_info=file_error,
        )

    def _submit(self, function: Callable[..., Any], *args: Any) -> Future:
        try:
            return self._io.submit(function, *args)
        except RuntimeError as e:
            # The worker was stopped by a concurrent shutdown
            raise LoggerShutdownError from e

    def _select(self, level: str | None) -> list[OutputStream]:
        if level is None:
            return list(self._streams.values())
        return [self._stream_for(level)]

    def _stream_for(self, level: str) -> OutputStream:
        try:
            return self._routes[level]
        except KeyError:
            raise InvalidLogLevelError(level) from None

    def _ensure_active(self) -> None:
        if self._state is not WriterState.ACTIVE:
            raise LoggerShutdownError
