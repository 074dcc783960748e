"""Named output sinks for rendered log lines.

A level names the sink its styled lines go to (``sink = "error"``). Sinks are
plain callables taking the final string; the default registry maps the usual
console method names to stdout and stderr.
"""

import sys
from collections.abc import Callable, Iterator, Mapping
from typing import Final, TextIO

import colorama

from .errors import InvalidSinkError

Sink = Callable[[str], None]

STDOUT_SINKS: Final = ("log", "info", "debug")
STDERR_SINKS: Final = ("warn", "warning", "error", "trace")


def create_stream_sink(stream: Callable[[], TextIO]) -> Sink:
    """Create a sink printing lines to a text stream.

    The stream is looked up on every call, so replacing ``sys.stdout`` (as
    test harnesses do) is honored.

    Args:
        stream: Callable returning the stream to print to

    Returns:
        Sink writing one line per call
    """

    def sink(line: str) -> None:
        print(line, file=stream(), flush=True)

    return sink


def create_console_sinks() -> dict[str, Sink]:
    """Create the default console sinks.

    ``log``, ``info`` and ``debug`` print to stdout; ``warn``, ``warning``,
    ``error`` and ``trace`` print to stderr. ANSI sequences are made to work
    on Windows consoles through colorama.

    Returns:
        Dictionary of sink name to sink
    """
    colorama.just_fix_windows_console()

    stdout_sink = create_stream_sink(lambda: sys.stdout)
    stderr_sink = create_stream_sink(lambda: sys.stderr)
    return {
        **dict.fromkeys(STDOUT_SINKS, stdout_sink),
        **dict.fromkeys(STDERR_SINKS, stderr_sink),
    }


class SinkRegistry(Mapping[str, Sink]):
    """Resolves sink names to output callables.

    Args:
        sinks:          Sinks to register; they override defaults of the same name
        include_console: Start from the default console sinks
    """

    def __init__(self, sinks: Mapping[str, Sink] | None = None, include_console: bool = True) -> None:
        self._sinks: dict[str, Sink] = create_console_sinks() if include_console else {}
        self._sinks.update(sinks or {})

    def __getitem__(self, name: str) -> Sink:
        return self._sinks[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._sinks)

    def __len__(self) -> int:
        return len(self._sinks)

    def resolve(self, name: str) -> Sink:
        """Get the sink registered under `name`.

        Raises:
            InvalidSinkError: If no sink has that name
        """
        try:
            return self._sinks[name]
        except KeyError:
            raise InvalidSinkError(name) from None
