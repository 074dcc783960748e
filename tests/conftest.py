"""Shared fixtures for the quill_log test suite."""

from pathlib import Path

import pytest

from quill_log import FileOptions, LevelConfig, LoggerOptions, QuillLogger, RichStyleApplier

FIXED_DATES = {
    "HH:mm:ss": "12:34:56",
    "YYYY-MM-DD": "2026-10-19",
}
FIXED_ISO_DATE = "2026-10-19T12:34:56+00:00"


def fixed_date(pattern: str) -> str:
    """Date formatter returning a constant time for known patterns."""
    return FIXED_DATES.get(pattern, FIXED_ISO_DATE)


class RecordingSink:
    """Sink collecting every line it receives."""

    def __init__(self) -> None:
        self.lines: list[str] = []

    def __call__(self, line: str) -> None:
        self.lines.append(line)


class RecordingListener:
    """Listener collecting the positional arguments of every call."""

    def __init__(self) -> None:
        self.calls: list[tuple] = []

    def __call__(self, *args) -> None:
        self.calls.append(args)


@pytest.fixture
def plain_styles() -> RichStyleApplier:
    return RichStyleApplier(colors=False)


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def levels() -> dict[str, LevelConfig]:
    return {
        "Info": LevelConfig(color="white", sink="log", prefix="INFO"),
        "Error": LevelConfig(color="red.bold", sink="error", prefix="ERROR"),
    }


@pytest.fixture
def make_logger(sink: RecordingSink, levels: dict[str, LevelConfig]):
    """Factory building loggers with recording sinks and a fixed clock."""
    created: list[QuillLogger] = []

    def factory(
            log_directory: Path | None = None,
            colors: bool = False,
            **overrides,
    ) -> QuillLogger:
        files = FileOptions(log_directory=log_directory) if log_directory else None
        options = LoggerOptions(
            format=overrides.pop("format", "[{{prefix}}] {{msg}}"),
            colors=colors,
            levels=overrides.pop("levels", levels),
            files=overrides.pop("files", files),
        )
        quill = QuillLogger(
            options,
            sinks={"log": sink, "error": sink},
            date_formatter=fixed_date,
            start_timers=False,
            **overrides,
        )
        created.append(quill)
        return quill

    yield factory

    for quill in created:
        quill.shutdown()
