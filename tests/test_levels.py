"""Tests for the level registry."""

from pathlib import Path

import pytest

from quill_log import FileOptions, FileTarget, InvalidLogLevelError, LevelConfig, LevelRegistry


@pytest.fixture
def registry(levels: dict[str, LevelConfig]) -> LevelRegistry:
    return LevelRegistry(levels, "{{msg}}")


def test_registered_level_is_returned(registry: LevelRegistry, levels: dict[str, LevelConfig]) -> None:
    assert registry.require("Info") is levels["Info"]
    assert registry.get("Info") is levels["Info"]


def test_unknown_level_raises(registry: LevelRegistry) -> None:
    with pytest.raises(InvalidLogLevelError, match="Debug is not a valid log level") as exc_info:
        registry.require("Debug")

    assert exc_info.value.level == "Debug"
    assert registry.get("Debug") is None


def test_level_names_are_case_sensitive(registry: LevelRegistry) -> None:
    assert "Info" in registry
    assert "info" not in registry


def test_registration_order_is_kept(registry: LevelRegistry) -> None:
    assert list(registry) == ["Info", "Error"]
    assert len(registry) == 2


def test_template_falls_back_to_default() -> None:
    registry = LevelRegistry(
        {
            "Info": LevelConfig(color="white", sink="log"),
            "Error": LevelConfig(color="red", sink="error", format="!! {{msg}}"),
        },
        "{{msg}}",
    )

    assert registry.template_for("Info") == "{{msg}}"
    assert registry.template_for("Error") == "!! {{msg}}"


def test_default_table_is_used_without_levels() -> None:
    registry = LevelRegistry(None, "{{msg}}")

    assert list(registry) == ["Info"]


def test_empty_table_is_rejected() -> None:
    with pytest.raises(ValueError, match="At least one log level"):
        LevelRegistry({}, "{{msg}}")


def test_non_level_entries_are_rejected() -> None:
    with pytest.raises(ValueError, match="must be a LevelConfig"):
        LevelRegistry({"Info": {"color": "white", "sink": "log"}}, "{{msg}}")


def test_level_target_wins_over_shared_target(tmp_path: Path) -> None:
    own = FileTarget(tmp_path / "errors", "error.log")
    registry = LevelRegistry(
        {
            "Info": LevelConfig(color="white", sink="log"),
            "Error": LevelConfig(color="red", sink="error", files=own),
        },
        "{{msg}}",
    )

    routes = registry.file_routes(FileOptions(log_directory=tmp_path, log_name="app.log"))

    assert routes == {"Info": FileTarget(tmp_path, "app.log"), "Error": own}


def test_levels_without_any_target_are_not_routed(tmp_path: Path) -> None:
    own = FileTarget(tmp_path)
    registry = LevelRegistry(
        {
            "Info": LevelConfig(color="white", sink="log"),
            "Error": LevelConfig(color="red", sink="error", files=own),
        },
        "{{msg}}",
    )

    assert registry.file_routes(None) == {"Error": own}
    assert registry.file_routes(FileOptions()) == {"Error": own}
