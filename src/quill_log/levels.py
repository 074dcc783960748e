"""Level table lookups and validation."""

from collections.abc import Iterator, Mapping
from types import MappingProxyType

from .config import DEFAULT_LEVELS, FileOptions, FileTarget, LevelConfig
from .errors import InvalidLogLevelError


class LevelRegistry:
    """Read-only table of the levels a logger accepts.

    Level names are case-sensitive and kept in registration order. Style and
    sink names are not checked here; they are resolved when a level is used.

    Attributes:
        default_format: Template used by levels without their own ``format``
    """

    def __init__(self, levels: Mapping[str, LevelConfig] | None, default_format: str) -> None:
        levels = DEFAULT_LEVELS if levels is None else levels
        if not levels:
            msg = "At least one log level must be configured"
            raise ValueError(msg)

        for name, config in levels.items():
            if not isinstance(config, LevelConfig):
                msg = f"Level {name!r} must be a LevelConfig, got {type(config).__name__}"
                raise ValueError(msg)

        self._levels = MappingProxyType(dict(levels))
        self.default_format = default_format

    def __contains__(self, name: object) -> bool:
        return name in self._levels

    def __iter__(self) -> Iterator[str]:
        return iter(self._levels)

    def __len__(self) -> int:
        return len(self._levels)

    def get(self, name: str) -> LevelConfig | None:
        return self._levels.get(name)

    def require(self, name: str) -> LevelConfig:
        """Get the configuration of a level.

        Args:
            name: Level name

        Returns:
            The level's configuration

        Raises:
            InvalidLogLevelError: If the level is not registered
        """
        config = self._levels.get(name)
        if config is None:
            raise InvalidLogLevelError(name)
        return config

    def template_for(self, name: str) -> str:
        """Template for a level, falling back to the default template."""
        return self.require(name).format or self.default_format

    def file_routes(self, files: FileOptions | None) -> dict[str, FileTarget]:
        """Map each level to the file target its lines are written to.

        A level's own target wins entirely over the shared target of `files`.
        Levels with neither are left out.

        Args:
            files: Shared file output settings, if any

        Returns:
            Dictionary of level name to file target
        """
        shared = files.target if files is not None else None
        routes = {}
        for name, config in self._levels.items():
            if target := config.files or shared:
                routes[name] = target
        return routes
