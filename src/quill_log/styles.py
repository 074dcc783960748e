"""Terminal style application for rendered log strings.

Styles are looked up by name at log time, so an unknown style only fails when a
template or level actually uses it. The default applier is backed by rich's
style parser and ANSI renderer.
"""

from collections.abc import Iterable
from typing import Final, Protocol

from rich.color import ColorSystem
from rich.errors import StyleSyntaxError
from rich.style import Style

from .errors import InvalidStyleError

_BASIC_COLORS: Final = ("black", "red", "green", "yellow", "blue", "magenta", "cyan", "white")

# Names used by classic terminal color libraries that rich spells differently
STYLE_ALIASES: Final[dict[str, str]] = {
    "gray": "bright_black",
    "grey": "bright_black",
    "inverse": "reverse",
    "strikethrough": "strike",
    "hidden": "conceal",
    **{f"bg{color.capitalize()}": f"on {color}" for color in _BASIC_COLORS},
    **{f"{color}Bright": f"bright_{color}" for color in _BASIC_COLORS},
}


class StyleApplier(Protocol):
    """Capability that styles a value by name."""

    def apply(self, value: str, style: str) -> str:
        """Return `value` with `style` applied.

        Raises:
            InvalidStyleError: If the style name is unknown
        """
        ...


class RichStyleApplier:
    """Style applier rendering ANSI sequences with rich.

    Attributes:
        colors:     Emit ANSI sequences; when False names are still validated
                    but the value is returned unchanged
        aliases:    Extra name translations applied before parsing
    """

    def __init__(self, colors: bool = True, aliases: dict[str, str] | None = None) -> None:
        self.colors = colors
        self.aliases = {**STYLE_ALIASES, **(aliases or {})}
        self._color_system = ColorSystem.TRUECOLOR if colors else None

    def apply(self, value: str, style: str) -> str:
        return self._parse(style).render(value, color_system=self._color_system)

    def _parse(self, name: str) -> Style:
        if not name or name.strip() != name:
            raise InvalidStyleError(name)
        try:
            return Style.parse(self.aliases.get(name, name))
        except StyleSyntaxError as e:
            raise InvalidStyleError(name) from e


def split_chain(chain: str | Iterable[str] | None) -> tuple[str, ...]:
    """Split a dot-separated style chain (``"red.bold"``) into names."""
    if chain is None:
        return ()
    if isinstance(chain, str):
        return tuple(chain.split(".")) if chain else ()
    return tuple(chain)


def apply_chain(applier: StyleApplier, value: str, chain: str | Iterable[str] | None) -> str:
    """Apply each style of `chain` to `value`, left to right.

    Args:
        applier:    Style applier used for every lookup
        value:      Value to style
        chain:      Dot-separated chain or sequence of style names

    Returns:
        The styled value

    Raises:
        InvalidStyleError: On the first unknown style in the chain
    """
    for style in split_chain(chain):
        value = applier.apply(value, style)
    return value
