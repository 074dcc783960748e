"""Template resolution and message interpolation.

Templates embed placeholders of the form ``{{key[.style...][:argument]}}``:

    - ``{{msg}}``                     the (interpolated) log message
    - ``{{prefix.blue.bold}}``        the level prefix, styled blue then bold
    - ``{{level}}``                   the level name
    - ``{{date.gray:HH:mm:ss}}``      the current time formatted with a
                                      moment-style pattern, styled gray

Unknown keys resolve to an empty string, unknown styles raise
`InvalidStyleError` and a date pattern producing nothing raises
`InvalidDateFormatError`.
"""

import json
import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any, Final

import arrow
import structlog

from .errors import InvalidDateFormatError
from .styles import StyleApplier, apply_chain

DEFAULT_FORMAT: Final = "[{{prefix}}] {{date:HH:mm:ss}} {{msg}}"
DEFAULT_DATE_PATTERN: Final = "YYYY-MM-DDTHH:mm:ssZZ"

DateFormatter = Callable[[str], str]

_PLACEHOLDER: Final = re.compile(r"\{\{(.*?)\}\}")
_PRINTF_TOKEN: Final = re.compile(r"%[sdifjoO%]")

logger = structlog.get_logger(__name__)


def format_now(pattern: str) -> str:
    """Format the current local time with a moment-style pattern."""
    return arrow.now().format(pattern)


@dataclass(frozen=True, slots=True)
class FormatContext:
    """Values available to template placeholders.

    Attributes:
        level:      Name of the level being logged
        message:    Message text, already interpolated
        prefix:     Prefix configured for the level
    """

    level: str = ""
    message: str = ""
    prefix: str = ""


class FormatResolver:
    """Resolves placeholders in templates against a `FormatContext`.

    The resolver holds no state between calls; the only external input is the
    date formatter, which is read whenever a ``date`` placeholder is resolved.
    """

    def __init__(
            self,
            styles: StyleApplier,
            date_formatter: DateFormatter = format_now,
            debug: bool = False,
    ) -> None:
        self.styles = styles
        self.date_formatter = date_formatter
        self.debug = debug

    def resolve(self, template: str, context: FormatContext) -> str:
        """Substitute every placeholder in `template`.

        Args:
            template:   Template string
            context:    Values for the ``prefix``, ``level`` and ``msg`` keys

        Returns:
            The rendered string

        Raises:
            InvalidStyleError:      If a placeholder names an unknown style
            InvalidDateFormatError: If a date placeholder cannot be formatted
        """
        return _PLACEHOLDER.sub(lambda match: self._replace(match, context), template)

    def _replace(self, match: re.Match[str], context: FormatContext) -> str:
        head, _, argument = match.group(1).partition(":")
        key, *chain = head.split(".")

        value = self._base_value(key, argument, context)
        value = apply_chain(self.styles, value, chain)

        if self.debug:
            logger.debug(
                "Resolved placeholder",
                placeholder=match.group(0),
                key=key,
                styles=chain,
                argument=argument,
            )
        return value

    def _base_value(self, key: str, argument: str, context: FormatContext) -> str:
        if key == "date":
            return self._format_date(argument)

        values = {
            "prefix": context.prefix,
            "level": context.level,
            "msg": context.message,
        }
        return values.get(key, "")

    def _format_date(self, pattern: str) -> str:
        try:
            value = self.date_formatter(pattern or DEFAULT_DATE_PATTERN)
        except (TypeError, ValueError) as e:
            raise InvalidDateFormatError(pattern) from e

        if not value:
            raise InvalidDateFormatError(pattern)
        return value


def to_text(value: Any) -> str:
    """Render a value for log output: strings as-is, anything else as JSON."""
    if isinstance(value, str):
        return value
    return json.dumps(value, default=str, ensure_ascii=False)


def interpolate(message: Any, args: Sequence[Any] = ()) -> str:
    """Interpolate printf-style tokens in `message` with positional `args`.

    Supported tokens are ``%s``, ``%d``, ``%i``, ``%f``, ``%j``, ``%o``,
    ``%O`` and ``%%``. Tokens without a matching argument are left as they
    are; arguments without a matching token are appended, separated by
    spaces.

    Args:
        message:    Message template (non-strings are rendered with `to_text`)
        args:       Positional arguments

    Returns:
        The interpolated message
    """
    text = to_text(message)
    if not args:
        return text

    remaining = list(args)

    def replace(match: re.Match[str]) -> str:
        token = match.group(0)
        if token == "%%":
            return "%"
        if not remaining:
            return token
        return _convert(token, remaining.pop(0))

    text = _PRINTF_TOKEN.sub(replace, text)
    if remaining:
        text = " ".join([text, *(to_text(arg) for arg in remaining)])
    return text


def _convert(token: str, value: Any) -> str:
    if token == "%s":
        return str(value)

    if token in {"%d", "%i", "%f"}:
        try:
            number = _to_number(value)
            if token == "%i":
                return str(int(number))
            if token == "%f":
                return str(float(number))
        except (TypeError, ValueError, OverflowError):
            return "NaN"
        if isinstance(number, float) and number.is_integer():
            return str(int(number))
        return str(number)

    # %j, %o and %O
    return json.dumps(value, default=str, ensure_ascii=False)


def _to_number(value: Any) -> int | float:
    """Numbers pass through, anything else is parsed as numeric text."""
    if isinstance(value, (int, float)):
        return value
    return float(value)
