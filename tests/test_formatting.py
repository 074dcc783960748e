"""Tests for template resolution and message interpolation."""

import pytest
from structlog.testing import capture_logs

from quill_log import FormatContext, FormatResolver, InvalidDateFormatError, InvalidStyleError, RichStyleApplier
from quill_log.formatting import DEFAULT_DATE_PATTERN, interpolate
from quill_log.writer import strip_ansi

from .conftest import FIXED_ISO_DATE, fixed_date


@pytest.fixture
def resolver(plain_styles: RichStyleApplier) -> FormatResolver:
    return FormatResolver(plain_styles, fixed_date)


def test_message_placeholder(resolver: FormatResolver) -> None:
    assert resolver.resolve("{{msg}}", FormatContext(message="x")) == "x"


def test_prefix_and_message(resolver: FormatResolver) -> None:
    context = FormatContext(prefix="P", message="x")
    assert resolver.resolve("{{prefix}} {{msg}}", context) == "P x"


def test_level_placeholder(resolver: FormatResolver) -> None:
    assert resolver.resolve("<{{level}}>", FormatContext(level="Warn")) == "<Warn>"


def test_date_placeholder_uses_pattern(resolver: FormatResolver) -> None:
    assert resolver.resolve("{{date:HH:mm:ss}} {{msg}}", FormatContext(message="m")) == "12:34:56 m"


def test_date_without_pattern_uses_iso_format() -> None:
    patterns = []

    def formatter(pattern: str) -> str:
        patterns.append(pattern)
        return FIXED_ISO_DATE

    resolver = FormatResolver(RichStyleApplier(colors=False), formatter)

    assert resolver.resolve("{{date}}", FormatContext()) == FIXED_ISO_DATE
    assert patterns == [DEFAULT_DATE_PATTERN]


def test_styled_date_keeps_colons_in_pattern() -> None:
    resolver = FormatResolver(RichStyleApplier(), fixed_date)

    result = resolver.resolve("{{date.gray:HH:mm:ss}}", FormatContext())

    assert result.startswith("\x1b[")
    assert strip_ansi(result) == "12:34:56"


def test_style_chain_is_applied_in_order() -> None:
    resolver = FormatResolver(RichStyleApplier(), fixed_date)
    styles = RichStyleApplier()

    result = resolver.resolve("{{prefix.blue.bold}}", FormatContext(prefix="P"))

    assert result == styles.apply(styles.apply("P", "blue"), "bold")


def test_unknown_key_resolves_to_empty_string(resolver: FormatResolver) -> None:
    assert resolver.resolve("a{{nope}}b", FormatContext(message="x")) == "ab"


def test_text_without_placeholders_is_unchanged(resolver: FormatResolver) -> None:
    assert resolver.resolve("plain {text} here", FormatContext()) == "plain {text} here"


@pytest.mark.parametrize("chain", ["nope", "red.nope", "nope.red", "bold.red.nope"])
def test_unknown_style_fails_anywhere_in_chain(resolver: FormatResolver, chain: str) -> None:
    with pytest.raises(InvalidStyleError) as exc_info:
        resolver.resolve(f"{{{{msg.{chain}}}}}", FormatContext(message="x"))

    assert exc_info.value.style == "nope"


def test_empty_date_is_invalid() -> None:
    resolver = FormatResolver(RichStyleApplier(colors=False), lambda pattern: "")

    with pytest.raises(InvalidDateFormatError):
        resolver.resolve("{{date:Q}}", FormatContext())


def test_rejected_date_pattern_is_invalid() -> None:
    def formatter(pattern: str) -> str:
        raise ValueError(pattern)

    resolver = FormatResolver(RichStyleApplier(colors=False), formatter)

    with pytest.raises(InvalidDateFormatError) as exc_info:
        resolver.resolve("{{date:bad}}", FormatContext())

    assert exc_info.value.pattern == "bad"


def test_debug_mode_reports_placeholders(plain_styles: RichStyleApplier) -> None:
    resolver = FormatResolver(plain_styles, fixed_date, debug=True)

    with capture_logs() as logs:
        resolver.resolve("{{prefix.bold}} {{msg}}", FormatContext(prefix="P", message="m"))

    assert [entry["key"] for entry in logs] == ["prefix", "msg"]
    assert logs[0]["event"] == "Resolved placeholder"
    assert logs[0]["styles"] == ["bold"]


class TestInterpolate:
    def test_string_token(self) -> None:
        assert interpolate("hello %s!", ["world"]) == "hello world!"

    def test_number_tokens(self) -> None:
        assert interpolate("%d items, %i left, %f%%", ["3", 2.9, 1]) == "3 items, 2 left, 1.0%"

    def test_non_numeric_value_is_nan(self) -> None:
        assert interpolate("%d", ["abc"]) == "NaN"

    @pytest.mark.parametrize(
        ("template", "value", "expected"),
        [
            ("%d items", 3.7, "3.7 items"),
            ("%d items", "3.7", "3.7 items"),
            ("%d items", 4.0, "4 items"),
            ("%i items", "3.7", "3 items"),
            ("%f items", "2", "2.0 items"),
        ],
    )
    def test_numeric_conversion(self, template: str, value, expected: str) -> None:
        assert interpolate(template, [value]) == expected

    def test_json_tokens(self) -> None:
        assert interpolate("data=%j", [{"a": 1}]) == 'data={"a": 1}'

    def test_leftover_arguments_are_appended(self) -> None:
        assert interpolate("a", [1, "b", {"c": 2}]) == 'a 1 b {"c": 2}'

    def test_tokens_without_arguments_are_kept(self) -> None:
        assert interpolate("%s and %s", ["x"]) == "x and %s"

    def test_message_without_arguments_is_unchanged(self) -> None:
        assert interpolate("100%% %s") == "100%% %s"

    def test_non_string_message_is_json(self) -> None:
        assert interpolate({"a": [1, 2]}) == '{"a": [1, 2]}'
