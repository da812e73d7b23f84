"""Unit tests for InvocationParser."""

import pytest

from cmdflow.infrastructure.agent.commands.invocation import InvocationParser
from cmdflow.infrastructure.agent.errors import (
    EmptyCommandError,
    ErrorCategory,
    InvalidCommandNameError,
    MissingSlashError,
    TrailingEscapeError,
    UnclosedQuotesError,
)


@pytest.mark.unit
class TestIsSlashCommand:
    """Tests for InvocationParser.is_slash_command()."""

    def test_simple_command(self) -> None:
        assert InvocationParser.is_slash_command("/review") is True

    def test_leading_whitespace(self) -> None:
        assert InvocationParser.is_slash_command("   /review src/") is True

    def test_plain_text(self) -> None:
        assert InvocationParser.is_slash_command("please /review") is False

    def test_bare_slash(self) -> None:
        assert InvocationParser.is_slash_command("/") is False

    def test_slash_followed_by_space(self) -> None:
        assert InvocationParser.is_slash_command("/ review") is False


@pytest.mark.unit
class TestParse:
    """Tests for InvocationParser.parse()."""

    def test_named_and_positional(self) -> None:
        """Named key=value pairs and positionals are split apart."""
        invocation = InvocationParser.parse("/review depth=deep src/")

        assert invocation.command_name == "review"
        assert invocation.args == {"depth": "deep"}
        assert invocation.raw_args == ["src/"]

    def test_no_arguments(self) -> None:
        invocation = InvocationParser.parse("/explain")

        assert invocation.command_name == "explain"
        assert invocation.args == {}
        assert invocation.raw_args == []

    def test_quoted_positional_keeps_spaces(self) -> None:
        invocation = InvocationParser.parse('/explain "src/my file.py"')

        assert invocation.raw_args == ["src/my file.py"]

    def test_quoted_named_value(self) -> None:
        invocation = InvocationParser.parse('/test format="pytest with fixtures"')

        assert invocation.args == {"format": "pytest with fixtures"}

    def test_empty_quoted_token_is_kept(self) -> None:
        invocation = InvocationParser.parse('/explain ""')

        assert invocation.raw_args == [""]

    def test_escaped_quote(self) -> None:
        invocation = InvocationParser.parse(r"/explain say\"hi\"")

        assert invocation.raw_args == ['say"hi"']

    def test_escaped_space(self) -> None:
        invocation = InvocationParser.parse(r"/explain my\ file.py")

        assert invocation.raw_args == ["my file.py"]

    def test_quoted_equals_is_positional(self) -> None:
        """An '=' inside quotes does not make a named argument."""
        invocation = InvocationParser.parse('/explain "a=b"')

        assert invocation.args == {}
        assert invocation.raw_args == ["a=b"]

    def test_escaped_equals_is_positional(self) -> None:
        invocation = InvocationParser.parse(r"/explain a\=b")

        assert invocation.args == {}
        assert invocation.raw_args == ["a=b"]

    def test_invalid_key_is_positional(self) -> None:
        invocation = InvocationParser.parse("/explain x.y=1")

        assert invocation.args == {}
        assert invocation.raw_args == ["x.y=1"]

    def test_value_keeps_later_equals(self) -> None:
        invocation = InvocationParser.parse("/run expr=a=b")

        assert invocation.args == {"expr": "a=b"}

    def test_empty_value(self) -> None:
        invocation = InvocationParser.parse("/run flag=")

        assert invocation.args == {"flag": ""}

    def test_repeated_key_last_wins(self) -> None:
        invocation = InvocationParser.parse("/run depth=1 depth=2")

        assert invocation.args == {"depth": "2"}

    def test_positional_order_preserved(self) -> None:
        invocation = InvocationParser.parse("/run one mode=x two three")

        assert invocation.raw_args == ["one", "two", "three"]
        assert invocation.args == {"mode": "x"}

    def test_surrounding_whitespace(self) -> None:
        invocation = InvocationParser.parse("  /review   src/  ")

        assert invocation.command_name == "review"
        assert invocation.raw_args == ["src/"]


@pytest.mark.unit
class TestParseErrors:
    """Tests for malformed invocation text."""

    def test_missing_slash(self) -> None:
        with pytest.raises(MissingSlashError) as exc_info:
            InvocationParser.parse("review src/")

        assert str(exc_info.value) == "Command must start with '/'"
        assert exc_info.value.category is ErrorCategory.PARSE

    def test_empty_command(self) -> None:
        with pytest.raises(EmptyCommandError):
            InvocationParser.parse("/")

    def test_whitespace_after_slash(self) -> None:
        with pytest.raises(EmptyCommandError):
            InvocationParser.parse("/   ")

    def test_invalid_name(self) -> None:
        with pytest.raises(InvalidCommandNameError) as exc_info:
            InvocationParser.parse("/re.view")

        assert exc_info.value.name == "re.view"

    def test_unclosed_quotes(self) -> None:
        with pytest.raises(UnclosedQuotesError) as exc_info:
            InvocationParser.parse('/explain "src/main.py')

        assert str(exc_info.value) == "Unclosed quotes in command"

    def test_trailing_escape(self) -> None:
        with pytest.raises(TrailingEscapeError):
            InvocationParser.parse("/explain src\\")
