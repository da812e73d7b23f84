"""Slash command invocation parser.

Turns raw user input such as ``/review depth=deep "src/my file.py"``
into a ``CommandInvocation``: the command name, the named ``key=value``
arguments, and the remaining positional tokens in order.

Tokenization rules:
- whitespace separates tokens outside double quotes
- double quotes group characters and are removed
- a backslash escapes the next character, whatever it is
- the first ``=`` that is neither quoted nor escaped splits a named
  argument, provided the text to its left is a valid argument name
"""

import logging
import re
from dataclasses import dataclass, field

from cmdflow.domain.model.command import is_valid_command_name
from cmdflow.infrastructure.agent.errors import (
    EmptyCommandError,
    InvalidCommandNameError,
    MissingSlashError,
    TrailingEscapeError,
    UnclosedQuotesError,
)

logger = logging.getLogger(__name__)

_ARG_NAME_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")


@dataclass
class CommandInvocation:
    """A parsed slash command.

    Attributes:
        command_name: Name after the slash.
        args: Named ``key=value`` arguments.
        raw_args: Positional tokens in input order.
    """

    command_name: str
    args: dict[str, str] = field(default_factory=dict)
    raw_args: list[str] = field(default_factory=list)


@dataclass
class _Token:
    text: str
    # Offset of the first bare '=' within text, if any.
    split_at: int | None = None


class InvocationParser:
    """Parses slash command text into ``CommandInvocation`` objects."""

    @staticmethod
    def is_slash_command(text: str) -> bool:
        """Check whether text looks like a slash command.

        Args:
            text: Raw user input.

        Returns:
            True if the trimmed text starts with ``/`` followed by a
            non-whitespace character.
        """
        stripped = text.strip()
        return len(stripped) > 1 and stripped[0] == "/" and not stripped[1].isspace()

    @staticmethod
    def parse(text: str) -> CommandInvocation:
        """Parse a slash command.

        Args:
            text: Raw user input.

        Returns:
            The parsed invocation.

        Raises:
            MissingSlashError: If the input does not start with ``/``.
            EmptyCommandError: If no command name follows the slash.
            InvalidCommandNameError: If the name has disallowed characters.
            UnclosedQuotesError: If a double quote is never closed.
            TrailingEscapeError: If the input ends with a lone backslash.
        """
        stripped = text.strip()
        if not stripped.startswith("/"):
            raise MissingSlashError()

        tokens = _tokenize(stripped[1:])
        if not tokens:
            raise EmptyCommandError()

        name_token = tokens[0]
        if not is_valid_command_name(name_token.text):
            raise InvalidCommandNameError(name_token.text)

        invocation = CommandInvocation(command_name=name_token.text)
        for token in tokens[1:]:
            pair = _split_named(token)
            if pair is None:
                invocation.raw_args.append(token.text)
            else:
                key, value = pair
                if key in invocation.args:
                    logger.debug("Argument '%s' given more than once, last value wins", key)
                invocation.args[key] = value
        return invocation


def _tokenize(text: str) -> list[_Token]:
    tokens: list[_Token] = []
    current: list[str] = []
    split_at: int | None = None
    in_quotes = False
    escape_next = False
    # A quoted empty string ("") still produces a token.
    started = False
    # Quoted or escaped text before the '=' cannot form an argument name.
    key_tainted = False

    for ch in text:
        if escape_next:
            current.append(ch)
            escape_next = False
        elif ch == "\\":
            escape_next = True
            started = True
            key_tainted = key_tainted or split_at is None
        elif ch == '"':
            in_quotes = not in_quotes
            started = True
            key_tainted = key_tainted or split_at is None
        elif ch.isspace() and not in_quotes:
            if started or current:
                tokens.append(_Token("".join(current), split_at))
            current = []
            split_at = None
            started = False
            key_tainted = False
        else:
            if ch == "=" and not in_quotes and split_at is None and not key_tainted:
                split_at = len(current)
            current.append(ch)
            started = True

    if in_quotes:
        raise UnclosedQuotesError()
    if escape_next:
        raise TrailingEscapeError()
    if started or current:
        tokens.append(_Token("".join(current), split_at))
    return tokens


def _split_named(token: _Token) -> tuple[str, str] | None:
    if token.split_at is None:
        return None
    key = token.text[: token.split_at]
    if not _ARG_NAME_PATTERN.match(key):
        return None
    return key, token.text[token.split_at + 1 :]
