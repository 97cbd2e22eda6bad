"""
Commands that can be issued to the bot in a comment, and their parse errors.
"""

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class Ping:
    """Liveness check."""


@dataclass(frozen=True)
class Try:
    """Start a try build of the pull request."""


BorsCommand = Union[Ping, Try]


@dataclass(frozen=True)
class MissingCommand:
    """Bot was addressed without a command keyword."""


@dataclass(frozen=True)
class UnknownCommand:
    command: str


CommandParseError = Union[MissingCommand, UnknownCommand]

# One parse result per command invocation found in a comment
ParseResult = Union[BorsCommand, CommandParseError]


def is_parse_error(result: ParseResult) -> bool:
    return isinstance(result, (MissingCommand, UnknownCommand))
