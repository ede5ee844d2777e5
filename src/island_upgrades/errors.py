"""Exception hierarchy for island-upgrades."""
from __future__ import annotations


class UpgradesError(Exception):
    """Base class for every error raised by island-upgrades."""


class ConfigError(UpgradesError):
    """A configuration entry is malformed or references something unknown."""


class ParseError(ConfigError):
    """A formula could not be parsed.

    position is the 0-based index into the formula text; char is the offending
    character, or None when the parser ran off the end of the input.
    """

    def __init__(self, message: str, text: str, position: int, char: str | None) -> None:
        super().__init__(f"{message} at position {position} in {text!r}")
        self.text = text
        self.position = position
        self.char = char


class EvalError(UpgradesError):
    """A formula could not be evaluated against the given variables."""


class UndefinedVariableError(EvalError):
    def __init__(self, name: str) -> None:
        super().__init__(f"Undefined variable: {name}")
        self.name = name
