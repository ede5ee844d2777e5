"""Arithmetic formula engine for upgrade costs and effects.

Formulas are parsed once into an immutable tree of nodes and evaluated many times
against a mapping of variable values. Pure functions, no side effects.

Grammar (recursive descent, whitespace between tokens is ignored):

    expression := term (('+'|'-') term)*
    term       := factor (('*'|'/') factor)*
    factor     := '+' factor | '-' factor
                | (primary | function factor) ['^' factor]
    primary    := '(' expression ')' | number | identifier

Identifiers are runs of ASCII letters and square brackets, so "[level]" is a single
identifier. Brackets are stripped from variable names: "[level]" looks up "level".
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Mapping, Union

from island_upgrades.errors import ParseError, UndefinedVariableError

FUNCTIONS: tuple[str, ...] = ("sqrt", "sin", "cos", "tan")

_DIGITS = "0123456789"
_IDENTIFIER_CHARS = frozenset("abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ[]")


def _divide(a: float, b: float) -> float:
    """IEEE-754 division: x/0 is a signed infinity, 0/0 is NaN."""
    if b == 0:
        if a == 0 or math.isnan(a):
            return math.nan
        return math.copysign(math.inf, a) * math.copysign(1.0, b)
    return a / b


def _is_odd_integer(x: float) -> bool:
    return math.isfinite(x) and x.is_integer() and int(x) % 2 == 1


def _power(base: float, exponent: float) -> float:
    """math.pow with float results where it would raise."""
    try:
        return math.pow(base, exponent)
    except OverflowError:
        if base < 0 and _is_odd_integer(exponent):
            return -math.inf
        return math.inf
    except ValueError:
        # zero to a negative power, or a negative base with a fractional exponent
        if base == 0:
            if math.copysign(1.0, base) < 0 and _is_odd_integer(exponent):
                return -math.inf
            return math.inf
        return math.nan


def _degrees_call(func):
    def call(x: float) -> float:
        try:
            return func(math.radians(x))
        except ValueError:
            return math.nan
    return call


def _sqrt(x: float) -> float:
    if x < 0:
        return math.nan
    return math.sqrt(x)


_FUNCTION_IMPLS = {
    "sqrt": _sqrt,
    "sin": _degrees_call(math.sin),
    "cos": _degrees_call(math.cos),
    "tan": _degrees_call(math.tan),
}

_BINARY_IMPLS = {
    "+": lambda a, b: a + b,
    "-": lambda a, b: a - b,
    "*": lambda a, b: a * b,
    "/": _divide,
    "^": _power,
}


@dataclass(frozen=True)
class Constant:
    value: float

    def eval(self, variables: Mapping[str, float]) -> float:
        return self.value

    def variables(self) -> frozenset[str]:
        return frozenset()


@dataclass(frozen=True)
class Variable:
    name: str

    def eval(self, variables: Mapping[str, float]) -> float:
        try:
            return float(variables[self.name])
        except KeyError:
            raise UndefinedVariableError(self.name) from None

    def variables(self) -> frozenset[str]:
        return frozenset((self.name,))


@dataclass(frozen=True)
class UnaryMinus:
    operand: Expression

    def eval(self, variables: Mapping[str, float]) -> float:
        return -self.operand.eval(variables)

    def variables(self) -> frozenset[str]:
        return self.operand.variables()


@dataclass(frozen=True)
class BinaryOp:
    op: str
    left: Expression
    right: Expression

    def eval(self, variables: Mapping[str, float]) -> float:
        return _BINARY_IMPLS[self.op](self.left.eval(variables), self.right.eval(variables))

    def variables(self) -> frozenset[str]:
        return self.left.variables() | self.right.variables()


@dataclass(frozen=True)
class Call:
    """Apply a named function. sin, cos and tan take degrees."""

    function: str
    argument: Expression

    def eval(self, variables: Mapping[str, float]) -> float:
        return _FUNCTION_IMPLS[self.function](self.argument.eval(variables))

    def variables(self) -> frozenset[str]:
        return self.argument.variables()


Expression = Union[Constant, Variable, UnaryMinus, BinaryOp, Call]


class _Parser:
    def __init__(self, text: str) -> None:
        self.text = text
        self.pos = 0

    def _skip_whitespace(self) -> None:
        while self.pos < len(self.text) and self.text[self.pos].isspace():
            self.pos += 1

    def _peek(self) -> str | None:
        self._skip_whitespace()
        if self.pos < len(self.text):
            return self.text[self.pos]
        return None

    def _eat(self, char: str) -> bool:
        if self._peek() == char:
            self.pos += 1
            return True
        return False

    def _error(self, message: str) -> ParseError:
        char = self._peek()
        found = repr(char) if char is not None else "end of input"
        return ParseError(f"{message}: {found}", self.text, self.pos, char)

    def parse(self) -> Expression:
        node = self._expression()
        if self._peek() is not None:
            raise self._error("Unexpected")
        return node

    def _expression(self) -> Expression:
        node = self._term()
        while True:
            if self._eat("+"):
                node = BinaryOp("+", node, self._term())
            elif self._eat("-"):
                node = BinaryOp("-", node, self._term())
            else:
                return node

    def _term(self) -> Expression:
        node = self._factor()
        while True:
            if self._eat("*"):
                node = BinaryOp("*", node, self._factor())
            elif self._eat("/"):
                node = BinaryOp("/", node, self._factor())
            else:
                return node

    def _factor(self) -> Expression:
        if self._eat("+"):
            return self._factor()
        if self._eat("-"):
            return UnaryMinus(self._factor())

        ch = self._peek()
        if ch == "(":
            self.pos += 1
            node = self._expression()
            if not self._eat(")"):
                raise self._error("Expected ')'")
        elif ch is not None and (ch in _DIGITS or ch == "."):
            node = self._number()
        elif ch is not None and ch in _IDENTIFIER_CHARS:
            name = self._identifier()
            if name in FUNCTIONS:
                node = Call(name, self._factor())
            else:
                node = Variable(name.replace("[", "").replace("]", ""))
        else:
            raise self._error("Unexpected")

        if self._eat("^"):
            node = BinaryOp("^", node, self._factor())
        return node

    def _number(self) -> Constant:
        start = self.pos
        seen_dot = False
        while self.pos < len(self.text):
            ch = self.text[self.pos]
            if ch in _DIGITS:
                self.pos += 1
            elif ch == "." and not seen_dot:
                seen_dot = True
                self.pos += 1
            else:
                break
        literal = self.text[start:self.pos]
        if literal == ".":
            self.pos = start
            raise self._error("Malformed number")
        return Constant(float(literal))

    def _identifier(self) -> str:
        start = self.pos
        while self.pos < len(self.text) and self.text[self.pos] in _IDENTIFIER_CHARS:
            self.pos += 1
        return self.text[start:self.pos]


def parse(text: str) -> Expression:
    """Parse a formula into an expression tree.

    Raises ParseError on trailing input, a missing ')', empty input, a stray
    operator or an unknown character. Variables are not checked here.
    """
    return _Parser(text).parse()


def to_formula(node: Expression) -> str:
    """Render a tree back to formula text for display.

    Every operation is parenthesized and variables are written bracketed.
    """
    if isinstance(node, Constant):
        value = node.value
        return str(int(value)) if value.is_integer() and abs(value) < 1e15 else repr(value)
    if isinstance(node, Variable):
        return f"[{node.name}]"
    if isinstance(node, UnaryMinus):
        return f"(-{to_formula(node.operand)})"
    if isinstance(node, BinaryOp):
        return f"({to_formula(node.left)}{node.op}{to_formula(node.right)})"
    return f"({node.function}({to_formula(node.argument)}))"


def evaluate(text: str, variables: Mapping[str, float] | None = None) -> float:
    """Parse and evaluate a formula in one step."""
    return parse(text).eval(variables or {})
