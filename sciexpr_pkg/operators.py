"""Operator and constant tables.

Binary operators are keyed by their symbol; unary prefix operators are keyed
``unary+`` and ``unary-``. Precedence levels, highest first:

    8  unary + -            (right)
    7  ^ **                 (right)
    6  * × / ÷ %            (left)
    5  + -                  (left)
    4  < > <= >=            (left)
    3  == !=                (left)
    2  &&                   (left)
    1  ||                   (left)

Comparison and logical operators produce 1 or 0.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from decimal import ROUND_HALF_EVEN
from typing import Callable

import mpmath

from .functions import FunctionRegistry
from .numeric import BigInt, Complex, DecimalValue, Real, Value, compare
from .types import RegistrationError, UnknownIdentifierError

LEFT = "left"
RIGHT = "right"


@dataclass(frozen=True)
class OperatorDescriptor:
    key: str
    symbol: str
    arity: int
    precedence: int
    associativity: str
    apply: Callable[..., Value]
    description: str = ""

    @property
    def is_unary(self) -> bool:
        return self.arity == 1


@dataclass(frozen=True)
class ConstantDescriptor:
    """A named constant; ``exact`` yields it as an mpmath number at the working precision."""

    name: str
    value: float
    exact: Callable[[], mpmath.mpf] | None = None
    description: str = ""
    is_complex: bool = False


def _truth(flag: bool) -> BigInt:
    return BigInt(1 if flag else 0)


def _equal(a: Value, b: Value) -> bool:
    if isinstance(a, Complex):
        return a == b
    return compare(a, b) == 0


_BASE_OPERATORS = (
    OperatorDescriptor("unary+", "+", 1, 8, RIGHT, lambda a: a, "Unary plus"),
    OperatorDescriptor("unary-", "-", 1, 8, RIGHT, lambda a: a.negate(), "Negation"),
    OperatorDescriptor("^", "^", 2, 7, RIGHT, lambda a, b: a.power(b), "Exponentiation"),
    OperatorDescriptor("**", "**", 2, 7, RIGHT, lambda a, b: a.power(b), "Exponentiation"),
    OperatorDescriptor("*", "*", 2, 6, LEFT, lambda a, b: a.multiply(b), "Multiplication"),
    OperatorDescriptor("×", "×", 2, 6, LEFT, lambda a, b: a.multiply(b), "Multiplication"),
    OperatorDescriptor("/", "/", 2, 6, LEFT, lambda a, b: a.divide(b), "Division"),
    OperatorDescriptor("÷", "÷", 2, 6, LEFT, lambda a, b: a.divide(b), "Division"),
    OperatorDescriptor("%", "%", 2, 6, LEFT, lambda a, b: a.modulo(b), "Remainder"),
    OperatorDescriptor("+", "+", 2, 5, LEFT, lambda a, b: a.add(b), "Addition"),
    OperatorDescriptor("-", "-", 2, 5, LEFT, lambda a, b: a.subtract(b), "Subtraction"),
    OperatorDescriptor("<", "<", 2, 4, LEFT, lambda a, b: _truth(compare(a, b) < 0), "Less than"),
    OperatorDescriptor(">", ">", 2, 4, LEFT, lambda a, b: _truth(compare(a, b) > 0), "Greater than"),
    OperatorDescriptor("<=", "<=", 2, 4, LEFT, lambda a, b: _truth(compare(a, b) <= 0), "Less than or equal"),
    OperatorDescriptor(">=", ">=", 2, 4, LEFT, lambda a, b: _truth(compare(a, b) >= 0), "Greater than or equal"),
    OperatorDescriptor("==", "==", 2, 3, LEFT, lambda a, b: _truth(_equal(a, b)), "Equal"),
    OperatorDescriptor("!=", "!=", 2, 3, LEFT, lambda a, b: _truth(not _equal(a, b)), "Not equal"),
    OperatorDescriptor(
        "&&", "&&", 2, 2, LEFT, lambda a, b: _truth(not a.is_zero() and not b.is_zero()), "Logical and"
    ),
    OperatorDescriptor(
        "||", "||", 2, 1, LEFT, lambda a, b: _truth(not a.is_zero() or not b.is_zero()), "Logical or"
    ),
)

_BASE_CONSTANTS = (
    ConstantDescriptor("pi", math.pi, lambda: +mpmath.pi, "Ratio of a circle's circumference to its diameter"),
    ConstantDescriptor("π", math.pi, lambda: +mpmath.pi, "Ratio of a circle's circumference to its diameter"),
    ConstantDescriptor("e", math.e, lambda: +mpmath.e, "Base of the natural logarithm"),
    ConstantDescriptor("phi", (1 + math.sqrt(5)) / 2, lambda: +mpmath.phi, "Golden ratio"),
    ConstantDescriptor("φ", (1 + math.sqrt(5)) / 2, lambda: +mpmath.phi, "Golden ratio"),
    ConstantDescriptor("tau", math.tau, lambda: 2 * mpmath.pi, "Full turn in radians"),
    ConstantDescriptor("τ", math.tau, lambda: 2 * mpmath.pi, "Full turn in radians"),
    ConstantDescriptor("euler", 0.5772156649015329, lambda: +mpmath.euler, "Euler-Mascheroni constant"),
    ConstantDescriptor("ln2", math.log(2), lambda: mpmath.log(2), "Natural logarithm of 2"),
    ConstantDescriptor("ln10", math.log(10), lambda: mpmath.log(10), "Natural logarithm of 10"),
    ConstantDescriptor("sqrt2", math.sqrt(2), lambda: mpmath.sqrt(2), "Square root of 2"),
    ConstantDescriptor("sqrt1_2", math.sqrt(0.5), lambda: mpmath.sqrt(0.5), "Square root of 1/2"),
    ConstantDescriptor("i", 0.0, None, "Imaginary unit", is_complex=True),
)


class OperatorTable:
    """Operators and constants known to one calculator."""

    def __init__(self, functions: FunctionRegistry | None = None) -> None:
        self._operators: dict[str, OperatorDescriptor] = {}
        self._symbols: set[str] = set()
        self._symbols_longest_first: tuple[str, ...] = ()
        self._constants: dict[str, ConstantDescriptor] = {}
        self._functions = functions
        for descriptor in _BASE_OPERATORS:
            self.register_operator(descriptor)
        for constant in _BASE_CONSTANTS:
            self._constants[constant.name.lower()] = constant

    @property
    def functions(self) -> FunctionRegistry | None:
        return self._functions

    # -- operators -----------------------------------------------------------

    def register_operator(self, descriptor: OperatorDescriptor) -> None:
        """Add a new operator. Keys are unique; use extend_operator to replace one."""
        if descriptor.key in self._operators:
            raise RegistrationError(
                f"Operator already registered: {descriptor.key}", "DUPLICATE_OPERATOR"
            )
        self._validate(descriptor)
        self._operators[descriptor.key] = descriptor
        self._reindex_symbols()

    def extend_operator(self, descriptor: OperatorDescriptor) -> None:
        """Install or replace an operator definition."""
        self._validate(descriptor)
        self._operators[descriptor.key] = descriptor
        self._reindex_symbols()

    def _reindex_symbols(self) -> None:
        self._symbols = {op.symbol for op in self._operators.values()}
        self._symbols_longest_first = tuple(sorted(self._symbols, key=len, reverse=True))

    @staticmethod
    def _validate(descriptor: OperatorDescriptor) -> None:
        if descriptor.arity not in (1, 2):
            raise RegistrationError(f"Invalid operator arity: {descriptor.arity}", "INVALID_ARITY")
        if descriptor.associativity not in (LEFT, RIGHT):
            raise RegistrationError(
                f"Invalid associativity: {descriptor.associativity}", "INVALID_ASSOCIATIVITY"
            )
        if not descriptor.symbol or descriptor.symbol[0].isalnum() or descriptor.symbol[0] in "()_,. ":
            raise RegistrationError(f"Invalid operator symbol: {descriptor.symbol!r}", "INVALID_SYMBOL")

    def is_operator(self, symbol: str) -> bool:
        return symbol in self._symbols

    def get_operator(self, key: str) -> OperatorDescriptor | None:
        return self._operators.get(key)

    def unary(self, symbol: str) -> OperatorDescriptor | None:
        return self._operators.get(f"unary{symbol}")

    def can_be_unary(self, symbol: str) -> bool:
        return f"unary{symbol}" in self._operators

    def is_binary(self, symbol: str) -> bool:
        descriptor = self._operators.get(symbol)
        return descriptor is not None and descriptor.arity == 2

    def all_operators(self) -> list[OperatorDescriptor]:
        return list(self._operators.values())

    def match_operator(self, text: str, position: int) -> str | None:
        """Longest registered operator symbol starting at ``position``."""
        for symbol in self._symbols_longest_first:
            if text.startswith(symbol, position):
                return symbol
        return None

    # -- functions and constants ------------------------------------------

    def is_function(self, name: str) -> bool:
        return self._functions is not None and self._functions.has_function(name)

    def is_constant(self, name: str) -> bool:
        return name.lower() in self._constants

    def constant_descriptor(self, name: str) -> ConstantDescriptor | None:
        return self._constants.get(name.lower())

    def get_constant(
        self, name: str, precision: int | None = None, rounding: str = ROUND_HALF_EVEN
    ) -> Value:
        """Value of a constant; with ``precision`` it is computed to that many digits."""
        descriptor = self._constants.get(name.lower())
        if descriptor is None:
            raise UnknownIdentifierError(name, "constant")
        if descriptor.is_complex:
            return Complex(0.0, 1.0)
        if precision is not None and descriptor.exact is not None:
            with mpmath.workdps(precision + 5):
                text = mpmath.nstr(descriptor.exact(), precision + 5, strip_zeros=False)
            return DecimalValue.from_text(text, precision, rounding)
        return Real(descriptor.value)

    def all_constants(self) -> list[ConstantDescriptor]:
        return list(self._constants.values())
