"""Lexical analysis: expression text to a token sequence.

Identifiers are classified while lexing, so the parser and evaluator never
guess: registered function names become ``Function`` tokens, constants become
``Constant`` tokens and every other identifier is a ``Variable``.

A ``-`` in unary position (at the start, after ``(``, after ``,`` or after
another operator) immediately followed by a digit or ``.`` is folded into the
numeric literal. The literal then binds tighter than any operator, so
``-2^2`` evaluates to 4 while ``-(2^2)`` and ``0-2^2`` evaluate to -4.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from .config import MAX_INPUT_LENGTH
from .operators import OperatorTable
from .types import LexError, ValidationIssue

if TYPE_CHECKING:
    from .modes import ScientificModes

DIGITS = "0123456789"


class TokenKind(Enum):
    NUMBER = "Number"
    FUNCTION = "Function"
    CONSTANT = "Constant"
    VARIABLE = "Variable"
    OPERATOR = "Operator"
    LEFT_PAREN = "LeftParen"
    RIGHT_PAREN = "RightParen"
    COMMA = "Comma"
    END = "EndOfInput"


# Token kinds after which a + or - is a prefix operator
_UNARY_CONTEXT = (TokenKind.LEFT_PAREN, TokenKind.COMMA, TokenKind.OPERATOR)


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    value: str
    position: int
    argc: int | None = None  # set by the parser on Function tokens in RPN

    def __str__(self) -> str:
        return self.value


def _is_identifier_start(char: str) -> bool:
    return char.isalpha() or char == "_"


def _is_identifier_part(char: str) -> bool:
    return char.isalpha() or char in DIGITS or char == "_"


class Tokenizer:
    """Turns expression text into tokens using an operator table for classification."""

    def __init__(self, table: OperatorTable, max_length: int = MAX_INPUT_LENGTH) -> None:
        self.table = table
        self.max_length = max_length

    def tokenize(self, expression: str, modes: ScientificModes | None = None) -> list[Token]:
        """Tokenize an expression.

        Args:
            expression: Source text
            modes: Active modes; the imaginary unit ``i`` is only a constant
                while the complex policy is not ``off``

        Returns:
            Token list ending with exactly one EndOfInput token

        Raises:
            LexError: On unexpected characters, malformed numbers or oversized input
        """
        if not isinstance(expression, str):
            raise LexError("Expression must be a string", None, "INVALID_INPUT")
        if len(expression) > self.max_length:
            raise LexError(
                f"Expression too long ({len(expression)} characters, limit {self.max_length})",
                None,
                "TOO_LONG",
            )

        complex_enabled = modes is not None and modes.complex_enabled
        tokens: list[Token] = []
        pos = 0
        length = len(expression)

        while pos < length:
            char = expression[pos]

            if char.isspace():
                pos += 1
                continue

            unary_context = not tokens or tokens[-1].kind in _UNARY_CONTEXT

            if char in DIGITS or char == ".":
                pos = self._read_number(expression, pos, pos, tokens)
                continue

            if (
                char == "-"
                and unary_context
                and pos + 1 < length
                and (expression[pos + 1] in DIGITS or expression[pos + 1] == ".")
            ):
                pos = self._read_number(expression, pos, pos + 1, tokens)
                continue

            if _is_identifier_start(char):
                start = pos
                while pos < length and _is_identifier_part(expression[pos]):
                    pos += 1
                name = expression[start:pos]
                tokens.append(Token(self._classify(name, complex_enabled), name, start))
                continue

            if char == "(":
                tokens.append(Token(TokenKind.LEFT_PAREN, char, pos))
                pos += 1
                continue
            if char == ")":
                tokens.append(Token(TokenKind.RIGHT_PAREN, char, pos))
                pos += 1
                continue
            if char == ",":
                tokens.append(Token(TokenKind.COMMA, char, pos))
                pos += 1
                continue

            symbol = self.table.match_operator(expression, pos)
            if symbol is not None:
                tokens.append(Token(TokenKind.OPERATOR, symbol, pos))
                pos += len(symbol)
                continue

            raise LexError(
                f"Unexpected character '{char}' at position {pos}", pos, "UNEXPECTED_CHARACTER"
            )

        tokens.append(Token(TokenKind.END, "", length))
        return tokens

    @staticmethod
    def _read_number(expression: str, start: int, pos: int, tokens: list[Token]) -> int:
        length = len(expression)
        while pos < length and (expression[pos] in DIGITS or expression[pos] == "."):
            pos += 1
        if pos < length and expression[pos] in "eE":
            look = pos + 1
            if look < length and expression[look] in "+-":
                look += 1
            if look < length and expression[look] in DIGITS:
                pos = look
                while pos < length and expression[pos] in DIGITS:
                    pos += 1
        text = expression[start:pos]
        try:
            float(text)
        except ValueError:
            raise LexError(
                f"Invalid number '{text}' at position {start}", start, "INVALID_NUMBER"
            ) from None
        tokens.append(Token(TokenKind.NUMBER, text, start))
        return pos

    def _classify(self, name: str, complex_enabled: bool) -> TokenKind:
        if self.table.is_function(name):
            return TokenKind.FUNCTION
        if self.table.is_constant(name):
            descriptor = self.table.constant_descriptor(name)
            if descriptor is not None and descriptor.is_complex and not complex_enabled:
                return TokenKind.VARIABLE
            return TokenKind.CONSTANT
        return TokenKind.VARIABLE

    def validate(self, tokens: list[Token]) -> list[ValidationIssue]:
        """Cheap structural checks over a token list, without raising."""
        issues: list[ValidationIssue] = []
        meaningful = [t for t in tokens if t.kind is not TokenKind.END]
        if not meaningful:
            issues.append(ValidationIssue("Empty expression", "EMPTY_INPUT", 0))
            return issues

        depth = 0
        previous: Token | None = None
        for token in meaningful:
            if token.kind is TokenKind.LEFT_PAREN:
                depth += 1
            elif token.kind is TokenKind.RIGHT_PAREN:
                if depth == 0:
                    issues.append(
                        ValidationIssue(
                            f"Unmatched right parenthesis at position {token.position}",
                            "UNMATCHED_RIGHT_PAREN",
                            token.position,
                        )
                    )
                else:
                    depth -= 1
            elif (
                token.kind is TokenKind.OPERATOR
                and previous is not None
                and previous.kind is TokenKind.OPERATOR
                and not self.table.can_be_unary(token.value)
            ):
                issues.append(
                    ValidationIssue(
                        f"Consecutive operators '{previous.value}' and '{token.value}' "
                        f"at position {token.position}",
                        "CONSECUTIVE_OPERATORS",
                        token.position,
                    )
                )
            previous = token

        if depth > 0:
            issues.append(
                ValidationIssue(
                    f"Unmatched left parenthesis ({depth} unclosed)", "UNMATCHED_LEFT_PAREN"
                )
            )
        return issues

    @staticmethod
    def render(tokens: list[Token]) -> str:
        """Canonical text form: token values separated by single spaces."""
        return " ".join(t.value for t in tokens if t.kind is not TokenKind.END)
