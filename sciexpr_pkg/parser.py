"""Shunting-yard conversion of a token sequence to reverse Polish notation.

The scan tracks whether the next token must be an operand. That single bit
tells unary from binary ``+``/``-`` and catches missing operands and
operators. Every ``(`` opens a frame; a frame opened right after a function
name is a call frame and counts its top-level commas, so each function token
reaches the output carrying the argument count it was called with.

``parse`` raises on the first problem; ``validate`` runs the same scan to the
end and returns every problem it finds.
"""

from __future__ import annotations

from dataclasses import dataclass, replace

from .config import MAX_NESTING_DEPTH
from .operators import LEFT, OperatorTable
from .tokenizer import Token, TokenKind
from .types import StructuralError, ValidationIssue

_OPERANDS = (TokenKind.NUMBER, TokenKind.CONSTANT, TokenKind.VARIABLE)


@dataclass
class _Frame:
    paren: Token
    is_call: bool
    commas: int = 0


class Parser:
    def __init__(self, table: OperatorTable, max_depth: int = MAX_NESTING_DEPTH) -> None:
        self.table = table
        self.max_depth = max_depth

    def parse(self, tokens: list[Token]) -> list[Token]:
        """Convert tokens to RPN.

        Raises:
            StructuralError: On the first structural problem found
        """
        return self._scan(tokens, None)

    def validate(self, tokens: list[Token]) -> list[ValidationIssue]:
        """Return every structural problem, plus arity mismatches of known functions."""
        issues: list[ValidationIssue] = []
        self._scan(tokens, issues)
        return issues

    @staticmethod
    def describe(rpn: list[Token]) -> str:
        """Readable RPN, with function tokens shown as ``name/argc``."""
        parts = []
        for token in rpn:
            if token.kind is TokenKind.FUNCTION:
                parts.append(f"{token.value}/{token.argc}")
            else:
                parts.append(token.value)
        return " ".join(parts)

    def _scan(self, tokens: list[Token], issues: list[ValidationIssue] | None) -> list[Token]:
        def report(message: str, code: str, position: int | None) -> None:
            if issues is None:
                raise StructuralError(message, position, code)
            issues.append(ValidationIssue(message, code, position))

        registry = self.table.functions
        output: list[Token] = []
        stack: list[Token] = []
        frames: list[_Frame] = []
        expect_operand = True
        previous: Token | None = None

        if not tokens or tokens[0].kind is TokenKind.END:
            report("Empty expression", "EMPTY_INPUT", 0)
            return output

        for index, token in enumerate(tokens):
            kind = token.kind

            if kind in _OPERANDS:
                if not expect_operand:
                    report(
                        f"Missing operator before '{token.value}' at position {token.position}",
                        "MISSING_OPERATOR",
                        token.position,
                    )
                output.append(token)
                expect_operand = False

            elif kind is TokenKind.FUNCTION:
                if not expect_operand:
                    report(
                        f"Missing operator before '{token.value}' at position {token.position}",
                        "MISSING_OPERATOR",
                        token.position,
                    )
                following = tokens[index + 1] if index + 1 < len(tokens) else None
                if following is None or following.kind is not TokenKind.LEFT_PAREN:
                    report(
                        f"Function '{token.value}' must be followed by '('",
                        "MISSING_PARENTHESIS",
                        token.position,
                    )
                    expect_operand = False
                else:
                    stack.append(token)
                    expect_operand = True

            elif kind is TokenKind.LEFT_PAREN:
                if not expect_operand:
                    report(
                        f"Missing operator before '(' at position {token.position}",
                        "MISSING_OPERATOR",
                        token.position,
                    )
                if len(frames) >= self.max_depth:
                    report(
                        f"Nesting deeper than {self.max_depth} levels",
                        "TOO_DEEP",
                        token.position,
                    )
                is_call = (
                    previous is not None
                    and previous.kind is TokenKind.FUNCTION
                    and bool(stack)
                    and stack[-1] is previous
                )
                frames.append(_Frame(token, is_call))
                stack.append(token)
                expect_operand = True

            elif kind is TokenKind.RIGHT_PAREN:
                if not frames:
                    report(
                        f"Unmatched right parenthesis at position {token.position}",
                        "UNMATCHED_RIGHT_PAREN",
                        token.position,
                    )
                    previous = token
                    continue
                frame = frames.pop()
                empty_call = (
                    frame.is_call and previous is not None and previous.kind is TokenKind.LEFT_PAREN
                )
                if expect_operand and not empty_call:
                    if previous is not None and previous.kind is TokenKind.COMMA:
                        report("Empty function argument", "EMPTY_ARGUMENT", token.position)
                    elif previous is not None and previous.kind is TokenKind.LEFT_PAREN:
                        report("Empty parentheses", "MISSING_OPERAND", token.position)
                    else:
                        report(
                            f"Missing operand before ')' at position {token.position}",
                            "MISSING_OPERAND",
                            token.position,
                        )
                while stack and stack[-1].kind is not TokenKind.LEFT_PAREN:
                    output.append(stack.pop())
                stack.pop()
                if frame.is_call:
                    function = stack.pop()
                    argc = 0 if empty_call else frame.commas + 1
                    if issues is not None and registry is not None:
                        problem = registry.check_call(function.value, argc)
                        if problem is not None:
                            issues.append(replace(problem, position=function.position))
                    output.append(replace(function, argc=argc))
                expect_operand = False

            elif kind is TokenKind.COMMA:
                if not frames or not frames[-1].is_call:
                    report(
                        f"Comma outside of a function call at position {token.position}",
                        "COMMA_OUTSIDE_CALL",
                        token.position,
                    )
                    previous = token
                    continue
                if expect_operand:
                    report("Empty function argument", "EMPTY_ARGUMENT", token.position)
                while stack and stack[-1].kind is not TokenKind.LEFT_PAREN:
                    output.append(stack.pop())
                frames[-1].commas += 1
                expect_operand = True

            elif kind is TokenKind.OPERATOR:
                if expect_operand:
                    unary = self.table.unary(token.value)
                    if unary is not None:
                        stack.append(replace(token, value=unary.key))
                    elif previous is not None and previous.kind is TokenKind.OPERATOR:
                        report(
                            f"Consecutive operators at position {token.position}",
                            "CONSECUTIVE_OPERATORS",
                            token.position,
                        )
                    else:
                        report(
                            f"Missing operand before '{token.value}' at position {token.position}",
                            "MISSING_OPERAND",
                            token.position,
                        )
                else:
                    incoming = self.table.get_operator(token.value)
                    if incoming is None or incoming.arity != 2:
                        report(
                            f"'{token.value}' is not a binary operator",
                            "UNKNOWN_OPERATOR",
                            token.position,
                        )
                    else:
                        while stack and stack[-1].kind is TokenKind.OPERATOR:
                            top = self.table.get_operator(stack[-1].value)
                            if top is None:
                                break
                            if top.precedence > incoming.precedence or (
                                top.precedence == incoming.precedence
                                and incoming.associativity == LEFT
                            ):
                                output.append(stack.pop())
                            else:
                                break
                        stack.append(token)
                    expect_operand = True

            elif kind is TokenKind.END:
                if expect_operand:
                    if previous is not None and previous.kind is TokenKind.OPERATOR:
                        report(
                            "Expression ends with an operator", "TRAILING_OPERATOR", token.position
                        )
                    else:
                        report("Unexpected end of expression", "MISSING_OPERAND", token.position)
                break

            previous = token

        while stack:
            top = stack.pop()
            if top.kind is TokenKind.LEFT_PAREN:
                report(
                    f"Unmatched left parenthesis at position {top.position}",
                    "UNMATCHED_LEFT_PAREN",
                    top.position,
                )
            elif top.kind is TokenKind.OPERATOR:
                output.append(top)
        return output
