"""Stack evaluation of RPN token sequences."""

from __future__ import annotations

import decimal
import time
from dataclasses import dataclass
from typing import Mapping

from .functions import FunctionRegistry
from .logging_config import get_logger
from .modes import ScientificModes
from .numeric import Value, promote, to_value
from .operators import OperatorTable
from .tokenizer import Token, TokenKind
from .types import (
    ArityError,
    CalculatorError,
    DivisionByZeroError,
    NumericError,
    StructuralError,
    UnknownIdentifierError,
)

logger = get_logger("evaluator")


@dataclass(frozen=True)
class EvaluationOutcome:
    value: Value
    operations: int
    elapsed_ms: float


class Evaluator:
    """Evaluates RPN produced by the parser.

    Holds no state between calls; variables and modes are passed in.
    """

    def __init__(self, table: OperatorTable, functions: FunctionRegistry | None = None) -> None:
        self.table = table
        self.functions = functions if functions is not None else table.functions

    def evaluate(
        self,
        rpn: list[Token],
        modes: ScientificModes,
        variables: Mapping[str, Value] | None = None,
    ) -> EvaluationOutcome:
        """Evaluate an RPN sequence to a single value.

        Raises:
            CalculatorError: Any engine error; Python arithmetic exceptions
                are translated to DivisionByZeroError or NumericError
        """
        start = time.perf_counter()
        bindings = variables if variables is not None else {}
        stack: list[Value] = []
        operations = 0

        try:
            for token in rpn:
                if self._step(token, stack, modes, bindings):
                    operations += 1
        except CalculatorError:
            raise
        except ZeroDivisionError as e:
            raise DivisionByZeroError() from e
        except OverflowError as e:
            raise NumericError("Overflow: result exceeds the double range", NumericError.OVERFLOW) from e
        except decimal.Overflow as e:
            raise NumericError("Overflow: decimal exponent out of range", NumericError.OVERFLOW) from e
        except (ValueError, ArithmeticError) as e:
            raise NumericError(f"Invalid operation: {e}") from e

        if len(stack) != 1:
            raise StructuralError(
                f"Invalid expression: {len(stack)} values left after evaluation", None, "INVALID_STACK"
            )
        elapsed_ms = (time.perf_counter() - start) * 1000
        return EvaluationOutcome(stack[0], operations, elapsed_ms)

    def _step(
        self,
        token: Token,
        stack: list[Value],
        modes: ScientificModes,
        bindings: Mapping[str, Value],
    ) -> bool:
        """Apply one token to the stack; returns whether it counted as an operation."""
        kind = token.kind

        if kind is TokenKind.NUMBER:
            stack.append(modes.coerce_literal(token.value))
            return False

        if kind is TokenKind.CONSTANT:
            if modes.precision_mode == "decimal":
                value = self.table.get_constant(token.value, modes.precision, modes.decimal_rounding)
            else:
                value = self.table.get_constant(token.value)
            stack.append(modes.normalize(value))
            return False

        if kind is TokenKind.VARIABLE:
            if token.value not in bindings:
                raise UnknownIdentifierError(token.value, "variable")
            stack.append(modes.normalize(bindings[token.value]))
            return False

        if kind is TokenKind.FUNCTION:
            descriptor = self.functions.get_function(token.value) if self.functions else None
            if descriptor is None:
                raise UnknownIdentifierError(token.value, "function")
            if token.argc is None:
                if descriptor.is_variadic:
                    raise ArityError(f"Argument count of {descriptor.name} call is unknown")
                argc = descriptor.arity
            else:
                argc = token.argc
            problem = descriptor.arity_problem(argc)
            if problem is not None:
                raise ArityError(problem)
            if len(stack) < argc:
                raise StructuralError(
                    f"Not enough operands for function {descriptor.name}", token.position, "STACK_UNDERFLOW"
                )
            args = stack[len(stack) - argc :]
            del stack[len(stack) - argc :]
            result = to_value(descriptor.apply(*args), modes.precision)
            stack.append(modes.normalize(result))
            return True

        if kind is TokenKind.OPERATOR:
            operator = self.table.get_operator(token.value)
            if operator is None:
                raise UnknownIdentifierError(token.value, "operator")
            if len(stack) < operator.arity:
                raise StructuralError(
                    f"Not enough operands for operator '{operator.symbol}'",
                    token.position,
                    "STACK_UNDERFLOW",
                )
            if operator.is_unary:
                result = operator.apply(stack.pop())
            else:
                right = stack.pop()
                left = stack.pop()
                result = operator.apply(*promote(left, right))
            stack.append(modes.normalize(result))
            return True

        raise StructuralError(
            f"Unexpected token '{token.value}' in RPN", token.position, "UNEXPECTED_TOKEN"
        )
