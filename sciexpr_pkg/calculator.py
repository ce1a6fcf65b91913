"""Calculator facade tying the tokenizer, parser and evaluator together.

Each ``Calculator`` owns its own modes, function registry, operator table,
variable bindings and bounded history. Nothing is shared between instances.

Example:
    >>> calc = Calculator()
    >>> calc.calculate("2 + 3 * 4").formatted
    '14'
    >>> calc.set_angle_mode("deg")
    >>> calc.calculate("sin(30)").formatted
    '0.5'
"""

from __future__ import annotations

from collections import deque
from datetime import datetime
from typing import Any, Callable

import mpmath

from .config import (
    HISTORY_SIZE,
    INTEGRATION_MAX_DEGREE,
    MAX_NESTING_DEPTH,
    MAX_ROOT_STEPS,
    OUTPUT_PRECISION,
    ROOT_SEARCH_TOLERANCE,
    VAR_NAME_RE,
)
from .evaluator import Evaluator
from .functions import FunctionRegistry
from .logging_config import get_logger
from .modes import ScientificModes
from .numeric import Real, Value, format_value, to_float, to_python, to_value
from .operators import LEFT, RIGHT, OperatorDescriptor, OperatorTable
from .parser import Parser
from .scientific import ScientificFunctions
from .tokenizer import Token, Tokenizer
from .types import (
    CalculationResult,
    CalculatorError,
    DivisionByZeroError,
    HistoryEntry,
    LexError,
    RegistrationError,
    StructuralError,
    ValidationResult,
)

logger = get_logger("calculator")


def _guarded_modulo(a: Value, b: Value) -> Value:
    if b.is_zero():
        raise DivisionByZeroError("Modulo by zero")
    return a.modulo(b)


def _guarded_floor_divide(a: Value, b: Value) -> Value:
    if b.is_zero():
        raise DivisionByZeroError("Division by zero")
    return a.floor_divide(b)


class Calculator:
    """Stateful expression calculator."""

    def __init__(self, history_size: int = HISTORY_SIZE, seed: int | None = None) -> None:
        self.modes = ScientificModes()
        self.functions = FunctionRegistry()
        self.table = OperatorTable(self.functions)
        self.scientific = ScientificFunctions(self.modes, seed)
        self.scientific.register_builtins(self.functions)
        self._install_operators()

        self.tokenizer = Tokenizer(self.table)
        self.parser = Parser(self.table)
        self.evaluator = Evaluator(self.table, self.functions)

        self._variables: dict[str, Value] = {}
        self._history: deque[HistoryEntry] = deque(maxlen=history_size)
        self._last_result: CalculationResult | None = None
        self._counters = {"calculations": 0, "succeeded": 0, "failed": 0}
        self._call_depth = 0

    def _install_operators(self) -> None:
        # Exponentiation binds tighter than unary minus: -x^2 is -(x^2)
        for symbol in ("^", "**"):
            self.table.extend_operator(
                OperatorDescriptor(symbol, symbol, 2, 9, RIGHT, self.scientific.pow, "Exponentiation")
            )
        self.table.extend_operator(
            OperatorDescriptor("%", "%", 2, 6, LEFT, _guarded_modulo, "Remainder")
        )
        self.table.extend_operator(
            OperatorDescriptor("//", "//", 2, 6, LEFT, _guarded_floor_divide, "Floor division")
        )

    # -- pipeline ------------------------------------------------------------

    def _compile(self, expression: str) -> tuple[list[Token], list[Token]]:
        tokens = self.tokenizer.tokenize(expression, self.modes)
        return tokens, self.parser.parse(tokens)

    def calculate(self, expression: str) -> CalculationResult:
        """Evaluate an expression. Never raises; failures are reported in the result."""
        self._counters["calculations"] += 1
        token_count = 0
        rpn_length = 0
        try:
            tokens = self.tokenizer.tokenize(expression, self.modes)
            token_count = len(tokens) - 1
            rpn = self.parser.parse(tokens)
            rpn_length = len(rpn)
            outcome = self.evaluator.evaluate(rpn, self.modes, self._variables)
        except CalculatorError as e:
            logger.debug(f"Calculation failed: {e.code} - {e.message}")
            return self._failure(e.message, e.code, token_count, rpn_length)
        except Exception as e:
            logger.warning(f"Unexpected error evaluating {expression!r}: {e}", exc_info=True)
            return self._failure(f"Internal error: {e}", "INTERNAL_ERROR", token_count, rpn_length)

        return self._success(
            expression,
            outcome.value,
            token_count=token_count,
            rpn_length=rpn_length,
            operation_count=outcome.operations,
            elapsed_ms=outcome.elapsed_ms,
        )

    def _success(self, expression: str, value: Value, **counts: Any) -> CalculationResult:
        formatted = self.format_value(value)
        result = CalculationResult(succeeded=True, value=value, formatted=formatted, **counts)
        self._history.append(
            HistoryEntry(expression, value, formatted, datetime.now(), self.modes.snapshot())
        )
        self._last_result = result
        self._counters["succeeded"] += 1
        return result

    def _failure(
        self, message: str, code: str, token_count: int = 0, rpn_length: int = 0
    ) -> CalculationResult:
        self._counters["failed"] += 1
        return CalculationResult(
            succeeded=False,
            error=message,
            error_code=code,
            token_count=token_count,
            rpn_length=rpn_length,
        )

    def validate_expression(self, expression: str) -> ValidationResult:
        """Check an expression without evaluating it."""
        try:
            tokens = self.tokenizer.tokenize(expression, self.modes)
        except LexError as e:
            return ValidationResult(valid=False, errors=[e.message], stage="tokenization")

        try:
            issues = self.tokenizer.validate(tokens)
            if issues:
                return ValidationResult(
                    valid=False, errors=[str(i) for i in issues], stage="tokenization"
                )
            issues = self.parser.validate(tokens)
            if issues:
                return ValidationResult(valid=False, errors=[str(i) for i in issues], stage="parsing")
            rpn = self.parser.parse(tokens)
        except CalculatorError as e:
            return ValidationResult(valid=False, errors=[e.message], stage="error")
        except Exception as e:
            logger.warning(f"Unexpected error validating {expression!r}: {e}", exc_info=True)
            return ValidationResult(valid=False, errors=[f"Internal error: {e}"], stage="error")

        return ValidationResult(
            valid=True, stage="complete", token_count=len(tokens) - 1, rpn_length=len(rpn)
        )

    def to_rpn(self, expression: str) -> str:
        """RPN form of an expression, e.g. ``2 3 4 * +``.

        Raises:
            CalculatorError: If the expression does not tokenize or parse
        """
        _, rpn = self._compile(expression)
        return self.parser.describe(rpn)

    def assign(self, name: str, expression: str) -> CalculationResult:
        """Evaluate ``expression`` and bind the result to ``name`` on success."""
        try:
            self._check_variable_name(name)
        except CalculatorError as e:
            return self._failure(e.message, e.code)
        result = self.calculate(expression)
        if result.succeeded and result.value is not None:
            self._variables[name] = result.value
        return result

    # -- numeric helpers -----------------------------------------------------

    def _scalar_function(self, expression: str, variable: str) -> Callable[[Any], float]:
        self._check_variable_name(variable)
        _, rpn = self._compile(expression)

        def f(x: Any) -> float:
            scope = {**self._variables, variable: Real(float(x))}
            return to_float(self.evaluator.evaluate(rpn, self.modes, scope).value)

        return f

    def solve(self, expression: str, variable: str = "x", guess: float = 0.0) -> CalculationResult:
        """Find a root of ``expression`` in ``variable`` near ``guess``."""
        self._counters["calculations"] += 1
        try:
            f = self._scalar_function(expression, variable)
            with mpmath.workprec(53):
                root = mpmath.findroot(f, guess, tol=ROOT_SEARCH_TOLERANCE, maxsteps=MAX_ROOT_STEPS)
            value = self.modes.normalize(Real(float(root)))
        except CalculatorError as e:
            return self._failure(e.message, e.code)
        except (ValueError, ZeroDivisionError) as e:
            logger.debug(f"Root search failed for {expression!r}: {e}")
            return self._failure(f"No root found near {guess}", "NO_CONVERGENCE")
        return self._success(f"solve({expression}, {variable})", value)

    def integrate(
        self, expression: str, lower: float, upper: float, variable: str = "x"
    ) -> CalculationResult:
        """Numerically integrate ``expression`` over [lower, upper]."""
        self._counters["calculations"] += 1
        try:
            f = self._scalar_function(expression, variable)
            with mpmath.workprec(53):
                area = mpmath.quad(f, [lower, upper], maxdegree=INTEGRATION_MAX_DEGREE)
            value = self.modes.normalize(Real(float(area)))
        except CalculatorError as e:
            return self._failure(e.message, e.code)
        except (ValueError, ZeroDivisionError) as e:
            logger.debug(f"Integration failed for {expression!r}: {e}")
            return self._failure(f"Integration failed: {e}", "INVALID_OPERATION")
        return self._success(f"integrate({expression}, {variable}, {lower}, {upper})", value)

    def format_value(self, value: Value) -> str:
        return format_value(value, OUTPUT_PRECISION)

    # -- variables -----------------------------------------------------------

    def _check_variable_name(self, name: str) -> None:
        if not isinstance(name, str) or not VAR_NAME_RE.match(name):
            raise CalculatorError(f"Invalid variable name: {name!r}", "INVALID_VARIABLE_NAME")
        if self.table.is_function(name) or self.table.is_constant(name):
            raise CalculatorError(
                f"'{name}' is a function or constant and cannot be used as a variable", "NAME_IN_USE"
            )

    def set_variable(self, name: str, value: Any) -> None:
        self._check_variable_name(name)
        self._variables[name] = to_value(value, self.modes.precision)

    def get_variable(self, name: str) -> Value | None:
        return self._variables.get(name)

    def has_variable(self, name: str) -> bool:
        return name in self._variables

    def delete_variable(self, name: str) -> bool:
        return self._variables.pop(name, None) is not None

    def variables(self) -> dict[str, Value]:
        return dict(self._variables)

    def clear_variables(self) -> None:
        self._variables.clear()

    # -- functions -----------------------------------------------------------

    def register_function(
        self,
        name: str,
        arity: int,
        impl: Callable[..., Any],
        description: str = "",
        category: str = "user",
    ) -> bool:
        """Register a Python callable; it receives and may return plain numbers."""
        if not callable(impl):
            raise RegistrationError(f"Implementation of {name} is not callable", "INVALID_FUNCTION")

        def apply(*args: Value) -> Value:
            return to_value(impl(*[to_python(a) for a in args]), self.modes.precision)

        registered = self.functions.register_function(
            name, arity, apply, description, category, user_defined=True
        )
        if registered:
            logger.debug(f"Registered user function {name}/{arity}")
        return registered

    def define_function(self, name: str, params: list[str], body: str) -> bool:
        """Define a function from an expression, e.g. ``f(x, y) = x^2 + y``.

        A user-defined function of the same name is replaced.

        Raises:
            RegistrationError: If a parameter name is invalid or a built-in is redefined
            CalculatorError: If the body does not parse
        """
        for param in params:
            if not VAR_NAME_RE.match(param):
                raise RegistrationError(f"Invalid parameter name: {param}", "INVALID_PARAMETER_NAME")
            if self.table.is_function(param) or self.table.is_constant(param):
                raise RegistrationError(
                    f"Parameter name {param} is already a function or constant", "NAME_IN_USE"
                )
        if len(set(params)) != len(params):
            raise RegistrationError("Duplicate parameter names", "INVALID_PARAMETER_NAME")

        existing = self.functions.get_function(name)
        if existing is not None and not existing.user_defined:
            raise RegistrationError(f"Cannot redefine built-in function: {name}", "BUILTIN_FUNCTION")

        _, rpn = self._compile(body)
        if existing is not None:
            self.functions.remove_function(name)

        def apply(*args: Value) -> Value:
            if self._call_depth >= MAX_NESTING_DEPTH:
                raise StructuralError(f"Recursion too deep in {name}", None, "TOO_DEEP")
            scope = {**self._variables, **dict(zip(params, args))}
            self._call_depth += 1
            try:
                return self.evaluator.evaluate(rpn, self.modes, scope).value
            finally:
                self._call_depth -= 1

        description = f"{name}({', '.join(params)}) = {body}"
        return self.functions.register_function(
            name, len(params), apply, description, "user", user_defined=True
        )

    def remove_function(self, name: str) -> bool:
        return self.functions.remove_function(name)

    def get_operators(self) -> list[dict[str, Any]]:
        return [
            {
                "key": op.key,
                "symbol": op.symbol,
                "arity": op.arity,
                "precedence": op.precedence,
                "associativity": op.associativity,
                "description": op.description,
            }
            for op in self.table.all_operators()
        ]

    def get_constants(self) -> list[dict[str, Any]]:
        return [
            {
                "name": c.name,
                "value": "i" if c.is_complex else format_value(Real(c.value)),
                "description": c.description,
            }
            for c in self.table.all_constants()
        ]

    def get_functions(self) -> list[dict[str, Any]]:
        return [self.functions.documentation(f.name) for f in self.functions.all_functions()]  # type: ignore[misc]

    def get_functions_by_category(self, category: str) -> list[str]:
        return [f.name for f in self.functions.functions_by_category(category)]

    def get_categories(self) -> list[str]:
        return self.functions.categories()

    def get_function_documentation(self, name: str) -> dict[str, Any] | None:
        return self.functions.documentation(name)

    def search_functions(self, query: str) -> list[str]:
        return [f.name for f in self.functions.search(query)]

    # -- modes ---------------------------------------------------------------

    def set_angle_mode(self, mode: str) -> None:
        self.modes.set_angle_mode(mode)

    def set_precision_mode(self, mode: str) -> None:
        self.modes.set_precision_mode(mode)

    def set_complex_mode(self, mode: str) -> None:
        self.modes.set_complex_mode(mode)

    def set_precision(self, digits: int) -> None:
        self.modes.set_precision(digits)

    def set_rounding_mode(self, mode: str) -> None:
        self.modes.set_rounding_mode(mode)

    def get_mode_summary(self) -> dict[str, Any]:
        return self.modes.summary()

    def reset_modes(self) -> None:
        self.modes.reset()

    # -- history and state ---------------------------------------------------

    def history(self) -> list[HistoryEntry]:
        """Successful calculations, oldest first."""
        return list(self._history)

    def clear_history(self) -> None:
        self._history.clear()

    def last_result(self) -> CalculationResult | None:
        return self._last_result

    def get_statistics(self) -> dict[str, Any]:
        return {
            **self._counters,
            "history_size": len(self._history),
            "variables": len(self._variables),
            "functions": self.functions.statistics(),
            "operators": len(self.table.all_operators()),
            "constants": len(self.table.all_constants()),
            "modes": self.modes.snapshot().to_dict(),
        }

    def reset(self) -> None:
        """Restore the freshly constructed state, dropping user functions."""
        self.clear_variables()
        self.clear_history()
        self.modes.reset()
        for descriptor in self.functions.all_functions():
            if descriptor.user_defined:
                self.functions.remove_function(descriptor.name)
        self._last_result = None
        for key in self._counters:
            self._counters[key] = 0
        logger.debug("Calculator reset")
