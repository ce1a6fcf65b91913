"""Public API for sciexpr - returns structured objects without side effects.

Every call builds a fresh Calculator, so no state leaks between calls.
"""

from __future__ import annotations

from typing import Any

from .calculator import Calculator
from .types import CalculationResult, CalculatorError, ValidationResult


def _configured_calculator(
    angle_mode: str | None = None,
    precision_mode: str | None = None,
    complex_mode: str | None = None,
    precision: int | None = None,
    rounding_mode: str | None = None,
    variables: dict[str, Any] | None = None,
) -> Calculator:
    calc = Calculator()
    if angle_mode is not None:
        calc.set_angle_mode(angle_mode)
    if precision_mode is not None:
        calc.set_precision_mode(precision_mode)
    if complex_mode is not None:
        calc.set_complex_mode(complex_mode)
    if precision is not None:
        calc.set_precision(precision)
    if rounding_mode is not None:
        calc.set_rounding_mode(rounding_mode)
    for name, value in (variables or {}).items():
        calc.set_variable(name, value)
    return calc


def evaluate(expression: str, **options: Any) -> CalculationResult:
    """Evaluate a mathematical expression.

    Args:
        expression: Expression string (e.g., "2+2", "sin(pi/2)")
        **options: Optional angle_mode, precision_mode, complex_mode,
            precision, rounding_mode and variables (name -> number)

    Returns:
        CalculationResult with the value and its formatted text, or the error

    Example:
        >>> from sciexpr_pkg.api import evaluate
        >>> evaluate("2^3^2").formatted
        '512'
        >>> evaluate("sqrt(-4)", complex_mode="on").formatted
        '2i'
    """
    try:
        calc = _configured_calculator(**options)
    except CalculatorError as e:
        return CalculationResult(succeeded=False, error=e.message, error_code=e.code)
    return calc.calculate(expression)


def validate_expression(expression: str, **options: Any) -> ValidationResult:
    """Check whether an expression is well formed without evaluating it.

    Example:
        >>> from sciexpr_pkg.api import validate_expression
        >>> validate_expression("(2+3").stage
        'tokenization'
    """
    try:
        calc = _configured_calculator(**options)
    except CalculatorError as e:
        return ValidationResult(valid=False, errors=[e.message], stage="error")
    return calc.validate_expression(expression)


def solve(expression: str, variable: str = "x", guess: float = 0.0, **options: Any) -> CalculationResult:
    """Find a root of ``expression`` in ``variable`` near ``guess``."""
    try:
        calc = _configured_calculator(**options)
    except CalculatorError as e:
        return CalculationResult(succeeded=False, error=e.message, error_code=e.code)
    return calc.solve(expression, variable, guess)


def integrate(
    expression: str, lower: float, upper: float, variable: str = "x", **options: Any
) -> CalculationResult:
    """Numerically integrate ``expression`` over [lower, upper]."""
    try:
        calc = _configured_calculator(**options)
    except CalculatorError as e:
        return CalculationResult(succeeded=False, error=e.message, error_code=e.code)
    return calc.integrate(expression, lower, upper, variable)
