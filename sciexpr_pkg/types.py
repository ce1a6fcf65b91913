"""Type definitions, result dataclasses and the error hierarchy."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .modes import ModeState
    from .numeric import Value


class CalculatorError(Exception):
    """Base class for every error raised by the expression engine."""

    def __init__(self, message: str, code: str = "CALCULATOR_ERROR"):
        self.message = message
        self.code = code
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message


class LexError(CalculatorError):
    """Raised for unexpected characters and malformed numeric literals."""

    def __init__(self, message: str, position: int | None = None, code: str = "LEX_ERROR"):
        self.position = position
        super().__init__(message, code)


class StructuralError(CalculatorError):
    """Raised when the token sequence is not a well-formed expression."""

    def __init__(
        self, message: str, position: int | None = None, code: str = "STRUCTURAL_ERROR"
    ):
        self.position = position
        super().__init__(message, code)


class UnknownIdentifierError(CalculatorError):
    """Raised when an identifier has no binding at evaluation time."""

    def __init__(self, name: str, kind: str = "identifier"):
        self.name = name
        super().__init__(f"Unknown {kind}: {name}", "UNKNOWN_IDENTIFIER")


class ArityError(CalculatorError):
    """Raised when a function or operator receives the wrong number of operands."""

    def __init__(self, message: str):
        super().__init__(message, "ARITY_ERROR")


class DivisionByZeroError(CalculatorError):
    """Raised by division, modulo, floor division and complex reciprocal of zero."""

    def __init__(self, message: str = "Division by zero"):
        super().__init__(message, "DIVISION_BY_ZERO")


class NumericError(CalculatorError):
    """Raised when a numeric result overflows, underflows or is undefined."""

    OVERFLOW = "OVERFLOW"
    UNDERFLOW = "UNDERFLOW"
    INVALID_OPERATION = "INVALID_OPERATION"

    def __init__(self, message: str, kind: str = INVALID_OPERATION):
        self.kind = kind
        super().__init__(message, kind)


class ModeConfigurationError(CalculatorError):
    """Raised for an invalid mode value or an out-of-range precision."""

    def __init__(self, message: str):
        super().__init__(message, "MODE_CONFIGURATION_ERROR")


class RegistrationError(CalculatorError):
    """Raised when a function, alias or operator cannot be registered."""

    def __init__(self, message: str, code: str = "REGISTRATION_ERROR"):
        super().__init__(message, code)


@dataclass(frozen=True)
class ValidationIssue:
    """One problem found by a non-throwing validation pass."""

    message: str
    code: str = "STRUCTURAL_ERROR"
    position: int | None = None

    @classmethod
    def from_error(cls, error: CalculatorError) -> ValidationIssue:
        return cls(error.message, error.code, getattr(error, "position", None))

    def __str__(self) -> str:
        return self.message


@dataclass(frozen=True)
class CalculationResult:
    """Result of running one expression through the full pipeline."""

    succeeded: bool
    value: Value | None = None
    formatted: str | None = None
    error: str | None = None
    error_code: str | None = None
    token_count: int = 0
    rpn_length: int = 0
    operation_count: int = 0
    elapsed_ms: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result_dict: dict[str, Any] = {"ok": self.succeeded}
        if self.formatted is not None:
            result_dict["result"] = self.formatted
        if self.value is not None:
            result_dict["type"] = self.value.kind
        if self.error is not None:
            result_dict["error"] = self.error
        if self.error_code is not None:
            result_dict["error_code"] = self.error_code
        result_dict["token_count"] = self.token_count
        result_dict["rpn_length"] = self.rpn_length
        result_dict["operation_count"] = self.operation_count
        result_dict["elapsed_ms"] = round(self.elapsed_ms, 3)
        return result_dict

    def __repr__(self) -> str:
        """Return string representation of the result."""
        if not self.succeeded:
            return f"CalculationResult(succeeded=False, error={self.error!r})"
        return f"CalculationResult(succeeded=True, formatted={self.formatted!r})"


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of validating an expression without evaluating it."""

    valid: bool
    errors: list[str] = field(default_factory=list)
    stage: str = "complete"  # "tokenization", "parsing", "complete", "error"
    token_count: int = 0
    rpn_length: int = 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result_dict: dict[str, Any] = {
            "valid": self.valid,
            "errors": list(self.errors),
            "stage": self.stage,
        }
        if self.valid:
            result_dict["token_count"] = self.token_count
            result_dict["rpn_length"] = self.rpn_length
        return result_dict


@dataclass(frozen=True)
class HistoryEntry:
    """A successful calculation recorded by the Calculator facade."""

    expression: str
    value: Value
    formatted: str
    timestamp: datetime
    modes: ModeState
