"""Scientific evaluation modes.

A ``ScientificModes`` instance is the mutable holder every calculator owns.
It validates mode changes, converts angles between the configured unit and
radians, applies the rounding policy and decides how literals are typed and
how results are normalized for the active precision regime.
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from decimal import ROUND_CEILING, ROUND_DOWN, ROUND_FLOOR, ROUND_HALF_UP, Decimal, localcontext
from typing import Any

import mpmath

from .config import (
    ANGLE_MODES,
    COMPLEX_MODES,
    DEFAULT_ANGLE_MODE,
    DEFAULT_COMPLEX_MODE,
    DEFAULT_PRECISION,
    DEFAULT_PRECISION_MODE,
    DEFAULT_ROUNDING_MODE,
    MAX_INTEGER_EXPONENT,
    MAX_PRECISION,
    MIN_PRECISION,
    PRECISION_MODES,
    ROUNDING_MODE_ALIASES,
    ROUNDING_MODES,
)
from .logging_config import get_logger
from .numeric import (
    BigInt,
    Complex,
    DecimalValue,
    IEEE754Handler,
    Real,
    Value,
    is_integral,
    to_decimal,
    to_real,
)
from .types import ModeConfigurationError

logger = get_logger("modes")

# Rounding applied by decimal contexts while computing at the configured precision
_DECIMAL_ROUNDING = {
    "nearest": ROUND_HALF_UP,
    "up": ROUND_CEILING,
    "down": ROUND_FLOOR,
    "toward_zero": ROUND_DOWN,
}

_MODE_LABELS = {
    "rad": "Radians",
    "deg": "Degrees",
    "grad": "Gradians",
    "ieee754": "IEEE-754 double",
    "bigint": "Exact integers",
    "decimal": "Arbitrary-precision decimal",
    "off": "Real numbers only",
    "on": "Complex results kept",
    "auto": "Complex when needed",
}


@dataclass(frozen=True)
class ModeState:
    """Immutable snapshot of the evaluation modes."""

    angle_mode: str = DEFAULT_ANGLE_MODE
    precision_mode: str = DEFAULT_PRECISION_MODE
    complex_mode: str = DEFAULT_COMPLEX_MODE
    precision: int = DEFAULT_PRECISION
    rounding_mode: str = DEFAULT_ROUNDING_MODE

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def _choose(value: str, allowed: tuple[str, ...], label: str, aliases: dict[str, str] | None = None) -> str:
    if not isinstance(value, str):
        raise ModeConfigurationError(f"Invalid {label} mode: {value!r}")
    normalized = value.strip().lower()
    if aliases:
        normalized = aliases.get(normalized, normalized)
    if normalized not in allowed:
        raise ModeConfigurationError(
            f"Invalid {label} mode: {value!r} (expected one of: {', '.join(allowed)})"
        )
    return normalized


class ScientificModes:
    """Mutable mode holder with validated setters."""

    def __init__(self) -> None:
        self._apply_defaults()

    def _apply_defaults(self) -> None:
        self._angle_mode = DEFAULT_ANGLE_MODE
        self._precision_mode = DEFAULT_PRECISION_MODE
        self._complex_mode = DEFAULT_COMPLEX_MODE
        self._precision = DEFAULT_PRECISION
        self._rounding_mode = DEFAULT_ROUNDING_MODE

    # -- setters -----------------------------------------------------------

    def set_angle_mode(self, mode: str) -> None:
        self._angle_mode = _choose(mode, ANGLE_MODES, "angle")
        logger.debug(f"Angle mode set to {self._angle_mode}")

    def set_precision_mode(self, mode: str) -> None:
        self._precision_mode = _choose(mode, PRECISION_MODES, "precision")
        logger.debug(f"Precision mode set to {self._precision_mode}")

    def set_complex_mode(self, mode: str) -> None:
        self._complex_mode = _choose(mode, COMPLEX_MODES, "complex")
        logger.debug(f"Complex mode set to {self._complex_mode}")

    def set_precision(self, digits: int) -> None:
        if isinstance(digits, bool) or not isinstance(digits, int):
            raise ModeConfigurationError(f"Precision must be an integer, got {digits!r}")
        if not MIN_PRECISION <= digits <= MAX_PRECISION:
            raise ModeConfigurationError(
                f"Precision must be between {MIN_PRECISION} and {MAX_PRECISION}, got {digits}"
            )
        self._precision = digits
        logger.debug(f"Precision set to {digits} digits")

    def set_rounding_mode(self, mode: str) -> None:
        self._rounding_mode = _choose(mode, ROUNDING_MODES, "rounding", ROUNDING_MODE_ALIASES)
        logger.debug(f"Rounding mode set to {self._rounding_mode}")

    # -- getters -----------------------------------------------------------

    @property
    def angle_mode(self) -> str:
        return self._angle_mode

    @property
    def precision_mode(self) -> str:
        return self._precision_mode

    @property
    def complex_mode(self) -> str:
        return self._complex_mode

    @property
    def precision(self) -> int:
        return self._precision

    @property
    def rounding_mode(self) -> str:
        return self._rounding_mode

    @property
    def complex_enabled(self) -> bool:
        return self._complex_mode != "off"

    @property
    def decimal_rounding(self) -> str:
        """The ``decimal`` module rounding constant matching the rounding policy."""
        return _DECIMAL_ROUNDING[self._rounding_mode]

    # -- angle conversion ----------------------------------------------------

    def _angle_factor(self, value: Any) -> Any:
        pi = mpmath.pi if isinstance(value, (mpmath.mpf, mpmath.mpc)) else math.pi
        if self._angle_mode == "deg":
            return pi / 180
        return pi / 200

    def to_radians(self, value: Any) -> Any:
        """Convert an angle in the configured unit to radians."""
        if self._angle_mode == "rad":
            return value
        return value * self._angle_factor(value)

    def from_radians(self, value: Any) -> Any:
        """Convert an angle in radians to the configured unit."""
        if self._angle_mode == "rad":
            return value
        return value / self._angle_factor(value)

    # -- rounding ------------------------------------------------------------

    def _round_float(self, number: float) -> float:
        if not math.isfinite(number):
            return number
        if self._rounding_mode == "nearest":
            return float(math.floor(number + 0.5))
        if self._rounding_mode == "up":
            return float(math.ceil(number))
        if self._rounding_mode == "down":
            return float(math.floor(number))
        return float(math.trunc(number))

    def _round_decimal(self, value: DecimalValue) -> DecimalValue:
        number = value.value
        with localcontext() as ctx:
            ctx.prec = max(value.precision, number.adjusted() + 2, 2)
            if self._rounding_mode == "nearest":
                number = (number + Decimal("0.5")).to_integral_value(rounding=ROUND_FLOOR)
            else:
                number = number.to_integral_value(rounding=_DECIMAL_ROUNDING[self._rounding_mode])
        return DecimalValue(number, value.precision, value.rounding)

    def round(self, value: Value) -> Value:
        """Round to an integer according to the rounding policy."""
        if isinstance(value, BigInt):
            return value
        if isinstance(value, DecimalValue):
            return self._round_decimal(value)
        if isinstance(value, Complex):
            return Complex(self._round_float(value.real), self._round_float(value.imag))
        return Real(self._round_float(value.value))

    # -- regime handling ---------------------------------------------------

    def coerce_literal(self, text: str) -> Value:
        """Type a numeric literal for the active precision regime."""
        if self._precision_mode == "decimal":
            return DecimalValue.from_text(text, self._precision, self.decimal_rounding)
        if self._precision_mode == "bigint":
            exact = Decimal(text)
            if (
                exact.is_finite()
                and exact.adjusted() <= MAX_INTEGER_EXPONENT
                and exact == exact.to_integral_value()
            ):
                return BigInt(int(exact))
        return Real(IEEE754Handler.check(float(text)))

    def normalize(self, value: Value) -> Value:
        """Bring an operation result into the active regime and complex policy."""
        if isinstance(value, Complex):
            if self._complex_mode == "on" or not value.is_real():
                IEEE754Handler.check_invalid_operation(value.real)
                IEEE754Handler.check_invalid_operation(value.imag)
                IEEE754Handler.check_overflow(value.real)
                IEEE754Handler.check_overflow(value.imag)
                return value
            value = Real(value.real)

        if isinstance(value, Real):
            IEEE754Handler.check(value.value)

        if self._precision_mode == "decimal":
            return to_decimal(value, self._precision, self.decimal_rounding)
        if self._precision_mode == "bigint":
            if isinstance(value, DecimalValue):
                value = to_real(value)
            if isinstance(value, Real) and is_integral(value):
                return BigInt(int(value.value))
            return value
        if isinstance(value, (BigInt, DecimalValue)):
            return Real(IEEE754Handler.check(to_real(value).value))
        return value

    # -- state ---------------------------------------------------------------

    def reset(self) -> None:
        self._apply_defaults()
        logger.debug("Modes reset to defaults")

    def snapshot(self) -> ModeState:
        return ModeState(
            angle_mode=self._angle_mode,
            precision_mode=self._precision_mode,
            complex_mode=self._complex_mode,
            precision=self._precision,
            rounding_mode=self._rounding_mode,
        )

    def summary(self) -> dict[str, Any]:
        """Mode values plus a readable label for each of them."""
        state = self.snapshot().to_dict()
        state["labels"] = {
            "angle_mode": _MODE_LABELS[self._angle_mode],
            "precision_mode": _MODE_LABELS[self._precision_mode],
            "complex_mode": _MODE_LABELS[self._complex_mode],
        }
        return state

    def describe(self) -> str:
        return (
            f"angle={self._angle_mode} precision_mode={self._precision_mode} "
            f"complex={self._complex_mode} digits={self._precision} "
            f"rounding={self._rounding_mode}"
        )
