"""Numeric value types and the promotion rules between them.

Four value kinds take part in every calculation:

- ``Real``: an IEEE-754 double
- ``Complex``: a pair of doubles with arithmetic written out directly and the
  transcendental functions derived from the exponential identities
- ``DecimalValue``: an exact base-10 number (``decimal.Decimal``, i.e. a scaled
  integer with an exponent) carrying its own precision and rounding
- ``BigInt``: an arbitrary-size Python ``int``

Binary operators receive the promoted common type of their operands:
any Complex promotes both sides to Complex, otherwise any Decimal promotes
both sides to Decimal at the larger precision, two BigInts stay BigInt,
and everything else falls back to Real.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from decimal import ROUND_HALF_EVEN, Decimal, localcontext
from typing import Any, ClassVar, Union

import numpy as np

from .config import DEFAULT_PRECISION, MAX_INTEGER_EXPONENT, OUTPUT_PRECISION
from .types import DivisionByZeroError, NumericError

_FLOAT_INFO = np.finfo(np.float64)
MAX_VALUE = float(_FLOAT_INFO.max)
MIN_VALUE = float(_FLOAT_INFO.tiny)  # smallest normal double
EPSILON = float(_FLOAT_INFO.eps)
_DIRECT_STR_LIMIT = 10**1000  # ints below this convert with str() directly


class _ValueMixin:
    kind: ClassVar[str] = "value"

    def __str__(self) -> str:
        return format_value(self)  # type: ignore[arg-type]


@dataclass(frozen=True)
class Real(_ValueMixin):
    """An IEEE-754 double precision value."""

    value: float
    kind: ClassVar[str] = "real"

    def add(self, other: Real) -> Real:
        return Real(self.value + other.value)

    def subtract(self, other: Real) -> Real:
        return Real(self.value - other.value)

    def multiply(self, other: Real) -> Real:
        return Real(self.value * other.value)

    def divide(self, other: Real) -> Real:
        if other.value == 0:
            raise DivisionByZeroError("Division by zero")
        return Real(self.value / other.value)

    def modulo(self, other: Real) -> Real:
        if other.value == 0:
            raise DivisionByZeroError("Modulo by zero")
        return Real(math.fmod(self.value, other.value))

    def floor_divide(self, other: Real) -> Real:
        if other.value == 0:
            raise DivisionByZeroError("Division by zero")
        return Real(float(math.floor(self.value / other.value)))

    def power(self, other: Real) -> Real:
        result = self.value**other.value
        if isinstance(result, complex):
            raise NumericError(
                "Domain error: negative base with non-integer exponent",
                NumericError.INVALID_OPERATION,
            )
        return Real(result)

    def negate(self) -> Real:
        return Real(-self.value)

    def is_zero(self) -> bool:
        return self.value == 0


@dataclass(frozen=True)
class BigInt(_ValueMixin):
    """An exact integer of unbounded size."""

    value: int
    kind: ClassVar[str] = "bigint"

    def add(self, other: BigInt) -> BigInt:
        return BigInt(self.value + other.value)

    def subtract(self, other: BigInt) -> BigInt:
        return BigInt(self.value - other.value)

    def multiply(self, other: BigInt) -> BigInt:
        return BigInt(self.value * other.value)

    def divide(self, other: BigInt) -> BigInt | Real:
        if other.value == 0:
            raise DivisionByZeroError("Division by zero")
        quotient, remainder = divmod(self.value, other.value)
        if remainder == 0:
            return BigInt(quotient)
        return Real(self.value / other.value)

    def modulo(self, other: BigInt) -> BigInt:
        if other.value == 0:
            raise DivisionByZeroError("Modulo by zero")
        remainder = abs(self.value) % abs(other.value)
        return BigInt(-remainder if self.value < 0 else remainder)

    def floor_divide(self, other: BigInt) -> BigInt:
        if other.value == 0:
            raise DivisionByZeroError("Division by zero")
        return BigInt(self.value // other.value)

    def power(self, other: BigInt) -> BigInt | Real:
        exponent = other.value
        if exponent < 0:
            if self.value == 0:
                raise DivisionByZeroError("Zero raised to a negative power")
            return Real(self.value**exponent)
        if exponent > MAX_INTEGER_EXPONENT and abs(self.value) > 1:
            raise NumericError(
                f"Exponent {exponent} exceeds the exact integer limit ({MAX_INTEGER_EXPONENT})",
                NumericError.OVERFLOW,
            )
        return BigInt(self.value**exponent)

    def negate(self) -> BigInt:
        return BigInt(-self.value)

    def is_zero(self) -> bool:
        return self.value == 0


@dataclass(frozen=True)
class Complex(_ValueMixin):
    """A complex number with double precision components."""

    real: float
    imag: float = 0.0
    kind: ClassVar[str] = "complex"

    def add(self, other: Complex) -> Complex:
        return Complex(self.real + other.real, self.imag + other.imag)

    def subtract(self, other: Complex) -> Complex:
        return Complex(self.real - other.real, self.imag - other.imag)

    def multiply(self, other: Complex) -> Complex:
        return Complex(
            self.real * other.real - self.imag * other.imag,
            self.real * other.imag + self.imag * other.real,
        )

    def divide(self, other: Complex) -> Complex:
        denominator = other.real * other.real + other.imag * other.imag
        if denominator == 0:
            raise DivisionByZeroError("Division by zero in complex numbers")
        return Complex(
            (self.real * other.real + self.imag * other.imag) / denominator,
            (self.imag * other.real - self.real * other.imag) / denominator,
        )

    def reciprocal(self) -> Complex:
        magnitude_sq = self.real * self.real + self.imag * self.imag
        if magnitude_sq == 0:
            raise DivisionByZeroError("Division by zero in complex reciprocal")
        return Complex(self.real / magnitude_sq, -self.imag / magnitude_sq)

    def modulo(self, other: Complex) -> Complex:
        raise NumericError("Modulo is not defined for complex numbers")

    def floor_divide(self, other: Complex) -> Complex:
        raise NumericError("Floor division is not defined for complex numbers")

    def power(self, other: Complex) -> Complex:
        if other.imag == 0 and float(other.real).is_integer():
            return self.integer_power(int(other.real))
        if self.is_zero():
            if other.real > 0:
                return Complex(0.0, 0.0)
            raise DivisionByZeroError("Zero raised to a non-positive power")
        # z^w = e^(w * ln(z))
        return other.multiply(self.ln()).exp()

    def integer_power(self, n: int) -> Complex:
        if n == 0:
            return Complex(1.0, 0.0)
        if n < 0:
            return self.integer_power(-n).reciprocal()
        result = Complex(1.0, 0.0)
        base = self
        while n > 0:
            if n % 2 == 1:
                result = result.multiply(base)
            base = base.multiply(base)
            n //= 2
        return result

    def magnitude(self) -> float:
        return math.hypot(self.real, self.imag)

    def argument(self) -> float:
        return math.atan2(self.imag, self.real)

    def conjugate(self) -> Complex:
        return Complex(self.real, -self.imag)

    def negate(self) -> Complex:
        return Complex(-self.real, -self.imag)

    def exp(self) -> Complex:
        scale = math.exp(self.real)
        return Complex(scale * math.cos(self.imag), scale * math.sin(self.imag))

    def ln(self) -> Complex:
        magnitude = self.magnitude()
        if magnitude == 0:
            raise NumericError("Logarithm of zero")
        return Complex(math.log(magnitude), self.argument())

    def sqrt(self) -> Complex:
        """Principal square root."""
        magnitude = self.magnitude()
        real = math.sqrt((magnitude + self.real) / 2)
        imag = math.copysign(math.sqrt((magnitude - self.real) / 2), self.imag)
        return Complex(real, imag)

    def _exp_i(self, sign: int) -> Complex:
        # e^(±iz) with z = a + bi is e^(∓b ± ai)
        return Complex(-sign * self.imag, sign * self.real).exp()

    def sin(self) -> Complex:
        return self._exp_i(1).subtract(self._exp_i(-1)).divide(Complex(0.0, 2.0))

    def cos(self) -> Complex:
        return self._exp_i(1).add(self._exp_i(-1)).divide(Complex(2.0, 0.0))

    def tan(self) -> Complex:
        return self.sin().divide(self.cos())

    def is_real(self) -> bool:
        return abs(self.imag) < EPSILON

    def to_real(self) -> Real:
        if not self.is_real():
            raise NumericError("Cannot convert complex number to real")
        return Real(self.real)

    def is_zero(self) -> bool:
        return self.real == 0 and self.imag == 0


@dataclass(frozen=True)
class DecimalValue(_ValueMixin):
    """Exact base-10 value rounded to ``precision`` significant digits."""

    value: Decimal
    precision: int = DEFAULT_PRECISION
    rounding: str = ROUND_HALF_EVEN
    kind: ClassVar[str] = "decimal"

    @classmethod
    def from_text(
        cls, text: str, precision: int = DEFAULT_PRECISION, rounding: str = ROUND_HALF_EVEN
    ) -> DecimalValue:
        with localcontext() as ctx:
            ctx.prec = precision
            ctx.rounding = rounding
            return cls(+Decimal(text.strip()), precision, rounding)

    @property
    def parts(self) -> tuple[bool, str, str]:
        """(negative, integer digits, fractional digits) of the fixed-point form."""
        text = format(self.value, "f")
        negative = text.startswith("-")
        text = text.lstrip("-")
        integer, _, fractional = text.partition(".")
        return negative, integer or "0", fractional or "0"

    def _compute(self, operation: Any) -> DecimalValue:
        with localcontext() as ctx:
            ctx.prec = self.precision
            ctx.rounding = self.rounding
            return DecimalValue(operation(ctx), self.precision, self.rounding)

    def add(self, other: DecimalValue) -> DecimalValue:
        return self._compute(lambda ctx: ctx.add(self.value, other.value))

    def subtract(self, other: DecimalValue) -> DecimalValue:
        return self._compute(lambda ctx: ctx.subtract(self.value, other.value))

    def multiply(self, other: DecimalValue) -> DecimalValue:
        return self._compute(lambda ctx: ctx.multiply(self.value, other.value))

    def divide(self, other: DecimalValue) -> DecimalValue:
        if other.is_zero():
            raise DivisionByZeroError("Division by zero")
        return self._compute(lambda ctx: ctx.divide(self.value, other.value))

    def modulo(self, other: DecimalValue) -> DecimalValue:
        if other.is_zero():
            raise DivisionByZeroError("Modulo by zero")
        # remainder keeps the sign of the dividend
        return self._compute(lambda ctx: ctx.remainder(self.value, other.value))

    def floor_divide(self, other: DecimalValue) -> DecimalValue:
        if other.is_zero():
            raise DivisionByZeroError("Division by zero")

        def floored_quotient(ctx: Any) -> Decimal:
            quotient = ctx.divide_int(self.value, other.value)
            remainder = ctx.remainder(self.value, other.value)
            if remainder != 0 and (remainder < 0) != (other.value < 0):
                quotient = ctx.subtract(quotient, 1)
            return quotient

        return self._compute(floored_quotient)

    def power(self, other: DecimalValue) -> DecimalValue:
        return self._compute(lambda ctx: ctx.power(self.value, other.value))

    def negate(self) -> DecimalValue:
        return self._compute(lambda ctx: ctx.minus(self.value))

    def is_zero(self) -> bool:
        return self.value.is_zero()


Value = Union[Real, Complex, DecimalValue, BigInt]
VALUE_TYPES = (Real, Complex, DecimalValue, BigInt)


class IEEE754Handler:
    """Signals IEEE-754 exceptional results as typed numeric errors."""

    @staticmethod
    def check_overflow(value: float) -> float:
        if abs(value) > MAX_VALUE:
            raise NumericError("Overflow: result exceeds the double range", NumericError.OVERFLOW)
        return value

    @staticmethod
    def check_underflow(value: float) -> float:
        if value != 0 and abs(value) < MIN_VALUE:
            raise NumericError(
                "Underflow: result is below the smallest normal double", NumericError.UNDERFLOW
            )
        return value

    @staticmethod
    def check_invalid_operation(value: float) -> float:
        if math.isnan(value):
            raise NumericError("Invalid operation: result is not a number")
        return value

    @classmethod
    def check(cls, value: float) -> float:
        return cls.check_overflow(cls.check_underflow(cls.check_invalid_operation(value)))


def to_real(value: Value) -> Real:
    """Convert any value to Real, failing for complex numbers with an imaginary part."""
    if isinstance(value, Real):
        return value
    if isinstance(value, BigInt):
        try:
            return Real(float(value.value))
        except OverflowError:
            raise NumericError(
                "Overflow: integer too large for a double", NumericError.OVERFLOW
            ) from None
    if isinstance(value, DecimalValue):
        return Real(float(value.value))
    return value.to_real()


def to_complex(value: Value) -> Complex:
    if isinstance(value, Complex):
        return value
    return Complex(to_real(value).value, 0.0)


def to_decimal(
    value: Value, precision: int = DEFAULT_PRECISION, rounding: str = ROUND_HALF_EVEN
) -> DecimalValue:
    """Convert to DecimalValue rounded to ``precision`` digits."""
    if isinstance(value, DecimalValue):
        number = value.value
    elif isinstance(value, BigInt):
        number = Decimal(value.value)
    else:
        real = to_real(value).value
        if not math.isfinite(real):
            raise NumericError(f"Cannot represent {real} as a decimal")
        # repr gives the shortest string that round-trips, so 0.1 stays 0.1
        number = Decimal(repr(real))
    with localcontext() as ctx:
        ctx.prec = precision
        ctx.rounding = rounding
        return DecimalValue(+number, precision, rounding)


def promote(a: Value, b: Value) -> tuple[Value, Value]:
    """Return both operands converted to their common value type."""
    if isinstance(a, Complex) or isinstance(b, Complex):
        return to_complex(a), to_complex(b)
    if isinstance(a, DecimalValue) or isinstance(b, DecimalValue):
        reference = a if isinstance(a, DecimalValue) else b
        precision = max(
            v.precision for v in (a, b) if isinstance(v, DecimalValue)
        )
        rounding = reference.rounding  # type: ignore[union-attr]
        return to_decimal(a, precision, rounding), to_decimal(b, precision, rounding)
    if isinstance(a, BigInt) and isinstance(b, BigInt):
        return a, b
    return to_real(a), to_real(b)


def to_value(obj: Any, precision: int = DEFAULT_PRECISION) -> Value:
    """Wrap a plain Python, numpy or mpmath number as a Value."""
    if isinstance(obj, VALUE_TYPES):
        return obj
    if isinstance(obj, (bool, np.bool_)):
        return BigInt(int(obj))
    if isinstance(obj, (int, np.integer)):
        return BigInt(int(obj))
    if isinstance(obj, (float, np.floating)):
        return Real(float(obj))
    if isinstance(obj, (complex, np.complexfloating)):
        return Complex(float(obj.real), float(obj.imag))
    if isinstance(obj, Decimal):
        return DecimalValue(obj, precision)
    try:
        number = complex(obj)
    except (TypeError, ValueError):
        raise NumericError(f"Unsupported value type: {type(obj).__name__}") from None
    if number.imag == 0:
        return Real(number.real)
    return Complex(number.real, number.imag)


def to_python(value: Value) -> int | float | complex | Decimal:
    """Unwrap a Value into the matching plain Python number."""
    if isinstance(value, Real):
        return value.value
    if isinstance(value, BigInt):
        return value.value
    if isinstance(value, DecimalValue):
        return value.value
    return complex(value.real, value.imag)


def to_float(value: Value) -> float:
    return to_real(value).value


def is_integral(value: Value) -> bool:
    if isinstance(value, BigInt):
        return True
    if isinstance(value, Real):
        return math.isfinite(value.value) and value.value.is_integer()
    if isinstance(value, DecimalValue):
        return value.value.is_finite() and value.value == value.value.to_integral_value()
    return value.is_real() and float(value.real).is_integer()


def compare(a: Value, b: Value) -> int:
    """Three-way comparison of two promoted values; complex numbers only compare equal or not."""
    if isinstance(a, Complex):
        if a == b:
            return 0
        raise NumericError("Complex numbers cannot be ordered")
    left, right = a.value, b.value  # type: ignore[union-attr]
    return (left > right) - (left < right)


def format_number(number: float, digits: int = OUTPUT_PRECISION) -> str:
    """Format a double with ``digits`` significant digits and no trailing zeros."""
    if math.isnan(number) or math.isinf(number):
        return str(number)
    if number == 0:
        return "0"
    return "{:.{}g}".format(number, digits)


def _format_decimal(value: DecimalValue) -> str:
    with localcontext() as ctx:
        ctx.prec = value.precision
        number = value.value.normalize(ctx)
    if number.is_zero():
        return "0"
    if not number.is_finite():
        return str(number)
    if -7 < number.adjusted() < value.precision:
        return format(number, "f")
    return str(number)


def _format_complex(value: Complex, digits: int) -> str:
    if value.imag == 0:
        return format_number(value.real, digits)
    magnitude = abs(value.imag)
    imag_text = "" if magnitude == 1 else format_number(magnitude, digits)
    if value.real == 0:
        return f"{'-' if value.imag < 0 else ''}{imag_text}i"
    sign = "-" if value.imag < 0 else "+"
    return f"{format_number(value.real, digits)}{sign}{imag_text}i"


def _integer_digits(number: int) -> str:
    """Decimal text of a non-negative int of any size.

    ``str`` refuses ints beyond ``sys.get_int_max_str_digits()`` digits, so
    large values are split in halves and joined.
    """
    if number < _DIRECT_STR_LIMIT:
        return str(number)
    half = number.bit_length() * 30103 // 200000
    high, low = divmod(number, 10**half)
    return _integer_digits(high) + _integer_digits(low).zfill(half)


def format_value(value: Value, digits: int = OUTPUT_PRECISION) -> str:
    """Format any value for display."""
    if isinstance(value, BigInt):
        text = _integer_digits(abs(value.value))
        return f"-{text}" if value.value < 0 else text
    if isinstance(value, DecimalValue):
        return _format_decimal(value)
    if isinstance(value, Complex):
        return _format_complex(value, digits)
    return format_number(value.value, digits)
