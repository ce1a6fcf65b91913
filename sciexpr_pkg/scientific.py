"""Built-in mathematical functions.

Every function takes and returns numeric values. Dispatch is by operand type:

- Complex operands use the Complex methods or mpmath's complex functions
- DecimalValue operands are computed with mpmath at the operand's precision
  (plus guard digits) and rounded back to that precision
- Real and BigInt operands are computed with mpmath at double precision

Arguments outside a function's real domain (``sqrt(-1)``, ``ln(0)``,
``asin(2)``, ...) raise a domain error while the complex policy is ``off``
and produce a complex result otherwise. Trigonometric functions read and
inverse trigonometric functions return angles in the configured angle unit.
"""

from __future__ import annotations

import math
import random
from decimal import ROUND_CEILING, ROUND_FLOOR
from functools import reduce
from typing import Any, Callable

import mpmath
import numpy as np
import sympy as sp

from .config import MAX_FACTORIAL_ARGUMENT
from .functions import VARIADIC, FunctionRegistry
from .modes import ScientificModes
from .numeric import (
    BigInt,
    Complex,
    DecimalValue,
    Real,
    Value,
    compare,
    is_integral,
    promote,
    to_complex,
    to_float,
)
from .types import NumericError

DOUBLE_PRECISION_BITS = 53
GUARD_DIGITS = 5


def _domain_error(message: str) -> NumericError:
    return NumericError(f"Domain error: {message}", NumericError.INVALID_OPERATION)


def _real_part(x: Value) -> Any:
    if isinstance(x, Complex):
        return x.real
    return x.value


def _is_negative(x: Value) -> bool:
    return _real_part(x) < 0


def _add(a: Value, b: Value) -> Value:
    left, right = promote(a, b)
    return left.add(right)


def _to_int(x: Value, name: str) -> int:
    if isinstance(x, Complex) and not x.is_real():
        raise NumericError(f"{name} requires integer arguments")
    if not is_integral(x):
        raise NumericError(f"{name} requires integer arguments")
    return int(_real_part(x))


class ScientificFunctions:
    """Implementations of the built-in functions, bound to one set of modes."""

    def __init__(self, modes: ScientificModes, seed: int | None = None) -> None:
        self.modes = modes
        self._random = random.Random(seed)

    # -- dispatch helpers ----------------------------------------------------

    @staticmethod
    def _to_mp(x: Value) -> Any:
        if isinstance(x, Complex):
            return mpmath.mpc(x.real, x.imag)
        if isinstance(x, DecimalValue):
            return mpmath.mpf(str(x.value))
        return mpmath.mpf(x.value)

    @staticmethod
    def _from_mp(result: Any, decimal: DecimalValue | None, precision: int) -> Value:
        if isinstance(result, mpmath.mpc):
            if result.imag != 0:
                return Complex(float(result.real), float(result.imag))
            result = result.real
        if decimal is not None:
            if not mpmath.isfinite(result):
                raise NumericError("Result is not finite", NumericError.OVERFLOW)
            text = mpmath.nstr(result, precision + GUARD_DIGITS, strip_zeros=False)
            return DecimalValue.from_text(text, precision, decimal.rounding)
        return Real(float(result))

    def _call(self, fn: Callable[..., Any], *args: Value) -> Value:
        """Run an mpmath function at the precision its arguments call for."""
        decimals = [a for a in args if isinstance(a, DecimalValue)]
        if decimals:
            precision = max(d.precision for d in decimals)
            with mpmath.workdps(precision + GUARD_DIGITS):
                result = fn(*[self._to_mp(a) for a in args])
                return self._from_mp(result, decimals[0], precision)
        with mpmath.workprec(DOUBLE_PRECISION_BITS):
            result = fn(*[self._to_mp(a) for a in args])
            return self._from_mp(result, None, 0)

    def _call_complex(self, fn: Callable[..., Any], *args: Value) -> Complex:
        with mpmath.workprec(DOUBLE_PRECISION_BITS):
            result = mpmath.mpc(fn(*[self._to_mp(to_complex(a)) for a in args]))
            return Complex(float(result.real), float(result.imag))

    def _outside_domain(self, message: str, fallback: Callable[[], Value]) -> Value:
        if not self.modes.complex_enabled:
            raise _domain_error(message)
        return fallback()

    # -- trigonometric -----------------------------------------------------

    def sin(self, x: Value) -> Value:
        if isinstance(x, Complex):
            return x.sin()
        return self._call(lambda v: mpmath.sin(self.modes.to_radians(v)), x)

    def cos(self, x: Value) -> Value:
        if isinstance(x, Complex):
            return x.cos()
        return self._call(lambda v: mpmath.cos(self.modes.to_radians(v)), x)

    def tan(self, x: Value) -> Value:
        if isinstance(x, Complex):
            return x.tan()
        return self._call(lambda v: mpmath.tan(self.modes.to_radians(v)), x)

    def _reciprocal_trig(self, x: Value, fn: Callable[[Any], Any], name: str, zero_of: str) -> Value:
        def compute(v: Any) -> Any:
            denominator = fn(self.modes.to_radians(v))
            if denominator == 0:
                raise _domain_error(f"{name}(x) is undefined where {zero_of}(x) = 0")
            return 1 / denominator

        if isinstance(x, Complex):
            return self._call_complex(lambda z: 1 / fn(z), x)
        return self._call(compute, x)

    def csc(self, x: Value) -> Value:
        return self._reciprocal_trig(x, mpmath.sin, "csc", "sin")

    def sec(self, x: Value) -> Value:
        return self._reciprocal_trig(x, mpmath.cos, "sec", "cos")

    def cot(self, x: Value) -> Value:
        return self._reciprocal_trig(x, mpmath.tan, "cot", "tan")

    def asin(self, x: Value) -> Value:
        if isinstance(x, Complex):
            return self._call_complex(mpmath.asin, x)
        if abs(_real_part(x)) > 1:
            return self._outside_domain("asin(x) for |x| > 1", lambda: self._call_complex(mpmath.asin, x))
        return self._call(lambda v: self.modes.from_radians(mpmath.asin(v)), x)

    def acos(self, x: Value) -> Value:
        if isinstance(x, Complex):
            return self._call_complex(mpmath.acos, x)
        if abs(_real_part(x)) > 1:
            return self._outside_domain("acos(x) for |x| > 1", lambda: self._call_complex(mpmath.acos, x))
        return self._call(lambda v: self.modes.from_radians(mpmath.acos(v)), x)

    def atan(self, x: Value) -> Value:
        if isinstance(x, Complex):
            return self._call_complex(mpmath.atan, x)
        return self._call(lambda v: self.modes.from_radians(mpmath.atan(v)), x)

    def atan2(self, y: Value, x: Value) -> Value:
        if isinstance(y, Complex) or isinstance(x, Complex):
            raise NumericError("atan2 requires real arguments")
        return self._call(lambda a, b: self.modes.from_radians(mpmath.atan2(a, b)), y, x)

    # -- hyperbolic ----------------------------------------------------------

    def _hyperbolic(self, x: Value, fn: Callable[[Any], Any]) -> Value:
        if isinstance(x, Complex):
            return self._call_complex(fn, x)
        return self._call(fn, x)

    def sinh(self, x: Value) -> Value:
        return self._hyperbolic(x, mpmath.sinh)

    def cosh(self, x: Value) -> Value:
        return self._hyperbolic(x, mpmath.cosh)

    def tanh(self, x: Value) -> Value:
        return self._hyperbolic(x, mpmath.tanh)

    def csch(self, x: Value) -> Value:
        if x.is_zero():
            raise _domain_error("csch(0) is undefined")
        return self._hyperbolic(x, lambda v: 1 / mpmath.sinh(v))

    def sech(self, x: Value) -> Value:
        return self._hyperbolic(x, lambda v: 1 / mpmath.cosh(v))

    def coth(self, x: Value) -> Value:
        if x.is_zero():
            raise _domain_error("coth(0) is undefined")
        return self._hyperbolic(x, lambda v: 1 / mpmath.tanh(v))

    def asinh(self, x: Value) -> Value:
        return self._hyperbolic(x, mpmath.asinh)

    def acosh(self, x: Value) -> Value:
        if not isinstance(x, Complex) and _real_part(x) < 1:
            return self._outside_domain("acosh(x) for x < 1", lambda: self._call_complex(mpmath.acosh, x))
        return self._hyperbolic(x, mpmath.acosh)

    def atanh(self, x: Value) -> Value:
        if not isinstance(x, Complex):
            magnitude = abs(_real_part(x))
            if magnitude == 1:
                raise _domain_error("atanh(x) is infinite for |x| = 1")
            if magnitude > 1:
                return self._outside_domain(
                    "atanh(x) for |x| > 1", lambda: self._call_complex(mpmath.atanh, x)
                )
        return self._hyperbolic(x, mpmath.atanh)

    # -- exponential and logarithmic --------------------------------------

    def exp(self, x: Value) -> Value:
        if isinstance(x, Complex):
            return x.exp()
        return self._call(mpmath.exp, x)

    def ln(self, x: Value) -> Value:
        if isinstance(x, Complex):
            return x.ln()
        if _real_part(x) <= 0:
            return self._outside_domain("ln(x) for x <= 0", lambda: to_complex(x).ln())
        return self._call(mpmath.ln, x)

    def _log_base(self, x: Value, base: float, name: str) -> Value:
        if isinstance(x, Complex):
            return x.ln().divide(Complex(math.log(base), 0.0))
        if _real_part(x) <= 0:
            return self._outside_domain(
                f"{name}(x) for x <= 0",
                lambda: to_complex(x).ln().divide(Complex(math.log(base), 0.0)),
            )
        return self._call(lambda v: mpmath.log(v, base), x)

    def log10(self, x: Value) -> Value:
        return self._log_base(x, 10, "log10")

    def log2(self, x: Value) -> Value:
        return self._log_base(x, 2, "log2")

    def logb(self, x: Value, base: Value) -> Value:
        if not isinstance(base, Complex) and _real_part(base) == 1:
            raise _domain_error("logb(x, base) for base = 1")
        if isinstance(x, Complex) or isinstance(base, Complex):
            return to_complex(x).ln().divide(to_complex(base).ln())
        if _real_part(x) <= 0 or _real_part(base) <= 0:
            return self._outside_domain(
                "logb(x, base) for non-positive arguments",
                lambda: to_complex(x).ln().divide(to_complex(base).ln()),
            )
        return self._call(lambda v, b: mpmath.log(v, b), x, base)

    # -- powers and roots --------------------------------------------------

    def pow(self, x: Value, y: Value) -> Value:
        if isinstance(x, Complex) or isinstance(y, Complex):
            return to_complex(x).power(to_complex(y))
        if _is_negative(x) and not is_integral(y):
            return self._outside_domain(
                "pow(x, y) for x < 0 and non-integer y",
                lambda: to_complex(x).power(to_complex(y)),
            )
        base, exponent = promote(x, y)
        return base.power(exponent)

    def sqrt(self, x: Value) -> Value:
        if isinstance(x, Complex):
            return x.sqrt()
        if _is_negative(x):
            return self._outside_domain("sqrt(x) for x < 0", lambda: to_complex(x).sqrt())
        return self._call(mpmath.sqrt, x)

    def cbrt(self, x: Value) -> Value:
        if isinstance(x, Complex):
            return x.power(Complex(1 / 3, 0.0))
        return self._call(lambda v: mpmath.sign(v) * mpmath.cbrt(abs(v)), x)

    def nthroot(self, x: Value, n: Value) -> Value:
        if n.is_zero():
            raise _domain_error("nthroot(x, 0) is undefined")
        if isinstance(x, Complex) or isinstance(n, Complex):
            return to_complex(x).power(Complex(1.0, 0.0).divide(to_complex(n)))
        if _is_negative(x):
            if is_integral(n) and int(_real_part(n)) % 2 != 0:
                return self._call(lambda v, k: -mpmath.root(-v, int(k)), x, n)
            return self._outside_domain(
                "nthroot(x, n) for x < 0 and even or non-integer n",
                lambda: to_complex(x).power(Complex(1.0, 0.0).divide(to_complex(n))),
            )
        return self._call(lambda v, k: v ** (1 / k), x, n)

    # -- special functions and combinatorics --------------------------------

    def factorial(self, n: Value) -> Value:
        if isinstance(n, Complex):
            if not n.is_real():
                raise NumericError("Factorial is only defined for real numbers")
            n = n.to_real()
        if is_integral(n) and _real_part(n) >= 0:
            k = int(_real_part(n))
            if k > MAX_FACTORIAL_ARGUMENT:
                raise NumericError(
                    f"Factorial argument {k} exceeds the limit of {MAX_FACTORIAL_ARGUMENT}",
                    NumericError.OVERFLOW,
                )
            return BigInt(math.factorial(k))
        return self.gamma(_add(n, BigInt(1)))

    def gamma(self, z: Value) -> Value:
        if isinstance(z, Complex) and not z.is_real():
            return self._call_complex(mpmath.gamma, z)
        if isinstance(z, Complex):
            z = z.to_real()
        if is_integral(z) and _real_part(z) <= 0:
            raise _domain_error("gamma(x) is undefined for non-positive integers")
        return self._call(mpmath.gamma, z)

    def comb(self, n: Value, k: Value) -> Value:
        total, chosen = _to_int(n, "comb"), _to_int(k, "comb")
        if chosen < 0 or total < 0 or chosen > total:
            raise NumericError("Combination requires non-negative integers with k <= n")
        return BigInt(math.comb(total, chosen))

    def perm(self, n: Value, k: Value) -> Value:
        total, chosen = _to_int(n, "perm"), _to_int(k, "perm")
        if chosen < 0 or total < 0 or chosen > total:
            raise NumericError("Permutation requires non-negative integers with k <= n")
        return BigInt(math.perm(total, chosen))

    # -- rounding ----------------------------------------------------------

    def abs(self, x: Value) -> Value:
        if isinstance(x, Complex):
            return Real(x.magnitude())
        if isinstance(x, BigInt):
            return BigInt(abs(x.value))
        if isinstance(x, DecimalValue):
            return DecimalValue(x.value.copy_abs(), x.precision, x.rounding)
        return Real(abs(x.value))

    def _integral(self, x: Value, name: str, to_int: Callable[[float], int], rounding: str) -> Value:
        if isinstance(x, Complex):
            raise NumericError(f"{name} is not defined for complex numbers")
        if isinstance(x, BigInt):
            return x
        if isinstance(x, DecimalValue):
            return DecimalValue(x.value.to_integral_value(rounding=rounding), x.precision, x.rounding)
        if not math.isfinite(x.value):
            return x
        return Real(float(to_int(x.value)))

    def ceil(self, x: Value) -> Value:
        return self._integral(x, "ceil", math.ceil, ROUND_CEILING)

    def floor(self, x: Value) -> Value:
        return self._integral(x, "floor", math.floor, ROUND_FLOOR)

    def round(self, x: Value) -> Value:
        return self.modes.round(x)

    # -- statistics --------------------------------------------------------

    @staticmethod
    def _ordered(args: tuple[Value, ...], name: str) -> list[Value]:
        if any(isinstance(a, Complex) for a in args):
            raise NumericError(f"{name} requires real arguments")
        return list(args)

    def min(self, *args: Value) -> Value:
        values = self._ordered(args, "min")
        return reduce(lambda a, b: b if compare(*promote(b, a)) < 0 else a, values)

    def max(self, *args: Value) -> Value:
        values = self._ordered(args, "max")
        return reduce(lambda a, b: b if compare(*promote(b, a)) > 0 else a, values)

    def sum(self, *args: Value) -> Value:
        return reduce(_add, args)

    @staticmethod
    def _as_array(values: list[Value]) -> np.ndarray:
        return np.array([to_float(v) for v in values], dtype=np.float64)

    def mean(self, *args: Value) -> Value:
        values = self._ordered(args, "mean")
        if any(isinstance(v, DecimalValue) for v in values):
            total = self.sum(*values)
            count = DecimalValue.from_text(str(len(values)), total.precision, total.rounding)  # type: ignore[union-attr]
            return total.divide(count)  # type: ignore[arg-type]
        return Real(float(np.mean(self._as_array(values))))

    def median(self, *args: Value) -> Value:
        values = self._ordered(args, "median")
        if any(isinstance(v, DecimalValue) for v in values):
            ordered = sorted(
                values, key=lambda v: v.value if isinstance(v, DecimalValue) else _real_part(v)
            )
            middle = len(ordered) // 2
            if len(ordered) % 2:
                return ordered[middle]
            return self.mean(ordered[middle - 1], ordered[middle])
        return Real(float(np.median(self._as_array(values))))

    def std(self, *args: Value) -> Value:
        """Population standard deviation."""
        values = self._ordered(args, "std")
        return Real(float(np.std(self._as_array(values))))

    def var(self, *args: Value) -> Value:
        """Population variance."""
        values = self._ordered(args, "var")
        return Real(float(np.var(self._as_array(values))))

    # -- complex -----------------------------------------------------------

    def re(self, x: Value) -> Value:
        if isinstance(x, Complex):
            return Real(x.real)
        return x

    def im(self, x: Value) -> Value:
        if isinstance(x, Complex):
            return Real(x.imag)
        return Real(0.0)

    def conj(self, x: Value) -> Value:
        if isinstance(x, Complex):
            return x.conjugate()
        return x

    def arg(self, x: Value) -> Value:
        angle = to_complex(x).argument()
        return Real(self.modes.from_radians(angle))

    # -- number theory -----------------------------------------------------

    def gcd(self, *args: Value) -> Value:
        numbers = [_to_int(a, "gcd") for a in args]
        return BigInt(int(reduce(sp.igcd, numbers, 0)))

    def lcm(self, *args: Value) -> Value:
        numbers = [_to_int(a, "lcm") for a in args]
        return BigInt(int(reduce(sp.ilcm, numbers, 1)))

    def isprime(self, n: Value) -> Value:
        return BigInt(1 if sp.isprime(_to_int(n, "isprime")) else 0)

    def nextprime(self, n: Value) -> Value:
        return BigInt(int(sp.nextprime(_to_int(n, "nextprime"))))

    # -- random ------------------------------------------------------------

    def random(self) -> Value:
        return Real(self._random.random())

    def randint(self, low: Value, high: Value) -> Value:
        a, b = _to_int(low, "randint"), _to_int(high, "randint")
        if a > b:
            raise NumericError("randint requires low <= high")
        return BigInt(self._random.randint(a, b))

    # -- registration ------------------------------------------------------

    def builtins(self) -> list[tuple[str, int, Callable[..., Value], str, str]]:
        """(name, arity, implementation, description, category) for every built-in."""
        return [
            ("sin", 1, self.sin, "Sine", "trigonometric"),
            ("cos", 1, self.cos, "Cosine", "trigonometric"),
            ("tan", 1, self.tan, "Tangent", "trigonometric"),
            ("csc", 1, self.csc, "Cosecant", "trigonometric"),
            ("sec", 1, self.sec, "Secant", "trigonometric"),
            ("cot", 1, self.cot, "Cotangent", "trigonometric"),
            ("asin", 1, self.asin, "Inverse sine", "trigonometric"),
            ("acos", 1, self.acos, "Inverse cosine", "trigonometric"),
            ("atan", 1, self.atan, "Inverse tangent", "trigonometric"),
            ("atan2", 2, self.atan2, "Angle of the point (x, y), called as atan2(y, x)", "trigonometric"),
            ("sinh", 1, self.sinh, "Hyperbolic sine", "hyperbolic"),
            ("cosh", 1, self.cosh, "Hyperbolic cosine", "hyperbolic"),
            ("tanh", 1, self.tanh, "Hyperbolic tangent", "hyperbolic"),
            ("csch", 1, self.csch, "Hyperbolic cosecant", "hyperbolic"),
            ("sech", 1, self.sech, "Hyperbolic secant", "hyperbolic"),
            ("coth", 1, self.coth, "Hyperbolic cotangent", "hyperbolic"),
            ("asinh", 1, self.asinh, "Inverse hyperbolic sine", "hyperbolic"),
            ("acosh", 1, self.acosh, "Inverse hyperbolic cosine", "hyperbolic"),
            ("atanh", 1, self.atanh, "Inverse hyperbolic tangent", "hyperbolic"),
            ("exp", 1, self.exp, "Exponential function e^x", "logarithmic"),
            ("ln", 1, self.ln, "Natural logarithm", "logarithmic"),
            ("log", 1, self.log10, "Base-10 logarithm", "logarithmic"),
            ("log10", 1, self.log10, "Base-10 logarithm", "logarithmic"),
            ("log2", 1, self.log2, "Base-2 logarithm", "logarithmic"),
            ("logb", 2, self.logb, "Logarithm of x in the given base", "logarithmic"),
            ("pow", 2, self.pow, "x raised to the power y", "power"),
            ("sqrt", 1, self.sqrt, "Square root", "power"),
            ("cbrt", 1, self.cbrt, "Cube root", "power"),
            ("nthroot", 2, self.nthroot, "n-th root of x", "power"),
            ("factorial", 1, self.factorial, "Factorial (gamma(x + 1) for non-integers)", "special"),
            ("gamma", 1, self.gamma, "Gamma function", "special"),
            ("comb", 2, self.comb, "Number of combinations C(n, k)", "special"),
            ("perm", 2, self.perm, "Number of permutations P(n, k)", "special"),
            ("abs", 1, self.abs, "Absolute value or complex magnitude", "rounding"),
            ("ceil", 1, self.ceil, "Smallest integer not less than x", "rounding"),
            ("floor", 1, self.floor, "Largest integer not greater than x", "rounding"),
            ("round", 1, self.round, "Round to an integer using the rounding mode", "rounding"),
            ("min", VARIADIC, self.min, "Smallest argument", "statistical"),
            ("max", VARIADIC, self.max, "Largest argument", "statistical"),
            ("sum", VARIADIC, self.sum, "Sum of the arguments", "statistical"),
            ("mean", VARIADIC, self.mean, "Arithmetic mean", "statistical"),
            ("median", VARIADIC, self.median, "Median", "statistical"),
            ("std", VARIADIC, self.std, "Population standard deviation", "statistical"),
            ("var", VARIADIC, self.var, "Population variance", "statistical"),
            ("re", 1, self.re, "Real part", "complex"),
            ("im", 1, self.im, "Imaginary part", "complex"),
            ("conj", 1, self.conj, "Complex conjugate", "complex"),
            ("arg", 1, self.arg, "Argument (phase angle)", "complex"),
            ("gcd", VARIADIC, self.gcd, "Greatest common divisor", "number_theory"),
            ("lcm", VARIADIC, self.lcm, "Least common multiple", "number_theory"),
            ("isprime", 1, self.isprime, "1 if the argument is prime, else 0", "number_theory"),
            ("nextprime", 1, self.nextprime, "Smallest prime greater than the argument", "number_theory"),
            ("random", 0, self.random, "Uniform random number in [0, 1)", "random"),
            ("randint", 2, self.randint, "Random integer in [low, high]", "random"),
        ]

    def register_builtins(self, registry: FunctionRegistry) -> int:
        """Register every built-in; returns how many were newly registered."""
        registered = 0
        for name, arity, apply, description, category in self.builtins():
            if registry.register_function(name, arity, apply, description, category):
                registered += 1
        return registered
