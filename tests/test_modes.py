"""Tests for ScientificModes: validation, angles, rounding and regimes."""

import math
import unittest
from decimal import Decimal

import mpmath

from sciexpr_pkg.modes import ModeState, ScientificModes
from sciexpr_pkg.numeric import BigInt, Complex, DecimalValue, Real
from sciexpr_pkg.types import ModeConfigurationError, NumericError


class TestModeValidation(unittest.TestCase):
    def setUp(self):
        self.modes = ScientificModes()

    def test_defaults(self):
        self.assertEqual(self.modes.snapshot(), ModeState("rad", "ieee754", "off", 50, "nearest"))
        self.assertFalse(self.modes.complex_enabled)

    def test_invalid_values_rejected(self):
        """Invalid mode values raise and leave the previous value in place."""
        with self.assertRaises(ModeConfigurationError) as ctx:
            self.modes.set_angle_mode("turns")
        self.assertEqual(ctx.exception.code, "MODE_CONFIGURATION_ERROR")
        self.assertEqual(self.modes.angle_mode, "rad")
        with self.assertRaises(ModeConfigurationError):
            self.modes.set_precision_mode("float128")
        with self.assertRaises(ModeConfigurationError):
            self.modes.set_complex_mode("maybe")
        with self.assertRaises(ModeConfigurationError):
            self.modes.set_rounding_mode("sideways")

    def test_mode_names_are_case_insensitive(self):
        self.modes.set_angle_mode("DEG")
        self.assertEqual(self.modes.angle_mode, "deg")

    def test_rounding_aliases(self):
        self.modes.set_rounding_mode("towardzero")
        self.assertEqual(self.modes.rounding_mode, "toward_zero")

    def test_precision_bounds(self):
        self.modes.set_precision(1)
        self.modes.set_precision(1000)
        self.assertEqual(self.modes.precision, 1000)
        for bad in (0, 1001, True, "10", 2.5):
            with self.assertRaises(ModeConfigurationError):
                self.modes.set_precision(bad)
        self.assertEqual(self.modes.precision, 1000)

    def test_reset(self):
        self.modes.set_angle_mode("grad")
        self.modes.set_complex_mode("on")
        self.modes.set_precision(12)
        self.modes.reset()
        self.assertEqual(self.modes.snapshot(), ModeState())

    def test_summary_has_labels(self):
        self.modes.set_angle_mode("deg")
        summary = self.modes.summary()
        self.assertEqual(summary["angle_mode"], "deg")
        self.assertEqual(summary["labels"]["angle_mode"], "Degrees")
        self.assertIn("angle=deg", self.modes.describe())


class TestAngleConversion(unittest.TestCase):
    def setUp(self):
        self.modes = ScientificModes()

    def test_radians_pass_through(self):
        self.assertEqual(self.modes.to_radians(1.25), 1.25)
        self.assertEqual(self.modes.from_radians(1.25), 1.25)

    def test_degrees(self):
        self.modes.set_angle_mode("deg")
        self.assertAlmostEqual(self.modes.to_radians(180), math.pi)
        self.assertAlmostEqual(self.modes.from_radians(math.pi), 180)

    def test_gradians(self):
        self.modes.set_angle_mode("grad")
        self.assertAlmostEqual(self.modes.to_radians(200), math.pi)
        self.assertAlmostEqual(self.modes.from_radians(math.pi / 2), 100)

    def test_mpmath_values_keep_precision(self):
        self.modes.set_angle_mode("deg")
        with mpmath.workdps(30):
            result = self.modes.to_radians(mpmath.mpf(180))
            self.assertLess(abs(result - mpmath.pi), mpmath.mpf("1e-25"))


class TestRounding(unittest.TestCase):
    def setUp(self):
        self.modes = ScientificModes()

    def test_nearest_rounds_half_up(self):
        self.assertEqual(self.modes.round(Real(2.5)), Real(3.0))
        self.assertEqual(self.modes.round(Real(-2.5)), Real(-2.0))

    def test_directed_modes(self):
        self.modes.set_rounding_mode("up")
        self.assertEqual(self.modes.round(Real(2.1)), Real(3.0))
        self.modes.set_rounding_mode("down")
        self.assertEqual(self.modes.round(Real(-2.1)), Real(-3.0))
        self.modes.set_rounding_mode("toward_zero")
        self.assertEqual(self.modes.round(Real(-2.7)), Real(-2.0))

    def test_decimal_rounding(self):
        self.assertEqual(self.modes.round(DecimalValue(Decimal("2.5"), 10)).value, Decimal("3"))
        self.modes.set_rounding_mode("toward_zero")
        self.assertEqual(self.modes.round(DecimalValue(Decimal("-2.7"), 10)).value, Decimal("-2"))

    def test_bigint_unchanged(self):
        self.assertEqual(self.modes.round(BigInt(7)), BigInt(7))


class TestRegimes(unittest.TestCase):
    def setUp(self):
        self.modes = ScientificModes()

    def test_literals_ieee754(self):
        self.assertEqual(self.modes.coerce_literal("2"), Real(2.0))
        self.assertEqual(self.modes.coerce_literal("1.5e3"), Real(1500.0))

    def test_literals_bigint(self):
        self.modes.set_precision_mode("bigint")
        self.assertEqual(
            self.modes.coerce_literal("12345678901234567890"), BigInt(12345678901234567890)
        )
        self.assertEqual(self.modes.coerce_literal("1e3"), BigInt(1000))
        self.assertEqual(self.modes.coerce_literal("2.5"), Real(2.5))

    def test_literals_decimal(self):
        self.modes.set_precision_mode("decimal")
        self.modes.set_precision(20)
        literal = self.modes.coerce_literal("0.1")
        self.assertIsInstance(literal, DecimalValue)
        self.assertEqual(literal.value, Decimal("0.1"))
        self.assertEqual(literal.precision, 20)

    def test_literal_overflow(self):
        with self.assertRaises(NumericError) as ctx:
            self.modes.coerce_literal("1e400")
        self.assertEqual(ctx.exception.code, "OVERFLOW")

    def test_complex_policy(self):
        self.modes.set_complex_mode("auto")
        self.assertEqual(self.modes.normalize(Complex(2, 0)), Real(2.0))
        self.assertEqual(self.modes.normalize(Complex(2, 1)), Complex(2, 1))
        self.modes.set_complex_mode("on")
        self.assertEqual(self.modes.normalize(Complex(2, 0)), Complex(2, 0))

    def test_normalize_into_regime(self):
        self.assertEqual(self.modes.normalize(BigInt(5)), Real(5.0))
        self.modes.set_precision_mode("bigint")
        self.assertEqual(self.modes.normalize(Real(4.0)), BigInt(4))
        self.assertEqual(self.modes.normalize(Real(4.5)), Real(4.5))
        self.modes.set_precision_mode("decimal")
        self.assertIsInstance(self.modes.normalize(Real(4.5)), DecimalValue)

    def test_normalize_checks_ieee754_limits(self):
        with self.assertRaises(NumericError) as ctx:
            self.modes.normalize(Real(float("inf")))
        self.assertEqual(ctx.exception.code, "OVERFLOW")
        with self.assertRaises(NumericError) as ctx:
            self.modes.normalize(Real(float("nan")))
        self.assertEqual(ctx.exception.code, "INVALID_OPERATION")


if __name__ == "__main__":
    unittest.main()
