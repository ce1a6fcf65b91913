"""Tests that every failure carries a stable error code."""

import unittest

from sciexpr_pkg.calculator import Calculator
from sciexpr_pkg.types import (
    ArityError,
    CalculatorError,
    DivisionByZeroError,
    LexError,
    ModeConfigurationError,
    NumericError,
    RegistrationError,
    StructuralError,
    UnknownIdentifierError,
    ValidationIssue,
)


class TestErrorHierarchy(unittest.TestCase):
    """Test error classes and their default codes."""

    def test_all_errors_are_calculator_errors(self):
        """Test that every engine error derives from CalculatorError."""
        for error in (
            LexError("x"),
            StructuralError("x"),
            UnknownIdentifierError("x"),
            ArityError("x"),
            DivisionByZeroError(),
            NumericError("x"),
            ModeConfigurationError("x"),
            RegistrationError("x"),
        ):
            self.assertIsInstance(error, CalculatorError)

    def test_default_codes(self):
        """Test the code each error carries when none is given."""
        self.assertEqual(LexError("x").code, "LEX_ERROR")
        self.assertEqual(StructuralError("x").code, "STRUCTURAL_ERROR")
        self.assertEqual(UnknownIdentifierError("y", "variable").code, "UNKNOWN_IDENTIFIER")
        self.assertEqual(str(UnknownIdentifierError("y", "variable")), "Unknown variable: y")
        self.assertEqual(ArityError("x").code, "ARITY_ERROR")
        self.assertEqual(DivisionByZeroError().message, "Division by zero")
        self.assertEqual(NumericError("x", NumericError.UNDERFLOW).code, "UNDERFLOW")
        self.assertEqual(ModeConfigurationError("x").code, "MODE_CONFIGURATION_ERROR")

    def test_validation_issue_from_error(self):
        """Test converting a raised error into a validation issue."""
        issue = ValidationIssue.from_error(LexError("bad", 3, "UNEXPECTED_CHARACTER"))
        self.assertEqual(issue, ValidationIssue("bad", "UNEXPECTED_CHARACTER", 3))
        self.assertEqual(ValidationIssue.from_error(ArityError("n")).position, None)


class TestCalculationErrorCodes(unittest.TestCase):
    """Test the error code reported for each class of failing expression."""

    def setUp(self):
        self.calc = Calculator()

    def assertCode(self, expression, code):
        result = self.calc.calculate(expression)
        self.assertFalse(result.succeeded, f"{expression} unexpectedly succeeded")
        self.assertEqual(result.error_code, code, f"{expression}: {result.error}")

    def test_lexical_errors(self):
        """Test tokenizer failures."""
        self.assertCode("2 # 3", "UNEXPECTED_CHARACTER")
        self.assertCode("1.2.3", "INVALID_NUMBER")
        self.assertCode("1" * 10001, "TOO_LONG")

    def test_structural_errors(self):
        """Test parser failures."""
        self.assertCode("", "EMPTY_INPUT")
        self.assertCode("2 3", "MISSING_OPERATOR")
        self.assertCode("(1", "UNMATCHED_LEFT_PAREN")
        self.assertCode("1)", "UNMATCHED_RIGHT_PAREN")
        self.assertCode("(" * 101 + "1" + ")" * 101, "TOO_DEEP")

    def test_unknown_identifier(self):
        """Test evaluation of an unbound variable."""
        self.assertCode("unknown_var * 2", "UNKNOWN_IDENTIFIER")

    def test_arity(self):
        """Test calls with the wrong number of arguments."""
        self.assertCode("sin(1, 2)", "ARITY_ERROR")
        self.assertCode("max()", "ARITY_ERROR")
        self.assertCode("random(1)", "ARITY_ERROR")

    def test_numeric_errors(self):
        """Test arithmetic failures."""
        self.assertCode("1/0", "DIVISION_BY_ZERO")
        self.assertCode("10^400", "OVERFLOW")
        self.assertCode("1e-300 / 1e10", "UNDERFLOW")
        self.assertCode("sqrt(-1)", "INVALID_OPERATION")

    def test_overflow_message_is_readable(self):
        """Test that float overflow reports a fixed message, not the OS error tuple."""
        for expression in ("10^400", "exp(1000)", "2.5^1000"):
            with self.subTest(expression=expression):
                result = self.calc.calculate(expression)
                self.assertEqual(result.error_code, "OVERFLOW")
                self.assertNotIn("(34", result.error)
                self.assertIn("exceeds the double range", result.error)

    def test_complex_division_by_zero(self):
        """Test division of complex numbers by zero."""
        self.calc.set_complex_mode("on")
        result = self.calc.calculate("(1+i)/(0*i)")
        self.assertEqual(result.error_code, "DIVISION_BY_ZERO")
        self.assertEqual(result.error, "Division by zero in complex numbers")


class TestRaisedErrorCodes(unittest.TestCase):
    """Test error codes of operations that raise instead of returning results."""

    def setUp(self):
        self.calc = Calculator()

    def test_mode_configuration(self):
        with self.assertRaises(ModeConfigurationError) as ctx:
            self.calc.set_precision_mode("quad")
        self.assertEqual(ctx.exception.code, "MODE_CONFIGURATION_ERROR")

    def test_registration(self):
        with self.assertRaises(RegistrationError) as ctx:
            self.calc.register_function("bad name", 1, abs)
        self.assertEqual(ctx.exception.code, "INVALID_FUNCTION_NAME")
        with self.assertRaises(RegistrationError) as ctx:
            self.calc.define_function("f", ["2x"], "1")
        self.assertEqual(ctx.exception.code, "INVALID_PARAMETER_NAME")


if __name__ == "__main__":
    unittest.main()
