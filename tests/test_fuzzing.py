"""Fuzzing tests for the tokenizer, parser and calculator with random inputs."""

import random
import string
import unittest

from sciexpr_pkg.calculator import Calculator
from sciexpr_pkg.types import CalculationResult, CalculatorError, ValidationResult

ARITHMETIC_CODES = {"DIVISION_BY_ZERO", "OVERFLOW", "UNDERFLOW", "INVALID_OPERATION"}


def random_expression(rng, depth=0):
    """Build a random well-formed arithmetic expression."""
    if depth > 3 or rng.random() < 0.3:
        return str(rng.randint(0, 20))
    choice = rng.random()
    if choice < 0.6:
        op = rng.choice(["+", "-", "*", "/", "%", "^", "//"])
        return f"{random_expression(rng, depth + 1)} {op} {random_expression(rng, depth + 1)}"
    if choice < 0.8:
        return f"({random_expression(rng, depth + 1)})"
    name = rng.choice(["sin", "cos", "abs", "sqrt", "max", "min"])
    if name in ("max", "min"):
        args = ", ".join(random_expression(rng, depth + 1) for _ in range(rng.randint(1, 3)))
        return f"{name}({args})"
    return f"{name}({random_expression(rng, depth + 1)})"


class TestCalculatorFuzzing(unittest.TestCase):
    """Fuzz test the calculator with random inputs."""

    def setUp(self):
        self.calc = Calculator()
        self.rng = random.Random(20240601)

    def test_random_strings(self):
        """Test calculate never raises on random garbage strings."""
        for _ in range(200):
            length = self.rng.randint(1, 100)
            random_str = "".join(self.rng.choices(string.printable, k=length))
            result = self.calc.calculate(random_str)
            self.assertIsInstance(result, CalculationResult)
            if not result.succeeded:
                self.assertIsNotNone(result.error_code)

    def test_random_strings_validation(self):
        """Test validate_expression never raises on random garbage strings."""
        for _ in range(200):
            length = self.rng.randint(1, 100)
            random_str = "".join(self.rng.choices(string.printable, k=length))
            result = self.calc.validate_expression(random_str)
            self.assertIsInstance(result, ValidationResult)
            self.assertEqual(result.valid, not result.errors)

    def test_malformed_expressions(self):
        """Test malformed expressions are rejected with a code."""
        malformed = [
            "(((",
            ")))",
            "2++",
            "x**",
            "*/x",
            "",
            "   ",
            "max(,)",
            "sin()",
            "1 2 3",
            ",",
        ]
        for expr in malformed:
            with self.subTest(expr=expr):
                result = self.calc.calculate(expr)
                self.assertFalse(result.succeeded)
                self.assertIsNotNone(result.error_code)

    def test_random_valid_expressions(self):
        """Test generated expressions validate and evaluate or fail arithmetically."""
        for _ in range(200):
            expr = random_expression(self.rng)
            validation = self.calc.validate_expression(expr)
            self.assertTrue(validation.valid, f"{expr}: {validation.errors}")
            result = self.calc.calculate(expr)
            if not result.succeeded:
                self.assertIn(result.error_code, ARITHMETIC_CODES, f"{expr}: {result.error}")

    def test_unbalanced_parentheses(self):
        """Test that validation flags every unbalanced parenthesis string."""
        for _ in range(100):
            pieces = self.rng.choices(["(", ")", "1", "+"], k=self.rng.randint(1, 20))
            expr = "".join(pieces)
            if expr.count("(") == expr.count(")"):
                continue
            self.assertFalse(self.calc.validate_expression(expr).valid, expr)
            with self.assertRaises(CalculatorError):
                self.calc.to_rpn(expr)


if __name__ == "__main__":
    unittest.main()
