"""Tests for the tokenizer: classification, literals, errors and validation."""

import unittest

from sciexpr_pkg.calculator import Calculator
from sciexpr_pkg.tokenizer import Tokenizer, TokenKind
from sciexpr_pkg.types import LexError


def kinds(tokens):
    return [t.kind for t in tokens]


def values(tokens):
    return [t.value for t in tokens if t.kind is not TokenKind.END]


class TestTokenize(unittest.TestCase):
    def setUp(self):
        self.calc = Calculator()
        self.tokenizer = self.calc.tokenizer

    def tokenize(self, text):
        return self.tokenizer.tokenize(text, self.calc.modes)

    def test_simple_arithmetic(self):
        tokens = self.tokenize("2+3*4")
        self.assertEqual(
            kinds(tokens),
            [
                TokenKind.NUMBER,
                TokenKind.OPERATOR,
                TokenKind.NUMBER,
                TokenKind.OPERATOR,
                TokenKind.NUMBER,
                TokenKind.END,
            ],
        )
        self.assertEqual(values(tokens), ["2", "+", "3", "*", "4"])

    def test_exactly_one_end_token(self):
        for text in ("", "1", "sin(x) + 2"):
            tokens = self.tokenize(text)
            self.assertIs(tokens[-1].kind, TokenKind.END)
            self.assertEqual(sum(1 for t in tokens if t.kind is TokenKind.END), 1)

    def test_positions(self):
        tokens = self.tokenize("2 + 3")
        self.assertEqual([t.position for t in tokens], [0, 2, 4, 5])

    def test_identifier_classification(self):
        tokens = self.tokenize("sin(x) + pi")
        self.assertEqual(
            kinds(tokens)[:6],
            [
                TokenKind.FUNCTION,
                TokenKind.LEFT_PAREN,
                TokenKind.VARIABLE,
                TokenKind.RIGHT_PAREN,
                TokenKind.OPERATOR,
                TokenKind.CONSTANT,
            ],
        )
        self.assertIs(self.tokenize("PI")[0].kind, TokenKind.CONSTANT)
        self.assertIs(self.tokenize("arcsin")[0].kind, TokenKind.FUNCTION)

    def test_imaginary_unit_follows_complex_mode(self):
        self.assertIs(self.tokenize("i")[0].kind, TokenKind.VARIABLE)
        self.calc.set_complex_mode("on")
        self.assertIs(self.tokenize("i")[0].kind, TokenKind.CONSTANT)
        # no modes given means real-only lexing
        self.assertIs(self.tokenizer.tokenize("i")[0].kind, TokenKind.VARIABLE)

    def test_negative_literal_folding(self):
        self.assertEqual(values(self.tokenize("-2^2")), ["-2", "^", "2"])
        self.assertEqual(values(self.tokenize("3-2")), ["3", "-", "2"])
        self.assertEqual(values(self.tokenize("3 - -2")), ["3", "-", "-2"])
        self.assertEqual(values(self.tokenize("max(1,-2)")), ["max", "(", "1", ",", "-2", ")"])
        self.assertEqual(values(self.tokenize("-x")), ["-", "x"])

    def test_number_formats(self):
        self.assertEqual(values(self.tokenize("1.5e3")), ["1.5e3"])
        self.assertEqual(values(self.tokenize("1E-5")), ["1E-5"])
        self.assertEqual(values(self.tokenize(".5")), [".5"])
        # a trailing e with no digits is the constant e
        tokens = self.tokenize("2e")
        self.assertEqual(values(tokens), ["2", "e"])
        self.assertIs(tokens[1].kind, TokenKind.CONSTANT)

    def test_multi_character_operators(self):
        self.assertEqual(values(self.tokenize("2**3")), ["2", "**", "3"])
        self.assertEqual(values(self.tokenize("a<=b")), ["a", "<=", "b"])
        self.assertEqual(values(self.tokenize("7//2")), ["7", "//", "2"])
        self.assertEqual(values(self.tokenize("6×2÷3")), ["6", "×", "2", "÷", "3"])

    def test_invalid_number(self):
        with self.assertRaises(LexError) as ctx:
            self.tokenize("1.2.3")
        self.assertEqual(ctx.exception.code, "INVALID_NUMBER")
        with self.assertRaises(LexError):
            self.tokenize(".")

    def test_unexpected_character(self):
        with self.assertRaises(LexError) as ctx:
            self.tokenize("2 $ 3")
        self.assertEqual(ctx.exception.code, "UNEXPECTED_CHARACTER")
        self.assertEqual(ctx.exception.position, 2)

    def test_too_long(self):
        with self.assertRaises(LexError) as ctx:
            self.tokenize("1" * 10001)
        self.assertEqual(ctx.exception.code, "TOO_LONG")

    def test_custom_max_length(self):
        tokenizer = Tokenizer(self.calc.table, max_length=5)
        with self.assertRaises(LexError):
            tokenizer.tokenize("1+2+3+4")
        self.assertEqual(values(tokenizer.tokenize("1+2+3")), ["1", "+", "2", "+", "3"])

    def test_non_string_input(self):
        with self.assertRaises(LexError) as ctx:
            self.tokenize(42)
        self.assertEqual(ctx.exception.code, "INVALID_INPUT")


class TestTokenValidation(unittest.TestCase):
    def setUp(self):
        self.calc = Calculator()
        self.tokenizer = self.calc.tokenizer

    def codes(self, text):
        tokens = self.tokenizer.tokenize(text, self.calc.modes)
        return [issue.code for issue in self.tokenizer.validate(tokens)]

    def test_valid(self):
        self.assertEqual(self.codes("2 + 3"), [])
        self.assertEqual(self.codes("2 * - x"), [])

    def test_empty(self):
        self.assertEqual(self.codes(""), ["EMPTY_INPUT"])
        self.assertEqual(self.codes("   "), ["EMPTY_INPUT"])

    def test_parentheses(self):
        self.assertEqual(self.codes("(2+3"), ["UNMATCHED_LEFT_PAREN"])
        self.assertEqual(self.codes("2+3)"), ["UNMATCHED_RIGHT_PAREN"])

    def test_consecutive_operators(self):
        self.assertEqual(self.codes("2 * / 3"), ["CONSECUTIVE_OPERATORS"])


class TestRender(unittest.TestCase):
    def test_render_is_idempotent(self):
        calc = Calculator()
        for text in ("2+3*4", "sin(pi/2)^2", "-2^2", "3 - -2", "max(1,2,3)", "(1+2)*-x"):
            tokens = calc.tokenizer.tokenize(text, calc.modes)
            canonical = Tokenizer.render(tokens)
            again = calc.tokenizer.tokenize(canonical, calc.modes)
            self.assertEqual(Tokenizer.render(again), canonical)
            self.assertEqual(
                [(t.kind, t.value) for t in again], [(t.kind, t.value) for t in tokens]
            )


if __name__ == "__main__":
    unittest.main()
