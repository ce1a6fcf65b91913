"""In-process tests for the CLI entry point and REPL commands."""

import json

import pytest

from sciexpr_pkg import cli
from sciexpr_pkg.calculator import Calculator
from sciexpr_pkg.types import CalculatorError


@pytest.fixture
def calc():
    return Calculator()


class TestMainEntry:
    def test_eval(self, capsys):
        assert cli.main_entry(["-e", "2+3*4"]) == 0
        assert capsys.readouterr().out.strip() == "14"

    def test_json_output(self, capsys):
        assert cli.main_entry(["-e", "2+2", "--format", "json"]) == 0
        data = json.loads(capsys.readouterr().out)
        assert data == {
            "ok": True,
            "result": "4",
            "type": "real",
            "token_count": 3,
            "rpn_length": 3,
            "operation_count": 1,
            "elapsed_ms": data["elapsed_ms"],
        }

    def test_error(self, capsys):
        assert cli.main_entry(["-e", "1/0"]) == 1
        assert capsys.readouterr().out.strip() == "Error: Division by zero"

    def test_empty_expression(self, capsys):
        assert cli.main_entry(["-e", "   "]) == 1
        assert "Empty input" in capsys.readouterr().out

    def test_prompt_prefix_is_stripped(self, capsys):
        assert cli.main_entry(["-e", ">>> 1+1"]) == 0
        assert capsys.readouterr().out.strip() == "2"

    def test_variables_and_modes(self, capsys):
        assert cli.main_entry(["--var", "x=3", "--var", "y=x+1", "-e", "x*y"]) == 0
        assert capsys.readouterr().out.strip() == "12"
        assert cli.main_entry(["--precision-mode", "decimal", "-p", "5", "-e", "2/3"]) == 0
        assert capsys.readouterr().out.strip() == "0.66667"
        assert cli.main_entry(["--rounding", "down", "-e", "round(2.9)"]) == 0
        assert capsys.readouterr().out.strip() == "2"

    def test_bad_configuration(self, capsys):
        assert cli.main_entry(["-p", "0", "-e", "1"]) == 2
        assert "Precision must be between" in capsys.readouterr().err
        assert cli.main_entry(["--var", "novalue", "-e", "1"]) == 2
        assert cli.main_entry(["--var", "sin=1", "-e", "1"]) == 2

    def test_rpn(self, capsys):
        assert cli.main_entry(["--rpn", "-e", "2+3*4"]) == 0
        assert capsys.readouterr().out.splitlines() == ["RPN: 2 3 4 * +", "14"]

    def test_validate(self, capsys):
        assert cli.main_entry(["--validate", "-e", "max(1, 2)"]) == 0
        assert capsys.readouterr().out.strip() == "Valid expression"
        assert cli.main_entry(["--validate", "-e", "(2+3"]) == 1
        assert capsys.readouterr().out.startswith("Error: Unmatched left parenthesis")

    def test_version(self, capsys):
        assert cli.main_entry(["--version"]) == 0
        assert capsys.readouterr().out.strip() == cli.VERSION

    def test_log_file(self, tmp_path, capsys):
        log_file = tmp_path / "sciexpr.log"
        assert cli.main_entry(["--log-level", "DEBUG", "--log-file", str(log_file), "-e", "1/0"]) == 1
        assert "DIVISION_BY_ZERO" in log_file.read_text()


class TestProcessLine:
    def test_expression(self, calc, capsys):
        assert cli.process_line(calc, "2^3^2") is True
        assert capsys.readouterr().out.strip() == "512"

    def test_assignment_and_vars(self, calc, capsys):
        cli.process_line(calc, "x = 5")
        assert capsys.readouterr().out.strip() == "x = 5"
        cli.process_line(calc, "vars")
        assert capsys.readouterr().out.strip() == "x = 5"

    def test_comparison_is_not_assignment(self, calc, capsys):
        calc.set_variable("x", 5)
        cli.process_line(calc, "x == 5")
        assert capsys.readouterr().out.strip() == "1"

    def test_function_definition(self, calc, capsys):
        cli.process_line(calc, "f(x, y) = x^2 + y")
        assert capsys.readouterr().out.strip() == "Defined f(x, y)"
        cli.process_line(calc, "f(3, 1)")
        assert capsys.readouterr().out.strip() == "10"

    def test_function_call_with_comparison_is_an_expression(self, calc, capsys):
        cli.process_line(calc, "abs(-2) == 2")
        assert capsys.readouterr().out.strip() == "1"

    def test_mode_commands(self, calc, capsys):
        cli.process_line(calc, "mode angle deg")
        assert calc.modes.angle_mode == "deg"
        cli.process_line(calc, "mode digits 20")
        assert calc.modes.precision == 20
        cli.process_line(calc, "modes")
        assert "angle=deg" in capsys.readouterr().out
        with pytest.raises(CalculatorError):
            cli.process_line(calc, "mode colour blue")
        with pytest.raises(CalculatorError):
            cli.process_line(calc, "mode digits many")

    def test_history_and_clear(self, calc, capsys):
        cli.process_line(calc, "1+1")
        cli.process_line(calc, "history")
        assert "1+1 = 2" in capsys.readouterr().out
        cli.process_line(calc, "clear")
        assert calc.history() == []

    def test_functions_and_rpn(self, calc, capsys):
        cli.process_line(calc, "functions number_theory")
        assert capsys.readouterr().out.strip() == "gcd, lcm, isprime, nextprime"
        cli.process_line(calc, "rpn 2 * (3 + 4)")
        assert capsys.readouterr().out.strip() == "2 3 4 + *"

    def test_quit(self, calc):
        assert cli.process_line(calc, "quit") is False
        assert cli.process_line(calc, "EXIT") is False


class TestReplLoop:
    def test_session(self, calc, capsys, monkeypatch):
        lines = iter(["2+2", "", "mode angle turns", "y = 3", "quit"])
        monkeypatch.setattr("builtins.input", lambda prompt="": next(lines))
        cli.repl_loop(calc)
        out = capsys.readouterr().out
        assert "4" in out
        assert "Error: Invalid angle mode" in out
        assert "y = 3" in out
        assert out.rstrip().endswith("Goodbye.")

    def test_end_of_input(self, calc, capsys, monkeypatch):
        def raise_eof(prompt=""):
            raise EOFError

        monkeypatch.setattr("builtins.input", raise_eof)
        cli.repl_loop(calc)
        assert "Goodbye." in capsys.readouterr().out
