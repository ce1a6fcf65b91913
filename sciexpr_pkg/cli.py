"""Command-line interface: one-shot evaluation and an interactive REPL."""

from __future__ import annotations

import argparse
import json
import re
import sys

from .calculator import Calculator
from .config import ANGLE_MODES, COMPLEX_MODES, PRECISION_MODES, ROUNDING_MODES, VERSION
from .logging_config import get_logger, setup_logging
from .types import CalculationResult, CalculatorError

logger = get_logger("cli")

# name = expression (but not name == expression)
ASSIGNMENT_RE = re.compile(r"^\s*([A-Za-z_][A-Za-z0-9_]*)\s*=(?!=)\s*(.+)$")
# name(params) = body
DEFINITION_RE = re.compile(r"^\s*([A-Za-z_][A-Za-z0-9_]*)\s*\(([^)]*)\)\s*=(?!=)\s*(.+)$")

MODE_SETTERS = {
    "angle": "set_angle_mode",
    "precision_mode": "set_precision_mode",
    "complex": "set_complex_mode",
    "rounding": "set_rounding_mode",
}


def print_result(result: CalculationResult, output_format: str = "human", variable: str | None = None) -> None:
    if output_format == "json":
        data = result.to_dict()
        if variable is not None:
            data["variable"] = variable
        print(json.dumps(data, ensure_ascii=False))
        return
    if not result.succeeded:
        print(f"Error: {result.error}")
    elif variable is not None:
        print(f"{variable} = {result.formatted}")
    else:
        print(result.formatted)


def print_help_text() -> None:
    """Print help text for REPL commands."""
    help_text = f"""sciexpr version {VERSION}

Expressions:
  2+3*4, 2^3^2, (1+2)*3, 7 // 2, 7 % 3, 3 < 4 && 2 == 2
  sin(pi/6), log10(1000), max(1, 5, 3), factorial(25), gcd(12, 18)

Assignments and definitions:
  x = 2 + 3                   bind a variable
  f(x, y) = x^2 + y           define a function

Commands:
  help                        show this help message
  quit, exit                  leave the REPL
  history                     show successful calculations
  vars                        show variable bindings
  clear                       clear variables and history
  modes                       show the current modes
  mode <name> <value>         set a mode:
                                angle {"|".join(ANGLE_MODES)}
                                precision_mode {"|".join(PRECISION_MODES)}
                                complex {"|".join(COMPLEX_MODES)}
                                rounding {"|".join(ROUNDING_MODES)}
                                digits <1..1000>
  functions [category]        list functions
  rpn <expression>            show the RPN form of an expression
"""
    print(help_text)


def set_mode(calc: Calculator, name: str, value: str) -> None:
    """Apply a ``mode <name> <value>`` command.

    Raises:
        CalculatorError: For an unknown mode name or an invalid value
    """
    key = name.lower()
    if key in ("digits", "precision"):
        try:
            digits = int(value)
        except ValueError:
            raise CalculatorError(f"Precision must be an integer, got {value!r}", "MODE_CONFIGURATION_ERROR") from None
        calc.set_precision(digits)
        return
    setter = MODE_SETTERS.get(key)
    if setter is None:
        raise CalculatorError(f"Unknown mode: {name}", "MODE_CONFIGURATION_ERROR")
    getattr(calc, setter)(value)


def process_line(calc: Calculator, line: str, output_format: str = "human") -> bool:
    """Handle one REPL line. Returns False when the user asked to quit."""
    words = line.split()
    command = words[0].lower()

    if command in ("quit", "exit"):
        return False
    if command == "help":
        print_help_text()
        return True
    if command == "history" and len(words) == 1:
        for index, entry in enumerate(calc.history(), 1):
            print(f"{index:3d}  {entry.expression} = {entry.formatted}")
        return True
    if command == "vars" and len(words) == 1:
        bindings = calc.variables()
        if not bindings:
            print("No variables defined.")
        for name, value in bindings.items():
            print(f"{name} = {calc.format_value(value)}")
        return True
    if command == "clear" and len(words) == 1:
        calc.clear_variables()
        calc.clear_history()
        print("Variables and history cleared.")
        return True
    if command == "modes" and len(words) == 1:
        print(calc.modes.describe())
        return True
    if command == "mode" and len(words) == 3:
        set_mode(calc, words[1], words[2])
        print(calc.modes.describe())
        return True
    if command == "functions" and len(words) <= 2:
        if len(words) == 2:
            names = calc.get_functions_by_category(words[1])
        else:
            names = [doc["name"] for doc in calc.get_functions()]
        print(", ".join(names) if names else "No functions found.")
        return True
    if command == "rpn" and len(words) > 1:
        print(calc.to_rpn(line.split(None, 1)[1]))
        return True

    definition = DEFINITION_RE.match(line)
    if definition:
        name, params_text, body = definition.groups()
        params = [p.strip() for p in params_text.split(",") if p.strip()]
        calc.define_function(name, params, body.strip())
        if output_format == "json":
            print(json.dumps({"ok": True, "function_defined": name, "params": params, "body": body.strip()}))
        else:
            print(f"Defined {name}({', '.join(params)})")
        return True

    assignment = ASSIGNMENT_RE.match(line)
    if assignment:
        name, expression = assignment.groups()
        print_result(calc.assign(name, expression), output_format, variable=name)
        return True

    print_result(calc.calculate(line), output_format)
    return True


def repl_loop(calc: Calculator, output_format: str = "human") -> None:
    """Interactive REPL loop with graceful interrupt handling."""
    try:
        import readline  # noqa: F401
    except ImportError:
        # readline not available on Windows - that's fine
        pass

    print(f"sciexpr {VERSION}. Type 'help' for commands, 'quit' to exit.")
    while True:
        try:
            raw = input(">>> ").strip()
        except (EOFError, KeyboardInterrupt):
            print("\nGoodbye.")
            break
        if not raw:
            continue
        try:
            if not process_line(calc, raw, output_format):
                print("Goodbye.")
                break
        except CalculatorError as e:
            print(f"Error: {e.message}")
        except Exception as e:
            logger.error(f"Unexpected error in REPL: {e}", exc_info=True)
            print(f"Error: {e}")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="sciexpr")
    parser.add_argument(
        "-e",
        "--eval",
        type=str,
        help="Evaluate one expression and exit (non-interactive)",
        dest="eval_expr",
    )
    parser.add_argument(
        "--format",
        type=str,
        choices=["json", "human"],
        default="human",
        help="Output format: json (machine-readable) or human (human-readable)",
    )
    parser.add_argument("--angle", type=str, choices=list(ANGLE_MODES), help="Angle unit")
    parser.add_argument(
        "--precision-mode", type=str, choices=list(PRECISION_MODES), help="Numeric regime"
    )
    parser.add_argument("--complex", type=str, choices=list(COMPLEX_MODES), help="Complex number policy")
    parser.add_argument("-p", "--precision", type=int, help="Decimal precision in digits (1-1000)")
    parser.add_argument("--rounding", type=str, help="Rounding policy for round()")
    parser.add_argument(
        "--var",
        action="append",
        metavar="NAME=VALUE",
        help="Bind a variable before evaluating (repeatable)",
    )
    parser.add_argument("--rpn", action="store_true", help="Also print the RPN form of --eval")
    parser.add_argument(
        "--validate", action="store_true", help="Validate the --eval expression instead of evaluating it"
    )
    parser.add_argument("-v", "--version", action="store_true", help="Show program version")
    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
        help="Set logging level",
    )
    parser.add_argument("--log-file", type=str, help="Write logs to file")
    return parser


def _configure(calc: Calculator, args: argparse.Namespace) -> None:
    if args.angle:
        calc.set_angle_mode(args.angle)
    if args.precision_mode:
        calc.set_precision_mode(args.precision_mode)
    if args.complex:
        calc.set_complex_mode(args.complex)
    if args.precision is not None:
        calc.set_precision(args.precision)
    if args.rounding:
        calc.set_rounding_mode(args.rounding)
    for binding in args.var or []:
        name, sep, expression = binding.partition("=")
        if not sep or not expression.strip():
            raise CalculatorError(f"Invalid --var binding: {binding!r} (expected NAME=VALUE)", "INVALID_ARGUMENT")
        result = calc.assign(name.strip(), expression.strip())
        if not result.succeeded:
            raise CalculatorError(f"Cannot bind {name.strip()}: {result.error}", result.error_code or "INVALID_ARGUMENT")


def main_entry(argv: list[str] | None = None) -> int:
    """
    Main entry point for sciexpr CLI.

    Args:
        argv: Optional command-line arguments (defaults to sys.argv)

    Returns:
        Exit code (0 for success, non-zero for errors)
    """
    args = _build_parser().parse_args(argv)
    setup_logging(level=args.log_level, log_file=args.log_file)

    if args.version:
        print(VERSION)
        return 0

    calc = Calculator()
    try:
        _configure(calc, args)
    except CalculatorError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 2

    if args.eval_expr is None:
        repl_loop(calc, args.format)
        return 0

    expr = args.eval_expr.strip()
    if expr.startswith(">>>"):
        expr = expr[3:].strip()
    if not expr:
        print("Error: Empty input. Please enter a valid expression.")
        return 1

    if args.validate:
        validation = calc.validate_expression(expr)
        if args.format == "json":
            print(json.dumps(validation.to_dict(), ensure_ascii=False))
        elif validation.valid:
            print("Valid expression")
        else:
            for message in validation.errors:
                print(f"Error: {message}")
        return 0 if validation.valid else 1

    if args.rpn:
        try:
            rpn = calc.to_rpn(expr)
        except CalculatorError as e:
            rpn = None
            logger.debug(f"No RPN for {expr!r}: {e.message}")
        if rpn is not None and args.format == "human":
            print(f"RPN: {rpn}")
        elif rpn is not None:
            print(json.dumps({"rpn": rpn}, ensure_ascii=False))

    result = calc.calculate(expr)
    print_result(result, args.format)
    return 0 if result.succeeded else 1


if __name__ == "__main__":
    sys.exit(main_entry())
