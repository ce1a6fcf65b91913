"""Integration tests for CLI functionality."""

import json
import subprocess
import sys


def run_cli(*args):
    return subprocess.run(
        [sys.executable, "-m", "sciexpr_pkg.cli", *args],
        capture_output=True,
        text=True,
        timeout=10,
    )


def test_cli_version():
    """Test --version flag."""
    result = run_cli("--version")
    assert result.returncode == 0
    assert result.stdout.strip() != ""


def test_cli_eval_json():
    """Test CLI evaluation with JSON output."""
    result = run_cli("--eval", "2+2", "--format", "json")
    assert result.returncode == 0
    data = json.loads(result.stdout.strip())
    assert data["ok"] is True
    assert data["result"] == "4"


def test_cli_eval_human():
    """Test CLI evaluation with human output."""
    result = run_cli("--eval", "2+3*4")
    assert result.returncode == 0
    assert result.stdout.strip() == "14"


def test_cli_error_exit_code():
    """Test that a failed evaluation exits with status 1."""
    result = run_cli("--eval", "1/0")
    assert result.returncode == 1
    assert "Division by zero" in result.stdout


def test_cli_modes():
    """Test mode flags."""
    result = run_cli("--angle", "deg", "-e", "sin(30)")
    assert result.stdout.strip() == "0.5"
    result = run_cli("--complex", "on", "-e", "sqrt(-9)")
    assert result.stdout.strip() == "3i"


def test_module_entry_point():
    """Test python -m sciexpr_pkg."""
    result = subprocess.run(
        [sys.executable, "-m", "sciexpr_pkg", "-e", "2^10"],
        capture_output=True,
        text=True,
        timeout=10,
    )
    assert result.returncode == 0
    assert result.stdout.strip() == "1024"


def test_cli_repl_from_stdin():
    """Test the REPL reading commands from a pipe."""
    result = subprocess.run(
        [sys.executable, "-m", "sciexpr_pkg.cli"],
        input="x = 4\nx^2\nquit\n",
        capture_output=True,
        text=True,
        timeout=10,
    )
    assert result.returncode == 0
    assert "x = 4" in result.stdout
    assert "16" in result.stdout
    assert "Goodbye." in result.stdout
