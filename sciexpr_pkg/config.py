"""Centralized configuration for sciexpr.

This module defines:
- Input limits (length, nesting depth) guarding the tokenizer and parser
- Exact-arithmetic limits for big integers
- History capacity and output formatting precision
- Documented defaults and allowed values for the scientific modes
- Numeric tolerances for root finding and integration

Configuration can be overridden via:
- CLI flags (see cli.py)
- Environment variables (prefixed with SCIEXPR_)

The mode defaults are fixed: ScientificModes.reset() must always restore the
same documented state.
"""

import os
import re

# Version is defined in pyproject.toml [project] section
try:
    import importlib.metadata

    VERSION = importlib.metadata.version("sciexpr")
except Exception:
    # Fallback if package not installed
    VERSION = "1.0.0"

# Input validation limits
MAX_INPUT_LENGTH = int(os.getenv("SCIEXPR_MAX_INPUT_LENGTH", "10000"))  # characters
MAX_NESTING_DEPTH = int(
    os.getenv("SCIEXPR_MAX_NESTING_DEPTH", "100")
)  # parenthesis depth

# Exact arithmetic limits
MAX_INTEGER_EXPONENT = int(
    os.getenv("SCIEXPR_MAX_INTEGER_EXPONENT", "100000")
)  # largest exponent for exact big-integer powers
MAX_FACTORIAL_ARGUMENT = int(os.getenv("SCIEXPR_MAX_FACTORIAL_ARGUMENT", "10000"))

# Calculator state
HISTORY_SIZE = int(os.getenv("SCIEXPR_HISTORY_SIZE", "100"))
OUTPUT_PRECISION = int(
    os.getenv("SCIEXPR_OUTPUT_PRECISION", "15")
)  # significant digits for IEEE-754 results

# Numeric solver configuration
ROOT_SEARCH_TOLERANCE = float(os.getenv("SCIEXPR_ROOT_SEARCH_TOLERANCE", "1e-12"))
MAX_ROOT_STEPS = int(os.getenv("SCIEXPR_MAX_ROOT_STEPS", "100"))
INTEGRATION_MAX_DEGREE = int(
    os.getenv("SCIEXPR_INTEGRATION_MAX_DEGREE", "6")
)  # quadrature refinement levels

# Scientific mode enumerations and documented defaults
ANGLE_MODES = ("rad", "deg", "grad")
PRECISION_MODES = ("ieee754", "bigint", "decimal")
COMPLEX_MODES = ("off", "on", "auto")
ROUNDING_MODES = ("nearest", "up", "down", "toward_zero")
ROUNDING_MODE_ALIASES = {"towardzero": "toward_zero", "toward-zero": "toward_zero"}

DEFAULT_ANGLE_MODE = "rad"
DEFAULT_PRECISION_MODE = "ieee754"
DEFAULT_COMPLEX_MODE = "off"
DEFAULT_PRECISION = 50
DEFAULT_ROUNDING_MODE = "nearest"
MIN_PRECISION = 1
MAX_PRECISION = 1000

VAR_NAME_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
