"""Main entry point for running sciexpr_pkg as a module.

This allows running sciexpr with:
    python -m sciexpr_pkg
    python -m sciexpr_pkg -e "2+2"
    python -m sciexpr_pkg --angle deg -e "sin(30)"
"""

from __future__ import annotations

import sys

from .cli import main_entry

if __name__ == "__main__":
    sys.exit(main_entry())
