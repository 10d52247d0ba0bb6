#!/usr/bin/env python3
"""Launcher for running a1emu from a source checkout: ``python main.py --help``."""

import os
import sys

# ---------------------------------------------------------------------------
# Ensure the project root is on sys.path so that ``a1emu`` can be imported
# regardless of how the script is invoked.
# ---------------------------------------------------------------------------
_PROJECT_ROOT = os.path.dirname(os.path.abspath(__file__))
if _PROJECT_ROOT not in sys.path:
    sys.path.insert(0, _PROJECT_ROOT)

from a1emu.main import main

if __name__ == "__main__":
    sys.exit(main())
