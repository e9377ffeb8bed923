#!/usr/bin/env python3
"""Household Pledge Consolidator.

Entry point script that wraps the package CLI for running from a checkout.

Usage:
    python consolidate_pledges.py exports/fy24.xlsx exports/fy25.xlsx -o comparison.csv

For full documentation and options:
    python consolidate_pledges.py --help
"""

import sys
from pathlib import Path

# Add src to path for development installs
src_path = Path(__file__).parent / "src"
if src_path.exists():
    sys.path.insert(0, str(src_path))

from pledge_consolidator.cli import main

if __name__ == "__main__":
    sys.exit(main())
