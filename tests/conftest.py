"""Pytest configuration for the Sprig test suite."""

import sys
from pathlib import Path

# Add src directory to path so tests run without an install
SRC_DIR = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(SRC_DIR))
