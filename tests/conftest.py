"""
Pytest configuration for claudewatch tests.
"""

import sys
from pathlib import Path

# Make src/ and the shared fixtures module importable without an install
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))
sys.path.insert(0, str(Path(__file__).parent))
