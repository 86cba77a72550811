# conftest.py — package root
#
# Puts the repository root on sys.path when pytest is invoked without an
# installed package, so "from stabilization_engine.engine import ..." and the
# root-level runner module both resolve in every test file.
#
# Usage:
#   pytest stabilization_engine/tests -v
#   pytest stabilization_engine/tests/test_engine.py -v

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))
