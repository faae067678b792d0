import os
import sys

# Automatically add the source root to sys.path
# This allows tests to import 'gmwblab' from a plain checkout
# (e.g., python -m pytest tests) without installing the package.

TESTS_DIR = os.path.dirname(os.path.abspath(__file__))
PROJECT_ROOT = os.path.abspath(os.path.join(TESTS_DIR, ".."))
SRC_DIR = os.path.join(PROJECT_ROOT, "src")

if SRC_DIR not in sys.path:
    sys.path.insert(0, SRC_DIR)
