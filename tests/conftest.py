import os
import sys


def pytest_configure():
    # Make the top-level packages under `src/` (registry, state, ...) importable
    # without installing the project
    root = os.path.abspath(os.path.dirname(os.path.dirname(__file__)))
    src_path = os.path.join(root, "src")
    if src_path not in sys.path:
        sys.path.insert(0, src_path)
