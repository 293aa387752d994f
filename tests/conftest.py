# tests/conftest.py
import sys, os
# Add the flat module directory (python/) to sys.path so tests import without installing
SRC = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "python")
if SRC not in sys.path:
    sys.path.insert(0, SRC)
