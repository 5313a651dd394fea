"""
Pytest and unittest configuration for the viewer display-state tests.

Adds project src/ to sys.path so tests can import from core, gui and utils.
Run tests from project root with:
  - pytest
  - python -m unittest discover -s tests -p "test_*.py"
  - python tests/run_tests.py
"""

import sys
import os

import pytest

# Add src to path so that "from core.xxx" and "from utils.xxx" work
_project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
_src_dir = os.path.join(_project_root, "src")
if _src_dir not in sys.path:
    sys.path.insert(0, _src_dir)

# Headless Qt for CI
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")


def pytest_configure(config):
    """Set up console logging and mark tests that need a Qt application instance (PySide6)."""
    from utils.debug_log import configure_logging
    configure_logging()
    config.addinivalue_line("markers", "qt: mark test as requiring a Qt application (PySide6)")


@pytest.fixture(scope="session")
def qapp():
    """Provide a QCoreApplication for tests using Qt signals. One per test session."""
    from PySide6.QtCore import QCoreApplication
    app = QCoreApplication.instance()
    if app is None:
        app = QCoreApplication(sys.argv)
    return app
