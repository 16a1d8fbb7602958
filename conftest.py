"""
conftest.py
===========
Session-level pytest configuration for the test suite.

Custom marks
------------
large_scale
    Applied to tests that build clade tables for trees with tens of
    thousands of tips.  Run them with ``-m large_scale``; they are cheap
    enough to stay in the default run.

    Registration here suppresses PytestUnknownMarkWarning and makes the mark
    visible in ``pytest --markers``.

Warning filters
---------------
NumbaPerformanceWarning messages are filtered out during tests. These warnings
about under-utilised parallel loops are expected with small test trees and
are not informative for correctness testing.
"""

import pytest
import warnings


def pytest_configure(config):
    """
    Configure pytest before test collection begins.

    This runs very early in the pytest lifecycle, before any test modules
    are imported, which is important for catching warnings from numba
    kernel compilation.
    """
    config.addinivalue_line(
        "markers",
        "large_scale: clade tables for trees with tens of thousands of tips",
    )

    try:
        from numba.core.errors import NumbaPerformanceWarning
        warnings.filterwarnings('ignore', category=NumbaPerformanceWarning)
    except ImportError:
        # Numba not available, no warnings to suppress
        pass


def pytest_unconfigure(config):
    """Restore default warning behavior."""
    warnings.resetwarnings()
