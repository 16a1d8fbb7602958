"""
_context.py
===========
Context managers for phylobip.

Provides clean, Pythonic context managers for temporarily changing state:
- Logging control (suppress/change levels)
- Warning control (suppress specific warnings)
- Backend selection (force specific backend)

All context managers properly restore state on exit, even if exceptions occur.
"""

import logging
import warnings
from contextlib import contextmanager
from typing import Optional, Type


# Module-level state for backend override
_backend_override = None

# Parent logger of every phylobip module logger
PACKAGE_LOGGER = "phylobip"


# ============================================================================ #
# Logging Context Managers
# ============================================================================ #


@contextmanager
def suppress_logger(logger_name: str, level: int = logging.CRITICAL):
    """
    Temporarily change a logger's level.

    Parameters
    ----------
    logger_name : str
        Name of the logger to suppress (e.g., 'phylobip._bipartition')
    level : int, default logging.CRITICAL
        Temporary logging level.

    Yields
    ------
    None
        Control is yielded back to the with-block.

    Examples
    --------
    >>> with suppress_logger('phylobip._bipartition', logging.WARNING):
    ...     table = clade_table(edges, n_tips)

    Notes
    -----
    - Exception-safe: Logger level restored even if exception raised
    - Nesting-safe: Can nest multiple suppress_logger contexts
    """
    logger = logging.getLogger(logger_name)
    original_level = logger.level

    try:
        logger.setLevel(level)
        yield
    finally:
        logger.setLevel(original_level)


@contextmanager
def quiet(level: int = logging.CRITICAL):
    """
    Temporarily suppress all phylobip logging.

    Sets the level of the package logger; module loggers without an
    explicit level inherit it.

    Parameters
    ----------
    level : int, default logging.CRITICAL
        Temporary logging level for the package logger.

    Examples
    --------
    >>> with quiet():
    ...     result = bipartitions(edges, n_tips)

    >>> # Show only warnings
    >>> with quiet(logging.WARNING):
    ...     result = bipartitions(edges, n_tips, backend='cpu-parallel')
    """
    with suppress_logger(PACKAGE_LOGGER, level):
        yield


# ============================================================================ #
# Warning Context Managers
# ============================================================================ #


@contextmanager
def suppress_warnings(category: Optional[Type[Warning]] = None):
    """
    Temporarily suppress warnings.

    Parameters
    ----------
    category : Type[Warning] or None, default None
        Warning category to suppress. If None, suppresses all warnings.

    Examples
    --------
    >>> from numba.core.errors import NumbaPerformanceWarning
    >>> with suppress_warnings(NumbaPerformanceWarning):
    ...     table = clade_table(edges, n_tips, backend='cpu-parallel')

    Notes
    -----
    - Uses Python's warnings.catch_warnings() internally
    - Fully restores warning state on exit
    """
    with warnings.catch_warnings():
        if category is None:
            warnings.simplefilter("ignore")
        else:
            warnings.filterwarnings("ignore", category=category)
        yield


# ============================================================================ #
# Backend Context Managers
# ============================================================================ #


@contextmanager
def use_backend(backend: str):
    """
    Temporarily force a specific backend for clade construction.

    Parameters
    ----------
    backend : str
        Backend to use. Valid options:
        - 'python': Pure Python (slow, always available)
        - 'cpu-parallel': Numba kernels (requires numba)
        - 'best': Use best available (default behavior)

    Raises
    ------
    ValueError
        If requested backend is not available.

    Examples
    --------
    >>> with use_backend('python'):
    ...     result = bipartitions(edges, n_tips)

    Notes
    -----
    This context manager modifies module-level state and is NOT thread-safe.
    Pass ``backend=`` directly to ``bipartitions()`` / ``clade_table()``
    when calling from several threads.
    """
    global _backend_override

    # Validate backend is available
    from ._backend import get_available_backends

    available = get_available_backends()

    if backend != "best" and backend not in available:
        raise ValueError(
            f"Backend '{backend}' not available. "
            f"Available backends: {', '.join(available)}"
        )

    original_override = _backend_override

    try:
        _backend_override = backend
        yield
    finally:
        _backend_override = original_override


def get_backend_override() -> Optional[str]:
    """
    Get the current backend override, if any.

    Returns
    -------
    str or None
        Current backend override, or None if no override active.
    """
    return _backend_override


# ============================================================================ #
# Combined Context Managers
# ============================================================================ #


@contextmanager
def silent_benchmark(backend: str = "best"):
    """
    Suppress logging and warnings while forcing a specific backend.

    Examples
    --------
    >>> for backend in ['python', 'cpu-parallel']:
    ...     with silent_benchmark(backend):
    ...         start = time.time()
    ...         table = clade_table(edges, n_tips)
    ...         print(f"{backend}: {time.time() - start:.3f}s")
    """
    with quiet():
        with use_backend(backend):
            with suppress_warnings():
                yield
