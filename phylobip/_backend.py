"""
_backend.py
===========
Backend detection and selection for the clade builder.

This module detects available execution backends (pure Python and
CPU-parallel via numba) and provides functions to query and select the best
backend.

Functions in this module have NO side effects - they only query system state.
Logging is done by the calling code, not here.
"""

from typing import List, Tuple, Optional


# ============================================================================ #
# Backend Detection (No Side Effects)
# ============================================================================ #


def check_numba_available() -> bool:
    """
    Check if numba is available for CPU parallelization.

    Returns
    -------
    bool
        True if numba can be imported, False otherwise.
    """
    try:
        import numba  # noqa: F401

        return True
    except ImportError:
        return False


def get_available_backends() -> List[str]:
    """
    Get list of available execution backends.

    Returns
    -------
    list[str]
        List of available backends in preference order.
        Always includes 'python'.
        Includes 'cpu-parallel' if numba is available and the kernels
        import cleanly.

    Examples
    --------
    >>> get_available_backends()
    ['python']  # No numba installed

    >>> get_available_backends()
    ['python', 'cpu-parallel']
    """
    backends = ["python"]  # Always available

    if check_numba_available():
        kernels_ok, _ = import_cpu_kernels()
        if kernels_ok:
            backends.append("cpu-parallel")

    return backends


def get_best_backend() -> str:
    """
    Get the most optimized available backend.

    Returns
    -------
    str
        'cpu-parallel' if available, otherwise 'python'.
    """
    backends = get_available_backends()
    # List is in preference order, last is best
    return backends[-1]


def resolve_backend(backend: str) -> str:
    """
    Resolve a backend specification to an actual backend.

    Parameters
    ----------
    backend : str
        Backend specification:
        - 'best': Use the best available backend
        - 'python', 'cpu-parallel': Use specific backend

    Returns
    -------
    str
        Resolved backend name.

    Raises
    ------
    ValueError
        If requested backend is not available.

    Examples
    --------
    >>> resolve_backend('best')
    'cpu-parallel'  # Returns best available

    >>> resolve_backend('python')
    'python'
    """
    if backend == "best":
        return get_best_backend()

    # Validate requested backend is available
    available = get_available_backends()
    if backend not in available:
        raise ValueError(
            f"Backend '{backend}' not available. "
            f"Available backends: {', '.join(available)}"
        )

    return backend


# ============================================================================ #
# Kernel Import Helpers
# ============================================================================ #


def import_cpu_kernels() -> Tuple[bool, Optional[dict]]:
    """
    Try to import CPU kernels from the _kernels module.

    Returns
    -------
    tuple
        (success, kernels)
        - success: Whether import succeeded
        - kernels: dict with keys 'order_check', 'sizes', 'fill', 'sort'
          mapping to the njit functions, or None
    """
    try:
        from phylobip._kernels import (
            _first_order_violation_nb,
            _clade_sizes_nb,
            _clade_fill_nb,
            _sort_clades_nb,
        )
    except ImportError:
        return (False, None)

    return (
        True,
        {
            "order_check": _first_order_violation_nb,
            "sizes": _clade_sizes_nb,
            "fill": _clade_fill_nb,
            "sort": _sort_clades_nb,
        },
    )


# ============================================================================ #
# Module-Level State Query (Read-Only)
# ============================================================================ #


def get_backend_info() -> dict:
    """
    Get comprehensive backend information.

    Returns
    -------
    dict
        Dictionary with keys:
        - 'numba_available': bool
        - 'backends': list[str]
        - 'best_backend': str
        - 'cpu_kernels_available': bool

    Examples
    --------
    >>> info = get_backend_info()
    >>> info['backends']
    ['python', 'cpu-parallel']
    """
    cpu_kernels_ok, _ = import_cpu_kernels()

    return {
        "numba_available": check_numba_available(),
        "backends": get_available_backends(),
        "best_backend": get_best_backend(),
        "cpu_kernels_available": cpu_kernels_ok,
    }
