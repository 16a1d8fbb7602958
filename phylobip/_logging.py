"""
_logging.py
===========
Logging functions for phylobip.

All functions in this module have NO side effects except logging. They take
computed data as parameters and format/emit log messages.

This separation ensures:
- Logging can be easily disabled/mocked in tests
- Computation is separate from presentation
- Clear boundaries between analysis and reporting
"""

import logging
from typing import List


logger = logging.getLogger(__name__)


# ============================================================================ #
# System and Backend Logging (called at module import time)
# ============================================================================ #


def log_optimization_status(numba_available: bool) -> None:
    """
    Log system capabilities and optimization library availability at INFO level.

    Called once at module import time. Reports CPU count, memory, numba version
    (if available), LLVM info, and threading configuration.

    Parameters
    ----------
    numba_available : bool
        Whether numba was successfully imported.
    """
    import os
    import platform

    cpu_count = os.cpu_count() or 1
    logger.info(
        f"System: {platform.machine()} ({platform.system()}), "
        f"{cpu_count} CPU cores, Python {platform.python_version()}"
    )

    # Memory info (optional psutil)
    try:
        import psutil

        mem = psutil.virtual_memory()
        logger.info(
            f"Memory: {mem.total / (1024**3):.1f} GB total, "
            f"{mem.available / (1024**3):.1f} GB available"
        )
    except ImportError:
        pass  # psutil not required

    if numba_available:
        import numba

        logger.info(f"Numba {numba.__version__} loaded successfully")

        try:
            import llvmlite

            logger.info(f"LLVM backend: llvmlite {llvmlite.__version__}")
        except (ImportError, AttributeError):
            pass  # LLVM version unavailable

        # threading_layer() raises until a parallel kernel has run
        try:
            logger.info(f"Numba threading: {numba.get_num_threads()} threads active")
        except (AttributeError, RuntimeError, ValueError):
            pass
    else:
        logger.info("Numba not installed; clade tables will be built in pure Python")
        logger.info("Install numba for the cpu-parallel backend: pip install numba")


def install_numba_warning_filter(numba_available: bool) -> None:
    """
    Capture NumbaPerformanceWarning and route it through our logger.

    numba issues performance warnings via Python's warnings module. This
    filter intercepts them and logs them at WARNING level so they appear in
    the same stream as other phylobip diagnostics.

    Parameters
    ----------
    numba_available : bool
        Whether numba was successfully imported.
    """
    import warnings

    if not numba_available:
        return  # No numba, no warnings to capture

    try:
        from numba.core.errors import NumbaPerformanceWarning
    except ImportError:
        return  # NumbaPerformanceWarning not available in this numba version

    original_showwarning = warnings.showwarning

    def custom_showwarning(message, category, filename, lineno, file=None, line=None):
        if issubclass(category, NumbaPerformanceWarning):
            logger.warning(f"Numba performance issue: {message}")
            logger.warning(f"  at {filename}:{lineno}")
            return
        original_showwarning(message, category, filename, lineno, file, line)

    warnings.showwarning = custom_showwarning


def log_backend_availability(
    backends_available: List[str], numba_available: bool
) -> None:
    """
    Log which execution backends are available for clade construction.

    Parameters
    ----------
    backends_available : List[str]
        List of available backends (e.g., ['python', 'cpu-parallel'])
    numba_available : bool
        Whether numba was successfully imported.
    """
    logger.info(f"Available backends: {', '.join(backends_available)}")

    if "cpu-parallel" in backends_available:
        logger.info("  cpu-parallel: LLVM-compiled kernels (numba.njit + prange sort)")
    elif numba_available:
        logger.info("  cpu-parallel: unavailable (kernel module failed to import)")

    if "python" in backends_available:
        logger.info("  python: list-based reference implementation")

    best = backends_available[-1]  # Last in list is most optimized
    logger.info(f"Default backend='best' will use: {best}")


# ============================================================================ #
# Per-call Logging
# ============================================================================ #


def log_build_request(n_edges: int, n_tips: int, order: str, backend: str) -> None:
    """Log one clade_table() call at INFO level."""
    logger.info(
        "clade_table(n_edges=%d, n_tips=%d, order=%r, backend=%r)",
        n_edges,
        n_tips,
        order,
        backend,
    )


def log_kernel_compile(kernel_key: str) -> None:
    """Log the first call of a JIT kernel, which triggers compilation."""
    logger.info("  Compiling %s kernels (cached for future calls)", kernel_key)


def log_postorder_repair(n_moved: int, n_edges: int) -> None:
    """
    Log the outcome of order='sort'.

    Parameters
    ----------
    n_moved : int
        Number of edges whose position changed.
    n_edges : int
        Total number of edges.
    """
    if n_moved == 0:
        logger.info("  Edge list already postorder-consistent")
    else:
        logger.info(
            "  Reordered %d of %d edges into postorder (%.1f%%)",
            n_moved,
            n_edges,
            100.0 * n_moved / n_edges,
        )


def log_table_statistics(
    max_node_id: int, n_tips: int, n_entries: int, n_roots: int, memory_bytes: int
) -> None:
    """
    Log the shape and memory footprint of a finished clade table.

    Parameters
    ----------
    max_node_id : int
        Number of rows (node ids 1..max_node_id).
    n_tips : int
        Number of tips.
    n_entries : int
        Total number of tip labels stored across all rows.
    n_roots : int
        Number of parent ids that never appear as a child.
    memory_bytes : int
        Footprint of the packed arrays.
    """
    logger.info(
        "Clade table built: %d nodes (%d tips, %d internal), %d entries",
        max_node_id,
        n_tips,
        max_node_id - n_tips,
        n_entries,
    )

    if n_roots != 1:
        logger.warning(
            "Edge list has %d root(s); a single rooted tree has exactly one.",
            n_roots,
        )

    mem_mb = memory_bytes / (1024**2)
    if mem_mb >= 1.0:
        logger.info("  Packed table footprint: %.1f MB", mem_mb)
    else:
        logger.info("  Packed table footprint: %.1f KB", memory_bytes / 1024)
