"""
_bipartition.py
===============
The bipartition builder: descendant tip sets for every node of a rooted tree
given as a (parent, child) edge list.

Public API
----------
  clade_table(edges, n_tips, order="check", backend="best") -> CladeTable
      Packed result; see phylobip._table.

  bipartitions(edges, n_tips, order="check", backend="best")
      -> dict[int, list[int]]
      Same computation as ``clade_table(...).to_dict()``.

Algorithm
---------
  1. One empty container per node id 1..max_node_id, where max_node_id is
     the largest parent id.
  2. Tip ids 1..n_tips are seeded with themselves.
  3. One forward pass over the edges.  A tip child is appended to its
     parent; an internal child's current contents are copied (by value)
     onto the end of its parent's container.
  4. Every container is sorted ascending.  Clades below distinct children
     are disjoint in a tree, so no deduplication is needed.

Step 3 is only correct when every internal child is complete before it is
copied, i.e. when the edges are in a postorder-consistent order.  The
``order`` keyword decides what happens otherwise:

  "check"      verify the order first; raise OrderingViolationError on the
               first offending edge (default)
  "sort"       reorder the edges into postorder first
  "unchecked"  trust the caller; a bad order yields incomplete clades

Backends
--------
  "python"        list-based reference implementation, always available
  "cpu-parallel"  numba kernels: size pass, fill pass into a CSR buffer,
                  parallel per-node sort
  "best"          the most optimized available backend

Both backends replay the edges in the same order, so they agree exactly,
including on order-violating input in "unchecked" mode.

Logging
-------
The module logs through ``logging.getLogger('phylobip._bipartition')``:

  INFO level:    System capabilities and numba status (once, at import),
                 available backends, each build request, first-call kernel
                 compilation, postorder repairs, table size and footprint.
  WARNING level: Unavailable backend fallbacks, edge lists with more than
                 one root, numba performance warnings.

    import logging
    logging.getLogger('phylobip').setLevel(logging.WARNING)
"""

import logging
from typing import Any, Dict, List

import numpy as np

from phylobip._table import CladeTable
from phylobip._errors import OrderingViolationError
from phylobip._edges import (
    as_edge_array,
    validate_edges,
    split_columns,
    check_internal_parents,
    first_order_violation,
    postorder_index,
)

# Import logging functions from separate module
from phylobip._logging import (
    log_optimization_status,
    install_numba_warning_filter,
    log_backend_availability,
    log_build_request,
    log_kernel_compile,
    log_postorder_repair,
    log_table_statistics,
)

# Import backend detection from separate module
from phylobip._backend import (
    check_numba_available,
    get_available_backends,
    get_best_backend,
    resolve_backend,
    import_cpu_kernels,
)

from phylobip._context import get_backend_override


logger = logging.getLogger(__name__)

ORDER_MODES = ("check", "sort", "unchecked")

_NUMBA_AVAILABLE = check_numba_available()
_cpu_import_ok, _cpu_kernels = import_cpu_kernels()
_BACKENDS_AVAILABLE = get_available_backends()

# Track first calls to kernels for compilation logging
_kernel_first_call = {"cpu-parallel": True}

# Log system info and backend availability on module import
log_optimization_status(_NUMBA_AVAILABLE)
log_backend_availability(_BACKENDS_AVAILABLE, _NUMBA_AVAILABLE)
install_numba_warning_filter(_NUMBA_AVAILABLE)


# ======================================================================== #
# Aggregation                                                               #
# ======================================================================== #


def _aggregate_python(
    parent: List[int], child: List[int], n_tips: int, max_node_id: int
) -> List[List[int]]:
    """
    Reference aggregation.  Row ``i - 1`` of the result is node ``i``.

    ``list.extend`` copies the child's current elements, so a parent never
    shares storage with a child.
    """
    clades: List[List[int]] = [[] for _ in range(max_node_id)]
    for i in range(n_tips):
        clades[i].append(i + 1)

    for p, c in zip(parent, child):
        if c > n_tips:
            clades[p - 1].extend(clades[c - 1])
        else:
            clades[p - 1].append(c)

    for clade in clades:
        clade.sort()
    return clades


def _aggregate_cpu(
    parent: np.ndarray, child: np.ndarray, n_tips: int, max_node_id: int
):
    """Numba aggregation; returns ``(offsets, tips)`` CSR arrays."""
    if _kernel_first_call["cpu-parallel"]:
        log_kernel_compile("cpu-parallel")
        _kernel_first_call["cpu-parallel"] = False

    sizes = _cpu_kernels["sizes"](parent, child, n_tips, max_node_id)
    offsets = np.zeros(max_node_id + 1, dtype=np.int64)
    np.cumsum(sizes, out=offsets[1:])

    tips = np.empty(int(offsets[-1]), dtype=np.int32)
    _cpu_kernels["fill"](parent, child, n_tips, offsets, tips)
    _cpu_kernels["sort"](offsets, tips)
    return offsets, tips


def _find_roots(parent: np.ndarray, child: np.ndarray) -> np.ndarray:
    """Ascending node ids that appear as a parent but never as a child."""
    return np.setdiff1d(parent, child)


def _select_backend(backend: str) -> str:
    backend_override = get_backend_override()
    if backend_override is not None:
        backend = backend_override

    try:
        return resolve_backend(backend)
    except ValueError as e:
        # Backend not available, fall back to best available
        logger.warning(str(e))
        return get_best_backend()


# ======================================================================== #
# Public API                                                                #
# ======================================================================== #


def clade_table(
    edges: Any, n_tips: int, order: str = "check", backend: str = "best"
) -> CladeTable:
    """
    Build the descendant tip set of every node id 1..max_node_id.

    Parameters
    ----------
    edges : array-like, shape (n_edges, 2)
        ``(parent, child)`` rows of positive integer node ids.  Ids
        ``1..n_tips`` are tips; larger ids are internal nodes.
    n_tips : int
        Number of tips.
    order : {'check', 'sort', 'unchecked'}, default 'check'
        How to treat the postorder precondition:

        - 'check': raise OrderingViolationError if an internal child is used
          before all of its own edges were seen.
        - 'sort': reorder the edges into postorder before aggregating.
        - 'unchecked': aggregate in the given order; a violating order
          silently yields incomplete clades.

        'check' and 'sort' also reject internal ids that never appear as
        a parent.
    backend : str, default 'best'
        'python', 'cpu-parallel' or 'best'.  An unavailable backend logs a
        warning and falls back to the best available one.  An active
        ``use_backend()`` context takes precedence.

    Returns
    -------
    CladeTable
        ``table[i] == [i]`` for tips; for an internal node, the ascending
        tips of the subtree rooted at it.

    Raises
    ------
    MalformedInputError
        Empty edge list, non-integer or wrongly shaped input, non-positive
        ids, child ids above the largest parent id, ``n_tips`` not below the
        largest parent id, and (checked modes) missing internal parents or
        cycles.
    OrderingViolationError
        order='check' and the edges are not postorder-consistent.
    ValueError
        Unknown *order*.

    Examples
    --------
    >>> table = clade_table([(4, 1), (4, 2), (5, 3), (5, 4)], 3)
    >>> table[4], table[5]
    ([1, 2], [1, 2, 3])
    """
    if order not in ORDER_MODES:
        raise ValueError(
            f"Unknown order mode {order!r}; expected one of {', '.join(ORDER_MODES)}."
        )

    # ── 1. Normalise and validate ──────────────────────────────────────
    arr = as_edge_array(edges)
    max_node_id = validate_edges(arr, n_tips)
    n_tips = int(n_tips)
    n_edges = arr.shape[0]

    resolved_backend = _select_backend(backend)
    log_build_request(n_edges, n_tips, order, resolved_backend)

    parent, child = split_columns(arr)

    # ── 2. Ordering precondition ───────────────────────────────────────
    if order != "unchecked":
        check_internal_parents(parent, n_tips, max_node_id)

    if order == "check":
        if resolved_backend == "cpu-parallel":
            e = int(
                _cpu_kernels["order_check"](parent, child, n_tips, max_node_id)
            )
        else:
            e = first_order_violation(parent, child, n_tips, max_node_id)
        if e >= 0:
            raise OrderingViolationError(e, int(parent[e]), int(child[e]))

    elif order == "sort":
        perm = postorder_index(parent, child, n_tips, max_node_id)
        log_postorder_repair(
            int(np.count_nonzero(perm != np.arange(n_edges))), n_edges
        )
        parent = np.ascontiguousarray(parent[perm])
        child = np.ascontiguousarray(child[perm])

    roots = _find_roots(parent, child)

    # ── 3. Dispatch to the selected backend ────────────────────────────
    if resolved_backend == "cpu-parallel":
        offsets, tips = _aggregate_cpu(parent, child, n_tips, max_node_id)
        table = CladeTable(offsets, tips, n_tips, roots)

    elif resolved_backend == "python":
        clades = _aggregate_python(
            parent.tolist(), child.tolist(), n_tips, max_node_id
        )
        table = CladeTable.from_lists(clades, n_tips, roots)

    else:
        # This should never be reached due to validation above
        raise RuntimeError(f"Internal error: unhandled backend {resolved_backend!r}")

    log_table_statistics(
        max_node_id, n_tips, int(table.tips.shape[0]), int(roots.shape[0]), table.nbytes
    )
    return table


def bipartitions(
    edges: Any, n_tips: int, order: str = "check", backend: str = "best"
) -> Dict[int, List[int]]:
    """
    Return ``{node_id: ascending descendant tip labels}`` for node ids
    1..max_node_id.

    Parameters, exceptions and ordering modes are those of
    ``clade_table``.  Every list in the result is a separate object.

    Examples
    --------
    >>> bipartitions([(3, 1), (3, 2)], 2)
    {1: [1], 2: [2], 3: [1, 2]}

    >>> bipartitions([(4, 1), (4, 2), (5, 3), (5, 4)], 3)
    {1: [1], 2: [2], 3: [3], 4: [1, 2], 5: [1, 2, 3]}
    """
    return clade_table(edges, n_tips, order=order, backend=backend).to_dict()
