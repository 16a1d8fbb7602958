"""
_kernels.py
===========
CPU-accelerated clade aggregation kernels using Numba.

This module contains ONLY numba-accelerated code and should not import other
project modules to avoid import-time complications.  Importing it requires
numba; ``_backend.import_cpu_kernels`` reports the module as unavailable
when numba is missing and the python backend is used instead.

Exported Functions
------------------
_first_order_violation_nb : njit function
    Index of the first edge breaking the postorder precondition, or -1.

_clade_sizes_nb : njit function
    Clade size of every node, following the exact aggregation order.

_clade_fill_nb : njit function
    Fill a CSR buffer with the (unsorted) clade of every node.

_sort_clades_nb : njit function
    Parallel per-node sort of the CSR buffer.

Notes
-----
- All node ids passed in are 1-based; rows of the output are 0-based
  (node ``i`` lives in row ``i - 1``).
- The size and fill passes replay the edge list in input order, so the
  packed result matches the python backend even for edge lists that break
  the ordering precondition.
- cache=True persists compiled binary to disk for faster subsequent runs
"""

import numpy as np
from numba import njit, prange


# ======================================================================== #
# CPU Kernels                                                               #
# ======================================================================== #


@njit(cache=True)
def _first_order_violation_nb(parent, child, n_tips, max_node_id):
    """
    Return the first edge index whose internal child still has outgoing
    edges left to process, or -1.

    Parameters
    ----------
    parent, child : int64[n_edges]
        Edge columns (1-based node ids).
    n_tips : int
        Tip ids are 1..n_tips.
    max_node_id : int
        Largest parent id.

    Returns
    -------
    int
    """
    n_edges = parent.shape[0]
    remaining = np.zeros(max_node_id + 1, dtype=np.int64)
    for e in range(n_edges):
        remaining[parent[e]] += 1
    for e in range(n_edges):
        c = child[e]
        if c > n_tips and remaining[c] != 0:
            return e
        remaining[parent[e]] -= 1
    return -1


@njit(cache=True)
def _clade_sizes_nb(parent, child, n_tips, max_node_id):
    """
    Compute clade sizes by replaying the aggregation on counts only.

    Parameters
    ----------
    parent, child : int64[n_edges]
    n_tips : int
    max_node_id : int

    Returns
    -------
    int64[max_node_id]
        Number of tip labels each node's clade will hold.
    """
    sizes = np.zeros(max_node_id, dtype=np.int64)
    for i in range(n_tips):
        sizes[i] = 1
    for e in range(parent.shape[0]):
        p = parent[e] - 1
        c = child[e]
        if c > n_tips:
            sizes[p] += sizes[c - 1]
        else:
            sizes[p] += 1
    return sizes


@njit(cache=True)
def _clade_fill_nb(parent, child, n_tips, offsets, tips_out):
    """
    Write every node's clade into its CSR segment of *tips_out*.

    An internal child's current segment is copied element by element into
    the parent's segment; the two segments never overlap.

    Parameters
    ----------
    parent, child : int64[n_edges]
    n_tips : int
    offsets : int64[max_node_id + 1]
        Prefix sums of ``_clade_sizes_nb``.
    tips_out : int32[offsets[-1]]
        Output buffer, filled in place.
    """
    max_node_id = offsets.shape[0] - 1
    fill = np.zeros(max_node_id, dtype=np.int64)
    for i in range(n_tips):
        tips_out[offsets[i]] = i + 1
        fill[i] = 1
    for e in range(parent.shape[0]):
        p = parent[e] - 1
        c = child[e]
        dst = offsets[p] + fill[p]
        if c > n_tips:
            src = offsets[c - 1]
            k = fill[c - 1]
            for j in range(k):
                tips_out[dst + j] = tips_out[src + j]
            fill[p] += k
        else:
            tips_out[dst] = c
            fill[p] += 1


@njit(parallel=True, cache=True)
def _sort_clades_nb(offsets, tips_out):
    """
    Sort each CSR segment of *tips_out* ascending, in place.

    The outer loop over nodes runs in parallel via prange.  Segments are
    disjoint, so no synchronisation is needed.

    Parameters
    ----------
    offsets : int64[max_node_id + 1]
    tips_out : int32[offsets[-1]]
    """
    max_node_id = offsets.shape[0] - 1
    for i in prange(max_node_id):
        lo = offsets[i]
        hi = offsets[i + 1]
        if hi - lo > 1:
            tips_out[lo:hi] = np.sort(tips_out[lo:hi])
