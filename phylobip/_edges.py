"""
_edges.py
=========
Edge-list normalisation, validation and ordering helpers.

An edge list is a two-column integer table, one ``(parent, child)`` row per
edge.  Node ids ``1..n_tips`` are tips; larger ids are internal nodes.  The
largest parent id is ``max_node_id`` and fixes the size of the clade table.

Functions in this module have NO side effects except DEBUG/INFO logging.
They are shared by every backend; the numba kernels only ever see arrays
that already passed ``validate_edges``.

Public API
----------
  as_edge_array(edges)                 -> int64 ndarray (E, 2)
  validate_edges(edges, n_tips)        -> max_node_id
  check_edge_order(edges, n_tips)      -> None, raises OrderingViolationError
  postorder_edges(edges, n_tips)       -> int64 ndarray (E, 2)
"""

import logging
import operator
from typing import Any, Tuple

import numpy as np

from phylobip._errors import MalformedInputError, OrderingViolationError


logger = logging.getLogger(__name__)


# ============================================================================ #
# Normalisation                                                                #
# ============================================================================ #


def as_edge_array(edges: Any) -> np.ndarray:
    """
    Convert *edges* to a C-contiguous ``int64`` array of shape ``(E, 2)``.

    Parameters
    ----------
    edges : array-like
        Numpy array, list of tuples or list of lists of integers.

    Returns
    -------
    np.ndarray
        int64 array, shape (E, 2).  A fresh copy; the caller's data is
        never aliased.

    Raises
    ------
    MalformedInputError
        If *edges* is empty, ragged, not two columns wide, boolean, or
        contains non-integer values or ids beyond the int64 range.

    Examples
    --------
    >>> as_edge_array([(3, 1), (3, 2)])
    array([[3, 1],
           [3, 2]])
    """
    try:
        arr = np.asarray(edges)
    except ValueError as e:
        raise MalformedInputError(f"Edge list is not a rectangular table: {e}") from e

    if arr.size == 0:
        raise MalformedInputError("Edge list is empty; at least one edge is required.")

    if arr.ndim != 2 or arr.shape[1] != 2:
        raise MalformedInputError(
            f"Edge list must have shape (n_edges, 2); got {arr.shape}."
        )

    kind = arr.dtype.kind
    if kind == "f":
        # Integral floats (e.g. numeric matrices from R) are accepted.
        if not (np.all(np.isfinite(arr)) and np.all(arr == np.floor(arr))):
            raise MalformedInputError("Edge ids must be integers; got non-integral floats.")
        if np.abs(arr).max() >= 2.0**63:
            raise MalformedInputError("Edge ids exceed the int64 range.")
    elif kind not in "iu":
        raise MalformedInputError(f"Edge ids must be integers; got dtype {arr.dtype}.")

    if kind == "u" and int(arr.max()) > np.iinfo(np.int64).max:
        raise MalformedInputError("Edge ids exceed the int64 range.")

    out = np.ascontiguousarray(arr, dtype=np.int64).copy()
    logger.debug("Normalised edge list: %d edges, dtype %s -> int64", out.shape[0], arr.dtype)
    return out


def _as_tip_count(n_tips: Any) -> int:
    if isinstance(n_tips, (bool, np.bool_)):
        raise MalformedInputError("n_tips must be a positive integer, not a bool.")
    try:
        n = operator.index(n_tips)
    except TypeError as e:
        raise MalformedInputError(
            f"n_tips must be a positive integer; got {n_tips!r}."
        ) from e
    if n < 1:
        raise MalformedInputError(f"n_tips must be a positive integer; got {n}.")
    return n


def split_columns(edges: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """Return contiguous (parent, child) columns of a normalised edge array."""
    return (
        np.ascontiguousarray(edges[:, 0]),
        np.ascontiguousarray(edges[:, 1]),
    )


# ============================================================================ #
# Validation                                                                   #
# ============================================================================ #


def validate_edges(edges: Any, n_tips: Any) -> int:
    """
    Check the structural requirements of the aggregation and return
    ``max_node_id``.

    Parameters
    ----------
    edges : array-like
        Edge list, see ``as_edge_array``.
    n_tips : int
        Number of tips; tip ids are ``1..n_tips``.

    Returns
    -------
    int
        The largest parent id, i.e. the number of rows in the clade table.

    Raises
    ------
    MalformedInputError
        Non-positive ids, a child id greater than ``max_node_id``, a tip
        count that leaves no internal node, more internal ids than edges,
        or any condition raised by ``as_edge_array``.

    Notes
    -----
    The ordering precondition is NOT checked here; see
    ``check_edge_order``.
    """
    arr = edges if _is_normalised(edges) else as_edge_array(edges)
    n = _as_tip_count(n_tips)

    parent, child = arr[:, 0], arr[:, 1]

    bad = np.flatnonzero(parent < 1)
    if bad.size:
        i = int(bad[0])
        raise MalformedInputError(
            f"Edge {i} has non-positive parent id {int(parent[i])}."
        )
    bad = np.flatnonzero(child < 1)
    if bad.size:
        i = int(bad[0])
        raise MalformedInputError(
            f"Edge {i} has non-positive child id {int(child[i])}."
        )

    max_node_id = int(parent.max())

    bad = np.flatnonzero(child > max_node_id)
    if bad.size:
        i = int(bad[0])
        raise MalformedInputError(
            f"Edge {i} has child id {int(child[i])}, which exceeds the largest "
            f"parent id {max_node_id}; its clade could never be reported."
        )

    if n >= max_node_id:
        raise MalformedInputError(
            f"n_tips={n} leaves no internal node: the largest parent id is "
            f"{max_node_id}, so internal ids ({n}, {max_node_id}] are empty."
        )

    # Every internal id needs at least one outgoing edge.
    if max_node_id - n > arr.shape[0]:
        raise MalformedInputError(
            f"The largest parent id {max_node_id} implies {max_node_id - n} "
            f"internal nodes, but there are only {arr.shape[0]} edges."
        )

    return max_node_id


def check_internal_parents(parent: np.ndarray, n_tips: int, max_node_id: int) -> None:
    """
    Raise MalformedInputError if an internal id in ``(n_tips, max_node_id]``
    never appears as a parent.  Such a node would get an empty clade.
    """
    present = np.unique(parent[parent > n_tips])
    n_missing = (max_node_id - n_tips) - present.size
    if n_missing > 0:
        # The first five gaps lie within present.size + 5 ids of n_tips.
        window = np.arange(n_tips + 1, min(max_node_id, n_tips + present.size + 5) + 1)
        shown = ", ".join(str(int(m)) for m in np.setdiff1d(window, present)[:5])
        more = f" (and {n_missing - 5} more)" if n_missing > 5 else ""
        raise MalformedInputError(
            f"Internal node id(s) {shown}{more} never appear as a parent; "
            "internal ids must be contiguous from n_tips + 1 to the largest "
            "parent id."
        )


def _is_normalised(edges: Any) -> bool:
    return (
        isinstance(edges, np.ndarray)
        and edges.dtype == np.int64
        and edges.ndim == 2
        and edges.shape[1] == 2
        and edges.shape[0] > 0
        and edges.flags.c_contiguous
    )


# ============================================================================ #
# Ordering                                                                     #
# ============================================================================ #


def first_order_violation(
    parent: np.ndarray, child: np.ndarray, n_tips: int, max_node_id: int
) -> int:
    """
    Return the index of the first edge whose internal child still has
    unprocessed outgoing edges, or -1 if the order is postorder-consistent.

    Pure-Python reference of ``_kernels._first_order_violation_nb``.
    """
    remaining = np.bincount(parent, minlength=max_node_id + 1).tolist()
    for e, (p, c) in enumerate(zip(parent.tolist(), child.tolist())):
        if c > n_tips and remaining[c] != 0:
            return e
        remaining[p] -= 1
    return -1


def check_edge_order(edges: Any, n_tips: Any) -> None:
    """
    Verify that *edges* satisfy the bottom-up ordering precondition.

    Every edge whose child is an internal node must come after all edges
    leaving that child.  Internal ids that never appear as a parent are
    rejected as malformed, since their clades would be silently empty.

    Raises
    ------
    MalformedInputError
        Structural problems (see ``validate_edges``) or gaps in the
        internal id range.
    OrderingViolationError
        The first edge that breaks the precondition.
    """
    arr = as_edge_array(edges)
    n = _as_tip_count(n_tips)
    max_node_id = validate_edges(arr, n)
    parent, child = split_columns(arr)
    check_internal_parents(parent, n, max_node_id)

    e = first_order_violation(parent, child, n, max_node_id)
    if e >= 0:
        raise OrderingViolationError(e, int(parent[e]), int(child[e]))


def postorder_index(
    parent: np.ndarray, child: np.ndarray, n_tips: int, max_node_id: int
) -> np.ndarray:
    """
    Return the permutation of edge rows that makes the order
    postorder-consistent.

    The identity permutation is returned when the input already satisfies
    the precondition.  Otherwise nodes are visited depth-first, roots first
    in order of their first appearance as a parent, and each node's outgoing
    edges are emitted together, in input order, once all of its internal
    children are done.

    Raises
    ------
    MalformedInputError
        If the edges contain a cycle.

    Complexity
    ----------
    O(E) time and memory.
    """
    n_edges = parent.shape[0]
    if first_order_violation(parent, child, n_tips, max_node_id) < 0:
        return np.arange(n_edges, dtype=np.int64)

    # Outgoing edge rows per node, CSR layout, stable in input order.
    by_parent = np.argsort(parent, kind="stable").tolist()
    counts = np.bincount(parent, minlength=max_node_id + 1)
    starts = np.zeros(max_node_id + 2, dtype=np.int64)
    np.cumsum(counts, out=starts[1:])
    starts = starts.tolist()

    is_child = np.zeros(max_node_id + 1, dtype=np.bool_)
    is_child[child] = True

    _, first_rows = np.unique(parent, return_index=True)
    start_nodes = parent[np.sort(first_rows)].tolist()
    roots = [v for v in start_nodes if not is_child[v]]
    if not roots:
        raise MalformedInputError(
            "Edge list contains a cycle: every parent also appears as a child."
        )
    others = [v for v in start_nodes if is_child[v]]

    # 0 = unvisited, 1 = on stack, 2 = done
    state = [0] * (max_node_id + 1)
    order = []
    child_l = child.tolist()

    for start in roots + others:
        if state[start]:
            continue
        state[start] = 1
        stack = [(start, starts[start])]
        while stack:
            node, pos = stack[-1]
            if pos < starts[node + 1]:
                stack[-1] = (node, pos + 1)
                c = child_l[by_parent[pos]]
                if c <= n_tips:
                    continue
                if state[c] == 1:
                    raise MalformedInputError(
                        f"Edge list contains a cycle through node {c}."
                    )
                if state[c] == 0:
                    state[c] = 1
                    stack.append((c, starts[c]))
            else:
                stack.pop()
                state[node] = 2
                order.extend(by_parent[starts[node]:starts[node + 1]])

    return np.asarray(order, dtype=np.int64)


def postorder_edges(edges: Any, n_tips: Any) -> np.ndarray:
    """
    Return *edges* reordered so that every node's outgoing edges precede any
    edge that uses that node as a child.

    Already postorder-consistent input comes back in its original order (as
    a copy).  Otherwise a node's outgoing edges keep their relative input
    order; see ``postorder_index``.

    Parameters
    ----------
    edges : array-like
        Edge list in any order.
    n_tips : int
        Number of tips.

    Returns
    -------
    np.ndarray
        int64 array, shape (E, 2).

    Raises
    ------
    MalformedInputError
        Structural problems, gaps in the internal id range, or a cycle.

    Examples
    --------
    >>> postorder_edges([(5, 3), (5, 4), (4, 1), (4, 2)], 3)
    array([[4, 1],
           [4, 2],
           [5, 3],
           [5, 4]])
    """
    arr = as_edge_array(edges)
    n = _as_tip_count(n_tips)
    max_node_id = validate_edges(arr, n)
    parent, child = split_columns(arr)
    check_internal_parents(parent, n, max_node_id)

    perm = postorder_index(parent, child, n, max_node_id)
    return arr[perm]
