"""
phylobip
========

Clade (bipartition) extraction for rooted phylogenetic trees.

Given a tree as a list of ``(parent, child)`` edges, with tips numbered
``1..n_tips`` and internal nodes above that, *phylobip* computes for every
node the ascending list of tip labels below it.  These descendant sets
define the bipartitions used to compare tree topologies.

Main Functions
--------------
bipartitions : ``{node_id: [tip, ...]}`` for node ids 1..max_node_id
clade_table : The same result as a packed, immutable ``CladeTable``

Edge Helpers
------------
as_edge_array : Normalise an edge list to an int64 (n_edges, 2) array
validate_edges : Structural checks; returns max_node_id
check_edge_order : Verify the postorder precondition
postorder_edges : Reorder edges into postorder

Errors
------
BipartitionError : Base class (a ValueError)
MalformedInputError : Edge list or tip count cannot describe a tree
OrderingViolationError : Internal child used before its own edges

Context Managers
----------------
quiet : Suppress logging during operations
suppress_logger : Suppress specific logger
suppress_warnings : Suppress specific warnings
use_backend : Force specific computational backend
silent_benchmark : Combine quiet + backend selection + warning suppression

Backend Information
-------------------
get_available_backends : Query available computational backends
get_backend_info : Get comprehensive backend status
get_best_backend : Name of the most optimized available backend
resolve_backend : Map a backend name (or 'best') to an available backend
check_numba_available : Check if numba is available

Examples
--------
>>> from phylobip import bipartitions
>>> bipartitions([(4, 1), (4, 2), (5, 3), (5, 4)], n_tips=3)
{1: [1], 2: [2], 3: [3], 4: [1, 2], 5: [1, 2, 3]}

Edges in arbitrary order:

>>> bipartitions([(5, 3), (5, 4), (4, 1), (4, 2)], n_tips=3, order="sort")
{1: [1], 2: [2], 3: [3], 4: [1, 2], 5: [1, 2, 3]}

Comparing topologies:

>>> from phylobip import clade_table
>>> a = clade_table([(5, 1), (5, 2), (6, 3), (6, 4), (7, 5), (7, 6)], 4)
>>> b = clade_table([(5, 1), (5, 3), (6, 2), (6, 4), (7, 5), (7, 6)], 4)
>>> a.similarity(b)
0.0
"""

__version__ = "0.1.0"
__license__ = "MIT"

# Main entry points
from ._bipartition import bipartitions, clade_table
from ._table import CladeTable

# Edge helpers
from ._edges import (
    as_edge_array,
    validate_edges,
    check_edge_order,
    postorder_edges,
)

# Errors
from ._errors import (
    BipartitionError,
    MalformedInputError,
    OrderingViolationError,
)

# Context managers (user-facing utilities)
from ._context import (
    suppress_logger,
    quiet,
    suppress_warnings,
    use_backend,
    silent_benchmark,
)

# Utilities
from ._utils import jaccard_similarity

# Backend information (useful for checking capabilities)
from ._backend import (
    get_available_backends,
    get_best_backend,
    resolve_backend,
    get_backend_info,
    check_numba_available,
)

# Public API
__all__ = [
    # Main entry points
    "bipartitions",
    "clade_table",
    "CladeTable",
    # Edge helpers
    "as_edge_array",
    "validate_edges",
    "check_edge_order",
    "postorder_edges",
    # Errors
    "BipartitionError",
    "MalformedInputError",
    "OrderingViolationError",
    # Context managers
    "suppress_logger",
    "quiet",
    "suppress_warnings",
    "use_backend",
    "silent_benchmark",
    # Utilities
    "jaccard_similarity",
    # Backend information
    "get_available_backends",
    "get_best_backend",
    "resolve_backend",
    "get_backend_info",
    "check_numba_available",
    # Version info
    "__version__",
]
