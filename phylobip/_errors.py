"""
_errors.py
==========
Exception types raised by the bipartition builder.

All exceptions derive from ``ValueError`` so that callers which already
guard calls with ``except ValueError`` keep working.
"""


class BipartitionError(ValueError):
    """Base class for every error raised while building clade tables."""


class MalformedInputError(BipartitionError):
    """
    The edge list or tip count cannot describe a tree.

    Raised for empty edge lists, non-integer or wrongly shaped input,
    non-positive node ids, child ids beyond the largest parent id, and
    (in checked modes) internal node ids that never appear as a parent.
    """


class OrderingViolationError(BipartitionError):
    """
    An internal child was referenced before all of its own edges were seen.

    Only raised when ``order="check"``.  With ``order="unchecked"`` the same
    input produces silently incomplete clades.

    Attributes
    ----------
    edge_index : int
        Zero-based row of the first offending edge.
    parent, child : int
        Node ids of that edge.
    """

    def __init__(self, edge_index: int, parent: int, child: int) -> None:
        self.edge_index = edge_index
        self.parent = parent
        self.child = child
        super().__init__(
            f"Edge {edge_index} ({parent} -> {child}) references internal node "
            f"{child} before all of its outgoing edges were processed. "
            "Supply edges in postorder or use order='sort'."
        )
