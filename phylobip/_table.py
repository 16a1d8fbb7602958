"""
_table.py
=========
CladeTable: the descendant tip sets of every node of one tree, packed into a
CSR-like flat layout.

Memory layout
-------------
  offsets : int64[max_node_id + 1]
      offsets[i - 1] .. offsets[i] is the slice of ``tips`` holding the
      clade of node ``i``.  offsets[0] == 0.

  tips    : int32[offsets[-1]]
      Tip labels, ascending within each node's slice.

  roots   : int64[n_roots]
      Node ids that appear as a parent but never as a child, ascending.

All three arrays are read-only after construction.  ``__getitem__`` and
``to_dict`` always return freshly allocated Python lists, so callers may
mutate what they receive without affecting the table or each other.
"""

from typing import Dict, FrozenSet, Iterator, List, Sequence, Set, Tuple

import numpy as np

from phylobip._utils import complement, jaccard_similarity


class CladeTable:
    """
    Immutable table of descendant tip labels for node ids 1..max_node_id.

    Attributes (all read-only after construction)
    ----------------------------------------------
    n_tips      : int     Number of tips; tip ids are 1..n_tips.
    max_node_id : int     Largest node id; the table has this many rows.
    offsets     : int64 [max_node_id + 1]
    tips        : int32 [offsets[-1]]
    roots       : int64 [n_roots]
    """

    def __init__(
        self, offsets: np.ndarray, tips: np.ndarray, n_tips: int, roots: np.ndarray
    ) -> None:
        if offsets.ndim != 1 or offsets.shape[0] < 2 or int(offsets[0]) != 0:
            raise ValueError("offsets must be a 1-D prefix-sum array starting at 0.")
        if int(offsets[-1]) != tips.shape[0]:
            raise ValueError(
                f"offsets[-1]={int(offsets[-1])} does not match "
                f"len(tips)={tips.shape[0]}."
            )

        self.offsets = np.ascontiguousarray(offsets, dtype=np.int64)
        self.tips = np.ascontiguousarray(tips, dtype=np.int32)
        self.roots = np.ascontiguousarray(roots, dtype=np.int64)
        for arr in (self.offsets, self.tips, self.roots):
            arr.flags.writeable = False

        self.n_tips: int = int(n_tips)
        self.max_node_id: int = int(self.offsets.shape[0] - 1)

    @classmethod
    def from_lists(
        cls, clades: Sequence[Sequence[int]], n_tips: int, roots: np.ndarray
    ) -> "CladeTable":
        """
        Pack per-node lists (row ``i - 1`` is node ``i``) into a table.
        The lists are copied; each must already be sorted.
        """
        sizes = np.fromiter((len(c) for c in clades), dtype=np.int64, count=len(clades))
        offsets = np.zeros(len(clades) + 1, dtype=np.int64)
        np.cumsum(sizes, out=offsets[1:])
        tips = np.fromiter(
            (t for c in clades for t in c), dtype=np.int32, count=int(offsets[-1])
        )
        return cls(offsets, tips, n_tips, roots)

    # ================================================================== #
    # Mapping-style access                                                 #
    # ================================================================== #

    def __len__(self) -> int:
        return self.max_node_id

    def __iter__(self) -> Iterator[int]:
        return iter(range(1, self.max_node_id + 1))

    def __contains__(self, node) -> bool:
        if isinstance(node, (bool, np.bool_)):
            return False
        return isinstance(node, (int, np.integer)) and 1 <= node <= self.max_node_id

    def __getitem__(self, node) -> List[int]:
        return self.clade(node).tolist()

    def __eq__(self, other) -> bool:
        if not isinstance(other, CladeTable):
            return NotImplemented
        return (
            self.n_tips == other.n_tips
            and np.array_equal(self.offsets, other.offsets)
            and np.array_equal(self.tips, other.tips)
        )

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return (
            f"CladeTable(n_tips={self.n_tips}, max_node_id={self.max_node_id}, "
            f"entries={self.tips.shape[0]})"
        )

    def items(self) -> Iterator[Tuple[int, List[int]]]:
        """Iterate over ``(node_id, clade_list)`` pairs in node order."""
        for node in self:
            yield node, self[node]

    def to_dict(self) -> Dict[int, List[int]]:
        """Return ``{node_id: ascending tip list}`` for every node."""
        return dict(self.items())

    # ================================================================== #
    # Queries                                                              #
    # ================================================================== #

    def clade(self, node) -> np.ndarray:
        """
        Return the clade of *node* as a read-only int32 view.

        Raises
        ------
        KeyError   if *node* is not in 1..max_node_id.
        """
        if node not in self:
            raise KeyError(
                f"Node id {node!r} is outside the table range 1..{self.max_node_id}."
            )
        i = int(node)
        return self.tips[self.offsets[i - 1]:self.offsets[i]]

    @property
    def sizes(self) -> np.ndarray:
        """int64[max_node_id]: number of tips below each node."""
        return np.diff(self.offsets)

    @property
    def nbytes(self) -> int:
        """Memory footprint of the packed arrays in bytes."""
        return self.offsets.nbytes + self.tips.nbytes + self.roots.nbytes

    def bipartition(self, node) -> Tuple[List[int], List[int]]:
        """
        Return ``(inside, outside)`` for *node*: its clade and the remaining
        tips, both ascending.
        """
        inside = self[node]
        return inside, complement(inside, self.n_tips)

    def membership_matrix(self) -> np.ndarray:
        """
        Return a boolean matrix of shape (max_node_id, n_tips).

        Row ``i - 1`` marks the tips below node ``i``; column ``t - 1``
        corresponds to tip ``t``.
        """
        out = np.zeros((self.max_node_id, self.n_tips), dtype=np.bool_)
        rows = np.repeat(np.arange(self.max_node_id), self.sizes)
        out[rows, self.tips.astype(np.int64) - 1] = True
        return out

    def clade_set(self, include_trivial: bool = False) -> Set[FrozenSet[int]]:
        """
        Return the distinct clades of internal nodes as frozensets.

        Parameters
        ----------
        include_trivial : bool
            When False (default), single-tip clades and the clade holding
            every tip are left out, since every tree on the same tips
            shares them.

        Returns
        -------
        set[frozenset[int]]
        """
        clades = set()
        for node in range(self.n_tips + 1, self.max_node_id + 1):
            clade = frozenset(self[node])
            if not include_trivial and (len(clade) <= 1 or len(clade) == self.n_tips):
                continue
            clades.add(clade)
        return clades

    def similarity(self, other: "CladeTable") -> float:
        """
        Jaccard similarity of the non-trivial clade sets of two trees on the
        same tip labels.  1.0 means identical rooted topologies.
        Trees without non-trivial clades score 0.0.

        Raises
        ------
        ValueError   if the tip counts differ.
        """
        if self.n_tips != other.n_tips:
            raise ValueError(
                f"Cannot compare trees with {self.n_tips} and {other.n_tips} tips."
            )
        return jaccard_similarity(self.clade_set(), other.clade_set())
