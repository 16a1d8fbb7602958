"""
_utils.py
=========
General-purpose utility functions for phylobip.

These are standalone functions that don't depend on the main classes
and could be useful in multiple contexts.
"""

from typing import Iterable, List, Set, TypeVar


T = TypeVar('T')


def jaccard_similarity(set_a: Set[T], set_b: Set[T]) -> float:
    """
    Compute Jaccard similarity coefficient between two sets.

    The Jaccard similarity is the size of the intersection divided by the
    size of the union of the two sets. It ranges from 0 (completely disjoint)
    to 1 (identical sets).

    Parameters
    ----------
    set_a, set_b : Set[T]
        Two sets to compare. Can contain any hashable type, including the
        frozenset clades returned by ``CladeTable.clade_set()``.

    Returns
    -------
    float
        Jaccard similarity in [0, 1].
        Returns 0.0 if both sets are empty (union size is 0).

    Examples
    --------
    >>> jaccard_similarity({1, 2, 3}, {1, 2, 3})
    1.0

    >>> jaccard_similarity({1, 2}, {3, 4})
    0.0

    >>> jaccard_similarity({1, 2, 3}, {2, 3, 4})
    0.5

    >>> jaccard_similarity(set(), set())
    0.0
    """
    intersection = len(set_a & set_b)
    union = len(set_a | set_b)
    return intersection / union if union > 0 else 0.0


def complement(clade: Iterable[int], n_tips: int) -> List[int]:
    """
    Return the ascending tip labels in ``1..n_tips`` that are not in *clade*.

    Together, a clade and its complement form the bipartition of the tip set
    induced by the clade's stem edge.

    Examples
    --------
    >>> complement([1, 2], 4)
    [3, 4]

    >>> complement([], 2)
    [1, 2]
    """
    inside = set(clade)
    return [t for t in range(1, n_tips + 1) if t not in inside]
