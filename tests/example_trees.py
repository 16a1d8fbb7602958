"""
tests/example_trees.py
======================
Edge lists shared by the test modules, plus a random tree generator and an
independent reference for descendant tip sets.

Hand-written trees
------------------
Node ids follow the usual convention: tips 1..n_tips, internal nodes above.

  SCENARIO_A   ((1,2)3)                       n_tips=2
  SCENARIO_B   ((1,2)4,3)5                    n_tips=3
  SCENARIO_C   (1)2, a single edge            n_tips=1

  BALANCED_4   ((1,2)5,(3,4)6)7               n_tips=4
  CATERPILLAR_5 (1,(2,(3,(4,5)6)7)8)9         n_tips=5
      edges listed bottom-up: 6 first, 9 last

  POLYTOMY_5   ((1,2,3)6,4,5)7                n_tips=5
      one trifurcation inside, a trifurcating root
"""

import numpy as np


SCENARIO_A = [(3, 1), (3, 2)]
SCENARIO_B = [(4, 1), (4, 2), (5, 3), (5, 4)]
SCENARIO_C = [(2, 1)]

BALANCED_4 = [(5, 1), (5, 2), (6, 3), (6, 4), (7, 5), (7, 6)]

CATERPILLAR_5 = [
    (6, 4), (6, 5),
    (7, 3), (7, 6),
    (8, 2), (8, 7),
    (9, 1), (9, 8),
]

POLYTOMY_5 = [(6, 1), (6, 2), (6, 3), (7, 6), (7, 4), (7, 5)]

EXPECTED = {
    "scenario_a": (SCENARIO_A, 2, {1: [1], 2: [2], 3: [1, 2]}),
    "scenario_b": (
        SCENARIO_B,
        3,
        {1: [1], 2: [2], 3: [3], 4: [1, 2], 5: [1, 2, 3]},
    ),
    "scenario_c": (SCENARIO_C, 1, {1: [1], 2: [1]}),
    "balanced_4": (
        BALANCED_4,
        4,
        {1: [1], 2: [2], 3: [3], 4: [4], 5: [1, 2], 6: [3, 4], 7: [1, 2, 3, 4]},
    ),
    "caterpillar_5": (
        CATERPILLAR_5,
        5,
        {
            1: [1], 2: [2], 3: [3], 4: [4], 5: [5],
            6: [4, 5],
            7: [3, 4, 5],
            8: [2, 3, 4, 5],
            9: [1, 2, 3, 4, 5],
        },
    ),
    "polytomy_5": (
        POLYTOMY_5,
        5,
        {
            1: [1], 2: [2], 3: [3], 4: [4], 5: [5],
            6: [1, 2, 3],
            7: [1, 2, 3, 4, 5],
        },
    ),
}


def random_postorder_tree(n_tips: int, rng: np.random.Generator) -> np.ndarray:
    """
    Return the edges of a random binary tree on tips 1..n_tips.

    Internal nodes are created by joining two random available subtrees, so
    ids n_tips+1..2*n_tips-1 are assigned bottom-up, the root is
    2*n_tips - 1, and the edges come out postorder-consistent.  Tip labels
    are shuffled so that clades are not contiguous ranges.
    """
    available = list(rng.permutation(n_tips) + 1)
    edges = []
    next_id = n_tips + 1
    while len(available) > 1:
        i, j = sorted(rng.choice(len(available), size=2, replace=False), reverse=True)
        a = available.pop(i)
        b = available.pop(j)
        edges.append((next_id, int(a)))
        edges.append((next_id, int(b)))
        available.append(next_id)
        next_id += 1
    return np.asarray(edges, dtype=np.int64)


def reference_descendants(edges, n_tips: int) -> dict:
    """
    Descendant tip sets by explicit traversal of a children map.

    Independent of edge order; used to check builder output.
    """
    children = {}
    for p, c in edges:
        children.setdefault(int(p), []).append(int(c))
    max_node_id = max(children)

    result = {}
    for node in range(1, max_node_id + 1):
        tips = []
        stack = [node]
        while stack:
            v = stack.pop()
            if v <= n_tips:
                tips.append(v)
            else:
                stack.extend(children.get(v, []))
        if node <= n_tips:
            tips = [node]
        result[node] = sorted(tips)
    return result
