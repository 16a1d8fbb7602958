"""
tests/test_edges.py
===================
Tests for edge-list normalisation, validation and ordering helpers
(phylobip/_edges.py).
"""

import os
import sys

import numpy as np
import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))
sys.path.insert(0, os.path.dirname(__file__))

from phylobip import (
    as_edge_array,
    validate_edges,
    check_edge_order,
    postorder_edges,
    MalformedInputError,
    OrderingViolationError,
)
from phylobip._edges import (
    first_order_violation,
    postorder_index,
    split_columns,
    check_internal_parents,
)

from example_trees import (
    SCENARIO_B,
    BALANCED_4,
    CATERPILLAR_5,
    POLYTOMY_5,
    random_postorder_tree,
)


# ======================================================================== #
# as_edge_array                                                             #
# ======================================================================== #


class TestAsEdgeArray:
    def test_shape_and_dtype(self):
        arr = as_edge_array(SCENARIO_B)
        assert arr.shape == (4, 2)
        assert arr.dtype == np.int64
        assert arr.flags.c_contiguous

    def test_returns_copy(self):
        src = np.array(SCENARIO_B, dtype=np.int64)
        arr = as_edge_array(src)
        arr[0, 0] = 99
        assert src[0, 0] == 4

    def test_integral_floats_accepted(self):
        arr = as_edge_array(np.array([[3.0, 1.0], [3.0, 2.0]]))
        assert arr.tolist() == [[3, 1], [3, 2]]

    @pytest.mark.parametrize(
        "edges",
        [
            [],
            [[1, 2, 3]],
            [1, 2],
            [[np.nan, 1.0]],
            [[np.inf, 1.0]],
            [[1e20, 1.0]],
            [[True, False]],
            [["a", "b"]],
            [[None, 1]],
        ],
        ids=["empty", "three-cols", "flat", "nan", "inf", "float-overflow", "bool", "str", "none"],
    )
    def test_rejected(self, edges):
        with pytest.raises(MalformedInputError):
            as_edge_array(edges)


# ======================================================================== #
# validate_edges                                                            #
# ======================================================================== #


class TestValidateEdges:
    @pytest.mark.parametrize(
        "edges, n_tips, expected",
        [
            (SCENARIO_B, 3, 5),
            (BALANCED_4, 4, 7),
            (CATERPILLAR_5, 5, 9),
            (POLYTOMY_5, 5, 7),
            ([(2, 1)], 1, 2),
        ],
    )
    def test_max_node_id(self, edges, n_tips, expected):
        assert validate_edges(edges, n_tips) == expected

    def test_max_node_id_is_largest_parent_not_first(self):
        # Root listed first; the largest parent id is still reported.
        assert validate_edges([(7, 5), (7, 6), (5, 1), (5, 2), (6, 3), (6, 4)], 4) == 7

    def test_child_beyond_max_message(self):
        with pytest.raises(MalformedInputError, match="exceeds the largest parent id 3"):
            validate_edges([(3, 1), (3, 4)], 2)

    def test_non_positive_message_names_edge(self):
        with pytest.raises(MalformedInputError, match="Edge 1 has non-positive child id 0"):
            validate_edges([(3, 1), (3, 0)], 2)

    def test_ordering_not_checked(self):
        assert validate_edges([(5, 3), (5, 4), (4, 1), (4, 2)], 3) == 5

    def test_more_internal_ids_than_edges(self):
        with pytest.raises(MalformedInputError, match="only 2 edges"):
            validate_edges([(9, 1), (9, 2)], 2)

    def test_huge_parent_id(self):
        with pytest.raises(MalformedInputError, match="internal nodes"):
            validate_edges([(10**13, 1)], 1)


class TestCheckInternalParents:
    def test_contiguous_ok(self):
        parent, _ = split_columns(as_edge_array(BALANCED_4))
        check_internal_parents(parent, 4, 7)

    def test_gap_reported(self):
        parent, _ = split_columns(as_edge_array([(7, 1), (7, 2), (7, 3), (7, 4), (7, 5)]))
        with pytest.raises(MalformedInputError, match="6"):
            check_internal_parents(parent, 5, 7)

    def test_many_gaps_truncated(self):
        parent = np.array([20], dtype=np.int64)
        with pytest.raises(MalformedInputError, match="and 9 more"):
            check_internal_parents(parent, 5, 20)

    def test_huge_gap_reported_without_dense_scan(self):
        parent = np.array([10**13], dtype=np.int64)
        with pytest.raises(MalformedInputError, match=r"2, 3, 4, 5, 6 \(and 9999999999993 more\)"):
            check_internal_parents(parent, 1, 10**13)


# ======================================================================== #
# Ordering                                                                  #
# ======================================================================== #


class TestFirstOrderViolation:
    def _split(self, edges):
        return split_columns(as_edge_array(edges))

    @pytest.mark.parametrize(
        "edges, n_tips, max_node_id",
        [
            (SCENARIO_B, 3, 5),
            (BALANCED_4, 4, 7),
            (CATERPILLAR_5, 5, 9),
            (POLYTOMY_5, 5, 7),
        ],
    )
    def test_valid_orders(self, edges, n_tips, max_node_id):
        parent, child = self._split(edges)
        assert first_order_violation(parent, child, n_tips, max_node_id) == -1

    def test_interleaved_parent_edges(self):
        # Node 5's edges are split around node 4's; still valid.
        edges = [(5, 3), (4, 1), (4, 2), (5, 4)]
        parent, child = self._split(edges)
        assert first_order_violation(parent, child, 3, 5) == -1

    def test_partial_child(self):
        # Node 4 used after only one of its two edges.
        edges = [(4, 1), (5, 4), (4, 2), (5, 3)]
        parent, child = self._split(edges)
        assert first_order_violation(parent, child, 3, 5) == 1


class TestCheckEdgeOrder:
    def test_valid_passes(self):
        check_edge_order(CATERPILLAR_5, 5)

    def test_violation(self):
        with pytest.raises(OrderingViolationError) as info:
            check_edge_order([(4, 1), (5, 4), (4, 2), (5, 3)], 3)
        assert info.value.edge_index == 1
        assert "order='sort'" in str(info.value)

    def test_structural_error_first(self):
        with pytest.raises(MalformedInputError):
            check_edge_order([(5, 0), (5, 4), (4, 1), (4, 2)], 3)


class TestPostorder:
    def test_valid_input_unchanged(self):
        out = postorder_edges(CATERPILLAR_5, 5)
        assert out.tolist() == [list(e) for e in CATERPILLAR_5]

    def test_docstring_example(self):
        out = postorder_edges([(5, 3), (5, 4), (4, 1), (4, 2)], 3)
        assert out.tolist() == [[4, 1], [4, 2], [5, 3], [5, 4]]

    def test_root_first_balanced(self):
        edges = [(7, 5), (7, 6), (5, 1), (5, 2), (6, 3), (6, 4)]
        out = postorder_edges(edges, 4)
        assert out.tolist() == [[5, 1], [5, 2], [6, 3], [6, 4], [7, 5], [7, 6]]

    def test_result_satisfies_precondition(self):
        rng = np.random.default_rng(11)
        for n_tips in (3, 8, 21, 50):
            edges = random_postorder_tree(n_tips, rng)
            shuffled = edges[rng.permutation(edges.shape[0])]
            out = postorder_edges(shuffled, n_tips)
            parent, child = split_columns(out)
            assert first_order_violation(parent, child, n_tips, 2 * n_tips - 1) == -1
            # Same multiset of edges
            assert sorted(map(tuple, out.tolist())) == sorted(map(tuple, edges.tolist()))

    def test_outgoing_edges_keep_relative_order(self):
        edges = [(6, 5), (6, 4), (7, 6), (6, 3), (7, 2), (7, 1)]
        # Tips 1..5; internal nodes 6 and 7.
        out = postorder_edges(edges, 5)
        sixes = [c for p, c in out.tolist() if p == 6]
        sevens = [c for p, c in out.tolist() if p == 7]
        assert sixes == [5, 4, 3]
        assert sevens == [6, 2, 1]

    def test_index_is_permutation(self):
        parent, child = split_columns(as_edge_array([(5, 3), (5, 4), (4, 1), (4, 2)]))
        perm = postorder_index(parent, child, 3, 5)
        assert perm.tolist() == [2, 3, 0, 1]

    def test_identity_for_valid(self):
        parent, child = split_columns(as_edge_array(SCENARIO_B))
        assert postorder_index(parent, child, 3, 5).tolist() == [0, 1, 2, 3]

    def test_cycle_detected(self):
        # 4 -> 5 -> 4, with a root 6 above them.
        edges = [(6, 4), (4, 5), (5, 4), (4, 1), (5, 2), (6, 3)]
        with pytest.raises(MalformedInputError, match="cycle"):
            postorder_edges(edges, 3)

    def test_detached_cycle_detected(self):
        # 6 is a proper root over tips; 4 <-> 5 form a cycle of their own.
        edges = [(4, 5), (5, 4), (4, 1), (6, 2), (6, 3), (5, 1)]
        with pytest.raises(MalformedInputError, match="cycle"):
            postorder_edges(edges, 3)
