import itertools

import pytest

from mgmopt.lap import LAPSolver
from mgmopt.multigraph import GmModel, Graph
from mgmopt.solution import evaluate_gm


def _model(no_left, no_right, assignments):
    model = GmModel(Graph(0, no_left), Graph(1, no_right))
    for node1, node2, cost in assignments:
        model.add_assignment(node1, node2, cost)
    return model


def _brute_force_min(model):
    options = [
        [-1] + list(model.assignments_left[node])
        for node in range(model.graph1.no_nodes)
    ]
    best = float("inf")
    for labeling in itertools.product(*options):
        used = [label for label in labeling if label >= 0]
        if len(used) != len(set(used)):
            continue
        best = min(best, evaluate_gm(model, list(labeling)))
    return best


def test_diagonal_preferred_with_negative_costs():
    model = _model(2, 2, [(0, 0, -5), (0, 1, -1), (1, 0, -1), (1, 1, -5)])
    assert LAPSolver(model).run().labeling == [0, 1]


def test_cross_assignment_when_cheaper():
    model = _model(2, 2, [(0, 0, -1), (0, 1, -3), (1, 0, -3), (1, 1, -1)])
    assert LAPSolver(model).run().labeling == [1, 0]


def test_positive_costs_leave_nodes_unassigned():
    model = _model(2, 2, [(0, 0, 1.0), (1, 1, 2.0)])
    assert LAPSolver(model).run().labeling == [-1, -1]


def test_forbidden_assignments_never_used():
    model = _model(2, 2, [(0, 1, -2.0)])
    solution = LAPSolver(model).run()
    assert solution.labeling == [1, -1]


def test_empty_first_graph():
    model = _model(0, 3, [])
    assert LAPSolver(model).run().labeling == []


def test_result_matches_brute_force_optimum():
    assignments = [
        (0, 0, -2.0), (0, 1, -4.0), (0, 2, 1.0),
        (1, 0, -3.0), (1, 1, -4.5),
        (2, 1, -1.0), (2, 2, -0.5),
    ]
    model = _model(3, 3, assignments)
    solution = LAPSolver(model).run()
    assert solution.evaluate() == pytest.approx(_brute_force_min(model))
    used = [label for label in solution.labeling if label >= 0]
    assert len(used) == len(set(used))


def test_more_left_than_right_nodes():
    model = _model(3, 1, [(0, 0, -1.0), (1, 0, -2.0), (2, 0, -0.5)])
    solution = LAPSolver(model).run()
    assert solution.labeling == [-1, 0, -1]