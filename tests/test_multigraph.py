import pytest

from mgmopt.multigraph import Graph, GmModel, MgmModel


def _pair(g1=0, g2=1, n1=3, n2=3):
    return GmModel(Graph(g1, n1), Graph(g2, n2))


def test_graph_defaults():
    g = Graph()
    assert (g.id, g.no_nodes) == (-1, -1)


def test_add_assignment_updates_structures():
    m = _pair()
    m.add_assignment(0, 1, 2.5)
    m.add_assignment(2, 1, 1.0)
    assert m.assignment_list == [(0, 1), (2, 1)]
    assert m.assignments_left[0] == [1]
    assert m.assignments_right[1] == [0, 2]
    assert m.costs.unary(2, 1) == 1.0
    assert m.no_assignments() == 2


def test_add_assignment_out_of_range():
    m = _pair(n1=2, n2=2)
    with pytest.raises(IndexError):
        m.add_assignment(2, 0, 0.0)
    with pytest.raises(IndexError):
        m.add_assignment(0, -1, 0.0)


def test_add_edge_by_ids_matches_by_nodes():
    m = _pair()
    m.add_assignment(0, 0, 0.0)
    m.add_assignment(1, 2, 0.0)
    m.add_edge(1, 0, -4.0)
    assert m.costs.pairwise(0, 0, 1, 2) == -4.0
    assert m.no_edges() == 1

    other = _pair()
    other.add_edge_by_nodes(1, 2, 0, 0, -4.0)
    assert other.costs.edges == m.costs.edges


def test_add_edge_with_unknown_assignment():
    m = _pair()
    m.add_assignment(0, 0, 0.0)
    with pytest.raises(IndexError):
        m.add_edge(0, 1, 1.0)


def test_reversed_edge_counts_once():
    m = _pair()
    m.add_edge_by_nodes(0, 0, 1, 1, 1.0)
    m.add_edge_by_nodes(1, 1, 0, 0, 1.0)
    assert m.no_edges() == 1


def _three_graph_model():
    model = MgmModel()
    for g1, g2 in [(0, 1), (0, 2), (1, 2)]:
        model.add_model(_pair(g1, g2, n1=g1 + 2, n2=g2 + 2))
    return model


def test_add_model_grows_graphs():
    model = _three_graph_model()
    assert model.no_graphs == 3
    assert [g.id for g in model.graphs] == [0, 1, 2]
    assert [g.no_nodes for g in model.graphs] == [2, 3, 4]
    assert set(model.models) == {(0, 1), (0, 2), (1, 2)}


def test_add_model_fills_gaps_with_default_graph():
    model = MgmModel()
    model.add_model(_pair(0, 2))
    assert model.no_graphs == 3
    assert model.graphs[1] == Graph()


def test_create_submodel_filters_models():
    model = _three_graph_model()
    sub = model.create_submodel([2, 0])
    assert sub.no_graphs == 2
    assert [g.id for g in sub.graphs] == [0, 2]
    assert list(sub.models) == [(0, 2)]
    assert sub.models[(0, 2)] is model.models[(0, 2)]


def test_create_submodel_out_of_range():
    model = _three_graph_model()
    with pytest.raises(IndexError):
        model.create_submodel([0, 3])
    with pytest.raises(IndexError):
        model.create_submodel([-1])