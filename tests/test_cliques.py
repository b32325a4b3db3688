import pytest

from mgmopt.cliques import CliqueManager, CliqueTable
from mgmopt.multigraph import Graph, GmModel, MgmModel


def _model(sizes):
    model = MgmModel()
    for g1 in range(len(sizes)):
        for g2 in range(g1 + 1, len(sizes)):
            model.add_model(GmModel(Graph(g1, sizes[g1]), Graph(g2, sizes[g2])))
    return model


def test_table_add_and_access():
    table = CliqueTable(2)
    table.add_clique({0: 1, 1: 0})
    table.add_clique()
    assert table.no_cliques == 2
    assert table[0][1] == 0
    assert table[1] == {}


def test_table_add_copies_clique():
    table = CliqueTable(2)
    clique = {0: 1}
    table.add_clique(clique)
    clique[1] = 5
    assert table[0] == {0: 1}


def test_table_out_of_range_access():
    table = CliqueTable(1)
    table.add_clique({0: 0})
    assert table[0] == {0: 0}
    with pytest.raises(IndexError):
        _ = table[1]
    with pytest.raises(IndexError):
        _ = table[-1]
    assert table.no_cliques == 1
    assert list(table) == [{0: 0}]


def test_table_remove_graph_prunes_empty():
    table = CliqueTable(2)
    table.add_clique({0: 0, 1: 1})
    table.add_clique({1: 0})
    table.remove_graph(1)
    assert table.no_graphs == 1
    assert list(table) == [{0: 0}]


def test_table_remove_graph_without_prune_keeps_positions():
    table = CliqueTable(2)
    table.add_clique({1: 0})
    table.add_clique({0: 0, 1: 1})
    table.remove_graph(1, False)
    assert list(table) == [{}, {0: 0}]
    table.prune()
    assert list(table) == [{0: 0}]


def test_table_copy_is_independent():
    table = CliqueTable(1)
    table.add_clique({0: 0})
    other = table.copy()
    other[0][0] = 3
    assert table[0] == {0: 0}


def test_manager_from_graph():
    manager = CliqueManager.from_graph(Graph(4, 3))
    assert manager.graph_ids == [4]
    assert manager.cliques.no_cliques == 3
    assert [manager.clique_idx(4, n) for n in range(3)] == [0, 1, 2]
    assert [c for c in manager.cliques] == [{4: 0}, {4: 1}, {4: 2}]


def test_manager_from_table_builds_view():
    model = _model([2, 2])
    table = CliqueTable(2)
    table.add_clique({0: 1, 1: 0})
    table.add_clique({0: 0})
    table.add_clique({1: 1})
    manager = CliqueManager([0, 1], model, table)
    for idx, clique in enumerate(manager.cliques):
        for graph_id, node_id in clique.items():
            assert manager.clique_idx(graph_id, node_id) == idx


def test_manager_without_table_is_unassigned():
    manager = CliqueManager([0, 1], _model([2, 3]))
    assert manager.cliques.no_cliques == 0
    assert manager.clique_idx(1, 2) == -1


def test_manager_remove_graph():
    model = _model([2, 2])
    table = CliqueTable(2)
    table.add_clique({1: 0})
    table.add_clique({0: 0, 1: 1})
    table.add_clique({0: 1})
    manager = CliqueManager([0, 1], model, table)
    manager.remove_graph(1)
    assert manager.graph_ids == [0]
    assert list(manager.cliques) == [{0: 0}, {0: 1}]
    assert manager.clique_idx(0, 0) == 0
    with pytest.raises(KeyError):
        manager.clique_idx(1, 0)


def test_manager_remove_graph_unpruned_keeps_indices():
    model = _model([2, 2])
    table = CliqueTable(2)
    table.add_clique({1: 0})
    table.add_clique({0: 0, 1: 1})
    manager = CliqueManager([0, 1], model, table)
    manager.remove_graph(1, False)
    assert manager.cliques.no_cliques == 2
    assert manager.clique_idx(0, 0) == 1


def test_manager_remove_unknown_graph():
    manager = CliqueManager.from_graph(Graph(0, 1))
    with pytest.raises(ValueError):
        manager.remove_graph(3)


def test_manager_copy_is_independent():
    manager = CliqueManager.from_graph(Graph(0, 2))
    other = manager.copy()
    other.cliques[0][0] = 1
    other.graph_ids.append(9)
    assert manager.cliques[0] == {0: 0}
    assert manager.graph_ids == [0]


def test_clique_idx_negative_node():
    manager = CliqueManager.from_graph(Graph(0, 2))
    with pytest.raises(IndexError):
        manager.clique_idx(0, -1)