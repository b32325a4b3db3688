"""Cliques of matched nodes across several graphs."""

from __future__ import annotations

from collections.abc import Iterator

from .multigraph import Graph, MgmModel

Clique = dict[int, int]
"""Maps a graph id to the node of that graph contained in the clique."""


class CliqueTable:
    """An ordered list of cliques over ``no_graphs`` graphs."""

    def __init__(self, no_graphs: int = 0) -> None:
        self.no_graphs = no_graphs
        self.cliques: list[Clique] = []

    def __repr__(self) -> str:
        return f"CliqueTable(no_graphs={self.no_graphs}, no_cliques={self.no_cliques})"

    @property
    def no_cliques(self) -> int:
        return len(self.cliques)

    def __len__(self) -> int:
        return len(self.cliques)

    def __iter__(self) -> Iterator[Clique]:
        return iter(self.cliques)

    def __getitem__(self, clique_id: int) -> Clique:
        if clique_id < 0:
            raise IndexError(f"Clique id {clique_id} out of range")
        return self.cliques[clique_id]

    def add_clique(self, clique: Clique | None = None) -> None:
        """Append a copy of ``clique``, or an empty clique."""
        self.cliques.append(dict(clique) if clique else {})

    def remove_graph(self, graph_id: int, should_prune: bool = True) -> None:
        """Drop ``graph_id`` from every clique, optionally removing empty cliques."""
        self.no_graphs -= 1
        for clique in self.cliques:
            clique.pop(graph_id, None)
        if should_prune:
            self.prune()

    def prune(self) -> None:
        """Remove empty cliques."""
        self.cliques = [c for c in self.cliques if c]

    def copy(self) -> CliqueTable:
        table = CliqueTable(self.no_graphs)
        table.cliques = [dict(c) for c in self.cliques]
        return table


class CliqueManager:
    """A clique table plus the clique index of every node of its graphs."""

    def __init__(self, graph_ids, model: MgmModel, table: CliqueTable | None = None) -> None:
        self.graph_ids: list[int] = list(graph_ids)
        self.cliques = CliqueTable(len(self.graph_ids))
        self._clique_idx_view: dict[int, list[int]] = {
            graph_id: [-1] * model.graphs[graph_id].no_nodes
            for graph_id in self.graph_ids
        }
        if table is not None:
            self.cliques = table.copy()
            self.build_clique_idx_view()

    def __repr__(self) -> str:
        return f"CliqueManager(graph_ids={self.graph_ids}, no_cliques={self.cliques.no_cliques})"

    @classmethod
    def _from_parts(
        cls, graph_ids: list[int], cliques: CliqueTable, view: dict[int, list[int]]
    ) -> CliqueManager:
        manager = cls.__new__(cls)
        manager.graph_ids = graph_ids
        manager.cliques = cliques
        manager._clique_idx_view = view
        return manager

    @classmethod
    def from_graph(cls, graph: Graph) -> CliqueManager:
        """Manager of a single graph with every node in a clique of its own."""
        table = CliqueTable(1)
        for node in range(graph.no_nodes):
            table.add_clique({graph.id: node})
        return cls._from_parts([graph.id], table, {graph.id: list(range(graph.no_nodes))})

    def clique_idx(self, graph_id: int, node_id: int) -> int:
        """Index of the clique holding ``node_id`` of graph ``graph_id``."""
        nodes = self._clique_idx_view[graph_id]
        if node_id < 0:
            raise IndexError(f"Node id {node_id} out of range")
        return nodes[node_id]

    def build_clique_idx_view(self) -> None:
        for idx, clique in enumerate(self.cliques):
            for graph_id, node_id in clique.items():
                self._clique_idx_view[graph_id][node_id] = idx

    def remove_graph(self, graph_id: int, should_prune: bool = True) -> None:
        """Remove a graph from the manager; ValueError if it is not managed."""
        self.graph_ids.remove(graph_id)
        del self._clique_idx_view[graph_id]
        self.cliques.remove_graph(graph_id, False)
        if should_prune:
            self.prune()

    def prune(self) -> None:
        self.cliques.prune()
        self.build_clique_idx_view()

    def copy(self) -> CliqueManager:
        return self._from_parts(
            list(self.graph_ids),
            self.cliques.copy(),
            {g: list(nodes) for g, nodes in self._clique_idx_view.items()},
        )