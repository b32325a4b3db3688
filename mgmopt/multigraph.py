"""Graphs, pairwise graph matching models and multi-graph matching models."""

from __future__ import annotations

from dataclasses import dataclass

from .costs import AssignmentIdx, CostMap

GmModelIdx = tuple[int, int]


@dataclass(frozen=True)
class Graph:
    """A graph identified by ``id`` with ``no_nodes`` nodes."""

    id: int = -1
    no_nodes: int = -1


class GmModel:
    """Matching problem between two graphs: assignments and edges with costs."""

    def __init__(self, graph1: Graph, graph2: Graph) -> None:
        self.graph1 = graph1
        self.graph2 = graph2
        self.costs = CostMap()
        self.assignment_list: list[AssignmentIdx] = []
        self.assignments_left: list[list[int]] = [[] for _ in range(max(graph1.no_nodes, 0))]
        self.assignments_right: list[list[int]] = [[] for _ in range(max(graph2.no_nodes, 0))]

    def __repr__(self) -> str:
        return (
            f"GmModel(graph1={self.graph1!r}, graph2={self.graph2!r}, "
            f"assignments={self.no_assignments()}, edges={self.no_edges()})"
        )

    def no_assignments(self) -> int:
        return len(self.costs.assignments)

    def no_edges(self) -> int:
        return len(self.costs.edges)

    def add_assignment(self, node1: int, node2: int, cost: float) -> None:
        """Allow matching ``node1`` of graph1 to ``node2`` of graph2 at ``cost``."""
        if not 0 <= node1 < len(self.assignments_left):
            raise IndexError(f"Node {node1} out of range for graph {self.graph1.id}")
        if not 0 <= node2 < len(self.assignments_right):
            raise IndexError(f"Node {node2} out of range for graph {self.graph2.id}")
        self.assignment_list.append((node1, node2))
        self.costs.set_unary(node1, node2, cost)
        self.assignments_left[node1].append(node2)
        self.assignments_right[node2].append(node1)

    def add_edge(self, assignment1: int, assignment2: int, cost: float) -> None:
        """Add an edge between two assignments given by their ids."""
        a1 = self._assignment(assignment1)
        a2 = self._assignment(assignment2)
        self.add_edge_by_nodes(a1[0], a1[1], a2[0], a2[1], cost)

    def add_edge_by_nodes(
        self, node1: int, node2: int, node3: int, node4: int, cost: float
    ) -> None:
        """Add an edge between assignments (node1, node2) and (node3, node4)."""
        self.costs.set_pairwise(node1, node2, node3, node4, cost)

    def _assignment(self, assignment_id: int) -> AssignmentIdx:
        if not 0 <= assignment_id < len(self.assignment_list):
            raise IndexError(f"Assignment id {assignment_id} out of range")
        return self.assignment_list[assignment_id]


class MgmModel:
    """A collection of pairwise matching problems over several graphs."""

    def __init__(self) -> None:
        self.no_graphs = 0
        self.graphs: list[Graph] = []
        self.models: dict[GmModelIdx, GmModel] = {}

    def __repr__(self) -> str:
        return f"MgmModel(no_graphs={self.no_graphs}, models={len(self.models)})"

    def create_submodel(self, graph_ids) -> MgmModel:
        """Model restricted to the given graphs; pair models are shared."""
        ids = sorted(graph_ids)
        submodel = MgmModel()
        submodel.no_graphs = len(ids)
        for graph_id in ids:
            if graph_id < 0 or graph_id >= self.no_graphs:
                raise IndexError("Can't create submodel. Graph ID out of range")
            submodel.graphs.append(self.graphs[graph_id])
        wanted = set(ids)
        submodel.models = {
            key: gm_model
            for key, gm_model in self.models.items()
            if key[0] in wanted and key[1] in wanted
        }
        return submodel

    def add_model(self, gm_model: GmModel) -> None:
        """Insert a pair model and register its two graphs."""
        g1 = gm_model.graph1.id
        g2 = gm_model.graph2.id
        self.models[(g1, g2)] = gm_model

        if g2 >= self.no_graphs:
            self.no_graphs = g2 + 1
            size = g2 + 1
            self.graphs = self.graphs[:size] + [Graph()] * (size - len(self.graphs))

        self.graphs[g1] = gm_model.graph1
        self.graphs[g2] = gm_model.graph2