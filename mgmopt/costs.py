"""Unary and pairwise cost storage for a single graph matching problem."""

from __future__ import annotations

AssignmentIdx = tuple[int, int]
EdgeIdx = tuple[AssignmentIdx, AssignmentIdx]


def sort_edge(edge: EdgeIdx) -> EdgeIdx:
    """Return the edge with the assignment of the smaller left node first."""
    first, second = edge
    if first[0] > second[0]:
        return (second, first)
    return (first, second)


class CostMap:
    """Costs of assignments (node pairs) and edges (assignment pairs).

    Edges are stored under a canonical key, so an edge can be looked up
    with its two assignments given in either order.
    """

    __slots__ = ("assignments", "edges")

    def __init__(self) -> None:
        self.assignments: dict[AssignmentIdx, float] = {}
        self.edges: dict[EdgeIdx, float] = {}

    def __repr__(self) -> str:
        return (
            f"CostMap(assignments={len(self.assignments)}, "
            f"edges={len(self.edges)})"
        )

    def unary(self, node1: int, node2: int) -> float:
        """Cost of assigning ``node1`` to ``node2``; KeyError if absent."""
        return self.assignments[(node1, node2)]

    def pairwise(self, node1: int, node2: int, node3: int, node4: int) -> float:
        """Cost of the edge between two assignments; KeyError if absent."""
        return self.edges[sort_edge(((node1, node2), (node3, node4)))]

    def contains_unary(self, node1: int, node2: int) -> bool:
        return (node1, node2) in self.assignments

    def contains_pairwise(self, node1: int, node2: int, node3: int, node4: int) -> bool:
        return sort_edge(((node1, node2), (node3, node4))) in self.edges

    def set_unary(self, node1: int, node2: int, cost: float) -> None:
        self.assignments[(node1, node2)] = cost

    def set_pairwise(
        self, node1: int, node2: int, node3: int, node4: int, cost: float
    ) -> None:
        self.edges[sort_edge(((node1, node2), (node3, node4)))] = cost