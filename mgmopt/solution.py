"""Solutions of graph matching and multi-graph matching problems."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from .cliques import CliqueManager, CliqueTable
from .costs import AssignmentIdx
from .multigraph import GmModel, GmModelIdx, Graph, MgmModel

logger = logging.getLogger(__name__)

INFINITY_COST = 1e99

Labeling = dict[GmModelIdx, list[int]]
"""Maps a graph pair to the label (node of the second graph, or -1) of every
node of the first graph."""


class CycleInconsistencyError(ValueError):
    """A labeling cannot be expressed as a set of cliques."""


def _is_active(assignment: AssignmentIdx, labeling: Sequence[int]) -> bool:
    node, label = assignment
    return 0 <= node < len(labeling) and labeling[node] == label


def evaluate_gm(model: GmModel, labeling: Sequence[int]) -> float:
    """Energy of ``labeling`` in ``model``; INFINITY_COST for a forbidden assignment."""
    result = 0.0
    unaries = model.costs.assignments
    for node, label in enumerate(labeling):
        if label < 0:
            continue
        cost = unaries.get((node, label))
        if cost is None:
            return INFINITY_COST
        result += cost

    for (a1, a2), cost in model.costs.edges.items():
        if _is_active(a1, labeling) and _is_active(a2, labeling):
            result += cost
    return result


def _with_none(labeling: Iterable[int]) -> list[int | None]:
    return [None if label == -1 else label for label in labeling]


class GmSolution:
    """A labeling of the first graph of a pair model onto its second graph."""

    def __init__(self, model: GmModel, labeling: Iterable[int] | None = None) -> None:
        self.model = model
        if labeling is None:
            self.labeling = [-1] * model.graph1.no_nodes
        else:
            self.labeling = list(labeling)

    def __repr__(self) -> str:
        return f"GmSolution(labeling={self.labeling!r})"

    def __len__(self) -> int:
        return len(self.labeling)

    def _check_index(self, idx: int) -> None:
        if not 0 <= idx < len(self.labeling):
            raise IndexError(f"Node {idx} out of range")

    def __getitem__(self, idx: int) -> int:
        self._check_index(idx)
        return self.labeling[idx]

    def __setitem__(self, idx: int, label: int) -> None:
        self._check_index(idx)
        self.labeling[idx] = label

    def evaluate(self) -> float:
        return evaluate_gm(self.model, self.labeling)

    def to_list_with_none(self) -> list[int | None]:
        """The labeling with unassigned nodes given as None."""
        return _with_none(self.labeling)


class MgmSolution:
    """A multi-graph matching solution.

    The solution may be held as a labeling, a clique table or a clique
    manager; the other forms are derived on demand and cached.
    """

    def __init__(self, model: MgmModel) -> None:
        self.model = model
        self._labeling: Labeling | None = None
        self._cm: CliqueManager | None = None
        self._ct: CliqueTable | None = None

    def __repr__(self) -> str:
        return f"MgmSolution(model={self.model!r})"

    def labeling(self) -> Labeling:
        if self._labeling is not None:
            return self._labeling
        if self._ct is None:
            raise RuntimeError("Solution holds neither a labeling nor cliques")

        res = self.create_empty_labeling()
        for clique in self._ct:
            members = sorted(clique.items())
            for pos, (g1, n1) in enumerate(members):
                for g2, n2 in members[pos + 1:]:
                    gm_labeling = res.get((g1, g2))
                    if gm_labeling is not None:
                        gm_labeling[n1] = n2
        self._labeling = res
        return res

    def clique_manager(self) -> CliqueManager:
        if self._cm is not None:
            return self._cm
        table = self.clique_table()
        if table.no_graphs != self.model.no_graphs:
            raise ValueError("Clique table does not cover all graphs of the model")
        self._cm = CliqueManager(range(self.model.no_graphs), self.model, table)
        return self._cm

    def clique_table(self) -> CliqueTable:
        if self._ct is not None:
            return self._ct
        self._ct = clique_table_from_labeling(self.labeling(), self.model.graphs)
        return self._ct

    def set_labeling(self, labeling: Labeling) -> None:
        self._labeling = {tuple(idx): list(gm) for idx, gm in labeling.items()}
        self._cm = None
        self._ct = None

    def set_clique_manager(self, manager: CliqueManager) -> None:
        self._cm = manager.copy()
        self._ct = self._cm.cliques
        self._labeling = None

    def set_clique_table(self, table: CliqueTable) -> None:
        self._ct = table.copy()
        self._cm = None
        self._labeling = None

    def set_gm_labeling(self, idx: GmModelIdx, labeling: Iterable[int]) -> None:
        """Replace the labeling of one graph pair."""
        if self._labeling is not None:
            current = self._labeling
        elif self._ct is not None:
            current = self.labeling()
        else:
            current = self.create_empty_labeling()
        current[tuple(idx)] = list(labeling)
        self._labeling = current
        self._cm = None
        self._ct = None

    def set_gm_solution(self, solution: GmSolution) -> None:
        idx = (solution.model.graph1.id, solution.model.graph2.id)
        self.set_gm_labeling(idx, solution.labeling)

    def create_empty_labeling(self) -> Labeling:
        """A labeling with every node of every pair model unassigned."""
        return {
            idx: [-1] * self.model.graphs[idx[0]].no_nodes
            for idx in self.model.models
        }

    def __getitem__(self, idx: GmModelIdx) -> list[int]:
        return self.labeling()[tuple(idx)]

    def __setitem__(self, idx: GmModelIdx, labeling: Iterable[int]) -> None:
        self.set_gm_labeling(idx, labeling)

    def __len__(self) -> int:
        return len(self.labeling())

    def evaluate(self, graph_id: int | None = None) -> float:
        """Total energy, or the energy of the pair models involving ``graph_id``."""
        labeling = self.labeling()
        result = 0.0
        for idx, gm_model in self.model.models.items():
            if graph_id is not None and graph_id not in idx:
                continue
            result += evaluate_gm(gm_model, labeling[idx])
        return result

    def to_dict_with_none(self) -> dict[GmModelIdx, list[int | None]]:
        return {idx: _with_none(gm) for idx, gm in self.labeling().items()}

    def copy(self) -> MgmSolution:
        other = MgmSolution(self.model)
        if self._labeling is not None:
            other._labeling = {idx: list(gm) for idx, gm in self._labeling.items()}
        if self._cm is not None:
            other._cm = self._cm.copy()
        if self._ct is not None:
            if self._cm is not None and self._ct is self._cm.cliques:
                other._ct = other._cm.cliques
            else:
                other._ct = self._ct.copy()
        return other


def clique_table_from_labeling(labeling: Labeling, graphs: Sequence[Graph]) -> CliqueTable:
    """Group matched nodes into cliques; unmatched nodes form cliques of their own.

    Raises CycleInconsistencyError if the labeling puts two matched nodes
    into different cliques.
    """
    res = CliqueTable(len(graphs))
    node_clique = [[-1] * graph.no_nodes for graph in graphs]

    for g1 in range(len(graphs)):
        for g2 in range(g1 + 1, len(graphs)):
            gm_labeling = labeling.get((g1, g2))
            if gm_labeling is None:
                continue
            for node, label in enumerate(gm_labeling):
                if label < 0:
                    continue
                c1 = node_clique[g1][node]
                c2 = node_clique[g2][label]
                if c1 < 0 and c2 < 0:
                    res.add_clique({g1: node, g2: label})
                    new_idx = res.no_cliques - 1
                    node_clique[g1][node] = new_idx
                    node_clique[g2][label] = new_idx
                elif c2 < 0:
                    res[c1][g2] = label
                    node_clique[g2][label] = c1
                elif c1 < 0:
                    res[c2][g1] = node
                    node_clique[g1][node] = c2
                elif c1 != c2:
                    raise CycleInconsistencyError(
                        "Can't transform labeling to set of cliques. Cycle inconsistent "
                        "labeling in MgmSolution. Nodes matched to each other implied to "
                        "reside in different cliques because of previously set labeling."
                    )

    for graph_id, nodes in enumerate(node_clique):
        for node_id, clique_idx in enumerate(nodes):
            if clique_idx < 0:
                res.add_clique({graph_id: node_id})
    return res