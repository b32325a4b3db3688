"""Linear assignment solver for graph matching problems without edges."""

from __future__ import annotations

import logging

import numpy as np
from scipy.optimize import linear_sum_assignment

from .multigraph import GmModel
from .solution import GmSolution

logger = logging.getLogger(__name__)


class LAPSolver:
    """Solve an edge-free matching problem as a linear sum assignment.

    Every node of the first graph gets a dummy column of cost zero, so a
    node may stay unassigned whenever that is cheaper.
    """

    def __init__(self, model: GmModel) -> None:
        self.model = model
        self._nr_rows = model.graph1.no_nodes
        self._no_right = model.graph2.no_nodes
        self._nr_cols = self._no_right + self._nr_rows

        costs = np.full((self._nr_rows, self._nr_cols), np.inf)
        for (node1, node2), cost in model.costs.assignments.items():
            costs[node1, node2] = cost
        costs[:, self._no_right:] = 0.0
        self._costs = costs

    def __repr__(self) -> str:
        return f"LAPSolver(rows={self._nr_rows}, cols={self._nr_cols})"

    def run(self) -> GmSolution:
        """Return the minimum-cost labeling of the model."""
        solution = GmSolution(self.model)
        if self._nr_rows == 0:
            return solution

        try:
            rows, cols = linear_sum_assignment(self._costs)
        except ValueError as exc:
            raise RuntimeError("While solving LAP: LAP infeasible or invalid") from exc

        for row, col in zip(rows, cols):
            if col < self._no_right:
                solution[int(row)] = int(col)
        return solution