"""Turn a (possibly cycle inconsistent) solution into a synchronization problem."""

from __future__ import annotations

import logging
import sys

from .multigraph import GmModel, MgmModel
from .solution import GmSolution, MgmSolution

logger = logging.getLogger(__name__)


def build_sync_problem(
    model: MgmModel, solution: MgmSolution, feasible: bool = True
) -> MgmModel:
    """Model whose optimum is a cycle consistent labeling closest to ``solution``.

    Every assignment costs 0 except those used in ``solution``, which cost -1.
    With ``feasible`` only the assignments of ``model`` are allowed; otherwise
    all node pairs are.
    """
    logger.info("Building synchronization problem from given model and solution.")

    sync_model = MgmModel()
    sync_model.no_graphs = model.no_graphs
    sync_model.graphs = list(model.graphs)

    labeling = solution.labeling()
    total = len(model.models)
    for step, (key, gm_model) in enumerate(model.models.items(), start=1):
        sys.stdout.write(f"{step}/{total} \r")
        sys.stdout.flush()

        gm_solution = GmSolution(gm_model, labeling[key])
        if feasible:
            sync_model.models[key] = create_feasible_sync_model(gm_solution)
        else:
            sync_model.models[key] = create_infeasible_sync_model(gm_solution)

    return sync_model


def _mark_labeled(sync_model: GmModel, solution: GmSolution) -> None:
    for node, label in enumerate(solution.labeling):
        if label == -1:
            continue
        sync_model.costs.set_unary(node, label, -1.0)


def create_feasible_sync_model(solution: GmSolution) -> GmModel:
    """Sync model allowing only the assignments of the solution's model."""
    model = solution.model
    sync_model = GmModel(model.graph1, model.graph2)
    for node1, node2 in model.assignment_list:
        sync_model.add_assignment(node1, node2, 0.0)
    _mark_labeled(sync_model, solution)
    return sync_model


def create_infeasible_sync_model(solution: GmSolution) -> GmModel:
    """Sync model allowing every pair of nodes of the two graphs."""
    model = solution.model
    sync_model = GmModel(model.graph1, model.graph2)
    for node1 in range(model.graph1.no_nodes):
        for node2 in range(model.graph2.no_nodes):
            sync_model.add_assignment(node1, node2, 0.0)
    _mark_labeled(sync_model, solution)
    return sync_model