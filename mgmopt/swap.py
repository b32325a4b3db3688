"""Alpha-beta swap local search over the cliques of a multi-graph matching."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from itertools import combinations, product

from .cliques import CliqueTable
from .costs import AssignmentIdx, EdgeIdx
from .multigraph import MgmModel
from .solution import INFINITY_COST, MgmSolution

logger = logging.getLogger(__name__)

QPBO_ENERGY_THRESHOLD = -0.000001
"""A swap is applied only if it lowers the energy by more than this."""

_EXHAUSTIVE_LIMIT = 12

SwapGroup = list[int]
Clique = dict[int, int]


@dataclass
class SwapSolution:
    """Result of the last optimisation of a pair of cliques.

    ``graphs`` holds only the graphs present in at least one of the two
    cliques; ``flip_indices`` tells for every group whether it is swapped.
    """

    improved: bool = False
    graphs: list[int] = field(default_factory=list)
    groups: list[SwapGroup] = field(default_factory=list)
    flip_indices: list[int] = field(default_factory=list)
    energy: float = 0.0


class _BinaryProblem:
    """Binary labeling problem whose pairwise terms cost ``w`` when the two
    labels differ and nothing otherwise; the all-zero labeling costs 0."""

    def __init__(self, no_nodes: int) -> None:
        self.no_nodes = no_nodes
        self._weights = [[0.0] * no_nodes for _ in range(no_nodes)]

    def add_disagreement_cost(self, i: int, j: int, cost: float) -> None:
        self._weights[i][j] += cost
        self._weights[j][i] += cost

    def energy(self, labels: Sequence[int]) -> float:
        return sum(
            self._weights[i][j]
            for i, j in combinations(range(self.no_nodes), 2)
            if labels[i] != labels[j]
        )

    def solve(self, max_iterations: int) -> tuple[bool, list[int], float]:
        """Search for a labeling cheaper than all zeros.

        Returns whether one was found, the labeling (all zeros otherwise)
        and its energy.
        """
        zeros = [0] * self.no_nodes
        if self.no_nodes <= 1:
            return False, zeros, 0.0

        if self.no_nodes <= _EXHAUSTIVE_LIMIT:
            # Flipping every label leaves the energy unchanged, so node 0 stays 0.
            best_labels, best = zeros, 0.0
            for tail in product((0, 1), repeat=self.no_nodes - 1):
                labels = [0, *tail]
                energy = self.energy(labels)
                if energy < best:
                    best, best_labels = energy, labels
            return best < 0.0, best_labels, best

        labels = list(zeros)
        for _ in range(max_iterations):
            changed = False
            for node, row in enumerate(self._weights):
                delta = sum(
                    weight if labels[node] == labels[other] else -weight
                    for other, weight in enumerate(row)
                    if other != node
                )
                if delta < 0.0:
                    labels[node] ^= 1
                    changed = True
            if not changed:
                break
        energy = self.energy(labels)
        if energy < 0.0:
            return True, labels, energy
        return False, zeros, 0.0


def unique_keys(clique_a: Clique, clique_b: Clique, num_graphs: int) -> list[int]:
    """Sorted graph ids present in at least one of the two cliques."""
    keys = set(clique_a) | set(clique_b)
    for key in keys:
        if not 0 <= key < num_graphs:
            raise ValueError(f"Graph id {key} out of range for {num_graphs} graphs")
    return sorted(keys)


def _should_merge(
    g1: int, group: SwapGroup, clique_a: Clique, clique_b: Clique, model: MgmModel
) -> bool:
    """True if swapping ``g1`` apart from ``group`` would create a forbidden assignment."""
    alpha1 = clique_a.get(g1)
    beta1 = clique_b.get(g1)
    for g2 in group:
        alpha2 = clique_a.get(g2)
        beta2 = clique_b.get(g2)
        a1_exists = alpha1 is not None and beta2 is not None
        a2_exists = beta1 is not None and alpha2 is not None

        if g1 < g2:
            costs = model.models[(g1, g2)].costs
            if (a1_exists and not costs.contains_unary(alpha1, beta2)) or (
                a2_exists and not costs.contains_unary(beta1, alpha2)
            ):
                return True
        else:
            costs = model.models[(g2, g1)].costs
            if (a1_exists and not costs.contains_unary(beta2, alpha1)) or (
                a2_exists and not costs.contains_unary(alpha2, beta1)
            ):
                return True
    return False


def build_groups(
    graphs: Sequence[int], clique_a: Clique, clique_b: Clique, model: MgmModel
) -> list[SwapGroup]:
    """Group graphs that must be swapped together to keep all assignments allowed."""
    groups: list[SwapGroup] = [[graph] for graph in graphs]
    graph_to_group = {graph: idx for idx, graph in enumerate(graphs)}
    group_count = len(groups)

    for current_graph in graphs:
        if group_count == 1:
            break
        current_idx = graph_to_group[current_graph]
        for other_idx, other in enumerate(groups):
            if not other or other_idx == current_idx:
                continue
            if _should_merge(current_graph, other, clique_a, clique_b, model):
                for graph in other:
                    graph_to_group[graph] = current_idx
                groups[current_idx].extend(other)
                other.clear()
                group_count -= 1

    return [group for group in groups if group]


def flip(clique_a: Clique, clique_b: Clique, solution: SwapSolution) -> None:
    """Swap the entries of the flagged groups between the two cliques in place."""
    for group, flag in zip(solution.groups, solution.flip_indices):
        if not flag:
            continue
        for graph_id in group:
            in_a = graph_id in clique_a
            in_b = graph_id in clique_b
            if in_a and in_b:
                clique_a[graph_id], clique_b[graph_id] = clique_b[graph_id], clique_a[graph_id]
            elif in_a:
                clique_b[graph_id] = clique_a.pop(graph_id)
            elif in_b:
                clique_a[graph_id] = clique_b.pop(graph_id)
            else:
                raise ValueError("At least one clique should contain the graph_id")


def _construct_sorted(a: AssignmentIdx, b: AssignmentIdx) -> EdgeIdx:
    return (a, b) if a[0] < b[0] else (b, a)


class CliqueSwapper:
    """Finds the best exchange of graph nodes between two cliques."""

    def __init__(
        self,
        num_graphs: int,
        model: MgmModel,
        current_state: CliqueTable,
        max_iterations_qpbo: int = 100,
    ) -> None:
        self.num_graphs = num_graphs
        self.model = model
        self.current_state = current_state
        self.max_iterations_qpbo = max_iterations_qpbo
        self.current_solution = SwapSolution()

    def __repr__(self) -> str:
        return f"CliqueSwapper(num_graphs={self.num_graphs})"

    def _pair_cost(self, g1: int, g2: int, clique_a: Clique, clique_b: Clique) -> float:
        alpha1 = clique_a.get(g1, -1)
        beta1 = clique_b.get(g1, -1)
        alpha2 = clique_a.get(g2, -1)
        beta2 = clique_b.get(g2, -1)
        if g1 < g2:
            return self._star_flip_cost(g1, g2, alpha1, alpha2, beta1, beta2)
        return self._star_flip_cost(g2, g1, alpha2, alpha1, beta2, beta1)

    def _solve(self, groups: list[SwapGroup], clique_a: Clique, clique_b: Clique) -> bool:
        problem = _BinaryProblem(len(groups))
        for (i, group1), (j, group2) in combinations(enumerate(groups), 2):
            cost = sum(
                self._pair_cost(g1, g2, clique_a, clique_b)
                for g1 in group1
                for g2 in group2
            )
            problem.add_disagreement_cost(i, j, cost)

        success, labels, energy = problem.solve(self.max_iterations_qpbo)
        self.current_solution.flip_indices = labels
        self.current_solution.energy = energy
        self.current_solution.improved = success
        return success

    def optimize(self, clique_a: Clique, clique_b: Clique) -> bool:
        """Search a swap of groups between the cliques that lowers the energy."""
        solution = self.current_solution
        solution.graphs = unique_keys(clique_a, clique_b, self.model.no_graphs)
        solution.groups = build_groups(solution.graphs, clique_a, clique_b, self.model)
        if len(solution.groups) < 2:
            return False
        return self._solve(solution.groups, clique_a, clique_b)

    def optimize_with_empty(self, clique_a: Clique) -> bool:
        """Search a split of ``clique_a`` that lowers the energy."""
        return self.optimize(clique_a, {})

    def optimize_no_groups(self, clique_a: Clique, clique_b: Clique) -> bool:
        """Like ``optimize`` but every graph may be swapped on its own."""
        solution = self.current_solution
        solution.graphs = unique_keys(clique_a, clique_b, self.model.no_graphs)
        solution.groups = [[graph] for graph in solution.graphs]
        return self._solve(solution.groups, clique_a, clique_b)

    def optimize_with_empty_no_groups(self, clique_a: Clique) -> bool:
        return self.optimize_no_groups(clique_a, {})

    def _star_flip_cost(
        self, id_graph1: int, id_graph2: int, alpha1: int, alpha2: int, beta1: int, beta2: int
    ) -> float:
        costs = self.model.models[(id_graph1, id_graph2)].costs
        assignments = costs.assignments
        edges = costs.edges
        cost = 0.0

        old_1 = (alpha1, alpha2)
        old_2 = (beta1, beta2)
        new_1 = (alpha1, beta2)
        new_2 = (beta1, alpha2)

        if alpha1 != -1:
            if alpha2 != -1:
                cost -= assignments.get(old_1, INFINITY_COST)
            if beta2 != -1:
                cost += assignments.get(new_1, INFINITY_COST)
        if beta1 != -1:
            if beta2 != -1:
                cost -= assignments.get(old_2, INFINITY_COST)
            if alpha2 != -1:
                cost += assignments.get(new_2, INFINITY_COST)

        for clique in self.current_state:
            if id_graph1 not in clique or id_graph2 not in clique:
                continue
            pair = (clique[id_graph1], clique[id_graph2])
            if pair == old_1 or pair == old_2:
                continue
            cost -= edges.get(_construct_sorted(old_1, pair), 0.0)
            cost -= edges.get(_construct_sorted(old_2, pair), 0.0)
            cost += edges.get(_construct_sorted(new_1, pair), 0.0)
            cost += edges.get(_construct_sorted(new_2, pair), 0.0)

        cost -= edges.get(_construct_sorted(old_1, old_2), 0.0)
        cost += edges.get(_construct_sorted(new_1, new_2), 0.0)
        return cost


class SwapLocalSearcher:
    """Repeatedly swaps nodes between pairs of cliques while that lowers the energy."""

    def __init__(self, model: MgmModel) -> None:
        self.model = model
        self.max_iterations = 500
        self.max_iterations_qpbo = 100
        self._current_step = 0
        self._state = CliqueTable(model.no_graphs)
        self._swapper: CliqueSwapper | None = None
        self._changed_prev: list[bool] = []
        self._changed: list[bool] = []

    def __repr__(self) -> str:
        return f"SwapLocalSearcher(max_iterations={self.max_iterations})"

    def search(self, solution: MgmSolution) -> bool:
        """Improve ``solution`` in place; True if any swap was applied."""
        table = solution.clique_table()
        if table.no_cliques <= 1:
            raise ValueError("Swap local search needs at least two cliques")
        logger.info("Optimizing using alpha beta swap.")

        self._state = table.copy()
        self._reset()
        search_improved = False
        iteration_improved = True
        initial_energy = solution.evaluate()

        self._swapper = CliqueSwapper(
            self.model.no_graphs, self.model, self._state, self.max_iterations_qpbo
        )

        while iteration_improved:
            logger.info("Current energy: %s", initial_energy)
            iteration_improved = self._iterate()
            if iteration_improved:
                search_improved = True
            if self._current_step >= self.max_iterations:
                logger.info(
                    "Iteration limit reached. Stopping after %d iterations.", self._current_step
                )
                return search_improved
        logger.info(
            "No change through previous iteration. Stopping after %d iterations.",
            self._current_step,
        )

        if search_improved:
            solution.set_clique_table(self._state)
            final_energy = solution.evaluate()
        else:
            final_energy = initial_energy
        logger.info("Finished swap local search. Current energy: %s", final_energy)
        return search_improved

    def _reset(self) -> None:
        self._current_step = 0
        self._changed_prev = [True] * self._state.no_cliques
        self._changed = [False] * self._state.no_cliques

    def _cliques(self) -> list[Clique]:
        return [self._state[idx] for idx in range(self._state.no_cliques)]

    def _iterate(self) -> bool:
        self._current_step += 1
        improved = False
        new_cliques: list[Clique] = []
        swapper = self._swapper

        logger.info("Iteration %d", self._current_step)
        logger.info("No of Cliques: %d", self._state.no_cliques)

        cliques = self._cliques()
        for idx_a, clique_a in enumerate(cliques):
            logged = False
            for idx_b, clique_b in enumerate(cliques[idx_a + 1:], start=idx_a + 1):
                if not (self._changed_prev[idx_a] or self._changed_prev[idx_b]):
                    continue
                if not clique_b:
                    continue
                if not logged:
                    logger.info("Clique %d / %d", idx_a + 1, len(cliques))
                    logged = True

                should_flip = swapper.optimize(clique_a, clique_b)
                if should_flip and swapper.current_solution.energy < QPBO_ENERGY_THRESHOLD:
                    improved = True
                    self._changed[idx_a] = True
                    self._changed[idx_b] = True
                    flip(clique_a, clique_b, swapper.current_solution)
                    if not clique_a:
                        break

            if self._changed_prev[idx_a] and swapper.optimize_with_empty(clique_a):
                logger.info("Improvement found. Splitting clique %d.", idx_a)
                self._changed[idx_a] = True
                new_clique: Clique = {}
                flip(clique_a, new_clique, swapper.current_solution)
                new_cliques.append(new_clique)

        self._post_iterate_cleanup(new_cliques)
        return improved

    def _post_iterate_cleanup(self, new_cliques: list[Clique]) -> None:
        kept = [flag for clique, flag in zip(self._cliques(), self._changed) if clique]
        self._state.prune()
        self._changed_prev = kept[: self._state.no_cliques]
        self._changed_prev.extend([False] * (self._state.no_cliques - len(self._changed_prev)))

        for clique in new_cliques:
            self._state.add_clique(clique)
        self._changed_prev.extend([True] * (self._state.no_cliques - len(self._changed_prev)))

        self._changed = [False] * self._state.no_cliques