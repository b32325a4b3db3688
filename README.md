# mgmopt

`mgmopt` works with multi-graph matching problems: several graphs and, for
every pair of graphs, a graph matching model with assignment (unary) and
edge (pairwise) costs. A solution matches nodes across all graphs; a
cycle-consistent solution groups the nodes into cliques.

The package provides:

- `mgmopt.costs.CostMap`: unary and pairwise costs of one graph pair,
- `mgmopt.multigraph`: `Graph`, `GmModel` (one pair of graphs) and
  `MgmModel` (all pairs),
- `mgmopt.cliques`: `CliqueTable` and `CliqueManager`,
- `mgmopt.solution`: `GmSolution`, `MgmSolution`, `evaluate_gm` and
  `clique_table_from_labeling`,
- `mgmopt.io_utils`: reading and writing the `.dd` model format and a JSON
  solution format,
- `mgmopt.lap.LAPSolver`: an exact solver for a single pair, using unary
  costs only,
- `mgmopt.swap.SwapLocalSearcher`: a local search that moves nodes between
  cliques while that lowers the energy,
- `mgmopt.synchronization.build_sync_problem`: turns a labeling that is not
  cycle consistent into a synchronization problem.

## Installation

```
pip install .
```

The package depends on `numpy` and `scipy`.

## The `.dd` format

A multi-graph model is a sequence of pairwise blocks:

```
gm 0 1
p 3 3 4 1
a 0 0 0 -1.5
a 1 0 1 0.25
a 2 1 1 -2.0
a 3 2 2 -0.5
e 0 2 1.0
gm 0 2
...
```

`gm <g1> <g2>` opens the block for a pair of graphs, `p` gives the node
counts of both graphs and the numbers of assignments and edges, each `a`
line is `<assignment id> <node in g1> <node in g2> <cost>` and each `e`
line is `<assignment id> <assignment id> <cost>`. Assignment ids must count
up from 0. A single graph matching file holds just one block without the
`gm` line.

`parse_dd_file(path, unary_constant=0.0)` reads a multi-graph file into an
`MgmModel`, `parse_dd_file_gm(path, unary_constant=0.0)` reads a single
pair (graphs 0 and 1) into a `GmModel`. The unary constant is added to
every assignment cost. Malformed files raise `DdFormatError`, as does a
multi-graph file that starts with a `p` line. `export_dd_file(path, model)`
writes an `MgmModel` back out.

## Building a model in code

```python
from mgmopt.multigraph import Graph, GmModel, MgmModel

pair = GmModel(Graph(0, 3), Graph(1, 3))
pair.add_assignment(0, 0, -1.5)
pair.add_assignment(0, 1, 0.25)
pair.add_assignment(1, 1, -2.0)
pair.add_assignment(2, 2, -0.5)
pair.add_edge(0, 2, 1.0)               # by assignment ids
pair.add_edge_by_nodes(1, 1, 2, 2, -0.3)

model = MgmModel()
model.add_model(pair)
```

`MgmModel.create_submodel(graph_ids)` returns the model restricted to some
of its graphs.

## Solving a single pair without edges

```python
from mgmopt.io_utils import parse_dd_file_gm
from mgmopt.lap import LAPSolver

model = parse_dd_file_gm("pair.dd")
solution = LAPSolver(model).run()
print(solution.evaluate(), solution.to_list_with_none())
```

`LAPSolver` leaves a node unassigned whenever that is cheaper than any of
its allowed assignments. It looks at unary costs only, so it is exact for
models with `no_edges() == 0`; for a model with edges its result ignores
the edge costs, although `evaluate()` counts them.

## Solutions

`MgmSolution` holds a labeling (a dict from a graph pair `(g1, g2)` to the
label of every node of `g1`, `-1` for unassigned), a `CliqueTable` or a
`CliqueManager`, and derives the other forms on demand:

```python
from mgmopt.solution import MgmSolution

solution = MgmSolution(model)
solution.set_labeling(solution.create_empty_labeling())
solution[(0, 1)] = [0, 1, -1]

print(solution.evaluate())          # total energy
print(solution.evaluate(1))         # energy of the pairs involving graph 1
table = solution.clique_table()
```

A labeling that is not cycle consistent cannot be turned into cliques;
`clique_table()` then raises `CycleInconsistencyError`. An assignment that
is not in the model makes the energy `1e99`.

`save_to_disk(path, solution)` writes an `MgmSolution` or `GmSolution` as
JSON holding the energy, the number of nodes of every graph and the
labeling, with unmatched nodes stored as `null`. A directory gets a file
named `solution.json`, any other path has its extension set to `.json`;
the path written is returned. `import_from_disk(path, model)` reads a
saved multi-graph solution back into an `MgmSolution`.

## Swap local search

```python
from mgmopt.io_utils import parse_dd_file, import_from_disk
from mgmopt.swap import SwapLocalSearcher

model = parse_dd_file("problem.dd")
solution = import_from_disk("results/problem.json", model)
improved = SwapLocalSearcher(model).search(solution)
```

`search` changes the solution in place and returns whether any swap was
applied. It needs a solution with at least two cliques; starting from an
empty labeling (every node in a clique of its own) is allowed. The limits
are the attributes `max_iterations` (500) and `max_iterations_qpbo` (100).
`CliqueSwapper`, `build_groups`, `unique_keys` and `flip` expose the steps
of a single swap between two cliques.

## Synchronization

```python
from mgmopt.synchronization import build_sync_problem

sync_model = build_sync_problem(model, solution, True)
```

In the returned model every assignment costs 0 except those used by the
given labeling, which cost -1. With `feasible=True` only the assignments
of `model` are allowed; with `False` every node pair may be matched. The
function prints a progress counter to standard output. A cycle-consistent
labeling close to the given one can then be searched for with
`SwapLocalSearcher(sync_model)`.

## Logging

All modules report progress through the standard `logging` module under
the `mgmopt` logger hierarchy; configure it as usual, for example with
`logging.basicConfig(level=logging.INFO)`.

## What the package does not do

- It has no solver for a single pair that takes edge costs into account;
  `LAPSolver` is the only pairwise solver.
- It has no generator that builds a complete multi-graph solution by
  matching graphs one after another, and no local search that rematches
  single graphs. The only improving search is `SwapLocalSearcher`.
- It has no command-line program; it is used as a library.