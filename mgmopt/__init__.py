"""Multi-graph matching: models, .dd and JSON I/O, a linear assignment solver,
clique swap local search and synchronization."""

__version__ = "0.1.0"

__all__ = [
    "cliques",
    "costs",
    "io_utils",
    "lap",
    "multigraph",
    "solution",
    "swap",
    "synchronization",
]