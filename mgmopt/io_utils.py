"""Reading and writing models in the .dd format and solutions as JSON."""

from __future__ import annotations

import json
import logging
import os
import re
from collections.abc import Iterator
from pathlib import Path

from .multigraph import GmModel, GmModelIdx, Graph, MgmModel
from .solution import GmSolution, MgmSolution

logger = logging.getLogger(__name__)

_RE_GM = re.compile(r"gm ([0-9]+) ([0-9]+)")


class DdFormatError(ValueError):
    """A .dd file does not follow the expected format."""


def _fields(line: str, count: int, kind: str) -> list[str]:
    parts = line[2:].split()
    if len(parts) < count:
        raise DdFormatError(f"Malformed '{kind}' line: {line!r}")
    return parts[:count]


def _next_line(lines: Iterator[str], kind: str) -> str:
    try:
        return next(lines)
    except StopIteration:
        raise DdFormatError(f"Unexpected end of file, expected '{kind}' line") from None


def _parse_gm(
    lines: Iterator[str], g1_id: int, g2_id: int, unary_constant: float = 0.0
) -> GmModel:
    header = _next_line(lines, "p")
    try:
        no_left, no_right, no_a, no_e = (int(v) for v in _fields(header, 4, "p"))
    except ValueError as exc:
        raise DdFormatError(f"Malformed 'p' line: {header!r}") from exc

    model = GmModel(Graph(g1_id, no_left), Graph(g2_id, no_right))

    for _ in range(no_a):
        line = _next_line(lines, "a")
        try:
            ass_id, id1, id2, cost = _fields(line, 4, "a")
            ass_id, id1, id2, cost = int(ass_id), int(id1), int(id2), float(cost)
            if ass_id != len(model.assignment_list):
                raise DdFormatError(f"Unexpected assignment id in line: {line!r}")
            model.add_assignment(id1, id2, cost + unary_constant)
        except (ValueError, IndexError) as exc:
            if isinstance(exc, DdFormatError):
                raise
            raise DdFormatError(f"Malformed 'a' line: {line!r}") from exc

    for _ in range(no_e):
        line = _next_line(lines, "e")
        try:
            id1, id2, cost = _fields(line, 3, "e")
            model.add_edge(int(id1), int(id2), float(cost))
        except (ValueError, IndexError) as exc:
            if isinstance(exc, DdFormatError):
                raise
            raise DdFormatError(f"Malformed 'e' line: {line!r}") from exc

    return model


def _log_unary_constant(unary_constant: float) -> None:
    if unary_constant != 0.0:
        logger.info("Loading model with custom unary constant: %s", unary_constant)


def parse_dd_file_gm(dd_file: str | os.PathLike, unary_constant: float = 0.0) -> GmModel:
    """Load a single graph matching problem (graphs 0 and 1) from a .dd file."""
    _log_unary_constant(unary_constant)
    lines = iter(Path(dd_file).read_text(encoding="utf-8").splitlines())
    return _parse_gm(lines, 0, 1, unary_constant)


def parse_dd_file(dd_file: str | os.PathLike, unary_constant: float = 0.0) -> MgmModel:
    """Load a multi-graph matching problem from a .dd file."""
    _log_unary_constant(unary_constant)
    text = Path(dd_file).read_text(encoding="utf-8")

    if text.startswith("p"):
        message = (
            "Given file begins with GM model definition. "
            "Missing 'gm <graph1_id> <graph2_id>'."
        )
        logger.error(message)
        raise DdFormatError(message)

    model = MgmModel()
    max_graph_id = 0
    lines = iter(text.splitlines())
    for line in lines:
        match = _RE_GM.fullmatch(line)
        if not match:
            continue
        g1_id, g2_id = int(match[1]), int(match[2])
        max_graph_id = max(max_graph_id, g1_id, g2_id)
        if len(model.graphs) <= max_graph_id:
            model.graphs.extend([Graph()] * (max_graph_id + 1 - len(model.graphs)))
        logger.info("Graph %d and Graph %d", g1_id, g2_id)

        gm_model = _parse_gm(lines, g1_id, g2_id, unary_constant)
        model.graphs[g1_id] = gm_model.graph1
        model.graphs[g2_id] = gm_model.graph2
        model.models[(g1_id, g2_id)] = gm_model

    model.no_graphs = max_graph_id + 1
    if len(model.graphs) < model.no_graphs:
        model.graphs.extend([Graph()] * (model.no_graphs - len(model.graphs)))
    logger.info("Finished parsing model.")
    return model


def _fmt(value: float) -> str:
    return f"{value:.16g}"


def _write_model(out, model: GmModel) -> None:
    out.write(
        f"p {model.graph1.no_nodes} {model.graph2.no_nodes} "
        f"{model.no_assignments()} {model.no_edges()}\n"
    )
    assignment_ids = {}
    for a_id, a_idx in enumerate(model.assignment_list):
        cost = model.costs.assignments[a_idx]
        out.write(f"a {a_id} {a_idx[0]} {a_idx[1]} {_fmt(cost)}\n")
        assignment_ids[a_idx] = a_id

    for (a1, a2), cost in model.costs.edges.items():
        try:
            id1, id2 = assignment_ids[a1], assignment_ids[a2]
        except KeyError as exc:
            raise ValueError(f"Edge refers to unknown assignment {exc.args[0]}") from None
        out.write(f"e {id1} {id2} {_fmt(cost)}\n")


def export_dd_file(dd_file: str | os.PathLike, model: MgmModel) -> None:
    """Write ``model`` to ``dd_file`` in the .dd format."""
    logger.info("Exporting model as .dd file.")
    with open(dd_file, "w", encoding="utf-8") as out:
        if len(model.models) == 1:
            _write_model(out, next(iter(model.models.values())))
            return
        for key in sorted(model.models):
            gm_model = model.models[key]
            logger.info("Exporting pair (%d %d)", gm_model.graph1.id, gm_model.graph2.id)
            out.write(f"gm {gm_model.graph1.id} {gm_model.graph2.id}\n")
            _write_model(out, gm_model)
    logger.info("Finished exporting.")


def _json_target(out_path: str | os.PathLike) -> Path:
    path = Path(out_path)
    if path.is_dir():
        path = path / "solution.json"
    if path.suffix != ".json":
        path = path.with_suffix(".json")
    path.parent.mkdir(parents=True, exist_ok=True)
    return path


def save_to_disk(out_path: str | os.PathLike, solution: MgmSolution | GmSolution) -> Path:
    """Store a solution as JSON and return the path written.

    A directory gets a file named ``solution.json``; any other path has its
    extension set to ``.json``.
    """
    if isinstance(solution, MgmSolution):
        document: dict = {
            "energy": solution.evaluate(),
            "graph orders": [g.no_nodes for g in solution.model.graphs],
        }
        labeling = solution.to_dict_with_none()
        if labeling:
            document["labeling"] = {f"{k[0]}, {k[1]}": v for k, v in labeling.items()}
    elif isinstance(solution, GmSolution):
        document = {
            "energy": solution.evaluate(),
            "graph orders": [solution.model.graph1.no_nodes, solution.model.graph2.no_nodes],
            "labeling": solution.to_list_with_none(),
        }
    else:
        raise TypeError(f"Cannot save object of type {type(solution).__name__}")

    logger.debug("Saving solution to disk: %s", json.dumps(document, sort_keys=True))

    path = _json_target(out_path)
    with open(path, "w", encoding="utf-8") as out:
        json.dump(document, out, indent=4, sort_keys=True)
        out.write("\n")
    return path


def _pair_from_key(key: str) -> GmModelIdx:
    parts = key.split(",")
    if len(parts) < 2:
        raise ValueError(f"Invalid graph pair key: {key!r}")
    return (int(parts[0]), int(parts[1]))


def import_from_disk(labeling_path: str | os.PathLike, model: MgmModel) -> MgmSolution:
    """Load a solution saved with ``save_to_disk`` for ``model``."""
    solution = MgmSolution(model)
    labeling = solution.create_empty_labeling()

    logger.info("Parsing json")
    with open(labeling_path, encoding="utf-8") as src:
        document = json.load(src)

    for key, values in document["labeling"].items():
        idx = _pair_from_key(key)
        if idx not in labeling:
            raise ValueError(
                "Provided model does not contain graph pair contained in labeling"
            )
        gm_labeling = labeling[idx]
        for node, value in enumerate(values):
            if value is not None:
                gm_labeling[node] = int(value)
    solution.set_labeling(labeling)

    energy = document["energy"]
    logger.debug("Energy according to json: %s", "null" if energy is None else energy)
    logger.debug("Energy of parsed model: %s", solution.evaluate())
    return solution