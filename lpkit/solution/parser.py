"""
Parser for HiGHS solution files.

Example file:

    Model status
    Optimal

    # Primal solution values
    Feasible
    Objective 28
    # Columns 2
    x 0
    y 7
    # Rows 2
    c00000 14
    c00001 -7

    # Dual solution values
    ...
    # Basis
    HiGHS v1
    None

Only the model status and the primal section are read. Dual values and
the basis are ignored. Names are treated as opaque strings; mapping them
back to the caller's names is done with the writer's name maps.
"""

import logging
import re
from typing import Dict, List, Optional, Tuple

from ..exceptions import MalformedSolutionFile
from ..polynomial import Number
from .solution import Solution

logger = logging.getLogger(__name__)

MODEL_STATUS_HEADER = "model status"
PRIMAL_HEADER = "# primal solution values"

_FEASIBILITY_TOKENS = {
    "feasible": True,
    "infeasible": False,
    "none": False,
}

_TABLE_HEADER = re.compile(r"^#\s*(Columns|Rows)\s+(\d+)\s*$", re.IGNORECASE)
_OBJECTIVE = re.compile(r"^Objective\s+(\S+)\s*$", re.IGNORECASE)
_NUMBER = re.compile(r"^[-+]?(\d+\.?\d*([eE][-+]?\d+)?|\.\d+([eE][-+]?\d+)?|inf|infinity|nan)$", re.IGNORECASE)


def parse_number(token: str) -> Number:
    """Parse ints, decimals, exponents and inf/-inf; raise ValueError otherwise."""
    if not _NUMBER.match(token):
        raise ValueError(f"not a number: {token!r}")
    try:
        return int(token)
    except ValueError:
        return float(token)


class _Lines:
    """Cursor over the non-blank lines of a file, keeping 1-based line numbers."""

    def __init__(self, text: str):
        self.lines: List[Tuple[int, str]] = [
            (i + 1, line.strip()) for i, line in enumerate(text.splitlines()) if line.strip()
        ]
        self.pos = 0

    def find(self, header: str) -> Optional[int]:
        for i, (_, line) in enumerate(self.lines):
            if line.lower().startswith(header):
                return i
        return None

    def next(self, expecting: str) -> Tuple[int, str]:
        if self.pos >= len(self.lines):
            raise MalformedSolutionFile(f"unexpected end of file, expected {expecting}")
        item = self.lines[self.pos]
        self.pos += 1
        return item


def parse(text: str) -> Solution:
    """
    Parse a HiGHS solution file.

    Args:
        text: Contents of the solution file

    Returns:
        Solution with status, feasibility, objective and value tables

    Raises:
        MalformedSolutionFile: on structurally invalid input
    """
    if not isinstance(text, str):
        raise TypeError(f"Solution text must be a string, got {type(text).__name__}")

    lines = _Lines(text)
    model_status = _parse_model_status(lines)

    primal = lines.find(PRIMAL_HEADER)
    if primal is None:
        raise MalformedSolutionFile("missing '# Primal solution values' section")
    lines.pos = primal + 1

    line_no, token = lines.next("a feasibility indicator")
    try:
        feasibility = _FEASIBILITY_TOKENS[token.lower()]
    except KeyError:
        raise MalformedSolutionFile("unknown feasibility indicator", token, line_no) from None

    if token.lower() == "none":
        # Solver found no primal solution: no objective, no values
        logger.debug(f"Solution file has no primal values (status {model_status})")
        return Solution(model_status=model_status, feasibility=False)

    objective = _parse_objective(lines)
    variables = _parse_table(lines, "Columns")
    constraints = _parse_table(lines, "Rows")

    logger.debug(
        f"Parsed solution: {model_status}, objective={objective}, "
        f"{len(variables)} columns, {len(constraints)} rows"
    )
    return Solution(
        model_status=model_status,
        feasibility=feasibility,
        objective=objective,
        variables=variables,
        constraints=constraints,
    )


def _parse_model_status(lines: _Lines) -> str:
    index = lines.find(MODEL_STATUS_HEADER)
    if index is None:
        raise MalformedSolutionFile("missing 'Model status' line")
    line_no, header = lines.lines[index]

    # Inline form: "Model status: Optimal"
    rest = header[len(MODEL_STATUS_HEADER):].strip()
    if rest.startswith(":"):
        status = rest[1:].strip()
        if not status:
            raise MalformedSolutionFile("empty model status", header, line_no)
        return status
    if rest:
        raise MalformedSolutionFile("unexpected text after 'Model status'", header, line_no)

    if index + 1 >= len(lines.lines):
        raise MalformedSolutionFile("model status value missing", header, line_no)
    line_no, status = lines.lines[index + 1]
    if status.startswith("#"):
        raise MalformedSolutionFile("model status value missing", status, line_no)
    return status


def _parse_objective(lines: _Lines) -> Number:
    line_no, line = lines.next("an 'Objective' line")
    match = _OBJECTIVE.match(line)
    if not match:
        raise MalformedSolutionFile("expected 'Objective <value>'", line, line_no)
    try:
        return parse_number(match.group(1))
    except ValueError:
        raise MalformedSolutionFile("objective value is not a number", line, line_no) from None


def _parse_table(lines: _Lines, kind: str) -> Dict[str, Number]:
    line_no, header = lines.next(f"a '# {kind} N' header")
    match = _TABLE_HEADER.match(header)
    if not match or match.group(1).lower() != kind.lower():
        raise MalformedSolutionFile(f"expected '# {kind} N' header", header, line_no)
    count = int(match.group(2))

    values: Dict[str, Number] = {}
    for i in range(count):
        if lines.pos >= len(lines.lines) or lines.lines[lines.pos][1].startswith("#"):
            raise MalformedSolutionFile(
                f"{kind.lower()} table declares {count} entries but has only {i}",
                header, line_no,
            )
        row_no, row = lines.next(f"a {kind.lower()} entry")
        parts = row.split()
        if len(parts) != 2:
            raise MalformedSolutionFile(f"expected '<name> <value>' in {kind.lower()} table", row, row_no)
        name, raw_value = parts
        try:
            value = parse_number(raw_value)
        except ValueError:
            raise MalformedSolutionFile(f"value in {kind.lower()} table is not a number", row, row_no) from None
        if name in values:
            raise MalformedSolutionFile(f"duplicate name {name!r} in {kind.lower()} table", row, row_no)
        values[name] = value

    if lines.pos < len(lines.lines) and not lines.lines[lines.pos][1].startswith("#"):
        extra_no, extra = lines.lines[lines.pos]
        raise MalformedSolutionFile(
            f"{kind.lower()} table declares {count} entries but has more", extra, extra_no,
        )
    return values
