"""
Writer for the CPLEX LP text format, as read by HiGHS.

Layout of the generated file:

    Maximize
      3 x + 4 y + [ 2 x^2 ] / 2
    Subject To
      c00000: 1 x + 2 y <= 14
    Bounds
      0 <= x
      -inf <= y <= 10
    General
      n
    Binary
      b
    End

Conventions:
- Objective quadratic terms go in a `[ ... ] / 2` block, so their
  coefficients are written doubled.
- Constraint quadratic terms go in a `[ ... ]` block, undoubled.
- Binary variables with the default [0, 1] range are only listed under
  `Binary`; narrowed binaries also get a bounds line.
- Row and column names are sanitized to [A-Za-z0-9_.].

The writer is pure: it returns text and never touches the filesystem.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Tuple

from ..constraint import Constraint
from ..exceptions import InfeasibleConstantConstraint, NameCollisionAfterSanitization, UndeclaredVariable
from ..polynomial import Polynomial, format_number, require_degree_at_most, signed_terms
from ..problem import Problem, ProblemVariable

logger = logging.getLogger(__name__)

# CPLEX limits lines to 560 characters; stay well below
MAX_LINE_LENGTH = 255

_DISALLOWED = re.compile(r"[^A-Za-z0-9_.]+")
_VALID_START = re.compile(r"[A-Za-z_]")
# "e1" or "E+5" could be read as an exponent
_EXPONENT_LIKE = re.compile(r"^[eE][0-9+\-]")

RESERVED_WORDS = frozenset({
    "min", "max", "minimize", "maximize", "minimum", "maximum",
    "st", "s.t.", "subject", "such", "bound", "bounds",
    "gen", "general", "generals", "int", "integer", "integers",
    "bin", "binary", "binaries", "semi", "semis", "sos",
    "free", "inf", "infinity", "end",
})

_LP_OPERATORS = {"==": "=", "<=": "<=", ">=": ">="}


def sanitize_name(name: str, prefix: str = "x_") -> str:
    """
    Map a name to the conservative LP identifier alphabet.

    Runs of disallowed characters become `_`. Names that don't start with a
    letter or underscore, that look like exponents, or that are LP keywords
    get `prefix` prepended. Deterministic: the same input always gives the
    same output.
    """
    sanitized = _DISALLOWED.sub("_", name)
    if (
        not sanitized
        or not _VALID_START.match(sanitized)
        or _EXPONENT_LIKE.match(sanitized)
        or sanitized.lower() in RESERVED_WORDS
    ):
        sanitized = prefix + sanitized
    return sanitized


class NameTable:
    """Original -> sanitized names for one namespace, rejecting collisions."""

    def __init__(self, kind: str, prefix: str):
        self.kind = kind
        self.prefix = prefix
        self._forward: Dict[str, str] = {}
        self._owner: Dict[str, str] = {}

    def add(self, name: str) -> str:
        if name in self._forward:
            return self._forward[name]
        sanitized = sanitize_name(name, self.prefix)
        owner = self._owner.get(sanitized)
        if owner is not None:
            raise NameCollisionAfterSanitization(sanitized, (owner, name), self.kind)
        self._forward[name] = sanitized
        self._owner[sanitized] = name
        return sanitized

    def __getitem__(self, name: str) -> str:
        return self._forward[name]

    def as_dict(self) -> Dict[str, str]:
        return dict(self._forward)


@dataclass(frozen=True)
class LPModel:
    """
    Serialized model plus the name maps used to write it.

    Attributes:
        text: LP file contents
        variable_names: Original variable name -> name in the file
        constraint_names: Original constraint id -> row name in the file
    """
    text: str
    variable_names: Mapping[str, str] = field(default_factory=dict)
    constraint_names: Mapping[str, str] = field(default_factory=dict)

    @property
    def original_variable_names(self) -> Dict[str, str]:
        """Name in the file -> original variable name."""
        return {v: k for k, v in self.variable_names.items()}

    @property
    def original_constraint_names(self) -> Dict[str, str]:
        return {v: k for k, v in self.constraint_names.items()}


def serialize(problem: Problem, include_comments: bool = True) -> str:
    """
    Render a problem as LP text.

    Args:
        problem: Problem to serialize
        include_comments: Write constraint metadata as `\\` comments

    Raises:
        UndeclaredVariable: if a referenced variable was never declared
        UnsupportedDegree: if the objective or a constraint has degree > 2
        NameCollisionAfterSanitization: if two names sanitize identically
    """
    return write_lp(problem, include_comments=include_comments).text


def write_lp(problem: Problem, include_comments: bool = True) -> LPModel:
    """Like `serialize()`, but also returns the name maps."""
    _validate(problem)

    columns = NameTable("variable", "x_")
    for name in problem.variables:
        columns.add(name)
    rows = NameTable("constraint", "c_")

    lines: List[str] = []
    lines.append("Maximize" if problem.direction == "maximize" else "Minimize")
    lines.extend(_wrap(_objective_pieces(problem.objective, columns)))

    lines.append("Subject To")
    for constraint_id, constraint in problem.constraints.items():
        if not constraint.variables():
            _check_constant_constraint(constraint_id, constraint)
            continue
        row = rows.add(constraint_id)
        if include_comments and constraint.metadata is not None:
            lines.extend(constraint.metadata.to_lp_comment().splitlines())
        lines.extend(_wrap(_constraint_pieces(row, constraint, columns)))

    lines.append("Bounds")
    for var in problem.variables.values():
        bound = _bounds_line(var, columns[var.name])
        if bound:
            lines.append(bound)

    integers = [columns[v.name] for v in problem.variables.values() if v.type == "integer"]
    binaries = [columns[v.name] for v in problem.variables.values() if v.type == "binary"]
    if integers:
        lines.append("General")
        lines.extend(f"  {name}" for name in integers)
    if binaries:
        lines.append("Binary")
        lines.extend(f"  {name}" for name in binaries)

    lines.append("End")
    text = "\n".join(lines) + "\n"

    logger.debug(
        f"Serialized {problem.problem_type} with {problem.n_variables} variables, "
        f"{problem.n_constraints} constraints ({len(text)} bytes)"
    )
    return LPModel(text=text, variable_names=columns.as_dict(), constraint_names=rows.as_dict())


def _validate(problem: Problem) -> None:
    for name, location in problem.referenced_variables():
        if name not in problem.variables:
            raise UndeclaredVariable(name, location)

    require_degree_at_most(problem.objective, context="objective")
    for constraint_id, constraint in problem.constraints.items():
        require_degree_at_most(constraint.left_hand_side, context=f"constraint {constraint_id}")


def _check_constant_constraint(constraint_id: str, constraint: Constraint) -> None:
    # 0 <op> rhs: either always true (dropped) or never true
    if constraint.is_satisfied_by({}, tolerance=0.0):
        logger.debug(f"Dropping constraint {constraint_id} without variables: {constraint.to_text()}")
        return
    raise InfeasibleConstantConstraint(constraint_id, constraint.to_text())


def _split_by_degree(p: Polynomial) -> Tuple[List, List]:
    linear = [(k, c) for k, c in p.terms.items() if len(k) < 2]
    quadratic = [(k, c) for k, c in p.terms.items() if len(k) == 2]
    return linear, quadratic


def _objective_pieces(objective: Polynomial, columns: NameTable) -> List[str]:
    linear, quadratic = _split_by_degree(objective)
    rename = columns.__getitem__

    pieces = signed_terms(linear, rename)
    if quadratic:
        doubled = [(k, 2 * c) for k, c in quadratic]
        if pieces:
            pieces.append("+")
        pieces.append("[")
        pieces.extend(signed_terms(doubled, rename))
        pieces.append("] / 2")
    return pieces or ["0"]


def _constraint_pieces(row: str, constraint: Constraint, columns: NameTable) -> List[str]:
    linear, quadratic = _split_by_degree(constraint.left_hand_side)
    rename = columns.__getitem__

    pieces = [f"{row}:"]
    pieces.extend(signed_terms(linear, rename))
    if quadratic:
        if linear:
            pieces.append("+")
        pieces.append("[")
        pieces.extend(signed_terms(quadratic, rename))
        pieces.append("]")
    pieces.append(_LP_OPERATORS[constraint.operator])
    pieces.append(format_number(constraint.right_hand_side))
    return pieces


def _bounds_line(var: ProblemVariable, name: str) -> Optional[str]:
    if var.has_default_binary_bounds:
        return None
    lo, hi = var.min, var.max
    if lo is None and hi is None:
        return f"  {name} free"
    if lo is None:
        # Only an upper bound: without -inf the solver's default lower bound of 0 applies
        return f"  -inf <= {name} <= {format_number(hi)}"
    if hi is None:
        return f"  {format_number(lo)} <= {name}"
    return f"  {format_number(lo)} <= {name} <= {format_number(hi)}"


def _wrap(pieces: List[str], indent: str = "  ") -> List[str]:
    """Join pieces with spaces, breaking long expressions across lines."""
    lines = []
    current = indent
    for piece in pieces:
        if current.strip() and len(current) + 1 + len(piece) > MAX_LINE_LENGTH:
            lines.append(current)
            current = indent + "  " + piece
        elif current.strip():
            current = f"{current} {piece}"
        else:
            current = indent + piece
    lines.append(current)
    return lines
