"""
Normalized constraints built from two polynomial expressions.

A constraint `left <op> right` is stored in the canonical form

    left_hand_side <op> right_hand_side

where `left_hand_side = left - right` without its constant term and
`right_hand_side` is the negated constant. The split is exact, so
`left - right == left_hand_side - right_hand_side` always holds.
"""

import inspect
import logging
import os
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterable, List, Literal, Optional, Tuple

from .exceptions import NonlinearConstraint, VariableNotPresent
from .polynomial import (
    Expr,
    Number,
    Polynomial,
    format_number,
    monomial,
    to_polynomial,
)

logger = logging.getLogger(__name__)

Operator = Literal["==", "<=", ">="]

OPERATORS: Tuple[str, ...] = ("==", "<=", ">=")

_OPERATOR_ALIASES = {
    "==": "==",
    "=": "==",
    "eq": "==",
    "<=": "<=",
    "=<": "<=",
    "le": "<=",
    ">=": ">=",
    "=>": ">=",
    "ge": ">=",
}

_FLIPPED = {"<=": ">=", ">=": "<=", "==": "=="}


def canonical_operator(operator: str) -> str:
    """Map operator aliases ("=", "le", ...) to one of ==, <=, >=."""
    try:
        return _OPERATOR_ALIASES[operator]
    except (KeyError, TypeError):
        raise ValueError(
            f"Invalid constraint operator {operator!r}; expected one of {', '.join(OPERATORS)}"
        ) from None


@dataclass(frozen=True)
class ConstraintMetadata:
    """
    Provenance of a constraint, for debugging LP files.

    Attributes:
        module: Python module that created the constraint
        file: Source file path
        line: Source line number
        tags: Free-form labels
        attrs: Free-form key/value attributes
    """
    module: Optional[str] = None
    file: Optional[str] = None
    line: Optional[int] = None
    tags: Tuple[str, ...] = ()
    attrs: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_caller(cls, tags: Iterable[str] = (), attrs: Optional[Dict[str, Any]] = None,
                    depth: int = 1) -> "ConstraintMetadata":
        """
        Capture the location of the calling code.

        Args:
            tags: Labels to attach
            attrs: Attributes to attach
            depth: How many frames above the caller to look (1 = direct caller)
        """
        frame = inspect.currentframe()
        try:
            for _ in range(depth):
                if frame is None:
                    break
                frame = frame.f_back
            if frame is None:
                return cls(tags=tuple(tags), attrs=dict(attrs or {}))
            return cls(
                module=frame.f_globals.get("__name__"),
                file=frame.f_code.co_filename,
                line=frame.f_lineno,
                tags=tuple(tags),
                attrs=dict(attrs or {}),
            )
        finally:
            del frame

    def update(self, tags: Iterable[str] = (), attrs: Optional[Dict[str, Any]] = None) -> "ConstraintMetadata":
        """Return a copy with extra tags appended and attrs merged in."""
        merged = dict(self.attrs)
        merged.update(attrs or {})
        return replace(self, tags=self.tags + tuple(tags), attrs=merged)

    def to_lp_comment(self) -> str:
        """Render as `\\` comment lines for the LP file format."""
        lines = [f"  \\ module: {self.module}"]
        if self.file is not None:
            try:
                path = os.path.relpath(self.file)
            except ValueError:
                path = self.file
            lines.append(f"  \\ location: {path}:{self.line}")
        if self.tags:
            lines.append(f"  \\ tags: {', '.join(str(t) for t in self.tags)}")
        if self.attrs:
            pairs = ", ".join(f"{k}={v!r}" for k, v in sorted(self.attrs.items()))
            lines.append(f"  \\ attrs: {pairs}")
        # Comments must stay on their own lines
        return "".join(line.replace("\n", " ").replace("\r", " ") + "\n" for line in lines)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "module": self.module,
            "file": self.file,
            "line": self.line,
            "tags": list(self.tags),
            "attrs": dict(self.attrs),
        }


@dataclass(frozen=True)
class SolvedConstraint:
    """A constraint rearranged as `variable <op> expression`."""
    name: Optional[str]
    variable: str
    operator: Operator
    expression: Polynomial
    metadata: Optional[ConstraintMetadata] = None

    def to_text(self) -> str:
        return f"{self.variable} {self.operator} {self.expression.to_text()}"


@dataclass(frozen=True)
class Constraint:
    """
    Normalized constraint `left_hand_side <op> right_hand_side`.

    Create with `normalize()` (or `new_linear()`), never directly, so that
    the left-hand side is guaranteed to have no constant term.
    """
    operator: Operator
    left_hand_side: Polynomial
    right_hand_side: Number
    name: Optional[str] = None
    metadata: Optional[ConstraintMetadata] = None
    original_left: Optional[Polynomial] = field(default=None, compare=False, repr=False)
    original_right: Optional[Polynomial] = field(default=None, compare=False, repr=False)

    @property
    def difference(self) -> Polynomial:
        """`left_hand_side - right_hand_side` as a single polynomial."""
        return self.left_hand_side - self.right_hand_side

    def degree(self) -> int:
        return self.left_hand_side.degree()

    @property
    def is_linear(self) -> bool:
        return self.degree() < 2

    def variables(self) -> List[str]:
        return self.left_hand_side.variables()

    def depends_on(self, name: str) -> bool:
        return depends_on(self, name)

    def solve_for_variable(self, name: str) -> SolvedConstraint:
        return solve_for_variable(self, name)

    def get_variables_by(self, predicate) -> List[str]:
        """Variables of either original side that satisfy `predicate`."""
        names = []
        for side in self._sides():
            for var in side.get_variables_by(predicate):
                if var not in names:
                    names.append(var)
        return names

    def with_name(self, name: Optional[str]) -> "Constraint":
        return replace(self, name=name)

    def with_metadata(self, metadata: Optional[ConstraintMetadata] = None, **extra) -> "Constraint":
        """
        Attach metadata, or update the existing metadata with tags/attrs.

        Example:
            >>> c = c.with_metadata(tags=["capacity"])
        """
        base = metadata or self.metadata or ConstraintMetadata()
        if extra:
            base = base.update(**extra)
        return replace(self, metadata=base)

    def is_satisfied_by(self, values: Dict[str, Number], tolerance: float = 1e-9) -> bool:
        """Check the constraint at a full variable assignment."""
        lhs = self.left_hand_side.evaluate(values)
        if self.operator == "==":
            return abs(lhs - self.right_hand_side) <= tolerance
        if self.operator == "<=":
            return lhs <= self.right_hand_side + tolerance
        return lhs >= self.right_hand_side - tolerance

    def to_text(self) -> str:
        return (
            f"{self.left_hand_side.to_text()} {self.operator} "
            f"{format_number(self.right_hand_side)}"
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "operator": self.operator,
            "left_hand_side": self.left_hand_side.to_text(),
            "right_hand_side": self.right_hand_side,
            "metadata": self.metadata.to_dict() if self.metadata else None,
        }

    def _sides(self) -> Tuple[Polynomial, ...]:
        if self.original_left is None:
            return (self.left_hand_side,)
        return (self.original_left, self.original_right)


def normalize(
    left: Expr,
    operator: str,
    right: Expr,
    name: Optional[str] = None,
    *,
    linear_only: bool = False,
    metadata: Optional[ConstraintMetadata] = None,
) -> Constraint:
    """
    Create a normalized constraint `left <op> right`.

    Args:
        left: Polynomial or number for the left-hand side
        operator: One of "==", "<=", ">=" (aliases such as "=" are accepted)
        right: Polynomial or number for the right-hand side
        name: Optional constraint name
        linear_only: Reject differences of degree >= 2
        metadata: Optional provenance information

    Returns:
        Constraint with the constant folded into the right-hand side

    Raises:
        NonlinearConstraint: if `linear_only` and the difference is not linear
    """
    operator = canonical_operator(operator)
    left = to_polynomial(left)
    right = to_polynomial(right)

    difference = left - right
    if linear_only and difference.degree() >= 2:
        raise NonlinearConstraint(difference.degree(), name)

    lhs, minus_rhs = difference.split_constant()
    return Constraint(
        operator=operator,
        left_hand_side=lhs,
        right_hand_side=-minus_rhs,
        name=name,
        metadata=metadata,
        original_left=left,
        original_right=right,
    )


def new_linear(left: Expr, operator: str, right: Expr, name: Optional[str] = None,
               metadata: Optional[ConstraintMetadata] = None) -> Constraint:
    """`normalize()` that raises NonlinearConstraint for non-linear input."""
    return normalize(left, operator, right, name, linear_only=True, metadata=metadata)


def depends_on(constraint: Constraint, name: str) -> bool:
    """True iff `name` appears in either original side of the constraint."""
    return any(name in side.variables() for side in constraint._sides())


def solve_for_variable(constraint: Constraint, name: str) -> SolvedConstraint:
    """
    Isolate `name`: rewrite the constraint as `name <op> expression`.

    The operator flips when the variable's coefficient is negative;
    equalities never flip.

    Raises:
        VariableNotPresent: if the constraint doesn't depend on `name`
        NonlinearConstraint: if `name` appears in a non-linear term
    """
    if not depends_on(constraint, name):
        raise VariableNotPresent(name, constraint.to_text())

    delta = constraint.left_hand_side - constraint.right_hand_side
    nonlinear = [key for key in delta.terms if name in key and len(key) > 1]
    if nonlinear:
        raise NonlinearConstraint(
            delta.degree(), constraint.name,
            detail=f"can't isolate {name!r}, it appears in a non-linear term",
        )

    coef = delta.coefficient_for(name)
    if coef == 0:
        # Present only in an original side and cancelled by the normalization
        raise VariableNotPresent(name, constraint.to_text())

    expression = (monomial(coef, name) - delta) / coef
    operator = constraint.operator if coef > 0 else _FLIPPED[constraint.operator]

    logger.debug(f"Solved constraint {constraint.name!r} for {name}: {operator} {expression.to_text()}")

    return SolvedConstraint(
        name=constraint.name,
        variable=name,
        operator=operator,
        expression=expression,
        metadata=constraint.metadata,
    )
