"""
Optimization problem model: variables, constraints, objective, direction.

Problems are immutable values. Every builder method returns a new Problem
(plus, where relevant, a handle polynomial), so intermediate problems can
be kept around for branching or what-if construction:

    >>> problem = Problem.new("maximize")
    >>> problem, x = problem.new_variable("x", min=0)
    >>> problem, y = problem.new_variable("y", min=0)
    >>> problem = problem.add_constraint(normalize(x + 2 * y, "<=", 14))
    >>> problem = problem.set_objective(3 * x + 4 * y)

Problem classification follows the usual taxonomy:
- LP / QP / QCP: continuous variables; linear objective, quadratic
  objective, quadratic constraints
- MILP / MIQP / MIQCP: the same with integer or binary variables
"""

import logging
import math
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Literal, Mapping, Optional, Tuple

import numpy as np
from pydantic import BaseModel, Field

from .constraint import Constraint, SolvedConstraint
from .exceptions import (
    ConflictingBounds,
    DuplicateConstraint,
    DuplicateVariable,
    NonlinearConstraint,
    VariableNotPresent,
)
from .polynomial import Expr, Polynomial, to_polynomial, validate_variable_name, variable, zero

logger = logging.getLogger(__name__)

Direction = Literal["minimize", "maximize"]
VariableType = Literal["continuous", "integer", "binary"]

DIRECTIONS: Tuple[str, ...] = ("minimize", "maximize")

_TYPE_ALIASES = {
    "continuous": "continuous",
    "real": "continuous",
    "integer": "integer",
    "int": "integer",
    "binary": "binary",
    "bin": "binary",
}


class ProblemVariable(BaseModel):
    """Decision variable declaration."""

    name: str = Field(..., description="Unique variable name within the problem")
    type: VariableType = Field(default="continuous", description="Variable type")
    min: Optional[float] = Field(None, description="Lower bound (None = unbounded)")
    max: Optional[float] = Field(None, description="Upper bound (None = unbounded)")
    description: Optional[str] = Field(None, description="Free-text description")

    class Config:
        frozen = True  # Immutable

    @classmethod
    def create(
        cls,
        name: str,
        type: str = "continuous",
        min: Optional[float] = None,
        max: Optional[float] = None,
        description: Optional[str] = None,
    ) -> "ProblemVariable":
        """
        Build a variable, applying binary defaults and checking bounds.

        Binary variables default to [0, 1]. Explicit bounds may narrow that
        range but never widen it.

        Raises:
            InvalidVariableName: if the name is empty or numeric
            ConflictingBounds: if min > max, or binary bounds leave [0, 1]
            ValueError: for an unknown variable type
        """
        validate_variable_name(name)
        try:
            var_type = _TYPE_ALIASES[type]
        except KeyError:
            raise ValueError(
                f"Unknown variable type {type!r}; expected continuous, integer or binary"
            ) from None

        # Infinite bounds are the same as no bound
        if min is not None and math.isinf(min) and min < 0:
            min = None
        if max is not None and math.isinf(max) and max > 0:
            max = None

        if var_type == "binary":
            if min is None:
                min = 0
            if max is None:
                max = 1
            if min < 0 or max > 1:
                raise ConflictingBounds(name, min, max, var_type, "binary bounds must lie within [0, 1]")

        if min is not None and max is not None and min > max:
            raise ConflictingBounds(name, min, max, var_type, "lower bound is greater than upper bound")

        return cls(name=name, type=var_type, min=min, max=max, description=description)

    @property
    def is_discrete(self) -> bool:
        return self.type in ("integer", "binary")

    @property
    def has_default_binary_bounds(self) -> bool:
        return self.type == "binary" and self.min == 0 and self.max == 1

    def to_polynomial(self) -> Polynomial:
        return variable(self.name)


@dataclass(frozen=True)
class Problem:
    """
    Immutable optimization problem.

    Attributes:
        direction: "minimize" or "maximize"
        objective: Objective polynomial (degree <= 2 to be serializable)
        variables: Variable name -> ProblemVariable, in declaration order
        constraints: Constraint id -> Constraint, in insertion order
        constraint_counter: Number of constraints ever added; drives auto ids
        name: Optional problem name
        description: Optional problem description
    """

    direction: Direction
    objective: Polynomial = field(default_factory=zero)
    variables: Mapping[str, ProblemVariable] = field(default_factory=dict)
    constraints: Mapping[str, Constraint] = field(default_factory=dict)
    constraint_counter: int = 0
    name: Optional[str] = None
    description: Optional[str] = None

    def __post_init__(self):
        if self.direction not in DIRECTIONS:
            raise ValueError(
                f"Optimization direction must be 'minimize' or 'maximize', got {self.direction!r}"
            )
        object.__setattr__(self, "objective", to_polynomial(self.objective))
        object.__setattr__(self, "variables", MappingProxyType(dict(self.variables)))
        object.__setattr__(self, "constraints", MappingProxyType(dict(self.constraints)))

    @classmethod
    def new(cls, direction: Direction, name: Optional[str] = None,
            description: Optional[str] = None) -> "Problem":
        """
        Create an empty problem.

        The direction is required; there is no implicit default.
        """
        return cls(direction=direction, name=name, description=description)

    # ------------------------------------------------------------------
    # Variables
    # ------------------------------------------------------------------

    def new_variable(
        self,
        name: str,
        type: str = "continuous",
        min: Optional[float] = None,
        max: Optional[float] = None,
        description: Optional[str] = None,
    ) -> Tuple["Problem", Polynomial]:
        """
        Declare a variable.

        Args:
            name: Unique variable name
            type: "continuous", "integer" or "binary"
            min: Lower bound (None = unbounded; binary defaults to 0)
            max: Upper bound (None = unbounded; binary defaults to 1)
            description: Optional description

        Returns:
            (updated problem, polynomial handle for the variable)

        Raises:
            DuplicateVariable: if `name` is already declared
            ConflictingBounds: for inconsistent bounds
        """
        if name in self.variables:
            raise DuplicateVariable(name)

        var = ProblemVariable.create(name, type=type, min=min, max=max, description=description)
        variables = dict(self.variables)
        variables[name] = var

        logger.debug(f"New {var.type} variable {name} in [{var.min}, {var.max}]")

        problem = replace(self, variables=variables)
        return problem, var.to_polynomial()

    def new_variables(self, names: Iterable[str], **options) -> Tuple["Problem", List[Polynomial]]:
        """Declare several variables sharing the same options."""
        problem = self
        handles = []
        for name in names:
            problem, handle = problem.new_variable(name, **options)
            handles.append(handle)
        return problem, handles

    def get_variable(self, name: str) -> Optional[ProblemVariable]:
        return self.variables.get(name)

    def has_variable(self, name: str) -> bool:
        return name in self.variables

    # ------------------------------------------------------------------
    # Constraints
    # ------------------------------------------------------------------

    def add_constraint(self, constraint: Constraint) -> "Problem":
        """
        Store a constraint.

        Unnamed constraints get the next free id `cNNNNN`; named constraints
        are stored under their name. Variables are not checked here, so
        constraints and variables may be declared in any order; the LP
        writer reports undeclared variables.

        Raises:
            DuplicateConstraint: if a constraint with the same name exists
        """
        counter = self.constraint_counter
        if constraint.name:
            constraint_id = constraint.name
            if constraint_id in self.constraints:
                raise DuplicateConstraint(constraint_id)
        else:
            constraint_id = _constraint_id(counter)
            while constraint_id in self.constraints:
                counter += 1
                constraint_id = _constraint_id(counter)
            constraint = constraint.with_name(constraint_id)

        constraints = dict(self.constraints)
        constraints[constraint_id] = constraint

        logger.debug(f"Added constraint {constraint_id}: {constraint.to_text()}")

        return replace(self, constraints=constraints, constraint_counter=counter + 1)

    def add_constraints(self, constraints: Iterable[Constraint]) -> "Problem":
        problem = self
        for constraint in constraints:
            problem = problem.add_constraint(constraint)
        return problem

    def get_constraint(self, constraint_id: str) -> Optional[Constraint]:
        return self.constraints.get(constraint_id)

    # ------------------------------------------------------------------
    # Objective
    # ------------------------------------------------------------------

    def set_objective(self, expr: Expr) -> "Problem":
        return replace(self, objective=to_polynomial(expr))

    def increment_objective(self, expr: Expr) -> "Problem":
        return replace(self, objective=self.objective + to_polynomial(expr))

    def decrement_objective(self, expr: Expr) -> "Problem":
        return replace(self, objective=self.objective - to_polynomial(expr))

    def maximize(self, expr: Expr) -> "Problem":
        """Add `expr` to the objective so that the problem pushes it up."""
        if self.direction == "maximize":
            return self.increment_objective(expr)
        return self.decrement_objective(expr)

    def minimize(self, expr: Expr) -> "Problem":
        """Add `expr` to the objective so that the problem pushes it down."""
        if self.direction == "minimize":
            return self.increment_objective(expr)
        return self.decrement_objective(expr)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def n_variables(self) -> int:
        return len(self.variables)

    @property
    def n_constraints(self) -> int:
        return len(self.constraints)

    @property
    def has_constraints(self) -> bool:
        return len(self.constraints) > 0

    def referenced_variables(self) -> List[Tuple[str, str]]:
        """(variable name, location) for every use in objective and constraints."""
        refs = [(name, "objective") for name in self.objective.variables()]
        for constraint_id, constraint in self.constraints.items():
            refs.extend((name, f"constraint {constraint_id}") for name in constraint.variables())
        return refs

    def undeclared_variables(self) -> List[Tuple[str, str]]:
        return [(name, where) for name, where in self.referenced_variables() if name not in self.variables]

    @property
    def problem_family(self) -> str:
        """'continuous', 'discrete' or 'mixed'."""
        if not self.variables:
            return "continuous"
        discrete = [v.is_discrete for v in self.variables.values()]
        if all(discrete):
            return "discrete"
        if any(discrete):
            return "mixed"
        return "continuous"

    @property
    def problem_type(self) -> str:
        """One of LP, QP, QCP, MILP, MIQP, MIQCP."""
        prefix = "MI" if any(v.is_discrete for v in self.variables.values()) else ""
        if any(c.degree() >= 2 for c in self.constraints.values()):
            return prefix + "QCP"
        if self.objective.degree() >= 2:
            return prefix + "QP"
        return prefix + "LP"

    def get_bounds(self) -> Tuple[np.ndarray, np.ndarray]:
        """
        Variable bounds as arrays, in declaration order.

        Returns:
            (lower, upper) with -inf / inf for open bounds
        """
        lower = np.array(
            [-np.inf if v.min is None else v.min for v in self.variables.values()], dtype=float
        )
        upper = np.array(
            [np.inf if v.max is None else v.max for v in self.variables.values()], dtype=float
        )
        return lower, upper

    def solve_for_all_variables(self) -> Dict[str, List[SolvedConstraint]]:
        """
        Rearrange every constraint for each variable it contains linearly.

        Used for bound propagation and debugging; variables appearing only
        in non-linear terms of a constraint are skipped for that constraint.
        """
        solved: Dict[str, List[SolvedConstraint]] = {}
        for constraint in self.constraints.values():
            for name in constraint.variables():
                try:
                    result = constraint.solve_for_variable(name)
                except (NonlinearConstraint, VariableNotPresent):
                    continue
                solved.setdefault(name, []).append(result)
        return solved

    def to_dict(self) -> Dict[str, Any]:
        """Summary for logging and display."""
        return {
            "name": self.name,
            "description": self.description,
            "direction": self.direction,
            "problem_type": self.problem_type,
            "problem_family": self.problem_family,
            "objective": self.objective.to_text(),
            "n_variables": self.n_variables,
            "n_constraints": self.n_constraints,
            "variables": [v.model_dump() for v in self.variables.values()],
            "constraints": [c.to_dict() for c in self.constraints.values()],
        }


def _constraint_id(counter: int) -> str:
    return f"c{counter:05d}"
