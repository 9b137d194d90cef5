"""
Parsed solver solution.

A Solution is created once from the solver's solution file and never
modified. Use `evaluate()` to compute any expression of the model at the
solution point.
"""

from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Iterable, Mapping, Optional, Union

import numpy as np

from ..polynomial import Number, Polynomial, is_number, substitute


@dataclass(frozen=True)
class Solution:
    """
    Result reported by the solver.

    Attributes:
        model_status: Solver status, e.g. "Optimal", "Infeasible"
        feasibility: Whether the primal solution is feasible
        objective: Objective value (None when no primal solution exists)
        variables: Variable name -> value
        constraints: Constraint (row) name -> achieved left-hand-side value
    """

    model_status: str
    feasibility: bool
    objective: Optional[Number] = None
    variables: Mapping[str, Number] = field(default_factory=dict)
    constraints: Mapping[str, Number] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "variables", MappingProxyType(dict(self.variables)))
        object.__setattr__(self, "constraints", MappingProxyType(dict(self.constraints)))

    @classmethod
    def from_file_contents(cls, text: str) -> "Solution":
        from .parser import parse
        return parse(text)

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "Solution":
        return cls.from_file_contents(Path(path).read_text())

    @property
    def is_optimal(self) -> bool:
        return self.model_status.lower() == "optimal"

    @property
    def n_variables(self) -> int:
        return len(self.variables)

    @property
    def n_constraints(self) -> int:
        return len(self.constraints)

    def evaluate(self, expr: Union[Number, Polynomial]) -> Union[Number, Polynomial]:
        """
        Evaluate a number or polynomial at the solution.

        Returns a number when every variable of `expr` has a value, otherwise
        the partially reduced polynomial. Never raises on free variables.
        """
        if is_number(expr):
            return expr
        if not isinstance(expr, Polynomial):
            raise TypeError(f"Can't evaluate {expr!r}; expected a number or Polynomial")
        return substitute(expr, self.variables).to_number_if_possible()

    def renamed(self, variables: Optional[Mapping[str, str]] = None,
                constraints: Optional[Mapping[str, str]] = None) -> "Solution":
        """
        Copy with names translated through the given maps.

        Used to go from the sanitized names in the solver's file back to the
        caller's names. Names missing from a map are kept.
        """
        variables = variables or {}
        constraints = constraints or {}
        return Solution(
            model_status=self.model_status,
            feasibility=self.feasibility,
            objective=self.objective,
            variables={variables.get(k, k): v for k, v in self.variables.items()},
            constraints={constraints.get(k, k): v for k, v in self.constraints.items()},
        )

    def values_array(self, names: Iterable[str]) -> np.ndarray:
        """Variable values in the given order (NaN for unknown names)."""
        return np.array([self.variables.get(name, np.nan) for name in names], dtype=float)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "model_status": self.model_status,
            "feasibility": self.feasibility,
            "objective": self.objective,
            "variables": dict(self.variables),
            "constraints": dict(self.constraints),
        }
