"""
lpkit - Polynomial modeling for linear and quadratic programs, solved with HiGHS

Usage:
    import lpkit

    problem = lpkit.Problem.new("maximize")
    problem, x = problem.new_variable("x", min=0)
    problem, y = problem.new_variable("y", min=0)
    problem = problem.add_constraint(lpkit.normalize(x + 2 * y, "<=", 14))
    problem = problem.add_constraint(lpkit.normalize(3 * x - y, ">=", 0))
    problem = problem.add_constraint(lpkit.normalize(x - y, "<=", 2))
    problem = problem.set_objective(3 * x + 4 * y)

    print(lpkit.serialize(problem))        # LP file text
    solution = lpkit.solve(problem)         # requires the `highs` executable
    solution.evaluate(3 * x + 4 * y)
"""

__version__ = "0.1.0"

from .polynomial import (
    Polynomial,
    constant,
    monomial,
    term,
    to_polynomial,
    variable,
    zero,
)
from .constraint import Constraint, ConstraintMetadata, SolvedConstraint, new_linear, normalize
from .problem import Problem, ProblemVariable
from .formats import LPModel, serialize, write_lp
from .solution import Solution
from .solver import HiGHSSolver, SolverConfig, solve
from .exceptions import (
    LPKitError,
    ModelError,
    SolverError,
    MalformedSolutionFile,
)

__all__ = [
    # Algebra
    "Polynomial",
    "constant",
    "monomial",
    "term",
    "to_polynomial",
    "variable",
    "zero",
    # Model
    "Constraint",
    "ConstraintMetadata",
    "SolvedConstraint",
    "new_linear",
    "normalize",
    "Problem",
    "ProblemVariable",
    # LP file and solver
    "LPModel",
    "serialize",
    "write_lp",
    "Solution",
    "HiGHSSolver",
    "SolverConfig",
    "solve",
    # Errors
    "LPKitError",
    "ModelError",
    "SolverError",
    "MalformedSolutionFile",
]
