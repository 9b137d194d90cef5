"""
Exception hierarchy for lpkit.

Every error keeps the offending names/values as attributes so callers can
fix the model or report a solver-integration bug without parsing messages.

Hierarchy:
- LPKitError
  - ModelError: problems in the symbolic model (polynomials, constraints, problem)
  - MalformedSolutionFile: the solver's solution file can't be parsed
  - SolverError: failures at the external process boundary
"""

from typing import Any, Iterable, Optional


class LPKitError(Exception):
    """Base class for all lpkit errors."""
    pass


class ModelError(LPKitError):
    """Base class for errors in the optimization model itself."""
    pass


class InvalidVariableName(ModelError, ValueError):
    """Raised when a variable name could be mistaken for a number."""

    def __init__(self, name: Any):
        self.name = name
        super().__init__(
            f"Invalid variable name {name!r}: names must be non-empty strings "
            f"that are not numbers"
        )


class UnsupportedDegree(ModelError):
    """Raised when a polynomial of degree > 2 has to be written to an LP file."""

    def __init__(self, degree: int, max_degree: int = 2, context: Optional[str] = None):
        self.degree = degree
        self.max_degree = max_degree
        self.context = context
        where = f" in {context}" if context else ""
        super().__init__(
            f"Polynomial of degree {degree}{where} is not supported "
            f"(maximum degree is {max_degree}). Only linear and quadratic "
            f"objectives and constraints can be serialized."
        )


class NonlinearConstraint(ModelError):
    """Raised when a linear-only constraint has a non-linear difference."""

    def __init__(self, degree: int, name: Optional[str] = None, detail: Optional[str] = None):
        self.degree = degree
        self.name = name
        label = f" '{name}'" if name else ""
        message = f"Constraint{label} is not linear (degree {degree})"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class VariableNotPresent(ModelError):
    """Raised when solving a constraint for a variable it doesn't contain."""

    def __init__(self, name: str, constraint: Any = None):
        self.name = name
        self.constraint = constraint
        super().__init__(
            f"The constraint doesn't depend on the variable {name!r}"
            + (f": {constraint}" if constraint is not None else "")
        )


class DuplicateVariable(ModelError):
    """Raised when a variable name is registered twice in a problem."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Variable {name!r} already exists in the problem")


class DuplicateConstraint(ModelError):
    """Raised when a constraint name is registered twice in a problem."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Constraint {name!r} already exists in the problem")


class ConflictingBounds(ModelError):
    """Raised when a variable's bounds are inconsistent with each other or its type."""

    def __init__(self, name: str, min: Any, max: Any, type: str, reason: str):
        self.name = name
        self.min = min
        self.max = max
        self.type = type
        self.reason = reason
        super().__init__(
            f"Conflicting bounds for {type} variable {name!r} "
            f"(min={min}, max={max}): {reason}"
        )


class UndeclaredVariable(ModelError):
    """Raised when the objective or a constraint uses an unknown variable."""

    def __init__(self, name: str, location: Optional[str] = None):
        self.name = name
        self.location = location
        where = f" (referenced in {location})" if location else ""
        super().__init__(f"Variable {name!r} doesn't exist in the problem{where}")


class NameCollisionAfterSanitization(ModelError):
    """Raised when two distinct names map to the same LP identifier."""

    def __init__(self, sanitized: str, names: Iterable[str], kind: str = "name"):
        self.sanitized = sanitized
        self.names = tuple(names)
        self.kind = kind
        joined = ", ".join(repr(n) for n in self.names)
        super().__init__(
            f"{kind.capitalize()}s {joined} all sanitize to {sanitized!r}; "
            f"rename one of them"
        )


class InfeasibleConstantConstraint(ModelError):
    """Raised when a constraint without variables can never hold (e.g. 0 >= 1)."""

    def __init__(self, name: str, text: str):
        self.name = name
        self.text = text
        super().__init__(f"Constraint {name!r} has no variables and is never satisfied: {text}")


class FreeVariables(ModelError):
    """Raised when evaluation leaves unbound variables in the result."""

    def __init__(self, names: Iterable[str]):
        self.names = sorted(names)
        super().__init__(
            f"Can't evaluate polynomial, free variables remain: {', '.join(self.names)}"
        )


class MalformedSolutionFile(LPKitError, ValueError):
    """Raised when a solver solution file is structurally invalid."""

    def __init__(self, reason: str, line: Optional[str] = None, line_no: Optional[int] = None):
        self.reason = reason
        self.line = line
        self.line_no = line_no
        message = f"Malformed solution file: {reason}"
        if line_no is not None:
            message += f" (line {line_no}: {line!r})"
        elif line is not None:
            message += f" ({line!r})"
        super().__init__(message)


class SolverError(LPKitError):
    """Base class for failures while running the external solver."""
    pass


class SolverNotFound(SolverError):
    """Raised when the solver executable can't be started."""

    def __init__(self, binary_path: str):
        self.binary_path = binary_path
        super().__init__(
            f"Solver executable not found: {binary_path!r}. "
            f"Install HiGHS or set LPKIT_HIGHS_PATH."
        )


class SolverTimeout(SolverError):
    """Raised when the solver process exceeds the configured timeout."""

    def __init__(self, timeout: float, output: str = ""):
        self.timeout = timeout
        self.output = output
        super().__init__(f"Solver timed out after {timeout} seconds")


class SolutionFileMissing(SolverError):
    """Raised when the solver exits without writing a solution file."""

    def __init__(self, model_text: str, solver_output: str, returncode: int):
        self.model_text = model_text
        self.solver_output = solver_output
        self.returncode = returncode
        super().__init__(
            "Couldn't generate a solution for the given problem "
            f"(solver exit code {returncode}).\n\n"
            f"Input problem/model file:\n\n{_indent(model_text)}\n"
            f"Output from the solver:\n\n{_indent(solver_output)}"
        )


def _indent(text: str, spaces: int = 4) -> str:
    pad = " " * spaces
    return "\n".join(pad + line for line in text.splitlines())
