"""External solver invocation."""

from .config import SolverConfig
from .highs import HiGHSSolver, solve

__all__ = ["HiGHSSolver", "SolverConfig", "solve"]
