"""
HiGHS solver invoker.

Writes the problem as an LP file into a private temporary directory, runs
the HiGHS executable on it, and parses the solution file it leaves behind:

    highs <dir>/model.lp --solution_file <dir>/solution.sol

Each call gets its own directory, so concurrent solves never share files,
and the directory is removed on every exit path.
"""

import logging
import shutil
import subprocess
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Optional

from rich.console import Console

from ..display import print_model
from ..exceptions import SolutionFileMissing, SolverNotFound, SolverTimeout
from ..formats.lp_format import write_lp
from ..problem import Problem
from ..solution.parser import parse
from ..solution.solution import Solution
from .config import SolverConfig

logger = logging.getLogger(__name__)

MODEL_FILENAME = "model.lp"
SOLUTION_FILENAME = "solution.sol"


class HiGHSSolver:
    """
    Run HiGHS as a subprocess.

    Example:
        >>> solver = HiGHSSolver(SolverConfig(time_limit=30))
        >>> solution = solver.solve(problem)
        >>> solution.evaluate(3 * x + 4 * y)
        28
    """

    name = "highs"

    def __init__(self, config: Optional[SolverConfig] = None, console: Optional[Console] = None):
        self.config = config or SolverConfig()
        self.console = console

    def is_available(self) -> bool:
        """Whether the configured executable can be found."""
        return shutil.which(self.config.binary_path) is not None

    def build_command(self, model_path: Path, solution_path: Path) -> List[str]:
        command = [self.config.binary_path, str(model_path), "--solution_file", str(solution_path)]
        if self.config.time_limit is not None:
            command += ["--time_limit", str(self.config.time_limit)]
        if self.config.presolve is not None:
            command += ["--presolve", self.config.presolve]
        command += list(self.config.extra_args)
        return command

    def solve(self, problem: Problem, print_optimizer_input: bool = False) -> Solution:
        """
        Solve a problem.

        Args:
            problem: Problem to solve
            print_optimizer_input: Print the LP file before running the solver

        Returns:
            Solution with variable and constraint names translated back to
            the names used in `problem`

        Raises:
            SolverNotFound: if the executable can't be started
            SolverTimeout: if the process exceeds `config.timeout`
            SolutionFileMissing: if the solver exits without a solution file
            MalformedSolutionFile: if the solution file can't be parsed
        """
        model = write_lp(problem)
        if print_optimizer_input:
            print_model(model.text, console=self.console)

        with tempfile.TemporaryDirectory(prefix="lpkit_") as work_dir:
            model_path = Path(work_dir) / MODEL_FILENAME
            solution_path = Path(work_dir) / SOLUTION_FILENAME
            model_path.write_text(model.text)

            result = self._run(self.build_command(model_path, solution_path))
            output = (result.stdout or "") + (result.stderr or "")

            if not solution_path.exists():
                logger.error(f"HiGHS exited with code {result.returncode} without a solution file")
                raise SolutionFileMissing(model.text, output, result.returncode)

            raw = parse(solution_path.read_text())

        solution = raw.renamed(
            variables=model.original_variable_names,
            constraints=model.original_constraint_names,
        )

        if solution.is_optimal:
            logger.info(f"HiGHS finished: {solution.model_status}, objective={solution.objective}")
        else:
            logger.warning(f"HiGHS finished with status {solution.model_status!r}")
        return solution

    def _run(self, command: List[str]) -> subprocess.CompletedProcess:
        logger.info(f"Running {' '.join(command)}")
        try:
            return subprocess.run(
                command,
                capture_output=True,
                text=True,
                timeout=self.config.timeout,
            )
        except FileNotFoundError:
            raise SolverNotFound(self.config.binary_path) from None
        except PermissionError:
            raise SolverNotFound(self.config.binary_path) from None
        except subprocess.TimeoutExpired as e:
            raise SolverTimeout(self.config.timeout, _as_text(e.stdout) + _as_text(e.stderr)) from None

    def get_info(self) -> Dict[str, Any]:
        return {
            "name": "HiGHS",
            "binary_path": self.config.binary_path,
            "available": self.is_available(),
        }


def _as_text(output) -> str:
    if output is None:
        return ""
    if isinstance(output, bytes):
        return output.decode(errors="replace")
    return output


def solve(problem: Problem, config: Optional[SolverConfig] = None,
          print_optimizer_input: bool = False) -> Solution:
    """Solve `problem` with HiGHS using `config` (default settings if omitted)."""
    return HiGHSSolver(config).solve(problem, print_optimizer_input=print_optimizer_input)
