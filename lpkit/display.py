"""
Terminal rendering with rich.

Used for printing the LP file handed to the solver and for summarizing a
solution. Every function takes an optional Console so output can be
captured (`Console(record=True)`) or redirected.
"""

from typing import Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .polynomial import format_number
from .problem import Problem
from .solution.solution import Solution


def _console(console: Optional[Console]) -> Console:
    return console if console is not None else Console()


def print_model(text: str, console: Optional[Console] = None, title: str = "LP model") -> None:
    """Print LP file text inside a panel."""
    _console(console).print(Panel(Text(text.rstrip("\n")), title=title, border_style="blue", expand=False))


def solution_table(solution: Solution, show_constraints: bool = True) -> Table:
    """Build a table of variable (and optionally row) values."""
    table = Table(title=f"Solution: {solution.model_status}", show_header=True)
    table.add_column("Kind", style="dim")
    table.add_column("Name", style="cyan")
    table.add_column("Value", justify="right", style="green")

    for name, value in solution.variables.items():
        table.add_row("variable", Text(name), format_number(value))
    if show_constraints:
        for name, value in solution.constraints.items():
            table.add_row("row", Text(name), format_number(value))
    return table


def print_solution(solution: Solution, console: Optional[Console] = None,
                   show_constraints: bool = True) -> None:
    """Print status, objective and value table for a solution."""
    console = _console(console)

    status_style = "green" if solution.is_optimal else "yellow"
    console.print(f"[bold]Model status:[/bold] [{status_style}]{solution.model_status}[/{status_style}]")
    console.print(f"[bold]Feasible:[/bold] {solution.feasibility}")
    if solution.objective is not None:
        console.print(f"[bold]Objective:[/bold] {format_number(solution.objective)}")

    if solution.variables or (show_constraints and solution.constraints):
        console.print(solution_table(solution, show_constraints=show_constraints))


def problem_summary(problem: Problem) -> Table:
    """Small overview table: direction, type and sizes."""
    table = Table(title=problem.name or "Problem", show_header=False)
    table.add_column("Property", style="cyan")
    table.add_column("Value")
    table.add_row("Direction", problem.direction)
    table.add_row("Type", problem.problem_type)
    table.add_row("Variables", str(problem.n_variables))
    table.add_row("Constraints", str(problem.n_constraints))
    return table


def print_problem(problem: Problem, console: Optional[Console] = None) -> None:
    _console(console).print(problem_summary(problem))
