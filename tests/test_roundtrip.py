"""
Serialize a problem, parse a matching solution file, evaluate against it.
"""

from lpkit.constraint import normalize
from lpkit.formats import write_lp
from lpkit.problem import Problem
from lpkit.solution import parse

SOLUTION_TEXT = """\
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
Feasible
# Columns 2
x -2.5
y 0
# Rows 2
c00000 2
c00001 0

# Basis
HiGHS v1
None
"""


def test_serialize_then_parse():
    """maximize 3x + 4y s.t. x + 2y <= 14, 3x - y <= 0, x, y >= 0."""
    p = Problem.new("maximize")
    p, x = p.new_variable("x", min=0)
    p, y = p.new_variable("y", min=0)
    p = p.add_constraint(normalize(x + 2 * y, "<=", 14))
    p = p.add_constraint(normalize(3 * x - y, "<=", 0))
    p = p.set_objective(3 * x + 4 * y)

    model = write_lp(p)
    assert "  c00000: 1 x + 2 y <= 14" in model.text.splitlines()
    assert "  c00001: 3 x - 1 y <= 0" in model.text.splitlines()

    solution = parse(SOLUTION_TEXT).renamed(
        variables=model.original_variable_names,
        constraints=model.original_constraint_names,
    )

    assert solution.evaluate(3 * x + 4 * y) == 28
    assert solution.objective == 28
    values = dict(solution.variables)
    for constraint in p.constraints.values():
        assert constraint.is_satisfied_by(values)
    for constraint_id, constraint in p.constraints.items():
        assert solution.evaluate(constraint.left_hand_side) == solution.constraints[constraint_id]
