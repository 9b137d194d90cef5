"""
Tests for the HiGHS solution file parser and the Solution value.
"""

import math

import numpy as np
import pytest

from lpkit.exceptions import MalformedSolutionFile
from lpkit.polynomial import variable
from lpkit.solution import Solution, parse, parse_number

SOLUTION_TEXT = """\
Model status
Optimal

# Primal solution values
Feasible
Objective 34
# Columns 2
x 6
y 4
# Rows 3
c00000 14
c00001 14
c00002 2

# Dual solution values
Feasible
# Columns 2
x 0
y 0
# Rows 3
c00000 1.6666666667
c00001 0
c00002 1.3333333333

# Basis
HiGHS v1
None
"""


@pytest.fixture
def solution():
    return parse(SOLUTION_TEXT)


class TestParse:
    """Tests for well-formed files."""

    def test_status_and_objective(self, solution):
        assert solution.model_status == "Optimal"
        assert solution.is_optimal
        assert solution.feasibility is True
        assert solution.objective == 34

    def test_tables(self, solution):
        assert dict(solution.variables) == {"x": 6, "y": 4}
        assert dict(solution.constraints) == {"c00000": 14, "c00001": 14, "c00002": 2}
        assert solution.n_variables == 2
        assert solution.n_constraints == 3

    def test_dual_section_ignored(self, solution):
        assert solution.constraints["c00000"] == 14

    def test_float_values(self):
        text = (
            "Model status\nOptimal\n\n# Primal solution values\nFeasible\n"
            "Objective 0.499999975\n# Columns 1\nx00000_x 4.99999975e-01\n# Rows 1\nc00000 -inf\n"
        )
        solution = parse(text)
        assert solution.objective == pytest.approx(0.5, abs=1e-4)
        assert solution.variables["x00000_x"] == pytest.approx(0.5, abs=1e-4)
        assert solution.constraints["c00000"] == -math.inf

    def test_inline_model_status(self):
        text = "Model status: Infeasible\n# Primal solution values\nNone\n"
        solution = parse(text)
        assert solution.model_status == "Infeasible"
        assert not solution.is_optimal

    def test_no_primal_solution(self):
        text = "Model status\nInfeasible\n\n# Primal solution values\nNone\n\n# Basis\nHiGHS v1\nNone\n"
        solution = parse(text)
        assert solution.feasibility is False
        assert solution.objective is None
        assert dict(solution.variables) == {}

    def test_infeasible_primal(self):
        text = (
            "Model status\nTime limit reached\n\n# Primal solution values\nInfeasible\n"
            "Objective 3\n# Columns 1\nx 1\n# Rows 0\n"
        )
        solution = parse(text)
        assert solution.model_status == "Time limit reached"
        assert solution.feasibility is False
        assert solution.variables["x"] == 1

    def test_from_file(self, tmp_path):
        path = tmp_path / "solution.sol"
        path.write_text(SOLUTION_TEXT)
        assert Solution.from_file(path).objective == 34

    @pytest.mark.parametrize("token,expected", [
        ("7", 7), ("-3", -3), ("2.5", 2.5), ("1e-07", 1e-07), ("inf", math.inf),
    ])
    def test_parse_number(self, token, expected):
        assert parse_number(token) == expected

    @pytest.mark.parametrize("token", ["1_0", "0x10", "1e", "", "--1", "infinite"])
    def test_parse_number_rejects(self, token):
        with pytest.raises(ValueError):
            parse_number(token)


class TestMalformed:
    """Structurally invalid files raise MalformedSolutionFile."""

    def test_missing_model_status(self):
        with pytest.raises(MalformedSolutionFile):
            parse("# Primal solution values\nNone\n")

    def test_missing_primal_section(self):
        with pytest.raises(MalformedSolutionFile):
            parse("Model status\nOptimal\n")

    def test_unknown_feasibility(self):
        with pytest.raises(MalformedSolutionFile) as exc_info:
            parse("Model status\nOptimal\n# Primal solution values\nMaybe\n")
        assert exc_info.value.line == "Maybe"
        assert exc_info.value.line_no == 4

    def test_missing_objective(self):
        with pytest.raises(MalformedSolutionFile):
            parse("Model status\nOptimal\n# Primal solution values\nFeasible\n# Columns 0\n# Rows 0\n")

    def test_short_table(self):
        text = SOLUTION_TEXT.replace("# Columns 2", "# Columns 3")
        with pytest.raises(MalformedSolutionFile) as exc_info:
            parse(text)
        assert "3 entries" in str(exc_info.value)

    def test_long_table(self):
        text = SOLUTION_TEXT.replace("# Rows 3", "# Rows 2", 1)
        with pytest.raises(MalformedSolutionFile) as exc_info:
            parse(text)
        assert "has more" in str(exc_info.value)
        assert exc_info.value.line == "c00002 2"

    def test_truncated_file(self):
        text = "Model status\nOptimal\n# Primal solution values\nFeasible\nObjective 1\n# Columns 2\nx 1\n"
        with pytest.raises(MalformedSolutionFile):
            parse(text)

    def test_non_numeric_value(self):
        with pytest.raises(MalformedSolutionFile):
            parse(SOLUTION_TEXT.replace("y 4", "y four"))

    def test_underscore_digits(self):
        with pytest.raises(MalformedSolutionFile):
            parse(SOLUTION_TEXT.replace("y 4", "y 1_0"))

    def test_extra_token(self):
        with pytest.raises(MalformedSolutionFile):
            parse(SOLUTION_TEXT.replace("y 4", "y 4 basic"))

    def test_duplicate_name(self):
        with pytest.raises(MalformedSolutionFile):
            parse(SOLUTION_TEXT.replace("y 4", "x 4"))

    def test_rows_before_columns(self):
        text = SOLUTION_TEXT.replace("# Columns 2\nx 6\ny 4\n", "")
        with pytest.raises(MalformedSolutionFile):
            parse(text)

    def test_not_text(self):
        with pytest.raises(TypeError):
            parse(b"Model status\nOptimal\n")


class TestSolution:
    """Tests for using a Solution."""

    def test_evaluate(self, solution):
        x, y = variable("x"), variable("y")
        assert solution.evaluate(3 * x + 4 * y) == 34
        assert solution.evaluate(x * y) == 24
        assert solution.evaluate(5) == 5

    def test_evaluate_partial(self, solution):
        z = variable("z")
        assert solution.evaluate(variable("x") + z) == z + 6

    def test_evaluate_rejects_other_types(self, solution):
        with pytest.raises(TypeError):
            solution.evaluate("x")

    def test_renamed(self, solution):
        renamed = solution.renamed(variables={"x": "x[1]"}, constraints={"c00000": "cap"})
        assert list(renamed.variables) == ["x[1]", "y"]
        assert "cap" in renamed.constraints
        assert renamed.objective == solution.objective

    def test_values_array(self, solution):
        values = solution.values_array(["y", "x", "missing"])
        np.testing.assert_array_equal(values[:2], [4.0, 6.0])
        assert np.isnan(values[2])

    def test_immutable(self, solution):
        with pytest.raises(TypeError):
            solution.variables["x"] = 0

    def test_to_dict(self, solution):
        d = solution.to_dict()
        assert d["model_status"] == "Optimal"
        assert d["variables"] == {"x": 6, "y": 4}
