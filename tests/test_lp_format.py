"""
Tests for the LP file writer.
"""

import pytest

from lpkit.constraint import ConstraintMetadata, normalize
from lpkit.exceptions import (
    InfeasibleConstantConstraint,
    NameCollisionAfterSanitization,
    UndeclaredVariable,
    UnsupportedDegree,
)
from lpkit.formats import serialize
from lpkit.formats.lp_format import MAX_LINE_LENGTH, sanitize_name, write_lp
from lpkit.polynomial import total, variable
from lpkit.problem import Problem


@pytest.fixture
def problem():
    p = Problem.new("maximize")
    p, x = p.new_variable("x", min=0)
    p, y = p.new_variable("y", min=0)
    p = p.add_constraint(normalize(x + 2 * y, "<=", 14))
    p = p.add_constraint(normalize(3 * x - y, ">=", 0))
    p = p.add_constraint(normalize(x - y, "<=", 2))
    return p.set_objective(3 * x + 4 * y)


def test_linear_problem(problem):
    """Complete file for a small LP."""
    assert serialize(problem) == (
        "Maximize\n"
        "  3 x + 4 y\n"
        "Subject To\n"
        "  c00000: 1 x + 2 y <= 14\n"
        "  c00001: 3 x - 1 y >= 0\n"
        "  c00002: 1 x - 1 y <= 2\n"
        "Bounds\n"
        "  0 <= x\n"
        "  0 <= y\n"
        "End\n"
    )


def test_deterministic(problem):
    assert serialize(problem) == serialize(problem)


def test_section_order(problem):
    p, _ = problem.new_variable("n", type="integer", min=0, max=10)
    p, _ = p.new_variable("b", type="binary")
    headers = [line for line in serialize(p).splitlines() if not line.startswith(" ")]
    assert headers == ["Maximize", "Subject To", "Bounds", "General", "Binary", "End"]


def test_minimize_with_empty_objective():
    p, _ = Problem.new("minimize").new_variable("x")
    lines = serialize(p).splitlines()
    assert lines[:2] == ["Minimize", "  0"]
    assert "Subject To" in lines


class TestQuadratic:
    """Quadratic terms use bracket blocks."""

    def test_objective_terms_doubled(self):
        p = Problem.new("minimize")
        p, x = p.new_variable("x")
        p, y = p.new_variable("y")
        p = p.set_objective(x * x + x * y + 2 * x)
        lines = serialize(p).splitlines()
        assert lines[1] == "  2 x + [ 2 x^2 + 2 x * y ] / 2"

    def test_purely_quadratic_objective(self):
        p, x = Problem.new("minimize").new_variable("x")
        p = p.set_objective(3 * x * x)
        assert serialize(p).splitlines()[1] == "  [ 6 x^2 ] / 2"

    def test_constraint_terms_not_doubled(self):
        p = Problem.new("minimize")
        p, x = p.new_variable("x")
        p, y = p.new_variable("y")
        p = p.add_constraint(normalize(x * x + y, "<=", 4))
        assert "  c00000: 1 y + [ 1 x^2 ] <= 4" in serialize(p).splitlines()

    def test_cubic_rejected(self):
        p, x = Problem.new("minimize").new_variable("x")
        with pytest.raises(UnsupportedDegree):
            serialize(p.set_objective(x * x * x))
        with pytest.raises(UnsupportedDegree):
            serialize(p.add_constraint(normalize(x * x * x, "<=", 1)))


class TestBounds:
    """Bounds and variable-type sections."""

    def _bounds(self, p):
        lines = serialize(p).splitlines()
        start = lines.index("Bounds") + 1
        end = next(i for i, line in enumerate(lines) if i >= start and not line.startswith(" "))
        return lines[start:end]

    def test_bound_forms(self):
        p = Problem.new("minimize")
        p, _ = p.new_variable("free_var")
        p, _ = p.new_variable("lower", min=-2.5)
        p, _ = p.new_variable("upper", max=5)
        p, _ = p.new_variable("boxed", min=1, max=3)
        assert self._bounds(p) == [
            "  free_var free",
            "  -2.5 <= lower",
            "  -inf <= upper <= 5",
            "  1 <= boxed <= 3",
        ]

    def test_default_binary_has_no_bounds_line(self):
        p, _ = Problem.new("minimize").new_variable("b", type="binary")
        text = serialize(p)
        assert self._bounds(p) == []
        assert text.endswith("Binary\n  b\nEnd\n")

    def test_narrowed_binary_has_bounds_line(self):
        p, _ = Problem.new("minimize").new_variable("b", type="binary", max=0)
        assert self._bounds(p) == ["  0 <= b <= 0"]

    def test_integer_section(self):
        p, _ = Problem.new("minimize").new_variable("n", type="integer", min=0, max=10)
        text = serialize(p)
        assert "  0 <= n <= 10" in text.splitlines()
        assert text.endswith("General\n  n\nEnd\n")
        assert "Binary" not in text


class TestNames:
    """Name sanitization."""

    @pytest.mark.parametrize("name,expected", [
        ("x", "x"),
        ("x.y_1", "x.y_1"),
        ("x[1]", "x_1_"),
        ("a b-c", "a_b_c"),
        ("1abc", "x_1abc"),
        ("e1", "x_e1"),
        ("E+5", "E_5"),
        ("end", "x_end"),
        ("Free", "x_Free"),
        ("_tmp", "_tmp"),
    ])
    def test_sanitize_name(self, name, expected):
        assert sanitize_name(name) == expected

    def test_names_map_back(self):
        p = Problem.new("minimize")
        p, v = p.new_variable("x[1]", min=0)
        p = p.add_constraint(normalize(v, "<=", 3, name="1st cap"))
        model = write_lp(p)
        assert model.variable_names == {"x[1]": "x_1_"}
        assert model.constraint_names == {"1st cap": "c_1st_cap"}
        assert model.original_variable_names == {"x_1_": "x[1]"}
        assert model.original_constraint_names == {"c_1st_cap": "1st cap"}
        assert "  c_1st_cap: 1 x_1_ <= 3" in model.text.splitlines()

    def test_collision(self):
        p = Problem.new("minimize")
        p, _ = p.new_variable("a b")
        p, _ = p.new_variable("a-b")
        with pytest.raises(NameCollisionAfterSanitization) as exc_info:
            serialize(p)
        assert exc_info.value.sanitized == "a_b"
        assert exc_info.value.names == ("a b", "a-b")


class TestValidation:
    """Errors raised before any text is produced."""

    def test_undeclared_in_objective(self):
        p, x = Problem.new("minimize").new_variable("x")
        p = p.set_objective(x + variable("z"))
        with pytest.raises(UndeclaredVariable) as exc_info:
            serialize(p)
        assert exc_info.value.name == "z"
        assert exc_info.value.location == "objective"

    def test_undeclared_in_constraint(self):
        p, x = Problem.new("minimize").new_variable("x")
        p = p.add_constraint(normalize(x + variable("w"), "<=", 1))
        with pytest.raises(UndeclaredVariable) as exc_info:
            serialize(p)
        assert exc_info.value.location == "constraint c00000"

    def test_satisfied_constant_constraint_dropped(self):
        p, x = Problem.new("minimize").new_variable("x")
        p = p.add_constraint(normalize(x, "<=", x + 1))
        p = p.add_constraint(normalize(x, "<=", 5))
        model = write_lp(p)
        assert "c00000" not in model.text
        assert "  c00001: 1 x <= 5" in model.text.splitlines()

    def test_infeasible_constant_constraint(self):
        p, x = Problem.new("minimize").new_variable("x")
        p = p.add_constraint(normalize(x + 1, "<=", x))
        with pytest.raises(InfeasibleConstantConstraint):
            serialize(p)


class TestComments:
    """Constraint metadata is written as comments."""

    @pytest.fixture
    def tagged(self):
        p, x = Problem.new("minimize").new_variable("x")
        meta = ConstraintMetadata(module="plant", tags=("capacity",))
        return p.add_constraint(normalize(x, "<=", 5, metadata=meta))

    def test_comments_precede_row(self, tagged):
        lines = serialize(tagged).splitlines()
        row = lines.index("  c00000: 1 x <= 5")
        assert lines[row - 2:row] == ["  \\ module: plant", "  \\ tags: capacity"]

    def test_comments_disabled(self, tagged):
        assert "\\" not in serialize(tagged, include_comments=False)


def test_long_expressions_wrapped():
    """No line exceeds the LP line length limit."""
    p = Problem.new("minimize")
    handles = []
    for i in range(100):
        p, v = p.new_variable(f"variable_{i:03d}", min=0)
        handles.append(v)
    p = p.set_objective(total(handles))
    p = p.add_constraint(normalize(total(handles), ">=", 1))
    lines = serialize(p).splitlines()
    assert all(len(line) <= MAX_LINE_LENGTH for line in lines)
    assert any(line.startswith("    + 1 variable_") for line in lines)
