"""
Sparse multivariate polynomials over numeric coefficients.

A Polynomial maps a monomial key to its coefficient:
- A monomial key is a sorted tuple of variable names; repetition encodes
  the exponent, so ("x", "x", "y") is x^2 * y.
- The empty key () holds the constant term.
- Zero coefficients are never stored, so two polynomials are equal iff
  their term mappings are equal.

Polynomials are immutable. Every operation returns a new value, which makes
them safe to share between intermediate problems.

Example:
    >>> x = variable("x")
    >>> y = variable("y")
    >>> p = 3 * x * y - 2 * y + 1
    >>> p.to_text()
    '1 + 3 x * y - 2 y'
    >>> p.evaluate({"x": 1, "y": 2})
    3
"""

import math
import numbers
from collections import Counter
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from .exceptions import FreeVariables, InvalidVariableName, UnsupportedDegree

Number = Union[int, float]
MonomialKey = Tuple[str, ...]

# Highest degree the LP file format can express
MAX_LP_DEGREE = 2


def is_number(value: Any) -> bool:
    return isinstance(value, numbers.Real) and not isinstance(value, bool)


def _looks_numeric(name: str) -> bool:
    try:
        float(name)
    except ValueError:
        return False
    return True


class Polynomial:
    """
    Immutable sparse polynomial.

    Build polynomials with the module-level constructors (`constant`,
    `variable`, `term`) and combine them with the usual Python operators.
    Numbers are accepted on either side of `+`, `-`, `*` and `/`.
    """

    __slots__ = ("_terms",)

    def __init__(self, terms: Optional[Mapping[Iterable[str], Number]] = None):
        merged: Dict[MonomialKey, Number] = {}
        for key, coeff in (terms or {}).items():
            if not is_number(coeff):
                raise TypeError(f"Coefficient must be a number, got {coeff!r}")
            key = tuple(sorted(key))
            merged[key] = merged.get(key, 0) + coeff
        object.__setattr__(self, "_terms", _prune(merged))

    @classmethod
    def _from_canonical(cls, terms: Dict[MonomialKey, Number]) -> "Polynomial":
        # Trusted constructor: keys already sorted and zero terms removed
        p = cls.__new__(cls)
        object.__setattr__(p, "_terms", terms)
        return p

    def __setattr__(self, name, value):
        raise AttributeError("Polynomial is immutable")

    # ------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------

    @property
    def terms(self) -> Mapping[MonomialKey, Number]:
        """Read-only view of the monomial key -> coefficient mapping."""
        return MappingProxyType(self._terms)

    @property
    def n_terms(self) -> int:
        return len(self._terms)

    @property
    def is_zero(self) -> bool:
        return not self._terms

    @property
    def is_constant(self) -> bool:
        return self.degree() == 0

    def coefficients(self) -> List[Number]:
        return list(self._terms.values())

    def coefficient_for(self, key: Union[str, Iterable[str]]) -> Number:
        """
        Coefficient of a monomial, 0 if the polynomial has no such term.

        Args:
            key: A variable name (for the degree-1 term) or an iterable of names
        """
        if isinstance(key, str):
            key = (key,)
        return self._terms.get(tuple(sorted(key)), 0)

    def degree(self) -> int:
        """Maximum monomial length (0 for constants and the zero polynomial)."""
        return max((len(key) for key in self._terms), default=0)

    def degree_on(self, name: str) -> int:
        """Highest power of `name` in any single term."""
        return max((key.count(name) for key in self._terms), default=0)

    def variables(self) -> List[str]:
        """Sorted, deduplicated variable names."""
        return sorted({name for key in self._terms for name in key})

    def depends_on(self, name: str) -> bool:
        return any(name in key for key in self._terms)

    def get_variables_by(self, predicate) -> List[str]:
        return [name for name in self.variables() if predicate(name)]

    def split_constant(self) -> Tuple["Polynomial", Number]:
        """
        Split into (polynomial without constant term, constant value).

        The decomposition is exact: `rest + constant(value) == self`.
        """
        if () not in self._terms:
            return self, 0
        rest = {k: v for k, v in self._terms.items() if k != ()}
        return Polynomial._from_canonical(rest), self._terms[()]

    def to_number(self) -> Number:
        """Return the constant value, or raise FreeVariables."""
        if not self.is_constant:
            raise FreeVariables(self.variables())
        return self._terms.get((), 0)

    def to_number_if_possible(self) -> Union[Number, "Polynomial"]:
        if self.is_constant:
            return self._terms.get((), 0)
        return self

    # ------------------------------------------------------------------
    # Algebra (delegates to module functions)
    # ------------------------------------------------------------------

    def substitute(self, bindings: Mapping[str, Any]) -> "Polynomial":
        return substitute(self, bindings)

    def evaluate(self, bindings: Mapping[str, Any]) -> Number:
        return evaluate(self, bindings)

    def to_text(self) -> str:
        return to_text(self)

    def __add__(self, other):
        if not isinstance(other, Polynomial) and not is_number(other):
            return NotImplemented
        return add(self, other)

    def __radd__(self, other):
        if not is_number(other):
            return NotImplemented
        return add(other, self)

    def __sub__(self, other):
        if not isinstance(other, Polynomial) and not is_number(other):
            return NotImplemented
        return subtract(self, other)

    def __rsub__(self, other):
        if not is_number(other):
            return NotImplemented
        return subtract(other, self)

    def __mul__(self, other):
        if not isinstance(other, Polynomial) and not is_number(other):
            return NotImplemented
        return multiply(self, other)

    def __rmul__(self, other):
        if not is_number(other):
            return NotImplemented
        return multiply(other, self)

    def __truediv__(self, other):
        if not isinstance(other, Polynomial) and not is_number(other):
            return NotImplemented
        return divide(self, other)

    def __pow__(self, exponent):
        return power(self, exponent)

    def __neg__(self):
        return scale(self, -1)

    def __pos__(self):
        return self

    # ------------------------------------------------------------------
    # Equality and display
    # ------------------------------------------------------------------

    def __eq__(self, other):
        if is_number(other):
            other = constant(other)
        if not isinstance(other, Polynomial):
            return NotImplemented
        return self._terms == other._terms

    def __hash__(self):
        # Equal to a number when constant, so hashes must agree
        if self.is_constant:
            return hash(self._terms.get((), 0))
        return hash(frozenset(self._terms.items()))

    def __bool__(self):
        return bool(self._terms)

    def __repr__(self):
        return f"Polynomial<{self.to_text()}>"

    def __str__(self):
        return self.to_text()


Expr = Union[Number, Polynomial]


def _prune(terms: Dict[MonomialKey, Number]) -> Dict[MonomialKey, Number]:
    return {key: coeff for key, coeff in terms.items() if coeff != 0}


# ----------------------------------------------------------------------
# Constructors
# ----------------------------------------------------------------------

def constant(value: Number) -> Polynomial:
    """Constant polynomial; `constant(0)` is the zero polynomial."""
    if not is_number(value):
        raise TypeError(f"Constant must be a number, got {value!r}")
    return Polynomial._from_canonical(_prune({(): value}))


def zero() -> Polynomial:
    return Polynomial._from_canonical({})


def validate_variable_name(name: Any) -> str:
    """Return `name` unchanged or raise InvalidVariableName."""
    if not isinstance(name, str) or not name or _looks_numeric(name):
        raise InvalidVariableName(name)
    return name


def variable(name: str) -> Polynomial:
    """Degree-1 polynomial with coefficient 1 on `name`."""
    return Polynomial._from_canonical({(validate_variable_name(name),): 1})


def monomial(coefficient: Number, name: str) -> Polynomial:
    return scale(variable(name), coefficient)


def term(names: Iterable[str], coefficient: Number = 1) -> Polynomial:
    """Single term `coefficient * names[0] * names[1] * ...`."""
    names = tuple(validate_variable_name(n) for n in names)
    return Polynomial._from_canonical(_prune({tuple(sorted(names)): coefficient}))


def to_polynomial(value: Expr) -> Polynomial:
    """
    Coerce a number or Polynomial to a Polynomial.

    Raises:
        TypeError: for anything else (strings are not implicitly variables)
    """
    if isinstance(value, Polynomial):
        return value
    if is_number(value):
        return constant(value)
    raise TypeError(f"Can't convert {value!r} to a polynomial")


# ----------------------------------------------------------------------
# Arithmetic
# ----------------------------------------------------------------------

def add(p: Expr, q: Expr) -> Polynomial:
    p, q = to_polynomial(p), to_polynomial(q)
    terms = dict(p._terms)
    for key, coeff in q._terms.items():
        terms[key] = terms.get(key, 0) + coeff
    return Polynomial._from_canonical(_prune(terms))


def subtract(p: Expr, q: Expr) -> Polynomial:
    p, q = to_polynomial(p), to_polynomial(q)
    terms = dict(p._terms)
    for key, coeff in q._terms.items():
        terms[key] = terms.get(key, 0) - coeff
    return Polynomial._from_canonical(_prune(terms))


def scale(p: Expr, factor: Number) -> Polynomial:
    if not is_number(factor):
        raise TypeError(f"Scale factor must be a number, got {factor!r}")
    p = to_polynomial(p)
    if factor == 0:
        return zero()
    return Polynomial._from_canonical(
        _prune({key: coeff * factor for key, coeff in p._terms.items()})
    )


def multiply(p: Expr, q: Expr) -> Polynomial:
    """Cross product of the term lists with concatenated, re-sorted keys."""
    p, q = to_polynomial(p), to_polynomial(q)
    terms: Dict[MonomialKey, Number] = {}
    for key1, coeff1 in p._terms.items():
        for key2, coeff2 in q._terms.items():
            key = tuple(sorted(key1 + key2))
            terms[key] = terms.get(key, 0) + coeff1 * coeff2
    return Polynomial._from_canonical(_prune(terms))


def divide(p: Expr, divisor: Expr) -> Polynomial:
    """
    Divide by a constant.

    Raises:
        ValueError: if the divisor has free variables
        ZeroDivisionError: if the divisor is zero
    """
    divisor = to_polynomial(divisor)
    if not divisor.is_constant:
        raise ValueError(
            f"Polynomial {divisor.to_text()} is not a constant and can't be used for division"
        )
    value = divisor._terms.get((), 0)
    if value == 0:
        raise ZeroDivisionError("polynomial division by zero")
    p = to_polynomial(p)
    return Polynomial._from_canonical(
        _prune({key: coeff / value for key, coeff in p._terms.items()})
    )


def power(p: Expr, exponent: int) -> Polynomial:
    """Repeated multiplication; `power(p, 0)` is 1 for every p, zero included."""
    if not isinstance(exponent, numbers.Integral) or isinstance(exponent, bool) or exponent < 0:
        raise ValueError(f"Exponent must be a non-negative integer, got {exponent!r}")
    p = to_polynomial(p)
    result = constant(1)
    for _ in range(exponent):
        result = multiply(result, p)
    return result


def total(polynomials: Iterable[Expr]) -> Polynomial:
    """Sum of any number of polynomials or numbers."""
    terms: Dict[MonomialKey, Number] = {}
    for p in polynomials:
        for key, coeff in to_polynomial(p)._terms.items():
            terms[key] = terms.get(key, 0) + coeff
    return Polynomial._from_canonical(_prune(terms))


def product(polynomials: Iterable[Expr]) -> Polynomial:
    result = constant(1)
    for p in polynomials:
        result = multiply(result, p)
    return result


# ----------------------------------------------------------------------
# Substitution and evaluation
# ----------------------------------------------------------------------

def substitute(p: Expr, bindings: Mapping[str, Expr]) -> Polynomial:
    """
    Replace bound variables by their values and re-merge like terms.

    Args:
        p: Polynomial (or number) to substitute into
        bindings: Variable name -> number or Polynomial. Names missing from
            the mapping stay symbolic.
    """
    p = to_polynomial(p)
    terms: Dict[MonomialKey, Number] = {}
    deferred: List[Polynomial] = []

    for key, coeff in p._terms.items():
        free: List[str] = []
        factors: List[Polynomial] = []
        for name in key:
            if name not in bindings:
                free.append(name)
                continue
            value = bindings[name]
            if isinstance(value, Polynomial):
                factors.append(value)
            elif is_number(value):
                coeff = coeff * value
            else:
                raise TypeError(f"Binding for {name!r} must be a number or Polynomial, got {value!r}")

        if factors:
            deferred.append(multiply(product(factors), Polynomial._from_canonical(_prune({tuple(free): coeff}))))
        else:
            new_key = tuple(free)
            terms[new_key] = terms.get(new_key, 0) + coeff

    result = Polynomial._from_canonical(_prune(terms))
    if deferred:
        result = total([result] + deferred)
    return result


def evaluate(p: Expr, bindings: Mapping[str, Expr]) -> Number:
    """
    Substitute and return the resulting number.

    Raises:
        FreeVariables: if variables remain after substitution
    """
    result = substitute(p, bindings)
    if not result.is_constant:
        raise FreeVariables(result.variables())
    return result._terms.get((), 0)


def degree(p: Expr) -> int:
    return to_polynomial(p).degree()


def degree_on(p: Expr, name: str) -> int:
    return to_polynomial(p).degree_on(name)


def variables(p: Expr) -> List[str]:
    return to_polynomial(p).variables()


def split_constant(p: Expr) -> Tuple[Polynomial, Number]:
    return to_polynomial(p).split_constant()


def require_degree_at_most(p: Polynomial, max_degree: int = MAX_LP_DEGREE,
                           context: Optional[str] = None) -> Polynomial:
    """Return `p` unchanged, or raise UnsupportedDegree."""
    d = p.degree()
    if d > max_degree:
        raise UnsupportedDegree(d, max_degree, context)
    return p


# ----------------------------------------------------------------------
# Text rendering
# ----------------------------------------------------------------------

def format_number(value: Number) -> str:
    """
    Render a number without losing precision.

    Integral values print as integers ("14", not "14.0"); other floats use
    repr(), the shortest string that round-trips.
    """
    if isinstance(value, bool):
        value = int(value)
    if isinstance(value, numbers.Integral):
        return str(int(value))
    value = float(value)
    if math.isinf(value):
        return "inf" if value > 0 else "-inf"
    if value.is_integer() and abs(value) < 1e16:
        return str(int(value))
    return repr(value)


def monomial_text(key: MonomialKey, rename=None) -> str:
    """Render a monomial key as `x * y` / `x^2`."""
    counts = sorted(Counter(key).items())
    parts = []
    for name, count in counts:
        if rename is not None:
            name = rename(name)
        parts.append(name if count == 1 else f"{name}^{count}")
    return " * ".join(parts)


def signed_terms(terms: Iterable[Tuple[MonomialKey, Number]], rename=None) -> List[str]:
    """
    Render terms in canonical order, one string per term.

    Terms are sorted by monomial key (constant first). The first term is
    unsigned when positive; later terms carry a `+ ` or `- ` prefix.
    """
    ordered = sorted(terms, key=lambda item: item[0])
    pieces = []
    for i, (key, coeff) in enumerate(ordered):
        magnitude = format_number(abs(coeff))
        body = f"{magnitude} {monomial_text(key, rename)}" if key else magnitude
        if coeff < 0:
            pieces.append(f"- {body}")
        elif i == 0:
            pieces.append(body)
        else:
            pieces.append(f"+ {body}")
    return pieces


def terms_to_text(terms: Iterable[Tuple[MonomialKey, Number]], rename=None) -> str:
    return " ".join(signed_terms(terms, rename)) or "0"


def to_text(p: Expr, rename=None) -> str:
    """Deterministic textual form, e.g. `3 x * y - 2 z`."""
    return terms_to_text(to_polynomial(p)._terms.items(), rename)
