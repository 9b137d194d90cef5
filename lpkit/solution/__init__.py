"""Solver solutions: the Solution value and the solution file parser."""

from .parser import parse, parse_number
from .solution import Solution

__all__ = ["Solution", "parse", "parse_number"]
