"""
Model file formats.

Currently provides the CPLEX LP format used to hand problems to HiGHS.
"""

from .lp_format import (
    LPModel,
    NameTable,
    RESERVED_WORDS,
    sanitize_name,
    serialize,
    write_lp,
)

__all__ = [
    "LPModel",
    "NameTable",
    "RESERVED_WORDS",
    "sanitize_name",
    "serialize",
    "write_lp",
]
