"""
Solver configuration.

The configuration is an explicit value handed to the solver; nothing is
read from global state unless `SolverConfig.from_env()` is called.

Environment variables (also read from a `.env` file):
- LPKIT_HIGHS_PATH: path or name of the HiGHS executable
- LPKIT_SOLVER_TIMEOUT: wall-clock timeout for the process, in seconds
- LPKIT_TIME_LIMIT: time limit passed to HiGHS (--time_limit)
"""

import logging
import os
from typing import List, Literal, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)

DEFAULT_HIGHS_BINARY = "highs"


class SolverConfig(BaseModel):
    """Settings for running the HiGHS executable."""

    binary_path: str = Field(
        default=DEFAULT_HIGHS_BINARY,
        description="HiGHS executable (looked up on PATH when not a path)"
    )
    timeout: Optional[float] = Field(
        None,
        description="Kill the solver after this many seconds (None = no limit)"
    )
    time_limit: Optional[float] = Field(
        None,
        description="Solver-side time limit in seconds (--time_limit)"
    )
    presolve: Optional[Literal["on", "off", "choose"]] = Field(
        None,
        description="HiGHS presolve option"
    )
    extra_args: List[str] = Field(
        default_factory=list,
        description="Additional command-line arguments for HiGHS"
    )

    @field_validator("timeout", "time_limit")
    @classmethod
    def validate_positive(cls, v):
        """Limits must be positive when given."""
        if v is not None and v <= 0:
            raise ValueError("must be positive")
        return v

    @field_validator("binary_path")
    @classmethod
    def validate_binary_path(cls, v):
        if not v or not v.strip():
            raise ValueError("binary_path can't be empty")
        return v

    class Config:
        frozen = True  # Immutable

    @classmethod
    def from_env(cls, env_file: Optional[str] = None, **overrides) -> "SolverConfig":
        """
        Build a configuration from environment variables.

        Args:
            env_file: Optional .env file to load first (default: search for .env)
            **overrides: Explicit values that win over the environment
        """
        load_dotenv(env_file)

        values = {}
        binary = os.environ.get("LPKIT_HIGHS_PATH")
        if binary:
            values["binary_path"] = binary
        timeout = os.environ.get("LPKIT_SOLVER_TIMEOUT")
        if timeout:
            values["timeout"] = float(timeout)
        time_limit = os.environ.get("LPKIT_TIME_LIMIT")
        if time_limit:
            values["time_limit"] = float(time_limit)

        values.update(overrides)
        logger.debug(f"Solver configuration from environment: {values}")
        return cls(**values)
