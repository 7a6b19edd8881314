"""Shared type definitions for unibuild.

This module contains dataclasses, enums, and type aliases shared across
subpackages to avoid circular imports.
"""

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any, Union


class BuildStatus(str, Enum):
    """Status of a single asset build."""

    PENDING = "pending"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class CheckKind(str, Enum):
    """Kind of a project check."""

    LINT = "lint"
    TEST = "test"


@dataclass(frozen=True)
class BuildOptions:
    """Options for a build invocation.

    Passed as the first argument to every build function.

    Attributes:
        force: Rebuild selected assets even when their outputs are up to date.
        release: Include release-only assets.
        parallel: Build the assets of a stage concurrently.
    """

    force: bool = False
    release: bool = False
    parallel: bool = False


# A command is a literal, a sequence of literals joined with "&&", or a
# callable receiving the owning asset/linter/tester and returning either.
CommandLike = Union[str, Sequence[str], Callable[[Any], Union[str, Sequence[str]]]]

BuildFunction = Callable[..., str]


__all__ = [
    "BuildFunction",
    "BuildOptions",
    "BuildStatus",
    "CheckKind",
    "CommandLike",
]
