"""Project registration API.

A project file declares its assets, linters, and testers through a
Project instance. Registration performs no file or process I/O.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Any, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from unibuild.assets.asset import Asset, ConfigurationError
from unibuild.assets.buildable import Buildable, BuildableKind
from unibuild.commands import render_command
from unibuild.types import CheckKind, CommandLike

CommandField = Union[str, list[str], Callable[..., Any]]


class CheckOptions(BaseModel):
    """Schema for linter and tester declarations.

    Attributes:
        command: Command running the check.
        autofix_command: Command fixing what the check reports (linters only).
        requires: Assets that must be built before the check runs.
    """

    model_config = ConfigDict(extra="forbid", arbitrary_types_allowed=True)

    command: CommandField
    autofix_command: CommandField | None = Field(default=None)
    requires: list[Buildable] = Field(default_factory=list)

    @field_validator("requires", mode="before")
    @classmethod
    def validate_requires(cls, v: Any) -> Any:
        """Accept a single asset or a sequence of assets."""
        if v is None:
            return []
        if isinstance(v, Buildable):
            v = [v]
        for item in v:
            if not isinstance(item, Buildable) or item.kind is not BuildableKind.ASSET:
                raise ValueError(f"requires must contain assets, got {item!r}")
        return list(v)


class Check:
    """Base for project checks (linters and testers)."""

    kind: CheckKind

    def __init__(
        self,
        name: str,
        command: CommandLike,
        requires: Asset | Sequence[Asset] | None = None,
        autofix_command: CommandLike | None = None,
    ) -> None:
        try:
            options = CheckOptions(
                command=command,
                autofix_command=autofix_command,
                requires=requires,
            )
        except ValidationError as e:
            messages = "; ".join(
                str(err["msg"]).removeprefix("Value error, ") for err in e.errors()
            )
            raise ConfigurationError(f"{name}: {messages}") from e

        self.name = name
        self.requires: list[Asset] = list(options.requires)
        try:
            self.command = render_command(options.command, self)
        except TypeError as e:
            raise ConfigurationError(f"{name}: {e}") from e
        self._autofix = options.autofix_command

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r}, command={self.command!r})"


class Linter(Check):
    """A linter: a command run against the project, optionally with autofix."""

    kind = CheckKind.LINT

    def __init__(
        self,
        name: str,
        command: CommandLike,
        requires: Asset | Sequence[Asset] | None = None,
        autofix_command: CommandLike | None = None,
    ) -> None:
        super().__init__(name, command, requires=requires, autofix_command=autofix_command)
        self.autofix_command: str | None = None
        if self._autofix is not None:
            try:
                self.autofix_command = render_command(self._autofix, self)
            except TypeError as e:
                raise ConfigurationError(f"{name}: {e}") from e

    def command_for(self, fix: bool) -> str:
        """Return the command to run, preferring autofix when requested."""
        if fix and self.autofix_command:
            return self.autofix_command
        return self.command


class Tester(Check):
    """A tester: a command running the project's test suite."""

    kind = CheckKind.TEST
    # Not a pytest test class
    __test__ = False

    def __init__(
        self,
        name: str,
        command: CommandLike,
        requires: Asset | Sequence[Asset] | None = None,
    ) -> None:
        super().__init__(name, command, requires=requires)

    def command_for(self, fix: bool = False) -> str:
        return self.command


class Project:
    """Registry of the assets, linters, and testers of a project.

    Attributes:
        assets: Assets by name, in registration order.
        linters: Linters by name, in registration order.
        testers: Testers by name, in registration order.
    """

    def __init__(self, callback: Callable[[Project], Any] | None = None) -> None:
        self.assets: dict[str, Asset] = {}
        self.linters: dict[str, Linter] = {}
        self.testers: dict[str, Tester] = {}

        if callback is not None:
            callback(self)

    def asset(
        self,
        name: str,
        inputs: Any = None,
        outfile: Any = None,
        build: Callable[..., str] | None = None,
        command: CommandLike | None = None,
        release_only: bool = False,
    ) -> Asset:
        """Register and return an asset.

        Raises:
            ConfigurationError: If the name is taken or the declaration is
                invalid.
        """
        if name in self.assets:
            raise ConfigurationError(f"{name}: asset already registered")
        asset = Asset(
            name,
            inputs=inputs,
            outfile=outfile,
            build=build,
            command=command,
            release_only=release_only,
        )
        self.assets[name] = asset
        return asset

    def lint(
        self,
        name: str,
        command: CommandLike,
        autofix_command: CommandLike | None = None,
        requires: Asset | Sequence[Asset] | None = None,
    ) -> Linter:
        """Register and return a linter."""
        if name in self.linters:
            raise ConfigurationError(f"{name}: linter already registered")
        linter = Linter(name, command, requires=requires, autofix_command=autofix_command)
        self.linters[name] = linter
        return linter

    def test(
        self,
        name: str,
        command: CommandLike,
        requires: Asset | Sequence[Asset] | None = None,
    ) -> Tester:
        """Register and return a tester."""
        if name in self.testers:
            raise ConfigurationError(f"{name}: tester already registered")
        tester = Tester(name, command, requires=requires)
        self.testers[name] = tester
        return tester


def configure(callback: Callable[[Project], Any]) -> Project:
    """Create a project and let ``callback`` register its contents."""
    return Project(callback)


__all__ = ["Check", "CheckOptions", "Linter", "Project", "Tester", "configure"]
