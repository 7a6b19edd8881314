"""Asset model and staleness rules.

An asset is a named Buildable with ordered inputs, a single output file,
and at most one way of producing it: a build function or a command.
"""

from __future__ import annotations

import os
from collections.abc import Callable, Sequence
from typing import Any, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

from unibuild.assets.buildable import Buildable, BuildableKind, File
from unibuild.commands import render_command
from unibuild.types import BuildFunction, BuildOptions, CommandLike


class ConfigurationError(Exception):
    """Raised when assets, linters, or testers are declared inconsistently."""

    def __init__(self, message: str, code: str = "configuration_error") -> None:
        super().__init__(message)
        self.code = code


def normalize_inputs(inputs: Any) -> list[Buildable]:
    """Normalize an input declaration to a list of Buildables.

    Accepts a single path, a single Buildable, or a sequence mixing both.
    Paths become File inputs; declaration order is preserved.
    """
    if inputs is None:
        return []
    if isinstance(inputs, (str, os.PathLike, Buildable)):
        inputs = [inputs]

    normalized: list[Buildable] = []
    for item in inputs:
        if isinstance(item, (str, os.PathLike)):
            normalized.append(File(item))
        elif isinstance(item, Buildable):
            normalized.append(item)
        else:
            raise ValueError(
                f"input must be a path or a Buildable, got {type(item).__name__}"
            )
    return normalized


class AssetOptions(BaseModel):
    """Schema for asset declarations.

    Attributes:
        inputs: Input files and assets, in declaration order.
        outfile: Path of the file the asset produces.
        build: Pure function producing the output text.
        command: Shell command producing the output file.
        release_only: Only build this asset in release mode.
    """

    model_config = ConfigDict(extra="forbid", arbitrary_types_allowed=True)

    inputs: list[Buildable] = Field(default_factory=list)
    outfile: str = Field(description="Output file path")
    build: Callable[..., Any] | None = Field(default=None)
    command: Union[str, list[str], Callable[..., Any], None] = Field(default=None)
    release_only: bool = Field(default=False)

    @field_validator("inputs", mode="before")
    @classmethod
    def validate_inputs(cls, v: Any) -> list[Buildable]:
        """Normalize paths and Buildables into a list of inputs."""
        return normalize_inputs(v)

    @field_validator("outfile", mode="before")
    @classmethod
    def validate_outfile(cls, v: Any) -> Any:
        """Accept path-like outfiles."""
        if isinstance(v, os.PathLike):
            return os.fspath(v)
        return v

    @model_validator(mode="after")
    def validate_single_action(self) -> AssetOptions:
        """Reject assets with both a build function and a command."""
        if self.build is not None and self.command is not None:
            raise ValueError("an asset cannot have both a build function and a command")
        return self


def _validation_message(error: ValidationError) -> str:
    return "; ".join(
        str(err["msg"]).removeprefix("Value error, ") for err in error.errors()
    )


class Asset(Buildable):
    """A named, buildable unit with declared inputs and one output.

    Attributes:
        name: Unique asset name.
        inputs: Ordered input Buildables.
        outfile: Output file.
        build_function: Function producing the output text, if any.
        command: Rendered shell command, if any.
        release_only: Skip this asset outside release builds.
    """

    kind = BuildableKind.ASSET

    def __init__(
        self,
        name: str,
        inputs: str | Buildable | Sequence[str | Buildable] | None = None,
        outfile: str | os.PathLike[str] | None = None,
        build: BuildFunction | None = None,
        command: CommandLike | None = None,
        release_only: bool = False,
    ) -> None:
        try:
            options = AssetOptions(
                inputs=inputs,
                outfile=outfile,
                build=build,
                command=command,
                release_only=release_only,
            )
        except ValidationError as e:
            raise ConfigurationError(f"{name}: {_validation_message(e)}") from e

        self.name = name
        self.inputs: list[Buildable] = options.inputs
        self.outfile = File(options.outfile)
        self.build_function: BuildFunction | None = options.build
        self.release_only = options.release_only
        self.command: str | None = None

        if options.command is not None:
            try:
                self.command = render_command(options.command, self)
            except TypeError as e:
                raise ConfigurationError(f"{name}: {e}") from e

    @property
    def path(self) -> str:
        return self.outfile.path

    def asset_inputs(self) -> list[Asset]:
        """Return the inputs that are themselves assets."""
        return [i for i in self.inputs if i.kind is BuildableKind.ASSET]

    def has_asset_dependencies(self) -> bool:
        return any(i.kind is BuildableKind.ASSET for i in self.inputs)

    def exists(self) -> bool:
        return self.outfile.exists()

    def modified_time(self) -> float:
        return self.outfile.modified_time()

    def can_be_built(self) -> bool:
        return True

    def input_changed(self) -> bool:
        """Return True if any input is newer than the output."""
        return any(i.newer_than(self) for i in self.inputs)

    def needs_rebuild(self, cache: dict[str, bool] | None = None) -> bool:
        """Return True if the output or anything it depends on is stale.

        Results are memoized by asset name in ``cache``; pass the same dict
        across calls to evaluate each shared dependency once.
        """
        if cache is None:
            cache = {}
        if self.name in cache:
            return cache[self.name]

        stale = (
            not self.exists()
            or self.input_changed()
            or any(i.needs_rebuild(cache) for i in self.inputs)
        )
        cache[self.name] = stale
        return stale

    def needs_building(self, options: BuildOptions) -> bool:
        """Return True if this asset should be rebuilt now.

        Unlike needs_rebuild(), this does not look at transitive inputs.
        """
        if self.release_only and not options.release:
            return False
        return options.force or not self.exists() or self.input_changed()

    def read(self) -> str:
        return self.outfile.read()

    def __repr__(self) -> str:
        return f"Asset({self.name!r}, outfile={self.outfile.path!r})"


__all__ = ["Asset", "AssetOptions", "ConfigurationError", "normalize_inputs"]
