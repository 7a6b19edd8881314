"""Build runner for executing a single asset build.

This module handles:
- Reading asset inputs into build-function payloads
- Invoking build functions and writing their output
- Running asset commands through the command executor
- Converting every build-step failure into a failed AssetBuildResult
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from unibuild.builds.models import AssetBuildResult
from unibuild.commands import CommandError, run_command
from unibuild.types import BuildOptions, BuildStatus

if TYPE_CHECKING:
    from unibuild.assets.asset import Asset
    from unibuild.commands import CommandExecutor

logger = logging.getLogger(__name__)


class BuildExecutionError(Exception):
    """Raised when an asset build step fails."""

    def __init__(
        self,
        message: str,
        asset_name: str,
        code: str = "build_error",
    ) -> None:
        super().__init__(message)
        self.asset_name = asset_name
        self.code = code


def read_inputs(asset: Asset) -> list[str]:
    """Collect the build-function payloads of an asset.

    File-backed inputs contribute their text contents; inputs whose path is
    not a regular file contribute the path itself.

    Args:
        asset: Asset whose inputs to read.

    Returns:
        Payloads in input-declaration order.

    Raises:
        BuildExecutionError: If an input file cannot be read.
    """
    payloads: list[str] = []
    for item in asset.inputs:
        if item.is_file():
            logger.debug("Reading %s", item.path)
            try:
                payloads.append(item.read())
            except (OSError, UnicodeDecodeError) as e:
                raise BuildExecutionError(
                    f"Failed to read input {item.path}: {e}",
                    asset.name,
                    code="input_error",
                ) from e
        else:
            logger.debug("Input %s is not a file, passing the path", item.path)
            payloads.append(item.path)
    return payloads


def execute_asset(
    asset: Asset,
    options: BuildOptions,
    executor: CommandExecutor = run_command,
) -> None:
    """Run the build step of an asset.

    Args:
        asset: Asset to build.
        options: Options passed to the build function.
        executor: Callable running a rendered command.

    Raises:
        BuildExecutionError: If the build function raises or returns a
            non-string, the output cannot be written, or the command fails.
    """
    if asset.build_function is not None:
        payloads = read_inputs(asset)

        try:
            output = asset.build_function(options, *payloads)
        except Exception as e:
            raise BuildExecutionError(
                f"Build function of {asset.name} raised {type(e).__name__}: {e}",
                asset.name,
                code="build_function_error",
            ) from e

        if not isinstance(output, str):
            raise BuildExecutionError(
                f"Build function of {asset.name} returned {type(output).__name__}, "
                "expected str",
                asset.name,
                code="invalid_output",
            )

        logger.debug("Writing to %s", asset.outfile.path)
        try:
            asset.outfile.write(output)
        except OSError as e:
            raise BuildExecutionError(
                f"Failed to write {asset.outfile.path}: {e}",
                asset.name,
                code="output_error",
            ) from e

    if asset.command is not None:
        logger.info("Running command: %s", asset.command)
        try:
            executor(asset.command)
        except CommandError as e:
            raise BuildExecutionError(str(e), asset.name, code=e.code) from e


def build_asset(
    asset: Asset,
    options: BuildOptions,
    executor: CommandExecutor = run_command,
    stage: int | None = None,
) -> AssetBuildResult:
    """Build an asset and report the outcome.

    Build-step failures are caught and reported in the result; they never
    propagate to the caller.

    Args:
        asset: Asset to build.
        options: Options passed to the build function.
        executor: Callable running a rendered command.
        stage: Index of the stage the asset belongs to.

    Returns:
        AssetBuildResult with status SUCCEEDED or FAILED.
    """
    logger.info("Building %s", asset.name)
    result = AssetBuildResult(
        name=asset.name,
        status=BuildStatus.RUNNING,
        stage=stage,
        started_at=datetime.now(timezone.utc),
    )

    try:
        execute_asset(asset, options, executor)
    except BuildExecutionError as e:
        result.status = BuildStatus.FAILED
        result.error_message = str(e)
        result.error_code = e.code
        logger.error("Failed building %s: %s", asset.name, e)
    else:
        result.status = BuildStatus.SUCCEEDED
        logger.info("Done building %s", asset.name)

    result.finished_at = datetime.now(timezone.utc)
    return result


__all__ = [
    "BuildExecutionError",
    "build_asset",
    "execute_asset",
    "read_inputs",
]
