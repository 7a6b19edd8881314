"""Build service module.

This module provides the high-level build API:
- Builder.build(): select, filter, expand dependencies, stage, and execute
- Builder.plan(): the same selection and staging without executing
- Builder.lint() / Builder.test(): run checks after building what they require
- Builder.clean(): remove asset outputs
- Release helpers: bump, git_push, publish, ci, release

Configuration errors (unknown assets, dependency cycles) are raised before
anything is built. Build-step failures are reported per asset and never
stop sibling assets or later stages.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import datetime, timezone
from functools import partial
from typing import TYPE_CHECKING

from unibuild.assets.asset import Asset, ConfigurationError
from unibuild.assets.buildable import BuildableKind
from unibuild.builds.models import (
    AssetBuildResult,
    BuildSummary,
    CheckResult,
    CheckSummary,
)
from unibuild.builds.runner import build_asset
from unibuild.commands import CommandError, run_command
from unibuild.config import get_settings
from unibuild.graph.dependency import DependencyGraph
from unibuild.graph.stages import BuildStages, DependencyCycleError
from unibuild.types import BuildOptions, BuildStatus, CheckKind

if TYPE_CHECKING:
    from unibuild.commands import CommandExecutor
    from unibuild.config import Settings
    from unibuild.project.registry import Check, Linter, Project, Tester

logger = logging.getLogger(__name__)

# Options used to build the assets a linter or tester requires
CHECK_BUILD_OPTIONS = BuildOptions(force=False, release=True, parallel=False)


class AssetNotFoundError(ConfigurationError):
    """Raised when a requested asset is not registered."""

    def __init__(self, name: str, code: str = "asset_not_found") -> None:
        super().__init__(f"No such asset: {name}", code=code)
        self.name = name


class CleanError(Exception):
    """Raised when an asset output cannot be removed."""

    def __init__(self, message: str, asset_name: str, code: str = "clean_error") -> None:
        super().__init__(message)
        self.asset_name = asset_name
        self.code = code


class ReleaseError(Exception):
    """Raised when a release cannot proceed."""

    def __init__(self, message: str, code: str = "release_build_failed") -> None:
        super().__init__(message)
        self.code = code


class Builder:
    """Orchestrates builds, checks, and release steps for a project."""

    def __init__(
        self,
        project: Project,
        settings: Settings | None = None,
        executor: CommandExecutor | None = None,
    ) -> None:
        self.project = project
        self.settings = settings if settings is not None else get_settings()
        if executor is None:
            executor = partial(
                run_command,
                timeout=self.settings.command_timeout,
                fail_on_stderr=self.settings.fail_on_stderr,
                shell=self.settings.shell,
            )
        self.executor = executor

    @property
    def assets(self) -> dict[str, Asset]:
        return self.project.assets

    @property
    def linters(self) -> dict[str, Linter]:
        return self.project.linters

    @property
    def testers(self) -> dict[str, Tester]:
        return self.project.testers

    # Selection and planning

    def check_dependencies(self) -> None:
        """Ensure the project's assets form a DAG.

        Raises:
            DependencyCycleError: If assets depend on each other in a cycle.
        """
        cycle = DependencyGraph(self.assets.values()).find_cycle()
        if cycle is not None:
            raise DependencyCycleError(cycle)

    def select_assets(
        self,
        names: Sequence[str],
        options: BuildOptions | None = None,
    ) -> list[Asset]:
        """Resolve the assets requested by name.

        With no names, every asset is selected except release-only ones
        outside release mode. Without options, release mode is assumed.

        Raises:
            AssetNotFoundError: If a name is not registered.
        """
        release = True if options is None else options.release

        if not names:
            return [a for a in self.assets.values() if release or not a.release_only]

        selected: list[Asset] = []
        for name in names:
            asset = self.assets.get(name)
            if asset is None:
                raise AssetNotFoundError(name)
            selected.append(asset)
        return selected

    def filter_assets(self, assets: Iterable[Asset], options: BuildOptions) -> list[Asset]:
        """Keep the assets that need building, or all of them when forced."""
        if options.force:
            return list(assets)
        return [a for a in assets if a.needs_building(options)]

    def add_dependencies(self, assets: Iterable[Asset]) -> list[Asset]:
        """Add every stale asset input, transitively, to the build set.

        Returns:
            Deduplicated assets, in discovery order.
        """
        collected: dict[str, Asset] = {}
        staleness: dict[str, bool] = {}
        for asset in assets:
            self._collect_stale_dependencies(asset, collected, staleness)
        return list(collected.values())

    def _collect_stale_dependencies(
        self,
        asset: Asset,
        collected: dict[str, Asset],
        staleness: dict[str, bool],
    ) -> None:
        if asset.name in collected:
            return
        collected[asset.name] = asset

        for item in asset.inputs:
            if item.kind is BuildableKind.ASSET and item.needs_rebuild(staleness):
                self._collect_stale_dependencies(item, collected, staleness)

    def plan(
        self,
        names: Sequence[str] = (),
        options: BuildOptions | None = None,
    ) -> tuple[list[Asset], BuildStages]:
        """Compute what a build would do without executing it.

        Returns:
            Tuple of (assets to build, their stages).

        Raises:
            AssetNotFoundError: If a requested name is not registered.
            DependencyCycleError: If the assets depend on each other in a cycle.
        """
        options = options or BuildOptions()
        self.check_dependencies()

        requested = self.select_assets(names, options)
        needing_build = self.filter_assets(requested, options)
        to_build = self.add_dependencies(needing_build)
        stages = BuildStages(to_build)

        logger.debug(
            "Selected %d, %d need building, %d with dependencies",
            len(requested),
            len(needing_build),
            len(to_build),
        )
        return to_build, stages

    # Building

    def build(
        self,
        names: Sequence[str] = (),
        options: BuildOptions | None = None,
        dry_run: bool = False,
    ) -> BuildSummary:
        """Build the requested assets and their stale dependencies.

        Args:
            names: Asset names to build; all eligible assets if empty.
            options: Build options.
            dry_run: Compute the stages without executing them.

        Returns:
            BuildSummary with the stages and per-asset results.

        Raises:
            AssetNotFoundError: If a requested name is not registered.
            DependencyCycleError: If the assets depend on each other in a cycle.
        """
        options = options or BuildOptions()
        to_build, stages = self.plan(names, options)
        summary = BuildSummary(stages=stages.grouping, dry_run=dry_run)

        if dry_run:
            return summary

        logger.info("Build %d assets", len(to_build))
        by_name = {asset.name: asset for asset in to_build}

        for index, stage in enumerate(stages):
            logger.info("Stage %d: %s", index + 1, ", ".join(stage))
            stage_assets = [by_name[name] for name in stage]
            summary.results.extend(self._run_stage(index, stage_assets, options))

        if summary.failed:
            logger.error(
                "%d of %d assets failed to build: %s",
                summary.failed,
                summary.total,
                ", ".join(r.name for r in summary.failures()),
            )
        return summary

    def _run_stage(
        self,
        index: int,
        assets: list[Asset],
        options: BuildOptions,
    ) -> list[AssetBuildResult]:
        if not options.parallel or len(assets) < 2:
            return [self._build_one(asset, options, index) for asset in assets]

        results: list[AssetBuildResult] = []
        max_workers = min(self.settings.max_workers, len(assets))
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            futures = {
                pool.submit(self._build_one, asset, options, index): asset.name
                for asset in assets
            }
            for future in as_completed(futures):
                results.append(future.result())
        return results

    def _build_one(self, asset: Asset, options: BuildOptions, stage: int) -> AssetBuildResult:
        try:
            return build_asset(asset, options, self.executor, stage=stage)
        except Exception as e:
            logger.exception("Unexpected error building %s", asset.name)
            now = datetime.now(timezone.utc)
            return AssetBuildResult(
                name=asset.name,
                status=BuildStatus.FAILED,
                stage=stage,
                started_at=now,
                finished_at=now,
                error_message=str(e),
                error_code="unexpected_error",
            )

    # Checks

    def lint(self, fix: bool = False) -> CheckSummary:
        """Run every linter, using autofix commands when ``fix`` is set."""
        logger.info("Linting...")
        return self._run_checks(CheckKind.LINT, self.linters.values(), fix)

    def test(self) -> CheckSummary:
        """Run every tester."""
        logger.info("Testing...")
        return self._run_checks(CheckKind.TEST, self.testers.values(), False)

    def _run_checks(
        self,
        kind: CheckKind,
        checks: Iterable[Check],
        fix: bool,
    ) -> CheckSummary:
        summary = CheckSummary(kind=kind)

        for check in checks:
            logger.info("%s %s", kind.value.capitalize(), check.name)
            errors: list[str] = []

            if check.requires:
                logger.info("Building required assets...")
                built = self.build([a.name for a in check.requires], CHECK_BUILD_OPTIONS)
                if not built.success:
                    errors.append(
                        "required assets failed to build: "
                        + ", ".join(r.name for r in built.failures())
                    )

            command = check.command_for(fix)
            logger.info("Running %s command: %s", kind.value, command)
            try:
                self.executor(command)
            except CommandError as e:
                errors.append(str(e))
                logger.error("%s %s failed: %s", kind.value.capitalize(), check.name, e)
            else:
                logger.info("Done running %s %s", kind.value, check.name)

            summary.results.append(
                CheckResult(
                    name=check.name,
                    kind=kind,
                    command=command,
                    success=not errors,
                    error_message="; ".join(errors) or None,
                )
            )

        return summary

    # Cleaning

    def clean(self, names: Sequence[str] = ()) -> list[str]:
        """Remove the outputs of the given assets (all assets if empty).

        Returns:
            Names of the assets whose output was removed.

        Raises:
            AssetNotFoundError: If a name is not registered.
            CleanError: If an existing output cannot be removed.
        """
        removed: list[str] = []
        for asset in self.select_assets(names):
            logger.info("Cleaning %s", asset.name)
            if asset.outfile.exists():
                logger.debug("Removing %s", asset.outfile.path)
                try:
                    asset.outfile.remove()
                except OSError as e:
                    raise CleanError(
                        f"Failed to remove {asset.outfile.path}: {e}", asset.name
                    ) from e
                removed.append(asset.name)
            else:
                logger.info("File %s not found", asset.outfile.path)
        return removed

    # Release helpers

    def bump(self, version: str) -> None:
        """Bump the project version.

        Raises:
            CommandError: If the bump command fails.
        """
        logger.info("Bumping version to %s", version)
        self.executor(self.settings.bump_command.format(version=version))
        logger.info("Done bumping version to %s", version)

    def git_push(self) -> None:
        """Push the release commit and tags."""
        logger.info("Pushing commit and tag to git")
        self.executor(self.settings.push_command)
        logger.info("Done pushing to git")

    def publish(self) -> None:
        """Publish the package."""
        logger.info("Publishing package")
        self.executor(self.settings.publish_command)
        logger.info("Done publishing package")

    def ci(self) -> bool:
        """Run a development build, linters, testers, and a release build.

        Every step runs even when an earlier one failed.

        Returns:
            True if every step succeeded.
        """
        results = [
            self.build([], BuildOptions(release=False)).success,
            self.lint(fix=False).success,
            self.test().success,
            self.build([], BuildOptions(release=True)).success,
        ]
        return all(results)

    def release(self, version: str) -> BuildSummary:
        """Bump the version, build for release, push, and publish.

        Raises:
            ReleaseError: If the release build failed; nothing is pushed.
            CommandError: If a release command fails.
        """
        self.bump(version)
        summary = self.build([], BuildOptions(release=True))
        if not summary.success:
            raise ReleaseError(
                f"Release build failed for {summary.failed} asset(s); not publishing"
            )
        self.git_push()
        self.publish()
        return summary


__all__ = [
    "CHECK_BUILD_OPTIONS",
    "AssetNotFoundError",
    "Builder",
    "CleanError",
    "ReleaseError",
]
