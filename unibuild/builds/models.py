"""Result models for builds and checks.

These models are returned by the builder service and rendered by the CLI,
either as text or as JSON via ``model_dump_json``.
"""

from datetime import datetime

from pydantic import BaseModel, Field, computed_field

from unibuild.types import BuildStatus, CheckKind


class AssetBuildResult(BaseModel):
    """Outcome of building a single asset.

    Attributes:
        name: Asset name.
        status: Final build status.
        stage: Index of the stage the asset was built in.
        started_at: Build start time.
        finished_at: Build finish time.
        error_message: Error message if the build failed.
        error_code: Machine-readable error code if the build failed.
    """

    name: str
    status: BuildStatus = BuildStatus.PENDING
    stage: int | None = None
    started_at: datetime | None = None
    finished_at: datetime | None = None
    error_message: str | None = None
    error_code: str | None = None

    @property
    def success(self) -> bool:
        return self.status == BuildStatus.SUCCEEDED

    @property
    def duration(self) -> float | None:
        if self.started_at is None or self.finished_at is None:
            return None
        return (self.finished_at - self.started_at).total_seconds()


class BuildSummary(BaseModel):
    """Outcome of a build invocation.

    Attributes:
        stages: Asset names grouped by build stage, in execution order.
        results: Per-asset results, in completion order.
        dry_run: True if the stages were computed but not executed.
    """

    stages: list[list[str]] = Field(default_factory=list)
    results: list[AssetBuildResult] = Field(default_factory=list)
    dry_run: bool = False

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total(self) -> int:
        return sum(len(stage) for stage in self.stages)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.results if r.status == BuildStatus.SUCCEEDED)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if r.status == BuildStatus.FAILED)

    @property
    def success(self) -> bool:
        return self.failed == 0

    def failures(self) -> list[AssetBuildResult]:
        """Return the results of the assets that failed to build."""
        return [r for r in self.results if r.status == BuildStatus.FAILED]

    def result_for(self, name: str) -> AssetBuildResult | None:
        """Return the result for asset ``name``, if it was built."""
        for result in self.results:
            if result.name == name:
                return result
        return None


class CheckResult(BaseModel):
    """Outcome of running a linter or tester.

    Attributes:
        name: Linter or tester name.
        kind: Whether this was a lint or a test check.
        command: Command that was run.
        success: Whether the check and its required builds succeeded.
        error_message: Error message if the check failed.
    """

    name: str
    kind: CheckKind
    command: str
    success: bool
    error_message: str | None = None


class CheckSummary(BaseModel):
    """Outcome of a lint or test invocation."""

    kind: CheckKind
    results: list[CheckResult] = Field(default_factory=list)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if not r.success)

    @property
    def success(self) -> bool:
        return self.failed == 0


__all__ = ["AssetBuildResult", "BuildSummary", "CheckResult", "CheckSummary"]
