"""Topological leveling of assets into build stages.

Each asset is assigned to the lowest stage in which every requested asset
it depends on has already been placed in an earlier stage. Assets with no
dependency relation share a stage. Within a stage, assets keep the order in
which they were requested.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator

from unibuild.assets.asset import Asset, ConfigurationError

logger = logging.getLogger(__name__)


class DependencyCycleError(ConfigurationError):
    """Raised when assets depend on each other in a cycle."""

    def __init__(self, names: list[str], code: str = "dependency_cycle") -> None:
        super().__init__(f"Dependency cycle detected: {' -> '.join(names)}", code=code)
        self.names = names


def _unique(assets: Iterable[Asset]) -> list[Asset]:
    seen: set[str] = set()
    unique: list[Asset] = []
    for asset in assets:
        if asset.name not in seen:
            seen.add(asset.name)
            unique.append(asset)
    return unique


def compute_stages(assets: Iterable[Asset]) -> list[list[str]]:
    """Partition assets into dependency-respecting stages.

    Args:
        assets: Assets requested for building. Dependencies that are not part
            of this collection are treated as already satisfied.

    Returns:
        Ordered list of stages, each a list of asset names.

    Raises:
        DependencyCycleError: If the requested assets depend on each other in
            a cycle, so that no further stage can be formed.
    """
    requested = _unique(assets)
    requested_names = {asset.name for asset in requested}
    placed: set[str] = set()
    stages: list[list[str]] = []

    while len(placed) < len(requested):
        stage: list[str] = []

        for asset in requested:
            if asset.name in placed:
                continue

            ready = all(
                dependency.name not in requested_names
                or dependency.name in placed
                for dependency in asset.asset_inputs()
            )
            if ready:
                stage.append(asset.name)

        if not stage:
            remaining = [a.name for a in requested if a.name not in placed]
            raise DependencyCycleError(remaining)

        placed.update(stage)
        stages.append(stage)

    logger.debug("Computed %d build stage(s): %s", len(stages), stages)
    return stages


class BuildStages:
    """Ordered grouping of asset names into build stages.

    Attributes:
        grouping: List of stages; every asset-dependency of an asset in stage
            ``i`` that is part of the build sits in a stage ``j < i``.
    """

    def __init__(self, assets: Iterable[Asset]) -> None:
        self.grouping: list[list[str]] = compute_stages(assets)

    def __iter__(self) -> Iterator[list[str]]:
        return iter(self.grouping)

    def __len__(self) -> int:
        return len(self.grouping)

    def stage_of(self, name: str) -> int:
        """Return the index of the stage containing ``name``.

        Raises:
            KeyError: If the asset is not part of any stage.
        """
        for index, stage in enumerate(self.grouping):
            if name in stage:
                return index
        raise KeyError(name)


__all__ = ["BuildStages", "DependencyCycleError", "compute_stages"]
