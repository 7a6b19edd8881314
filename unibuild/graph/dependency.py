"""Dependency graph over a set of assets.

Nodes are addressed by asset name; edges point from an input asset to the
assets that depend on it.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from unibuild.assets.asset import Asset


@dataclass
class DependencyNode:
    """A node of the dependency graph.

    Attributes:
        asset: The asset this node stands for.
        dependents: Names of the assets whose inputs include this asset.
    """

    asset: Asset
    dependents: list[str] = field(default_factory=list)

    @property
    def name(self) -> str:
        return self.asset.name


class DependencyGraph:
    """Directed graph from inputs to dependents.

    Built once per invocation from the live asset set; holds no state
    across invocations.
    """

    def __init__(self, assets: Iterable[Asset]) -> None:
        self.nodes: dict[str, DependencyNode] = {}
        self.roots: dict[str, DependencyNode] = {}

        # Inputs outside the given set are followed too, so every reachable
        # asset has a node.
        pending = list(assets)
        linked: set[str] = set()
        while pending:
            asset = pending.pop(0)
            if asset.name in linked:
                continue
            linked.add(asset.name)

            node = self._get_node(asset)
            for dependency in asset.asset_inputs():
                dependency_node = self._get_node(dependency)
                if node.name not in dependency_node.dependents:
                    dependency_node.dependents.append(node.name)
                pending.append(dependency)

    def _get_node(self, asset: Asset) -> DependencyNode:
        node = self.nodes.get(asset.name)
        if node is not None:
            return node

        node = DependencyNode(asset)
        self.nodes[asset.name] = node
        if not asset.has_asset_dependencies():
            self.roots[asset.name] = node
        return node

    def __contains__(self, name: object) -> bool:
        return name in self.nodes

    def __len__(self) -> int:
        return len(self.nodes)

    def dependencies(self, name: str) -> list[str]:
        """Return the names of the graph assets ``name`` directly depends on."""
        return [
            a.name for a in self.nodes[name].asset.asset_inputs() if a.name in self.nodes
        ]

    def find_cycle(self) -> list[str] | None:
        """Find a dependency cycle.

        Returns:
            Asset names along the cycle, with the first name repeated at the
            end, or None if the graph is acyclic.
        """
        # 0 = unvisited, 1 = on the current path, 2 = done
        state: dict[str, int] = dict.fromkeys(self.nodes, 0)

        for start in self.nodes:
            if state[start]:
                continue

            path: list[str] = [start]
            stack = [iter(self.dependencies(start))]
            state[start] = 1

            while stack:
                dependency = next(stack[-1], None)
                if dependency is None:
                    state[path.pop()] = 2
                    stack.pop()
                    continue
                if state[dependency] == 1:
                    return path[path.index(dependency) :] + [dependency]
                if state[dependency] == 0:
                    state[dependency] = 1
                    path.append(dependency)
                    stack.append(iter(self.dependencies(dependency)))

        return None


__all__ = ["DependencyGraph", "DependencyNode"]
