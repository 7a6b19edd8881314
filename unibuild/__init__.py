"""unibuild - The simplest build tool in the universe.

This package provides an incremental build orchestrator: named assets with
declared inputs and outputs are checked for staleness, ordered into
dependency-respecting stages, and built sequentially or in parallel.
"""

from unibuild.assets import Asset, Buildable, BuildableKind, File
from unibuild.project import Linter, Project, Tester, configure
from unibuild.types import BuildOptions

__version__ = "0.1.0"
__all__ = [
    "Asset",
    "BuildOptions",
    "Buildable",
    "BuildableKind",
    "File",
    "Linter",
    "Project",
    "Tester",
    "__version__",
    "configure",
]
