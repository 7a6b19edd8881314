"""Asset data model.

This module handles:
- The Buildable capability shared by files and assets
- Asset declarations and option validation
- Staleness (needs-building / needs-rebuild) determination
"""

from unibuild.assets.asset import Asset, AssetOptions, ConfigurationError
from unibuild.assets.buildable import EPOCH, Buildable, BuildableKind, File

__all__ = [
    "EPOCH",
    "Asset",
    "AssetOptions",
    "Buildable",
    "BuildableKind",
    "ConfigurationError",
    "File",
]
