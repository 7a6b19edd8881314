"""Build orchestration module.

This module handles:
- Running individual asset builds (build functions and commands)
- Selecting, filtering, and expanding the assets of a build
- Executing build stages sequentially or in parallel
- Running linters, testers, and release steps
"""

from unibuild.builds.models import AssetBuildResult, BuildSummary, CheckResult, CheckSummary

__all__ = ["AssetBuildResult", "BuildSummary", "CheckResult", "CheckSummary"]

# Lazy imports for submodules to avoid circular imports
# Access via unibuild.builds.runner, unibuild.builds.service
