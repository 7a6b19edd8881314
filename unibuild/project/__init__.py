"""Project declaration and loading.

This module handles:
- The registration API for assets, linters, and testers
- Locating and executing project files
"""

from unibuild.project.registry import Check, Linter, Project, Tester, configure

__all__ = ["Check", "Linter", "Project", "Tester", "configure"]

# Access project file loading via unibuild.project.io
