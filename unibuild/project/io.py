"""Project file loading.

This module locates a project file (``unibuild.py`` by default) in a
directory, executes it as a module, and returns the Project it declares.

A project file either exposes a module-level ``project`` attribute::

    project = configure(lambda p: p.asset("bundle", inputs="a.txt", outfile="b.txt"))

or defines a ``configure(project)`` function that registers into a fresh
Project.
"""

from __future__ import annotations

import importlib.util
import logging
import sys
from collections.abc import Sequence
from pathlib import Path

from unibuild.assets.asset import ConfigurationError
from unibuild.project.registry import Project

logger = logging.getLogger(__name__)

DEFAULT_PROJECT_FILES = ("unibuild.py",)


class ProjectFileNotFoundError(Exception):
    """Raised when no project file exists in the project directory."""

    def __init__(
        self,
        directory: Path,
        filenames: Sequence[str],
        code: str = "project_not_found",
    ) -> None:
        super().__init__(
            f"No unibuild project file found in {directory} ({', '.join(filenames)})"
        )
        self.directory = directory
        self.code = code


class ProjectLoadError(Exception):
    """Raised when a project file cannot be loaded."""

    def __init__(self, message: str, path: Path, code: str = "project_load_error") -> None:
        super().__init__(message)
        self.path = path
        self.code = code


def find_project_file(
    directory: Path,
    filenames: Sequence[str] = DEFAULT_PROJECT_FILES,
) -> Path:
    """Return the first existing project file in ``directory``.

    Raises:
        ProjectFileNotFoundError: If none of ``filenames`` exists.
    """
    for filename in filenames:
        candidate = directory / filename
        if candidate.is_file():
            return candidate
    raise ProjectFileNotFoundError(directory, filenames)


def load_project_file(path: Path) -> Project:
    """Execute a project file and return its Project.

    Args:
        path: Path to the project file.

    Returns:
        The declared Project.

    Raises:
        ProjectLoadError: If the module cannot be imported, raises while
            executing, or declares no project.
        ConfigurationError: If the project declares invalid assets or checks.
    """
    module_name = f"_unibuild_project_{abs(hash(str(path.resolve())))}"
    spec = importlib.util.spec_from_file_location(module_name, path)
    if spec is None or spec.loader is None:
        raise ProjectLoadError(f"Cannot import project file: {path}", path)

    module = importlib.util.module_from_spec(spec)
    # Project files may import helpers that sit next to them
    project_dir = str(path.parent.resolve())
    added_to_path = project_dir not in sys.path
    if added_to_path:
        sys.path.insert(0, project_dir)
    # Must resolve through sys.modules while executing
    sys.modules[module_name] = module
    try:
        spec.loader.exec_module(module)
    except ConfigurationError:
        sys.modules.pop(module_name, None)
        raise
    except Exception as e:
        sys.modules.pop(module_name, None)
        raise ProjectLoadError(
            f"Error executing project file {path}: {type(e).__name__}: {e}", path
        ) from e
    finally:
        if added_to_path:
            sys.path.remove(project_dir)

    project = getattr(module, "project", None)
    if isinstance(project, Project):
        logger.debug("Loaded project from %s (project attribute)", path)
        return project

    configure_fn = getattr(module, "configure", None)
    if callable(configure_fn) and configure_fn.__module__ == module_name:
        logger.debug("Loaded project from %s (configure function)", path)
        return Project(configure_fn)

    raise ProjectLoadError(
        f"Project file {path} must define a 'project' or a 'configure(project)' function",
        path,
    )


def load_project(
    directory: Path | None = None,
    filenames: Sequence[str] = DEFAULT_PROJECT_FILES,
) -> Project:
    """Find and load the project file of ``directory`` (cwd by default)."""
    directory = directory or Path.cwd()
    path = find_project_file(directory, filenames)
    logger.info("Using project file %s", path)
    return load_project_file(path)


__all__ = [
    "DEFAULT_PROJECT_FILES",
    "ProjectFileNotFoundError",
    "ProjectLoadError",
    "find_project_file",
    "load_project",
    "load_project_file",
]
