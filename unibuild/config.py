"""Configuration settings for unibuild.

Uses pydantic-settings for config parsing from environment variables
and defaults. Configuration precedence: CLI flags > env vars > defaults.
"""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings.

    Settings are loaded from environment variables with the UNIBUILD_ prefix.
    CLI flags can override these at runtime.
    """

    model_config = SettingsConfigDict(
        env_prefix="UNIBUILD_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Project discovery
    project_files: list[str] = Field(
        default_factory=lambda: ["unibuild.py"],
        description="Project file names searched for in the working directory",
    )

    # Operational modes
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )
    parallel: bool = Field(
        default=False,
        description="Build the assets of a stage concurrently by default",
    )

    # Concurrency
    max_workers: int = Field(
        default=4,
        ge=1,
        le=64,
        description="Maximum concurrent asset builds within a stage",
    )

    # Command execution
    command_timeout: int | None = Field(
        default=None,
        ge=1,
        description="Timeout for external commands in seconds (no timeout if not set)",
    )
    fail_on_stderr: bool = Field(
        default=True,
        description="Treat any output on stderr as a command failure",
    )
    shell: str | None = Field(
        default=None,
        description="Shell used to run commands (uses /bin/sh if not set)",
    )

    # Release helpers
    bump_command: str = Field(
        default="npm version {version}",
        description="Command used to bump the project version",
    )
    push_command: str = Field(
        default="git push && git push --tags",
        description="Command used to push the release commit and tag",
    )
    publish_command: str = Field(
        default="yarn npm publish",
        description="Command used to publish the package",
    )


def get_settings() -> Settings:
    """Get the application settings singleton.

    Returns:
        Settings instance loaded from environment.
    """
    return Settings()


def print_settings_json(settings: Settings | None = None) -> str:
    """Render effective settings as JSON.

    Args:
        settings: Optional settings instance; uses default if not provided.

    Returns:
        JSON string of effective settings.
    """
    if settings is None:
        settings = get_settings()
    return settings.model_dump_json(indent=2)


__all__ = ["Settings", "get_settings", "print_settings_json"]
