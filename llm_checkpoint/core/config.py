"""Application configuration with validation."""

import base64
from pathlib import Path

from pydantic_settings import BaseSettings
from pydantic import Field, field_validator


# Default location for per-workspace stores, shared by every workspace.
DEFAULT_STORAGE_DIR = Path.home() / ".llm-checkpoint"


class Settings(BaseSettings):
    """
    Application settings with validation.

    Every value can be overridden with a ``CHECKPOINT_``-prefixed
    environment variable or a ``.env`` file in the working directory.
    """

    # Workspace
    workspace_root: Path = Field(
        default=Path("."),
        description="Root of the workspace whose files are versioned"
    )

    # Storage Configuration
    # Each workspace gets its own SQLite file under storage_dir unless
    # database_url points somewhere explicit.
    storage_dir: Path = Field(
        default=DEFAULT_STORAGE_DIR,
        description="Directory holding per-workspace version stores"
    )
    database_url: str = Field(
        default="",
        description="Explicit database URL (empty = derive from workspace_root)"
    )

    # Versioning behaviour
    save_all_changes: bool = Field(
        default=False,
        description="Persist every save, bypassing the change-significance filter"
    )
    auto_cleanup_after_commit: bool = Field(
        default=False,
        description="After a git commit keep only the annotated version of each committed file"
    )

    # Presentation toggles, read by clients only
    show_info_messages: bool = Field(default=True)
    show_timestamps: bool = Field(default=True)

    # Git integration
    watch_git: bool = Field(
        default=True,
        description="Watch the workspace git repository for commits"
    )
    git_poll_interval: float = Field(
        default=1.0,
        description="Seconds between checks of the repository state"
    )

    # Server
    host: str = Field(default="127.0.0.1")
    port: int = Field(default=8765)

    # Logging Configuration
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    log_format: str = Field(
        default="text",
        description="Log output format: 'json' for structured, 'text' for human-readable"
    )

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is one of the standard Python logging levels."""
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Invalid log level. Must be one of: {valid_levels}")
        return v_upper

    @field_validator('git_poll_interval')
    @classmethod
    def validate_poll_interval(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("git_poll_interval must be positive")
        return v

    def workspace_db_path(self) -> Path:
        """Path of the SQLite store for the configured workspace.

        The workspace root is encoded into the file name so several
        workspaces can share one storage directory.
        """
        workspace_id = str(self.workspace_root.resolve())
        workspace_hash = base64.urlsafe_b64encode(workspace_id.encode("utf-8")).decode("ascii")
        return self.storage_dir / f"file_versions.{workspace_hash}.db"

    def resolved_database_url(self) -> str:
        """Database URL to open, explicit or derived from the workspace."""
        if self.database_url:
            return self.database_url
        return f"sqlite:///{self.workspace_db_path()}"

    class Config:
        """Pydantic configuration."""
        env_prefix = "CHECKPOINT_"
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False


# Global settings instance
settings = Settings()
