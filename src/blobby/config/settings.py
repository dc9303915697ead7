"""Application settings."""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings


def _data_home() -> Path:
    return Path.home() / ".local" / "share" / "blobby"


class Settings(BaseSettings):
    """Client application settings."""

    config_dir: Path = Field(
        default_factory=lambda: Path.home() / ".config" / "blobby",
        description="Directory containing blobby.yml",
    )

    api_url: str | None = Field(
        default=None,
        description="Root URL of the task store; unset runs on the local file",
    )

    api_token: str | None = Field(
        default=None,
        description="Bearer token identifying the user to the task store",
    )

    api_timeout: float | None = Field(
        default=30.0,
        description="HTTP timeout in seconds (unset waits forever)",
    )

    username: str | None = Field(default=None, description="Username sent when signing in")

    email: str | None = Field(default=None, description="Email sent when signing in")

    local_store: Path = Field(
        default_factory=lambda: _data_home() / "boards.yml",
        description="YAML file holding boards while signed out",
    )

    board: str | None = Field(
        default=None,
        description="Board to open on start (defaults to blobby.yml default_board)",
    )

    verbose: int = Field(
        default=0,
        description="Verbosity level (0=off, 1=INFO, 2+=DEBUG)",
    )

    log_file: Path | None = Field(
        default=None,
        description="Optional path to write logs to file",
    )

    model_config = {
        "env_prefix": "BLOBBY_",
    }

    @property
    def is_signed_in(self) -> bool:
        """Whether enough is configured to talk to the task store."""
        return bool(self.api_url and self.api_token)


class ServerSettings(BaseSettings):
    """Task store server settings."""

    database_path: Path | None = Field(
        default=None,
        description="sqlite database file; unset answers every request with empty data",
    )

    server_tokens: dict[str, str] = Field(
        default_factory=dict,
        description="Bearer token -> user id (JSON object in BLOBBY_SERVER_TOKENS)",
    )

    host: str = Field(default="127.0.0.1")

    port: int = Field(default=8000)

    verbose: int = Field(default=1)

    log_file: Path | None = Field(default=None)

    model_config = {
        "env_prefix": "BLOBBY_",
    }
