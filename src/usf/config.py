"""USF configuration loaded from environment variables."""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings


class USFSettings(BaseSettings):
    """USF configuration loaded from environment variables.

    Every setting can be overridden with a ``USF_``-prefixed variable, e.g.
    ``USF_DEFAULT_MODE=lenient``. For local development, create a .env file
    in the project root.
    """

    # Validation
    default_mode: Literal["strict", "lenient"] = Field(
        default="strict",
        description="Validation and builder mode used when none is given",
    )
    detect_conflicts: bool = Field(
        default=False,
        description="Reject two subjects sharing the same day, week type and period",
    )

    # JSON Schema export
    schema_id: str = Field(
        default="https://json.schemastore.org/usf.json",
        description="$id of the exported JSON Schema",
    )
    schema_title: str = Field(
        default="Universal Schedule Format (USF)",
        description="title of the exported JSON Schema",
    )
    schema_draft: str = Field(
        default="https://json-schema.org/draft/2020-12/schema",
        description="$schema draft URL of the exported JSON Schema",
    )

    # Logging
    log_json: bool = Field(
        default=False,
        description="Output logs in JSON format (for production)",
    )
    log_level: str = Field(
        default="WARNING",
        description="Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )

    model_config = {
        "env_prefix": "USF_",
        "case_sensitive": False,
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


# Singleton pattern
_config: USFSettings | None = None


def get_config() -> USFSettings:
    """Get the USF configuration singleton.

    Returns:
        USFSettings: Configuration instance
    """
    global _config
    if _config is None:
        _config = USFSettings()
    return _config


def reset_config() -> None:
    """Drop the cached configuration so the next get_config() re-reads the environment."""
    global _config
    _config = None
