"""Environment-driven settings for the harness.

Every setting has a default, so an empty environment yields a usable
configuration that looks up ``exiftool`` on ``PATH``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from constants import DEFAULT_ASSETS_DIR, DEFAULT_SCENARIO_TIMEOUT
from errors import ConfigurationError


class HarnessConfig(BaseSettings):
    """Resolved harness settings, read from ``XMPTAG_*`` variables."""

    exiftool_executable: Optional[str] = Field(
        default=None,
        validation_alias="XMPTAG_EXIFTOOL",
        description="ExifTool executable; None means `exiftool` on PATH.",
    )
    exiftool_config_file: Optional[Path] = Field(
        default=None,
        validation_alias="XMPTAG_CONFIG_FILE",
        description="ExifTool config declaring the custom namespace; None means the bundled one.",
    )
    assets_dir: Path = Field(default=Path(DEFAULT_ASSETS_DIR))
    scenario_timeout: float = Field(default=DEFAULT_SCENARIO_TIMEOUT, gt=0)
    keep_outputs: bool = Field(default=False)

    model_config = SettingsConfigDict(
        env_prefix="XMPTAG_",
        env_ignore_empty=True,
        extra="ignore",
        case_sensitive=False,
        populate_by_name=True,
        frozen=True,
    )

    @classmethod
    def from_env(cls) -> HarnessConfig:
        """
        Build a configuration from the process environment.

        Returns:
            The resolved configuration.

        Raises:
            ConfigurationError: If a value cannot be parsed.
        """
        try:
            return cls()
        except ValidationError as e:
            problems = "; ".join(
                f"{'.'.join(str(loc) for loc in err['loc'])}: {err['msg']}" for err in e.errors()
            )
            raise ConfigurationError(f"Invalid harness configuration: {problems}") from e
