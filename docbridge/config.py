"""
Configuration management using Pydantic Settings.

Loads configuration from:
1. ~/.config/docbridge/config.yaml (user config)
2. ./docbridge.yaml (project-local config)
3. Environment variables (override)
"""

from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class EngineSettings(BaseModel):
    """Extraction engine (Tika app jar) configuration."""

    java_path: str = Field(default="java", description="Java executable name or path")
    jar_path: Path = Field(
        default_factory=lambda: Path.home() / ".local/share/docbridge/tika-app.jar",
        description="Path to the tika-app jar"
    )
    java_options: List[str] = Field(
        default_factory=lambda: ["-Djava.awt.headless=true"],
        description="Extra JVM options placed before -jar"
    )
    timeout: float = Field(default=120.0, gt=0, description="Timeout in seconds for a single engine run")


class FetchSettings(BaseModel):
    """Remote URI retrieval configuration."""

    timeout: float = Field(default=30.0, gt=0, description="Timeout in seconds for HTTP requests")
    max_bytes: int = Field(default=100 * 1024 * 1024, gt=0, description="Maximum document size to download")
    user_agent: str = Field(default="docbridge/0.1", description="User-Agent header sent with requests")


class ServerSettings(BaseModel):
    """Long-running Tika socket server configuration."""

    host: str = Field(default="127.0.0.1", description="Interface the server listens on")
    port: int = Field(default=9293, ge=1, le=65535, description="TCP port for the server")
    startup_timeout: float = Field(default=30.0, gt=0, description="Seconds to wait for the server to accept connections")


class DocbridgeSettings(BaseSettings):
    """Main docbridge configuration."""

    model_config = SettingsConfigDict(
        env_prefix="DOCBRIDGE_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    # Subsystem settings
    engine: EngineSettings = Field(default_factory=EngineSettings)
    fetch: FetchSettings = Field(default_factory=FetchSettings)
    server: ServerSettings = Field(default_factory=ServerSettings)

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_file: Optional[Path] = Field(default=None, description="Optional log file path")

    @classmethod
    def load_from_yaml(cls, yaml_path: Path) -> "DocbridgeSettings":
        """Load configuration from YAML file."""
        if not yaml_path.exists():
            raise FileNotFoundError(f"Config file not found: {yaml_path}")

        with open(yaml_path) as f:
            config_dict = yaml.safe_load(f) or {}

        return cls(**config_dict)

    @classmethod
    def load(cls) -> "DocbridgeSettings":
        """
        Load configuration with precedence:
        1. Project-local ./docbridge.yaml
        2. User config ~/.config/docbridge/config.yaml
        3. Environment variables
        4. Defaults
        """
        config = cls()

        user_config = Path.home() / ".config/docbridge/config.yaml"
        if user_config.exists():
            config = cls.load_from_yaml(user_config)

        local_config = Path.cwd() / "docbridge.yaml"
        if local_config.exists():
            with open(local_config) as f:
                local_dict = yaml.safe_load(f) or {}
            config = cls(**{**config.model_dump(), **local_dict})

        return config

    def save_to_yaml(self, yaml_path: Path) -> None:
        """Save current configuration to YAML file."""
        yaml_path.parent.mkdir(parents=True, exist_ok=True)
        with open(yaml_path, "w") as f:
            yaml.dump(
                self.model_dump(mode="json", exclude_none=True),
                f,
                default_flow_style=False,
                sort_keys=False,
            )


def get_config() -> DocbridgeSettings:
    """Convenience function to get current configuration."""
    return DocbridgeSettings.load()
