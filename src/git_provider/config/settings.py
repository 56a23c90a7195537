"""
Configuration management for the git provider adapter.
"""
import os
from pathlib import Path
from typing import Dict, List, Optional, Any
from dataclasses import dataclass, field
import yaml
from dotenv import load_dotenv


@dataclass
class AppConfig:
    """Application-level configuration."""
    name: str = "Git Provider Adapter"
    version: str = "0.1.0"
    debug: bool = False
    log_level: str = "INFO"


@dataclass
class BitbucketConfig:
    """Bitbucket Cloud OAuth consumer and API configuration."""
    client_id: Optional[str] = None
    client_secret: Optional[str] = None
    api_base_url: str = "https://api.bitbucket.org/2.0"
    oauth_base_url: str = "https://bitbucket.org/site/oauth2"
    clone_host: str = "bitbucket.org"
    timeout: int = 30
    verify_ssl: bool = True
    refresh_lead_seconds: int = 300
    default_page_size: int = 30


@dataclass
class LoggingConfig:
    """Logging configuration."""
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    file: str = "logs/git_provider.log"
    max_size_mb: int = 10
    backup_count: int = 5


@dataclass
class Settings:
    """Main configuration class."""
    app: AppConfig = field(default_factory=AppConfig)
    bitbucket: BitbucketConfig = field(default_factory=BitbucketConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def load_from_file(cls, config_path: Optional[str] = None) -> "Settings":
        """Load settings from YAML file and environment variables."""
        load_dotenv()

        if config_path is None:
            config_path = os.getenv("CONFIG_FILE", "config/config.yaml")

        config_path = Path(config_path)

        config_data = {}
        if config_path.exists():
            with open(config_path, 'r', encoding='utf-8') as f:
                config_data = yaml.safe_load(f) or {}

        settings = cls()

        if config_data:
            settings._update_from_dict(config_data)

        # Environment wins over the file
        settings._update_from_env()

        return settings

    def _update_from_dict(self, data: Dict[str, Any]) -> None:
        """Update settings from dictionary."""
        if "app" in data:
            self._update_dataclass(self.app, data["app"])
        if "bitbucket" in data:
            self._update_dataclass(self.bitbucket, data["bitbucket"])
        if "logging" in data:
            self._update_dataclass(self.logging, data["logging"])

    def _update_from_env(self) -> None:
        """Update settings from environment variables"""
        if os.getenv("BITBUCKET_CLIENT_ID"):
            self.bitbucket.client_id = os.getenv("BITBUCKET_CLIENT_ID")

        if os.getenv("BITBUCKET_CLIENT_SECRET"):
            self.bitbucket.client_secret = os.getenv("BITBUCKET_CLIENT_SECRET")

        if os.getenv("DEBUG"):
            self.app.debug = os.getenv("DEBUG").lower() in ("true", "1", "yes")

        if os.getenv("LOG_LEVEL"):
            self.app.log_level = os.getenv("LOG_LEVEL")

    @staticmethod
    def _update_dataclass(instance: Any, data: Dict[str, Any]) -> None:
        """Update a dataclass instance with dictionary data."""
        for key, value in data.items():
            if hasattr(instance, key):
                setattr(instance, key, value)

    def validate(self) -> List[str]:
        """Validate configuration and return list of errors."""
        errors = []

        if not self.bitbucket.client_id:
            errors.append("Bitbucket client id is required (set BITBUCKET_CLIENT_ID environment variable)")

        if not self.bitbucket.client_secret:
            errors.append("Bitbucket client secret is required (set BITBUCKET_CLIENT_SECRET environment variable)")

        if self.bitbucket.refresh_lead_seconds < 0:
            errors.append("refresh_lead_seconds must not be negative")

        if not 1 <= self.bitbucket.default_page_size <= 100:
            errors.append("default_page_size must be between 1 and 100")

        return errors

    def to_dict(self) -> Dict[str, Any]:
        """Convert settings to dictionary for serialization."""
        return {
            "app": self.app.__dict__,
            "bitbucket": {
                k: v for k, v in self.bitbucket.__dict__.items() if k != "client_secret"
            },
            "logging": self.logging.__dict__,
        }


# Global settings instance
_settings: Optional[Settings] = None


def get_settings(config_path: Optional[str] = None, reload: bool = False) -> Settings:
    """Get the global settings instance."""
    global _settings

    if _settings is None or reload:
        _settings = Settings.load_from_file(config_path)

    return _settings


def reload_settings(config_path: Optional[str] = None) -> Settings:
    """Reload settings from file."""
    return get_settings(config_path, reload=True)
