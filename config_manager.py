"""
Configuration management for the Markdown Publisher.
Handles loading, validating, and providing access to application settings.
"""

import os
import json
from pathlib import Path
from typing import Dict, Any, Optional
from dataclasses import dataclass


@dataclass
class AppConfig:
    """Application configuration settings."""
    host: str
    port: int
    debug: bool
    trusted_ip_header: str


@dataclass
class LLMConfig:
    """LLM configuration settings used by content moderation."""
    provider: str
    api_key: str
    base_url: str
    model: str
    timeout: int


@dataclass
class QuotaSettings:
    """Per-IP quota settings."""
    daily_limit: int
    reset_window_hours: int
    view_cost: int


@dataclass
class PublishConfig:
    """Publishing pipeline settings."""
    max_content_bytes: int
    rate_limit: str
    rate_limit_storage_uri: str
    collaborator_timeout_seconds: float
    rate_limiter_fail_open: bool
    default_title: str


@dataclass
class ModerationConfig:
    """Content moderation settings."""
    enabled: bool
    max_input_char: int
    fail_open: bool


@dataclass
class PathsConfig:
    """Path configuration settings."""
    data_dir: str
    database_file: str
    log_file: str


def _env_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


class ConfigManager:
    """Manages application configuration loading and access."""

    def __init__(self, config_file: str = "publisher_config.json"):
        self.config_file = Path(config_file)
        self._config: Optional[Dict[str, Any]] = None
        self._load_config()

    def _load_config(self) -> None:
        """Load configuration from file and environment variables."""
        self._config = self._get_default_config()

        if self.config_file.exists():
            try:
                with open(self.config_file, 'r', encoding='utf-8') as f:
                    file_config = json.load(f)
                    self._merge_config(file_config)
            except (json.JSONDecodeError, FileNotFoundError):
                # Keep default config if file is invalid or not found
                pass

        self._override_with_env()

    def _get_default_config(self) -> Dict[str, Any]:
        """Get default configuration."""
        return {
            "app": {
                "host": "0.0.0.0",
                "port": 8787,
                "debug": False,
                "trusted_ip_header": "CF-Connecting-IP"
            },
            "llm": {
                "provider": "deepseek",
                "api_key": "",
                "base_url": "",
                "model": "deepseek-chat",
                "timeout": 30
            },
            "quota": {
                "daily_limit": 50,
                "reset_window_hours": 24,
                "view_cost": 1
            },
            "publish": {
                # Keep rows under 2MB with room for the other columns
                "max_content_bytes": int(1.8 * 1024 * 1024),
                "rate_limit": "10/minute",
                "rate_limit_storage_uri": "memory://",
                "collaborator_timeout_seconds": 10.0,
                "rate_limiter_fail_open": True,
                "default_title": "Untitled Document"
            },
            "moderation": {
                "enabled": True,
                "max_input_char": 20000,
                "fail_open": True
            },
            "paths": {
                "data_dir": "data",
                "database_file": "publisher.db",
                "log_file": ""
            }
        }

    def _merge_config(self, file_config: Dict[str, Any]) -> None:
        """Merge file configuration with current config."""
        for section, values in file_config.items():
            if section in self._config and isinstance(values, dict):
                self._config[section].update(values)
            else:
                self._config[section] = values

    def _override_with_env(self) -> None:
        """Override configuration with environment variables."""
        # App settings
        if os.getenv("APP_HOST"):
            self._config["app"]["host"] = os.getenv("APP_HOST")

        if os.getenv("APP_PORT"):
            self._config["app"]["port"] = int(os.getenv("APP_PORT"))

        if os.getenv("APP_DEBUG"):
            self._config["app"]["debug"] = _env_bool(os.getenv("APP_DEBUG"))

        if os.getenv("TRUSTED_IP_HEADER"):
            self._config["app"]["trusted_ip_header"] = os.getenv("TRUSTED_IP_HEADER")

        # LLM settings
        if os.getenv("LLM_PROVIDER"):
            self._config["llm"]["provider"] = os.getenv("LLM_PROVIDER")

        if os.getenv("DEEPSEEK_API_KEY"):
            self._config["llm"]["api_key"] = os.getenv("DEEPSEEK_API_KEY")

        if os.getenv("OPENAI_API_BASE"):
            self._config["llm"]["base_url"] = os.getenv("OPENAI_API_BASE")

        if os.getenv("LLM_MODEL"):
            self._config["llm"]["model"] = os.getenv("LLM_MODEL")

        # Quota settings
        if os.getenv("DAILY_LIMIT"):
            self._config["quota"]["daily_limit"] = int(os.getenv("DAILY_LIMIT"))

        if os.getenv("RESET_WINDOW_HOURS"):
            self._config["quota"]["reset_window_hours"] = int(os.getenv("RESET_WINDOW_HOURS"))

        # Publish settings
        if os.getenv("MAX_CONTENT_BYTES"):
            self._config["publish"]["max_content_bytes"] = int(os.getenv("MAX_CONTENT_BYTES"))

        if os.getenv("PUBLISH_RATE_LIMIT"):
            self._config["publish"]["rate_limit"] = os.getenv("PUBLISH_RATE_LIMIT")

        if os.getenv("RATELIMIT_STORAGE_URI"):
            self._config["publish"]["rate_limit_storage_uri"] = os.getenv("RATELIMIT_STORAGE_URI")

        # Moderation settings
        if os.getenv("MODERATION_ENABLED"):
            self._config["moderation"]["enabled"] = _env_bool(os.getenv("MODERATION_ENABLED"))

        if os.getenv("MODERATION_FAIL_OPEN"):
            self._config["moderation"]["fail_open"] = _env_bool(os.getenv("MODERATION_FAIL_OPEN"))

        # Paths
        if os.getenv("DATA_DIR"):
            self._config["paths"]["data_dir"] = os.getenv("DATA_DIR")

        if os.getenv("LOG_FILE"):
            self._config["paths"]["log_file"] = os.getenv("LOG_FILE")

    def get_app_config(self) -> AppConfig:
        """Get application configuration."""
        app_config = self._config["app"]
        return AppConfig(
            host=app_config["host"],
            port=app_config["port"],
            debug=app_config["debug"],
            trusted_ip_header=app_config["trusted_ip_header"]
        )

    def get_llm_config(self) -> LLMConfig:
        """Get LLM configuration."""
        llm_config = self._config["llm"]
        return LLMConfig(
            provider=llm_config["provider"],
            api_key=llm_config["api_key"],
            base_url=llm_config["base_url"],
            model=llm_config["model"],
            timeout=llm_config["timeout"]
        )

    def get_quota_settings(self) -> QuotaSettings:
        """Get quota configuration."""
        quota_config = self._config["quota"]
        return QuotaSettings(
            daily_limit=quota_config["daily_limit"],
            reset_window_hours=quota_config["reset_window_hours"],
            view_cost=quota_config["view_cost"]
        )

    def get_publish_config(self) -> PublishConfig:
        """Get publishing configuration."""
        publish_config = self._config["publish"]
        return PublishConfig(
            max_content_bytes=publish_config["max_content_bytes"],
            rate_limit=publish_config["rate_limit"],
            rate_limit_storage_uri=publish_config["rate_limit_storage_uri"],
            collaborator_timeout_seconds=float(publish_config["collaborator_timeout_seconds"]),
            rate_limiter_fail_open=publish_config["rate_limiter_fail_open"],
            default_title=publish_config["default_title"]
        )

    def get_moderation_config(self) -> ModerationConfig:
        """Get moderation configuration."""
        moderation_config = self._config["moderation"]
        return ModerationConfig(
            enabled=moderation_config["enabled"],
            max_input_char=moderation_config["max_input_char"],
            fail_open=moderation_config["fail_open"]
        )

    def get_paths_config(self) -> PathsConfig:
        """Get paths configuration."""
        paths_config = self._config["paths"]
        return PathsConfig(
            data_dir=paths_config["data_dir"],
            database_file=paths_config["database_file"],
            log_file=paths_config.get("log_file", "")
        )

    def get_config(self) -> Dict[str, Any]:
        """Get raw configuration dictionary."""
        return self._config.copy()

    def reload(self) -> None:
        """Reload configuration from file."""
        self._load_config()

    def save_config(self) -> None:
        """Save current configuration to file."""
        with open(self.config_file, 'w', encoding='utf-8') as f:
            json.dump(self._config, f, indent=2, ensure_ascii=False)

