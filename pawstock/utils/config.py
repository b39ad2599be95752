"""
Configuration management with schema validation.
Settings come from config/settings.yaml with ${VAR:default} environment substitution.
"""

import os
from datetime import timedelta
from pathlib import Path
from typing import Any, Literal, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError

from .exceptions import ConfigError
from .logger import get_logger

logger = get_logger(__name__)

# Load environment variables
load_dotenv()

CONFIG_DIR = Path("config")
SETTINGS_FILE = CONFIG_DIR / "settings.yaml"

DEFAULT_API_URL = "https://petstore-backend-jrt5.onrender.com"


class AppSettings(BaseModel):
    name: str = "PawStock"
    version: str = "1.0.0"
    environment: str = "production"


class ApiSettings(BaseModel):
    base_url: str = DEFAULT_API_URL
    connection_timeout: int = Field(default=10, gt=0)
    read_timeout: int = Field(default=30, gt=0)


class SessionSettings(BaseModel):
    duration_minutes: int = Field(default=15, gt=0)
    check_interval_seconds: int = Field(default=300, gt=0)
    storage_path: str = "data/client_state.json"

    @property
    def duration(self) -> timedelta:
        return timedelta(minutes=self.duration_minutes)


class NotificationSettings(BaseModel):
    poll_interval_seconds: int = Field(default=30, gt=0)
    strategy: Literal["local", "remote"] = "local"


class MessageSettings(BaseModel):
    """How long transient banners stay visible"""
    success_dismiss_seconds: float = Field(default=3.0, gt=0)
    error_dismiss_seconds: float = Field(default=5.0, gt=0)


class LoggingSettings(BaseModel):
    level: str = "INFO"
    format: str = "json"
    file_path: Optional[str] = "logs/pawstock.log"
    max_bytes: int = 10485760
    backup_count: int = 5


class Settings(BaseModel):
    app: AppSettings = Field(default_factory=AppSettings)
    api: ApiSettings = Field(default_factory=ApiSettings)
    session: SessionSettings = Field(default_factory=SessionSettings)
    notifications: NotificationSettings = Field(default_factory=NotificationSettings)
    messages: MessageSettings = Field(default_factory=MessageSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


class ConfigManager:
    """Loads and validates settings.yaml"""

    def __init__(self, settings_path: Optional[Path] = None):
        self.settings_path = Path(settings_path) if settings_path else SETTINGS_FILE
        self._settings: Optional[Settings] = None

    @property
    def settings(self) -> Settings:
        if self._settings is None:
            return self.load_settings()
        return self._settings

    def _substitute_env_vars(self, value: Any) -> Any:
        """Recursively substitute environment variables"""
        if isinstance(value, str):
            if value.startswith("${") and value.endswith("}"):
                var_expr = value[2:-1]
                if ":" in var_expr:
                    var_name, default = var_expr.split(":", 1)
                    return os.getenv(var_name.strip(), default.strip())
                else:
                    env_value = os.getenv(var_expr)
                    if env_value is None:
                        raise ConfigError(f"Environment variable {var_expr} not found")
                    return env_value
        elif isinstance(value, dict):
            return {k: self._substitute_env_vars(v) for k, v in value.items()}
        elif isinstance(value, list):
            return [self._substitute_env_vars(item) for item in value]
        return value

    def load_settings(self) -> Settings:
        """Load and validate settings.yaml"""
        if not self.settings_path.exists():
            raise ConfigError(f"Settings file not found: {self.settings_path}")

        try:
            with open(self.settings_path, "r", encoding="utf-8") as f:
                raw_data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {self.settings_path}: {e}")

        processed_data = self._substitute_env_vars(raw_data)
        try:
            self._settings = Settings(**processed_data)
        except ValidationError as e:
            raise ConfigError(f"Invalid settings in {self.settings_path}: {e}")

        logger.debug("Settings loaded", path=str(self.settings_path))
        return self._settings
