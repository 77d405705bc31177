import json
import os
from pathlib import Path
from typing import Optional, Tuple

from dotenv import dotenv_values
from pydantic import BaseModel, Field, ValidationError, field_validator

DEFAULT_BIND_ADDRESS = "127.0.0.1:3006"

# 环境变量 -> 配置字段
ENV_FIELDS = {
    "HOMESERVER_URL": "homeserver_url",
    "BOT_USERNAME": "bot_username",
    "BOT_PASSWORD": "bot_password",
    "BIND_ADDRESS": "bind_address",
}

REQUIRED_FIELDS = ("homeserver_url", "bot_username", "bot_password")


class ConfigError(ValueError):
    """Configuration is missing or invalid"""


def parse_bind_address(address: str) -> Tuple[str, int]:
    """Split ``host:port`` into its parts"""
    host, sep, port = address.rpartition(":")
    if not sep or not host:
        raise ValueError(f"Invalid bind address '{address}', expected host:port")
    try:
        port_number = int(port)
    except ValueError:
        raise ValueError(f"Invalid port in bind address '{address}'")
    if not 0 < port_number < 65536:
        raise ValueError(f"Port out of range in bind address '{address}'")
    return host.strip("[]"), port_number


class AppConfig(BaseModel):
    """Application configuration"""

    homeserver_url: str = Field(description="Matrix homeserver base URL, e.g. https://matrix.org")
    bot_username: str = Field(description="Bot account user name")
    bot_password: str = Field(description="Bot account password")

    bind_address: str = Field(
        default=DEFAULT_BIND_ADDRESS,
        description="Feed server address as host:port"
    )
    display_name: str = Field(default="RSS bot", description="Bot display name")
    device_name: str = Field(default="rss bot", description="Device name used at login")
    trigger_prefix: str = Field(default="!rss", description="Command prefix")

    max_feed_items: int = Field(default=50, ge=1, description="Items kept per feed")
    fetch_timeout: float = Field(default=10.0, gt=0, description="Title fetch timeout in seconds")
    max_fetch_bytes: int = Field(default=1024 * 1024, ge=1, description="Max bytes read per page")
    sync_timeout_ms: int = Field(default=30000, ge=0, description="Matrix long-poll timeout (ms)")

    @field_validator("bind_address")
    @classmethod
    def check_bind_address(cls, value: str) -> str:
        parse_bind_address(value)
        return value

    @field_validator("homeserver_url")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @property
    def host(self) -> str:
        return parse_bind_address(self.bind_address)[0]

    @property
    def port(self) -> int:
        return parse_bind_address(self.bind_address)[1]


class ConfigManager:
    """Loads configuration from config.json, .env and the environment"""

    CONFIG_FILE = "config.json"
    ENV_FILE = ".env"

    def __init__(self, config_dir: Optional[Path] = None):
        # Default to current working directory
        self.config_dir = Path(config_dir) if config_dir else Path.cwd()
        self.config_path = self.config_dir / self.CONFIG_FILE
        self.env_path = self.config_dir / self.ENV_FILE

    def ensure_config_dir(self) -> None:
        """Ensure config directory exists"""
        self.config_dir.mkdir(parents=True, exist_ok=True)

    def load_raw(self) -> dict:
        """Merge config.json, .env and process environment (later wins)"""
        data: dict = {}
        if self.config_path.exists():
            with open(self.config_path, "r", encoding="utf-8") as f:
                data.update(json.load(f))

        env: dict = {}
        if self.env_path.exists():
            env.update({k: v for k, v in dotenv_values(self.env_path).items() if v is not None})
        env.update(os.environ)

        for env_key, field_name in ENV_FIELDS.items():
            if env.get(env_key):
                data[field_name] = env[env_key]
        return data

    def load(self, **overrides) -> AppConfig:
        """Load and validate configuration

        Raises:
            ConfigError: required settings missing or a value is invalid
        """
        data = self.load_raw()
        data.update({k: v for k, v in overrides.items() if v is not None})

        for field_name in REQUIRED_FIELDS:
            if not data.get(field_name):
                env_key = next(k for k, v in ENV_FIELDS.items() if v == field_name)
                raise ConfigError(f"Please set the {env_key}")

        try:
            return AppConfig.model_validate(data)
        except ValidationError as e:
            raise ConfigError(str(e)) from e

    def save(self, config: AppConfig) -> None:
        """Save configuration to file"""
        self.ensure_config_dir()
        with open(self.config_path, "w", encoding="utf-8") as f:
            json.dump(config.model_dump(), f, indent=2, ensure_ascii=False)

    def exists(self) -> bool:
        """Check if configuration file exists"""
        return self.config_path.exists()
