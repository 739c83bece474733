"""Global config loading from ~/.kis/."""

import os
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from kisquote.auth import Auth
from kisquote.errors import ConfigError
from kisquote.types import Account, Environment

KIS_DIR = Path.home() / ".kis"
CONFIG_FILE = "config.yaml"

ENV_OVERRIDES = {
    "KIS_APPKEY": "appkey",
    "KIS_APPSECRET": "appsecret",
    "KIS_ACCESS_TOKEN": "access_token",
    "KIS_ENVIRONMENT": "environment",
}


class KisConfig(BaseModel):
    environment: Environment = Environment.VIRTUAL
    appkey: str = ""
    appsecret: str = ""
    access_token: str | None = None
    cano: str = Field(default="00000000", pattern=r"^\d{8}$")
    acnt_prdt_cd: str = Field(default="01", pattern=r"^\d{2}$")
    timeout_seconds: float = Field(default=10.0, gt=0)
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "WARNING"
    log_json: bool = False

    @field_validator("environment", mode="before")
    @classmethod
    def lower_environment(cls, value: object) -> object:
        return value.lower() if isinstance(value, str) else value

    @field_validator("log_level", mode="before")
    @classmethod
    def upper_log_level(cls, value: object) -> object:
        return value.upper() if isinstance(value, str) else value


def ensure_dirs() -> None:
    """Create ~/.kis/ if it doesn't exist."""
    KIS_DIR.mkdir(parents=True, exist_ok=True)


def config_path() -> Path:
    return KIS_DIR / CONFIG_FILE


def load_config(path: Path | None = None) -> KisConfig:
    """Load config from ~/.kis/config.yaml, then apply KIS_* environment variables."""
    path = path or config_path()
    data: dict = {}
    if path.exists():
        with open(path) as f:
            try:
                data = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigError(f"Cannot parse {path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"Expected a mapping in {path}")

    for var, field in ENV_OVERRIDES.items():
        value = os.environ.get(var)
        if value:
            data[field] = value

    try:
        return KisConfig(**data)
    except ValidationError as e:
        raise ConfigError(f"Invalid config in {path}: {e}") from e


def save_config(config: KisConfig, path: Path | None = None) -> Path:
    """Write config as YAML, readable by the owner only since it holds secrets."""
    path = path or config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    data = config.model_dump(mode="json", exclude_none=True)
    path.write_text(yaml.dump(data, sort_keys=False, default_flow_style=False))
    os.chmod(path, 0o600)
    return path


def build_auth(config: KisConfig) -> Auth:
    return Auth(config.appkey, config.appsecret, token=config.access_token)


def build_account(config: KisConfig) -> Account:
    return Account(cano=config.cano, acnt_prdt_cd=config.acnt_prdt_cd)
