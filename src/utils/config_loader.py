"""
Configuration loader for the M-Pesa client
"""

import os
import httpx
import yaml
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional
from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator
import logging

logger = logging.getLogger(__name__)


class Environment(str, Enum):
    SANDBOX = "sandbox"
    LIVE = "live"


ENVIRONMENT_HOSTS: Dict[Environment, str] = {
    Environment.SANDBOX: "api.sandbox.vm.co.mz:18352",
    Environment.LIVE: "api.vm.co.mz:18352",
}

_ENV_VARS = {
    "api_key": "MPESA_API_KEY",
    "public_key": "MPESA_PUBLIC_KEY",
    "service_provider_code": "MPESA_SERVICE_PROVIDER_CODE",
    "origin": "MPESA_ORIGIN",
    "api_host": "MPESA_API_HOST",
    "env": "MPESA_ENV",
    "timeout": "MPESA_TIMEOUT",
}


class MpesaConfig(BaseModel):
    """Credentials and endpoint settings for one M-Pesa client"""

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    api_key: str = Field(min_length=1, repr=False)
    public_key: str = Field(min_length=1, repr=False)
    service_provider_code: str = Field(min_length=1)
    origin: str = Field(min_length=1)
    api_host: Optional[str] = None
    timeout: float = Field(default=30.0, gt=0, description="Per-request timeout in seconds")
    env: Optional[Environment] = None

    @model_validator(mode="before")
    @classmethod
    def _resolve_host(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        raw_env = data.get("env")
        if isinstance(raw_env, Environment):
            env = raw_env
        else:
            try:
                env = Environment(str(raw_env or "").strip().lower())
            except ValueError:
                return data
        data = {**data, "env": env}
        host = data.get("api_host")
        if not (isinstance(host, str) and host.strip()):
            data["api_host"] = ENVIRONMENT_HOSTS[env]
        return data

    @model_validator(mode="after")
    def _require_host(self) -> "MpesaConfig":
        if not self.api_host:
            raise ValueError("api_host could not be resolved: set api_host or env ('sandbox' | 'live')")
        try:
            url = httpx.URL(f"https://{self.api_host}")
        except httpx.InvalidURL as exc:
            raise ValueError(f"api_host is not a valid host[:port]: {self.api_host!r} ({exc})") from exc
        if not url.host:
            raise ValueError(f"api_host is not a valid host[:port]: {self.api_host!r}")
        return self

    @property
    def base_url(self) -> str:
        return f"https://{self.api_host}"

    @classmethod
    def from_env(cls, env_file: Optional[Path] = None) -> "MpesaConfig":
        """Build a config from MPESA_* environment variables (and a .env file, if any)."""
        load_dotenv(env_file)
        values = {field: os.getenv(var) for field, var in _ENV_VARS.items()}
        return cls(**{k: v for k, v in values.items() if v not in (None, "")})


def load_mpesa_config(config_path: Optional[Path] = None) -> MpesaConfig:
    """
    Load and validate M-Pesa configuration from a YAML file

    The file may hold the settings at top level or under an ``mpesa:`` key.

    Args:
        config_path: Path to config file. Defaults to config/mpesa.yml

    Returns:
        Validated MpesaConfig object

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValidationError: If config doesn't match schema
    """
    if config_path is None:
        config_path = Path(__file__).parent.parent.parent / "config" / "mpesa.yml"

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        config_data = yaml.safe_load(f) or {}

    if isinstance(config_data.get("mpesa"), dict):
        config_data = config_data["mpesa"]

    try:
        config = MpesaConfig(**config_data)
        logger.info(f"Successfully loaded M-Pesa config from {config_path}")
        return config
    except ValidationError as e:
        logger.error(f"M-Pesa config validation failed: {e}")
        raise
