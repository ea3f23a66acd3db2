"""brokerai.core.config

Two config surfaces only, highest priority first:
1) Environment variables, `BROKERAI_` prefix, `__` between nested keys
2) `config/default.yaml`, optionally overlaid by `config/user.yaml`

Everything else is derived.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from brokerai.core.exceptions import ConfigError


def _deep_merge(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
    result: dict[str, Any] = dict(base)
    for k, v in overlay.items():
        if k in result and isinstance(result[k], dict) and isinstance(v, dict):
            result[k] = _deep_merge(result[k], v)
        else:
            result[k] = v
    return result


class BacktestSettings(BaseModel):
    initial_capital: float = 10000.0
    periods_per_year: int = 252

    @field_validator("initial_capital")
    @classmethod
    def initial_capital_must_be_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("initial_capital must be > 0")
        return v

    @field_validator("periods_per_year")
    @classmethod
    def must_be_at_least_one(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be >= 1")
        return v


class DataConfig(BaseModel):
    provider: Literal["csv", "alphavantage"] = "csv"
    csv_dir: Path = Path("data/bars")
    base_url: str = "https://www.alphavantage.co/query"
    api_key: str = ""
    interval: Literal["1m", "5m", "15m", "1h", "1d", "1w", "1M"] = "1d"
    cache_ttl_s: float = 300.0
    rate_limit_rps: float = 1.0
    max_retries: int = 3
    timeout_s: float = 20.0


class LoggingConfig(BaseModel):
    level: str = "INFO"
    json_output: bool = False


class ApiConfig(BaseModel):
    host: str = "127.0.0.1"
    port: int = 5050
    auth_token: str = ""


class Config(BaseSettings):
    """Root configuration. Single source of truth."""

    # Paths
    data_dir: Path = Path("data")
    config_dir: Path = Path("config")

    # Component configs
    backtest: BacktestSettings = Field(default_factory=BacktestSettings)
    data: DataConfig = Field(default_factory=DataConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    api: ApiConfig = Field(default_factory=ApiConfig)

    model_config = {"env_prefix": "BROKERAI_", "env_nested_delimiter": "__"}

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # YAML arrives as init kwargs; env must still win over it.
        return env_settings, init_settings, dotenv_settings, file_secret_settings

    @property
    def db_path(self) -> Path:
        return self.data_dir / "brokerai.db"

    @classmethod
    def from_yaml(cls, path: Path, *, overlay: Path | None = None) -> Config:
        if not path.exists():
            raise ConfigError(f"Config file not found: {path}")

        raw = yaml.safe_load(path.read_text()) or {}

        if overlay is not None and overlay.exists():
            overlay_data = yaml.safe_load(overlay.read_text()) or {}
            raw = _deep_merge(raw, overlay_data)

        return cls(**raw)

    @classmethod
    def from_repo_defaults(cls, repo_root: Path | None = None) -> Config:
        root = repo_root or Path.cwd()
        cfg_dir = root / "config"
        return cls.from_yaml(cfg_dir / "default.yaml", overlay=cfg_dir / "user.yaml")
