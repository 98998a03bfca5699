"""Configuration management utilities."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class MissingCredentialsError(RuntimeError):
    """Raised when Alpaca credentials are absent from the environment."""


class SelectionConfig(BaseModel):
    """Numeric policy applied to every contract selection."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    enabled: bool = True
    min_dte: int = Field(default=7, ge=1, le=365)
    max_dte: int = Field(default=45, ge=1, le=365)
    target_delta: float = Field(default=0.45, ge=0.1, le=0.9)
    min_delta: float = Field(default=0.30, ge=0.1, le=0.9)
    max_delta: float = Field(default=0.70, ge=0.1, le=0.9)
    max_pct_per_trade: float = Field(default=0.02, ge=0.0, le=0.25)

    @model_validator(mode="after")
    def _check_ranges(self) -> "SelectionConfig":
        if self.min_delta >= self.max_delta:
            raise ValueError("min_delta must be less than max_delta")
        if self.min_dte >= self.max_dte:
            raise ValueError("min_dte must be less than max_dte")
        return self


_DEFAULTS = SelectionConfig()


class OptionsSettings(BaseSettings):
    """Selection policy sourced from ``OPTIONS_*`` environment variables.

    Defaults come from :class:`SelectionConfig`; bounds are enforced when the
    settings are converted with :meth:`to_selection_config`.
    """

    model_config = SettingsConfigDict(env_prefix="OPTIONS_", env_file=".env", extra="ignore")

    enabled: bool = _DEFAULTS.enabled
    min_dte: int = _DEFAULTS.min_dte
    max_dte: int = _DEFAULTS.max_dte
    target_delta: float = _DEFAULTS.target_delta
    min_delta: float = _DEFAULTS.min_delta
    max_delta: float = _DEFAULTS.max_delta
    max_pct_per_trade: float = _DEFAULTS.max_pct_per_trade

    def to_selection_config(self) -> SelectionConfig:
        return SelectionConfig(**self.model_dump())


def get_selection_config() -> SelectionConfig:
    """Build the selection policy from the environment."""

    return OptionsSettings().to_selection_config()


def _read_config_payload(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    payload = yaml.safe_load(text) or {}
    if not isinstance(payload, dict):
        raise ValueError(f"{path} must contain a mapping")
    return payload


def load_selection_config(path: Path) -> SelectionConfig:
    """Load the selection policy from a YAML or JSON file at ``path``.

    Keys may sit at the top level or under an ``options`` section; an
    ``options_`` prefix on each key is also accepted.
    """

    payload = _read_config_payload(Path(path))
    section = payload.get("options", payload)
    if not isinstance(section, dict):
        raise ValueError("'options' section must be a mapping")
    normalized = {
        (key[len("options_"):] if key.startswith("options_") else key): value
        for key, value in section.items()
    }
    return SelectionConfig(**normalized)


def _env_pick(*names: str, default: str | None = None) -> str | None:
    """Return the first non-empty environment variable in *names*."""

    for name in names:
        value = os.getenv(name)
        if value:
            return value
    return default


def _bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "y", "on"}


@dataclass(frozen=True, slots=True)
class AlpacaSettings:
    key_id: Optional[str]
    secret_key: Optional[str]
    paper: bool
    data_feed: Optional[str]
    options_feed: Optional[str]

    @property
    def configured(self) -> bool:
        return bool(self.key_id and self.secret_key)

    def require_credentials(self) -> tuple[str, str]:
        if not self.key_id or not self.secret_key:
            raise MissingCredentialsError(
                "ALPACA_API_KEY_ID and ALPACA_API_SECRET_KEY must be set in the environment"
            )
        return self.key_id, self.secret_key


def get_alpaca_settings() -> AlpacaSettings:
    """Resolve Alpaca credentials and feeds from the environment."""

    load_dotenv(override=False)
    return AlpacaSettings(
        key_id=_env_pick("ALPACA_API_KEY_ID", "APCA_API_KEY_ID", "ALPACA_KEY_ID", "ALPACA_API_KEY"),
        secret_key=_env_pick(
            "ALPACA_API_SECRET_KEY",
            "APCA_API_SECRET_KEY",
            "ALPACA_SECRET_KEY",
            "ALPACA_API_SECRET",
        ),
        paper=_bool("ALPACA_PAPER", True),
        data_feed=_env_pick("ALPACA_DATA_FEED"),
        options_feed=_env_pick("ALPACA_OPTIONS_FEED"),
    )


def masked_tail(s: Optional[str]) -> Optional[str]:
    return s[-4:] if s else None
