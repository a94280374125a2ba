from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml

from .constants import DEFAULT_REQUEST_TIMEOUT_SECONDS, DISCORD_API_BASE_URL
from .errors import ConfigError

DEFAULT_PUBLIC_KEY_ENV = "DISCORD_PUBLIC_KEY"
DEFAULT_BOT_TOKEN_ENV = "DISCORD_TOKEN"
DEFAULT_APPLICATION_ID_ENV = "DISCORD_APPLICATION_ID"
# Set to "true" by hosts that can keep work alive after the response is sent.
BACKGROUND_ENV = "CORDHOOK_BACKGROUND"
DEFAULT_INTERACTIONS_PATH = "/"


class ExecutionMode(str, Enum):
    SYNC = "sync"
    BACKGROUND = "background"


@dataclass(frozen=True)
class CordhookConfig:
    public_key_env: str
    bot_token_env: str
    application_id_env: str
    public_key: Optional[str]
    bot_token: Optional[str]
    application_id: Optional[str]
    execution_mode: ExecutionMode
    request_timeout_seconds: float
    api_base_url: str
    interactions_path: str
    max_timestamp_age_seconds: Optional[int]
    debug_rest: bool

    @classmethod
    def from_raw(
        cls,
        raw: Optional[Mapping[str, Any]],
        *,
        env: Optional[Mapping[str, str]] = None,
    ) -> "CordhookConfig":
        cfg: Mapping[str, Any] = raw if isinstance(raw, Mapping) else {}
        environ = os.environ if env is None else env

        public_key_env = _parse_env_name(cfg, "public_key_env", DEFAULT_PUBLIC_KEY_ENV)
        bot_token_env = _parse_env_name(cfg, "bot_token_env", DEFAULT_BOT_TOKEN_ENV)
        application_id_env = _parse_env_name(
            cfg, "application_id_env", DEFAULT_APPLICATION_ID_ENV
        )

        mode_raw = str(cfg.get("execution_mode", ExecutionMode.SYNC.value)).strip().lower()
        try:
            execution_mode = ExecutionMode(mode_raw)
        except ValueError:
            raise ConfigError(
                "cordhook.execution_mode must be 'sync' or 'background'"
            ) from None
        if str(environ.get(BACKGROUND_ENV, "")).strip().lower() == "true":
            execution_mode = ExecutionMode.BACKGROUND

        timeout_value = cfg.get("request_timeout_seconds", DEFAULT_REQUEST_TIMEOUT_SECONDS)
        if isinstance(timeout_value, bool) or not isinstance(timeout_value, (int, float)):
            raise ConfigError("cordhook.request_timeout_seconds must be a number")
        if timeout_value <= 0:
            raise ConfigError("cordhook.request_timeout_seconds must be > 0")

        api_base_url = str(cfg.get("api_base_url", DISCORD_API_BASE_URL)).strip().rstrip("/")
        if not api_base_url.startswith(("http://", "https://")):
            raise ConfigError("cordhook.api_base_url must be an http(s) URL")

        interactions_path = str(
            cfg.get("interactions_path", DEFAULT_INTERACTIONS_PATH)
        ).strip()
        if not interactions_path.startswith("/"):
            raise ConfigError("cordhook.interactions_path must start with '/'")

        max_age = cfg.get("max_timestamp_age_seconds")
        if max_age is not None:
            if isinstance(max_age, bool) or not isinstance(max_age, int):
                raise ConfigError("cordhook.max_timestamp_age_seconds must be an integer")
            if max_age <= 0:
                raise ConfigError("cordhook.max_timestamp_age_seconds must be > 0")

        debug_rest = cfg.get("debug_rest", False)
        if not isinstance(debug_rest, bool):
            raise ConfigError("cordhook.debug_rest must be a boolean")

        return cls(
            public_key_env=public_key_env,
            bot_token_env=bot_token_env,
            application_id_env=application_id_env,
            public_key=_env_value(environ, public_key_env),
            bot_token=_env_value(environ, bot_token_env),
            application_id=_env_value(environ, application_id_env),
            execution_mode=execution_mode,
            request_timeout_seconds=float(timeout_value),
            api_base_url=api_base_url,
            interactions_path=interactions_path,
            max_timestamp_age_seconds=max_age,
            debug_rest=debug_rest,
        )

    def require_public_key(self) -> str:
        if not self.public_key:
            raise ConfigError(f"env var {self.public_key_env} is unset")
        return self.public_key

    def require_bot_token(self) -> str:
        if not self.bot_token:
            raise ConfigError(f"env var {self.bot_token_env} is unset")
        return self.bot_token

    def require_application_id(self) -> str:
        if not self.application_id:
            raise ConfigError(f"env var {self.application_id_env} is unset")
        return self.application_id


def load_config(
    path: Optional[Path] = None, *, env: Optional[Mapping[str, str]] = None
) -> CordhookConfig:
    """Load config from a YAML file; a missing path yields the defaults."""
    if path is None:
        return CordhookConfig.from_raw({}, env=env)
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ConfigError(f"Unable to read config file {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")
    section = raw.get("cordhook", raw)
    if not isinstance(section, dict):
        raise ConfigError(f"'cordhook' section of {path} must be a mapping")
    return CordhookConfig.from_raw(section, env=env)


def _parse_env_name(cfg: Mapping[str, Any], key: str, default: str) -> str:
    value = str(cfg.get(key, default)).strip()
    if not value:
        raise ConfigError(f"cordhook.{key} must be non-empty")
    return value


def _env_value(environ: Mapping[str, str], name: str) -> Optional[str]:
    value = environ.get(name)
    if value is None:
        return None
    token = value.strip()
    return token or None
