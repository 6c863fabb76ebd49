"""Configuration models and loading."""

import json
import os
from collections.abc import Mapping
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from core.exceptions import ConfigurationError

CONFIG_DIR = Path.home() / ".config" / "browser-api-gateway"
CONFIG_FILE = CONFIG_DIR / "config.json"
ENV_FILE = Path.cwd() / ".env"

# Environment variable -> (section, field)
ENV_OVERRIDES: dict[str, tuple[str, str]] = {
    "PORT": ("proxy", "port"),
    "STATIC_ROOT": ("proxy", "static_root"),
    "UPSTREAM_TIMEOUT": ("limits", "upstream_timeout"),
    "FEISHU_APP_ID": ("token", "app_id"),
    "FEISHU_APP_SECRET": ("token", "app_secret"),
}


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class ProxySettings(_Frozen):
    host: str = "0.0.0.0"
    port: int = 3200
    static_root: str = "."
    debug: bool = False


class LimitsSettings(_Frozen):
    upstream_timeout: float = 60.0
    keep_alive_timeout: int = 5
    max_body_size: int = 50 * 1024 * 1024
    max_connections: int = 100
    max_keepalive_connections: int = 20


class TokenSettings(_Frozen):
    path: str = "/api/internal/tenant-token"
    url: str = "https://open.feishu.cn/open-apis/auth/v3/tenant_access_token/internal"
    app_id: str = ""
    app_secret: str = ""


class RouteSettings(_Frozen):
    prefix: str
    upstream_base: str
    inject_header: str | None = None
    inject_secret: str | None = None


def _default_routes() -> list[RouteSettings]:
    return [
        RouteSettings(
            prefix="/api/feishu/",
            upstream_base="https://open.feishu.cn/open-apis/",
        ),
        RouteSettings(
            prefix="/api/aihub-prod/",
            upstream_base="https://ai-hub.xiaopeng.com/api/v1/beta/google/gemini/",
            inject_header="API-KEY",
            inject_secret="gemini_api_key",
        ),
        RouteSettings(
            prefix="/api/aihub-pre/",
            upstream_base="https://ai-hub.deploy-test.xiaopeng.com/api/v1/beta/google/gemini/",
            inject_header="API-KEY",
            inject_secret="gemini_api_key",
        ),
        RouteSettings(
            prefix="/api/aihub-test/",
            upstream_base=(
                "http://apisix-gw-ali-hd1.test.xiaopeng.com"
                "/xp-ai-hub-boot/api/v1/beta/google/gemini/"
            ),
            inject_header="API-KEY",
            inject_secret="gemini_api_key",
        ),
    ]


class Config(_Frozen):
    proxy: ProxySettings = Field(default_factory=ProxySettings)
    limits: LimitsSettings = Field(default_factory=LimitsSettings)
    token: TokenSettings = Field(default_factory=TokenSettings)
    secrets: dict[str, str] = Field(default_factory=lambda: {"gemini_api_key": ""})
    routes: list[RouteSettings] = Field(default_factory=_default_routes)


def read_env_file(path: Path) -> dict[str, str]:
    """Parse a KEY=VALUE file, skipping blanks and # comments."""
    values: dict[str, str] = {}
    if not path.exists():
        return values
    for line in path.read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        key, sep, value = line.partition("=")
        key = key.strip()
        if not sep or not key:
            continue
        values[key] = value.strip()
    return values


def apply_env_overrides(config: Config, env: Mapping[str, str]) -> Config:
    """Return a new Config with non-empty environment values applied."""
    data = config.model_dump()
    for var, (section, field) in ENV_OVERRIDES.items():
        if env.get(var):
            data[section][field] = env[var]
    for name in data["secrets"]:
        value = env.get(name.upper())
        if value:
            data["secrets"][name] = value
    try:
        return Config.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid environment override: {e}") from e


def load_config(
    config_file: Path = CONFIG_FILE,
    env_file: Path = ENV_FILE,
    environ: Mapping[str, str] | None = None,
) -> Config:
    """Load configuration from JSON file, then layer .env and the process environment."""
    config = _load_config_file(config_file)

    # Process environment wins over .env, as long as it is non-empty
    env = read_env_file(env_file)
    process_env = os.environ if environ is None else environ
    env.update({k: v for k, v in process_env.items() if v})
    return apply_env_overrides(config, env)


def _load_config_file(config_file: Path) -> Config:
    """Load configuration from JSON file, creating default if needed."""
    if not config_file.exists():
        config_file.parent.mkdir(parents=True, exist_ok=True)
        default = Config()
        config_file.write_text(default.model_dump_json(indent=2))
        return default

    try:
        data = json.loads(config_file.read_text())
        return Config.model_validate(data)
    except (json.JSONDecodeError, ValidationError):
        # Backup corrupted config and recreate default
        backup = config_file.with_suffix(".json.bak")
        config_file.rename(backup)
        default = Config()
        config_file.write_text(default.model_dump_json(indent=2))
        return default
