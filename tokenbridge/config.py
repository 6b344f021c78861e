"""
tokenbridge/config.py
Process configuration: defaults → tokenbridge_config.json → environment.

The loaded BridgeConfig is passed explicitly into the issuer, client
factories and app builder. Nothing reads os.environ at signing time.

Secrets (ACCESS_KEY, SECRET_KEY) are only ever taken from the environment
or the JSON file; save_config() never writes them back.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "tokenbridge_config.json"

# Demo-only fallback. Active solely when demo_mode is on; warned on every use.
DEMO_SECRET_KEY = "sk-9Wc0wdYTNdEYXX1nFLcx0zPDU3wVNrSDroByjrgAbU4"

DEFAULT_CONFIG: Dict[str, Any] = {
    "app_code":     "",
    "api_base_url": "https://api.lovrabet.com",
    "env":          "online",
    "models": {
        "UsersInfo": "",
        "UserPlan":  "",
        "Orders":    "",
        "Suppliers": "",
    },
    "demo_mode":    False,
    "timeout_sec":  30,
}

SECRET_FIELDS = ("access_key", "secret_key")

# Aliases the HTTP routes address by name. Never sent upstream as a raw code.
MODEL_ALIASES = tuple(DEFAULT_CONFIG["models"])

_TRUTHY = frozenset({"1", "true", "yes", "on"})


@dataclass
class BridgeConfig:
    app_code:     str = ""
    access_key:   str = field(default="", repr=False)
    secret_key:   str = field(default="", repr=False)
    api_base_url: str = DEFAULT_CONFIG["api_base_url"]
    env:          str = DEFAULT_CONFIG["env"]
    models:       Dict[str, str] = field(default_factory=dict)   # alias → dataset code, ordered
    demo_mode:    bool = False
    timeout_sec:  int = 30


def _config_path(project_root: Optional[Path] = None) -> Path:
    root = project_root or Path.cwd()
    return root / CONFIG_FILENAME


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in _TRUTHY


def load_config(
    project_root: Optional[Path] = None,
    environ:      Optional[Mapping[str, str]] = None,
) -> BridgeConfig:
    """
    Load config. Returns defaults if the JSON file is missing or broken.
    Environment variables override file values.
    """
    env = os.environ if environ is None else environ
    data: Dict[str, Any] = json.loads(json.dumps(DEFAULT_CONFIG))

    path = _config_path(project_root)
    if path.exists():
        try:
            loaded = json.loads(path.read_text(encoding="utf-8"))
            if isinstance(loaded, dict):
                models = loaded.pop("models", None)
                data.update(loaded)
                if isinstance(models, dict):
                    data["models"] = {str(k): str(v or "") for k, v in models.items()}
            else:
                logger.warning(f"Config load failed: {path} is not a JSON object")
        except (json.JSONDecodeError, OSError) as e:
            logger.warning(f"Config load failed: {e}")

    overrides = {
        "ACCESS_KEY":            "access_key",
        "LOVRABET_APP_CODE":     "app_code",
        "SECRET_KEY":            "secret_key",
        "OPENAPI_BASE_URL":      "api_base_url",
        "API_ENV":               "env",
        "TOKENBRIDGE_DEMO_MODE": "demo_mode",
        "OPENAPI_TIMEOUT_SEC":   "timeout_sec",
    }
    for var, key in overrides.items():
        if env.get(var):
            data[key] = env[var]

    # OPENAPI_MODELS='{"Orders": "ds-...", ...}'
    if env.get("OPENAPI_MODELS"):
        try:
            models = json.loads(env["OPENAPI_MODELS"])
            if isinstance(models, dict):
                data["models"] = {str(k): str(v or "") for k, v in models.items()}
            else:
                logger.warning("OPENAPI_MODELS ignored: not a JSON object")
        except json.JSONDecodeError as e:
            logger.warning(f"OPENAPI_MODELS ignored: {e}")

    try:
        timeout = int(data.get("timeout_sec") or 30)
    except (TypeError, ValueError):
        logger.warning(f"Invalid timeout_sec {data.get('timeout_sec')!r}, using 30")
        timeout = 30

    return BridgeConfig(
        app_code     = str(data.get("app_code") or ""),
        access_key   = str(data.get("access_key") or ""),
        secret_key   = str(data.get("secret_key") or ""),
        api_base_url = str(data.get("api_base_url") or DEFAULT_CONFIG["api_base_url"]),
        env          = str(data.get("env") or DEFAULT_CONFIG["env"]),
        models       = dict(data.get("models") or {}),
        demo_mode    = _as_bool(data.get("demo_mode", False)),
        timeout_sec  = timeout,
    )


def save_config(config: BridgeConfig, project_root: Optional[Path] = None) -> Path:
    """Persist non-secret fields to tokenbridge_config.json."""
    path = _config_path(project_root)
    data = {k: v for k, v in asdict(config).items() if k not in SECRET_FIELDS}
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")
    return path


def resolve_secret_key(config: BridgeConfig) -> Optional[str]:
    """
    Configured secret, else the demo fallback when demo_mode is on, else None.
    The fallback is announced at WARNING on every use.
    """
    if config.secret_key:
        return config.secret_key
    if config.demo_mode:
        logger.warning(
            "DEMO MODE: SECRET_KEY not set, signing with the built-in demo secret. "
            "Never run like this in production."
        )
        return DEMO_SECRET_KEY
    return None


def config_smells(config: BridgeConfig) -> List[str]:
    """Non-fatal deployment warnings. Messages never include key values."""
    smells = []
    if config.access_key and config.secret_key and config.access_key == config.secret_key:
        smells.append("ACCESS_KEY and SECRET_KEY are the same value")
    if config.demo_mode:
        smells.append("demo mode is enabled")
    if not config.app_code:
        smells.append("LOVRABET_APP_CODE is not set")
    return smells


def log_config_summary(config: BridgeConfig) -> None:
    logger.info(
        f"Config | app_code={config.app_code or '-'} | env={config.env} | "
        f"base_url={config.api_base_url} | access_key_set={bool(config.access_key)} | "
        f"secret_key_set={bool(config.secret_key)} | demo_mode={config.demo_mode}"
    )
    for smell in config_smells(config):
        logger.warning(f"Config smell: {smell}")
