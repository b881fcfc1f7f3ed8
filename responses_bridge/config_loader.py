"""Configuration loading from YAML files with environment variable support."""

import logging
import os
import re
from pathlib import Path
from typing import Any, Mapping

import yaml
from dotenv import dotenv_values

logger = logging.getLogger("responses-bridge")

DEFAULT_CONFIG_PATH = "configs/config_default.yaml"
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8000

_ENV_VAR_PATTERN = re.compile(r"\$\{([^}]+)\}|\$([A-Za-z_][A-Za-z0-9_]*)")


def resolve_config_path(path: str) -> Path:
    """Resolve config path relative to the project root if needed."""
    if Path(path).is_absolute():
        return Path(path)
    project_root = Path(__file__).parent.parent
    return project_root / path


def resolve_env_path(config_path: Path) -> Path:
    """Return the .env file that sits next to a config file.

    ``config_<name>.yaml`` pairs with ``.env_<name>``, anything else with ``.env``.
    """
    stem = config_path.stem
    if stem.startswith("config_"):
        return config_path.with_name(f".env_{stem[len('config_'):]}")
    return config_path.with_name(".env")


def load_config(path: str | None = None, substitute_env: bool = True) -> dict:
    """Load configuration from a YAML file.

    Args:
        path: Path to the config file. Defaults to RESPONSES_BRIDGE_CONFIG,
              or configs/config_default.yaml in the project root.
        substitute_env: Whether to substitute environment variables.

    Returns:
        Parsed configuration dictionary.

    Raises:
        RuntimeError: If the config file does not exist.
    """
    if path is None:
        path = os.getenv("RESPONSES_BRIDGE_CONFIG") or DEFAULT_CONFIG_PATH

    config_path = resolve_config_path(path)
    logger.info(f"Loading configuration from {config_path}")

    if not config_path.exists():
        logger.error(f"Config file not found: {config_path}")
        raise RuntimeError(f"Config file not found: {config_path}")

    env_values: dict[str, str] = {}
    if substitute_env:
        env_file = resolve_env_path(config_path)
        if env_file.exists():
            logger.info(f"Loading environment variables from {env_file}")
            env_values = {
                key: value
                for key, value in dotenv_values(env_file).items()
                if value is not None
            }

    with config_path.open("r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh) or {}

    if substitute_env:
        data = substitute_env_vars(data, env_values)

    return data


def substitute_env_vars(obj: Any, env_values: Mapping[str, str] | None = None) -> Any:
    """Recursively replace ``${VAR}`` and ``$VAR`` in configuration strings.

    Values from ``env_values`` win over the process environment. Unset
    variables are left as the literal placeholder and logged.
    """
    env_values = env_values or {}

    if isinstance(obj, dict):
        return {k: substitute_env_vars(v, env_values) for k, v in obj.items()}
    if isinstance(obj, list):
        return [substitute_env_vars(item, env_values) for item in obj]
    if not isinstance(obj, str):
        return obj

    def replace_var(match: re.Match) -> str:
        var_name = match.group(1) or match.group(2)
        value = env_values.get(var_name)
        if value is None:
            value = os.getenv(var_name)
        if value is None:
            logger.warning(
                f"CONFIG ERROR: Environment variable '${var_name}' is not set! "
                f"The literal placeholder will be used."
            )
            return match.group(0)
        return value

    return _ENV_VAR_PATTERN.sub(replace_var, obj)


def resolve_server_bind(config: Mapping[str, Any]) -> tuple[str, int]:
    """Return (host, port), with RESPONSES_BRIDGE_HOST/PORT taking priority."""
    settings = config.get("bridge_settings") or {}
    server_cfg = settings.get("server") or {}

    host = os.getenv("RESPONSES_BRIDGE_HOST") or str(server_cfg.get("host", DEFAULT_HOST))

    raw_port = os.getenv("RESPONSES_BRIDGE_PORT") or server_cfg.get("port", DEFAULT_PORT)
    try:
        port = int(raw_port)
    except (TypeError, ValueError):
        logger.warning(f"Invalid port {raw_port!r}, falling back to {DEFAULT_PORT}")
        port = DEFAULT_PORT

    return host, port


def resolve_log_level(config: Mapping[str, Any]) -> str:
    settings = config.get("bridge_settings") or {}
    return str(settings.get("log_level") or "INFO")
