"""Configuration file parsing utilities."""

import json
import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from agntc.config.schemas import BundleConfig

logger = logging.getLogger(__name__)

CONFIG_FILE = "agntc.json"


class ConfigError(Exception):
    """Error loading or parsing configuration."""

    def __init__(self, message: str, path: Path | None = None):
        self.path = path
        super().__init__(message)


def load_json(path: Path) -> Any:
    """Load and parse a JSON file.

    Args:
        path: Path to the JSON file

    Returns:
        Parsed JSON document

    Raises:
        FileNotFoundError: If the file does not exist
        ConfigError: If the file cannot be parsed
    """
    with open(path, encoding="utf-8") as f:
        raw = f.read()

    try:
        return json.loads(raw)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON in {path}: {e}", path) from e


def has_config(bundle_dir: Path) -> bool:
    """Check whether a directory carries an agntc.json."""
    return (bundle_dir / CONFIG_FILE).is_file()


def read_bundle_config(
    bundle_dir: Path,
    known_agents: list[str] | None = None,
    on_warn: Callable[[str], None] | None = None,
) -> BundleConfig | None:
    """Read agntc.json from a bundle directory.

    Unknown agent ids are dropped and reported through ``on_warn``.

    Args:
        bundle_dir: Bundle root directory
        known_agents: Agent ids to accept (defaults to all registered drivers)
        on_warn: Optional callback for non-fatal warnings

    Returns:
        Parsed BundleConfig, or None if the directory has no agntc.json

    Raises:
        ConfigError: If the file exists but is invalid
    """
    config_path = bundle_dir / CONFIG_FILE

    try:
        data = load_json(config_path)
    except FileNotFoundError:
        logger.debug("No %s in %s", CONFIG_FILE, bundle_dir)
        return None

    if not isinstance(data, dict) or "agents" not in data:
        raise ConfigError("agents field is required", config_path)

    try:
        config = BundleConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid {CONFIG_FILE}: {_first_error(e)}", config_path) from e

    if known_agents is None:
        from agntc.drivers import list_drivers

        known_agents = list_drivers()

    known = set(known_agents)
    agents: list[str] = []
    for agent in config.agents:
        if agent in known:
            agents.append(agent)
        else:
            message = f'Unknown agent "{agent}" - skipping'
            if on_warn:
                on_warn(message)
            else:
                logger.warning(message)

    return BundleConfig.model_construct(agents=agents)


def _first_error(error: ValidationError) -> str:
    errors = error.errors()
    if not errors:
        return str(error)
    msg = str(errors[0].get("msg", error))
    return msg.removeprefix("Value error, ")
