"""Agent drivers for agntc.

This module provides the driver registration system and discovery mechanism.
Each supported coding agent is described by a driver that knows how to
detect the agent in a project and where each asset type is installed.
"""

from __future__ import annotations

import importlib
from collections.abc import Callable
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from agntc.drivers.base import AgentDriver

_DRIVERS: dict[str, AgentDriver] = {}
_LOADED = False

# Known driver modules - add new drivers here
_DRIVER_MODULES = [
    "agntc.drivers.claude",
    "agntc.drivers.codex",
]


def register_driver(
    agent_id: str,
) -> Callable[[type[AgentDriver]], type[AgentDriver]]:
    """Decorator for driver registration.

    Usage:
        @register_driver("claude")
        class ClaudeDriver(AgentDriver):
            ...
    """

    def decorator(cls: type[AgentDriver]) -> type[AgentDriver]:
        _DRIVERS[agent_id] = cls()
        return cls

    return decorator


def _load_drivers() -> None:
    """Load all driver modules to trigger registration."""
    global _LOADED
    if _LOADED:
        return

    for module_name in _DRIVER_MODULES:
        importlib.import_module(module_name)

    _LOADED = True


def get_driver(agent_id: str) -> AgentDriver:
    """Get the driver registered for an agent id.

    Args:
        agent_id: The agent id (e.g., "claude", "codex")

    Returns:
        The registered driver instance

    Raises:
        ValueError: If no driver is registered for the id
    """
    _load_drivers()

    if agent_id not in _DRIVERS:
        available = ", ".join(_DRIVERS.keys()) or "none"
        raise ValueError(f"No driver registered for agent: {agent_id}. Available: {available}")
    return _DRIVERS[agent_id]


def list_drivers() -> list[str]:
    """List all registered agent ids."""
    _load_drivers()
    return list(_DRIVERS.keys())
