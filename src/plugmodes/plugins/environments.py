"""Named environments: load/save the saved plugin selections."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from plugmodes.core.utils import name_key

from .manifest import revert

if TYPE_CHECKING:
    from plugmodes.core.config import Config

    from .models import PluginRegistry


@dataclass
class Environment:
    """A saved set of plugin names meant to be active together."""

    name: str
    plugins: list[str] = field(default_factory=list)


def _read_store(path: Path) -> dict:
    if not path.exists():
        return {}
    try:
        data = json.loads(path.read_text())
    except (json.JSONDecodeError, OSError):
        return {}
    return data if isinstance(data, dict) else {}


def load_environments(config: Config) -> list[Environment]:
    envs: list[Environment] = []
    for entry in _read_store(config.environments_path).get("environments", []):
        if not isinstance(entry, dict):
            continue
        name = entry.get("name", "")
        if not name:
            continue
        plugins = entry.get("plugins", [])
        envs.append(Environment(name=name, plugins=[str(p) for p in plugins if p]))
    return envs


def save_environments(config: Config, envs: list[Environment]) -> None:
    path = config.environments_path
    path.parent.mkdir(parents=True, exist_ok=True)
    data = {"environments": [{"name": e.name, "plugins": list(e.plugins)} for e in envs]}
    path.write_text(json.dumps(data, indent=2) + "\n")


def find_environment(config: Config, name: str) -> Environment | None:
    key = name_key(name)
    for env in load_environments(config):
        if name_key(env.name) == key:
            return env
    return None


def save_environment(config: Config, env: Environment) -> None:
    """Add *env*, replacing any environment with the same name."""
    key = name_key(env.name)
    envs = [e for e in load_environments(config) if name_key(e.name) != key]
    envs.append(env)
    save_environments(config, envs)


def delete_environment(config: Config, name: str, revert_files: bool = False) -> bool:
    """Remove *name* from the store. Returns True if it existed."""
    key = name_key(name)
    envs = load_environments(config)
    kept = [e for e in envs if name_key(e.name) != key]
    if len(kept) == len(envs):
        return False
    if revert_files:
        revert(config, name)
    save_environments(config, kept)
    return True


def snapshot_environment(name: str, registry: PluginRegistry) -> Environment:
    """Environment holding the names of the currently selected plugins."""
    return Environment(name=name, plugins=[p.name for p in registry.selected()])
