"""Pipeline glue: scan the host, build the registry, apply a saved environment."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .aggregator import aggregate
from .applier import ApplyResult, apply_environment
from .expander import expand_selection, select_by_names
from .scanner import scan_host

if TYPE_CHECKING:
    from plugmodes.core.config import Config

    from .environments import Environment
    from .models import PluginRegistry


def load_registry(
    config: Config, previous: PluginRegistry | None = None, errors: list | None = None
) -> PluginRegistry:
    """Scan every host root and group what was found into plugins."""
    artifacts = scan_host(config, errors)
    return aggregate(artifacts, config=config, previous=previous, errors=errors)


def activate_environment(
    config: Config, env: Environment, registry: PluginRegistry
) -> tuple[list[str], ApplyResult]:
    """Select *env*'s plugins, expand the selection, and apply it to disk.

    Returns the names pulled in by expansion and the apply result.
    """
    select_by_names(registry, env.plugins)
    added = expand_selection(
        registry,
        min_length=config.affinity_min_length,
        verbose=config.verbose,
        shared_roots=[config.library_root, config.user_object_root, *config.extra_roots],
    )
    return added, apply_environment(config, env.name, registry)
