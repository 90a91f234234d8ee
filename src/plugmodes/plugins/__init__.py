"""Plugins: artifact scanning, grouping, selection expansion, environment apply/revert."""

from .aggregator import aggregate, pick_active_version
from .applier import ApplyResult, apply_environment, set_enabled
from .environments import (
    Environment,
    delete_environment,
    find_environment,
    load_environments,
    save_environment,
    save_environments,
    snapshot_environment,
)
from .expander import expand_selection, select_by_names
from .loader import activate_environment, load_registry
from .manifest import ManifestOp, RevertResult, revert
from .models import Plugin, PluginDescriptor, PluginRegistry, RawArtifact, Version
from .paths import ArtifactKind, base_name, classify, strip_disabled_marker
from .scanner import scan, scan_host

__all__ = [
    "ApplyResult",
    "ArtifactKind",
    "Environment",
    "ManifestOp",
    "Plugin",
    "PluginDescriptor",
    "PluginRegistry",
    "RawArtifact",
    "RevertResult",
    "Version",
    "activate_environment",
    "aggregate",
    "apply_environment",
    "base_name",
    "classify",
    "delete_environment",
    "expand_selection",
    "find_environment",
    "load_environments",
    "load_registry",
    "pick_active_version",
    "revert",
    "save_environment",
    "save_environments",
    "scan",
    "scan_host",
    "select_by_names",
    "set_enabled",
    "snapshot_environment",
    "strip_disabled_marker",
]
