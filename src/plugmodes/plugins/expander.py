"""Selection expander: close a plugin selection under co-dependency rules.

Rules, applied until nothing changes:

1. name family: equal normalized names share selection;
2. binary identity: a selected user-object-only plugin pulls in libraries
   whose assembly identity matches its name;
3. package Components folder: a selected user object under
   ``<package>/Components`` pulls in libraries under the same folder;
4. shared folder: libraries in the same directory are one unit, except in
   the host's shared library folders.

Expansion only ever turns flags on, so it always terminates.
"""

from __future__ import annotations

from collections import defaultdict
from pathlib import Path
from typing import Callable

from rich.console import Console

from plugmodes.core.errors import MetadataReadFailure
from plugmodes.core.utils import is_under, name_key, normalize_name, path_key

from .models import Plugin, PluginRegistry
from .readers import read_binary_identity

console = Console(stderr=True)

COMPONENTS_DIR = "components"

IdentityReader = Callable[[Path], str]


def select_by_names(registry: PluginRegistry, names: list[str]) -> None:
    """Select exactly the plugins named in *names* (case-insensitive)."""
    wanted = {name_key(n) for n in names}
    for plugin in registry:
        plugin.is_selected = plugin.key in wanted


def names_match(a: str, b: str, min_length: int = 4) -> bool:
    """Normalized equality, or containment when the shorter side is long enough."""
    if not a or not b:
        return False
    if a == b:
        return True
    shorter, longer = (a, b) if len(a) <= len(b) else (b, a)
    return len(shorter) >= min_length and shorter in longer


def _select(plugin: Plugin, reason: str, verbose: bool) -> bool:
    if plugin.is_selected:
        return False
    plugin.is_selected = True
    if verbose:
        console.print(f"  [dim]+ {plugin.name} ({reason})[/dim]")
    return True


def _expand_name_families(registry: PluginRegistry, verbose: bool) -> bool:
    families: dict[str, list[Plugin]] = defaultdict(list)
    for plugin in registry:
        key = normalize_name(plugin.name)
        # symbol-only names have no family
        if key:
            families[key].append(plugin)
    changed = False
    for members in families.values():
        if any(p.is_selected for p in members):
            for p in members:
                changed |= _select(p, "name family", verbose)
    return changed


def _library_identities(
    registry: PluginRegistry, read_identity: IdentityReader, errors: list | None
) -> list[tuple[str, Plugin]]:
    out: list[tuple[str, Plugin]] = []
    for plugin in registry:
        for path in plugin.library_paths:
            try:
                identity = read_identity(path)
            except (OSError, ValueError, MetadataReadFailure) as e:
                err = MetadataReadFailure(f"identity unreadable for {path}: {e}")
                console.print(f"  [yellow]warning: {err}[/yellow]")
                if errors is not None:
                    errors.append(err)
                continue
            if identity:
                out.append((normalize_name(identity), plugin))
    return out


def _expand_binary_identity(
    registry: PluginRegistry,
    identities: list[tuple[str, Plugin]],
    min_length: int,
    verbose: bool,
) -> bool:
    changed = False
    for plugin in registry:
        if not plugin.is_selected or plugin.library_paths or not plugin.user_object_paths:
            continue
        wanted = normalize_name(plugin.name)
        for identity, provider in identities:
            if provider is not plugin and names_match(identity, wanted, min_length):
                changed |= _select(provider, f"provides {plugin.name}", verbose)
    return changed


def _components_dir(path: Path) -> Path | None:
    for parent in Path(path).parents:
        if parent.name.lower() == COMPONENTS_DIR:
            return parent
    return None


def _expand_components(registry: PluginRegistry, verbose: bool) -> bool:
    dirs: list[Path] = []
    for plugin in registry.selected():
        for uo in plugin.user_object_paths:
            d = _components_dir(uo)
            if d is not None:
                dirs.append(d)
    if not dirs:
        return False
    changed = False
    for plugin in registry:
        if plugin.is_selected:
            continue
        if any(is_under(lib, d) for lib in plugin.library_paths for d in dirs):
            changed |= _select(plugin, "same package", verbose)
    return changed


def _unit_paths(plugin: Plugin) -> list[Path]:
    active = plugin.active_library_path
    return [active] if active is not None else list(plugin.library_paths)


def _expand_shared_folders(
    registry: PluginRegistry, exempt: set[str], verbose: bool
) -> bool:
    by_dir: dict[str, list[Plugin]] = defaultdict(list)
    for plugin in registry:
        for lib in _unit_paths(plugin):
            key = path_key(lib.parent)
            if key not in exempt:
                by_dir[key].append(plugin)
    changed = False
    for members in by_dir.values():
        if len(members) > 1 and any(p.is_selected for p in members):
            for p in members:
                changed |= _select(p, "shared folder", verbose)
    return changed


def expand_selection(
    registry: PluginRegistry,
    read_identity: IdentityReader = read_binary_identity,
    min_length: int = 4,
    verbose: bool = False,
    errors: list | None = None,
    shared_roots: list[Path] | None = None,
) -> list[str]:
    """Expand selections in place to a fixed point; returns names newly selected.

    *shared_roots* are folders many unrelated plugins share (the host's own
    library folder); libraries directly inside them are not grouped by folder.
    """
    exempt = {path_key(r) for r in shared_roots or []}
    before = {p.key for p in registry.selected()}
    identities = _library_identities(registry, read_identity, errors)

    changed = True
    while changed:
        changed = False
        changed |= _expand_name_families(registry, verbose)
        changed |= _expand_binary_identity(registry, identities, min_length, verbose)
        changed |= _expand_components(registry, verbose)
        changed |= _expand_shared_folders(registry, exempt, verbose)

    return [p.name for p in registry if p.is_selected and p.key not in before]
