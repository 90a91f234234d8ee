"""Plugin aggregator: group raw artifacts into named plugins, pick active versions."""

from __future__ import annotations

from pathlib import Path
from typing import Callable

from rich.console import Console

from plugmodes.core.config import Config
from plugmodes.core.errors import MetadataReadFailure
from plugmodes.core.utils import is_under, path_key

from .models import Plugin, PluginDescriptor, PluginRegistry, RawArtifact, Version
from .paths import KIND_ORDER, ArtifactKind, base_name, strip_disabled_marker
from .readers import read_plugin_descriptor, read_user_object_name

console = Console(stderr=True)

DescriptorReader = Callable[[Path], "PluginDescriptor | None"]
NameReader = Callable[[Path], "str | None"]


def _read_descriptor(
    reader: DescriptorReader, artifact: RawArtifact, errors: list | None
) -> PluginDescriptor | None:
    clean = strip_disabled_marker(artifact.path)
    if not artifact.is_disabled or clean.exists():
        target = clean
    elif getattr(reader, "accepts_disabled", False):
        target = artifact.path
    else:
        return None
    try:
        return reader(target)
    except (OSError, ValueError, MetadataReadFailure) as e:
        err = MetadataReadFailure(f"descriptor unreadable for {target}: {e}")
        console.print(f"  [yellow]warning: {err}[/yellow]")
        if errors is not None:
            errors.append(err)
        return None


def _read_name(reader: NameReader, artifact: RawArtifact, errors: list | None) -> str | None:
    clean = strip_disabled_marker(artifact.path)
    target = clean if clean.exists() else artifact.path
    try:
        return reader(target)
    except (OSError, ValueError, MetadataReadFailure) as e:
        err = MetadataReadFailure(f"user object name unreadable for {target}: {e}")
        console.print(f"  [yellow]warning: {err}[/yellow]")
        if errors is not None:
            errors.append(err)
        return None


def infer_package_version(path: Path, config: Config) -> str:
    """Version folder name for files under <packages>/<package>/<version>/..., else ''."""
    for major in config.known_majors:
        for root in config.package_roots_for(major):
            if not is_under(path, root):
                continue
            rel = Path(path).parts[len(root.parts) :]
            if len(rel) >= 3:
                return rel[1]
    return ""


def _is_current_major(path: Path, config: Config) -> bool:
    return any(is_under(path, root) for root in config.current_package_roots)


def _version_rank(plugin: Plugin, index: int, config: Config) -> tuple:
    version = Version.parse(plugin.versions[index])
    if version is None:
        version = Version.parse(infer_package_version(plugin.library_paths[index], config))
    return (
        version is not None,
        version.parts if version else (),
        _is_current_major(plugin.library_paths[index], config),
    )


def pick_active_version(plugin: Plugin, config: Config) -> int:
    """Index of the library copy to enable when the plugin is selected.

    Known version beats unknown, higher beats lower, then a copy under the
    current major's package root wins; remaining ties go to the first path in
    case-insensitive order, so discovery order never matters.
    """
    if not plugin.library_paths:
        return -1
    order = sorted(range(len(plugin.library_paths)), key=lambda i: path_key(plugin.library_paths[i]))
    return max(order, key=lambda i: _version_rank(plugin, i, config))


def _carry_over_active(plugin: Plugin, previous: PluginRegistry | None) -> bool:
    if previous is None:
        return False
    old = previous.get(plugin.name)
    if old is None or old.active_library_path is None:
        return False
    key = path_key(old.active_library_path)
    for i, p in enumerate(plugin.library_paths):
        if path_key(p) == key:
            plugin.active_version_index = i
            return True
    return False


def _plugin_name(declared: str | None, artifact: RawArtifact) -> str:
    """Declared name, else the file's base name, else its full file name."""
    clean = strip_disabled_marker(artifact.path)
    for candidate in (declared, base_name(clean, artifact.kind), clean.name):
        if candidate and candidate.strip():
            return candidate.strip()
    return clean.name


def _add_library(
    registry: PluginRegistry,
    artifact: RawArtifact,
    read_descriptor: DescriptorReader,
    errors: list | None,
) -> None:
    desc = _read_descriptor(read_descriptor, artifact, errors)
    plugin = registry.find_or_create(_plugin_name(desc.name if desc else None, artifact))
    clean = strip_disabled_marker(artifact.path)
    version = desc.version if desc else ""
    if not plugin.add_library(clean, version) and version:
        idx = next(i for i, p in enumerate(plugin.library_paths) if path_key(p) == path_key(clean))
        if not plugin.versions[idx]:
            plugin.versions[idx] = version
    if desc:
        plugin.author = plugin.author or desc.author
        plugin.description = plugin.description or desc.description
    plugin.is_selected = plugin.is_selected or not artifact.is_disabled


def _add_user_object(
    registry: PluginRegistry,
    artifact: RawArtifact,
    read_user_object: NameReader,
    errors: list | None,
) -> None:
    declared = _read_name(read_user_object, artifact, errors)
    plugin = registry.find_or_create(_plugin_name(declared, artifact))
    plugin.add_user_object(strip_disabled_marker(artifact.path))
    plugin.is_selected = plugin.is_selected or not artifact.is_disabled


def _add_script(registry: PluginRegistry, artifact: RawArtifact) -> None:
    plugin = registry.find_or_create(_plugin_name(None, artifact))
    plugin.add_script(strip_disabled_marker(artifact.path))
    plugin.is_selected = plugin.is_selected or not artifact.is_disabled


def aggregate(
    artifacts: list[RawArtifact],
    config: Config | None = None,
    read_descriptor: DescriptorReader = read_plugin_descriptor,
    read_user_object: NameReader = read_user_object_name,
    registry: PluginRegistry | None = None,
    previous: PluginRegistry | None = None,
    errors: list | None = None,
) -> PluginRegistry:
    """Group *artifacts* into plugins: libraries, then user objects, then scripts.

    *registry*, when given, is cleared and refilled. *previous* is an earlier
    scan's registry whose active library choices are kept where still present.
    """
    config = config or Config()
    if registry is None:
        registry = PluginRegistry()
    else:
        registry.clear()

    by_kind = {kind: [a for a in artifacts if a.kind is kind] for kind in KIND_ORDER}

    for artifact in by_kind[ArtifactKind.LIBRARY]:
        _add_library(registry, artifact, read_descriptor, errors)

    for plugin in registry:
        if plugin.library_paths and not plugin.has_valid_active_index:
            if not _carry_over_active(plugin, previous):
                plugin.active_version_index = pick_active_version(plugin, config)

    for artifact in by_kind[ArtifactKind.USER_OBJECT]:
        _add_user_object(registry, artifact, read_user_object, errors)

    for artifact in by_kind[ArtifactKind.SCRIPT]:
        _add_script(registry, artifact)

    return registry
