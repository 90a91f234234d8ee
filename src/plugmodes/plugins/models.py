"""Plugin data models: RawArtifact, PluginDescriptor, Plugin, PluginRegistry, Version."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator

from plugmodes.core.utils import name_key, path_key

from .paths import ArtifactKind

_VERSION_RE = re.compile(r"^\s*v?(\d+(?:\.\d+){0,3})")


@dataclass
class RawArtifact:
    """One physical file found while scanning."""

    path: Path
    kind: ArtifactKind
    is_disabled: bool = False


@dataclass
class PluginDescriptor:
    """Metadata for a library, as yielded by a descriptor reader."""

    name: str = ""
    version: str = ""
    author: str = ""
    description: str = ""
    id: str = ""
    install_location: str = ""


@dataclass(frozen=True, order=True)
class Version:
    """Numeric version, up to four components (major.minor.build.revision)."""

    parts: tuple[int, ...]

    @classmethod
    def parse(cls, text: str | None) -> Version | None:
        """'1.2.3' -> Version((1, 2, 3, 0)); None when no leading number."""
        if not text:
            return None
        m = _VERSION_RE.match(text)
        if not m:
            return None
        nums = [int(p) for p in m.group(1).split(".")]
        nums += [0] * (4 - len(nums))
        return cls(tuple(nums))

    def __str__(self) -> str:
        parts = list(self.parts)
        while len(parts) > 2 and parts[-1] == 0:
            parts.pop()
        return ".".join(str(p) for p in parts)


def _append_unique(paths: list[Path], path: Path) -> bool:
    key = path_key(path)
    if any(path_key(p) == key for p in paths):
        return False
    paths.append(path)
    return True


@dataclass
class Plugin:
    """One logical plugin: every artifact that belongs to the same name."""

    name: str
    primary_path: Path | None = None
    library_paths: list[Path] = field(default_factory=list)
    versions: list[str] = field(default_factory=list)
    active_version_index: int = -1
    user_object_paths: list[Path] = field(default_factory=list)
    script_paths: list[Path] = field(default_factory=list)
    is_selected: bool = False
    author: str = ""
    description: str = ""

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise ValueError("plugin name must not be empty")

    @property
    def key(self) -> str:
        return name_key(self.name)

    @property
    def has_valid_active_index(self) -> bool:
        return 0 <= self.active_version_index < len(self.library_paths)

    @property
    def active_library_path(self) -> Path | None:
        if self.has_valid_active_index:
            return self.library_paths[self.active_version_index]
        return None

    @property
    def active_version(self) -> str:
        if self.has_valid_active_index:
            return self.versions[self.active_version_index]
        return ""

    def add_library(self, path: Path, version: str = "") -> bool:
        """Record a library location. Returns False if already known."""
        if not _append_unique(self.library_paths, path):
            return False
        self.versions.append(version)
        if self.primary_path is None:
            self.primary_path = path
        return True

    def add_user_object(self, path: Path) -> bool:
        return _append_unique(self.user_object_paths, path)

    def add_script(self, path: Path) -> bool:
        return _append_unique(self.script_paths, path)

    def all_paths(self) -> list[Path]:
        return [*self.library_paths, *self.user_object_paths, *self.script_paths]


class PluginRegistry:
    """Plugins keyed by case-insensitive name, in discovery order."""

    def __init__(self, plugins: list[Plugin] | None = None) -> None:
        self._plugins: dict[str, Plugin] = {}
        for p in plugins or []:
            self.add(p)

    def add(self, plugin: Plugin) -> Plugin:
        if plugin.key in self._plugins:
            raise ValueError(f"duplicate plugin name: {plugin.name}")
        self._plugins[plugin.key] = plugin
        return plugin

    def get(self, name: str) -> Plugin | None:
        return self._plugins.get(name_key(name))

    def find_or_create(self, name: str) -> Plugin:
        existing = self.get(name)
        if existing is not None:
            return existing
        return self.add(Plugin(name=name))

    def clear(self) -> None:
        self._plugins.clear()

    def selected(self) -> list[Plugin]:
        return [p for p in self if p.is_selected]

    def names(self) -> list[str]:
        return [p.name for p in self]

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name_key(name) in self._plugins

    def __iter__(self) -> Iterator[Plugin]:
        return iter(list(self._plugins.values()))

    def __len__(self) -> int:
        return len(self._plugins)
