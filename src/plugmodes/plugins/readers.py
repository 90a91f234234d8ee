"""Default metadata readers backed by the package manager's manifest.yml.

A descriptor reader is any callable ``(path) -> PluginDescriptor | None``.
Readers that do not open the library itself may set ``accepts_disabled = True``
so the aggregator also consults them for disabled files.
"""

from __future__ import annotations

from pathlib import Path

from plugmodes.core.utils import parse_manifest_fields

from .models import PluginDescriptor
from .paths import ArtifactKind, base_name, classify

MANIFEST_NAME = "manifest.yml"
# file -> version dir is at most this many levels up (e.g. <version>/net48/X.gha)
_MAX_DEPTH = 3


def _package_fields(candidate: Path) -> dict | None:
    """Fields of *candidate* if it is a package manifest (has name and version)."""
    if not candidate.is_file():
        return None
    meta = parse_manifest_fields(candidate.read_text(encoding="utf-8", errors="replace"))
    if not meta.get("name") or not meta.get("version"):
        return None
    return meta


def _locate(path: Path) -> tuple[Path, dict] | None:
    parent = Path(path).parent
    for _ in range(_MAX_DEPTH):
        candidate = parent / MANIFEST_NAME
        meta = _package_fields(candidate)
        if meta is not None:
            return candidate, meta
        if parent.name.lower() == "packages" or parent.parent == parent:
            break
        parent = parent.parent
    return None


def find_package_manifest(path: Path) -> Path | None:
    """Locate manifest.yml in the package version folder holding *path*.

    Other ``manifest.yml`` files (no ``name`` or ``version``) are passed over.
    """
    found = _locate(path)
    return found[0] if found else None


def read_package_manifest(path: Path) -> dict | None:
    found = _locate(path)
    if found is None:
        return None
    manifest, meta = found
    meta["_dir"] = manifest.parent
    return meta


def _count_libraries(version_dir: Path) -> int:
    seen: set[str] = set()
    for f in version_dir.rglob("*"):
        hit = classify(f.name)
        if hit and hit[0] is ArtifactKind.LIBRARY and f.is_file():
            seen.add(base_name(f, ArtifactKind.LIBRARY).casefold())
    return len(seen)


def _authors(meta: dict) -> str:
    authors = meta.get("authors", meta.get("author", ""))
    if isinstance(authors, list):
        return ", ".join(authors)
    return str(authors)


class PackageDescriptorReader:
    """Descriptor from the package manifest.yml that ships with a library."""

    accepts_disabled = True

    def __call__(self, path: Path) -> PluginDescriptor | None:
        meta = read_package_manifest(path)
        if not meta:
            return None
        version_dir: Path = meta["_dir"]
        # one manifest per package: its name identifies the library only when alone
        name = str(meta.get("name", "")) if _count_libraries(version_dir) == 1 else ""
        return PluginDescriptor(
            name=name,
            version=str(meta.get("version", "")),
            author=_authors(meta),
            description=str(meta.get("description", "")),
            id=str(meta.get("name", "")),
            install_location=str(version_dir),
        )


read_plugin_descriptor = PackageDescriptorReader()


def read_user_object_name(path: Path) -> str | None:
    """Package name for user objects shipped inside a package, else None."""
    meta = read_package_manifest(path)
    if not meta:
        return None
    return str(meta.get("name", "")) or None


def read_binary_identity(path: Path) -> str:
    """Assembly identity of a library; the file stem matches the assembly name."""
    return base_name(path, ArtifactKind.LIBRARY)
