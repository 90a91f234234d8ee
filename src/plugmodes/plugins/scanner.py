"""Directory scanner: find plugin artifacts under the host roots. Read-only."""

from __future__ import annotations

import os
from pathlib import Path
from typing import TYPE_CHECKING

from rich.console import Console

from plugmodes.core.config import LINK_EXT
from plugmodes.core.errors import ScanIoError
from plugmodes.core.utils import path_key

from .models import RawArtifact
from .paths import classify

if TYPE_CHECKING:
    from plugmodes.core.config import Config

console = Console(stderr=True)


def scan(roots: list[Path], errors: list[ScanIoError] | None = None) -> list[RawArtifact]:
    """Recursively collect every artifact (enabled or disabled) under *roots*.

    Missing roots are skipped. A directory that cannot be listed is reported
    (and appended to *errors* when given) and the walk goes on.
    """
    artifacts: list[RawArtifact] = []
    seen: set[str] = set()

    for root in roots:
        root = Path(root)
        if not root.is_dir():
            continue

        def _on_error(exc: OSError) -> None:
            err = ScanIoError(f"cannot list {exc.filename}: {exc.strerror or exc}")
            console.print(f"  [yellow]warning: {err}[/yellow]")
            if errors is not None:
                errors.append(err)

        for dirpath, dirnames, filenames in os.walk(root, onerror=_on_error):
            dirnames.sort(key=str.casefold)
            for fname in sorted(filenames, key=str.casefold):
                hit = classify(fname)
                if hit is None:
                    continue
                path = Path(dirpath) / fname
                key = path_key(path)
                if key in seen:
                    continue
                seen.add(key)
                kind, disabled = hit
                artifacts.append(RawArtifact(path=path, kind=kind, is_disabled=disabled))

    return artifacts


def read_link_file(path: Path) -> list[Path]:
    """Directories listed in a link file: one per line, '#' lines are comments."""
    try:
        lines = path.read_text(encoding="utf-8", errors="replace").splitlines()
    except OSError as e:
        console.print(f"  [yellow]warning: cannot read link file {path}: {e}[/yellow]")
        return []
    dirs: list[Path] = []
    for raw in lines:
        d = raw.strip()
        if not d or d.startswith("#"):
            continue
        dirs.append(Path(d))
    return dirs


def link_targets(base: Path, include_own: bool = True, config: Config | None = None) -> list[Path]:
    """Existing directories referenced by the link files directly inside *base*.

    With ``include_own=False`` the link files this tool writes are skipped.
    """
    if not base.is_dir():
        return []
    targets: list[Path] = []
    seen: set[str] = set()
    try:
        link_files = sorted(
            (f for f in base.iterdir() if f.is_file() and f.name.lower().endswith(LINK_EXT)),
            key=lambda f: f.name.casefold(),
        )
    except OSError as e:
        console.print(f"  [yellow]warning: cannot list {base}: {e}[/yellow]")
        return []
    for link in link_files:
        if not include_own and config is not None and config.is_own_link(link):
            continue
        for d in read_link_file(link):
            key = path_key(d)
            if key in seen or not d.is_dir():
                continue
            seen.add(key)
            targets.append(d)
    return targets


def default_roots(config: Config) -> list[Path]:
    """Standard roots plus every directory side-loaded through link files."""
    roots = list(config.scan_roots)
    known = {path_key(r) for r in roots}
    for base in (config.library_root, config.user_object_root):
        for target in link_targets(base):
            if path_key(target) not in known:
                known.add(path_key(target))
                roots.append(target)
    return roots


def scan_host(config: Config, errors: list[ScanIoError] | None = None) -> list[RawArtifact]:
    """Scan the host's library, user-object, package and link-target roots."""
    return scan(default_roots(config), errors)
