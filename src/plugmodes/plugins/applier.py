"""Environment applier: rename artifacts to match a selection, write link files.

Applying the same environment name from two callers at once is not safe;
callers serialize per name.
"""

from __future__ import annotations

import filecmp
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from rich.console import Console

from plugmodes.core.errors import RenameFailure, SetupError
from plugmodes.core.utils import is_under, path_key

from .manifest import ManifestOp, revert, write_manifest
from .paths import enabled_and_disabled
from .scanner import link_targets

if TYPE_CHECKING:
    from plugmodes.core.config import Config

    from .models import PluginRegistry

console = Console(stderr=True)


@dataclass
class ApplyResult:
    """Outcome of one apply pass."""

    enabled: list[Path] = field(default_factory=list)
    disabled: list[Path] = field(default_factory=list)
    skipped: list[Path] = field(default_factory=list)
    links: list[Path] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    ops: list[ManifestOp] = field(default_factory=list)


def set_enabled(path: Path, enable: bool) -> ManifestOp | None:
    """Put one artifact in enabled or disabled form by renaming it.

    Returns the rename performed, or None when nothing had to move. Raises
    RenameFailure for a missing file, a conflicting twin or an OS error.
    """
    clean, disabled = enabled_and_disabled(path)
    src, dst = (disabled, clean) if enable else (clean, disabled)

    if enable and clean.exists():
        return None
    if not src.exists():
        if dst.exists():
            return None
        raise RenameFailure(f"missing: {clean.name}")

    try:
        if dst.exists():
            # both forms present: the destination is a stale copy only if identical
            if not filecmp.cmp(src, dst, shallow=False):
                raise RenameFailure(f"conflict: {src.name} and {dst.name} differ")
            dst.unlink()
        src.rename(dst)
    except OSError as e:
        raise RenameFailure(f"move failed (in use?) {src.name} -> {dst.name}: {e}") from e
    return ManifestOp.rename(src, dst)


def _toggle(path: Path, enable: bool, result: ApplyResult, verbose: bool) -> None:
    try:
        op = set_enabled(path, enable)
    except RenameFailure as e:
        console.print(f"  [yellow]warning: {e}[/yellow]")
        result.errors.append(str(e))
        result.skipped.append(path)
        return
    if op is None:
        return
    result.ops.append(op)
    (result.enabled if enable else result.disabled).append(op.target)
    if verbose:
        label = "enable" if enable else "disable"
        console.print(f"  [dim]{label} {op.target.name}[/dim]")


def _ensure_roots(config: Config) -> None:
    for d in (config.library_root, config.user_object_root, config.app_root):
        try:
            d.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise SetupError(f"cannot create {d}: {e}") from e


def _standard_roots(config: Config, base: Path) -> list[Path]:
    roots = [base]
    for major in config.known_majors:
        roots.extend(config.package_roots_for(major))
    return roots


def _extra_dirs(paths: list[Path], roots: list[Path], linked: list[Path]) -> list[Path]:
    """Parent folders of *paths* that the host would not find on its own."""
    out: list[Path] = []
    seen: set[str] = set()
    for p in paths:
        d = p.parent
        key = path_key(d)
        if key in seen:
            continue
        seen.add(key)
        if any(is_under(d, r) for r in roots) or any(is_under(d, t) for t in linked):
            continue
        out.append(d)
    return out


def _write_link(link: Path, env_name: str, dirs: list[Path], result: ApplyResult) -> None:
    header = f"# plugmodes environment: {env_name}\n"
    try:
        link.write_text(header + "".join(f"{d}\n" for d in dirs), encoding="utf-8")
    except OSError as e:
        err = RenameFailure(f"cannot write link file {link}: {e}")
        console.print(f"  [yellow]warning: {err}[/yellow]")
        result.errors.append(str(err))
        return
    result.ops.append(ManifestOp.delete(link))
    result.links.append(link)


def _write_links(config: Config, env_name: str, registry: PluginRegistry, result: ApplyResult) -> None:
    lib_files: list[Path] = []
    uo_files: list[Path] = []
    for plugin in registry.selected():
        active = plugin.active_library_path
        if active is not None:
            lib_files.append(active)
        lib_files.extend(plugin.script_paths)
        uo_files.extend(plugin.user_object_paths)

    lib_dirs = _extra_dirs(
        lib_files,
        _standard_roots(config, config.library_root),
        link_targets(config.library_root, include_own=False, config=config),
    )
    if lib_dirs:
        _write_link(config.library_link_path(env_name), env_name, lib_dirs, result)

    uo_dirs = _extra_dirs(
        uo_files,
        _standard_roots(config, config.user_object_root),
        link_targets(config.user_object_root, include_own=False, config=config),
    )
    if uo_dirs:
        _write_link(config.user_object_link_path(env_name), env_name, uo_dirs, result)


def apply_environment(config: Config, env_name: str, registry: PluginRegistry) -> ApplyResult:
    """Bring the disk in line with *registry* selections, recording every mutation.

    Starts from a clean baseline by reverting the previous apply of *env_name*.
    Per-file failures are reported and skipped; only a missing, uncreatable
    root directory is fatal (SetupError).
    """
    revert(config, env_name)
    _ensure_roots(config)

    result = ApplyResult()
    verbose = config.verbose

    for plugin in registry:
        for i, lib in enumerate(plugin.library_paths):
            enable = plugin.is_selected and i == plugin.active_version_index
            _toggle(lib, enable, result, verbose)

    for plugin in registry:
        for path in [*plugin.user_object_paths, *plugin.script_paths]:
            _toggle(path, plugin.is_selected, result, verbose)

    _write_links(config, env_name, registry, result)

    try:
        write_manifest(config.manifest_path(env_name), result.ops)
    except OSError as e:
        err = f"cannot write manifest for {env_name}: {e}"
        console.print(f"  [red]error: {err}[/red]")
        result.errors.append(err)

    return result
