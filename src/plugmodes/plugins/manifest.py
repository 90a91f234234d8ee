"""Per-environment mutation manifest and best-effort revert."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from rich.console import Console

from plugmodes.core.errors import ManifestCorrupt, RenameFailure

if TYPE_CHECKING:
    from plugmodes.core.config import Config

console = Console(stderr=True)

RENAME = "RENAME"
DELETE = "DELETE"
# short tags written by earlier versions
_LEGACY = {"REN": RENAME, "DEL": DELETE}


@dataclass(frozen=True)
class ManifestOp:
    """One reversible mutation: RENAME(source -> target) or DELETE(target)."""

    op: str
    target: Path
    source: Path | None = None

    @classmethod
    def rename(cls, source: Path, target: Path) -> ManifestOp:
        return cls(RENAME, Path(target), Path(source))

    @classmethod
    def delete(cls, path: Path) -> ManifestOp:
        return cls(DELETE, Path(path))

    def to_line(self) -> str:
        if self.op == RENAME:
            return f"{RENAME}\t{self.source}\t{self.target}"
        return f"{DELETE}\t{self.target}"


@dataclass
class RevertResult:
    restored: list[Path] = field(default_factory=list)
    deleted: list[Path] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


def parse_line(line: str) -> ManifestOp:
    parts = line.rstrip("\r\n").split("\t")
    op = _LEGACY.get(parts[0], parts[0])
    if op == RENAME and len(parts) == 3 and parts[1] and parts[2]:
        return ManifestOp.rename(Path(parts[1]), Path(parts[2]))
    if op == DELETE and len(parts) == 2 and parts[1]:
        return ManifestOp.delete(Path(parts[1]))
    raise ManifestCorrupt(f"bad manifest line: {line!r}")


def write_manifest(path: Path, ops: list[ManifestOp]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("".join(op.to_line() + "\n" for op in ops), encoding="utf-8")


def read_manifest(path: Path, errors: list[str] | None = None) -> list[ManifestOp]:
    """Parse a manifest, skipping (and reporting) malformed lines."""
    if not path.exists():
        return []
    ops: list[ManifestOp] = []
    for line in path.read_text(encoding="utf-8", errors="replace").splitlines():
        if not line.strip():
            continue
        try:
            ops.append(parse_line(line))
        except ManifestCorrupt as e:
            console.print(f"  [yellow]warning: {e}[/yellow]")
            if errors is not None:
                errors.append(str(e))
    return ops


def _undo(op: ManifestOp, result: RevertResult) -> None:
    if op.op == RENAME and op.source is not None:
        if not op.target.exists():
            return
        if op.source.exists():
            op.source.unlink()
        op.target.rename(op.source)
        result.restored.append(op.source)
    elif op.target.exists():
        op.target.unlink()
        result.deleted.append(op.target)


def revert_manifest(path: Path, verbose: bool = False) -> RevertResult:
    """Undo every operation in the manifest at *path*, newest first, then remove it."""
    result = RevertResult()
    if not path.exists():
        return result
    try:
        ops = read_manifest(path, result.errors)
    except OSError as e:
        console.print(f"  [yellow]warning: cannot read manifest {path}: {e}[/yellow]")
        result.errors.append(str(e))
        return result

    for op in reversed(ops):
        try:
            _undo(op, result)
            if verbose:
                console.print(f"  [dim]undo {op.to_line()}[/dim]")
        except OSError as e:
            err = RenameFailure(f"revert failed ({op.to_line()}): {e}")
            console.print(f"  [yellow]warning: {err}[/yellow]")
            result.errors.append(str(err))

    try:
        path.unlink()
    except OSError as e:
        console.print(f"  [yellow]warning: cannot remove manifest {path}: {e}[/yellow]")
        result.errors.append(str(e))
    return result


def revert(config: Config, env_name: str) -> RevertResult:
    """Undo the last apply of *env_name*. No-op when it has no manifest."""
    return revert_manifest(config.manifest_path(env_name), verbose=config.verbose)
