"""Path classifier: artifact kind detection and the '.disabled' marker. No I/O."""

from __future__ import annotations

from enum import Enum
from pathlib import Path

DISABLED_SUFFIX = ".disabled"


class ArtifactKind(Enum):
    LIBRARY = ".gha"
    USER_OBJECT = ".ghuser"
    SCRIPT = ".ghpy"

    @property
    def ext(self) -> str:
        return self.value

    @property
    def disabled_ext(self) -> str:
        return self.value + DISABLED_SUFFIX


# Library first: aggregation order and classification order agree.
KIND_ORDER = (ArtifactKind.LIBRARY, ArtifactKind.USER_OBJECT, ArtifactKind.SCRIPT)


def classify(path: Path | str) -> tuple[ArtifactKind, bool] | None:
    """Return (kind, is_disabled) for an artifact path, None if unrecognized."""
    name = Path(path).name.lower()
    for kind in KIND_ORDER:
        if name.endswith(kind.disabled_ext) and len(name) > len(kind.disabled_ext):
            return kind, True
        if name.endswith(kind.ext) and len(name) > len(kind.ext):
            return kind, False
    return None


def is_disabled(path: Path | str) -> bool:
    return str(path).lower().endswith(DISABLED_SUFFIX)


def strip_disabled_marker(path: Path | str) -> Path:
    s = str(path)
    if s.lower().endswith(DISABLED_SUFFIX):
        return Path(s[: -len(DISABLED_SUFFIX)])
    return Path(s)


def add_disabled_marker(path: Path | str) -> Path:
    s = str(path)
    if s.lower().endswith(DISABLED_SUFFIX):
        return Path(s)
    return Path(s + DISABLED_SUFFIX)


def enabled_and_disabled(path: Path | str) -> tuple[Path, Path]:
    """Both on-disk forms of an artifact: (clean, disabled)."""
    clean = strip_disabled_marker(path)
    return clean, add_disabled_marker(clean)


def base_name(path: Path | str, kind: ArtifactKind) -> str:
    """File name without the kind extension and marker: 'Foo.gha.disabled' -> 'Foo'."""
    name = strip_disabled_marker(path).name
    if name.lower().endswith(kind.ext):
        return name[: -len(kind.ext)]
    return name
