"""Name helpers, path containment, file-name sanitizing, manifest.yml field parsing."""

from __future__ import annotations

import re
from pathlib import Path

_INVALID_FILENAME_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f]')


def name_key(name: str) -> str:
    """Case-insensitive identity key for plugin names and paths."""
    return name.casefold()


def normalize_name(name: str) -> str:
    """Case-fold and drop every non-alphanumeric character: 'Lady-Bug 1' -> 'ladybug1'."""
    return "".join(c for c in name.casefold() if c.isalnum())


def sanitize_name(name: str) -> str:
    """Replace characters that are invalid in a file name with '_'."""
    return _INVALID_FILENAME_CHARS.sub("_", name)


def path_key(path: Path | str) -> str:
    return str(path).casefold()


def is_under(path: Path | str, root: Path | str) -> bool:
    """True if *path* is *root* or lies below it (case-insensitive, no I/O)."""
    p = Path(path).parts
    r = Path(root).parts
    if len(p) < len(r):
        return False
    return all(a.casefold() == b.casefold() for a, b in zip(p, r))


def _fold_block(style: str, lines: list[str]) -> str:
    if style.startswith("|"):
        return "\n".join(lines).strip()
    return " ".join(ln for ln in lines if ln).strip()


def parse_manifest_fields(raw: str) -> dict:
    """Parse the flat subset of a package manifest.yml we need.

    Top-level ``key: value`` scalars are kept as strings; a key with an empty
    value followed by ``- item`` lines becomes a list; ``|`` and ``>`` block
    scalars collect their indented lines. Nested mappings are ignored.
    """
    meta: dict = {}
    current_list: list[str] | None = None
    block: tuple[str, str, list[str]] | None = None
    for line in raw.split("\n"):
        indented = line[:1] in (" ", "\t")
        if block is not None:
            if indented or not line.strip():
                block[2].append(line.strip())
                continue
            meta[block[0]] = _fold_block(block[1], block[2])
            block = None
        if not line.strip() or line.lstrip().startswith("#"):
            continue
        stripped = line.strip()
        if stripped.startswith("- ") and current_list is not None:
            current_list.append(stripped[2:].strip().strip("'\""))
            continue
        if indented:
            continue
        current_list = None
        if ":" not in stripped:
            continue
        key, val = stripped.split(":", 1)
        key = key.strip()
        val = val.strip()
        if not val:
            current_list = []
            meta[key] = current_list
        elif val[0] in "|>":
            block = (key, val, [])
        elif val.startswith("["):
            meta[key] = [v.strip().strip("'\"") for v in val.strip("[]").split(",") if v.strip()]
        else:
            meta[key] = val.strip("'\"")
    if block is not None:
        meta[block[0]] = _fold_block(block[1], block[2])
    return meta
