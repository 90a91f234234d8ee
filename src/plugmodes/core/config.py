"""Configuration: host directory layout, env overrides, settings.json."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

from .utils import sanitize_name

HOST_NAME = "Grasshopper"
VENDOR_PATH = ("McNeel", "Rhinoceros")
APP_DIR_NAME = "GhPlugins_ModeManager"
LINK_EXT = ".ghlink"
LIBRARY_LINK_PREFIX = "GhPlugins"
USER_OBJECT_LINK_PREFIX = "GhUserObjects"


def _default_app_data() -> Path:
    if appdata := os.getenv("APPDATA"):
        return Path(appdata)
    return Path.home() / ".config"


@dataclass
class Config:
    app_data: Path = field(default_factory=_default_app_data)
    host_major: str = "8.0"
    known_majors: list[str] = field(default_factory=lambda: ["7.0", "8.0"])
    # shortest normalized name allowed to match by substring containment
    affinity_min_length: int = 4
    extra_roots: list[Path] = field(default_factory=list)
    verbose: bool = False

    @property
    def library_root(self) -> Path:
        return self.app_data / HOST_NAME / "Libraries"

    @property
    def user_object_root(self) -> Path:
        return self.app_data / HOST_NAME / "UserObjects"

    @property
    def vendor_root(self) -> Path:
        return self.app_data.joinpath(*VENDOR_PATH)

    @property
    def app_root(self) -> Path:
        return self.app_data / APP_DIR_NAME

    def package_roots_for(self, major: str) -> list[Path]:
        """Both package-cache layouts for one major version, existing or not."""
        return [
            self.vendor_root / major / "packages",
            self.vendor_root / "packages" / major,
        ]

    @property
    def package_roots(self) -> list[Path]:
        roots: list[Path] = []
        for major in self.known_majors:
            roots.extend(p for p in self.package_roots_for(major) if p.is_dir())
        return roots

    @property
    def current_package_roots(self) -> list[Path]:
        return self.package_roots_for(self.host_major)

    @property
    def scan_roots(self) -> list[Path]:
        return [self.library_root, self.user_object_root, *self.package_roots, *self.extra_roots]

    @property
    def environments_path(self) -> Path:
        return self.app_root / "environments.json"

    def manifest_path(self, env_name: str) -> Path:
        return self.app_root / f"{sanitize_name(env_name)}.manifest.txt"

    def library_link_path(self, env_name: str) -> Path:
        return self.library_root / f"{LIBRARY_LINK_PREFIX}_{sanitize_name(env_name)}{LINK_EXT}"

    def user_object_link_path(self, env_name: str) -> Path:
        return self.user_object_root / f"{USER_OBJECT_LINK_PREFIX}_{sanitize_name(env_name)}{LINK_EXT}"

    def is_own_link(self, path: Path) -> bool:
        """True for link files this tool writes (any environment)."""
        name = path.name
        return name.endswith(LINK_EXT) and name.startswith(
            (f"{LIBRARY_LINK_PREFIX}_", f"{USER_OBJECT_LINK_PREFIX}_")
        )


def _apply_settings(config: Config, path: Path) -> None:
    """Apply a single settings.json file to config."""
    if not path.exists():
        return
    try:
        data = json.loads(path.read_text())
    except (json.JSONDecodeError, OSError):
        return
    if not isinstance(data, dict):
        return
    if "hostMajor" in data:
        config.host_major = str(data["hostMajor"])
    if isinstance(data.get("knownMajors"), list):
        config.known_majors = [str(m) for m in data["knownMajors"]]
    if isinstance(data.get("affinityMinLength"), int):
        config.affinity_min_length = data["affinityMinLength"]
    if isinstance(data.get("extraRoots"), list):
        config.extra_roots.extend(Path(p) for p in data["extraRoots"] if p)


def load_config(
    app_data: str | Path | None = None,
    host_major: str | None = None,
    verbose: bool = False,
) -> Config:
    """Load config with priority: CLI args > env > .env > settings.json > defaults."""
    load_dotenv()

    config = Config()
    config.verbose = verbose

    if app_data:
        config.app_data = Path(app_data)
    elif env_app_data := os.getenv("PLUGMODES_APP_DATA"):
        config.app_data = Path(env_app_data)

    _apply_settings(config, config.app_root / "settings.json")

    if env_major := os.getenv("PLUGMODES_HOST_MAJOR"):
        config.host_major = env_major

    if host_major:
        config.host_major = host_major

    if config.host_major not in config.known_majors:
        config.known_majors.append(config.host_major)

    return config
