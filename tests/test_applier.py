"""Tests for apply/revert: renames, manifest, link files, idempotence, failures."""

from pathlib import Path

import pytest

from plugmodes.core.errors import RenameFailure, SetupError
from plugmodes.plugins.applier import apply_environment, set_enabled
from plugmodes.plugins.manifest import read_manifest, revert
from plugmodes.plugins.models import Plugin, PluginRegistry


def _state(paths):
    """Which form of each artifact is on disk, keyed by full path: 'on', 'off' or 'missing'."""
    out = {}
    for p in paths:
        p = Path(p)
        if p.exists():
            out[str(p)] = "on"
        elif Path(str(p) + ".disabled").exists():
            out[str(p)] = "off"
        else:
            out[str(p)] = "missing"
    return out


@pytest.fixture
def gamma(config, touch):
    pkg = config.vendor_root / "8.0" / "packages" / "gamma"
    v1 = touch(pkg / "1.0" / "C.gha", b"one")
    v2 = touch(pkg / "2.0" / "C.gha", b"two")
    p = Plugin(name="Gamma", is_selected=True)
    p.add_library(v1, "1.0")
    p.add_library(v2, "2.0")
    p.active_version_index = 1
    return p


class TestSetEnabled:
    def test_disable(self, tmp_path, touch):
        f = touch(tmp_path / "A.gha")
        op = set_enabled(f, False)
        assert not f.exists()
        assert (tmp_path / "A.gha.disabled").exists()
        assert op.source == f and op.target == tmp_path / "A.gha.disabled"

    def test_enable_from_disabled_path(self, tmp_path, touch):
        touch(tmp_path / "A.gha.disabled")
        op = set_enabled(tmp_path / "A.gha", True)
        assert (tmp_path / "A.gha").exists()
        assert op.target == tmp_path / "A.gha"

    def test_already_in_state(self, tmp_path, touch):
        touch(tmp_path / "A.gha")
        assert set_enabled(tmp_path / "A.gha", True) is None
        touch(tmp_path / "B.gha.disabled")
        assert set_enabled(tmp_path / "B.gha", False) is None

    def test_missing_raises(self, tmp_path):
        with pytest.raises(RenameFailure, match="missing"):
            set_enabled(tmp_path / "nope.gha", False)

    def test_identical_stale_twin_replaced(self, tmp_path, touch):
        touch(tmp_path / "A.gha", b"same")
        touch(tmp_path / "A.gha.disabled", b"same")
        set_enabled(tmp_path / "A.gha", False)
        assert not (tmp_path / "A.gha").exists()
        assert (tmp_path / "A.gha.disabled").read_bytes() == b"same"

    def test_conflicting_twin_never_overwritten(self, tmp_path, touch):
        touch(tmp_path / "A.gha", b"new")
        touch(tmp_path / "A.gha.disabled", b"old")
        with pytest.raises(RenameFailure, match="conflict"):
            set_enabled(tmp_path / "A.gha", False)
        assert (tmp_path / "A.gha").read_bytes() == b"new"
        assert (tmp_path / "A.gha.disabled").read_bytes() == b"old"


class TestApply:
    def test_scenario_active_version_enabled_other_disabled(self, config, gamma):
        v1, v2 = gamma.library_paths
        apply_environment(config, "Work", PluginRegistry([gamma]))
        assert v2.exists()
        assert not v1.exists()
        assert Path(str(v1) + ".disabled").exists()
        ops = read_manifest(config.manifest_path("Work"))
        assert [(o.op, o.source, o.target) for o in ops] == [
            ("RENAME", v1, Path(str(v1) + ".disabled"))
        ]

    def test_scenario_revert_restores(self, config, gamma):
        v1, v2 = gamma.library_paths
        before = _state(gamma.library_paths)
        assert before == {str(v1): "on", str(v2): "on"}
        apply_environment(config, "Work", PluginRegistry([gamma]))
        assert _state(gamma.library_paths) == {str(v1): "off", str(v2): "on"}
        revert(config, "Work")
        assert _state(gamma.library_paths) == before
        assert not config.manifest_path("Work").exists()

    def test_unselected_disables_everything(self, config, touch):
        lib = touch(config.library_root / "A.gha")
        uo = touch(config.user_object_root / "A.ghuser")
        script = touch(config.library_root / "A.ghpy")
        p = Plugin(name="A")
        p.add_library(lib)
        p.active_version_index = 0
        p.add_user_object(uo)
        p.add_script(script)
        result = apply_environment(config, "Off", PluginRegistry([p]))
        assert _state([lib, uo, script]) == {str(lib): "off", str(uo): "off", str(script): "off"}
        assert len(result.disabled) == 3

    def test_selected_enables_user_objects_and_scripts(self, config, touch):
        uo = touch(config.user_object_root / "W.ghuser.disabled")
        p = Plugin(name="W", is_selected=True)
        p.add_user_object(config.user_object_root / "W.ghuser")
        result = apply_environment(config, "On", PluginRegistry([p]))
        assert (config.user_object_root / "W.ghuser").exists()
        assert not uo.exists()
        assert result.enabled == [config.user_object_root / "W.ghuser"]

    def test_invalid_active_index_disables_all_copies(self, config, gamma):
        gamma.active_version_index = -1
        apply_environment(config, "Work", PluginRegistry([gamma]))
        assert _state(gamma.library_paths) == {str(p): "off" for p in gamma.library_paths}

    def test_idempotent(self, config, gamma, touch):
        other = touch(config.library_root / "Other.gha")
        o = Plugin(name="Other")
        o.add_library(other)
        o.active_version_index = 0
        reg = PluginRegistry([gamma, o])
        apply_environment(config, "Work", reg)
        first_state = _state([*gamma.library_paths, other])
        first_manifest = config.manifest_path("Work").read_text()
        apply_environment(config, "Work", reg)
        assert _state([*gamma.library_paths, other]) == first_state
        assert config.manifest_path("Work").read_text() == first_manifest

    def test_environments_have_separate_manifests(self, config, gamma):
        apply_environment(config, "Work", PluginRegistry([gamma]))
        assert config.manifest_path("Work").exists()
        assert not config.manifest_path("Play").exists()

    def test_failure_does_not_abort(self, config, touch):
        missing = Plugin(name="Gone")
        missing.add_library(config.library_root / "Gone.gha")
        missing.active_version_index = 0
        present = touch(config.library_root / "Here.gha")
        here = Plugin(name="Here")
        here.add_library(present)
        here.active_version_index = 0
        result = apply_environment(config, "Env", PluginRegistry([missing, here]))
        assert len(result.errors) == 1
        assert result.skipped == [config.library_root / "Gone.gha"]
        assert not present.exists()

    def test_uncreatable_root_is_fatal(self, tmp_path, touch):
        from plugmodes.core.config import Config

        blocker = touch(tmp_path / "file")
        config = Config(app_data=blocker)
        with pytest.raises(SetupError):
            apply_environment(config, "Env", PluginRegistry())


class TestLinks:
    def test_side_loaded_library_gets_link(self, config, tmp_path, touch):
        lib = touch(tmp_path / "side" / "S.gha")
        p = Plugin(name="S", is_selected=True)
        p.add_library(lib)
        p.active_version_index = 0
        result = apply_environment(config, "My Env", PluginRegistry([p]))
        link = config.library_link_path("My Env")
        assert result.links == [link]
        lines = [ln for ln in link.read_text().splitlines() if not ln.startswith("#")]
        assert lines == [str(tmp_path / "side")]

    def test_side_loaded_user_objects_get_link(self, config, tmp_path, touch):
        uo = touch(tmp_path / "uos" / "U.ghuser")
        p = Plugin(name="U", is_selected=True)
        p.add_user_object(uo)
        apply_environment(config, "Env", PluginRegistry([p]))
        link = config.user_object_link_path("Env")
        assert str(tmp_path / "uos") in link.read_text().splitlines()
        assert not config.library_link_path("Env").exists()

    def test_standard_and_package_roots_need_no_link(self, config, gamma, touch):
        std = touch(config.library_root / "A.gha")
        a = Plugin(name="A", is_selected=True)
        a.add_library(std)
        a.active_version_index = 0
        result = apply_environment(config, "Env", PluginRegistry([a, gamma]))
        assert result.links == []

    def test_already_linked_folder_not_repeated(self, config, tmp_path, touch):
        lib = touch(tmp_path / "side" / "S.gha")
        touch(config.library_root / "user.ghlink", f"{tmp_path / 'side'}\n".encode())
        p = Plugin(name="S", is_selected=True)
        p.add_library(lib)
        p.active_version_index = 0
        result = apply_environment(config, "Env", PluginRegistry([p]))
        assert result.links == []

    def test_revert_removes_links(self, config, tmp_path, touch):
        lib = touch(tmp_path / "side" / "S.gha")
        p = Plugin(name="S", is_selected=True)
        p.add_library(lib)
        p.active_version_index = 0
        apply_environment(config, "Env", PluginRegistry([p]))
        assert config.library_link_path("Env").exists()
        revert(config, "Env")
        assert not config.library_link_path("Env").exists()
        assert not config.manifest_path("Env").exists()
