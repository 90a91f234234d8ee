"""Tests for the environment store."""

import json

from plugmodes.plugins.environments import (
    Environment,
    delete_environment,
    find_environment,
    load_environments,
    save_environment,
    snapshot_environment,
)
from plugmodes.plugins.manifest import ManifestOp, write_manifest
from plugmodes.plugins.models import Plugin, PluginRegistry


class TestStore:
    def test_empty(self, config):
        assert load_environments(config) == []

    def test_save_and_load(self, config):
        save_environment(config, Environment("Work", ["Alpha", "Gamma"]))
        envs = load_environments(config)
        assert envs == [Environment("Work", ["Alpha", "Gamma"])]
        data = json.loads(config.environments_path.read_text())
        assert data["environments"][0]["name"] == "Work"

    def test_replace_by_name(self, config):
        save_environment(config, Environment("Work", ["A"]))
        save_environment(config, Environment("work", ["B"]))
        assert load_environments(config) == [Environment("work", ["B"])]

    def test_find_case_insensitive(self, config):
        save_environment(config, Environment("Work", ["A"]))
        assert find_environment(config, "WORK").plugins == ["A"]
        assert find_environment(config, "Play") is None

    def test_corrupt_store_reads_empty(self, config):
        config.environments_path.parent.mkdir(parents=True)
        config.environments_path.write_text("{not json")
        assert load_environments(config) == []

    def test_delete(self, config):
        save_environment(config, Environment("Work", ["A"]))
        save_environment(config, Environment("Play", ["B"]))
        assert delete_environment(config, "work")
        assert [e.name for e in load_environments(config)] == ["Play"]
        assert not delete_environment(config, "work")

    def test_delete_can_revert(self, config, touch):
        link = touch(config.library_root / "GhPlugins_Work.ghlink")
        write_manifest(config.manifest_path("Work"), [ManifestOp.delete(link)])
        save_environment(config, Environment("Work", []))
        delete_environment(config, "Work", revert_files=True)
        assert not link.exists()
        assert not config.manifest_path("Work").exists()


class TestSnapshot:
    def test_selected_names(self):
        reg = PluginRegistry([Plugin("A", is_selected=True), Plugin("B"), Plugin("C", is_selected=True)])
        assert snapshot_environment("Now", reg) == Environment("Now", ["A", "C"])
