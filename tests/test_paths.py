"""Tests for the path classifier: kinds, disabled marker, base names."""

from pathlib import Path

from plugmodes.plugins.paths import (
    ArtifactKind,
    add_disabled_marker,
    base_name,
    classify,
    enabled_and_disabled,
    is_disabled,
    strip_disabled_marker,
)


class TestClassify:
    def test_library(self):
        assert classify("/x/Foo.gha") == (ArtifactKind.LIBRARY, False)

    def test_disabled_library(self):
        assert classify("/x/Foo.gha.disabled") == (ArtifactKind.LIBRARY, True)

    def test_user_object_case_insensitive(self):
        assert classify("/x/Widget.GHUSER") == (ArtifactKind.USER_OBJECT, False)

    def test_script_disabled(self):
        assert classify("tool.ghpy.Disabled") == (ArtifactKind.SCRIPT, True)

    def test_unrecognized(self):
        assert classify("/x/readme.txt") is None
        assert classify("/x/Foo.dll.disabled") is None

    def test_bare_extension_is_not_artifact(self):
        assert classify(".gha") is None


class TestMarker:
    def test_strip(self):
        assert strip_disabled_marker("/a/Foo.gha.disabled") == Path("/a/Foo.gha")

    def test_strip_identity(self):
        assert strip_disabled_marker("/a/Foo.gha") == Path("/a/Foo.gha")

    def test_add_is_idempotent(self):
        once = add_disabled_marker("/a/Foo.gha")
        assert once == Path("/a/Foo.gha.disabled")
        assert add_disabled_marker(once) == once

    def test_pair(self):
        clean, disabled = enabled_and_disabled("/a/Foo.gha.disabled")
        assert clean == Path("/a/Foo.gha")
        assert disabled == Path("/a/Foo.gha.disabled")

    def test_is_disabled(self):
        assert is_disabled("Foo.ghuser.DISABLED")
        assert not is_disabled("Foo.ghuser")


class TestBaseName:
    def test_library(self):
        assert base_name("/a/Ladybug.gha", ArtifactKind.LIBRARY) == "Ladybug"

    def test_disabled(self):
        assert base_name("/a/Ladybug.gha.disabled", ArtifactKind.LIBRARY) == "Ladybug"

    def test_keeps_inner_dots(self):
        assert base_name("/a/My.Tools.ghuser", ArtifactKind.USER_OBJECT) == "My.Tools"
