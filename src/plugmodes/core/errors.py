"""Error taxonomy: recoverable per-item failures and fatal setup errors."""

from __future__ import annotations


class PlugmodesError(Exception):
    """Base class for all plugmodes errors."""


class ScanIoError(PlugmodesError):
    """A directory could not be enumerated; that root is skipped."""


class RenameFailure(PlugmodesError):
    """A toggle rename or link write failed (locked file, permissions)."""


class MetadataReadFailure(PlugmodesError):
    """A descriptor or user-object name could not be read."""


class ManifestCorrupt(PlugmodesError):
    """A manifest line could not be parsed."""


class SetupError(PlugmodesError):
    """A required root directory could not be created. Fatal."""
