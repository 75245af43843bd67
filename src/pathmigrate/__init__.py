"""pathmigrate: resumable migration of artifact storage into a path-mapped store."""

from pathmigrate.version import __version__

__all__ = ["__version__"]
