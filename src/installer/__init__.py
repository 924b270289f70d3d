"""Command line entry points for chaos delegate installs."""

from .settings import InstallSettings

__all__ = ["InstallSettings"]
