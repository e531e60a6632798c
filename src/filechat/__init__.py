"""filechat: chat with the files in your Desktop, Documents, and Downloads folders."""

from importlib import metadata

try:
    __version__ = metadata.version("filechat")
except metadata.PackageNotFoundError:
    # running from a source checkout without an install
    __version__ = "0.0.0"

__all__ = ["__version__"]
