"""rubick - multi-host container platform console client."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("rubick")
except PackageNotFoundError:
    __version__ = "0.0.0-dev"
