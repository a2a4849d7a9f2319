"""Top-level package for cross-chain transfer submission and tracking."""

from importlib import metadata


def __getattr__(name: str) -> str:
    """Expose the package version via ``bridgesend.__version__``."""
    if name == "__version__":
        try:
            return metadata.version("bridgesend")
        except metadata.PackageNotFoundError:
            return "0.0.0"
    raise AttributeError(name)


__all__ = ["__version__"]
