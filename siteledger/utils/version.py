"""API and application version, reported by /api/v1/version and response headers."""

from functools import lru_cache
from importlib.metadata import PackageNotFoundError, version

API_VERSION = "v1"


@lru_cache(maxsize=1)
def app_version() -> str:
    """Installed distribution version, or 0.0.0 when running from a bare checkout."""
    try:
        return version("siteledger")
    except PackageNotFoundError:
        return "0.0.0"
