"""Server auto-discovery."""

from refresher.discovery.client import AutoDiscoverClient, AutoDiscoverResponse

__all__ = ["AutoDiscoverClient", "AutoDiscoverResponse"]
