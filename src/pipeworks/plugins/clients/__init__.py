"""HTTP client used by nodes that call external services."""

from pipeworks.plugins.clients.http import HTTPClient, client_for

__all__ = ["HTTPClient", "client_for"]
