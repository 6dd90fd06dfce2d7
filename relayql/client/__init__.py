"""relayQL transport layer: configuration and the HTTP client."""
from relayql.client.config import ClientConfig
from relayql.client.database import DatabaseClient

__all__ = [
    "ClientConfig",
    "DatabaseClient",
]
