"""Connection configuration for :class:`~relayql.client.database.DatabaseClient`."""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ClientConfig(BaseModel):
    """Where and how to reach the remote query service.

    Example::

        config = ClientConfig(
            base_url="https://api.example.com/db/",
            timeout=10,
            headers={"Authorization": "Bearer <token>"},
        )
        config.base_url  # "https://api.example.com/db"

    Attributes:
        base_url: Service root.  A trailing slash is stripped.
        timeout: Per-request timeout in seconds.
        headers: Headers sent with every request.
        verify: Verify TLS certificates.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    base_url: str
    timeout: float = Field(default=30.0, gt=0)
    headers: dict[str, str] = Field(default_factory=dict)
    verify: bool = True

    @field_validator("base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        value = value.strip().rstrip("/")
        if not value:
            raise ValueError("base_url must not be empty")
        return value

    def url_for(self, *parts: object) -> str:
        """Join ``parts`` onto :attr:`base_url` as path segments."""
        return "/".join([self.base_url, *(str(p).strip("/") for p in parts)])
