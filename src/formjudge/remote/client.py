"""Remote uniqueness client.

Thin request/response shim between the uniqueness validator and the
uniqueness endpoint. The record type is sent exactly as derived from the
field's wire name; alias resolution happens on the server.
"""

import logging
from typing import Any

import httpx

from formjudge.config import DEFAULT_MOUNT_PATH, JudgeConfig, normalize_mount_path
from formjudge.errors import TransportError

logger = logging.getLogger(__name__)


class UniquenessClient:
    """Queries the uniqueness endpoint over HTTP.

    Example:
        async with UniquenessClient.from_config(JudgeConfig.from_env()) as client:
            messages = await client.fetch_messages("User", "email", "a@example.com")
    """

    def __init__(self, http: httpx.AsyncClient, mount_path: str = DEFAULT_MOUNT_PATH):
        self.http = http
        self.mount_path = normalize_mount_path(mount_path)

    @classmethod
    def from_config(cls, config: JudgeConfig, **client_kwargs: Any) -> "UniquenessClient":
        """Create a client with its own httpx.AsyncClient for config.base_url."""
        http = httpx.AsyncClient(base_url=config.base_url, **client_kwargs)
        return cls(http, mount_path=config.mount_path)

    @property
    def url(self) -> str:
        return f"{self.mount_path}/validate"

    async def fetch_messages(
        self,
        record_type: str,
        attribute: str,
        value: str,
        original_value: str | None = None,
    ) -> list[str]:
        """Ask the endpoint whether value is unique.

        Returns:
            Error messages; empty when the value is unique

        Raises:
            TransportError: On network failure, a non-200 response, or a body
                that is not a JSON array of strings
        """
        params = {
            "klass": record_type,
            "attribute": attribute,
            "value": value,
            "kind": "uniqueness",
        }
        if original_value is not None:
            params["original_value"] = original_value

        try:
            response = await self.http.get(self.url, params=params)
        except httpx.HTTPError as e:
            raise TransportError(f"Uniqueness request failed: {e}") from e

        if response.status_code != 200:
            raise TransportError(
                f"Uniqueness request returned {response.status_code}",
                status=response.status_code,
                detail=response.text,
            )

        try:
            body = response.json()
        except ValueError as e:
            raise TransportError(
                "Uniqueness response is not JSON", status=response.status_code, detail=response.text
            ) from e

        if not isinstance(body, list) or not all(isinstance(m, str) for m in body):
            raise TransportError(
                "Uniqueness response is not an array of strings",
                status=response.status_code,
                detail=response.text,
            )

        logger.debug("Uniqueness %s#%s=%r -> %s", record_type, attribute, value, body)
        return body

    async def aclose(self) -> None:
        await self.http.aclose()

    async def __aenter__(self) -> "UniquenessClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()
