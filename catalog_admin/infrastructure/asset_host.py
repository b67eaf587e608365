"""HTTP client for the external asset host.

Uploads files through the host's signed upload API and returns the
durable ``secure_url`` it assigns.
"""

import hashlib
import time
from dataclasses import dataclass
from typing import Any

import httpx
import structlog

from catalog_admin.infrastructure.config import Settings

logger = structlog.get_logger()


# ============================================================================
# Asset Host Configuration
# ============================================================================


@dataclass(frozen=True)
class AssetHostConfig:
    """Credentials and endpoint for the asset host."""

    base_url: str
    cloud_name: str
    api_key: str
    api_secret: str
    timeout: float = 30.0

    @classmethod
    def from_settings(cls, settings: Settings) -> "AssetHostConfig":
        """Create from application settings."""
        return cls(
            base_url=settings.asset_host_url,
            cloud_name=settings.asset_cloud_name,
            api_key=settings.asset_api_key,
            api_secret=settings.asset_api_secret,
            timeout=settings.http_timeout,
        )

    def upload_path(self, resource_type: str) -> str:
        """Upload path for a resource type (image, raw, auto)."""
        return f"/v1_1/{self.cloud_name}/{resource_type}/upload"


class AssetHostError(Exception):
    """Error from an asset host call."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)


def sign_params(params: dict[str, Any], api_secret: str) -> str:
    """Sign upload parameters.

    Parameters are sorted by name, joined as ``key=value`` pairs with
    ``&``, suffixed with the secret and hashed with SHA-1.

    Args:
        params: Parameters to sign (api_key, file and resource_type excluded).
        api_secret: Account secret.

    Returns:
        Hex digest signature.
    """
    to_sign = "&".join(
        f"{key}={params[key]}" for key in sorted(params) if params[key] not in (None, "")
    )
    return hashlib.sha1(f"{to_sign}{api_secret}".encode("utf-8")).hexdigest()


# ============================================================================
# Asset Host HTTP Client
# ============================================================================


class AssetHostClient:
    """HTTP client for the asset host upload API.

    The underlying ``httpx.AsyncClient`` is created lazily and must be
    closed with ``close()`` when the application shuts down.
    """

    def __init__(
        self,
        config: AssetHostConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize asset host client.

        Args:
            config: Asset host configuration.
            transport: Optional transport (tests inject a mock here).
        """
        self.config = config
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.config.base_url,
                timeout=self.config.timeout,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def upload(
        self,
        content: bytes,
        filename: str,
        folder: str,
        resource_type: str = "auto",
        content_type: str | None = None,
    ) -> str:
        """Upload a file and return its secure URL.

        Args:
            content: File bytes.
            filename: Name sent with the multipart part.
            folder: Destination folder on the host.
            resource_type: "image", "raw" or "auto".
            content_type: Optional MIME type of the file.

        Returns:
            The asset's secure URL.

        Raises:
            AssetHostError: On transport error, non-2xx status, or a
                response without ``secure_url``.
        """
        params: dict[str, Any] = {
            "folder": folder,
            "timestamp": int(time.time()),
        }
        data = {
            **{key: str(value) for key, value in params.items()},
            "api_key": self.config.api_key,
            "signature": sign_params(params, self.config.api_secret),
        }
        files = {
            "file": (filename, content, content_type or "application/octet-stream"),
        }

        try:
            client = await self._get_client()
            response = await client.post(
                self.config.upload_path(resource_type),
                data=data,
                files=files,
            )
        except httpx.HTTPError as e:
            raise AssetHostError(f"Upload request failed: {e}") from e

        if response.status_code >= 400:
            raise AssetHostError(
                f"Upload rejected: {response.text}",
                response.status_code,
            )

        try:
            body = response.json()
        except ValueError as e:
            raise AssetHostError("Upload response is not JSON", response.status_code) from e

        secure_url = body.get("secure_url")
        if not secure_url:
            raise AssetHostError("Upload response has no secure_url", response.status_code)

        logger.info(
            "Asset uploaded",
            folder=folder,
            resource_type=resource_type,
            secure_url=secure_url,
        )
        return secure_url
