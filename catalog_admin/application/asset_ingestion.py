"""Asset ingestion pipeline.

Turns a remote URL or an uploaded file into a durable URL on the asset
host. Every failure is logged and reported as ``None``; callers treat
``None`` as "asset omitted".
"""

import io
import re
from dataclasses import dataclass
from pathlib import PurePosixPath
from urllib.parse import unquote, urlparse

import httpx
import structlog
from PIL import Image, UnidentifiedImageError

from catalog_admin.catalog.service import AssetRef
from catalog_admin.domain.exceptions import AssetIngestionError
from catalog_admin.infrastructure.asset_host import AssetHostClient, AssetHostError
from catalog_admin.infrastructure.config import Settings

logger = structlog.get_logger()

DRIVE_FILE_ID = re.compile(r"/d/([a-zA-Z0-9_-]+)/")
DRIVE_DOWNLOAD_URL = "https://drive.google.com/uc?export=download&id={file_id}"


# ============================================================================
# URL helpers
# ============================================================================


def convert_drive_url(url: str) -> str:
    """Rewrite a Drive share link into its direct-download form.

    Args:
        url: Any URL.

    Returns:
        ``https://drive.google.com/uc?export=download&id=<id>`` when the URL
        contains a ``/d/<id>/`` segment, otherwise the URL unchanged.
    """
    match = DRIVE_FILE_ID.search(url)
    if match:
        return DRIVE_DOWNLOAD_URL.format(file_id=match.group(1))
    return url


def is_valid_url(url: str | None) -> bool:
    """Check that a value is an absolute http(s) URL with a host."""
    if not url:
        return False
    try:
        parsed = urlparse(url.strip())
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def filename_from_url(url: str, default: str = "file") -> str:
    """Last path segment of a URL, or ``default`` when there is none."""
    name = PurePosixPath(unquote(urlparse(url).path)).name
    return name or default


# ============================================================================
# Image processing
# ============================================================================


def normalize_image(content: bytes, max_width: int = 1920, quality: int = 80) -> bytes:
    """Shrink, flatten and re-encode an image as JPEG.

    Images wider than ``max_width`` are scaled down keeping their aspect
    ratio; smaller images keep their size. Transparency is flattened onto
    a white background.

    Args:
        content: Encoded image bytes in any format Pillow reads.
        max_width: Maximum output width in pixels.
        quality: JPEG quality (1-95).

    Returns:
        JPEG bytes.

    Raises:
        AssetIngestionError: If the bytes are not a readable image.
    """
    try:
        with Image.open(io.BytesIO(content)) as img:
            img.load()
            if img.width > max_width:
                height = max(1, round(img.height * max_width / img.width))
                img = img.resize((max_width, height), Image.Resampling.LANCZOS)

            if img.mode in ("RGBA", "LA") or (img.mode == "P" and "transparency" in img.info):
                rgba = img.convert("RGBA")
                background = Image.new("RGB", rgba.size, (255, 255, 255))
                background.paste(rgba, mask=rgba.getchannel("A"))
                img = background
            elif img.mode != "RGB":
                img = img.convert("RGB")

            output = io.BytesIO()
            img.save(output, format="JPEG", quality=quality, optimize=True)
            return output.getvalue()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
        raise AssetIngestionError("image", f"cannot decode image: {e}") from e


# ============================================================================
# Pipeline
# ============================================================================


@dataclass
class UploadedFile:
    """A file received in a multipart request."""

    filename: str
    content: bytes
    content_type: str | None = None


@dataclass
class ProductAssets:
    """Asset URLs produced for one product.

    ``None`` list fields mean "nothing was supplied", as opposed to an
    empty list meaning "supplied but nothing ingested".
    """

    main_image_url: str | None = None
    secondary_image_urls: list[str] | None = None
    technical_sheet: AssetRef | None = None
    manuals: list[AssetRef] | None = None


class AssetIngestionService:
    """Fetch, transform and upload assets.

    Example usage:
        service = AssetIngestionService(settings, AssetHostClient(config))
        url = await service.ingest_image_url("https://example.com/a.png")
        await service.close()
    """

    def __init__(
        self,
        settings: Settings,
        host: AssetHostClient,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the pipeline.

        Args:
            settings: Folders, image bounds and timeouts.
            host: Asset host client used for uploads.
            transport: Optional transport for remote fetches (tests).
        """
        self.settings = settings
        self.host = host
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the download client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.settings.http_timeout,
                follow_redirects=True,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the download client and the asset host client."""
        if self._client:
            await self._client.aclose()
            self._client = None
        await self.host.close()

    async def _fetch(self, url: str) -> bytes:
        """Download a URL as bytes.

        Raises:
            AssetIngestionError: On transport error or non-2xx status.
        """
        try:
            client = await self._get_client()
            response = await client.get(url)
        except httpx.HTTPError as e:
            raise AssetIngestionError(url, f"download failed: {e}") from e
        if response.status_code >= 400:
            raise AssetIngestionError(url, f"download returned HTTP {response.status_code}")
        return response.content

    def _resolve(self, url: str | None) -> str:
        """Apply the Drive rewrite and validate the URL."""
        source = (url or "").strip()
        direct = convert_drive_url(source)
        if not is_valid_url(direct):
            raise AssetIngestionError(source or "<empty>", "not a valid URL")
        return direct

    async def ingest_image_url(self, url: str | None, folder: str | None = None) -> str | None:
        """Download an image, normalize it and upload it.

        Args:
            url: Source URL (Drive share links are rewritten).
            folder: Destination folder; defaults to the asset root folder.

        Returns:
            Asset host URL, or None on any failure.
        """
        try:
            direct = self._resolve(url)
            content = await self._fetch(direct)
            jpeg = normalize_image(
                content,
                max_width=self.settings.image_max_width,
                quality=self.settings.image_quality,
            )
            stem = PurePosixPath(filename_from_url(direct, "image")).stem or "image"
            return await self.host.upload(
                jpeg,
                filename=f"{stem}.jpg",
                folder=folder or self.settings.asset_folder,
                resource_type="image",
                content_type="image/jpeg",
            )
        except (AssetIngestionError, AssetHostError) as e:
            logger.warning("Image ingestion failed", url=url, error=str(e))
            return None

    async def ingest_document_url(self, url: str | None, folder: str | None = None) -> str | None:
        """Download a document and upload it unchanged.

        Args:
            url: Source URL (Drive share links are rewritten).
            folder: Destination folder; defaults to the documents folder.

        Returns:
            Asset host URL, or None on any failure.
        """
        try:
            direct = self._resolve(url)
            content = await self._fetch(direct)
            return await self.host.upload(
                content,
                filename=filename_from_url(direct, "document"),
                folder=folder or self.settings.documents_folder,
                resource_type="raw",
            )
        except (AssetIngestionError, AssetHostError) as e:
            logger.warning("Document ingestion failed", url=url, error=str(e))
            return None

    async def ingest_upload(self, upload: UploadedFile, folder: str | None = None) -> str | None:
        """Forward a received file to the asset host as-is.

        Args:
            upload: File from a multipart request.
            folder: Destination folder; defaults to the asset root folder.

        Returns:
            Asset host URL, or None on any failure.
        """
        if not upload.content:
            logger.warning("Skipping empty upload", filename=upload.filename)
            return None
        try:
            return await self.host.upload(
                upload.content,
                filename=upload.filename or "upload",
                folder=folder or self.settings.asset_folder,
                resource_type="auto",
                content_type=upload.content_type,
            )
        except AssetHostError as e:
            logger.warning("Upload forwarding failed", filename=upload.filename, error=str(e))
            return None

    async def ingest_product_files(
        self,
        images: list[UploadedFile] | None = None,
        technical_sheet: UploadedFile | None = None,
        manuals: list[UploadedFile] | None = None,
    ) -> ProductAssets:
        """Upload the files of a product form.

        The first image becomes the main image, the rest secondary images.
        Files that fail to upload are omitted.
        """
        assets = ProductAssets()

        if images:
            urls = [await self.ingest_upload(image) for image in images]
            assets.main_image_url = urls[0]
            assets.secondary_image_urls = [u for u in urls[1:] if u]

        if technical_sheet is not None:
            url = await self.ingest_upload(technical_sheet, self.settings.documents_folder)
            if url:
                assets.technical_sheet = AssetRef(file_name=technical_sheet.filename, url=url)

        if manuals:
            assets.manuals = []
            for manual in manuals:
                url = await self.ingest_upload(manual, self.settings.manuals_folder)
                if url:
                    assets.manuals.append(AssetRef(file_name=manual.filename, url=url))

        return assets
