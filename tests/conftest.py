"""Shared fixtures.

Remote hosts are served by an ``httpx.MockTransport``:

- ``assets.test``  asset host; every upload succeeds
- ``images.test``  image source; ``/missing.png`` is 404, ``/broken.png`` is not an image
- ``docs.test``    document source
- ``down.test``    unreachable
- ``drive.google.com``  serves an image for any file id
"""

import io
from collections.abc import AsyncGenerator, Iterator

import httpx
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from PIL import Image
from sqlalchemy.ext.asyncio import AsyncSession

from catalog_admin.api.dependencies import get_asset_service
from catalog_admin.application.asset_ingestion import AssetIngestionService
from catalog_admin.infrastructure.asset_host import AssetHostClient, AssetHostConfig
from catalog_admin.infrastructure.config import Settings
from catalog_admin.infrastructure.database import Database
from catalog_admin.main import create_app

ASSET_HOST = "https://assets.test"


def make_png(width: int = 40, height: int = 30, mode: str = "RGBA") -> bytes:
    """Encode a small solid image as PNG."""
    color = (200, 30, 30, 128) if mode == "RGBA" else (200, 30, 30)
    output = io.BytesIO()
    Image.new(mode, (width, height), color).save(output, format="PNG")
    return output.getvalue()


class FakeRemote:
    """Request handler for the mocked hosts; records every upload."""

    def __init__(self) -> None:
        self.uploads: list[dict] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        host = request.url.host

        if host == "assets.test":
            body = request.content
            folder = _form_value(body, "folder")
            resource_type = request.url.path.split("/")[-2]
            number = len(self.uploads) + 1
            self.uploads.append(
                {
                    "folder": folder,
                    "resource_type": resource_type,
                    "signed": b'name="signature"' in body,
                    "body": body,
                }
            )
            return httpx.Response(
                200,
                json={"secure_url": f"{ASSET_HOST}/{folder}/asset-{number}"},
            )

        if host == "down.test":
            raise httpx.ConnectError("connection refused", request=request)

        if host == "images.test":
            if request.url.path == "/missing.png":
                return httpx.Response(404)
            if request.url.path == "/broken.png":
                return httpx.Response(200, content=b"definitely not an image")
            return httpx.Response(200, content=make_png())

        if host == "drive.google.com":
            return httpx.Response(200, content=make_png())

        if host == "docs.test":
            return httpx.Response(200, content=b"%PDF-1.4 sheet")

        return httpx.Response(404)

    def folders(self) -> list[str]:
        return [u["folder"] for u in self.uploads]


def _form_value(body: bytes, name: str) -> str | None:
    """Pull a plain field value out of a multipart body."""
    marker = f'name="{name}"\r\n\r\n'.encode()
    start = body.find(marker)
    if start < 0:
        return None
    start += len(marker)
    end = body.find(b"\r\n", start)
    return body[start:end].decode()


@pytest.fixture
def settings() -> Settings:
    """Settings for an in-memory database and the mocked asset host."""
    return Settings(
        _env_file=None,
        database_url="sqlite+aiosqlite://",
        auto_create_tables=True,
        admin_api_key=None,
        asset_host_url=ASSET_HOST,
        asset_cloud_name="demo",
        asset_api_key="key-123",
        asset_api_secret="secret-456",
        asset_folder="catalog",
        load_csv_on_startup=False,
    )


@pytest.fixture
def remote() -> FakeRemote:
    """Mocked remote hosts."""
    return FakeRemote()


@pytest.fixture
def asset_service(settings: Settings, remote: FakeRemote) -> AssetIngestionService:
    """Ingestion pipeline wired to the mocked hosts."""
    transport = httpx.MockTransport(remote)
    host = AssetHostClient(AssetHostConfig.from_settings(settings), transport=transport)
    return AssetIngestionService(settings, host, transport=transport)


@pytest.fixture
def app(settings: Settings, asset_service: AssetIngestionService) -> FastAPI:
    """Application using the mocked asset pipeline."""
    application = create_app(settings)
    application.dependency_overrides[get_asset_service] = lambda: asset_service
    return application


@pytest.fixture
def client(app: FastAPI) -> Iterator[TestClient]:
    """Test client with the application lifespan running."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
async def database() -> AsyncGenerator[Database, None]:
    """Fresh in-memory database with tables created."""
    db = Database("sqlite+aiosqlite://")
    await db.create_tables()
    yield db
    await db.dispose()


@pytest.fixture
async def session(database: Database) -> AsyncGenerator[AsyncSession, None]:
    """Session on the in-memory database."""
    async with database.session_factory() as db_session:
        yield db_session


class Seeder:
    """Creates taxonomy nodes and products through the API."""

    def __init__(self, client: TestClient) -> None:
        self.client = client

    def category(self, name: str) -> dict:
        response = self.client.post(
            "/api/add-category", json={"name": name, "isMainCategory": True}
        )
        assert response.status_code == 200, response.text
        return response.json()["category"]

    def brand(self, name: str, category_id: str) -> dict:
        return self._child(name, "brand", category_id)

    def subcategory(self, name: str, brand_id: str) -> dict:
        return self._child(name, "subcategory", brand_id)

    def _child(self, name: str, kind: str, parent_id: str) -> dict:
        response = self.client.post(
            "/api/add-category",
            json={"name": name, "categoryType": kind, "parentCategory": parent_id},
        )
        assert response.status_code == 200, response.text
        return response.json()["category"]

    def product(self, name: str, category_id: str, **fields: str) -> dict:
        response = self.client.post(
            "/api/add-product", data={"name": name, "category": category_id, **fields}
        )
        assert response.status_code == 200, response.text
        return response.json()["product"]


@pytest.fixture
def seed(client: TestClient) -> Seeder:
    """API-level data builder."""
    return Seeder(client)


@pytest.fixture
def png():
    """Factory for PNG bytes of a given size and mode."""
    return make_png
