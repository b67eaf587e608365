"""FastAPI dependencies.

Builds per-request services from the database and the asset pipeline
owned by ``app.state``.
"""

from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from catalog_admin.application.asset_ingestion import AssetIngestionService
from catalog_admin.application.csv_import import CsvImportService
from catalog_admin.catalog.service import ProductService
from catalog_admin.catalog.tree import CategoryTreeManager
from catalog_admin.infrastructure.config import Settings
from catalog_admin.infrastructure.database import get_session

SessionDep = Annotated[AsyncSession, Depends(get_session)]


def get_settings(request: Request) -> Settings:
    """Settings the application was created with."""
    return request.app.state.settings


def get_asset_service(request: Request) -> AssetIngestionService:
    """Asset ingestion pipeline created at startup."""
    return request.app.state.asset_service


def get_tree_manager(session: SessionDep) -> CategoryTreeManager:
    """Category tree manager bound to the request session."""
    return CategoryTreeManager(session)


def get_product_service(session: SessionDep) -> ProductService:
    """Product service bound to the request session."""
    return ProductService(session)


def get_import_service(
    session: SessionDep,
    assets: Annotated[AssetIngestionService, Depends(get_asset_service)],
) -> CsvImportService:
    """CSV import pipeline bound to the request session."""
    return CsvImportService(session, assets)
