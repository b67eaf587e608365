"""API layer module.

Contains FastAPI routers and request/response schemas.
"""

from catalog_admin.api.categories import router as categories_router
from catalog_admin.api.health import router as health_router
from catalog_admin.api.imports import router as imports_router
from catalog_admin.api.products import router as products_router

__all__ = [
    "categories_router",
    "health_router",
    "imports_router",
    "products_router",
]
