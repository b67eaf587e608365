"""Product Catalog.

Entity store, category tree maintenance and product operations.
"""

from catalog_admin.catalog.models import Brand, Category, Product, SubCategory
from catalog_admin.catalog.repository import ProductRepository, TaxonomyRepository
from catalog_admin.catalog.service import (
    AssetRef,
    PaginatedResult,
    PaginationParams,
    ProductDetail,
    ProductInput,
    ProductService,
)
from catalog_admin.catalog.tree import CategoryTreeManager, DeleteResult, NodeKind

__all__ = [
    # Models
    "Brand",
    "Category",
    "Product",
    "SubCategory",
    # Repositories
    "ProductRepository",
    "TaxonomyRepository",
    # Tree
    "CategoryTreeManager",
    "DeleteResult",
    "NodeKind",
    # Service
    "AssetRef",
    "PaginatedResult",
    "PaginationParams",
    "ProductDetail",
    "ProductInput",
    "ProductService",
]
