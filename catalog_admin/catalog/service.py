"""Catalog service for product operations.

High-level service that combines repository operations with
business logic for product management.
"""

from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from catalog_admin.catalog.models import Brand, Category, Product, SubCategory
from catalog_admin.catalog.repository import ProductRepository, TaxonomyRepository
from catalog_admin.domain.exceptions import NotFoundError, ValidationError

T = TypeVar("T")

logger = structlog.get_logger()


@dataclass
class PaginationParams:
    """Pagination parameters.

    Attributes:
        page: Page number (1-indexed).
        page_size: Items per page.
    """

    page: int = 1
    page_size: int = 10

    @property
    def offset(self) -> int:
        """Calculate offset from page number."""
        return (self.page - 1) * self.page_size

    @property
    def limit(self) -> int:
        """Get limit (alias for page_size)."""
        return self.page_size


@dataclass
class PaginatedResult(Generic[T]):
    """Paginated result container.

    Attributes:
        items: List of items.
        total: Total count.
        page: Current page.
        page_size: Items per page.
        total_pages: Total number of pages.
    """

    items: list[T]
    total: int
    page: int
    page_size: int

    @property
    def total_pages(self) -> int:
        """Calculate total pages."""
        return (self.total + self.page_size - 1) // self.page_size

    @property
    def has_next(self) -> bool:
        """Check if there's a next page."""
        return self.page < self.total_pages


@dataclass
class AssetRef:
    """A named document stored on the asset host."""

    file_name: str | None
    url: str

    def to_dict(self) -> dict[str, Any]:
        """Convert to the stored ``{file_name, url}`` shape."""
        return {"file_name": self.file_name, "url": self.url}


@dataclass
class ProductInput:
    """Field values for creating or updating a product.

    For updates, ``None`` means "leave unchanged". An empty string for
    brand, sub-category or specifications clears the value.
    """

    name: str | None = None
    category: str | None = None
    brand: str | None = None
    sub_category: str | None = None
    specifications: str | None = None
    main_image_url: str | None = None
    secondary_image_urls: list[str] | None = None
    technical_sheet: AssetRef | None = None
    manuals: list[AssetRef] | None = None


@dataclass
class ProductDetail:
    """A product with its taxonomy references resolved."""

    product: Product
    category: Category | None = None
    brand: Brand | None = None
    sub_category: SubCategory | None = None
    brand_children: list[SubCategory] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Flatten into the detail response shape."""
        data = self.product.to_dict()
        data["category"] = (
            {"id": self.category.id, "name": self.category.name} if self.category else None
        )
        data["brand"] = (
            {
                "id": self.brand.id,
                "name": self.brand.name,
                "subSubCategories": [s.to_dict() for s in self.brand_children],
            }
            if self.brand
            else None
        )
        data["subCategory"] = self.sub_category.to_dict() if self.sub_category else None
        return data


def _optional(value: str | None) -> str | None:
    """Strip a form value, mapping blank to None."""
    if value is None:
        return None
    return value.strip() or None


class ProductService:
    """Service for product operations.

    Example usage:
        async with database.session_factory() as session:
            service = ProductService(session)
            page = await service.list_products(PaginationParams(page=2, page_size=10))
    """

    def __init__(self, session: AsyncSession) -> None:
        """Initialize service with database session.

        Args:
            session: Async SQLAlchemy session.
        """
        self.session = session
        self.repository = ProductRepository(session)
        self.taxonomy = TaxonomyRepository(session)

    async def list_products(self, pagination: PaginationParams) -> PaginatedResult[Product]:
        """List products with pagination.

        Args:
            pagination: Pagination parameters.

        Returns:
            Paginated product results.
        """
        products = await self.repository.find_all(
            limit=pagination.limit,
            offset=pagination.offset,
        )
        total = await self.repository.count()

        return PaginatedResult(
            items=list(products),
            total=total,
            page=pagination.page,
            page_size=pagination.page_size,
        )

    async def get_product(self, product_id: str) -> Product:
        """Get product by ID.

        Raises:
            NotFoundError: If the product does not exist.
        """
        product = await self.repository.get_by_id(product_id)
        if product is None:
            raise NotFoundError("Product", product_id)
        return product

    async def get_product_detail(self, product_id: str) -> ProductDetail:
        """Get a product with category, brand and sub-category resolved.

        References that no longer resolve come back as None.

        Raises:
            NotFoundError: If the product does not exist.
        """
        product = await self.get_product(product_id)
        detail = ProductDetail(product=product)

        if product.category_id:
            detail.category = await self.taxonomy.get(Category, product.category_id)
        if product.brand_id:
            detail.brand = await self.taxonomy.get(Brand, product.brand_id)
        if product.sub_category_id:
            detail.sub_category = await self.taxonomy.get(SubCategory, product.sub_category_id)

        if detail.brand is not None:
            children = await self.taxonomy.get_many(
                SubCategory, detail.brand.sub_sub_categories or []
            )
            detail.brand_children = [
                children[sid] for sid in (detail.brand.sub_sub_categories or []) if sid in children
            ]

        return detail

    async def create_product(self, data: ProductInput) -> Product:
        """Create a product.

        Args:
            data: Product fields; name and category are required.

        Returns:
            The saved product.

        Raises:
            ValidationError: Missing name or category.
        """
        name = _optional(data.name)
        if not name:
            raise ValidationError("Product name is required", field="name")
        category = _optional(data.category)
        if not category:
            raise ValidationError("Product category is required", field="category")

        product = Product(
            name=name,
            category_id=category,
            brand_id=_optional(data.brand),
            sub_category_id=_optional(data.sub_category),
            specifications=data.specifications,
            main_image_url=data.main_image_url,
            secondary_image_urls=list(data.secondary_image_urls or []),
            technical_sheet=data.technical_sheet.to_dict() if data.technical_sheet else None,
            manuals=[m.to_dict() for m in data.manuals or []],
        )
        await self.repository.save(product)

        logger.info("Product created", product_id=product.id, name=name)
        return product

    async def update_product(self, product_id: str, data: ProductInput) -> Product:
        """Apply a partial update to a product.

        Args:
            product_id: Product to update.
            data: Supplied fields; ``None`` fields are left unchanged.

        Returns:
            The updated product.

        Raises:
            NotFoundError: If the product does not exist.
            ValidationError: If a blank name or category is supplied.
        """
        product = await self.get_product(product_id)

        if data.name is not None:
            name = _optional(data.name)
            if not name:
                raise ValidationError("Product name is required", field="name")
            product.name = name
        if data.category is not None:
            category = _optional(data.category)
            if not category:
                raise ValidationError("Product category is required", field="category")
            product.category_id = category
        if data.brand is not None:
            product.brand_id = _optional(data.brand)
        if data.sub_category is not None:
            product.sub_category_id = _optional(data.sub_category)
        if data.specifications is not None:
            product.specifications = data.specifications or None

        if data.main_image_url is not None or data.secondary_image_urls is not None:
            product.main_image_url = data.main_image_url
            product.secondary_image_urls = list(data.secondary_image_urls or [])
        if data.technical_sheet is not None:
            product.technical_sheet = data.technical_sheet.to_dict()
        if data.manuals is not None:
            product.manuals = [m.to_dict() for m in data.manuals]

        await self.repository.save(product)

        logger.info("Product updated", product_id=product.id)
        return product

    async def delete_product(self, product_id: str) -> Product:
        """Delete a product by ID.

        Raises:
            NotFoundError: If the product does not exist.
        """
        product = await self.get_product(product_id)
        await self.repository.delete(product)
        logger.info("Product deleted", product_id=product_id)
        return product

    async def delete_product_by_name(self, name: str) -> Product:
        """Delete the first product with an exact (stripped) name.

        Raises:
            ValidationError: Blank name.
            NotFoundError: No product has that name.
        """
        cleaned = _optional(name)
        if not cleaned:
            raise ValidationError("Product name is required", field="name")
        product = await self.repository.get_by_name(cleaned)
        if product is None:
            raise NotFoundError("Product", cleaned)
        await self.repository.delete(product)
        logger.info("Product deleted", product_id=product.id, name=cleaned)
        return product
