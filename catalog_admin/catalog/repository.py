"""Repositories for catalog database operations.

Provides CRUD operations for taxonomy nodes and products. Writes only
flush; committing is left to the caller's unit of work.
"""

from collections.abc import Sequence
from typing import TypeVar

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from catalog_admin.catalog.models import Brand, Category, Product, SubCategory
from catalog_admin.domain.exceptions import PersistenceError

TaxonomyNode = TypeVar("TaxonomyNode", Category, Brand, SubCategory)


class _BaseRepository:
    """Shared session handling."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session.

        Args:
            session: Async SQLAlchemy session.
        """
        self.session = session

    async def _flush(self, operation: str) -> None:
        """Flush pending writes, translating driver errors."""
        try:
            await self.session.flush()
        except SQLAlchemyError as e:
            raise PersistenceError(operation, str(e)) from e


class TaxonomyRepository(_BaseRepository):
    """Repository for Category, Brand and SubCategory records.

    Example usage:
        async with database.session_factory() as session:
            repo = TaxonomyRepository(session)
            categories = await repo.list_categories()
    """

    async def add(self, *nodes: Category | Brand | SubCategory) -> None:
        """Stage nodes for insert and flush.

        Args:
            nodes: New taxonomy records.
        """
        self.session.add_all(nodes)
        await self._flush("save taxonomy node")

    async def save(self) -> None:
        """Flush modifications to already-loaded nodes."""
        await self._flush("update taxonomy node")

    async def get(self, model: type[TaxonomyNode], node_id: str) -> TaxonomyNode | None:
        """Get a node by ID.

        Args:
            model: Category, Brand or SubCategory.
            node_id: Node ID.

        Returns:
            Node if found, None otherwise.
        """
        return await self.session.get(model, node_id)

    async def get_many(
        self,
        model: type[TaxonomyNode],
        node_ids: Sequence[str],
    ) -> dict[str, TaxonomyNode]:
        """Get several nodes of one kind keyed by ID.

        Args:
            model: Category, Brand or SubCategory.
            node_ids: IDs to load; unknown IDs are absent from the result.

        Returns:
            Mapping of ID to node.
        """
        if not node_ids:
            return {}
        result = await self.session.execute(select(model).where(model.id.in_(list(node_ids))))
        return {node.id: node for node in result.scalars().all()}

    async def find_by_name(
        self,
        model: type[TaxonomyNode],
        name: str,
    ) -> TaxonomyNode | None:
        """Find the first node whose name matches, ignoring case.

        Args:
            model: Category, Brand or SubCategory.
            name: Name to match exactly (case-insensitive).

        Returns:
            Oldest matching node, or None.
        """
        query = (
            select(model)
            .where(func.lower(model.name) == name.strip().lower())
            .order_by(model.created_at)
            .limit(1)
        )
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def list_categories(self) -> Sequence[Category]:
        """List all categories in creation order."""
        result = await self.session.execute(
            select(Category).order_by(Category.created_at, Category.id)
        )
        return result.scalars().all()

    async def list_all(self, model: type[TaxonomyNode]) -> Sequence[TaxonomyNode]:
        """List every node of one kind."""
        result = await self.session.execute(select(model))
        return result.scalars().all()

    async def categories_containing(self, brand_id: str) -> list[Category]:
        """Categories whose child list holds a brand ID."""
        return [c for c in await self.list_categories() if brand_id in (c.subcategories or [])]

    async def brands_containing(self, sub_category_id: str) -> list[Brand]:
        """Brands whose child list holds a sub-category ID."""
        return [
            b
            for b in await self.list_all(Brand)
            if sub_category_id in (b.sub_sub_categories or [])
        ]

    async def delete(self, *nodes: Category | Brand | SubCategory) -> None:
        """Delete nodes and flush."""
        for node in nodes:
            await self.session.delete(node)
        await self._flush("delete taxonomy node")


class ProductRepository(_BaseRepository):
    """Repository for Product database operations.

    Example usage:
        async with database.session_factory() as session:
            repo = ProductRepository(session)
            products = await repo.find_all(limit=10, offset=10)
    """

    async def save(self, product: Product) -> Product:
        """Save a product to database.

        Args:
            product: Product to save.

        Returns:
            Saved product.
        """
        self.session.add(product)
        await self._flush("save product")
        return product

    async def get_by_id(self, product_id: str) -> Product | None:
        """Get product by ID.

        Args:
            product_id: Product ID.

        Returns:
            Product if found, None otherwise.
        """
        return await self.session.get(Product, product_id)

    async def get_by_name(self, name: str) -> Product | None:
        """Get the first product with an exact name.

        Args:
            name: Product name.

        Returns:
            Product if found, None otherwise.
        """
        query = select(Product).where(Product.name == name).order_by(Product.created_at).limit(1)
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def find_all(self, limit: int = 10, offset: int = 0) -> Sequence[Product]:
        """Find products in creation order with pagination.

        Args:
            limit: Maximum results.
            offset: Result offset for pagination.

        Returns:
            Sequence of products.
        """
        query = (
            select(Product)
            .order_by(Product.created_at, Product.id)
            .limit(limit)
            .offset(offset)
        )
        result = await self.session.execute(query)
        return result.scalars().all()

    async def count(self) -> int:
        """Count all products."""
        result = await self.session.execute(select(func.count(Product.id)))
        return result.scalar_one()

    async def get_names(self) -> set[str]:
        """Get the set of existing product names."""
        result = await self.session.execute(select(Product.name))
        return set(result.scalars().all())

    async def delete(self, product: Product) -> None:
        """Delete a product and flush."""
        await self.session.delete(product)
        await self._flush("delete product")
