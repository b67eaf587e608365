"""Category tree maintenance.

The taxonomy has three levels:

    Category (main)
      └── Brand
            └── SubCategory

Each parent keeps an ordered list of child ids. Creating, renaming and
deleting nodes keeps those lists consistent; every operation stages its
writes on one session so the caller commits them together.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from catalog_admin.catalog.models import Brand, Category, SubCategory
from catalog_admin.catalog.repository import TaxonomyRepository
from catalog_admin.domain.exceptions import NotFoundError, ValidationError

logger = structlog.get_logger()


class NodeKind(str, Enum):
    """Taxonomy level of a node."""

    MAIN = "main"
    BRAND = "brand"
    SUBCATEGORY = "subcategory"

    @property
    def model(self) -> type[Category] | type[Brand] | type[SubCategory]:
        """ORM model storing nodes of this kind."""
        return _MODELS[self]

    @property
    def label(self) -> str:
        """Human-readable entity name for error messages."""
        return _LABELS[self]


_MODELS = {
    NodeKind.MAIN: Category,
    NodeKind.BRAND: Brand,
    NodeKind.SUBCATEGORY: SubCategory,
}

_LABELS = {
    NodeKind.MAIN: "Category",
    NodeKind.BRAND: "Brand",
    NodeKind.SUBCATEGORY: "Sub-category",
}


@dataclass
class DeleteResult:
    """Counts of nodes removed (or that would be removed) by a delete.

    Attributes:
        categories: Main categories.
        brands: Brands.
        subcategories: Sub-categories.
        dry_run: Whether nothing was actually deleted.
    """

    categories: int = 0
    brands: int = 0
    subcategories: int = 0
    dry_run: bool = False

    @property
    def total(self) -> int:
        """Total number of nodes."""
        return self.categories + self.brands + self.subcategories

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "categories": self.categories,
            "brands": self.brands,
            "subcategories": self.subcategories,
            "dryRun": self.dry_run,
        }


def _push(ids: list[str] | None, node_id: str) -> list[str]:
    """Append an id unless already present; returns a new list."""
    current = list(ids or [])
    if node_id not in current:
        current.append(node_id)
    return current


def _pull(ids: list[str] | None, node_id: str) -> list[str]:
    """Remove every occurrence of an id; returns a new list."""
    return [i for i in (ids or []) if i != node_id]


def _clean_name(name: str | None) -> str:
    """Strip a node name, rejecting empty or whitespace-only values."""
    cleaned = (name or "").strip()
    if not cleaned:
        raise ValidationError("Category name is required", field="name")
    return cleaned


class CategoryTreeManager:
    """Create, rename, delete and list taxonomy nodes.

    Example usage:
        async with database.session_factory() as session:
            tree = CategoryTreeManager(session)
            tools = await tree.create_node("Tools", NodeKind.MAIN)
            acme = await tree.create_node("Acme", NodeKind.BRAND, parent_id=tools.id)
            await session.commit()
    """

    def __init__(self, session: AsyncSession) -> None:
        """Initialize manager with database session.

        Args:
            session: Async SQLAlchemy session.
        """
        self.session = session
        self.repository = TaxonomyRepository(session)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    async def get_node(
        self, kind: NodeKind, node_id: str
    ) -> Category | Brand | SubCategory:
        """Get one node.

        Raises:
            NotFoundError: If no node of that kind has the id.
        """
        node = await self.repository.get(kind.model, node_id)
        if node is None:
            raise NotFoundError(kind.label, node_id)
        return node

    async def _get_parent(self, kind: NodeKind, parent_id: str | None) -> Category | Brand:
        """Resolve the parent for a non-main node kind."""
        parent_kind = NodeKind.MAIN if kind is NodeKind.BRAND else NodeKind.BRAND
        if not parent_id:
            raise ValidationError(
                f"Parent {parent_kind.label.lower()} is required for a {kind.value}",
                field="parentCategory",
            )
        return await self.get_node(parent_kind, parent_id)

    # ------------------------------------------------------------------
    # CreateNode
    # ------------------------------------------------------------------

    async def create_node(
        self,
        name: str,
        kind: NodeKind,
        parent_id: str | None = None,
    ) -> Category | Brand | SubCategory:
        """Create a node and link it under its parent.

        Args:
            name: Node name (stripped; must not be blank).
            kind: Level of the new node.
            parent_id: Category id for a brand, brand id for a sub-category.

        Returns:
            The new node.

        Raises:
            ValidationError: Blank name or missing parent id.
            NotFoundError: Parent does not exist.
        """
        cleaned = _clean_name(name)

        if kind is NodeKind.MAIN:
            node = Category(name=cleaned, is_main_category=True, subcategories=[])
            await self.repository.add(node)
            logger.info("Category created", category_id=node.id, name=cleaned)
            return node

        parent = await self._get_parent(kind, parent_id)

        if kind is NodeKind.BRAND:
            child = Brand(name=cleaned, sub_sub_categories=[])
            await self.repository.add(child)
            parent.subcategories = _push(parent.subcategories, child.id)
        else:
            child = SubCategory(name=cleaned)
            await self.repository.add(child)
            parent.sub_sub_categories = _push(parent.sub_sub_categories, child.id)

        await self.repository.save()
        logger.info(
            "Taxonomy node created",
            kind=kind.value,
            node_id=child.id,
            parent_id=parent.id,
            name=cleaned,
        )
        return child

    # ------------------------------------------------------------------
    # RenameNode
    # ------------------------------------------------------------------

    async def rename_node(
        self,
        node_id: str,
        kind: NodeKind,
        new_name: str,
        parent_id: str | None = None,
    ) -> Category | Brand | SubCategory:
        """Rename a node; for non-main nodes also repair the parent link.

        The parent link repair re-pushes the node id into the parent's
        child list when it is missing, and is a no-op otherwise.

        Args:
            node_id: Node to rename.
            kind: Level of the node.
            new_name: New name (stripped; must not be blank).
            parent_id: Parent to verify the link against (non-main only).

        Returns:
            The renamed node.

        Raises:
            ValidationError: Blank name, or missing parent for a non-main node.
            NotFoundError: Node or parent does not exist.
        """
        cleaned = _clean_name(new_name)
        node = await self.get_node(kind, node_id)

        if kind is NodeKind.MAIN:
            node.name = cleaned
            node.is_main_category = True
            await self.repository.save()
            logger.info("Category renamed", category_id=node.id, name=cleaned)
            return node

        parent = await self._get_parent(kind, parent_id)
        node.name = cleaned

        if kind is NodeKind.BRAND:
            if node.id not in (parent.subcategories or []):
                logger.warning("Relinking brand to category", brand_id=node.id, category_id=parent.id)
                parent.subcategories = _push(parent.subcategories, node.id)
        else:
            if node.id not in (parent.sub_sub_categories or []):
                logger.warning("Relinking sub-category to brand", sub_category_id=node.id, brand_id=parent.id)
                parent.sub_sub_categories = _push(parent.sub_sub_categories, node.id)

        await self.repository.save()
        logger.info("Taxonomy node renamed", kind=kind.value, node_id=node.id, name=cleaned)
        return node

    # ------------------------------------------------------------------
    # DeleteNode
    # ------------------------------------------------------------------

    async def delete_node(
        self,
        node_id: str,
        kind: NodeKind,
        parent_id: str | None = None,
        dry_run: bool = False,
    ) -> DeleteResult:
        """Delete a node together with its descendants.

        The node id is pulled from every parent that lists it, so a stale
        or missing ``parent_id`` from the caller still leaves no dangling
        child id behind. Products referencing deleted nodes are left
        untouched.

        Args:
            node_id: Node to delete.
            kind: Level of the node.
            parent_id: Parent the caller knows about (logged only).
            dry_run: Only count what would be deleted.

        Returns:
            Counts per level.

        Raises:
            NotFoundError: Node does not exist.
        """
        node = await self.get_node(kind, node_id)
        result = DeleteResult(dry_run=dry_run)

        if kind is NodeKind.MAIN:
            brands = await self.repository.get_many(Brand, node.subcategories or [])
            sub_ids = [sid for b in brands.values() for sid in (b.sub_sub_categories or [])]
            subs = await self.repository.get_many(SubCategory, sub_ids)
            result.categories, result.brands, result.subcategories = 1, len(brands), len(subs)
            if not dry_run:
                for brand_id in brands:
                    for other in await self.repository.categories_containing(brand_id):
                        if other.id != node.id:
                            other.subcategories = _pull(other.subcategories, brand_id)
                await self.repository.delete(*subs.values(), *brands.values(), node)

        elif kind is NodeKind.BRAND:
            subs = await self.repository.get_many(SubCategory, node.sub_sub_categories or [])
            result.brands, result.subcategories = 1, len(subs)
            if not dry_run:
                for parent in await self.repository.categories_containing(node.id):
                    parent.subcategories = _pull(parent.subcategories, node.id)
                await self.repository.delete(*subs.values(), node)

        else:
            result.subcategories = 1
            if not dry_run:
                for parent in await self.repository.brands_containing(node.id):
                    parent.sub_sub_categories = _pull(parent.sub_sub_categories, node.id)
                await self.repository.delete(node)

        logger.info(
            "Taxonomy node deleted" if not dry_run else "Taxonomy delete dry run",
            kind=kind.value,
            node_id=node_id,
            parent_id=parent_id,
            **result.to_dict(),
        )
        return result

    # ------------------------------------------------------------------
    # ListTree
    # ------------------------------------------------------------------

    async def list_tree(self) -> list[dict[str, Any]]:
        """All categories with brands and sub-categories nested.

        Child ids that no longer resolve are skipped.

        Returns:
            One nested dictionary per category.
        """
        categories = await self.repository.list_categories()
        brand_ids = [bid for c in categories for bid in (c.subcategories or [])]
        brands = await self.repository.get_many(Brand, brand_ids)
        sub_ids = [sid for b in brands.values() for sid in (b.sub_sub_categories or [])]
        subs = await self.repository.get_many(SubCategory, sub_ids)

        tree = []
        for category in categories:
            nested_brands = []
            for brand_id in category.subcategories or []:
                brand = brands.get(brand_id)
                if brand is None:
                    continue
                nested_brands.append(
                    {
                        "id": brand.id,
                        "name": brand.name,
                        "subSubCategories": [
                            subs[sid].to_dict()
                            for sid in (brand.sub_sub_categories or [])
                            if sid in subs
                        ],
                    }
                )
            tree.append(
                {
                    "id": category.id,
                    "name": category.name,
                    "isMainCategory": category.is_main_category,
                    "subcategories": nested_brands,
                }
            )
        return tree
