"""SQLAlchemy models for the product catalog.

Defines the three taxonomy levels (Category, Brand, SubCategory) and
Product. Parents keep ordered JSON arrays of child ids; children carry no
back-reference to their parent.
"""

from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from sqlalchemy import JSON, Boolean, DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from catalog_admin.infrastructure.database import Base


def _new_id() -> str:
    return str(uuid4())


def _now() -> datetime:
    return datetime.now(timezone.utc)


class TimestampMixin:
    """Creation and update timestamps."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_now,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_now,
        onupdate=_now,
    )


class Category(TimestampMixin, Base):
    """Top-level taxonomy node.

    Attributes:
        id: Unique category identifier (UUID string).
        name: Category name.
        is_main_category: Always true for records in this table.
        subcategories: Ordered ids of child brands.
    """

    __tablename__ = "categories"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    is_main_category: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    subcategories: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)

    def __repr__(self) -> str:
        """String representation."""
        return f"<Category(id={self.id}, name={self.name})>"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary with child ids."""
        return {
            "id": self.id,
            "name": self.name,
            "isMainCategory": self.is_main_category,
            "subcategories": list(self.subcategories or []),
        }


class Brand(TimestampMixin, Base):
    """Second-level taxonomy node, child of a Category.

    Attributes:
        id: Unique brand identifier.
        name: Brand name.
        sub_sub_categories: Ordered ids of child sub-categories.
    """

    __tablename__ = "brands"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    sub_sub_categories: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)

    def __repr__(self) -> str:
        """String representation."""
        return f"<Brand(id={self.id}, name={self.name})>"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary with child ids."""
        return {
            "id": self.id,
            "name": self.name,
            "subSubCategories": list(self.sub_sub_categories or []),
        }


class SubCategory(TimestampMixin, Base):
    """Leaf taxonomy node, child of a Brand."""

    __tablename__ = "sub_categories"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)

    def __repr__(self) -> str:
        """String representation."""
        return f"<SubCategory(id={self.id}, name={self.name})>"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {"id": self.id, "name": self.name}


class Product(TimestampMixin, Base):
    """Product entity in the catalog.

    References to category, brand and sub-category are plain ids with no
    foreign key: a product may point at a brand outside its category, and
    deleting a taxonomy node leaves the reference dangling.

    Attributes:
        id: Unique product identifier.
        name: Product name.
        category_id: Referenced Category id.
        brand_id: Referenced Brand id (optional).
        sub_category_id: Referenced SubCategory id (optional).
        specifications: Rich-text specifications.
        main_image_url: Asset host URL of the main image.
        secondary_image_urls: Asset host URLs of further images.
        technical_sheet: ``{"file_name", "url"}`` or None.
        manuals: List of ``{"file_name", "url"}``.
    """

    __tablename__ = "products"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    name: Mapped[str] = mapped_column(String(500), nullable=False, index=True)
    category_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    brand_id: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)
    sub_category_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    specifications: Mapped[str | None] = mapped_column(Text, nullable=True)
    main_image_url: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    secondary_image_urls: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    technical_sheet: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    manuals: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)

    def __repr__(self) -> str:
        """String representation."""
        return f"<Product(id={self.id}, name={self.name[:30]})>"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary.

        Returns:
            Dictionary representation with reference ids.
        """
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category_id,
            "brand": self.brand_id,
            "subCategory": self.sub_category_id,
            "specifications": self.specifications,
            "mainImageUrl": self.main_image_url,
            "secondaryImageUrls": list(self.secondary_image_urls or []),
            "technical_sheet": self.technical_sheet,
            "manuals": list(self.manuals or []),
        }
