"""API schemas for the catalog admin API.

Pydantic models for request/response validation and serialization.
Wire names are camelCase (``isMainCategory``, ``mainImageUrl``) except
for ``technical_sheet`` and ``file_name``, which the dashboard reads in
snake_case.
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from catalog_admin.catalog.tree import NodeKind


class CamelModel(BaseModel):
    """Base model exposing camelCase aliases and accepting either form."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ============================================================================
# Common Schemas
# ============================================================================


class ErrorDetail(BaseModel):
    """Detailed error information."""

    field: str | None = Field(default=None, description="Field that caused the error")
    message: str = Field(..., description="Error message")


class ErrorResponse(BaseModel):
    """Standard error response.

    All API errors follow this format for consistency.
    """

    error_code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error message")
    details: list[ErrorDetail] | dict[str, Any] = Field(
        default_factory=list, description="Additional error details"
    )
    request_id: str | None = Field(
        default=None, description="Request ID for correlation"
    )


class MessageResponse(BaseModel):
    """Plain confirmation message."""

    message: str


# ============================================================================
# Category Schemas
# ============================================================================


CategoryType = Literal["main", "brand", "subcategory"]


class CategoryCreateRequest(CamelModel):
    """Request to create a category, brand or sub-category.

    ``isMainCategory=true`` creates a top-level category. Otherwise
    ``categoryType`` picks the level and ``parentCategory`` names the
    parent: a category id for a brand, a brand id for a sub-category.
    """

    name: str = Field(default="", description="Node name")
    is_main_category: bool = Field(default=False, description="Create a top-level category")
    category_type: CategoryType | None = Field(default=None, description="Level of the node")
    parent_category: str | None = Field(default=None, description="Parent node id")

    @model_validator(mode="after")
    def check_variant(self) -> "CategoryCreateRequest":
        """Require a type and a parent for non-main nodes."""
        if self.is_main_category or self.category_type == "main":
            return self
        if self.category_type is None:
            raise ValueError("categoryType must be 'brand' or 'subcategory' for a non-main category")
        if not self.parent_category:
            raise ValueError("parentCategory is required for a non-main category")
        return self

    @property
    def kind(self) -> NodeKind:
        """Taxonomy level requested."""
        if self.is_main_category or self.category_type in (None, "main"):
            return NodeKind.MAIN
        return NodeKind(self.category_type)


class CategoryUpdateRequest(CamelModel):
    """Request to rename a node and verify its parent link.

    A brand's parent is taken from ``mainCategoryId`` (falling back to
    ``parentCategory``); a sub-category's parent from ``parentCategory``.
    """

    name: str = Field(default="", description="New node name")
    is_main_category: bool = Field(default=False, description="Node is a top-level category")
    category_type: CategoryType | None = Field(default=None, description="Level of the node")
    parent_category: str | None = Field(default=None, description="Parent node id")
    main_category_id: str | None = Field(default=None, description="Owning category id")

    @model_validator(mode="after")
    def check_variant(self) -> "CategoryUpdateRequest":
        """Require a type and a parent for non-main nodes."""
        if self.is_main_category or self.category_type == "main":
            return self
        if self.category_type is None:
            raise ValueError("categoryType must be 'brand' or 'subcategory' for a non-main category")
        if not self.parent_id:
            raise ValueError("parentCategory or mainCategoryId is required for a non-main category")
        return self

    @property
    def kind(self) -> NodeKind:
        """Taxonomy level addressed."""
        if self.is_main_category or self.category_type in (None, "main"):
            return NodeKind.MAIN
        return NodeKind(self.category_type)

    @property
    def parent_id(self) -> str | None:
        """Parent used for the link check."""
        if self.category_type == "brand":
            return self.main_category_id or self.parent_category
        return self.parent_category


class CategoryResponse(BaseModel):
    """A single taxonomy node."""

    message: str | None = None
    category: dict[str, Any]


class CategoryDeleteResponse(BaseModel):
    """Outcome of a delete (or delete dry run)."""

    message: str
    deleted: dict[str, Any]


class SubCategorySchema(CamelModel):
    """Leaf node."""

    id: str
    name: str


class BrandTreeSchema(CamelModel):
    """Brand with its sub-categories."""

    id: str
    name: str
    sub_sub_categories: list[SubCategorySchema] = Field(default_factory=list)


class CategoryTreeSchema(CamelModel):
    """Category with brands and sub-categories nested."""

    id: str
    name: str
    is_main_category: bool = True
    subcategories: list[BrandTreeSchema] = Field(default_factory=list)


class CategoryTreeResponse(BaseModel):
    """Full taxonomy."""

    categories: list[CategoryTreeSchema]


class StructuredSubCategorySchema(BaseModel):
    """Sub-category name with the brands listed under it in a feed."""

    name: str
    brands: list[str]


class StructuredCategorySchema(BaseModel):
    """Category grouping derived from a CSV feed."""

    category: str
    subcategories: list[StructuredSubCategorySchema]


# ============================================================================
# Product Schemas
# ============================================================================


class AssetRefSchema(BaseModel):
    """A named document on the asset host."""

    file_name: str | None = None
    url: str | None = None


class ProductSchema(CamelModel):
    """Product with reference ids."""

    id: str
    name: str
    category: str | None = None
    brand: str | None = None
    sub_category: str | None = None
    specifications: str | None = None
    main_image_url: str | None = None
    secondary_image_urls: list[str] = Field(default_factory=list)
    technical_sheet: AssetRefSchema | None = Field(default=None, alias="technical_sheet")
    manuals: list[AssetRefSchema] = Field(default_factory=list)


class ProductResponse(BaseModel):
    """A single product."""

    message: str | None = None
    product: ProductSchema


class ProductListResponse(CamelModel):
    """Paginated product list."""

    total_pages: int = Field(..., description="Number of pages")
    current_page: int = Field(..., description="Current page number")
    total_products: int = Field(..., description="Total number of products")
    products: list[ProductSchema]


class TaxonomyRefSchema(BaseModel):
    """Resolved reference to a taxonomy node."""

    id: str
    name: str


class BrandRefSchema(CamelModel):
    """Resolved brand reference with its sub-categories."""

    id: str
    name: str
    sub_sub_categories: list[TaxonomyRefSchema] = Field(default_factory=list)


class ProductDetailSchema(ProductSchema):
    """Product with category, brand and sub-category resolved."""

    category: TaxonomyRefSchema | None = None
    brand: BrandRefSchema | None = None
    sub_category: TaxonomyRefSchema | None = None


class ProductDeleteByNameRequest(BaseModel):
    """Request to delete a product by name."""

    name: str = ""


# ============================================================================
# CSV Import Schemas
# ============================================================================


class CsvUploadRequest(CamelModel):
    """CSV document sent as JSON."""

    csv_data: str = Field(default="", description="CSV text with header row")


class ImportSummarySchema(CamelModel):
    """Counters of a CSV import run."""

    message: str
    total_products: int
    successfully_loaded: int
    failed_loads: int
    skipped_duplicates: int
