"""Category API endpoints.

Create, rename, delete and list the three-level taxonomy
(category → brand → sub-category).
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from catalog_admin.api.dependencies import get_tree_manager
from catalog_admin.api.schemas import (
    CategoryCreateRequest,
    CategoryDeleteResponse,
    CategoryResponse,
    CategoryTreeResponse,
    CategoryTreeSchema,
    CategoryType,
    CategoryUpdateRequest,
    ErrorResponse,
)
from catalog_admin.catalog.tree import CategoryTreeManager, NodeKind

router = APIRouter(prefix="/api", tags=["Categories"])

TreeDep = Annotated[CategoryTreeManager, Depends(get_tree_manager)]

NOT_FOUND = {404: {"model": ErrorResponse}}
BAD_REQUEST = {400: {"model": ErrorResponse}}


# ============================================================================
# Read Endpoints
# ============================================================================


@router.get(
    "/categories",
    response_model=CategoryTreeResponse,
    summary="List category tree",
    description="All categories with brands and sub-categories nested.",
)
async def list_categories(tree: TreeDep) -> CategoryTreeResponse:
    """List the full taxonomy tree."""
    categories = await tree.list_tree()
    return CategoryTreeResponse(
        categories=[CategoryTreeSchema.model_validate(c) for c in categories]
    )


@router.get("/category/{category_id}", response_model=CategoryResponse, responses=NOT_FOUND)
async def get_category(category_id: str, tree: TreeDep) -> CategoryResponse:
    """Get one main category."""
    node = await tree.get_node(NodeKind.MAIN, category_id)
    return CategoryResponse(category=node.to_dict())


@router.get("/brand/{brand_id}", response_model=CategoryResponse, responses=NOT_FOUND)
async def get_brand(brand_id: str, tree: TreeDep) -> CategoryResponse:
    """Get one brand."""
    node = await tree.get_node(NodeKind.BRAND, brand_id)
    return CategoryResponse(category=node.to_dict())


@router.get("/subcategory/{subcategory_id}", response_model=CategoryResponse, responses=NOT_FOUND)
async def get_subcategory(subcategory_id: str, tree: TreeDep) -> CategoryResponse:
    """Get one sub-category."""
    node = await tree.get_node(NodeKind.SUBCATEGORY, subcategory_id)
    return CategoryResponse(category=node.to_dict())


# ============================================================================
# Write Endpoints
# ============================================================================


@router.post(
    "/add-category",
    response_model=CategoryResponse,
    status_code=status.HTTP_200_OK,
    responses={**BAD_REQUEST, **NOT_FOUND},
    summary="Create taxonomy node",
)
async def add_category(request: CategoryCreateRequest, tree: TreeDep) -> CategoryResponse:
    """Create a category, or a brand/sub-category linked under its parent.

    Raises:
        ValidationError: Blank name or incomplete request.
        NotFoundError: Parent does not exist.
    """
    node = await tree.create_node(request.name, request.kind, request.parent_category)
    return CategoryResponse(message="Category created", category=node.to_dict())


@router.put(
    "/edit-category/{category_id}",
    response_model=CategoryResponse,
    responses={**BAD_REQUEST, **NOT_FOUND},
    summary="Rename taxonomy node",
)
async def edit_category(
    category_id: str,
    request: CategoryUpdateRequest,
    tree: TreeDep,
) -> CategoryResponse:
    """Rename a node and re-link it under its parent when the link is missing."""
    node = await tree.rename_node(category_id, request.kind, request.name, request.parent_id)
    return CategoryResponse(message="Category updated", category=node.to_dict())


@router.delete(
    "/delete-category/{category_id}",
    response_model=CategoryDeleteResponse,
    responses=NOT_FOUND,
    summary="Delete taxonomy node",
    description=(
        "Deletes the node and its descendants and unlinks it from its parent. "
        "With dryRun=true only the counts are returned."
    ),
)
async def delete_category(
    category_id: str,
    tree: TreeDep,
    category_type: Annotated[CategoryType | None, Query(alias="categoryType")] = None,
    parent_category: Annotated[str | None, Query(alias="parentCategory")] = None,
    dry_run: Annotated[bool, Query(alias="dryRun")] = False,
) -> CategoryDeleteResponse:
    """Delete a node (main category when no type is given)."""
    kind = NodeKind(category_type) if category_type else NodeKind.MAIN
    result = await tree.delete_node(category_id, kind, parent_category, dry_run=dry_run)
    message = "Category would be deleted" if dry_run else "Category deleted"
    return CategoryDeleteResponse(message=message, deleted=result.to_dict())

