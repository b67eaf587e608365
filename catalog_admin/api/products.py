"""Product API endpoints.

Paginated listing, detail with resolved references, and multipart
create/update that forwards uploaded files to the asset host.
"""

from typing import Annotated

from fastapi import APIRouter, Body, Depends, File, Form, Query, UploadFile

from catalog_admin.api.dependencies import get_asset_service, get_product_service
from catalog_admin.api.schemas import (
    ErrorResponse,
    MessageResponse,
    ProductDeleteByNameRequest,
    ProductDetailSchema,
    ProductListResponse,
    ProductResponse,
    ProductSchema,
)
from catalog_admin.application.asset_ingestion import (
    AssetIngestionService,
    ProductAssets,
    UploadedFile,
)
from catalog_admin.catalog.service import PaginationParams, ProductInput, ProductService
from catalog_admin.domain.exceptions import ValidationError

router = APIRouter(prefix="/api", tags=["Products"])

ServiceDep = Annotated[ProductService, Depends(get_product_service)]
AssetsDep = Annotated[AssetIngestionService, Depends(get_asset_service)]

NOT_FOUND = {404: {"model": ErrorResponse}}
BAD_REQUEST = {400: {"model": ErrorResponse}}


# ============================================================================
# Converters
# ============================================================================


async def to_uploaded(upload: UploadFile) -> UploadedFile:
    """Read a multipart file into memory."""
    return UploadedFile(
        filename=upload.filename or "upload",
        content=await upload.read(),
        content_type=upload.content_type,
    )


async def ingest_form_files(
    assets: AssetIngestionService,
    images: list[UploadFile] | None,
    technical_sheet: UploadFile | None,
    manuals: list[UploadFile] | None,
) -> ProductAssets:
    """Upload the files attached to a product form."""
    return await assets.ingest_product_files(
        images=[await to_uploaded(f) for f in images or [] if f.filename],
        technical_sheet=(
            await to_uploaded(technical_sheet)
            if technical_sheet is not None and technical_sheet.filename
            else None
        ),
        manuals=[await to_uploaded(f) for f in manuals or [] if f.filename],
    )


def to_input(
    name: str | None,
    category: str | None,
    brand: str | None,
    sub_category: str | None,
    specifications: str | None,
    assets: ProductAssets,
) -> ProductInput:
    """Combine form fields and uploaded assets."""
    return ProductInput(
        name=name,
        category=category,
        brand=brand,
        sub_category=sub_category,
        specifications=specifications,
        main_image_url=assets.main_image_url,
        secondary_image_urls=assets.secondary_image_urls,
        technical_sheet=assets.technical_sheet,
        manuals=assets.manuals,
    )


# ============================================================================
# Endpoints
# ============================================================================


@router.get(
    "/products",
    response_model=ProductListResponse,
    responses=BAD_REQUEST,
    summary="List products",
)
async def list_products(
    service: ServiceDep,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 10,
) -> ProductListResponse:
    """List products page by page in creation order."""
    result = await service.list_products(PaginationParams(page=page, page_size=limit))
    return ProductListResponse(
        total_pages=result.total_pages,
        current_page=result.page,
        total_products=result.total,
        products=[ProductSchema.model_validate(p.to_dict()) for p in result.items],
    )


@router.get(
    "/product/{product_id}",
    response_model=ProductDetailSchema,
    responses=NOT_FOUND,
    summary="Get product details",
)
async def get_product(product_id: str, service: ServiceDep) -> ProductDetailSchema:
    """Get a product with category, brand and sub-category names resolved."""
    detail = await service.get_product_detail(product_id)
    return ProductDetailSchema.model_validate(detail.to_dict())


@router.post(
    "/add-product",
    response_model=ProductResponse,
    responses=BAD_REQUEST,
    summary="Create product",
)
async def add_product(
    service: ServiceDep,
    assets: AssetsDep,
    name: Annotated[str | None, Form()] = None,
    category: Annotated[str | None, Form()] = None,
    brand: Annotated[str | None, Form()] = None,
    sub_category: Annotated[str | None, Form(alias="subCategory")] = None,
    specifications: Annotated[str | None, Form()] = None,
    images: Annotated[list[UploadFile] | None, File()] = None,
    technical_sheet: Annotated[UploadFile | None, File()] = None,
    manuals: Annotated[list[UploadFile] | None, File()] = None,
) -> ProductResponse:
    """Create a product from a multipart form.

    The first image becomes the main image and the rest secondary images.
    Files that fail to upload are left out.
    """
    # Reject before spending uploads on an invalid form
    if not (name or "").strip():
        raise ValidationError("Product name is required", field="name")
    if not (category or "").strip():
        raise ValidationError("Product category is required", field="category")
    uploaded = await ingest_form_files(assets, images, technical_sheet, manuals)
    product = await service.create_product(
        to_input(name, category, brand, sub_category, specifications, uploaded)
    )
    return ProductResponse(
        message="Product created",
        product=ProductSchema.model_validate(product.to_dict()),
    )


@router.put(
    "/edit-product/{product_id}",
    response_model=ProductResponse,
    responses={**BAD_REQUEST, **NOT_FOUND},
    summary="Update product",
)
async def edit_product(
    product_id: str,
    service: ServiceDep,
    assets: AssetsDep,
    name: Annotated[str | None, Form()] = None,
    category: Annotated[str | None, Form()] = None,
    brand: Annotated[str | None, Form()] = None,
    sub_category: Annotated[str | None, Form(alias="subCategory")] = None,
    specifications: Annotated[str | None, Form()] = None,
    images: Annotated[list[UploadFile] | None, File()] = None,
    technical_sheet: Annotated[UploadFile | None, File()] = None,
    manuals: Annotated[list[UploadFile] | None, File()] = None,
) -> ProductResponse:
    """Apply a partial update; only supplied fields and files change."""
    await service.get_product(product_id)
    uploaded = await ingest_form_files(assets, images, technical_sheet, manuals)
    product = await service.update_product(
        product_id,
        to_input(name, category, brand, sub_category, specifications, uploaded),
    )
    return ProductResponse(
        message="Product updated",
        product=ProductSchema.model_validate(product.to_dict()),
    )


@router.delete(
    "/delete-product/{product_id}",
    response_model=MessageResponse,
    responses=NOT_FOUND,
    summary="Delete product",
)
async def delete_product(product_id: str, service: ServiceDep) -> MessageResponse:
    """Delete a product by ID."""
    await service.delete_product(product_id)
    return MessageResponse(message="Product deleted")


@router.delete(
    "/delete-product-by-name",
    response_model=MessageResponse,
    responses={**BAD_REQUEST, **NOT_FOUND},
    summary="Delete product by name",
)
async def delete_product_by_name(
    service: ServiceDep,
    request: Annotated[ProductDeleteByNameRequest, Body()],
) -> MessageResponse:
    """Delete the first product with the given name."""
    await service.delete_product_by_name(request.name)
    return MessageResponse(message="Product deleted")
