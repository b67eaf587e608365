"""CSV import endpoints."""

from pathlib import Path
from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, Query, Request
from starlette.datastructures import UploadFile
from pydantic import ValidationError as PydanticValidationError

from catalog_admin.api.dependencies import get_import_service, get_settings
from catalog_admin.api.schemas import (
    CsvUploadRequest,
    ErrorResponse,
    ImportSummarySchema,
    StructuredCategorySchema,
)
from catalog_admin.application.csv_import import (
    CsvImportService,
    parse_csv,
    read_csv_file,
    structure_categories,
)
from catalog_admin.domain.exceptions import ValidationError
from catalog_admin.infrastructure.config import Settings

logger = structlog.get_logger()

router = APIRouter(prefix="/api", tags=["Import"])

ImportDep = Annotated[CsvImportService, Depends(get_import_service)]
SettingsDep = Annotated[Settings, Depends(get_settings)]

FILE_FIELDS = ("csv", "file")


async def read_csv_payload(request: Request) -> str:
    """Extract CSV text from a JSON ``csvData`` body or a multipart file.

    Raises:
        ValidationError: No CSV content was supplied.
    """
    content_type = request.headers.get("content-type", "")

    if content_type.startswith("multipart/form-data"):
        form = await request.form()
        for field in FILE_FIELDS:
            upload = form.get(field)
            if isinstance(upload, UploadFile):
                raw = await upload.read()
                return raw.decode("utf-8-sig", errors="replace")
            if isinstance(upload, str) and upload.strip():
                return upload
        raise ValidationError("No CSV file supplied", field="csv")

    body = await request.body()
    if not body:
        raise ValidationError("No CSV data supplied", field="csvData")
    try:
        payload = CsvUploadRequest.model_validate_json(body)
    except PydanticValidationError as e:
        raise ValidationError("Request body must be JSON with csvData", field="csvData") from e
    return payload.csv_data


@router.post(
    "/upload-csv",
    response_model=ImportSummarySchema,
    responses={400: {"model": ErrorResponse}},
    summary="Bulk import products from CSV",
    description=(
        "Accepts JSON {\"csvData\": \"...\"} or a multipart file in the "
        "'csv' or 'file' field. Rows are imported one by one; bad rows are "
        "counted, duplicates by name are skipped."
    ),
)
async def upload_csv(
    request: Request,
    importer: ImportDep,
    skip_example_row: Annotated[bool, Query(alias="skipExampleRow")] = False,
) -> ImportSummarySchema:
    """Import products from CSV text."""
    text = await read_csv_payload(request)
    if not text.strip():
        raise ValidationError("No CSV data supplied", field="csvData")

    summary = await importer.import_text(text, skip_example_row=skip_example_row)
    return ImportSummarySchema.model_validate(summary.to_dict())


@router.get(
    "/categories-structured",
    response_model=list[StructuredCategorySchema],
    responses={400: {"model": ErrorResponse}},
    summary="Category structure of the configured CSV feed",
)
async def categories_structured(settings: SettingsDep) -> list[StructuredCategorySchema]:
    """Group the configured feed's rows as category → sub-category → brands."""
    path = Path(settings.csv_import_path)
    if not path.is_file():
        raise ValidationError(f"CSV file not found: {path}", field="csv_import_path")

    rows = parse_csv(read_csv_file(path))
    return [StructuredCategorySchema.model_validate(c) for c in structure_categories(rows)]
