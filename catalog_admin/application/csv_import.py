"""CSV bulk import pipeline.

Converts a product feed into Product records. Rows are processed one at a
time:

    validate required -> check duplicate -> ingest assets -> build -> persist

A bad row never aborts the run: invalid rows and persistence failures are
counted in ``failed_loads``, duplicates are skipped, and assets that fail
to ingest are left out of the record.

Expected columns:
    name, category, subCategory, brand, specifications, mainImageUrl,
    secondaryImageUrls, technicalSheetUrl, technicalSheetFileName, manuals

List columns (secondaryImageUrls, manuals) use ``;`` as separator.
"""

import csv
import io
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from catalog_admin.application.asset_ingestion import (
    AssetIngestionService,
    filename_from_url,
)
from catalog_admin.catalog.models import Brand, Category, SubCategory
from catalog_admin.catalog.repository import ProductRepository, TaxonomyRepository
from catalog_admin.catalog.service import AssetRef, ProductInput, ProductService
from catalog_admin.domain.exceptions import PersistenceError, ValidationError

logger = structlog.get_logger()

LIST_SEPARATOR = ";"

CSV_COLUMNS = (
    "name",
    "category",
    "subCategory",
    "brand",
    "specifications",
    "mainImageUrl",
    "secondaryImageUrls",
    "technicalSheetUrl",
    "technicalSheetFileName",
    "manuals",
)


# ============================================================================
# Parsing helpers
# ============================================================================


def parse_csv(text: str) -> Iterator[dict[str, str]]:
    """Iterate CSV rows as dictionaries keyed by stripped header names.

    Args:
        text: CSV document with a header row.

    Yields:
        One dictionary per data row; missing cells are empty strings.
    """
    reader = csv.DictReader(io.StringIO(text.lstrip("\ufeff")))
    for row in reader:
        yield {
            (key or "").strip(): (value or "").strip() if isinstance(value, str) else ""
            for key, value in row.items()
            if key is not None
        }


def split_list(value: str | None) -> list[str]:
    """Split a ``;``-joined cell into non-empty stripped items."""
    if not value:
        return []
    return [item.strip() for item in value.split(LIST_SEPARATOR) if item.strip()]


def read_csv_file(path: str | Path) -> str:
    """Read a CSV file, tolerating a UTF-8 byte-order mark."""
    return Path(path).read_text(encoding="utf-8-sig")


def structure_categories(rows: Iterable[dict[str, str]]) -> list[dict[str, Any]]:
    """Group brand names by category and sub-category as they appear in a feed.

    Rows missing any of category, subCategory or brand are ignored.
    Order of first appearance is preserved; brands are de-duplicated.

    Returns:
        ``[{category, subcategories: [{name, brands: [...]}]}]``
    """
    grouped: dict[str, dict[str, list[str]]] = {}
    for row in rows:
        category = (row.get("category") or "").strip()
        sub_category = (row.get("subCategory") or "").strip()
        brand = (row.get("brand") or "").strip()
        if not category or not sub_category or not brand:
            continue
        brands = grouped.setdefault(category, {}).setdefault(sub_category, [])
        if brand not in brands:
            brands.append(brand)

    return [
        {
            "category": category,
            "subcategories": [
                {"name": name, "brands": brands} for name, brands in subs.items()
            ],
        }
        for category, subs in grouped.items()
    ]


# ============================================================================
# Results
# ============================================================================


class RowOutcome(str, Enum):
    """Final state of one processed row."""

    INSERTED = "inserted"
    INVALID = "invalid"
    DUPLICATE = "duplicate"
    FAILED = "failed"


@dataclass
class ImportSummary:
    """Counters reported at the end of an import run.

    Attributes:
        total_products: Rows read (after the optional example row).
        successfully_loaded: Rows persisted as new products.
        failed_loads: Invalid rows plus rows that failed to persist.
        skipped_duplicates: Rows whose name already existed.
    """

    total_products: int = 0
    successfully_loaded: int = 0
    failed_loads: int = 0
    skipped_duplicates: int = 0

    def record(self, outcome: RowOutcome) -> None:
        """Count one row outcome."""
        if outcome is RowOutcome.INSERTED:
            self.successfully_loaded += 1
        elif outcome is RowOutcome.DUPLICATE:
            self.skipped_duplicates += 1
        else:
            self.failed_loads += 1

    @property
    def message(self) -> str:
        """Short human-readable summary."""
        return f"Products added successfully. Total: {self.successfully_loaded}"

    def to_dict(self) -> dict[str, Any]:
        """Convert to the response shape."""
        return {
            "message": self.message,
            "totalProducts": self.total_products,
            "successfullyLoaded": self.successfully_loaded,
            "failedLoads": self.failed_loads,
            "skippedDuplicates": self.skipped_duplicates,
        }


# ============================================================================
# Import Service
# ============================================================================


class CsvImportService:
    """Import product rows into the catalog.

    Each inserted row is committed on its own so a later failure does not
    undo earlier rows. The service therefore owns the session's
    transactions for the duration of a run.

    Example usage:
        async with database.session_factory() as session:
            importer = CsvImportService(session, assets)
            summary = await importer.import_text(read_csv_file("products.csv"))
    """

    def __init__(self, session: AsyncSession, assets: AssetIngestionService) -> None:
        """Initialize import service.

        Args:
            session: Async SQLAlchemy session.
            assets: Pipeline used for image and document URLs.
        """
        self.session = session
        self.assets = assets
        self.products = ProductService(session)
        self.product_repository = ProductRepository(session)
        self.taxonomy = TaxonomyRepository(session)
        self._reference_cache: dict[tuple[str, str], str] = {}

    async def import_text(self, text: str, skip_example_row: bool = False) -> ImportSummary:
        """Import a CSV document.

        Args:
            text: CSV with a header row.
            skip_example_row: Drop the first data row unconditionally.

        Returns:
            Run summary.
        """
        return await self.import_rows(parse_csv(text), skip_example_row=skip_example_row)

    async def import_rows(
        self,
        rows: Iterable[dict[str, str]],
        skip_example_row: bool = False,
    ) -> ImportSummary:
        """Import already-parsed rows sequentially.

        Args:
            rows: Row dictionaries keyed by column name.
            skip_example_row: Drop the first row unconditionally.

        Returns:
            Run summary.
        """
        summary = ImportSummary()
        known_names = await self.product_repository.get_names()

        for index, row in enumerate(rows):
            if skip_example_row and index == 0:
                logger.info("Skipping example row", row=1)
                continue

            summary.total_products += 1
            outcome = await self._process_row(row, summary.total_products, known_names)
            summary.record(outcome)

        logger.info(
            "CSV import finished",
            total_products=summary.total_products,
            successfully_loaded=summary.successfully_loaded,
            failed_loads=summary.failed_loads,
            skipped_duplicates=summary.skipped_duplicates,
        )
        return summary

    async def _process_row(
        self,
        row: dict[str, str],
        row_number: int,
        known_names: set[str],
    ) -> RowOutcome:
        """Run one row through the pipeline."""
        name = (row.get("name") or "").strip()
        category = (row.get("category") or "").strip()
        log = logger.bind(row=row_number, product_name=name or None)

        if not name or not category:
            log.warning("Row skipped: name and category are required")
            return RowOutcome.INVALID

        if name in known_names:
            log.info("Row skipped: product already exists")
            return RowOutcome.DUPLICATE

        if (row.get("mandatory") or "").strip().upper() == "Y":
            log.info("Product marked as mandatory")

        try:
            data = await self._build_input(row, name, category)
        except Exception as e:
            await self.session.rollback()
            log.exception("Row failed during asset ingestion", error=str(e))
            return RowOutcome.FAILED

        try:
            product = await self.products.create_product(data)
            await self.session.commit()
        except (PersistenceError, ValidationError, SQLAlchemyError) as e:
            await self.session.rollback()
            log.error("Row failed to persist", error=str(e))
            return RowOutcome.FAILED

        known_names.add(name)
        log.info("Row imported", product_id=product.id)
        return RowOutcome.INSERTED

    async def _build_input(self, row: dict[str, str], name: str, category: str) -> ProductInput:
        """Ingest the row's assets and assemble product fields."""
        main_image_url = None
        if row.get("mainImageUrl"):
            main_image_url = await self.assets.ingest_image_url(row["mainImageUrl"])

        secondary_image_urls = []
        for url in split_list(row.get("secondaryImageUrls")):
            uploaded = await self.assets.ingest_image_url(url)
            if uploaded:
                secondary_image_urls.append(uploaded)

        technical_sheet = None
        if row.get("technicalSheetUrl"):
            uploaded = await self.assets.ingest_document_url(row["technicalSheetUrl"])
            if uploaded:
                technical_sheet = AssetRef(
                    file_name=(row.get("technicalSheetFileName") or "").strip()
                    or filename_from_url(row["technicalSheetUrl"], "technical-sheet"),
                    url=uploaded,
                )

        manuals = []
        for url in split_list(row.get("manuals")):
            uploaded = await self.assets.ingest_document_url(
                url, self.assets.settings.manuals_folder
            )
            if uploaded:
                manuals.append(AssetRef(file_name=filename_from_url(url, "manual"), url=uploaded))

        return ProductInput(
            name=name,
            category=await self._resolve_reference(Category, category),
            brand=await self._resolve_reference(Brand, row.get("brand")),
            sub_category=await self._resolve_reference(SubCategory, row.get("subCategory")),
            specifications=(row.get("specifications") or "").strip() or None,
            main_image_url=main_image_url,
            secondary_image_urls=secondary_image_urls,
            technical_sheet=technical_sheet,
            manuals=manuals,
        )

    async def _resolve_reference(
        self,
        model: type[Category] | type[Brand] | type[SubCategory],
        value: str | None,
    ) -> str | None:
        """Map a cell to a node id: by id first, then by name.

        An unresolved value is kept as given.
        """
        cleaned = (value or "").strip()
        if not cleaned:
            return None

        key = (model.__tablename__, cleaned)
        if key in self._reference_cache:
            return self._reference_cache[key]

        node = await self.taxonomy.get(model, cleaned)
        if node is None:
            node = await self.taxonomy.find_by_name(model, cleaned)

        resolved = node.id if node is not None else cleaned
        self._reference_cache[key] = resolved
        return resolved


async def import_csv_file(
    session_factory: async_sessionmaker[AsyncSession],
    assets: AssetIngestionService,
    path: str | Path,
    skip_example_row: bool = False,
) -> ImportSummary:
    """Import a CSV file from disk in a dedicated session.

    Used for the startup import and the command-line loader.

    Raises:
        FileNotFoundError: If ``path`` does not exist.
    """
    text = read_csv_file(path)
    logger.info("Importing CSV file", path=str(path))
    async with session_factory() as session:
        importer = CsvImportService(session, assets)
        return await importer.import_text(text, skip_example_row=skip_example_row)
