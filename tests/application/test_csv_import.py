"""Tests for the CSV import pipeline."""

from pathlib import Path

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from catalog_admin.application.asset_ingestion import AssetIngestionService
from catalog_admin.application.csv_import import (
    CsvImportService,
    ImportSummary,
    RowOutcome,
    import_csv_file,
    parse_csv,
    split_list,
    structure_categories,
)
from catalog_admin.catalog.repository import ProductRepository
from catalog_admin.catalog.tree import CategoryTreeManager, NodeKind
from catalog_admin.domain.exceptions import PersistenceError
from catalog_admin.infrastructure.database import Database

HEADER = (
    "name,category,subCategory,brand,specifications,mainImageUrl,"
    "secondaryImageUrls,technicalSheetUrl,technicalSheetFileName,manuals,mandatory"
)


def feed(*rows: str) -> str:
    """Join a CSV document from data rows."""
    return "\n".join([HEADER, *rows]) + "\n"


@pytest.fixture
def importer(session: AsyncSession, asset_service: AssetIngestionService) -> CsvImportService:
    """Import service on a fresh database."""
    return CsvImportService(session, asset_service)


class TestParsing:
    """Tests for CSV parsing helpers."""

    def test_parse_strips_bom_and_whitespace(self) -> None:
        """Byte-order mark and cell padding are removed."""
        rows = list(parse_csv("\ufeffname , category\n Drill , Tools \n"))
        assert rows == [{"name": "Drill", "category": "Tools"}]

    def test_short_rows_padded(self) -> None:
        """Missing trailing cells read as empty strings."""
        rows = list(parse_csv("name,category,brand\nDrill,Tools\n"))
        assert rows[0]["brand"] == ""

    def test_quoted_cells(self) -> None:
        """Quoted cells may hold commas."""
        rows = list(parse_csv('name,specifications\nDrill,"<p>18V, 2 batteries</p>"\n'))
        assert rows[0]["specifications"] == "<p>18V, 2 batteries</p>"

    def test_split_list(self) -> None:
        """Semicolon lists drop blanks."""
        assert split_list(" a ; ;b;") == ["a", "b"]
        assert split_list("") == []
        assert split_list(None) == []

    def test_structure_categories(self) -> None:
        """Brands are grouped under category and sub-category."""
        rows = [
            {"category": "Tools", "subCategory": "Drills", "brand": "Acme"},
            {"category": "Tools", "subCategory": "Drills", "brand": "Bosch"},
            {"category": "Tools", "subCategory": "Drills", "brand": "Acme"},
            {"category": "Tools", "subCategory": "Saws", "brand": "Acme"},
            {"category": "Garden", "subCategory": "", "brand": "Acme"},
        ]
        assert structure_categories(rows) == [
            {
                "category": "Tools",
                "subcategories": [
                    {"name": "Drills", "brands": ["Acme", "Bosch"]},
                    {"name": "Saws", "brands": ["Acme"]},
                ],
            }
        ]


class TestImportSummary:
    """Tests for the run summary."""

    def test_record_outcomes(self) -> None:
        """Invalid and failed rows both count as failed loads."""
        summary = ImportSummary(total_products=4)
        for outcome in (
            RowOutcome.INSERTED,
            RowOutcome.DUPLICATE,
            RowOutcome.INVALID,
            RowOutcome.FAILED,
        ):
            summary.record(outcome)

        assert summary.to_dict() == {
            "message": "Products added successfully. Total: 1",
            "totalProducts": 4,
            "successfullyLoaded": 1,
            "failedLoads": 2,
            "skippedDuplicates": 1,
        }


class TestCsvImportService:
    """Tests for the row pipeline."""

    async def test_counts_inserted_invalid_and_duplicates(
        self, importer: CsvImportService, session: AsyncSession
    ) -> None:
        """Duplicates within a run are skipped; rows without a name fail."""
        summary = await importer.import_text(
            feed(
                "Widget,Tools,,,,,,,,,",
                "Widget,Tools,,,,,,,,,",
                ",Tools,,,,,,,,,",
                "Gadget,,,,,,,,,,",
            )
        )

        assert summary.total_products == 4
        assert summary.successfully_loaded == 1
        assert summary.skipped_duplicates == 1
        assert summary.failed_loads == 2
        assert await ProductRepository(session).get_names() == {"Widget"}

    async def test_existing_product_is_duplicate(
        self, importer: CsvImportService, session: AsyncSession
    ) -> None:
        """Names already in the database are skipped."""
        await importer.import_text(feed("Widget,Tools,,,,,,,,,"))
        summary = await CsvImportService(session, importer.assets).import_text(
            feed("Widget,Tools,,,,,,,,,")
        )
        assert summary.skipped_duplicates == 1
        assert summary.successfully_loaded == 0

    async def test_skip_example_row(self, importer: CsvImportService) -> None:
        """The first data row is dropped and not counted."""
        summary = await importer.import_text(
            feed("Example,Example,,,,,,,,,", "Drill,Tools,,,,,,,,,"),
            skip_example_row=True,
        )
        assert summary.total_products == 1
        assert summary.successfully_loaded == 1

    async def test_assets_ingested(
        self, importer: CsvImportService, session: AsyncSession, remote
    ) -> None:
        """Images, sheet and manuals are uploaded; failing ones are left out."""
        summary = await importer.import_text(
            feed(
                "Drill,Tools,,,<p>18V</p>,"
                "https://images.test/front.png,"
                "https://images.test/side.png;https://images.test/missing.png,"
                "https://docs.test/sheet.pdf,Drill sheet.pdf,"
                "https://docs.test/guide.pdf,Y"
            )
        )
        assert summary.successfully_loaded == 1

        product = await ProductRepository(session).get_by_name("Drill")
        assert product.specifications == "<p>18V</p>"
        assert product.main_image_url == "https://assets.test/catalog/asset-1"
        assert product.secondary_image_urls == ["https://assets.test/catalog/asset-2"]
        assert product.technical_sheet == {
            "file_name": "Drill sheet.pdf",
            "url": "https://assets.test/catalog/pdfs/asset-3",
        }
        assert product.manuals == [
            {"file_name": "guide.pdf", "url": "https://assets.test/catalog/manuals/asset-4"}
        ]

    async def test_failed_main_image_still_inserts(
        self, importer: CsvImportService, session: AsyncSession
    ) -> None:
        """A product is saved without the image that could not be fetched."""
        summary = await importer.import_text(
            feed("Drill,Tools,,,,https://down.test/a.png,,,,,")
        )
        assert summary.successfully_loaded == 1
        product = await ProductRepository(session).get_by_name("Drill")
        assert product.main_image_url is None

    async def test_references_resolved_by_name(
        self, importer: CsvImportService, session: AsyncSession
    ) -> None:
        """Taxonomy cells match existing nodes by name, ignoring case."""
        tree = CategoryTreeManager(session)
        tools = await tree.create_node("Tools", NodeKind.MAIN)
        acme = await tree.create_node("Acme", NodeKind.BRAND, tools.id)
        await session.commit()

        await importer.import_text(feed("Drill,tools,Unknown Sub,ACME,,,,,,,"))

        product = await ProductRepository(session).get_by_name("Drill")
        assert product.category_id == tools.id
        assert product.brand_id == acme.id
        assert product.sub_category_id == "Unknown Sub"

    async def test_persistence_failure_counted(
        self, importer: CsvImportService, session: AsyncSession, monkeypatch
    ) -> None:
        """A row that fails to save is counted; rows around it are kept."""
        create_product = importer.products.create_product

        async def create_or_fail(data):
            if data.name == "Gadget":
                raise PersistenceError("save product", "disk full")
            return await create_product(data)

        monkeypatch.setattr(importer.products, "create_product", create_or_fail)

        summary = await importer.import_text(
            feed("Widget,Tools,,,,,,,,,", "Gadget,Tools,,,,,,,,,", "Gizmo,Tools,,,,,,,,,")
        )

        assert summary.successfully_loaded == 2
        assert summary.failed_loads == 1
        assert await ProductRepository(session).get_names() == {"Widget", "Gizmo"}

    async def test_commit_failure_counted(
        self, importer: CsvImportService, session: AsyncSession, monkeypatch
    ) -> None:
        """A database error at commit fails only that row."""
        commit = session.commit
        calls = []

        async def commit_or_fail():
            calls.append(1)
            if len(calls) == 2:
                raise OperationalError("COMMIT", {}, Exception("database is locked"))
            await commit()

        monkeypatch.setattr(session, "commit", commit_or_fail)

        summary = await importer.import_text(
            feed("Widget,Tools,,,,,,,,,", "Gadget,Tools,,,,,,,,,", "Gizmo,Tools,,,,,,,,,")
        )

        assert summary.successfully_loaded == 2
        assert summary.failed_loads == 1
        assert await ProductRepository(session).get_names() == {"Widget", "Gizmo"}

    async def test_unexpected_ingestion_error_fails_row(
        self, importer: CsvImportService, session: AsyncSession, monkeypatch
    ) -> None:
        """An error escaping the asset pipeline fails the row, not the run."""
        ingest_image_url = importer.assets.ingest_image_url

        async def ingest_or_crash(url, folder=None):
            if "crash" in url:
                raise RuntimeError("decoder crashed")
            return await ingest_image_url(url, folder)

        monkeypatch.setattr(importer.assets, "ingest_image_url", ingest_or_crash)

        summary = await importer.import_text(
            feed(
                "Widget,Tools,,,,https://images.test/crash.png,,,,,",
                "Gizmo,Tools,,,,https://images.test/ok.png,,,,,",
            )
        )

        assert summary.successfully_loaded == 1
        assert summary.failed_loads == 1
        assert await ProductRepository(session).get_names() == {"Gizmo"}


class TestImportCsvFile:
    """Tests for importing from disk."""

    async def test_import_file(
        self, database: Database, asset_service: AssetIngestionService, tmp_path: Path
    ) -> None:
        """A file with a BOM imports in its own session."""
        path = tmp_path / "products.csv"
        path.write_text(feed("Drill,Tools,,,,,,,,,", "Saw,Tools,,,,,,,,,"), encoding="utf-8-sig")

        summary = await import_csv_file(database.session_factory, asset_service, path)

        assert summary.successfully_loaded == 2
        async with database.session_factory() as check:
            assert await ProductRepository(check).count() == 2

    async def test_missing_file(
        self, database: Database, asset_service: AssetIngestionService, tmp_path: Path
    ) -> None:
        """A missing file raises."""
        with pytest.raises(FileNotFoundError):
            await import_csv_file(database.session_factory, asset_service, tmp_path / "none.csv")
