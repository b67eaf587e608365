"""Application layer module.

Contains the asset ingestion and CSV import pipelines that orchestrate
catalog operations and the asset host.
"""

from catalog_admin.application.asset_ingestion import (
    AssetIngestionService,
    ProductAssets,
    UploadedFile,
)
from catalog_admin.application.csv_import import (
    CsvImportService,
    ImportSummary,
    import_csv_file,
)

__all__ = [
    "AssetIngestionService",
    "CsvImportService",
    "ImportSummary",
    "ProductAssets",
    "UploadedFile",
    "import_csv_file",
]
