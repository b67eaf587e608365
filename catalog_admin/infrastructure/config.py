"""Application configuration.

Loads settings from environment variables with sensible defaults.
"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # API
    api_version: str = "0.1.0"
    debug: bool = False
    cors_origins: list[str] = ["http://localhost:3000", "http://localhost:3001"]

    # Database
    database_url: str = "sqlite+aiosqlite:///./catalog_admin.db"
    auto_create_tables: bool = True

    # Authentication (disabled when unset)
    admin_api_key: str | None = None

    # Asset host
    asset_host_url: str = "https://api.cloudinary.com"
    asset_cloud_name: str = ""
    asset_api_key: str = ""
    asset_api_secret: str = ""
    asset_folder: str = "catalog"
    image_max_width: int = 1920
    image_quality: int = 80
    http_timeout: float = 30.0

    # CSV import
    csv_import_path: str = "./products.csv"
    load_csv_on_startup: bool = False

    # Logging
    log_level: str = "INFO"

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    @property
    def documents_folder(self) -> str:
        """Folder for technical sheets."""
        return f"{self.asset_folder}/pdfs"

    @property
    def manuals_folder(self) -> str:
        """Folder for product manuals."""
        return f"{self.asset_folder}/manuals"


def get_settings() -> Settings:
    """Build settings from the current environment."""
    return Settings()
