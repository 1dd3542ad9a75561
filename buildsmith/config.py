"""Application configuration loaded from environment variables and .env file."""

from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_DATA_DIR = Path(__file__).parent / "data"


class Settings(BaseSettings):
    """Application settings.

    Values are loaded from environment variables first,
    then from a .env file in the project root as fallback.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
    )

    DATABASE_URL: str = "sqlite:///./dev.db"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    # Catalog / rule table locations
    CATALOG_PATH: Optional[str] = None
    DATA_DIR: Optional[str] = None

    # Engine options
    MAX_ALTERNATIVES: int = 2

    def data_dir(self) -> Path:
        """Rule table directory (bundled tables by default)."""
        return Path(self.DATA_DIR) if self.DATA_DIR else DEFAULT_DATA_DIR

    def data_path(self, filename: str) -> Path:
        return self.data_dir() / filename

    def catalog_path(self) -> Path:
        """Catalog JSON path. Falls back to the bundled sample catalog."""
        if self.CATALOG_PATH:
            return Path(self.CATALOG_PATH)
        return self.data_path("sample_catalog.json")


settings = Settings()
