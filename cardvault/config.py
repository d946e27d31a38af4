from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(env_file=".env")

    app_name: str = "CardVault"
    debug: bool = False

    database_url: str = "sqlite+aiosqlite:///./cardvault.db"

    catalog_base_url: str = "https://api.scryfall.com"
    # Scryfall requires an identifying User-Agent on every API request
    catalog_user_agent: str = "CardVault/1.0"

    # Per-request timeout for catalog pages and image downloads (seconds)
    request_timeout: float = 30.0

    # Politeness delays (Scryfall asks for 50-100ms between requests)
    page_delay: float = 0.1
    image_download_delay: float = 0.05

    storage_dir: Path = Path("storage")

    # Local task dispatch: at-least-once with a bounded attempt budget
    task_max_attempts: int = 3
    task_retry_backoff: float = 2.0
    worker_concurrency: int = 4


settings = Settings()


# =============================================================================
# ASSET STORE LAYOUT
# =============================================================================

# Card images live in <storage_dir>/card_images/{id}.jpg
IMAGES_SUBDIR = "card_images"

# Image resolution downloaded for each face
FRONT_IMAGE_SIZE = "normal"

# Filename suffix for the back face of double-faced cards
BACK_FACE_SUFFIX = "_back"
