"""
Configuration settings for the scan grader
"""
from pydantic_settings import BaseSettings
from pathlib import Path


class Settings(BaseSettings):
    """Application settings using pydantic-settings"""

    # Project paths
    PROJECT_ROOT: Path = Path(__file__).parent.parent
    LOGS_DIR: Path = PROJECT_ROOT / "logs"

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_TO_FILE: bool = False

    # Pixel buffer cache (entries = decoded source pages)
    PIXEL_CACHE_MAX_ENTRIES: int = 32

    # Warping
    INTERPOLATION: str = "nearest"

    # Detection overrides
    FIDUCIAL_SEARCH_MARGIN: float = 0.30
    MARK_FILL_THRESHOLD: float = 0.30
    MARK_WINNER_MARGIN: float = 1.1

    class Config:
        env_file = ".env"
        env_prefix = "SCANGRADER_"
        extra = "allow"


settings = Settings()

if settings.LOG_TO_FILE:
    settings.LOGS_DIR.mkdir(parents=True, exist_ok=True)
