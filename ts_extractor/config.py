"""Application configuration constants."""

import os
from dataclasses import dataclass, field
from pathlib import Path


def get_assets_path() -> Path:
    """Get the path to the assets directory."""
    return Path(__file__).parent / "assets"


@dataclass
class AppConfig:
    """Application configuration settings."""

    # Application info
    APP_NAME: str = "Time Series Extractor"
    APP_VERSION: str = "1.0.0"

    # Bundled input
    ASSETS_DIR: Path = field(default_factory=get_assets_path)
    IMAGE_NAME: str = "time_series_report"
    IMAGE_EXTENSIONS: tuple = (".png", ".jpg", ".jpeg")

    # OCR settings
    OCR_CONFIG: str = "--oem 1 --psm 6"  # LSTM engine, uniform block of text
    OCR_TIMEOUT: int = 30  # seconds
    PREPROCESS: bool = True

    # JSON output
    JSON_INDENT: int = 2

    # Chart settings
    FIGURE_SIZE: tuple = (8, 9)
    LINE_COLOR: str = "tab:blue"
    JSON_TEXT_COLOR: str = "tab:blue"
    TOOLTIP_DECIMALS: int = 2
    UI_POLL_INTERVAL: int = 100  # milliseconds

    @classmethod
    def from_environment(cls) -> "AppConfig":
        """Load configuration from environment variables."""
        defaults = cls()
        return cls(
            ASSETS_DIR=Path(os.environ.get("TS_ASSETS_DIR", str(defaults.ASSETS_DIR))),
            IMAGE_NAME=os.environ.get("TS_IMAGE_NAME", defaults.IMAGE_NAME),
            OCR_CONFIG=os.environ.get("TS_OCR_CONFIG", defaults.OCR_CONFIG),
            OCR_TIMEOUT=int(os.environ.get("TS_OCR_TIMEOUT", str(defaults.OCR_TIMEOUT))),
            PREPROCESS=os.environ.get("TS_PREPROCESS", "true").lower() == "true",
        )


# Global configuration instance
config = AppConfig.from_environment()


def get_tesseract_path() -> str | None:
    """Get the path to Tesseract OCR executable if bundled."""
    import platform
    import shutil

    # Try to find tesseract in system path
    tesseract = shutil.which("tesseract")
    if tesseract:
        return tesseract

    # Platform-specific default locations
    if platform.system() == "Windows":
        default_paths = [
            r"C:\Program Files\Tesseract-OCR\tesseract.exe",
            r"C:\Program Files (x86)\Tesseract-OCR\tesseract.exe",
        ]
        for path in default_paths:
            if Path(path).exists():
                return path

    return None
