"""
Centralized Configuration

Settings for the development application extraction pipeline. Paths can be
overridden with DA_* environment variables.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from common import COMMENT_URL

DEFAULT_TESSERACT_PATHS = [
    r"C:\Program Files\Tesseract-OCR\tesseract.exe",
    r"C:\Program Files (x86)\Tesseract-OCR\tesseract.exe",
    os.path.expanduser(r"~\AppData\Local\Programs\Tesseract-OCR\tesseract.exe"),
]

# Directories holding pdftoppm; poppler-* folders under Program Files are searched too
DEFAULT_POPPLER_PATHS = [
    r"C:\Program Files\poppler\Library\bin",
    r"C:\Program Files (x86)\poppler\Library\bin",
]


def _env_path(name: str, default: Optional[Path]) -> Optional[Path]:
    value = os.environ.get(name)
    return Path(value) if value else default


@dataclass
class OCRConfig:
    """Settings for reading scanned pages."""
    dpi: int = 200
    min_confidence: int = 20
    page_segmentation_mode: int = 6
    preprocess: bool = True
    tesseract_paths: list = field(default_factory=lambda: list(DEFAULT_TESSERACT_PATHS))
    poppler_paths: list = field(default_factory=lambda: list(DEFAULT_POPPLER_PATHS))


@dataclass
class ExtractionConfig:
    """Page handling and record defaults."""
    min_chars_per_page: int = 50
    max_pages_per_document: int = 500
    default_workers: int = 4
    comment_url: str = COMMENT_URL


@dataclass
class PathConfig:
    """
    Input, output and reference file locations.

    Environment variables win over constructor arguments:
    DA_DATA_DIR, DA_OUTPUT_DIR, DA_STREET_NAMES, DA_SUBURB_NAMES, DA_DATABASE.
    Unset paths default to files under the data directory.
    """
    project_dir: Path = field(default_factory=lambda: Path(__file__).parent.parent)
    data_dir: Optional[Path] = None
    output_dir: Optional[Path] = None
    street_names_file: Optional[Path] = None
    suburb_names_file: Optional[Path] = None
    database_file: Optional[Path] = None

    def __post_init__(self):
        self.data_dir = _env_path("DA_DATA_DIR", self.data_dir) or self.project_dir / "data"
        self.output_dir = _env_path("DA_OUTPUT_DIR", self.output_dir) or self.data_dir / "output"
        self.street_names_file = (_env_path("DA_STREET_NAMES", self.street_names_file)
                                  or self.data_dir / "streetnames.txt")
        self.suburb_names_file = (_env_path("DA_SUBURB_NAMES", self.suburb_names_file)
                                  or self.data_dir / "suburbnames.txt")
        self.database_file = _env_path("DA_DATABASE", self.database_file) or self.data_dir / "data.sqlite"


@dataclass
class Config:
    ocr: OCRConfig = field(default_factory=OCRConfig)
    extraction: ExtractionConfig = field(default_factory=ExtractionConfig)
    paths: PathConfig = field(default_factory=PathConfig)


_config: Optional[Config] = None


def get_config() -> Config:
    """Return the process-wide configuration, creating it on first use."""
    global _config
    if _config is None:
        _config = Config()
    return _config


def reset_config():
    """Drop the process-wide configuration so the next get_config() rereads the environment."""
    global _config
    _config = None
