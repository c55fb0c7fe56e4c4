"""
Configuration management for the Print Sheet Builder
Loads settings and the page/photo catalog from YAML files with environment variable overrides
"""

import os
import yaml
from pathlib import Path
from typing import Dict, List, Optional, Tuple
from pydantic import BaseModel, ConfigDict, Field, NonNegativeInt, PositiveInt
from loguru import logger


# Page and photo dimensions are rasterised at this resolution
DPI = 300

DEFAULT_PAGE_KEY = "4x6_L"
DEFAULT_STANDARD_KEY = "35x45"


class PageSpec(BaseModel):
    """Printable page at the catalog resolution"""
    model_config = ConfigDict(frozen=True)

    key: str
    label: str
    width_px: PositiveInt
    height_px: PositiveInt

    @property
    def size(self) -> Tuple[int, int]:
        return (self.width_px, self.height_px)


class PhotoStandard(BaseModel):
    """Physical size of a single output photo at the catalog resolution"""
    model_config = ConfigDict(frozen=True)

    key: str
    label: str
    width_px: PositiveInt
    height_px: PositiveInt

    @property
    def size(self) -> Tuple[int, int]:
        return (self.width_px, self.height_px)


class LayoutConfig(BaseModel):
    """Grid tunables shared by every layout computation"""
    model_config = ConfigDict(frozen=True)

    margin_px: NonNegativeInt = 20  # ~1.7mm safety edge
    gap_px: NonNegativeInt = 15     # ~1.2mm, room for a scissor cut
    minimum_acceptable: NonNegativeInt = 8


BUILTIN_PAGES: Dict[str, PageSpec] = {
    "4x6_L": PageSpec(key="4x6_L", label="4x6 Inch (Landscape)", width_px=1800, height_px=1200),
    "4x6_P": PageSpec(key="4x6_P", label="4x6 Inch (Portrait)", width_px=1200, height_px=1800),
    "5x7_L": PageSpec(key="5x7_L", label="5x7 Inch (Landscape)", width_px=2100, height_px=1500),
    "A4_P": PageSpec(key="A4_P", label="A4 (Portrait)", width_px=2480, height_px=3508),
    "Letter_P": PageSpec(key="Letter_P", label="US Letter (Portrait)", width_px=2550, height_px=3300),
}

BUILTIN_STANDARDS: Dict[str, PhotoStandard] = {
    "35x45": PhotoStandard(key="35x45", label="35x45mm (Universal)", width_px=413, height_px=531),
    "2x2": PhotoStandard(key="2x2", label="2x2 inch (US/India)", width_px=600, height_px=600),
}


class AppConfig(BaseModel):
    """Main application configuration"""

    # Flask settings
    SECRET_KEY: str = Field(default_factory=lambda: os.urandom(24).hex())
    FLASK_ENV: str = "development"
    DEBUG: bool = True

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FILE: Optional[str] = "logs/app.log"

    # Uploads
    MAX_UPLOAD_SIZE: int = 20 * 1024 * 1024  # 20MB
    ALLOWED_EXTENSIONS: List[str] = [".jpg", ".jpeg", ".png"]

    # Catalog
    CATALOG_PATH: str = "config/catalog.yaml"
    DEFAULT_PAGE: str = DEFAULT_PAGE_KEY
    DEFAULT_STANDARD: str = DEFAULT_STANDARD_KEY

    # Layout
    LAYOUT_MARGIN_PX: NonNegativeInt = 20
    LAYOUT_GAP_PX: NonNegativeInt = 15
    LAYOUT_MINIMUM_ACCEPTABLE: NonNegativeInt = 8

    # Output
    OUTPUT_FORMAT: str = "JPEG"
    OUTPUT_QUALITY: int = Field(default=95, ge=1, le=100)
    GUIDE_COLOR: str = "#cccccc"
    GUIDE_DASH: List[int] = [10, 10]

    def layout_config(self) -> LayoutConfig:
        return LayoutConfig(
            margin_px=self.LAYOUT_MARGIN_PX,
            gap_px=self.LAYOUT_GAP_PX,
            minimum_acceptable=self.LAYOUT_MINIMUM_ACCEPTABLE
        )


def load_yaml_config(file_path: str) -> Dict:
    """Load configuration from YAML file"""
    path = Path(file_path)
    if not path.exists():
        logger.warning(f"Config file not found: {file_path}")
        return {}

    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.error(f"Error loading config file {file_path}: {e}")
        return {}

    if not isinstance(data, dict):
        logger.error(f"Config file {file_path} must contain a mapping, got {type(data).__name__}")
        return {}
    return data


def load_config(environment: str = "development") -> AppConfig:
    """Load configuration with environment-specific overrides"""

    # Load base settings
    base_config = load_yaml_config("config/settings.yaml")

    # Load environment-specific settings
    env_config = load_yaml_config(f"config/settings_{environment}.yaml")

    # Merge configurations (env overrides base)
    config_dict = {**base_config, **env_config}

    # Apply environment variable overrides
    env_overrides = {
        'FLASK_ENV': os.getenv('FLASK_ENV', environment),
        'LOG_LEVEL': os.getenv('LOG_LEVEL'),
        'LOG_FILE': os.getenv('LOG_FILE'),
        'SECRET_KEY': os.getenv('SECRET_KEY'),
        'CATALOG_PATH': os.getenv('CATALOG_PATH'),
    }

    # Only include non-None values
    env_overrides = {k: v for k, v in env_overrides.items() if v is not None}
    config_dict.update(env_overrides)

    # Special handling for boolean DEBUG flag
    if 'FLASK_ENV' in config_dict:
        config_dict['DEBUG'] = config_dict['FLASK_ENV'] == 'development'

    try:
        return AppConfig(**config_dict)
    except ValueError as e:
        logger.error(f"Configuration validation error: {e}")
        # Return default config on validation error
        return AppConfig()


# Global config instance
_config_instance = None

def get_config() -> AppConfig:
    """Get the global configuration instance"""
    global _config_instance
    if _config_instance is None:
        _config_instance = load_config(os.getenv('FLASK_ENV', 'development'))
    return _config_instance


class PageCatalog:
    """
    Lookup tables for pages and photo standards.

    Lookups never fail: an unknown or empty key resolves to the default
    entry, and a default that is missing from its table resolves to the
    first entry.
    """

    def __init__(self,
                 pages: Dict[str, PageSpec] = None,
                 standards: Dict[str, PhotoStandard] = None,
                 default_page: str = DEFAULT_PAGE_KEY,
                 default_standard: str = DEFAULT_STANDARD_KEY):
        self.pages = dict(pages or BUILTIN_PAGES)
        self.standards = dict(standards or BUILTIN_STANDARDS)
        self.default_page = default_page
        self.default_standard = default_standard

    def resolve_page(self, key: Optional[str]) -> PageSpec:
        if key in self.pages:
            return self.pages[key]
        fallback = self.pages.get(self.default_page) or next(iter(self.pages.values()))
        logger.warning(f"Unknown page key {key!r}, falling back to {fallback.key}")
        return fallback

    def resolve_standard(self, key: Optional[str]) -> PhotoStandard:
        if key in self.standards:
            return self.standards[key]
        fallback = self.standards.get(self.default_standard) or next(iter(self.standards.values()))
        logger.warning(f"Unknown photo standard key {key!r}, falling back to {fallback.key}")
        return fallback

    def page_options(self) -> List[Dict]:
        """Page entries for a dropdown, in table order."""
        return [page.model_dump() for page in self.pages.values()]

    def standard_options(self) -> List[Dict]:
        """Photo standard entries for a dropdown, in table order."""
        return [standard.model_dump() for standard in self.standards.values()]


def _load_entries(items: List[Dict], model, kind: str) -> Dict:
    entries = {}
    if not isinstance(items, list):
        logger.error(f"Expected a list of {kind} entries, got {type(items).__name__}")
        return entries

    for item in items:
        try:
            entry = model(**item)
            entries[entry.key] = entry
        except (TypeError, ValueError) as e:
            key = item.get('key', 'unknown') if isinstance(item, dict) else 'unknown'
            logger.error(f"Error loading {kind} config {key}: {e}")
    return entries


def load_catalog(path: str = None,
                 default_page: str = DEFAULT_PAGE_KEY,
                 default_standard: str = DEFAULT_STANDARD_KEY) -> PageCatalog:
    """Load page and photo standard tables from YAML, falling back to the built-in tables"""
    config_data = load_yaml_config(path or "config/catalog.yaml")

    pages = _load_entries(config_data.get("pages") or [], PageSpec, "page")
    standards = _load_entries(config_data.get("standards") or [], PhotoStandard, "photo standard")

    if not pages:
        pages = BUILTIN_PAGES
    if not standards:
        standards = BUILTIN_STANDARDS

    catalog = PageCatalog(
        pages=pages,
        standards=standards,
        default_page=config_data.get("default_page") or default_page,
        default_standard=config_data.get("default_standard") or default_standard
    )
    logger.info(f"Loaded {len(catalog.pages)} page sizes and {len(catalog.standards)} photo standards")
    return catalog
