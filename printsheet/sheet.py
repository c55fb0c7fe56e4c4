"""
Print sheet pipeline.

Resolves the page and photo standard, lays out the grid and renders the
sheet. Every call is independent: the only shared inputs are the read-only
catalog and layout tunables.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from loguru import logger

from printsheet.config import LayoutConfig, PageCatalog, PageSpec, PhotoStandard, get_config, load_catalog
from printsheet.composite import CompositeSettings, SheetCompositor
from printsheet.layout import Grid, LayoutEngine, LayoutPosition, grid_bounding_box
from printsheet.render import PhotoSource, decode_photo


_default_catalog: Optional[PageCatalog] = None


def get_catalog() -> PageCatalog:
    """Catalog named by the CATALOG_PATH setting (or the built-in tables), loaded on first use."""
    global _default_catalog
    if _default_catalog is None:
        config = get_config()
        _default_catalog = load_catalog(config.CATALOG_PATH, config.DEFAULT_PAGE, config.DEFAULT_STANDARD)
    return _default_catalog


@dataclass(frozen=True)
class SheetPlan:
    """Where every photo goes on the page; no pixels."""
    page: PageSpec
    standard: PhotoStandard
    layout: LayoutConfig
    grid: Grid
    positions: List[LayoutPosition] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.positions)

    def to_dict(self) -> Dict[str, Any]:
        box = grid_bounding_box(self.positions)
        return {
            'page': self.page.model_dump(),
            'standard': self.standard.model_dump(),
            'layout': self.layout.model_dump(),
            'grid': self.grid.to_dict(),
            'count': self.count,
            'bounding_box': box.to_dict() if box else None,
            'cells': [p.to_dict() for p in self.positions]
        }


@dataclass(frozen=True)
class PrintSheet:
    """An encoded sheet plus the plan it was drawn from."""
    data: bytes
    plan: SheetPlan
    output_format: str
    mimetype: str
    filename: str

    @property
    def size(self):
        return self.plan.page.size


def suggested_filename(page_key: str, extension: str = 'jpg') -> str:
    return f"passport-print-{page_key}.{extension}"


def plan_sheet(page_key: Optional[str] = None,
               standard_key: Optional[str] = None,
               layout: Optional[LayoutConfig] = None,
               catalog: Optional[PageCatalog] = None) -> SheetPlan:
    """
    Lay out a sheet without rendering it.

    Unknown keys resolve to the catalog defaults instead of raising. Without
    an explicit layout the configured margin, gap and threshold are used.
    """
    catalog = catalog or get_catalog()
    layout = layout or get_config().layout_config()

    page = catalog.resolve_page(page_key)
    standard = catalog.resolve_standard(standard_key)

    engine = LayoutEngine(layout)
    grid = engine.choose_grid(page, standard)
    positions = engine.calculate_cell_positions(page, grid)

    return SheetPlan(page=page, standard=standard, layout=layout, grid=grid, positions=positions)


def generate_print_sheet(photo: PhotoSource,
                         page_key: Optional[str] = None,
                         standard_key: Optional[str] = None,
                         layout: Optional[LayoutConfig] = None,
                         settings: Optional[CompositeSettings] = None,
                         catalog: Optional[PageCatalog] = None) -> PrintSheet:
    """
    Build a print sheet from a single flattened photo.

    Args:
        photo: Encoded photo (bytes, path or file object) or a PIL image
        page_key: Catalog page key, e.g. "4x6_L"
        standard_key: Catalog photo standard key, e.g. "35x45"
        layout: Margin, gap and orientation threshold; defaults to the loaded settings
        settings: Output format, quality and cut guide style; defaults to the loaded settings
        catalog: Page and photo standard tables; defaults to the shared catalog

    Returns:
        PrintSheet with the encoded image and its placement metadata

    Raises:
        ImageDecodeError: if the photo cannot be decoded
        ConfigurationError: if the configured output format is not supported
        RenderError: if the sheet cannot be encoded
    """
    settings = settings or CompositeSettings.from_config(get_config())

    image = decode_photo(photo)
    plan = plan_sheet(page_key, standard_key, layout, catalog)

    compositor = SheetCompositor(settings)
    canvas = compositor.compose(plan.page, image, plan.standard, plan.grid,
                                plan.layout.gap_px, plan.positions)
    data = compositor.get_image_bytes(canvas)

    logger.info(f"Generated {plan.page.key} sheet with {plan.count} x {plan.standard.key} photos"
                f"{' (rotated)' if plan.grid.rotated else ''}")

    return PrintSheet(
        data=data,
        plan=plan,
        output_format=settings.output_format,
        mimetype=settings.mimetype,
        filename=suggested_filename(plan.page.key, settings.extension)
    )
