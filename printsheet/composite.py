"""
Composite module for the Print Sheet Builder.

This module handles:
- Creating the page canvas
- Drawing the photo and its dashed cut guide into each grid cell
- Encoding the finished sheet for download
"""

import io
from typing import List, Optional, Tuple
from PIL import Image, ImageDraw
from loguru import logger

from printsheet.config import AppConfig, DPI, PageSpec, PhotoStandard
from printsheet.errors import ConfigurationError, RenderError
from printsheet.layout import Grid, LayoutPosition, compute_cell_positions
from printsheet.render import prepare_photo


MIMETYPES = {
    'JPEG': 'image/jpeg',
    'PNG': 'image/png',
}

EXTENSIONS = {
    'JPEG': 'jpg',
    'PNG': 'png',
}


def normalize_format(output_format: str) -> str:
    """Pillow format name for a user or config value such as "jpg" or "png"."""
    output_format = output_format.upper()
    return 'JPEG' if output_format == 'JPG' else output_format


class CompositeSettings:
    """Settings for composite operations."""

    def __init__(self,
                 output_format: str = 'JPEG',
                 quality: int = 95,
                 optimize: bool = True,
                 progressive: bool = True,
                 background_color: Tuple[int, int, int] = (255, 255, 255),
                 guide_color: str = '#cccccc',
                 guide_width: int = 1,
                 guide_dash: Tuple[int, int] = (10, 10),
                 dpi: int = DPI):
        self.output_format = output_format.upper()
        self.quality = quality
        self.optimize = optimize
        self.progressive = progressive
        self.background_color = background_color
        self.guide_color = guide_color
        self.guide_width = guide_width
        self.guide_dash = guide_dash
        self.dpi = dpi

    @classmethod
    def from_config(cls, config: AppConfig) -> 'CompositeSettings':
        output_format = normalize_format(config.OUTPUT_FORMAT)
        if output_format not in MIMETYPES:
            raise ConfigurationError(
                f"Unsupported OUTPUT_FORMAT setting: {config.OUTPUT_FORMAT}",
                details={'OUTPUT_FORMAT': config.OUTPUT_FORMAT, 'supported': sorted(MIMETYPES)},
                suggestions=["Set OUTPUT_FORMAT to JPEG or PNG in config/settings.yaml"]
            )

        return cls(
            output_format=output_format,
            quality=config.OUTPUT_QUALITY,
            guide_color=config.GUIDE_COLOR,
            guide_dash=tuple(config.GUIDE_DASH)
        )

    @property
    def mimetype(self) -> str:
        return MIMETYPES.get(self.output_format, 'application/octet-stream')

    @property
    def extension(self) -> str:
        return EXTENSIONS.get(self.output_format, self.output_format.lower())


def draw_dashed_rectangle(draw: ImageDraw.ImageDraw,
                          box: Tuple[int, int, int, int],
                          color,
                          width: int = 1,
                          dash: Tuple[int, int] = (10, 10)) -> None:
    """
    Stroke the outline of box (inclusive pixel coordinates) with a dash pattern.

    The pattern runs continuously around the rectangle, clockwise from the
    top-left corner.
    """
    on, off = dash
    period = on + off
    if on <= 0 or width <= 0:
        return

    left, top, right, bottom = box
    corners = [(left, top), (right, top), (right, bottom), (left, bottom), (left, top)]

    phase = 0
    for (x0, y0), (x1, y1) in zip(corners, corners[1:]):
        length = abs(x1 - x0) + abs(y1 - y0)
        dx = (x1 > x0) - (x1 < x0)
        dy = (y1 > y0) - (y1 < y0)

        pos = 0
        while pos < length:
            offset = phase % period
            in_dash = offset < on
            run = (on - offset) if in_dash else (period - offset)
            run = min(run, length - pos)

            if in_dash:
                start = (x0 + dx * pos, y0 + dy * pos)
                end = (x0 + dx * (pos + run - 1), y0 + dy * (pos + run - 1))
                draw.line([start, end], fill=color, width=width)

            pos += run
            phase += run


class SheetCompositor:
    """Draws print sheets."""

    def __init__(self, settings: CompositeSettings = None):
        self.settings = settings or CompositeSettings()

    def create_canvas(self, canvas_size: Tuple[int, int]) -> Image.Image:
        """Create a new opaque canvas filled with the background color."""
        canvas = Image.new('RGB', canvas_size, self.settings.background_color)
        logger.debug(f"Created canvas: {canvas_size} with background {self.settings.background_color}")
        return canvas

    def create_cell_tile(self, photo: Image.Image, standard: PhotoStandard, rotated: bool) -> Image.Image:
        """
        Photo at the standard's native size with its cut guide, turned a
        quarter clockwise when rotated.
        """
        tile = prepare_photo(photo, standard)

        draw = ImageDraw.Draw(tile)
        draw_dashed_rectangle(
            draw,
            (0, 0, tile.width - 1, tile.height - 1),
            self.settings.guide_color,
            self.settings.guide_width,
            self.settings.guide_dash
        )

        if rotated:
            tile = tile.transpose(Image.Transpose.ROTATE_270)

        return tile

    def compose(self,
                page: PageSpec,
                photo: Image.Image,
                standard: PhotoStandard,
                grid: Grid,
                gap: int,
                positions: Optional[List[LayoutPosition]] = None) -> Image.Image:
        """
        Compose the sheet: a page-sized canvas with one photo per grid cell.

        An empty grid yields the blank canvas.
        """
        canvas = self.create_canvas(page.size)

        if positions is None:
            positions = compute_cell_positions(page, grid, gap)

        if not positions:
            logger.info(f"Nothing to place on page {page.key}; returning blank sheet")
            return canvas

        tile = self.create_cell_tile(photo, standard, grid.rotated)
        if tile.size != (grid.cell_width, grid.cell_height):
            raise RenderError(
                f"Cell tile {tile.size} does not match grid cell {grid.cell_width}x{grid.cell_height}",
                details={'tile_size': tile.size, 'rotated': grid.rotated}
            )

        for position in positions:
            canvas.paste(tile, (position.x, position.y))

        logger.debug(f"Placed {len(positions)} cells on page {page.key}")
        return canvas

    def get_image_bytes(self,
                        image: Image.Image,
                        settings: CompositeSettings = None) -> bytes:
        """Get image as bytes for download."""
        if settings is None:
            settings = self.settings

        # Prepare save parameters
        save_kwargs = {
            'format': settings.output_format,
            'optimize': settings.optimize,
            'dpi': (settings.dpi, settings.dpi)
        }

        if settings.output_format == 'JPEG':
            save_kwargs.update({
                'quality': settings.quality,
                'progressive': settings.progressive
            })
            # Ensure RGB mode for JPEG
            if image.mode != 'RGB':
                image = image.convert('RGB')
        elif settings.output_format == 'PNG':
            save_kwargs['compress_level'] = 6

        buffer = io.BytesIO()
        try:
            image.save(buffer, **save_kwargs)
        except (KeyError, ValueError, OSError) as e:
            raise RenderError(
                f"Failed to encode sheet as {settings.output_format}: {e}",
                details={'output_format': settings.output_format}
            ) from e

        data = buffer.getvalue()
        logger.debug(f"Encoded sheet as {settings.output_format} ({len(data):,} bytes)")
        return data

    def render(self,
               page: PageSpec,
               photo: Image.Image,
               standard: PhotoStandard,
               grid: Grid,
               gap: int) -> bytes:
        """Compose and encode in one step."""
        return self.get_image_bytes(self.compose(page, photo, standard, grid, gap))


def create_sheet_compositor(settings: CompositeSettings = None) -> SheetCompositor:
    """Factory function to create a SheetCompositor instance."""
    return SheetCompositor(settings)
