"""
Layout engine module for the Print Sheet Builder.

This module handles:
- Counting how many photos of a fixed size fit on a page (grid solving)
- Choosing between upright and rotated photo orientation
- Centering the resulting grid and positioning every cell on the page
"""

from dataclasses import dataclass
from typing import List, Optional
from loguru import logger

from printsheet.config import LayoutConfig, PageSpec, PhotoStandard


class LayoutPosition:
    """Represents a position and size on the canvas."""

    def __init__(self, x: int, y: int, width: int, height: int):
        self.x = x
        self.y = y
        self.width = width
        self.height = height

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def bottom(self) -> int:
        return self.y + self.height

    def to_dict(self) -> dict:
        return {'x': self.x, 'y': self.y, 'width': self.width, 'height': self.height}

    def __eq__(self, other) -> bool:
        if not isinstance(other, LayoutPosition):
            return NotImplemented
        return (self.x, self.y, self.width, self.height) == (other.x, other.y, other.width, other.height)

    def __hash__(self) -> int:
        return hash((self.x, self.y, self.width, self.height))

    def __repr__(self) -> str:
        return f"LayoutPosition({self.x}, {self.y}, {self.width}, {self.height})"


@dataclass(frozen=True)
class GridFit:
    """How many items fit along each axis."""
    cols: int
    rows: int
    count: int


@dataclass(frozen=True)
class Grid:
    """
    Chosen grid for a sheet.

    cell_width/cell_height are the photo footprint in the chosen
    orientation, i.e. swapped from the standard when rotated.
    """
    cols: int
    rows: int
    cell_width: int
    cell_height: int
    rotated: bool = False

    @property
    def count(self) -> int:
        return self.cols * self.rows

    def to_dict(self) -> dict:
        return {
            'cols': self.cols,
            'rows': self.rows,
            'count': self.count,
            'cell_width': self.cell_width,
            'cell_height': self.cell_height,
            'rotated': self.rotated
        }


def solve_grid(page_width: int, page_height: int,
               item_width: int, item_height: int,
               margin: int, gap: int) -> GridFit:
    """
    Count the items of a fixed size that fit inside the page margins.

    n items separated by gap take n*item + (n-1)*gap, so the largest n with
    that not exceeding the usable length is floor((usable + gap) / (item + gap)).
    """
    usable_width = page_width - 2 * margin
    usable_height = page_height - 2 * margin

    cols = max(0, (usable_width + gap) // (item_width + gap))
    rows = max(0, (usable_height + gap) // (item_height + gap))

    return GridFit(cols=cols, rows=rows, count=cols * rows)


def choose_orientation(page: PageSpec,
                       standard: PhotoStandard,
                       margin: int,
                       gap: int,
                       minimum_acceptable: int = 8) -> Grid:
    """
    Pick upright or rotated photos for the page.

    Rotated wins only when it fits strictly more photos and the upright grid
    holds fewer than minimum_acceptable. Ties keep the upright grid.
    """
    upright = solve_grid(page.width_px, page.height_px,
                         standard.width_px, standard.height_px, margin, gap)
    rotated = solve_grid(page.width_px, page.height_px,
                         standard.height_px, standard.width_px, margin, gap)

    logger.debug(f"{page.key}/{standard.key}: upright {upright.cols}x{upright.rows}={upright.count}, "
                 f"rotated {rotated.cols}x{rotated.rows}={rotated.count}")

    if rotated.count > upright.count and upright.count < minimum_acceptable:
        logger.debug(f"Using rotated layout ({rotated.count} > {upright.count})")
        return Grid(
            cols=rotated.cols,
            rows=rotated.rows,
            cell_width=standard.height_px,
            cell_height=standard.width_px,
            rotated=True
        )

    return Grid(
        cols=upright.cols,
        rows=upright.rows,
        cell_width=standard.width_px,
        cell_height=standard.height_px,
        rotated=False
    )


def compute_cell_positions(page: PageSpec, grid: Grid, gap: int) -> List[LayoutPosition]:
    """Top-left positions of every cell, row-major, with the grid centered on the page."""
    if grid.count == 0:
        return []

    total_width = grid.cols * grid.cell_width + (grid.cols - 1) * gap
    total_height = grid.rows * grid.cell_height + (grid.rows - 1) * gap

    start_x = (page.width_px - total_width) // 2
    start_y = (page.height_px - total_height) // 2

    positions = []
    for row in range(grid.rows):
        for col in range(grid.cols):
            x = start_x + col * (grid.cell_width + gap)
            y = start_y + row * (grid.cell_height + gap)
            positions.append(LayoutPosition(x, y, grid.cell_width, grid.cell_height))

    return positions


def grid_bounding_box(positions: List[LayoutPosition]) -> Optional[LayoutPosition]:
    """Smallest box containing every cell, or None for an empty grid."""
    if not positions:
        return None

    left = min(p.x for p in positions)
    top = min(p.y for p in positions)
    right = max(p.right for p in positions)
    bottom = max(p.bottom for p in positions)

    return LayoutPosition(left, top, right - left, bottom - top)


class LayoutEngine:
    """Grid layout for one set of layout tunables."""

    def __init__(self, layout_config: LayoutConfig = None):
        self.layout_config = layout_config or LayoutConfig()

    def choose_grid(self, page: PageSpec, standard: PhotoStandard) -> Grid:
        return choose_orientation(
            page,
            standard,
            self.layout_config.margin_px,
            self.layout_config.gap_px,
            self.layout_config.minimum_acceptable
        )

    def calculate_cell_positions(self, page: PageSpec, grid: Grid) -> List[LayoutPosition]:
        positions = compute_cell_positions(page, grid, self.layout_config.gap_px)

        if positions:
            box = grid_bounding_box(positions)
            logger.debug(f"Grid {grid.cols}x{grid.rows} occupies {box} on {page.width_px}x{page.height_px} page")
        else:
            logger.info(f"No {grid.cell_width}x{grid.cell_height} cells fit on page {page.key}")

        return positions


def create_layout_engine(layout_config: LayoutConfig = None) -> LayoutEngine:
    """Factory function to create a LayoutEngine instance."""
    return LayoutEngine(layout_config)
