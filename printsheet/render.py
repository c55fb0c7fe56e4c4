"""
Render preparation module for the Print Sheet Builder.

This module handles:
- Decoding the uploaded photo into an in-memory bitmap
- Scaling the photo to the native pixel size of a photo standard
"""

import io
from pathlib import Path
from typing import BinaryIO, Union
from PIL import Image, UnidentifiedImageError
from loguru import logger

from printsheet.config import PhotoStandard
from printsheet.errors import ImageDecodeError


PhotoSource = Union[bytes, bytearray, str, Path, BinaryIO, Image.Image]


def _describe(source: PhotoSource) -> str:
    if isinstance(source, (str, Path)):
        return str(source)
    if isinstance(source, (bytes, bytearray)):
        return f"<{len(source)} bytes>"
    return getattr(source, 'name', None) or type(source).__name__


def decode_photo(source: PhotoSource) -> Image.Image:
    """
    Decode a photo into an RGB bitmap.

    Accepts encoded bytes, a path, a binary file object or an already open
    PIL image. The pixel data is loaded eagerly so truncated files fail here
    rather than halfway through compositing.

    Raises:
        ImageDecodeError: if the data cannot be decoded
    """
    if isinstance(source, Image.Image):
        image = source
    else:
        if isinstance(source, (bytes, bytearray)):
            source_file = io.BytesIO(source)
        else:
            source_file = source

        try:
            image = Image.open(source_file)
            image.load()
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
            logger.error(f"Failed to decode photo {_describe(source)}: {e}")
            raise ImageDecodeError(_describe(source), str(e)) from e

    if image.mode in ('RGBA', 'LA', 'PA') or (image.mode == 'P' and 'transparency' in image.info):
        logger.warning(f"Photo {_describe(source)} has an alpha channel; it should be flattened before layout")

    if image.mode != 'RGB':
        image = image.convert('RGB')

    logger.debug(f"Decoded photo {_describe(source)} ({image.size})")
    return image


def prepare_photo(image: Image.Image, standard: PhotoStandard) -> Image.Image:
    """Stretch the photo to the standard's native size."""
    if image.size == standard.size:
        return image.copy()

    prepared = image.resize(standard.size, Image.Resampling.LANCZOS)
    logger.debug(f"Scaled photo {image.size} -> {prepared.size} for standard {standard.key}")
    return prepared
