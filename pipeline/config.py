"""Pipeline configuration."""

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class ScanConfig:
    """Document-scan constants.

    These are fixed for the whole application; the upload and re-processing
    endpoints always use ``DEFAULT_SCAN_CONFIG``.
    """

    # Resize
    max_width: int = 2000

    # Local contrast (CLAHE)
    # Tile size in pixels (width, height); the grid is derived per image
    clahe_tile_size: Tuple[int, int] = (8, 8)
    clahe_clip_limit: float = 2.0

    # Denoise
    median_window: int = 3

    # Binarization: < threshold -> black, >= threshold -> white
    threshold: int = 128

    # Output
    output_format: str = "WEBP"
    output_extension: str = ".webp"
    output_quality: int = 85


DEFAULT_SCAN_CONFIG = ScanConfig()
