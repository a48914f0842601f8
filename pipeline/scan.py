"""Document-scan pipeline.

Turns a phone photo of a printed question into a flat, monochrome,
print-ready image:

    resize -> grayscale -> normalize -> CLAHE -> median -> threshold -> WebP

Each stage works on the output of the previous one. The transform is pure:
the only I/O is in ``process_and_save``, which writes after a successful run.
"""

import io
import logging
import time
from pathlib import Path
from typing import Optional, Tuple, Union

import cv2
import numpy as np
from PIL import Image, UnidentifiedImageError
from pillow_heif import register_heif_opener

from .config import ScanConfig, DEFAULT_SCAN_CONFIG

register_heif_opener()

logger = logging.getLogger(__name__)


class ImageDecodeError(Exception):
    """Input bytes could not be decoded as an image."""


class DocumentScanner:
    """Fixed-function document-scan pipeline."""

    def __init__(self, config: Optional[ScanConfig] = None):
        self.config = config or DEFAULT_SCAN_CONFIG

    def process(self, data: bytes) -> bytes:
        """Run the full pipeline on raw image bytes.

        Raises:
            ImageDecodeError: If ``data`` is not a decodable image.
        """
        start_time = time.time()

        image = self._decode(data)
        image = self.resize_if_needed(image)
        gray = self._grayscale(image)
        gray = self._normalize(gray)
        gray = self._equalize_local(gray)
        gray = self._denoise(gray)
        binary = self._binarize(gray)
        output = self._encode(binary)

        logger.debug(
            "Scanned image %dx%d -> %d bytes in %.1f ms",
            binary.shape[1], binary.shape[0], len(output),
            (time.time() - start_time) * 1000,
        )
        return output

    def process_and_save(self, data: bytes, destination: Union[str, Path]) -> Path:
        """Process ``data`` and write the result to ``destination``.

        An existing file at ``destination`` is overwritten. Nothing is written
        when decoding fails.
        """
        processed = self.process(data)

        path = Path(destination)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "wb") as f:
            f.write(processed)

        return path

    def _decode(self, data: bytes) -> np.ndarray:
        """Decode bytes into an RGB or L array."""
        try:
            with Image.open(io.BytesIO(data)) as img:
                img.load()
                if img.mode not in ("RGB", "L"):
                    img = img.convert("RGB")
                return np.array(img)
        except (
            UnidentifiedImageError,
            Image.DecompressionBombError,
            OSError,
            SyntaxError,
            ValueError,
        ) as e:
            raise ImageDecodeError(f"Could not decode image: {e}") from e

    def resize_if_needed(self, image: np.ndarray) -> np.ndarray:
        """Scale down to the width cap, keeping aspect ratio. Never upscales."""
        h, w = image.shape[:2]
        max_w = self.config.max_width

        if w > max_w:
            new_h = max(1, int(round(h * max_w / w)))
            return cv2.resize(image, (max_w, new_h), interpolation=cv2.INTER_AREA)

        return image

    def _grayscale(self, image: np.ndarray) -> np.ndarray:
        if image.ndim == 3:
            return cv2.cvtColor(image, cv2.COLOR_RGB2GRAY)
        return image

    def _normalize(self, image: np.ndarray) -> np.ndarray:
        """Stretch luminance to the full 0-255 range."""
        if int(image.max()) <= int(image.min()):
            return image
        return cv2.normalize(image, None, 0, 255, cv2.NORM_MINMAX)

    def _equalize_local(self, image: np.ndarray) -> np.ndarray:
        """Tiled adaptive histogram equalization (uneven lighting, shadows)."""
        # CLAHE objects keep scratch buffers; one per call keeps threads apart
        clahe = cv2.createCLAHE(
            clipLimit=self.config.clahe_clip_limit,
            tileGridSize=self.clahe_grid(image.shape),
        )
        return clahe.apply(image)

    def clahe_grid(self, shape: Tuple[int, ...]) -> Tuple[int, int]:
        """Tile grid (columns, rows) giving fixed-size tiles for an image of ``shape``."""
        h, w = shape[:2]
        tile_w, tile_h = self.config.clahe_tile_size
        return max(1, w // tile_w), max(1, h // tile_h)

    def _denoise(self, image: np.ndarray) -> np.ndarray:
        return cv2.medianBlur(image, self.config.median_window)

    def _binarize(self, image: np.ndarray) -> np.ndarray:
        # THRESH_BINARY keeps pixels strictly above the cutoff
        _, binary = cv2.threshold(
            image, self.config.threshold - 1, 255, cv2.THRESH_BINARY
        )
        return binary

    def _encode(self, image: np.ndarray) -> bytes:
        buffer = io.BytesIO()
        Image.fromarray(image).save(
            buffer,
            format=self.config.output_format,
            quality=self.config.output_quality,
            lossless=True,
        )
        return buffer.getvalue()


def process_for_print(data: bytes) -> bytes:
    """Convert a photo into a print-ready monochrome WebP."""
    return DocumentScanner().process(data)


def process_and_save(data: bytes, destination: Union[str, Path]) -> Path:
    """Convert a photo and write it to ``destination``."""
    return DocumentScanner().process_and_save(data, destination)
