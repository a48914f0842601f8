"""
Question Bank image pipeline

Document-scan processing, upload storage, batch re-processing and the
Gemini client.
"""

__version__ = "1.0.0"

from .config import ScanConfig, DEFAULT_SCAN_CONFIG
from .scan import DocumentScanner, ImageDecodeError, process_for_print, process_and_save
from .image_manager import ImageManager, StoredImage, UploadValidationError
from .batch import ReprocessBatch, BatchItem, BatchResult
from .ai_processor import GeminiProcessor, AIGatewayError

__all__ = [
    "ScanConfig",
    "DEFAULT_SCAN_CONFIG",
    "DocumentScanner",
    "ImageDecodeError",
    "process_for_print",
    "process_and_save",
    "ImageManager",
    "StoredImage",
    "UploadValidationError",
    "ReprocessBatch",
    "BatchItem",
    "BatchResult",
    "GeminiProcessor",
    "AIGatewayError",
]
