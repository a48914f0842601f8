"""Batch re-processing of stored question images."""

import asyncio
from typing import List, Optional, Callable
from dataclasses import dataclass, field
from datetime import datetime
import logging
import time

from .image_manager import ImageManager
from .scan import DocumentScanner

logger = logging.getLogger(__name__)

MAX_REPORTED_ERRORS = 10


@dataclass
class BatchItem:
    """Single stored image to re-process."""
    id: str
    file_id: str
    status: str = "pending"  # pending, processing, completed, failed
    error: Optional[str] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None


@dataclass
class BatchResult:
    """Batch processing result."""
    items: List[BatchItem]
    started_at: datetime
    completed_at: Optional[datetime] = None
    total: int = 0
    processed: int = 0
    failed: int = 0
    processing_time_ms: float = 0.0
    errors: List[str] = field(default_factory=list)


class ReprocessBatch:
    """Re-apply the scan pipeline to stored images, overwriting in place.

    Items run strictly one after another: each run holds a decoded bitmap,
    so peak memory stays at one image regardless of batch size.
    """

    def __init__(self, scanner: DocumentScanner, images: ImageManager):
        self.scanner = scanner
        self.images = images

    async def run(
        self,
        items: List[BatchItem],
        progress_callback: Optional[Callable[[int, int], None]] = None,
    ) -> BatchResult:
        start_time = time.time()
        result = BatchResult(
            items=items,
            started_at=datetime.utcnow(),
            total=len(items),
        )

        for index, item in enumerate(items, start=1):
            await asyncio.to_thread(self._process_item, item)
            if progress_callback:
                progress_callback(index, len(items))

        result.processed = sum(1 for item in items if item.status == "completed")
        result.failed = sum(1 for item in items if item.status == "failed")
        result.errors = [
            f"{item.id}: {item.error}" for item in items if item.status == "failed"
        ][:MAX_REPORTED_ERRORS]
        result.completed_at = datetime.utcnow()
        result.processing_time_ms = (time.time() - start_time) * 1000

        logger.info(
            f"Re-processed {result.processed}/{result.total} images "
            f"({result.failed} failed) in {result.processing_time_ms:.0f} ms"
        )

        return result

    def _process_item(self, item: BatchItem):
        """Re-process a single stored image."""
        item.status = "processing"
        item.started_at = datetime.utcnow()

        try:
            stored = self.images.locate(item.file_id)
            original = self.images.read(stored.filename)
            self.scanner.process_and_save(original, stored.path)
            item.status = "completed"

        except Exception as e:
            logger.error(f"Failed to re-process {item.id}: {e}")
            item.status = "failed"
            item.error = str(e) or type(e).__name__

        finally:
            item.completed_at = datetime.utcnow()
