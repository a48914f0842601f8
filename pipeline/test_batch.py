"""Tests for batch re-processing."""

import time
from unittest.mock import Mock

import numpy as np
import pytest

from conftest import decode
from pipeline.batch import ReprocessBatch, BatchItem, MAX_REPORTED_ERRORS


def store(images, scanner, data):
    stored = images.new_image()
    images.write(stored, scanner.process(data))
    return stored


class TestReprocessBatch:
    """Test sequential re-processing."""

    @pytest.mark.asyncio
    async def test_reprocesses_in_place(self, images, scanner, page_png):
        stored = store(images, scanner, page_png)

        result = await ReprocessBatch(scanner, images).run(
            [BatchItem(id="q1", file_id=stored.file_id)]
        )

        assert result.total == 1
        assert result.processed == 1
        assert result.failed == 0
        assert result.errors == []
        assert result.items[0].status == "completed"
        pixels = decode(stored.path.read_bytes())
        assert set(np.unique(pixels).tolist()) <= {0, 255}

    @pytest.mark.asyncio
    async def test_failures_do_not_stop_batch(self, images, scanner, page_png):
        good = store(images, scanner, page_png)
        corrupt = images.new_image()
        images.write(corrupt, b"garbage")

        items = [
            BatchItem(id="missing", file_id="no-such-file"),
            BatchItem(id="corrupt", file_id=corrupt.file_id),
            BatchItem(id="good", file_id=good.file_id),
        ]
        result = await ReprocessBatch(scanner, images).run(items)

        assert result.processed == 1
        assert result.failed == 2
        assert [e.split(":")[0] for e in result.errors] == ["missing", "corrupt"]
        # Failed decode leaves the stored bytes alone
        assert corrupt.path.read_bytes() == b"garbage"

    @pytest.mark.asyncio
    async def test_reported_errors_capped(self, images, scanner):
        items = [BatchItem(id=f"q{i}", file_id=f"missing-{i}") for i in range(15)]

        result = await ReprocessBatch(scanner, images).run(items)

        assert result.failed == 15
        assert len(result.errors) == MAX_REPORTED_ERRORS

    @pytest.mark.asyncio
    async def test_progress_callback(self, images, scanner, page_png):
        items = [
            BatchItem(id=str(i), file_id=store(images, scanner, page_png).file_id)
            for i in range(3)
        ]
        callback = Mock()

        await ReprocessBatch(scanner, images).run(items, progress_callback=callback)

        assert [c.args for c in callback.call_args_list] == [(1, 3), (2, 3), (3, 3)]

    @pytest.mark.asyncio
    async def test_one_file_at_a_time(self, images, scanner, page_png):
        items = [
            BatchItem(id=str(i), file_id=store(images, scanner, page_png).file_id)
            for i in range(4)
        ]
        in_flight = []
        peak = []
        save = scanner.process_and_save

        def tracked_save(data, destination):
            in_flight.append(destination)
            peak.append(len(in_flight))
            try:
                time.sleep(0.01)
                return save(data, destination)
            finally:
                in_flight.remove(destination)

        scanner.process_and_save = tracked_save

        result = await ReprocessBatch(scanner, images).run(items)

        assert result.processed == 4
        assert len(peak) == 4
        assert max(peak) == 1
