"""Shared test fixtures."""

import io

import numpy as np
import pytest
from PIL import Image

from database.connection import Database
from pipeline.image_manager import ImageManager
from pipeline.scan import DocumentScanner


def make_page(width: int = 400, height: int = 300, fmt: str = "PNG", color: bool = True) -> bytes:
    """A synthetic photo of a printed page: dark text blocks on a lit background."""
    # Uneven lighting from left to right
    ramp = np.linspace(150, 235, width, dtype=np.float32)
    page = np.tile(ramp, (height, 1))

    # Text lines
    line_h = max(4, height // 20)
    for top in range(line_h, height - line_h, line_h * 2):
        page[top:top + line_h, width // 10:width - width // 10] = 30

    page = page.astype(np.uint8)
    if color:
        rgb = np.stack([page, page, np.clip(page.astype(np.int16) + 10, 0, 255).astype(np.uint8)], axis=-1)
        img = Image.fromarray(rgb)
    else:
        img = Image.fromarray(page)

    buffer = io.BytesIO()
    img.save(buffer, format=fmt)
    return buffer.getvalue()


def decode(data: bytes) -> np.ndarray:
    """Decode image bytes to a grayscale array."""
    with Image.open(io.BytesIO(data)) as img:
        return np.array(img.convert("L"))


@pytest.fixture
def page_png():
    return make_page()


@pytest.fixture
def scanner():
    return DocumentScanner()


@pytest.fixture
def images(tmp_path):
    return ImageManager(str(tmp_path / "uploads"), max_file_size_mb=1)


@pytest.fixture
async def database(tmp_path):
    """File-backed SQLite store with default lessons seeded."""
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await db.init(seed=True)
    yield db
    await db.close()


@pytest.fixture
async def session(database):
    async with database.session_maker() as session:
        yield session


SOLUTION_TEXT = """**TOPIC:** Quadratic Equations
**DIFFICULTY:** Hard
**SUMMARY:** Find the roots of a quadratic.

**SOLUTION:**
Factor $x^2 - 5x + 6 = (x - 2)(x - 3)$.

**CORRECT ANSWER:** B"""


class FakeProcessor:
    """Stands in for GeminiProcessor; records every call."""

    def __init__(self, reply: str = SOLUTION_TEXT, error: Exception = None):
        self.reply = reply
        self.error = error
        self.calls = []

    async def generate(self, parts):
        self.calls.append(parts)
        if self.error is not None:
            raise self.error
        return self.reply

    async def generate_with_image(self, prompt, image, mime_type="image/webp"):
        return await self.generate([prompt, {"mime_type": mime_type, "data": image}])

    async def list_models(self):
        if self.error is not None:
            raise self.error
        return [{"id": "gemini-test", "name": "Gemini Test", "description": ""}]


@pytest.fixture
def fake_processor():
    return FakeProcessor()
