"""
Shared fixtures: a scripted stand-in for GenerationClient and real image files.
"""
import asyncio
from io import BytesIO

import pytest
from PIL import Image

from src.content_optimizer.models import ImageBlob


def png_bytes(color=(200, 30, 30), size=(32, 18)) -> bytes:
    buf = BytesIO()
    Image.new("RGB", size, color).save(buf, "PNG")
    return buf.getvalue()


class FakeGenerationClient:
    """Async stand-in for GenerationClient that records every call."""

    def __init__(self):
        self.calls = []
        self.titles = [f"Title number {i}" for i in range(20)]
        self.suggestion_batches = [["Add a glowing outline", "Use a brighter background", "Make the text bigger"]]
        self.style = "- **Color Palette:** bold red and black"
        self.failures = {}
        self.suggestion_gate = None
        self._images = 0

    def _record(self, kind, *args):
        self.calls.append((kind, args))
        exc = self.failures.get(kind)
        if exc is not None:
            raise exc

    def count(self, kind):
        return sum(1 for k, _ in self.calls if k == kind)

    def _image(self) -> ImageBlob:
        self._images += 1
        return ImageBlob.from_bytes(png_bytes((self._images * 20 % 256, 80, 120)))

    async def generate_titles(self, topic, language):
        self._record("titles", topic, language)
        return list(self.titles)

    async def generate_thumbnail(self, title, language, num_subjects, subject1, subject2,
                                 backgrounds, layout, style_description, style_strength):
        self._record("thumbnail", title, language, num_subjects, subject1, subject2,
                     backgrounds, layout, style_description, style_strength)
        return self._image()

    async def analyze_style(self, references):
        self._record("style", references)
        return self.style

    async def edit_thumbnail(self, thumbnail, instruction, language):
        self._record("edit", thumbnail, instruction, language)
        return self._image()

    async def get_suggestions(self, title, language):
        if self.suggestion_gate is not None:
            await self.suggestion_gate.wait()
        self._record("suggestions", title, language)
        index = min(self.count("suggestions") - 1, len(self.suggestion_batches) - 1)
        return list(self.suggestion_batches[index])


@pytest.fixture
def fake_client():
    return FakeGenerationClient()


@pytest.fixture
def image_file(tmp_path):
    """Factory writing small PNG files into tmp_path."""
    counter = {"n": 0}

    def make(name=None, color=(10, 120, 200)):
        counter["n"] += 1
        path = tmp_path / (name or f"image_{counter['n']}.png")
        path.write_bytes(png_bytes(color))
        return path

    return make


@pytest.fixture
def run():
    """Run a coroutine to completion on a fresh event loop."""
    return asyncio.run
