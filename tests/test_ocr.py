"""
Tests for the OCR engine layer: engine factory, FontOCREngine and the
debug utilities.
"""

import os

import pytest
from PIL import Image

from conftest import BLACK, WHITE
from pixelfont.ocr import (
    FontOCREngine,
    LineResult,
    OCREngine,
    PixelBuffer,
    Rect,
    ScoreRecorder,
    available_engines,
    create_engine,
    register_engine,
    render_font,
    save_debug_image,
    save_font,
)
from pixelfont.ocr import debug
from pixelfont.ocr.debug import FONT_PREVIEW_GAP, zoom_image


class EchoEngine(OCREngine):
    """Engine that returns a fixed text, for registry tests."""

    def __init__(self):
        self.text = "echo"

    @property
    def name(self) -> str:
        return "echo"

    def process(self, image, colors, x, y, w=-1, h=-1):
        return LineResult(text=self.text, debug_area=Rect(x, y, 0, 0))

    def configure(self, **kwargs):
        self.text = kwargs.get("text", self.text)


# ============================================================
# Factory
# ============================================================

def test_font_engine_available():
    """The pixel font engine is registered by default."""
    assert "font" in available_engines()


def test_create_engine_unknown_type():
    with pytest.raises(ValueError):
        create_engine("tesseract")


def test_create_engine_with_font(font):
    engine = create_engine("font", font=font)
    assert isinstance(engine, FontOCREngine)
    assert engine.name == "font"
    assert engine.font is font


def test_register_custom_engine():
    register_engine("echo", EchoEngine)
    engine = create_engine("echo", text="hello")

    assert "echo" in available_engines()
    assert engine.process(None, [WHITE], 3, 4).text == "hello"


def test_register_rejects_non_engine():
    with pytest.raises(TypeError):
        register_engine("bad", dict)
    with pytest.raises(TypeError):
        register_engine("bad", "engine.FontOCREngine")


# ============================================================
# FontOCREngine
# ============================================================

def test_process_pil_image(font, render):
    """Images are converted and the line around the hint is read."""
    image = render(font, " A B", WHITE, 4, 6).to_image().convert("RGB")
    engine = create_engine("font", font=font)

    result = engine.process(image, [WHITE], 7, 6)
    assert result.text == "A B"
    assert result.found
    assert result.processing_time_ms >= 0


def test_process_buffer(font, render):
    buf = render(font, "AB", WHITE, 8, 6)
    result = FontOCREngine(font=font).process(buf, WHITE, 9, 6)
    assert result.text == "AB"


def test_process_nothing_found(font):
    buf = PixelBuffer.filled(20, 10, BLACK)
    result = FontOCREngine(font=font).process(buf, [WHITE], 7, 6)
    assert result.text == ""
    assert not result.found


def test_read_exact(font, render):
    buf = render(font, " A B", WHITE, 4, 6)
    engine = FontOCREngine(font=font)

    assert engine.read_exact(buf, WHITE, 11, 6).text == "B"
    assert engine.read_exact(buf, WHITE, 11, 6, backward=True).text == "A B"


def test_font_loaded_lazily(font, render, tmp_path):
    path = tmp_path / "font.json"
    save_font(font, path)
    engine = create_engine("font", font_path=str(path))

    assert engine.font == font
    buf = render(font, "BA", WHITE, 8, 6)
    assert engine.process(buf, [WHITE], 9, 6).text == "BA"


def test_missing_font_raises():
    engine = create_engine("font")
    with pytest.raises(ValueError):
        engine.process(PixelBuffer(4, 4), [WHITE], 0, 0)


def test_collector_receives_scores(font, render):
    recorder = ScoreRecorder()
    engine = create_engine("font", font=font, collector=recorder)
    engine.process(render(font, "A", WHITE, 6, 6), [WHITE], 7, 6)

    assert len(recorder) > 0
    assert recorder.best(6, 6, WHITE)[0].chr == "A"

    engine.configure(collector=None)
    recorder.clear()
    engine.process(render(font, "A", WHITE, 6, 6), [WHITE], 7, 6)
    assert len(recorder) == 0


# ============================================================
# Debug utilities
# ============================================================

def test_render_font(font):
    preview = render_font(font)
    spacing = font.width + FONT_PREVIEW_GAP

    assert preview.width == spacing * len(font.chars)
    assert preview.height == font.height + 1
    # Top pixel of A's apex, and the gap after it
    assert preview.get_pixel(1, 0) == (255, 255, 255, 255)
    assert preview.get_pixel(font.width, 0) == (0, 0, 0, 255)
    # B starts in the second cell
    assert preview.get_pixel(spacing, 0) == (255, 255, 255, 255)


def test_zoom_image():
    buf = PixelBuffer.filled(3, 2, (10, 20, 30))
    buf.set_pixel(0, 0, (255, 0, 0))
    zoomed = zoom_image(buf, 4)

    assert (zoomed.width, zoomed.height) == (12, 8)
    assert zoomed.get_pixel(3, 3) == (255, 0, 0, 255)
    assert zoomed.get_pixel(4, 0) == (10, 20, 30, 255)
    assert zoom_image(buf, 1) is buf


def test_save_debug_image(font, render, tmp_path):
    buf = render(font, " A B", WHITE, 4, 6)
    result = FontOCREngine(font=font).process(buf, [WHITE], 7, 6)

    path = tmp_path / "debug" / "read.png"
    save_debug_image(buf, result, path, zoom=3)

    assert path.exists()
    with Image.open(path) as saved:
        assert saved.size == (buf.width * 3, buf.height * 3)


def test_save_debug_image_from_pil(tmp_path):
    image = Image.new("RGB", (16, 8))
    result = LineResult(text="", debug_area=Rect(2, 2, 4, 4))

    path = tmp_path / "empty.png"
    assert save_debug_image(image, result, path) == path
    assert path.exists()


def test_debug_dir_keeps_newest_images(tmp_path, monkeypatch):
    """Timestamped debug images are pruned to MAX_DEBUG_IMAGES."""
    debug_dir = tmp_path / "debug"
    monkeypatch.setattr(debug, "DEBUG_DIR", debug_dir)
    debug_dir.mkdir()

    old_files = []
    for i in range(debug.MAX_DEBUG_IMAGES + 2):
        old = debug_dir / f"debug_old_{i:02d}.png"
        old.write_bytes(b"")
        # Oldest first, all well in the past
        os.utime(old, (1_000_000 + i, 1_000_000 + i))
        old_files.append(old)

    image = Image.new("RGB", (16, 8))
    result = LineResult(text="", debug_area=Rect(2, 2, 4, 4))
    saved = save_debug_image(image, result)

    assert saved.parent == debug_dir
    assert saved.name.startswith("debug_")
    remaining = sorted(debug_dir.glob("debug_*.png"))
    assert len(remaining) == debug.MAX_DEBUG_IMAGES
    assert saved in remaining
    # The three oldest were removed
    assert not any(f.exists() for f in old_files[:3])
    assert all(f.exists() for f in old_files[3:])
