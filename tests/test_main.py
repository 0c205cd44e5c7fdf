"""Tests for the command line front end (main.py)."""

import json

import pytest
from PIL import Image

from conftest import BLACK, REF_BASELINE, SPACEWIDTH, WHITE, make_reference
from main import main, parse_args
from pixelfont.ocr import PixelBuffer, debug, load_font


@pytest.fixture
def workdir(tmp_path, monkeypatch):
    """Run commands in an empty directory so no settings file is picked up."""
    monkeypatch.chdir(tmp_path)
    return tmp_path


def calibrate(workdir, *extra):
    ref_path = workdir / "ref.png"
    make_reference().save(ref_path)
    font_path = workdir / "font.json"
    code = main([
        "calibrate", str(ref_path),
        "--chars", "AB",
        "--basey", str(REF_BASELINE),
        "--spacewidth", str(SPACEWIDTH),
        "--threshold", "0.5",
        "--unblend", "none",
        "-o", str(font_path),
        *extra,
    ])
    return code, font_path


def test_calibrate(workdir, font):
    code, font_path = calibrate(workdir)
    assert code == 0
    assert load_font(font_path) == font


def test_calibrate_bonus_and_secondary(workdir):
    code, font_path = calibrate(workdir, "--bonus", "A=2.5", "--secondary", "B")
    assert code == 0

    loaded = load_font(font_path)
    assert loaded.get_char("B").secondary
    assert loaded.get_char("A").bonus == 2.5 + 5 * loaded.get_char("A").pixel_count


def test_calibrate_uses_settings(workdir):
    (workdir / "pixelfont.json").write_text(json.dumps({"spacewidth": 6}), encoding="utf-8")
    ref_path = workdir / "ref.png"
    make_reference().save(ref_path)

    code = main(["calibrate", str(ref_path), "--chars", "AB", "--basey", "5",
                 "--unblend", "none", "-o", "font.json"])
    assert code == 0
    assert load_font(workdir / "font.json").spacewidth == 6


def test_calibrate_span_mismatch(workdir):
    code, _ = calibrate(workdir, "--chars", "ABC")
    assert code == 2


def test_calibrate_knownbg_needs_background(workdir):
    make_reference().save(workdir / "ref.png")
    code = main(["calibrate", "ref.png", "--chars", "AB", "--basey", "5",
                 "--unblend", "knownbg", "-o", "font.json"])
    assert code == 2


def test_read(workdir, font, render, capsys):
    _, font_path = calibrate(workdir)
    render(font, " A B", WHITE, 4, 6).save(workdir / "capture.png")

    code = main(["read", "capture.png", "--font", str(font_path),
                 "--color", "255", "255", "255", "--x", "7", "--y", "6"])
    assert code == 0
    assert capsys.readouterr().out == "A B\n"


def test_read_exact_with_debug_image(workdir, font, render, capsys):
    _, font_path = calibrate(workdir)
    render(font, " A B", WHITE, 4, 6).save(workdir / "capture.png")

    code = main(["read", "capture.png", "--font", str(font_path),
                 "--color", "255", "0", "0", "--color", "255", "255", "255",
                 "--x", "11", "--y", "6", "--exact", "--backward",
                 "--debug-image", "out/read.png", "--zoom", "2"])
    assert code == 0
    assert capsys.readouterr().out == "A B\n"
    with Image.open(workdir / "out" / "read.png") as img:
        assert img.size == (40, 20)


def test_calibrate_save_settings(workdir, font, render, capsys):
    code, font_path = calibrate(workdir, "--save-settings")
    assert code == 0

    stored = json.loads((workdir / "pixelfont.json").read_text(encoding="utf-8"))
    assert stored["font_path"] == str(font_path)
    assert stored["spacewidth"] == SPACEWIDTH
    assert stored["threshold"] == 0.5

    # read falls back to the stored font
    render(font, " A B", WHITE, 4, 6).save(workdir / "capture.png")
    code = main(["read", "capture.png", "--color", "255", "255", "255", "--x", "7", "--y", "6"])
    assert code == 0
    assert capsys.readouterr().out == "A B\n"


def test_read_debug_image_default_location(workdir, font, render, monkeypatch):
    monkeypatch.setattr(debug, "DEBUG_DIR", workdir / "debug")
    _, font_path = calibrate(workdir)
    render(font, " A B", WHITE, 4, 6).save(workdir / "capture.png")

    code = main(["read", "capture.png", "--font", str(font_path),
                 "--color", "255", "255", "255", "--x", "7", "--y", "6",
                 "--debug-image", "--zoom", "1"])
    assert code == 0
    saved = list((workdir / "debug").glob("debug_*.png"))
    assert len(saved) == 1


def test_read_nothing(workdir, capsys):
    _, font_path = calibrate(workdir)
    PixelBuffer.filled(20, 10, BLACK).save(workdir / "blank.png")

    code = main(["read", "blank.png", "--font", str(font_path),
                 "--color", "255", "255", "255", "--x", "7", "--y", "6"])
    assert code == 1
    assert capsys.readouterr().out == "\n"


def test_read_without_font(workdir):
    PixelBuffer.filled(20, 10, BLACK).save(workdir / "blank.png")
    code = main(["read", "blank.png", "--color", "255", "255", "255", "--x", "7", "--y", "6"])
    assert code == 2


def test_read_missing_image(workdir):
    _, font_path = calibrate(workdir)
    code = main(["read", "nope.png", "--font", str(font_path),
                 "--color", "255", "255", "255", "--x", "7", "--y", "6"])
    assert code == 2


def test_show_font(workdir):
    _, font_path = calibrate(workdir)
    code = main(["show-font", str(font_path), "-o", "preview.png", "--zoom", "2"])

    assert code == 0
    with Image.open(workdir / "preview.png") as img:
        # Two 3px glyph cells plus 2px gaps, one extra row, zoomed twice
        assert img.size == (20, 12)


def test_parse_bonus():
    args = parse_args(["calibrate", "ref.png", "--chars", "=", "--basey", "3",
                       "--bonus", "==1.5", "-o", "f.json"])
    assert args.bonus == [("=", 1.5)]

    with pytest.raises(SystemExit):
        parse_args(["calibrate", "ref.png", "--chars", "A", "--basey", "3",
                    "--bonus", "A", "-o", "f.json"])
