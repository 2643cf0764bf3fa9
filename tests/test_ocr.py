# tests/test_ocr.py
import pytest
from PIL import Image

from squares_backend.core.errors import RecognitionUnavailable
from squares_backend.core.models import BBox, Rect
from squares_backend.services import ocr
from squares_backend.services.ocr import (
    TesseractEngine,
    confident_digits,
    extract_symbols,
    get_ocr_engine,
    offset_symbols,
)

from conftest import FakeEngine, sym


def _fake_tesseract(monkeypatch, data):
    calls = []

    def image_to_data(image, lang=None, config=None, output_type=None):
        calls.append({"size": image.size, "config": config})
        return data

    monkeypatch.setattr(ocr.pytesseract, "image_to_data", image_to_data)
    return calls


def test_confident_digits_drops_low_confidence_and_non_digits():
    symbols = [sym("7", 0, 0, conf=40), sym("3", 0, 0, conf=39.9), sym("12", 0, 0), sym("", 0, 0), sym("x", 0, 0)]
    assert [s.text for s in confident_digits(symbols)] == ["7"]
    assert [s.text for s in confident_digits(symbols, min_confidence=30)] == ["7", "3"]


def test_offset_symbols_moves_local_boxes_into_image_space():
    moved = offset_symbols([sym("4", 5, 5)], 100, 50)
    assert moved[0].bbox == BBox(105, 55, 115, 65)
    assert moved[0].text == "4" and moved[0].confidence == 90.0


def test_extract_symbols_hands_the_engine_only_the_region():
    engine = FakeEngine([sym("1", 1, 1)])
    img = Image.new("RGB", (400, 300), "white")
    out = extract_symbols(img, Rect(10.7, 20.2, 50.9, 30.1), engine)
    assert engine.seen == [(50, 30)]
    assert out[0].bbox == BBox(1, 1, 11, 11)


def test_extract_symbols_wraps_engine_crash():
    class Broken:
        def recognize(self, image, whitelist):
            raise RuntimeError("tesseract not installed")

    with pytest.raises(RecognitionUnavailable):
        extract_symbols(Image.new("RGB", (10, 10)), None, Broken())


def test_unknown_engine_is_unavailable():
    with pytest.raises(RecognitionUnavailable):
        get_ocr_engine("nope")


def test_tesseract_words_split_into_per_digit_symbols(monkeypatch):
    calls = _fake_tesseract(monkeypatch, {
        "text": ["", "24", "7"],
        "conf": [-1, 88.5, "61"],
        "left": [0, 10, 50],
        "top": [0, 5, 5],
        "width": [300, 20, 10],
        "height": [100, 12, 12],
    })
    out = TesseractEngine().recognize(Image.new("RGB", (300, 100), "white"), "0123456789")

    assert [s.text for s in out] == ["2", "4", "7"]
    assert out[0].bbox == BBox(10, 5, 20, 17)
    assert out[1].bbox == BBox(20, 5, 30, 17)
    assert out[2].confidence == 61.0
    assert "tessedit_char_whitelist=0123456789" in calls[0]["config"]
    assert "--psm 11" in calls[0]["config"]


def test_tesseract_boxes_undo_small_crop_upscale(monkeypatch):
    calls = _fake_tesseract(monkeypatch, {
        "text": ["5"], "conf": [90], "left": [30], "top": [15], "width": [30], "height": [30],
    })
    out = TesseractEngine().recognize(Image.new("RGB", (100, 30), "white"), "0123456789")

    assert calls[0]["size"] == (300, 90)
    assert out[0].bbox == BBox(10, 5, 20, 15)
