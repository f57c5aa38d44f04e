"""
Shared fixtures: a real engine, images generated with it, and a recording fake engine.
"""

import numpy as np
import pytest

import image_util
from engine import DecodedSymbol, Engine


class RecordingEngine:
    """Stands in for Engine and remembers every call it gets."""

    def __init__(self, results=None):
        self.calls = []
        self.results = results or [DecodedSymbol("recorded", "qrcode")]

    def encode(self, data, symbology, width, height, image_format=".png", hints=None):
        self.calls.append(("encode", data, symbology, width, height, image_format, hints))
        return b"not really an image"

    def decode(self, image_bytes, multi=False, try_harder=False, symbologies=None):
        self.calls.append(("decode", image_bytes, multi, try_harder, symbologies))
        return list(self.results)


@pytest.fixture
def barcode_engine():
    return Engine()


@pytest.fixture
def recording_engine():
    return RecordingEngine()


@pytest.fixture
def blank_png(tmp_path):
    """A white image without any barcode."""
    path = tmp_path / "blank.png"
    path.write_bytes(image_util.encode_image(np.full((200, 200), 255, dtype=np.uint8), ".png"))
    return path


@pytest.fixture
def two_qr_png(tmp_path, barcode_engine):
    """Two QR codes side by side, reading 'left' and 'right'."""
    halves = []
    for text in ("left", "right"):
        encoded = barcode_engine.encode(text, "qrcode", 200, 200)
        halves.append(image_util.decode_image_bytes(encoded))
    path = tmp_path / "two.png"
    path.write_bytes(image_util.encode_image(np.hstack(halves), ".png"))
    return path
