import pytest
from PIL import Image

from watermarker.errors import EncodeError
from watermarker.exporter import composite, encode
from watermarker.options import OutputFormat


@pytest.fixture
def black():
    return Image.new("RGB", (100, 100), (0, 0, 0))


@pytest.fixture
def white_square():
    return Image.new("RGBA", (50, 50), (255, 255, 255, 255))


def test_composite_clips_at_bottom_right(black, white_square):
    out = composite(black, white_square, 80, 80)
    assert out.size == (100, 100)
    assert out.mode == "RGB"
    assert out.getpixel((99, 99)) == (255, 255, 255)
    assert out.getpixel((80, 80)) == (255, 255, 255)
    assert out.getpixel((79, 79)) == (0, 0, 0)


def test_composite_negative_offset(black, white_square):
    out = composite(black, white_square, -25, -25)
    assert out.getpixel((0, 0)) == (255, 255, 255)
    assert out.getpixel((24, 24)) == (255, 255, 255)
    assert out.getpixel((25, 25)) == (0, 0, 0)


def test_composite_fully_outside_is_noop(black, white_square):
    out = composite(black, white_square, 500, -500)
    assert out.tobytes() == black.tobytes()


def test_composite_blends_by_alpha(black):
    overlay = Image.new("RGBA", (10, 10), (255, 255, 255, 128))
    r, g, b = composite(black, overlay, 0, 0).getpixel((5, 5))
    assert abs(r - 128) <= 1 and r == g == b


def test_composite_does_not_modify_inputs(black, white_square):
    before = black.tobytes()
    composite(black, white_square, 10, 10)
    assert black.tobytes() == before


def test_composite_keeps_alpha_base():
    base = Image.new("RGBA", (20, 20), (0, 0, 0, 0))
    overlay = Image.new("RGBA", (5, 5), (255, 0, 0, 255))
    out = composite(base, overlay, 0, 0)
    assert out.mode == "RGBA"
    assert out.getpixel((0, 0)) == (255, 0, 0, 255)
    assert out.getpixel((10, 10)) == (0, 0, 0, 0)


@pytest.mark.parametrize("fmt,pil_name", [
    (OutputFormat.JPEG, "JPEG"),
    (OutputFormat.PNG, "PNG"),
    (OutputFormat.WEBP, "WEBP"),
    ("png", "PNG"),
    ("webp", "WEBP"),
    ("gif", "JPEG"),
    (None, "JPEG"),
    ("", "JPEG"),
])
def test_encode_formats(open_bytes, fmt, pil_name):
    img = Image.new("RGBA", (32, 16), (10, 200, 30, 255))
    out = open_bytes(encode(img, fmt))
    assert out.format == pil_name
    assert out.size == (32, 16)


def test_encode_png_preserves_alpha(open_bytes):
    img = Image.new("RGBA", (8, 8), (10, 20, 30, 77))
    out = open_bytes(encode(img, OutputFormat.PNG))
    assert out.mode == "RGBA"
    assert out.getpixel((0, 0)) == (10, 20, 30, 77)


def test_encode_webp_preserves_alpha(open_bytes):
    img = Image.new("RGBA", (8, 8), (10, 20, 30, 0))
    out = open_bytes(encode(img, OutputFormat.WEBP))
    assert out.mode == "RGBA"
    assert out.getpixel((0, 0))[3] == 0


def test_encode_jpeg_flattens_against_black(open_bytes):
    img = Image.new("RGBA", (16, 16), (255, 255, 255, 0))
    out = open_bytes(encode(img, OutputFormat.JPEG))
    assert out.mode == "RGB"
    assert max(out.getpixel((8, 8))) <= 5


def test_encode_rgb_png_stays_rgb(open_bytes):
    out = open_bytes(encode(Image.new("RGB", (4, 4), (1, 2, 3)), "png"))
    assert out.mode == "RGB"


def test_encode_unsupported_mode():
    with pytest.raises(EncodeError):
        encode(Image.new("HSV", (4, 4)), OutputFormat.PNG)
