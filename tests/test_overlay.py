import pytest
from PIL import Image

from watermarker.errors import DecodeError, InvalidInput
from watermarker.image_io import decode_image
from watermarker.options import ImageSource, TextSource, WatermarkSpec
from watermarker.overlay import apply_opacity, fit_inside, resolve


@pytest.fixture
def logo(image_bytes):
    return image_bytes((400, 200), (200, 10, 10, 255), mode="RGBA")


def test_default_ratio_resize(logo):
    overlay = resolve(WatermarkSpec(image=ImageSource(logo)), 1000, 700)
    assert overlay.size == (250, 125)
    assert overlay.mode == "RGBA"


@pytest.mark.parametrize("width,height,expected", [
    (100, None, (100, 50)),
    (None, 40, (80, 40)),
    (100, 100, (100, 50)),
    (1000, 100, (200, 100)),
    (800, None, (800, 400)),
])
def test_explicit_bounds_fit_inside(logo, width, height, expected):
    spec = WatermarkSpec(image=ImageSource(logo), width=width, height=height)
    overlay = resolve(spec, 1000, 700)
    assert overlay.size == expected
    if width is not None:
        assert overlay.width <= width
    if height is not None:
        assert overlay.height <= height


def test_fit_inside_without_bounds_returns_input():
    img = Image.new("RGBA", (30, 10))
    assert fit_inside(img) is img


def test_text_keeps_natural_size_without_bounds():
    spec = WatermarkSpec(text=TextSource("Hello", font_size=48))
    overlay = resolve(spec, 1000, 700)
    assert overlay.height == 58


def test_text_resized_when_bounds_given():
    spec = WatermarkSpec(text=TextSource("Hello", font_size=48), height=29)
    overlay = resolve(spec, 1000, 700)
    assert overlay.height == 29


def test_image_wins_over_text(logo):
    spec = WatermarkSpec(text=TextSource("Hello"), image=ImageSource(logo))
    overlay = resolve(spec, 1000, 700)
    assert overlay.size == (250, 125)
    r, g, b, a = overlay.getpixel((125, 62))
    assert r > 150 and g < 50 and b < 50 and a > 250


def test_empty_image_buffer_falls_back_to_text():
    spec = WatermarkSpec(text=TextSource("Hello"), image=ImageSource(b""))
    assert resolve(spec, 1000, 700).height == 58


@pytest.mark.parametrize("spec", [
    WatermarkSpec(),
    WatermarkSpec(text=TextSource("")),
    WatermarkSpec(text=TextSource(""), image=ImageSource(b"")),
])
def test_no_usable_source(spec):
    with pytest.raises(InvalidInput):
        resolve(spec, 1000, 700)


def test_non_positive_base_dimensions(logo):
    with pytest.raises(InvalidInput):
        resolve(WatermarkSpec(image=ImageSource(logo)), 0, 700)


def test_corrupt_watermark_image():
    with pytest.raises(DecodeError):
        resolve(WatermarkSpec(image=ImageSource(b"definitely not a png")), 1000, 700)


def test_exif_orientation_is_applied(to_bytes):
    img = Image.new("RGB", (40, 20), (0, 0, 255))
    exif = Image.Exif()
    exif[0x0112] = 6  # 顺时针旋转 90 度
    data = to_bytes(img, "JPEG", exif=exif)
    assert decode_image(data).size == (20, 40)
    overlay = resolve(WatermarkSpec(image=ImageSource(data)), 200, 200)
    assert overlay.size == (50, 100)


def test_opacity_one_is_pixel_identical():
    img = Image.new("RGBA", (8, 8), (10, 20, 30, 200))
    out = apply_opacity(apply_opacity(img, 1.0), 1.0)
    assert out is not img
    assert out.tobytes() == img.tobytes()


def test_opacity_above_one_is_clamped():
    img = Image.new("RGBA", (8, 8), (10, 20, 30, 200))
    assert apply_opacity(img, 3.5).tobytes() == img.tobytes()


def test_opacity_scales_alpha_only():
    img = Image.new("RGBA", (8, 8), (10, 20, 30, 200))
    out = apply_opacity(img, 0.5)
    assert out.size == img.size
    assert out.getpixel((3, 3)) == (10, 20, 30, 100)
    # 输入不被修改
    assert img.getpixel((3, 3)) == (10, 20, 30, 200)


def test_negative_opacity_is_transparent():
    img = Image.new("RGBA", (4, 4), (10, 20, 30, 255))
    assert apply_opacity(img, -1).getchannel("A").getextrema() == (0, 0)


def test_opacity_converts_to_rgba():
    out = apply_opacity(Image.new("RGB", (4, 4), (1, 2, 3)), 0.5)
    assert out.mode == "RGBA"
    assert out.getpixel((0, 0)) == (1, 2, 3, 128)
