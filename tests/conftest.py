import io

import pytest
from PIL import Image


def _to_bytes(img, fmt="PNG", **params):
    buf = io.BytesIO()
    img.save(buf, format=fmt, **params)
    return buf.getvalue()


def _open_bytes(data):
    img = Image.open(io.BytesIO(data))
    img.load()
    return img


@pytest.fixture
def to_bytes():
    return _to_bytes


@pytest.fixture
def open_bytes():
    return _open_bytes


@pytest.fixture
def image_bytes():
    """生成指定尺寸、颜色和格式的图片数据"""
    def make(size=(100, 100), color=(50, 50, 50), fmt="PNG", mode="RGB"):
        return _to_bytes(Image.new(mode, size, color), fmt)
    return make


@pytest.fixture
def gradient():
    return Image.linear_gradient("L").convert("RGB")
