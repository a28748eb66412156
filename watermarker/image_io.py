# watermarker/image_io.py
import io

from PIL import Image, ImageOps, UnidentifiedImageError

from watermarker.errors import DecodeError, InvalidInput


def ensure_dimensions(width, height, what="image"):
    """拒绝宽高为零或负数的尺寸"""
    if width is None or height is None or width <= 0 or height <= 0:
        raise InvalidInput(f"{what} dimensions must be positive, got {width}x{height}")


def decode_image(buffer, what="image"):
    """
    解码图片数据并修正 EXIF 方向。

    返回完全载入内存的 PIL.Image,之后的几何计算只依赖像素尺寸。
    """
    if not buffer:
        raise InvalidInput(f"{what} is empty")
    try:
        img = Image.open(io.BytesIO(buffer))
        img.load()
        img = ImageOps.exif_transpose(img)  # 修正 EXIF 方向
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError) as e:
        raise DecodeError(f"cannot decode {what}: {e}") from e
    ensure_dimensions(img.width, img.height, what)
    return img
