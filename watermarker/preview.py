# watermarker/preview.py
"""
预览与导出时的缩放。

预览和导出都先用完整尺寸合成,然后只缩放一次;
导出只按目标格式编码一次。
"""
from PIL import Image

from watermarker.exporter import encode
from watermarker.geometry import round_half_up

PREVIEW_MAX_WIDTH = 900
EXPORT_MAX_WIDTH = 4500


def downscale(img, max_width):
    """宽度超过 max_width 时等比缩小,否则返回原图"""
    if max_width is None or img.width <= max_width:
        return img
    scale = max_width / img.width
    height = max(1, round_half_up(img.height * scale))
    return img.resize((max_width, height), Image.LANCZOS)


def export_image(img, output_format, max_width=EXPORT_MAX_WIDTH):
    return encode(downscale(img, max_width), output_format)
