# watermarker/overlay.py
"""
水印图层的生成与透明度调整。

resolve() 把文字或图片水印统一转换成一张 RGBA 图层;
apply_opacity() 只缩放 alpha 通道,不改动颜色。
"""
import logging

from PIL import Image

from watermarker.errors import InvalidInput
from watermarker.geometry import round_half_up
from watermarker.image_io import decode_image, ensure_dimensions
from watermarker.options import ImageSource, TextSource
from watermarker.text import rasterize

logger = logging.getLogger(__name__)

# 未指定尺寸时,图片水印宽度为底图宽度的 25%
DEFAULT_WIDTH_RATIO = 0.25


def fit_inside(img, width=None, height=None):
    """
    等比缩放到给定边界之内。

    只给宽或只给高时按该边缩放;两者都给时取较小的缩放比例,
    结果的宽高都不会超过给定的边界。
    """
    if width is None and height is None:
        return img
    src_w, src_h = img.size
    if width is not None and height is not None:
        scale = min(width / src_w, height / src_h)
    elif width is not None:
        scale = width / src_w
    else:
        scale = height / src_h

    new_w = max(1, round_half_up(src_w * scale))
    new_h = max(1, round_half_up(src_h * scale))
    # 浮点误差不能让结果越过边界
    if width is not None:
        new_w = min(new_w, width)
    if height is not None:
        new_h = min(new_h, height)
    if (new_w, new_h) == img.size:
        return img.copy()
    return img.resize((new_w, new_h), Image.LANCZOS)


def _resolve_image(source, spec, base_width):
    wm = decode_image(source.buffer, "watermark image").convert('RGBA')
    if spec.width is not None or spec.height is not None:
        return fit_inside(wm, spec.width, spec.height)
    target_w = max(1, round_half_up(base_width * DEFAULT_WIDTH_RATIO))
    return fit_inside(wm, width=target_w)


def _resolve_text(source, spec):
    wm = rasterize(source.content, source.font_family, source.font_size, source.color)
    # 文字水印没有默认比例,只在显式给出尺寸时缩放
    return fit_inside(wm, spec.width, spec.height)


def resolve(spec, base_width, base_height):
    """
    生成最终的水印图层 (RGBA)。

    图片水印与文字水印同时存在时,图片水印优先,文字被忽略。
    """
    ensure_dimensions(base_width, base_height, "base image")
    spec.validate()
    source = spec.source
    if isinstance(source, ImageSource):
        logger.debug("resolving image watermark (%d bytes)", len(source.buffer))
        overlay = _resolve_image(source, spec, base_width)
    elif isinstance(source, TextSource):
        logger.debug("resolving text watermark %r", source.content)
        overlay = _resolve_text(source, spec)
    else:
        raise InvalidInput("provide watermarkText or watermarkImage")
    ensure_dimensions(overlay.width, overlay.height, "watermark")
    return overlay


def apply_opacity(overlay, opacity):
    """
    按 opacity 缩放 alpha 通道。

    opacity 被限制在 [0, 1];为 1 时返回与输入逐像素相同的副本。
    """
    opacity = max(0.0, min(1.0, float(opacity)))
    if overlay.mode != 'RGBA':
        overlay = overlay.convert('RGBA')
    else:
        overlay = overlay.copy()
    if opacity >= 1.0:
        return overlay
    alpha = overlay.getchannel('A')
    alpha = alpha.point(lambda p: round_half_up(p * opacity))
    overlay.putalpha(alpha)
    return overlay
