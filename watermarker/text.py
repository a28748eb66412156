# watermarker/text.py
"""
文字水印栅格化。

把一段文字按字体、字号、颜色渲染成紧贴文字宽度的 RGBA 图像:
高度固定为 ceil(字号 * 1.2),基线位于 round_half_up(字号 * 0.9)。
"""
import logging
import math
import os

from PIL import Image, ImageColor, ImageDraw, ImageFont

from watermarker.errors import InvalidInput
from watermarker.geometry import round_half_up

logger = logging.getLogger(__name__)

LINE_HEIGHT_RATIO = 1.2
BASELINE_RATIO = 0.9

FONT_FILE_EXTS = ('.ttf', '.otf', '.ttc')

# CSS 通用字体族到常见字体文件的映射
GENERIC_FAMILIES = {
    'sans-serif': ['DejaVuSans.ttf', 'Arial.ttf', 'arial.ttf', 'LiberationSans-Regular.ttf', 'Helvetica.ttc'],
    'serif': ['DejaVuSerif.ttf', 'Times New Roman.ttf', 'times.ttf', 'LiberationSerif-Regular.ttf'],
    'monospace': ['DejaVuSansMono.ttf', 'Courier New.ttf', 'cour.ttf', 'LiberationMono-Regular.ttf'],
}
GENERIC_FAMILIES['system-ui'] = GENERIC_FAMILIES['sans-serif']
GENERIC_FAMILIES['-apple-system'] = GENERIC_FAMILIES['sans-serif']

_MARKUP_ESCAPES = {
    '&': '&amp;',
    '<': '&lt;',
    '>': '&gt;',
    '"': '&quot;',
    "'": '&apos;',
}


def escape_markup(text):
    """转义 & < > " ',以便把文字安全地嵌入基于标记语言的渲染器(如 Qt 富文本)"""
    return ''.join(_MARKUP_ESCAPES.get(c, c) for c in text)


def _font_candidates(font_family):
    for entry in font_family.split(','):
        name = entry.strip().strip('"\'')
        if not name:
            continue
        generic = GENERIC_FAMILIES.get(name.lower())
        if generic:
            yield from generic
            continue
        if name.lower().endswith(FONT_FILE_EXTS):
            yield name
            continue
        # 'Segoe UI' -> Segoe UI.ttf / SegoeUI.ttf / segoeui.ttf
        compact = name.replace(' ', '')
        for candidate in (name, compact, compact.lower()):
            for ext in ('.ttf', '.otf'):
                yield candidate + ext


def load_font(font_family, font_size):
    """
    按 CSS 风格的字体栈依次尝试加载字体。

    参数:
        font_family: 例如 "Arial, sans-serif",也可以直接是字体文件路径
        font_size: 像素字号

    返回:
        ImageFont 对象;都找不到时使用 Pillow 内置的可缩放默认字体
    """
    for candidate in _font_candidates(font_family or ''):
        if os.path.isabs(candidate) and not os.path.exists(candidate):
            continue
        try:
            return ImageFont.truetype(candidate, font_size)
        except OSError:
            continue
    logger.debug("no font matched %r, using built-in default", font_family)
    return ImageFont.load_default(size=font_size)


def line_metrics(font_size):
    """返回 (画布高度, 基线 y);基线按 .5 向上取整,与浏览器端 Math.round 一致"""
    return math.ceil(font_size * LINE_HEIGHT_RATIO), round_half_up(font_size * BASELINE_RATIO)


def parse_color(color):
    try:
        return ImageColor.getcolor(color, 'RGBA')
    except (ValueError, AttributeError):
        raise InvalidInput(f"invalid font color: {color!r}") from None


def rasterize(text, font_family, font_size, color):
    """
    把文字渲染为透明背景的 RGBA 图像。

    颜色作为纯色填充:所有像素的 RGB 都是字体颜色,
    alpha 为字形覆盖率(抗锯齿边缘为部分透明)乘以颜色自身的 alpha。
    """
    if not text:
        raise InvalidInput("watermark text is empty")
    if font_size is None or font_size <= 0:
        raise InvalidInput(f"font size must be positive, got {font_size}")

    r, g, b, a = parse_color(color)
    font = load_font(font_family, font_size)

    width = max(1, math.ceil(font.getlength(text)))
    height, baseline = line_metrics(font_size)

    # 先在 L 模式画出覆盖率,再作为 alpha 通道贴到纯色图层上
    coverage = Image.new('L', (width, height), 0)
    draw = ImageDraw.Draw(coverage)
    if isinstance(font, ImageFont.FreeTypeFont):
        draw.text((0, baseline), text, font=font, fill=255, anchor='ls')
    else:
        draw.text((0, 0), text, font=font, fill=255)

    if a < 255:
        coverage = coverage.point(lambda p: p * a // 255)

    canvas = Image.new('RGBA', (width, height), (r, g, b, 0))
    canvas.putalpha(coverage)
    return canvas
