# watermarker/exporter.py
import io
import logging

from PIL import Image

from watermarker.errors import EncodeError
from watermarker.options import OutputFormat

logger = logging.getLogger(__name__)

# JPEG 不支持透明,带 alpha 的图像压平到这个背景色上
FLATTEN_BACKGROUND = (0, 0, 0)

ENCODABLE_MODES = {'1', 'L', 'LA', 'P', 'PA', 'RGB', 'RGBA', 'CMYK', 'I', 'I;16', 'F'}


def _has_alpha(img):
    return img.mode in ('RGBA', 'LA', 'PA') or (img.mode == 'P' and 'transparency' in img.info)


def composite(base, overlay, x, y):
    """
    把 overlay 以 source-over 方式叠加到 base 的 (x, y) 处。

    超出底图范围的水印像素被裁掉,允许负坐标。
    结果与底图同尺寸;底图不透明时返回 RGB,否则返回 RGBA。
    """
    keep_alpha = _has_alpha(base)
    img = base.convert('RGBA')

    # 创建叠加层,paste 会自动裁剪越界部分
    layer = Image.new('RGBA', img.size, (0, 0, 0, 0))
    layer.paste(overlay.convert('RGBA'), (int(x), int(y)))

    composed = Image.alpha_composite(img, layer)
    if keep_alpha:
        return composed
    return composed.convert('RGB')


def _flatten(img):
    rgba = img.convert('RGBA')
    background = Image.new('RGB', rgba.size, FLATTEN_BACKGROUND)
    background.paste(rgba, (0, 0), rgba.getchannel('A'))
    return background


def encode(img, output_format=None):
    """
    把图像编码为 JPEG / PNG / WEBP 字节串。

    output_format 可以是 OutputFormat 或格式名字符串,未知或缺省时使用 JPEG。
    """
    if not isinstance(output_format, OutputFormat):
        output_format = OutputFormat.parse(output_format)
    if img.mode not in ENCODABLE_MODES:
        raise EncodeError(f"unsupported pixel mode {img.mode!r}")

    try:
        if not _has_alpha(img):
            out = img.convert('RGB')
        elif output_format.has_alpha:
            out = img.convert('RGBA')
        else:
            out = _flatten(img)
        # PNG 无损,不传 quality
        params = {} if output_format is OutputFormat.PNG else {'quality': output_format.quality}

        buf = io.BytesIO()
        out.save(buf, format=output_format.pil_format, **params)
    except (OSError, ValueError, KeyError) as e:
        raise EncodeError(f"cannot encode {output_format.subtype}: {e}") from e

    data = buf.getvalue()
    logger.debug("encoded %dx%d %s (%d bytes)", img.width, img.height, output_format.subtype, len(data))
    return data
