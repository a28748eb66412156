# watermarker/pipeline.py
"""
水印合成流水线。

validate -> 解码底图 -> resolve -> apply_opacity -> place -> composite -> encode

单向执行,没有重试;任何一步失败都会中止,不会产生部分输出。
服务端和桌面预览都调用这里的函数,保证几何与透明度计算完全一致。
"""
import logging
from contextlib import contextmanager
from dataclasses import dataclass, field

from watermarker.errors import Cancelled, InternalError, WatermarkError
from watermarker.exporter import composite, encode
from watermarker.geometry import place
from watermarker.image_io import decode_image, ensure_dimensions
from watermarker.options import OutputFormat
from watermarker.overlay import apply_opacity, resolve

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RenderResult:
    data: bytes = field(repr=False)
    output_format: OutputFormat

    @property
    def content_type(self):
        return self.output_format.content_type


@contextmanager
def _internal_errors():
    """WatermarkError 原样抛出,其它异常包装成 InternalError"""
    try:
        yield
    except WatermarkError:
        raise
    except Exception as e:
        raise InternalError(f"unexpected failure: {e}") from e


def _check_cancel(cancel_event, stage):
    if cancel_event is not None and cancel_event.is_set():
        raise Cancelled(f"cancelled before {stage}")


def _compose_stages(base, spec, cancel_event):
    ensure_dimensions(base.width, base.height, "base image")

    _check_cancel(cancel_event, "resolve")
    overlay = resolve(spec, base.width, base.height)

    _check_cancel(cancel_event, "opacity")
    overlay = apply_opacity(overlay, spec.opacity)

    _check_cancel(cancel_event, "placement")
    x, y = place(base.width, base.height, overlay.width, overlay.height, spec.placement)
    logger.debug("overlay %dx%d placed at (%d, %d) on %dx%d",
                 overlay.width, overlay.height, x, y, base.width, base.height)

    _check_cancel(cancel_event, "composite")
    return composite(base, overlay, x, y)


def compose(base, spec, cancel_event=None):
    """
    在已解码的底图上合成水印,返回新的图像(不编码)。

    参数:
        base: PIL.Image 底图
        spec: WatermarkSpec
        cancel_event: 可选的 threading.Event,在各阶段之间检查
    """
    with _internal_errors():
        return _compose_stages(base, spec, cancel_event)


def render(request, cancel_event=None):
    """
    执行完整流水线,返回编码后的 RenderResult。

    WatermarkError 原样抛出,其它异常包装成 InternalError。
    """
    with _internal_errors():
        request.validate()
        _check_cancel(cancel_event, "decode")
        base = decode_image(request.photo, "photo")
        result = _compose_stages(base, request.watermark, cancel_event)
        _check_cancel(cancel_event, "encode")
        data = encode(result, request.output_format)
    return RenderResult(data=data, output_format=request.output_format)
