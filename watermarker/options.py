# watermarker/options.py
"""
请求模型与可识别的选项。

所有字符串参数都在边界处(from_form)一次性转换成明确的值并补齐默认值,
流水线内部只接收已经解析好的对象。
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping, Optional, Union

from watermarker.errors import InvalidInput

DEFAULT_FONT_SIZE = 48
DEFAULT_FONT_FAMILY = "Arial, sans-serif"
DEFAULT_FONT_COLOR = "#ffffff"
DEFAULT_OPACITY = 1.0


class Gravity(str, Enum):
    """九宫格锚点"""
    NORTHWEST = "northwest"
    NORTH = "north"
    NORTHEAST = "northeast"
    WEST = "west"
    CENTER = "center"
    EAST = "east"
    SOUTHWEST = "southwest"
    SOUTH = "south"
    SOUTHEAST = "southeast"

    @classmethod
    def parse(cls, value: str) -> "Gravity":
        try:
            return cls(value.strip().lower())
        except ValueError:
            raise InvalidInput(f"unknown gravity: {value!r}") from None


class OutputFormat(Enum):
    # (Pillow 格式名, 默认质量, MIME 子类型)
    JPEG = ("JPEG", 95, "jpeg")
    PNG = ("PNG", 100, "png")
    WEBP = ("WEBP", 95, "webp")

    def __init__(self, pil_format, quality, subtype):
        self.pil_format = pil_format
        self.quality = quality
        self.subtype = subtype

    @property
    def content_type(self) -> str:
        return f"image/{self.subtype}"

    @property
    def extension(self) -> str:
        return "jpg" if self is OutputFormat.JPEG else self.subtype

    @property
    def has_alpha(self) -> bool:
        return self is not OutputFormat.JPEG

    @classmethod
    def parse(cls, value: Optional[str]) -> "OutputFormat":
        """未知或缺省的格式一律按 JPEG 处理"""
        name = (value or "").strip().lower()
        if name == "png":
            return cls.PNG
        if name == "webp":
            return cls.WEBP
        return cls.JPEG


@dataclass(frozen=True)
class Position:
    """显式的左上角坐标,允许为负或超出画布"""
    x: int = 0
    y: int = 0


Placement = Union[Position, Gravity]


@dataclass(frozen=True)
class TextSource:
    content: str
    font_family: str = DEFAULT_FONT_FAMILY
    font_size: int = DEFAULT_FONT_SIZE
    color: str = DEFAULT_FONT_COLOR


@dataclass(frozen=True)
class ImageSource:
    buffer: bytes = field(repr=False)


@dataclass(frozen=True)
class WatermarkSpec:
    """
    水印描述。

    text 和 image 可以同时给出,此时图片水印优先(见 source)。
    width / height 是互相独立的可选缩放上限。
    """
    text: Optional[TextSource] = None
    image: Optional[ImageSource] = None
    opacity: float = DEFAULT_OPACITY
    width: Optional[int] = None
    height: Optional[int] = None
    placement: Placement = Position(0, 0)

    @property
    def source(self) -> Union[TextSource, ImageSource, None]:
        """
        返回实际生效的水印来源。

        优先级: 非空图片 > 非空文字 > None
        """
        if self.image is not None and self.image.buffer:
            return self.image
        if self.text is not None and self.text.content:
            return self.text
        return None

    def validate(self):
        source = self.source
        if source is None:
            raise InvalidInput("provide watermarkText or watermarkImage")
        if isinstance(source, TextSource) and source.font_size <= 0:
            raise InvalidInput(f"font size must be positive, got {source.font_size}")
        for name, value in (("width", self.width), ("height", self.height)):
            if value is not None and value <= 0:
                raise InvalidInput(f"watermark {name} must be positive, got {value}")


@dataclass(frozen=True)
class CompositeRequest:
    photo: bytes = field(repr=False)
    watermark: WatermarkSpec
    output_format: OutputFormat = OutputFormat.JPEG

    def validate(self):
        """在任何解码之前完成的输入检查"""
        if not self.photo:
            raise InvalidInput("photo required")
        self.watermark.validate()


def _parse_int(form: Mapping[str, str], key: str) -> Optional[int]:
    raw = form.get(key)
    if raw is None or str(raw).strip() == "":
        return None
    try:
        return int(str(raw).strip())
    except ValueError:
        raise InvalidInput(f"{key} must be an integer, got {raw!r}") from None


def _parse_float(form: Mapping[str, str], key: str) -> Optional[float]:
    raw = form.get(key)
    if raw is None or str(raw).strip() == "":
        return None
    try:
        return float(str(raw).strip())
    except ValueError:
        raise InvalidInput(f"{key} must be a number, got {raw!r}") from None


def _parse_str(form: Mapping[str, str], key: str) -> Optional[str]:
    raw = form.get(key)
    if raw is None or str(raw).strip() == "":
        return None
    return str(raw)


@dataclass(frozen=True)
class RequestOptions:
    """表单参数解析后的结果,默认值都在这里补齐"""
    watermark_text: Optional[str] = None
    opacity: float = DEFAULT_OPACITY
    font_size: int = DEFAULT_FONT_SIZE
    font_family: str = DEFAULT_FONT_FAMILY
    font_color: str = DEFAULT_FONT_COLOR
    placement: Placement = Position(0, 0)
    width: Optional[int] = None
    height: Optional[int] = None
    output_format: OutputFormat = OutputFormat.JPEG

    @classmethod
    def from_form(cls, form: Mapping[str, str]) -> "RequestOptions":
        opacity = _parse_float(form, "opacity")
        font_size = _parse_int(form, "fontSize")
        pos_x = _parse_int(form, "posX")
        pos_y = _parse_int(form, "posY")
        gravity = _parse_str(form, "gravity")

        # 显式坐标优先于锚点;都没有时退回 (0, 0)
        if pos_x is not None or pos_y is not None:
            placement = Position(pos_x or 0, pos_y or 0)
        elif gravity is not None:
            placement = Gravity.parse(gravity)
        else:
            placement = Position(0, 0)

        return cls(
            watermark_text=_parse_str(form, "watermarkText"),
            opacity=DEFAULT_OPACITY if opacity is None else opacity,
            font_size=DEFAULT_FONT_SIZE if font_size is None else font_size,
            font_family=_parse_str(form, "fontFamily") or DEFAULT_FONT_FAMILY,
            font_color=_parse_str(form, "fontColor") or DEFAULT_FONT_COLOR,
            placement=placement,
            width=_parse_int(form, "wmWidth"),
            height=_parse_int(form, "wmHeight"),
            output_format=OutputFormat.parse(form.get("format")),
        )

    def to_spec(self, watermark_image: Optional[bytes] = None) -> WatermarkSpec:
        text = None
        if self.watermark_text:
            text = TextSource(
                content=self.watermark_text,
                font_family=self.font_family,
                font_size=self.font_size,
                color=self.font_color,
            )
        image = ImageSource(watermark_image) if watermark_image else None
        return WatermarkSpec(
            text=text,
            image=image,
            opacity=self.opacity,
            width=self.width,
            height=self.height,
            placement=self.placement,
        )

    def to_request(self, photo: bytes, watermark_image: Optional[bytes] = None) -> CompositeRequest:
        return CompositeRequest(
            photo=photo,
            watermark=self.to_spec(watermark_image),
            output_format=self.output_format,
        )
