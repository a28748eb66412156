from watermarker.errors import (
    Cancelled,
    DecodeError,
    EncodeError,
    InternalError,
    InvalidInput,
    WatermarkError,
)
from watermarker.exporter import composite, encode
from watermarker.geometry import MARGIN, place
from watermarker.options import (
    CompositeRequest,
    Gravity,
    ImageSource,
    OutputFormat,
    Position,
    RequestOptions,
    TextSource,
    WatermarkSpec,
)
from watermarker.overlay import apply_opacity, resolve
from watermarker.pipeline import RenderResult, compose, render
from watermarker.text import rasterize

__version__ = "0.2.0"
