# watermarker/config.py
import logging
import os
from dataclasses import dataclass, field
from typing import List

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def _env_int(name, default):
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


def _env_float(name, default):
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


@dataclass
class ServerConfig:
    host: str = "0.0.0.0"
    port: int = 4000
    max_upload_mb: int = 60
    workers: int = 4
    render_timeout: float = 60.0
    log_level: str = "INFO"
    allowed_origins: List[str] = field(default_factory=lambda: ["*"])

    @property
    def max_content_length(self):
        return self.max_upload_mb * 1024 * 1024

    @classmethod
    def from_env(cls):
        """从环境变量读取配置,非法取值在启动时直接报错"""
        origins = os.getenv("ALLOWED_ORIGINS", "*")
        config = cls(
            host=os.getenv("WATERMARK_HOST", "0.0.0.0"),
            port=_env_int("WATERMARK_PORT", 4000),
            max_upload_mb=_env_int("WATERMARK_MAX_UPLOAD_MB", 60),
            workers=_env_int("WATERMARK_WORKERS", 4),
            render_timeout=_env_float("WATERMARK_RENDER_TIMEOUT", 60.0),
            log_level=os.getenv("WATERMARK_LOG_LEVEL", "INFO").upper(),
            allowed_origins=[o.strip() for o in origins.split(",") if o.strip()],
        )
        if config.workers <= 0:
            raise ValueError("WATERMARK_WORKERS must be positive")
        if config.max_upload_mb <= 0:
            raise ValueError("WATERMARK_MAX_UPLOAD_MB must be positive")
        return config


def configure_logging(level="INFO"):
    logging.basicConfig(level=level, format=LOG_FORMAT)
