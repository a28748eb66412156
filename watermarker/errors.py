# watermarker/errors.py
"""
水印流水线的错误类型。

每个错误带有机器可读的 kind 和对应的 HTTP 状态码类别,
传输层(server / GUI)据此决定如何向调用方报告。
"""
from typing import Any, Dict, Optional


class WatermarkError(Exception):
    """所有水印错误的基类"""
    kind = "InternalError"
    status = 500

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        data = {"error": self.kind, "message": str(self)}
        if self.details:
            data["details"] = self.details
        return data


class InvalidInput(WatermarkError):
    """调用方输入无效:缺少照片、没有水印来源、尺寸或字号非正数等"""
    kind = "InvalidInput"
    status = 400


class DecodeError(WatermarkError):
    """图片数据无法解码"""
    kind = "DecodeError"
    status = 400


class EncodeError(WatermarkError):
    """输出编码失败"""
    kind = "EncodeError"
    status = 500


class InternalError(WatermarkError):
    kind = "InternalError"
    status = 500


class Cancelled(WatermarkError):
    """在阶段之间检测到取消请求"""
    kind = "Cancelled"
    status = 503
