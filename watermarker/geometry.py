# watermarker/geometry.py
import math

from watermarker.options import Gravity, Position

# 锚点定位时距离画布边缘的固定边距
MARGIN = 20


def round_half_up(value):
    """四舍五入到整数(.5 向上),不使用 Python 的银行家舍入"""
    return int(math.floor(value + 0.5))


def place(base_w, base_h, overlay_w, overlay_h, placement):
    """
    计算水印左上角在底图上的像素坐标。

    placement 为 Position 时原样返回(不裁剪,合成时自动裁掉画布外的部分);
    为 Gravity 时按九宫格锚点加边距计算。
    """
    if isinstance(placement, Position):
        return placement.x, placement.y

    m = MARGIN
    cx = (base_w - overlay_w) / 2
    cy = (base_h - overlay_h) / 2
    right = base_w - overlay_w - m
    bottom = base_h - overlay_h - m
    positions = {
        Gravity.NORTHWEST: (m, m),
        Gravity.NORTH: (cx, m),
        Gravity.NORTHEAST: (right, m),
        Gravity.WEST: (m, cy),
        Gravity.CENTER: (cx, cy),
        Gravity.EAST: (right, cy),
        Gravity.SOUTHWEST: (m, bottom),
        Gravity.SOUTH: (cx, bottom),
        Gravity.SOUTHEAST: (right, bottom),
    }
    gravity = placement if isinstance(placement, Gravity) else Gravity.parse(placement)
    x, y = positions[gravity]
    return round_half_up(x), round_half_up(y)
