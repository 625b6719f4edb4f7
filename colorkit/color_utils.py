from __future__ import annotations

from colorkit.engine.normalize import normalize_hex


def hex_to_rgb(hex_value):
    color = normalize_hex(hex_value)
    if color is None:
        return None
    return int(color[1:3], 16), int(color[3:5], 16), int(color[5:7], 16)


def hex_to_rgba(hex_value, opacity_percent: int) -> str | None:
    rgb = hex_to_rgb(hex_value)
    if rgb is None:
        return None
    alpha = max(0, min(100, int(opacity_percent))) / 100
    return f"rgba({rgb[0]}, {rgb[1]}, {rgb[2]}, {alpha:g})"
