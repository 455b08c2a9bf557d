"""
Color helpers for the station heatmap.

Colors are specified as HCL (polar CIE-LUV): hue in degrees 0-360,
chroma and luminance on a 0-100 scale, the same convention as the hcl()
palette function in statistical graphics packages. Conversion goes
through CIE XYZ (D65 white point) to sRGB, clipping out-of-gamut
channels.
"""

import numpy as np
import pandas as pd

from transit_report.config import CHANNEL_RANGE, INFLOW_HUE, OUTFLOW_HUE

# D65 reference white
WHITE_X, WHITE_Y, WHITE_Z = 95.047, 100.000, 108.883

# CIE XYZ -> linear sRGB
XYZ_TO_RGB = np.array([
    [3.240479, -1.537150, -0.498535],
    [-0.969256, 1.875992, 0.041556],
    [0.055648, -0.204043, 1.057311],
])


def _like(values, out):
    """Return `out` shaped like `values` (Series keeps its index, scalars stay scalars)."""
    if isinstance(values, pd.Series):
        return pd.Series(out, index=values.index, name=values.name)
    if np.ndim(values) == 0:
        return out.item()
    return out


def rescale(values, to=CHANNEL_RANGE, src=None):
    """
    Linearly map `values` from the source range onto `to`.

    Args:
        values: Scalar, array-like or Series
        to: (dst_min, dst_max)
        src: (src_min, src_max); defaults to the min/max of `values`

    Returns:
        Same shape as `values`. When src_min == src_max every value maps to
        dst_min. Missing values stay missing.
    """
    x = np.asarray(values, dtype=float)
    dst_min, dst_max = to

    if src is None:
        if np.isnan(x).all():
            src = (np.nan, np.nan)
        else:
            src = (np.nanmin(x), np.nanmax(x))
    src_min, src_max = float(src[0]), float(src[1])

    if not np.isfinite(src_min) or not np.isfinite(src_max) or src_max == src_min:
        out = np.where(np.isnan(x), np.nan, float(dst_min))
    else:
        out = (x - src_min) / (src_max - src_min) * (dst_max - dst_min) + dst_min

    return _like(values, out)


def classify_hue(balance, outflow=OUTFLOW_HUE, inflow=INFLOW_HUE):
    """Outflow hue where balance < 0, inflow hue otherwise (zero included)."""
    b = np.asarray(balance, dtype=float)
    out = np.where(b < 0, float(outflow), float(inflow))
    return _like(balance, out)


def _gamma(c):
    return np.where(c <= 0.0031308, 12.92 * c, 1.055 * np.power(np.clip(c, 0, None), 1 / 2.4) - 0.055)


def hcl_to_rgb(h, c, l):
    """
    Convert HCL to sRGB.

    Args:
        h: Hue in degrees
        c: Chroma (0-100)
        l: Luminance (0-100)

    Returns:
        Array of shape (..., 3) with channels in [0, 1].
    """
    h = np.asarray(h, dtype=float)
    c = np.asarray(c, dtype=float)
    l = np.asarray(l, dtype=float)
    h, c, l = np.broadcast_arrays(h, c, l)

    rad = np.deg2rad(h)
    u_ = c * np.cos(rad)
    v_ = c * np.sin(rad)

    y = WHITE_Y * np.where(l > 7.999592, ((l + 16) / 116) ** 3, l / 903.3)

    denom = WHITE_X + 15 * WHITE_Y + 3 * WHITE_Z
    u_n = 4 * WHITE_X / denom
    v_n = 9 * WHITE_Y / denom

    with np.errstate(divide="ignore", invalid="ignore"):
        u = u_ / (13 * l) + u_n
        v = v_ / (13 * l) + v_n
        x = 9.0 * y * u / (4 * v)
        z = -x / 3 - 5 * y + 3 * y / v

    xyz = np.stack([x, y, z], axis=-1) / WHITE_Y
    # Luminance 0 is black whatever the hue
    xyz = np.where((l > 0)[..., None], xyz, 0.0)

    rgb = _gamma(xyz @ XYZ_TO_RGB.T)
    rgb = np.nan_to_num(rgb, nan=0.0)
    return np.clip(rgb, 0.0, 1.0)


def hcl_to_hex(h, c, l):
    """HCL to '#rrggbb' strings (a list, or a single string for scalar input)."""
    rgb = np.round(hcl_to_rgb(h, c, l) * 255).astype(int)
    if rgb.ndim == 1:
        return "#{:02x}{:02x}{:02x}".format(*rgb)
    return ["#{:02x}{:02x}{:02x}".format(*px) for px in rgb.reshape(-1, 3)]
