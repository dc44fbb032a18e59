"""
Screen/PDF geometry for signature placement.

Two conversions live here:

- ``map_pixel_box`` turns a selection drawn on a rendered page image
  (pixels, top-left origin) into a PDF rectangle (points, bottom-left origin)
  plus fractions of the rendered size that stay valid across resizes.
- ``fit_image`` computes the largest centred rectangle inside a target box
  that keeps the signature image's aspect ratio.

Both are pure and deterministic. The mapper never raises; ``fit_image``
raises ``InvalidGeometry`` for non-positive dimensions.
"""

import math
from typing import Any, Mapping, Union

from pydantic import BaseModel


class InvalidGeometry(ValueError):
    """Dimensions that cannot produce a drawable rectangle."""


class PointBox(BaseModel):
    x: float
    y: float
    width: float
    height: float


class FractionalBox(BaseModel):
    x_frac: float
    y_frac: float
    w_frac: float
    h_frac: float


class MappedBox(BaseModel):
    point_box: PointBox
    fractions: FractionalBox


class PixelBox(BaseModel):
    left: float
    top: float
    width: float
    height: float


class FitRect(BaseModel):
    x: float
    y: float
    width: float
    height: float


Source = Union[Mapping[str, Any], BaseModel, None]


def _get(source: Source, name: str):
    if source is None:
        return None
    if isinstance(source, Mapping):
        return source.get(name)
    return getattr(source, name, None)


def _number(value, default: float) -> float:
    if isinstance(value, bool):
        return default
    try:
        num = float(value)
    except (TypeError, ValueError):
        return default
    except OverflowError:
        # integers too large for a float behave like an infinite coordinate
        num = math.inf if value > 0 else -math.inf
    if math.isnan(num):
        return default
    return num


def _size(value) -> float:
    num = _number(value, 1.0)
    if not math.isfinite(num) or num <= 0:
        return 1.0
    return num


def _round2(value: float) -> float:
    # half-up, matching what browser clients produce for the same box
    return math.floor(value * 100 + 0.5) / 100


def clamp01(value) -> float:
    try:
        num = float(value)
    except (TypeError, ValueError, OverflowError):
        return 0.0
    if not math.isfinite(num):
        return 0.0
    return max(0.0, min(1.0, num))


def map_pixel_box(pixel_box: Source, rendered_size: Source, page_size: Source) -> MappedBox:
    left = _number(_get(pixel_box, "left"), 0.0)
    top = _number(_get(pixel_box, "top"), 0.0)
    width_px = _number(_get(pixel_box, "width"), 0.0)
    height_px = _number(_get(pixel_box, "height"), 0.0)

    render_w = _size(_get(rendered_size, "width"))
    render_h = _size(_get(rendered_size, "height"))
    page_w = _size(_get(page_size, "width"))
    page_h = _size(_get(page_size, "height"))

    x_frac = clamp01(left / render_w)
    y_frac = clamp01(top / render_h)
    w_frac = clamp01(width_px / render_w)
    h_frac = clamp01(height_px / render_h)

    # PDF y grows upwards from the bottom edge of the page
    bottom_px = render_h - top - height_px
    y_from_bottom = clamp01(bottom_px / render_h)

    return MappedBox(
        point_box=PointBox(
            x=_round2(x_frac * page_w),
            y=_round2(y_from_bottom * page_h),
            width=_round2(w_frac * page_w),
            height=_round2(h_frac * page_h),
        ),
        fractions=FractionalBox(
            x_frac=round(x_frac, 6),
            y_frac=round(y_frac, 6),
            w_frac=round(w_frac, 6),
            h_frac=round(h_frac, 6),
        ),
    )


def fractions_to_pixel_box(fractions: Source, rendered_size: Source) -> PixelBox:
    """Re-project a fractional box onto the current rendered page size."""
    render_w = _size(_get(rendered_size, "width"))
    render_h = _size(_get(rendered_size, "height"))
    return PixelBox(
        left=clamp01(_get(fractions, "x_frac")) * render_w,
        top=clamp01(_get(fractions, "y_frac")) * render_h,
        width=clamp01(_get(fractions, "w_frac")) * render_w,
        height=clamp01(_get(fractions, "h_frac")) * render_h,
    )


def _strict(source: Source, name: str, positive: bool) -> float:
    value = _get(source, name)
    if isinstance(value, bool):
        raise InvalidGeometry(f"{name} must be a number, got {value!r}")
    try:
        num = float(value)
    except (TypeError, ValueError):
        raise InvalidGeometry(f"{name} must be a number, got {value!r}")
    except OverflowError:
        raise InvalidGeometry(f"{name} is too large")
    if not math.isfinite(num):
        raise InvalidGeometry(f"{name} must be finite, got {num}")
    if positive and num <= 0:
        raise InvalidGeometry(f"{name} must be positive, got {num}")
    return num


def fit_image(image_size: Source, target_box: Source) -> FitRect:
    image_w = _strict(image_size, "width", positive=True)
    image_h = _strict(image_size, "height", positive=True)
    box_x = _strict(target_box, "x", positive=False)
    box_y = _strict(target_box, "y", positive=False)
    box_w = _strict(target_box, "width", positive=True)
    box_h = _strict(target_box, "height", positive=True)

    image_ratio = image_w / image_h
    box_ratio = box_w / box_h
    if image_ratio > box_ratio:
        draw_w = box_w
        draw_h = box_w / image_ratio
    else:
        draw_h = box_h
        draw_w = box_h * image_ratio

    return FitRect(
        x=box_x + (box_w - draw_w) / 2,
        y=box_y + (box_h - draw_h) / 2,
        width=draw_w,
        height=draw_h,
    )
