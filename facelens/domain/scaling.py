"""
Coordinate mapping between detection canvas, original image and display size.

The model runs on a working canvas that may be upscaled from the original
image. Everything leaving the analysis pipeline is in original image pixels;
display coordinates are only produced for drawing overlays.
"""
from dataclasses import replace
from typing import Tuple, TypeVar, Union

from .models import BoundingBox, Detection, ImageDimensions, Point, RefinedFace

FaceT = TypeVar("FaceT", Detection, RefinedFace)
Size = Union[ImageDimensions, Tuple[int, int]]


def upscale_factor(original_width: int, target_width: int) -> float:
    """Factor applied to the original image to build the detection canvas (never < 1)"""
    if original_width <= 0:
        raise ValueError(f"Invalid image width: {original_width}")
    return max(1.0, target_width / original_width)


def scale_box(box: BoundingBox, sx: float, sy: float) -> BoundingBox:
    return BoundingBox(
        x=box.x * sx,
        y=box.y * sy,
        width=box.width * sx,
        height=box.height * sy,
    )


def scale_points(points, sx: float, sy: float):
    if points is None:
        return None
    return tuple(Point(p.x * sx, p.y * sy) for p in points)


def scale_face(face: FaceT, sx: float, sy: float) -> FaceT:
    """Return a copy of the face with box and landmarks scaled per axis"""
    return replace(
        face,
        box=scale_box(face.box, sx, sy),
        landmarks=scale_points(face.landmarks, sx, sy),
    )


def canvas_to_original(face: FaceT, factor: float) -> FaceT:
    """Map a face found on the upscaled canvas back to original pixels"""
    inverse = 1.0 / factor
    return scale_face(face, inverse, inverse)


def _as_pair(size: Size) -> Tuple[float, float]:
    if isinstance(size, ImageDimensions):
        return size.width, size.height
    return size[0], size[1]


def display_scale(natural_size: Size, display_size: Size) -> Tuple[float, float]:
    """Per-axis factors from natural image size to on-screen size"""
    natural_w, natural_h = _as_pair(natural_size)
    display_w, display_h = _as_pair(display_size)
    if natural_w <= 0 or natural_h <= 0:
        raise ValueError(f"Invalid natural size: {natural_w}x{natural_h}")
    return display_w / natural_w, display_h / natural_h


def original_to_display(face: FaceT, natural_size: Size, display_size: Size) -> FaceT:
    """Map a face in original pixels onto the displayed image (axes scale independently)"""
    sx, sy = display_scale(natural_size, display_size)
    return scale_face(face, sx, sy)
