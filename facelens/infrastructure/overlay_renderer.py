"""
Draws face boxes and labels over an image at its display size
"""
from typing import Optional, Sequence, Tuple

import cv2
import numpy as np

from ..domain.models import ImageDimensions, RefinedFace
from ..domain.scaling import original_to_display

BOX_COLOR = (129, 185, 16)  # #10b981 in BGR
TEXT_COLOR = (255, 255, 255)
BOX_THICKNESS = 3
FILL_ALPHA = 0.1
LABEL_HEIGHT = 20
LABEL_OFFSET = 24
LABEL_PADDING = 8
FONT = cv2.FONT_HERSHEY_SIMPLEX
FONT_SCALE = 0.45


def face_label(face: RefinedFace) -> str:
    return f"{face.gender}, {face.age} (Age {face.age_confidence}%)"


def render_overlay(
    image: np.ndarray,
    faces: Sequence[RefinedFace],
    display_size: Optional[Tuple[int, int]] = None,
) -> np.ndarray:
    """Return a new BGR image at display size with the faces drawn on it"""
    natural_height, natural_width = image.shape[:2]
    natural = ImageDimensions(natural_width, natural_height)
    display_width, display_height = display_size or (natural_width, natural_height)
    display_width, display_height = int(round(display_width)), int(round(display_height))

    if (display_width, display_height) == (natural_width, natural_height):
        canvas = image.copy()
    else:
        canvas = cv2.resize(image, (display_width, display_height), interpolation=cv2.INTER_AREA)

    scaled = [original_to_display(face, natural, (display_width, display_height)) for face in faces]

    # Fills are drawn on a copy and blended so they stay translucent
    fill_layer = canvas.copy()
    for face in scaled:
        x1, y1, x2, y2 = _corners(face)
        cv2.rectangle(fill_layer, (x1, y1), (x2, y2), BOX_COLOR, thickness=-1)
    canvas = cv2.addWeighted(fill_layer, FILL_ALPHA, canvas, 1 - FILL_ALPHA, 0)

    for face in scaled:
        x1, y1, x2, y2 = _corners(face)
        cv2.rectangle(canvas, (x1, y1), (x2, y2), BOX_COLOR, thickness=BOX_THICKNESS)
        _draw_label(canvas, face_label(face), x1, y1 - LABEL_OFFSET)

    return canvas


def _corners(face: RefinedFace):
    box = face.box
    return (
        int(round(box.x)),
        int(round(box.y)),
        int(round(box.x + box.width)),
        int(round(box.y + box.height)),
    )


def _draw_label(canvas: np.ndarray, label: str, x: int, y: int):
    (text_width, text_height), _ = cv2.getTextSize(label, FONT, FONT_SCALE, 1)
    cv2.rectangle(
        canvas,
        (x, y),
        (x + text_width + 2 * LABEL_PADDING, y + LABEL_HEIGHT),
        BOX_COLOR,
        thickness=-1,
    )
    baseline_y = y + (LABEL_HEIGHT + text_height) // 2
    cv2.putText(canvas, label, (x + LABEL_PADDING, baseline_y), FONT, FONT_SCALE, TEXT_COLOR, 1, cv2.LINE_AA)


def encode_png(image: np.ndarray) -> bytes:
    ok, buffer = cv2.imencode(".png", image)
    if not ok:
        raise ValueError("Failed to encode overlay as PNG")
    return buffer.tobytes()
