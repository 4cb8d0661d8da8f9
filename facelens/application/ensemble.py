"""
Multi-crop ensemble refinement of age/gender estimates

Every face found on the detection canvas is cropped again at a few paddings,
re-run through the model in single-face mode, and the numeric outputs of the
crops that still contain a face are averaged.
"""
import logging
import math
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import List, Optional, Sequence

import numpy as np

from ..domain.interfaces import FaceDetectorInterface
from ..domain.models import BoundingBox, Detection, RefinedFace
from ..domain.scaling import canvas_to_original
from ..domain.stats import age_confidence, gender_confidence, round_half_up

logger = logging.getLogger(__name__)

DEFAULT_PADDINGS = (0.10, 0.25, 0.45)


@dataclass(frozen=True)
class CropRect:
    """Integer crop rectangle inside the canvas"""
    x: int
    y: int
    width: int
    height: int


def crop_rect(box: BoundingBox, padding: float, canvas_width: int, canvas_height: int) -> Optional[CropRect]:
    """Grow the box by padding * its own size on each side, clamped to the canvas"""
    pad_x = padding * box.width
    pad_y = padding * box.height

    x0 = max(0, int(math.floor(box.x - pad_x)))
    y0 = max(0, int(math.floor(box.y - pad_y)))
    x1 = min(canvas_width, int(math.ceil(box.x + box.width + pad_x)))
    y1 = min(canvas_height, int(math.ceil(box.y + box.height + pad_y)))

    if x1 <= x0 or y1 <= y0:
        return None
    return CropRect(x=x0, y=y0, width=x1 - x0, height=y1 - y0)


def unrefined_face(face_id: str, detection: Detection) -> RefinedFace:
    """Present a single detection as-is (age rounded, confidences derived)"""
    return RefinedFace(
        id=face_id,
        box=detection.box,
        age=round_half_up(detection.age),
        age_confidence=age_confidence(detection.age),
        gender=detection.gender,
        gender_confidence=gender_confidence(detection.gender_probability),
        landmarks=tuple(detection.landmarks),
    )


def merge_crop_estimates(
    face_id: str,
    initial: Detection,
    crop_results: Sequence[Optional[Detection]],
) -> RefinedFace:
    """
    Average crop estimates into one face.

    ``initial`` must already be in original image coordinates; its box and
    landmarks are carried through. Crops without a detection are ignored; if
    none remain the initial detection is returned unrefined.
    """
    valid = [r for r in crop_results if r is not None]
    if not valid:
        return unrefined_face(face_id, initial)

    mean_age = sum(r.age for r in valid) / len(valid)
    mean_probability = sum(r.gender_probability for r in valid) / len(valid)

    # Label comes from the first usable crop; only the confidence is averaged.
    gender = valid[0].gender

    return RefinedFace(
        id=face_id,
        box=initial.box,
        age=round_half_up(mean_age),
        age_confidence=age_confidence(mean_age),
        gender=gender,
        gender_confidence=gender_confidence(mean_probability),
        landmarks=tuple(initial.landmarks),
    )


class EnsembleRefiner:
    """Re-runs single-face detection on padded crops and averages the results"""

    def __init__(self, detector: FaceDetectorInterface, paddings: Sequence[float] = DEFAULT_PADDINGS):
        self.detector = detector
        self.paddings = tuple(paddings)

    def crop_detections(self, detection: Detection, canvas: np.ndarray) -> List[Optional[Detection]]:
        """Run all crops of one face concurrently; None where a crop found nothing"""
        canvas_height, canvas_width = canvas.shape[:2]
        crops = []
        for padding in self.paddings:
            rect = crop_rect(detection.box, padding, canvas_width, canvas_height)
            if rect is None:
                crops.append(None)
                continue
            crops.append(canvas[rect.y:rect.y + rect.height, rect.x:rect.x + rect.width])

        with ThreadPoolExecutor(max_workers=max(1, len(crops))) as pool:
            futures = [
                pool.submit(self.detector.detect_one, crop) if crop is not None else None
                for crop in crops
            ]
            results = []
            for padding, future in zip(self.paddings, futures):
                if future is None:
                    results.append(None)
                    continue
                try:
                    results.append(future.result())
                except Exception as e:
                    logger.warning(f"Crop detection failed at padding {padding}: {e}")
                    results.append(None)

        return results

    def refine(self, face_id: str, detection: Detection, canvas: np.ndarray, scale: float) -> RefinedFace:
        """Refine one canvas-space detection into an original-space face"""
        crop_results = self.crop_detections(detection, canvas)
        hits = sum(1 for r in crop_results if r is not None)
        if hits == 0:
            logger.debug(f"{face_id}: no crop produced a detection, keeping initial estimate")

        original = canvas_to_original(detection, scale)
        return merge_crop_estimates(face_id, original, crop_results)

    def refine_all(self, detections: Sequence[Detection], canvas: np.ndarray, scale: float) -> List[RefinedFace]:
        """Refine faces one at a time, in detection order"""
        return [
            self.refine(f"face-{index + 1}", detection, canvas, scale)
            for index, detection in enumerate(detections)
        ]
