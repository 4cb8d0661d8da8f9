"""
Face analysis service - application layer
"""
import logging
import time
from typing import Optional, Sequence

import cv2
import numpy as np

from ..domain.interfaces import AnalysisStorageInterface, FaceDetectorInterface, ImageLoaderInterface
from ..domain.models import AnalysisResult, HealthStatus, ImageDimensions, NewFaceAnalysis
from ..domain.scaling import canvas_to_original, upscale_factor
from ..domain.stats import calculate_analysis_stats, format_processing_time
from .ensemble import DEFAULT_PADDINGS, EnsembleRefiner, unrefined_face

logger = logging.getLogger(__name__)

DETECTION_FAILED = "Failed to analyze faces in the image"
MODELS_NOT_READY = "Face detection models are not loaded"
DECODE_FAILED = "Failed to decode image"


def build_detection_canvas(image: np.ndarray, target_width: int):
    """Upscale the image so the model sees at least target_width pixels across"""
    height, width = image.shape[:2]
    scale = upscale_factor(width, target_width)
    if scale == 1.0:
        return image, scale

    canvas = cv2.resize(
        image,
        (int(round(width * scale)), int(round(height * scale))),
        interpolation=cv2.INTER_CUBIC,
    )
    return canvas, scale


class FaceAnalysisService:
    """Runs detection, ensemble refinement and statistics for one image"""

    def __init__(
        self,
        detector: FaceDetectorInterface,
        image_loader: ImageLoaderInterface,
        storage: AnalysisStorageInterface,
        target_width: int = 800,
        paddings: Sequence[float] = DEFAULT_PADDINGS,
        ensemble_enabled: bool = True,
    ):
        self.detector = detector
        self.image_loader = image_loader
        self.storage = storage
        self.target_width = target_width
        self.ensemble_enabled = ensemble_enabled
        self.refiner = EnsembleRefiner(detector, paddings)

    def analyze_image(self, image: np.ndarray, file_name: Optional[str] = None, save: bool = False) -> AnalysisResult:
        """Analyze a decoded BGR image"""
        if not self.detector.is_ready():
            return AnalysisResult(success=False, error=MODELS_NOT_READY)

        height, width = image.shape[:2]
        dimensions = ImageDimensions(width=width, height=height)
        start_time = time.time()

        try:
            canvas, scale = build_detection_canvas(image, self.target_width)
            detections = self.detector.detect(canvas)
            logger.info(f"Detected {len(detections)} faces on {canvas.shape[1]}x{canvas.shape[0]} canvas (scale {scale:.2f})")

            if self.ensemble_enabled:
                faces = self.refiner.refine_all(detections, canvas, scale)
            else:
                faces = [
                    unrefined_face(f"face-{index + 1}", canvas_to_original(detection, scale))
                    for index, detection in enumerate(detections)
                ]
        except Exception as e:
            logger.error(f"Face analysis failed: {e}")
            processing_time = int((time.time() - start_time) * 1000)
            return AnalysisResult(
                success=False,
                image_dimensions=dimensions,
                error=DETECTION_FAILED,
                processing_time_ms=processing_time,
            )

        processing_time = int((time.time() - start_time) * 1000)
        result = AnalysisResult(
            success=True,
            faces=faces,
            stats=calculate_analysis_stats(faces, processing_time, dimensions),
            image_dimensions=dimensions,
            processing_time_ms=processing_time,
        )

        if save:
            record = self.storage.create_analysis(NewFaceAnalysis(
                image_file_name=file_name or "upload",
                image_dimensions=dimensions,
                detected_faces=tuple(faces),
                processing_time=format_processing_time(processing_time),
            ))
            result.analysis_id = record.id
            logger.info(f"Saved analysis {record.id} ({len(faces)} faces)")

        return result

    def analyze_bytes(self, image_data: bytes, file_name: Optional[str] = None, save: bool = False) -> AnalysisResult:
        """Analyze faces in image bytes"""
        image = self.image_loader.load_from_bytes(image_data)
        if image is None:
            return AnalysisResult(success=False, error=DECODE_FAILED)
        return self.analyze_image(image, file_name=file_name, save=save)

    def get_health(self) -> HealthStatus:
        """Get service health status"""
        health = self.detector.get_health()
        health.storage = self.storage.name
        return health

    def is_ready(self) -> bool:
        """Check if service is ready"""
        return self.detector.is_ready()
