"""
InsightFace implementation of face detector
"""
import logging
from typing import List, Optional
import numpy as np
import cv2

import insightface
from insightface.app import FaceAnalysis
from insightface.utils import face_align

from ..domain.interfaces import FaceDetectorInterface
from ..domain.models import BoundingBox, Detection, HealthStatus, Point

logger = logging.getLogger(__name__)

MALE, FEMALE = "male", "female"


def _softmax(logits: np.ndarray) -> np.ndarray:
    shifted = np.exp(logits - np.max(logits))
    return shifted / shifted.sum()


class InsightFaceDetector(FaceDetectorInterface):
    """Face detector using InsightFace library"""

    def __init__(self, config):
        self.config = config
        self.model: Optional[FaceAnalysis] = None
        self.is_initialized = False
        self.load_error: Optional[str] = None
        self.model_name = self.config.MODEL_NAME
        self._initialize()

    def _initialize(self):
        """Initialize the InsightFace model; failures are kept for health reporting"""
        try:
            logger.info(f"Initializing InsightFace model: {self.model_name}")

            # Determine providers based on GPU setting
            if self.config.USE_GPU:
                providers = [
                    ('CUDAExecutionProvider', {'device_id': self.config.GPU_ID}),
                    'CPUExecutionProvider'
                ]
            else:
                providers = ['CPUExecutionProvider']

            self.model = FaceAnalysis(
                name=self.model_name,
                allowed_modules=['detection', 'landmark_2d_106', 'genderage'],
                providers=providers,
            )
            self.model.prepare(
                ctx_id=self.config.GPU_ID if self.config.USE_GPU else -1,
                det_size=(self.config.DET_SIZE, self.config.DET_SIZE),
            )

            if 'genderage' not in self.model.models:
                raise RuntimeError(f"Model pack {self.model_name} has no age/gender model")

            self.is_initialized = True
            logger.info("InsightFace model initialized successfully")

        except Exception as e:
            logger.error(f"Failed to initialize InsightFace: {e}")
            self.load_error = (
                "Failed to load face detection models. "
                f"Please check the model files and network connection ({e})"
            )
            self.is_initialized = False

    def _age_gender(self, image: np.ndarray, bbox: np.ndarray):
        """
        Run the genderage head directly to get the gender probability.

        FaceAnalysis only keeps the argmax label, so this repeats the
        alignment done by insightface's Attribute model and keeps the scores.
        """
        attribute = self.model.models['genderage']
        width, height = bbox[2] - bbox[0], bbox[3] - bbox[1]
        center = ((bbox[2] + bbox[0]) / 2, (bbox[3] + bbox[1]) / 2)
        input_size = attribute.input_size[0]
        scale = input_size / (max(width, height) * 1.5)

        aligned, _ = face_align.transform(image, center, input_size, scale, 0)
        blob = cv2.dnn.blobFromImage(
            aligned,
            1.0 / attribute.input_std,
            (aligned.shape[1], aligned.shape[0]),
            (attribute.input_mean, attribute.input_mean, attribute.input_mean),
            swapRB=True,
        )
        pred = attribute.session.run(attribute.output_names, {attribute.input_name: blob})[0][0]

        probabilities = _softmax(np.asarray(pred[:2], dtype=np.float64))
        is_male = int(np.argmax(probabilities)) == 1
        age = float(pred[2]) * 100
        gender = MALE if is_male else FEMALE
        return age, gender, float(probabilities.max())

    def _to_detection(self, image: np.ndarray, face) -> Detection:
        x1, y1, x2, y2 = face.bbox.astype(float)
        age, gender, probability = self._age_gender(image, face.bbox)

        points = face.get('landmark_2d_106')
        if points is None:
            points = face.get('kps')
        landmarks = tuple(Point(float(p[0]), float(p[1])) for p in points) if points is not None else ()

        return Detection(
            box=BoundingBox(x=x1, y=y1, width=x2 - x1, height=y2 - y1),
            age=age,
            gender=gender,
            gender_probability=probability,
            landmarks=landmarks,
            score=float(face.det_score) if hasattr(face, 'det_score') else 0.0,
        )

    def _get_faces(self, image: np.ndarray, max_num: int):
        if not self.is_initialized:
            raise RuntimeError("Model not initialized")

        faces = self.model.get(image, max_num=max_num)
        return [
            face for face in faces
            if float(getattr(face, 'det_score', 0.0)) >= self.config.MIN_CONFIDENCE
        ]

    def detect(self, image: np.ndarray) -> List[Detection]:
        """Detect all faces, coordinates in the given image's pixels"""
        faces = self._get_faces(image, self.config.MAX_FACES)
        return [self._to_detection(image, face) for face in faces]

    def detect_one(self, image: np.ndarray) -> Optional[Detection]:
        """Single-face mode: the most prominent face in the crop"""
        if image.size == 0:
            return None
        faces = self._get_faces(image, 1)
        if not faces:
            return None
        return self._to_detection(image, faces[0])

    def get_health(self) -> HealthStatus:
        """Get health status"""
        return HealthStatus(
            status="ok" if self.is_initialized else "error",
            model=self.model_name,
            version=insightface.__version__,
            error=self.load_error,
        )

    def is_ready(self) -> bool:
        """Check if detector is ready"""
        return self.is_initialized
