"""Shared test fixtures."""

from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

import cv2
import numpy as np
import pytest

from facelens.app import create_app
from facelens.config import TestingConfig
from facelens.domain.interfaces import FaceDetectorInterface
from facelens.domain.models import (
    BoundingBox,
    Detection,
    HealthStatus,
    ImageDimensions,
    NewFaceAnalysis,
    Point,
    RefinedFace,
)
from facelens.infrastructure.storage import MemoryStorage


class StubDetector(FaceDetectorInterface):
    """Deterministic stand-in for the InsightFace model.

    ``detect`` returns fixed detections; ``detect_one`` looks up its answer by
    crop width so concurrent crop calls stay deterministic.
    """

    def __init__(
        self,
        detections: Optional[List[Detection]] = None,
        crop_results: Optional[Dict[int, Optional[Detection]]] = None,
        ready: bool = True,
        fail: bool = False,
    ):
        self.detections = detections or []
        self.crop_results = crop_results or {}
        self.ready = ready
        self.fail = fail
        self.detect_shapes = []
        self.crop_shapes = []

    def detect(self, image):
        if self.fail:
            raise RuntimeError("model exploded")
        self.detect_shapes.append(image.shape)
        return list(self.detections)

    def detect_one(self, image):
        self.crop_shapes.append(image.shape)
        result = self.crop_results.get(image.shape[1])
        if isinstance(result, Exception):
            raise result
        return result

    def get_health(self):
        return HealthStatus(
            status="ok" if self.ready else "error",
            model="stub",
            version="0",
            error=None if self.ready else "Failed to load face detection models.",
        )

    def is_ready(self):
        return self.ready


def make_detection(
    x=150.0, y=150.0, width=100.0, height=100.0,
    age=30.0, gender="male", probability=0.9,
    landmarks=None,
) -> Detection:
    return Detection(
        box=BoundingBox(x, y, width, height),
        age=age,
        gender=gender,
        gender_probability=probability,
        landmarks=tuple(landmarks) if landmarks is not None else (Point(x + 10, y + 20), Point(x + 60, y + 20)),
        score=0.99,
    )


def make_face(face_id="face-1", x=10.0, y=20.0, width=30.0, height=40.0,
              age=31, age_confidence=90, gender="female", gender_confidence=88) -> RefinedFace:
    return RefinedFace(
        id=face_id,
        box=BoundingBox(x, y, width, height),
        age=age,
        age_confidence=age_confidence,
        gender=gender,
        gender_confidence=gender_confidence,
        landmarks=(Point(x + 5, y + 5),),
    )


def make_new_analysis(name="photo.jpg", faces=None) -> NewFaceAnalysis:
    return NewFaceAnalysis(
        image_file_name=name,
        image_dimensions=ImageDimensions(640, 480),
        detected_faces=tuple(faces if faces is not None else [make_face()]),
        processing_time="1.2s",
    )


def encode_image(width=200, height=100, ext=".png") -> bytes:
    image = np.full((height, width, 3), 127, dtype=np.uint8)
    ok, buffer = cv2.imencode(ext, image)
    assert ok
    return buffer.tobytes()


class TickingClock:
    """Returns strictly increasing timestamps."""

    def __init__(self):
        self.current = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def __call__(self):
        self.current += timedelta(seconds=1)
        return self.current


@pytest.fixture
def clock():
    return TickingClock()


@pytest.fixture
def stub_detector():
    return StubDetector()


@pytest.fixture
def memory_storage(clock):
    return MemoryStorage(clock=clock)


@pytest.fixture
def app(stub_detector, memory_storage):
    app = create_app(config=TestingConfig(), detector=stub_detector, storage=memory_storage)
    app.config['TESTING'] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()
