"""
Domain models/entities
"""
import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Tuple


def round_half_up(value: float) -> int:
    """Round to the nearest integer, .5 going up (builtin round() is banker's rounding)"""
    return int(math.floor(value + 0.5))


@dataclass(frozen=True)
class Point:
    """Landmark point"""
    x: float
    y: float

    def to_dict(self) -> dict:
        return {"x": self.x, "y": self.y}


@dataclass(frozen=True)
class BoundingBox:
    """Face bounding box in pixel coordinates"""
    x: float
    y: float
    width: float
    height: float

    def to_dict(self) -> dict:
        return {
            "x": self.x,
            "y": self.y,
            "width": self.width,
            "height": self.height,
        }


@dataclass(frozen=True)
class ImageDimensions:
    width: int
    height: int

    def to_dict(self) -> dict:
        return {"width": self.width, "height": self.height}


@dataclass(frozen=True)
class Detection:
    """Raw model output for one face"""
    box: BoundingBox
    age: float
    gender: str  # 'male' | 'female'
    gender_probability: float  # 0-1, probability of the predicted label
    landmarks: Tuple[Point, ...] = ()
    score: float = 0.0


@dataclass(frozen=True)
class RefinedFace:
    """Face after ensemble averaging, box in original image pixels"""
    id: str
    box: BoundingBox
    age: int
    age_confidence: int
    gender: str
    gender_confidence: int
    landmarks: Optional[Tuple[Point, ...]] = None

    @property
    def combined_confidence(self) -> int:
        """Mean of age and gender confidence, rounded half up"""
        return round_half_up((self.age_confidence + self.gender_confidence) / 2)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization"""
        data = {
            "id": self.id,
            "box": self.box.to_dict(),
            "age": self.age,
            "ageConfidence": self.age_confidence,
            "gender": self.gender,
            "genderConfidence": self.gender_confidence,
        }
        if self.landmarks is not None:
            data["landmarks"] = [p.to_dict() for p in self.landmarks]
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "RefinedFace":
        box = data["box"]
        landmarks = data.get("landmarks")
        return cls(
            id=data["id"],
            box=BoundingBox(box["x"], box["y"], box["width"], box["height"]),
            age=data["age"],
            age_confidence=data["ageConfidence"],
            gender=data["gender"],
            gender_confidence=data["genderConfidence"],
            landmarks=tuple(Point(p["x"], p["y"]) for p in landmarks) if landmarks is not None else None,
        )


@dataclass(frozen=True)
class AnalysisStats:
    """Summary of one analysis run"""
    total_faces: int
    avg_confidence: int
    processing_time: str
    image_size: str

    def to_dict(self) -> dict:
        return {
            "totalFaces": self.total_faces,
            "avgConfidence": self.avg_confidence,
            "processingTime": self.processing_time,
            "imageSize": self.image_size,
        }


@dataclass(frozen=True)
class NewFaceAnalysis:
    """Validated payload for creating an analysis record"""
    image_file_name: str
    image_dimensions: ImageDimensions
    detected_faces: Tuple[RefinedFace, ...]
    processing_time: Optional[str] = None


@dataclass(frozen=True)
class FaceAnalysisRecord:
    """Persisted analysis"""
    id: str
    image_file_name: str
    image_dimensions: ImageDimensions
    detected_faces: Tuple[RefinedFace, ...]
    analysis_timestamp: datetime
    processing_time: Optional[str] = None

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization"""
        return {
            "id": self.id,
            "imageFileName": self.image_file_name,
            "imageDimensions": self.image_dimensions.to_dict(),
            "detectedFaces": [f.to_dict() for f in self.detected_faces],
            "analysisTimestamp": self.analysis_timestamp.isoformat(),
            "processingTime": self.processing_time,
        }


@dataclass(frozen=True)
class NewUser:
    username: str
    password: str


@dataclass(frozen=True)
class User:
    id: str
    username: str
    password: str


@dataclass
class AnalysisResult:
    """Result of analysing one image"""
    success: bool
    faces: List[RefinedFace] = field(default_factory=list)
    stats: Optional[AnalysisStats] = None
    image_dimensions: Optional[ImageDimensions] = None
    error: Optional[str] = None
    processing_time_ms: int = 0
    analysis_id: Optional[str] = None

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization"""
        return {
            "success": self.success,
            "faces": [f.to_dict() for f in self.faces],
            "stats": self.stats.to_dict() if self.stats else None,
            "imageDimensions": self.image_dimensions.to_dict() if self.image_dimensions else None,
            "error": self.error,
            "processing_time_ms": self.processing_time_ms,
            "analysisId": self.analysis_id,
        }


@dataclass
class HealthStatus:
    """Service health status"""
    status: str
    model: str
    version: str
    storage: str = "memory"
    error: Optional[str] = None

    def to_dict(self) -> dict:
        data = {
            "status": self.status,
            "model": self.model,
            "version": self.version,
            "storage": self.storage,
        }
        if self.error:
            data["error"] = self.error
        return data
