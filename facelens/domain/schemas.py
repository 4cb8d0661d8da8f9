"""
Request validation schemas
"""
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from .models import (
    BoundingBox,
    ImageDimensions,
    NewFaceAnalysis,
    Point,
    RefinedFace,
    round_half_up,
)


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class BoxSchema(_CamelModel):
    x: float
    y: float
    width: float = Field(..., ge=0)
    height: float = Field(..., ge=0)


class PointSchema(_CamelModel):
    x: float
    y: float


class ImageDimensionsSchema(_CamelModel):
    width: int = Field(..., gt=0)
    height: int = Field(..., gt=0)


class FaceSchema(_CamelModel):
    """One detected face as sent by clients"""

    id: str
    box: BoxSchema
    age: float
    age_confidence: float = Field(..., alias="ageConfidence", ge=0, le=100)
    gender: Literal["male", "female"]
    gender_confidence: float = Field(..., alias="genderConfidence", ge=0, le=100)
    landmarks: Optional[List[PointSchema]] = None

    def to_domain(self) -> RefinedFace:
        return RefinedFace(
            id=self.id,
            box=BoundingBox(self.box.x, self.box.y, self.box.width, self.box.height),
            age=round_half_up(self.age),
            age_confidence=round_half_up(self.age_confidence),
            gender=self.gender,
            gender_confidence=round_half_up(self.gender_confidence),
            landmarks=(
                tuple(Point(p.x, p.y) for p in self.landmarks)
                if self.landmarks is not None else None
            ),
        )


class FaceAnalysisCreateSchema(_CamelModel):
    """Body of POST /api/analyses"""

    image_file_name: str = Field(..., alias="imageFileName", min_length=1)
    image_dimensions: ImageDimensionsSchema = Field(..., alias="imageDimensions")
    detected_faces: List[FaceSchema] = Field(..., alias="detectedFaces")
    processing_time: Optional[str] = Field(None, alias="processingTime")

    def to_domain(self) -> NewFaceAnalysis:
        return NewFaceAnalysis(
            image_file_name=self.image_file_name,
            image_dimensions=ImageDimensions(
                self.image_dimensions.width, self.image_dimensions.height
            ),
            detected_faces=tuple(f.to_domain() for f in self.detected_faces),
            processing_time=self.processing_time,
        )

