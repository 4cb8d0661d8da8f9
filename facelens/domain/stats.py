"""
Analysis statistics and confidence helpers
"""
from typing import Sequence

from .models import AnalysisStats, ImageDimensions, RefinedFace, round_half_up

AGE_CONFIDENCE_PEAK_AGE = 30
AGE_CONFIDENCE_FLOOR = 70
AGE_CONFIDENCE_CAP = 95


def age_confidence(age: float) -> int:
    """Presentation heuristic peaking at 90 around age 30, kept within [70, 95]"""
    raw = 90 - abs(age - AGE_CONFIDENCE_PEAK_AGE) * 0.5
    return round_half_up(min(AGE_CONFIDENCE_CAP, max(AGE_CONFIDENCE_FLOOR, raw)))


def gender_confidence(probability: float) -> int:
    """Gender probability (0-1) as an integer percentage"""
    return round_half_up(probability * 100)


def format_processing_time(processing_time_ms: float) -> str:
    return f"{processing_time_ms / 1000:.1f}s"


def calculate_analysis_stats(
    faces: Sequence[RefinedFace],
    processing_time_ms: float,
    image_dimensions: ImageDimensions,
) -> AnalysisStats:
    total_faces = len(faces)

    avg_confidence = 0
    if total_faces > 0:
        combined = sum(face.combined_confidence for face in faces)
        avg_confidence = round_half_up(combined / total_faces)

    return AnalysisStats(
        total_faces=total_faces,
        avg_confidence=avg_confidence,
        processing_time=format_processing_time(processing_time_ms),
        image_size=f"{image_dimensions.width}x{image_dimensions.height}",
    )


def confidence_level(confidence: int) -> str:
    if confidence >= 90:
        return "High Confidence"
    if confidence >= 75:
        return "Good Confidence"
    if confidence >= 60:
        return "Medium Confidence"
    return "Low Confidence"
