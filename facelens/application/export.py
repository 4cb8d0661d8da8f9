"""
JSON / CSV export of analysis results
"""
import csv
import io
import json
from datetime import datetime, timezone
from typing import Optional, Sequence

from ..domain.models import AnalysisStats, RefinedFace

CSV_HEADER = [
    "Face ID", "Age", "Age Confidence", "Gender", "Gender Confidence",
    "X", "Y", "Width", "Height",
]


def export_filename(image_name: str, extension: str, when: Optional[datetime] = None) -> str:
    when = when or datetime.now(timezone.utc)
    return f"face-analysis-{image_name}-{when.strftime('%Y-%m-%d')}.{extension}"


def results_document(
    faces: Sequence[RefinedFace],
    stats: AnalysisStats,
    image_name: str,
    timestamp: Optional[datetime] = None,
) -> dict:
    timestamp = timestamp or datetime.now(timezone.utc)
    return {
        "analysis": {
            "timestamp": timestamp.isoformat(),
            "imageName": image_name,
            "stats": stats.to_dict(),
            "faces": [
                {
                    "id": face.id,
                    "position": face.box.to_dict(),
                    "age": face.age,
                    "ageConfidence": face.age_confidence,
                    "gender": face.gender,
                    "genderConfidence": face.gender_confidence,
                }
                for face in faces
            ],
        }
    }


def results_to_json(
    faces: Sequence[RefinedFace],
    stats: AnalysisStats,
    image_name: str,
    timestamp: Optional[datetime] = None,
) -> str:
    return json.dumps(results_document(faces, stats, image_name, timestamp), indent=2)


def faces_to_csv(faces: Sequence[RefinedFace]) -> str:
    """One row per face under a fixed header"""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for face in faces:
        writer.writerow([
            face.id,
            face.age,
            face.age_confidence,
            face.gender,
            face.gender_confidence,
            face.box.x,
            face.box.y,
            face.box.width,
            face.box.height,
        ])
    return buffer.getvalue()
