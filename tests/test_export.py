"""Tests for JSON / CSV export."""

import json
from datetime import datetime, timezone

from conftest import make_face

from facelens.application.export import (
    CSV_HEADER,
    export_filename,
    faces_to_csv,
    results_to_json,
)
from facelens.domain.models import AnalysisStats


def test_csv_has_one_row_per_face():
    faces = [make_face("face-1"), make_face("face-2", x=55.5, gender="male")]
    lines = faces_to_csv(faces).strip().split("\n")

    assert lines[0] == ",".join(CSV_HEADER)
    assert len(lines) == 1 + len(faces)
    assert lines[2] == "face-2,31,90,male,88,55.5,20.0,30.0,40.0"


def test_csv_header_only_without_faces():
    assert faces_to_csv([]) == "Face ID,Age,Age Confidence,Gender,Gender Confidence,X,Y,Width,Height\n"


def test_json_document():
    stats = AnalysisStats(total_faces=1, avg_confidence=89, processing_time="0.8s", image_size="640x480")
    when = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)

    document = json.loads(results_to_json([make_face()], stats, "me.jpg", when))

    analysis = document["analysis"]
    assert analysis["timestamp"] == "2024-05-01T12:00:00+00:00"
    assert analysis["imageName"] == "me.jpg"
    assert analysis["stats"]["imageSize"] == "640x480"
    assert analysis["faces"] == [{
        "id": "face-1",
        "position": {"x": 10.0, "y": 20.0, "width": 30.0, "height": 40.0},
        "age": 31,
        "ageConfidence": 90,
        "gender": "female",
        "genderConfidence": 88,
    }]


def test_export_filename():
    when = datetime(2024, 5, 1, tzinfo=timezone.utc)
    assert export_filename("me.jpg", "csv", when) == "face-analysis-me.jpg-2024-05-01.csv"
