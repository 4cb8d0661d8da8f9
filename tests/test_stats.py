"""Tests for analysis statistics and confidence helpers."""

import pytest

from conftest import make_face

from facelens.domain.models import ImageDimensions
from facelens.domain.stats import (
    age_confidence,
    calculate_analysis_stats,
    confidence_level,
    gender_confidence,
    round_half_up,
)


def test_no_faces_gives_zero_average():
    stats = calculate_analysis_stats([], 1234, ImageDimensions(640, 480))
    assert stats.total_faces == 0
    assert stats.avg_confidence == 0
    assert stats.processing_time == "1.2s"
    assert stats.image_size == "640x480"


def test_average_of_rounded_combined_confidence():
    faces = [
        make_face("face-1", age_confidence=90, gender_confidence=81),  # 85.5 -> 86
        make_face("face-2", age_confidence=70, gender_confidence=75),  # 72.5 -> 73
    ]
    stats = calculate_analysis_stats(faces, 500, ImageDimensions(10, 20))
    assert stats.total_faces == 2
    assert stats.avg_confidence == 80  # (86 + 73) / 2 = 79.5 -> 80
    assert stats.processing_time == "0.5s"
    assert stats.to_dict() == {
        "totalFaces": 2,
        "avgConfidence": 80,
        "processingTime": "0.5s",
        "imageSize": "10x20",
    }


def test_age_confidence_peaks_at_thirty():
    assert age_confidence(30) == 90


def test_age_confidence_floor():
    assert age_confidence(90) == 70
    assert age_confidence(120) == 70


def test_age_confidence_decays_from_peak():
    assert age_confidence(0) == 75
    assert age_confidence(40) == 85
    assert age_confidence(20) == 85


@pytest.mark.parametrize("age", [-10, 0, 5.5, 18, 30, 47.3, 64, 90, 150])
def test_age_confidence_bounds(age):
    assert 70 <= age_confidence(age) <= 95


def test_gender_confidence_percentage():
    assert gender_confidence(0.934) == 93
    assert gender_confidence(0.5) == 50
    assert gender_confidence(1.0) == 100


def test_round_half_up():
    assert round_half_up(2.5) == 3
    assert round_half_up(3.5) == 4
    assert round_half_up(72.5) == 73
    assert round_half_up(2.49) == 2


@pytest.mark.parametrize("value, level", [
    (95, "High Confidence"),
    (90, "High Confidence"),
    (80, "Good Confidence"),
    (60, "Medium Confidence"),
    (59, "Low Confidence"),
])
def test_confidence_level(value, level):
    assert confidence_level(value) == level


@pytest.mark.parametrize("age_conf, gender_conf, combined", [
    (90, 81, 86),
    (70, 75, 73),
    (88, 88, 88),
])
def test_combined_confidence_rounds_half_up(age_conf, gender_conf, combined):
    face = make_face(age_confidence=age_conf, gender_confidence=gender_conf)
    assert face.combined_confidence == combined
    assert face.combined_confidence == round_half_up((age_conf + gender_conf) / 2)
