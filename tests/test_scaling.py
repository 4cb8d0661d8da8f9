"""Tests for coordinate mapping between canvas, original and display space."""

import pytest

from conftest import make_detection, make_face

from facelens.domain.models import BoundingBox, ImageDimensions, Point
from facelens.domain.scaling import (
    canvas_to_original,
    display_scale,
    original_to_display,
    upscale_factor,
)


def test_upscale_factor_small_image():
    assert upscale_factor(400, 800) == 2.0


def test_upscale_factor_never_downscales():
    assert upscale_factor(1600, 800) == 1.0
    assert upscale_factor(800, 800) == 1.0


def test_upscale_factor_rejects_empty_width():
    with pytest.raises(ValueError):
        upscale_factor(0, 800)


def test_canvas_to_original_halves_under_factor_two():
    detection = make_detection(x=101, y=63, width=47, height=55)
    original = canvas_to_original(detection, 2.0)

    assert abs(original.box.x - 50.5) <= 1
    assert abs(original.box.y - 31.5) <= 1
    assert abs(original.box.width - 23.5) <= 1
    assert abs(original.box.height - 27.5) <= 1


def test_landmarks_follow_their_box():
    detection = make_detection(landmarks=[Point(40, 80), Point(120, 60)])
    original = canvas_to_original(detection, 4.0)
    assert original.landmarks == (Point(10, 20), Point(30, 15))


def test_transforms_do_not_mutate_input():
    detection = make_detection()
    canvas_to_original(detection, 2.0)
    assert detection.box == BoundingBox(150, 150, 100, 100)


def test_original_to_display_scales_axes_independently():
    face = make_face(x=100, y=100, width=50, height=40)
    shown = original_to_display(face, ImageDimensions(1000, 500), (500, 500))

    assert shown.box == BoundingBox(50, 100, 25, 40)
    assert shown.landmarks == (Point(52.5, 105),)
    assert shown.age == face.age


def test_display_scale_accepts_tuples():
    assert display_scale((200, 100), (100, 100)) == (0.5, 1.0)


def test_display_scale_rejects_zero_natural_size():
    with pytest.raises(ValueError):
        display_scale((0, 100), (100, 100))
