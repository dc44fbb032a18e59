import math

import pytest

from signdesk.geometry import (
    InvalidGeometry,
    PointBox,
    clamp01,
    fit_image,
    fractions_to_pixel_box,
    map_pixel_box,
)

A4 = {"width": 595, "height": 842}


def test_clamp01_bounds_and_non_finite():
    assert clamp01(-0.5) == 0
    assert clamp01(0.25) == 0.25
    assert clamp01(3) == 1
    assert clamp01(float("nan")) == 0
    assert clamp01(float("inf")) == 0
    assert clamp01("abc") == 0


def test_map_full_height_half_width_box():
    mapped = map_pixel_box(
        {"left": 0, "top": 0, "width": 100, "height": 200},
        {"width": 200, "height": 400},
        A4,
    )
    assert mapped.fractions.model_dump() == {"x_frac": 0, "y_frac": 0, "w_frac": 0.5, "h_frac": 0.5}
    assert mapped.point_box.model_dump() == {"x": 0, "y": 421, "width": 297.5, "height": 421}


def test_map_box_touching_page_bottom_has_zero_y():
    mapped = map_pixel_box(
        {"left": 50, "top": 300, "width": 50, "height": 100},
        {"width": 200, "height": 400},
        A4,
    )
    assert mapped.point_box.y == 0
    assert mapped.point_box.x == 148.75
    assert mapped.point_box.height == 210.5


def test_map_rounds_points_to_two_and_fractions_to_six_decimals():
    mapped = map_pixel_box(
        {"left": 1, "top": 1, "width": 1, "height": 1},
        {"width": 3, "height": 7},
        {"width": 100, "height": 100},
    )
    assert mapped.point_box.x == 33.33
    assert mapped.point_box.height == 14.29
    assert mapped.fractions.x_frac == 0.333333
    assert mapped.fractions.h_frac == 0.142857


def test_map_defaults_missing_and_non_numeric_fields():
    mapped = map_pixel_box({"left": "oops", "top": None}, {"width": 0, "height": -5}, {"height": "x"})
    # everything collapses to a unit page with an empty box at the top-left
    assert mapped.fractions.model_dump() == {"x_frac": 0, "y_frac": 0, "w_frac": 0, "h_frac": 0}
    assert mapped.point_box.model_dump() == {"x": 0, "y": 1, "width": 0, "height": 0}


def test_map_accepts_numeric_strings():
    mapped = map_pixel_box(
        {"left": "50", "top": "100", "width": "50", "height": "100"},
        {"width": "200", "height": "400"},
        A4,
    )
    assert mapped.fractions.x_frac == 0.25


def test_map_box_outside_page_stays_on_page():
    mapped = map_pixel_box(
        {"left": 180, "top": 380, "width": 100, "height": 100},
        {"width": 200, "height": 400},
        A4,
    )
    for value in mapped.fractions.model_dump().values():
        assert 0 <= value <= 1
    assert mapped.point_box.y == 0
    assert mapped.point_box.x <= A4["width"]

    above = map_pixel_box(
        {"left": -40, "top": -100, "width": 50, "height": 50},
        {"width": 200, "height": 400},
        A4,
    )
    assert above.point_box.x == 0
    # bottom distance 450px exceeds the page, clamps to the top edge
    assert above.point_box.y == 842


@pytest.mark.parametrize(
    "box",
    [
        {"left": 0, "top": 0, "width": 200, "height": 400},
        {"left": 13.7, "top": 250.1, "width": 61.3, "height": 22.9},
        {"left": 199, "top": 399, "width": 1, "height": 1},
    ],
)
def test_map_fractions_in_unit_range_for_boxes_inside_page(box):
    mapped = map_pixel_box(box, {"width": 200, "height": 400}, A4)
    assert all(0 <= v <= 1 for v in mapped.fractions.model_dump().values())


def test_map_is_deterministic():
    args = ({"left": 12.3, "top": 45.6, "width": 78.9, "height": 10.1}, {"width": 612, "height": 792}, A4)
    assert map_pixel_box(*args) == map_pixel_box(*args)


def test_fractions_reproject_to_same_point_box_after_resize():
    rendered = {"width": 600, "height": 849}
    page = {"width": 595.28, "height": 841.89}
    original = map_pixel_box({"left": 123, "top": 456, "width": 150, "height": 60}, rendered, page)

    resized = {"width": 900, "height": 1273.5}
    pixel = fractions_to_pixel_box(original.fractions, resized)
    again = map_pixel_box(pixel, resized, page)

    for key, value in original.point_box.model_dump().items():
        assert math.isclose(getattr(again.point_box, key), value, abs_tol=0.011)


def test_fit_wide_image_is_width_bound_and_centred():
    rect = fit_image({"width": 200, "height": 100}, {"x": 10, "y": 10, "width": 50, "height": 50})
    assert rect.model_dump() == {"x": 10, "y": 22.5, "width": 50, "height": 25}


def test_fit_tall_image_is_height_bound_and_centred():
    rect = fit_image({"width": 50, "height": 100}, PointBox(x=0, y=0, width=100, height=40))
    assert rect.model_dump() == {"x": 40, "y": 0, "width": 20, "height": 40}


def test_fit_equal_ratio_fills_box():
    rect = fit_image({"width": 100, "height": 100}, {"x": 10, "y": 10, "width": 50, "height": 50})
    assert rect.model_dump() == {"x": 10, "y": 10, "width": 50, "height": 50}


def test_fit_rect_is_contained_and_shares_centre():
    box = PointBox(x=72.5, y=100.25, width=180, height=48)
    rect = fit_image({"width": 437, "height": 211}, box)
    assert rect.x >= box.x and rect.y >= box.y
    assert rect.x + rect.width <= box.x + box.width + 1e-9
    assert rect.y + rect.height <= box.y + box.height + 1e-9
    assert math.isclose(rect.x + rect.width / 2, box.x + box.width / 2)
    assert math.isclose(rect.y + rect.height / 2, box.y + box.height / 2)


@pytest.mark.parametrize(
    "image, box",
    [
        ({"width": 100, "height": 0}, {"x": 0, "y": 0, "width": 50, "height": 50}),
        ({"width": -1, "height": 10}, {"x": 0, "y": 0, "width": 50, "height": 50}),
        ({"width": 100, "height": 100}, {"x": 0, "y": 0, "width": 50, "height": 0}),
        ({"width": 100, "height": 100}, {"x": 0, "y": 0, "width": float("inf"), "height": 10}),
        ({"width": 100, "height": 100}, {"x": "left", "y": 0, "width": 50, "height": 50}),
        ({"width": 100}, {"x": 0, "y": 0, "width": 50, "height": 50}),
    ],
)
def test_fit_rejects_degenerate_geometry(image, box):
    with pytest.raises(InvalidGeometry):
        fit_image(image, box)


def test_clamp01_huge_integer_is_non_finite():
    assert clamp01(10 ** 400) == 0
    assert clamp01(-(10 ** 400)) == 0


def test_map_treats_huge_integers_as_infinite():
    mapped = map_pixel_box(
        {"left": 10 ** 400, "top": -(10 ** 400), "width": 10 ** 400, "height": 100},
        {"width": 10 ** 400, "height": 400},
        {"width": 595, "height": 10 ** 400},
    )
    # oversized sizes fall back to 1; oversized coordinates clamp like infinity
    assert mapped.fractions.model_dump() == {"x_frac": 0, "y_frac": 0, "w_frac": 0, "h_frac": 0.25}
    assert mapped.point_box.model_dump() == {"x": 0, "y": 0, "width": 0, "height": 0.25}


@pytest.mark.parametrize(
    "image, box",
    [
        ({"width": 10 ** 400, "height": 100}, {"x": 0, "y": 0, "width": 50, "height": 50}),
        ({"width": 100, "height": 100}, {"x": -(10 ** 400), "y": 0, "width": 50, "height": 50}),
    ],
)
def test_fit_rejects_huge_integers(image, box):
    with pytest.raises(InvalidGeometry):
        fit_image(image, box)
