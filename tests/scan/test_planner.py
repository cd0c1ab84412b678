"""Tests for pipeline/scan/planner.py"""

import pytest

from pipeline.scan import plan_sections, parse_grid, RegionDescriptor


@pytest.mark.parametrize("sx,sy", [(1, 1), (2, 1), (1, 3), (2, 2), (3, 3), (4, 3), (6, 5)])
def test_length_bounds_and_order(sx, sy):
    sections = plan_sections(sx, sy)

    assert len(sections) == sx * sy
    for s in sections:
        for value in (s.x, s.y, s.width, s.height):
            assert 0 <= value <= 100
        assert 0 <= s.priority <= 1
        assert 0 <= s.row < sy
        assert 0 <= s.col < sx

    priorities = [s.priority for s in sections]
    assert priorities == sorted(priorities, reverse=True)
    assert {(s.row, s.col) for s in sections} == {(r, c) for r in range(sy) for c in range(sx)}


def test_single_cell_is_whole_image():
    sections = plan_sections(1, 1)
    assert sections == [RegionDescriptor(x=0, y=0, width=100, height=100, row=0, col=0, priority=1.0)]
    assert sections[0].is_whole_image


def test_overlap_only_after_first_row_and_column():
    by_cell = {(s.row, s.col): s for s in plan_sections(4, 3)}

    assert by_cell[(0, 0)].x == 0
    assert by_cell[(0, 0)].y == 0
    # Column 1 starts 10% of a 25% cell before 25%
    assert by_cell[(0, 1)].x == pytest.approx(25 - 2.5)
    assert by_cell[(1, 0)].y == pytest.approx(100 / 3 - 10 / 3)


def test_center_cell_has_highest_priority():
    sections = plan_sections(4, 3)
    best = sections[0]
    # Center of a 4x3 grid is (col 2, row 1.5)
    assert best.col == 2
    assert best.row in (1, 2)
    assert best.priority > 0.7


def test_size_multiplier_scales_with_priority():
    by_cell = {(s.row, s.col): s for s in plan_sections(4, 3)}
    corner = by_cell[(0, 0)]
    assert corner.priority == pytest.approx(0.0)
    assert corner.width == pytest.approx(25 * 0.8)

    center = by_cell[(1, 2)]
    expected = 25 * (0.8 + 0.4 * center.priority) + 2.5
    assert center.width == pytest.approx(expected)


def test_ties_keep_row_major_order():
    sections = plan_sections(2, 2)
    tied = [(s.row, s.col) for s in sections if s.priority == pytest.approx(sections[1].priority)]
    assert tied == [(0, 1), (1, 0)]


@pytest.mark.parametrize("sx,sy", [(0, 1), (1, 0), (-2, 3)])
def test_invalid_grid(sx, sy):
    with pytest.raises(ValueError):
        plan_sections(sx, sy)


@pytest.mark.parametrize("text,expected", [("4x3", (4, 3)), (" 2 X 2 ", (2, 2)), ("1x1", (1, 1))])
def test_parse_grid(text, expected):
    assert parse_grid(text) == expected


@pytest.mark.parametrize("text", ["", "4", "4x", "x3", "0x3", "four by three", "4x3x2"])
def test_parse_grid_invalid(text):
    with pytest.raises(ValueError):
        parse_grid(text)
