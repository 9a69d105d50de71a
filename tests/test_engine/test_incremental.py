"""Tests for incremental recomputation."""

import numpy as np
import pytest

from bubblesets.engine.config import OutlineConfig
from bubblesets.engine.context import RefinementOutcome
from bubblesets.engine.incremental import IncrementalOutline
from bubblesets.engine.pipeline import create_outline
from bubblesets.utils.geometry import Circle, Line, Rectangle
from tests.conftest import BLOCKER, CLUSTER, LEFT_MEMBER, RIGHT_MEMBER


def _pair() -> IncrementalOutline:
    inc = IncrementalOutline()
    inc.add_member(LEFT_MEMBER, "left")
    inc.add_member(RIGHT_MEMBER, "right")
    inc.add_non_member(BLOCKER, "blocker")
    return inc


def test_matches_one_shot_outline():
    inc = _pair()
    assert inc.compute() == create_outline([LEFT_MEMBER, RIGHT_MEMBER], [BLOCKER])


def test_matches_one_shot_outline_with_edges():
    edge = Line(10, 10, 10, 120)
    inc = IncrementalOutline()
    for member in CLUSTER:
        inc.add_member(member)
    inc.add_edge(edge)
    assert inc.compute() == create_outline(CLUSTER, edges=[edge])


def test_unchanged_items_keep_their_templates():
    inc = _pair()
    inc.compute()
    left_area = inc.records["left"].area
    inc.compute()
    assert inc.records["left"].area is left_area
    assert inc.rebuilds == 1


def test_mark_dirty_rebuilds_one_record():
    inc = _pair()
    inc.compute()
    left_area = inc.records["left"].area
    right_area = inc.records["right"].area
    hits = inc.cache.hits

    inc.mark_dirty("left")
    inc.compute()
    assert inc.records["left"].area is not left_area
    assert np.array_equal(inc.records["left"].area.values, left_area.values)
    assert inc.records["right"].area is right_area
    assert inc.cache.hits == hits + 1


def test_moving_a_member_follows_the_new_layout():
    inc = _pair()
    inc.compute()
    moved = Rectangle(200, 40, 20, 20)
    inc.update("right", moved)
    assert inc.compute() == create_outline([LEFT_MEMBER, moved], [BLOCKER])
    assert inc.rebuilds == 2


def test_update_inside_region_skips_full_rebuild():
    inc = IncrementalOutline()
    inc.add_member(Rectangle(0, 0, 100, 100), "big")
    inc.add_member(Circle(50, 50, 5), "dot")
    inc.compute()
    inc.update("dot", Circle(40, 60, 5))
    outline = inc.compute()
    assert inc.rebuilds == 1
    assert outline == create_outline([Rectangle(0, 0, 100, 100), Circle(40, 60, 5)])


def test_remove_all_members():
    inc = _pair()
    inc.compute()
    inc.remove("left")
    inc.remove("right")
    assert len(inc.compute()) == 0
    assert inc.last_context.outcome is RefinementOutcome.NO_MEMBERS


def test_set_config_clears_cache():
    inc = _pair()
    inc.compute()
    assert len(inc.cache) > 0
    config = OutlineConfig(pixel_group=8)
    inc.set_config(config)
    assert len(inc.cache) == 0
    assert inc.compute() == create_outline([LEFT_MEMBER, RIGHT_MEMBER], [BLOCKER], config=config)


def test_generated_ids_are_unique():
    inc = IncrementalOutline()
    a = inc.add_member(Rectangle(0, 0, 1, 1))
    b = inc.add_member(Rectangle(5, 0, 1, 1))
    c = inc.add_non_member(Rectangle(9, 0, 1, 1))
    assert len({a, b, c}) == 3


def test_duplicate_id_rejected():
    inc = IncrementalOutline()
    inc.add_member(Rectangle(0, 0, 1, 1), "a")
    with pytest.raises(ValueError):
        inc.add_non_member(Rectangle(0, 0, 1, 1), "a")


def test_update_checks_item_type():
    inc = IncrementalOutline()
    inc.add_edge(Line(0, 0, 1, 1), "e")
    with pytest.raises(TypeError):
        inc.update("e", Rectangle(0, 0, 1, 1))
