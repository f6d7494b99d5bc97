from __future__ import annotations

from domain.models import Point
from domain.services.pan_controller import RECENTER_TRANSITION_SECONDS, PanController


def test_drag_moves_offset_by_pointer_delta() -> None:
    controller = PanController()
    controller.pointer_down(100, 100)
    assert controller.dragging
    assert controller.pointer_move(130, 90)
    assert controller.offset == Point(30, -10)
    controller.pointer_up()
    assert not controller.dragging
    assert controller.has_moved


def test_second_drag_continues_from_previous_offset() -> None:
    controller = PanController()
    controller.pointer_down(0, 0)
    controller.pointer_move(50, 20)
    controller.pointer_up()

    controller.pointer_down(200, 200)
    controller.pointer_move(210, 205)
    assert controller.offset == Point(60, 25)


def test_move_without_drag_is_ignored() -> None:
    controller = PanController()
    assert not controller.pointer_move(40, 40)
    assert controller.offset == Point(0, 0)
    assert not controller.has_moved


def test_leaving_the_canvas_ends_the_drag() -> None:
    controller = PanController()
    controller.pointer_down(10, 10)
    controller.pointer_leave()
    assert not controller.dragging
    assert not controller.pointer_move(80, 80)


def test_recenter_resets_offset_with_transition() -> None:
    controller = PanController()
    controller.pointer_down(0, 0)
    controller.pointer_move(-300, 120)
    controller.pointer_up()

    assert controller.recenter() == RECENTER_TRANSITION_SECONDS
    assert controller.offset == Point(0, 0)
    assert controller.transitioning
    assert not controller.has_moved
    controller.finish_transition()
    assert not controller.transitioning
