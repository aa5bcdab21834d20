import pytest

from jiantu_travel.api.errors import WaypointNotFoundError
from jiantu_travel.planner.drag import DragReorderReconciler, DragState
from jiantu_travel.planner.store import WaypointStore

from conftest import make_waypoint


@pytest.fixture
def setup():
    store = WaypointStore([make_waypoint(name=n) for n in "ABCD"])
    recomputes = []
    reconciler = DragReorderReconciler(store, lambda: recomputes.append(store.ids()))
    changes = []
    store.subscribe(changes.append)
    return store, reconciler, recomputes, changes


def names(store):
    return "".join(wp.name for wp in store)


def test_drag_splices_live_and_recomputes_once_on_drop(setup):
    store, drag, recomputes, changes = setup

    drag.start(0)
    assert drag.state is DragState.DRAGGING
    drag.hover(1)
    drag.hover(2)
    assert names(store) == "BCAD"
    assert drag.dragged_index == 2
    assert recomputes == []
    assert all(change.transient for change in changes)

    assert drag.end() is True
    assert drag.state is DragState.IDLE
    assert len(recomputes) == 1
    assert recomputes[0] == store.ids()


def test_repeated_hover_over_same_index_is_idempotent(setup):
    store, drag, _, changes = setup
    drag.start(3)
    drag.hover(1)
    drag.hover(1)
    drag.hover(1)
    assert names(store) == "ADBC"
    assert len(changes) == 1


def test_drop_back_in_place_skips_recompute(setup):
    store, drag, recomputes, _ = setup
    drag.start(1)
    drag.hover(3)
    drag.hover(1)
    assert names(store) == "ABCD"
    assert drag.end() is False
    assert recomputes == []


def test_hover_out_of_range_is_ignored(setup):
    store, drag, _, _ = setup
    drag.start(0)
    drag.hover(7)
    drag.hover(-1)
    assert names(store) == "ABCD"


def test_events_outside_a_gesture_do_nothing(setup):
    store, drag, recomputes, changes = setup
    drag.hover(2)
    assert drag.end() is False
    drag.cancel()
    assert names(store) == "ABCD"
    assert recomputes == [] and changes == []


def test_start_on_bad_index_stays_idle(setup):
    _, drag, _, _ = setup
    with pytest.raises(WaypointNotFoundError):
        drag.start(10)
    assert drag.state is DragState.IDLE


def test_cancel_restores_original_order(setup):
    store, drag, recomputes, changes = setup
    drag.start(0)
    drag.hover(3)
    assert names(store) == "BCDA"
    drag.cancel()
    assert names(store) == "ABCD"
    assert drag.state is DragState.IDLE
    assert recomputes == []
    assert all(change.transient for change in changes)


def test_dragged_waypoint_removed_mid_gesture(setup):
    store, drag, recomputes, _ = setup
    dragged = store[1]
    drag.start(1)
    store.remove(dragged.id)
    drag.hover(0)
    assert drag.state is DragState.IDLE
    assert names(store) == "ACD"
    assert drag.end() is False


def test_drop_with_single_waypoint_left_does_not_recompute():
    store = WaypointStore([make_waypoint(), make_waypoint()])
    recomputes = []
    drag = DragReorderReconciler(store, lambda: recomputes.append(1))
    drag.start(0)
    drag.hover(1)
    store.remove(store[1].id)
    drag.end()
    assert recomputes == []
