"""
Controller Tests - time-stepping, delta clamp, auto-reset and event queue.
"""

import sys
import os
import json
import math
import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from controller import AnimationController
from physics import AnimationState, PhysicsSimulation, Vector3, WATER_LEVEL


def _drive(ctrl: AnimationController, start_ms: int, step_ms: int, frames: int):
    """Feed `frames` updates spaced step_ms apart after a baseline at start_ms."""
    ctrl.update(start_ms)
    t = start_ms
    state = ctrl.get_state()
    for _ in range(frames):
        t += step_ms
        state = ctrl.update(t)
    return state, t


class TestBaseline:

    @pytest.mark.parametrize("ts", [0, 1, 16, 1_700_000_000_000])
    def test_first_call_returns_default(self, ts):
        ctrl = AnimationController()
        assert ctrl.update(ts) == AnimationState()

    def test_first_call_after_reset_is_baseline(self):
        ctrl = AnimationController()
        _drive(ctrl, 1000, 16, 30)
        ctrl.reset()
        assert ctrl.last_update_time is None
        assert ctrl.update(999_999) == AnimationState()
        assert ctrl.get_state().current_time == 0.0


class TestDeltaClamp:

    def test_long_stall_is_clamped(self):
        ctrl = AnimationController()
        ctrl.update(5000)
        s = ctrl.update(15000)
        assert s.current_time == pytest.approx(0.1)

    def test_backwards_timestamp_has_no_effect(self):
        ctrl = AnimationController()
        s1, t = _drive(ctrl, 0, 20, 10)
        s2 = ctrl.update(t - 500)
        assert s2 == s1

    def test_repeated_timestamp_has_no_effect(self):
        ctrl = AnimationController(state=AnimationState(
            sphere_position=Vector3(0.0, WATER_LEVEL, 0.0),
            sphere_velocity=Vector3(0.0, -0.8, 0.0),
            has_hit_water=True))
        ctrl.update(100)
        s1 = ctrl.update(120)
        s2 = ctrl.update(120)
        assert s2 == s1

    def test_non_finite_delta_is_zero(self):
        ctrl = AnimationController()
        ctrl.update(0)
        s = ctrl.update(float("inf"))
        assert s.current_time == 0.0
        assert math.isfinite(s.sphere_position.y)

    def test_monotonic_clock_sums_clamped_deltas(self):
        ctrl = AnimationController()
        stamps = [1000, 1016, 1033, 1033, 1500, 1516, 1517, 4000]
        ctrl.update(stamps[0])
        expected = 0.0
        prev_time = 0.0
        for prev, cur in zip(stamps, stamps[1:]):
            s = ctrl.update(cur)
            expected += min(0.1, max(0.0, (cur - prev) / 1000.0))
            assert s.current_time >= prev_time
            prev_time = s.current_time
        assert prev_time == pytest.approx(expected)


class TestImpactAndReset:

    def test_impact_write_once_through_controller(self):
        ctrl = AnimationController()
        state, t = _drive(ctrl, 0, 16, 80)
        assert state.has_hit_water
        impact_time, impact_pos = state.impact_time, state.impact_position
        for _ in range(100):
            t += 16
            state = ctrl.update(t)
            assert state.impact_time == impact_time
            assert state.impact_position == impact_pos

    def test_time_since_impact(self):
        ctrl = AnimationController()
        assert ctrl.get_time_since_impact() == 0.0
        state, _ = _drive(ctrl, 0, 16, 120)
        assert state.has_hit_water
        assert ctrl.get_time_since_impact() == pytest.approx(
            state.current_time - state.impact_time)
        assert ctrl.get_time_since_impact() > 0.0

    def test_auto_reset_after_twelve_seconds(self):
        start = AnimationState(
            sphere_position=Vector3(0.0, WATER_LEVEL, 0.0),
            sphere_velocity=Vector3(0.0, -0.8, 0.0),
            has_hit_water=True, impact_time=0.0, current_time=0.0)
        ctrl = AnimationController(state=start)
        ctrl.update(0)
        t = 0
        state = ctrl.get_state()
        for _ in range(200):
            t += 100
            state = ctrl.update(t)
            if not state.has_hit_water:
                break
        assert state == PhysicsSimulation.reset()
        assert ctrl.last_update_time is None
        assert {"type": "reset", "reason": "auto"} in ctrl.pending_events

    def test_no_reset_before_window(self):
        start = AnimationState(has_hit_water=True, impact_time=0.0, current_time=11.5,
                               sphere_position=Vector3(0.0, -3.0, 0.0))
        ctrl = AnimationController(state=start)
        ctrl.update(0)
        s = ctrl.update(100)
        assert s.has_hit_water
        assert s.current_time == pytest.approx(11.6)

    def test_user_reset(self):
        ctrl = AnimationController()
        _drive(ctrl, 0, 16, 100)
        ctrl.reset()
        assert ctrl.get_state() == AnimationState()
        assert ctrl.pending_events[-1] == {"type": "reset", "reason": "user"}


class TestEvents:

    def test_single_impact_event_per_fall(self):
        ctrl = AnimationController()
        _drive(ctrl, 0, 16, 300)
        impacts = [e for e in ctrl.pending_events if e["type"] == "impact"]
        assert len(impacts) == 1
        ev = impacts[0]
        assert ev["position"][1] == WATER_LEVEL
        assert ev["time"] == pytest.approx(math.sqrt(2 * 4.5 / 9.81), abs=0.05)

    def test_state_json(self):
        ctrl = AnimationController()
        data = json.loads(ctrl.get_state_json())
        assert data["phase"] == "FALLING"
        assert data["sphere_position"] == [0.0, 5.0, 0.0]
        assert data["time_since_impact"] == 0.0


class TestDeterminism:

    def test_identical_timestamps_identical_states(self):
        a, b = AnimationController(), AnimationController()
        sa, _ = _drive(a, 500, 17, 250)
        sb, _ = _drive(b, 500, 17, 250)
        assert sa == sb
