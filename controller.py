"""
AnimationController - Layer 2 (Animation Logic)

Owns the current AnimationState and turns wall-clock timestamps into bounded
simulation steps. Communicates with Layer 3 (main.py / server.py) via:
  - the returned AnimationState snapshot
  - pending_events : list of dicts (impact, reset) for the shell to drain

Layer 3 calls:
  ctrl.update(timestamp_ms)     - once per rendered frame
  ctrl.reset()                  - on the user's reset key
  ctrl.get_time_since_impact()  - wave clock for water resampling
"""

import json
import math

from physics import PhysicsSimulation, AnimationState


class AnimationController:
    """Layer 2: frame-driven time-stepping + auto-reset policy."""

    # ── Class-level constants ─────────────────────────────────────────────────
    MAX_DELTA        = 0.1    # s, per-frame step clamp
    AUTO_RESET_AFTER = 12.0   # s of submersion before the cycle restarts

    def __init__(self, state: AnimationState | None = None):
        self.physics = PhysicsSimulation()
        self.state: AnimationState = state if state is not None else self.physics.reset()

        # Wall-clock ms of the previous update(); None until the baseline call
        self.last_update_time: int | None = None

        self.pending_events: list[dict] = []

    # ──────────────────────────────────────────────────────────────────────────
    # Main loop
    # ──────────────────────────────────────────────────────────────────────────

    def update(self, current_time_millis: int) -> AnimationState:
        """Advance the animation to the given wall-clock timestamp (ms).

        The first call after construction or reset only records the baseline.
        """
        if self.last_update_time is None:
            self.last_update_time = current_time_millis
            return self.state

        dt = self._clamp_delta((current_time_millis - self.last_update_time) / 1000.0)
        self.last_update_time = current_time_millis

        if dt <= 0.0:
            return self.state

        was_hit = self.state.has_hit_water
        self.state = self.physics.update(self.state, dt)

        if self.state.has_hit_water and not was_hit:
            self.pending_events.append({
                "type": "impact",
                "position": self.state.impact_position.to_list(),
                "time": self.state.impact_time,
            })

        if (self.state.has_hit_water and
                self.state.current_time - self.state.impact_time > self.AUTO_RESET_AFTER):
            self._reset("auto")

        return self.state

    def _clamp_delta(self, dt: float) -> float:
        if not math.isfinite(dt):
            return 0.0
        return max(0.0, min(self.MAX_DELTA, dt))

    # ──────────────────────────────────────────────────────────────────────────
    # Reset / queries
    # ──────────────────────────────────────────────────────────────────────────

    def reset(self) -> None:
        """User reset: restart the fall; the next update() is a new baseline."""
        self._reset("user")

    def _reset(self, reason: str) -> None:
        self.state = self.physics.reset()
        self.last_update_time = None
        self.pending_events.append({"type": "reset", "reason": reason})

    def get_state(self) -> AnimationState:
        return self.state

    def get_time_since_impact(self) -> float:
        if self.state.has_hit_water:
            return self.state.current_time - self.state.impact_time
        return 0.0

    def get_state_json(self) -> str:
        """Current snapshot plus controller bookkeeping, as JSON."""
        data = self.state.to_dict()
        data["phase"] = self.state.phase.name
        data["time_since_impact"] = self.get_time_since_impact()
        return json.dumps(data, indent=2)
