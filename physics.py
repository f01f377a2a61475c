"""
Sphere Drop Physics Engine
Point-mass sphere under gravity, water impact transition, post-impact sinking.
"""

import enum
import math
from dataclasses import dataclass, field, asdict

# ──────────────────────────────────────────────
# Constants (SI units)
# ──────────────────────────────────────────────
GRAVITY: float = -9.81  # m/s^2 (negative = down)
WATER_LEVEL: float = 0.0  # y of the undisturbed water surface

SPHERE_RADIUS: float = 0.5  # m
START_HEIGHT: float = 5.0  # m, y of the sphere centre at the start of a fall

# Post-impact motion: fixed sink speed, then per-step exponential decay.
# Read by name every call, so shells may tune them live.
SINK_VELOCITY: float = -0.8  # m/s
SINK_DECAY: float = 0.995  # velocity multiplier per step


@dataclass(frozen=True)
class Vector3:
    """Immutable 3D vector. Every operation returns a new instance."""
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    def __add__(self, other: "Vector3") -> "Vector3":
        return Vector3(self.x + other.x, self.y + other.y, self.z + other.z)

    def __sub__(self, other: "Vector3") -> "Vector3":
        return Vector3(self.x - other.x, self.y - other.y, self.z - other.z)

    def __mul__(self, scalar: float) -> "Vector3":
        return Vector3(self.x * scalar, self.y * scalar, self.z * scalar)

    __rmul__ = __mul__

    def __truediv__(self, scalar: float) -> "Vector3":
        return Vector3(self.x / scalar, self.y / scalar, self.z / scalar)

    def __neg__(self) -> "Vector3":
        return Vector3(-self.x, -self.y, -self.z)

    def length(self) -> float:
        return math.sqrt(self.x * self.x + self.y * self.y + self.z * self.z)

    def normalize(self) -> "Vector3":
        """Unit vector in the same direction; a zero vector comes back unchanged."""
        n = self.length()
        if n > 0.0:
            return self / n
        return self

    def dot(self, other: "Vector3") -> float:
        return self.x * other.x + self.y * other.y + self.z * other.z

    def cross(self, other: "Vector3") -> "Vector3":
        return Vector3(
            self.y * other.z - self.z * other.y,
            self.z * other.x - self.x * other.z,
            self.x * other.y - self.y * other.x,
        )

    def to_list(self) -> list:
        return [self.x, self.y, self.z]


Vector3.ZERO = Vector3(0.0, 0.0, 0.0)
Vector3.UP = Vector3(0.0, 1.0, 0.0)
Vector3.FORWARD = Vector3(0.0, 0.0, -1.0)


class SimPhase(enum.Enum):
    FALLING = 0
    SUBMERGED = 1


@dataclass(frozen=True)
class AnimationState:
    """Snapshot of one fall cycle.

    impact_time and impact_position are only meaningful once has_hit_water
    is set; they are written once per cycle and then carried unchanged.
    current_time is the simulation clock in seconds since the last reset.
    """
    sphere_position: Vector3 = field(
        default_factory=lambda: Vector3(0.0, START_HEIGHT, 0.0))
    sphere_velocity: Vector3 = Vector3.ZERO
    sphere_radius: float = SPHERE_RADIUS
    has_hit_water: bool = False
    impact_time: float = 0.0
    current_time: float = 0.0
    impact_position: Vector3 = Vector3.ZERO

    @property
    def phase(self) -> SimPhase:
        return SimPhase.SUBMERGED if self.has_hit_water else SimPhase.FALLING

    @property
    def time_since_impact(self) -> float:
        if not self.has_hit_water:
            return 0.0
        return self.current_time - self.impact_time

    def to_dict(self) -> dict:
        d = asdict(self)
        for key in ("sphere_position", "sphere_velocity", "impact_position"):
            v = d[key]
            d[key] = [v["x"], v["y"], v["z"]]
        return d


class PhysicsSimulation:
    """Pure state-transition function for the falling sphere.

    update() never mutates its input; it returns the next snapshot.
    """

    @staticmethod
    def update(state: AnimationState, dt: float) -> AnimationState:
        """Advance the state by dt seconds.

        FALLING:   v += g·dt, then p += v·dt. Crossing the water surface fixes
                   the impact point, pins the sphere to the surface and
                   overrides the velocity with the fixed sink speed.
        SUBMERGED: p += v·dt, then v *= SINK_DECAY (asymptotic, never stops).
        """
        position = state.sphere_position
        velocity = state.sphere_velocity
        has_hit = state.has_hit_water
        impact_time = state.impact_time
        impact_position = state.impact_position

        if not has_hit:
            velocity = velocity + Vector3(0.0, GRAVITY * dt, 0.0)
            position = position + velocity * dt

            if position.y - state.sphere_radius <= WATER_LEVEL:
                has_hit = True
                impact_time = state.current_time + dt
                impact_position = Vector3(position.x, WATER_LEVEL, position.z)
                position = Vector3(position.x, WATER_LEVEL, position.z)
                # Replaces the integrated impact speed.
                velocity = Vector3(0.0, SINK_VELOCITY, 0.0)
        else:
            position = position + velocity * dt
            velocity = velocity * SINK_DECAY

        return AnimationState(
            sphere_position=position,
            sphere_velocity=velocity,
            sphere_radius=state.sphere_radius,
            has_hit_water=has_hit,
            impact_time=impact_time,
            current_time=state.current_time + dt,
            impact_position=impact_position,
        )

    @staticmethod
    def reset() -> AnimationState:
        """Default pre-fall state: sphere at (0, 5, 0), at rest, not hit."""
        return AnimationState(
            sphere_position=Vector3(0.0, START_HEIGHT, 0.0),
            sphere_velocity=Vector3.ZERO,
            sphere_radius=SPHERE_RADIUS,
            has_hit_water=False,
            impact_time=0.0,
            current_time=0.0,
            impact_position=Vector3.ZERO,
        )

    def simulate(self, state: AnimationState, dt: float = 1.0 / 60.0,
                 duration: float = 1.0) -> AnimationState:
        """
        Run round(duration / dt) fixed steps of dt.

        Returns:
            The final state.

        Raises:
            ValueError: if dt is not positive.
        """
        if dt <= 0:
            raise ValueError(f"simulate: dt must be positive, got {dt}")
        steps = max(0, round(duration / dt))
        for _ in range(steps):
            state = self.update(state, dt)
        return state
