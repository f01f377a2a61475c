"""
Radial ripple field - closed-form wave height driven by a single impact.

The field is stateless: height depends only on the sample point, the impact
point and the time elapsed since impact. Scalar forms use math; the *_grid
forms evaluate the same expression over numpy arrays for mesh resampling.
"""

import math
import numpy as np

# ──────────────────────────────────────────────
# Wave constants
# ──────────────────────────────────────────────
WAVE_SPEED: float = 3.0  # m/s, wavefront expansion speed
WAVE_AMPLITUDE: float = 1.2  # m
WAVE_FREQUENCY: float = 2.5  # rad/m
WAVE_DAMPING: float = 0.3  # 1/s, exponential decay rate
MIN_WAVE_RADIUS: float = 0.1  # floor for distance_factor denominator
RING_DELAY: float = 0.2  # s between staggered rings


class WaveField:
    """Closed-form evaluator for the expanding, damped ripple."""

    @staticmethod
    def height(x: float, z: float, impact_x: float, impact_z: float,
               time_since_impact: float) -> float:
        """Wave height at (x, z).

        Zero at or before the impact instant and beyond the wavefront
        (distance > WAVE_SPEED·t). Inside, a damped sine tapered by
        (1 − distance/radius) so the leading edge meets zero continuously.
        """
        if time_since_impact <= 0.0:
            return 0.0

        dx = x - impact_x
        dz = z - impact_z
        distance = math.sqrt(dx * dx + dz * dz)

        wave_radius = WAVE_SPEED * time_since_impact
        if distance > wave_radius:
            return 0.0

        distance_factor = distance / max(wave_radius, MIN_WAVE_RADIUS)
        damping = math.exp(-WAVE_DAMPING * time_since_impact)
        phase = WAVE_FREQUENCY * distance - WAVE_SPEED * time_since_impact
        return WAVE_AMPLITUDE * math.sin(phase) * damping * (1.0 - distance_factor)

    @staticmethod
    def multi_ring_height(x: float, z: float, impact_x: float, impact_z: float,
                          time_since_impact: float, num_rings: int = 3) -> float:
        """Sum of num_rings staggered rings, ring i delayed by i·RING_DELAY
        and attenuated by 1/(i+1). Rings that have not started are skipped."""
        total = 0.0
        for ring in range(num_rings):
            adjusted = time_since_impact - ring * RING_DELAY
            if adjusted > 0.0:
                total += WaveField.height(x, z, impact_x, impact_z, adjusted) / (ring + 1)
        return total

    # ──────────────────────────────────────────
    # Vectorised forms
    # ──────────────────────────────────────────
    @staticmethod
    def height_grid(xs: np.ndarray, zs: np.ndarray, impact_x: float,
                    impact_z: float, time_since_impact: float) -> np.ndarray:
        """Same as height() evaluated element-wise over arrays of x and z."""
        xs = np.asarray(xs, dtype=float)
        zs = np.asarray(zs, dtype=float)
        if time_since_impact <= 0.0:
            return np.zeros(np.broadcast(xs, zs).shape)

        distance = np.hypot(xs - impact_x, zs - impact_z)
        wave_radius = WAVE_SPEED * time_since_impact
        distance_factor = distance / max(wave_radius, MIN_WAVE_RADIUS)
        damping = math.exp(-WAVE_DAMPING * time_since_impact)
        phase = WAVE_FREQUENCY * distance - WAVE_SPEED * time_since_impact

        h = WAVE_AMPLITUDE * np.sin(phase) * damping * (1.0 - distance_factor)
        return np.where(distance > wave_radius, 0.0, h)

    @staticmethod
    def multi_ring_height_grid(xs: np.ndarray, zs: np.ndarray, impact_x: float,
                               impact_z: float, time_since_impact: float,
                               num_rings: int = 3) -> np.ndarray:
        total = np.zeros(np.broadcast(np.asarray(xs), np.asarray(zs)).shape)
        for ring in range(num_rings):
            adjusted = time_since_impact - ring * RING_DELAY
            if adjusted > 0.0:
                total += WaveField.height_grid(xs, zs, impact_x, impact_z, adjusted) / (ring + 1)
        return total
