"""
Mesh generation for the sphere and the water plane.

Buffers are flat numpy arrays ready for upload: float32 vertices/normals
(3 per vertex) and uint32 indices (3 per triangle). Mesh arrays are
read-only; per-frame water resampling always returns a fresh buffer.
"""

import math
import numpy as np
from dataclasses import dataclass

from waves import WaveField


def _frozen(arr: np.ndarray) -> np.ndarray:
    arr.flags.writeable = False
    return arr


@dataclass(frozen=True, eq=False)
class Mesh:
    """Static topology: vertices, triangle indices and per-vertex normals."""
    vertices: np.ndarray
    indices: np.ndarray
    normals: np.ndarray

    def __post_init__(self):
        object.__setattr__(self, "vertices",
                           _frozen(np.array(self.vertices, dtype=np.float32).reshape(-1)))
        object.__setattr__(self, "indices",
                           _frozen(np.array(self.indices, dtype=np.uint32).reshape(-1)))
        object.__setattr__(self, "normals",
                           _frozen(np.array(self.normals, dtype=np.float32).reshape(-1)))

    @property
    def vertex_count(self) -> int:
        return len(self.vertices) // 3

    @property
    def triangle_count(self) -> int:
        return len(self.indices) // 3


class MeshGenerator:
    """Builds sphere / water topology and resamples water heights."""

    # ──────────────────────────────────────────
    # Sphere
    # ──────────────────────────────────────────
    @staticmethod
    def generate_sphere(radius: float, segments: int = 20, rings: int = 20) -> Mesh:
        """
        UV sphere centred at the origin.

        Args:
            radius: Sphere radius.
            segments: Azimuth subdivisions (φ ∈ [0, 2π]).
            rings: Polar subdivisions (θ ∈ [0, π], θ=0 at +y).

        Vertices form a (rings+1)×(segments+1) row-major grid; the seam
        column is duplicated so UVs stay continuous. Two triangles per quad,
        counter-clockwise seen from outside.
        """
        if radius <= 0:
            raise ValueError(f"generate_sphere: radius must be positive, got {radius}")
        if segments < 3 or rings < 2:
            raise ValueError(
                f"generate_sphere: need segments >= 3 and rings >= 2, got {segments}, {rings}")

        theta = np.arange(rings + 1) * math.pi / rings
        phi = np.arange(segments + 1) * 2.0 * math.pi / segments
        t, p = np.meshgrid(theta, phi, indexing="ij")

        # Unit direction; the sphere normal equals the normalised position.
        unit = np.stack([np.sin(t) * np.cos(p),
                         np.cos(t),
                         np.sin(t) * np.sin(p)], axis=-1).reshape(-1, 3)

        ring = np.arange(rings)[:, None]
        seg = np.arange(segments)[None, :]
        first = (ring * (segments + 1) + seg).reshape(-1)
        second = first + segments + 1

        tris = np.stack([first, first + 1, second,
                         second, first + 1, second + 1], axis=-1)

        return Mesh(vertices=unit * radius, indices=tris, normals=unit)

    # ──────────────────────────────────────────
    # Water plane
    # ──────────────────────────────────────────
    @staticmethod
    def _grid_coords(size: float, resolution: int):
        """x and z of each grid vertex in raster order (z rows, x columns)."""
        step = size / resolution
        half = size / 2.0
        line = -half + np.arange(resolution + 1) * step
        zz, xx = np.meshgrid(line, line, indexing="ij")
        return xx.reshape(-1), zz.reshape(-1)

    @staticmethod
    def generate_water_plane(size: float, resolution: int) -> Mesh:
        """
        Flat (resolution+1)² grid centred at the origin at y=0.

        Normals are all +y and are not recomputed when waves displace the
        surface.
        """
        if size <= 0:
            raise ValueError(f"generate_water_plane: size must be positive, got {size}")
        if resolution < 1:
            raise ValueError(f"generate_water_plane: resolution must be >= 1, got {resolution}")

        xs, zs = MeshGenerator._grid_coords(size, resolution)
        n = len(xs)
        vertices = np.stack([xs, np.zeros(n), zs], axis=-1)
        normals = np.tile([0.0, 1.0, 0.0], (n, 1))

        row = np.arange(resolution)[:, None]
        col = np.arange(resolution)[None, :]
        top_left = (row * (resolution + 1) + col).reshape(-1)
        top_right = top_left + 1
        bottom_left = top_left + resolution + 1
        bottom_right = bottom_left + 1

        # Counter-clockwise from above (+y facing)
        tris = np.stack([top_left, bottom_left, top_right,
                         top_right, bottom_left, bottom_right], axis=-1)

        return Mesh(vertices=vertices, indices=tris, normals=normals)

    @staticmethod
    def update_water_plane_with_waves(mesh: Mesh, resolution: int, size: float,
                                      impact_x: float, impact_z: float,
                                      time_since_impact: float,
                                      num_rings: int = 1) -> np.ndarray:
        """
        Copy of mesh.vertices with every y replaced by the wave height at that
        vertex's grid x/z. The input mesh is left untouched.

        num_rings=1 uses the single-ring field; larger values superpose
        staggered rings via WaveField.multi_ring_height.
        """
        expected = (resolution + 1) ** 2
        if mesh.vertex_count != expected:
            raise ValueError(
                f"update_water_plane_with_waves: mesh has {mesh.vertex_count} vertices, "
                f"resolution {resolution} needs {expected}")

        xs, zs = MeshGenerator._grid_coords(size, resolution)
        if num_rings > 1:
            heights = WaveField.multi_ring_height_grid(
                xs, zs, impact_x, impact_z, time_since_impact, num_rings)
        else:
            heights = WaveField.height_grid(xs, zs, impact_x, impact_z, time_since_impact)

        updated = mesh.vertices.copy()
        updated[1::3] = heights
        return updated
