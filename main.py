"""
Sphere Drop Visualizer (3-Tier Architecture)
Layer 3: Ursina rendering / input handling.
Layer 2: controller.py (AnimationController)
Layer 1: physics.py, waves.py, mesh.py

Press R to reset, W to toggle wireframe, M to toggle multi-ring waves,
Escape to quit.
"""

import os
import tempfile
import time
import wave
from pathlib import Path
import numpy as np
from ursina import (
    Ursina, Entity, Text, camera, color, window,
    application, Vec3, Mesh, Audio, DirectionalLight, AmbientLight,
)
from ursina.shaders import lit_with_shadows_shader

from controller import AnimationController
from mesh import MeshGenerator
from physics import SPHERE_RADIUS

# ── Layer 2: controller instance ──────────────────────────────────────────────
ctrl = AnimationController()

# ── Scene constants ───────────────────────────────────────────────────────────
WATER_SIZE       = 10.0
WATER_RESOLUTION = 50
SPHERE_SEGMENTS  = 30
SPHERE_RINGS     = 30
MULTI_RING_COUNT = 3

CAMERA_POS = Vec3(0, 3, 8)
LIGHT_POS  = Vec3(5, 5, 5)

# ──────────────────────────────────────────
# Synthesized Sound Effects (numpy + wave)
# ──────────────────────────────────────────

_sound_dir = tempfile.mkdtemp(prefix="spheredrop_snd_")


def _synth_wav(filename, samples):
    """Write mono 16-bit 44100Hz WAV and return Path object."""
    path = os.path.join(_sound_dir, filename)
    data = np.clip(samples, -1.0, 1.0)
    data_int = (data * 32767).astype(np.int16)
    with wave.open(path, "w") as wf:
        wf.setnchannels(1)
        wf.setsampwidth(2)
        wf.setframerate(44100)
        wf.writeframes(data_int.tobytes())
    return Path(path)


def _synth_splash():
    # Low thump plus a filtered noise burst
    sr = 44100; dur = 0.6
    t = np.linspace(0, dur, int(sr * dur), endpoint=False)
    rng = np.random.RandomState(7)
    noise = np.convolve(rng.randn(len(t)), np.ones(40) / 40, mode="same")
    noise = noise / (np.max(np.abs(noise)) + 1e-9)
    thump = np.sin(2 * np.pi * 90 * t) * np.exp(-t * 18)
    sig = thump * 0.7 + noise * np.exp(-t * 7) * 0.5
    return _synth_wav("splash.wav", sig)


# ──────────────────────────────────────────
# Mesh helpers
# ──────────────────────────────────────────

def _triples(buf):
    return [tuple(v) for v in np.asarray(buf, dtype=float).reshape(-1, 3)]


def _to_ursina_mesh(m):
    return Mesh(vertices=_triples(m.vertices),
                triangles=[int(i) for i in m.indices],
                normals=_triples(m.normals),
                mode="triangle")


# ──────────────────────────────────────────
# Ursina App
# ──────────────────────────────────────────

app = Ursina(borderless=False, title="Sphere Drop - Ursina", size=(800, 600))
window.color = color.rgba(0.53, 0.81, 0.92, 1.0)

camera.position = CAMERA_POS
camera.look_at(Vec3(0, 0, 0))

sun = DirectionalLight(position=LIGHT_POS)
sun.look_at(Vec3(0, 0, 0))
AmbientLight(color=color.rgba(0.4, 0.4, 0.4, 1.0))

sphere_mesh = MeshGenerator.generate_sphere(SPHERE_RADIUS, SPHERE_SEGMENTS, SPHERE_RINGS)
water_mesh = MeshGenerator.generate_water_plane(WATER_SIZE, WATER_RESOLUTION)

sphere_entity = Entity(
    model=_to_ursina_mesh(sphere_mesh),
    color=color.rgba(1.0, 0.3, 0.3, 1.0),
    shader=lit_with_shadows_shader,
)
water_entity = Entity(
    model=_to_ursina_mesh(water_mesh),
    color=color.rgba(0.0, 0.5, 0.8, 0.9),
    shader=lit_with_shadows_shader,
    double_sided=True,
)

status_text = Text(text="", position=(-0.85, 0.47), scale=0.9, color=color.black)

splash_path = _synth_splash()
snd_splash = None

wireframe_mode = False
num_rings = 1


def _load_sounds():
    global snd_splash
    if snd_splash is not None:
        return
    try:
        snd_splash = Audio(str(splash_path), autoplay=False, loop=False)
    except Exception:
        snd_splash = None


def _handle_controller_event(ev: dict):
    t = ev["type"]
    if t == "impact":
        _load_sounds()
        if snd_splash:
            snd_splash.play()
        x, _, z = ev["position"]
        print(f"[SIM] impact at ({x:.2f}, {z:.2f}) t={ev['time']:.3f}s")
    elif t == "reset":
        print(f"[SIM] reset ({ev['reason']})")


# ──────────────────────────────────────────
# Input handler
# ──────────────────────────────────────────

def input(key):
    global wireframe_mode, num_rings
    if key == "escape":
        application.quit()
    elif key == "r":
        ctrl.reset()
    elif key == "w":
        wireframe_mode = not wireframe_mode
        for entity in (sphere_entity, water_entity):
            if wireframe_mode:
                entity.setRenderModeWireframe()
            else:
                entity.setRenderModeFilled()
        print(f"Wireframe mode: {wireframe_mode}")
    elif key == "m":
        num_rings = 1 if num_rings > 1 else MULTI_RING_COUNT
        print(f"Wave rings: {num_rings}")


# ──────────────────────────────────────────
# Per-frame update
# ──────────────────────────────────────────

def update():
    state = ctrl.update(int(time.perf_counter() * 1000))

    for ev in ctrl.pending_events:
        _handle_controller_event(ev)
    ctrl.pending_events.clear()

    # ── Sphere ────────────────────────────────────────────────────────────────
    p = state.sphere_position
    sphere_entity.position = Vec3(p.x, p.y, p.z)

    # ── Water: resample from the same snapshot, re-upload ────────────────────
    vertices = MeshGenerator.update_water_plane_with_waves(
        water_mesh, WATER_RESOLUTION, WATER_SIZE,
        state.impact_position.x, state.impact_position.z,
        state.time_since_impact, num_rings=num_rings,
    )
    water_entity.model.vertices = _triples(vertices)
    water_entity.model.generate()

    status_text.text = f"{state.phase.name}  t={state.current_time:.2f}s"


# ──────────────────────────────────────────
# Run
# ──────────────────────────────────────────

if __name__ == "__main__":
    print("Ursina renderer initialized!")
    print("Press R to reset animation")
    print("Press W to toggle wireframe mode")
    print("Press M to toggle multi-ring waves")
    print("Press ESC to exit")
    app.run()
