"""
Sphere Drop Web Server - Layer 3 browser shell (FastAPI + WebSocket)

Serves the three.js frontend and runs the animation loop, streaming each
frame to browser clients over one of two WebSocket backends:
  /ws         - JSON frame messages
  /ws/binary  - packed little-endian float32 frames
"""

import asyncio
import json
import time
from contextlib import asynccontextmanager
from pathlib import Path

import numpy as np
from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.responses import FileResponse
from fastapi.staticfiles import StaticFiles

from controller import AnimationController
from mesh import MeshGenerator
import physics as _phys
import waves as _waves

STATIC_DIR = Path(__file__).resolve().parent / "static"

# ── Scene setup ─────────────────────────────────────────────────────────────

WATER_SIZE = 10.0
WATER_RESOLUTION = 50
SPHERE_SEGMENTS = 30
SPHERE_RINGS = 30
MULTI_RING_COUNT = 3

ctrl = AnimationController()
sphere_mesh = MeshGenerator.generate_sphere(_phys.SPHERE_RADIUS, SPHERE_SEGMENTS, SPHERE_RINGS)
water_mesh = MeshGenerator.generate_water_plane(WATER_SIZE, WATER_RESOLUTION)

# Ring count used for water resampling (toggled with "m")
view_opts = {"num_rings": 1}


# ── Lifespan (startup/shutdown) ─────────────────────────────────────────────

@asynccontextmanager
async def lifespan(app: FastAPI):
    task = asyncio.create_task(animation_loop())
    yield
    task.cancel()


app = FastAPI(lifespan=lifespan)

# ── Client state ────────────────────────────────────────────────────────────

json_clients: list[WebSocket] = []
binary_clients: list[WebSocket] = []

# ── Tunables reported to clients ────────────────────────────────────────────

PARAMS = [
    (_phys,  "GRAVITY",        "Gravity"),
    (_phys,  "WATER_LEVEL",    "Water Level"),
    (_phys,  "SINK_VELOCITY",  "Sink Speed"),
    (_phys,  "SINK_DECAY",     "Sink Decay"),
    (_waves, "WAVE_SPEED",     "Wave Speed"),
    (_waves, "WAVE_AMPLITUDE", "Wave Amp."),
    (_waves, "WAVE_FREQUENCY", "Wave Freq."),
    (_waves, "WAVE_DAMPING",   "Wave Damping"),
]

# ── Async animation loop ────────────────────────────────────────────────────

TARGET_FPS = 60
FRAME_DT = 1.0 / TARGET_FPS


def _now_millis() -> int:
    return int(time.perf_counter() * 1000)


async def animation_loop():
    """Main loop running at ~60 fps."""
    while True:
        started = time.perf_counter()

        state = ctrl.update(_now_millis())

        if json_clients or binary_clients:
            # Water is resampled once from the same snapshot for every client
            water_y = _sample_water(state)
            events = _drain_events()
            if json_clients:
                await _broadcast(json_clients, _build_frame_message(state, water_y, events))
            if binary_clients:
                await _broadcast(binary_clients, _build_binary_frame(state, water_y))
        else:
            ctrl.pending_events.clear()

        elapsed = time.perf_counter() - started
        sleep_time = FRAME_DT - elapsed
        if sleep_time > 0:
            await asyncio.sleep(sleep_time)
        else:
            await asyncio.sleep(0)


async def _broadcast(clients: list[WebSocket], message) -> None:
    dead: list[WebSocket] = []
    for ws in clients:
        try:
            if isinstance(message, bytes):
                await ws.send_bytes(message)
            else:
                await ws.send_text(message)
        except Exception:
            dead.append(ws)
    for ws in dead:
        if ws in clients:
            clients.remove(ws)
            print("[WEB] dropped dead client")


def _sample_water(state) -> np.ndarray:
    """Wave heights (y only) for every water vertex, raster order."""
    time_since_impact = state.time_since_impact
    vertices = MeshGenerator.update_water_plane_with_waves(
        water_mesh, WATER_RESOLUTION, WATER_SIZE,
        state.impact_position.x, state.impact_position.z,
        time_since_impact, num_rings=view_opts["num_rings"],
    )
    return vertices[1::3]


def _drain_events() -> list:
    events = list(ctrl.pending_events)
    ctrl.pending_events.clear()
    return events


def _build_frame_message(state, water_y: np.ndarray, events: list) -> str:
    """Serialize one frame into a JSON message."""
    p = state.sphere_position
    frame = {
        "type": "frame",
        "sphere": [round(p.x, 5), round(p.y, 5), round(p.z, 5)],
        "phase": state.phase.name,
        "time": round(state.current_time, 4),
        "time_since_impact": round(state.time_since_impact, 4),
        "water_y": np.round(water_y.astype(float), 4).tolist(),
        "events": events,
    }
    return json.dumps(frame, separators=(',', ':'))


def _build_binary_frame(state, water_y: np.ndarray) -> bytes:
    """Pack [sphere x, y, z, time_since_impact, water_y...] as <f4."""
    p = state.sphere_position
    header = np.array([p.x, p.y, p.z, state.time_since_impact], dtype="<f4")
    return header.tobytes() + np.asarray(water_y, dtype="<f4").tobytes()


def _build_init_message(transport: str) -> str:
    return json.dumps({
        "type": "init",
        "transport": transport,
        "sphere": {
            "radius": _phys.SPHERE_RADIUS,
            "vertices": sphere_mesh.vertices.tolist(),
            "normals": sphere_mesh.normals.tolist(),
            "indices": sphere_mesh.indices.tolist(),
        },
        "water": {
            "size": WATER_SIZE,
            "resolution": WATER_RESOLUTION,
            "vertices": water_mesh.vertices.tolist(),
            "normals": water_mesh.normals.tolist(),
            "indices": water_mesh.indices.tolist(),
        },
        "water_level": _phys.WATER_LEVEL,
    }, separators=(',', ':'))


def _get_params_data() -> list:
    """Return all tunables with their current values."""
    return [{"attr": attr, "label": label, "value": round(getattr(mod, attr), 6)}
            for mod, attr, label in PARAMS]


# ── Key press handlers ──────────────────────────────────────────────────────

def _handle_key_down(key: str):
    """Handle a key press event from the client."""
    if key == "r":
        ctrl.reset()
        print("[SIM] reset")
    elif key == "m":
        view_opts["num_rings"] = 1 if view_opts["num_rings"] > 1 else MULTI_RING_COUNT
        print(f"[SIM] wave rings: {view_opts['num_rings']}")


# ── WebSocket endpoints ─────────────────────────────────────────────────────

async def _serve_client(ws: WebSocket, clients: list[WebSocket], transport: str):
    await ws.accept()
    await ws.send_text(_build_init_message(transport))
    clients.append(ws)
    print(f"[WEB] {transport} client connected ({len(clients)} total)")

    try:
        while True:
            data = await ws.receive_text()
            try:
                msg = json.loads(data)
            except json.JSONDecodeError:
                continue
            if not isinstance(msg, dict):
                continue

            cmd = msg.get("cmd", "")
            if cmd == "key_down":
                _handle_key_down(msg.get("key", ""))
            elif cmd == "get_state":
                await ws.send_text(json.dumps({
                    "type": "state_json",
                    "data": ctrl.get_state_json(),
                }))
            elif cmd == "get_params":
                await ws.send_text(json.dumps({
                    "type": "params",
                    "data": _get_params_data(),
                }))
    except WebSocketDisconnect:
        pass
    finally:
        if ws in clients:
            clients.remove(ws)
        print(f"[WEB] {transport} client disconnected")


@app.websocket("/ws")
async def websocket_json(ws: WebSocket):
    await _serve_client(ws, json_clients, "json")


@app.websocket("/ws/binary")
async def websocket_binary(ws: WebSocket):
    await _serve_client(ws, binary_clients, "binary")


# ── Static files + root route ───────────────────────────────────────────────

app.mount("/static", StaticFiles(directory=STATIC_DIR), name="static")


@app.get("/")
async def root():
    return FileResponse(STATIC_DIR / "index.html")


# ── Run with uvicorn ────────────────────────────────────────────────────────

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("server:app", host="0.0.0.0", port=8000, reload=False)
