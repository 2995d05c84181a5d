from __future__ import annotations

import asyncio
import json
import logging
from collections import deque
from contextlib import asynccontextmanager
from dataclasses import asdict, dataclass
from typing import AsyncIterator, Dict, Set, Tuple

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.responses import JSONResponse

from ..sim.core.config import AppConfig, SimulationConfig
from ..sim.core.world import World
from .render import render_frame

logger = logging.getLogger(__name__)

# Frames kept for clients that have not acknowledged them yet.
MAX_QUEUED_FRAMES = 64
MIN_SPEED_MULTIPLIER = 0.1
MAX_SPEED_MULTIPLIER = 5.0


@dataclass(frozen=True)
class QueuedFrame:
    tick: int
    payload: str


class SimulationController:
    """Drives a `World` on the event loop and streams frames to websocket clients.

    Frames are queued once per broadcast and sent to every client from its last
    delivered tick onwards. Acknowledged frames are dropped and the queue is bounded,
    so frames nobody acknowledges are evicted oldest first.
    Nothing is queued while no client is connected.
    """

    def __init__(
        self,
        config: SimulationConfig,
        broadcast_interval: int = 1,
        origin: Tuple[float, float] = (0.0, 0.0),
        max_queued_frames: int = MAX_QUEUED_FRAMES,
    ):
        self.config = config
        self.world = World(config)
        self.broadcast_interval = max(1, broadcast_interval)
        self.origin = origin
        self.running = False
        self.tick = 0
        self.speed_multiplier = 1.0
        self._last_delivered: Dict[WebSocket, int] = {}
        self._frames: deque[QueuedFrame] = deque(maxlen=max(1, max_queued_frames))
        self._world_lock = asyncio.Lock()
        self._frames_lock = asyncio.Lock()
        self._loop_task: asyncio.Task | None = None

    @property
    def clients(self) -> Set[WebSocket]:
        return set(self._last_delivered)

    def queued_ticks(self) -> list[int]:
        return [frame.tick for frame in self._frames]

    async def start(self) -> None:
        if self._loop_task is None:
            self._loop_task = asyncio.create_task(self._run())
        self.running = True
        logger.info("Simulation started at tick %d", self.tick)

    async def stop(self) -> None:
        self.running = False
        logger.info("Simulation paused at tick %d", self.tick)

    async def shutdown(self) -> None:
        self.running = False
        if self._loop_task is not None:
            self._loop_task.cancel()
            try:
                await self._loop_task
            except asyncio.CancelledError:
                pass
            self._loop_task = None
        self.world.close()

    async def reset(self) -> None:
        async with self._world_lock:
            await asyncio.to_thread(self.world.reset)
            self.tick = 0
        async with self._frames_lock:
            self._frames.clear()
        for client in self._last_delivered:
            self._last_delivered[client] = -1
        logger.info("Simulation reset")
        await self.broadcast()

    def set_speed(self, multiplier: float) -> float:
        self.speed_multiplier = max(MIN_SPEED_MULTIPLIER, min(MAX_SPEED_MULTIPLIER, multiplier))
        return self.speed_multiplier

    async def advance(self) -> None:
        """Step the world once off the event loop and broadcast on interval ticks."""
        async with self._world_lock:
            await asyncio.to_thread(self.world.step, self.tick)
            self.tick += 1
        if self.tick % self.broadcast_interval == 0:
            await self.broadcast()

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.config.time_step / self.speed_multiplier)
            if self.running:
                await self.advance()

    def frame_payload(self) -> dict:
        snapshot = self.world.snapshot(self.tick, origin=self.origin)
        return {
            "tick": snapshot.tick,
            "metrics": asdict(snapshot.metrics),
            "positions": [list(position) for position in snapshot.positions],
            "velocities": [list(velocity) for velocity in snapshot.velocities],
            "speeds": snapshot.speeds,
            "origin": list(snapshot.origin),
            "shapes": [shape.to_payload() for shape in render_frame(snapshot)],
            "world": asdict(snapshot.world),
            "metadata": asdict(snapshot.metadata),
        }

    def encode_frame(self) -> QueuedFrame:
        message = {"type": "snapshot", "tick": self.tick, "payload": self.frame_payload()}
        return QueuedFrame(tick=self.tick, payload=json.dumps(message))

    async def current_frame(self) -> dict:
        async with self._world_lock:
            return self.frame_payload()

    async def status(self) -> dict:
        async with self._world_lock:
            snapshot = self.world.snapshot(self.tick)
        return {
            "running": self.running,
            "tick": self.tick,
            "population": len(self.world.agents),
            "clients": len(self._last_delivered),
            "queued_frames": len(self._frames),
            "metrics": asdict(snapshot.metrics),
        }

    async def acknowledge(self, tick: int) -> None:
        async with self._frames_lock:
            while self._frames and self._frames[0].tick <= tick:
                self._frames.popleft()

    async def connect(self, client: WebSocket) -> None:
        """Register a client and send it the current frame."""
        async with self._world_lock:
            frame = self.encode_frame()
        self._last_delivered[client] = frame.tick
        logger.info("Client connected (%d total)", len(self._last_delivered))
        await client.send_text(frame.payload)

    def disconnect(self, client: WebSocket) -> None:
        if self._last_delivered.pop(client, None) is not None:
            logger.info("Client disconnected (%d remaining)", len(self._last_delivered))

    async def handle_message(self, message: str) -> None:
        try:
            payload = json.loads(message)
        except json.JSONDecodeError:
            logger.debug("Ignoring non-JSON client message")
            return
        if isinstance(payload, dict) and payload.get("type") == "ack":
            tick = payload.get("tick")
            if isinstance(tick, int):
                await self.acknowledge(tick)

    async def _deliver(self, client: WebSocket) -> None:
        last = self._last_delivered.get(client, -1)
        async with self._frames_lock:
            pending = [frame for frame in self._frames if frame.tick > last]
        for frame in pending:
            await client.send_text(frame.payload)
            self._last_delivered[client] = frame.tick

    async def broadcast(self) -> None:
        if not self._last_delivered:
            return
        async with self._world_lock:
            frame = self.encode_frame()
        async with self._frames_lock:
            self._frames.append(frame)
        for client in list(self._last_delivered):
            try:
                await self._deliver(client)
            except WebSocketDisconnect:
                self.disconnect(client)


app_config = AppConfig()
controller = SimulationController(app_config.simulation, broadcast_interval=app_config.broadcast_interval)


@asynccontextmanager
async def _lifespan(_: FastAPI) -> AsyncIterator[None]:
    await controller.start()
    yield
    await controller.shutdown()


app = FastAPI(title="Fish Shoal Simulation", lifespan=_lifespan)


@app.get("/api/status")
async def status() -> JSONResponse:
    return JSONResponse(await controller.status())


@app.get("/api/frame")
async def frame() -> JSONResponse:
    return JSONResponse(await controller.current_frame())


@app.get("/api/config")
async def config() -> JSONResponse:
    return JSONResponse(asdict(controller.config))


@app.post("/api/control/start")
async def start_simulation() -> JSONResponse:
    await controller.start()
    return JSONResponse({"running": True})


@app.post("/api/control/stop")
async def stop_simulation() -> JSONResponse:
    await controller.stop()
    return JSONResponse({"running": False})


@app.post("/api/control/reset")
async def reset_simulation() -> JSONResponse:
    await controller.reset()
    return JSONResponse({"running": controller.running, "tick": controller.tick})


@app.post("/api/control/speed")
async def set_speed(payload: dict) -> JSONResponse:
    multiplier = controller.set_speed(float(payload.get("multiplier", 1.0)))
    return JSONResponse({"multiplier": multiplier})


@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket) -> None:
    await websocket.accept()
    try:
        await controller.connect(websocket)
        while True:
            await controller.handle_message(await websocket.receive_text())
    except WebSocketDisconnect:
        controller.disconnect(websocket)


__all__ = ["app", "controller", "SimulationController", "QueuedFrame"]
