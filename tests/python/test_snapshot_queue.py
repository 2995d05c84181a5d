import asyncio
import json

from fastapi import WebSocketDisconnect

from shoal.app.server import SimulationController
from shoal.sim.core.config import SimulationConfig


class RecordingClient:
    def __init__(self, fail: bool = False):
        self.messages = []
        self.fail = fail

    async def send_text(self, text: str) -> None:
        if self.fail:
            raise WebSocketDisconnect(code=1001)
        self.messages.append(json.loads(text))


def test_snapshot_queue_ack_cleanup() -> None:
    controller = SimulationController(SimulationConfig(initial_population=10))
    client = RecordingClient()

    async def exercise() -> None:
        await controller.connect(client)
        controller.tick = 1
        await controller.broadcast()
        controller.tick = 2
        await controller.broadcast()
        assert controller.queued_ticks() == [1, 2]
        await controller.acknowledge(1)
        assert controller.queued_ticks() == [2]

    asyncio.run(exercise())
    assert [message["tick"] for message in client.messages] == [0, 1, 2]


def test_nothing_is_queued_without_clients() -> None:
    controller = SimulationController(SimulationConfig(initial_population=4))

    async def exercise() -> None:
        for tick in range(500):
            controller.tick = tick
            await controller.broadcast()

    asyncio.run(exercise())
    assert controller.queued_ticks() == []


def test_unacknowledged_frames_are_bounded() -> None:
    controller = SimulationController(SimulationConfig(initial_population=4), max_queued_frames=4)
    client = RecordingClient()

    async def exercise() -> None:
        await controller.connect(client)
        for tick in range(1, 11):
            controller.tick = tick
            await controller.broadcast()

    asyncio.run(exercise())
    assert controller.queued_ticks() == [7, 8, 9, 10]
    assert [message["tick"] for message in client.messages] == list(range(11))


def test_disconnected_client_is_dropped_on_broadcast() -> None:
    controller = SimulationController(SimulationConfig(initial_population=4))
    healthy = RecordingClient()
    broken = RecordingClient()

    async def exercise() -> None:
        await controller.connect(healthy)
        await controller.connect(broken)
        broken.fail = True
        controller.tick = 1
        await controller.broadcast()

    asyncio.run(exercise())
    assert controller.clients == {healthy}
    assert healthy.messages[-1]["tick"] == 1


def test_advance_steps_world_and_broadcasts_on_interval() -> None:
    controller = SimulationController(SimulationConfig(initial_population=8), broadcast_interval=2)
    client = RecordingClient()

    async def exercise() -> None:
        await controller.connect(client)
        await controller.advance()
        await controller.advance()

    asyncio.run(exercise())
    assert controller.tick == 2
    assert controller.world.metrics.population == 8
    assert [message["tick"] for message in client.messages] == [0, 2]


def test_client_messages_acknowledge_frames() -> None:
    controller = SimulationController(SimulationConfig(initial_population=4))
    client = RecordingClient()

    async def exercise() -> None:
        await controller.connect(client)
        for tick in (1, 2, 3):
            controller.tick = tick
            await controller.broadcast()
        await controller.handle_message("not json")
        await controller.handle_message(json.dumps(["ack", 3]))
        await controller.handle_message(json.dumps({"type": "ack", "tick": "2"}))
        assert controller.queued_ticks() == [1, 2, 3]
        await controller.handle_message(json.dumps({"type": "ack", "tick": 2}))
        assert controller.queued_ticks() == [3]

    asyncio.run(exercise())


def test_speed_multiplier_is_clamped() -> None:
    controller = SimulationController(SimulationConfig(initial_population=2))

    assert controller.set_speed(50.0) == 5.0
    assert controller.set_speed(0.0) == 0.1
    assert controller.set_speed(2.0) == 2.0


def test_queued_payload_carries_render_contract() -> None:
    controller = SimulationController(SimulationConfig(initial_population=6), origin=(4.0, 8.0))
    controller.world.step(0)
    controller.tick = 1

    queued = controller.encode_frame()
    message = json.loads(queued.payload)
    frame = message["payload"]

    assert message["type"] == "snapshot"
    assert message["tick"] == 1
    assert len(frame["positions"]) == len(frame["velocities"]) == len(frame["speeds"]) == 6
    assert len(frame["shapes"]) == 6
    assert frame["origin"] == [4.0, 8.0]
    assert frame["metrics"]["population"] == 6
