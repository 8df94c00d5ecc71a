"""
Locaty WebSocket Server

Runs the compass service behind a WebSocket endpoint. It:
1. Receives accelerometer + magnetometer samples from a producer client
   (or replays a recorded CSV log)
2. Computes the heading and compass direction on every sample
3. Broadcasts each heading to every connected client
4. Broadcasts the status notification while in background mode, and
   handles its stop action

Messages in:
    {"type": "sensor", "sensor": "accelerometer", "values": [x, y, z]}
    {"type": "cmd", "action": "start", "background": true}
    {"type": "cmd", "action": "background", "enabled": false}
    {"type": "cmd", "action": "notification_stop", "notification_id": 1}
    {"type": "cmd", "action": "stop"}

Messages out:
    {"type": "heading", "action": "...", "angle": 12.5, "direction": "NE"}
    {"type": "notification", "notification_id": 1, "title": "...", "text": "...", "actions": [...]}
    {"type": "notification_cancel", "notification_id": 1}
    {"type": "ack", "action": "...", "ok": true}

Usage:
    python ws_server.py --background
    python ws_server.py --replay recording.csv --replay-speed 2
"""

import argparse
import asyncio
import contextlib
import json
import os

import websockets

from .notifier import HeadingNotifier, Notification, NotificationPresenter, KEY_BACKGROUND, NOTIFICATION_ID
from .replay import load_replay, replay_samples
from .sensors import ALL_SENSOR_KINDS, parse_sensor_event, parse_sensor_kinds
from .service import CompassService

# =============================================================================
# Configuration
# =============================================================================

HOST = os.getenv("LOCATY_HOST", "0.0.0.0")
PORT = int(os.getenv("LOCATY_PORT", "8765"))

BACKGROUND = os.getenv("LOCATY_BACKGROUND", "0").lower() in ("1", "true", "yes")
SENSORS = os.getenv("LOCATY_SENSORS", ",".join(k.value for k in ALL_SENSOR_KINDS))

REPLAY_PATH = os.getenv("LOCATY_REPLAY_PATH", "").strip()
REPLAY_SPEED = float(os.getenv("LOCATY_REPLAY_SPEED", "1.0"))

# =============================================================================
# Global State
# =============================================================================

clients = set()

# Emissions from the (synchronous) service, drained by broadcaster()
outbox = asyncio.Queue()

LAST_STATUS = {
    "type": "status",
    "listening": False,
    "background": BACKGROUND,
    "angle": None,
    "direction": None,
}

service = None


# =============================================================================
# Helpers
# =============================================================================

def is_command_message(msg: dict) -> bool:
    return msg.get("type") in ("cmd", "command")


def parse_bool(value, default=False) -> bool:
    if value is None:
        return default
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


def post(msg: dict):
    """Queue a message for broadcast without awaiting."""
    outbox.put_nowait(msg)


def on_heading(payload: dict):
    LAST_STATUS.update({
        "angle": payload["angle"],
        "direction": payload["direction"],
    })
    post({"type": "heading", **payload})


class BroadcastPresenter(NotificationPresenter):
    """Presents notifications by broadcasting them to clients."""

    def __init__(self):
        self.current = None

    def show(self, notification: Notification):
        self.current = notification
        post({"type": "notification", **notification.to_payload()})

    def dismiss(self, notification_id: int):
        # Only tell clients when something was actually shown
        if self.current is not None and self.current.notification_id == notification_id:
            self.current = None
            post({"type": "notification_dismiss", "notification_id": notification_id})

    def cancel(self, notification_id: int):
        self.current = None
        post({"type": "notification_cancel", "notification_id": notification_id})


def build_service(background: bool = BACKGROUND, presenter: NotificationPresenter = None) -> CompassService:
    notifier = HeadingNotifier(
        broadcast=on_heading,
        presenter=presenter if presenter is not None else BroadcastPresenter(),
        background=background,
    )
    return CompassService(notifier)


def refresh_status():
    LAST_STATUS["listening"] = bool(service.is_listening)
    LAST_STATUS["background"] = bool(service.background)


# =============================================================================
# WebSocket Broadcast
# =============================================================================

async def broadcast(msg: dict):
    if not clients:
        return
    data = json.dumps(msg)
    dead = []
    for ws in list(clients):
        try:
            await ws.send(data)
        except Exception:
            dead.append(ws)
    for ws in dead:
        clients.discard(ws)


async def drain_outbox():
    """Broadcast everything queued so far."""
    while not outbox.empty():
        await broadcast(outbox.get_nowait())


async def broadcaster():
    while True:
        msg = await outbox.get()
        await broadcast(msg)


# =============================================================================
# Message Handling
# =============================================================================

async def handle_command(ws, msg: dict):
    action = msg.get("action")

    if action == "start":
        if not service.is_listening:
            service.on_create(parse_sensor_kinds(SENSORS))
        service.on_start_command(parse_bool(msg.get(KEY_BACKGROUND), service.background))
        refresh_status()
        await ws.send(json.dumps({
            "type": "ack", "action": "start", "ok": True,
            "background": service.background,
            "sensors": sorted(k.value for k in service.registered_kinds),
        }))

    elif action == "background":
        service.on_start_command(parse_bool(msg.get("enabled"), True))
        refresh_status()
        await ws.send(json.dumps({
            "type": "ack", "action": "background", "ok": True,
            "background": service.background,
        }))

    elif action in ("stop", "notification_stop"):
        notification_id = msg.get("notification_id", NOTIFICATION_ID)
        try:
            notification_id = int(notification_id)
        except (TypeError, ValueError):
            notification_id = -1
        service.on_stop_action(notification_id)
        refresh_status()
        print("[Server] Sensor listening stopped")
        await ws.send(json.dumps({"type": "ack", "action": action, "ok": True}))

    else:
        await ws.send(json.dumps({
            "type": "ack", "action": action, "ok": False,
            "error": "unknown_action",
        }))


async def handle_message(ws, msg):
    if not isinstance(msg, dict):
        return

    if msg.get("type") == "sensor":
        service.on_sensor_changed(parse_sensor_event(msg))
    elif is_command_message(msg):
        await handle_command(ws, msg)


# =============================================================================
# Client Handler
# =============================================================================

async def handle_client(ws):
    clients.add(ws)
    print("[Server] Client connected")

    try:
        await ws.send(json.dumps(LAST_STATUS))

        async for raw in ws:
            try:
                msg = json.loads(raw)
            except Exception:
                continue
            await handle_message(ws, msg)

    except websockets.exceptions.ConnectionClosed:
        pass
    finally:
        clients.discard(ws)
        print("[Server] Client disconnected")


# =============================================================================
# Replay Loop
# =============================================================================

async def replay_loop(path: str, speed: float):
    try:
        samples = load_replay(path)
    except (FileNotFoundError, ValueError) as e:
        print(f"[Replay] Cannot load {path}: {e}")
        post({"type": "error", "where": "replay_load", "error": str(e)})
        return

    print(f"[Replay] {len(samples)} samples from {path} at {speed}x")
    async for sample in replay_samples(samples, speed=speed):
        service.on_sensor_changed(sample)
        # Let the broadcaster keep up with unpaced playback
        await asyncio.sleep(0)
    print("[Replay] Done")


# =============================================================================
# Main
# =============================================================================

async def main(replay_path: str = REPLAY_PATH, replay_speed: float = REPLAY_SPEED):
    global service

    print("Locaty Compass Server")
    print(f"WebSocket: ws://{HOST}:{PORT}")
    print(f"Background notifications: {BACKGROUND}")
    print(f"Sensors: {SENSORS}")

    service = build_service(BACKGROUND)
    service.on_create(parse_sensor_kinds(SENSORS))
    refresh_status()

    server = await websockets.serve(
        handle_client, HOST, PORT,
        ping_interval=20,
        ping_timeout=20
    )
    sender = asyncio.create_task(broadcaster())
    try:
        if replay_path:
            await replay_loop(replay_path, replay_speed)
        await server.wait_closed()
    finally:
        sender.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await sender
        server.close()
        await server.wait_closed()


def cli():
    global HOST, PORT, BACKGROUND, SENSORS

    parser = argparse.ArgumentParser(description="Locaty Compass Server")
    parser.add_argument("--host", default=HOST, help="Bind address")
    parser.add_argument("--port", type=int, default=PORT, help="WebSocket port")
    parser.add_argument("--background", action="store_true", default=BACKGROUND,
                        help="Show the status notification after each heading update")
    parser.add_argument("--sensors", default=SENSORS,
                        help="Comma separated sensors present on the device")
    parser.add_argument("--replay", default=REPLAY_PATH, help="CSV sensor log to replay")
    parser.add_argument("--replay-speed", type=float, default=REPLAY_SPEED,
                        help="Replay rate, <= 0 plays without pacing")
    args = parser.parse_args()

    HOST = args.host
    PORT = args.port
    BACKGROUND = args.background
    SENSORS = args.sensors

    try:
        asyncio.run(main(args.replay, args.replay_speed))
    except KeyboardInterrupt:
        print("\n[Server] Stopped")


if __name__ == "__main__":
    cli()
