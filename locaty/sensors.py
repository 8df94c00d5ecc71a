"""
Sensor event types for Locaty.

Accelerometer and magnetometer readings arrive as tagged 3-vectors.
Events come either from a producer client over the WebSocket or from a
recorded replay file; both end up as SensorSample instances.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple


Vector3 = Tuple[float, float, float]

ZERO_VECTOR: Vector3 = (0.0, 0.0, 0.0)


class SensorKind(str, Enum):
    """Discriminator for the two sensor streams the compass listens to."""

    ACCELEROMETER = "accelerometer"
    MAGNETIC_FIELD = "magnetic_field"


# Names accepted from producers and replay files
SENSOR_ALIASES = {
    "accelerometer": SensorKind.ACCELEROMETER,
    "accel": SensorKind.ACCELEROMETER,
    "acc": SensorKind.ACCELEROMETER,
    "magnetic_field": SensorKind.MAGNETIC_FIELD,
    "magnetometer": SensorKind.MAGNETIC_FIELD,
    "mag": SensorKind.MAGNETIC_FIELD,
}

ALL_SENSOR_KINDS = (SensorKind.ACCELEROMETER, SensorKind.MAGNETIC_FIELD)


@dataclass(frozen=True)
class SensorSample:
    """
    One reading from one sensor.

    Attributes:
        kind: Which sensor produced the reading
        values: (x, y, z) in the sensor's native units
                (m/s² for the accelerometer, µT for the magnetometer)
        timestamp: Optional time of the reading in seconds
    """
    kind: SensorKind
    values: Vector3
    timestamp: Optional[float] = None


def parse_sensor_kind(name) -> Optional[SensorKind]:
    """Resolve a sensor name or alias, None when unknown."""
    if isinstance(name, SensorKind):
        return name
    if not isinstance(name, str):
        return None
    return SENSOR_ALIASES.get(name.strip().lower())


def parse_sensor_kinds(names: str) -> Tuple[SensorKind, ...]:
    """
    Parse a comma separated list of sensor names ("accelerometer,mag").

    Unknown names are skipped. Duplicates collapse.
    """
    kinds = []
    for part in (names or "").split(","):
        kind = parse_sensor_kind(part)
        if kind is not None and kind not in kinds:
            kinds.append(kind)
    return tuple(kinds)


def to_vector3(values) -> Optional[Vector3]:
    """
    Take the first three components of a reading as floats.

    Returns None when fewer than three values are present or any of
    them is not a finite number.
    """
    if values is None or isinstance(values, (str, bytes, dict)):
        return None
    try:
        items = list(values)[:3]
    except TypeError:
        return None
    if len(items) < 3:
        return None

    out = []
    for v in items:
        if isinstance(v, bool):
            return None
        try:
            f = float(v)
        except (TypeError, ValueError):
            return None
        if not math.isfinite(f):
            return None
        out.append(f)
    return (out[0], out[1], out[2])


def parse_sensor_event(msg) -> Optional[SensorSample]:
    """
    Turn an inbound sensor message into a SensorSample.

    Expected shape:
        {"type": "sensor", "sensor": "accelerometer", "values": [x, y, z], "t": 1.25}

    Malformed events return None; callers drop them without reporting.
    """
    if not isinstance(msg, dict):
        return None
    if msg.get("type", "sensor") != "sensor":
        return None

    kind = parse_sensor_kind(msg.get("sensor"))
    if kind is None:
        return None

    values = to_vector3(msg.get("values"))
    if values is None:
        return None

    timestamp = msg.get("t")
    try:
        timestamp = float(timestamp) if timestamp is not None else None
    except (TypeError, ValueError):
        timestamp = None

    return SensorSample(kind=kind, values=values, timestamp=timestamp)
