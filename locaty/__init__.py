"""
Locaty Compass

Computes a compass heading from accelerometer + magnetometer samples and
publishes it to a broadcast sink and a status notification:
- HeadingEstimator: gravity/geomagnetic fusion into a heading (0-360°)
- classify_direction: heading to one of N, NE, E, SE, S, SW, W, NW
- HeadingNotifier: broadcast + notification emission per update
- CompassService: sensor registration, background flag, stop action

Usage:
    from locaty import CompassService, HeadingNotifier, ConsolePresenter, SensorKind, SensorSample

    service = CompassService(HeadingNotifier(broadcast=print, presenter=ConsolePresenter()))
    service.on_create()
    service.on_start_command(background=True)

    # In the sensor callback:
    service.on_sensor_changed(SensorSample(SensorKind.ACCELEROMETER, (0.0, 0.0, 9.8)))
    service.on_sensor_changed(SensorSample(SensorKind.MAGNETIC_FIELD, (0.0, 50.0, 0.0)))
"""

from .sensors import SensorKind, SensorSample, parse_sensor_event, parse_sensor_kinds
from .direction import Direction, classify_direction
from .orientation import (
    OrientationState,
    HeadingReading,
    HeadingEstimator,
    get_rotation_matrix,
    get_orientation,
)
from .notifier import (
    Notification,
    NotificationPresenter,
    ConsolePresenter,
    HeadingNotifier,
    format_status_text,
)
from .service import CompassService
from .replay import load_replay, replay_samples

__all__ = [
    # Sensors
    'SensorKind',
    'SensorSample',
    'parse_sensor_event',
    'parse_sensor_kinds',

    # Direction
    'Direction',
    'classify_direction',

    # Orientation
    'OrientationState',
    'HeadingReading',
    'HeadingEstimator',
    'get_rotation_matrix',
    'get_orientation',

    # Notifications
    'Notification',
    'NotificationPresenter',
    'ConsolePresenter',
    'HeadingNotifier',
    'format_status_text',

    # Service
    'CompassService',

    # Replay
    'load_replay',
    'replay_samples',
]

__version__ = '1.0.0'
