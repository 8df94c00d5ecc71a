"""
Compass service for Locaty.

Glues the sensor stream to the heading estimator and the notifier:
- on_create registers the sensors present on the device
- on_start_command sets the background flag
- on_sensor_changed updates the heading and emits it
- on_stop_action handles the notification's stop button
"""

from typing import Iterable, Optional

from .notifier import HeadingNotifier
from .orientation import HeadingEstimator, HeadingReading
from .sensors import ALL_SENSOR_KINDS, SensorKind, SensorSample


class CompassService:
    """
    Listens to accelerometer and magnetometer samples and publishes headings.

    Usage:
        service = CompassService(HeadingNotifier(broadcast, presenter))
        service.on_create([SensorKind.ACCELEROMETER, SensorKind.MAGNETIC_FIELD])
        service.on_start_command(background=True)
        service.on_sensor_changed(sample)
    """

    def __init__(self, notifier: HeadingNotifier, estimator: Optional[HeadingEstimator] = None):
        self.notifier = notifier
        self.estimator = estimator if estimator is not None else HeadingEstimator()
        self.registered_kinds = frozenset()
        self.is_listening = False

    @property
    def background(self) -> bool:
        return self.notifier.background

    def on_create(self, available_kinds: Iterable[SensorKind] = ALL_SENSOR_KINDS):
        """
        Start listening to the sensors the device has.

        A missing sensor is never registered, so headings are only
        produced once the present sensors give a usable fix.
        """
        self.registered_kinds = frozenset(
            k for k in available_kinds if k in ALL_SENSOR_KINDS
        )
        self.is_listening = True
        self.estimator.reset()

        missing = [k.value for k in ALL_SENSOR_KINDS if k not in self.registered_kinds]
        if missing:
            print(f"[Service] Sensor(s) not available: {', '.join(missing)}")

        self.notifier.show_unavailable()

    def on_start_command(self, background: bool = False):
        self.notifier.background = bool(background)

    def on_sensor_changed(self, event: Optional[SensorSample]) -> Optional[HeadingReading]:
        """
        Handle one sensor sample.

        Returns:
            The emitted reading, or None when the event was ignored or no
            heading is available yet
        """
        if event is None or not self.is_listening:
            return None
        if event.kind not in self.registered_kinds:
            return None

        reading = self.estimator.update(event)
        if reading is None:
            return None

        self.notifier.emit(reading)
        return reading

    def on_stop_action(self, notification_id: int = -1):
        """
        Stop button pressed on the notification: stop listening and
        cancel the notification (an id of -1 means none to cancel).
        """
        self.stop()
        if notification_id != -1:
            self.notifier.cancel(notification_id)

    def stop(self):
        self.is_listening = False
        self.registered_kinds = frozenset()
