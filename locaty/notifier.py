"""
Heading change notifications for Locaty.

Every computed heading is pushed to two sinks:
- a broadcast callable, used by UI consumers (the WebSocket clients)
- a notification presenter, which shows a persistent status line while
  the service runs in background mode and is dismissed otherwise
"""

from dataclasses import dataclass, field
from typing import Callable, Optional

from .orientation import HeadingReading


APP_NAME = "Locaty"
NOT_AVAILABLE = "Not available"
STOP_NOTIFICATIONS = "Stop notifications"

NOTIFICATION_ID = 1

ON_SENSOR_CHANGED_ACTION = "locaty.ON_SENSOR_CHANGED"
NOTIFICATION_STOP_ACTION = "locaty.NOTIFICATION_STOP"

KEY_ANGLE = "angle"
KEY_DIRECTION = "direction"
KEY_BACKGROUND = "background"
KEY_NOTIFICATION_ID = "notification_id"


def format_status_text(direction: str, angle: float) -> str:
    return f"You're currently facing {direction} at an angle of {angle}°"


@dataclass(frozen=True)
class NotificationAction:
    title: str
    action: str
    extras: dict = field(default_factory=dict)


@dataclass(frozen=True)
class Notification:
    """A status notification handed to a presenter."""
    notification_id: int
    title: str
    text: str
    actions: tuple = ()

    def to_payload(self) -> dict:
        return {
            "notification_id": self.notification_id,
            "title": self.title,
            "text": self.text,
            "actions": [
                {"title": a.title, "action": a.action, "extras": dict(a.extras)}
                for a in self.actions
            ],
        }


def build_notification(direction: str, angle: float,
                       notification_id: int = NOTIFICATION_ID) -> Notification:
    """Build the status notification, with a stop action carrying its id."""
    stop = NotificationAction(
        title=STOP_NOTIFICATIONS,
        action=NOTIFICATION_STOP_ACTION,
        extras={KEY_NOTIFICATION_ID: notification_id},
    )
    return Notification(
        notification_id=notification_id,
        title=APP_NAME,
        text=format_status_text(direction, angle),
        actions=(stop,),
    )


class NotificationPresenter:
    """Interface of the collaborator that displays notifications."""

    def show(self, notification: Notification):
        raise NotImplementedError

    def dismiss(self, notification_id: int):
        """Remove the notification shown for the foreground service."""
        raise NotImplementedError

    def cancel(self, notification_id: int):
        """Cancel a notification after the user stopped the service."""
        raise NotImplementedError


class ConsolePresenter(NotificationPresenter):
    """Prints notifications to stdout. Used when no client renders them."""

    def __init__(self):
        self.current: Optional[Notification] = None

    def show(self, notification: Notification):
        if self.current is not None and self.current.text == notification.text:
            self.current = notification
            return
        self.current = notification
        print(f"[Notification] {notification.title}: {notification.text}")

    def dismiss(self, notification_id: int):
        if self.current is not None and self.current.notification_id == notification_id:
            self.current = None

    def cancel(self, notification_id: int):
        if self.current is not None and self.current.notification_id == notification_id:
            print(f"[Notification] cancelled #{notification_id}")
            self.current = None


class HeadingNotifier:
    """
    Emits each heading to the broadcast sink and the notification presenter.

    Usage:
        notifier = HeadingNotifier(broadcast=print, presenter=ConsolePresenter())
        notifier.background = True
        notifier.emit(reading)
    """

    def __init__(
        self,
        broadcast: Callable[[dict], None],
        presenter: NotificationPresenter,
        background: bool = False,
        notification_id: int = NOTIFICATION_ID
    ):
        """
        Args:
            broadcast: Called with one payload dict per heading update
            presenter: Shows, dismisses and cancels status notifications
            background: Show the status notification after each update
            notification_id: Id of the status notification
        """
        self.broadcast = broadcast
        self.presenter = presenter
        self.background = background
        self.notification_id = notification_id
        self.emit_count = 0

    def emit(self, reading: HeadingReading) -> dict:
        """
        Send one heading update. No throttling: identical consecutive
        readings are all emitted.

        Returns:
            The broadcast payload
        """
        payload = {
            "action": ON_SENSOR_CHANGED_ACTION,
            KEY_ANGLE: reading.angle,
            KEY_DIRECTION: reading.direction.value,
        }
        self.broadcast(payload)
        self.emit_count += 1

        if self.background:
            self.presenter.show(
                build_notification(reading.direction.value, reading.angle, self.notification_id)
            )
        else:
            self.presenter.dismiss(self.notification_id)

        return payload

    def show_unavailable(self):
        """Show the startup notification before any heading exists."""
        self.presenter.show(build_notification(NOT_AVAILABLE, 0.0, self.notification_id))

    def cancel(self, notification_id: Optional[int] = None):
        self.presenter.cancel(self.notification_id if notification_id is None else notification_id)
