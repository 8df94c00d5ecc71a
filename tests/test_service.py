"""Tests for the compass service wiring."""

from __future__ import annotations

from types import SimpleNamespace

import pytest

from locaty.notifier import HeadingNotifier, Notification, NotificationPresenter
from locaty.sensors import SensorKind, SensorSample
from locaty.service import CompassService

NORTH = SensorSample(SensorKind.MAGNETIC_FIELD, (0.0, 50.0, 0.0))
EAST = SensorSample(SensorKind.MAGNETIC_FIELD, (-50.0, 0.0, 0.0))
FLAT = SensorSample(SensorKind.ACCELEROMETER, (0.0, 0.0, 9.8))


class FakePresenter(NotificationPresenter):
    def __init__(self) -> None:
        self.shown = []
        self.dismissed = []
        self.cancelled = []

    def show(self, notification: Notification) -> None:
        self.shown.append(notification)

    def dismiss(self, notification_id: int) -> None:
        self.dismissed.append(notification_id)

    def cancel(self, notification_id: int) -> None:
        self.cancelled.append(notification_id)


@pytest.fixture()
def harness():
    presenter = FakePresenter()
    sent = []
    service = CompassService(HeadingNotifier(broadcast=sent.append, presenter=presenter))
    return SimpleNamespace(service=service, presenter=presenter, sent=sent)


def test_create_shows_unavailable_notification(harness) -> None:
    harness.service.on_create()

    assert harness.service.is_listening
    assert harness.service.registered_kinds == {SensorKind.ACCELEROMETER, SensorKind.MAGNETIC_FIELD}
    assert harness.presenter.shown[0].text.startswith("You're currently facing Not available")


def test_end_to_end_heading(harness) -> None:
    harness.service.on_create()

    assert harness.service.on_sensor_changed(FLAT) is None
    first = harness.service.on_sensor_changed(NORTH)
    harness.service.on_sensor_changed(FLAT)
    second = harness.service.on_sensor_changed(NORTH)

    assert first.angle == second.angle == 0.0
    assert [p["direction"] for p in harness.sent] == ["N", "N", "N"]


def test_background_flag_routes_to_notification(harness) -> None:
    harness.service.on_create()
    harness.service.on_sensor_changed(FLAT)
    harness.service.on_sensor_changed(NORTH)
    assert len(harness.presenter.shown) == 1
    assert harness.presenter.dismissed == [1]

    harness.service.on_start_command(background=True)
    harness.service.on_sensor_changed(EAST)

    assert harness.service.background
    assert len(harness.presenter.shown) == 2
    assert harness.presenter.shown[-1].text == "You're currently facing E at an angle of 90.0°"


def test_none_event_is_ignored(harness) -> None:
    harness.service.on_create()

    assert harness.service.on_sensor_changed(None) is None
    assert harness.sent == []


def test_missing_magnetometer_never_produces_heading(harness, capsys) -> None:
    harness.service.on_create([SensorKind.ACCELEROMETER])

    assert "magnetic_field" in capsys.readouterr().out
    assert harness.service.on_sensor_changed(FLAT) is None
    # Unregistered kinds are not delivered to the estimator
    assert harness.service.on_sensor_changed(NORTH) is None
    assert harness.sent == []


def test_events_before_create_are_ignored(harness) -> None:
    assert harness.service.on_sensor_changed(FLAT) is None
    assert harness.service.on_sensor_changed(NORTH) is None
    assert harness.sent == []


def test_stop_action_stops_listening_and_cancels(harness) -> None:
    harness.service.on_create()
    harness.service.on_start_command(background=True)
    harness.service.on_sensor_changed(FLAT)
    harness.service.on_sensor_changed(NORTH)

    harness.service.on_stop_action(1)

    assert not harness.service.is_listening
    assert harness.presenter.cancelled == [1]
    assert harness.service.on_sensor_changed(EAST) is None
    assert len(harness.sent) == 1


def test_stop_action_without_id_cancels_nothing(harness) -> None:
    harness.service.on_create()

    harness.service.on_stop_action(-1)

    assert not harness.service.is_listening
    assert harness.presenter.cancelled == []


def test_recreate_after_stop_starts_fresh(harness) -> None:
    harness.service.on_create()
    harness.service.on_sensor_changed(FLAT)
    harness.service.on_sensor_changed(NORTH)
    harness.service.on_stop_action(1)

    harness.service.on_create()

    assert harness.service.on_sensor_changed(EAST) is None
    assert harness.service.on_sensor_changed(FLAT).angle == 90.0
