"""Tests for loading and pacing recorded sensor logs."""

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from locaty.replay import find_column, load_replay, replay_samples
from locaty.sensors import SensorKind, SensorSample

SAMPLE_LOG = Path(__file__).resolve().parent.parent / "data" / "sample_turn.csv"


def collect(samples, speed):
    delays = []

    async def fake_sleep(seconds):
        delays.append(seconds)

    async def run():
        return [s async for s in replay_samples(samples, speed=speed, sleep=fake_sleep)]

    return asyncio.run(run()), delays


def test_load_bundled_log() -> None:
    samples = load_replay(SAMPLE_LOG)

    assert len(samples) == 12
    assert samples[0] == SensorSample(SensorKind.ACCELEROMETER, (0.0, 0.0, 9.8), 0.0)
    assert samples[1].kind == SensorKind.MAGNETIC_FIELD


def test_load_skips_bad_rows_and_matches_column_aliases(tmp_path) -> None:
    path = tmp_path / "log.csv"
    path.write_text(
        "Timestamp,Type,AX,AY,AZ\n"
        "0.0,accel,0,0,9.8\n"
        "0.1,gyro,1,2,3\n"
        "0.2,mag,0,abc,0\n"
        "0.3,magnetometer,0,50,0\n"
    )

    samples = load_replay(path)

    assert [s.kind for s in samples] == [SensorKind.ACCELEROMETER, SensorKind.MAGNETIC_FIELD]
    assert samples[1].timestamp == pytest.approx(0.3)


def test_load_without_time_column(tmp_path) -> None:
    path = tmp_path / "log.csv"
    path.write_text("sensor,x,y,z\naccelerometer,0,0,9.8\n")

    samples = load_replay(path)

    assert samples[0].timestamp is None


def test_load_errors(tmp_path) -> None:
    with pytest.raises(FileNotFoundError):
        load_replay(tmp_path / "missing.csv")

    no_values = tmp_path / "cols.csv"
    no_values.write_text("t,sensor\n0,accelerometer\n")
    with pytest.raises(ValueError):
        load_replay(no_values)

    nothing_usable = tmp_path / "empty.csv"
    nothing_usable.write_text("t,sensor,x,y,z\n0,gyro,1,2,3\n")
    with pytest.raises(ValueError):
        load_replay(nothing_usable)


def test_find_column() -> None:
    import pandas as pd

    df = pd.DataFrame(columns=["Time", " X ", "y"])

    assert find_column(df, ["t", "time"]) == "Time"
    assert find_column(df, ["x"]) == " X "
    assert find_column(df, ["z"]) is None


def test_replay_paces_by_timestamp() -> None:
    samples = [
        SensorSample(SensorKind.ACCELEROMETER, (0.0, 0.0, 9.8), 0.0),
        SensorSample(SensorKind.MAGNETIC_FIELD, (0.0, 50.0, 0.0), 0.5),
        SensorSample(SensorKind.MAGNETIC_FIELD, (0.0, 50.0, 0.0), None),
        SensorSample(SensorKind.MAGNETIC_FIELD, (0.0, 50.0, 0.0), 1.5),
    ]

    out, delays = collect(samples, speed=2.0)

    assert out == samples
    assert delays == pytest.approx([0.25, 0.5])


def test_replay_without_pacing() -> None:
    samples = load_replay(SAMPLE_LOG)

    out, delays = collect(samples, speed=0)

    assert out == samples
    assert delays == []
