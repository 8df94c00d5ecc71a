"""
Recorded sensor replay for Locaty.

Loads accelerometer/magnetometer samples from a CSV log and plays them
back into the compass service, paced by their timestamps.

File format (one sample per row, header required):
    t,sensor,x,y,z
    0.00,accelerometer,0.0,0.0,9.8
    0.02,magnetic_field,0.0,50.0,0.0

Column names are matched case-insensitively against a few common
spellings (e.g. "time"/"timestamp", "type"/"kind", "ax"/"value_x").
"""

import asyncio
from pathlib import Path
from typing import AsyncIterator, Iterable, List, Optional

import numpy as np
import pandas as pd

from .sensors import SensorSample, parse_sensor_kind, to_vector3


TIME_NAMES = ['t', 'time', 'timestamp', 'time_s']
SENSOR_NAMES = ['sensor', 'kind', 'type', 'sensor_type']
X_NAMES = ['x', 'value_x', 'values_0', 'ax', 'mx']
Y_NAMES = ['y', 'value_y', 'values_1', 'ay', 'my']
Z_NAMES = ['z', 'value_z', 'values_2', 'az', 'mz']


def find_column(df: pd.DataFrame, candidates: List[str]) -> Optional[str]:
    """Find the first column matching one of the candidate names."""
    lookup = {str(c).strip().lower(): c for c in df.columns}
    for name in candidates:
        if name in lookup:
            return lookup[name]
    return None


def load_replay(path) -> List[SensorSample]:
    """
    Load a sensor log.

    Rows with an unknown sensor name or non-numeric values are skipped.

    Args:
        path: CSV file path

    Returns:
        Samples in file order

    Raises:
        FileNotFoundError: if the file does not exist
        ValueError: if required columns are missing or no row is usable
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(str(path))

    df = pd.read_csv(path)

    sensor_col = find_column(df, SENSOR_NAMES)
    x_col = find_column(df, X_NAMES)
    y_col = find_column(df, Y_NAMES)
    z_col = find_column(df, Z_NAMES)
    if None in [sensor_col, x_col, y_col, z_col]:
        raise ValueError(f"missing columns in {path.name}, available: {list(df.columns)}")
    t_col = find_column(df, TIME_NAMES)

    values = df[[x_col, y_col, z_col]].apply(pd.to_numeric, errors='coerce').values.astype(np.float64)
    if t_col is not None:
        times = pd.to_numeric(df[t_col], errors='coerce').values.astype(np.float64)
    else:
        times = np.full(len(df), np.nan)

    samples = []
    for name, row, t in zip(df[sensor_col].tolist(), values, times):
        kind = parse_sensor_kind(name)
        vec = to_vector3(row)
        if kind is None or vec is None:
            continue
        samples.append(SensorSample(
            kind=kind,
            values=vec,
            timestamp=None if np.isnan(t) else float(t),
        ))

    if not samples:
        raise ValueError(f"no usable samples in {path.name}")
    return samples


async def replay_samples(
    samples: Iterable[SensorSample],
    speed: float = 1.0,
    sleep=asyncio.sleep
) -> AsyncIterator[SensorSample]:
    """
    Yield samples, waiting between them according to their timestamps.

    Args:
        samples: Samples in playback order
        speed: Playback rate (2.0 = twice as fast); <= 0 disables pacing
        sleep: Awaitable sleep function, replaceable in tests

    Samples without a timestamp are yielded immediately.
    """
    last_t = None
    for sample in samples:
        t = sample.timestamp
        if speed > 0 and t is not None and last_t is not None:
            delay = (t - last_t) / speed
            if delay > 0:
                await sleep(delay)
        if t is not None:
            last_t = t
        yield sample
