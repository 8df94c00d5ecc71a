"""
Heading estimation for Locaty.

Fuses the latest accelerometer (gravity) and magnetometer (geomagnetic
field) readings into a rotation matrix and extracts the azimuth, i.e.
the rotation of the device about the vertical axis, as a compass heading.

The state holding the two readings is immutable: every sample produces
a new OrientationState, and the heading is recomputed from the two most
recent vectors even when one of them is stale.

Usage:
    estimator = HeadingEstimator()
    reading = estimator.update(SensorSample(SensorKind.ACCELEROMETER, (0.0, 0.0, 9.8)))
    reading = estimator.update(SensorSample(SensorKind.MAGNETIC_FIELD, (0.0, 50.0, 0.0)))
    if reading is not None:
        print(reading.angle, reading.direction)
"""

import math
from dataclasses import dataclass, replace
from typing import Optional, Tuple

import numpy as np

from .direction import Direction, classify_direction
from .sensors import SensorKind, SensorSample, Vector3, ZERO_VECTOR


GRAVITY_EARTH = 9.80665  # m/s²

# Below this squared acceleration the device is considered in free fall
FREE_FALL_GRAVITY_SQUARED = 0.01 * GRAVITY_EARTH * GRAVITY_EARTH

# Minimum |E x A| for a usable east vector (µT·m/s²)
MIN_EAST_NORM = 0.1


@dataclass(frozen=True)
class OrientationState:
    """Latest accelerometer and magnetometer vectors."""
    accelerometer: Vector3 = ZERO_VECTOR
    magnetometer: Vector3 = ZERO_VECTOR

    def with_sample(self, sample: SensorSample) -> "OrientationState":
        """Return a new state with the vector for the sample's kind replaced."""
        if sample.kind == SensorKind.ACCELEROMETER:
            return replace(self, accelerometer=tuple(sample.values))
        if sample.kind == SensorKind.MAGNETIC_FIELD:
            return replace(self, magnetometer=tuple(sample.values))
        return self

    @property
    def has_accelerometer(self) -> bool:
        return self.accelerometer != ZERO_VECTOR

    @property
    def has_magnetometer(self) -> bool:
        return self.magnetometer != ZERO_VECTOR

    @property
    def is_complete(self) -> bool:
        """True once both sensors have reported at least one non-zero reading."""
        return self.has_accelerometer and self.has_magnetometer


@dataclass(frozen=True)
class HeadingReading:
    """
    A computed heading.

    Attributes:
        angle: Heading in degrees in [0, 360), rounded to 2 decimals
        direction: Compass label classified from the unrounded heading
    """
    angle: float
    direction: Direction

    def to_payload(self) -> dict:
        return {"angle": self.angle, "direction": self.direction.value}


def get_rotation_matrix(gravity, geomagnetic) -> Optional[np.ndarray]:
    """
    Compute the rotation matrix from device to world coordinates.

    World frame: X points east, Y points to magnetic north, Z points up.

    Args:
        gravity: Accelerometer vector (m/s²) in device coordinates
        geomagnetic: Magnetometer vector (µT) in device coordinates

    Returns:
        3x3 rotation matrix with rows [east, north, up], or None when
        the device is in free fall or the field is parallel to gravity
        (or zero), in which case no heading can be derived.
    """
    a = np.asarray(gravity, dtype=np.float64)
    e = np.asarray(geomagnetic, dtype=np.float64)
    if not (np.all(np.isfinite(a)) and np.all(np.isfinite(e))):
        return None

    # Work on unit-scaled copies so huge readings cannot overflow
    scale_a = float(np.max(np.abs(a)))
    scale_e = float(np.max(np.abs(e)))
    if scale_a == 0.0 or scale_e == 0.0:
        return None
    a_s = a / scale_a
    e_s = e / scale_e

    norm_a_s = float(np.linalg.norm(a_s))
    if norm_a_s * scale_a < math.sqrt(FREE_FALL_GRAVITY_SQUARED):
        return None

    h = np.cross(e_s, a_s)
    norm_h_s = float(np.linalg.norm(h))
    if norm_h_s == 0.0 or norm_h_s * scale_e * scale_a < MIN_EAST_NORM:
        return None

    h = h / norm_h_s
    a = a_s / norm_a_s
    m = np.cross(a, h)

    rotation = np.vstack((h, m, a))
    if not np.all(np.isfinite(rotation)):
        return None
    return rotation


def get_orientation(rotation: np.ndarray) -> Tuple[float, float, float]:
    """
    Extract (azimuth, pitch, roll) in radians from a rotation matrix.

    azimuth: rotation about -Z, 0 when the device y-axis points north
    pitch: rotation about X
    roll: rotation about Y
    """
    r = np.asarray(rotation, dtype=np.float64)
    azimuth = math.atan2(r[0, 1], r[1, 1])
    pitch = math.asin(max(-1.0, min(1.0, -r[2, 1])))
    roll = math.atan2(-r[2, 0], r[2, 2])
    return azimuth, pitch, roll


def azimuth_to_heading(azimuth_rad: float) -> float:
    """Convert an azimuth in radians to degrees in [0, 360)."""
    return (math.degrees(azimuth_rad) + 360.0) % 360.0


def round_heading(degrees: float) -> float:
    """Round to 2 decimals, folding 360.00 back to 0.0."""
    angle = round(float(degrees) * 100) / 100
    if angle >= 360.0:
        angle -= 360.0
    return angle


class HeadingEstimator:
    """
    Accelerometer + magnetometer compass.

    Each update replaces the stored vector for the sample's kind and
    recomputes the heading from both stored vectors. While either vector
    is still zero, or the two cannot be fused, update() returns None
    ("not yet available") rather than a misleading 0°.
    """

    def __init__(self, state: Optional[OrientationState] = None):
        self.state = state if state is not None else OrientationState()
        self.last_reading: Optional[HeadingReading] = None

    def update(self, sample: SensorSample) -> Optional[HeadingReading]:
        """
        Feed one sensor sample.

        Args:
            sample: Reading from the accelerometer or the magnetometer

        Returns:
            HeadingReading, or None while no heading can be computed
        """
        self.state = self.state.with_sample(sample)
        reading = compute_heading(self.state)
        if reading is not None:
            self.last_reading = reading
        return reading

    def reset(self):
        """Forget both stored readings."""
        self.state = OrientationState()
        self.last_reading = None


def compute_heading(state: OrientationState) -> Optional[HeadingReading]:
    """Compute the heading for a state, None when unavailable."""
    if not state.is_complete:
        return None

    rotation = get_rotation_matrix(state.accelerometer, state.magnetometer)
    if rotation is None:
        return None

    azimuth, _pitch, _roll = get_orientation(rotation)
    degrees = azimuth_to_heading(azimuth)

    return HeadingReading(
        angle=round_heading(degrees),
        direction=classify_direction(degrees),
    )
