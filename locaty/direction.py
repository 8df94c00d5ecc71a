"""
Compass direction lookup for Locaty.

Maps a heading in degrees to one of eight compass labels using fixed
angular sectors. North gets a 20° sector, the cardinal points E/S/W get
20° each, and the intercardinal points take the remaining 70° arcs.
"""

import math
from enum import Enum


class Direction(str, Enum):
    N = "N"
    NE = "NE"
    E = "E"
    SE = "SE"
    S = "S"
    SW = "SW"
    W = "W"
    NW = "NW"


# Evaluated top to bottom; the last matching test wins.
SECTORS = (
    (Direction.N, lambda a: a >= 350 or a <= 10),
    (Direction.NW, lambda a: 280 < a < 350),
    (Direction.W, lambda a: 260 < a <= 280),
    (Direction.SW, lambda a: 190 < a <= 260),
    (Direction.S, lambda a: 170 < a <= 190),
    (Direction.SE, lambda a: 100 < a <= 170),
    (Direction.E, lambda a: 80 < a <= 100),
    (Direction.NE, lambda a: 10 < a <= 80),
)


def classify_direction(degrees: float) -> Direction:
    """
    Classify a heading into a compass direction.

    Args:
        degrees: Heading in degrees, 0 = North, increasing clockwise

    Returns:
        Direction label for the sector containing the heading

    Raises:
        ValueError: if degrees is NaN (no sector can contain it)
    """
    angle = float(degrees)
    if math.isnan(angle):
        raise ValueError("heading is NaN")

    direction = None
    for label, test in SECTORS:
        if test(angle):
            direction = label
    return direction
