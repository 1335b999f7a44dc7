# hockey_xg/danger.py
import numpy as np

# (max distance, max angle), first match wins; the cone narrows as shots get closer
DANGER_TABLE = [
    (30, 55),
    (25, 58),
    (20, 62),
    (15, 67),
    (10, 73),
    (5, 80),
    (3, None),
]


def is_dangerous(distance: float, angle: float) -> bool:
    """Rule-based dangerous shot attempt (DSA) for a single shot."""
    if distance is None or angle is None or np.isnan(distance) or np.isnan(angle):
        return False
    for max_dist, max_angle in DANGER_TABLE:
        if distance < max_dist and (max_angle is None or angle < max_angle):
            return True
    return False


def flag_dangerous(distance, angle) -> np.ndarray:
    d = np.asarray(distance, dtype=float)
    a = np.asarray(angle, dtype=float)
    conds = [
        (d < max_dist) if max_angle is None else (d < max_dist) & (a < max_angle)
        for max_dist, max_angle in DANGER_TABLE
    ]
    # NaN fails every comparison
    return np.select(conds, [True] * len(conds), default=False).astype(bool)
