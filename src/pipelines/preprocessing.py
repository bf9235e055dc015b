"""
Stage 1: pose validation & joint angles.

Receives one frame of raw pose landmarks from the mobile app (33 × 4) and
produces an immutable PoseSnapshot with derived joint angles.

Pipeline:
    1. Validate input shape (33, 4)
    2. Convert rows to Landmark objects (NaN rows become missing landmarks)
    3. Compute joint angles, ignoring low-visibility landmarks
"""

import logging
from typing import Optional

import numpy as np

from src.pose import Landmark, PoseSnapshot, build_snapshot

from .config import NUM_LANDMARKS, VALUES_PER_LANDMARK

logger = logging.getLogger(__name__)


def _validate_landmarks(landmarks: list) -> np.ndarray:
    """Validate and convert the raw landmark rows to a numpy array.

    Args:
        landmarks: 2D list from the request body (33 × 4).

    Returns:
        np.ndarray of shape (33, 4).

    Raises:
        ValueError: If the shape is invalid.
    """
    try:
        arr = np.asarray(landmarks, dtype=np.float64)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"landmarks must be numeric rows: {exc}") from exc

    if arr.ndim != 2:
        raise ValueError(
            f"landmarks must be 2-dimensional (33 × 4), got shape {arr.shape}."
        )
    if arr.shape[0] != NUM_LANDMARKS:
        raise ValueError(
            f"Expected {NUM_LANDMARKS} landmarks per frame, got {arr.shape[0]}."
        )
    if arr.shape[1] != VALUES_PER_LANDMARK:
        raise ValueError(
            f"Expected {VALUES_PER_LANDMARK} values per landmark (x, y, z, visibility), "
            f"got {arr.shape[1]}."
        )

    return arr


def snapshot_from_landmarks(
    landmarks: list,
    confidence: float,
    timestamp: Optional[float] = None,
) -> PoseSnapshot:
    """Full Stage-1 preprocessing: raw landmark rows → PoseSnapshot.

    Raises:
        ValueError: On shape validation errors.
    """
    arr = _validate_landmarks(landmarks)

    points: list[Optional[Landmark]] = []
    n_missing = 0
    for row in arr:
        if np.isnan(row[:2]).any():
            points.append(None)
            n_missing += 1
            continue
        x, y, z, visibility = row
        points.append(Landmark(
            x=float(x),
            y=float(y),
            z=None if np.isnan(z) else float(z),
            visibility=float(np.clip(np.nan_to_num(visibility), 0.0, 1.0)),
        ))

    if n_missing:
        logger.debug("Frame has %d / %d missing landmarks", n_missing, NUM_LANDMARKS)

    return build_snapshot(points, confidence=float(np.clip(confidence, 0.0, 1.0)), timestamp=timestamp)
