"""
Synthetic pose source.

Stands in for an on-device pose model during development: it produces
PoseSnapshot values with the same shape a real detector would, so the
scoring pipeline can run end to end without a camera.
"""

import logging
import math
import time
from typing import Iterator, Optional

import numpy as np

from .angles import build_snapshot
from .landmarks import Landmark, NUM_LANDMARKS, PoseLandmark, PoseSnapshot

logger = logging.getLogger(__name__)


# Anchor layout for the upper body (x, y); everything else is scattered near the centre
_BASE_LAYOUT: dict[PoseLandmark, tuple[float, float]] = {
    PoseLandmark.NOSE: (0.5, 0.2),
    PoseLandmark.LEFT_SHOULDER: (0.4, 0.3),
    PoseLandmark.RIGHT_SHOULDER: (0.6, 0.3),
    PoseLandmark.LEFT_ELBOW: (0.35, 0.5),
    PoseLandmark.RIGHT_ELBOW: (0.65, 0.5),
    PoseLandmark.LEFT_WRIST: (0.3, 0.7),
    PoseLandmark.RIGHT_WRIST: (0.7, 0.7),
}


class MockPoseSource:
    """Random pose generator with a fixed upper-body layout.

    Example usage:
        source = MockPoseSource(seed=7)
        snapshot = source.next_snapshot()
    """

    def __init__(self, seed: Optional[int] = None, jitter: float = 0.02):
        self.rng = np.random.RandomState(seed)
        self.jitter = jitter

    def _landmark(self, part: int) -> Landmark:
        anchor = _BASE_LAYOUT.get(part)
        if anchor is not None:
            x, y = anchor
        else:
            x = 0.5 + (self.rng.rand() - 0.5) * 0.1
            y = 0.5 + (self.rng.rand() - 0.5) * 0.1

        return Landmark(
            x=float(np.clip(x + (self.rng.rand() - 0.5) * self.jitter, 0.0, 1.0)),
            y=float(np.clip(y + (self.rng.rand() - 0.5) * self.jitter, 0.0, 1.0)),
            z=float((self.rng.rand() - 0.5) * 0.1),
            visibility=float(self.rng.rand() * 0.3 + 0.7),
        )

    def next_snapshot(self, timestamp: Optional[float] = None) -> PoseSnapshot:
        landmarks = [self._landmark(i) for i in range(NUM_LANDMARKS)]
        confidence = float(0.85 + self.rng.rand() * 0.1)
        return build_snapshot(
            landmarks,
            confidence=confidence,
            timestamp=timestamp if timestamp is not None else time.time() * 1000.0,
        )

    def frames(self, count: Optional[int] = None) -> Iterator[PoseSnapshot]:
        """Yield snapshots forever, or *count* of them."""
        produced = 0
        while count is None or produced < count:
            yield self.next_snapshot()
            produced += 1

    def __iter__(self) -> Iterator[PoseSnapshot]:
        return self.frames()


def _rotate(vec: np.ndarray, degrees: float) -> np.ndarray:
    rad = math.radians(degrees)
    cos_r, sin_r = math.cos(rad), math.sin(rad)
    return np.array([vec[0] * cos_r - vec[1] * sin_r, vec[0] * sin_r + vec[1] * cos_r])


def pose_from_angles(
    left_elbow: float,
    right_elbow: float,
    left_shoulder: float = 40.0,
    right_shoulder: float = 40.0,
    confidence: float = 0.9,
    visibility: float = 0.95,
    timestamp: Optional[float] = None,
) -> PoseSnapshot:
    """Build a flat (z = 0) pose whose arm joints have the requested angles.

    Shoulder angles are measured between the torso (shoulder -> hip) and the
    upper arm; elbow angles between the upper arm and the forearm.
    """
    upper_arm = 0.15
    forearm = 0.14
    points: dict[PoseLandmark, np.ndarray] = {
        PoseLandmark.NOSE: np.array([0.5, 0.18]),
        PoseLandmark.MOUTH_LEFT: np.array([0.48, 0.22]),
        PoseLandmark.MOUTH_RIGHT: np.array([0.52, 0.22]),
        PoseLandmark.LEFT_SHOULDER: np.array([0.4, 0.3]),
        PoseLandmark.RIGHT_SHOULDER: np.array([0.6, 0.3]),
        PoseLandmark.LEFT_HIP: np.array([0.42, 0.6]),
        PoseLandmark.RIGHT_HIP: np.array([0.58, 0.6]),
        PoseLandmark.LEFT_KNEE: np.array([0.42, 0.78]),
        PoseLandmark.RIGHT_KNEE: np.array([0.58, 0.78]),
        PoseLandmark.LEFT_ANKLE: np.array([0.42, 0.95]),
        PoseLandmark.RIGHT_ANKLE: np.array([0.58, 0.95]),
    }

    for side, sign, shoulder_deg, elbow_deg in (
        ("LEFT", -1.0, left_shoulder, left_elbow),
        ("RIGHT", 1.0, right_shoulder, right_elbow),
    ):
        shoulder = points[PoseLandmark[f"{side}_SHOULDER"]]
        hip = points[PoseLandmark[f"{side}_HIP"]]
        torso_dir = (hip - shoulder) / np.linalg.norm(hip - shoulder)

        # Swing the arm outward (away from the body midline)
        arm_dir = _rotate(torso_dir, -sign * shoulder_deg)
        elbow = shoulder + arm_dir * upper_arm

        forearm_dir = _rotate(-arm_dir, -sign * elbow_deg)
        wrist = elbow + forearm_dir * forearm
        index = wrist + forearm_dir * 0.03

        points[PoseLandmark[f"{side}_ELBOW"]] = elbow
        points[PoseLandmark[f"{side}_WRIST"]] = wrist
        points[PoseLandmark[f"{side}_INDEX"]] = index

    landmarks: list[Optional[Landmark]] = [None] * NUM_LANDMARKS
    for part, xy in points.items():
        landmarks[int(part)] = Landmark(
            x=float(xy[0]), y=float(xy[1]), z=0.0, visibility=visibility,
        )

    return build_snapshot(landmarks, confidence=confidence, timestamp=timestamp)
