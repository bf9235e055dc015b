"""
Joint angle computation from pose landmarks.
"""

import logging
from typing import Optional, Sequence

import numpy as np

from .landmarks import (
    Landmark,
    PoseLandmark,
    PoseSnapshot,
    VISIBILITY_THRESHOLD,
)

logger = logging.getLogger(__name__)


# Joint name -> (proximal, vertex, distal)
JOINT_DEFINITIONS: dict[str, tuple[PoseLandmark, PoseLandmark, PoseLandmark]] = {
    "left_elbow": (PoseLandmark.LEFT_SHOULDER, PoseLandmark.LEFT_ELBOW, PoseLandmark.LEFT_WRIST),
    "right_elbow": (PoseLandmark.RIGHT_SHOULDER, PoseLandmark.RIGHT_ELBOW, PoseLandmark.RIGHT_WRIST),
    "left_shoulder": (PoseLandmark.LEFT_HIP, PoseLandmark.LEFT_SHOULDER, PoseLandmark.LEFT_ELBOW),
    "right_shoulder": (PoseLandmark.RIGHT_HIP, PoseLandmark.RIGHT_SHOULDER, PoseLandmark.RIGHT_ELBOW),
    "left_wrist": (PoseLandmark.LEFT_ELBOW, PoseLandmark.LEFT_WRIST, PoseLandmark.LEFT_INDEX),
    "right_wrist": (PoseLandmark.RIGHT_ELBOW, PoseLandmark.RIGHT_WRIST, PoseLandmark.RIGHT_INDEX),
    "left_knee": (PoseLandmark.LEFT_HIP, PoseLandmark.LEFT_KNEE, PoseLandmark.LEFT_ANKLE),
    "right_knee": (PoseLandmark.RIGHT_HIP, PoseLandmark.RIGHT_KNEE, PoseLandmark.RIGHT_ANKLE),
}


def calculate_angle(
    a: Optional[Landmark],
    b: Optional[Landmark],
    c: Optional[Landmark],
    use_z: bool = True,
) -> float:
    """Calculate the interior angle at joint b formed by points a-b-c.

    Uses the dot product formula: cos(θ) = (v1·v2) / (|v1||v2|)
    where v1 = vector from b to a, v2 = vector from b to c.
    Depth is used only when all three points carry a z value.

    Args:
        a, b, c: Landmarks (proximal, vertex, distal). Any may be None.
        use_z: Allow the 3D projection when depth is available.

    Returns:
        float: Angle in degrees (0-180), or 0.0 if a point is missing or
        a vector is degenerate.
    """
    if a is None or b is None or c is None:
        return 0.0

    three_d = use_z and a.z is not None and b.z is not None and c.z is not None
    if three_d:
        pa = np.array([a.x, a.y, a.z])
        pb = np.array([b.x, b.y, b.z])
        pc = np.array([c.x, c.y, c.z])
    else:
        pa = np.array([a.x, a.y])
        pb = np.array([b.x, b.y])
        pc = np.array([c.x, c.y])

    ba = pa - pb
    bc = pc - pb

    magnitude_ba = np.linalg.norm(ba)
    magnitude_bc = np.linalg.norm(bc)
    if magnitude_ba < 1e-9 or magnitude_bc < 1e-9:
        return 0.0

    cos_angle = np.dot(ba, bc) / (magnitude_ba * magnitude_bc)
    cos_angle = np.clip(cos_angle, -1.0, 1.0)

    return float(np.degrees(np.arccos(cos_angle)))


def _usable(lm: Optional[Landmark], threshold: float) -> Optional[Landmark]:
    if lm is None or lm.visibility < threshold:
        return None
    return lm


def calculate_joint_angles(
    landmarks: Sequence[Optional[Landmark]],
    visibility_threshold: float = VISIBILITY_THRESHOLD,
    use_z: bool = True,
) -> dict[str, float]:
    """Compute every named joint angle for a landmark list.

    Landmarks below *visibility_threshold* are treated as absent, so the
    affected joints come back as 0.0.
    """
    def point(part: PoseLandmark) -> Optional[Landmark]:
        index = int(part)
        if index >= len(landmarks):
            return None
        return _usable(landmarks[index], visibility_threshold)

    return {
        joint: calculate_angle(point(p1), point(p2), point(p3), use_z=use_z)
        for joint, (p1, p2, p3) in JOINT_DEFINITIONS.items()
    }


def build_snapshot(
    landmarks: Sequence[Optional[Landmark]],
    confidence: float,
    timestamp: Optional[float] = None,
    use_z: bool = True,
) -> PoseSnapshot:
    """Derive joint angles and freeze everything into a PoseSnapshot."""
    angles = calculate_joint_angles(landmarks, use_z=use_z)
    kwargs = {}
    if timestamp is not None:
        kwargs["timestamp"] = timestamp
    return PoseSnapshot(
        landmarks=list(landmarks),
        angles=angles,
        confidence=confidence,
        **kwargs,
    )
