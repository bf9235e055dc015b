"""
Pose input for the form coach.

Landmark model, joint-angle calculation and a synthetic pose source used
until a real on-device detector is wired in.
"""

from .landmarks import (
    Landmark,
    PoseLandmark,
    PoseSnapshot,
    POSE_CONNECTIONS,
    VISIBILITY_THRESHOLD,
    visible_connections,
    visible_landmarks,
)
from .angles import calculate_angle, calculate_joint_angles, build_snapshot
from .mock_source import MockPoseSource, pose_from_angles

__all__ = [
    "Landmark",
    "PoseLandmark",
    "PoseSnapshot",
    "POSE_CONNECTIONS",
    "VISIBILITY_THRESHOLD",
    "visible_connections",
    "visible_landmarks",
    "calculate_angle",
    "calculate_joint_angles",
    "build_snapshot",
    "MockPoseSource",
    "pose_from_angles",
]
