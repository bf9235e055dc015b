"""
Pose data model shared by the scoring components.

A pose snapshot is one detection tick from the pose source: 33 MediaPipe-style
landmarks in normalized image coordinates, the joint angles derived from them,
and the detector's overall confidence.
"""

import time
from enum import IntEnum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


NUM_LANDMARKS: int = 33

# Landmarks below this visibility are not drawn and not used for angles
VISIBILITY_THRESHOLD: float = 0.5


class PoseLandmark(IntEnum):
    """MediaPipe Pose landmark indices."""
    NOSE = 0
    LEFT_EYE_INNER = 1
    LEFT_EYE = 2
    LEFT_EYE_OUTER = 3
    RIGHT_EYE_INNER = 4
    RIGHT_EYE = 5
    RIGHT_EYE_OUTER = 6
    LEFT_EAR = 7
    RIGHT_EAR = 8
    MOUTH_LEFT = 9
    MOUTH_RIGHT = 10
    LEFT_SHOULDER = 11
    RIGHT_SHOULDER = 12
    LEFT_ELBOW = 13
    RIGHT_ELBOW = 14
    LEFT_WRIST = 15
    RIGHT_WRIST = 16
    LEFT_PINKY = 17
    RIGHT_PINKY = 18
    LEFT_INDEX = 19
    RIGHT_INDEX = 20
    LEFT_THUMB = 21
    RIGHT_THUMB = 22
    LEFT_HIP = 23
    RIGHT_HIP = 24
    LEFT_KNEE = 25
    RIGHT_KNEE = 26
    LEFT_ANKLE = 27
    RIGHT_ANKLE = 28
    LEFT_HEEL = 29
    RIGHT_HEEL = 30
    LEFT_FOOT_INDEX = 31
    RIGHT_FOOT_INDEX = 32


# Skeleton bones drawn on the camera overlay
POSE_CONNECTIONS: list[tuple[PoseLandmark, PoseLandmark]] = [
    # Face
    (PoseLandmark.LEFT_EAR, PoseLandmark.LEFT_EYE),
    (PoseLandmark.LEFT_EYE, PoseLandmark.NOSE),
    (PoseLandmark.NOSE, PoseLandmark.RIGHT_EYE),
    (PoseLandmark.RIGHT_EYE, PoseLandmark.RIGHT_EAR),
    # Torso
    (PoseLandmark.LEFT_SHOULDER, PoseLandmark.RIGHT_SHOULDER),
    (PoseLandmark.LEFT_SHOULDER, PoseLandmark.LEFT_HIP),
    (PoseLandmark.RIGHT_SHOULDER, PoseLandmark.RIGHT_HIP),
    (PoseLandmark.LEFT_HIP, PoseLandmark.RIGHT_HIP),
    # Arms
    (PoseLandmark.LEFT_SHOULDER, PoseLandmark.LEFT_ELBOW),
    (PoseLandmark.LEFT_ELBOW, PoseLandmark.LEFT_WRIST),
    (PoseLandmark.RIGHT_SHOULDER, PoseLandmark.RIGHT_ELBOW),
    (PoseLandmark.RIGHT_ELBOW, PoseLandmark.RIGHT_WRIST),
    # Legs
    (PoseLandmark.LEFT_HIP, PoseLandmark.LEFT_KNEE),
    (PoseLandmark.LEFT_KNEE, PoseLandmark.LEFT_ANKLE),
    (PoseLandmark.RIGHT_HIP, PoseLandmark.RIGHT_KNEE),
    (PoseLandmark.RIGHT_KNEE, PoseLandmark.RIGHT_ANKLE),
]


class Landmark(BaseModel):
    """A single tracked body keypoint."""
    model_config = ConfigDict(frozen=True)

    x: float = Field(description="Normalized horizontal position [0-1]")
    y: float = Field(description="Normalized vertical position [0-1], grows downward")
    z: Optional[float] = Field(default=None, description="Relative depth, if available")
    visibility: float = Field(
        default=1.0, ge=0.0, le=1.0,
        description="Detector confidence that the point is visible",
    )

    @property
    def is_visible(self) -> bool:
        return self.visibility >= VISIBILITY_THRESHOLD


class PoseSnapshot(BaseModel):
    """One detection tick: landmarks, derived joint angles and confidence."""
    model_config = ConfigDict(frozen=True)

    timestamp: float = Field(
        default_factory=lambda: time.time() * 1000.0,
        description="Capture time in milliseconds since the epoch",
    )
    landmarks: list[Optional[Landmark]] = Field(
        description="Landmarks indexed by PoseLandmark; None where not detected"
    )
    angles: dict[str, float] = Field(
        default_factory=dict,
        description="Joint name -> interior angle in degrees",
    )
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)

    def get(self, part: PoseLandmark) -> Optional[Landmark]:
        """Return the landmark for *part*, or None if it is missing."""
        index = int(part)
        if index >= len(self.landmarks):
            return None
        return self.landmarks[index]

    def angle(self, joint: str) -> float:
        """Angle for *joint*, 0.0 if it was not computed."""
        return self.angles.get(joint, 0.0)


def visible_landmarks(
    snapshot: PoseSnapshot,
    threshold: float = VISIBILITY_THRESHOLD,
) -> dict[PoseLandmark, Landmark]:
    """Landmarks that should be drawn on the overlay."""
    visible = {}
    for part in PoseLandmark:
        lm = snapshot.get(part)
        if lm is not None and lm.visibility >= threshold:
            visible[part] = lm
    return visible


def visible_connections(
    snapshot: PoseSnapshot,
    threshold: float = VISIBILITY_THRESHOLD,
) -> list[tuple[Landmark, Landmark]]:
    """Skeleton bones whose two endpoints are both visible."""
    points = visible_landmarks(snapshot, threshold)
    return [
        (points[start], points[end])
        for start, end in POSE_CONNECTIONS
        if start in points and end in points
    ]
