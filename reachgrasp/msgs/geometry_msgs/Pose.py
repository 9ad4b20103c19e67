# Copyright 2025-2026 Dimensional Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

from __future__ import annotations

from typing import TypeAlias

import numpy as np
from plum import dispatch

from reachgrasp.msgs.geometry_msgs.Quaternion import Quaternion, QuaternionConvertable
from reachgrasp.msgs.geometry_msgs.Vector3 import Vector3, VectorConvertable

# Types that can be converted to/from Pose
PoseConvertable: TypeAlias = (
    tuple[VectorConvertable, QuaternionConvertable]
    | dict[str, VectorConvertable | QuaternionConvertable]
)


class Pose:
    """A position plus an orientation. Used for waypoints, FK results and link poses."""

    position: Vector3
    orientation: Quaternion
    msg_name = "geometry_msgs.Pose"

    @dispatch
    def __init__(self) -> None:
        """Initialize a pose at origin with identity orientation."""
        self.position = Vector3()
        self.orientation = Quaternion()

    @dispatch
    def __init__(self, x: int | float, y: int | float, z: int | float) -> None:
        """Initialize a pose with position and identity orientation."""
        self.position = Vector3(x, y, z)
        self.orientation = Quaternion()

    @dispatch
    def __init__(
        self,
        position: Vector3 | VectorConvertable,
        orientation: Quaternion | QuaternionConvertable,
    ) -> None:
        self.position = Vector3(position)
        self.orientation = Quaternion(orientation)

    @dispatch
    def __init__(self, pose_dict: dict[str, VectorConvertable | QuaternionConvertable]) -> None:
        """Initialize from a dictionary with 'position' and 'orientation' keys."""
        self.position = Vector3(pose_dict["position"])
        self.orientation = Quaternion(pose_dict["orientation"])

    @dispatch
    def __init__(self, pose: Pose) -> None:
        """Initialize from another Pose (copy constructor)."""
        self.position = Vector3(pose.position)
        self.orientation = Quaternion(pose.orientation)

    @classmethod
    def from_matrix(cls, T: np.ndarray) -> Pose:
        """Create from a 4x4 homogeneous transform."""
        return cls(Vector3(T[:3, 3]), Quaternion.from_rotation_matrix(T[:3, :3]))

    def to_matrix(self) -> np.ndarray:
        """4x4 homogeneous transform of this pose."""
        T = np.eye(4)
        T[:3, :3] = self.orientation.to_rotation_matrix()
        T[:3, 3] = self.position.to_numpy()
        return T

    def to_dict(self) -> dict[str, list[float]]:
        return {"position": self.position.to_list(), "orientation": self.orientation.to_list()}

    @property
    def x(self) -> float:
        return self.position.x

    @property
    def y(self) -> float:
        return self.position.y

    @property
    def z(self) -> float:
        return self.position.z

    def __repr__(self) -> str:
        return f"Pose(position={self.position!r}, orientation={self.orientation!r})"

    def __str__(self) -> str:
        euler = self.orientation.to_euler()
        return (
            f"Pose(pos=[{self.x:.3f}, {self.y:.3f}, {self.z:.3f}], "
            f"euler=[{euler.x:.3f}, {euler.y:.3f}, {euler.z:.3f}])"
        )

    def __eq__(self, other) -> bool:  # type: ignore[no-untyped-def]
        if not isinstance(other, Pose):
            return False
        return self.position == other.position and self.orientation == other.orientation
