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

from collections.abc import Sequence
from typing import TypeAlias

import numpy as np
from plum import dispatch

from reachgrasp.msgs.geometry_msgs.Vector3 import Vector3

# Types that can be converted to/from Quaternion
QuaternionConvertable: TypeAlias = Sequence[int | float] | np.ndarray


class Quaternion:
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0
    w: float = 1.0
    msg_name = "geometry_msgs.Quaternion"

    @dispatch
    def __init__(self) -> None:
        """Initialize an identity quaternion."""
        self.x, self.y, self.z, self.w = 0.0, 0.0, 0.0, 1.0

    @dispatch
    def __init__(self, x: int | float, y: int | float, z: int | float, w: int | float) -> None:
        self.x = float(x)
        self.y = float(y)
        self.z = float(z)
        self.w = float(w)

    @dispatch
    def __init__(self, sequence: Sequence[int | float] | np.ndarray) -> None:
        if len(sequence) != 4:
            raise ValueError("Quaternion requires exactly 4 components [x, y, z, w]")
        self.x, self.y, self.z, self.w = (float(v) for v in sequence)

    @dispatch
    def __init__(self, quaternion: Quaternion) -> None:
        """Initialize from another Quaternion (copy constructor)."""
        self.x, self.y, self.z, self.w = quaternion.x, quaternion.y, quaternion.z, quaternion.w

    @classmethod
    def from_rotation_matrix(cls, R: np.ndarray) -> Quaternion:
        """Convert a 3x3 rotation matrix to a unit quaternion (Shepperd's method)."""
        trace = float(np.trace(R))
        if trace > 0.0:
            s = 2.0 * np.sqrt(trace + 1.0)
            w = 0.25 * s
            x = (R[2, 1] - R[1, 2]) / s
            y = (R[0, 2] - R[2, 0]) / s
            z = (R[1, 0] - R[0, 1]) / s
        elif R[0, 0] > R[1, 1] and R[0, 0] > R[2, 2]:
            s = 2.0 * np.sqrt(1.0 + R[0, 0] - R[1, 1] - R[2, 2])
            w = (R[2, 1] - R[1, 2]) / s
            x = 0.25 * s
            y = (R[0, 1] + R[1, 0]) / s
            z = (R[0, 2] + R[2, 0]) / s
        elif R[1, 1] > R[2, 2]:
            s = 2.0 * np.sqrt(1.0 + R[1, 1] - R[0, 0] - R[2, 2])
            w = (R[0, 2] - R[2, 0]) / s
            x = (R[0, 1] + R[1, 0]) / s
            y = 0.25 * s
            z = (R[1, 2] + R[2, 1]) / s
        else:
            s = 2.0 * np.sqrt(1.0 + R[2, 2] - R[0, 0] - R[1, 1])
            w = (R[1, 0] - R[0, 1]) / s
            x = (R[0, 2] + R[2, 0]) / s
            y = (R[1, 2] + R[2, 1]) / s
            z = 0.25 * s
        return cls(np.array([x, y, z, w], dtype=np.float64)).normalized()

    @classmethod
    def from_euler(cls, euler: Vector3) -> Quaternion:
        """Create from (roll, pitch, yaw) radians, ZYX convention."""
        cr, sr = np.cos(euler.x / 2), np.sin(euler.x / 2)
        cp, sp = np.cos(euler.y / 2), np.sin(euler.y / 2)
        cy, sy = np.cos(euler.z / 2), np.sin(euler.z / 2)
        return cls(
            np.array(
                [
                    sr * cp * cy - cr * sp * sy,
                    cr * sp * cy + sr * cp * sy,
                    cr * cp * sy - sr * sp * cy,
                    cr * cp * cy + sr * sp * sy,
                ],
                dtype=np.float64,
            )
        )

    def normalized(self) -> Quaternion:
        q = self.to_numpy()
        norm = float(np.linalg.norm(q))
        if norm < 1e-12:
            return Quaternion()
        return Quaternion(q / norm)

    def to_rotation_matrix(self) -> np.ndarray:
        x, y, z, w = self.normalized().to_tuple()
        return np.array(
            [
                [1 - 2 * (y * y + z * z), 2 * (x * y - z * w), 2 * (x * z + y * w)],
                [2 * (x * y + z * w), 1 - 2 * (x * x + z * z), 2 * (y * z - x * w)],
                [2 * (x * z - y * w), 2 * (y * z + x * w), 1 - 2 * (x * x + y * y)],
            ],
            dtype=np.float64,
        )

    def to_tuple(self) -> tuple[float, float, float, float]:
        """Tuple representation of the quaternion (x, y, z, w)."""
        return (self.x, self.y, self.z, self.w)

    def to_list(self) -> list[float]:
        return [self.x, self.y, self.z, self.w]

    def to_numpy(self) -> np.ndarray:
        return np.array([self.x, self.y, self.z, self.w], dtype=np.float64)

    def to_euler(self) -> Vector3:
        """Convert quaternion to Euler angles (roll, pitch, yaw) in radians."""
        sinr_cosp = 2 * (self.w * self.x + self.y * self.z)
        cosr_cosp = 1 - 2 * (self.x * self.x + self.y * self.y)
        roll = np.arctan2(sinr_cosp, cosr_cosp)

        sinp = 2 * (self.w * self.y - self.z * self.x)
        if abs(sinp) >= 1:
            pitch = np.copysign(np.pi / 2, sinp)
        else:
            pitch = np.arcsin(sinp)

        siny_cosp = 2 * (self.w * self.z + self.x * self.y)
        cosy_cosp = 1 - 2 * (self.y * self.y + self.z * self.z)
        yaw = np.arctan2(siny_cosp, cosy_cosp)

        return Vector3(float(roll), float(pitch), float(yaw))

    def __getitem__(self, idx: int) -> float:
        """Allow indexing into quaternion components: 0=x, 1=y, 2=z, 3=w."""
        if not 0 <= idx <= 3:
            raise IndexError(f"Quaternion index {idx} out of range [0-3]")
        return self.to_tuple()[idx]

    def __repr__(self) -> str:
        return f"Quaternion({self.x:.6f}, {self.y:.6f}, {self.z:.6f}, {self.w:.6f})"

    def __eq__(self, other) -> bool:  # type: ignore[no-untyped-def]
        if not isinstance(other, Quaternion):
            return False
        return self.x == other.x and self.y == other.y and self.z == other.z and self.w == other.w

    def __hash__(self) -> int:
        return hash(self.to_tuple())
