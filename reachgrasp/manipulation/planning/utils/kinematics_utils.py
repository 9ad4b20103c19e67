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

"""
Kinematics Utilities

Stateless numeric helpers shared by the iterative IK solvers.

- damped_pseudoinverse(): damped least-squares inverse of a Jacobian
- get_manipulability(): Yoshikawa manipulability measure
- rotation_error_vector(): axis * angle of the rotation between two frames
- compute_pose_error(): scalar position/orientation error between two transforms
- compute_error_twist(): 6D correction twist toward a target transform
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from numpy.typing import NDArray

_ANGLE_EPS = 1e-6


def damped_pseudoinverse(J: NDArray[np.float64], damping: float = 0.01) -> NDArray[np.float64]:
    """Damped least-squares pseudoinverse J^T (J J^T + λ²I)^-1.

    Args:
        J: m x n Jacobian (m = 3 for position-only, 6 for full pose)
        damping: λ, trades accuracy for stability near singularities

    Returns:
        n x m matrix
    """
    JJT = J @ J.T
    result: NDArray[np.float64] = J.T @ np.linalg.inv(JJT + damping**2 * np.eye(JJT.shape[0]))
    return result


def get_manipulability(J: NDArray[np.float64]) -> float:
    """sqrt(det(J J^T)); zero at a singularity."""
    return float(np.sqrt(max(0.0, np.linalg.det(J @ J.T))))


def check_singularity(J: NDArray[np.float64], threshold: float = 0.01) -> bool:
    return get_manipulability(J) < threshold


def rotation_error_vector(
    R_current: NDArray[np.float64], R_target: NDArray[np.float64]
) -> NDArray[np.float64]:
    """Rotation vector (axis * angle) taking R_current onto R_target, world frame."""
    R_error = R_target @ R_current.T
    angle = float(np.arccos(np.clip((np.trace(R_error) - 1.0) / 2.0, -1.0, 1.0)))

    if angle < _ANGLE_EPS:
        return np.zeros(3)

    if angle > np.pi - _ANGLE_EPS:
        # Half-turn: the skew part vanishes, recover the axis from the diagonal
        diag = np.diag(R_error)
        idx = int(np.argmax(diag))
        axis = np.zeros(3)
        axis[idx] = np.sqrt((diag[idx] + 1.0) / 2.0)
        for j in range(3):
            if j != idx:
                axis[j] = R_error[idx, j] / (2.0 * axis[idx])
        return axis / np.linalg.norm(axis) * angle

    axis = np.array(
        [
            R_error[2, 1] - R_error[1, 2],
            R_error[0, 2] - R_error[2, 0],
            R_error[1, 0] - R_error[0, 1],
        ]
    ) / (2.0 * np.sin(angle))
    return axis * angle


def compute_pose_error(
    current_pose: NDArray[np.float64],
    target_pose: NDArray[np.float64],
) -> tuple[float, float]:
    """Position error (meters) and orientation error (radians) between 4x4 transforms."""
    position_error = float(np.linalg.norm(target_pose[:3, 3] - current_pose[:3, 3]))
    orientation_error = float(
        np.linalg.norm(rotation_error_vector(current_pose[:3, :3], target_pose[:3, :3]))
    )
    return position_error, orientation_error


def compute_error_twist(
    current_pose: NDArray[np.float64],
    target_pose: NDArray[np.float64],
    gain: float = 1.0,
) -> NDArray[np.float64]:
    """Twist [vx, vy, vz, wx, wy, wz] moving current_pose toward target_pose.

    Example:
        twist = compute_error_twist(T_current, T_target, gain=0.5)
        q = q + damped_pseudoinverse(J) @ twist
    """
    linear = target_pose[:3, 3] - current_pose[:3, 3]
    angular = rotation_error_vector(current_pose[:3, :3], target_pose[:3, :3])
    twist: NDArray[np.float64] = np.concatenate([linear, angular]) * gain
    return twist
