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

"""Denavit-Hartenberg forward kinematics and damped least-squares IK.

DHKinematics works from a classic DH table (alpha, a, d, theta_offset per
revolute joint). IK is a purely local iterative solve from the caller's seed,
with no random restarts, so consecutive solves along a path stay on the same
branch when each one is seeded with the previous solution.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

from reachgrasp.manipulation.planning.spec import IKResult, IKStatus
from reachgrasp.manipulation.planning.utils.kinematics_utils import (
    check_singularity,
    compute_error_twist,
    compute_pose_error,
    damped_pseudoinverse,
)
from reachgrasp.msgs.geometry_msgs import Pose
from reachgrasp.utils.logging_config import setup_logger

if TYPE_CHECKING:
    from collections.abc import Sequence

    from numpy.typing import NDArray

logger = setup_logger()


def dh_transform(alpha: float, a: float, d: float, theta: float) -> NDArray[np.float64]:
    """Homogeneous transform of one classic DH row: Rz(theta) Tz(d) Tx(a) Rx(alpha)."""
    ct, st = np.cos(theta), np.sin(theta)
    ca, sa = np.cos(alpha), np.sin(alpha)
    return np.array(
        [
            [ct, -st * ca, st * sa, a * ct],
            [st, ct * ca, -ct * sa, a * st],
            [0.0, sa, ca, d],
            [0.0, 0.0, 0.0, 1.0],
        ],
        dtype=np.float64,
    )


class DHKinematics:
    """Serial-chain kinematics from a DH table.

    Example:
        kin = DHKinematics(config.dh_parameters)
        pose = kin.solve_fk(config.init_pose)
        result = kin.solve_ik(pose, seed=config.init_pose)
    """

    def __init__(
        self,
        dh_parameters: Sequence[Sequence[float]],
        joint_limits_lower: Sequence[float] | None = None,
        joint_limits_upper: Sequence[float] | None = None,
        damping: float = 0.05,
        max_iterations: int = 200,
        position_tolerance: float = 0.001,
        orientation_tolerance: float = 0.01,
        position_only: bool = False,
        singularity_threshold: float = 1e-6,
    ):
        """Create a DH kinematics model.

        Args:
            dh_parameters: Rows of (alpha, a, d, theta_offset), base to tip
            joint_limits_lower: Lower limits, unbounded if None
            joint_limits_upper: Upper limits, unbounded if None
            damping: Damping factor of the pseudoinverse
            max_iterations: Iteration cap of one IK solve
            position_tolerance: Required position accuracy (meters)
            orientation_tolerance: Required orientation accuracy (radians)
            position_only: Ignore the target orientation during IK
            singularity_threshold: Manipulability below which damping is raised
        """
        if not dh_parameters:
            raise ValueError("DH table must have at least one row")
        self._dh = np.array(dh_parameters, dtype=np.float64)
        n = len(self._dh)
        self._lower = (
            np.array(joint_limits_lower, dtype=np.float64)
            if joint_limits_lower is not None
            else np.full(n, -np.inf)
        )
        self._upper = (
            np.array(joint_limits_upper, dtype=np.float64)
            if joint_limits_upper is not None
            else np.full(n, np.inf)
        )
        self._damping = damping
        self._max_iterations = max_iterations
        self._position_tolerance = position_tolerance
        self._orientation_tolerance = orientation_tolerance
        self._position_only = position_only
        self._singularity_threshold = singularity_threshold

    @property
    def num_joints(self) -> int:
        return len(self._dh)

    def link_transforms(self, joint_positions: Sequence[float]) -> list[NDArray[np.float64]]:
        """Cumulative base-to-frame transforms T_0..T_n (T_0 is identity)."""
        q = self._as_array(joint_positions)
        transforms = [np.eye(4)]
        for (alpha, a, d, theta_offset), qi in zip(self._dh, q, strict=True):
            transforms.append(transforms[-1] @ dh_transform(alpha, a, d, qi + theta_offset))
        return transforms

    def forward(self, joint_positions: Sequence[float]) -> NDArray[np.float64]:
        """4x4 end-effector transform."""
        return self.link_transforms(joint_positions)[-1]

    def jacobian(self, joint_positions: Sequence[float]) -> NDArray[np.float64]:
        """6 x n geometric Jacobian (rows: vx, vy, vz, wx, wy, wz), world frame."""
        transforms = self.link_transforms(joint_positions)
        o_n = transforms[-1][:3, 3]
        J = np.zeros((6, self.num_joints))
        for i in range(self.num_joints):
            z = transforms[i][:3, 2]
            o = transforms[i][:3, 3]
            J[:3, i] = np.cross(z, o_n - o)
            J[3:, i] = z
        return J

    def solve_fk(self, joint_positions: Sequence[float]) -> Pose:
        return Pose.from_matrix(self.forward(joint_positions))

    def solve_ik(self, target_pose: Pose, seed: Sequence[float]) -> IKResult:
        """Iterative damped least-squares IK from `seed`.

        Args:
            target_pose: Desired end-effector pose
            seed: Initial joint configuration

        Returns:
            IKResult with the converged configuration, or NO_SOLUTION
        """
        target = target_pose.to_matrix()
        q = np.clip(self._as_array(seed), self._lower, self._upper)

        pos_error, ori_error = float("inf"), float("inf")
        for iteration in range(self._max_iterations):
            current = self.forward(q)
            pos_error, ori_error = compute_pose_error(current, target)
            if self._converged(pos_error, ori_error):
                return _create_success_result(q, pos_error, ori_error, iteration + 1)

            twist = compute_error_twist(current, target, gain=0.5)
            J = self.jacobian(q)
            if self._position_only:
                J, twist = J[:3, :], twist[:3]

            damping = self._damping
            if check_singularity(J, threshold=self._singularity_threshold):
                damping *= 10.0

            q_dot = damped_pseudoinverse(J, damping) @ twist

            # At most 0.1 rad per joint per iteration
            max_change = float(np.max(np.abs(q_dot)))
            if max_change > 0.1:
                q_dot *= 0.1 / max_change

            q = np.clip(q + q_dot, self._lower, self._upper)

        pos_error, ori_error = compute_pose_error(self.forward(q), target)
        if self._converged(pos_error, ori_error):
            return _create_success_result(q, pos_error, ori_error, self._max_iterations)

        return IKResult(
            status=IKStatus.NO_SOLUTION,
            position_error=pos_error,
            orientation_error=ori_error,
            iterations=self._max_iterations,
            message=(
                f"Did not converge after {self._max_iterations} iterations "
                f"(pos_err={pos_error:.4f}, ori_err={ori_error:.4f})"
            ),
        )

    def _converged(self, pos_error: float, ori_error: float) -> bool:
        if pos_error > self._position_tolerance:
            return False
        return self._position_only or ori_error <= self._orientation_tolerance

    def _as_array(self, joint_positions: Sequence[float]) -> NDArray[np.float64]:
        q = np.asarray(joint_positions, dtype=np.float64)
        if q.shape != (self.num_joints,):
            raise ValueError(f"Expected {self.num_joints} joint positions, got {q.shape}")
        return q


def _create_success_result(
    q: NDArray[np.float64],
    position_error: float,
    orientation_error: float,
    iterations: int,
) -> IKResult:
    return IKResult(
        status=IKStatus.SUCCESS,
        joint_positions=q.tolist(),
        position_error=position_error,
        orientation_error=orientation_error,
        iterations=iterations,
        message="IK converged",
    )
